"""Submission outcomes and completion modes."""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from faultline.errors import DeliveryError


class SendResultMode(str, Enum):
    """How a rendered event is handed to the transport.

    ``SYNC`` waits for the transport, ``NONE`` hands off to the background
    sender and returns immediately. ``ASYNC`` is retired and always fails.
    """

    SYNC = "sync"
    NONE = "none"
    ASYNC = "async"


class SendStatus(str, Enum):
    SENT = "sent"
    UNSAMPLED = "unsampled"
    EXCLUDED = "excluded"
    FAILED = "failed"


class SendResult(BaseModel):
    """Exactly one of these is returned per submission."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: SendStatus
    event_id: str | None = None
    error: DeliveryError | None = None

    @classmethod
    def sent(cls, event_id: str) -> "SendResult":
        return cls(status=SendStatus.SENT, event_id=event_id)

    @classmethod
    def unsampled(cls) -> "SendResult":
        return cls(status=SendStatus.UNSAMPLED)

    @classmethod
    def excluded(cls) -> "SendResult":
        return cls(status=SendStatus.EXCLUDED)

    @classmethod
    def failed(cls, error: DeliveryError) -> "SendResult":
        return cls(status=SendStatus.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is SendStatus.SENT
