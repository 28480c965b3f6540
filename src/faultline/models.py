"""Event models for faultline.

An ``Event`` is the fully-populated record handed to the submission
pipeline. Nested records (breadcrumbs, SDK info, request context,
exceptions and their stack traces) have a fixed schema and are flattened
into plain mappings when the event is rendered.
"""

from datetime import UTC, datetime
from typing import Any, Literal

from nanoid import generate
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

EVENT_ID_ALPHABET = "0123456789abcdef"

Level = Literal["fatal", "error", "warning", "info", "debug"]


def generate_event_id() -> str:
    """Generate a unique 32 character hex event ID."""
    return generate(EVENT_ID_ALPHABET, 32)


class Breadcrumb(BaseModel):
    """A trail entry recorded before the event happened."""

    timestamp: AwareDatetime | None = None
    type: str | None = None
    category: str | None = None
    message: str | None = None
    level: Level | None = None
    data: dict[str, Any] | None = None


class SDKInfo(BaseModel):
    name: str = "faultline.python"
    version: str = "0.1.0"
    integrations: list[str] = Field(default_factory=list)
    packages: list[dict[str, str]] = Field(default_factory=list)


class RequestInfo(BaseModel):
    """HTTP request context attached to an event."""

    method: str | None = None
    url: str | None = None
    query_string: str | dict[str, Any] | None = None
    data: Any = None
    cookies: str | dict[str, str] | None = None
    headers: dict[str, str] | None = None
    env: dict[str, str] | None = None


class Frame(BaseModel):
    filename: str | None = None
    function: str | None = None
    module: str | None = None
    lineno: int | None = None
    colno: int | None = None
    abs_path: str | None = None
    context_line: str | None = None
    pre_context: list[str] | None = None
    post_context: list[str] | None = None
    in_app: bool | None = None
    vars: dict[str, Any] | None = None


class Stacktrace(BaseModel):
    frames: list[Frame] = Field(default_factory=list)


class ExceptionRecord(BaseModel):
    """One entry of the event's exception chain."""

    type: str
    value: str | None = None
    module: str | None = None
    thread_id: int | str | None = None
    mechanism: dict[str, Any] | None = None
    stacktrace: Stacktrace | None = None


class Event(BaseModel):
    """An error or message record to be reported.

    ``source``, ``original_exception`` and ``integration_meta`` are
    bookkeeping for the client itself and are dropped when rendering.
    ``source == "logger"`` marks events produced by the logging
    subsystem.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Identity
    event_id: str = Field(default_factory=generate_event_id)
    timestamp: AwareDatetime = Field(default_factory=lambda: datetime.now(UTC))

    level: Level = "error"
    platform: str = "python"
    logger: str | None = None
    message: str | None = None

    server_name: str | None = None
    environment: str | None = None
    release: str | None = None
    dist: str | None = None
    transaction: str | None = None
    fingerprint: list[str] | None = None

    # Interfaces
    breadcrumbs: list[Breadcrumb] = Field(default_factory=list)
    sdk: SDKInfo | None = None
    request: RequestInfo | None = None
    extra: dict[str, Any] = Field(default_factory=dict)
    user: dict[str, Any] = Field(default_factory=dict)
    tags: dict[str, Any] = Field(default_factory=dict)
    exception: list[ExceptionRecord] = Field(default_factory=list)

    # Internal only
    source: str | None = None
    original_exception: BaseException | None = None
    integration_meta: dict[str, Any] = Field(default_factory=dict)


NON_PAYLOAD_FIELDS = frozenset({"source", "original_exception", "integration_meta"})
