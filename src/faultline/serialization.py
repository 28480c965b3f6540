"""JSON encoding used for sanitization checks and transport payloads."""

import json
from datetime import date, datetime, time
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from pydantic import BaseModel


@runtime_checkable
class JSONEncoder(Protocol):
    """Minimal encoder interface.

    ``encode`` returns the encoded text, or raises if the value cannot be
    represented.
    """

    def encode(self, value: Any) -> str: ...


class JSONLibrary:
    """Default encoder built on the standard ``json`` module.

    Pydantic models, datetimes and UUIDs are encoded natively; any other
    object that ``json`` does not understand raises ``TypeError``.
    """

    def __init__(self, **dumps_kwargs: Any):
        self.dumps_kwargs = dumps_kwargs

    def encode(self, value: Any) -> str:
        return json.dumps(value, default=self._default, **self.dumps_kwargs)

    @staticmethod
    def _default(value: Any) -> Any:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        if isinstance(value, datetime | date | time):
            return value.isoformat()
        if isinstance(value, UUID):
            return str(value)
        raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
