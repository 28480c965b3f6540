"""Turn an ``Event`` into the plain mapping handed to transports."""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from faultline.models import NON_PAYLOAD_FIELDS, Event, ExceptionRecord
from faultline.sanitizer import sanitize
from faultline.serialization import JSONEncoder

# Receiving service limit for the message field, in characters.
MAX_MESSAGE_LENGTH = 8_192


def render_event(event: Event, json_library: JSONEncoder) -> dict[str, Any]:
    """Render ``event`` into a transport-ready payload.

    Fields that are unset are left out entirely. ``extra``, ``user`` and
    ``tags`` are sanitized so the payload always encodes.
    """
    payload = {
        name: value
        for name, value in _fields(event).items()
        if name not in NON_PAYLOAD_FIELDS and value is not None
    }

    payload["timestamp"] = event.timestamp.isoformat()

    _update_if_present(payload, "message", lambda message: message[:MAX_MESSAGE_LENGTH])
    _update_if_present(payload, "breadcrumbs", lambda crumbs: [_fields(crumb) for crumb in crumbs])
    _update_if_present(payload, "sdk", _fields)
    _update_if_present(payload, "request", lambda request: _remove_nones(_fields(request)))
    for name in ("extra", "user", "tags"):
        _update_if_present(payload, name, lambda value: sanitize(value, json_library))
    _update_if_present(
        payload, "exception", lambda records: [render_exception(record) for record in records]
    )

    return payload


def render_exception(record: ExceptionRecord) -> dict[str, Any]:
    rendered = _fields(record)
    stacktrace = rendered.get("stacktrace")
    if stacktrace is not None:
        rendered["stacktrace"] = {"frames": [_fields(frame) for frame in stacktrace.frames]}
    return rendered


def _fields(model: BaseModel) -> dict[str, Any]:
    # Shallow: nested records stay as they are.
    return {name: getattr(model, name) for name in type(model).model_fields}


def _remove_nones(mapping: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in mapping.items() if value is not None}


def _update_if_present(payload: dict[str, Any], key: str, fun: Callable[[Any], Any]) -> None:
    if payload.get(key) is not None:
        payload[key] = fun(payload[key])
