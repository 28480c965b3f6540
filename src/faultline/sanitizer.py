"""Make arbitrary user data safe for the JSON encoder.

``sanitize`` walks lists, tuples and plain dicts and replaces every value
the encoder rejects with a text rendering of it. Substructures that hold
nothing unsafe are returned as-is, so a clean payload costs one walk and no
copies.
"""

from typing import Any

from faultline.serialization import JSONEncoder

_SAFE_SCALARS = (str, int, float, bool, type(None))


def sanitize(value: Any, json_library: JSONEncoder) -> Any:
    """Return ``value`` with every unencodable leaf replaced by text."""
    sanitized, _changed = sanitize_value(value, json_library)
    return sanitized


def sanitize_value(
    value: Any, json_library: JSONEncoder, _active: set[int] | None = None
) -> tuple[Any, bool]:
    """Sanitize ``value`` and report whether anything was replaced.

    The returned value is the original object whenever the flag is False.
    A container that contains itself is replaced by its text rendering at
    the point where the cycle closes.
    """
    if isinstance(value, _SAFE_SCALARS):
        return value, False

    # Only plain dicts are walked; records such as pydantic models are
    # treated as opaque leaves and go through the encoder as a whole.
    if isinstance(value, list | tuple | dict):
        if _active is None:
            _active = set()
        if id(value) in _active:
            return inspect_value(value), True

        _active.add(id(value))
        try:
            if isinstance(value, dict):
                return _sanitize_mapping(value, json_library, _active)
            return _sanitize_sequence(value, json_library, _active)
        finally:
            _active.discard(id(value))

    try:
        json_library.encode(value)
    except Exception:
        return inspect_value(value), True
    return value, False


def _sanitize_sequence(
    items: list | tuple, json_library: JSONEncoder, active: set[int]
) -> tuple[Any, bool]:
    replaced = None

    for index, item in enumerate(items):
        new_item, changed = sanitize_value(item, json_library, active)
        if changed:
            if replaced is None:
                replaced = list(items)
            replaced[index] = new_item

    if replaced is None:
        return items, False
    return (tuple(replaced) if isinstance(items, tuple) else replaced), True


def _sanitize_mapping(mapping: dict, json_library: JSONEncoder, active: set[int]) -> tuple[dict, bool]:
    updated = None

    for key, item in mapping.items():
        new_item, changed = sanitize_value(item, json_library, active)
        if changed:
            if updated is None:
                updated = dict(mapping)
            updated[key] = new_item

    if updated is None:
        return mapping, False
    return updated, True


def inspect_value(value: Any) -> str:
    """Best-effort human readable rendering. Never raises."""
    try:
        text = repr(value)
    except Exception:
        text = ""
    if not text:
        text = object.__repr__(value)
    return text
