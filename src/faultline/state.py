"""Process-wide record of the last event handed to a transport.

The value is advisory: concurrent submissions race and the last writer
wins.
"""

from threading import Lock


class LastEventCell:
    """A single lock-guarded ``(event_id, source)`` slot."""

    def __init__(self):
        self._lock = Lock()
        self._value: tuple[str, str | None] | None = None

    def record(self, event_id: str, source: str | None) -> None:
        with self._lock:
            self._value = (event_id, source)

    def get(self) -> tuple[str, str | None] | None:
        with self._lock:
            return self._value

    def clear(self) -> None:
        with self._lock:
            self._value = None


# Shared by every client that is not given its own cell.
last_event = LastEventCell()


def last_event_id() -> str | None:
    """Return the id of the last event sent by this process, if any."""
    value = last_event.get()
    return value[0] if value else None
