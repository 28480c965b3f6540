#!/usr/bin/env python3
"""faultline Basic Example - report an exception to the terminal."""

import sys
import traceback

import faultline
from faultline.models import Event, ExceptionRecord, Frame, Stacktrace


def scrub_password(event):
    """Drop events from the health check and hide credentials in extra."""
    if event.transaction == "healthcheck":
        return None
    extra = {key: ("[redacted]" if key == "password" else value) for key, value in event.extra.items()}
    return event.model_copy(update={"extra": extra})


faultline.configure(
    dsn="stdout://",
    sample_rate=1.0,
    before_send_event=scrub_password,
    after_send_event=lambda event, result: print(f"-> {result.status.value}", file=sys.stderr),
)

try:
    {}["missing"]
except KeyError as e:
    frames = [
        Frame(filename=frame.filename, function=frame.name, lineno=frame.lineno, in_app=True)
        for frame in traceback.extract_tb(e.__traceback__)
    ]
    event = Event(
        exception=[
            ExceptionRecord(type=type(e).__name__, value=str(e), stacktrace=Stacktrace(frames=frames))
        ],
        extra={"password": "hunter2", "connection": object()},
        original_exception=e,
    )

result = faultline.send_event(event)
print(f"Sent: {result.ok}, last event id: {faultline.last_event_id()}")
