import json
import sys
from typing import TextIO

from faultline.transports.base import Transport


class TerminalTransport(Transport):
    """Writes a one-line summary of each event to a text stream.

    Meant for local development, where there is no real destination.
    """

    def __init__(self, output: TextIO | None = None, show_payload: bool = False, json_library=None):
        super().__init__(json_library=json_library)
        self.output = output or sys.stderr
        self.show_payload = show_payload

    def _write_batch(self, messages: list[str]) -> None:
        for message in messages:
            payload = json.loads(message)
            level = payload.get("level", "error").upper()
            line = f"[{payload.get('timestamp', '')}] {level} {payload.get('event_id', '')}"

            summary = payload.get("message")
            if not summary and payload.get("exception"):
                first = payload["exception"][0]
                summary = f"{first.get('type')}: {first.get('value')}"
            if summary:
                line += f" | {summary}"

            self.output.write(line + "\n")
            if self.show_payload:
                self.output.write(message + "\n")
        self.output.flush()
