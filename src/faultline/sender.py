"""Background delivery for the fire-and-forget completion mode."""

import logging
import threading
from collections import deque
from collections.abc import Callable
from typing import Any

from faultline.errors import DeliveryError, EncodingError, RequestFailure
from faultline.transports.base import Transport

logger = logging.getLogger(__name__)

FailureCallback = Callable[[DeliveryError, list[tuple[dict[str, Any], str | None]]], None]


class Sender:
    """Queue rendered payloads and post them from a daemon thread.

    Callers never wait on the network. Nothing is reported back to them;
    failures go to ``on_failure`` along with the batch that failed.
    """

    def __init__(
        self,
        transport_provider: Callable[[], Transport],
        request_retries: int = 0,
        buffer_size: int = 1000,
        batch_size: int = 100,
        flush_interval: float = 0.1,
        on_failure: FailureCallback | None = None,
    ):
        """Initialize sender.

        Args:
            transport_provider: Returns the transport to post through; called per batch
            request_retries: Retries passed to ``Transport.post``
            buffer_size: Maximum queued payloads; the oldest is dropped beyond this
            batch_size: Maximum payloads per post
            flush_interval: Seconds the worker waits for more payloads
            on_failure: Called with the delivery error and the failed batch
        """
        self.transport_provider = transport_provider
        self.request_retries = request_retries
        self.buffer_size = buffer_size
        self.batch_size = batch_size
        self.flush_interval = flush_interval
        self.on_failure = on_failure

        self._buffer: deque[tuple[dict[str, Any], str | None]] = deque()
        self._condition = threading.Condition()
        self._in_flight = 0
        self._worker: threading.Thread | None = None
        self.is_running = False

    def start(self) -> None:
        with self._condition:
            if self.is_running:
                return
            self.is_running = True
            self._worker = threading.Thread(
                target=self._run, name="faultline-sender", daemon=True
            )
            self._worker.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Drain the queue and stop the worker."""
        self.flush(timeout)
        with self._condition:
            self.is_running = False
            self._condition.notify_all()
        if self._worker is not None:
            self._worker.join(timeout)
            self._worker = None

    def send_async(self, payload: dict[str, Any], source: str | None = None) -> None:
        """Queue ``payload`` and return immediately."""
        if not self.is_running:
            self.start()

        with self._condition:
            if len(self._buffer) >= self.buffer_size:
                dropped, _ = self._buffer.popleft()
                logger.warning(f"Sender queue full, dropping event {dropped.get('event_id')}")
            self._buffer.append((payload, source))
            self._condition.notify_all()

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until every queued payload has been posted.

        Returns:
            True if the queue drained before ``timeout``
        """
        with self._condition:
            return self._condition.wait_for(
                lambda: not self._buffer and not self._in_flight, timeout
            )

    def _run(self) -> None:
        while True:
            with self._condition:
                self._condition.wait_for(
                    lambda: self._buffer or not self.is_running, self.flush_interval
                )
                if not self._buffer:
                    if not self.is_running:
                        return
                    continue

                batch = [
                    self._buffer.popleft()
                    for _ in range(min(self.batch_size, len(self._buffer)))
                ]
                self._in_flight = len(batch)

            try:
                self._post(batch)
            finally:
                with self._condition:
                    self._in_flight = 0
                    self._condition.notify_all()

    def _post(self, batch: list[tuple[dict[str, Any], str | None]]) -> None:
        try:
            transport = self.transport_provider()

            # One unencodable payload must not sink the rest of the batch.
            deliverable = []
            for entry in batch:
                try:
                    transport.encode(entry[0])
                except EncodingError as e:
                    self._report(e, [entry])
                else:
                    deliverable.append(entry)
            batch = deliverable

            if batch:
                transport.post([payload for payload, _ in batch], self.request_retries)
        except DeliveryError as e:
            self._report(e, batch)
        except Exception as e:
            # Keep the worker alive whatever the transport raises.
            self._report(RequestFailure(e), batch)

    def _report(self, error: DeliveryError, batch) -> None:
        if self.on_failure is None:
            logger.warning(f"Failed to deliver {len(batch)} event(s): {error}")
            return
        try:
            self.on_failure(error, batch)
        except Exception:
            logger.exception("Sender failure callback raised")

    def __enter__(self) -> "Sender":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
