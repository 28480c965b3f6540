"""Base transport: encoding, retries and circuit breaking."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from faultline.errors import EncodingError, RequestFailure
from faultline.serialization import JSONEncoder, JSONLibrary
from faultline.utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Delivers batches of rendered payloads to a destination.

    Subclasses implement ``_write_batch``; ``post`` handles everything
    around it.
    """

    def __init__(
        self,
        json_library: JSONEncoder | None = None,
        retry_backoff: float = 0.5,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize transport.

        Args:
            json_library: Encoder for payloads (default ``JSONLibrary``)
            retry_backoff: Seconds before the first retry, doubled each time
            failure_threshold: Failed posts before the circuit opens
            recovery_timeout: Seconds before an open circuit is probed
            sleep: Sleep function, injectable for tests
        """
        self.json_library = json_library or JSONLibrary()
        self.retry_backoff = retry_backoff
        self.sleep = sleep
        self.circuit_breaker = CircuitBreaker(failure_threshold, recovery_timeout)
        self.is_running = False

    def start(self) -> None:
        """Open connections."""
        self.is_running = True

    def stop(self) -> None:
        """Close connections."""
        self.is_running = False

    def post(self, payloads: list[dict[str, Any]], retries: int) -> str:
        """Encode and write ``payloads``, retrying up to ``retries`` times.

        Returns:
            The event id of the first payload

        Raises:
            EncodingError: If a payload cannot be encoded
            RequestFailure: If every attempt failed or the circuit is open
        """
        messages = [self.encode(payload) for payload in payloads]

        if not self.circuit_breaker.should_attempt():
            raise RequestFailure("circuit breaker open")

        last_error: Exception | None = None
        for attempt in range(retries + 1):
            if attempt:
                self.sleep(self.retry_backoff * 2 ** (attempt - 1))
            try:
                if not self.is_running:
                    self.start()
                self._write_batch(messages)
            except Exception as e:
                logger.debug(f"{type(self).__name__} attempt {attempt + 1} failed: {e}")
                last_error = e
            else:
                self.circuit_breaker.record_success()
                return payloads[0].get("event_id", "") if payloads else ""

        self.circuit_breaker.record_failure()
        raise RequestFailure(last_error)

    def encode(self, payload: dict[str, Any]) -> str:
        try:
            return self.json_library.encode(payload)
        except Exception as e:
            raise EncodingError(e) from e

    @abstractmethod
    def _write_batch(self, messages: list[str]) -> None:
        """Write encoded messages.

        Raises:
            Exception: If the write fails
        """

    def __enter__(self) -> "Transport":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
