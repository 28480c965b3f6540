"""Circuit breaker guarding transport writes."""

import logging
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """Stop hammering a destination that keeps failing.

    States:
    - CLOSED: writes go through
    - OPEN: failure threshold reached, writes are refused
    - HALF_OPEN: recovery timeout elapsed, the next write probes the destination
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize circuit breaker.

        Args:
            failure_threshold: Consecutive failed posts before opening
            recovery_timeout: Seconds to wait before probing again
            clock: Time source, injectable for tests
        """
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.clock = clock
        self.failure_count = 0
        self.last_failure_time: float | None = None
        self.is_open = False

    def record_success(self) -> None:
        if self.is_open:
            logger.info("Circuit breaker closed after successful probe")
        self.failure_count = 0
        self.is_open = False
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = self.clock()

        if not self.is_open and self.failure_count >= self.failure_threshold:
            self.is_open = True
            logger.warning(f"Circuit breaker opened after {self.failure_count} failures")

    def should_attempt(self) -> bool:
        return self.state != "OPEN"

    @property
    def state(self) -> str:
        if not self.is_open:
            return "CLOSED"
        if self.last_failure_time is not None and (
            self.clock() - self.last_failure_time > self.recovery_timeout
        ):
            return "HALF_OPEN"
        return "OPEN"
