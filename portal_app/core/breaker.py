import logging
import time
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class CircuitOpen(Exception):
    pass


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        base_recovery_time: int = 10,
        max_recovery_time: int = 60,
    ):
        self.name = name
        self.failure_count = 0
        self.failure_threshold = failure_threshold
        self.base_recovery_time = base_recovery_time
        self.max_recovery_time = max_recovery_time
        self.last_failure_time = 0.0
        self.state = "CLOSED"

    @property
    def current_recovery_time(self):
        return min(
            self.base_recovery_time
            * (2 ** max(self.failure_count - self.failure_threshold, 0)),
            self.max_recovery_time,
        )

    def _open(self):
        self.state = "OPEN"
        self.last_failure_time = time.monotonic()
        logger.warning(f"{self.name} circuit opened after {self.failure_count} failures.")

    def _half_open(self):
        self.state = "HALF_OPEN"
        logger.info(f"{self.name} circuit half-open: testing...")

    def _close(self):
        if self.state != "CLOSED":
            logger.info(f"{self.name} circuit closed: stable again.")
        self.state = "CLOSED"
        self.failure_count = 0

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        if self.state == "OPEN":
            elapsed = time.monotonic() - self.last_failure_time
            cooldown = self.current_recovery_time
            if elapsed < cooldown:
                raise CircuitOpen(
                    f"{self.name} circuit still open, retry after {cooldown - elapsed:.1f}s"
                )
            self._half_open()

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self.failure_count += 1
            logger.error(f"{self.name} call failed ({self.failure_count}): {e}")
            if self.state == "HALF_OPEN" or self.failure_count >= self.failure_threshold:
                self._open()
            raise

        self._close()
        return result


smtp_breaker = CircuitBreaker("smtp", failure_threshold=3, base_recovery_time=10)
