from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from app.core.clock import Clock, system_clock
from app.core.config import settings

# Generic return type for wrapped coroutines.
T = TypeVar("T")

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreaker:
    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout_seconds: float = 30.0,
        name: str = "default_circuit",
        clock: Clock = system_clock,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout_seconds = recovery_timeout_seconds
        self.name = name
        self._clock = clock

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.last_failure_time = 0.0

    async def acall(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T | None:
        """
        Awaits the coroutine function with circuit breaker logic.
        Returns None if the circuit is open or the call failed.
        """
        self._update_state()

        if self.state == CircuitState.OPEN:
            logger.warning("Circuit %s is OPEN, skipping call", self.name)
            return None

        try:
            result = await func(*args, **kwargs)
        except Exception:
            logger.warning("Call through circuit %s failed", self.name, exc_info=True)
            self._on_failure()
            return None
        self._on_success()
        return result

    def _update_state(self) -> None:
        if self.state == CircuitState.OPEN:
            if self._clock() - self.last_failure_time > self.recovery_timeout_seconds:
                self.state = CircuitState.HALF_OPEN

    def _on_success(self) -> None:
        self.failure_count = 0
        self.state = CircuitState.CLOSED

    def _on_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = self._clock()
        if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state != CircuitState.OPEN:
                logger.error("Circuit %s opened after %d failures", self.name, self.failure_count)
            self.state = CircuitState.OPEN


def build_producer_breaker(clock: Clock = system_clock) -> CircuitBreaker:
    return CircuitBreaker(
        failure_threshold=settings.PRODUCER_FAILURE_THRESHOLD,
        recovery_timeout_seconds=settings.PRODUCER_RECOVERY_TIMEOUT_SECONDS,
        name="candidate_producer",
        clock=clock,
    )
