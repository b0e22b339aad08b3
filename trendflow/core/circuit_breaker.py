"""Consecutive-failure breaker around async callables.

Guards two things: the direction model endpoint (with a recovery
window, so a later topic can probe again) and each adapter batch (no
recovery window, so the batch is abandoned once the limit is hit).

    guard = GenericCircuitBreaker(failure_threshold=3, recovery_timeout=None)
    try:
        item = await guard.call(fetch_item, item_id)
    except CircuitOpenError:
        break
"""

import enum
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from trendflow.core.errors import TrendflowError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(enum.Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(TrendflowError):
    """The breaker refused the call without running it."""


class GenericCircuitBreaker:
    """
    Counts consecutive failures of whatever is passed to :meth:`call`.

    At ``failure_threshold`` the breaker opens and rejects calls. With a
    ``recovery_timeout`` one probe call is admitted once that many
    seconds have passed since the circuit opened; its outcome closes or
    reopens the circuit. With ``recovery_timeout=None`` an open breaker
    stays open.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float | None = 60.0,
        name: str = "circuit_breaker",
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is CircuitState.OPEN

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    def _move(self, new_state: CircuitState, reason: str) -> None:
        level = logging.WARNING if new_state is CircuitState.OPEN else logging.INFO
        logger.log(
            level, f"Breaker {self.name}: {self._state.value} -> {new_state.value} ({reason})"
        )
        self._state = new_state
        if new_state is CircuitState.OPEN:
            self._opened_at = time.monotonic()

    def _admit(self) -> None:
        if self._state is not CircuitState.OPEN:
            return
        waited = time.monotonic() - self._opened_at
        if self.recovery_timeout is None or waited < self.recovery_timeout:
            raise CircuitOpenError(
                f"Breaker {self.name} is open after {self._failures} consecutive failures"
            )
        self._move(CircuitState.HALF_OPEN, "probing")

    async def call(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run ``fn(*args, **kwargs)`` unless the breaker is open.

        Exceptions from ``fn`` propagate unchanged after being counted.
        """
        self._admit()
        try:
            result = await fn(*args, **kwargs)
        except Exception:
            self._failures += 1
            if self._state is CircuitState.HALF_OPEN:
                self._move(CircuitState.OPEN, "probe failed")
            elif self._failures >= self.failure_threshold:
                self._move(CircuitState.OPEN, f"{self._failures} failures")
            raise

        self._failures = 0
        if self._state is CircuitState.HALF_OPEN:
            self._move(CircuitState.CLOSED, "probe succeeded")
        return result
