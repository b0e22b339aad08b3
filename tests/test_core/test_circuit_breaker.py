"""Tests for GenericCircuitBreaker."""

from unittest.mock import patch

import pytest

from trendflow.core.circuit_breaker import CircuitOpenError, CircuitState, GenericCircuitBreaker


async def _succeed() -> str:
    return "ok"


async def _fail() -> None:
    raise RuntimeError("boom")


class TestGenericCircuitBreaker:
    """Tests for breaker state transitions."""

    @pytest.mark.asyncio
    async def test_passes_through_when_closed(self):
        breaker = GenericCircuitBreaker(failure_threshold=2)

        assert await breaker.call(_succeed) == "ok"
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self):
        """Consecutive failures trip the breaker, then calls are rejected."""
        breaker = GenericCircuitBreaker(failure_threshold=2, recovery_timeout=60.0)

        for _ in range(2):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)

        assert breaker.is_open
        with pytest.raises(CircuitOpenError):
            await breaker.call(_succeed)

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self):
        breaker = GenericCircuitBreaker(failure_threshold=2)

        with pytest.raises(RuntimeError):
            await breaker.call(_fail)
        await breaker.call(_succeed)

        assert breaker.consecutive_failures == 0
        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_no_recovery_timeout_stays_open(self):
        """A breaker without recovery timeout never lets a probe through."""
        breaker = GenericCircuitBreaker(failure_threshold=1, recovery_timeout=None)

        with pytest.raises(RuntimeError):
            await breaker.call(_fail)

        with patch("trendflow.core.circuit_breaker.time.monotonic", return_value=1e12):
            with pytest.raises(CircuitOpenError):
                await breaker.call(_succeed)

    @pytest.mark.asyncio
    async def test_half_open_probe_closes_on_success(self):
        breaker = GenericCircuitBreaker(failure_threshold=1, recovery_timeout=5.0)

        with patch("trendflow.core.circuit_breaker.time.monotonic", return_value=100.0):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)

        with patch("trendflow.core.circuit_breaker.time.monotonic", return_value=106.0):
            assert await breaker.call(_succeed) == "ok"

        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_probe_failure_reopens(self):
        breaker = GenericCircuitBreaker(failure_threshold=1, recovery_timeout=5.0)

        with patch("trendflow.core.circuit_breaker.time.monotonic", return_value=100.0):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)

        with patch("trendflow.core.circuit_breaker.time.monotonic", return_value=106.0):
            with pytest.raises(RuntimeError):
                await breaker.call(_fail)

        assert breaker.is_open
