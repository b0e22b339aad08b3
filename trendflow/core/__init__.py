"""Shared building blocks: errors, circuit breaker, TTL cache, worker pool."""

from trendflow.core.cache import TTLCache
from trendflow.core.circuit_breaker import CircuitOpenError, CircuitState, GenericCircuitBreaker
from trendflow.core.errors import (
    ConfigurationMissingError,
    HTTPClientError,
    MalformedResponseError,
    PersistenceConflictError,
    QuotaExhaustedError,
    RateLimitedError,
    TransientNetworkError,
    TrendflowError,
)
from trendflow.core.pool import run_with_concurrency

__all__ = [
    "CircuitOpenError",
    "CircuitState",
    "ConfigurationMissingError",
    "GenericCircuitBreaker",
    "HTTPClientError",
    "MalformedResponseError",
    "PersistenceConflictError",
    "QuotaExhaustedError",
    "RateLimitedError",
    "TTLCache",
    "TransientNetworkError",
    "TrendflowError",
    "run_with_concurrency",
]
