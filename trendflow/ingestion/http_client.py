"""
Shared GET client for every source adapter.

Adapters translate responses into records; this layer owns timeouts,
backoff and the mapping of failures onto the pipeline error taxonomy.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any

import httpx

from trendflow.config.settings import get_settings
from trendflow.core.errors import HTTPClientError, RateLimitedError, TransientNetworkError

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUSES = frozenset({403, 429})
TRANSIENT_STATUSES = frozenset({500, 502, 503, 504})


@dataclass
class RetryConfig:
    """
    How long to wait between attempts, and which statuses earn one.

    Delay before retry n is ``min(max_backoff_seconds, base_delay * 2**n)``
    plus up to ``jitter_factor`` of itself.

    ``retry_on_rate_limit`` is disabled for quota-constrained sources:
    they must rotate to another provider on 429/403 instead of waiting.
    """

    max_retries: int = 3
    max_backoff_seconds: float = 30.0
    base_delay: float = 1.0
    jitter_factor: float = 0.1
    retry_on_rate_limit: bool = True

    @classmethod
    def from_settings(cls, **overrides: Any) -> "RetryConfig":
        settings = get_settings()
        values: dict[str, Any] = {
            "max_retries": settings.max_http_retries,
            "max_backoff_seconds": settings.max_backoff_seconds,
        }
        values.update(overrides)
        return cls(**values)

    def calculate_backoff(self, attempt: int) -> float:
        """Backoff duration in seconds for a 0-indexed retry attempt."""
        delay = min(self.base_delay * (2**attempt), self.max_backoff_seconds)
        jitter = delay * self.jitter_factor * random.random()
        return delay + jitter

    def is_retryable_status(self, status_code: int) -> bool:
        if status_code in TRANSIENT_STATUSES:
            return True
        return status_code == 429 and self.retry_on_rate_limit


class HTTPClient:
    """
    GET-only ``httpx.AsyncClient`` wrapper with bounded retry.

    - Timeouts, connection and read errors, and 5xx are retried with
      backoff; once retries are exhausted TransientNetworkError is raised.
    - 429 is retried too unless ``retry_on_rate_limit`` is off, in which
      case 429 and 403 raise RateLimitedError immediately.
    - Other 4xx raise HTTPClientError without retry.

    Usage:
        async with HTTPClient(RetryConfig(max_retries=3), timeout=10.0) as client:
            response = await client.get("https://hacker-news.firebaseio.com/v0/topstories.json")
    """

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.retry_config = retry_config or RetryConfig.from_settings()
        self.timeout = timeout or get_settings().http_timeout
        self._default_headers = headers or {}
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        self._client = httpx.AsyncClient(timeout=self.timeout, headers=self._default_headers)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        GET ``url``, retrying transient failures per ``retry_config``.

        Raises:
            RateLimitedError: On 429/403 (immediately, or after retries)
            TransientNetworkError: When transient failures outlive the retries
            HTTPClientError: On other non-retryable errors
        """
        if not self._client:
            raise RuntimeError("HTTPClient is not open; use it as 'async with HTTPClient()'")

        config = self.retry_config
        attempts = config.max_retries + 1

        for attempt in range(attempts):
            try:
                response = await self._client.get(url, params=params, headers=headers)
            except (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError) as e:
                if attempt < config.max_retries:
                    backoff = config.calculate_backoff(attempt)
                    logger.warning(
                        f"Retryable error {type(e).__name__} for {url}, "
                        f"attempt {attempt + 1}/{attempts}, backing off {backoff:.2f}s"
                    )
                    await asyncio.sleep(backoff)
                    continue
                raise TransientNetworkError(
                    f"Request failed after {attempt + 1} attempts: {e}"
                ) from e

            status = response.status_code

            if status in RATE_LIMIT_STATUSES and not config.retry_on_rate_limit:
                raise RateLimitedError(
                    f"Rate limited by {url} (status {status})",
                    status_code=status,
                    response_body=response.text,
                )

            if config.is_retryable_status(status):
                if attempt < config.max_retries:
                    backoff = config.calculate_backoff(attempt)
                    logger.warning(
                        f"Retryable status {status} from {url}, "
                        f"attempt {attempt + 1}/{attempts}, backing off {backoff:.2f}s"
                    )
                    await asyncio.sleep(backoff)
                    continue

                error_cls = RateLimitedError if status == 429 else TransientNetworkError
                raise error_cls(
                    f"Request failed with status {status} after {attempt + 1} attempts",
                    status_code=status,
                    response_body=response.text,
                )

            if status in RATE_LIMIT_STATUSES:
                raise RateLimitedError(
                    f"Request refused with status {status}",
                    status_code=status,
                    response_body=response.text,
                )

            if status >= 400:
                raise HTTPClientError(
                    f"Request failed with status {status}",
                    status_code=status,
                    response_body=response.text,
                )

            return response

        raise TransientNetworkError(f"Request failed after {attempts} attempts")

    async def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self.get(url, params=params, headers=headers)
        return response.json()
