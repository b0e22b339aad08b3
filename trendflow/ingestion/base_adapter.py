"""
Adapter capability interface and shared scraping helpers.

Every source is one implementation of ``ScraperAdapter``: a ``name`` and
an async ``scrape(options)`` returning normalized records. BaseAdapter
adds what the concrete adapters share:
- HTTP client construction with the configured retry policy
- A per-run failure guard that abandons the batch after N consecutive
  failed requests
- Option merging and politeness delays
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, Protocol, runtime_checkable

from trendflow.core.circuit_breaker import GenericCircuitBreaker
from trendflow.ingestion.config import IngestionConfig
from trendflow.ingestion.http_client import HTTPClient, RetryConfig
from trendflow.ingestion.schemas import NormalizedRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class ScraperAdapter(Protocol):
    """Options in, normalized records out."""

    name: str

    async def scrape(self, options: dict[str, Any] | None = None) -> list[NormalizedRecord]:
        ...


class BaseAdapter(ABC):
    """
    Abstract base class for source adapters.

    Subclasses set ``name`` and ``default_options`` and implement
    ``_scrape(options)``. Failures inside ``_scrape`` that are not caught
    propagate to the orchestrator, which counts the source as having
    produced zero records.
    """

    name: ClassVar[str] = "base"
    default_options: ClassVar[dict[str, Any]] = {}

    def __init__(
        self,
        config: IngestionConfig | None = None,
        retry_config: RetryConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._config = config or IngestionConfig()
        self._retry_config = retry_config
        self._sleep = sleep

    def _http_client(self, timeout: float | None = None, **retry_overrides: Any) -> HTTPClient:
        retry = self._retry_config or RetryConfig.from_settings()
        if retry_overrides:
            retry = RetryConfig(**{**retry.__dict__, **retry_overrides})
        return HTTPClient(
            retry_config=retry,
            timeout=timeout,
            headers={"User-Agent": self._config.user_agent},
        )

    def _failure_guard(self) -> GenericCircuitBreaker:
        """Breaker that stays open for the rest of this run once tripped."""
        return GenericCircuitBreaker(
            failure_threshold=self._config.max_consecutive_failures,
            recovery_timeout=None,
            name=f"{self.name}_batch",
        )

    async def _delay(self, seconds: float) -> None:
        if seconds > 0:
            await self._sleep(seconds)

    def merge_options(self, options: dict[str, Any] | None) -> dict[str, Any]:
        merged = dict(self.default_options)
        if options:
            merged.update({k: v for k, v in options.items() if v is not None})
        return merged

    async def scrape(self, options: dict[str, Any] | None = None) -> list[NormalizedRecord]:
        merged = self.merge_options(options)
        logger.info(f"Starting scrape for {self.name}")
        records = await self._scrape(merged)
        logger.info(f"Scrape for {self.name} returned {len(records)} records")
        return records

    @abstractmethod
    async def _scrape(self, options: dict[str, Any]) -> list[NormalizedRecord]:
        """Fetch and normalize records for the merged options."""
        ...
