"""Provider selection and usage accounting for quota-constrained sources."""

import logging
from collections.abc import Collection

from trendflow.core.cache import TTLCache
from trendflow.observability.metrics import get_metrics
from trendflow.providers.config import ProvidersConfig
from trendflow.providers.schemas import ProviderConfig, ProviderStatus, QuotaSummary
from trendflow.providers.store import ProviderStore

logger = logging.getLogger(__name__)


class ProviderManager:
    """Picks the provider with the most remaining budget.

    Provider lists are cached per platform in an injected TTLCache so a
    scrape loop that asks before every request does not hit Redis each
    time; usage counters are always read fresh. Within the cache window
    an enable/disable made by another process may go unnoticed.

    Usage:
        manager = ProviderManager(store)
        provider = await manager.get_available_provider("twitter")
        ...
        await manager.record_usage("twitter", provider.id)
    """

    def __init__(
        self,
        store: ProviderStore,
        cache: TTLCache | None = None,
        config: ProvidersConfig | None = None,
    ) -> None:
        self._config = config or ProvidersConfig()
        self._store = store
        self._cache = cache or TTLCache(ttl=self._config.cache_ttl_seconds)

    @property
    def store(self) -> ProviderStore:
        return self._store

    @property
    def config(self) -> ProvidersConfig:
        return self._config

    async def _providers(self, platform: str) -> list[ProviderConfig]:
        cached = self._cache.get(platform)
        if cached is not None:
            return cached

        providers = await self._store.list_providers(platform)
        self._cache.put(platform, providers)
        return providers

    async def _remaining(self, provider: ProviderConfig) -> tuple[int, int]:
        used = await self._store.get_used(provider.platform, provider.id)
        return used, max(0, provider.monthly_quota - used)

    async def get_available_provider(
        self, platform: str, exclude: Collection[str] = ()
    ) -> ProviderConfig | None:
        """Enabled provider with the largest positive remaining quota, or None.

        Ties keep the name order of the provider list. ``exclude`` lets a
        caller skip providers that were rate limited earlier in its run.
        """
        best: ProviderConfig | None = None
        best_remaining = 0

        for provider in await self._providers(platform):
            if not provider.enabled or provider.id in exclude:
                continue
            _, remaining = await self._remaining(provider)
            if remaining > best_remaining:
                best, best_remaining = provider, remaining

        return best

    async def has_available_quota(self, platform: str) -> bool:
        return await self.get_available_provider(platform) is not None

    async def record_usage(self, platform: str, provider_id: str, calls: int = 1) -> None:
        usage = await self._store.record_usage(platform, provider_id, calls)
        get_metrics().provider_calls.labels(platform=platform).inc(calls)
        logger.debug(
            f"Recorded {calls} call(s) for {platform}/{provider_id}, month total {usage.call_count}"
        )

    async def get_status(self, platform: str) -> list[ProviderStatus]:
        """Usage report over every configured provider, enabled or not."""
        statuses = []
        for provider in await self._store.list_providers(platform):
            used, remaining = await self._remaining(provider)
            usage_percent = (
                round(used / provider.monthly_quota * 100, 1)
                if provider.monthly_quota > 0
                else 0.0
            )
            statuses.append(
                ProviderStatus(
                    id=provider.id,
                    name=provider.name,
                    host=provider.host,
                    enabled=provider.enabled,
                    monthly_quota=provider.monthly_quota,
                    used=used,
                    remaining=remaining,
                    usage_percent=usage_percent,
                )
            )
        return statuses

    async def get_total_quota(self, platform: str) -> QuotaSummary:
        statuses = await self.get_status(platform)
        total = sum(s.monthly_quota for s in statuses)
        used = sum(s.used for s in statuses)
        return QuotaSummary(total=total, used=used, remaining=max(0, total - used))

    async def set_enabled(
        self, platform: str, provider_id: str, enabled: bool
    ) -> ProviderConfig | None:
        provider = await self._store.update_provider(platform, provider_id, enabled=enabled)
        self.invalidate_cache(platform)
        if provider is not None:
            logger.info(f"Provider {provider.name} {'enabled' if enabled else 'disabled'}")
        return provider

    def invalidate_cache(self, platform: str | None = None) -> None:
        """Drop cached provider lists (one platform or all)."""
        if platform is None:
            self._cache.clear()
        else:
            self._cache.invalidate(platform)
