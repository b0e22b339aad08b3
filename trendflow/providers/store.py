"""
Redis-backed storage for provider configs and monthly usage counters.

Key layout:
    providers:{platform}                      set of provider ids
    provider:{platform}:{id}                  provider config (JSON)
    usage:{platform}:{provider_id}:{YYYY-MM}  usage counter (JSON, expiring)
    usage:index:{platform}:{YYYY-MM}          set of provider ids with usage that month

Usage counters are read-increment-written without a lock. Two pipeline
runs recording usage for the same provider at the same moment can lose
an increment; the pipeline assumes a single concurrent runner and
treats that drift as acceptable because provider selection is a
heuristic, not a hard budget guarantee.
"""

import logging
import secrets
import time
from datetime import datetime, timezone
from types import TracebackType
from typing import Any

import redis.asyncio as redis

from trendflow.providers.schemas import ProviderConfig, ProviderUsage

logger = logging.getLogger(__name__)

DEFAULT_USAGE_TTL_SECONDS = 35 * 24 * 3600


def current_month(now: datetime | None = None) -> str:
    """Calendar month key in ``YYYY-MM`` form (UTC)."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m")


def _providers_key(platform: str) -> str:
    return f"providers:{platform}"


def _provider_key(platform: str, provider_id: str) -> str:
    return f"provider:{platform}:{provider_id}"


def _usage_key(platform: str, provider_id: str, month: str) -> str:
    return f"usage:{platform}:{provider_id}:{month}"


def _usage_index_key(platform: str, month: str) -> str:
    return f"usage:index:{platform}:{month}"


def generate_provider_id(platform: str) -> str:
    return f"{platform}_{int(time.time() * 1000)}_{secrets.token_hex(3)}"


class ProviderStore:
    """
    CRUD for provider configs plus monthly usage counters.

    Either pass a ``redis_url`` and use as an async context manager, or
    inject an already-connected client.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        client: Any = None,
        usage_ttl_seconds: int = DEFAULT_USAGE_TTL_SECONDS,
    ) -> None:
        self._redis_url = redis_url
        self._redis: Any = client
        self._usage_ttl_seconds = usage_ttl_seconds

    async def connect(self) -> None:
        if self._redis is not None:
            return
        if not self._redis_url:
            raise RuntimeError("ProviderStore needs a redis_url or a client")
        self._redis = redis.from_url(
            self._redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        logger.info("Provider store connected to Redis")

    async def close(self) -> None:
        if self._redis is not None and self._redis_url:
            await self._redis.close()
            self._redis = None

    async def __aenter__(self) -> "ProviderStore":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def redis(self) -> Any:
        """Get Redis client, raising if not connected."""
        if self._redis is None:
            raise RuntimeError("Not connected to Redis. Call connect() first.")
        return self._redis

    # ── Provider configs ────────────────────────────────────────

    async def list_providers(self, platform: str) -> list[ProviderConfig]:
        """All providers of a platform, enabled or not, sorted by name."""
        provider_ids = await self.redis.smembers(_providers_key(platform))
        providers = []
        for provider_id in provider_ids:
            provider = await self.get_provider(platform, provider_id)
            if provider is not None:
                providers.append(provider)
        return sorted(providers, key=lambda p: p.name)

    async def get_provider(self, platform: str, provider_id: str) -> ProviderConfig | None:
        raw = await self.redis.get(_provider_key(platform, provider_id))
        if raw is None:
            return None
        return ProviderConfig.model_validate_json(raw)

    async def create_provider(
        self,
        platform: str,
        name: str,
        host: str,
        api_key: str,
        monthly_quota: int,
        endpoints: dict[str, str] | None = None,
        enabled: bool = True,
    ) -> ProviderConfig:
        provider = ProviderConfig(
            id=generate_provider_id(platform),
            platform=platform,
            name=name,
            host=host,
            api_key=api_key,
            monthly_quota=monthly_quota,
            enabled=enabled,
            endpoints=endpoints or {},
        )
        await self.redis.set(_provider_key(platform, provider.id), provider.model_dump_json())
        await self.redis.sadd(_providers_key(platform), provider.id)
        logger.info(f"Created {platform} provider {provider.name} ({provider.id})")
        return provider

    async def update_provider(
        self, platform: str, provider_id: str, **updates: Any
    ) -> ProviderConfig | None:
        """Apply field updates; ``id`` and ``created_at`` are immutable."""
        existing = await self.get_provider(platform, provider_id)
        if existing is None:
            return None

        updates.pop("id", None)
        updates.pop("created_at", None)
        updated = existing.model_copy(
            update={**updates, "updated_at": datetime.now(timezone.utc)}
        )
        await self.redis.set(_provider_key(platform, provider_id), updated.model_dump_json())
        return updated

    async def delete_provider(self, platform: str, provider_id: str) -> bool:
        existing = await self.get_provider(platform, provider_id)
        if existing is None:
            return False
        await self.redis.delete(_provider_key(platform, provider_id))
        await self.redis.srem(_providers_key(platform), provider_id)
        return True

    # ── Usage counters ──────────────────────────────────────────

    async def get_usage(
        self, platform: str, provider_id: str, month: str | None = None
    ) -> ProviderUsage | None:
        raw = await self.redis.get(_usage_key(platform, provider_id, month or current_month()))
        if raw is None:
            return None
        return ProviderUsage.model_validate_json(raw)

    async def get_used(self, platform: str, provider_id: str) -> int:
        usage = await self.get_usage(platform, provider_id)
        return usage.call_count if usage else 0

    async def record_usage(
        self, platform: str, provider_id: str, calls: int = 1
    ) -> ProviderUsage:
        """Add ``calls`` to the current month's counter and refresh its expiry."""
        month = current_month()
        key = _usage_key(platform, provider_id, month)

        existing = await self.get_usage(platform, provider_id, month)
        usage = ProviderUsage(
            provider_id=provider_id,
            platform=platform,
            month=month,
            call_count=(existing.call_count if existing else 0) + calls,
        )
        await self.redis.set(key, usage.model_dump_json())
        await self.redis.expire(key, self._usage_ttl_seconds)
        await self.redis.sadd(_usage_index_key(platform, month), provider_id)
        return usage

    async def get_usage_for_month(
        self, platform: str, month: str | None = None
    ) -> list[ProviderUsage]:
        month = month or current_month()
        provider_ids = await self.redis.smembers(_usage_index_key(platform, month))
        usages = []
        for provider_id in provider_ids:
            usage = await self.get_usage(platform, provider_id, month)
            if usage is not None:
                usages.append(usage)
        return usages
