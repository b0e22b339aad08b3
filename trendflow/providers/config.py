"""Configuration for the provider quota manager.

Settings can be overridden via environment variables prefixed with PROVIDERS_.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProvidersConfig(BaseSettings):
    """Quota manager tuning and seed credentials.

    Example:
        PROVIDERS_CACHE_TTL_SECONDS=60
        PROVIDERS_TWITTER_KEYS=key1@twitter-api45,key2
    """

    model_config = SettingsConfigDict(
        env_prefix="PROVIDERS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    cache_ttl_seconds: float = Field(
        default=60.0,
        ge=0.0,
        le=3600.0,
        description="How long provider lists stay cached in memory",
    )
    usage_ttl_days: int = Field(
        default=35,
        ge=1,
        le=366,
        description="Expiry of monthly usage counters after their last write",
    )
    default_monthly_quota: int = Field(
        default=500,
        ge=0,
        description="Monthly call budget assigned to seeded providers",
    )
    twitter_keys: str | None = Field(
        default=None,
        description="Comma-separated provider specs: key, key@template, key@host:search:comments",
    )

    @property
    def usage_ttl_seconds(self) -> int:
        return self.usage_ttl_days * 24 * 3600
