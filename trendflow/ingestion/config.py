"""Configuration for the ingestion orchestrator and adapters.

Settings can be overridden via environment variables prefixed with INGESTION_.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IngestionConfig(BaseSettings):
    """Ingestion tuning: failure limits, politeness and passage size."""

    model_config = SettingsConfigDict(
        env_prefix="INGESTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    max_consecutive_failures: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Consecutive request failures before a source's batch is abandoned",
    )
    max_passage_length: int = Field(
        default=500,
        ge=50,
        le=10_000,
        description="Maximum characters per passage when splitting new records",
    )
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; TrendFlowBot/1.0)",
        description="User-Agent sent to public forum APIs",
    )
    fanout_concurrency: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Worker pool width for sources that fan out over sub-feeds",
    )
    fanout_dispatch_delay: float = Field(
        default=2.0,
        ge=0.0,
        le=60.0,
        description="Seconds each fan-out worker waits between sub-feeds",
    )
    request_delay: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Pause between sequential upstream calls within one source",
    )
