"""
Embedding service configuration.

Targets any OpenAI-compatible ``/embeddings`` endpoint (hosted or a
local server such as LM Studio). Settings can be overridden via
environment variables prefixed with EMBEDDING_.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingConfig(BaseSettings):
    """Configuration for the embedding generator."""

    model_config = SettingsConfigDict(
        env_prefix="EMBEDDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_url: str = Field(
        default="http://localhost:1234/v1",
        description="Base URL of the OpenAI-compatible embeddings API",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key for the embeddings endpoint",
    )
    model: str = Field(
        default="text-embedding-nomic-embed-text-v1.5",
        description="Embedding model name, stored with every vector",
    )

    batch_size: int = Field(
        default=20,
        ge=1,
        le=256,
        description="Passages per embeddings request",
    )
    page_size: int = Field(
        default=100,
        ge=1,
        le=10_000,
        description="Maximum unembedded passages selected per run",
    )
    batch_delay: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Pause between batches",
    )
    timeout: float = Field(
        default=60.0,
        gt=0.0,
        le=600.0,
        description="Per-request timeout in seconds",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        le=10,
        description="SDK-level retries for transient embedding failures",
    )
