"""
Direction synthesis configuration.

Targets any OpenAI-compatible chat completion API (DeepSeek by default).
All settings can be overridden via environment variables prefixed with
DIRECTION_.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DirectionConfig(BaseSettings):
    """Configuration for the direction client and topic synthesizer."""

    model_config = SettingsConfigDict(
        env_prefix="DIRECTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Model endpoint
    api_url: str = Field(
        default="https://api.deepseek.com/v1",
        description="Base URL of the OpenAI-compatible chat API",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key for the chat API",
    )
    model: str = Field(
        default="deepseek-chat",
        description="Chat model used for direction analysis",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
    )
    max_tokens: int = Field(
        default=4000,
        ge=256,
        le=32_000,
    )
    timeout: float = Field(
        default=120.0,
        ge=5.0,
        le=600.0,
        description="Timeout in seconds for one completion request",
    )

    # Prompt shaping
    passage_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Example passages embedded in one prompt",
    )
    passage_char_limit: int = Field(
        default=600,
        ge=20,
        le=10_000,
        description="Characters kept per passage before truncation",
    )

    # Synthesis
    sample_size: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Members sampled per cluster as example passages",
    )
    parallel: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Clusters analyzed concurrently",
    )

    # Circuit breaker settings
    circuit_failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures before opening circuit",
    )
    circuit_recovery_timeout: float = Field(
        default=60.0,
        ge=5.0,
        description="Seconds before attempting recovery probe",
    )
