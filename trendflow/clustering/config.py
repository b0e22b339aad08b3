"""
Clustering configuration.

Settings can be overridden via environment variables prefixed with CLUSTERING_.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClusteringConfig(BaseSettings):
    """Configuration for k selection, k-means and identity reconciliation."""

    model_config = SettingsConfigDict(
        env_prefix="CLUSTERING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    min_samples: int = Field(
        default=10,
        ge=2,
        description="Minimum embeddings before clustering runs",
    )
    max_k: int = Field(
        default=10,
        ge=2,
        le=100,
        description="Upper bound for k during selection",
    )
    max_iterations: int = Field(
        default=100,
        ge=1,
        le=10_000,
        description="Iteration cap for the final k-means run",
    )
    selection_iterations: int = Field(
        default=50,
        ge=1,
        le=10_000,
        description="Iteration cap for each k-means run during k selection",
    )
    elbow_ratio: float = Field(
        default=1.5,
        gt=0.0,
        description="Required ratio between an improvement and the following one",
    )
    match_threshold: float = Field(
        default=0.75,
        ge=-1.0,
        le=1.0,
        description="Cosine similarity a new centroid must exceed to reuse a cluster",
    )
    membership_score: float = Field(
        default=1.0,
        description="Relevance score written for every membership row",
    )
    seed: int | None = Field(
        default=None,
        description="Random seed for centroid initialization (None for fresh entropy)",
    )
