"""
Canonical record schema produced by every scraper adapter.

All adapters MUST output this exact structure; the orchestrator
deduplicates on ``(source, source_id)`` and only ``score``,
``num_comments``, ``body`` and ``meta`` may change after insert.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class NormalizedRecord(BaseModel):
    """One scraped post, thread or tweet in platform-independent form."""

    source: str = Field(..., min_length=1, description="Source name, e.g. 'reddit'")
    source_id: str = Field(..., min_length=1, description="Platform-native identifier")
    url: str = ""
    title: str = ""
    body: str = ""
    author: str = "unknown"
    created_at: datetime = Field(default_factory=_utc_now)
    score: int = 0
    num_comments: int = Field(default=0, ge=0)
    language: str = "en"
    meta: dict[str, Any] = Field(default_factory=dict)

    @field_validator("created_at")
    @classmethod
    def ensure_timezone(cls, v: datetime) -> datetime:
        """Ensure timestamp has timezone info (assume UTC if naive)."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("source_id", mode="before")
    @classmethod
    def coerce_source_id(cls, v: Any) -> str:
        """Platforms hand out numeric ids; store them as text."""
        return str(v) if v is not None else v

    @property
    def key(self) -> tuple[str, str]:
        return (self.source, self.source_id)

    @property
    def full_text(self) -> str:
        """Text that gets split into passages: title and body."""
        return f"{self.title}\n\n{self.body}"


@dataclass
class StoredRecord:
    """The mutable slice of a persisted record used for change detection."""

    id: int
    score: int
    num_comments: int
    body: str

    def differs_from(self, record: NormalizedRecord) -> bool:
        return (
            self.score != record.score
            or self.num_comments != record.num_comments
            or self.body != record.body
        )


@dataclass
class SourceStats:
    """Per-source counters for one ingestion run."""

    fetched: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def new_units(self) -> int:
        return self.inserted + self.updated


@dataclass
class IngestionResult:
    """Summary of an ingestion run across sources."""

    sources: dict[str, SourceStats] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def inserted(self) -> int:
        return sum(s.inserted for s in self.sources.values())

    @property
    def updated(self) -> int:
        return sum(s.updated for s in self.sources.values())

    @property
    def skipped(self) -> int:
        return sum(s.skipped for s in self.sources.values())

    @property
    def errors(self) -> int:
        return sum(s.errors for s in self.sources.values())

    @property
    def new_units(self) -> int:
        return self.inserted + self.updated
