"""Data models for quota-constrained upstream providers."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProviderConfig(BaseModel):
    """One credentialed upstream API account with a monthly call budget."""

    id: str
    platform: str
    name: str
    host: str
    api_key: str = Field(..., repr=False)
    monthly_quota: int = Field(default=0, ge=0)
    enabled: bool = True
    endpoints: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    @property
    def headers(self) -> dict[str, str]:
        """RapidAPI-style authentication headers."""
        return {
            "x-rapidapi-host": self.host,
            "x-rapidapi-key": self.api_key,
        }

    def endpoint(self, name: str, default: str) -> str:
        return self.endpoints.get(name) or default


class ProviderUsage(BaseModel):
    """Call counter for one provider in one calendar month (``YYYY-MM``)."""

    provider_id: str
    platform: str
    month: str
    call_count: int = Field(default=0, ge=0)
    last_used: datetime = Field(default_factory=_utc_now)


class ProviderStatus(BaseModel):
    """Reporting view of a provider and its current-month usage."""

    id: str
    name: str
    host: str
    enabled: bool
    monthly_quota: int
    used: int
    remaining: int
    usage_percent: float


class QuotaSummary(BaseModel):
    """Aggregate budget across all providers of a platform."""

    total: int = 0
    used: int = 0
    remaining: int = 0
