"""Provider quota manager for rate-limited upstream APIs."""

from trendflow.providers.config import ProvidersConfig
from trendflow.providers.manager import ProviderManager
from trendflow.providers.schemas import ProviderConfig, ProviderStatus, ProviderUsage, QuotaSummary
from trendflow.providers.seed import parse_provider_specs, seed_providers
from trendflow.providers.store import ProviderStore

__all__ = [
    "ProviderConfig",
    "ProviderManager",
    "ProviderStatus",
    "ProviderStore",
    "ProviderUsage",
    "ProvidersConfig",
    "QuotaSummary",
    "parse_provider_specs",
    "seed_providers",
]
