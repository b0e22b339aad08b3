"""
Source registry: one entry per scraper, keyed by source name.

Each entry carries the adapter factory, the options the scheduled run
passes to it, the recommended cron cadence and, for quota-constrained
sources, the provider platform whose budget it draws from.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from trendflow.ingestion.adapters.hackernews import HackerNewsAdapter
from trendflow.ingestion.adapters.mock import MockAdapter
from trendflow.ingestion.adapters.reddit import RedditAdapter
from trendflow.ingestion.adapters.twitter import TwitterAdapter
from trendflow.ingestion.adapters.v2ex import V2EXAdapter
from trendflow.ingestion.base_adapter import ScraperAdapter
from trendflow.ingestion.config import IngestionConfig
from trendflow.providers.manager import ProviderManager


@dataclass
class AdapterContext:
    """Shared collaborators handed to adapter factories."""

    config: IngestionConfig = field(default_factory=IngestionConfig)
    provider_manager: ProviderManager | None = None


@dataclass(frozen=True)
class SourceDefinition:
    name: str
    display_name: str
    factory: Callable[[AdapterContext], ScraperAdapter]
    options: dict[str, Any] = field(default_factory=dict)
    recommended_interval: str = "0 */6 * * *"
    quota_platform: str | None = None

    @property
    def quota_constrained(self) -> bool:
        return self.quota_platform is not None


def _twitter(context: AdapterContext) -> ScraperAdapter:
    if context.provider_manager is None:
        raise ValueError("twitter source needs a provider manager")
    return TwitterAdapter(context.provider_manager, config=context.config)


SOURCES: dict[str, SourceDefinition] = {
    "twitter": SourceDefinition(
        name="twitter",
        display_name="Twitter",
        factory=_twitter,
        options={
            "queries": [
                "startup pain point",
                "SaaS struggle",
                "indie hacker problem",
                "founder challenge",
                "AI tool need",
            ],
            "limit": 10,
            "include_comments": True,
            "comments_per_tweet": 3,
        },
        recommended_interval="0 */6 * * *",
        quota_platform="twitter",
    ),
    "reddit": SourceDefinition(
        name="reddit",
        display_name="Reddit",
        factory=lambda ctx: RedditAdapter(config=ctx.config),
        options={
            "limit": 500,
            "sort": "top",
            "time_filter": "week",
            "min_score": 10,
            "min_comments": 30,
        },
        recommended_interval="0 */4 * * *",
    ),
    "hackernews": SourceDefinition(
        name="hackernews",
        display_name="Hacker News",
        factory=lambda ctx: HackerNewsAdapter(config=ctx.config),
        options={
            "type": "top",
            "limit": 100,
            "min_score": 20,
            "min_comments": 10,
            "include_ask_hn": True,
        },
        recommended_interval="0 */4 * * *",
    ),
    "v2ex": SourceDefinition(
        name="v2ex",
        display_name="V2EX",
        factory=lambda ctx: V2EXAdapter(config=ctx.config),
        options={"type": "hot", "limit": 80},
        recommended_interval="0 */6 * * *",
    ),
}

MOCK_SOURCE = SourceDefinition(
    name="mock",
    display_name="Mock (offline fixtures)",
    factory=lambda ctx: MockAdapter(config=ctx.config),
    options={"limit": 40},
    recommended_interval="manual",
)


def available_sources() -> list[str]:
    return list(SOURCES)


def get_source(name: str) -> SourceDefinition:
    """Look up a source by name.

    Raises:
        KeyError: Unknown source name (message lists the valid ones)
    """
    if name == MOCK_SOURCE.name:
        return MOCK_SOURCE
    try:
        return SOURCES[name]
    except KeyError:
        raise KeyError(
            f"Unknown source {name!r}; available: {', '.join(available_sources())}"
        ) from None


def resolve_sources(names: list[str] | None) -> list[SourceDefinition]:
    """Resolve requested names (comma-separated entries allowed); None means all."""
    if not names:
        return list(SOURCES.values())

    resolved: list[SourceDefinition] = []
    for entry in names:
        for name in entry.split(","):
            name = name.strip()
            if name and all(s.name != name for s in resolved):
                resolved.append(get_source(name))
    return resolved
