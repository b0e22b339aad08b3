"""Seed provider configs from compact ``key[@template|@host:search:comments]`` specs."""

import logging
from dataclasses import dataclass, field

from trendflow.providers.schemas import ProviderConfig
from trendflow.providers.store import ProviderStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderTemplate:
    """Host and endpoint paths of a known hosted API."""

    host: str
    endpoints: dict[str, str] = field(default_factory=dict)


TWITTER_TEMPLATES: dict[str, ProviderTemplate] = {
    "twttr-api": ProviderTemplate(
        host="twttr-api.p.rapidapi.com",
        endpoints={"search": "/search-v2", "comments": "/comments-v2"},
    ),
    "twitter-api47": ProviderTemplate(
        host="twitter-api47.p.rapidapi.com",
        endpoints={"search": "/v3/search", "comments": "/v3/tweet/replies"},
    ),
    "twitter-api45": ProviderTemplate(
        host="twitter-api45.p.rapidapi.com",
        endpoints={"search": "/search.php", "comments": "/replies.php"},
    ),
    "twitter135": ProviderTemplate(
        host="twitter135.p.rapidapi.com",
        endpoints={"search": "/v2/Search/", "comments": "/v2/TweetReplies/"},
    ),
}

DEFAULT_TEMPLATE = "twttr-api"


@dataclass
class ProviderSpec:
    """A parsed seed entry, ready to be created in the store."""

    name: str
    host: str
    api_key: str
    endpoints: dict[str, str]


def parse_provider_spec(spec: str, index: int, platform: str = "twitter") -> ProviderSpec | None:
    """
    Parse one seed entry.

    Accepted forms:
        apiKey                          default template
        apiKey@template                 named template (see TWITTER_TEMPLATES)
        apiKey@host:search:comments     custom host and endpoint paths

    Unparseable suffixes fall back to the default template.

    Returns:
        ProviderSpec, or None when the key part is empty
    """
    parts = spec.strip().split("@", 1)
    api_key = parts[0].strip()
    if not api_key:
        return None

    default = TWITTER_TEMPLATES[DEFAULT_TEMPLATE]
    default_spec = ProviderSpec(
        name=f"{platform} API #{index + 1}",
        host=default.host,
        api_key=api_key,
        endpoints=dict(default.endpoints),
    )
    if len(parts) == 1:
        return default_spec

    suffix = parts[1].strip()
    template = TWITTER_TEMPLATES.get(suffix)
    if template is not None:
        return ProviderSpec(
            name=f"{suffix} #{index + 1}",
            host=template.host,
            api_key=api_key,
            endpoints=dict(template.endpoints),
        )

    custom = suffix.split(":")
    if len(custom) >= 3:
        return ProviderSpec(
            name=f"{custom[0]} #{index + 1}",
            host=custom[0],
            api_key=api_key,
            endpoints={"search": custom[1], "comments": custom[2]},
        )

    logger.warning(f"Cannot parse provider spec suffix {suffix!r}, using default template")
    return default_spec


def parse_provider_specs(value: str | None, platform: str = "twitter") -> list[ProviderSpec]:
    """Parse a comma-separated list of seed entries, dropping empty ones."""
    if not value:
        return []
    specs = []
    for index, item in enumerate(value.split(",")):
        spec = parse_provider_spec(item, index, platform)
        if spec is not None:
            specs.append(spec)
    return specs


async def seed_providers(
    store: ProviderStore,
    platform: str,
    specs: list[ProviderSpec],
    monthly_quota: int,
) -> list[ProviderConfig]:
    """Create one provider per spec. Returns the created configs."""
    created = []
    for spec in specs:
        provider = await store.create_provider(
            platform,
            name=spec.name,
            host=spec.host,
            api_key=spec.api_key,
            monthly_quota=monthly_quota,
            endpoints=spec.endpoints,
        )
        created.append(provider)
    return created
