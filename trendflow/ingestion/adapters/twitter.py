"""
Twitter adapter over hosted (RapidAPI-style) search APIs.

Every outbound call is made with a provider acquired from the quota
manager and is recorded against that provider's monthly budget. A
429/403 takes the provider out of rotation for the rest of the run and
the query is retried with the next one; when no provider with budget
remains the run stops and returns what it has.
"""

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

from trendflow.core.circuit_breaker import CircuitOpenError, GenericCircuitBreaker
from trendflow.core.errors import QuotaExhaustedError, RateLimitedError, TrendflowError
from trendflow.ingestion.base_adapter import BaseAdapter
from trendflow.ingestion.http_client import HTTPClient
from trendflow.ingestion.schemas import NormalizedRecord
from trendflow.providers.manager import ProviderManager
from trendflow.providers.schemas import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_QUERIES = ["startup", "SaaS", "indie hacker", "struggling with", "need help", "AI tool"]
DEFAULT_SEARCH_ENDPOINT = "/search-v2"
DEFAULT_COMMENTS_ENDPOINT = "/comments-v2"
TITLE_LENGTH = 100


def _parse_twitter_date(value: str | None) -> datetime:
    """Twitter's ``Wed Oct 10 20:19:24 +0000 2018`` format; now() when unparseable."""
    if value:
        try:
            return parsedate_to_datetime(value)
        except (TypeError, ValueError):
            pass
    return datetime.now(timezone.utc)


def _tweet_from_result(result: dict[str, Any] | None) -> dict[str, Any] | None:
    """Flatten a GraphQL ``tweet_results.result`` node into a legacy tweet dict."""
    if not result:
        return None
    legacy = result.get("legacy")
    if not legacy:
        return None
    user_result = ((result.get("core") or {}).get("user_results") or {}).get("result") or {}
    user_legacy = user_result.get("legacy") or {}
    return {
        "id_str": legacy.get("id_str") or result.get("rest_id") or "",
        "text": legacy.get("full_text") or legacy.get("text") or "",
        "screen_name": user_legacy.get("screen_name") or "unknown",
        "user_name": user_legacy.get("name") or "Unknown",
        "created_at": legacy.get("created_at") or "",
        "favorite_count": legacy.get("favorite_count") or 0,
        "retweet_count": legacy.get("retweet_count") or 0,
        "reply_count": legacy.get("reply_count") or 0,
        "quote_count": legacy.get("quote_count") or 0,
        "conversation_id_str": legacy.get("conversation_id_str") or "",
    }


def extract_tweets(payload: dict[str, Any], limit: int) -> list[dict[str, Any]]:
    """Pull tweets out of a search response (search-v2 timeline or legacy entries)."""
    data = payload.get("data")
    if not isinstance(data, dict):
        data = payload
    timeline = ((data.get("search_by_raw_query") or {}).get("search_timeline") or {}).get("timeline") or {}
    entries: list[dict[str, Any]] = []
    for instruction in timeline.get("instructions") or []:
        if instruction.get("type") == "TimelineAddEntries":
            entries.extend(instruction.get("entries") or [])
    if not entries:
        entries = ((payload.get("result") or {}).get("timeline") or {}).get("entries") or []

    tweets = []
    for entry in entries:
        if len(tweets) >= limit:
            break
        item = ((entry.get("content") or {}).get("itemContent") or {}).get("tweet_results") or {}
        tweet = _tweet_from_result(item.get("result"))
        if tweet and tweet["id_str"]:
            tweets.append(tweet)
    return tweets


def extract_comments(payload: dict[str, Any], limit: int) -> list[dict[str, Any]]:
    """Pull replies out of a threaded-conversation response."""
    data = payload.get("data")
    if not isinstance(data, dict):
        data = payload
    instructions = (
        (data.get("threaded_conversation_with_injections_v2") or {}).get("instructions")
        or ((payload.get("result") or {}).get("timeline") or {}).get("instructions")
        or []
    )

    comments = []
    for instruction in instructions:
        for entry in instruction.get("entries") or []:
            if len(comments) >= limit:
                return comments
            content = entry.get("content") or {}
            results = (content.get("itemContent") or {}).get("tweet_results")
            if not results and content.get("items"):
                inner = (content["items"][0].get("item") or {}).get("itemContent") or {}
                results = inner.get("tweet_results")
            comment = _tweet_from_result((results or {}).get("result"))
            if comment:
                comments.append(comment)
    return comments


class TwitterAdapter(BaseAdapter):
    """Quota-constrained Twitter search scraper.

    Options:
        queries: Search terms
        limit: Tweets per query (the API caps a page at 20)
        include_comments / comments_per_tweet: Also fetch replies
    """

    name = "twitter"
    platform = "twitter"
    default_options = {
        "queries": DEFAULT_QUERIES,
        "limit": 10,
        "include_comments": False,
        "comments_per_tweet": 5,
        "comment_delay": 0.5,
    }

    def __init__(self, provider_manager: ProviderManager, **kwargs: Any):
        super().__init__(**kwargs)
        self._manager = provider_manager
        self._rate_limited: set[str] = set()

    async def _acquire(self) -> ProviderConfig:
        provider = await self._manager.get_available_provider(
            self.platform, exclude=self._rate_limited
        )
        if provider is None:
            raise QuotaExhaustedError(self.platform)
        return provider

    async def _call(
        self,
        client: HTTPClient,
        endpoint_name: str,
        default_endpoint: str,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        """One outbound request with a freshly acquired provider, usage recorded on success."""
        provider = await self._acquire()
        url = provider.base_url + provider.endpoint(endpoint_name, default_endpoint)
        try:
            payload = await client.get_json(url, params=params, headers=provider.headers)
        except RateLimitedError:
            logger.warning(f"Provider {provider.name} rate limited, rotating")
            self._rate_limited.add(provider.id)
            raise
        await self._manager.record_usage(self.platform, provider.id)
        return payload or {}

    async def _scrape(self, options: dict[str, Any]) -> list[NormalizedRecord]:
        self._rate_limited = set()

        if not await self._manager.has_available_quota(self.platform):
            logger.warning("All Twitter providers have exhausted their quotas")
            return []

        quota = await self._manager.get_total_quota(self.platform)
        logger.info(
            f"Twitter quota: {quota.used}/{quota.total} used, {quota.remaining} remaining"
        )

        guard = self._failure_guard()
        records: list[NormalizedRecord] = []

        async with self._http_client(retry_on_rate_limit=False) as client:
            for query in options["queries"]:
                try:
                    tweets = await self._search_with_rotation(client, guard, query, options["limit"])
                except QuotaExhaustedError:
                    logger.warning("Twitter quota exhausted during scraping, stopping")
                    break
                except CircuitOpenError:
                    logger.warning("Abandoning Twitter batch after consecutive failures")
                    break
                except TrendflowError as e:
                    logger.error(f"Error searching Twitter for {query!r}: {e}")
                    continue

                for tweet in tweets:
                    comments: list[dict[str, Any]] = []
                    if options["include_comments"]:
                        comments = await self._comments(client, tweet["id_str"], options)
                    records.append(self._transform(tweet, comments, query))

                await self._delay(self._config.request_delay)

        return records

    async def _search_with_rotation(
        self,
        client: HTTPClient,
        guard: GenericCircuitBreaker,
        query: str,
        limit: int,
    ) -> list[dict[str, Any]]:
        params = {"query": query, "type": "Latest", "count": min(limit, 20)}
        while True:
            try:
                payload = await guard.call(
                    self._call, client, "search", DEFAULT_SEARCH_ENDPOINT, params
                )
                return extract_tweets(payload, limit)
            except RateLimitedError:
                # The provider is now excluded; _acquire raises QuotaExhaustedError
                # once every provider has been tried.
                continue

    async def _comments(
        self, client: HTTPClient, tweet_id: str, options: dict[str, Any]
    ) -> list[dict[str, Any]]:
        count = options["comments_per_tweet"]
        params = {"pid": tweet_id, "rankingMode": "Relevance", "count": min(count, 20)}
        try:
            payload = await self._call(client, "comments", DEFAULT_COMMENTS_ENDPOINT, params)
        except TrendflowError as e:
            logger.error(f"Error fetching comments for tweet {tweet_id}: {e}")
            return []
        await self._delay(options["comment_delay"])
        return extract_comments(payload, count)

    def _transform(
        self, tweet: dict[str, Any], comments: list[dict[str, Any]], query: str
    ) -> NormalizedRecord:
        text = tweet["text"]
        title = text[:TITLE_LENGTH] + "..." if len(text) > TITLE_LENGTH else text
        return NormalizedRecord(
            source=self.name,
            source_id=tweet["id_str"],
            url=f"https://twitter.com/{tweet['screen_name']}/status/{tweet['id_str']}",
            title=title,
            body=text,
            author=tweet["screen_name"],
            created_at=_parse_twitter_date(tweet["created_at"]),
            score=tweet["favorite_count"],
            num_comments=tweet["reply_count"],
            language="en",
            meta={
                "query": query,
                "user_name": tweet["user_name"],
                "retweet_count": tweet["retweet_count"],
                "quote_count": tweet["quote_count"],
                "conversation_id": tweet["conversation_id_str"],
                "comments": [
                    {
                        "id": c["id_str"],
                        "text": c["text"],
                        "author": c["screen_name"],
                        "author_name": c["user_name"],
                        "favorite_count": c["favorite_count"],
                        "created_at": _parse_twitter_date(c["created_at"]).isoformat(),
                    }
                    for c in comments
                ],
            },
        )
