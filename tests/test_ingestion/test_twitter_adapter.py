"""Tests for the quota-aware Twitter adapter."""

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from trendflow.ingestion.adapters.twitter import TwitterAdapter, extract_comments, extract_tweets
from trendflow.ingestion.config import IngestionConfig
from trendflow.ingestion.http_client import RetryConfig
from trendflow.providers.manager import ProviderManager


def _tweet_result(tweet_id: str, text: str, screen_name: str = "bob") -> dict:
    return {
        "rest_id": tweet_id,
        "legacy": {
            "id_str": tweet_id,
            "full_text": text,
            "created_at": "Wed Oct 10 20:19:24 +0000 2018",
            "favorite_count": 5,
            "retweet_count": 1,
            "reply_count": 2,
            "quote_count": 0,
            "conversation_id_str": tweet_id,
        },
        "core": {"user_results": {"result": {"legacy": {"screen_name": screen_name, "name": "Bob"}}}},
    }


def _search_payload(*tweets: dict) -> dict:
    entries = [
        {"content": {"itemContent": {"tweet_results": {"result": tweet}}}} for tweet in tweets
    ]
    return {
        "data": {
            "search_by_raw_query": {
                "search_timeline": {
                    "timeline": {
                        "instructions": [{"type": "TimelineAddEntries", "entries": entries}]
                    }
                }
            }
        }
    }


async def _add(store, name: str, quota: int):
    return await store.create_provider(
        "twitter", name=name, host=f"{name.lower()}.example.com", api_key=f"key-{name}", monthly_quota=quota
    )


def _adapter(manager: ProviderManager) -> TwitterAdapter:
    return TwitterAdapter(
        manager,
        config=IngestionConfig(request_delay=0.0, max_consecutive_failures=5),
        retry_config=RetryConfig(max_retries=0, base_delay=0.0, jitter_factor=0.0),
        sleep=AsyncMock(),
    )


class TestExtractors:
    """Tests for response flattening."""

    def test_extract_tweets(self):
        payload = _search_payload(_tweet_result("1", "first"), _tweet_result("2", "second"))

        tweets = extract_tweets(payload, limit=1)

        assert len(tweets) == 1
        assert tweets[0]["id_str"] == "1"
        assert tweets[0]["screen_name"] == "bob"

    def test_extract_tweets_tolerates_unexpected_shapes(self):
        assert extract_tweets({"data": "oops"}, limit=5) == []
        assert extract_tweets({}, limit=5) == []

    def test_extract_comments(self):
        payload = {
            "data": {
                "threaded_conversation_with_injections_v2": {
                    "instructions": [
                        {
                            "entries": [
                                {"content": {"itemContent": {"tweet_results": {"result": _tweet_result("9", "reply")}}}},
                                {"content": {"items": [{"item": {"itemContent": {"tweet_results": {"result": _tweet_result("10", "nested")}}}}]}},
                            ]
                        }
                    ]
                }
            }
        }

        comments = extract_comments(payload, limit=5)

        assert [c["id_str"] for c in comments] == ["9", "10"]


class TestTwitterAdapter:
    """Tests for provider rotation and quota handling."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_rotates_provider_on_429(self, provider_store):
        big = await _add(provider_store, "Big", quota=100)
        small = await _add(provider_store, "Small", quota=10)
        manager = ProviderManager(provider_store)

        big_route = respx.get("https://big.example.com/search-v2").mock(
            return_value=httpx.Response(429)
        )
        small_route = respx.get("https://small.example.com/search-v2").mock(
            return_value=httpx.Response(200, json=_search_payload(_tweet_result("1", "Need help with invoices")))
        )

        records = await _adapter(manager).scrape({"queries": ["invoices"], "limit": 10})

        assert big_route.call_count == 1
        assert small_route.call_count == 1
        assert [r.source_id for r in records] == ["1"]
        assert await provider_store.get_used("twitter", big.id) == 0
        assert await provider_store.get_used("twitter", small.id) == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_rate_limited_provider_stays_excluded(self, provider_store):
        await _add(provider_store, "Big", quota=100)
        await _add(provider_store, "Small", quota=10)
        manager = ProviderManager(provider_store)

        big_route = respx.get("https://big.example.com/search-v2").mock(
            return_value=httpx.Response(429)
        )
        respx.get("https://small.example.com/search-v2").mock(
            return_value=httpx.Response(200, json=_search_payload(_tweet_result("1", "hello")))
        )

        await _adapter(manager).scrape({"queries": ["a", "b", "c"], "limit": 10})

        assert big_route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_stops_when_every_provider_is_rate_limited(self, provider_store):
        await _add(provider_store, "Big", quota=100)
        manager = ProviderManager(provider_store)
        route = respx.get("https://big.example.com/search-v2").mock(
            return_value=httpx.Response(429)
        )

        records = await _adapter(manager).scrape({"queries": ["a", "b"], "limit": 10})

        assert records == []
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_quota_makes_no_requests(self, provider_store):
        provider = await _add(provider_store, "Only", quota=1)
        await provider_store.record_usage("twitter", provider.id)
        manager = ProviderManager(provider_store)
        route = respx.get("https://only.example.com/search-v2")

        records = await _adapter(manager).scrape({"queries": ["a"]})

        assert records == []
        assert not route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_comments_land_in_meta(self, provider_store):
        await _add(provider_store, "Big", quota=100)
        manager = ProviderManager(provider_store)
        respx.get("https://big.example.com/search-v2").mock(
            return_value=httpx.Response(200, json=_search_payload(_tweet_result("1", "x" * 150)))
        )
        respx.get("https://big.example.com/comments-v2").mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": {
                        "threaded_conversation_with_injections_v2": {
                            "instructions": [
                                {"entries": [{"content": {"itemContent": {"tweet_results": {"result": _tweet_result("2", "me too", "amy")}}}}]}
                            ]
                        }
                    }
                },
            )
        )

        records = await _adapter(manager).scrape(
            {"queries": ["a"], "include_comments": True, "comments_per_tweet": 3}
        )

        assert len(records) == 1
        record = records[0]
        assert record.title == "x" * 100 + "..."
        assert record.meta["comments"][0]["author"] == "amy"
        assert await provider_store.get_used("twitter", (await provider_store.list_providers("twitter"))[0].id) == 2
