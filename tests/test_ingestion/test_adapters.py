"""Tests for the public forum adapters and the mock adapter."""

from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from trendflow.ingestion.adapters.hackernews import HN_API, HackerNewsAdapter
from trendflow.ingestion.adapters.mock import MockAdapter
from trendflow.ingestion.adapters.reddit import REDDIT_BASE, RedditAdapter
from trendflow.ingestion.adapters.v2ex import V2EX_API, V2EXAdapter
from trendflow.ingestion.config import IngestionConfig
from trendflow.ingestion.http_client import RetryConfig

FAST_RETRY = RetryConfig(max_retries=0, base_delay=0.0, jitter_factor=0.0)


def _post(post_id: str, **overrides) -> dict:
    post = {
        "id": post_id,
        "title": f"How do you handle churn? ({post_id})",
        "selftext": "We lose users after week one.",
        "author": "founder",
        "created_utc": 1_700_000_000,
        "score": 50,
        "num_comments": 12,
        "permalink": f"/r/SaaS/comments/{post_id}/",
        "subreddit": "SaaS",
        "link_flair_text": None,
    }
    post.update(overrides)
    return post


def _listing(*posts: dict) -> dict:
    return {"data": {"children": [{"data": p} for p in posts]}}


class TestRedditAdapter:
    """Tests for RedditAdapter."""

    def _adapter(self) -> RedditAdapter:
        return RedditAdapter(config=IngestionConfig(max_consecutive_failures=3), retry_config=FAST_RETRY)

    def test_transform_filters(self):
        adapter = self._adapter()
        options = adapter.merge_options({"min_score": 10, "min_comments": 3})

        assert adapter._transform(_post("ok"), options) is not None
        assert adapter._transform(_post("low", score=2), options) is None
        assert adapter._transform(_post("quiet", num_comments=1), options) is None
        assert adapter._transform(_post("gone", removed_by_category="moderator"), options) is None
        assert adapter._transform(_post("farm", title="Please upvote me"), options) is None
        assert adapter._transform(_post("meta", link_flair_text="Meta"), options) is None

    def test_transform_maps_fields(self):
        adapter = self._adapter()
        record = adapter._transform(_post("p1"), adapter.merge_options(None))

        assert record.source == "reddit"
        assert record.source_id == "p1"
        assert record.url == f"{REDDIT_BASE}/r/SaaS/comments/p1/"
        assert record.meta["subreddit"] == "SaaS"
        assert record.meta["has_substantial_content"] is True

    @pytest.mark.asyncio
    @respx.mock
    async def test_scrape_merges_subreddits_by_score(self):
        respx.get(f"{REDDIT_BASE}/r/SaaS/hot.json").mock(
            return_value=httpx.Response(200, json=_listing(_post("a", score=20)))
        )
        respx.get(f"{REDDIT_BASE}/r/startups/hot.json").mock(
            return_value=httpx.Response(200, json=_listing(_post("b", score=90)))
        )

        records = await self._adapter().scrape(
            {"subreddits": ["SaaS", "startups"], "limit": 10, "dispatch_delay": 0.0}
        )

        assert [r.source_id for r in records] == ["b", "a"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_failed_subreddit_does_not_sink_the_batch(self):
        respx.get(f"{REDDIT_BASE}/r/SaaS/hot.json").mock(return_value=httpx.Response(500))
        respx.get(f"{REDDIT_BASE}/r/startups/hot.json").mock(
            return_value=httpx.Response(200, json=_listing(_post("b")))
        )

        records = await self._adapter().scrape(
            {"subreddits": "SaaS,startups", "limit": 10, "dispatch_delay": 0.0}
        )

        assert [r.source_id for r in records] == ["b"]


class TestHackerNewsAdapter:
    """Tests for HackerNewsAdapter."""

    def _adapter(self, failures: int = 5) -> HackerNewsAdapter:
        return HackerNewsAdapter(
            config=IngestionConfig(max_consecutive_failures=failures),
            retry_config=FAST_RETRY,
            sleep=AsyncMock(),
        )

    def _story(self, story_id: int, **overrides) -> dict:
        story = {
            "id": story_id,
            "title": "Launch: a tiny invoicing tool",
            "by": "pg",
            "time": 1_700_000_000,
            "score": 100,
            "descendants": 20,
            "type": "story",
        }
        story.update(overrides)
        return story

    def test_relevant_story_is_boosted(self):
        adapter = self._adapter()
        record = adapter._transform(self._story(1), adapter.merge_options(None))

        assert record.score == 150
        assert record.meta["original_score"] == 100
        assert record.url == "https://news.ycombinator.com/item?id=1"

    def test_filters(self):
        adapter = self._adapter()
        options = adapter.merge_options(None)

        assert adapter._transform(None, options) is None
        assert adapter._transform(self._story(1, dead=True), options) is None
        assert adapter._transform(self._story(2, score=3), options) is None
        assert adapter._transform(self._story(3, title="Acme is hiring"), options) is None
        assert adapter._transform(self._story(4, title="Ask HN: anyone?", descendants=6), options) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_consecutive_failures_abandon_batch(self):
        respx.get(f"{HN_API}/topstories.json").mock(
            return_value=httpx.Response(200, json=list(range(1, 11)))
        )
        items = respx.get(url__regex=rf"{HN_API}/item/\d+\.json").mock(
            return_value=httpx.Response(500)
        )

        records = await self._adapter(failures=3).scrape({"limit": 10})

        assert records == []
        assert items.call_count == 3

    @pytest.mark.asyncio
    @respx.mock
    async def test_scrape_ranks_by_engagement(self):
        respx.get(f"{HN_API}/topstories.json").mock(return_value=httpx.Response(200, json=[1, 2]))
        respx.get(f"{HN_API}/item/1.json").mock(
            return_value=httpx.Response(200, json=self._story(1, title="Plain story", score=20, descendants=10))
        )
        respx.get(f"{HN_API}/item/2.json").mock(
            return_value=httpx.Response(200, json=self._story(2, title="Plain story two", score=30, descendants=40))
        )

        records = await self._adapter().scrape({"limit": 5})

        assert [r.source_id for r in records] == ["2", "1"]


class TestV2EXAdapter:
    """Tests for V2EXAdapter."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_scrape_hot(self):
        respx.get(f"{V2EX_API}/hot.json").mock(
            return_value=httpx.Response(
                200,
                json=[
                    {
                        "id": 101,
                        "title": "独立开发者如何找到第一批用户",
                        "content": "求建议。",
                        "url": "https://www.v2ex.com/t/101",
                        "replies": 33,
                        "created": 1_700_000_000,
                        "member": {"username": "alice"},
                        "node": {"name": "create"},
                    }
                ],
            )
        )

        records = await V2EXAdapter(retry_config=FAST_RETRY).scrape({"limit": 5})

        assert len(records) == 1
        assert records[0].source_id == "101"
        assert records[0].language == "zh"
        assert records[0].score == 0
        assert records[0].num_comments == 33
        assert records[0].author == "alice"


class TestMockAdapter:
    """Tests for MockAdapter."""

    @pytest.mark.asyncio
    async def test_same_seed_same_records(self):
        first = await MockAdapter().scrape({"limit": 12, "seed": 3})
        second = await MockAdapter().scrape({"limit": 12, "seed": 3})

        def strip(records):
            return [r.model_dump(exclude={"created_at"}) for r in records]

        assert len(first) == 12
        assert strip(first) == strip(second)

    @pytest.mark.asyncio
    async def test_source_ids_unique(self):
        records = await MockAdapter().scrape({"limit": 20})

        assert len({r.source_id for r in records}) == 20
        assert all(r.source == "mock" for r in records)
