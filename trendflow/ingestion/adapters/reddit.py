"""
Reddit adapter using the public ``/r/{sub}/{sort}.json`` listings.

Fans out over many subreddits through a small worker pool with a delay
between dispatches per worker. Filters out low-engagement, removed and
meta/karma-farming posts.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any

from trendflow.core.circuit_breaker import CircuitOpenError, GenericCircuitBreaker
from trendflow.core.errors import TrendflowError
from trendflow.core.pool import run_with_concurrency
from trendflow.ingestion.base_adapter import BaseAdapter
from trendflow.ingestion.http_client import HTTPClient
from trendflow.ingestion.schemas import NormalizedRecord

logger = logging.getLogger(__name__)

REDDIT_BASE = "https://www.reddit.com"

DEFAULT_SUBREDDITS = [
    "startups",
    "SaaS",
    "Entrepreneur",
    "SideProject",
    "indiehackers",
    "business",
]

LOW_QUALITY_TITLE_MARKERS = ("upvote", "karma", "test post")


class RedditAdapter(BaseAdapter):
    """
    Public-JSON Reddit scraper.

    Options:
        subreddits: Subreddit names to visit
        limit: Total records to return (split evenly across subreddits)
        sort: hot | new | top
        time_filter: Window for ``top`` (hour, day, week, month, year, all)
        min_score / min_comments: Engagement floor
        concurrency / dispatch_delay: Worker pool width and per-worker pause
    """

    name = "reddit"
    default_options = {
        "subreddits": DEFAULT_SUBREDDITS,
        "limit": 50,
        "sort": "hot",
        "time_filter": "week",
        "min_score": 10,
        "min_comments": 3,
    }

    async def _scrape(self, options: dict[str, Any]) -> list[NormalizedRecord]:
        subreddits = options["subreddits"]
        if isinstance(subreddits, str):
            subreddits = [s.strip() for s in subreddits.split(",") if s.strip()]
        if not subreddits:
            return []

        per_subreddit = math.ceil(options["limit"] / len(subreddits))
        concurrency = options.get("concurrency", self._config.fanout_concurrency)
        dispatch_delay = options.get("dispatch_delay", self._config.fanout_dispatch_delay)
        guard = self._failure_guard()

        async with self._http_client(timeout=10.0) as client:

            async def visit(subreddit: str, _index: int) -> list[NormalizedRecord]:
                return await self._scrape_subreddit(
                    client, guard, subreddit, per_subreddit, options
                )

            batches = await run_with_concurrency(
                subreddits, concurrency, visit, dispatch_delay=dispatch_delay
            )

        records = [record for batch in batches for record in batch]
        records.sort(key=lambda r: r.score, reverse=True)
        return records[: options["limit"]]

    async def _scrape_subreddit(
        self,
        client: HTTPClient,
        guard: GenericCircuitBreaker,
        subreddit: str,
        limit: int,
        options: dict[str, Any],
    ) -> list[NormalizedRecord]:
        sort = options["sort"]
        params: dict[str, Any] = {"limit": limit}
        if sort == "top":
            params["t"] = options["time_filter"]

        try:
            data = await guard.call(
                client.get_json, f"{REDDIT_BASE}/r/{subreddit}/{sort}.json", params=params
            )
        except CircuitOpenError:
            logger.warning(f"Skipping r/{subreddit}: too many consecutive reddit failures")
            return []
        except TrendflowError as e:
            logger.error(f"Reddit request failed for r/{subreddit}: {e}")
            return []

        records = []
        for child in (data or {}).get("data", {}).get("children", []):
            record = self._transform(child.get("data") or {}, options)
            if record is not None:
                records.append(record)

        logger.debug(f"Fetched {len(records)} posts from r/{subreddit}")
        return records

    def _transform(self, post: dict[str, Any], options: dict[str, Any]) -> NormalizedRecord | None:
        """Map a listing child to a record, or None if it should be filtered."""
        score = post.get("score") or 0
        num_comments = post.get("num_comments") or 0
        if score < options["min_score"] or num_comments < options["min_comments"]:
            return None
        if post.get("removed_by_category") or post.get("removed") or not post.get("title"):
            return None

        title = post["title"]
        lowered = title.lower()
        flair = post.get("link_flair_text") or ""
        if any(marker in lowered for marker in LOW_QUALITY_TITLE_MARKERS) or "meta" in flair.lower():
            return None

        body = post.get("selftext") or ""
        return NormalizedRecord(
            source=self.name,
            source_id=post["id"],
            url=f"{REDDIT_BASE}{post.get('permalink', '')}",
            title=title,
            body=body,
            author=post.get("author") or "unknown",
            created_at=datetime.fromtimestamp(post.get("created_utc") or 0, tz=timezone.utc),
            score=score,
            num_comments=num_comments,
            language="en",
            meta={
                "subreddit": post.get("subreddit"),
                "upvote_ratio": post.get("upvote_ratio"),
                "flair": post.get("link_flair_text"),
                "has_substantial_content": len(body) > 100 or num_comments >= 10,
                "is_text_post": post.get("is_self"),
                "awards": post.get("total_awards_received") or 0,
            },
        )
