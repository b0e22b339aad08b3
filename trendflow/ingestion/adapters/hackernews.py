"""Hacker News adapter using the Firebase item API."""

import logging
from datetime import datetime, timezone
from typing import Any

from trendflow.core.circuit_breaker import CircuitOpenError
from trendflow.core.errors import TrendflowError
from trendflow.ingestion.base_adapter import BaseAdapter
from trendflow.ingestion.schemas import NormalizedRecord

logger = logging.getLogger(__name__)

HN_API = "https://hacker-news.firebaseio.com/v0"

RELEVANT_TITLE_TERMS = (
    "startup",
    "business",
    "saas",
    "founder",
    "entrepreneur",
    "product",
    "launch",
    "problem",
    "solution",
    "tool",
    "app",
)
RELEVANT_TEXT_TERMS = ("pain point", "struggling with", "need help")
JOB_TERMS = ("hiring", "who is hiring", "job")

RELEVANCE_BOOST = 1.5


class HackerNewsAdapter(BaseAdapter):
    """
    Walks a story list (top, new, ask, show, best) and keeps stories that
    clear the engagement floor. Startup-flavored stories get their score
    boosted; job posts are dropped. Results are ranked by
    ``score + 2 * comments``.
    """

    name = "hackernews"
    default_options = {
        "type": "top",
        "limit": 50,
        "min_score": 10,
        "min_comments": 5,
        "include_ask_hn": True,
        "item_delay": 0.1,
    }

    async def _scrape(self, options: dict[str, Any]) -> list[NormalizedRecord]:
        limit = options["limit"]
        guard = self._failure_guard()
        records: list[NormalizedRecord] = []

        async with self._http_client(timeout=10.0) as client:
            story_ids = await client.get_json(f"{HN_API}/{options['type']}stories.json")

            for story_id in (story_ids or [])[: limit * 3]:
                if len(records) >= limit:
                    break
                try:
                    story = await guard.call(client.get_json, f"{HN_API}/item/{story_id}.json")
                except CircuitOpenError:
                    logger.warning("Abandoning Hacker News batch after consecutive failures")
                    break
                except TrendflowError as e:
                    logger.error(f"Error fetching HN story {story_id}: {e}")
                    continue

                record = self._transform(story, options)
                if record is not None:
                    records.append(record)
                await self._delay(options["item_delay"])

        records.sort(key=lambda r: r.score + r.num_comments * 2, reverse=True)
        return records[:limit]

    def _transform(self, story: dict[str, Any] | None, options: dict[str, Any]) -> NormalizedRecord | None:
        if not story or story.get("deleted") or story.get("dead"):
            return None

        score = story.get("score") or 0
        descendants = story.get("descendants") or 0
        if score < options["min_score"] or descendants < options["min_comments"]:
            return None

        title = story.get("title") or ""
        lowered_title = title.lower()
        lowered_text = (story.get("text") or "").lower()

        if any(term in lowered_title for term in JOB_TERMS):
            return None

        is_ask = lowered_title.startswith("ask hn")
        if is_ask and descendants < 10:
            return None

        is_relevant = (
            any(term in lowered_title for term in RELEVANT_TITLE_TERMS)
            or any(term in lowered_text for term in RELEVANT_TEXT_TERMS)
            or story.get("type") == "ask"
            or (options["include_ask_hn"] and is_ask)
        )
        adjusted = round(score * (RELEVANCE_BOOST if is_relevant else 1.0))

        return NormalizedRecord(
            source=self.name,
            source_id=str(story["id"]),
            url=story.get("url") or f"https://news.ycombinator.com/item?id={story['id']}",
            title=title,
            body=story.get("text") or "",
            author=story.get("by") or "unknown",
            created_at=datetime.fromtimestamp(story.get("time") or 0, tz=timezone.utc),
            score=adjusted,
            num_comments=descendants,
            language="en",
            meta={
                "type": story.get("type"),
                "kids": story.get("kids") or [],
                "is_relevant": is_relevant,
                "original_score": score,
                "url": story.get("url"),
            },
        )
