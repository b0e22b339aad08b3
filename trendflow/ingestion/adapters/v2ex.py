"""V2EX adapter for the public hot/latest topic feeds."""

from datetime import datetime, timezone
from typing import Any

from trendflow.ingestion.base_adapter import BaseAdapter
from trendflow.ingestion.schemas import NormalizedRecord

V2EX_API = "https://www.v2ex.com/api/topics"


class V2EXAdapter(BaseAdapter):
    """One request per run; V2EX exposes no vote score, so score is 0."""

    name = "v2ex"
    default_options = {"type": "hot", "limit": 50}

    async def _scrape(self, options: dict[str, Any]) -> list[NormalizedRecord]:
        endpoint = "hot" if options["type"] == "hot" else "latest"
        async with self._http_client() as client:
            topics = await client.get_json(f"{V2EX_API}/{endpoint}.json")

        return [self._transform(topic) for topic in (topics or [])[: options["limit"]]]

    def _transform(self, topic: dict[str, Any]) -> NormalizedRecord:
        member = topic.get("member") or {}
        return NormalizedRecord(
            source=self.name,
            source_id=str(topic["id"]),
            url=topic.get("url") or "",
            title=topic.get("title") or "",
            body=topic.get("content") or "",
            author=member.get("username") or "unknown",
            created_at=datetime.fromtimestamp(topic.get("created") or 0, tz=timezone.utc),
            score=0,
            num_comments=topic.get("replies") or 0,
            language="zh",
            meta={
                "node": topic.get("node"),
                "last_touched": topic.get("last_touched"),
            },
        )
