"""Topic persistence and cluster member sampling."""

import json
import logging

from trendflow.storage.database import Database
from trendflow.storage.schema import load_json
from trendflow.topics.schemas import ClusterSample, ExamplePassage, Topic, TopicMetrics

logger = logging.getLogger(__name__)


def _to_topic(row) -> Topic:
    return Topic(
        id=row["id"],
        title=row["title"],
        summary=row["summary"],
        example_passages=[
            ExamplePassage.from_dict(item)
            for item in load_json(row["example_passages"], [])
        ],
        metrics=TopicMetrics.from_dict(load_json(row["metrics"], {})),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class TopicRepository:
    """Reads and writes ``topics``; topics are never deleted."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def list_topics(self) -> list[Topic]:
        rows = await self._db.fetch(
            """
            SELECT id, title, summary, example_passages, metrics, created_at, updated_at
            FROM topics
            ORDER BY id
            """
        )
        return [_to_topic(row) for row in rows]

    async def sample_members(self, cluster_id: int, limit: int) -> ClusterSample:
        """Up to ``limit`` member passages of a cluster plus its total member count."""
        rows = await self._db.fetch(
            """
            SELECT p.text, p.record_id, COUNT(*) OVER () AS total
            FROM cluster_members cm
            JOIN passages p ON p.id = cm.passage_id
            WHERE cm.cluster_id = $1
            ORDER BY cm.score DESC, p.id
            LIMIT $2
            """,
            cluster_id,
            limit,
        )
        passages = [ExamplePassage(text=row["text"], record_id=row["record_id"]) for row in rows]
        total = rows[0]["total"] if rows else 0
        return ClusterSample(passages=passages, total=total)

    async def create_topic(self, topic: Topic) -> int:
        return await self._db.fetchval(
            """
            INSERT INTO topics (title, summary, example_passages, metrics)
            VALUES ($1, $2, $3::jsonb, $4::jsonb)
            RETURNING id
            """,
            topic.title,
            topic.summary,
            json.dumps([p.to_dict() for p in topic.example_passages], ensure_ascii=False),
            json.dumps(topic.metrics.to_dict(), ensure_ascii=False),
        )

    async def update_topic(self, topic_id: int, topic: Topic) -> None:
        await self._db.execute(
            """
            UPDATE topics
            SET title = $2,
                summary = $3,
                example_passages = $4::jsonb,
                metrics = $5::jsonb,
                updated_at = NOW()
            WHERE id = $1
            """,
            topic_id,
            topic.title,
            topic.summary,
            json.dumps([p.to_dict() for p in topic.example_passages], ensure_ascii=False),
            json.dumps(topic.metrics.to_dict(), ensure_ascii=False),
        )
