"""Cluster and membership persistence."""

import logging

import numpy as np

from trendflow.clustering.schemas import Cluster
from trendflow.storage.database import Database

logger = logging.getLogger(__name__)


def _to_cluster(row) -> Cluster:
    return Cluster(
        id=row["id"],
        label=row["label"],
        centroid=np.array(row["centroid"], dtype=np.float64),
        created_at=row["created_at"],
    )


class ClusterRepository:
    """Reads and writes the ``clusters`` and ``cluster_members`` tables."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def list_clusters(self) -> list[Cluster]:
        rows = await self._db.fetch(
            "SELECT id, label, centroid, created_at FROM clusters ORDER BY id"
        )
        return [_to_cluster(row) for row in rows]

    async def create_cluster(self, label: str, centroid: np.ndarray) -> Cluster:
        row = await self._db.fetchrow(
            """
            INSERT INTO clusters (label, centroid)
            VALUES ($1, $2)
            RETURNING id, label, centroid, created_at
            """,
            label,
            [float(x) for x in centroid],
        )
        return _to_cluster(row)

    async def update_centroid(self, cluster_id: int, centroid: np.ndarray) -> None:
        """Move a cluster's centroid; the id never changes."""
        await self._db.execute(
            "UPDATE clusters SET centroid = $2, updated_at = NOW() WHERE id = $1",
            cluster_id,
            [float(x) for x in centroid],
        )

    async def replace_memberships(
        self,
        members: dict[int, list[int]],
        score: float = 1.0,
    ) -> int:
        """
        Delete and re-insert membership rows for every cluster in ``members``.

        Args:
            members: cluster id -> passage ids assigned in this run
            score: Relevance score written for each row

        Returns:
            Number of membership rows inserted
        """
        rows = [
            (cluster_id, passage_id, score)
            for cluster_id, passage_ids in members.items()
            for passage_id in passage_ids
        ]
        async with self._db.transaction() as conn:
            await conn.execute(
                "DELETE FROM cluster_members WHERE cluster_id = ANY($1::bigint[])",
                list(members),
            )
            if rows:
                await conn.executemany(
                    """
                    INSERT INTO cluster_members (cluster_id, passage_id, score)
                    VALUES ($1, $2, $3)
                    ON CONFLICT (cluster_id, passage_id) DO UPDATE SET score = EXCLUDED.score
                    """,
                    rows,
                )
        return len(rows)
