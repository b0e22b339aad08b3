"""Database access for passages awaiting embeddings and stored vectors."""

import logging
from dataclasses import dataclass

import numpy as np

from trendflow.storage.database import Database

logger = logging.getLogger(__name__)

_UNEMBEDDED_SQL = """
SELECT p.id, p.text
FROM passages p
LEFT JOIN embeddings e ON e.passage_id = p.id AND e.model = $1
WHERE e.id IS NULL
ORDER BY p.id
LIMIT $2
"""

_INSERT_SQL = """
INSERT INTO embeddings (passage_id, model, vector)
VALUES ($1, $2, $3)
ON CONFLICT (passage_id, model) DO NOTHING
"""

_ALL_FOR_MODEL_SQL = """
SELECT passage_id, vector
FROM embeddings
WHERE model = $1
ORDER BY passage_id
"""


@dataclass
class PendingPassage:
    id: int
    text: str


class EmbeddingRepository:
    """Anti-join selection of unembedded passages plus vector persistence."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get_unembedded_passages(self, model: str, limit: int) -> list[PendingPassage]:
        rows = await self._db.fetch(_UNEMBEDDED_SQL, model, limit)
        return [PendingPassage(id=row["id"], text=row["text"]) for row in rows]

    async def save_embeddings(
        self, model: str, items: list[tuple[int, list[float]]]
    ) -> int:
        """Persist (passage_id, vector) pairs; existing pairs are left untouched."""
        if not items:
            return 0
        async with self._db.transaction() as conn:
            await conn.executemany(
                _INSERT_SQL,
                [(passage_id, model, vector) for passage_id, vector in items],
            )
        return len(items)

    async def get_all_embeddings(self, model: str) -> tuple[list[int], np.ndarray]:
        """All vectors for a model as (passage ids, float matrix)."""
        rows = await self._db.fetch(_ALL_FOR_MODEL_SQL, model)
        if not rows:
            return [], np.empty((0, 0), dtype=np.float64)
        passage_ids = [row["passage_id"] for row in rows]
        vectors = np.array([row["vector"] for row in rows], dtype=np.float64)
        return passage_ids, vectors
