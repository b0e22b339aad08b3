"""
Record repository: find-then-update-or-insert storage for scraped records.

Passages are written in the same transaction as their record so a
record never exists without its passages.
"""

import json
import logging

from trendflow.ingestion.schemas import NormalizedRecord, StoredRecord
from trendflow.storage.database import Database

logger = logging.getLogger(__name__)

_GET_BY_KEY_SQL = """
SELECT id, score, num_comments, body
FROM records
WHERE source = $1 AND source_id = $2
"""

_INSERT_RECORD_SQL = """
INSERT INTO records (
    source, source_id, url, title, body, author, created_at,
    score, num_comments, language, meta
)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
RETURNING id
"""

_INSERT_PASSAGE_SQL = """
INSERT INTO passages (record_id, passage_index, text)
VALUES ($1, $2, $3)
"""

_UPDATE_RECORD_SQL = """
UPDATE records
SET score = $2, num_comments = $3, body = $4, meta = $5, scraped_at = NOW()
WHERE id = $1
"""


class RecordRepository:
    """CRUD operations for the records and passages tables."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def get_by_key(self, source: str, source_id: str) -> StoredRecord | None:
        """Look up the mutable fields of a stored record by its unique key."""
        row = await self._db.fetchrow(_GET_BY_KEY_SQL, source, source_id)
        if row is None:
            return None
        return StoredRecord(
            id=row["id"],
            score=row["score"],
            num_comments=row["num_comments"],
            body=row["body"],
        )

    async def insert(self, record: NormalizedRecord, passages: list[str]) -> int:
        """Insert a record and its ordered passages atomically.

        Returns:
            The new record id.
        """
        async with self._db.transaction() as conn:
            record_id = await conn.fetchval(
                _INSERT_RECORD_SQL,
                record.source,
                record.source_id,
                record.url,
                record.title,
                record.body,
                record.author,
                record.created_at,
                record.score,
                record.num_comments,
                record.language,
                json.dumps(record.meta, default=str),
            )
            if passages:
                await conn.executemany(
                    _INSERT_PASSAGE_SQL,
                    [(record_id, index, text) for index, text in enumerate(passages)],
                )
        return record_id

    async def update_mutable(self, record_id: int, record: NormalizedRecord) -> None:
        """Overwrite score, comment count, body and meta of a stored record."""
        await self._db.execute(
            _UPDATE_RECORD_SQL,
            record_id,
            record.score,
            record.num_comments,
            record.body,
            json.dumps(record.meta, default=str),
        )
