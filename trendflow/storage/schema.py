"""
Relational schema for the pipeline tables.

Vectors are stored as DOUBLE PRECISION[] so any embedding width works
without a column migration. Cascades follow ownership: passages belong
to records, embeddings and memberships belong to passages, memberships
belong to clusters. Topics reference clusters only through
``metrics->>'cluster_id'`` so they survive cluster churn.
"""

import json
import logging
from typing import Any

from trendflow.storage.database import Database

logger = logging.getLogger(__name__)

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS records (
    id            BIGSERIAL PRIMARY KEY,
    source        TEXT NOT NULL,
    source_id     TEXT NOT NULL,
    url           TEXT NOT NULL DEFAULT '',
    title         TEXT NOT NULL DEFAULT '',
    body          TEXT NOT NULL DEFAULT '',
    author        TEXT NOT NULL DEFAULT '',
    created_at    TIMESTAMPTZ NOT NULL,
    score         INTEGER NOT NULL DEFAULT 0,
    num_comments  INTEGER NOT NULL DEFAULT 0,
    language      TEXT NOT NULL DEFAULT 'en',
    meta          JSONB NOT NULL DEFAULT '{}',
    scraped_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    inserted_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_records_source_key
    ON records(source, source_id);
CREATE INDEX IF NOT EXISTS idx_records_created_at
    ON records(created_at DESC);

CREATE TABLE IF NOT EXISTS passages (
    id             BIGSERIAL PRIMARY KEY,
    record_id      BIGINT NOT NULL REFERENCES records(id) ON DELETE CASCADE,
    passage_index  INTEGER NOT NULL,
    text           TEXT NOT NULL,
    created_at     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (record_id, passage_index)
);

CREATE TABLE IF NOT EXISTS embeddings (
    id          BIGSERIAL PRIMARY KEY,
    passage_id  BIGINT NOT NULL REFERENCES passages(id) ON DELETE CASCADE,
    model       TEXT NOT NULL,
    vector      DOUBLE PRECISION[] NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (passage_id, model)
);

CREATE TABLE IF NOT EXISTS clusters (
    id          BIGSERIAL PRIMARY KEY,
    label       TEXT NOT NULL,
    centroid    DOUBLE PRECISION[] NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS cluster_members (
    cluster_id  BIGINT NOT NULL REFERENCES clusters(id) ON DELETE CASCADE,
    passage_id  BIGINT NOT NULL REFERENCES passages(id) ON DELETE CASCADE,
    score       REAL NOT NULL DEFAULT 1.0,
    PRIMARY KEY (cluster_id, passage_id)
);

CREATE INDEX IF NOT EXISTS idx_cluster_members_passage
    ON cluster_members(passage_id);

CREATE TABLE IF NOT EXISTS topics (
    id                BIGSERIAL PRIMARY KEY,
    title             TEXT NOT NULL,
    summary           TEXT NOT NULL DEFAULT '',
    example_passages  JSONB NOT NULL DEFAULT '[]',
    metrics           JSONB NOT NULL DEFAULT '{}',
    created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_topics_cluster_id
    ON topics((metrics->>'cluster_id'));
"""


async def create_tables(database: Database) -> None:
    """Create every pipeline table and index (idempotent)."""
    await database.execute(CREATE_TABLES_SQL)
    logger.info("Pipeline tables ensured")


def load_json(value: Any, default: Any) -> Any:
    """Decode a JSONB column that asyncpg may hand back as text."""
    if value is None:
        return default
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value
