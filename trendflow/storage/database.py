"""
asyncpg pool wrapper used by every repository.

Repositories only need four query helpers and a transaction context;
a pipeline run opens one ``Database`` for its whole duration.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from trendflow.config.settings import get_settings

logger = logging.getLogger(__name__)


class Database:
    """
    Connection pool for the trendflow schema.

    Usage:
        async with Database() as db:
            await create_tables(db)
            rows = await db.fetch("SELECT id FROM clusters")
    """

    def __init__(self, database_url: str | None = None, **pool_options: Any):
        settings = get_settings()
        self._dsn = database_url or str(settings.database_url)
        self._pool_options = {
            "min_size": settings.db_pool_min_size,
            "max_size": settings.db_pool_max_size,
            "command_timeout": settings.db_command_timeout,
            "server_settings": {"application_name": "trendflow"},
            **pool_options,
        }
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(self._dsn, **self._pool_options)
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Could not open database pool: {e}")
            raise
        logger.info(
            f"Database pool open ({self._pool_options['min_size']}-{self._pool_options['max_size']})"
        )

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    def _require_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database is not connected; use 'async with Database()'")
        return self._pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """One connection with an open transaction; commits on clean exit."""
        async with self._require_pool().acquire() as conn:
            async with conn.transaction():
                yield conn

    async def execute(self, query: str, *args: Any) -> str:
        return await self._require_pool().execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        return await self._require_pool().fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        return await self._require_pool().fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return await self._require_pool().fetchval(query, *args)
