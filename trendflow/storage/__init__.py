"""PostgreSQL storage: connection pool, schema and record repository."""

from trendflow.storage.database import Database
from trendflow.storage.repository import RecordRepository
from trendflow.storage.schema import create_tables

__all__ = ["Database", "RecordRepository", "create_tables"]
