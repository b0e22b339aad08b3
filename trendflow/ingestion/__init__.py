"""
Ingestion: source adapters, the source registry and the record schema.

The orchestrator lives in ``trendflow.ingestion.orchestrator`` and is
not re-exported here because it depends on the storage layer, which in
turn imports the record schema from this package.
"""

from trendflow.ingestion.base_adapter import BaseAdapter, ScraperAdapter
from trendflow.ingestion.registry import (
    AdapterContext,
    SourceDefinition,
    available_sources,
    get_source,
    resolve_sources,
)
from trendflow.ingestion.schemas import IngestionResult, NormalizedRecord, SourceStats

__all__ = [
    "AdapterContext",
    "BaseAdapter",
    "IngestionResult",
    "NormalizedRecord",
    "ScraperAdapter",
    "SourceDefinition",
    "SourceStats",
    "available_sources",
    "get_source",
    "resolve_sources",
]
