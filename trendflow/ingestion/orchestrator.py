"""
Ingestion orchestrator: run adapters, deduplicate, persist, split passages.

For each requested source the adapter is invoked with the registry's
options. An adapter failure counts as zero records for that source. Each
returned record goes through find-then-update-or-insert on
``(source, source_id)``; a failure on one record is logged and the batch
continues.
"""

import time

import structlog

from trendflow.core.errors import ConfigurationMissingError, PersistenceConflictError
from trendflow.embedding.chunking import split_into_passages
from trendflow.ingestion.config import IngestionConfig
from trendflow.ingestion.registry import AdapterContext, SourceDefinition, resolve_sources
from trendflow.ingestion.schemas import IngestionResult, NormalizedRecord, SourceStats
from trendflow.observability.metrics import get_metrics
from trendflow.storage.repository import RecordRepository

logger = structlog.get_logger(__name__)


class IngestionOrchestrator:
    """
    Runs the configured sources one after another and persists their output.

    Usage:
        orchestrator = IngestionOrchestrator(RecordRepository(db), context)
        result = await orchestrator.run(["reddit", "hackernews"])
    """

    def __init__(
        self,
        repository: RecordRepository,
        context: AdapterContext | None = None,
        config: IngestionConfig | None = None,
    ):
        self._repo = repository
        self._config = config or (context.config if context else IngestionConfig())
        self._context = context or AdapterContext(config=self._config)
        self._metrics = get_metrics()

    async def run(self, sources: list[str] | None = None) -> IngestionResult:
        """Ingest the named sources (all registered sources when None)."""
        start = time.monotonic()
        result = IngestionResult()

        for definition in resolve_sources(sources):
            result.sources[definition.name] = await self.run_source(definition)

        result.elapsed_seconds = time.monotonic() - start
        logger.info(
            "Ingestion complete",
            sources=list(result.sources),
            inserted=result.inserted,
            updated=result.updated,
            skipped=result.skipped,
            errors=result.errors,
            elapsed_seconds=round(result.elapsed_seconds, 2),
        )
        return result

    async def run_source(self, definition: SourceDefinition) -> SourceStats:
        stats = SourceStats()
        log = logger.bind(source=definition.name)

        try:
            if definition.quota_constrained and self._context.provider_manager is None:
                raise ConfigurationMissingError(
                    f"{definition.name} needs provider quota management (Redis)"
                )
            adapter = definition.factory(self._context)
            records = await adapter.scrape(definition.options)
        except ConfigurationMissingError as e:
            log.warning("Source skipped", reason=str(e))
            return stats
        except Exception as e:
            log.error("Adapter failed, counting zero records", error=str(e), error_type=type(e).__name__)
            self._metrics.record_adapter_error(definition.name, type(e).__name__)
            stats.errors += 1
            return stats

        stats.fetched = len(records)
        for record in records:
            try:
                outcome = await self.persist(record)
            except PersistenceConflictError as e:
                log.error("Failed to persist record", source_id=record.source_id, error=str(e))
                self._metrics.record_adapter_error(definition.name, "persistence")
                stats.errors += 1
                continue
            setattr(stats, outcome, getattr(stats, outcome) + 1)

        self._metrics.record_ingested(definition.name, stats.inserted, stats.updated, stats.skipped)
        log.info(
            "Source ingested",
            fetched=stats.fetched,
            inserted=stats.inserted,
            updated=stats.updated,
            skipped=stats.skipped,
            errors=stats.errors,
        )
        return stats

    async def persist(self, record: NormalizedRecord) -> str:
        """
        Find-then-update-or-insert one record.

        Returns:
            "inserted", "updated" or "skipped"

        Raises:
            PersistenceConflictError: On any storage failure for this record
        """
        try:
            existing = await self._repo.get_by_key(record.source, record.source_id)
            if existing is None:
                passages = split_into_passages(record.full_text, self._config.max_passage_length)
                await self._repo.insert(record, passages)
                return "inserted"

            if existing.differs_from(record):
                await self._repo.update_mutable(existing.id, record)
                return "updated"

            return "skipped"
        except Exception as e:
            raise PersistenceConflictError(
                f"{record.source}/{record.source_id}: {e}"
            ) from e
