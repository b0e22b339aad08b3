"""
Scheduler driver - one sequential pipeline run.

Stages run strictly in order: ingest, embed, cluster, synthesize. Each
stage reads what the previous one committed. Embedding always runs
because it picks up passages left behind by earlier runs. Clustering
runs only when ingestion or embedding produced new units, and synthesis
only when clustering left at least one active cluster. A stage that
raises is logged and counts as zero output.

Features:
- One run id bound to every log line of the run
- Per-stage summary log events and duration histogram
"""

import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

import structlog

from trendflow.clustering.repository import ClusterRepository
from trendflow.clustering.schemas import ClusteringResult
from trendflow.clustering.service import IncrementalClusteringService
from trendflow.embedding.generator import EmbeddingGenerator, EmbeddingResult
from trendflow.embedding.repository import EmbeddingRepository
from trendflow.ingestion.orchestrator import IngestionOrchestrator
from trendflow.ingestion.registry import AdapterContext
from trendflow.ingestion.schemas import IngestionResult
from trendflow.observability.logging import bind_context, clear_context
from trendflow.observability.metrics import get_metrics
from trendflow.providers.manager import ProviderManager
from trendflow.storage.database import Database
from trendflow.storage.repository import RecordRepository
from trendflow.topics.repository import TopicRepository
from trendflow.topics.schemas import SynthesisResult
from trendflow.topics.synthesizer import TopicSynthesizer

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class PipelineReport:
    """Per-stage results of one run; a stage that did not run stays None."""

    run_id: str
    ingestion: IngestionResult | None = None
    embedding: EmbeddingResult | None = None
    clustering: ClusteringResult | None = None
    synthesis: SynthesisResult | None = None
    skipped: dict[str, str] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    def summary(self) -> dict[str, Any]:
        """Flat per-stage counts for the CLI and the final log line."""
        data: dict[str, Any] = {"run_id": self.run_id}
        if self.ingestion is not None:
            data.update(
                inserted=self.ingestion.inserted,
                updated=self.ingestion.updated,
                skipped_records=self.ingestion.skipped,
                ingestion_errors=self.ingestion.errors,
            )
        if self.embedding is not None:
            data.update(
                embeddings_generated=self.embedding.generated,
                embedding_failed_batches=self.embedding.failed_batches,
            )
        if self.clustering is not None:
            data.update(
                clusters_created=self.clustering.created,
                clusters_updated=self.clustering.updated,
                clusters_active=self.clustering.active,
            )
        if self.synthesis is not None:
            data.update(
                topics_created=self.synthesis.created,
                topics_updated=self.synthesis.updated,
                topics_stale=self.synthesis.stale,
                directions=self.synthesis.directions,
            )
        data["elapsed_seconds"] = round(self.elapsed_seconds, 2)
        return data


class PipelineDriver:
    """
    Runs the four stages once.

    Usage:
        driver = PipelineDriver.from_database(db, provider_manager)
        report = await driver.run(["reddit", "hackernews"])
    """

    def __init__(
        self,
        ingestion: IngestionOrchestrator,
        embedding: EmbeddingGenerator,
        clustering: IncrementalClusteringService,
        synthesis: TopicSynthesizer,
    ):
        self._ingestion = ingestion
        self._embedding = embedding
        self._clustering = clustering
        self._synthesis = synthesis
        self._metrics = get_metrics()

    @classmethod
    def from_database(
        cls,
        database: Database,
        provider_manager: ProviderManager | None = None,
        context: AdapterContext | None = None,
    ) -> "PipelineDriver":
        """Wire every stage against one database with default configuration."""
        context = context or AdapterContext(provider_manager=provider_manager)
        embedding_repo = EmbeddingRepository(database)
        cluster_repo = ClusterRepository(database)
        generator = EmbeddingGenerator(embedding_repo)
        return cls(
            ingestion=IngestionOrchestrator(RecordRepository(database), context),
            embedding=generator,
            clustering=IncrementalClusteringService(cluster_repo, embedding_repo, generator.model),
            synthesis=TopicSynthesizer(cluster_repo, TopicRepository(database)),
        )

    async def _stage(
        self,
        report: PipelineReport,
        name: str,
        call: Callable[[], Awaitable[T]],
    ) -> T | None:
        start = time.monotonic()
        try:
            return await call()
        except Exception as e:
            report.failed[name] = f"{type(e).__name__}: {e}"
            logger.error("Stage failed", stage=name, error=str(e), error_type=type(e).__name__)
            return None
        finally:
            self._metrics.record_stage_duration(name, time.monotonic() - start)

    async def close(self) -> None:
        await self._synthesis.close()

    def _skip(self, report: PipelineReport, name: str, reason: str) -> None:
        report.skipped[name] = reason
        logger.info("Stage skipped", stage=name, reason=reason)

    async def run(
        self,
        sources: list[str] | None = None,
        parallel: int | None = None,
    ) -> PipelineReport:
        """
        Run ingest, embed, cluster and synthesize in order.

        Args:
            sources: Source names to ingest (all registered sources when None)
            parallel: Worker-pool width for synthesis (configured default when None)
        """
        report = PipelineReport(run_id=uuid.uuid4().hex[:12])
        start = time.monotonic()
        bind_context(run_id=report.run_id)
        logger.info("Pipeline run started", sources=sources or "all")

        try:
            report.ingestion = await self._stage(
                report, "ingest", lambda: self._ingestion.run(sources)
            )
            report.embedding = await self._stage(report, "embed", self._embedding.run)

            new_units = report.ingestion.new_units if report.ingestion else 0
            generated = report.embedding.generated if report.embedding else 0
            if new_units > 0 or generated > 0:
                report.clustering = await self._stage(report, "cluster", self._clustering.run)
            else:
                self._skip(report, "cluster", "no new records or embeddings")

            if "cluster" in report.skipped:
                self._skip(report, "synthesize", "clustering did not run")
            elif report.clustering is None or report.clustering.active == 0:
                self._skip(report, "synthesize", "no active clusters")
            else:
                active_ids = report.clustering.cluster_ids
                report.synthesis = await self._stage(
                    report,
                    "synthesize",
                    lambda: self._synthesis.run(parallel, cluster_ids=active_ids),
                )

            report.elapsed_seconds = time.monotonic() - start
            logger.info("Pipeline run complete", **report.summary())
            return report
        finally:
            clear_context()
