"""
Prometheus metrics for the ingestion-to-topic pipeline.

One collector per process; counters mirror the per-stage summary
counts the driver reports (records, embeddings, clusters, topics).
"""

import logging

from prometheus_client import Counter, Histogram, start_http_server

from trendflow.config.settings import get_settings

logger = logging.getLogger(__name__)

STAGE_BUCKETS = (0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 900.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the trendflow pipeline.

    Usage:
        metrics = get_metrics()
        metrics.record_ingested("reddit", inserted=3, updated=1, skipped=10)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""
        self.records_ingested = Counter(
            "trendflow_records_ingested_total",
            "Records persisted by ingestion",
            ["source", "outcome"],  # outcome: inserted, updated, skipped
        )

        self.adapter_errors = Counter(
            "trendflow_adapter_errors_total",
            "Adapter or per-record ingestion errors",
            ["source", "error_type"],
        )

        self.provider_calls = Counter(
            "trendflow_provider_calls_total",
            "Calls recorded against quota-constrained providers",
            ["platform"],
        )

        self.embeddings_generated = Counter(
            "trendflow_embeddings_generated_total",
            "Passage embeddings generated",
            ["model"],
        )

        self.embedding_batch_failures = Counter(
            "trendflow_embedding_batch_failures_total",
            "Embedding batches that failed and were skipped",
        )

        self.clusters_reconciled = Counter(
            "trendflow_clusters_reconciled_total",
            "Clusters created or updated by reconciliation",
            ["outcome"],  # outcome: created, updated
        )

        self.topics_upserted = Counter(
            "trendflow_topics_upserted_total",
            "Topics created or updated by synthesis",
            ["outcome"],
        )

        self.directions_produced = Counter(
            "trendflow_directions_produced_total",
            "Directions attached to topics",
        )

        self.direction_fallbacks = Counter(
            "trendflow_direction_fallbacks_total",
            "Clusters that fell back to previous or placeholder directions",
            ["kind"],  # kind: previous, placeholder
        )

        self.stage_duration = Histogram(
            "trendflow_stage_duration_seconds",
            "Wall time per pipeline stage",
            ["stage"],
            buckets=STAGE_BUCKETS,
        )

        self._server_started = False

    def start_server(self, port: int | None = None) -> None:
        """Start the Prometheus HTTP endpoint once per process."""
        if self._server_started:
            return

        port = port or get_settings().metrics_port
        start_http_server(port)
        self._server_started = True
        logger.info(f"Metrics server started on port {port}")

    def record_ingested(self, source: str, inserted: int, updated: int, skipped: int) -> None:
        self.records_ingested.labels(source=source, outcome="inserted").inc(inserted)
        self.records_ingested.labels(source=source, outcome="updated").inc(updated)
        self.records_ingested.labels(source=source, outcome="skipped").inc(skipped)

    def record_adapter_error(self, source: str, error_type: str) -> None:
        self.adapter_errors.labels(source=source, error_type=error_type).inc()

    def record_stage_duration(self, stage: str, seconds: float) -> None:
        self.stage_duration.labels(stage=stage).observe(seconds)


_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics

    if _metrics is None:
        _metrics = MetricsCollector()

    return _metrics
