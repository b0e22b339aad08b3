"""
Topic synthesis: one topic per active cluster, carrying model-derived directions.

Clusters are processed through a bounded worker pool. When analysis
fails (or yields nothing usable) the cluster keeps its topic's previous
directions, or gets a single placeholder direction if it never had a
topic. Topics whose cluster has no members this run are reported as
stale and left as they are.
"""

import time

import structlog

from trendflow.clustering.repository import ClusterRepository
from trendflow.clustering.schemas import Cluster
from trendflow.core.errors import ConfigurationMissingError
from trendflow.core.pool import run_with_concurrency
from trendflow.observability.metrics import get_metrics
from trendflow.topics.config import DirectionConfig
from trendflow.topics.llm_client import DirectionClient
from trendflow.topics.repository import TopicRepository
from trendflow.topics.schemas import (
    Direction,
    SynthesisResult,
    Topic,
    TopicMetrics,
    build_fallback_direction,
    pick_summary,
    pick_title,
)

logger = structlog.get_logger(__name__)


class TopicSynthesizer:
    """
    Upserts a topic for every cluster that currently has members.

    Usage:
        synthesizer = TopicSynthesizer(ClusterRepository(db), TopicRepository(db), DirectionClient())
        result = await synthesizer.run(parallel=2)
    """

    def __init__(
        self,
        clusters: ClusterRepository,
        topics: TopicRepository,
        client: DirectionClient | None = None,
        config: DirectionConfig | None = None,
    ):
        self._clusters = clusters
        self._topics = topics
        self._config = config or DirectionConfig()
        self._owns_client = client is None
        self._client = client or DirectionClient(self._config)
        self._metrics = get_metrics()

    async def run(
        self,
        parallel: int | None = None,
        cluster_ids: list[int] | None = None,
    ) -> SynthesisResult:
        """
        Upsert topics for the given clusters (every stored cluster when None).

        Topics of clusters outside ``cluster_ids`` are counted as stale
        and not rewritten.
        """
        start = time.monotonic()
        result = SynthesisResult()

        clusters = await self._clusters.list_clusters()
        if cluster_ids is not None:
            wanted = set(cluster_ids)
            clusters = [cluster for cluster in clusters if cluster.id in wanted]
        if not clusters:
            logger.info("No clusters found, skipping topic synthesis")
            return result

        existing = await self._topics.list_topics()
        by_cluster: dict[int, Topic] = {}
        for topic in existing:
            if topic.metrics.cluster_id is not None:
                by_cluster[topic.metrics.cluster_id] = topic

        width = parallel or self._config.parallel
        active: set[int] = set()

        async def worker(cluster: Cluster, index: int) -> None:
            try:
                if await self._synthesize(cluster, by_cluster.get(cluster.id), result):
                    active.add(cluster.id)
            except Exception as e:
                result.errors += 1
                logger.error(
                    "Failed to synthesize topic",
                    cluster_id=cluster.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        logger.info("Synthesizing topics", clusters=len(clusters), workers=width)
        await run_with_concurrency(clusters, width, worker)

        result.clusters = len(active)
        result.stale = sum(1 for cluster_id in by_cluster if cluster_id not in active)
        if result.stale:
            logger.info("Stale topics kept", stale=result.stale)

        result.elapsed_seconds = time.monotonic() - start
        logger.info(
            "Topic synthesis complete",
            clusters=result.clusters,
            created=result.created,
            updated=result.updated,
            stale=result.stale,
            directions=result.directions,
            fallbacks=result.fallbacks,
            errors=result.errors,
            elapsed_seconds=round(result.elapsed_seconds, 2),
        )
        return result

    async def _analyze(
        self,
        cluster: Cluster,
        passages: list[str],
        count: int,
        previous: Topic | None,
        result: SynthesisResult,
    ) -> list[Direction]:
        log = logger.bind(cluster_id=cluster.id)
        try:
            directions = await self._client.analyze_directions(
                passages, {"count": count, "cluster_id": cluster.id}
            )
        except ConfigurationMissingError as e:
            log.warning("Direction analysis unavailable", reason=str(e))
            directions = []
        except Exception as e:
            log.error("Direction analysis failed", error=str(e), error_type=type(e).__name__)
            directions = []
        else:
            log.info("Cluster analyzed", directions=len(directions))

        if directions:
            return directions

        result.fallbacks += 1
        if previous is not None and previous.metrics.directions:
            self._metrics.direction_fallbacks.labels(kind="previous").inc()
            return previous.metrics.directions

        self._metrics.direction_fallbacks.labels(kind="placeholder").inc()
        return [build_fallback_direction(cluster.label, count)]

    async def _synthesize(
        self,
        cluster: Cluster,
        previous: Topic | None,
        result: SynthesisResult,
    ) -> bool:
        """Analyze and upsert one cluster's topic. Returns False for empty clusters."""
        sample = await self._topics.sample_members(cluster.id, self._config.sample_size)
        if not sample.passages:
            return False

        directions = await self._analyze(
            cluster,
            [p.text for p in sample.passages],
            sample.total,
            previous,
            result,
        )
        primary = directions[0]
        topic = Topic(
            id=previous.id if previous else None,
            title=pick_title(primary, cluster.label),
            summary=pick_summary(primary, sample.total),
            example_passages=sample.passages,
            metrics=TopicMetrics(
                count=sample.total,
                cluster_id=cluster.id,
                directions=directions,
            ),
        )

        if previous is not None:
            await self._topics.update_topic(previous.id, topic)
            result.updated += 1
            self._metrics.topics_upserted.labels(outcome="updated").inc()
        else:
            topic.id = await self._topics.create_topic(topic)
            result.created += 1
            self._metrics.topics_upserted.labels(outcome="created").inc()

        result.directions += len(directions)
        self._metrics.directions_produced.inc(len(directions))
        return True

    async def close(self) -> None:
        """Close the direction client if this synthesizer created it."""
        if self._owns_client:
            await self._client.close()
