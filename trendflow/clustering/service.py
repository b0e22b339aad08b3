"""
Incremental clustering: regroup every embedding, then reconcile identities.

Each run clusters the full embedding set from scratch and maps the new
centroids onto previously stored clusters by cosine similarity, so a
recurring theme keeps its cluster id (and therefore its topic) across
runs. Matching is greedy in result order: the first new centroid to
claim an existing cluster keeps it.
"""

import time
from collections.abc import Sequence

import numpy as np
import structlog

from trendflow.clustering.config import ClusteringConfig
from trendflow.clustering.kmeans import cosine_similarity, determine_optimal_k, kmeans
from trendflow.clustering.repository import ClusterRepository
from trendflow.clustering.schemas import Cluster, ClusteringResult
from trendflow.embedding.repository import EmbeddingRepository
from trendflow.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)


def match_clusters(
    new_centroids: Sequence,
    existing: Sequence[Cluster],
    threshold: float = 0.75,
) -> list[int | None]:
    """
    Map each new centroid to an existing cluster id, or None.

    For each new centroid in order, the most similar existing cluster not
    yet claimed in this call wins if its similarity is strictly above
    ``threshold``.
    """
    claimed: set[int] = set()
    matches: list[int | None] = []

    for centroid in new_centroids:
        best_id = None
        best_similarity = threshold
        for cluster in existing:
            if cluster.id in claimed or cluster.centroid is None or len(cluster.centroid) == 0:
                continue
            similarity = cosine_similarity(centroid, cluster.centroid)
            if similarity > best_similarity:
                best_similarity = similarity
                best_id = cluster.id

        if best_id is not None:
            claimed.add(best_id)
        matches.append(best_id)

    return matches


class IncrementalClusteringService:
    """
    Clusters all embeddings of one model and persists the reconciled result.

    Usage:
        service = IncrementalClusteringService(ClusterRepository(db), EmbeddingRepository(db), model)
        result = await service.run()
    """

    def __init__(
        self,
        clusters: ClusterRepository,
        embeddings: EmbeddingRepository,
        model: str,
        config: ClusteringConfig | None = None,
        clock=time.time,
    ):
        self._clusters = clusters
        self._embeddings = embeddings
        self._model = model
        self._config = config or ClusteringConfig()
        self._clock = clock
        self._rng = np.random.default_rng(self._config.seed)
        self._metrics = get_metrics()

    def _new_label(self, index: int) -> str:
        return f"cluster_{int(self._clock() * 1000)}_{index}"

    async def run(self) -> ClusteringResult:
        start = time.monotonic()
        result = ClusteringResult()

        passage_ids, vectors = await self._embeddings.get_all_embeddings(self._model)
        result.samples = len(passage_ids)
        if result.samples < self._config.min_samples:
            result.skipped_reason = (
                f"not enough embeddings ({result.samples} < {self._config.min_samples})"
            )
            logger.info("Clustering skipped", reason=result.skipped_reason)
            return result

        k = determine_optimal_k(
            vectors,
            max_k=self._config.max_k,
            iterations=self._config.selection_iterations,
            elbow_ratio=self._config.elbow_ratio,
            rng=self._rng,
        )
        clustered = kmeans(vectors, k, self._config.max_iterations, self._rng)
        result.k = clustered.k
        logger.info("k-means finished", samples=result.samples, k=k, iterations=clustered.iterations)

        existing = await self._clusters.list_clusters()
        matches = match_clusters(clustered.centroids, existing, self._config.match_threshold)

        cluster_ids: list[int] = []
        for index, (centroid, matched_id) in enumerate(zip(clustered.centroids, matches)):
            if matched_id is not None:
                await self._clusters.update_centroid(matched_id, centroid)
                cluster_ids.append(matched_id)
                result.updated += 1
            else:
                created = await self._clusters.create_cluster(self._new_label(index), centroid)
                cluster_ids.append(created.id)
                result.created += 1

        members: dict[int, list[int]] = {cluster_id: [] for cluster_id in cluster_ids}
        for passage_id, label in zip(passage_ids, clustered.labels):
            members[cluster_ids[int(label)]].append(passage_id)
        await self._clusters.replace_memberships(members, self._config.membership_score)

        result.cluster_ids = cluster_ids
        result.active = len(set(cluster_ids))
        result.elapsed_seconds = time.monotonic() - start

        self._metrics.clusters_reconciled.labels(outcome="created").inc(result.created)
        self._metrics.clusters_reconciled.labels(outcome="updated").inc(result.updated)
        logger.info(
            "Clustering complete",
            samples=result.samples,
            k=result.k,
            created=result.created,
            updated=result.updated,
            active=result.active,
            existing=len(existing),
            elapsed_seconds=round(result.elapsed_seconds, 2),
        )
        return result
