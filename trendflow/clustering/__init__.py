"""k-means clustering with cross-run cluster identity."""

from trendflow.clustering.config import ClusteringConfig
from trendflow.clustering.kmeans import (
    KMeansResult,
    cosine_similarity,
    determine_optimal_k,
    euclidean_distance,
    kmeans,
    within_cluster_distance,
)
from trendflow.clustering.repository import ClusterRepository
from trendflow.clustering.schemas import Cluster, ClusteringResult
from trendflow.clustering.service import IncrementalClusteringService, match_clusters

__all__ = [
    "Cluster",
    "ClusterRepository",
    "ClusteringConfig",
    "ClusteringResult",
    "IncrementalClusteringService",
    "KMeansResult",
    "cosine_similarity",
    "determine_optimal_k",
    "euclidean_distance",
    "kmeans",
    "match_clusters",
    "within_cluster_distance",
]
