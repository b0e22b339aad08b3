"""
Vector math for clustering: similarity, distance, k-means and k selection.

All functions take plain sequences or numpy arrays and never touch
storage, so they can be exercised directly in tests.
"""

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class KMeansResult:
    """Labels per input row (each in ``[0, k)``) and exactly k centroids."""

    labels: np.ndarray
    centroids: np.ndarray
    iterations: int

    @property
    def k(self) -> int:
        return len(self.centroids)


def cosine_similarity(a, b) -> float:
    """Cosine of the angle between a and b; 0.0 for zero vectors or mismatched widths."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return 0.0

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def euclidean_distance(a, b) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)))


def _assign(vectors: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    # Ties go to the lowest centroid index.
    distances = np.linalg.norm(vectors[:, None, :] - centroids[None, :, :], axis=2)
    return np.argmin(distances, axis=1)


def kmeans(
    vectors,
    k: int,
    max_iterations: int = 100,
    rng: np.random.Generator | None = None,
) -> KMeansResult:
    """
    Lloyd's k-means seeded from k distinct sample points.

    Stops when no point changes assignment or after ``max_iterations``.
    A centroid that receives no points in an iteration keeps its
    previous position.

    Args:
        vectors: (n, d) samples
        k: Number of clusters, 1 <= k <= n
        max_iterations: Assignment/update rounds before giving up
        rng: Source of randomness for the seed points

    Raises:
        ValueError: If k is outside [1, n]
    """
    data = np.asarray(vectors, dtype=np.float64)
    if data.ndim != 2:
        raise ValueError("vectors must be a 2-D array")

    n = data.shape[0]
    if k < 1 or k > n:
        raise ValueError(f"k must be between 1 and {n}, got {k}")

    rng = rng or np.random.default_rng()
    seeds = rng.choice(n, size=k, replace=False)
    centroids = data[seeds].copy()
    labels = np.full(n, -1, dtype=np.int64)

    iterations = 0
    while iterations < max_iterations:
        iterations += 1
        new_labels = _assign(data, centroids)
        changed = not np.array_equal(new_labels, labels)
        labels = new_labels

        for j in range(k):
            members = data[labels == j]
            if len(members):
                centroids[j] = members.mean(axis=0)

        if not changed:
            break

    return KMeansResult(labels=labels, centroids=centroids, iterations=iterations)


def within_cluster_distance(vectors, result: KMeansResult) -> float:
    """Sum of each point's distance to its assigned centroid."""
    data = np.asarray(vectors, dtype=np.float64)
    return float(np.linalg.norm(data - result.centroids[result.labels], axis=1).sum())


def determine_optimal_k(
    vectors,
    max_k: int = 10,
    iterations: int = 50,
    elbow_ratio: float = 1.5,
    rng: np.random.Generator | None = None,
) -> int:
    """
    Pick k with the elbow heuristic.

    Scores k = 2 .. min(max_k, n // 2) by total within-cluster distance
    and picks the k after the largest single-step improvement that is
    also more than ``elbow_ratio`` times the following step's. Defaults
    to 2 when no step qualifies. Small inputs (n < 10) short-circuit to
    max(2, n // 3).
    """
    data = np.asarray(vectors, dtype=np.float64)
    n = len(data)
    if n < 10:
        return max(2, n // 3)

    rng = rng or np.random.default_rng()
    scores = [
        within_cluster_distance(data, kmeans(data, k, iterations, rng))
        for k in range(2, min(max_k, n // 2) + 1)
    ]

    best_k = 2
    max_improvement = 0.0
    for i in range(1, len(scores) - 1):
        improvement = scores[i - 1] - scores[i]
        next_improvement = scores[i] - scores[i + 1]
        if improvement > max_improvement and improvement > next_improvement * elbow_ratio:
            max_improvement = improvement
            best_k = i + 2

    logger.debug(f"k selection scores={[round(s, 3) for s in scores]} chosen k={best_k}")
    return best_k
