"""Cluster types."""

from dataclasses import dataclass, field
from datetime import datetime

import numpy as np


@dataclass
class Cluster:
    """A durable cluster identity and its latest centroid."""

    id: int
    label: str
    centroid: np.ndarray
    created_at: datetime | None = None


@dataclass
class ClusteringResult:
    samples: int = 0
    k: int = 0
    created: int = 0
    updated: int = 0
    active: int = 0
    skipped_reason: str | None = None
    elapsed_seconds: float = 0.0
    cluster_ids: list[int] = field(default_factory=list)
