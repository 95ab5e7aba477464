"""
Cluster container used by the agglomeration driver.
"""

from typing import Iterable, Iterator, List, Optional

import numpy as np


class Cluster:
    """
    Ordered collection of points forming one group.

    The ClusterID is assigned at creation and never changes, so the driver
    never needs to map a cluster object back to its ID.
    """

    def __init__(self, cluster_id: int, points: Optional[Iterable[np.ndarray]] = None):
        self.cluster_id = cluster_id
        self.points: List[np.ndarray] = list(points) if points is not None else []

    def centroid(self) -> np.ndarray:
        """Per-dimension arithmetic mean of the member points."""
        if not self.points:
            raise ValueError(f"cluster {self.cluster_id} has no points")
        return np.mean(np.vstack(self.points), axis=0)

    def union(self, other: "Cluster", cluster_id: int) -> "Cluster":
        """
        New cluster holding this cluster's points followed by ``other``'s.

        Args:
            other: Cluster to merge with
            cluster_id: ID of the merged cluster

        Returns:
            Merged cluster; neither input is modified
        """
        return Cluster(cluster_id, self.points + other.points)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self.points)

    def __repr__(self) -> str:
        return f"Cluster(id={self.cluster_id}, size={len(self.points)})"
