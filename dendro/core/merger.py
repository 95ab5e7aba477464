"""
Cluster merging and ClusterID bookkeeping.

IDs come from a single counter that only ever decreases. With m points it
starts at 2m - 1: leaves take 2m - 1 down to m in input order, then each
merge takes the next ID, m - 1 down to 1. Exactly 2m - 1 IDs are issued
and the last merge always receives ID 1.
"""

from typing import Dict, List, Optional, Tuple

import numpy as np

from dendro.core.cluster import Cluster
from dendro.core.context import ClusteringContext

MergeRecord = Dict[int, Optional[Tuple[int, int]]]


class ClusterMerger:
    """
    Allocates ClusterIDs and records parent/child relations.

    One merger serves exactly one build.
    """

    def __init__(self, n_points: int, context: Optional[ClusteringContext] = None):
        self.n_points = n_points
        self.context = context or ClusteringContext()
        self.next_id = 2 * n_points - 1
        self.merge_record: MergeRecord = {}
        self.merge_heights: Dict[int, float] = {}

    @property
    def total_ids(self) -> int:
        return 2 * self.n_points - 1

    def _allocate_id(self) -> int:
        if self.next_id < 1:
            raise RuntimeError(f"all {self.total_ids} cluster IDs have been issued")
        cluster_id = self.next_id
        self.next_id -= 1
        return cluster_id

    def allocate_leaves(self, data: np.ndarray) -> List[Cluster]:
        """
        Create one singleton cluster per row, in input order.

        Args:
            data: Point matrix (m x n)

        Returns:
            Active set of m leaf clusters with IDs 2m - 1 ... m
        """
        leaves = []
        for point in data:
            leaf = Cluster(self._allocate_id(), [point])
            self.merge_record[leaf.cluster_id] = None
            leaves.append(leaf)

        self.context.info(
            "leaves_allocated",
            n_leaves=len(leaves),
            total_clusters=self.total_ids,
        )
        return leaves

    def merge(
        self,
        active: List[Cluster],
        i: int,
        j: int,
        height: Optional[float] = None,
    ) -> Cluster:
        """
        Merge the clusters at active-set positions ``i`` and ``j``.

        The record keeps (ID at i, ID at j) in selection order. Both inputs
        leave the active set and the merged cluster is appended at the end.

        Args:
            active: Active set, modified in place
            i: Lower position
            j: Higher position
            height: Proximity value at which the pair was selected

        Returns:
            The merged cluster
        """
        if not 0 <= i < j < len(active):
            raise IndexError(f"invalid merge positions ({i}, {j}) for {len(active)} active clusters")

        left = active[i]
        right = active[j]
        merged = left.union(right, self._allocate_id())

        self.merge_record[merged.cluster_id] = (left.cluster_id, right.cluster_id)
        if height is not None:
            self.merge_heights[merged.cluster_id] = float(height)

        # j first: removing i would shift j left by one
        del active[j]
        del active[i]
        active.append(merged)

        self.context.trace(
            "clusters_merged",
            positions=[i, j],
            children=[left.cluster_id, right.cluster_id],
            cluster_id=merged.cluster_id,
            size=len(merged),
            height=height,
        )
        return merged
