"""
Dendrogram: the finished merge tree of one agglomeration run.
"""

from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from dendro.core.context import ClusteringContext
from dendro.core.metrics import BaseMetric
from dendro.schemas.data_models import DendrogramSummary, MergeStep


class Dendrogram:
    """
    Complete MergeRecord for IDs 1..2m-1 plus the data and clustering context.

    IDs >= m are leaves (``None`` in the record); IDs below m map to their
    ordered child pair. The object is immutable once built: the record is
    exposed through a read-only mapping and the data copy is non-writeable.
    """

    def __init__(
        self,
        merge_record: Mapping[int, Optional[Tuple[int, int]]],
        data: np.ndarray,
        metric: BaseMetric,
        context: ClusteringContext,
        merge_heights: Optional[Mapping[int, float]] = None,
        read_only: bool = True,
    ):
        self._record = MappingProxyType(dict(sorted(merge_record.items())))
        self._heights = MappingProxyType(dict(merge_heights or {}))
        self.data = data
        self.metric = metric
        self.context = context

        if read_only:
            self.data.setflags(write=False)

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def merge_record(self) -> Mapping[int, Optional[Tuple[int, int]]]:
        return self._record

    @property
    def merge_heights(self) -> Mapping[int, float]:
        return self._heights

    @property
    def n_points(self) -> int:
        return (len(self._record) + 1) // 2

    @property
    def n_merges(self) -> int:
        return self.n_points - 1

    @property
    def root_id(self) -> int:
        """ID of the final cluster: 1, or the lone leaf when m == 1."""
        return 1

    @property
    def leaf_ids(self) -> List[int]:
        return list(range(2 * self.n_points - 1, self.n_points - 1, -1))

    @property
    def merge_ids(self) -> List[int]:
        """Merge node IDs in the order the merges happened."""
        return list(range(self.n_points - 1, 0, -1))

    def __len__(self) -> int:
        return len(self._record)

    def __contains__(self, cluster_id: object) -> bool:
        return cluster_id in self._record

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def is_leaf(self, cluster_id: int) -> bool:
        return self._record[cluster_id] is None

    def children(self, cluster_id: int) -> Optional[Tuple[int, int]]:
        return self._record[cluster_id]

    def height(self, cluster_id: int) -> Optional[float]:
        """Proximity at which ``cluster_id`` was formed; ``None`` for leaves."""
        if cluster_id not in self._record:
            raise KeyError(cluster_id)
        return self._heights.get(cluster_id)

    def leaf_index(self, cluster_id: int) -> int:
        """Input row of a leaf."""
        if not self.is_leaf(cluster_id):
            raise ValueError(f"cluster {cluster_id} is not a leaf")
        return 2 * self.n_points - 1 - cluster_id

    def leaves_under(self, cluster_id: int) -> List[int]:
        """
        Input rows covered by ``cluster_id``, left child first.

        Args:
            cluster_id: Any ID in the record

        Returns:
            List of row indices into ``data``
        """
        if cluster_id not in self._record:
            raise KeyError(cluster_id)

        rows = []
        stack = [cluster_id]
        while stack:
            node = stack.pop()
            kids = self._record[node]
            if kids is None:
                rows.append(self.leaf_index(node))
            else:
                # Right pushed first so the left subtree is visited first
                stack.append(kids[1])
                stack.append(kids[0])
        return rows

    def merge_steps(self) -> List[MergeStep]:
        """All merges in the order they happened."""
        sizes: Dict[int, int] = {leaf: 1 for leaf in self.leaf_ids}
        steps = []
        for node in self.merge_ids:
            left, right = self._record[node]
            sizes[node] = sizes[left] + sizes[right]
            steps.append(
                MergeStep(
                    node_id=node,
                    left_id=left,
                    right_id=right,
                    height=self._heights.get(node),
                    size=sizes[node],
                )
            )
        return steps

    def summary(self, include_merges: bool = False) -> DendrogramSummary:
        return DendrogramSummary(
            n_points=self.n_points,
            n_features=int(self.data.shape[1]),
            n_nodes=len(self._record),
            n_merges=self.n_merges,
            root_id=self.root_id,
            metric=self.metric.name,
            metric_mode=self.metric.mode,
            max_height=max(self._heights.values()) if self._heights else None,
            merges=self.merge_steps() if include_merges else [],
        )

    def __repr__(self) -> str:
        return (
            f"Dendrogram(n_points={self.n_points}, n_merges={self.n_merges}, "
            f"metric={self.metric.name!r})"
        )
