"""
Agglomerative Hierarchical Clustering (Johnson's algorithm).

Builds the full merge tree over m points:

1. Start with m singleton clusters and the m x m proximity matrix.
2. Select the closest active pair (r), (s).
3. Merge them into a new cluster, recording the level d[(r), (s)].
4. Drop rows/columns r and s from the matrix and append one for the merged
   cluster, measured centroid to centroid.
5. Stop when one cluster remains.

Strengths: exact, deterministic (documented tie-break), full hierarchy
Weaknesses: O(m^2) memory, O(m^3) time
"""

import threading
import time
from typing import List, Optional

import numpy as np

from dendro.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    PointMatrix,
)
from dendro.core.cluster import Cluster
from dendro.core.context import ClusteringContext
from dendro.core.dendrogram import Dendrogram
from dendro.core.merger import ClusterMerger
from dendro.core.metrics import BaseMetric, get_metric
from dendro.core.proximity import (
    build_proximity_matrix,
    find_closest_pair,
    update_proximity_matrix,
)
from dendro.schemas.data_models import AgglomerationState
from dendro.utils.advanced_logging import (
    BatchLogger,
    MetricsLogger,
    PerformanceLogger,
    get_logger,
)
from dendro.utils.error_handling import (
    AgglomerationCancelledError,
    AgglomerationStateError,
    AgglomerationTimeoutError,
)

logger = get_logger(__name__)


class AgglomerativeAlgorithm(BaseClusteringAlgorithm):
    """
    Johnson-style agglomeration driver with centroid-linkage updates.

    All mutable state of a run (active set, proximity matrix, ID counter,
    merge record) lives inside one ``build`` call. A driver may be reused
    for further builds but never for two builds at once.
    """

    def __init__(
        self,
        config: ClusteringConfig,
        metric: Optional[BaseMetric] = None,
        context: Optional[ClusteringContext] = None,
    ):
        """
        Initialize the driver.

        Args:
            config: Clustering configuration; ``params["metric"]`` and
                ``params["metric_params"]`` select the metric when
                ``metric`` is not given
            metric: Separability metric instance
            context: Clustering context (defaults to one built from config)
        """
        super().__init__(config)

        if metric is None:
            metric = get_metric(
                config.params.get("metric", "euclidean"),
                **config.params.get("metric_params", {}),
            )
        self.metric = metric
        self.context = context or ClusteringContext(verbose=config.verbose, name=self.name)
        self.state = AgglomerationState.INITIALIZING
        self._lock = threading.Lock()

    def _transition(self, state: AgglomerationState) -> None:
        self.context.debug("state_transition", previous=self.state.value, current=state.value)
        self.state = state

    def _check_interrupts(
        self,
        started: float,
        merges_done: int,
        cancel_event: Optional[threading.Event],
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self.context.error("agglomeration_cancelled", merges_done=merges_done)
            raise AgglomerationCancelledError(
                "agglomeration cancelled",
                details={"merges_done": merges_done},
            )

        deadline = self.config.deadline_seconds
        if deadline is not None and time.monotonic() - started > deadline:
            self.context.error(
                "agglomeration_deadline_exceeded",
                deadline_seconds=deadline,
                merges_done=merges_done,
            )
            raise AgglomerationTimeoutError(
                f"agglomeration exceeded deadline of {deadline}s",
                details={"deadline_seconds": deadline, "merges_done": merges_done},
            )

    def build(
        self,
        data: PointMatrix,
        cancel_event: Optional[threading.Event] = None,
    ) -> Dendrogram:
        """
        Run the agglomeration to completion.

        Args:
            data: Point matrix (m x n), no NaN
            cancel_event: Optional event checked between iterations

        Returns:
            Dendrogram with 2m - 1 nodes

        Raises:
            InvalidInputError: Empty or ragged data
            AgglomerationStateError: Another build is running on this driver
            AgglomerationCancelledError: ``cancel_event`` was set
            AgglomerationTimeoutError: ``config.deadline_seconds`` elapsed
        """
        if not self._lock.acquire(blocking=False):
            raise AgglomerationStateError("a build is already in progress on this driver")

        try:
            self.state = AgglomerationState.INITIALIZING
            if not self.config.track_build_time:
                return self._run(data, cancel_event)

            with PerformanceLogger(
                "agglomeration",
                logger=logger,
                log_level="info" if self.context.verbose else "debug",
                metric=self.metric.name,
            ) as perf:
                dendrogram = self._run(data, cancel_event)
                perf.item_count = dendrogram.n_merges
            return dendrogram
        except Exception:
            # An aborted run leaves nothing behind to resume
            self.state = AgglomerationState.INITIALIZING
            raise
        finally:
            self._lock.release()

    def _run(
        self,
        data: PointMatrix,
        cancel_event: Optional[threading.Event],
    ) -> Dendrogram:
        context = self.context
        started = time.monotonic()

        if self.config.copy_data:
            context.info("creating_local_data_copy")
        points = self._prepare_input(data)
        m = points.shape[0]

        context.info("agglomeration_planned", total_clusters=2 * m - 1, n_points=m)

        merger = ClusterMerger(m, context)
        active: List[Cluster] = merger.allocate_leaves(points)

        if m == 1:
            context.warn("single_point_dataset", detail="returning single leaf")
            self._transition(AgglomerationState.DONE)
            return self._assemble(merger, points)

        matrix = build_proximity_matrix(points, self.metric, context)
        context.info("agglomeration_started", n_merges=m - 1)

        progress = None
        if context.verbose:
            progress = BatchLogger(
                total_items=m - 1,
                operation="agglomeration",
                log_interval=self.config.progress_log_interval,
                logger=context.logger,
            )

        self._transition(AgglomerationState.ITERATING)
        merges_done = 0
        while len(active) > 1:
            self._check_interrupts(started, merges_done, cancel_event)

            i, j = find_closest_pair(matrix)
            merged = merger.merge(active, i, j, height=matrix[i, j])
            matrix = update_proximity_matrix(
                matrix,
                i,
                j,
                active[:-1],
                merged.centroid(),
                self.metric,
            )

            merges_done += 1
            if progress is not None:
                progress.update()

        if progress is not None:
            progress.complete()

        if self.config.track_memory_usage:
            MetricsLogger(context.logger).log_cpu_memory(context="agglomeration_done")

        self._transition(AgglomerationState.DONE)
        return self._assemble(merger, points)

    def _assemble(self, merger: ClusterMerger, points: np.ndarray) -> Dendrogram:
        return Dendrogram(
            merge_record=merger.merge_record,
            data=points,
            metric=self.metric,
            context=self.context,
            merge_heights=merger.merge_heights,
            read_only=self.config.copy_data,
        )
