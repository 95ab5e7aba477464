"""
Proximity matrix construction, closest-pair selection and maintenance.

Row/column ``k`` of a proximity matrix always corresponds to position ``k``
of the driver's active set. Only the strict upper triangle is ever read;
builders and updaters still fill both triangles so the matrix stays
symmetric for any symmetric metric.
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from dendro.core.base_clustering import check_points
from dendro.core.cluster import Cluster
from dendro.core.context import ClusteringContext
from dendro.core.metrics import BaseMetric


def build_proximity_matrix(
    data: np.ndarray,
    metric: BaseMetric,
    context: Optional[ClusteringContext] = None,
) -> np.ndarray:
    """
    Compute the initial m x m proximity matrix of the raw points.

    Similarity metrics already report negated similarity through
    ``separability``, so the result is "smaller = closer" in either mode.

    Args:
        data: Point matrix (m x n)
        metric: Separability metric
        context: Optional clustering context for logging

    Returns:
        Symmetric m x m matrix with a zero diagonal

    Raises:
        InvalidInputError: If ``data`` is empty or ragged
    """
    data = check_points(data)
    m = data.shape[0]

    matrix = np.zeros((m, m), dtype=float)
    for i in range(m - 1):
        for j in range(i + 1, m):
            value = metric.separability(data[i], data[j])
            matrix[i, j] = value
            matrix[j, i] = value

    if context is not None:
        context.info(
            "proximity_matrix_built",
            shape=[m, m],
            metric=metric.name,
            mode=metric.mode.value,
        )

    return matrix


def find_closest_pair(matrix: np.ndarray) -> Tuple[int, int]:
    """
    Locate the minimal entry of the strict upper triangle.

    Tie-break: pairs are scanned row-major (i ascending, then j ascending
    from i + 1) and only a strictly smaller value replaces the current
    minimum, so the lexicographically smallest (i, j) wins among exact ties.
    ``np.triu_indices`` enumerates pairs in that same order and
    ``np.nanargmin`` returns the first minimum, skipping NaN entries.

    Args:
        matrix: Current k x k proximity matrix, k >= 2

    Returns:
        (i, j) with i < j
    """
    k = matrix.shape[0]
    if k < 2:
        raise ValueError(f"closest pair needs at least 2 active clusters, got {k}")

    rows, cols = np.triu_indices(k, 1)
    best = int(np.nanargmin(matrix[rows, cols]))
    return int(rows[best]), int(cols[best])


def update_proximity_matrix(
    matrix: np.ndarray,
    i: int,
    j: int,
    survivors: Sequence[Cluster],
    merged_centroid: np.ndarray,
    metric: BaseMetric,
) -> np.ndarray:
    """
    Shrink the matrix after merging positions ``i`` and ``j``.

    Rows and columns ``i`` and ``j`` are dropped; the remaining entries keep
    their relative order. The merged cluster becomes the last row/column,
    its entries being the separability between its centroid and each
    survivor's centroid (centroid linkage, recomputed every iteration).

    Args:
        matrix: Old k x k proximity matrix
        i: Lower merged position
        j: Higher merged position
        survivors: The k - 2 unmerged clusters, in active-set order
        merged_centroid: Centroid of the merged cluster
        metric: Separability metric

    Returns:
        New (k - 1) x (k - 1) matrix; ``matrix`` is left untouched
    """
    k = matrix.shape[0]
    if len(survivors) != k - 2:
        raise ValueError(
            f"expected {k - 2} surviving clusters for a {k}x{k} matrix, got {len(survivors)}"
        )

    keep = [idx for idx in range(k) if idx != i and idx != j]
    new_k = k - 1

    updated = np.zeros((new_k, new_k), dtype=float)
    # Fancy indexing copies, so no storage is shared with the old matrix
    updated[:-1, :-1] = matrix[np.ix_(keep, keep)]

    for row, cluster in enumerate(survivors):
        value = metric.separability(cluster.centroid(), merged_centroid)
        updated[row, -1] = value
        updated[-1, row] = value

    return updated
