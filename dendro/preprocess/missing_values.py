"""
Missing-value validation for point matrices.

The agglomeration core assumes NaN-free input: NaN never compares less
than anything, so it would silently distort the merge order. This pass runs
before imputation (which lives outside this package) and rejects matrices
that no imputation could repair.
"""

import numpy as np

from dendro.core.base_clustering import PointMatrix, check_points
from dendro.core.context import ClusteringContext
from dendro.utils.error_handling import MissingValueError


class MissingValueValidator:
    """Checks a point matrix before imputation."""

    def __init__(self, verbose: bool = False):
        self.context = ClusteringContext(verbose=verbose, name="missing_value_validator")

    @property
    def has_warnings(self) -> bool:
        return self.context.has_warnings

    def check(self, data: PointMatrix) -> bool:
        """
        Validate ``data`` for imputation.

        Args:
            data: Point matrix (m x n)

        Returns:
            True if the matrix holds at least one NaN

        Raises:
            InvalidInputError: Empty or ragged data
            MissingValueError: A column is entirely NaN
        """
        points = check_points(data)
        self.context.info("missing_value_check_started", shape=list(points.shape))
        nan_mask = np.isnan(points)

        all_nan_columns = np.flatnonzero(nan_mask.all(axis=0))
        if all_nan_columns.size:
            column = int(all_nan_columns[0])
            message = f"column {column} is entirely NaN"
            self.context.error("missing_value_check_failed", column=column)
            raise MissingValueError(message, details={"column": column})

        seen_nan = bool(nan_mask.any())
        if not seen_nan:
            self.context.warn("no_nans_in_matrix", detail="imputation will not have any effect")

        self.context.info("missing_value_check_passed", n_missing=int(nan_mask.sum()))
        return seen_nan
