"""
Base Hierarchical Clustering Interface.

Defines the contract for dendrogram-building algorithms and the input
validation they share.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from dendro.utils.error_handling import InvalidInputError

PointMatrix = Union[np.ndarray, Sequence[Sequence[float]]]


@dataclass
class ClusteringConfig:
    """Configuration for hierarchical clustering algorithms."""

    algorithm_name: str = "johnson"
    params: Dict[str, Any] = field(default_factory=dict)
    verbose: bool = False
    copy_data: bool = True
    deadline_seconds: Optional[float] = None
    progress_log_interval: int = 100
    track_build_time: bool = True
    track_memory_usage: bool = False


def check_points(data: PointMatrix) -> np.ndarray:
    """
    Validate a point matrix and return it as a 2-D float array.

    Args:
        data: m x n matrix as an array or a sequence of rows

    Returns:
        Float array (m x n); may share memory with ``data``

    Raises:
        InvalidInputError: Empty data, ragged rows, zero columns or non 2-D input
    """
    if isinstance(data, np.ndarray):
        if data.ndim == 1 and data.dtype == object:
            # numpy keeps ragged rows as a 1-D object array
            return check_points(list(data))
        if data.ndim != 2:
            raise InvalidInputError(
                f"point matrix must be 2-D, got {data.ndim}-D",
                details={"shape": list(data.shape)},
            )
        if data.shape[0] < 1:
            raise InvalidInputError("empty data")
        if data.shape[1] < 1:
            raise InvalidInputError("points must have at least one dimension")
        return np.asarray(data, dtype=float)

    rows = list(data)
    if len(rows) < 1:
        raise InvalidInputError("empty data")

    try:
        lengths = sorted({len(row) for row in rows})
    except TypeError:
        raise InvalidInputError("every point must be a sequence of coordinates") from None
    if len(lengths) > 1:
        raise InvalidInputError(
            "rows have unequal length",
            details={"row_lengths": lengths},
        )
    if lengths[0] < 1:
        raise InvalidInputError("points must have at least one dimension")

    try:
        points = np.asarray(rows, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"coordinates must be numeric: {e}") from e
    # Nested rows still have to come out 2-D
    return check_points(points)


class BaseClusteringAlgorithm(ABC):
    """
    Abstract base class for dendrogram-building algorithms.
    """

    def __init__(self, config: ClusteringConfig):
        """
        Initialize clustering algorithm.

        Args:
            config: Clustering configuration
        """
        self.config = config
        self.name = config.algorithm_name

    @abstractmethod
    def build(self, data: PointMatrix, cancel_event: Optional[threading.Event] = None):
        """
        Build a dendrogram over the rows of ``data``.

        Args:
            data: Point matrix (m x n)
            cancel_event: Optional event checked between iterations

        Returns:
            Dendrogram
        """
        pass

    def _prepare_input(self, data: PointMatrix) -> np.ndarray:
        """
        Validate ``data`` and take a private copy if configured to.

        Args:
            data: Point matrix (m x n)

        Returns:
            Validated float array
        """
        points = check_points(data)
        if self.config.copy_data and points is data:
            points = points.copy()
        return points
