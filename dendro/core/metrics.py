"""
Pluggable separability metrics.

Every metric exposes ``separability(a, b)`` with "smaller = closer"
semantics, which is all the agglomeration core relies on. Similarity
metrics additionally expose ``similarity(a, b)``; their separability is the
negated similarity so a proximity matrix built from them can be scanned for
its minimum exactly like a distance matrix.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Type

import numpy as np

from dendro.schemas.data_models import MetricMode
from dendro.utils.error_handling import ConfigurationError, InvalidMetricError


class BaseMetric(ABC):
    """
    Abstract base class for separability metrics.

    Implementations must be pure functions of their two vectors so that
    matrix cells can be computed in any order.
    """

    name: str = "base"
    mode: MetricMode = MetricMode.DISTANCE

    @abstractmethod
    def separability(self, a: np.ndarray, b: np.ndarray) -> float:
        """
        Separability between two vectors; smaller means closer.

        Args:
            a: First vector (D,)
            b: Second vector (D,)

        Returns:
            Separability as a float
        """
        pass

    @property
    def is_similarity(self) -> bool:
        return self.mode == MetricMode.SIMILARITY

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class EuclideanDistance(BaseMetric):
    name = "euclidean"

    def separability(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(np.linalg.norm(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)))


class ManhattanDistance(BaseMetric):
    name = "manhattan"

    def separability(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(np.sum(np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float))))


class ChebyshevDistance(BaseMetric):
    name = "chebyshev"

    def separability(self, a: np.ndarray, b: np.ndarray) -> float:
        diff = np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float))
        return float(np.max(diff)) if diff.size else 0.0


class MinkowskiDistance(BaseMetric):
    """Minkowski distance of order ``p`` (p=1 Manhattan, p=2 Euclidean)."""

    name = "minkowski"

    def __init__(self, p: float = 2.0):
        if p < 1:
            raise ConfigurationError(
                f"Minkowski order must be >= 1, got {p}",
                details={"p": p},
            )
        self.p = float(p)

    def separability(self, a: np.ndarray, b: np.ndarray) -> float:
        diff = np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float))
        return float(np.sum(diff ** self.p) ** (1.0 / self.p))

    def __repr__(self) -> str:
        return f"MinkowskiDistance(p={self.p})"


class CosineSimilarity(BaseMetric):
    """
    Cosine similarity in [-1, 1]; separability is its negation.

    A zero vector has no direction, its similarity to anything is 0.
    """

    name = "cosine"
    mode = MetricMode.SIMILARITY

    def similarity(self, a: np.ndarray, b: np.ndarray) -> float:
        a = np.asarray(a, dtype=float)
        b = np.asarray(b, dtype=float)
        norm = np.linalg.norm(a) * np.linalg.norm(b)
        if norm == 0:
            return 0.0
        return float(np.dot(a, b) / norm)

    def separability(self, a: np.ndarray, b: np.ndarray) -> float:
        return -self.similarity(a, b)


# Registry of available metrics
METRICS: Dict[str, Type[BaseMetric]] = {
    "euclidean": EuclideanDistance,
    "manhattan": ManhattanDistance,
    "chebyshev": ChebyshevDistance,
    "minkowski": MinkowskiDistance,
    "cosine": CosineSimilarity,
}


def get_metric(name: str, **params: Any) -> BaseMetric:
    """
    Instantiate a registered metric by name.

    Args:
        name: Metric name (case-insensitive)
        **params: Metric constructor parameters (e.g. ``p`` for minkowski)

    Returns:
        Metric instance

    Raises:
        InvalidMetricError: If the metric is not registered
        ConfigurationError: If the parameters are rejected
    """
    key = name.lower()
    if key not in METRICS:
        raise InvalidMetricError(
            f"Unsupported metric '{name}'. Supported: {list(METRICS.keys())}",
            details={"metric": name},
        )

    try:
        return METRICS[key](**params)
    except TypeError as e:
        raise ConfigurationError(
            f"Invalid parameters for metric '{key}': {e}",
            details={"metric": key, "params": params},
        ) from e
