"""
Core agglomeration module.

Exports:
- ClusteringEngine: Settings-driven entry point
- AgglomerativeAlgorithm: Johnson-style agglomeration driver
- BaseClusteringAlgorithm / ClusteringConfig: Algorithm contract
- Dendrogram: Finished merge tree
- Cluster, ClusterMerger, ClusteringContext
- Proximity matrix builder, selector and updater
- Separability metrics
"""

from dendro.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    check_points,
)
from dendro.core.cluster import Cluster
from dendro.core.context import ClusteringContext
from dendro.core.dendrogram import Dendrogram
from dendro.core.merger import ClusterMerger
from dendro.core.metrics import (
    METRICS,
    BaseMetric,
    ChebyshevDistance,
    CosineSimilarity,
    EuclideanDistance,
    ManhattanDistance,
    MinkowskiDistance,
    get_metric,
)
from dendro.core.proximity import (
    build_proximity_matrix,
    find_closest_pair,
    update_proximity_matrix,
)
from dendro.core.agglomerative_algorithm import AgglomerativeAlgorithm
from dendro.core.clustering_engine import ClusteringEngine

__all__ = [
    "ClusteringEngine",
    "AgglomerativeAlgorithm",
    "BaseClusteringAlgorithm",
    "ClusteringConfig",
    "check_points",
    "Cluster",
    "ClusterMerger",
    "ClusteringContext",
    "Dendrogram",
    "METRICS",
    "BaseMetric",
    "EuclideanDistance",
    "ManhattanDistance",
    "ChebyshevDistance",
    "MinkowskiDistance",
    "CosineSimilarity",
    "get_metric",
    "build_proximity_matrix",
    "find_closest_pair",
    "update_proximity_matrix",
]
