"""
Clustering Engine - entry point for dendrogram builds.

Resolves the metric and settings, gates the input for missing values and
drives one agglomeration under its own correlation ID.
"""

import threading
import uuid
from typing import Any, Dict, Optional

import numpy as np

from dendro.config.settings_loader import Settings, get_settings
from dendro.core.agglomerative_algorithm import AgglomerativeAlgorithm
from dendro.core.base_clustering import ClusteringConfig, PointMatrix, check_points
from dendro.core.context import ClusteringContext
from dendro.core.dendrogram import Dendrogram
from dendro.core.metrics import METRICS, BaseMetric, get_metric
from dendro.utils.advanced_logging import LogContext, get_logger
from dendro.utils.error_handling import MissingValueError

logger = get_logger(__name__)


class ClusteringEngine:
    """
    Builds dendrograms with settings-driven defaults.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize clustering engine.

        Args:
            settings: Settings to use (defaults to the global settings)
        """
        self.settings = settings or get_settings()
        logger.debug("clustering_engine_initialized", metric=self.settings.agglomeration.metric)

    def build_dendrogram(
        self,
        vectors: PointMatrix,
        metric: Optional[str] = None,
        metric_params: Optional[Dict[str, Any]] = None,
        verbose: Optional[bool] = None,
        cancel_event: Optional[threading.Event] = None,
        build_id: Optional[str] = None,
    ) -> Dendrogram:
        """
        Build the full merge tree over ``vectors``.

        Args:
            vectors: Point matrix (m x n)
            metric: Metric name (defaults to settings)
            metric_params: Metric parameters (defaults to settings when the
                metric also comes from settings)
            verbose: Override the configured verbosity
            cancel_event: Optional event checked between merges
            build_id: Correlation ID for log events (generated if omitted)

        Returns:
            Dendrogram

        Raises:
            InvalidInputError: Empty or ragged input
            InvalidMetricError: Unknown metric name
            MissingValueError: Input contains NaN and rejection is enabled
        """
        agg = self.settings.agglomeration
        if metric is None:
            metric = agg.metric
            if metric_params is None:
                metric_params = agg.metric_params
        resolved_metric = get_metric(metric, **(metric_params or {}))
        verbose = agg.verbose if verbose is None else verbose

        build_id = build_id or f"build-{uuid.uuid4().hex[:12]}"
        with LogContext.correlation_context(build_id):
            points = check_points(vectors)

            if self.settings.preprocess.reject_missing_values:
                self._reject_missing_values(points, verbose)

            if points.shape[0] > agg.large_dataset_warning:
                logger.warning(
                    "large_dataset",
                    n_points=points.shape[0],
                    threshold=agg.large_dataset_warning,
                    detail="agglomeration is O(m^3) in time and O(m^2) in memory",
                )

            logger.info(
                "dendrogram_build_started",
                n_points=points.shape[0],
                n_features=points.shape[1],
                metric=resolved_metric.name,
            )

            algorithm = self._create_algorithm(resolved_metric, verbose)
            dendrogram = algorithm.build(points, cancel_event=cancel_event)

            logger.info(
                "dendrogram_build_completed",
                n_nodes=len(dendrogram),
                n_merges=dendrogram.n_merges,
            )

        return dendrogram

    def _create_algorithm(self, metric: BaseMetric, verbose: bool) -> AgglomerativeAlgorithm:
        agg = self.settings.agglomeration
        config = ClusteringConfig(
            algorithm_name="johnson",
            params={"metric": metric.name},
            verbose=verbose,
            copy_data=agg.copy_data,
            deadline_seconds=agg.deadline_seconds,
            progress_log_interval=agg.progress_log_interval,
            track_build_time=self.settings.performance.track_build_time,
            track_memory_usage=self.settings.performance.track_memory_usage,
        )
        context = ClusteringContext(verbose=verbose, name=config.algorithm_name)
        return AgglomerativeAlgorithm(config, metric=metric, context=context)

    def _reject_missing_values(self, points: np.ndarray, verbose: bool) -> None:
        from dendro.preprocess.missing_values import MissingValueValidator

        if MissingValueValidator(verbose=verbose).check(points):
            n_missing = int(np.isnan(points).sum())
            raise MissingValueError(
                f"point matrix contains {n_missing} missing values; impute before clustering",
                details={"n_missing": n_missing},
            )

    def validate_clustering_config(
        self,
        metric: str,
        params: Dict[str, Any],
    ) -> Dict[str, str]:
        """
        Validate a metric selection without building anything.

        Args:
            metric: Metric name
            params: Metric parameters

        Returns:
            Dictionary of validation errors (empty if valid)
        """
        errors = {}

        key = metric.lower()
        if key not in METRICS:
            errors["metric"] = f"Unsupported metric '{metric}'"
            return errors

        if key == "minkowski":
            p = params.get("p", 2.0)
            if not isinstance(p, (int, float)) or p < 1:
                errors["p"] = "Must be a number >= 1"

        unknown = set(params) - ({"p"} if key == "minkowski" else set())
        if unknown:
            errors["params"] = f"Unexpected parameters for '{key}': {sorted(unknown)}"

        return errors
