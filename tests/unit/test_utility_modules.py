"""
Unit tests for utility modules.

Tests for error_handling, advanced_logging and the clustering context sinks.
"""

import threading

import pytest
from structlog.testing import capture_logs

from dendro.core.context import ClusteringContext
from dendro.utils.advanced_logging import (
    BatchLogger,
    LogContext,
    MetricsLogger,
    PerformanceLogger,
    get_logger,
    log_exceptions,
)
from dendro.utils.error_handling import (
    AgglomerationCancelledError,
    AgglomerationStateError,
    AgglomerationTimeoutError,
    ClusteringError,
    ConfigurationError,
    DendroError,
    InvalidInputError,
    InvalidMetricError,
    MissingValueError,
    PreprocessingError,
)


@pytest.mark.unit
class TestErrorHandling:
    """Test the exception hierarchy."""

    def test_error_code_defaults_to_class_name(self):
        """Test error code and details defaults."""
        error = InvalidInputError("empty dataset")

        assert str(error) == "empty dataset"
        assert error.error_code == "InvalidInputError"
        assert error.details == {}

    def test_to_dict(self):
        """Test serialisation of an error."""
        error = MissingValueError("column 2 is entirely NaN", error_code="E_NAN", details={"column": 2})

        payload = error.to_dict()

        assert payload["error_type"] == "MissingValueError"
        assert payload["error_code"] == "E_NAN"
        assert payload["message"] == "column 2 is entirely NaN"
        assert payload["details"] == {"column": 2}
        assert payload["timestamp"] == error.timestamp

    @pytest.mark.parametrize("error_class", [
        InvalidInputError,
        InvalidMetricError,
        AgglomerationStateError,
        AgglomerationCancelledError,
        AgglomerationTimeoutError,
    ])
    def test_clustering_errors(self, error_class):
        """Test agglomeration errors share the clustering base."""
        assert issubclass(error_class, ClusteringError)
        assert issubclass(error_class, DendroError)

    def test_other_branches(self):
        """Test preprocessing and configuration branches."""
        assert issubclass(MissingValueError, PreprocessingError)
        assert issubclass(ConfigurationError, DendroError)
        assert not issubclass(ConfigurationError, ClusteringError)


@pytest.mark.unit
class TestAdvancedLogging:
    """Test advanced logging utilities."""

    def test_correlation_context_restores_previous(self):
        """Test nested correlation IDs unwind in order."""
        assert LogContext.get_correlation_id() is None

        with LogContext.correlation_context("outer"):
            with LogContext.correlation_context("inner"):
                assert LogContext.get_correlation_id() == "inner"
            assert LogContext.get_correlation_id() == "outer"

        assert LogContext.get_correlation_id() is None

    def test_correlation_id_not_shared_across_threads(self):
        """Test a build's correlation ID stays in its own thread."""
        seen = {}

        def read_id():
            seen["other"] = LogContext.get_correlation_id()

        with LogContext.correlation_context("build-main"):
            worker = threading.Thread(target=read_id)
            worker.start()
            worker.join()

        assert seen["other"] is None

    def test_get_logger_binds_correlation_id(self):
        """Test correlation ID is attached to events."""
        with capture_logs() as logs:
            with LogContext.correlation_context("build-1"):
                get_logger("test").info("inside")
            get_logger("test").info("outside")

        assert logs[0]["correlation_id"] == "build-1"
        assert "correlation_id" not in logs[1]

    def test_performance_logger_completed(self):
        """Test timing event with a late item count."""
        with capture_logs() as logs:
            with PerformanceLogger("merge_loop", n_points=4) as perf:
                perf.item_count = 3

        completed = logs[-1]
        assert completed["event"] == "operation_completed"
        assert completed["operation"] == "merge_loop"
        assert completed["n_points"] == 4
        assert completed["duration_seconds"] >= 0.0

    def test_performance_logger_failed(self):
        """Test timing event when the block raises."""
        with capture_logs() as logs:
            with pytest.raises(RuntimeError):
                with PerformanceLogger("merge_loop"):
                    raise RuntimeError("boom")

        failed = logs[-1]
        assert failed["event"] == "operation_failed"
        assert failed["error_type"] == "RuntimeError"
        assert failed["log_level"] == "error"

    def test_batch_logger_intervals(self):
        """Test progress is logged every interval and at the end."""
        with capture_logs() as logs:
            batch = BatchLogger(total_items=5, operation="merge", log_interval=2)
            for _ in range(5):
                batch.update()
            batch.complete()

        progress = [entry["processed"] for entry in logs if entry["event"] == "batch_progress"]
        assert progress == [2, 4, 5]
        assert logs[-1]["event"] == "batch_completed"
        assert logs[-1]["total_items"] == 5

    def test_metrics_logger(self):
        """Test CPU and memory snapshot."""
        with capture_logs() as logs:
            metrics = MetricsLogger().log_cpu_memory(context="after_merge")

        assert {"cpu_percent", "memory_mb", "memory_percent"} <= set(metrics)
        assert metrics["context"] == "after_merge"
        assert logs[0]["event"] == "cpu_memory_metrics"

    def test_log_exceptions_reraises(self):
        """Test exceptions are logged and propagated."""
        with capture_logs() as logs:
            with pytest.raises(ValueError):
                with log_exceptions(operation="load_points"):
                    raise ValueError("bad csv")

        assert logs[0]["event"] == "exception_caught"
        assert logs[0]["operation"] == "load_points"


@pytest.mark.unit
class TestClusteringContext:
    """Test the logging sinks."""

    def test_quiet_context_logs_nothing(self):
        """Test sinks are silent when not verbose."""
        context = ClusteringContext()

        with capture_logs() as logs:
            context.error("e")
            context.info("i")
            context.trace("t")
            context.debug("d")

        assert logs == []
        assert not context.has_warnings

    def test_warn_flags_even_when_quiet(self):
        """Test warnings are flagged without logging."""
        context = ClusteringContext()

        with capture_logs() as logs:
            context.warn("single_point_dataset")

        assert logs == []
        assert context.has_warnings

    def test_verbose_context_routes_levels(self):
        """Test each sink logs at its level."""
        context = ClusteringContext(verbose=True, name="driver")

        with capture_logs() as logs:
            context.error("e")
            context.warn("w")
            context.info("i")
            context.trace("t", step=1)
            context.debug("d")

        assert [(entry["event"], entry["log_level"]) for entry in logs] == [
            ("e", "error"),
            ("w", "warning"),
            ("i", "info"),
            ("t", "debug"),
            ("d", "debug"),
        ]
        assert logs[3]["trace"] is True
        assert logs[3]["step"] == 1
        assert all(entry["context"] == "driver" for entry in logs)
