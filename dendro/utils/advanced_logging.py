"""
Logging for dendrogram builds.

structlog is rendered through the stdlib logging tree. Each build runs under
a correlation ID held in structlog's context variables, so concurrent builds
in different threads never see each other's ID.
"""

import contextlib
import logging
import logging.handlers
import time
from pathlib import Path
from typing import Any, Iterator, Optional

import psutil
import structlog
from structlog.types import EventDict, Processor

CORRELATION_KEY = "correlation_id"


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    service_name: str = "dendro",
) -> None:
    """
    Route structlog through stdlib logging.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: "json" or "console"
        log_file: Also write to this file, rotated at 50MB
        service_name: Stamped on every event as ``service``
    """
    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", level=level)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=50 * 1024 * 1024, backupCount=3
        )
        handler.setLevel(level)
        logging.root.addHandler(handler)

    renderer: Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_service_name(service_name),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def add_service_name(service_name: str) -> Processor:
    """Processor adding ``service`` to every event."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


class LogContext:
    """Correlation ID of the build running in the current context."""

    @staticmethod
    def get_correlation_id() -> Optional[str]:
        return structlog.contextvars.get_contextvars().get(CORRELATION_KEY)

    @staticmethod
    @contextlib.contextmanager
    def correlation_context(correlation_id: str) -> Iterator[None]:
        """
        Bind ``correlation_id`` for the duration of the block.

        The previous ID (if any) is back in place on exit.
        """
        with structlog.contextvars.bound_contextvars(**{CORRELATION_KEY: correlation_id}):
            yield


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Logger for ``name``.

    The current correlation ID is bound eagerly as well, so it survives
    processor chains that do not merge context variables.
    """
    logger = structlog.get_logger(name)

    correlation_id = LogContext.get_correlation_id()
    if correlation_id:
        logger = logger.bind(**{CORRELATION_KEY: correlation_id})

    return logger


class PerformanceLogger:
    """
    Times a block.

    On exit logs ``operation_completed``, with ``items_per_second`` when a
    positive ``item_count`` is known by then, or ``operation_failed``.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[structlog.BoundLogger] = None,
        log_level: str = "info",
        item_count: Optional[int] = None,
        **extra_context: Any,
    ):
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.log_level = log_level
        self.item_count = item_count
        self.extra_context = extra_context
        self._started = 0.0

    def __enter__(self) -> "PerformanceLogger":
        self.logger.debug("operation_started", operation=self.operation, **self.extra_context)
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        duration = time.perf_counter() - self._started
        fields = dict(self.extra_context, operation=self.operation, duration_seconds=round(duration, 4))

        if exc_type is not None:
            self.logger.error(
                "operation_failed",
                error=str(exc_val),
                error_type=exc_type.__name__,
                **fields,
            )
            return

        if self.item_count and duration > 0:
            fields["item_count"] = self.item_count
            fields["items_per_second"] = round(self.item_count / duration, 2)
        getattr(self.logger, self.log_level)("operation_completed", **fields)


class BatchLogger:
    """
    Progress reporting for the merge loop.

    ``batch_progress`` is logged once every ``log_interval`` items and on the
    final item.
    """

    def __init__(
        self,
        total_items: int,
        operation: str,
        log_interval: int = 100,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        self.total_items = total_items
        self.operation = operation
        self.log_interval = max(1, log_interval)
        self.logger = logger or get_logger(__name__)
        self.processed_items = 0
        self._last_logged = 0
        self._started = time.perf_counter()

    def update(self, count: int = 1) -> None:
        self.processed_items += count
        due = self.processed_items - self._last_logged >= self.log_interval
        if due or self.processed_items >= self.total_items:
            self._last_logged = self.processed_items
            self._log_progress()

    def _log_progress(self) -> None:
        elapsed = time.perf_counter() - self._started
        pct = 100.0 * self.processed_items / self.total_items if self.total_items else 0.0
        self.logger.info(
            "batch_progress",
            operation=self.operation,
            processed=self.processed_items,
            total=self.total_items,
            progress_pct=round(pct, 1),
            items_per_second=round(self.processed_items / elapsed, 2) if elapsed > 0 else 0.0,
            elapsed_seconds=round(elapsed, 3),
        )

    def complete(self) -> None:
        self.logger.info(
            "batch_completed",
            operation=self.operation,
            total_items=self.processed_items,
            duration_seconds=round(time.perf_counter() - self._started, 4),
        )


class MetricsLogger:
    """Process CPU and resident memory snapshots via psutil."""

    def __init__(self, logger: Optional[structlog.BoundLogger] = None):
        self.logger = logger or get_logger(__name__)
        self.process = psutil.Process()

    def log_cpu_memory(self, context: Optional[str] = None) -> dict[str, Any]:
        """
        Log and return ``cpu_percent``, ``memory_mb`` and ``memory_percent``.

        Args:
            context: Optional label, logged as ``context``
        """
        snapshot: dict[str, Any] = {
            "cpu_percent": self.process.cpu_percent(),
            "memory_mb": round(self.process.memory_info().rss / (1024 * 1024), 2),
            "memory_percent": round(self.process.memory_percent(), 3),
        }
        if context:
            snapshot["context"] = context

        self.logger.info("cpu_memory_metrics", **snapshot)
        return snapshot


@contextlib.contextmanager
def log_exceptions(
    logger: Optional[structlog.BoundLogger] = None,
    operation: Optional[str] = None,
) -> Iterator[None]:
    """
    Log an exception escaping the block as ``exception_caught``, then re-raise.

    Example:
        with log_exceptions(operation="load_points"):
            points = np.loadtxt(path, delimiter=",")
    """
    try:
        yield
    except Exception as e:
        fields = {"error": str(e), "error_type": type(e).__name__}
        if operation:
            fields["operation"] = operation
        (logger or get_logger(__name__)).error("exception_caught", exc_info=True, **fields)
        raise
