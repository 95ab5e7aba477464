"""
Clustering context: verbosity flag plus the five logging sinks.

Sinks are inert to the outcome of a build. When ``verbose`` is off every
sink is a no-op apart from ``warn`` flagging ``has_warnings``.
"""

from typing import Any, Optional

import structlog

from dendro.utils.advanced_logging import get_logger


class ClusteringContext:
    """Verbosity and log sinks shared by the driver and its collaborators."""

    def __init__(
        self,
        verbose: bool = False,
        name: str = "agglomerative",
        logger: Optional[structlog.BoundLogger] = None,
    ):
        self.verbose = verbose
        self.name = name
        self._logger = logger
        self._has_warnings = False

    @property
    def logger(self) -> structlog.BoundLogger:
        # Resolved lazily so the correlation ID of the running build is bound
        if self._logger is None:
            return get_logger(__name__).bind(context=self.name)
        return self._logger

    @property
    def has_warnings(self) -> bool:
        return self._has_warnings

    def error(self, event: str, **fields: Any) -> None:
        if self.verbose:
            self.logger.error(event, **fields)

    def warn(self, event: str, **fields: Any) -> None:
        self._has_warnings = True
        if self.verbose:
            self.logger.warning(event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        if self.verbose:
            self.logger.info(event, **fields)

    def trace(self, event: str, **fields: Any) -> None:
        # stdlib logging has no TRACE level
        if self.verbose:
            self.logger.debug(event, trace=True, **fields)

    def debug(self, event: str, **fields: Any) -> None:
        if self.verbose:
            self.logger.debug(event, **fields)

    def __repr__(self) -> str:
        return f"ClusteringContext(name={self.name!r}, verbose={self.verbose})"
