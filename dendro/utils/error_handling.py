"""
Error Handling Module

Exception hierarchy for dendrogram construction.

Every error aborts the whole build: there are no retries and no partial or
resumable dendrogram is ever handed back to the caller.
"""

import time
from typing import Any, Optional


# =============================================================================
# Custom Exception Hierarchy
# =============================================================================


class DendroError(Exception):
    """Base exception for all dendrogram construction errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.timestamp = time.time()

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/CLI output."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Configuration Errors
class ConfigurationError(DendroError):
    """Error in settings or metric parameters."""
    pass


# Clustering Errors
class ClusteringError(DendroError):
    """Base class for agglomeration errors."""
    pass


class InvalidInputError(ClusteringError):
    """Empty dataset, ragged rows or a non 2-D point matrix."""
    pass


class InvalidMetricError(ClusteringError):
    """Unknown or unsupported metric name."""
    pass


class AgglomerationStateError(ClusteringError):
    """A build was started while another build on the same driver is running."""
    pass


class AgglomerationCancelledError(ClusteringError):
    """Build was cancelled between iterations."""
    pass


class AgglomerationTimeoutError(ClusteringError):
    """Build exceeded its configured deadline."""
    pass


# Preprocessing Errors
class PreprocessingError(DendroError):
    """Base class for input preprocessing errors."""
    pass


class MissingValueError(PreprocessingError):
    """Point matrix holds missing values (NaN) that were not imputed."""
    pass
