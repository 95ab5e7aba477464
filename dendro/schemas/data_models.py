"""
data_models.py

Enums and pydantic views shared across the dendrogram builder.

The Dendrogram itself is a plain immutable object (see dendro.core.dendrogram);
the models here are read-only projections of it for callers and the CLI.
"""

from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class AgglomerationState(str, Enum):
    """Driver lifecycle states."""

    INITIALIZING = "initializing"
    ITERATING = "iterating"
    DONE = "done"


class MetricMode(str, Enum):
    """Whether a metric natively measures distance or similarity."""

    DISTANCE = "distance"
    SIMILARITY = "similarity"


# =============================================================================
# DENDROGRAM VIEWS
# =============================================================================


class MergeStep(BaseModel):
    """One merge performed by the driver."""

    node_id: int = Field(..., ge=1, description="ClusterID allocated to the merged cluster")
    left_id: int = Field(..., ge=1, description="ClusterID at the lower active-set position")
    right_id: int = Field(..., ge=1, description="ClusterID at the higher active-set position")
    height: Optional[float] = Field(None, description="Proximity value at which the merge was selected")
    size: int = Field(..., ge=2, description="Number of points in the merged cluster")

    @model_validator(mode="after")
    def check_children(self) -> "MergeStep":
        if self.left_id == self.right_id:
            raise ValueError("merge children must be distinct")
        if self.node_id >= min(self.left_id, self.right_id):
            raise ValueError("merge node must be allocated after both children")
        return self


class DendrogramSummary(BaseModel):
    """Shape of a finished dendrogram."""

    n_points: int = Field(..., ge=1)
    n_features: int = Field(..., ge=0)
    n_nodes: int = Field(..., ge=1, description="Always 2m - 1")
    n_merges: int = Field(..., ge=0, description="Always m - 1")
    root_id: int = Field(..., ge=1)
    metric: str
    metric_mode: MetricMode
    max_height: Optional[float] = None
    merges: List[MergeStep] = Field(default_factory=list)
