"""
Analytics Schemas

Pydantic request/response models for the analytics API.

Request bodies use the same camelCase keys as the dashboard data arrays
(``controlStates``, ``riskExposure``, ``windowSize``); snake_case is
accepted as well.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..services.analytics.models import (
    ControlState,
    EntropyResult,
    EntropyTrendPoint,
    EvidencePoint,
    GraphEdge,
    GraphNode,
    MomentumResult,
    RiskSnapshot,
)


class AnalyticsSchema(BaseModel):
    """Base schema accepting camelCase or snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntropyRequest(AnalyticsSchema):
    """Request model for the Compliance Entropy Index."""

    control_states: List[ControlState] = Field(default_factory=list, description="Latest outcome per control")


class EntropyVelocityRequest(AnalyticsSchema):
    """Request model for entropy velocity."""

    history: List[EntropyTrendPoint] = Field(default_factory=list, description="CEI history, oldest first")
    window_size: Optional[int] = Field(None, ge=1, description="History window (default from settings)")


class ConditionalEntropyRequest(AnalyticsSchema):
    """Request model for per-group entropy."""

    control_states: List[ControlState] = Field(default_factory=list)
    group_labels: List[Optional[str]] = Field(default_factory=list, description="Group label per control state")


class RiskSnapshotsRequest(AnalyticsSchema):
    """Request model for risk derivatives and momentum."""

    snapshots: List[RiskSnapshot] = Field(default_factory=list)
    window_size: Optional[int] = Field(None, ge=1, description="Momentum window (default from settings)")


class MomentumResponse(AnalyticsSchema):
    """Momentum result with display strings for the velocity dashboard."""

    momentum: MomentumResult
    formatted_velocity: str = Field(..., description='e.g. "+$12K/day"')
    formatted_momentum_score: str = Field(..., description='e.g. "+42"')
    formatted_projection_30_days: str
    formatted_projection_90_days: str


class PriorRequest(AnalyticsSchema):
    """Optional explicit prior; the industry benchmark is used otherwise."""

    industry: Optional[str] = Field(None, description="Benchmark industry for the prior")
    alpha: Optional[float] = Field(None, gt=0)
    beta: Optional[float] = Field(None, gt=0)

    @model_validator(mode="after")
    def alpha_and_beta_together(self) -> "PriorRequest":
        """A custom prior needs both pseudo-counts."""
        if (self.alpha is None) != (self.beta is None):
            raise ValueError("alpha and beta must be given together for a custom prior")
        return self


class PosteriorRequest(PriorRequest):
    """Request model for the breach probability posterior."""

    passes: int = Field(0, ge=0)
    failures: int = Field(0, ge=0)


class BayesianFAIRRequest(PosteriorRequest):
    """Request model for Bayesian FAIR loss exposure."""

    threat_event_frequency: float = Field(..., ge=0, description="Threat events per year")
    loss_magnitude: float = Field(..., ge=0, description="Loss per successful breach")


class PosteriorTimeSeriesRequest(PriorRequest):
    """Request model for the posterior time series."""

    evidence_points: List[EvidencePoint] = Field(default_factory=list)


class CascadeRequest(AnalyticsSchema):
    """Request model for cascade risk propagation."""

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)


class WhatIfRequest(CascadeRequest):
    """Request model for a what-if control failure."""

    failed_control_id: str = Field(..., min_length=1)


class ConditionalEntropyResponse(AnalyticsSchema):
    """Per-group entropy results."""

    groups: Dict[str, EntropyResult]
