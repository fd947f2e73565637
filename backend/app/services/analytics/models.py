"""
Analytics Data Models

Type-safe Pydantic models for all analytics inputs and results.

Fields are snake_case in Python and serialize to the camelCase keys consumed
by dashboard widgets (``rawEntropy``, ``velocityHistory``, ...). Input models
accept either spelling.
"""

import numbers
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel


class AnalyticsModel(BaseModel):
    """Base model: immutable, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _ensure_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so snapshots stay mutually comparable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# Compliance Entropy
# =============================================================================


class ControlState(str, Enum):
    """Outcome of the most recent automated test of a control."""

    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    NOT_TESTED = "not_tested"


class EntropyZone(str, Enum):
    """Qualitative classification of the Compliance Entropy Index."""

    ORDERED = "ordered"  # CEI < 0.3
    TRANSITIONAL = "transitional"  # 0.3 <= CEI < 0.7
    CHAOTIC = "chaotic"  # CEI >= 0.7


class EntropyTrend(str, Enum):
    """Direction of change of compliance disorder."""

    STABILIZING = "stabilizing"
    DESTABILIZING = "destabilizing"
    STABLE = "stable"


class EntropyResult(AnalyticsModel):
    """
    Compliance Entropy Index for a set of control states.

    Recomputed on every call; depends only on per-state counts.
    """

    cei: float = Field(..., ge=0, le=1, description="Normalized Shannon entropy (0-1)")
    raw_entropy: float = Field(..., ge=0, description="Unnormalized Shannon entropy in bits")
    state_distribution: Dict[str, float] = Field(..., description="Proportion of controls per state")
    zone: EntropyZone = Field(..., description="Qualitative disorder zone")
    zone_label: str = Field(..., description="Human-readable zone label")
    dominant_state: ControlState = Field(..., description="Most frequent control state")
    uniformity_score: float = Field(..., ge=0, le=1, description="1 = perfectly uniform distribution")


class EntropyTrendPoint(AnalyticsModel):
    """Single historical CEI observation."""

    timestamp: datetime = Field(..., description="When the CEI was recorded")
    cei: float = Field(..., ge=0, le=1, description="Recorded CEI")
    zone: str = Field("ordered", description="Zone at the time of recording")

    @field_validator("timestamp")
    @classmethod
    def timestamp_is_aware(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class EntropyVelocity(AnalyticsModel):
    """Rate of change of the CEI over a short history window."""

    current_cei: float = Field(..., alias="currentCEI", description="Latest CEI")
    previous_cei: float = Field(..., alias="previousCEI", description="CEI before the latest")
    velocity: float = Field(..., description="dCEI per observation (positive = more disorder)")
    acceleration: float = Field(..., description="d2CEI per observation squared")
    trend: EntropyTrend = Field(..., description="Stabilizing, destabilizing or stable")


# =============================================================================
# Risk Velocity and Momentum
# =============================================================================


class MomentumTrend(str, Enum):
    """Directional trend of risk exposure."""

    IMPROVING_FAST = "improving_fast"  # score < -0.3
    IMPROVING = "improving"  # -0.3 <= score < -0.05
    STABLE = "stable"  # -0.05 <= score <= 0.05
    WORSENING = "worsening"  # 0.05 < score <= 0.3
    WORSENING_FAST = "worsening_fast"  # score > 0.3


class TimestampedModel(AnalyticsModel):
    """
    Model whose timestamp is echoed back exactly as it was received.

    Timestamps are parsed for ordering and arithmetic, but a record built
    from a string serializes that same string (``"2024-01-01"`` stays
    ``"2024-01-01"``). Records built from datetime objects serialize as
    ISO-8601.
    """

    timestamp: datetime = Field(..., description="ISO-8601 timestamp")

    _source_timestamp: Optional[str] = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def keep_source_timestamp(cls, data: Any, handler):
        model = handler(data)
        if isinstance(data, Mapping) and isinstance(data.get("timestamp"), str):
            model._source_timestamp = data["timestamp"]
        return model

    @field_validator("timestamp")
    @classmethod
    def timestamp_is_aware(cls, v: datetime) -> datetime:
        return _ensure_utc(v)

    @field_serializer("timestamp", mode="wrap")
    def serialize_timestamp(self, value: datetime, handler):
        if self._source_timestamp is not None:
            return self._source_timestamp
        return handler(value)

    @property
    def source_timestamp(self) -> Optional[str]:
        """Timestamp string as received, if the record was built from one."""
        return self._source_timestamp


class RiskSnapshot(TimestampedModel):
    """Risk exposure (currency units) recorded at a point in time."""

    risk_exposure: float = Field(..., allow_inf_nan=False, description="Estimated loss exposure")

    @field_validator("risk_exposure", mode="before")
    @classmethod
    def risk_exposure_is_numeric(cls, v):
        """Reject strings and booleans instead of silently coercing them."""
        if isinstance(v, bool) or not isinstance(v, numbers.Real):
            raise ValueError(f"risk exposure must be a number, got {type(v).__name__}")
        return v


class VelocityPoint(TimestampedModel):
    """Risk snapshot annotated with its first and second time derivatives."""

    risk_exposure: float
    velocity: float = Field(0.0, description="dR/dt in currency units per day")
    acceleration: float = Field(0.0, description="d2R/dt2 in currency units per day squared")


class MomentumResult(AnalyticsModel):
    """
    Risk momentum summary.

    Combines the latest derivatives, a bounded recency-weighted momentum
    score, its trend classification and second-order risk projections.
    """

    current_velocity: float = Field(0.0, description="Latest dR/dt ($/day)")
    current_acceleration: float = Field(0.0, description="Latest d2R/dt2 ($/day^2)")
    momentum_score: float = Field(0.0, ge=-1, le=1, description="Bounded momentum (-1..+1)")
    trend: MomentumTrend = Field(MomentumTrend.STABLE, description="Trend classification")
    trend_label: str = Field(..., description="Human-readable trend label")
    trend_color: str = Field(..., description="CSS color token for the trend")
    velocity_history: List[VelocityPoint] = Field(default_factory=list, description="Full derivative series")
    projected_risk_30_days: float = Field(0.0, ge=0, alias="projectedRisk30Days")
    projected_risk_90_days: float = Field(0.0, ge=0, alias="projectedRisk90Days")


# =============================================================================
# Adaptive Bayesian Risk Scoring
# =============================================================================


class EvidenceStrength(str, Enum):
    """Volume of control-test evidence behind a posterior."""

    WEAK = "weak"  # < 10 tests
    MODERATE = "moderate"  # 10-49 tests
    STRONG = "strong"  # 50-199 tests
    VERY_STRONG = "very_strong"  # 200+ tests


class BayesianPrior(AnalyticsModel):
    """Beta(alpha, beta) prior over breach probability."""

    alpha: float = Field(..., gt=0, description="Prior failure pseudo-count")
    beta: float = Field(..., gt=0, description="Prior pass pseudo-count")
    source: str = Field("custom", description="Where the prior came from")


class PosteriorResult(AnalyticsModel):
    """Beta posterior after observing control-test evidence."""

    mean: float = Field(..., ge=0, le=1, description="E[P(breach)]")
    variance: float = Field(..., ge=0)
    mode: float = Field(..., ge=0, le=1)
    credible_interval: Tuple[float, float] = Field(..., description="95% credible interval")
    alpha: float
    beta: float
    total_evidence: int = Field(..., ge=0, description="Control tests observed")
    confidence_level: float = Field(..., ge=0, le=1, description="Evidence weight vs prior")


class BayesianFAIRResult(AnalyticsModel):
    """FAIR annual loss exposure driven by the Bayesian breach probability."""

    posterior_breach_probability: float = Field(..., ge=0, le=1)
    annual_loss_exposure: float
    confidence_interval: Tuple[float, float]
    evidence_strength: EvidenceStrength
    prior_influence: float = Field(..., ge=0, le=1, description="How much the prior still dominates")


class EvidencePoint(AnalyticsModel):
    """Control-test outcomes collected in one period."""

    timestamp: datetime
    passes: int = Field(0, ge=0)
    failures: int = Field(0, ge=0)

    @field_validator("timestamp")
    @classmethod
    def timestamp_is_aware(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class PosteriorTimeSeriesPoint(AnalyticsModel):
    """Posterior state after cumulative evidence up to ``timestamp``."""

    timestamp: datetime
    mean: float
    lower: float
    upper: float
    alpha: float
    beta: float


# =============================================================================
# Control Dependency Graph / Cascade Risk Propagation
# =============================================================================


class GraphNode(AnalyticsModel):
    """Control in the dependency graph."""

    id: str = Field(..., min_length=1)
    name: str = Field("", description="Display name")
    pass_rate: float = Field(0.0, ge=0, le=1)
    failure_probability: float = Field(0.0, ge=0, le=1)
    cascade_risk: float = Field(0.0, ge=0, le=1)
    depth: int = Field(0, ge=0)
    category: str = Field("", description="Control category")


class GraphEdge(AnalyticsModel):
    """Dependency of ``child_id`` on ``parent_id``."""

    parent_id: str
    child_id: str
    strength: float = Field(..., ge=0, le=1, description="Dependency strength")
    dependency_type: str = Field("functional", alias="type", description="functional, data, operational")


class CascadeResult(AnalyticsModel):
    """Cascade risk propagated through the dependency graph."""

    nodes: List[GraphNode] = Field(default_factory=list, description="Nodes in topological order")
    edges: List[GraphEdge] = Field(default_factory=list)
    critical_paths: List[List[str]] = Field(default_factory=list)
    total_cascade_risk: float = Field(0.0, ge=0, le=1, description="Mean cascade risk")
    most_vulnerable_node: Optional[GraphNode] = None
    cascade_depth: int = Field(0, ge=0)


class AffectedControl(AnalyticsModel):
    """Control whose cascade risk rises in a what-if failure simulation."""

    id: str
    name: str
    original_risk: float
    new_cascade_risk: float
    risk_increase: float


class WhatIfResult(AnalyticsModel):
    """Impact of forcing one control to fail."""

    failed_control_id: str
    failed_control_name: str
    affected_controls: List[AffectedControl] = Field(default_factory=list)
    total_impact: float = 0.0
