"""
Analytics Momentum Engine - Temporal Risk Velocity and Acceleration

Computes numerical derivatives of risk exposure over time:
- Risk Velocity     = dR/dt   (currency units per day)
- Risk Acceleration = d2R/dt2 (currency units per day squared)
- Risk Momentum     = recency-weighted average velocity, normalized to -1..+1

Momentum drives the trend classification (improving_fast .. worsening_fast)
and second-order projections of risk 30 and 90 days ahead:

    R(t) = R0 + v*t + 0.5*a*t^2   (floored at 0)
"""

import logging
import math
from datetime import datetime
from typing import List, Mapping, Sequence, Union

from pydantic import ValidationError

from ..constants import (
    MOMENTUM_IMPROVING,
    MOMENTUM_IMPROVING_FAST,
    MOMENTUM_MIN_MAX_RISK,
    MOMENTUM_SCALE_DAYS,
    MOMENTUM_WINDOW,
    MOMENTUM_WORSENING,
    MOMENTUM_WORSENING_FAST,
    PROJECTION_LONG_DAYS,
    PROJECTION_SHORT_DAYS,
    SECONDS_PER_DAY,
)
from ..exceptions import AnalyticsInputError
from ..models import MomentumResult, MomentumTrend, RiskSnapshot, VelocityPoint
from ..presentation import NO_DATA_COLOR, NO_DATA_LABEL, trend_color, trend_label

logger = logging.getLogger(__name__)

SnapshotLike = Union[RiskSnapshot, Mapping]


def coerce_snapshots(snapshots: Sequence[SnapshotLike]) -> List[RiskSnapshot]:
    """
    Validate raw snapshot records into RiskSnapshot models.

    Raises:
        AnalyticsInputError: If a timestamp cannot be parsed or an exposure
            is not numeric
    """
    coerced = []
    for index, snapshot in enumerate(snapshots):
        if isinstance(snapshot, RiskSnapshot):
            coerced.append(snapshot)
            continue
        try:
            coerced.append(RiskSnapshot.model_validate(snapshot))
        except ValidationError as e:
            raise AnalyticsInputError(
                f"Invalid risk snapshot at index {index}",
                field="snapshots",
                details=e.errors(include_url=False),
            ) from e
    return coerced


def _days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY


def _rate(delta: float, days: float) -> float:
    """Change per day; zero when no time has elapsed."""
    return delta / days if days > 0 else 0.0


def _require_finite(value: float, quantity: str, index: int) -> float:
    if not math.isfinite(value):
        raise AnalyticsInputError(
            f"Risk {quantity} overflows at index {index}",
            field="snapshots",
            details={"index": index, "quantity": quantity},
        )
    return value


def calculate_risk_derivatives(snapshots: Sequence[SnapshotLike]) -> List[VelocityPoint]:
    """
    Calculate first and second derivatives of a risk exposure time series.

    Snapshots are sorted by timestamp on a copy; the input is not modified.
    The first point has zero velocity, the first two have zero acceleration,
    and zero-length intervals yield zero rather than an error.

    Args:
        snapshots: Risk snapshots in any order

    Returns:
        One VelocityPoint per snapshot, in chronological order

    Raises:
        AnalyticsInputError: If a snapshot is malformed or a derivative
            overflows to infinity

    Example:
        >>> points = calculate_risk_derivatives([
        ...     {"timestamp": "2024-01-01T00:00:00Z", "riskExposure": 100},
        ...     {"timestamp": "2024-01-02T00:00:00Z", "riskExposure": 150},
        ...     {"timestamp": "2024-01-03T00:00:00Z", "riskExposure": 100},
        ... ])
        >>> [p.velocity for p in points], points[2].acceleration
        ([0.0, 50.0, -50.0], -100.0)
    """
    records = coerce_snapshots(snapshots)

    if len(records) < 2:
        return [
            VelocityPoint(
                timestamp=s.source_timestamp or s.timestamp,
                risk_exposure=s.risk_exposure,
                velocity=0.0,
                acceleration=0.0,
            )
            for s in records
        ]

    ordered = sorted(records, key=lambda s: s.timestamp)
    points: List[VelocityPoint] = []

    for i, snapshot in enumerate(ordered):
        velocity = 0.0
        acceleration = 0.0

        if i > 0:
            dt1 = _days_between(ordered[i - 1].timestamp, snapshot.timestamp)
            velocity = _require_finite(
                _rate(snapshot.risk_exposure - ordered[i - 1].risk_exposure, dt1), "velocity", i
            )

            if i > 1:
                dt0 = _days_between(ordered[i - 2].timestamp, ordered[i - 1].timestamp)
                previous_velocity = _rate(ordered[i - 1].risk_exposure - ordered[i - 2].risk_exposure, dt0)
                acceleration = _require_finite(
                    _rate(velocity - previous_velocity, (dt1 + dt0) / 2), "acceleration", i
                )

        points.append(
            VelocityPoint(
                timestamp=snapshot.source_timestamp or snapshot.timestamp,
                risk_exposure=snapshot.risk_exposure,
                velocity=velocity,
                acceleration=acceleration,
            )
        )

    return points


def classify_momentum(momentum_score: float) -> MomentumTrend:
    """Classify a momentum score into a trend band."""
    if momentum_score < MOMENTUM_IMPROVING_FAST:
        return MomentumTrend.IMPROVING_FAST
    elif momentum_score < MOMENTUM_IMPROVING:
        return MomentumTrend.IMPROVING
    elif momentum_score <= MOMENTUM_WORSENING:
        return MomentumTrend.STABLE
    elif momentum_score <= MOMENTUM_WORSENING_FAST:
        return MomentumTrend.WORSENING
    else:
        return MomentumTrend.WORSENING_FAST


def project_risk(current_risk: float, velocity: float, acceleration: float, days: float) -> float:
    """Second-order extrapolation of risk ``days`` ahead, never below zero."""
    projected = current_risk + velocity * days + 0.5 * acceleration * days * days
    if not math.isfinite(projected):
        raise AnalyticsInputError(
            f"Risk projection {days:g} days ahead overflows", field="snapshots", details={"days": days}
        )
    return max(0.0, projected)


def calculate_risk_momentum(
    snapshots: Sequence[SnapshotLike],
    window_size: int = MOMENTUM_WINDOW,
) -> MomentumResult:
    """
    Calculate risk momentum score and trend classification.

    Algorithm:
        1. Derive velocity/acceleration for every snapshot
        2. Weight the last ``window_size`` velocities linearly by recency
           (oldest = 1 .. newest = n)
        3. Normalize by the largest observed exposure (at least 1) and scale
           by 30 days, clamped to -1..+1
        4. Project risk with the latest velocity and acceleration

    Args:
        snapshots: Risk snapshots in any order
        window_size: Number of most recent points in the momentum average (default: 7)

    Returns:
        MomentumResult; a neutral "No Data" result for empty input

    Raises:
        AnalyticsInputError: If window_size < 1 or a snapshot is malformed
    """
    if window_size < 1:
        raise AnalyticsInputError("window_size must be at least 1", field="window_size")

    records = coerce_snapshots(snapshots)
    derivatives = calculate_risk_derivatives(records)

    if not derivatives:
        logger.debug("No risk snapshots supplied, returning neutral momentum")
        return MomentumResult(
            current_velocity=0.0,
            current_acceleration=0.0,
            momentum_score=0.0,
            trend=MomentumTrend.STABLE,
            trend_label=NO_DATA_LABEL,
            trend_color=NO_DATA_COLOR,
            velocity_history=[],
            projected_risk_30_days=0.0,
            projected_risk_90_days=0.0,
        )

    recent = derivatives[-window_size:]
    current = derivatives[-1]

    total_weight = sum(range(1, len(recent) + 1))
    weighted_velocity = sum(point.velocity * weight for weight, point in enumerate(recent, start=1)) / total_weight
    _require_finite(weighted_velocity, "momentum", len(derivatives) - 1)

    max_risk = max([s.risk_exposure for s in records] + [MOMENTUM_MIN_MAX_RISK])
    normalized_velocity = weighted_velocity / max_risk
    momentum_score = max(-1.0, min(1.0, normalized_velocity * MOMENTUM_SCALE_DAYS))

    trend = classify_momentum(momentum_score)

    result = MomentumResult(
        current_velocity=current.velocity,
        current_acceleration=current.acceleration,
        momentum_score=momentum_score,
        trend=trend,
        trend_label=trend_label(trend),
        trend_color=trend_color(trend),
        velocity_history=derivatives,
        projected_risk_30_days=project_risk(
            current.risk_exposure, current.velocity, current.acceleration, PROJECTION_SHORT_DAYS
        ),
        projected_risk_90_days=project_risk(
            current.risk_exposure, current.velocity, current.acceleration, PROJECTION_LONG_DAYS
        ),
    )

    logger.debug(
        f"Risk momentum: score={momentum_score:.3f}, trend={trend.value}, "
        f"velocity={current.velocity:.2f}/day (n={len(derivatives)}, window={len(recent)})"
    )
    return result
