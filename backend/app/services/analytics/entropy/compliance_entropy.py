"""
Analytics Entropy Engine - Compliance Entropy Index (CEI)

Applies Shannon entropy to the distribution of control test outcomes to
quantify the "disorder" of a compliance posture:

    CEI = -SUM(p_i * log2(p_i)) / log2(N)

where p_i is the proportion of controls in state i (pass, fail, warning,
not_tested) and N = 4 is the number of possible states.

    CEI = 0: perfect order (all controls in one state)
    CEI = 1: maximum entropy (outcomes evenly spread across all states)

The engine is stateless: every function is a pure computation over its
arguments and never mutates them.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from ..constants import (
    CONTROL_STATE_ORDER,
    ENTROPY_VELOCITY_STABLE_BAND,
    ENTROPY_VELOCITY_WINDOW,
    ENTROPY_ZONE_CHAOTIC,
    ENTROPY_ZONE_TRANSITIONAL,
    LOG2_NUM_STATES,
    NUM_CONTROL_STATES,
)
from ..exceptions import AnalyticsInputError
from ..models import ControlState, EntropyResult, EntropyTrend, EntropyTrendPoint, EntropyVelocity, EntropyZone
from ..presentation import NO_DATA_LABEL, zone_label

logger = logging.getLogger(__name__)

UNKNOWN_GROUP = "unknown"

StateLike = Union[ControlState, str]
TrendPointLike = Union[EntropyTrendPoint, Mapping]


def shannon_entropy(probabilities: Iterable[float]) -> float:
    """
    Shannon entropy in bits of a probability distribution.

    Zero-probability terms contribute nothing (0 * log2(0) is taken as 0).
    """
    return -sum(p * math.log2(p) for p in probabilities if p > 0)


def classify_entropy_zone(cei: float) -> EntropyZone:
    """Classify a CEI value into its disorder zone."""
    if cei < ENTROPY_ZONE_TRANSITIONAL:
        return EntropyZone.ORDERED
    elif cei < ENTROPY_ZONE_CHAOTIC:
        return EntropyZone.TRANSITIONAL
    else:
        return EntropyZone.CHAOTIC


def uniformity_score(proportions: Sequence[float]) -> float:
    """
    How close a state distribution is to uniform (1 = perfectly uniform).

    Euclidean deviation from the uniform vector, normalized by the deviation
    of a distribution with all mass on a single state, which is the largest
    possible.
    """
    n = len(proportions)
    if n == 0:
        return 0.0
    uniform = 1 / n
    max_deviation = math.sqrt((1 - uniform) ** 2 + (n - 1) * uniform**2)
    if max_deviation == 0:
        return 1.0
    actual_deviation = math.sqrt(sum((p - uniform) ** 2 for p in proportions))
    return max(0.0, min(1.0, 1 - actual_deviation / max_deviation))


def _normalize_state(state: StateLike, index: int) -> str:
    try:
        return ControlState(state).value
    except ValueError:
        raise AnalyticsInputError(
            f"Unknown control state {state!r} at index {index}",
            field="control_states",
            details={"allowed": list(CONTROL_STATE_ORDER)},
        ) from None


def calculate_cei(control_states: Iterable[StateLike]) -> EntropyResult:
    """
    Calculate the Compliance Entropy Index from control states.

    Args:
        control_states: Latest test outcome of each control, in any order

    Returns:
        EntropyResult with normalized/raw entropy, state distribution,
        zone, dominant state and uniformity score

    Raises:
        AnalyticsInputError: If a value is not one of the four control states

    Example:
        >>> result = calculate_cei(["pass", "fail", "warning", "not_tested"])
        >>> result.cei, result.zone
        (1.0, <EntropyZone.CHAOTIC: 'chaotic'>)
    """
    counts: Dict[str, int] = {state: 0 for state in CONTROL_STATE_ORDER}
    for index, state in enumerate(control_states):
        counts[_normalize_state(state, index)] += 1

    total = sum(counts.values())
    if total == 0:
        logger.debug("No control states supplied, returning empty CEI")
        return EntropyResult(
            cei=0.0,
            raw_entropy=0.0,
            state_distribution={state: 0.0 for state in CONTROL_STATE_ORDER},
            zone=EntropyZone.ORDERED,
            zone_label=NO_DATA_LABEL,
            dominant_state=ControlState.NOT_TESTED,
            uniformity_score=0.0,
        )

    proportions = [counts[state] / total for state in CONTROL_STATE_ORDER]
    raw_entropy = shannon_entropy(proportions)
    cei = min(1.0, raw_entropy / LOG2_NUM_STATES)
    zone = classify_entropy_zone(cei)

    # max() keeps the first state reaching the highest count
    dominant_state = max(CONTROL_STATE_ORDER, key=lambda state: counts[state])

    result = EntropyResult(
        cei=cei,
        raw_entropy=raw_entropy,
        state_distribution=dict(zip(CONTROL_STATE_ORDER, proportions)),
        zone=zone,
        zone_label=zone_label(zone),
        dominant_state=ControlState(dominant_state),
        uniformity_score=uniformity_score(proportions),
    )

    logger.debug(
        f"CEI calculated: cei={result.cei:.4f}, zone={zone.value}, "
        f"dominant={dominant_state} (n={total}, states={NUM_CONTROL_STATES})"
    )
    return result


def _coerce_trend_point(point: TrendPointLike, index: int) -> EntropyTrendPoint:
    if isinstance(point, EntropyTrendPoint):
        return point
    try:
        return EntropyTrendPoint.model_validate(point)
    except ValidationError as e:
        raise AnalyticsInputError(
            f"Invalid entropy history entry at index {index}",
            field="history",
            details=e.errors(include_url=False),
        ) from e


def calculate_entropy_velocity(
    history: Sequence[TrendPointLike],
    window_size: int = ENTROPY_VELOCITY_WINDOW,
) -> EntropyVelocity:
    """
    Calculate the rate of change of the CEI over recent history.

    The history must already be in chronological order; it is not sorted.

    Args:
        history: Chronologically ordered CEI observations
        window_size: Number of most recent observations considered (default: 3)

    Returns:
        EntropyVelocity with first/second differences and trend

    Raises:
        AnalyticsInputError: If window_size < 1 or an entry is malformed
    """
    if window_size < 1:
        raise AnalyticsInputError("window_size must be at least 1", field="window_size")

    points = [_coerce_trend_point(point, i) for i, point in enumerate(history)]

    if len(points) < 2:
        return EntropyVelocity(
            current_cei=points[0].cei if points else 0.0,
            previous_cei=0.0,
            velocity=0.0,
            acceleration=0.0,
            trend=EntropyTrend.STABLE,
        )

    recent = points[-window_size:]
    if len(recent) < 2:
        # A single-entry window has no difference to take
        return EntropyVelocity(
            current_cei=recent[-1].cei,
            previous_cei=0.0,
            velocity=0.0,
            acceleration=0.0,
            trend=EntropyTrend.STABLE,
        )

    current_cei = recent[-1].cei
    previous_cei = recent[-2].cei
    velocity = current_cei - previous_cei

    acceleration = 0.0
    if len(recent) >= 3:
        previous_velocity = previous_cei - recent[-3].cei
        acceleration = velocity - previous_velocity

    if abs(velocity) < ENTROPY_VELOCITY_STABLE_BAND:
        trend = EntropyTrend.STABLE
    elif velocity > 0:
        trend = EntropyTrend.DESTABILIZING
    else:
        trend = EntropyTrend.STABILIZING

    return EntropyVelocity(
        current_cei=current_cei,
        previous_cei=previous_cei,
        velocity=velocity,
        acceleration=acceleration,
        trend=trend,
    )


def calculate_conditional_cei(
    control_states: Sequence[StateLike],
    group_labels: Sequence[Optional[str]],
) -> Dict[str, EntropyResult]:
    """
    Calculate the CEI separately for each group of controls.

    Useful for per-framework or per-category disorder breakdowns.
    ``group_labels[i]`` labels ``control_states[i]``; a missing or empty
    label puts the state in the "unknown" group. Mismatched lengths are
    tolerated.

    Returns:
        Mapping of group label to EntropyResult, in first-seen group order
    """
    groups: Dict[str, List[StateLike]] = {}
    for i, state in enumerate(control_states):
        label = group_labels[i] if i < len(group_labels) else None
        groups.setdefault(label or UNKNOWN_GROUP, []).append(state)

    if len(group_labels) != len(control_states):
        logger.info(
            f"Conditional CEI: {len(control_states)} states vs {len(group_labels)} labels, "
            f"unlabeled states grouped as '{UNKNOWN_GROUP}'"
        )

    return {label: calculate_cei(states) for label, states in groups.items()}
