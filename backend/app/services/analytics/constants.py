"""
Analytics Constants

Thresholds and calibration parameters shared by the analytics engines.

Entropy zones (Compliance Entropy Index, normalized 0-1):
    0.0 - 0.3:  Ordered        (controls concentrated in one state)
    0.3 - 0.7:  Transitional
    0.7 - 1.0:  Chaotic        (outcomes spread across all states)

Risk momentum trend bands (momentum score, bounded -1..+1):
    < -0.30:        improving_fast
    -0.30 .. -0.05: improving
    -0.05 .. +0.05: stable
    +0.05 .. +0.30: worsening
    > +0.30:        worsening_fast

Calibration parameters:
    MOMENTUM_SCALE_DAYS and the uniformity score normalization are heuristic
    values. Keep them as-is unless recalibrated against real incident data.
"""

import math
from typing import Final, Tuple

# Control states in fixed enumeration order (also the dominant-state tie-break order)
CONTROL_STATE_ORDER: Final[Tuple[str, ...]] = ("pass", "fail", "warning", "not_tested")
NUM_CONTROL_STATES: Final[int] = len(CONTROL_STATE_ORDER)
LOG2_NUM_STATES: Final[float] = math.log2(NUM_CONTROL_STATES)

# Entropy zone thresholds
ENTROPY_ZONE_TRANSITIONAL: Final[float] = 0.3
ENTROPY_ZONE_CHAOTIC: Final[float] = 0.7

# Entropy velocity
ENTROPY_VELOCITY_WINDOW: Final[int] = 3
ENTROPY_VELOCITY_STABLE_BAND: Final[float] = 0.02

# Risk derivatives
SECONDS_PER_DAY: Final[float] = 86400.0

# Risk momentum
MOMENTUM_WINDOW: Final[int] = 7
MOMENTUM_SCALE_DAYS: Final[float] = 30.0  # daily velocity -> ~monthly change
MOMENTUM_MIN_MAX_RISK: Final[float] = 1.0
MOMENTUM_IMPROVING_FAST: Final[float] = -0.3
MOMENTUM_IMPROVING: Final[float] = -0.05
MOMENTUM_WORSENING: Final[float] = 0.05
MOMENTUM_WORSENING_FAST: Final[float] = 0.3

# Risk projection horizons (days)
PROJECTION_SHORT_DAYS: Final[float] = 30.0
PROJECTION_LONG_DAYS: Final[float] = 90.0

# Bayesian risk scoring
CREDIBLE_INTERVAL_Z: Final[float] = 1.96  # 95% normal approximation
EVIDENCE_WEAK: Final[int] = 10
EVIDENCE_MODERATE: Final[int] = 50
EVIDENCE_STRONG: Final[int] = 200
BETA_SAMPLE_SIZE: Final[int] = 1000

# Cascade risk propagation
CRITICAL_PATH_CANDIDATES: Final[int] = 5
CRITICAL_PATH_LIMIT: Final[int] = 3
WHAT_IF_MIN_INCREASE: Final[float] = 0.01
