"""
Analytics Momentum Layer

Temporal risk velocity (dR/dt), acceleration (d2R/dt2), bounded momentum
score, trend classification and 30/90-day risk projections.
"""

from .risk_velocity import (
    calculate_risk_derivatives,
    calculate_risk_momentum,
    classify_momentum,
    coerce_snapshots,
    project_risk,
)

__all__ = [
    "calculate_risk_derivatives",
    "calculate_risk_momentum",
    "classify_momentum",
    "coerce_snapshots",
    "project_risk",
]
