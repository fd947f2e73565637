"""
Analytics Entropy Layer

Compliance Entropy Index (CEI): Shannon entropy over control test outcomes.

Components:
    calculate_cei: CEI, zone, dominant state and uniformity for a control set
    calculate_entropy_velocity: First/second differences of CEI history
    calculate_conditional_cei: Per-group (framework, category) CEI breakdown
"""

from .compliance_entropy import (
    UNKNOWN_GROUP,
    calculate_cei,
    calculate_conditional_cei,
    calculate_entropy_velocity,
    classify_entropy_zone,
    shannon_entropy,
    uniformity_score,
)

__all__ = [
    "UNKNOWN_GROUP",
    "calculate_cei",
    "calculate_entropy_velocity",
    "calculate_conditional_cei",
    "classify_entropy_zone",
    "shannon_entropy",
    "uniformity_score",
]
