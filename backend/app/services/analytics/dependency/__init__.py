"""
Analytics Dependency Layer

Control dependency graph with cascade risk propagation and what-if failure
simulation.
"""

from .cascade import calculate_cascade_risk, simulate_control_failure, topological_order

__all__ = [
    "calculate_cascade_risk",
    "simulate_control_failure",
    "topological_order",
]
