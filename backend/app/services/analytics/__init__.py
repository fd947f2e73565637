"""
ControlPulse Analytics

Single source of truth for derived compliance and risk indicators.

This module provides:
- Compliance Entropy Index (CEI) over control test outcomes
- Entropy velocity and per-group conditional entropy
- Risk velocity, acceleration, momentum and projections
- Adaptive Bayesian breach probability combined with FAIR loss exposure
- Cascade risk propagation through the control dependency graph

Architecture:
    Entry Point -> 4 Stateless Engines -> Presentation Mapping

Layers:
    1. Entropy Layer: CEI, zone, uniformity, velocity, conditional CEI
    2. Momentum Layer: dR/dt, d2R/dt2, momentum score, projections
    3. Bayesian Layer: Beta posterior, FAIR ALE, posterior time series
    4. Dependency Layer: Cascade risk, critical paths, what-if simulation

Every engine is a pure function over in-memory records: no I/O, no shared
mutable state, inputs are never modified. The service only bundles the
engines with configured defaults.

Usage:
    >>> from app.services.analytics import get_analytics_service
    >>> analytics = get_analytics_service()
    >>>
    >>> entropy = analytics.compliance_entropy(["pass", "pass", "fail", "warning"])
    >>> print(f"CEI: {entropy.cei:.2f} ({entropy.zone_label})")
    >>>
    >>> momentum = analytics.risk_momentum(snapshots)
    >>> print(f"{momentum.trend_label}: {format_velocity(momentum.current_velocity)}")
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .bayesian import (
    INDUSTRY_PRIORS,
    bayesian_fair,
    calculate_posterior,
    generate_posterior_time_series,
    get_industry_prior,
)
from .dependency import calculate_cascade_risk, simulate_control_failure
from .entropy import calculate_cei, calculate_conditional_cei, calculate_entropy_velocity
from .exceptions import AnalyticsInputError
from .models import (
    BayesianFAIRResult,
    BayesianPrior,
    CascadeResult,
    ControlState,
    EntropyResult,
    EntropyVelocity,
    EntropyZone,
    MomentumResult,
    MomentumTrend,
    PosteriorResult,
    PosteriorTimeSeriesPoint,
    RiskSnapshot,
    VelocityPoint,
    WhatIfResult,
)
from .momentum import calculate_risk_derivatives, calculate_risk_momentum
from .presentation import format_currency, format_momentum_score, format_velocity

logger = logging.getLogger(__name__)

__version__ = "1.0.0"
__all__ = [
    # Main service
    "AnalyticsService",
    "get_analytics_service",
    # Engines
    "calculate_cei",
    "calculate_entropy_velocity",
    "calculate_conditional_cei",
    "calculate_risk_derivatives",
    "calculate_risk_momentum",
    "calculate_posterior",
    "bayesian_fair",
    "generate_posterior_time_series",
    "calculate_cascade_risk",
    "simulate_control_failure",
    # Presentation
    "format_velocity",
    "format_momentum_score",
    "format_currency",
    # Models
    "ControlState",
    "EntropyZone",
    "EntropyResult",
    "EntropyVelocity",
    "RiskSnapshot",
    "VelocityPoint",
    "MomentumTrend",
    "MomentumResult",
    "BayesianPrior",
    "PosteriorResult",
    "BayesianFAIRResult",
    "CascadeResult",
    "WhatIfResult",
    # Errors
    "AnalyticsInputError",
]


class AnalyticsService:
    """
    Main entry point for ControlPulse analytics.

    Provides a unified interface to all engines, applying the configured
    window sizes and benchmark prior when callers do not supply their own.
    """

    def __init__(
        self,
        entropy_window: int = 3,
        momentum_window: int = 7,
        industry: Optional[str] = None,
    ):
        """
        Initialize analytics service.

        Args:
            entropy_window: Default CEI history window for entropy velocity
            momentum_window: Default number of points in the momentum average
            industry: Benchmark industry for the default Bayesian prior
        """
        if entropy_window < 1 or momentum_window < 1:
            raise AnalyticsInputError("Analytics windows must be at least 1", field="window_size")

        self.entropy_window = entropy_window
        self.momentum_window = momentum_window
        self.default_prior = get_industry_prior(industry)

    # Entropy Layer

    def compliance_entropy(self, control_states: Sequence[Union[ControlState, str]]) -> EntropyResult:
        """Compliance Entropy Index for the given control states."""
        return calculate_cei(control_states)

    def entropy_velocity(self, history: Sequence, window_size: Optional[int] = None) -> EntropyVelocity:
        """Rate of change of CEI over chronologically ordered history."""
        return calculate_entropy_velocity(history, self.entropy_window if window_size is None else window_size)

    def conditional_entropy(
        self,
        control_states: Sequence[Union[ControlState, str]],
        group_labels: Sequence[Optional[str]],
    ) -> Dict[str, EntropyResult]:
        """CEI per group label (framework, category, ...)."""
        return calculate_conditional_cei(control_states, group_labels)

    # Momentum Layer

    def risk_derivatives(self, snapshots: Sequence[Union[RiskSnapshot, Mapping]]) -> List[VelocityPoint]:
        """Velocity and acceleration for each risk snapshot."""
        return calculate_risk_derivatives(snapshots)

    def risk_momentum(
        self,
        snapshots: Sequence[Union[RiskSnapshot, Mapping]],
        window_size: Optional[int] = None,
    ) -> MomentumResult:
        """Momentum score, trend and projections for a risk time series."""
        return calculate_risk_momentum(snapshots, self.momentum_window if window_size is None else window_size)

    # Bayesian Layer

    def posterior(self, passes: int, failures: int, prior: Optional[BayesianPrior] = None) -> PosteriorResult:
        """Breach probability posterior, using the configured prior by default."""
        return calculate_posterior(prior or self.default_prior, passes, failures)

    def annual_loss_exposure(
        self,
        passes: int,
        failures: int,
        threat_event_frequency: float,
        loss_magnitude: float,
        prior: Optional[BayesianPrior] = None,
    ) -> BayesianFAIRResult:
        """Bayesian FAIR annual loss exposure."""
        return bayesian_fair(prior or self.default_prior, passes, failures, threat_event_frequency, loss_magnitude)

    def posterior_time_series(
        self,
        evidence_points: Sequence,
        prior: Optional[BayesianPrior] = None,
    ) -> List[PosteriorTimeSeriesPoint]:
        """Posterior after each evidence period."""
        return generate_posterior_time_series(prior or self.default_prior, evidence_points)

    # Dependency Layer

    def cascade_risk(self, nodes: Sequence, edges: Sequence) -> CascadeResult:
        """Cascade risk through the control dependency graph."""
        return calculate_cascade_risk(nodes, edges)

    def what_if_failure(self, nodes: Sequence, edges: Sequence, failed_control_id: str) -> WhatIfResult:
        """Impact of a complete failure of one control."""
        return simulate_control_failure(nodes, edges, failed_control_id)

    @staticmethod
    def industry_priors() -> Dict[str, BayesianPrior]:
        """Available industry benchmark priors."""
        return dict(INDUSTRY_PRIORS)


def get_analytics_service() -> AnalyticsService:
    """
    Factory function to create an AnalyticsService from application settings.

    Returns:
        AnalyticsService configured with the settings' windows and industry

    Example:
        >>> analytics = get_analytics_service()
        >>> result = analytics.compliance_entropy(states)
    """
    from ...config import get_settings

    settings = get_settings()
    return AnalyticsService(
        entropy_window=settings.entropy_velocity_window,
        momentum_window=settings.momentum_window,
        industry=settings.default_industry,
    )
