"""
Analytics API Endpoints

REST API for ControlPulse analytics. Every endpoint is a thin wrapper around
a pure engine function; the request body carries the data arrays the
dashboard already holds.

Endpoint Structure:
    POST /analytics/entropy                 - Compliance Entropy Index
    POST /analytics/entropy/velocity        - CEI velocity over history
    POST /analytics/entropy/conditional     - CEI per group label
    POST /analytics/risk/derivatives        - Risk velocity/acceleration series
    POST /analytics/risk/momentum           - Risk momentum, trend and projections
    POST /analytics/bayesian/posterior      - Breach probability posterior
    POST /analytics/bayesian/fair           - Bayesian FAIR loss exposure
    POST /analytics/bayesian/timeseries     - Posterior after each evidence period
    GET  /analytics/priors                  - Industry benchmark priors
    POST /analytics/cascade                 - Cascade risk propagation
    POST /analytics/cascade/what-if         - Simulate a control failure
    GET  /analytics/version                 - Analytics version
"""

import logging
from typing import Callable, Dict, List, TypeVar

from fastapi import APIRouter, Depends, HTTPException

from ..schemas.analytics_schemas import (
    BayesianFAIRRequest,
    CascadeRequest,
    ConditionalEntropyRequest,
    ConditionalEntropyResponse,
    EntropyRequest,
    EntropyVelocityRequest,
    MomentumResponse,
    PosteriorRequest,
    PosteriorTimeSeriesRequest,
    PriorRequest,
    RiskSnapshotsRequest,
    WhatIfRequest,
)
from ..services.analytics import AnalyticsInputError, AnalyticsService, __version__, get_analytics_service
from ..services.analytics.bayesian import get_industry_prior
from ..services.analytics.models import (
    BayesianFAIRResult,
    BayesianPrior,
    CascadeResult,
    EntropyResult,
    EntropyVelocity,
    PosteriorResult,
    PosteriorTimeSeriesPoint,
    VelocityPoint,
    WhatIfResult,
)
from ..services.analytics.presentation import format_currency, format_momentum_score, format_velocity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["Analytics"])

T = TypeVar("T")


def _run(operation: str, compute: Callable[[], T]) -> T:
    """Run an engine call, mapping input errors to 422 and failures to 500."""
    try:
        return compute()
    except AnalyticsInputError as e:
        logger.warning(f"Rejected {operation} request: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Error calculating {operation}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to calculate {operation}")


def _resolve_prior(request: PriorRequest, analytics: AnalyticsService) -> BayesianPrior:
    if request.alpha is not None and request.beta is not None:
        return BayesianPrior(alpha=request.alpha, beta=request.beta, source="custom")
    if request.industry:
        return get_industry_prior(request.industry)
    return analytics.default_prior


# =============================================================================
# Compliance Entropy
# =============================================================================


@router.post(
    "/entropy",
    response_model=EntropyResult,
    summary="Compliance Entropy Index",
    description="Normalized Shannon entropy of control test outcomes",
)
async def compliance_entropy(
    request: EntropyRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> EntropyResult:
    """
    Calculate the CEI for a set of control states.

    Returns:
        EntropyResult; an empty request yields the "No Data" result
    """
    return _run("compliance entropy", lambda: analytics.compliance_entropy(request.control_states))


@router.post(
    "/entropy/velocity",
    response_model=EntropyVelocity,
    summary="Entropy velocity",
    description="First and second differences of CEI over recent history",
)
async def entropy_velocity(
    request: EntropyVelocityRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> EntropyVelocity:
    return _run(
        "entropy velocity",
        lambda: analytics.entropy_velocity(request.history, request.window_size),
    )


@router.post(
    "/entropy/conditional",
    response_model=ConditionalEntropyResponse,
    summary="Conditional entropy",
    description="CEI calculated independently per group label",
)
async def conditional_entropy(
    request: ConditionalEntropyRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> ConditionalEntropyResponse:
    groups = _run(
        "conditional entropy",
        lambda: analytics.conditional_entropy(request.control_states, request.group_labels),
    )
    return ConditionalEntropyResponse(groups=groups)


# =============================================================================
# Risk Velocity and Momentum
# =============================================================================


@router.post(
    "/risk/derivatives",
    response_model=List[VelocityPoint],
    summary="Risk derivatives",
    description="Velocity ($/day) and acceleration ($/day^2) per risk snapshot",
)
async def risk_derivatives(
    request: RiskSnapshotsRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> List[VelocityPoint]:
    return _run("risk derivatives", lambda: analytics.risk_derivatives(request.snapshots))


@router.post(
    "/risk/momentum",
    response_model=MomentumResponse,
    summary="Risk momentum",
    description="Momentum score, trend classification and 30/90-day projections",
)
async def risk_momentum(
    request: RiskSnapshotsRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> MomentumResponse:
    """
    Calculate risk momentum with dashboard display strings.

    Returns:
        MomentumResponse wrapping the MomentumResult and its formatted values
    """
    momentum = _run("risk momentum", lambda: analytics.risk_momentum(request.snapshots, request.window_size))

    return MomentumResponse(
        momentum=momentum,
        formatted_velocity=format_velocity(momentum.current_velocity),
        formatted_momentum_score=format_momentum_score(momentum.momentum_score),
        formatted_projection_30_days=format_currency(momentum.projected_risk_30_days),
        formatted_projection_90_days=format_currency(momentum.projected_risk_90_days),
    )


# =============================================================================
# Adaptive Bayesian Risk Scoring
# =============================================================================


@router.get(
    "/priors",
    response_model=Dict[str, BayesianPrior],
    summary="Industry priors",
    description="Benchmark Beta priors by industry",
)
async def industry_priors(
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> Dict[str, BayesianPrior]:
    return analytics.industry_priors()


@router.post(
    "/bayesian/posterior",
    response_model=PosteriorResult,
    summary="Breach probability posterior",
)
async def bayesian_posterior(
    request: PosteriorRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> PosteriorResult:
    prior = _resolve_prior(request, analytics)
    return _run("posterior", lambda: analytics.posterior(request.passes, request.failures, prior))


@router.post(
    "/bayesian/fair",
    response_model=BayesianFAIRResult,
    summary="Bayesian FAIR",
    description="Annual loss exposure from the posterior breach probability",
)
async def bayesian_fair_exposure(
    request: BayesianFAIRRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> BayesianFAIRResult:
    prior = _resolve_prior(request, analytics)
    return _run(
        "Bayesian FAIR",
        lambda: analytics.annual_loss_exposure(
            request.passes,
            request.failures,
            request.threat_event_frequency,
            request.loss_magnitude,
            prior,
        ),
    )


@router.post(
    "/bayesian/timeseries",
    response_model=List[PosteriorTimeSeriesPoint],
    summary="Posterior time series",
)
async def bayesian_time_series(
    request: PosteriorTimeSeriesRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> List[PosteriorTimeSeriesPoint]:
    prior = _resolve_prior(request, analytics)
    return _run("posterior time series", lambda: analytics.posterior_time_series(request.evidence_points, prior))


# =============================================================================
# Cascade Risk Propagation
# =============================================================================


@router.post(
    "/cascade",
    response_model=CascadeResult,
    summary="Cascade risk",
    description="Propagate failure risk through the control dependency graph",
)
async def cascade_risk(
    request: CascadeRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> CascadeResult:
    return _run("cascade risk", lambda: analytics.cascade_risk(request.nodes, request.edges))


@router.post(
    "/cascade/what-if",
    response_model=WhatIfResult,
    summary="What-if control failure",
)
async def what_if_failure(
    request: WhatIfRequest,
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> WhatIfResult:
    return _run(
        "what-if failure",
        lambda: analytics.what_if_failure(request.nodes, request.edges, request.failed_control_id),
    )


@router.get("/version", summary="Analytics version")
async def analytics_version() -> Dict[str, str]:
    return {"version": __version__, "engines": "entropy,momentum,bayesian,dependency"}
