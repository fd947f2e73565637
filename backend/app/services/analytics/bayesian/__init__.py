"""
Analytics Bayesian Layer

Adaptive Bayesian Risk Scoring: Beta-Binomial breach probability updated by
control test evidence, combined with FAIR annual loss exposure.
"""

from .posterior import (
    DEFAULT_INDUSTRY,
    INDUSTRY_PRIORS,
    bayesian_fair,
    beta_pdf,
    calculate_posterior,
    classify_evidence_strength,
    generate_posterior_time_series,
    get_industry_prior,
    sample_beta_distribution,
)

__all__ = [
    "DEFAULT_INDUSTRY",
    "INDUSTRY_PRIORS",
    "bayesian_fair",
    "beta_pdf",
    "calculate_posterior",
    "classify_evidence_strength",
    "generate_posterior_time_series",
    "get_industry_prior",
    "sample_beta_distribution",
]
