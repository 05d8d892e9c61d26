"""
Risk Module
===========

Risk measures for portfolio equity curves.

- var_models: Historical and parametric VaR, Expected Shortfall
- correlation: Correlation matrix, beta, pair classification
- calculator: RiskCalculator and the RiskProfile result
"""

from portfolio_analytics.risk.calculator import (
    ConcentrationRisk,
    RiskCalculator,
    RiskLevel,
    RiskProfile,
    assess_risk_level,
    calculate_concentration,
    calculate_risk_score,
    compute_risk,
)
from portfolio_analytics.risk.correlation import (
    CorrelationMatrix,
    CorrelationPair,
    align_returns,
    calculate_alpha,
    calculate_beta,
    calculate_correlation_matrix,
    calculate_treynor,
    classify_correlation,
    common_timestamps,
)
from portfolio_analytics.risk.var_models import (
    VaRCalculator,
    VaREstimate,
    calculate_cvar,
    calculate_var,
    historical_quantile,
)

__all__ = [
    "ConcentrationRisk",
    "RiskCalculator",
    "RiskLevel",
    "RiskProfile",
    "assess_risk_level",
    "calculate_alpha",
    "calculate_concentration",
    "calculate_risk_score",
    "common_timestamps",
    "compute_risk",
    "CorrelationMatrix",
    "CorrelationPair",
    "align_returns",
    "calculate_beta",
    "calculate_correlation_matrix",
    "classify_correlation",
    "calculate_treynor",
    "VaRCalculator",
    "VaREstimate",
    "calculate_cvar",
    "calculate_var",
    "historical_quantile",
]
