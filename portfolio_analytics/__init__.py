"""
Portfolio Analytics - Performance & Risk Analytics Engine v1.0.0

Turns trades and equity curves into derived metrics:

TRADES:
- Win/loss statistics, profit factor, streaks
- Per-symbol and per-strategy breakdowns

EQUITY CURVES:
- Returns and drawdown series
- Annualized volatility and return
- Sharpe, Sortino, and Calmar ratios

RISK:
- Historical and parametric VaR, Expected Shortfall
- Beta, Jensen's alpha, correlation matrix
- Concentration (Herfindahl) and diversification

BENCHMARKS & ATTRIBUTION:
- Aligned comparison against N benchmarks
- Brinson-Fachler allocation/selection/interaction effects

REPORTING:
- Immutable PerformanceReport snapshots
- Batch analysis across a thread pool

Every computation is a pure function of its inputs.
"""

__version__ = "1.0.0"
__author__ = "Portfolio Analytics Team"

from typing import Final

PACKAGE_NAME: Final[str] = "portfolio_analytics"
VERSION: Final[str] = __version__

# =============================================================================
# CORE TYPES
# =============================================================================
from portfolio_analytics.core import (
    AnalyticsError,
    DataValidationError,
    InvalidTradeError,
    InvalidSeriesError,
    AttributionInputError,
    InsufficientDataError,
    InsufficientOverlapError,
    IncompleteReportError,
    ConfigurationError,
    TradeSide,
    DataStatus,
    MetricFlag,
    BenchmarkKind,
    TimeRangePreset,
    Trade,
    EquityPoint,
    TimeSeries,
    BenchmarkSeries,
    TimeRange,
    CategoryWeightsAndReturns,
)

# =============================================================================
# ANALYTICS
# =============================================================================
from portfolio_analytics.analytics import (
    PerformanceMetrics,
    TimeSeriesAnalyzer,
    TimeSeriesMetrics,
    analyze_series,
    TradeAggregator,
    TradeStatistics,
    SymbolTradeAnalysis,
    aggregate_trades,
    BenchmarkComparator,
    ComparisonResult,
    compare_to_benchmarks,
    AttributionEngine,
    AttributionRecord,
    AttributionSummary,
    compute_attribution,
    PerformanceReport,
    ReportAssembler,
    ReportSummary,
    assemble_report,
)

# =============================================================================
# RISK
# =============================================================================
from portfolio_analytics.risk import (
    RiskCalculator,
    RiskProfile,
    CorrelationMatrix,
    VaRCalculator,
    compute_risk,
)

# =============================================================================
# ENGINE
# =============================================================================
from portfolio_analytics.engine import AnalysisRequest, PerformanceEngine

__all__ = [
    "__version__",
    # Core types
    "AnalyticsError",
    "DataValidationError",
    "InvalidTradeError",
    "InvalidSeriesError",
    "AttributionInputError",
    "InsufficientDataError",
    "InsufficientOverlapError",
    "IncompleteReportError",
    "ConfigurationError",
    "TradeSide",
    "DataStatus",
    "MetricFlag",
    "BenchmarkKind",
    "TimeRangePreset",
    "Trade",
    "EquityPoint",
    "TimeSeries",
    "BenchmarkSeries",
    "TimeRange",
    "CategoryWeightsAndReturns",
    # Analytics
    "PerformanceMetrics",
    "TimeSeriesAnalyzer",
    "TimeSeriesMetrics",
    "analyze_series",
    "TradeAggregator",
    "TradeStatistics",
    "SymbolTradeAnalysis",
    "aggregate_trades",
    "BenchmarkComparator",
    "ComparisonResult",
    "compare_to_benchmarks",
    "AttributionEngine",
    "AttributionRecord",
    "AttributionSummary",
    "compute_attribution",
    "PerformanceReport",
    "ReportAssembler",
    "ReportSummary",
    "assemble_report",
    # Risk
    "RiskCalculator",
    "RiskProfile",
    "CorrelationMatrix",
    "VaRCalculator",
    "compute_risk",
    # Engine
    "AnalysisRequest",
    "PerformanceEngine",
]
