"""
Analytics Module
================

Performance analytics over trades and equity curves.

Components:
- trades: Win/loss statistics per portfolio, symbol, and strategy
- timeseries: Returns, drawdowns, volatility, and risk-adjusted ratios
- benchmark: Aligned comparison against benchmark series
- attribution: Brinson-Fachler return attribution
- report: Immutable report assembly
"""

# timeseries must load before benchmark: the risk package imports it
from portfolio_analytics.analytics.performance import PerformanceMetrics
from portfolio_analytics.analytics.timeseries import (
    TimeSeriesAnalyzer,
    TimeSeriesMetrics,
    analyze_series,
    infer_periods_per_year,
    period_returns,
)
from portfolio_analytics.analytics.trades import (
    SymbolTradeAnalysis,
    TradeAggregator,
    TradeStatistics,
    aggregate_trades,
)
from portfolio_analytics.analytics.benchmark import (
    TRACKED_METRICS,
    BenchmarkComparator,
    ComparisonResult,
    compare_to_benchmarks,
    outperformance,
)
from portfolio_analytics.analytics.attribution import (
    AttributionEngine,
    AttributionRecord,
    AttributionSummary,
    compute_attribution,
)
from portfolio_analytics.analytics.report import (
    BenchmarkLine,
    PerformanceReport,
    ReportAssembler,
    ReportSummary,
    assemble_report,
)

__all__ = [
    "PerformanceMetrics",
    "TimeSeriesAnalyzer",
    "TimeSeriesMetrics",
    "analyze_series",
    "infer_periods_per_year",
    "period_returns",
    "SymbolTradeAnalysis",
    "TradeAggregator",
    "TradeStatistics",
    "aggregate_trades",
    "TRACKED_METRICS",
    "BenchmarkComparator",
    "ComparisonResult",
    "compare_to_benchmarks",
    "outperformance",
    "AttributionEngine",
    "AttributionRecord",
    "AttributionSummary",
    "compute_attribution",
    "BenchmarkLine",
    "PerformanceReport",
    "ReportAssembler",
    "ReportSummary",
    "assemble_report",
]
