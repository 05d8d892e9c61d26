"""
Core types for the analytics engine.
"""

from portfolio_analytics.core.types import (
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

__all__ = [
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
]
