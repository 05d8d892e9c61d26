"""
Benchmark comparison.

Each benchmark is compared to the portfolio over their common timestamps
only, with both curves analyzed independently over that window.
Outperformance is signed so that a positive value always means the
portfolio did better, including for lower-is-better metrics.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

import numpy as np

from config.settings import get_settings
from portfolio_analytics.analytics.timeseries import (
    TimeSeriesAnalyzer,
    TimeSeriesMetrics,
    period_returns,
)
from portfolio_analytics.core.types import (
    BenchmarkKind,
    BenchmarkSeries,
    InsufficientOverlapError,
    TimeSeries,
)
from portfolio_analytics.risk.correlation import (
    align_returns,
    calculate_alpha,
    calculate_beta,
    calculate_correlation_matrix,
    calculate_treynor,
    common_timestamps,
)
from portfolio_analytics.utils.helpers import is_zero
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)


def _higher_is_better(portfolio: float, benchmark: float) -> float:
    return portfolio - benchmark


def _lower_is_better(portfolio: float, benchmark: float) -> float:
    return benchmark - portfolio


def _shallower_is_better(portfolio: float, benchmark: float) -> float:
    return abs(benchmark) - abs(portfolio)


# Metric name -> outperformance rule
TRACKED_METRICS: dict[str, Callable[[float, float], float]] = {
    "total_return": _higher_is_better,
    "annualized_return": _higher_is_better,
    "volatility": _lower_is_better,
    "sharpe_ratio": _higher_is_better,
    "sortino_ratio": _higher_is_better,
    "calmar_ratio": _higher_is_better,
    "max_drawdown": _shallower_is_better,
}


def outperformance(metric: str, portfolio: float, benchmark: float) -> float | None:
    """
    Signed outperformance of one metric; positive means the portfolio did better.

    Returns:
        None when either side is not finite (e.g. both Sortino ratios +inf)
    """
    if not (math.isfinite(portfolio) and math.isfinite(benchmark)):
        return None
    return TRACKED_METRICS[metric](portfolio, benchmark)


@dataclass(frozen=True)
class ComparisonResult:
    """Portfolio versus one benchmark over their common window."""

    benchmark_symbol: str
    benchmark_name: str
    kind: BenchmarkKind = BenchmarkKind.INDEX
    insufficient_overlap: bool = False
    reason: str | None = None

    # Common window
    n_overlap: int = 0
    overlap_start: datetime | None = None
    overlap_end: datetime | None = None

    portfolio_metrics: TimeSeriesMetrics | None = None
    benchmark_metrics: TimeSeriesMetrics | None = None
    outperformance: Mapping[str, float | None] = field(default_factory=dict)

    # Relative statistics
    beta: float | None = None
    correlation: float | None = None
    tracking_error: float | None = None
    information_ratio: float | None = None
    alpha: float | None = None
    treynor_ratio: float | None = None
    r_squared: float | None = None

    def __post_init__(self):
        object.__setattr__(self, "outperformance", MappingProxyType(dict(self.outperformance)))

    @property
    def excess_return(self) -> float | None:
        return self.outperformance.get("total_return")

    def raise_for_status(self) -> None:
        """
        Raises:
            InsufficientOverlapError: If the benchmark was excluded
        """
        if self.insufficient_overlap:
            raise InsufficientOverlapError(
                f"{self.benchmark_symbol}: {self.reason}",
                benchmark=self.benchmark_symbol,
                n_overlap=self.n_overlap,
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "benchmark_symbol": self.benchmark_symbol,
            "benchmark_name": self.benchmark_name,
            "kind": self.kind.value,
            "insufficient_overlap": self.insufficient_overlap,
            "reason": self.reason,
            "n_overlap": self.n_overlap,
            "overlap_start": self.overlap_start.isoformat() if self.overlap_start else None,
            "overlap_end": self.overlap_end.isoformat() if self.overlap_end else None,
            "portfolio_metrics": self.portfolio_metrics.to_dict() if self.portfolio_metrics else None,
            "benchmark_metrics": self.benchmark_metrics.to_dict() if self.benchmark_metrics else None,
            "outperformance": dict(self.outperformance),
            "beta": self.beta,
            "correlation": self.correlation,
            "tracking_error": self.tracking_error,
            "information_ratio": self.information_ratio,
            "alpha": self.alpha,
            "treynor_ratio": self.treynor_ratio,
            "r_squared": self.r_squared,
        }


class BenchmarkComparator:
    """
    Compares a portfolio curve against N benchmarks.

    A benchmark sharing fewer than ``min_overlap_points`` timestamps with
    the portfolio is excluded with ``insufficient_overlap`` set, never
    dropped silently.
    """

    def __init__(
        self,
        analyzer: TimeSeriesAnalyzer | None = None,
        min_overlap_points: int | None = None,
    ) -> None:
        self.analyzer = analyzer or TimeSeriesAnalyzer()
        self.min_overlap_points = max(
            2,
            get_settings().analytics.min_overlap_points if min_overlap_points is None else min_overlap_points,
        )

    def compare(
        self,
        portfolio: TimeSeries,
        benchmarks: Sequence[BenchmarkSeries],
    ) -> list[ComparisonResult]:
        """
        Compare the portfolio to each benchmark.

        Returns:
            One result per benchmark, in input order
        """
        results = [self.compare_one(portfolio, b) for b in benchmarks]
        excluded = sum(r.insufficient_overlap for r in results)
        logger.debug(f"Compared {portfolio.name} to {len(results)} benchmark(s), {excluded} excluded")
        return results

    def compare_one(self, portfolio: TimeSeries, benchmark: BenchmarkSeries) -> ComparisonResult:
        common = common_timestamps(portfolio, benchmark.series)

        if len(common) < self.min_overlap_points:
            reason = (
                f"only {len(common)} timestamp(s) overlap with {portfolio.name}, "
                f"at least {self.min_overlap_points} required"
            )
            logger.warning(f"Excluding benchmark {benchmark.symbol}: {reason}")
            return ComparisonResult(
                benchmark_symbol=benchmark.symbol,
                benchmark_name=benchmark.name,
                kind=benchmark.kind,
                insufficient_overlap=True,
                reason=reason,
                n_overlap=len(common),
                overlap_start=common[0].to_pydatetime() if common else None,
                overlap_end=common[-1].to_pydatetime() if common else None,
            )

        p_series = portfolio.restrict_to(common)
        b_series = benchmark.series.restrict_to(common)
        p_metrics = self.analyzer.analyze(p_series)
        b_metrics = self.analyzer.analyze(b_series)

        deltas = {
            metric: outperformance(metric, getattr(p_metrics, metric), getattr(b_metrics, metric))
            for metric in TRACKED_METRICS
        }

        p_returns = period_returns(p_series)
        b_returns = period_returns(b_series)
        ppy = p_metrics.periods_per_year
        beta = calculate_beta(p_returns, b_returns)
        tracking_error, information_ratio = self._active_risk(p_returns, b_returns, ppy)
        correlation = calculate_correlation_matrix(
            align_returns({"portfolio": p_returns, "benchmark": b_returns})
        ).get("portfolio", "benchmark")

        return ComparisonResult(
            benchmark_symbol=benchmark.symbol,
            benchmark_name=benchmark.name,
            kind=benchmark.kind,
            n_overlap=len(common),
            overlap_start=common[0].to_pydatetime(),
            overlap_end=common[-1].to_pydatetime(),
            portfolio_metrics=p_metrics,
            benchmark_metrics=b_metrics,
            outperformance=deltas,
            beta=beta,
            correlation=correlation,
            tracking_error=tracking_error,
            information_ratio=information_ratio,
            alpha=calculate_alpha(p_returns, b_returns, beta, self.analyzer.risk_free_rate, ppy),
            treynor_ratio=calculate_treynor(p_returns, beta, self.analyzer.risk_free_rate, ppy),
            r_squared=None if correlation is None else correlation ** 2,
        )

    @staticmethod
    def _active_risk(p_returns, b_returns, periods_per_year: int) -> tuple[float | None, float | None]:
        """Annualized tracking error and information ratio."""
        aligned = align_returns({"p": p_returns, "b": b_returns})
        active = (aligned["p"] - aligned["b"]).to_numpy()
        if len(active) < 2:
            return None, None

        active_std = float(np.std(active, ddof=1))
        tracking_error = active_std * np.sqrt(periods_per_year)
        if is_zero(active_std):
            return float(tracking_error), None

        information_ratio = float(active.mean()) / active_std * np.sqrt(periods_per_year)
        return float(tracking_error), float(information_ratio)


def compare_to_benchmarks(
    portfolio: TimeSeries,
    benchmarks: Sequence[BenchmarkSeries],
) -> list[ComparisonResult]:
    """
    Convenience function to compare a portfolio with benchmarks.

    Args:
        portfolio: Portfolio equity curve
        benchmarks: Reference series

    Returns:
        One ComparisonResult per benchmark, in input order
    """
    return BenchmarkComparator().compare(portfolio, benchmarks)
