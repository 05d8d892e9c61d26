"""
Performance Engine
==================

One-call pipeline from an analysis request to a PerformanceReport.

Every request is independent, so batches fan out across a thread pool
with no shared mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Sequence

from config.settings import get_settings
from portfolio_analytics.analytics.attribution import AttributionEngine
from portfolio_analytics.analytics.benchmark import BenchmarkComparator
from portfolio_analytics.analytics.performance import PerformanceMetrics
from portfolio_analytics.analytics.report import Clock, PerformanceReport, ReportAssembler
from portfolio_analytics.analytics.timeseries import TimeSeriesAnalyzer
from portfolio_analytics.analytics.trades import TradeAggregator
from portfolio_analytics.core.types import (
    BenchmarkSeries,
    CategoryWeightsAndReturns,
    TimeRange,
    TimeSeries,
    Trade,
)
from portfolio_analytics.risk.calculator import RiskCalculator
from portfolio_analytics.risk.var_models import VaRMethod
from portfolio_analytics.utils.decorators import log_execution
from portfolio_analytics.utils.helpers import parallel_apply
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AnalysisRequest:
    """
    Inputs of one analysis: a portfolio over a time range.

    Attributes:
        portfolio_id: Portfolio identifier
        equity: Portfolio equity curve
        time_range: Window to analyze (None for everything supplied)
        trades: Trades of the portfolio
        benchmarks: Benchmarks to compare against (also risk references)
        categories: Per-category weights/returns for attribution
        weights: Position weights for concentration risk
    """

    portfolio_id: str
    equity: TimeSeries
    time_range: TimeRange | None = None
    trades: tuple[Trade, ...] = ()
    benchmarks: tuple[BenchmarkSeries, ...] = ()
    categories: tuple[CategoryWeightsAndReturns, ...] = ()
    weights: Mapping[str, float] | None = None

    def __post_init__(self):
        object.__setattr__(self, "trades", tuple(self.trades))
        object.__setattr__(self, "benchmarks", tuple(self.benchmarks))
        object.__setattr__(self, "categories", tuple(self.categories))

    def windowed(self) -> "AnalysisRequest":
        """Request with every input restricted to the time range."""
        if self.time_range is None:
            return self
        window = self.time_range
        return replace(
            self,
            equity=self.equity.between(window),
            trades=tuple(t for t in self.trades if window.contains(t.timestamp)),
            benchmarks=tuple(replace(b, series=b.series.between(window)) for b in self.benchmarks),
        )


class PerformanceEngine:
    """
    Runs every analytics component for a request.

    Pipeline:
    1. Restrict inputs to the requested time range
    2. Trade statistics and equity curve metrics
    3. Risk profile against the benchmarks
    4. Benchmark comparison
    5. Attribution
    6. Report assembly
    """

    def __init__(
        self,
        risk_free_rate: float | None = None,
        periods_per_year: int | None = None,
        confidence_levels: Sequence[float] | None = None,
        var_method: VaRMethod | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.analyzer = TimeSeriesAnalyzer(
            risk_free_rate=risk_free_rate,
            periods_per_year=periods_per_year,
        )
        self.aggregator = TradeAggregator()
        self.risk_calculator = RiskCalculator(
            confidence_levels=confidence_levels,
            method=var_method,
            risk_free_rate=risk_free_rate,
            periods_per_year=periods_per_year,
        )
        self.comparator = BenchmarkComparator(analyzer=self.analyzer)
        self.attribution = AttributionEngine()
        self.assembler = ReportAssembler(clock=clock)

    @log_execution(level="DEBUG")
    def analyze(self, request: AnalysisRequest) -> PerformanceReport:
        """
        Analyze one request.

        Args:
            request: Portfolio, window, and supporting inputs

        Returns:
            PerformanceReport
        """
        request = request.windowed()
        equity = request.equity

        trade_stats = self.aggregator.aggregate(request.trades)
        series_metrics = self.analyzer.analyze(equity)
        performance = PerformanceMetrics.from_components(trades=trade_stats, series=series_metrics)

        risk = self.risk_calculator.calculate(equity, request.benchmarks, request.weights)
        comparisons = self.comparator.compare(equity, request.benchmarks)
        attribution = (
            self.attribution.decompose(request.categories).records if request.categories else ()
        )
        trade_analysis = tuple(self.aggregator.by_symbol(request.trades).values())

        return self.assembler.assemble(
            performance,
            risk,
            comparisons,
            attribution,
            portfolio_id=request.portfolio_id,
            time_range=request.time_range,
            trade_analysis=trade_analysis,
        )

    def analyze_batch(
        self,
        requests: Sequence[AnalysisRequest],
        max_workers: int | None = None,
    ) -> list[PerformanceReport]:
        """
        Analyze independent requests concurrently.

        Args:
            requests: Requests to analyze
            max_workers: Thread count (settings default when None)

        Returns:
            Reports in request order
        """
        workers = max_workers or get_settings().analytics.max_workers
        logger.info(f"Analyzing batch of {len(requests)} request(s)")
        return parallel_apply(self.analyze, list(requests), n_workers=workers, use_threads=True)
