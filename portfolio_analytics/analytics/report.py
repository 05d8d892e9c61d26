"""
Report assembly.

A PerformanceReport is a structural join of already computed results.
Nothing is recomputed here and no I/O happens; assembly fails only when a
required sub-result is missing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Sequence, Union

from portfolio_analytics.analytics.attribution import AttributionRecord, AttributionSummary
from portfolio_analytics.analytics.benchmark import ComparisonResult
from portfolio_analytics.analytics.performance import PerformanceMetrics
from portfolio_analytics.analytics.trades import SymbolTradeAnalysis
from portfolio_analytics.core.types import IncompleteReportError, TimeRange
from portfolio_analytics.utils.logger import get_logger

if TYPE_CHECKING:
    from portfolio_analytics.risk.calculator import RiskProfile

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BenchmarkLine:
    """One row of the benchmark comparison summary."""

    symbol: str
    name: str
    benchmark_return: float | None
    outperformance: float | None
    insufficient_overlap: bool


@dataclass(frozen=True)
class ReportSummary:
    """Headline numbers of a report."""

    portfolio_id: str
    total_value: float
    total_return: float
    sharpe_ratio: float
    max_drawdown: float
    win_rate: float
    volatility: float
    benchmarks: tuple[BenchmarkLine, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "portfolio_id": self.portfolio_id,
            "total_value": self.total_value,
            "total_return": self.total_return,
            "sharpe_ratio": self.sharpe_ratio,
            "max_drawdown": self.max_drawdown,
            "win_rate": self.win_rate,
            "volatility": self.volatility,
            "benchmarks": [
                {
                    "symbol": b.symbol,
                    "name": b.name,
                    "benchmark_return": b.benchmark_return,
                    "outperformance": b.outperformance,
                    "insufficient_overlap": b.insufficient_overlap,
                }
                for b in self.benchmarks
            ],
        }


@dataclass(frozen=True)
class PerformanceReport:
    """
    Immutable snapshot of one analysis request.

    ``generated_at`` does not take part in equality: two reports assembled
    from identical inputs compare equal.
    """

    portfolio_id: str
    performance: PerformanceMetrics
    risk: "RiskProfile"
    comparisons: tuple[ComparisonResult, ...]
    attribution: tuple[AttributionRecord, ...]
    time_range: TimeRange | None = None
    trade_analysis: tuple[SymbolTradeAnalysis, ...] = ()
    generated_at: datetime = field(default_factory=utc_now, compare=False)

    @property
    def excluded_benchmarks(self) -> tuple[str, ...]:
        return tuple(c.benchmark_symbol for c in self.comparisons if c.insufficient_overlap)

    def comparison(self, symbol: str) -> ComparisonResult | None:
        for result in self.comparisons:
            if result.benchmark_symbol == symbol:
                return result
        return None

    def summary(self) -> ReportSummary:
        """Headline numbers: value, return, key ratios, and benchmark lines."""
        lines = []
        for c in self.comparisons:
            lines.append(BenchmarkLine(
                symbol=c.benchmark_symbol,
                name=c.benchmark_name,
                benchmark_return=c.benchmark_metrics.total_return if c.benchmark_metrics else None,
                outperformance=c.excess_return,
                insufficient_overlap=c.insufficient_overlap,
            ))

        return ReportSummary(
            portfolio_id=self.portfolio_id,
            total_value=self.risk.latest_value,
            total_return=self.performance.total_return,
            sharpe_ratio=self.performance.sharpe_ratio,
            max_drawdown=self.performance.max_drawdown,
            win_rate=self.performance.win_rate,
            volatility=self.performance.volatility,
            benchmarks=tuple(lines),
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form for export collaborators."""
        time_range = None
        if self.time_range is not None:
            time_range = {
                "label": self.time_range.label,
                "start": self.time_range.start.isoformat() if self.time_range.start else None,
                "end": self.time_range.end.isoformat() if self.time_range.end else None,
            }

        return {
            "portfolio_id": self.portfolio_id,
            "generated_at": self.generated_at.isoformat(),
            "time_range": time_range,
            "summary": self.summary().to_dict(),
            "performance": self.performance.to_dict(),
            "risk": self.risk.to_dict(),
            "comparisons": [c.to_dict() for c in self.comparisons],
            "attribution": [r.to_dict() for r in self.attribution],
            "trade_analysis": [a.to_dict() for a in self.trade_analysis],
        }


class ReportAssembler:
    """
    Composes computed results into a PerformanceReport.

    The clock is injected so tests can pin the generation timestamp.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock or utc_now

    def assemble(
        self,
        performance: PerformanceMetrics | None,
        risk: "RiskProfile | None",
        comparisons: Sequence[ComparisonResult] | None,
        attribution: Union[Sequence[AttributionRecord], AttributionSummary, None],
        portfolio_id: str = "portfolio",
        time_range: TimeRange | None = None,
        trade_analysis: Sequence[SymbolTradeAnalysis] | None = None,
    ) -> PerformanceReport:
        """
        Assemble a report.

        Empty comparison or attribution lists are valid; None is not.

        Raises:
            IncompleteReportError: Naming every missing sub-result
        """
        required = {
            "performance": performance,
            "risk": risk,
            "comparisons": comparisons,
            "attribution": attribution,
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise IncompleteReportError(missing)

        if isinstance(attribution, AttributionSummary):
            attribution = attribution.records

        report = PerformanceReport(
            portfolio_id=portfolio_id,
            performance=performance,
            risk=risk,
            comparisons=tuple(comparisons),
            attribution=tuple(attribution),
            time_range=time_range,
            trade_analysis=tuple(trade_analysis or ()),
            generated_at=self.clock(),
        )

        logger.info(
            f"Assembled report for {portfolio_id}: {len(report.comparisons)} benchmark(s), "
            f"{len(report.attribution)} attribution categories"
        )
        return report


def assemble_report(
    performance: PerformanceMetrics | None,
    risk: "RiskProfile | None",
    comparisons: Sequence[ComparisonResult] | None,
    attribution: Union[Sequence[AttributionRecord], AttributionSummary, None],
    portfolio_id: str = "portfolio",
    time_range: TimeRange | None = None,
    trade_analysis: Sequence[SymbolTradeAnalysis] | None = None,
    clock: Clock | None = None,
) -> PerformanceReport:
    """
    Convenience function to assemble a PerformanceReport.

    Raises:
        IncompleteReportError: If a required sub-result is None
    """
    return ReportAssembler(clock=clock).assemble(
        performance,
        risk,
        comparisons,
        attribution,
        portfolio_id=portfolio_id,
        time_range=time_range,
        trade_analysis=trade_analysis,
    )
