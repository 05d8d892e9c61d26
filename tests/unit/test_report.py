"""
Unit tests for report assembly.
"""

from datetime import datetime, timezone

import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from portfolio_analytics.analytics.attribution import AttributionEngine, compute_attribution
from portfolio_analytics.analytics.benchmark import compare_to_benchmarks
from portfolio_analytics.analytics.performance import PerformanceMetrics
from portfolio_analytics.analytics.report import ReportAssembler, assemble_report
from portfolio_analytics.analytics.timeseries import analyze_series
from portfolio_analytics.analytics.trades import TradeAggregator
from portfolio_analytics.core.types import IncompleteReportError, TimeRange
from portfolio_analytics.risk.calculator import compute_risk


@pytest.fixture
def report_inputs(sample_equity, spy_benchmark, late_benchmark, example_trades, example_categories):
    """Computed sub-results for one report."""
    performance = PerformanceMetrics.from_components(
        trades=TradeAggregator().aggregate(example_trades),
        series=analyze_series(sample_equity),
    )
    return {
        "performance": performance,
        "risk": compute_risk(sample_equity, [spy_benchmark]),
        "comparisons": compare_to_benchmarks(sample_equity, [spy_benchmark, late_benchmark]),
        "attribution": compute_attribution(example_categories),
    }


class TestReportAssembler:
    """Tests for ReportAssembler."""

    def test_assemble(self, report_inputs, fixed_clock):
        report = ReportAssembler(clock=fixed_clock).assemble(**report_inputs, portfolio_id="main")

        assert report.portfolio_id == "main"
        assert report.generated_at == datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)
        assert len(report.comparisons) == 2
        assert len(report.attribution) == 4
        assert report.excluded_benchmarks == ("LATE",)
        assert report.comparison("SPY").benchmark_name == "S&P 500 ETF"
        assert report.comparison("QQQ") is None

    @pytest.mark.parametrize("missing", ["performance", "risk", "comparisons", "attribution"])
    def test_missing_piece(self, report_inputs, missing):
        report_inputs[missing] = None

        with pytest.raises(IncompleteReportError) as exc_info:
            assemble_report(**report_inputs)
        assert exc_info.value.missing == (missing,)
        assert missing in str(exc_info.value)

    def test_names_every_missing_piece(self, report_inputs):
        with pytest.raises(IncompleteReportError) as exc_info:
            assemble_report(report_inputs["performance"], None, None, report_inputs["attribution"])
        assert exc_info.value.missing == ("risk", "comparisons")

    def test_empty_lists_are_valid(self, report_inputs):
        report = assemble_report(report_inputs["performance"], report_inputs["risk"], [], [])

        assert report.comparisons == ()
        assert report.attribution == ()

    def test_accepts_attribution_summary(self, report_inputs, example_categories):
        summary = AttributionEngine().decompose(example_categories)
        report_inputs["attribution"] = summary

        report = assemble_report(**report_inputs)

        assert report.attribution == summary.records

    def test_round_trip_is_deep_equal(self, report_inputs):
        first = assemble_report(**report_inputs)
        second = assemble_report(**report_inputs)

        assert first == second
        assert first.to_dict()["summary"] == second.to_dict()["summary"]

    def test_generation_time_not_compared(self, report_inputs):
        early = assemble_report(**report_inputs, clock=lambda: datetime(2024, 1, 1))
        late = assemble_report(**report_inputs, clock=lambda: datetime(2025, 1, 1))

        assert early == late
        assert early.generated_at != late.generated_at

    def test_is_immutable(self, report_inputs):
        report = assemble_report(**report_inputs)
        with pytest.raises(AttributeError):
            report.portfolio_id = "other"


class TestReportSummary:
    """Tests for report summaries and export form."""

    def test_summary(self, report_inputs, sample_equity):
        report = assemble_report(**report_inputs)
        summary = report.summary()

        assert summary.total_value == pytest.approx(sample_equity.values[-1])
        assert summary.total_return == report.performance.total_return
        assert summary.win_rate == pytest.approx(0.5)
        assert [b.symbol for b in summary.benchmarks] == ["SPY", "LATE"]

        spy, late = summary.benchmarks
        assert spy.outperformance == report.comparison("SPY").outperformance["total_return"]
        assert late.insufficient_overlap
        assert late.benchmark_return is None

    def test_to_dict(self, report_inputs, fixed_clock):
        window = TimeRange(start=datetime(2023, 1, 1), end=datetime(2023, 12, 31), label="1y")
        report = assemble_report(**report_inputs, time_range=window, clock=fixed_clock)

        data = report.to_dict()

        assert data["generated_at"] == "2024-06-30T12:00:00+00:00"
        assert data["time_range"]["label"] == "1y"
        assert data["risk"]["status"] == "ok"
        assert len(data["comparisons"]) == 2
        assert data["summary"]["benchmarks"][1]["insufficient_overlap"] is True
