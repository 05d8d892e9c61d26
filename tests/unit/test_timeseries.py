"""
Unit tests for equity curve analytics.
"""

import math
from datetime import datetime, timedelta

import numpy as np
import pandas as pd
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from portfolio_analytics.analytics.performance import PerformanceMetrics
from portfolio_analytics.analytics.timeseries import (
    TimeSeriesAnalyzer,
    analyze_series,
    infer_periods_per_year,
    period_returns,
)
from portfolio_analytics.core.types import (
    ConfigurationError,
    DataStatus,
    InsufficientDataError,
    MetricFlag,
    TimeSeries,
)


class TestInferPeriodsPerYear:
    """Tests for sampling frequency detection."""

    def test_daily(self):
        index = pd.date_range("2024-01-01", periods=30, freq="D")
        assert infer_periods_per_year(index) == 252

    def test_business_days(self):
        index = pd.bdate_range("2024-01-01", periods=30)
        assert infer_periods_per_year(index) == 252

    def test_hourly(self):
        index = [datetime(2024, 1, 1) + timedelta(hours=i) for i in range(48)]
        assert infer_periods_per_year(index) == 252 * 24

    def test_weekly(self):
        index = pd.date_range("2024-01-01", periods=20, freq="W")
        assert infer_periods_per_year(index) == 52

    def test_monthly(self):
        index = pd.date_range("2024-01-01", periods=12, freq="MS")
        assert infer_periods_per_year(index) == 12

    def test_too_few_timestamps(self):
        with pytest.raises(InsufficientDataError):
            infer_periods_per_year([datetime(2024, 1, 1)])


class TestTimeSeriesAnalyzer:
    """Tests for TimeSeriesAnalyzer."""

    def test_example_scenario(self, example_series):
        metrics = TimeSeriesAnalyzer().analyze(example_series)

        assert metrics.status == DataStatus.OK
        np.testing.assert_allclose(metrics.returns, [0.025, -0.00683, 0.02358], atol=1e-5)
        assert metrics.running_max == (10000.0, 10250.0, 10250.0, 10420.0)
        np.testing.assert_allclose(metrics.drawdowns, [0.0, 0.0, -0.00683, 0.0], atol=1e-5)
        assert metrics.max_drawdown == pytest.approx(-0.00683, abs=1e-5)

    def test_ratios_match_definitions(self, example_series):
        metrics = TimeSeriesAnalyzer(risk_free_rate=0.0).analyze(example_series)

        values = np.array(example_series.values)
        r = np.diff(values) / values[:-1]
        std = r.std(ddof=1)

        assert metrics.periods_per_year == 252
        assert metrics.volatility == pytest.approx(std * np.sqrt(252))
        assert metrics.sharpe_ratio == pytest.approx(r.mean() / std * np.sqrt(252))
        assert metrics.total_return == pytest.approx(0.042)
        assert metrics.annualized_return == pytest.approx(1.042 ** (252 / 3) - 1)
        assert metrics.calmar_ratio == pytest.approx(metrics.annualized_return / abs(metrics.max_drawdown))

    def test_single_negative_return_has_zero_downside_deviation(self, example_series):
        metrics = TimeSeriesAnalyzer().analyze(example_series)

        assert MetricFlag.ZERO_DOWNSIDE_DEVIATION in metrics.flags
        assert metrics.sortino_ratio == 0.0

    def test_sortino_uses_downside_deviation(self):
        series = TimeSeries.from_values([100, 102, 99, 101, 97, 100])
        metrics = TimeSeriesAnalyzer(risk_free_rate=0.0).analyze(series)

        values = np.array(series.values)
        r = np.diff(values) / values[:-1]
        downside = r[r < 0].std(ddof=1)

        assert metrics.sortino_ratio == pytest.approx(r.mean() / downside * np.sqrt(252))
        assert metrics.downside_deviation == pytest.approx(downside * np.sqrt(252))

    def test_constant_series_is_degenerate(self, flat_series):
        metrics = TimeSeriesAnalyzer().analyze(flat_series)

        assert metrics.max_drawdown == 0.0
        assert metrics.volatility == 0.0
        assert metrics.sharpe_ratio == 0.0
        assert metrics.sortino_ratio == 0.0
        assert metrics.degenerate
        assert MetricFlag.ZERO_VOLATILITY in metrics.flags
        assert not any(math.isnan(v) for v in metrics.to_dict().values() if isinstance(v, float))

    def test_no_negative_returns(self):
        series = TimeSeries.from_values([100, 101, 103, 104])
        metrics = TimeSeriesAnalyzer().analyze(series)

        assert metrics.sortino_ratio == math.inf
        assert metrics.calmar_ratio == math.inf
        assert MetricFlag.NO_DOWNSIDE in metrics.flags
        assert MetricFlag.NO_DRAWDOWN in metrics.flags

    def test_no_negative_returns_below_risk_free(self):
        series = TimeSeries.from_values([100, 101, 103, 104])
        metrics = TimeSeriesAnalyzer(risk_free_rate=10.0).analyze(series)

        assert metrics.sharpe_ratio < 0
        assert metrics.sortino_ratio == math.inf
        assert MetricFlag.NO_DOWNSIDE in metrics.flags

    def test_drawdown_statistics(self, example_series):
        metrics = TimeSeriesAnalyzer().analyze(example_series)
        depth = 70 / 10250

        assert metrics.current_drawdown == 0.0
        assert metrics.average_drawdown == pytest.approx(-depth)
        assert metrics.pain_index == pytest.approx(depth / 3)
        assert metrics.ulcer_index == pytest.approx(depth / np.sqrt(3))

    def test_drawdown_statistics_underwater_at_end(self):
        metrics = TimeSeriesAnalyzer().analyze(TimeSeries.from_values([100, 120, 90]))

        assert metrics.current_drawdown == pytest.approx(-0.25)
        assert metrics.average_drawdown == pytest.approx(-0.25)
        assert metrics.pain_index == pytest.approx(0.125)
        assert metrics.ulcer_index == pytest.approx(np.sqrt(0.0625 / 2))
        assert metrics.to_dict()["ulcer_index"] == metrics.ulcer_index

    def test_drawdown_statistics_without_drawdown(self, flat_series):
        metrics = TimeSeriesAnalyzer().analyze(flat_series)

        assert metrics.current_drawdown == 0.0
        assert metrics.average_drawdown == 0.0
        assert metrics.pain_index == 0.0
        assert metrics.ulcer_index == 0.0

    def test_drawdown_invariants(self, sample_equity):
        metrics = TimeSeriesAnalyzer().analyze(sample_equity)
        drawdowns = np.array(metrics.drawdowns)
        values = np.array(sample_equity.values)
        peaks = values == np.array(metrics.running_max)

        assert np.all(drawdowns <= 0)
        assert np.all(drawdowns[peaks] == 0)
        assert metrics.max_drawdown == pytest.approx(drawdowns.min())
        assert metrics.max_drawdown_duration > 0

    def test_risk_free_rate_lowers_sharpe(self, sample_equity):
        base = TimeSeriesAnalyzer(risk_free_rate=0.0).analyze(sample_equity)
        with_rf = TimeSeriesAnalyzer(risk_free_rate=0.05).analyze(sample_equity)

        assert with_rf.sharpe_ratio < base.sharpe_ratio

    def test_explicit_periods_per_year(self, example_series):
        metrics = TimeSeriesAnalyzer(periods_per_year=12).analyze(example_series)
        assert metrics.periods_per_year == 12

    def test_invalid_periods_per_year(self):
        with pytest.raises(ConfigurationError):
            TimeSeriesAnalyzer(periods_per_year=0)

    def test_insufficient_data(self):
        series = TimeSeries.from_values([100.0])
        metrics = TimeSeriesAnalyzer().analyze(series)

        assert metrics.status == DataStatus.INSUFFICIENT_DATA
        assert not metrics.is_sufficient
        assert metrics.sharpe_ratio == 0.0
        with pytest.raises(InsufficientDataError) as exc_info:
            metrics.raise_for_status()
        assert exc_info.value.n_points == 1

    def test_empty_series(self):
        metrics = analyze_series(TimeSeries())
        assert metrics.status == DataStatus.INSUFFICIENT_DATA
        assert metrics.n_points == 0

    def test_returns_and_drawdown_series(self, example_series):
        metrics = analyze_series(example_series)

        returns = metrics.returns_series()
        drawdown = metrics.drawdown_series()

        assert len(returns) == 3
        assert returns.index[0] == pd.Timestamp("2024-01-02")
        assert len(drawdown) == 4
        pd.testing.assert_series_equal(
            returns, period_returns(example_series), check_freq=False, check_index_type=False
        )

    def test_precomputed_returns_are_ignored(self, example_series):
        from portfolio_analytics.core.types import EquityPoint

        points = tuple(
            EquityPoint(p.timestamp, p.value, period_return=0.5) for p in example_series
        )
        metrics = analyze_series(TimeSeries(points))

        assert metrics.returns[0] == pytest.approx(0.025)


class TestPerformanceMetrics:
    """Tests for merging trade and series results."""

    def test_from_components(self, example_trades, example_series):
        from portfolio_analytics.analytics.trades import TradeAggregator

        trades = TradeAggregator().aggregate(example_trades)
        series = analyze_series(example_series)

        metrics = PerformanceMetrics.from_components(trades=trades, series=series)

        assert metrics.win_rate == pytest.approx(0.5)
        assert metrics.total_return == pytest.approx(0.042)
        assert metrics.max_drawdown == series.max_drawdown
        assert metrics.series_status == DataStatus.OK

    def test_to_dict_serializes_enums(self, flat_series):
        metrics = PerformanceMetrics.from_components(series=analyze_series(flat_series))
        data = metrics.to_dict()

        assert data["series_status"] == "ok"
        assert "zero_volatility" in data["flags"]
