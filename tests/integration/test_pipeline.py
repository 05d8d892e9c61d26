"""
Integration tests for the full analytics pipeline.

Raw trade mappings and equity curves go in; a PerformanceReport comes out.
"""

from datetime import datetime, timedelta

import numpy as np
import pandas as pd
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from portfolio_analytics import (
    AnalysisRequest,
    BenchmarkSeries,
    CategoryWeightsAndReturns,
    PerformanceEngine,
    PerformanceMetrics,
    TimeRange,
    TimeSeries,
    Trade,
    TradeAggregator,
    aggregate_trades,
    analyze_series,
    assemble_report,
    compare_to_benchmarks,
    compute_attribution,
    compute_risk,
)


@pytest.fixture
def market():
    """Portfolio, two benchmarks, and a trade journal over six months."""
    np.random.seed(123)
    index = pd.bdate_range("2024-01-01", periods=130)
    market_returns = np.random.normal(0.0004, 0.01, len(index))

    portfolio = TimeSeries.from_values(
        50_000 * np.cumprod(1 + 1.2 * market_returns + np.random.normal(0, 0.004, len(index))),
        index=index,
    )
    spy = BenchmarkSeries(
        "SPY", "S&P 500", TimeSeries.from_values(470 * np.cumprod(1 + market_returns), index=index, name="SPY")
    )
    btc = BenchmarkSeries(
        "BTC", "Bitcoin",
        TimeSeries.from_values(
            42_000 * np.cumprod(1 + np.random.normal(0.001, 0.03, 60)),
            index=index[70:],
            name="BTC",
        ),
        kind="competitor",
    )

    raw_trades = [
        {
            "id": f"T{i}",
            "symbol": ["AAPL", "MSFT", "NVDA"][i % 3],
            "side": "sell",
            "quantity": 10,
            "price": 100 + i,
            "fees": 0.5,
            "pnl": pnl,
            "timestamp": (datetime(2024, 3, 6) + timedelta(days=7 * i)).isoformat(),
            "strategy": "trend",
        }
        for i, pnl in enumerate([120.0, -40.0, 75.0, 0.0, -60.0, 210.0, -15.0, 33.0])
    ]
    trades = [Trade.from_dict(t) for t in raw_trades]

    categories = [
        CategoryWeightsAndReturns("Tech", 0.55, 0.11, 0.35, 0.09),
        CategoryWeightsAndReturns("Health", 0.15, 0.03, 0.25, 0.04),
        CategoryWeightsAndReturns("Energy", 0.10, -0.05, 0.15, -0.02),
        CategoryWeightsAndReturns("Cash", 0.20, 0.01, 0.25, 0.01),
    ]
    return portfolio, [spy, btc], trades, categories


class TestPipeline:
    """End-to-end tests through the public functions."""

    def test_public_functions_compose(self, market):
        portfolio, benchmarks, trades, categories = market

        series_metrics = analyze_series(portfolio)
        assert series_metrics.periods_per_year == 252

        performance = PerformanceMetrics.from_components(
            trades=TradeAggregator().aggregate(trades), series=series_metrics
        )
        risk = compute_risk(portfolio, [b.series for b in benchmarks], [0.95, 0.99])
        comparisons = compare_to_benchmarks(portfolio, benchmarks)
        attribution = compute_attribution(categories)

        report = assemble_report(performance, risk, comparisons, attribution, portfolio_id="growth")

        assert report.risk.var_99 >= report.risk.var_95 > 0
        assert report.risk.betas["SPY"] == pytest.approx(1.2, abs=0.15)
        assert not any(c.insufficient_overlap for c in report.comparisons)
        assert report.comparison("BTC").n_overlap == 60
        assert sum(r.contribution for r in report.attribution) == pytest.approx(
            sum(c.portfolio_weight * c.portfolio_return for c in categories)
            - sum(c.benchmark_weight * c.benchmark_return for c in categories),
            rel=1e-9,
        )

    def test_trade_journal(self, market):
        _, _, trades, _ = market
        metrics = aggregate_trades(trades)

        assert metrics.total_trades == 8
        assert metrics.winning_trades == 4
        assert metrics.losing_trades == 3
        assert metrics.win_rate == pytest.approx(0.5)
        assert metrics.profit_factor == pytest.approx(438.0 / 115.0)
        assert metrics.total_fees == pytest.approx(4.0)

    def test_engine_over_time_range(self, market, fixed_clock):
        portfolio, benchmarks, trades, categories = market
        window = TimeRange.from_preset("90d", as_of=datetime(2024, 6, 28))

        report = PerformanceEngine(clock=fixed_clock).analyze(
            AnalysisRequest(
                portfolio_id="growth",
                equity=portfolio,
                time_range=window,
                trades=trades,
                benchmarks=benchmarks,
                categories=categories,
                weights={"AAPL": 0.4, "MSFT": 0.35, "NVDA": 0.25},
            )
        )

        assert report.time_range.label == "90d"
        assert all(window.contains(t) for t in report.comparison("SPY").portfolio_metrics.timestamps)
        assert report.performance.total_trades == 4
        assert report.performance.net_profit == pytest.approx(-60.0 + 210.0 - 15.0 + 33.0)
        assert report.risk.concentration.largest_position == "AAPL"

        data = report.to_dict()
        assert data["portfolio_id"] == "growth"
        assert data["summary"]["benchmarks"][0]["symbol"] == "SPY"

    def test_repeatable(self, market, fixed_clock):
        portfolio, benchmarks, trades, categories = market
        request = AnalysisRequest("growth", portfolio, trades=trades, benchmarks=benchmarks, categories=categories)
        engine = PerformanceEngine(clock=fixed_clock)

        assert engine.analyze(request) == engine.analyze(request)
