"""
Pytest Configuration and Fixtures
==================================

Shared fixtures for all tests of the analytics engine.
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from portfolio_analytics.core.types import (
    BenchmarkKind,
    BenchmarkSeries,
    CategoryWeightsAndReturns,
    TimeSeries,
    Trade,
    TradeSide,
)


# =============================================================================
# CONFIGURATION
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root path."""
    return PROJECT_ROOT


@pytest.fixture
def fixed_clock():
    """Clock pinned to a single instant."""
    instant = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)
    return lambda: instant


# =============================================================================
# EQUITY CURVE FIXTURES
# =============================================================================

@pytest.fixture
def example_series() -> TimeSeries:
    """Four daily points with one shallow drawdown."""
    return TimeSeries.from_values([10000, 10250, 10180, 10420], start="2024-01-01")


@pytest.fixture
def flat_series() -> TimeSeries:
    """Constant equity curve."""
    return TimeSeries.from_values([100.0] * 10, start="2024-01-01")


@pytest.fixture
def sample_equity() -> TimeSeries:
    """One year of daily equity from a seeded random walk."""
    np.random.seed(42)
    n = 252
    returns = np.random.normal(0.0005, 0.01, n)
    values = 100_000 * np.cumprod(1 + returns)
    return TimeSeries.from_values(values, start="2023-01-02", name="portfolio")


@pytest.fixture
def sample_benchmark_values() -> np.ndarray:
    """Benchmark values correlated with sample_equity."""
    np.random.seed(7)
    n = 252
    returns = np.random.normal(0.0003, 0.012, n)
    return 400.0 * np.cumprod(1 + returns)


@pytest.fixture
def spy_benchmark(sample_equity: TimeSeries, sample_benchmark_values: np.ndarray) -> BenchmarkSeries:
    """Benchmark fully overlapping sample_equity."""
    series = TimeSeries.from_values(
        sample_benchmark_values,
        index=list(sample_equity.timestamps),
        name="SPY",
    )
    return BenchmarkSeries(symbol="SPY", name="S&P 500 ETF", series=series, kind=BenchmarkKind.ETF)


@pytest.fixture
def late_benchmark(sample_equity: TimeSeries) -> BenchmarkSeries:
    """Benchmark sharing only the last timestamp of sample_equity."""
    series = TimeSeries.from_values(
        [50.0, 51.0, 52.0],
        index=pd.date_range(start=sample_equity.end, periods=3, freq="D"),
        name="LATE",
    )
    return BenchmarkSeries(symbol="LATE", name="Late Listing", series=series)


# =============================================================================
# TRADE FIXTURES
# =============================================================================

@pytest.fixture
def example_trades() -> list[Trade]:
    """Four closed trades: +100, -50, +200, -30."""
    start = datetime(2024, 1, 2, 10, 0)
    pnls = [100.0, -50.0, 200.0, -30.0]
    symbols = ["BTC", "ETH", "BTC", "SOL"]
    return [
        Trade(
            symbol=symbol,
            side=TradeSide.SELL,
            quantity=1.0,
            price=1000.0 + 10 * i,
            timestamp=start + timedelta(days=i),
            fee=1.0,
            realized_pnl=pnl,
            strategy="momentum" if i % 2 == 0 else "mean_reversion",
        )
        for i, (symbol, pnl) in enumerate(zip(symbols, pnls))
    ]


# =============================================================================
# ATTRIBUTION FIXTURES
# =============================================================================

@pytest.fixture
def example_categories() -> list[CategoryWeightsAndReturns]:
    """Four categories with matching weight totals."""
    return [
        CategoryWeightsAndReturns("Crypto", 0.40, 0.12, 0.30, 0.08),
        CategoryWeightsAndReturns("Stocks", 0.30, 0.05, 0.40, 0.06),
        CategoryWeightsAndReturns("DeFi", 0.20, -0.04, 0.20, 0.02),
        CategoryWeightsAndReturns("NFTs", 0.10, 0.20, 0.10, -0.10),
    ]
