"""
Equity curve analytics.

This module turns an equity curve into:
- Period returns and drawdown series
- Annualized volatility and return
- Drawdown statistics (current, average, pain and ulcer indices)
- Risk-adjusted ratios (Sharpe, Sortino, Calmar)

Degenerate-but-valid situations never produce NaN. They are reported as
sentinel values (0 or +inf) with a MetricFlag explaining them, and a curve
with fewer than two points yields a result marked INSUFFICIENT_DATA.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from config.settings import get_settings
from portfolio_analytics.core.types import (
    ConfigurationError,
    DataStatus,
    InsufficientDataError,
    MetricFlag,
    TimeSeries,
)
from portfolio_analytics.utils.decorators import timer
from portfolio_analytics.utils.helpers import annualize_return, is_zero
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class TimeSeriesMetrics:
    """Metrics derived from one equity curve."""

    name: str
    status: DataStatus
    n_points: int
    periods_per_year: int | None
    risk_free_rate: float
    start: datetime | None = None
    end: datetime | None = None

    # Series (returns align with timestamps[1:])
    timestamps: tuple[datetime, ...] = ()
    returns: tuple[float, ...] = ()
    running_max: tuple[float, ...] = ()
    drawdowns: tuple[float, ...] = ()

    # Return metrics
    start_value: float = 0.0
    end_value: float = 0.0
    total_return: float = 0.0
    annualized_return: float = 0.0
    mean_return: float = 0.0
    best_period: float = 0.0
    worst_period: float = 0.0

    # Risk metrics
    volatility: float = 0.0
    downside_deviation: float = 0.0
    max_drawdown: float = 0.0  # <= 0
    max_drawdown_duration: int = 0  # Periods
    current_drawdown: float = 0.0  # <= 0
    average_drawdown: float = 0.0  # Mean of underwater periods, <= 0
    pain_index: float = 0.0  # Mean drawdown magnitude
    ulcer_index: float = 0.0  # Root mean square drawdown
    skewness: float | None = None
    kurtosis: float | None = None

    # Risk-adjusted metrics
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0

    flags: frozenset[MetricFlag] = field(default_factory=frozenset)

    @property
    def is_sufficient(self) -> bool:
        return self.status == DataStatus.OK

    @property
    def degenerate(self) -> bool:
        """Zero volatility: Sharpe and Sortino are reported as 0."""
        return MetricFlag.ZERO_VOLATILITY in self.flags

    def returns_series(self) -> pd.Series:
        return pd.Series(
            list(self.returns),
            index=pd.DatetimeIndex([pd.Timestamp(t) for t in self.timestamps[1:]]),
            name=self.name,
            dtype=float,
        )

    def drawdown_series(self) -> pd.Series:
        return pd.Series(
            list(self.drawdowns),
            index=pd.DatetimeIndex([pd.Timestamp(t) for t in self.timestamps]),
            name=self.name,
            dtype=float,
        )

    def raise_for_status(self) -> None:
        """
        Raises:
            InsufficientDataError: If the curve had fewer than two points
        """
        if self.status == DataStatus.INSUFFICIENT_DATA:
            raise InsufficientDataError(
                f"{self.name}: {self.n_points} point(s), at least 2 required",
                n_points=self.n_points,
            )

    def to_dict(self) -> dict[str, Any]:
        """Scalar metrics for presentation and export."""
        return {
            "name": self.name,
            "status": self.status.value,
            "n_points": self.n_points,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "periods_per_year": self.periods_per_year,
            "total_return": self.total_return,
            "annualized_return": self.annualized_return,
            "volatility": self.volatility,
            "sharpe_ratio": self.sharpe_ratio,
            "sortino_ratio": self.sortino_ratio,
            "calmar_ratio": self.calmar_ratio,
            "max_drawdown": self.max_drawdown,
            "max_drawdown_duration": self.max_drawdown_duration,
            "current_drawdown": self.current_drawdown,
            "average_drawdown": self.average_drawdown,
            "pain_index": self.pain_index,
            "ulcer_index": self.ulcer_index,
            "best_period": self.best_period,
            "worst_period": self.worst_period,
            "skewness": self.skewness,
            "kurtosis": self.kurtosis,
            "flags": sorted(f.value for f in self.flags),
        }


def infer_periods_per_year(
    timestamps: Sequence[datetime] | pd.DatetimeIndex,
    trading_days_per_year: int = 252,
) -> int:
    """
    Infer annualization factor from the median sampling interval.

    Sub-daily sampling scales trading days by bars per day (hourly data
    gives 252 * 24). Daily data (weekend gaps included) gives 252, then
    weekly 52, monthly 12, quarterly 4, and 1 for anything coarser.

    Raises:
        InsufficientDataError: With fewer than two timestamps
    """
    index = pd.DatetimeIndex([pd.Timestamp(t) for t in timestamps])
    if len(index) < 2:
        raise InsufficientDataError(
            "Cannot infer sampling frequency from fewer than 2 timestamps",
            n_points=len(index),
        )

    seconds = float(pd.Series(index).diff().dropna().dt.total_seconds().median())
    if seconds < SECONDS_PER_DAY:
        bars_per_day = max(1, round(SECONDS_PER_DAY / seconds))
        return trading_days_per_year * bars_per_day

    days = seconds / SECONDS_PER_DAY
    if days < 4:
        return trading_days_per_year
    if days <= 10:
        return 52
    if days <= 45:
        return 12
    if days <= 120:
        return 4
    return 1


def period_returns(series: TimeSeries) -> pd.Series:
    """Simple returns between consecutive points, indexed by period end."""
    return series.to_pandas().pct_change().iloc[1:]


def _finite_or_none(value: float) -> float | None:
    value = float(value)
    return value if math.isfinite(value) else None


def _max_underwater_run(drawdown: pd.Series) -> int:
    underwater = drawdown < 0
    if not underwater.any():
        return 0
    groups = (~underwater).cumsum()
    return int(underwater.groupby(groups).sum().max())


class TimeSeriesAnalyzer:
    """
    Equity curve analyzer.

    Provides:
    - Returns and drawdown series
    - Annualized volatility (sample standard deviation)
    - Sharpe, Sortino, and Calmar ratios
    """

    def __init__(
        self,
        risk_free_rate: float | None = None,
        periods_per_year: int | None = None,
        trading_days_per_year: int | None = None,
    ) -> None:
        """
        Initialize the analyzer.

        Args:
            risk_free_rate: Annual risk-free rate (fractional)
            periods_per_year: Annualization factor (None to infer per series)
            trading_days_per_year: Trading days used when inferring
        """
        config = get_settings().analytics
        self.risk_free_rate = config.risk_free_rate if risk_free_rate is None else risk_free_rate
        self.periods_per_year = config.periods_per_year if periods_per_year is None else periods_per_year
        self.trading_days_per_year = trading_days_per_year or config.trading_days_per_year

        if self.periods_per_year is not None and self.periods_per_year <= 0:
            raise ConfigurationError(f"periods_per_year must be positive, got {self.periods_per_year}")
        if not math.isfinite(self.risk_free_rate):
            raise ConfigurationError(f"risk_free_rate must be finite, got {self.risk_free_rate}")

    @timer
    def analyze(self, series: TimeSeries) -> TimeSeriesMetrics:
        """
        Analyze an equity curve.

        Args:
            series: Portfolio (or benchmark) equity curve

        Returns:
            TimeSeriesMetrics, marked INSUFFICIENT_DATA for fewer than 2 points
        """
        if not series.is_sufficient:
            return self._insufficient(series)

        ppy = self.periods_per_year or infer_periods_per_year(
            series.timestamps, self.trading_days_per_year
        )

        values = series.to_pandas()
        returns = values.pct_change().iloc[1:]

        running_max = values.cummax()
        drawdown = (values - running_max) / running_max
        max_drawdown = float(drawdown.min())

        # One drawdown per return period
        period_drawdown = drawdown.iloc[1:]
        underwater = period_drawdown[period_drawdown < 0]

        total_return = float(values.iloc[-1] / values.iloc[0] - 1)
        annualized = annualize_return(total_return, len(returns), ppy)

        flags: set[MetricFlag] = set()
        rf_per_period = self.risk_free_rate / ppy
        excess_mean = float(returns.mean()) - rf_per_period
        sqrt_ppy = np.sqrt(ppy)

        std = float(returns.std(ddof=1)) if len(returns) >= 2 else 0.0
        downside_deviation = 0.0

        if is_zero(std):
            flags.add(MetricFlag.ZERO_VOLATILITY)
            volatility = 0.0
            sharpe = 0.0
            sortino = 0.0
        else:
            volatility = std * sqrt_ppy
            sharpe = excess_mean / std * sqrt_ppy

            downside = returns[returns < 0]
            downside_std = float(downside.std(ddof=1)) if len(downside) >= 2 else math.nan

            if len(downside) == 0:
                flags.add(MetricFlag.NO_DOWNSIDE)
                sortino = math.inf
            elif is_zero(downside_std):
                flags.add(MetricFlag.ZERO_DOWNSIDE_DEVIATION)
                sortino = 0.0
            else:
                downside_deviation = downside_std * sqrt_ppy
                sortino = excess_mean / downside_std * sqrt_ppy

        if is_zero(max_drawdown):
            flags.add(MetricFlag.NO_DRAWDOWN)
            calmar = math.inf if annualized > 0 else 0.0
        else:
            calmar = annualized / abs(max_drawdown)

        skewness = _finite_or_none(stats.skew(returns, bias=False)) if len(returns) >= 3 and not is_zero(std) else None
        kurtosis = _finite_or_none(stats.kurtosis(returns, bias=False)) if len(returns) >= 4 and not is_zero(std) else None

        metrics = TimeSeriesMetrics(
            name=series.name,
            status=DataStatus.OK,
            n_points=len(series),
            periods_per_year=ppy,
            risk_free_rate=self.risk_free_rate,
            start=series.start,
            end=series.end,
            timestamps=series.timestamps,
            returns=tuple(float(r) for r in returns),
            running_max=tuple(float(v) for v in running_max),
            drawdowns=tuple(float(d) for d in drawdown),
            start_value=float(values.iloc[0]),
            end_value=float(values.iloc[-1]),
            total_return=total_return,
            annualized_return=annualized,
            mean_return=float(returns.mean()),
            best_period=float(returns.max()),
            worst_period=float(returns.min()),
            volatility=volatility,
            downside_deviation=downside_deviation,
            max_drawdown=max_drawdown,
            max_drawdown_duration=_max_underwater_run(drawdown),
            current_drawdown=float(drawdown.iloc[-1]),
            average_drawdown=float(underwater.mean()) if len(underwater) else 0.0,
            pain_index=float(period_drawdown.abs().mean()),
            ulcer_index=float(np.sqrt((period_drawdown ** 2).mean())),
            skewness=skewness,
            kurtosis=kurtosis,
            sharpe_ratio=float(sharpe),
            sortino_ratio=float(sortino),
            calmar_ratio=float(calmar),
            flags=frozenset(flags),
        )

        logger.debug(
            f"{series.name}: {len(series)} points, total_return={total_return:.4%}, "
            f"vol={volatility:.4f}, sharpe={sharpe:.3f}, max_dd={max_drawdown:.4%}"
        )
        return metrics

    def _insufficient(self, series: TimeSeries) -> TimeSeriesMetrics:
        logger.warning(f"{series.name}: insufficient history ({len(series)} point(s))")
        values = series.values
        return TimeSeriesMetrics(
            name=series.name,
            status=DataStatus.INSUFFICIENT_DATA,
            n_points=len(series),
            periods_per_year=self.periods_per_year,
            risk_free_rate=self.risk_free_rate,
            start=series.start,
            end=series.end,
            timestamps=series.timestamps,
            running_max=values,
            drawdowns=tuple(0.0 for _ in values),
            start_value=values[0] if values else 0.0,
            end_value=values[-1] if values else 0.0,
        )


def analyze_series(
    series: TimeSeries,
    risk_free_rate: float | None = None,
    periods_per_year: int | None = None,
) -> TimeSeriesMetrics:
    """
    Convenience function to analyze an equity curve.

    Args:
        series: Equity curve
        risk_free_rate: Annual risk-free rate (settings default when None)
        periods_per_year: Annualization factor (inferred when None)

    Returns:
        TimeSeriesMetrics
    """
    analyzer = TimeSeriesAnalyzer(
        risk_free_rate=risk_free_rate,
        periods_per_year=periods_per_year,
    )
    return analyzer.analyze(series)
