"""
Performance metrics container.

PerformanceMetrics bundles the trade statistics and equity-curve metrics a
performance view shows side by side. It is always derived, never updated:
``from_components`` builds a fresh instance from whichever parts exist.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from portfolio_analytics.core.types import DataStatus, MetricFlag

if TYPE_CHECKING:
    from portfolio_analytics.analytics.timeseries import TimeSeriesMetrics
    from portfolio_analytics.analytics.trades import TradeStatistics


@dataclass(frozen=True)
class PerformanceMetrics:
    """Container for all performance metrics."""

    # Trading metrics
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_profit: float = 0.0
    total_loss: float = 0.0
    net_profit: float = 0.0
    profit_factor: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0  # <= 0
    best_trade: float = 0.0
    worst_trade: float = 0.0
    avg_trade: float = 0.0
    avg_winning_trade: float = 0.0
    avg_losing_trade: float = 0.0
    total_fees: float = 0.0

    # Return metrics
    total_return: float = 0.0
    annualized_return: float = 0.0

    # Risk-adjusted metrics
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    calmar_ratio: float = 0.0
    max_drawdown: float = 0.0

    # Status of the equity-curve part
    series_status: DataStatus = DataStatus.INSUFFICIENT_DATA
    flags: frozenset[MetricFlag] = field(default_factory=frozenset)

    @property
    def degenerate(self) -> bool:
        return MetricFlag.ZERO_VOLATILITY in self.flags

    @classmethod
    def from_components(
        cls,
        trades: "TradeStatistics | None" = None,
        series: "TimeSeriesMetrics | None" = None,
    ) -> "PerformanceMetrics":
        """
        Merge trade statistics and equity-curve metrics.

        Args:
            trades: Output of TradeAggregator.aggregate
            series: Output of TimeSeriesAnalyzer.analyze

        Returns:
            New PerformanceMetrics; missing parts keep zero defaults
        """
        values: dict[str, Any] = {}

        if trades is not None:
            values.update(
                total_trades=trades.total_trades,
                winning_trades=trades.winning_trades,
                losing_trades=trades.losing_trades,
                win_rate=trades.win_rate,
                total_profit=trades.total_profit,
                total_loss=trades.total_loss,
                net_profit=trades.net_profit,
                profit_factor=trades.profit_factor,
                largest_win=trades.largest_win,
                largest_loss=trades.largest_loss,
                best_trade=trades.best_trade,
                worst_trade=trades.worst_trade,
                avg_trade=trades.avg_trade,
                avg_winning_trade=trades.avg_win,
                avg_losing_trade=trades.avg_loss,
                total_fees=trades.total_fees,
            )

        if series is not None:
            values.update(
                total_return=series.total_return,
                annualized_return=series.annualized_return,
                volatility=series.volatility,
                sharpe_ratio=series.sharpe_ratio,
                sortino_ratio=series.sortino_ratio,
                calmar_ratio=series.calmar_ratio,
                max_drawdown=series.max_drawdown,
                series_status=series.status,
                flags=series.flags,
            )

        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["series_status"] = self.series_status.value
        data["flags"] = sorted(f.value for f in self.flags)
        return data
