"""
Trade Statistics
================

Portfolio-wide and per-symbol statistics over realized trades.

Only trades carrying a realized P&L take part in win/loss statistics;
opening fills without one are counted separately as open trades.

Edge cases are defined rather than raised:
- No closed trades: every statistic is zero
- No losing trades but some profit: profit factor is +inf
- Neither profit nor loss: profit factor is 0
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Callable, Iterable

import numpy as np

from portfolio_analytics.analytics.performance import PerformanceMetrics
from portfolio_analytics.core.types import Trade
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TradeStatistics:
    """Win/loss breakdown for a set of trades."""

    # Counts
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    open_trades: int = 0

    # P&L
    win_rate: float = 0.0
    total_profit: float = 0.0
    total_loss: float = 0.0  # Magnitude, >= 0
    net_profit: float = 0.0
    profit_factor: float = 0.0

    # Per-trade
    avg_win: float = 0.0
    avg_loss: float = 0.0  # <= 0
    largest_win: float = 0.0
    largest_loss: float = 0.0  # <= 0
    best_trade: float = 0.0
    worst_trade: float = 0.0
    avg_trade: float = 0.0
    payoff_ratio: float = 0.0

    # Streaks
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0

    # Activity
    total_fees: float = 0.0
    total_volume: float = 0.0

    best_strategy: str | None = None
    worst_strategy: str | None = None

    @property
    def profit_factor_unbounded(self) -> bool:
        """Profit with no losses at all."""
        return math.isinf(self.profit_factor)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SymbolTradeAnalysis:
    """Per-symbol trade summary shown in the asset breakdown table."""

    symbol: str
    trade_count: int
    total_volume: float
    net_profit: float
    win_rate: float
    avg_profit: float
    max_profit: float
    max_loss: float
    profit_factor: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _profit_factor(total_profit: float, total_loss: float) -> float:
    if total_loss > 0:
        return total_profit / total_loss
    if total_profit > 0:
        return math.inf
    return 0.0


def _max_streaks(pnls: np.ndarray) -> tuple[int, int]:
    """Longest runs of consecutive wins and losses. Break-even resets both."""
    max_wins = max_losses = 0
    current_wins = current_losses = 0

    for pnl in pnls:
        if pnl > 0:
            current_wins += 1
            current_losses = 0
            max_wins = max(max_wins, current_wins)
        elif pnl < 0:
            current_losses += 1
            current_wins = 0
            max_losses = max(max_losses, current_losses)
        else:
            current_wins = 0
            current_losses = 0

    return max_wins, max_losses


class TradeAggregator:
    """
    Aggregates trades into win/loss statistics.

    Stateless: every call works only on the trades it is given.
    """

    def aggregate(self, trades: Iterable[Trade]) -> TradeStatistics:
        """
        Compute statistics over a set of trades.

        Args:
            trades: Trades for one symbol or the whole portfolio

        Returns:
            TradeStatistics (all zeros for an empty input)
        """
        # Stable sort keeps input order for equal timestamps
        ordered = sorted(trades, key=lambda t: t.timestamp)
        closed = [t for t in ordered if t.is_closed]

        total_fees = float(sum(t.fee for t in ordered))
        total_volume = float(sum(t.notional for t in ordered))
        open_trades = len(ordered) - len(closed)

        if not closed:
            logger.debug(f"No closed trades among {len(ordered)} trades")
            return TradeStatistics(
                open_trades=open_trades,
                total_fees=total_fees,
                total_volume=total_volume,
            )

        pnls = np.array([t.realized_pnl for t in closed], dtype=float)
        wins = pnls[pnls > 0]
        losses = pnls[pnls < 0]

        total_profit = float(wins.sum())
        total_loss = float(abs(losses.sum()))
        avg_win = float(wins.mean()) if len(wins) > 0 else 0.0
        avg_loss = float(losses.mean()) if len(losses) > 0 else 0.0
        max_wins, max_losses = _max_streaks(pnls)

        best_strategy, worst_strategy = self._rank_strategies(closed)

        stats = TradeStatistics(
            total_trades=len(closed),
            winning_trades=len(wins),
            losing_trades=len(losses),
            breakeven_trades=len(closed) - len(wins) - len(losses),
            open_trades=open_trades,
            win_rate=len(wins) / len(closed),
            total_profit=total_profit,
            total_loss=total_loss,
            net_profit=float(pnls.sum()),
            profit_factor=_profit_factor(total_profit, total_loss),
            avg_win=avg_win,
            avg_loss=avg_loss,
            largest_win=float(wins.max()) if len(wins) > 0 else 0.0,
            largest_loss=float(losses.min()) if len(losses) > 0 else 0.0,
            best_trade=float(pnls.max()),
            worst_trade=float(pnls.min()),
            avg_trade=float(pnls.mean()),
            payoff_ratio=avg_win / abs(avg_loss) if avg_loss < 0 else 0.0,
            max_consecutive_wins=max_wins,
            max_consecutive_losses=max_losses,
            total_fees=total_fees,
            total_volume=total_volume,
            best_strategy=best_strategy,
            worst_strategy=worst_strategy,
        )

        logger.debug(
            f"Aggregated {stats.total_trades} closed trades: "
            f"win_rate={stats.win_rate:.2%}, profit_factor={stats.profit_factor:.2f}"
        )
        return stats

    def by_symbol(self, trades: Iterable[Trade]) -> dict[str, SymbolTradeAnalysis]:
        """
        Per-symbol breakdown, ordered by net profit (best first).
        """
        grouped = self._group(trades, lambda t: t.symbol)
        analyses = []

        for symbol, symbol_trades in grouped.items():
            stats = self.aggregate(symbol_trades)
            analyses.append(SymbolTradeAnalysis(
                symbol=symbol,
                trade_count=len(symbol_trades),
                total_volume=stats.total_volume,
                net_profit=stats.net_profit,
                win_rate=stats.win_rate,
                avg_profit=stats.avg_trade,
                max_profit=stats.largest_win,
                max_loss=stats.largest_loss,
                profit_factor=stats.profit_factor,
            ))

        analyses.sort(key=lambda a: (-a.net_profit, a.symbol))
        return {a.symbol: a for a in analyses}

    def by_strategy(self, trades: Iterable[Trade]) -> dict[str, TradeStatistics]:
        """Statistics per strategy tag. Untagged trades are skipped."""
        grouped = self._group(
            (t for t in trades if t.strategy is not None),
            lambda t: t.strategy,
        )
        return {name: self.aggregate(group) for name, group in sorted(grouped.items())}

    def _rank_strategies(self, closed: list[Trade]) -> tuple[str | None, str | None]:
        net_by_strategy: dict[str, float] = defaultdict(float)
        for trade in closed:
            if trade.strategy is not None:
                net_by_strategy[trade.strategy] += trade.realized_pnl

        if not net_by_strategy:
            return None, None

        # Ties resolve alphabetically so results are deterministic
        ranked = sorted(net_by_strategy.items(), key=lambda kv: (-kv[1], kv[0]))
        return ranked[0][0], ranked[-1][0]

    @staticmethod
    def _group(
        trades: Iterable[Trade],
        key: Callable[[Trade], str],
    ) -> dict[str, list[Trade]]:
        grouped: dict[str, list[Trade]] = defaultdict(list)
        for trade in trades:
            grouped[key(trade)].append(trade)
        return dict(grouped)


def aggregate_trades(trades: Iterable[Trade]) -> PerformanceMetrics:
    """
    Convenience function to aggregate trades into PerformanceMetrics.

    Series-derived fields stay at their insufficient-data defaults until
    merged with a TimeSeriesMetrics via ``PerformanceMetrics.from_components``.

    Args:
        trades: Trades to aggregate

    Returns:
        PerformanceMetrics carrying the trade statistics
    """
    return PerformanceMetrics.from_components(trades=TradeAggregator().aggregate(trades))
