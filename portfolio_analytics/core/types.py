"""
Core Types Module
=================

Core data structures, enums, and exceptions for the analytics engine.

Every entity here is immutable. Inputs are validated once, at construction,
so downstream calculations can rely on:
- Trades with positive quantity and price
- Equity curves that are strictly time-ascending with positive values
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Iterator, Mapping, Sequence

import pandas as pd


# =============================================================================
# EXCEPTIONS
# =============================================================================

class AnalyticsError(Exception):
    """Base exception for all analytics errors."""
    pass


class DataValidationError(AnalyticsError):
    """Input data failed validation."""
    pass


class InvalidTradeError(DataValidationError):
    """Malformed trade rejected at ingestion."""

    def __init__(self, message: str, field: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidSeriesError(DataValidationError):
    """Equity curve is unordered, duplicated, or holds invalid values."""
    pass


class AttributionInputError(DataValidationError):
    """Category weights/returns cannot be decomposed consistently."""
    pass


class InsufficientDataError(AnalyticsError):
    """Too few observations to compute return-based metrics."""

    def __init__(self, message: str, n_points: int = 0) -> None:
        super().__init__(message)
        self.n_points = n_points


class InsufficientOverlapError(AnalyticsError):
    """Benchmark shares too few timestamps with the portfolio."""

    def __init__(self, message: str, benchmark: str = "", n_overlap: int = 0) -> None:
        super().__init__(message)
        self.benchmark = benchmark
        self.n_overlap = n_overlap


class IncompleteReportError(AnalyticsError):
    """Report assembly was attempted without a required sub-result."""

    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = tuple(missing)
        super().__init__(
            f"Report is missing required sub-results: {', '.join(self.missing)}"
        )


class ConfigurationError(AnalyticsError):
    """Configuration error."""
    pass


# =============================================================================
# ENUMS
# =============================================================================

class TradeSide(str, Enum):
    """Trade direction."""
    BUY = "buy"
    SELL = "sell"


# Journal entries record direction rather than side
_SIDE_ALIASES = {
    "buy": TradeSide.BUY,
    "long": TradeSide.BUY,
    "sell": TradeSide.SELL,
    "short": TradeSide.SELL,
}


class DataStatus(str, Enum):
    """Whether a result was computed from enough history."""
    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"


class MetricFlag(str, Enum):
    """Markers explaining sentinel metric values."""
    ZERO_VOLATILITY = "zero_volatility"  # Sharpe/Sortino reported as 0
    NO_DOWNSIDE = "no_downside"  # Sortino reported as +inf
    ZERO_DOWNSIDE_DEVIATION = "zero_downside_deviation"  # Sortino reported as 0
    NO_DRAWDOWN = "no_drawdown"  # Calmar reported as +inf


class BenchmarkKind(str, Enum):
    """Kind of reference series."""
    INDEX = "index"
    ETF = "etf"
    COMPETITOR = "competitor"
    CUSTOM = "custom"


class TimeRangePreset(str, Enum):
    """Lookback windows offered by the dashboard."""
    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"
    ALL = "all"


_PRESET_WINDOWS: dict[TimeRangePreset, timedelta | None] = {
    TimeRangePreset.DAY: timedelta(hours=24),
    TimeRangePreset.WEEK: timedelta(days=7),
    TimeRangePreset.MONTH: timedelta(days=30),
    TimeRangePreset.QUARTER: timedelta(days=90),
    TimeRangePreset.YEAR: timedelta(days=365),
    TimeRangePreset.ALL: None,
}


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


# =============================================================================
# TRADES
# =============================================================================

@dataclass(frozen=True)
class Trade:
    """
    Executed trade record.

    Attributes:
        symbol: Trading symbol
        side: Buy or sell
        quantity: Executed quantity (always positive; side carries direction)
        price: Execution price
        timestamp: Execution time
        fee: Fees paid
        realized_pnl: Realized P&L when the trade closed a position
        strategy: Optional strategy tag
        trade_id: Optional external identifier
    """

    symbol: str
    side: TradeSide
    quantity: float
    price: float
    timestamp: datetime
    fee: float = 0.0
    realized_pnl: float | None = None
    strategy: str | None = None
    trade_id: str | None = None

    def __post_init__(self):
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise InvalidTradeError("Trade symbol must be a non-empty string", "symbol", self.symbol)

        if not isinstance(self.side, TradeSide):
            side = _SIDE_ALIASES.get(str(self.side).lower())
            if side is None:
                raise InvalidTradeError(f"Unknown trade side: {self.side!r}", "side", self.side)
            object.__setattr__(self, "side", side)

        if not _is_finite_number(self.quantity) or self.quantity <= 0:
            raise InvalidTradeError(
                f"Trade quantity must be positive, got {self.quantity!r} ({self.symbol})",
                "quantity",
                self.quantity,
            )
        if not _is_finite_number(self.price) or self.price <= 0:
            raise InvalidTradeError(
                f"Trade price must be positive, got {self.price!r} ({self.symbol})",
                "price",
                self.price,
            )
        if not _is_finite_number(self.fee) or self.fee < 0:
            raise InvalidTradeError(
                f"Trade fee must be non-negative, got {self.fee!r} ({self.symbol})",
                "fee",
                self.fee,
            )
        if self.realized_pnl is not None and not _is_finite_number(self.realized_pnl):
            raise InvalidTradeError(
                f"Realized P&L must be finite, got {self.realized_pnl!r} ({self.symbol})",
                "realized_pnl",
                self.realized_pnl,
            )
        if not isinstance(self.timestamp, datetime):
            raise InvalidTradeError("Trade timestamp must be a datetime", "timestamp", self.timestamp)

    @property
    def notional(self) -> float:
        """Traded value."""
        return self.quantity * self.price

    @property
    def is_closed(self) -> bool:
        """Whether the trade realized P&L."""
        return self.realized_pnl is not None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Trade":
        """
        Ingest a raw trade mapping.

        Accepts ``pnl`` as an alias of ``realized_pnl`` and ``fees`` as an
        alias of ``fee``. Timestamps may be ISO strings.

        Raises:
            InvalidTradeError: If a required field is missing or invalid
        """
        try:
            timestamp = data["timestamp"]
            symbol = data["symbol"]
            side = data["side"]
            quantity = data["quantity"]
            price = data["price"]
        except KeyError as e:
            raise InvalidTradeError(f"Missing trade field: {e.args[0]}", e.args[0]) from e

        if isinstance(timestamp, str):
            try:
                timestamp = pd.Timestamp(timestamp).to_pydatetime()
            except ValueError as e:
                raise InvalidTradeError(f"Invalid timestamp: {timestamp!r}", "timestamp", timestamp) from e

        pnl = data.get("realized_pnl", data.get("pnl"))

        return cls(
            symbol=symbol,
            side=side,
            quantity=quantity,
            price=price,
            timestamp=timestamp,
            fee=data.get("fee", data.get("fees", 0.0)),
            realized_pnl=pnl,
            strategy=data.get("strategy"),
            trade_id=data.get("trade_id", data.get("id")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_id": self.trade_id,
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": self.quantity,
            "price": self.price,
            "fee": self.fee,
            "timestamp": self.timestamp.isoformat(),
            "realized_pnl": self.realized_pnl,
            "strategy": self.strategy,
        }


# =============================================================================
# TIME SERIES
# =============================================================================

@dataclass(frozen=True)
class EquityPoint:
    """
    Single observation of portfolio value.

    Attributes:
        timestamp: Observation time
        value: Portfolio value
        period_return: Optional precomputed return, kept for display only
    """

    timestamp: datetime
    value: float
    period_return: float | None = None


@dataclass(frozen=True)
class TimeSeries:
    """
    Ordered equity curve.

    Timestamps are strictly ascending (no duplicates) and values are finite
    and positive. Violations raise InvalidSeriesError.
    """

    points: tuple[EquityPoint, ...] = ()
    name: str = "portfolio"

    def __post_init__(self):
        points = tuple(self.points)
        object.__setattr__(self, "points", points)

        previous: pd.Timestamp | None = None
        for i, point in enumerate(points):
            if not isinstance(point, EquityPoint):
                raise InvalidSeriesError(f"{self.name}: element {i} is not an EquityPoint")
            if not _is_finite_number(point.value) or point.value <= 0:
                raise InvalidSeriesError(
                    f"{self.name}: value at {point.timestamp} must be finite and positive, got {point.value!r}"
                )

            current = pd.Timestamp(point.timestamp)
            if previous is not None:
                try:
                    ordered = current > previous
                except TypeError as e:
                    raise InvalidSeriesError(
                        f"{self.name}: cannot mix timezone-aware and naive timestamps"
                    ) from e
                if not ordered:
                    problem = "duplicate" if current == previous else "out-of-order"
                    raise InvalidSeriesError(f"{self.name}: {problem} timestamp {point.timestamp}")
            previous = current

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[EquityPoint]:
        return iter(self.points)

    @property
    def timestamps(self) -> tuple[datetime, ...]:
        return tuple(p.timestamp for p in self.points)

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(float(p.value) for p in self.points)

    @property
    def is_sufficient(self) -> bool:
        """At least two points, i.e. at least one period return."""
        return len(self.points) >= 2

    @property
    def start(self) -> datetime | None:
        return self.points[0].timestamp if self.points else None

    @property
    def end(self) -> datetime | None:
        return self.points[-1].timestamp if self.points else None

    def to_pandas(self) -> pd.Series:
        """Values as a float Series indexed by timestamp."""
        return pd.Series(
            list(self.values),
            index=pd.DatetimeIndex([pd.Timestamp(t) for t in self.timestamps]),
            name=self.name,
            dtype=float,
        )

    def between(self, time_range: "TimeRange") -> "TimeSeries":
        """Points falling inside a time range."""
        return TimeSeries(
            tuple(p for p in self.points if time_range.contains(p.timestamp)),
            name=self.name,
        )

    def restrict_to(self, timestamps: Sequence[datetime] | pd.DatetimeIndex) -> "TimeSeries":
        """Points whose timestamp is in the given set."""
        keep = {pd.Timestamp(t) for t in timestamps}
        return TimeSeries(
            tuple(p for p in self.points if pd.Timestamp(p.timestamp) in keep),
            name=self.name,
        )

    @classmethod
    def from_pandas(cls, series: pd.Series, name: str | None = None) -> "TimeSeries":
        """Build from a Series indexed by timestamp."""
        index = pd.to_datetime(series.index)
        points = tuple(
            EquityPoint(timestamp=ts.to_pydatetime(), value=float(v))
            for ts, v in zip(index, series.to_numpy())
        )
        return cls(points, name=name or (str(series.name) if series.name is not None else "portfolio"))

    @classmethod
    def from_values(
        cls,
        values: Sequence[float],
        index: Sequence[datetime] | pd.DatetimeIndex | None = None,
        start: datetime | str = "2024-01-01",
        freq: str = "D",
        name: str = "portfolio",
    ) -> "TimeSeries":
        """
        Build from a sequence of values.

        Args:
            values: Portfolio values
            index: Timestamps (generated from ``start``/``freq`` when omitted)
            start: First timestamp when generating the index
            freq: Pandas frequency alias when generating the index
            name: Series name
        """
        if index is None:
            index = pd.date_range(start=start, periods=len(values), freq=freq)
        if len(index) != len(values):
            raise InvalidSeriesError(
                f"{name}: {len(values)} values but {len(index)} timestamps"
            )
        points = tuple(
            EquityPoint(timestamp=pd.Timestamp(ts).to_pydatetime(), value=float(v))
            for ts, v in zip(index, values)
        )
        return cls(points, name=name)


@dataclass(frozen=True)
class BenchmarkSeries:
    """
    Named reference series (index, ETF, competitor, or custom).

    Attributes:
        symbol: Benchmark symbol, e.g. "SPY"
        name: Display name
        series: Benchmark value curve
        kind: Kind of reference
        description: Free-form description
    """

    symbol: str
    name: str
    series: TimeSeries
    kind: BenchmarkKind = BenchmarkKind.INDEX
    description: str = ""

    def __post_init__(self):
        if not isinstance(self.series, TimeSeries):
            raise InvalidSeriesError(f"Benchmark {self.symbol}: series must be a TimeSeries")
        if not isinstance(self.kind, BenchmarkKind):
            object.__setattr__(self, "kind", BenchmarkKind(self.kind))


# =============================================================================
# TIME RANGES
# =============================================================================

@dataclass(frozen=True)
class TimeRange:
    """
    Inclusive analysis window. ``None`` bounds are open.
    """

    start: datetime | None = None
    end: datetime | None = None
    label: str = "custom"

    def __post_init__(self):
        if self.start is not None and self.end is not None:
            if pd.Timestamp(self.start) > pd.Timestamp(self.end):
                raise DataValidationError(
                    f"Time range start {self.start} is after end {self.end}"
                )

    def contains(self, timestamp: datetime) -> bool:
        ts = pd.Timestamp(timestamp)
        if self.start is not None and ts < pd.Timestamp(self.start):
            return False
        if self.end is not None and ts > pd.Timestamp(self.end):
            return False
        return True

    @classmethod
    def from_preset(cls, preset: TimeRangePreset | str, as_of: datetime) -> "TimeRange":
        """
        Window ending at ``as_of`` for a dashboard preset.

        Raises:
            DataValidationError: For an unknown preset
        """
        try:
            preset = TimeRangePreset(preset)
        except ValueError as e:
            raise DataValidationError(f"Unknown time range preset: {preset!r}") from e

        window = _PRESET_WINDOWS[preset]
        if window is None:
            return cls(start=None, end=as_of, label=preset.value)
        return cls(start=as_of - window, end=as_of, label=preset.value)


# =============================================================================
# ATTRIBUTION INPUTS
# =============================================================================

@dataclass(frozen=True)
class CategoryWeightsAndReturns:
    """
    Portfolio and benchmark weight/return for one category over one period.

    Weights and returns are fractional (0.40 == 40%).
    """

    category: str
    portfolio_weight: float
    portfolio_return: float
    benchmark_weight: float
    benchmark_return: float

    def __post_init__(self):
        if not isinstance(self.category, str) or not self.category.strip():
            raise AttributionInputError("Category label must be a non-empty string")
        for name in ("portfolio_weight", "portfolio_return", "benchmark_weight", "benchmark_return"):
            value = getattr(self, name)
            if not _is_finite_number(value):
                raise AttributionInputError(f"{self.category}: {name} must be finite, got {value!r}")
