"""
Portfolio risk profile.

RiskCalculator combines VaR/Expected Shortfall, beta and alpha against
reference series, the correlation matrix, and position concentration into
one immutable RiskProfile.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from config.settings import get_settings
from portfolio_analytics.analytics.timeseries import TimeSeriesAnalyzer, period_returns
from portfolio_analytics.core.types import (
    BenchmarkSeries,
    DataStatus,
    DataValidationError,
    InsufficientDataError,
    TimeSeries,
)
from portfolio_analytics.risk.correlation import (
    CorrelationMatrix,
    CorrelationPair,
    align_returns,
    calculate_alpha,
    calculate_beta,
    calculate_correlation_matrix,
    common_timestamps,
)
from portfolio_analytics.risk.var_models import VaRCalculator, VaREstimate, VaRMethod
from portfolio_analytics.utils.decorators import timer
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)

Reference = Union[TimeSeries, BenchmarkSeries]
RiskLevel = Literal["low", "medium", "high", "extreme"]


@dataclass(frozen=True)
class ConcentrationRisk:
    """Herfindahl concentration of position weights."""

    herfindahl_index: float
    diversification_score: float  # 1 - HHI
    effective_positions: float  # 1 / HHI
    largest_position: str
    largest_weight: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "herfindahl_index": self.herfindahl_index,
            "diversification_score": self.diversification_score,
            "effective_positions": self.effective_positions,
            "largest_position": self.largest_position,
            "largest_weight": self.largest_weight,
        }


@dataclass(frozen=True)
class RiskProfile:
    """Risk measures for one equity curve."""

    name: str
    status: DataStatus
    n_points: int
    n_returns: int
    method: str
    latest_value: float
    volatility: float = 0.0
    var_estimates: tuple[VaREstimate, ...] = ()
    betas: Mapping[str, float | None] = field(default_factory=dict)
    alphas: Mapping[str, float | None] = field(default_factory=dict)
    correlation: CorrelationMatrix | None = None
    correlation_pairs: tuple[CorrelationPair, ...] = ()
    concentration: ConcentrationRisk | None = None
    risk_score: float | None = None  # 0 to 100
    risk_level: RiskLevel | None = None

    def __post_init__(self):
        object.__setattr__(self, "betas", MappingProxyType(dict(self.betas)))
        object.__setattr__(self, "alphas", MappingProxyType(dict(self.alphas)))

    @property
    def is_sufficient(self) -> bool:
        return self.status == DataStatus.OK

    @property
    def confidence_levels(self) -> tuple[float, ...]:
        return tuple(e.confidence_level for e in self.var_estimates)

    def estimate_at(self, confidence_level: float) -> VaREstimate | None:
        for estimate in self.var_estimates:
            if math.isclose(estimate.confidence_level, confidence_level):
                return estimate
        return None

    def var(self, confidence_level: float) -> float | None:
        estimate = self.estimate_at(confidence_level)
        return estimate.var if estimate else None

    def expected_shortfall_at(self, confidence_level: float) -> float | None:
        estimate = self.estimate_at(confidence_level)
        return estimate.expected_shortfall if estimate else None

    @property
    def var_95(self) -> float | None:
        return self.var(0.95)

    @property
    def var_99(self) -> float | None:
        return self.var(0.99)

    @property
    def expected_shortfall(self) -> float | None:
        """Expected Shortfall at the lowest configured confidence level."""
        return self.var_estimates[0].expected_shortfall if self.var_estimates else None

    @property
    def diversification_score(self) -> float | None:
        return self.concentration.diversification_score if self.concentration else None

    def as_frame(self) -> pd.DataFrame:
        """VaR and ES per confidence level."""
        return pd.DataFrame(
            [e.to_dict() for e in self.var_estimates],
            columns=["confidence_level", "method", "return_threshold", "var",
                     "shortfall_return", "expected_shortfall"],
        ).set_index("confidence_level")

    def raise_for_status(self) -> None:
        if self.status == DataStatus.INSUFFICIENT_DATA:
            raise InsufficientDataError(
                f"{self.name}: {self.n_points} point(s), at least 2 required for risk measures",
                n_points=self.n_points,
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "n_points": self.n_points,
            "n_returns": self.n_returns,
            "method": self.method,
            "latest_value": self.latest_value,
            "volatility": self.volatility,
            "var": {f"{e.confidence_level:.4g}": e.var for e in self.var_estimates},
            "expected_shortfall": {
                f"{e.confidence_level:.4g}": e.expected_shortfall for e in self.var_estimates
            },
            "betas": dict(self.betas),
            "alphas": dict(self.alphas),
            "correlation": self.correlation.to_dict() if self.correlation else None,
            "correlation_pairs": [
                {"asset1": p.asset1, "asset2": p.asset2, "correlation": p.correlation, "level": p.level}
                for p in self.correlation_pairs
            ],
            "concentration": self.concentration.to_dict() if self.concentration else None,
            "risk_score": self.risk_score,
            "risk_level": self.risk_level,
        }


def reference_label(reference: Reference) -> str:
    if isinstance(reference, BenchmarkSeries):
        return reference.symbol
    return reference.name


def reference_series(reference: Reference) -> TimeSeries:
    if isinstance(reference, BenchmarkSeries):
        return reference.series
    return reference


def calculate_concentration(weights: Mapping[str, float]) -> ConcentrationRisk:
    """
    Herfindahl index of position weights.

    Weights are normalized by their sum first, so they may be given as
    fractions or as position values.

    Raises:
        DataValidationError: For negative, non-finite, or all-zero weights
    """
    if not weights:
        raise DataValidationError("Concentration requires at least one position weight")

    values = np.array(list(weights.values()), dtype=float)
    if not np.all(np.isfinite(values)) or np.any(values < 0):
        raise DataValidationError(f"Position weights must be finite and non-negative: {dict(weights)}")
    total = values.sum()
    if total <= 0:
        raise DataValidationError("Position weights sum to zero")

    normalized = values / total
    hhi = float(np.sum(normalized ** 2))
    largest = int(np.argmax(normalized))

    return ConcentrationRisk(
        herfindahl_index=hhi,
        diversification_score=1.0 - hhi,
        effective_positions=1.0 / hhi,
        largest_position=list(weights.keys())[largest],
        largest_weight=float(normalized[largest]),
    )


def _saturate(value: float, limit: float) -> float:
    return min(max(value, 0.0) / limit, 1.0)


def assess_risk_level(
    volatility: float,
    max_drawdown: float,
    var_loss: float,
    sharpe_ratio: float,
) -> RiskLevel:
    """
    Bucket overall risk.

    Volatility (saturating at 20%), drawdown depth (30%), VaR loss (5%)
    and Sharpe shortfall below 1 are weighted 30/30/20/20 into a score in
    [0, 1]: below 0.25 is low, 0.5 medium, 0.75 high, else extreme.

    Args:
        volatility: Annualized volatility
        max_drawdown: Maximum drawdown (sign ignored)
        var_loss: VaR as a fractional loss
        sharpe_ratio: Annualized Sharpe ratio
    """
    score = (
        0.3 * _saturate(volatility, 0.2)
        + 0.3 * _saturate(abs(max_drawdown), 0.3)
        + 0.2 * _saturate(var_loss, 0.05)
        + 0.2 * _saturate(1.0 - sharpe_ratio, 2.0)
    )
    if score < 0.25:
        return "low"
    if score < 0.5:
        return "medium"
    if score < 0.75:
        return "high"
    return "extreme"


def calculate_risk_score(
    volatility: float,
    max_drawdown: float,
    var_loss: float,
    sharpe_ratio: float,
    largest_weight: float | None = None,
) -> float:
    """
    Risk score from 0 (calm) to 100.

    Points: volatility up to 30 (saturating at 30%), drawdown 25 (40%),
    VaR loss 20 (8%), largest position weight 15 (50%), Sharpe shortfall
    below 1 up to 10.
    """
    score = (
        30 * _saturate(volatility, 0.3)
        + 25 * _saturate(abs(max_drawdown), 0.4)
        + 20 * _saturate(var_loss, 0.08)
        + 10 * _saturate(1.0 - sharpe_ratio, 3.0)
    )
    if largest_weight is not None:
        score += 15 * _saturate(largest_weight, 0.5)
    return min(100.0, score)


class RiskCalculator:
    """
    Portfolio risk calculator.

    Provides:
    - VaR and Expected Shortfall per confidence level
    - Beta and Jensen's alpha per reference series
    - Correlation matrix and pair classification
    - Concentration (Herfindahl) when weights are supplied
    """

    def __init__(
        self,
        confidence_levels: Sequence[float] | None = None,
        method: VaRMethod | None = None,
        risk_free_rate: float | None = None,
        periods_per_year: int | None = None,
    ) -> None:
        """
        Initialize the risk calculator.

        Args:
            confidence_levels: VaR confidence levels (settings default when None)
            method: "historical" or "parametric"
            risk_free_rate: Annual risk-free rate for alpha
            periods_per_year: Annualization factor (inferred when None)
        """
        config = get_settings().analytics
        levels = config.confidence_levels if confidence_levels is None else confidence_levels
        self.method = method or config.var_method
        self._var_calculators = [
            VaRCalculator(confidence_level=level, method=self.method)
            for level in sorted(set(levels))
        ]
        self.analyzer = TimeSeriesAnalyzer(
            risk_free_rate=risk_free_rate,
            periods_per_year=periods_per_year,
        )

    @property
    def confidence_levels(self) -> tuple[float, ...]:
        return tuple(c.confidence_level for c in self._var_calculators)

    @timer
    def calculate(
        self,
        series: TimeSeries,
        references: Sequence[Reference] = (),
        weights: Mapping[str, float] | None = None,
    ) -> RiskProfile:
        """
        Compute the risk profile of an equity curve.

        Args:
            series: Portfolio equity curve
            references: Series to compute beta, alpha and correlation against
            weights: Optional position weights for concentration

        Returns:
            RiskProfile, marked INSUFFICIENT_DATA for fewer than 2 points
        """
        labels = [reference_label(r) for r in references]
        if len(set(labels) | {series.name}) != len(labels) + 1:
            raise DataValidationError(
                f"Reference labels must be unique and differ from {series.name!r}: {labels}"
            )

        concentration = calculate_concentration(weights) if weights else None
        latest_value = series.values[-1] if len(series) else 0.0

        if not series.is_sufficient:
            logger.warning(f"{series.name}: insufficient history for risk measures ({len(series)} point(s))")
            return RiskProfile(
                name=series.name,
                status=DataStatus.INSUFFICIENT_DATA,
                n_points=len(series),
                n_returns=0,
                method=self.method,
                latest_value=latest_value,
                betas={label: None for label in labels},
                alphas={label: None for label in labels},
                concentration=concentration,
            )

        metrics = self.analyzer.analyze(series)
        returns = period_returns(series)
        estimates = tuple(c.estimate(returns.to_numpy(), latest_value) for c in self._var_calculators)

        betas: dict[str, float | None] = {}
        alphas: dict[str, float | None] = {}
        for label, reference in zip(labels, references):
            beta, alpha = self._relative(series, reference_series(reference), metrics.periods_per_year)
            betas[label] = beta
            alphas[label] = alpha

        correlation = self._correlation(series, [reference_series(r) for r in references], labels)
        headline = self._score_estimate(estimates)
        var_loss = max(0.0, -headline.return_threshold) if headline else 0.0

        profile = RiskProfile(
            name=series.name,
            status=DataStatus.OK,
            n_points=len(series),
            n_returns=len(returns),
            method=self.method,
            latest_value=latest_value,
            volatility=metrics.volatility,
            var_estimates=estimates,
            betas=betas,
            alphas=alphas,
            correlation=correlation,
            correlation_pairs=tuple(correlation.pairs()),
            concentration=concentration,
            risk_score=calculate_risk_score(
                metrics.volatility,
                metrics.max_drawdown,
                var_loss,
                metrics.sharpe_ratio,
                concentration.largest_weight if concentration else None,
            ),
            risk_level=assess_risk_level(metrics.volatility, metrics.max_drawdown, var_loss, metrics.sharpe_ratio),
        )

        logger.debug(
            f"{series.name}: risk over {len(returns)} returns, "
            + ", ".join(f"VaR({e.confidence_level:.0%})={e.var:.2f}" for e in estimates)
        )
        return profile

    @staticmethod
    def _score_estimate(estimates: Sequence[VaREstimate]) -> VaREstimate | None:
        """The 95% estimate, else the lowest configured level."""
        for estimate in estimates:
            if math.isclose(estimate.confidence_level, 0.95):
                return estimate
        return estimates[0] if estimates else None

    def _relative(
        self,
        series: TimeSeries,
        reference: TimeSeries,
        periods_per_year: int,
    ) -> tuple[float | None, float | None]:
        common = common_timestamps(series, reference)
        if len(common) < 2:
            logger.warning(f"{series.name} vs {reference.name}: {len(common)} common timestamp(s), beta undefined")
            return None, None

        p = period_returns(series.restrict_to(common))
        r = period_returns(reference.restrict_to(common))
        beta = calculate_beta(p, r)
        alpha = calculate_alpha(p, r, beta, self.analyzer.risk_free_rate, periods_per_year)
        return beta, alpha

    @staticmethod
    def _correlation(
        series: TimeSeries,
        references: list[TimeSeries],
        labels: list[str],
    ) -> CorrelationMatrix:
        columns = {
            label: period_returns(s)
            for label, s in zip([series.name, *labels], [series, *references])
        }
        return calculate_correlation_matrix(align_returns(columns, join="outer"))


def compute_risk(
    series: TimeSeries,
    references: Sequence[Reference] = (),
    confidence_levels: Sequence[float] | None = None,
) -> RiskProfile:
    """
    Convenience function to compute a risk profile.

    Args:
        series: Portfolio equity curve
        references: Reference series for beta and correlation
        confidence_levels: VaR confidence levels (settings default when None)

    Returns:
        RiskProfile
    """
    calculator = RiskCalculator(confidence_levels=confidence_levels)
    return calculator.calculate(series, references)
