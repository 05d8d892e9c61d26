"""
Value at Risk (VaR) models.

This module provides VaR calculations:
- Historical VaR
- Parametric VaR
- Conditional VaR (Expected Shortfall)

Historical quantiles use linear interpolation between order statistics
(numpy ``method="linear"``, Hyndman-Fan type 7). Losses are reported as
positive amounts: VaR = -quantile * position value.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

import numpy as np
import pandas as pd
from scipy import stats

from portfolio_analytics.core.types import ConfigurationError, InsufficientDataError

VaRMethod = Literal["historical", "parametric"]


@dataclass(frozen=True)
class VaREstimate:
    """VaR and Expected Shortfall at one confidence level."""

    confidence_level: float
    method: str
    return_threshold: float  # Return quantile at (1 - confidence)
    var: float  # Loss amount, positive when the threshold is a loss
    shortfall_return: float  # Mean return in the tail
    expected_shortfall: float  # Loss amount

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def historical_quantile(returns: pd.Series | np.ndarray, q: float) -> float:
    """
    Empirical quantile with linear interpolation between order statistics.

    Args:
        returns: Return observations
        q: Quantile in [0, 1]

    Returns:
        Interpolated quantile
    """
    return float(np.quantile(np.asarray(returns, dtype=float), q, method="linear"))


class VaRCalculator:
    """
    Value at Risk calculator.

    Provides:
    - Historical simulation
    - Parametric (variance-covariance)
    - Conditional VaR (Expected Shortfall)
    """

    def __init__(
        self,
        confidence_level: float = 0.95,
        method: VaRMethod = "historical",
    ) -> None:
        """
        Initialize the VaR calculator.

        Args:
            confidence_level: Confidence level (e.g., 0.95 for 95%)
            method: VaR calculation method
        """
        if not 0.0 < confidence_level < 1.0:
            raise ConfigurationError(f"Confidence level must be in (0, 1), got {confidence_level}")
        if method not in ("historical", "parametric"):
            raise ConfigurationError(f"Unknown VaR method: {method}")

        self.confidence_level = confidence_level
        self.method = method

    def return_threshold(self, returns: pd.Series | np.ndarray) -> float:
        """
        Return quantile at (1 - confidence).

        Args:
            returns: Historical returns

        Returns:
            Threshold return (negative for a loss)
        """
        returns = self._validate(returns)
        quantile = 1 - self.confidence_level

        if self.method == "historical":
            return historical_quantile(returns, quantile)

        mean = returns.mean()
        std = returns.std(ddof=1) if len(returns) >= 2 else 0.0
        z = stats.norm.ppf(quantile)
        return float(mean + z * std)

    def calculate_var(
        self,
        returns: pd.Series | np.ndarray,
        position_value: float = 1.0,
    ) -> float:
        """
        Calculate Value at Risk.

        Args:
            returns: Historical returns
            position_value: Total position value

        Returns:
            VaR as a loss amount
        """
        return -self.return_threshold(returns) * position_value

    def calculate_cvar(
        self,
        returns: pd.Series | np.ndarray,
        position_value: float = 1.0,
    ) -> float:
        """
        Calculate Conditional VaR (Expected Shortfall).

        Args:
            returns: Historical returns
            position_value: Total position value

        Returns:
            CVaR as a loss amount
        """
        return -self._tail_mean(self._validate(returns)) * position_value

    def estimate(
        self,
        returns: pd.Series | np.ndarray,
        position_value: float = 1.0,
    ) -> VaREstimate:
        """VaR and Expected Shortfall together."""
        returns = self._validate(returns)
        threshold = self.return_threshold(returns)
        tail_mean = self._tail_mean(returns, threshold)

        return VaREstimate(
            confidence_level=self.confidence_level,
            method=self.method,
            return_threshold=threshold,
            var=-threshold * position_value,
            shortfall_return=tail_mean,
            expected_shortfall=-tail_mean * position_value,
        )

    def _tail_mean(self, returns: np.ndarray, threshold: float | None = None) -> float:
        if self.method == "parametric":
            mean = returns.mean()
            std = returns.std(ddof=1) if len(returns) >= 2 else 0.0
            alpha = 1 - self.confidence_level
            z = stats.norm.ppf(alpha)
            return float(mean - std * stats.norm.pdf(z) / alpha)

        if threshold is None:
            threshold = self.return_threshold(returns)

        # Threshold interpolates between observations, so the minimum is always in the tail
        tail = returns[returns <= threshold]
        return float(tail.mean())

    @staticmethod
    def _validate(returns: pd.Series | np.ndarray) -> np.ndarray:
        arr = np.asarray(returns, dtype=float)
        arr = arr[~np.isnan(arr)]
        if arr.size == 0:
            raise InsufficientDataError("VaR requires at least one return observation")
        return arr


def calculate_var(
    returns: pd.Series | np.ndarray,
    confidence_level: float = 0.95,
    method: VaRMethod = "historical",
    position_value: float = 1.0,
) -> float:
    """
    Convenience function to calculate VaR.

    Args:
        returns: Historical returns
        confidence_level: Confidence level
        method: VaR method
        position_value: Total position value

    Returns:
        VaR value
    """
    calculator = VaRCalculator(
        confidence_level=confidence_level,
        method=method,
    )
    return calculator.calculate_var(returns, position_value)


def calculate_cvar(
    returns: pd.Series | np.ndarray,
    confidence_level: float = 0.95,
    position_value: float = 1.0,
) -> float:
    """
    Convenience function to calculate CVaR.

    Args:
        returns: Historical returns
        confidence_level: Confidence level
        position_value: Total position value

    Returns:
        CVaR value
    """
    calculator = VaRCalculator(confidence_level=confidence_level)
    return calculator.calculate_cvar(returns, position_value)
