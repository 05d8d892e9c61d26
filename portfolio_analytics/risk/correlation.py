"""
Correlation analysis.

This module provides:
- Timestamp alignment of series and returns
- Pearson correlation matrix (exactly symmetric)
- Beta, Jensen's alpha and Treynor ratio against a reference series
- Correlation pair classification
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping

import numpy as np
import pandas as pd

from config.settings import get_settings
from portfolio_analytics.core.types import DataValidationError, TimeSeries
from portfolio_analytics.utils.helpers import is_zero

CorrelationLevel = Literal["high", "medium", "low"]


@dataclass(frozen=True)
class CorrelationPair:
    """Correlation between two distinct series."""

    asset1: str
    asset2: str
    correlation: float | None
    level: CorrelationLevel | None


@dataclass(frozen=True)
class CorrelationMatrix:
    """
    Symmetric correlation matrix.

    An entry is None when its series (or pair, off the diagonal) has fewer
    than two returns or zero variance over the rows they share.
    """

    labels: tuple[str, ...]
    values: tuple[tuple[float | None, ...], ...]
    n_observations: int  # Rows where every series has a return

    def get(self, a: str, b: str) -> float | None:
        try:
            i, j = self.labels.index(a), self.labels.index(b)
        except ValueError as e:
            raise KeyError(f"Unknown series: {e}") from e
        return self.values[i][j]

    @property
    def is_symmetric(self) -> bool:
        n = len(self.labels)
        return all(self.values[i][j] == self.values[j][i] for i in range(n) for j in range(i + 1, n))

    def as_frame(self) -> pd.DataFrame:
        """Matrix as a DataFrame (None becomes NaN)."""
        data = [[np.nan if v is None else v for v in row] for row in self.values]
        return pd.DataFrame(data, index=list(self.labels), columns=list(self.labels))

    def pairs(
        self,
        high_threshold: float | None = None,
        low_threshold: float | None = None,
    ) -> list[CorrelationPair]:
        """
        Upper-triangle pairs, strongest absolute correlation first.

        Args:
            high_threshold: |r| at or above this is "high"
            low_threshold: |r| below this is "low"
        """
        config = get_settings().analytics
        high = config.high_correlation_threshold if high_threshold is None else high_threshold
        low = config.low_correlation_threshold if low_threshold is None else low_threshold

        result = []
        for i, a in enumerate(self.labels):
            for j in range(i + 1, len(self.labels)):
                corr = self.values[i][j]
                result.append(CorrelationPair(
                    asset1=a,
                    asset2=self.labels[j],
                    correlation=corr,
                    level=classify_correlation(corr, high, low),
                ))

        result.sort(key=lambda p: -1.0 if p.correlation is None else -abs(p.correlation))
        return result

    def to_dict(self) -> dict[str, Any]:
        return {
            "labels": list(self.labels),
            "values": [list(row) for row in self.values],
            "n_observations": self.n_observations,
        }


def classify_correlation(
    correlation: float | None,
    high_threshold: float = 0.7,
    low_threshold: float = 0.3,
) -> CorrelationLevel | None:
    """Bucket a correlation by magnitude."""
    if correlation is None:
        return None
    magnitude = abs(correlation)
    if magnitude >= high_threshold:
        return "high"
    if magnitude < low_threshold:
        return "low"
    return "medium"


def common_timestamps(*series: TimeSeries) -> list[pd.Timestamp]:
    """Timestamps present in every series, ascending."""
    if not series:
        return []
    common = {pd.Timestamp(t) for t in series[0].timestamps}
    for s in series[1:]:
        common &= {pd.Timestamp(t) for t in s.timestamps}
    return sorted(common)


def align_returns(
    returns: Mapping[str, pd.Series],
    join: Literal["inner", "outer"] = "inner",
) -> pd.DataFrame:
    """
    Align return series on their timestamps.

    Args:
        returns: Label -> return series
        join: "inner" keeps rows where every series has a return; "outer"
            keeps the union of timestamps with NaN for missing returns

    Returns:
        DataFrame with one column per label
    """
    if not returns:
        return pd.DataFrame()
    frame = pd.concat({label: s.astype(float) for label, s in returns.items()}, axis=1, join=join)
    return frame.dropna() if join == "inner" else frame


def _pearson(x: np.ndarray, y: np.ndarray) -> float | None:
    xm = x - x.mean()
    ym = y - y.mean()
    denom = np.sqrt(np.dot(xm, xm) * np.dot(ym, ym))
    if is_zero(float(denom)):
        return None
    return float(np.clip(np.dot(xm, ym) / denom, -1.0, 1.0))


def _varies(x: np.ndarray) -> bool:
    return len(x) >= 2 and not is_zero(float(np.std(x)))


def calculate_correlation_matrix(returns: pd.DataFrame) -> CorrelationMatrix:
    """
    Pearson correlation matrix using pairwise-complete observations.

    Each cell uses only the rows where both series have a return, so a
    series that barely overlaps the others leaves their cells untouched.
    The diagonal reflects each series' own returns. Only the upper
    triangle is computed; the lower triangle mirrors it.

    Args:
        returns: Returns, one column per series (NaN where missing)

    Returns:
        CorrelationMatrix
    """
    labels = tuple(str(c) for c in returns.columns)
    if len(set(labels)) != len(labels):
        raise DataValidationError(f"Duplicate series labels in correlation input: {labels}")

    n = len(labels)
    data = returns.to_numpy(dtype=float)
    present = ~np.isnan(data)

    matrix: list[list[float | None]] = [[None] * n for _ in range(n)]
    for i in range(n):
        matrix[i][i] = 1.0 if _varies(data[present[:, i], i]) else None
        for j in range(i + 1, n):
            both = present[:, i] & present[:, j]
            x, y = data[both, i], data[both, j]
            corr = _pearson(x, y) if _varies(x) and _varies(y) else None
            matrix[i][j] = corr
            matrix[j][i] = corr

    return CorrelationMatrix(
        labels=labels,
        values=tuple(tuple(row) for row in matrix),
        n_observations=int(present.all(axis=1).sum()) if n else 0,
    )


def calculate_beta(
    returns: pd.Series,
    reference_returns: pd.Series,
) -> float | None:
    """
    Beta of returns against a reference: cov(p, r) / var(r).

    Series are aligned on common timestamps first.

    Returns:
        Beta, or None when the reference variance is zero or fewer than
        two aligned observations exist
    """
    aligned = align_returns({"p": returns, "r": reference_returns})
    if len(aligned) < 2:
        return None

    p = aligned["p"].to_numpy()
    r = aligned["r"].to_numpy()
    reference_var = float(np.var(r, ddof=1))
    if is_zero(reference_var):
        return None

    cov = float(np.cov(p, r, ddof=1)[0, 1])
    return cov / reference_var


def calculate_alpha(
    returns: pd.Series,
    reference_returns: pd.Series,
    beta: float | None,
    risk_free_rate: float,
    periods_per_year: int,
) -> float | None:
    """
    Annualized Jensen's alpha.

    alpha = (mean(p) - rf) - beta * (mean(r) - rf), per period, times ppy.

    Returns:
        Alpha, or None when beta is undefined
    """
    if beta is None:
        return None
    aligned = align_returns({"p": returns, "r": reference_returns})
    if aligned.empty:
        return None
    rf = risk_free_rate / periods_per_year
    excess_p = float(aligned["p"].mean()) - rf
    excess_r = float(aligned["r"].mean()) - rf
    return (excess_p - beta * excess_r) * periods_per_year


def calculate_treynor(
    returns: pd.Series,
    beta: float | None,
    risk_free_rate: float,
    periods_per_year: int,
) -> float | None:
    """
    Annualized excess return per unit of beta.

    Returns:
        Treynor ratio, or None when beta is undefined or zero
    """
    if beta is None or is_zero(beta) or len(returns) == 0:
        return None
    excess = float(returns.mean()) - risk_free_rate / periods_per_year
    return excess * periods_per_year / beta
