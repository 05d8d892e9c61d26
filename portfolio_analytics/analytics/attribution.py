"""
Return Attribution
==================

Brinson-Fachler decomposition of active return by category.

For each category i with portfolio/benchmark weights wp, wb and returns
rp, rb, and benchmark total Rb = sum(wb * rb):

    allocation  = (wp - wb) * (rb - Rb)
    selection   = wb * (rp - rb)
    interaction = (wp - wb) * (rp - rb)
    contribution = allocation + selection + interaction

When portfolio and benchmark weights sum to the same total, the
contributions add up to Rp - Rb exactly. Every decomposition checks
this identity before returning.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Mapping, Sequence, Union

import pandas as pd

from config.settings import get_settings
from portfolio_analytics.core.types import (
    AnalyticsError,
    AttributionInputError,
    CategoryWeightsAndReturns,
)
from portfolio_analytics.utils.logger import get_logger

logger = get_logger(__name__)

CategoryInput = Union[CategoryWeightsAndReturns, Mapping[str, Any]]


@dataclass(frozen=True)
class AttributionRecord:
    """Attribution effects for one category."""

    category: str
    portfolio_weight: float
    benchmark_weight: float
    portfolio_return: float
    benchmark_return: float
    allocation: float
    selection: float
    interaction: float
    contribution: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AttributionSummary:
    """Per-category records plus totals."""

    records: tuple[AttributionRecord, ...]
    portfolio_return: float  # Rp
    benchmark_return: float  # Rb
    total_allocation: float
    total_selection: float
    total_interaction: float
    normalized: bool = False

    @property
    def active_return(self) -> float:
        return self.portfolio_return - self.benchmark_return

    @property
    def total_contribution(self) -> float:
        return math.fsum(r.contribution for r in self.records)

    def largest_contributor(self) -> AttributionRecord | None:
        if not self.records:
            return None
        return max(self.records, key=lambda r: r.contribution)

    def as_frame(self) -> pd.DataFrame:
        return pd.DataFrame([r.to_dict() for r in self.records]).set_index("category")

    def to_dict(self) -> dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "portfolio_return": self.portfolio_return,
            "benchmark_return": self.benchmark_return,
            "active_return": self.active_return,
            "total_allocation": self.total_allocation,
            "total_selection": self.total_selection,
            "total_interaction": self.total_interaction,
            "total_contribution": self.total_contribution,
            "normalized": self.normalized,
        }


def _coerce(category: CategoryInput) -> CategoryWeightsAndReturns:
    if isinstance(category, CategoryWeightsAndReturns):
        return category
    try:
        return CategoryWeightsAndReturns(**category)
    except TypeError as e:
        raise AttributionInputError(f"Invalid category input: {category!r}") from e


class AttributionEngine:
    """
    Brinson-Fachler attribution engine.

    Decomposes active return into:
    - Allocation effect: over/underweighting categories
    - Selection effect: picking within categories
    - Interaction effect: the combined effect
    """

    def __init__(
        self,
        normalize_weights: bool | None = None,
        weight_sum_tolerance: float | None = None,
        tolerance: float | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            normalize_weights: Rescale each weight set to sum to 1
            weight_sum_tolerance: Allowed gap between weight totals
            tolerance: Relative tolerance of the identity check
        """
        config = get_settings().analytics
        self.normalize_weights = config.normalize_weights if normalize_weights is None else normalize_weights
        self.weight_sum_tolerance = (
            config.weight_sum_tolerance if weight_sum_tolerance is None else weight_sum_tolerance
        )
        self.tolerance = config.attribution_tolerance if tolerance is None else tolerance

    def decompose(self, categories: Sequence[CategoryInput]) -> AttributionSummary:
        """
        Decompose active return by category.

        Args:
            categories: One entry per category, unique labels

        Returns:
            AttributionSummary with one record per category, in input order

        Raises:
            AttributionInputError: Empty input, duplicate labels, or weight
                totals that differ (without normalization)
        """
        items = [_coerce(c) for c in categories]
        self._validate(items)

        wp = [c.portfolio_weight for c in items]
        wb = [c.benchmark_weight for c in items]
        if self.normalize_weights:
            wp = self._normalize(wp, "portfolio")
            wb = self._normalize(wb, "benchmark")
        else:
            self._check_weight_totals(wp, wb)

        rp = [c.portfolio_return for c in items]
        rb = [c.benchmark_return for c in items]
        portfolio_total = math.fsum(w * r for w, r in zip(wp, rp))
        benchmark_total = math.fsum(w * r for w, r in zip(wb, rb))

        records = []
        for item, w_p, w_b, r_p, r_b in zip(items, wp, wb, rp, rb):
            allocation = (w_p - w_b) * (r_b - benchmark_total)
            selection = w_b * (r_p - r_b)
            interaction = (w_p - w_b) * (r_p - r_b)
            records.append(AttributionRecord(
                category=item.category,
                portfolio_weight=w_p,
                benchmark_weight=w_b,
                portfolio_return=r_p,
                benchmark_return=r_b,
                allocation=allocation,
                selection=selection,
                interaction=interaction,
                contribution=allocation + selection + interaction,
            ))

        summary = AttributionSummary(
            records=tuple(records),
            portfolio_return=portfolio_total,
            benchmark_return=benchmark_total,
            total_allocation=math.fsum(r.allocation for r in records),
            total_selection=math.fsum(r.selection for r in records),
            total_interaction=math.fsum(r.interaction for r in records),
            normalized=self.normalize_weights,
        )
        self._check_identity(summary, weight_gap=math.fsum(wp) - math.fsum(wb))

        logger.debug(
            f"Attribution over {len(records)} categories: active={summary.active_return:.6f} "
            f"(allocation={summary.total_allocation:.6f}, selection={summary.total_selection:.6f}, "
            f"interaction={summary.total_interaction:.6f})"
        )
        return summary

    @staticmethod
    def _validate(items: list[CategoryWeightsAndReturns]) -> None:
        if not items:
            raise AttributionInputError("Attribution requires at least one category")

        seen: set[str] = set()
        duplicates = []
        for item in items:
            if item.category in seen:
                duplicates.append(item.category)
            seen.add(item.category)
        if duplicates:
            raise AttributionInputError(f"Duplicate category labels: {sorted(set(duplicates))}")

    @staticmethod
    def _normalize(weights: list[float], side: str) -> list[float]:
        total = math.fsum(weights)
        if total <= 0:
            raise AttributionInputError(f"Cannot normalize {side} weights summing to {total}")
        return [w / total for w in weights]

    def _check_weight_totals(self, wp: list[float], wb: list[float]) -> None:
        portfolio_sum = math.fsum(wp)
        benchmark_sum = math.fsum(wb)
        if abs(portfolio_sum - benchmark_sum) > self.weight_sum_tolerance:
            raise AttributionInputError(
                f"Portfolio weights sum to {portfolio_sum:.10g} but benchmark weights sum to "
                f"{benchmark_sum:.10g}; totals must match (or enable normalize_weights)"
            )

    def _check_identity(self, summary: AttributionSummary, weight_gap: float) -> None:
        # A tolerated gap between weight totals shifts the sum by Rb * gap
        expected = summary.active_return - summary.benchmark_return * weight_gap
        total = summary.total_contribution
        if not math.isclose(total, expected, rel_tol=self.tolerance, abs_tol=1e-12):
            raise AnalyticsError(
                f"Attribution identity violated: contributions sum to {total!r}, "
                f"active return is {expected!r}"
            )


def compute_attribution(categories: Sequence[CategoryInput]) -> list[AttributionRecord]:
    """
    Convenience function for Brinson-Fachler attribution.

    Args:
        categories: Per-category weights and returns

    Returns:
        One AttributionRecord per category, in input order
    """
    return list(AttributionEngine().decompose(categories).records)
