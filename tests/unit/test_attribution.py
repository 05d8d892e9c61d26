"""
Unit tests for Brinson-Fachler attribution.
"""

import math

import numpy as np
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from portfolio_analytics.analytics.attribution import AttributionEngine, compute_attribution
from portfolio_analytics.core.types import AttributionInputError, CategoryWeightsAndReturns


def random_categories(rng, n):
    wp = rng.dirichlet(np.ones(n))
    wb = rng.dirichlet(np.ones(n))
    rp = rng.normal(0.01, 0.1, n)
    rb = rng.normal(0.01, 0.1, n)
    return [
        CategoryWeightsAndReturns(f"cat{i}", float(wp[i]), float(rp[i]), float(wb[i]), float(rb[i]))
        for i in range(n)
    ]


class TestAttributionEngine:
    """Tests for AttributionEngine."""

    def test_identity_example(self, example_categories):
        summary = AttributionEngine().decompose(example_categories)

        portfolio_total = sum(c.portfolio_weight * c.portfolio_return for c in example_categories)
        benchmark_total = sum(c.benchmark_weight * c.benchmark_return for c in example_categories)

        assert summary.portfolio_return == pytest.approx(portfolio_total)
        assert summary.benchmark_return == pytest.approx(benchmark_total)
        assert math.isclose(
            sum(r.contribution for r in summary.records),
            portfolio_total - benchmark_total,
            rel_tol=1e-9,
        )

    @pytest.mark.parametrize("seed", range(10))
    def test_identity_random(self, seed):
        rng = np.random.default_rng(seed)
        categories = random_categories(rng, int(rng.integers(1, 12)))

        records = compute_attribution(categories)
        portfolio_total = math.fsum(c.portfolio_weight * c.portfolio_return for c in categories)
        benchmark_total = math.fsum(c.benchmark_weight * c.benchmark_return for c in categories)
        weight_gap = math.fsum(c.portfolio_weight for c in categories) - math.fsum(
            c.benchmark_weight for c in categories
        )
        expected = portfolio_total - benchmark_total - benchmark_total * weight_gap

        assert math.isclose(math.fsum(r.contribution for r in records), expected, rel_tol=1e-9, abs_tol=1e-12)

    def test_effects_per_category(self, example_categories):
        summary = AttributionEngine().decompose(example_categories)
        rb_total = summary.benchmark_return
        crypto = summary.records[0]

        assert crypto.category == "Crypto"
        assert crypto.allocation == pytest.approx((0.40 - 0.30) * (0.08 - rb_total))
        assert crypto.selection == pytest.approx(0.30 * (0.12 - 0.08))
        assert crypto.interaction == pytest.approx((0.40 - 0.30) * (0.12 - 0.08))

    def test_contribution_is_sum_of_effects(self, example_categories):
        for record in compute_attribution(example_categories):
            assert record.contribution == pytest.approx(
                record.allocation + record.selection + record.interaction
            )

    def test_totals(self, example_categories):
        summary = AttributionEngine().decompose(example_categories)

        assert summary.total_allocation + summary.total_selection + summary.total_interaction == pytest.approx(
            summary.active_return
        )
        assert summary.largest_contributor().category in {c.category for c in example_categories}
        assert list(summary.as_frame().index) == ["Crypto", "Stocks", "DeFi", "NFTs"]

    def test_identical_portfolio_and_benchmark(self):
        categories = [
            CategoryWeightsAndReturns("A", 0.6, 0.05, 0.6, 0.05),
            CategoryWeightsAndReturns("B", 0.4, -0.02, 0.4, -0.02),
        ]
        summary = AttributionEngine().decompose(categories)

        assert summary.active_return == 0.0
        assert all(r.contribution == 0.0 for r in summary.records)

    def test_accepts_mappings(self):
        records = compute_attribution([
            {"category": "A", "portfolio_weight": 1.0, "portfolio_return": 0.1,
             "benchmark_weight": 1.0, "benchmark_return": 0.05},
        ])

        assert records[0].selection == pytest.approx(0.05)
        assert records[0].allocation == 0.0

    def test_rejects_malformed_mapping(self):
        with pytest.raises(AttributionInputError):
            compute_attribution([{"category": "A", "weight": 1.0}])

    def test_rejects_empty(self):
        with pytest.raises(AttributionInputError):
            compute_attribution([])

    def test_rejects_duplicate_categories(self, example_categories):
        with pytest.raises(AttributionInputError, match="Crypto"):
            compute_attribution(example_categories + [example_categories[0]])

    def test_rejects_mismatched_weight_totals(self):
        categories = [
            CategoryWeightsAndReturns("A", 0.5, 0.1, 0.6, 0.05),
            CategoryWeightsAndReturns("B", 0.3, 0.0, 0.4, 0.02),
        ]
        with pytest.raises(AttributionInputError, match="totals must match"):
            compute_attribution(categories)

    def test_normalize_weights(self):
        categories = [
            CategoryWeightsAndReturns("A", 40.0, 0.1, 60.0, 0.05),
            CategoryWeightsAndReturns("B", 60.0, 0.0, 40.0, 0.02),
        ]
        summary = AttributionEngine(normalize_weights=True).decompose(categories)

        assert summary.normalized
        assert [r.portfolio_weight for r in summary.records] == pytest.approx([0.4, 0.6])
        assert math.isclose(summary.total_contribution, summary.active_return, rel_tol=1e-9)

    def test_to_dict(self, example_categories):
        data = AttributionEngine().decompose(example_categories).to_dict()

        assert len(data["records"]) == 4
        assert data["total_contribution"] == pytest.approx(data["active_return"])
