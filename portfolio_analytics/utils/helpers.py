"""
Helper functions for the analytics engine.

This module provides common utility functions for:
- Numerical computations
- Parallel processing
"""

from __future__ import annotations

import math
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Callable, Sequence, TypeVar

T = TypeVar("T")

# Standard deviations below this are treated as exactly zero
ZERO_TOLERANCE = 1e-12


def is_zero(value: float, tolerance: float = ZERO_TOLERANCE) -> bool:
    """Check whether a dispersion measure is numerically zero."""
    return math.isnan(value) or abs(value) <= tolerance


def annualize_return(
    total_return: float,
    n_periods: int,
    periods_per_year: int = 252,
) -> float:
    """
    Annualize a compounded total return.

    Args:
        total_return: Total return over the whole window (fractional)
        n_periods: Number of return periods in the window
        periods_per_year: Number of periods in a year

    Returns:
        Annualized return (0.0 when it cannot be defined)
    """
    years = n_periods / periods_per_year
    if years <= 0 or total_return <= -1:
        return 0.0
    try:
        return (1 + total_return) ** (1 / years) - 1
    except OverflowError:
        return math.inf


def parallel_apply(
    func: Callable[[T], Any],
    items: Sequence[T],
    n_workers: int | None = None,
    use_threads: bool = True,
) -> list[Any]:
    """
    Apply a function to items in parallel.

    Results keep the order of ``items``.

    Args:
        func: Function to apply
        items: Sequence of items to process
        n_workers: Number of worker processes/threads
        use_threads: Use threads instead of processes

    Returns:
        List of results
    """
    if not items:
        return []

    executor_class = ThreadPoolExecutor if use_threads else ProcessPoolExecutor

    with executor_class(max_workers=n_workers) as executor:
        results = list(executor.map(func, items))

    return results
