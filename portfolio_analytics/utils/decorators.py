"""
Utility decorators for the analytics engine.

This module provides decorators for:
- Timing and performance measurement
- Execution logging
"""

from __future__ import annotations

import functools
import time
from typing import Callable, ParamSpec, TypeVar

from loguru import logger

from portfolio_analytics.utils.logger import perf_logger

P = ParamSpec("P")
T = TypeVar("T")


def timer(func: Callable[P, T]) -> Callable[P, T]:
    """
    Decorator to measure and log function execution time.

    Args:
        func: Function to time

    Returns:
        Wrapped function that logs execution time

    Example:
        @timer
        def analyze(series):
            ...
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = (time.perf_counter() - start_time) * 1000
            perf_logger.log_timing(f"{func.__module__}.{func.__qualname__}", elapsed)

    return wrapper


def log_execution(
    level: str = "DEBUG",
    log_args: bool = False,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator to log entry to and failures of a function.

    Exceptions are logged and re-raised unchanged.

    Args:
        level: Log level for the entry message
        log_args: Whether to include call arguments in the message
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            if log_args:
                logger.log(level, f"Calling {func.__qualname__} args={args} kwargs={kwargs}")
            else:
                logger.log(level, f"Calling {func.__qualname__}")
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{func.__qualname__} failed: {type(e).__name__}: {e}")
                raise

        return wrapper

    return decorator
