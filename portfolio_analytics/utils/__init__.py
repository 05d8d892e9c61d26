"""
Utility modules for the analytics engine.

This module provides common utilities including:
- Custom logging with loguru
- Decorators for timing and execution logging
- Helper functions for common operations
"""

from portfolio_analytics.utils.logger import configure_from_settings, get_logger, setup_logging
from portfolio_analytics.utils.decorators import (
    timer,
    log_execution,
)
from portfolio_analytics.utils.helpers import (
    ZERO_TOLERANCE,
    is_zero,
    annualize_return,
    parallel_apply,
)

__all__ = [
    "get_logger",
    "configure_from_settings",
    "setup_logging",
    "timer",
    "log_execution",
    "ZERO_TOLERANCE",
    "is_zero",
    "annualize_return",
    "parallel_apply",
]
