"""
Loguru setup for the analytics package.

Sinks are rebuilt from LoggingSettings at import time; call setup_logging
again to redirect output (tests, batch jobs writing to a file).
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from loguru import logger

from config.settings import LOG_FORMAT, LoggingSettings, settings


def setup_logging(
    level: str = "INFO",
    log_format: str = LOG_FORMAT,
    log_file: Path | str | None = None,
    rotation: str = "10 MB",
    retention: str = "30 days",
    serialize: bool = False,
    console: bool = True,
) -> None:
    """
    Replace all loguru sinks.

    The same format is used for stderr and the log file. Color markup in
    it is rendered on the console and stripped from the file.

    Args:
        level: Minimum level for every sink
        log_format: Loguru format string
        log_file: Optional log file path, parent directories are created
        rotation: When to rotate the log file
        retention: How long to keep rotated files
        serialize: Write JSON records to the file instead of formatted lines
        console: Whether to log to stderr
    """
    logger.remove()

    if console:
        logger.add(sys.stderr, level=level, format=log_format, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            level=level,
            format=log_format,
            colorize=False,
            rotation=rotation,
            retention=retention,
            compression="gz",
            serialize=serialize,
        )


def configure_from_settings(config: LoggingSettings) -> None:
    setup_logging(
        level=config.level,
        log_format=config.format,
        log_file=config.log_file,
        rotation=config.rotation,
        retention=config.retention,
        serialize=config.serialize,
        console=config.console,
    )
    perf_logger.slow_threshold_ms = config.slow_call_ms


def get_logger(name: str | None = None) -> "logger":
    """Logger bound to a module name."""
    if name:
        return logger.bind(name=name)
    return logger


class PerformanceLogger:
    """Timing records for analytics calls, warning above a threshold."""

    def __init__(self, slow_threshold_ms: float = 1000.0) -> None:
        self._logger = logger.bind(category="performance")
        self.slow_threshold_ms = slow_threshold_ms

    def log_timing(self, operation: str, duration_ms: float, **kwargs: Any) -> None:
        """
        Log how long an analytics call took.

        Args:
            operation: Qualified name of the call
            duration_ms: Duration in milliseconds
            **kwargs: Extra fields bound to the record
        """
        slow = duration_ms > self.slow_threshold_ms
        self._logger.log(
            "WARNING" if slow else "DEBUG",
            f"{'SLOW' if slow else 'TIMING'} | {operation} | {duration_ms:.2f}ms",
            operation=operation,
            duration_ms=duration_ms,
            **kwargs,
        )


perf_logger = PerformanceLogger()
configure_from_settings(settings.logging)
