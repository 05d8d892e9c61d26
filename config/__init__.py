"""
Configuration module for the analytics engine.

This module provides centralized configuration management including:
- Global settings (settings.py)
- Analytics defaults (analytics_config.yaml)
"""

from pathlib import Path

import yaml

from config.settings import (
    PROJECT_ROOT,
    CONFIG_DIR,
    LOGS_DIR,
    AnalyticsSettings,
    LoggingSettings,
    Settings,
    get_settings,
    reload_settings,
    settings,
)


def load_yaml_config(config_name: str, config_dir: Path | None = None) -> dict:
    """
    Load a YAML configuration file.

    Args:
        config_name: Name of the config file (with or without .yaml extension)
        config_dir: Directory to look in (defaults to the config package)

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid
    """
    if not config_name.endswith(".yaml"):
        config_name = f"{config_name}.yaml"

    config_path = (config_dir or CONFIG_DIR) / config_name

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_analytics_config(
    config_name: str = "analytics_config",
    config_dir: Path | None = None,
) -> AnalyticsSettings:
    """
    Build AnalyticsSettings from the ``analytics`` section of a YAML file.

    Values in the file override defaults; environment variables are still
    honoured for keys the file does not set.
    """
    data = load_yaml_config(config_name, config_dir)
    return AnalyticsSettings(**(data.get("analytics") or {}))


__all__ = [
    "PROJECT_ROOT",
    "CONFIG_DIR",
    "LOGS_DIR",
    "AnalyticsSettings",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "reload_settings",
    "settings",
    "load_yaml_config",
    "load_analytics_config",
]
