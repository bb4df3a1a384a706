"""
Configuration management module for the budget forecast engine.

This module handles loading configuration values from config.yaml,
validating the forecast tuning parameters, and configuring logging.
"""

import copy
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from exceptions import ConfigError
from utils import resolve_config_path, resolve_log_path

logger = logging.getLogger(__name__)

CONFIG_FILE = 'config.yaml'
CONFIG_ENV_VAR = 'BUDGET_FORECAST_CONFIG'

SUPPORTED_LANGUAGES = ('en', 'id')

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    'forecast': {
        'risk': {
            'medium_threshold': 0.85,
            'high_threshold': 1.0,
        },
        'confidence': {
            'min_days': 3,
            'maturity_fraction': 0.1,
            'min_transactions': 3,
            'sparse_data_weight': 0.5,
        },
        'seasonal': {
            'deviation_threshold': 0.2,
        },
        'language': 'en',
    },
    'service': {
        'cache_ttl_hours': 6,
        'history_retention_days': 90,
        'fetch_retries': 2,
        'retry_delay_seconds': 1.0,
        'max_retry_delay_seconds': 10.0,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'file': None,
    },
}


@dataclass(frozen=True)
class ForecastSettings:
    """
    Validated tuning parameters for the forecast pipeline.

    Attributes:
        medium_threshold: Projected/limit ratio where risk becomes medium
        high_threshold: Projected/limit ratio where risk becomes high
        min_days: Minimum days of data before confidence can reach 1.0
        maturity_fraction: Share of the period that counts as mature data
        min_transactions: Transaction count at which data is considered sufficient
        sparse_data_weight: Confidence weight applied when there are no transactions
        deviation_threshold: Relative pace change that triggers a seasonal note
        language: Narrative language ('en' or 'id')
    """
    medium_threshold: float = 0.85
    high_threshold: float = 1.0
    min_days: int = 3
    maturity_fraction: float = 0.1
    min_transactions: int = 3
    sparse_data_weight: float = 0.5
    deviation_threshold: float = 0.2
    language: str = 'en'


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of base with override applied recursively."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file.

    The path is taken from the argument, then the BUDGET_FORECAST_CONFIG
    environment variable, then config.yaml under the project root.

    Args:
        config_path: Optional path to the YAML file

    Returns:
        Configuration dictionary with defaults for missing values
    """
    raw_path = config_path or os.environ.get(CONFIG_ENV_VAR) or CONFIG_FILE
    path = resolve_config_path(raw_path)

    try:
        if path.exists():
            with open(path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
        else:
            logger.debug("Config file %s not found; using defaults", path)
            loaded = {}

        if not isinstance(loaded, dict):
            logger.warning("Config file %s does not contain a mapping; ignoring it", path)
            loaded = {}

        config = _deep_merge(DEFAULT_CONFIG, loaded)
        logger.info("Configuration loaded successfully")
        return config

    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading configuration: {e}", exc_info=True)
        return copy.deepcopy(DEFAULT_CONFIG)


def save_config(config: Dict[str, Any], config_path: Optional[Union[str, Path]] = None) -> bool:
    """
    Save configuration to a YAML file, preserving keys it does not mention.

    Args:
        config: Configuration dictionary to save
        config_path: Optional target path (defaults to config.yaml)

    Returns:
        True if successful, False otherwise
    """
    path = resolve_config_path(config_path or CONFIG_FILE)
    try:
        existing_config: Dict[str, Any] = {}
        if path.exists():
            with open(path, 'r') as f:
                existing_config = yaml.safe_load(f) or {}

        merged = _deep_merge(existing_config, config)

        with open(path, 'w') as f:
            yaml.dump(merged, f, default_flow_style=False)

        logger.info("Configuration saved successfully")
        return True

    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error saving configuration: {e}", exc_info=True)
        return False


def _as_number(section: Dict[str, Any], key: str, cast=float):
    value = section.get(key)
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Config value '{key}' must be numeric",
            details={"key": key, "value": value},
            original_error=exc
        ) from exc


def get_forecast_settings(config: Optional[Dict[str, Any]] = None) -> ForecastSettings:
    """
    Build validated forecast settings from a configuration dictionary.

    Args:
        config: Configuration dictionary (defaults are used when omitted)

    Returns:
        ForecastSettings instance

    Raises:
        ConfigError: If any value is missing, non-numeric or out of range
    """
    merged = _deep_merge(DEFAULT_CONFIG, config or {})
    forecast = merged.get('forecast') or {}
    risk = forecast.get('risk') or {}
    confidence = forecast.get('confidence') or {}
    seasonal = forecast.get('seasonal') or {}

    settings = ForecastSettings(
        medium_threshold=_as_number(risk, 'medium_threshold'),
        high_threshold=_as_number(risk, 'high_threshold'),
        min_days=_as_number(confidence, 'min_days', int),
        maturity_fraction=_as_number(confidence, 'maturity_fraction'),
        min_transactions=_as_number(confidence, 'min_transactions', int),
        sparse_data_weight=_as_number(confidence, 'sparse_data_weight'),
        deviation_threshold=_as_number(seasonal, 'deviation_threshold'),
        language=str(forecast.get('language', 'en')).lower(),
    )

    if not 0 < settings.medium_threshold < settings.high_threshold:
        raise ConfigError(
            "Risk thresholds must satisfy 0 < medium_threshold < high_threshold",
            details={
                "medium_threshold": settings.medium_threshold,
                "high_threshold": settings.high_threshold,
            }
        )
    if settings.min_days < 1 or settings.min_transactions < 1:
        raise ConfigError(
            "Confidence min_days and min_transactions must be at least 1",
            details={"min_days": settings.min_days, "min_transactions": settings.min_transactions}
        )
    if not 0 < settings.maturity_fraction <= 1:
        raise ConfigError(
            "Confidence maturity_fraction must be in (0, 1]",
            details={"maturity_fraction": settings.maturity_fraction}
        )
    if not 0 <= settings.sparse_data_weight <= 1:
        raise ConfigError(
            "Confidence sparse_data_weight must be in [0, 1]",
            details={"sparse_data_weight": settings.sparse_data_weight}
        )
    if settings.deviation_threshold <= 0:
        raise ConfigError(
            "Seasonal deviation_threshold must be positive",
            details={"deviation_threshold": settings.deviation_threshold}
        )
    if settings.language not in SUPPORTED_LANGUAGES:
        raise ConfigError(
            f"Unsupported language '{settings.language}'",
            details={"supported": ", ".join(SUPPORTED_LANGUAGES)}
        )

    return settings


def get_service_settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, float]:
    """
    Return validated cache, history and fetch-retry settings for the
    prediction service.

    Returns:
        Dictionary with cache_ttl_hours, history_retention_days,
        fetch_retries, retry_delay_seconds and max_retry_delay_seconds
    """
    merged = _deep_merge(DEFAULT_CONFIG, config or {})
    service = merged.get('service') or {}
    settings = {
        "cache_ttl_hours": _as_number(service, 'cache_ttl_hours'),
        "history_retention_days": _as_number(service, 'history_retention_days'),
        "fetch_retries": _as_number(service, 'fetch_retries', int),
        "retry_delay_seconds": _as_number(service, 'retry_delay_seconds'),
        "max_retry_delay_seconds": _as_number(service, 'max_retry_delay_seconds'),
    }
    negative = {key: value for key, value in settings.items() if value < 0}
    if negative:
        raise ConfigError("Service settings must be non-negative", details=negative)
    return settings


def setup_logging(config: dict) -> None:
    """
    Configure logging based on config settings.

    Args:
        config: Configuration dictionary with logging settings
    """
    log_config = config.get("logging") or {}
    level_name = str(log_config.get("level") or "INFO").upper()
    log_level = getattr(logging, level_name, None)
    if not isinstance(log_level, int):
        logger.warning("Invalid log level '%s'; defaulting to INFO", level_name)
        log_level = logging.INFO
    log_format = log_config.get("format") or DEFAULT_CONFIG["logging"]["format"]
    log_file = log_config.get("file")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        try:
            log_path = resolve_log_path(log_file)
        except OSError as exc:
            raise ConfigError(
                f"Unable to prepare log file path '{log_file}'",
                details={"log_file": log_file},
                original_error=exc
            ) from exc
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers,
        force=True
    )
