"""
Unit tests for configuration loading, forecast settings, and logging setup.
"""

import logging
from unittest.mock import patch

import pytest
import yaml

from config_manager import (
    DEFAULT_CONFIG,
    ForecastSettings,
    get_forecast_settings,
    get_service_settings,
    load_config,
    save_config,
    setup_logging
)
from exceptions import ConfigError


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after a logging test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


class TestLoadConfig:
    """Tests for YAML configuration loading."""

    def test_missing_file_returns_defaults(self, tmp_path):
        """A missing config file yields the default configuration."""
        config = load_config(tmp_path / "absent.yaml")
        assert config == DEFAULT_CONFIG

    def test_partial_override_is_deep_merged(self, tmp_path):
        """Overriding one nested key keeps its sibling defaults."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"forecast": {"risk": {"medium_threshold": 0.8}}}))

        config = load_config(path)

        assert config["forecast"]["risk"]["medium_threshold"] == 0.8
        assert config["forecast"]["risk"]["high_threshold"] == 1.0
        assert config["service"]["cache_ttl_hours"] == 6

    def test_invalid_yaml_falls_back_to_defaults(self, tmp_path):
        """Unparseable YAML is logged and the defaults are returned."""
        path = tmp_path / "config.yaml"
        path.write_text("forecast: [unclosed")

        with patch("config_manager.logger") as mock_logger:
            config = load_config(path)
            mock_logger.error.assert_called_once()

        assert config == DEFAULT_CONFIG

    def test_non_mapping_yaml_is_ignored(self, tmp_path):
        """A YAML list at the top level is ignored."""
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")

        assert load_config(path) == DEFAULT_CONFIG

    def test_env_var_selects_file(self, tmp_path, monkeypatch):
        """BUDGET_FORECAST_CONFIG is used when no path is given."""
        path = tmp_path / "env.yaml"
        path.write_text(yaml.dump({"forecast": {"language": "id"}}))
        monkeypatch.setenv("BUDGET_FORECAST_CONFIG", str(path))

        assert load_config()["forecast"]["language"] == "id"

    def test_returned_config_is_independent_of_defaults(self, tmp_path):
        """Mutating a loaded config must not leak into DEFAULT_CONFIG."""
        config = load_config(tmp_path / "absent.yaml")
        config["forecast"]["risk"]["medium_threshold"] = 0.5
        assert DEFAULT_CONFIG["forecast"]["risk"]["medium_threshold"] == 0.85


class TestSaveConfig:
    """Tests for persisting configuration."""

    def test_save_preserves_existing_keys(self, tmp_path):
        """Saving a partial config keeps keys already in the file."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"service": {"cache_ttl_hours": 2}, "custom": True}))

        assert save_config({"service": {"history_retention_days": 30}}, path) is True

        saved = yaml.safe_load(path.read_text())
        assert saved == {
            "service": {"cache_ttl_hours": 2, "history_retention_days": 30},
            "custom": True,
        }


class TestForecastSettings:
    """Tests for forecast settings validation."""

    def test_defaults(self):
        """Empty config yields the default settings."""
        assert get_forecast_settings({}) == ForecastSettings()

    def test_overrides_are_applied(self):
        """Configured values reach the settings object."""
        settings = get_forecast_settings({
            "forecast": {
                "confidence": {"min_days": 5},
                "seasonal": {"deviation_threshold": 0.3},
                "language": "ID",
            }
        })
        assert settings.min_days == 5
        assert settings.deviation_threshold == 0.3
        assert settings.language == "id"

    def test_inverted_thresholds_rejected(self):
        """medium_threshold must stay below high_threshold."""
        with pytest.raises(ConfigError):
            get_forecast_settings({"forecast": {"risk": {"medium_threshold": 1.2}}})

    def test_non_numeric_value_rejected(self):
        """Non-numeric values raise ConfigError naming the key."""
        with pytest.raises(ConfigError) as exc_info:
            get_forecast_settings({"forecast": {"confidence": {"min_days": "three"}}})
        assert exc_info.value.details["key"] == "min_days"

    def test_unsupported_language_rejected(self):
        """Only en and id narratives exist."""
        with pytest.raises(ConfigError):
            get_forecast_settings({"forecast": {"language": "fr"}})

    def test_sparse_weight_out_of_range_rejected(self):
        """sparse_data_weight must be within [0, 1]."""
        with pytest.raises(ConfigError):
            get_forecast_settings({"forecast": {"confidence": {"sparse_data_weight": 1.5}}})


class TestServiceSettings:
    """Tests for prediction service settings."""

    def test_defaults(self):
        """Cache lasts six hours and history ninety days by default."""
        assert get_service_settings({}) == {
            "cache_ttl_hours": 6.0,
            "history_retention_days": 90.0,
            "fetch_retries": 2,
            "retry_delay_seconds": 1.0,
            "max_retry_delay_seconds": 10.0,
        }

    def test_negative_values_rejected(self):
        """Negative durations raise ConfigError."""
        with pytest.raises(ConfigError):
            get_service_settings({"service": {"cache_ttl_hours": -1}})
        with pytest.raises(ConfigError):
            get_service_settings({"service": {"fetch_retries": -1}})

    def test_retry_overrides(self):
        """Retry count and backoff can be configured."""
        settings = get_service_settings({"service": {"fetch_retries": "0", "retry_delay_seconds": 0.5}})
        assert settings["fetch_retries"] == 0
        assert settings["retry_delay_seconds"] == 0.5
        assert settings["max_retry_delay_seconds"] == 10.0


class TestSetupLogging:
    """Test setup_logging function."""

    def test_basic_logging_config(self, restore_root_logger):
        """Test basic logging configuration with defaults."""
        setup_logging({"logging": {"level": "DEBUG"}})

        assert restore_root_logger.level == logging.DEBUG
        stream_handlers = [
            h for h in restore_root_logger.handlers if isinstance(h, logging.StreamHandler)
        ]
        assert len(stream_handlers) >= 1

    def test_file_logging_enabled(self, restore_root_logger, tmp_path):
        """Test file logging is enabled when a log file is specified."""
        log_file = tmp_path / "logs" / "forecast.log"

        setup_logging({"logging": {"level": "INFO", "file": str(log_file)}})

        file_handlers = [
            h for h in restore_root_logger.handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1
        assert log_file.exists()

    def test_invalid_log_level_defaults_to_info(self, restore_root_logger):
        """Test that an invalid log level defaults to INFO with a warning."""
        with patch("config_manager.logger") as mock_logger:
            setup_logging({"logging": {"level": "INVALID_LEVEL"}})
            mock_logger.warning.assert_called_once()

        assert restore_root_logger.level == logging.INFO

    def test_missing_logging_config_uses_defaults(self, restore_root_logger):
        """Test that a missing logging section uses INFO."""
        setup_logging({})
        assert restore_root_logger.level == logging.INFO
