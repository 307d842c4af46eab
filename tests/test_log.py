"""Tests for logging setup"""

import logging

import pytest
from cardvault.log import ALERT_LOGGER, configure_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    alerts = logging.getLogger(ALERT_LOGGER)
    saved = (list(root.handlers), root.level, list(alerts.handlers))
    yield
    for handler in alerts.handlers:
        if handler not in saved[2]:
            handler.close()
    root.handlers[:], alerts.handlers[:] = saved[0], saved[2]
    root.setLevel(saved[1])


class TestConfigureLogging:
    def test_invalid_level(self, monkeypatch, restore_logging):
        monkeypatch.delenv("LOG_CONFIG", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError):
            configure_logging()

    def test_alert_file(self, monkeypatch, tmp_path, restore_logging):
        alert_file = tmp_path / "alerts.log"
        monkeypatch.delenv("LOG_CONFIG", raising=False)
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        monkeypatch.setenv("ALERT_LOG_FILE", str(alert_file))
        configure_logging()

        logging.getLogger(ALERT_LOGGER).critical("token space exhausted")
        logging.getLogger(ALERT_LOGGER).error("not an alert")
        for handler in logging.getLogger(ALERT_LOGGER).handlers:
            handler.flush()

        content = alert_file.read_text()
        assert "token space exhausted" in content
        assert "not an alert" not in content

    def test_yaml_config(self, monkeypatch, tmp_path, restore_logging):
        config_file = tmp_path / "logging.yaml"
        config_file.write_text(
            "version: 1\n"
            "disable_existing_loggers: false\n"
            "root:\n"
            "  level: WARNING\n"
        )
        monkeypatch.setenv("LOG_CONFIG", str(config_file))
        configure_logging()
        assert logging.getLogger().level == logging.WARNING
