"""Logging setup for the server process.

LOG_CONFIG points to a YAML dictConfig file and replaces everything else.
Without it LOG_LEVEL, LOG_FORMAT and LOG_FILE configure the root logger, and
ALERT_LOG_FILE additionally copies operational alerts (token allocation
conflicts and similar) into a separate file.
"""

import logging
import logging.config
from os import environ

from yaml import safe_load

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
DEFAULT_FORMAT = "%(asctime)s   %(name)-32s %(levelname)-8s %(message)s"
ALERT_LOGGER = "cardvault.alerts"


def _level_from_env(name: str, default: str) -> str:
    level = environ.get(name, default).upper()
    if level not in LEVELS:
        raise ValueError(f"Invalid log level in {name}: {level}")
    return level


def _load_yaml_config(path: str) -> None:
    with open(path, "r") as f:
        logging.config.dictConfig(safe_load(f))


def configure_logging() -> None:
    """Configure logging from environment variables."""
    log_config_path = environ.get("LOG_CONFIG")
    if log_config_path:
        _load_yaml_config(log_config_path)
        return

    log_format = environ.get("LOG_FORMAT", DEFAULT_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_file = environ.get("LOG_FILE")
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=_level_from_env("LOG_LEVEL", "INFO"),
        format=log_format,
        handlers=handlers,
    )

    alert_file = environ.get("ALERT_LOG_FILE")
    if alert_file:
        alert_handler = logging.FileHandler(alert_file)
        alert_handler.setLevel(logging.CRITICAL)
        alert_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger(ALERT_LOGGER).addHandler(alert_handler)

    # request lines are noise next to the card lifecycle messages
    logging.getLogger("uvicorn.access").setLevel(
        _level_from_env("ACCESS_LOG_LEVEL", "WARNING")
    )
