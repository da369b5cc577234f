"""Logging setup for the Nova Health backend."""
from __future__ import annotations

import logging
import logging.config

from .config import log_level

_LOGGING_CONFIGURED = False


def _resolve_level(value: str, default: str) -> str:
    value = (value or "").strip().upper()
    if value and isinstance(getattr(logging, value, None), int):
        return value
    return default


def setup_logging(force: bool = False) -> None:
    """Configure root and uvicorn loggers to write to stdout."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED and not force:
        return

    level = _resolve_level(log_level(), "INFO")

    config: dict[str, object] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s %(levelname)s [%(name)s] - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            # SQL echo только при явном DEBUG
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    }

    logging.config.dictConfig(config)
    logging.captureWarnings(True)
    _LOGGING_CONFIGURED = True
