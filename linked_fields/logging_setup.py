"""Process-wide logging for the linked field service.

Collectors log snake_case event tokens through ``logging.getLogger(__name__)``;
this module attaches the single stdout handler they all share. Calling it
again (reloaders, repeated app factories in tests) is a no-op.
"""
from __future__ import annotations

import copy
import logging
from logging.config import dictConfig

_BASE_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "events": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
    },
    "handlers": {
        "stdout": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "events",
            "stream": "ext://sys.stdout",
        },
    },
    "root": {"level": "WARNING", "handlers": ["stdout"]},
    "loggers": {
        "linked_fields": {"level": "INFO"},
        "sqlalchemy.engine": {"level": "WARNING"},
        "uvicorn.access": {"level": "INFO", "handlers": ["stdout"], "propagate": False},
    },
}


def configure_logging(level: str = "INFO", sql_echo: bool = False) -> None:
    if logging.getLogger().handlers:
        return
    config = copy.deepcopy(_BASE_CONFIG)
    config["loggers"]["linked_fields"]["level"] = level.upper()
    if sql_echo:
        # Statement logging goes through the same handler instead of engine echo
        config["loggers"]["sqlalchemy.engine"]["level"] = "INFO"
    dictConfig(config)


__all__ = ["configure_logging"]
