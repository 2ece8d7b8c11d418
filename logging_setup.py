"""Logging configuration for the Streamlit page.

Streamlit re-executes the script on every interaction, so the setup must be
safe to call on each run without stacking handlers.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig


def _dict_config(level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
    }


_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Configure application-wide logging once per process."""
    global _configured
    if _configured:
        return
    dictConfig(_dict_config(level))
    _configured = True
