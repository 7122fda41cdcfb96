"""Public entry point for configuring application logging."""

from __future__ import annotations

import logging
import logging.config
import os
from typing import Any

from .formatter import SERVICE_NAME

COMBINED_LOG_FILE = "combined.log"
ERROR_LOG_FILE = "error.log"


def configure_logging(log_dir: str | None = None) -> None:
    """Configure structured logging for the application.

    Records always go to stdout. When ``log_dir`` is given, JSON lines are also
    written to ``combined.log`` (INFO and above) and ``error.log`` (ERROR and
    above) inside it; those files back the admin log viewer.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    json_enabled = os.getenv("LOG_JSON", "true").lower() in {"1", "true", "yes", "on"}

    formatters: dict[str, dict[str, Any]] = {
        "json": {
            "()": "storefront.logging.formatter.ECSJsonFormatter",
            "service_name": SERVICE_NAME,
        },
        "plain": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    }

    filters = {
        "context": {"()": "storefront.logging.filters.RequestContextFilter"},
        "privacy": {"()": "storefront.logging.filters.PrivacyFilter"},
    }

    handlers: dict[str, dict[str, Any]] = {
        "stdout": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": "json" if json_enabled else "plain",
            "filters": ["context", "privacy"],
            "stream": "ext://sys.stdout",
        }
    }
    root_handlers = ["stdout"]

    if log_dir:
        abs_dir = os.path.abspath(log_dir)
        os.makedirs(abs_dir, exist_ok=True)
        for name, filename, level in (
            ("file_combined", COMBINED_LOG_FILE, "INFO"),
            ("file_error", ERROR_LOG_FILE, "ERROR"),
        ):
            # File output stays JSON so the log viewer can parse each line
            handlers[name] = {
                "class": "storefront.logging.handlers.SecureWatchedFileHandler",
                "level": level,
                "formatter": "json",
                "filters": ["context", "privacy"],
                "filename": os.path.join(abs_dir, filename),
                "delay": True,
            }
            root_handlers.append(name)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "root": {
            "level": log_level,
            "handlers": root_handlers,
        },
        "loggers": {
            "uvicorn": {"level": "INFO", "handlers": [], "propagate": True},
            "uvicorn.error": {"level": "INFO", "handlers": [], "propagate": True},
            "uvicorn.access": {"level": "WARNING", "handlers": [], "propagate": True},
            "sqlalchemy.engine": {"level": "WARNING", "handlers": [], "propagate": True},
        },
    }

    logging.config.dictConfig(logging_config)
    logging.captureWarnings(True)
