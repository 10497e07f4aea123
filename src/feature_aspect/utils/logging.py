"""
Logging configuration for cargo-feature-aspect.

This module provides centralized logging setup with structured logging support
and consistent formatting across all components. Log records go to stderr so
that stdout stays reserved for diffs.
"""

import logging
import logging.config
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
STRUCTURED_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_root_logging(
    level: str = "WARNING",
    structured: bool = False,
    log_file: Path | None = None
) -> None:
    """Configure root logging for the entire application.

    Args:
        level: Root logging level
        structured: Enable JSON structured logging
        log_file: Optional log file path
    """
    level = level.upper()
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": DEFAULT_FORMAT,
                "datefmt": DATE_FORMAT
            },
            "structured": {
                "()": JsonFormatter,
                "format": STRUCTURED_FORMAT,
                "datefmt": DATE_FORMAT
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "structured" if structured else "standard",
                "stream": "ext://sys.stderr"
            }
        },
        "root": {
            "level": level,
            "handlers": ["console"]
        },
        "loggers": {
            "feature_aspect": {
                "level": level,
                "handlers": ["console"],
                "propagate": False
            }
        }
    }

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "level": level,
            "formatter": "structured" if structured else "standard",
            "filename": str(log_file)
        }
        config["root"]["handlers"].append("file")
        config["loggers"]["feature_aspect"]["handlers"].append("file")

    logging.config.dictConfig(config)


def set_level(level: str) -> None:
    """Change the level of the package logger and its handlers."""
    numeric = getattr(logging, level.upper())
    package_logger = logging.getLogger("feature_aspect")
    package_logger.setLevel(numeric)
    for handler in package_logger.handlers:
        handler.setLevel(numeric)
