"""Logging configuration for domain_model_gen."""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER_NAME = "domain_model_gen"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Console output goes to stderr so that diagram text written to stdout
    stays clean.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for file logging
        format_string: Optional custom format string

    Returns:
        The configured package logger
    """
    log_level = getattr(logging, str(level).upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.propagate = False
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the package namespace (typically called with __name__)."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
