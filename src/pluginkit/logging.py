"""
Logging setup for pluginkit.

All modules log through children of the ``pluginkit`` logger, so a single
call to :func:`setup_logging` controls the whole package.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_root_logger = logging.getLogger("pluginkit")

# Third-party loggers that narrate every HTTP request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    level: str | int = "INFO",
    format: str | None = None,
    stream: TextIO | None = None,
    file: str | None = None,
    quiet_http: bool = True,
) -> None:
    """
    Configure logging for pluginkit.

    Args:
        level: Log level name or number
        format: Custom log format string
        stream: Output stream (defaults to stderr)
        file: Optional log file path
        quiet_http: Raise httpx/httpcore to WARNING unless *level* is DEBUG

    Example:
        from pluginkit.logging import setup_logging

        setup_logging("DEBUG", file="pluginkit.log")
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    _root_logger.setLevel(level)
    _root_logger.handlers.clear()

    formatter = logging.Formatter(format or "%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    stream_handler = logging.StreamHandler(stream or sys.stderr)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(level)
    _root_logger.addHandler(stream_handler)

    if file:
        file_handler = logging.FileHandler(file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        _root_logger.addHandler(file_handler)

    if quiet_http:
        http_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(http_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger, e.g. ``get_logger("installer")`` -> ``pluginkit.installer``.
    """
    if name == "pluginkit" or name.startswith("pluginkit."):
        return logging.getLogger(name)
    return logging.getLogger(f"pluginkit.{name}")


def set_level(level: str | int) -> None:
    """Change the package log level without touching handlers."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _root_logger.setLevel(level)
