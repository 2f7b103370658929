"""Logging configuration for the ``ledger_analytics`` package.

``configure_logging`` attaches one ``StreamHandler`` to the package logger and
is meant to be called once by the host process (the HTTP app does it at
import). ``get_logger`` is what the analytics modules use; until something
configures logging it only ensures a ``NullHandler`` is present, so the pure
functions stay silent when embedded in another application.
"""

from __future__ import annotations

import logging
import os

PACKAGE_LOGGER_NAME = "ledger_analytics"
LOG_LEVEL_ENV = "LEDGER_ANALYTICS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        normalized = level.strip().upper()
        if normalized.isdigit():
            return int(normalized)
        numeric = getattr(logging, normalized, None)
        if isinstance(numeric, int):
            return numeric
        return logging.INFO
    env_value = os.getenv(LOG_LEVEL_ENV)
    if env_value:
        return parse_level(env_value)
    return logging.INFO


def configure_logging(level: int | str | None = None) -> None:
    global _configured
    if _configured:
        return

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    resolved = parse_level(level)
    handler = logging.StreamHandler()
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _configured = True


def get_logger(name: str) -> logging.Logger:
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    if not _configured and not package_logger.handlers:
        package_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
