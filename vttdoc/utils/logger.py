"""Logging configuration helpers shared by the library and the CLI."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_LEVEL = logging.INFO

_LOGGING_CONFIGURED = False


def _resolve_level(level: str | int | None) -> int:
    """Resolves an explicit level, then ``LOG_LEVEL``, then the default."""
    candidate: str | int | None = level
    if candidate is None:
        candidate = os.getenv("LOG_LEVEL")
    if candidate is None or candidate == "":
        return DEFAULT_LOG_LEVEL
    if isinstance(candidate, int):
        return candidate
    normalized = candidate.strip().upper()
    if normalized.isdigit():
        return int(normalized)
    resolved = logging.getLevelName(normalized)
    if not isinstance(resolved, int):
        return DEFAULT_LOG_LEVEL
    return resolved


def configure_logging(level: str | int | None = None) -> int:
    """Configures root logging once and returns the applied level."""
    global _LOGGING_CONFIGURED
    resolved_level = _resolve_level(level)
    root_logger = logging.getLogger()
    if not _LOGGING_CONFIGURED and not root_logger.handlers:
        logging.basicConfig(format=LOG_FORMAT, level=resolved_level)
        for handler in root_logger.handlers:
            handler.setLevel(resolved_level)
    root_logger.setLevel(resolved_level)
    _LOGGING_CONFIGURED = True
    return resolved_level


def get_logger(name: str) -> logging.Logger:
    """Returns a module logger, configuring logging on first use."""
    if not _LOGGING_CONFIGURED:
        configure_logging()
    return logging.getLogger(name)
