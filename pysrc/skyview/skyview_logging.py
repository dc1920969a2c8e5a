"""
Host-aware logging for skyview.

Messages go to the standard logging module unless a host application has
registered a feedback object (anything exposing ``pushInfo``,
``pushDebugInfo`` and ``reportError``, such as a QGIS processing feedback).

Usage:
    from skyview.skyview_logging import get_logger

    logger = get_logger(__name__)
    logger.info("Sweeping 400x400 pixels")
    logger.debug(f"Band {i} finished")
"""

from __future__ import annotations

import logging
import sys
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Log levels matching Python logging."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class SkyviewLogger:
    """
    Named logger that forwards to a host feedback object or Python logging.
    """

    def __init__(self, name: str, level: LogLevel = LogLevel.INFO):
        """
        Initialize logger.

        Args:
            name: Logger name (usually module name)
            level: Minimum log level to forward
        """
        self.name = name
        self.level = level
        self._feedback = None

    def set_feedback(self, feedback: Any) -> None:
        """
        Route messages to a host feedback object instead of Python logging.

        Args:
            feedback: Object with pushInfo/pushDebugInfo/reportError, or None
                to go back to Python logging.
        """
        self._feedback = feedback

    def _log(self, level: LogLevel, message: str) -> None:
        if level < self.level:
            return

        if self._feedback is not None:
            if level >= LogLevel.ERROR:
                self._feedback.reportError(message)
            elif level >= LogLevel.WARNING:
                self._feedback.pushInfo(f"WARNING: {message}")
            elif level >= LogLevel.INFO:
                self._feedback.pushInfo(message)
            else:
                self._feedback.pushDebugInfo(message)
        else:
            logging.getLogger(self.name).log(level, message)

    def debug(self, message: str) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, message)

    def info(self, message: str) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, message)

    def warning(self, message: str) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, message)

    def error(self, message: str) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, message)

    def set_level(self, level: LogLevel | int) -> None:
        """Set minimum log level."""
        self.level = LogLevel(level) if isinstance(level, int) else level


# Global logger registry
_loggers: dict[str, SkyviewLogger] = {}


def get_logger(name: str, level: LogLevel | int = LogLevel.INFO) -> SkyviewLogger:
    """
    Get or create a logger for the given name.

    Args:
        name: Logger name (usually module name or __name__)
        level: Minimum log level (default: INFO)

    Returns:
        SkyviewLogger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Sweep started")
    """
    if name not in _loggers:
        _loggers[name] = SkyviewLogger(name, LogLevel(level) if isinstance(level, int) else level)
    return _loggers[name]


def set_global_level(level: LogLevel | int) -> None:
    """
    Set log level for all existing loggers.

    Example:
        >>> import skyview.skyview_logging as slog
        >>> slog.set_global_level(slog.LogLevel.DEBUG)  # Show per-band messages
    """
    level = LogLevel(level) if isinstance(level, int) else level
    for logger in _loggers.values():
        logger.set_level(level)


def set_global_feedback(feedback: Any) -> None:
    """Set a host feedback object for all loggers."""
    for logger in _loggers.values():
        logger.set_feedback(feedback)


logging.basicConfig(
    level=logging.INFO,
    format="%(name)s: %(message)s",
    stream=sys.stdout,
)
