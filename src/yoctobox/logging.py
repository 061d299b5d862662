"""Structured logging configuration for yoctobox.

Provides dual output strategy:
- console.print() for user-facing summaries (Rich formatting)
- logging module for the build log (timestamped, classified)

Every log line carries a timestamp and one of the INFO, WARN, ERROR or FATAL
classifications. Output of processes running in the container is relayed
through the ``yoctobox.output`` logger so it is timestamped too.

Usage:
    from yoctobox.logging import get_logger
    logger = get_logger(__name__)
    logger.info("Checking prerequisites")

Enable verbose logging via:
    - CLI flag: yoctobox --debug
    - Environment: YOCTOBOX_DEBUG=1
"""

from __future__ import annotations

import logging
import os
import sys

# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}
_initialized = False

LOG_FORMAT = "[%(asctime)s] %(name)s: %(levelname)s: %(message)s"
LOG_FORMAT_DEBUG = "[%(asctime)s] %(name)s:%(lineno)d: %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d_%H-%M-%S"

# Names used in the build log instead of the stdlib level names
LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}

OUTPUT_LOGGER = "yoctobox.output"


class BuildLogFormatter(logging.Formatter):
    """Formatter that renders levels as INFO/WARN/ERROR/FATAL."""

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname
        record.levelname = LEVEL_NAMES.get(record.levelno, original)
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _make_formatter(debug: bool) -> logging.Formatter:
    return BuildLogFormatter(LOG_FORMAT_DEBUG if debug else LOG_FORMAT, datefmt=DATE_FORMAT)


def _get_log_level() -> int:
    """Determine log level from environment."""
    if os.environ.get("YOCTOBOX_DEBUG", "").lower() in ("1", "true", "yes"):
        return logging.DEBUG
    return logging.INFO


def _init_logging() -> None:
    """Initialize logging configuration (called once)."""
    global _initialized
    if _initialized:
        return

    level = _get_log_level()

    root_logger = logging.getLogger("yoctobox")
    root_logger.setLevel(level)

    # Only add handler if none exist (avoid duplicate handlers)
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(_make_formatter(level == logging.DEBUG))
        root_logger.addHandler(handler)

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Module name (typically __name__).

    Returns:
        Configured logger instance.
    """
    _init_logging()

    # Normalize name to yoctobox namespace
    if not name.startswith("yoctobox"):
        name = f"yoctobox.{name}"

    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)

    return _loggers[name]


def get_output_logger() -> logging.Logger:
    """Logger used to relay output of external processes."""
    return get_logger(OUTPUT_LOGGER)


def set_debug(enabled: bool = True) -> None:
    """Enable or disable debug logging.

    Called by CLI when --debug flag is used.

    Args:
        enabled: If True, set log level to DEBUG, otherwise back to INFO.
    """
    _init_logging()
    level = logging.DEBUG if enabled else logging.INFO
    root_logger = logging.getLogger("yoctobox")
    root_logger.setLevel(level)

    for handler in root_logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(_make_formatter(enabled))
