"""
Logging configuration — set up once by the CLI entrypoint.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
this configuration.

Level precedence:
    --debug  >  --verbose  >  --quiet  >  BRIDGECD_LOG_LEVEL  >  WARNING

Optional file output via BRIDGECD_LOG_FILE / BRIDGECD_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LOG_LEVEL = "BRIDGECD_LOG_LEVEL"
ENV_LOG_FILE = "BRIDGECD_LOG_FILE"
ENV_LOG_FILE_LEVEL = "BRIDGECD_LOG_FILE_LEVEL"

# ── Format strings ──────────────────────────────────────────────

_FMT_MINIMAL = "%(message)s"

_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Loggers kept at WARNING unless debugging
_NOISY_LOGGERS = ("asyncio", "urllib3", "httpx", "httpcore")


def level_from_flags(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LOG_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file (default: BRIDGECD_LOG_FILE).
        log_file_level: Optional separate level for the log file
            (default: BRIDGECD_LOG_FILE_LEVEL, then ``level``).
        quiet_third_party: Keep noisy loggers at WARNING unless at DEBUG.
    """
    numeric_level = _parse_level(level)
    log_file = log_file or os.environ.get(ENV_LOG_FILE)
    log_file_level = log_file_level or os.environ.get(ENV_LOG_FILE_LEVEL)

    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_VERBOSE
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    effective_level = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
