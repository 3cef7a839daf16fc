"""Logging for examwatch processes.

`setup_logging` attaches a rotating file handler (and optionally the console)
to the "examwatch" logger; every module logs through
``logging.getLogger(__name__)`` and inherits it. `sanitize_for_log` strips
student credentials from API bodies before they reach a log line.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "examwatch"

LOG_DIR_ENV = "EXAMWATCH_LOG_DIR"
LOG_LEVEL_ENV = "EXAMWATCH_LOG_LEVEL"

DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "examwatch.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_REDACTIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r'("password"\s*:\s*)"[^"]*"'), r'\1"[REDACTED]"'),
    (re.compile(r"password=[^&\s]+"), "password=[REDACTED]"),
    (re.compile(r"\$pbkdf2-sha256\$[^\s\"']+"), "[REDACTED-HASH]"),
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
]


def _file_handler(path: Path, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
) -> logging.Logger:
    """Route examwatch logs to a rotating file.

    Calling it again replaces the handlers of the previous call.

    Args:
        log_dir: Directory for the log file, created if missing. Falls back to
            $EXAMWATCH_LOG_DIR, then 'logs'.
        log_file: File name inside log_dir.
        max_bytes: Size at which the file is rotated.
        backup_count: Rotated files kept.
        level: Level name. Falls back to $EXAMWATCH_LOG_LEVEL, then INFO.
            Unknown names mean INFO.
        console: Also log to stderr.

    Returns:
        The "examwatch" logger.
    """
    if log_dir is None:
        log_dir = os.environ.get(LOG_DIR_ENV, DEFAULT_LOG_DIR)
    directory = Path(log_dir)
    level_name = (level or os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [
        _file_handler(directory / log_file, max_bytes, backup_count)
    ]
    if console:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info(
        "examwatch logging initialized (level=%s, file=%s)", level_name, directory / log_file
    )
    return logger


def sanitize_for_log(text: str) -> str:
    """Redact passwords, password hashes and bearer tokens.

    Args:
        text: Request or response body, query string or header value.

    Returns:
        The text with each credential replaced by a [REDACTED] marker.
    """
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text
