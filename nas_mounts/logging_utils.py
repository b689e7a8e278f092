"""Logging setup for the NAS share monitor.

The monitor writes a small per-user log in its cache directory. Instead of
keeping numbered backups, the log is truncated to its most recent lines once
it grows past a size threshold, so it always holds the recent history of
share checks.

Key Features:
- Standard format with timestamps and severity levels
- Timestamps in a configurable timezone (pytz)
- Watched file handler, so truncation by replacing the file is picked up
- Automatic fallback to stderr if file logging fails
"""

from __future__ import annotations

from datetime import datetime
from logging import (
    Logger, Formatter, LogRecord, StreamHandler, getLogger, INFO, WARNING
)
from logging.handlers import WatchedFileHandler
from pathlib import Path
from typing import Optional
import os
import subprocess
import sys

import pytz

DEFAULT_LOG_LEVEL = INFO

# Format: timestamp - severity - logger - message
STANDARD_LOG_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s"
STANDARD_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class TimezoneFormatter(Formatter):
    """Formatter rendering %(asctime)s in a fixed timezone."""

    def __init__(self, fmt: str, datefmt: str, timezone: Optional[str] = None):
        super().__init__(fmt, datefmt)
        self.tz = pytz.timezone(timezone) if timezone else None

    def formatTime(self, record: LogRecord, datefmt: Optional[str] = None) -> str:
        if self.tz is None:
            return super().formatTime(record, datefmt)
        moment = datetime.fromtimestamp(record.created, tz=pytz.UTC).astimezone(self.tz)
        return moment.strftime(datefmt or STANDARD_DATE_FORMAT)


def get_standard_formatter(timezone: Optional[str] = None) -> Formatter:
    """Get the standard formatter for monitor logs.

    Unknown timezone names fall back to local time.
    """
    try:
        return TimezoneFormatter(STANDARD_LOG_FORMAT, STANDARD_DATE_FORMAT, timezone)
    except pytz.UnknownTimeZoneError:
        print(f"Unknown timezone {timezone!r}, logging in local time", file=sys.stderr)
        return TimezoneFormatter(STANDARD_LOG_FORMAT, STANDARD_DATE_FORMAT)


def _ensure_fallback_handler(logger: Logger, level: int = INFO) -> None:
    """Add a stderr handler as fallback if no handlers are configured."""
    if logger.handlers:
        return

    handler = StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(Formatter(STANDARD_LOG_FORMAT, STANDARD_DATE_FORMAT))
    logger.addHandler(handler)


def get_monitor_logger(
    name: str,
    log_file: str,
    level: int = DEFAULT_LOG_LEVEL,
    console_output: bool = True,
    timezone: Optional[str] = None
) -> Logger:
    """Return a logger writing to log_file and, optionally, stdout.

    Args:
        name: Logger name
        log_file: Path to the log file
        level: Logging level
        console_output: Whether to also print messages to stdout
        timezone: Optional timezone name for file timestamps

    Returns:
        Configured Logger instance
    """
    logger = getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    log_path = Path(log_file)
    log_file_path = str(log_path.resolve())
    has_file_handler = any(
        isinstance(h, WatchedFileHandler) and h.baseFilename == log_file_path
        for h in logger.handlers
    )

    if not has_file_handler:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handler = WatchedFileHandler(log_file_path)
            handler.setLevel(level)
            handler.setFormatter(get_standard_formatter(timezone))
            logger.addHandler(handler)
        except OSError as e:
            print(f"Error opening log file {log_file_path}: {e}", file=sys.stderr)
            _ensure_fallback_handler(logger, level)

    if console_output:
        has_console = any(
            type(h) is StreamHandler and getattr(h, "stream", None) is sys.stdout
            for h in logger.handlers
        )
        if not has_console:
            # systemd captures stdout into the journal, which adds its own timestamps
            console_handler = StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(Formatter('%(message)s'))
            logger.addHandler(console_handler)

    return logger


def close_logger(logger: Logger) -> None:
    """Detach and close all handlers of a logger."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def rotate_log_tail(log_file: str, max_bytes: int, tail_lines: int) -> bool:
    """Truncate log_file to its last tail_lines lines once it exceeds max_bytes.

    The tail is written to a temporary file which then replaces the log. If
    the process dies in between, the orphaned temporary file is overwritten
    by the next rotation.

    Returns:
        True if the log was truncated, False otherwise
    """
    try:
        size = os.path.getsize(log_file)
    except OSError:
        return False
    if size <= max_bytes:
        return False

    tmp_file = f"{log_file}.tmp"
    try:
        with open(log_file, 'r', errors='replace') as f:
            lines = f.readlines()
        with open(tmp_file, 'w') as f:
            f.writelines(lines[-tail_lines:] if tail_lines > 0 else [])
        os.replace(tmp_file, log_file)
    except OSError as e:
        print(f"Error rotating log {log_file}: {e}", file=sys.stderr)
        return False
    return True


def log_subprocess_result(
    logger: Logger,
    action: str,
    result: subprocess.CompletedProcess[str],
    success_level: int = INFO,
    failure_level: int = WARNING
) -> bool:
    """Log concise command result details and return success state."""
    if result.returncode == 0:
        logger.log(success_level, f"✓ {action}")
        return True

    stderr_raw = result.stderr or ""
    if isinstance(stderr_raw, bytes):
        stderr_raw = stderr_raw.decode(errors="replace")
    stderr = stderr_raw.strip().splitlines()
    if stderr:
        detail_lines = stderr[:3]
        details = " | ".join(detail_lines)
        if len(stderr) > 3:
            details += " | ..."
    else:
        details = f"exit code {result.returncode}"
    logger.log(failure_level, f"⚠ {action} failed: {details}")
    return False
