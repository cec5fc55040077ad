"""Logging initialization utilities using loguru."""

from __future__ import annotations

import os
from pathlib import Path
import sys

from loguru import logger


def get_log_directory() -> str:
    """Get the main log directory path."""
    if os.name == "nt":
        return str(Path.home() / "AppData" / "Local" / "PhotoReport" / "logs")
    return str(Path.home() / ".local" / "state" / "photo-report" / "logs")


def init_logging(log_dir: str | None = None, level: str = "INFO", console: bool = True) -> None:
    """Initialize rotating file logging under the given directory.

    When `console` is set, messages at `level` are also written to stderr.
    """
    if log_dir is None:
        log_dir = get_log_directory()
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    level = level.upper()
    logger.remove()
    logger.add(
        str(log_path / "app_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )
    if console:
        logger.add(sys.stderr, level=level, format="{time:HH:mm:ss} | {level: <8} | {message}")


def find_latest_log_file(log_dir: str | None = None) -> Path | None:
    """Find the latest log file in the specified directory."""
    if log_dir is None:
        log_dir = get_log_directory()

    try:
        log_path = Path(log_dir)
        if not log_path.exists():
            return None

        log_files = list(log_path.glob("app_*.log"))
        if not log_files:
            return None

        return max(log_files, key=lambda p: p.stat().st_mtime)
    except (OSError, ValueError):
        return None
