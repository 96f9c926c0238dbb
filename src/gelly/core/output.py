"""
Unified output using Loguru.

Log records go to a rotating file; user-facing messages are also echoed to
the console unless the current thread is a silent background worker.
"""

import sys
import threading
from pathlib import Path

from loguru import logger

from .console import safe_print

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"

_LEVEL_STYLES = {
    "debug": "muted",
    "info": None,
    "success": "success",
    "warning": "warning",
    "error": "error",
}
_STDERR_LEVELS = {"warning", "error"}


def setup_loguru(
    log_file: Path, level: str = "INFO", console_output: bool = False
) -> None:
    """
    Configure loguru with a rotating file sink.

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        console_output: Also emit records to stderr
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,
        level=level,
        format=LOG_FORMAT,
        enqueue=False,
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def mark_silent(thread: threading.Thread | None = None) -> None:
    """Suppress console echo of log() calls made from this thread."""
    thread = thread or threading.current_thread()
    thread.silent_logging = True


def log(message: str, level: str = "info") -> None:
    """
    Write a user-facing message to the log file and the console.

    Args:
        message: User-facing message
        level: Log level (debug, info, success, warning, error)
    """
    getattr(logger, level)(message)

    if getattr(threading.current_thread(), "silent_logging", False):
        return
    safe_print(
        message, style=_LEVEL_STYLES.get(level), err=level in _STDERR_LEVELS
    )
