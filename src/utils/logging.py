"""
Logging utilities for ME1 Save Utilities.
Provides timestamped error and info logging to a plain-text log file.
"""

import os
import sys
from datetime import datetime
from typing import Optional

from constants import TEMP_LOG_DIR

# Module-level log file path
_log_file: str = os.path.join(TEMP_LOG_DIR, "error.log")


def get_log_file() -> str:
    """Get the current log file path."""
    return _log_file


def update_log_file_path(work_dir: str) -> None:
    """
    Point the log file at the configured work directory.

    Creates a logs subdirectory within the work directory.

    Args:
        work_dir: The work directory path
    """
    global _log_file
    logs_dir = os.path.join(work_dir, "logs")
    os.makedirs(logs_dir, exist_ok=True)
    _log_file = os.path.join(logs_dir, "error.log")


def _append(log_message: str) -> None:
    try:
        log_dir = os.path.dirname(_log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        with open(_log_file, "a") as f:
            f.write(log_message)
    except OSError as e:
        # If logging fails, print to stderr as fallback
        print(f"Failed to write to log file: {e}", file=sys.stderr)
        print(log_message, file=sys.stderr)


def log_error(
    error_msg: str,
    error_type: Optional[str] = None,
    traceback_str: Optional[str] = None,
) -> None:
    """
    Log an error message to the log file.

    Args:
        error_msg: The error message to log
        error_type: Optional error type/class name
        traceback_str: Optional traceback string
    """
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    log_message = f"[{timestamp}] ERROR: {error_msg}\n"

    if error_type:
        log_message += f"Type: {error_type}\n"

    if traceback_str:
        log_message += f"Traceback:\n{traceback_str}\n"

    log_message += "-" * 80 + "\n"
    _append(log_message)


def log_info(message: str) -> None:
    """Log a single informational line (timings, written files)."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    _append(f"[{timestamp}] INFO: {message}\n")


def init_log_file() -> bool:
    """
    Initialize the log file with system information.

    Returns:
        True if successful, False otherwise
    """
    try:
        log_dir = os.path.dirname(_log_file) if os.path.dirname(_log_file) else "."
        os.makedirs(log_dir, exist_ok=True)

        with open(_log_file, "w") as f:
            f.write(
                f"Save Log - Started at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
            )
            f.write(f"Python version: {sys.version}\n")
            f.write(f"Platform: {sys.platform}\n")
            f.write("-" * 80 + "\n")
        return True

    except OSError as e:
        print(f"Failed to initialize log file: {e}", file=sys.stderr)
        return False
