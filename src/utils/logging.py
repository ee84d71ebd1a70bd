"""
Logging utilities for the Drop Table Editor.
Provides timestamped event, warning and error logging with traceback support.
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


def set_log_file(path: str) -> None:
    """Point logging at an explicit file path."""
    global _log_file
    _log_file = path


def _append(text: str) -> None:
    try:
        log_dir = os.path.dirname(_log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        with open(_log_file, "a", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        # If logging fails, print to console as fallback
        print(f"Failed to write to log file: {e}")
        print(text)


def log_message(message: str, level: str = "INFO") -> None:
    """
    Log a single line at the given level and echo it to the console.

    Args:
        message: The message to log
        level: Level label written before the message (INFO, EVENT, WARNING, ERROR)
    """
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    line = f"[{timestamp}] {level}: {message}"
    print(line)
    _append(line + "\n")


def log_event(message: str) -> None:
    """Log a progress event (file loading, saving)."""
    log_message(message, "EVENT")


def log_warning(message: str) -> None:
    """Log a recovered problem, such as a corrupt offset replaced by a fallback."""
    log_message(message, "WARNING")


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
    log_text = f"[{timestamp}] ERROR: {error_msg}\n"

    if error_type:
        log_text += f"Type: {error_type}\n"

    if traceback_str:
        log_text += f"Traceback:\n{traceback_str}\n"

    log_text += "-" * 80 + "\n"

    print(f"[{timestamp}] ERROR: {error_msg}")
    _append(log_text)


def init_log_file() -> bool:
    """
    Initialize the log file with system information.

    Returns:
        True if successful, False otherwise
    """
    try:
        log_dir = os.path.dirname(_log_file) if os.path.dirname(_log_file) else "."
        os.makedirs(log_dir, exist_ok=True)

        with open(_log_file, "w", encoding="utf-8") as f:
            f.write(
                f"Error Log - Started at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n"
            )
            f.write(f"Python version: {sys.version}\n")
            f.write(f"Platform: {sys.platform}\n")
            f.write("-" * 80 + "\n")

        return True

    except OSError as e:
        print(f"Failed to initialize log file: {e}")
        return False
