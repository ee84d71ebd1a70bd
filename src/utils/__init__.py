"""
Utility functions for the Drop Table Editor.
"""

from .logging import (
    log_error,
    log_event,
    log_message,
    log_warning,
    init_log_file,
    set_log_file,
    get_log_file,
)

__all__ = [
    "log_error",
    "log_event",
    "log_message",
    "log_warning",
    "init_log_file",
    "set_log_file",
    "get_log_file",
]
