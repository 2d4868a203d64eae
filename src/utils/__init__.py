"""
Utility functions for ME1 Save Utilities.
"""

from .logging import log_error, log_info, update_log_file_path, get_log_file, init_log_file
from .formatting import format_size, format_hex, truncate_text

__all__ = [
    "log_error",
    "log_info",
    "update_log_file_path",
    "get_log_file",
    "init_log_file",
    "format_size",
    "format_hex",
    "truncate_text",
]
