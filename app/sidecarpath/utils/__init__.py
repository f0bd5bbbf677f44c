"""Utility modules for sidecarpath.

This module exports commonly used utility functions.
"""

from sidecarpath.utils.formatting import (
    console,
    create_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
    setup_logging,
)

__all__ = [
    "console",
    "create_table",
    "err_console",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "setup_logging",
]
