"""CLI utilities for formatting."""

from .formatting import (
    console,
    format_bytes,
    print_error,
    print_stats,
    print_table,
    print_warning,
)

__all__ = [
    "console",
    "print_table",
    "print_stats",
    "print_error",
    "print_warning",
    "format_bytes",
]
