"""Formatting utilities for CLI output using Rich."""

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Shared console instance; stdout carries the compressed output only
console = Console(stderr=True)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: str | None = None,
) -> None:
    """Print a Rich table with headers and rows.

    Args:
        headers: Column headers for the table.
        rows: List of rows, where each row is a list of cell values.
        title: Optional title to display above the table.
    """
    table = Table(title=title)

    for header in headers:
        table.add_column(header)

    for row in rows:
        table.add_row(*row)

    console.print(table)


def print_stats(stats: dict[str, Any], title: str = "Statistics") -> None:
    """Print statistics in a nicely formatted panel.

    Args:
        stats: Dictionary of stat names to values.
        title: Title for the panel.
    """
    lines = [f"[bold]{key}:[/bold] {value}" for key, value in stats.items()]
    content = "\n".join(lines)
    console.print(Panel(content, title=title))


def print_error(msg: str) -> None:
    """Print an error message in red.

    Args:
        msg: The error message to display.
    """
    console.print(f"[bold red]Error:[/bold red] {msg}", highlight=False)


def print_warning(msg: str) -> None:
    """Print a warning message in yellow.

    Args:
        msg: The warning message to display.
    """
    console.print(f"[bold yellow]Warning:[/bold yellow] {msg}", highlight=False)


def format_bytes(size: int) -> str:
    """Format a byte count as a human-readable string.

    Args:
        size: Size in bytes.

    Returns:
        A string like "512 B", "1.5 KB", "2.0 MB".
    """
    if size < 1024:
        return f"{max(size, 0)} B"

    units = [("TB", 1024**4), ("GB", 1024**3), ("MB", 1024**2), ("KB", 1024)]

    for unit, threshold in units:
        if size >= threshold:
            return f"{size / threshold:.1f} {unit}"

    return f"{size} B"
