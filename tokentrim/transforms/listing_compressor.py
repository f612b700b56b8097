"""Directory listing filter for `ls` output.

Listings of project roots are dominated by build and tool directories
nobody asked about. This filter drops the `total N` header and noise
entries, then appends a one-line summary for long-format listings:

    -rw-r--r--  1 user staff 1234 Jan  1 12:00 main.py
    drwxr-xr-x  2 user staff   64 Jan  1 12:00 src

    2 files, 1 dirs (1 .py, 1 .md)
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from fnmatch import fnmatch

from ..config import CommandOutputKind, CompressionResult, require_non_negative
from .base import CompressionRequest, OutputTransform

logger = logging.getLogger(__name__)

DEFAULT_NOISE_ENTRIES: tuple[str, ...] = (
    "node_modules",
    ".git",
    "target",
    "__pycache__",
    ".next",
    "dist",
    "build",
    ".cache",
    ".turbo",
    ".vercel",
    ".pytest_cache",
    ".mypy_cache",
    ".tox",
    ".venv",
    "venv",
    "env",
    ".env",
    "coverage",
    ".nyc_output",
    ".DS_Store",
    "Thumbs.db",
    ".idea",
    ".vscode",
    ".vs",
    "*.egg-info",
    ".eggs",
)

# -rw-r--r--  1 user  staff  1234 Jan  1 12:00 name with spaces
_LONG_FORMAT = re.compile(r"^([-dlcbps])[-rwxsStT@+.]{9,}\s+(?:\S+\s+){7}(.+)$")


@dataclass
class ListingCompressorConfig:
    """Configuration for listing filtering."""

    show_all: bool = False  # Keep noise entries
    noise_entries: list[str] = field(default_factory=lambda: list(DEFAULT_NOISE_ENTRIES))
    max_extensions: int = 5  # Extensions named in the summary

    def __post_init__(self) -> None:
        require_non_negative("listing", max_extensions=self.max_extensions)


class ListingCompressor(OutputTransform):
    """Filters noise out of directory listings."""

    kind = CommandOutputKind.LISTING
    name = "listing"

    def __init__(self, config: ListingCompressorConfig | None = None):
        self.config = config or ListingCompressorConfig()

    def compress(self, content: str, request: CompressionRequest) -> CompressionResult:
        kept: list[str] = []
        dropped = 0

        for line in content.splitlines():
            if line.startswith("total "):
                continue
            if not line.strip() or entry_name(line) in (".", ".."):
                continue
            if not self.config.show_all and self.is_noise(entry_name(line)):
                dropped += 1
                continue
            kept.append(line)

        output = list(kept)
        summary = self.summarize(kept)
        if summary:
            output.extend(["", summary])

        logger.debug("Listing: kept %d entries, dropped %d noise entries", len(kept), dropped)
        return self._result(
            content,
            "\n".join(output),
            elided_items=dropped,
            entries=len(kept),
        )

    def is_noise(self, name: str) -> bool:
        name = name.rstrip("/")
        return any(fnmatch(name, pattern) for pattern in self.config.noise_entries)

    def summarize(self, lines: list[str]) -> str:
        """Build `N files, M dirs (exts)` for long-format lines; empty otherwise."""
        files = 0
        dirs = 0
        extensions: Counter[str] = Counter()

        for line in lines:
            match = _LONG_FORMAT.match(line)
            if not match:
                continue
            entry_type, name = match.groups()
            if entry_type == "d":
                dirs += 1
            elif entry_type == "-":
                files += 1
                stem, dot, ext = name.rpartition(".")
                extensions[f".{ext}" if dot and stem else "no ext"] += 1

        if not files and not dirs:
            return ""

        summary = f"{files} files, {dirs} dirs"
        if extensions:
            ranked = extensions.most_common()
            limit = self.config.max_extensions
            parts = [f"{count} {ext}" for ext, count in ranked[:limit]]
            if len(ranked) > limit:
                parts.append(f"+{len(ranked) - limit} more")
            summary += f" ({', '.join(parts)})"
        return summary


def entry_name(line: str) -> str:
    """Name of the entry a listing line describes (long or short format)."""
    match = _LONG_FORMAT.match(line)
    name = match.group(2) if match else line.strip()
    # Symlinks: "link -> target"
    return name.split(" -> ", 1)[0]
