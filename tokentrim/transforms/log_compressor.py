"""Log deduplicator for application and build logs.

Logs repeat the same message with only timestamps, counters or request ids
changing. This module folds those repeats into one representative line with a
multiplicity annotation. Typical compression: 5-100x on noisy logs.

Compression Strategy:
1. Normalize each line into a dedup key: strip ANSI escapes, replace
   volatile substrings (timestamps, UUIDs, hex addresses, numbers) with
   placeholders
2. Merge lines whose keys match:
   - CONSECUTIVE (default): only adjacent repeats merge, so a message that
     comes back later starts a new group at its own position
   - GLOBAL: every repeat folds into the group of its first occurrence
3. Render groups in first-seen order; groups seen more than once get
   a ` (xN)` suffix

The sum of group counts always equals the number of input lines.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from ..config import CommandOutputKind, CompressionResult, require_non_negative
from .base import CompressionRequest, OutputTransform

logger = logging.getLogger(__name__)

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")

# Order matters: longer structures are replaced before bare numbers
DEFAULT_VOLATILE_PATTERNS: tuple[str, ...] = (
    # ISO-8601 / RFC-3339 timestamps: 2024-01-15T10:30:00.123Z, 2024-01-15 10:30:00,123
    r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:[.,]\d+)?(?:Z|[+-]\d{2}:?\d{2})?",
    # Syslog dates: Jan 15 10:30:00
    r"\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d{1,2}\s+\d{2}:\d{2}:\d{2}\b",
    # Bare dates and clock times
    r"\d{4}-\d{2}-\d{2}",
    r"\b\d{1,2}:\d{2}:\d{2}(?:[.,]\d+)?\b",
    # UUIDs
    r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b",
    # Hex addresses and long hashes
    r"\b0x[0-9a-fA-F]+\b",
    r"\b[0-9a-f]{12,64}\b",
    # Durations (12ms, 1.5s) and other numbers
    r"\b\d+(?:\.\d+)?(?:ms|us|µs|ns|s|m|h)?\b",
)


class MergeMode(str, Enum):
    """How repeated keys are merged."""

    CONSECUTIVE = "consecutive"
    GLOBAL = "global"


@dataclass
class DedupGroup:
    """A run of lines sharing one dedup key."""

    key: str
    representative: str
    count: int
    first_index: int


@dataclass
class LogCompressorConfig:
    """Configuration for log deduplication."""

    # Regexes for substrings removed from the dedup key
    volatile_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_VOLATILE_PATTERNS))

    merge_mode: MergeMode = MergeMode.CONSECUTIVE

    # Strip ANSI color codes before comparing lines
    strip_ansi: bool = True

    # Emit at most this many groups (None = all), then an honest marker
    max_groups: int | None = None

    def __post_init__(self) -> None:
        require_non_negative("log", max_groups=self.max_groups)


class LogCompressor(OutputTransform):
    """Deduplicates near-identical log lines.

    Example:
        >>> compressor = LogCompressor()
        >>> result = compressor.compress(app_log, CompressionRequest())
        >>> print(result.compressed)  # One line per distinct message run
    """

    kind = CommandOutputKind.LOG
    name = "log"

    _PLACEHOLDER = "<*>"

    def __init__(self, config: LogCompressorConfig | None = None):
        """Initialize log deduplicator.

        Args:
            config: Deduplication configuration.
        """
        self.config = config or LogCompressorConfig()
        self._volatile = [re.compile(p) for p in self.config.volatile_patterns]

    def compress(self, content: str, request: CompressionRequest) -> CompressionResult:
        """Deduplicate log output.

        Args:
            content: Raw log output.
            request: Invocation parameters (unused beyond the contract).

        Returns:
            CompressionResult whose `elided_items` is the number of lines
            merged into an earlier representative.
        """
        lines = content.splitlines()
        groups = self.group_lines(lines)

        compressed = self._format_output(groups)
        merged = len(lines) - len(groups)

        logger.debug(
            "Log dedup: %d lines -> %d groups (%s)",
            len(lines),
            len(groups),
            self.config.merge_mode.value,
        )

        return self._result(
            content,
            compressed,
            elided_items=merged,
            lines=len(lines),
            groups=len(groups),
        )

    def normalize(self, line: str) -> str:
        """Compute the dedup key of one line."""
        key = _ANSI_ESCAPE.sub("", line) if self.config.strip_ansi else line
        for pattern in self._volatile:
            key = pattern.sub(self._PLACEHOLDER, key)
        return key.strip()

    def group_lines(self, lines: list[str]) -> list[DedupGroup]:
        """Fold lines into groups, preserving first-seen order."""
        groups: list[DedupGroup] = []
        by_key: dict[str, DedupGroup] = {}
        global_mode = self.config.merge_mode is MergeMode.GLOBAL

        for index, line in enumerate(lines):
            key = self.normalize(line)

            if global_mode:
                group = by_key.get(key)
            else:
                group = groups[-1] if groups and groups[-1].key == key else None

            if group is not None:
                group.count += 1
                continue

            group = DedupGroup(key=key, representative=line, count=1, first_index=index)
            groups.append(group)
            by_key[key] = group

        return groups

    def _format_output(self, groups: list[DedupGroup]) -> str:
        shown = groups
        hidden: list[DedupGroup] = []
        limit = self.config.max_groups
        if limit is not None and len(groups) > limit:
            shown, hidden = groups[:limit], groups[limit:]

        output_lines = [
            f"{g.representative} (x{g.count})" if g.count > 1 else g.representative for g in shown
        ]

        if hidden:
            hidden_lines = sum(g.count for g in hidden)
            output_lines.append(f"[+{len(hidden)} more groups, {hidden_lines} lines]")

        return "\n".join(output_lines)
