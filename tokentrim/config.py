"""Configuration models and shared result types for tokentrim."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import ConfigurationError


class FilterLevel(str, Enum):
    """How much of the lexical filtering pipeline runs.

    Levels are strictly nested: anything MINIMAL removes stays removed at
    AGGRESSIVE.
    """

    NONE = "none"  # Pass source through untouched
    MINIMAL = "minimal"  # Comments, trailing whitespace, blank-line runs
    AGGRESSIVE = "aggressive"  # MINIMAL plus declaration body elision

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]

    def includes(self, other: FilterLevel) -> bool:
        """True if everything `other` does is also done at this level."""
        return self.rank >= other.rank

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FilterLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, FilterLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, FilterLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, FilterLevel):
            return NotImplemented
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: FilterLevel | str) -> FilterLevel:
        """Coerce a level name into a FilterLevel.

        Raises:
            ConfigurationError: If the name is not a known level.
        """
        if isinstance(value, FilterLevel):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Invalid filter level '{value}'",
                details={"valid_levels": [level.value for level in cls]},
            ) from None


_LEVEL_RANKS = {
    FilterLevel.NONE: 0,
    FilterLevel.MINIMAL: 1,
    FilterLevel.AGGRESSIVE: 2,
}


class CommandOutputKind(str, Enum):
    """Tag selecting the transformer for a captured command output."""

    CODE = "code"  # Source file contents (cat, head, ...)
    DIFF = "diff"  # git diff, diff -u
    LOG = "log"  # Application or build logs
    JSON = "json"  # JSON dumps, API responses
    GREP = "grep"  # grep, ripgrep, ag
    TEST = "test"  # pytest, cargo test, go test, jest
    LINT = "lint"  # clippy, compiler warnings grouped by rule
    LISTING = "listing"  # ls, ls -la

    @classmethod
    def parse(cls, value: CommandOutputKind | str) -> CommandOutputKind:
        """Coerce a kind name into a CommandOutputKind.

        Raises:
            ConfigurationError: If the name is not a known kind.
        """
        if isinstance(value, CommandOutputKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Invalid output kind '{value}'",
                details={"valid_kinds": [kind.value for kind in cls]},
            ) from None


# Rough heuristic shared by every result: ~4 bytes per token
BYTES_PER_TOKEN = 4


@dataclass
class CompressionResult:
    """Result of running one transformer over one buffer.

    Transient: produced once per invocation and handed back to the caller,
    which may forward the statistics to a tracking collaborator.

    Attributes:
        compressed: The compressed text.
        original_bytes: UTF-8 size of the input buffer.
        compressed_bytes: UTF-8 size of the compressed text.
        elided_items: Number of items (blocks, lines, matches, array elements)
            that were replaced by a marker or merged away.
        kind: Output kind the transformer handled.
        stats: Transformer-specific counters.
    """

    compressed: str
    original_bytes: int
    compressed_bytes: int
    elided_items: int = 0
    kind: CommandOutputKind | None = None
    stats: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_texts(
        cls,
        original: str,
        compressed: str,
        elided_items: int = 0,
        kind: CommandOutputKind | None = None,
        stats: dict[str, Any] | None = None,
    ) -> CompressionResult:
        """Build a result, measuring both buffers in UTF-8 bytes."""
        return cls(
            compressed=compressed,
            original_bytes=len(original.encode("utf-8")),
            compressed_bytes=len(compressed.encode("utf-8")),
            elided_items=elided_items,
            kind=kind,
            stats=stats or {},
        )

    @property
    def bytes_saved(self) -> int:
        return max(0, self.original_bytes - self.compressed_bytes)

    @property
    def compression_ratio(self) -> float:
        """Ratio of compressed to original (lower is better compression)."""
        if self.original_bytes == 0:
            return 1.0
        return self.compressed_bytes / self.original_bytes

    @property
    def savings_percentage(self) -> float:
        if self.original_bytes == 0:
            return 0.0
        return (self.bytes_saved / self.original_bytes) * 100

    @property
    def tokens_saved_estimate(self) -> int:
        """Estimate tokens saved (rough: 1 token per 4 bytes)."""
        return self.bytes_saved // BYTES_PER_TOKEN

    def summary(self) -> str:
        """Human-readable one-line summary."""
        kind = self.kind.value if self.kind else "unknown"
        return (
            f"{kind}: {self.original_bytes:,}→{self.compressed_bytes:,} bytes "
            f"({self.savings_percentage:.0f}% saved, {self.elided_items} items elided)"
        )


def require_non_negative(section: str, **limits: int | None) -> None:
    """Validate that every given limit is None or >= 0.

    Raises:
        ConfigurationError: On the first negative limit.
    """
    for name, value in limits.items():
        if value is not None and value < 0:
            raise ConfigurationError(
                "Limits must be non-negative",
                details={"section": section, "key": name, "value": value},
            )
