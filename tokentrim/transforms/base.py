"""Base class shared by every output transformer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..config import CommandOutputKind, CompressionResult, FilterLevel
from ..languages import DEFAULT_REGISTRY, LanguageRegistry


@dataclass(frozen=True)
class CompressionRequest:
    """Per-invocation parameters handed to a transformer.

    Attributes:
        level: Filter level for the lexical pipeline.
        language: Explicit language hint (id or extension).
        path: Path the buffer was read from, if any.
        registry: Read-only language registry.
        detail: Ask structural transformers for detail output (diff hunks).
        verbose: Ask grouping transformers to include non-failing records.
    """

    level: FilterLevel = FilterLevel.MINIMAL
    language: str | None = None
    path: str | None = None
    registry: LanguageRegistry = DEFAULT_REGISTRY
    detail: bool = False
    verbose: bool = False


class OutputTransform(ABC):
    """A transformer for one CommandOutputKind.

    Subclasses are stateless across calls: `compress` is a pure function of
    the buffer, the request and the configuration given at construction.
    """

    kind: CommandOutputKind
    name: str = "transform"

    @abstractmethod
    def compress(self, content: str, request: CompressionRequest) -> CompressionResult:
        """Compress one fully materialized buffer.

        Raises:
            MalformedInputError: If the buffer does not parse under this kind.
        """

    def _result(
        self,
        original: str,
        compressed: str,
        elided_items: int = 0,
        **stats: int | str,
    ) -> CompressionResult:
        return CompressionResult.from_texts(
            original,
            compressed,
            elided_items=elided_items,
            kind=self.kind,
            stats=dict(stats),
        )
