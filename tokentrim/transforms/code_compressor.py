"""Language-aware source code compressor.

Glues the three lexical stages behind the shared transform contract:

1. Classify the buffer into a LanguageProfile (path, hint, or content)
2. Strip comments and normalize whitespace (MINIMAL and up)
3. Elide declaration bodies (AGGRESSIVE only)

Usage:
    >>> compressor = CodeCompressor()
    >>> result = compressor.compress(source, CompressionRequest(
    ...     level=FilterLevel.AGGRESSIVE, path="src/lib.rs"))
    >>> print(result.compressed)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import CommandOutputKind, CompressionResult, FilterLevel, require_non_negative
from .base import CompressionRequest, OutputTransform
from .block_elider import BlockElider, BlockElisionConfig
from .lexical_stripper import LexicalStripper

logger = logging.getLogger(__name__)


@dataclass
class CodeCompressorConfig:
    """Configuration for source code compression."""

    elision: BlockElisionConfig = field(default_factory=BlockElisionConfig)

    def __post_init__(self) -> None:
        require_non_negative(
            "code",
            min_body_lines=self.elision.min_body_lines,
            max_signature_lines=self.elision.max_signature_lines,
            tab_width=self.elision.tab_width,
        )


class CodeCompressor(OutputTransform):
    """Compresses source code with lexical stripping and block elision."""

    kind = CommandOutputKind.CODE
    name = "code"

    def __init__(self, config: CodeCompressorConfig | None = None):
        self.config = config or CodeCompressorConfig()

    def compress(self, content: str, request: CompressionRequest) -> CompressionResult:
        profile = request.registry.classify(
            path=request.path,
            hint=request.language,
            content=content,
        )

        if request.level is FilterLevel.NONE:
            return self._result(content, content, language=profile.id)

        stripped = LexicalStripper(profile).strip(content, request.level)
        lines = stripped.lines
        blocks_elided = 0
        lines_elided = 0

        if request.level.includes(FilterLevel.AGGRESSIVE):
            elided = BlockElider(profile, self.config.elision).elide(stripped)
            lines = elided.lines
            blocks_elided = elided.blocks_elided
            lines_elided = elided.lines_elided
            if elided.unbalanced_regions:
                logger.debug(
                    "Left %d unbalanced region(s) untouched in %s source",
                    elided.unbalanced_regions,
                    profile.id,
                )

        compressed = "\n".join(lines)
        logger.debug(
            "Code filter (%s, %s): %d comments, %d blocks elided",
            profile.id,
            request.level.value,
            stripped.comments_removed,
            blocks_elided,
        )

        return self._result(
            content,
            compressed,
            elided_items=blocks_elided,
            language=profile.id,
            comments_removed=stripped.comments_removed,
            blank_lines_collapsed=stripped.blank_lines_collapsed,
            lines_elided=lines_elided,
        )
