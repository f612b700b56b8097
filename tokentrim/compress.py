"""One-function compression API for tokentrim.

The simplest way to use tokentrim, no router setup needed:

    from tokentrim import compress_output

    result = compress_output(output, kind="diff")
    result.compressed          # What to hand to the consumer
    result.bytes_saved         # Bytes removed
    result.compression_ratio   # e.g. 0.35 means 65% saved

Examples:

    # Source file at the aggressive level
    result = compress_output(source, kind="code", level="aggressive", path="src/lib.rs")

    # Let the router detect the kind
    result = compress_output(subprocess.run(cmd, capture_output=True, text=True).stdout)

    # Never fail: malformed input comes back unchanged
    result = compress_output(maybe_json, kind="json", passthrough_on_error=True)
"""

from __future__ import annotations

import logging
import threading

from .config import CommandOutputKind, CompressionResult, FilterLevel
from .exceptions import MalformedInputError
from .transforms.content_router import ContentRouter

logger = logging.getLogger(__name__)

# Lazy-initialized singleton router
_router: ContentRouter | None = None
_router_lock = threading.Lock()


def compress_output(
    content: str,
    kind: CommandOutputKind | str | None = None,
    level: FilterLevel | str | None = None,
    language: str | None = None,
    path: str | None = None,
    detail: bool | None = None,
    verbose: bool | None = None,
    passthrough_on_error: bool = False,
) -> CompressionResult:
    """Compress one captured output with the default router.

    Args:
        content: The full output buffer.
        kind: What produced it. Detected when None.
        level: Filter level for source code (none, minimal, aggressive).
        language: Language hint for source code.
        path: Path the buffer was read from.
        detail: Diff detail mode.
        verbose: Include passing test records.
        passthrough_on_error: Return the input unchanged instead of raising
            MalformedInputError.

    Returns:
        CompressionResult with the compressed text and byte counts.

    Raises:
        MalformedInputError: If the buffer does not parse under its kind
            and `passthrough_on_error` is False.
    """
    router = _get_router()
    try:
        return router.compress(
            content,
            kind=kind,
            level=level,
            language=language,
            path=path,
            detail=detail,
            verbose=verbose,
        )
    except MalformedInputError as e:
        if not passthrough_on_error:
            raise
        logger.warning("Malformed input, returning original output: %s", e)
        failed_kind = CommandOutputKind(e.kind) if e.kind else None
        return CompressionResult.from_texts(content, content, kind=failed_kind)


def _get_router() -> ContentRouter:
    """Get or create the singleton router."""
    global _router

    if _router is not None:
        return _router

    with _router_lock:
        if _router is None:
            _router = ContentRouter()
            logger.debug("tokentrim default router initialized")
        return _router
