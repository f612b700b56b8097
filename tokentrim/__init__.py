"""
tokentrim - Output compression for command-line tool results.

Shrinks what shell commands print (source files, diffs, logs, JSON dumps,
search/test/lint results, directory listings) before it reaches a
token-limited consumer, keeping the structure and every failure signal.

Quick Start:

    from tokentrim import compress_output

    result = compress_output(open("src/lib.rs").read(), kind="code", level="aggressive")
    print(result.compressed)
    print(result.summary())

Routing explicitly:

    from tokentrim import ContentRouter, ContentRouterConfig

    router = ContentRouter(ContentRouterConfig.from_dict({
        "diff": {"context_lines": 1},
        "log": {"merge_mode": "global"},
    }))
    result = router.compress(git_diff_output)  # kind detected

Error Handling:

    from tokentrim import MalformedInputError, TokentrimError

    try:
        result = compress_output(raw, kind="json")
    except MalformedInputError as e:
        print(raw)  # keep the original buffer
    except TokentrimError as e:
        print(f"tokentrim error: {e}")

Enable logging to see routing decisions:

    import logging
    logging.basicConfig(level=logging.DEBUG)
"""

from .compress import compress_output
from .config import CommandOutputKind, CompressionResult, FilterLevel
from .exceptions import (
    ConfigurationError,
    MalformedInputError,
    TokentrimError,
    TransformError,
)
from .languages import (
    DEFAULT_REGISTRY,
    BlockStyle,
    LanguageProfile,
    LanguageRegistry,
    classify_language,
)
from .transforms import (
    CompressionRequest,
    ContentRouter,
    ContentRouterConfig,
    OutputTransform,
)

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "compress_output",
    "ContentRouter",
    "ContentRouterConfig",
    # Exceptions
    "ConfigurationError",
    "MalformedInputError",
    "TokentrimError",
    "TransformError",
    # Data models
    "CommandOutputKind",
    "CompressionRequest",
    "CompressionResult",
    "FilterLevel",
    "OutputTransform",
    # Languages
    "BlockStyle",
    "DEFAULT_REGISTRY",
    "LanguageProfile",
    "LanguageRegistry",
    "classify_language",
]
