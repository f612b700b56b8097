"""Transform modules for tokentrim."""

from .base import CompressionRequest, OutputTransform
from .block_elider import (
    BlockElider,
    BlockElisionConfig,
    ElisionResult,
    IndentPolicy,
)
from .code_compressor import CodeCompressor, CodeCompressorConfig
from .content_detector import DetectionResult, detect_output_kind
from .content_router import ContentRouter, ContentRouterConfig
from .diff_compressor import (
    ChangeKind,
    DiffCompressor,
    DiffCompressorConfig,
    DiffFile,
    DiffHunk,
)
from .json_shape import JsonShapeConfig, JsonShapeExtractor, extract_json_shape
from .lexical_stripper import LexicalStripper, StrippedSource, strip_source
from .listing_compressor import ListingCompressor, ListingCompressorConfig
from .log_compressor import DedupGroup, LogCompressor, LogCompressorConfig, MergeMode
from .result_grouper import (
    LintDiagnostic,
    LintResultGrouper,
    ResultGrouperConfig,
    SearchMatch,
    SearchResultGrouper,
    TestRecord,
    TestResultGrouper,
    TestStatus,
)

__all__ = [
    # Base
    "CompressionRequest",
    "OutputTransform",
    # Routing
    "ContentRouter",
    "ContentRouterConfig",
    "DetectionResult",
    "detect_output_kind",
    # Code
    "BlockElider",
    "BlockElisionConfig",
    "CodeCompressor",
    "CodeCompressorConfig",
    "ElisionResult",
    "IndentPolicy",
    "LexicalStripper",
    "StrippedSource",
    "strip_source",
    # Diff
    "ChangeKind",
    "DiffCompressor",
    "DiffCompressorConfig",
    "DiffFile",
    "DiffHunk",
    # Log
    "DedupGroup",
    "LogCompressor",
    "LogCompressorConfig",
    "MergeMode",
    # JSON
    "JsonShapeConfig",
    "JsonShapeExtractor",
    "extract_json_shape",
    # Search, test and lint results
    "LintDiagnostic",
    "LintResultGrouper",
    "ResultGrouperConfig",
    "SearchMatch",
    "SearchResultGrouper",
    "TestRecord",
    "TestResultGrouper",
    "TestStatus",
    # Listing
    "ListingCompressor",
    "ListingCompressorConfig",
]
