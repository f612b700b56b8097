"""Content router: one entry point for every captured output.

The ContentRouter owns one transformer per CommandOutputKind in a dispatch
table and forwards each buffer to the right one.

Routing Strategy:
1. Use the explicit kind if the caller gave one
2. Otherwise use the file path (`.json`, `.diff`, `.log`, source extensions)
3. Otherwise detect the kind from the content
4. Call the transformer and return its CompressionResult

Malformed input is never repaired: MalformedInputError propagates and the
caller keeps the original buffer.

Usage:
    >>> from tokentrim.transforms import ContentRouter
    >>> router = ContentRouter()
    >>> result = router.compress(git_diff_output)  # Auto-detects the diff
    >>> print(result.compressed)
    >>> print(result.summary())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from pathlib import PurePath
from typing import Any, Mapping

from ..config import CommandOutputKind, CompressionResult, FilterLevel
from ..exceptions import ConfigurationError, TransformError
from ..languages import DEFAULT_REGISTRY, LanguageRegistry
from .base import CompressionRequest, OutputTransform
from .block_elider import BlockElisionConfig
from .code_compressor import CodeCompressor, CodeCompressorConfig
from .content_detector import detect_output_kind
from .diff_compressor import DiffCompressor, DiffCompressorConfig
from .json_shape import JsonShapeConfig, JsonShapeExtractor
from .listing_compressor import ListingCompressor, ListingCompressorConfig
from .log_compressor import LogCompressor, LogCompressorConfig
from .result_grouper import (
    LintResultGrouper,
    ResultGrouperConfig,
    SearchResultGrouper,
    TestResultGrouper,
)

logger = logging.getLogger(__name__)

# Path suffixes that name a non-code kind
_SUFFIX_KINDS: dict[str, CommandOutputKind] = {
    ".json": CommandOutputKind.JSON,
    ".diff": CommandOutputKind.DIFF,
    ".patch": CommandOutputKind.DIFF,
    ".log": CommandOutputKind.LOG,
    ".out": CommandOutputKind.LOG,
}


@dataclass
class ContentRouterConfig:
    """Configuration for routing and every transformer behind it.

    Attributes:
        default_level: Filter level used when a call does not pass one.
        detail: Default for diff detail mode.
        verbose: Default for listing non-failing test records.
        code: Lexical stripper and block elider settings.
        diff: Diff compactor settings.
        log: Log deduplicator settings.
        json: Shape extractor settings.
        results: Search/test/lint grouping settings.
        listing: Directory listing filter settings.
    """

    default_level: FilterLevel = FilterLevel.MINIMAL
    detail: bool = False
    verbose: bool = False

    code: CodeCompressorConfig = field(default_factory=CodeCompressorConfig)
    diff: DiffCompressorConfig = field(default_factory=DiffCompressorConfig)
    log: LogCompressorConfig = field(default_factory=LogCompressorConfig)
    json: JsonShapeConfig = field(default_factory=JsonShapeConfig)
    results: ResultGrouperConfig = field(default_factory=ResultGrouperConfig)
    listing: ListingCompressorConfig = field(default_factory=ListingCompressorConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContentRouterConfig:
        """Build a config from a nested mapping keyed by section name.

        Example:
            >>> ContentRouterConfig.from_dict({
            ...     "default_level": "aggressive",
            ...     "diff": {"context_lines": 1},
            ...     "log": {"merge_mode": "global"},
            ... })

        Raises:
            ConfigurationError: On unknown sections or keys, bad enum values,
                or negative limits.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                "Unknown config section",
                details={"sections": unknown, "valid": sorted(known)},
            )

        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key == "default_level":
                kwargs[key] = FilterLevel.parse(value)
            elif key in ("detail", "verbose"):
                kwargs[key] = bool(value)
            elif key == "code":
                kwargs[key] = CodeCompressorConfig(
                    elision=_build_section(key, BlockElisionConfig, value)
                )
            else:
                section_type = {
                    "diff": DiffCompressorConfig,
                    "log": LogCompressorConfig,
                    "json": JsonShapeConfig,
                    "results": ResultGrouperConfig,
                    "listing": ListingCompressorConfig,
                }[key]
                kwargs[key] = _build_section(key, section_type, value)
        return cls(**kwargs)


def _build_section(section: str, config_type: type, values: Any) -> Any:
    """Instantiate one section's dataclass, converting enum strings."""
    if not isinstance(values, Mapping):
        raise ConfigurationError(
            "Config section must be a mapping",
            details={"section": section, "got": type(values).__name__},
        )

    defaults = config_type()
    known = {f.name for f in fields(config_type)}
    kwargs: dict[str, Any] = {}
    for key, value in values.items():
        if key not in known:
            raise ConfigurationError(
                "Unknown config key",
                details={"section": section, "key": key, "valid": sorted(known)},
            )
        default = getattr(defaults, key)
        if isinstance(default, Enum) and not isinstance(value, Enum):
            try:
                value = type(default)(str(value).strip().lower())
            except ValueError:
                raise ConfigurationError(
                    f"Invalid value '{value}'",
                    details={
                        "section": section,
                        "key": key,
                        "valid": [member.value for member in type(default)],
                    },
                ) from None
        elif is_dataclass(default):
            value = _build_section(f"{section}.{key}", type(default), value)
        kwargs[key] = value
    return config_type(**kwargs)


class ContentRouter:
    """Routes a captured output to the transformer for its kind.

    Example:
        >>> router = ContentRouter()
        >>>
        >>> # Uses the diff compactor
        >>> result = router.compress(diff_text, kind="diff")
        >>>
        >>> # Detects JSON and extracts its shape
        >>> result = router.compress('{"a": [1, 2, 3], "b": "x"}')
        >>> print(result.compressed)
    """

    name: str = "content_router"

    def __init__(
        self,
        config: ContentRouterConfig | None = None,
        registry: LanguageRegistry | None = None,
    ):
        """Initialize content router.

        Args:
            config: Router configuration. Uses defaults if None.
            registry: Language registry shared by every call.
        """
        self.config = config or ContentRouterConfig()
        self.registry = registry or DEFAULT_REGISTRY

        transforms: list[OutputTransform] = [
            CodeCompressor(self.config.code),
            DiffCompressor(self.config.diff),
            LogCompressor(self.config.log),
            JsonShapeExtractor(self.config.json),
            SearchResultGrouper(self.config.results),
            TestResultGrouper(self.config.results),
            LintResultGrouper(self.config.results),
            ListingCompressor(self.config.listing),
        ]
        self._dispatch: dict[CommandOutputKind, OutputTransform] = {t.kind: t for t in transforms}

    @property
    def kinds(self) -> list[CommandOutputKind]:
        return list(self._dispatch)

    def transform_for(self, kind: CommandOutputKind | str) -> OutputTransform:
        """Look up the transformer registered for a kind.

        Raises:
            ConfigurationError: If the kind name is unknown.
            TransformError: If no transformer is registered for the kind.
        """
        resolved = CommandOutputKind.parse(kind)
        transform = self._dispatch.get(resolved)
        if transform is None:
            raise TransformError(
                "No transformer registered",
                details={"kind": resolved.value},
            )
        return transform

    def register(self, transform: OutputTransform) -> None:
        """Replace the transformer for `transform.kind`."""
        self._dispatch[transform.kind] = transform

    def unregister(self, kind: CommandOutputKind | str) -> None:
        self._dispatch.pop(CommandOutputKind.parse(kind), None)

    def compress(
        self,
        content: str,
        kind: CommandOutputKind | str | None = None,
        level: FilterLevel | str | None = None,
        language: str | None = None,
        path: str | None = None,
        detail: bool | None = None,
        verbose: bool | None = None,
    ) -> CompressionResult:
        """Compress one captured output.

        Args:
            content: The full output buffer.
            kind: What produced it. Detected when None.
            level: Filter level for code. Defaults to `config.default_level`.
            language: Language hint for code (id or extension).
            path: Path the buffer was read from.
            detail: Diff detail mode. Defaults to `config.detail`.
            verbose: Include non-failing test records. Defaults to `config.verbose`.

        Returns:
            CompressionResult from the selected transformer.

        Raises:
            MalformedInputError: If the buffer does not parse under its kind.
            ConfigurationError: If kind or level names are unknown.
            TransformError: If no transformer is registered for the kind.
        """
        resolved = self.resolve_kind(content, kind, path)
        request = CompressionRequest(
            level=FilterLevel.parse(level) if level is not None else self.config.default_level,
            language=language,
            path=path,
            registry=self.registry,
            detail=self.config.detail if detail is None else detail,
            verbose=self.config.verbose if verbose is None else verbose,
        )

        transform = self.transform_for(resolved)
        result = transform.compress(content, request)

        logger.debug(
            "Routed %d bytes to %s: %s",
            result.original_bytes,
            transform.name,
            result.summary(),
        )
        return result

    def resolve_kind(
        self,
        content: str,
        kind: CommandOutputKind | str | None = None,
        path: str | None = None,
    ) -> CommandOutputKind:
        """Decide which kind a buffer is, without compressing it."""
        if kind is not None:
            return CommandOutputKind.parse(kind)

        if path:
            from_path = self._kind_from_path(path)
            if from_path is not None:
                logger.debug("Kind %s from path %s", from_path.value, path)
                return from_path

        detection = detect_output_kind(content, self.registry)
        logger.debug(
            "Detected kind %s (confidence %.2f)",
            detection.kind.value,
            detection.confidence,
        )
        return detection.kind

    def _kind_from_path(self, path: str) -> CommandOutputKind | None:
        suffix = PurePath(path).suffix.lower()
        if suffix in _SUFFIX_KINDS:
            return _SUFFIX_KINDS[suffix]
        if self.registry.for_path(path) is not None:
            return CommandOutputKind.CODE
        return None
