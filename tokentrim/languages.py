"""Language profiles and the language classifier.

A LanguageProfile declares the lexical syntax the stripper and the block
elider need: comment markers, string delimiters, block style and the
keywords that introduce a declaration body. Adding a language means adding a
profile to `_BUILTIN_PROFILES`; no scanner code changes.

Classification never fails. Unknown input maps to the plain-text profile,
which has no comment, string or block awareness, so filtering degrades to
whitespace normalization.

Usage:
    >>> from tokentrim.languages import DEFAULT_REGISTRY
    >>> DEFAULT_REGISTRY.classify(path="src/main.rs").id
    'rust'
    >>> DEFAULT_REGISTRY.classify(content="#!/usr/bin/env python3\\nprint(1)").id
    'python'
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from types import MappingProxyType
from typing import Iterable, Mapping

logger = logging.getLogger(__name__)

# How much of a buffer the content heuristic looks at
HEURISTIC_SCAN_CHARS = 1024

# Minimum matching lines before the keyword heuristic commits to a language
MIN_HEURISTIC_MATCHES = 2


class BlockStyle(str, Enum):
    """How a language delimits declaration bodies."""

    BRACE = "brace"  # { ... }
    INDENT = "indent"  # Python-style offside rule
    NONE = "none"  # No elision support (e.g. Ruby's def ... end, plain text)


@dataclass(frozen=True)
class LanguageProfile:
    """Declarative description of a language's lexical syntax."""

    id: str
    extensions: frozenset[str] = frozenset()
    line_comments: tuple[str, ...] = ()
    block_comment: tuple[str, str] | None = None
    string_delimiters: tuple[str, ...] = ()
    escape_char: str | None = "\\"
    char_quote: str | None = None
    block_style: BlockStyle = BlockStyle.NONE
    declaration_keywords: frozenset[str] = frozenset()
    signature_pattern: re.Pattern[str] | None = None
    interpreters: tuple[str, ...] = ()
    detection_patterns: tuple[re.Pattern[str], ...] = ()
    filenames: frozenset[str] = frozenset()
    comment_needs_boundary: bool = False

    def __post_init__(self) -> None:
        # The scanner tries delimiters in order, so '"""' must win over '"'
        ordered = tuple(sorted(self.string_delimiters, key=len, reverse=True))
        object.__setattr__(self, "string_delimiters", ordered)

    @property
    def is_plain_text(self) -> bool:
        return not (self.line_comments or self.block_comment or self.string_delimiters)


def _patterns(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(source) for source in sources)


# C-family methods/functions without a leading keyword:
#   int main(int argc, char **argv) {
#   public static List<String> names() throws IOException {
_C_FAMILY_SIGNATURE = re.compile(
    r"^\s*(?:[\w<>\[\],.?*&:~]+\s+)+[*&]*~?[\w:]+\s*\([^;{}]*\)?"
    r"\s*(?:const\s*)?(?:override\s*)?(?:throws\s+[\w.,\s]+)?\s*\{?\s*$"
)

_C_LIKE_STRINGS = ('"', "'")

PLAIN_TEXT = LanguageProfile(id="text", escape_char=None)

_BUILTIN_PROFILES: tuple[LanguageProfile, ...] = (
    LanguageProfile(
        id="python",
        extensions=frozenset({".py", ".pyi", ".pyw"}),
        line_comments=("#",),
        string_delimiters=('"""', "'''", '"', "'"),
        block_style=BlockStyle.INDENT,
        declaration_keywords=frozenset({"def"}),
        interpreters=("python", "python3", "python2", "pypy", "pypy3"),
        detection_patterns=_patterns(
            r"^\s*(?:async\s+)?def\s+\w+\s*\(",
            r"^\s*class\s+\w+.*:\s*$",
            r"^\s*(?:from\s+[\w.]+\s+)?import\s+[\w.]+",
            r"^\s*if __name__\s*==",
        ),
    ),
    LanguageProfile(
        id="javascript",
        extensions=frozenset({".js", ".mjs", ".cjs", ".jsx"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=('"', "'", "`"),
        block_style=BlockStyle.BRACE,
        declaration_keywords=frozenset({"function"}),
        interpreters=("node", "nodejs", "deno", "bun"),
        detection_patterns=_patterns(
            r"^\s*(?:export\s+)?(?:async\s+)?function\s*\*?\s*\w+\s*\(",
            r"^\s*(?:const|let|var)\s+\w+\s*=",
            r"^\s*module\.exports",
            r"require\(['\"]",
        ),
    ),
    LanguageProfile(
        id="typescript",
        extensions=frozenset({".ts", ".tsx", ".mts", ".cts"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=('"', "'", "`"),
        block_style=BlockStyle.BRACE,
        declaration_keywords=frozenset({"function"}),
        interpreters=("ts-node", "tsx"),
        detection_patterns=_patterns(
            r"^\s*(?:export\s+)?(?:interface|type|enum|namespace)\s+\w+",
            r":\s*(?:string|number|boolean|void|unknown)\b",
        ),
    ),
    LanguageProfile(
        id="rust",
        extensions=frozenset({".rs"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=('"',),
        char_quote="'",
        block_style=BlockStyle.BRACE,
        declaration_keywords=frozenset({"fn"}),
        detection_patterns=_patterns(
            r"^\s*(?:pub(?:\([\w:]+\))?\s+)?(?:async\s+)?fn\s+\w+",
            r"^\s*(?:pub\s+)?(?:struct|enum|trait|mod)\s+\w+",
            r"^\s*impl(?:<[^>]*>)?\s+\w+",
            r"^\s*use\s+[\w:]+",
            r"^\s*#\[\w+",
        ),
    ),
    LanguageProfile(
        id="go",
        extensions=frozenset({".go"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=('"', "`"),
        char_quote="'",
        block_style=BlockStyle.BRACE,
        declaration_keywords=frozenset({"func"}),
        detection_patterns=_patterns(
            r"^\s*package\s+\w+\s*$",
            r"^\s*func\s+(?:\([^)]*\)\s*)?\w+\s*\(",
            r"^\s*import\s+(?:\(|\")",
        ),
    ),
    LanguageProfile(
        id="java",
        extensions=frozenset({".java"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=_C_LIKE_STRINGS,
        block_style=BlockStyle.BRACE,
        signature_pattern=_C_FAMILY_SIGNATURE,
        detection_patterns=_patterns(
            r"^\s*(?:public|private|protected)\s+(?:static\s+)?(?:final\s+)?class\s+\w+",
            r"^\s*package\s+[\w.]+;",
            r"^\s*import\s+[\w.]+;",
        ),
    ),
    LanguageProfile(
        id="c",
        extensions=frozenset({".c", ".h"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=_C_LIKE_STRINGS,
        block_style=BlockStyle.BRACE,
        signature_pattern=_C_FAMILY_SIGNATURE,
        detection_patterns=_patterns(
            r"^\s*#include\s*[<\"]",
            r"^\s*#define\s+\w+",
            r"^\s*(?:static\s+)?(?:int|void|char|unsigned|size_t)\s+\*?\w+\s*\(",
        ),
    ),
    LanguageProfile(
        id="cpp",
        extensions=frozenset({".cc", ".cpp", ".cxx", ".hpp", ".hh", ".hxx"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=_C_LIKE_STRINGS,
        block_style=BlockStyle.BRACE,
        signature_pattern=_C_FAMILY_SIGNATURE,
        detection_patterns=_patterns(
            r"^\s*#include\s*<\w+>",
            r"^\s*(?:namespace|template)\b",
            r"\bstd::\w+",
        ),
    ),
    LanguageProfile(
        id="csharp",
        extensions=frozenset({".cs"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=_C_LIKE_STRINGS,
        block_style=BlockStyle.BRACE,
        signature_pattern=_C_FAMILY_SIGNATURE,
        detection_patterns=_patterns(
            r"^\s*using\s+System",
            r"^\s*namespace\s+[\w.]+",
        ),
    ),
    LanguageProfile(
        id="kotlin",
        extensions=frozenset({".kt", ".kts"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=('"""', '"', "'"),
        block_style=BlockStyle.BRACE,
        declaration_keywords=frozenset({"fun"}),
        detection_patterns=_patterns(r"^\s*(?:private\s+|override\s+)*fun\s+\w+"),
    ),
    LanguageProfile(
        id="swift",
        extensions=frozenset({".swift"}),
        line_comments=("//",),
        block_comment=("/*", "*/"),
        string_delimiters=('"""', '"'),
        block_style=BlockStyle.BRACE,
        declaration_keywords=frozenset({"func", "init", "deinit"}),
        interpreters=("swift",),
        detection_patterns=_patterns(r"^\s*import\s+(?:Foundation|UIKit|SwiftUI)"),
    ),
    LanguageProfile(
        id="php",
        extensions=frozenset({".php"}),
        line_comments=("//", "#"),
        block_comment=("/*", "*/"),
        string_delimiters=_C_LIKE_STRINGS,
        block_style=BlockStyle.BRACE,
        declaration_keywords=frozenset({"function"}),
        interpreters=("php",),
        detection_patterns=_patterns(r"^\s*<\?php", r"^\s*\$\w+\s*="),
    ),
    LanguageProfile(
        id="ruby",
        extensions=frozenset({".rb", ".rake"}),
        line_comments=("#",),
        block_comment=("=begin", "=end"),
        string_delimiters=_C_LIKE_STRINGS,
        block_style=BlockStyle.NONE,
        interpreters=("ruby",),
        filenames=frozenset({"Rakefile", "Gemfile"}),
        detection_patterns=_patterns(r"^\s*require\s+['\"]", r"^\s*def\s+\w+[?!]?\s*$"),
    ),
    LanguageProfile(
        id="shell",
        extensions=frozenset({".sh", ".bash", ".zsh"}),
        line_comments=("#",),
        string_delimiters=_C_LIKE_STRINGS,
        block_style=BlockStyle.BRACE,
        declaration_keywords=frozenset({"function"}),
        signature_pattern=re.compile(r"^\s*[\w.-]+\s*\(\)\s*\{?\s*$"),
        interpreters=("sh", "bash", "zsh", "dash", "ksh"),
        comment_needs_boundary=True,
        detection_patterns=_patterns(r"^\s*(?:export\s+)?\w+=\S", r"^\s*(?:if|then|fi|esac)\b"),
    ),
)


class LanguageRegistry:
    """Read-only lookup table of language profiles.

    Built once at startup and passed by reference into every transformer
    call. The public mappings are MappingProxyType views, so nothing inside
    the engine can mutate them.
    """

    def __init__(
        self,
        profiles: Iterable[LanguageProfile] = _BUILTIN_PROFILES,
        fallback: LanguageProfile = PLAIN_TEXT,
    ):
        by_id: dict[str, LanguageProfile] = {fallback.id: fallback}
        by_extension: dict[str, LanguageProfile] = {}
        by_filename: dict[str, LanguageProfile] = {}
        by_interpreter: dict[str, LanguageProfile] = {}

        for profile in profiles:
            by_id[profile.id] = profile
            for ext in profile.extensions:
                by_extension[ext.lower()] = profile
            for name in profile.filenames:
                by_filename[name] = profile
            for interpreter in profile.interpreters:
                by_interpreter[interpreter] = profile

        self._fallback = fallback
        self._by_id: Mapping[str, LanguageProfile] = MappingProxyType(by_id)
        self._by_extension: Mapping[str, LanguageProfile] = MappingProxyType(by_extension)
        self._by_filename: Mapping[str, LanguageProfile] = MappingProxyType(by_filename)
        self._by_interpreter: Mapping[str, LanguageProfile] = MappingProxyType(by_interpreter)

    @property
    def fallback(self) -> LanguageProfile:
        return self._fallback

    @property
    def profiles(self) -> Mapping[str, LanguageProfile]:
        return self._by_id

    def get(self, language_id: str) -> LanguageProfile | None:
        return self._by_id.get(language_id.strip().lower())

    def for_path(self, path: str) -> LanguageProfile | None:
        """Look up a profile by file name or extension."""
        pure = PurePath(path)
        if pure.name in self._by_filename:
            return self._by_filename[pure.name]
        return self._by_extension.get(pure.suffix.lower())

    def classify(
        self,
        path: str | None = None,
        hint: str | None = None,
        content: str | None = None,
    ) -> LanguageProfile:
        """Resolve the profile for a buffer. Never raises.

        Args:
            path: File path the content came from, if known.
            hint: Explicit language id or extension (".rs", "rust").
            content: The buffer itself, used for the shebang/keyword heuristic.

        Returns:
            The matching LanguageProfile, or the plain-text profile.
        """
        if hint:
            profile = self._from_hint(hint)
            if profile is not None:
                return profile
            logger.debug("Unknown language hint %r, trying other signals", hint)

        if path:
            profile = self.for_path(path)
            if profile is not None:
                return profile

        if content:
            profile = self._from_content(content)
            if profile is not None:
                return profile

        return self._fallback

    def _from_hint(self, hint: str) -> LanguageProfile | None:
        normalized = hint.strip().lower()
        if not normalized:
            return None
        if normalized in self._by_id:
            return self._by_id[normalized]
        ext = normalized if normalized.startswith(".") else f".{normalized}"
        return self._by_extension.get(ext)

    def _from_content(self, content: str) -> LanguageProfile | None:
        head = content[:HEURISTIC_SCAN_CHARS]
        lines = head.split("\n")

        if lines and lines[0].startswith("#!"):
            profile = self._from_shebang(lines[0])
            if profile is not None:
                return profile

        scores: dict[str, int] = {}
        for line in lines:
            for profile in self._by_id.values():
                if any(pattern.search(line) for pattern in profile.detection_patterns):
                    scores[profile.id] = scores.get(profile.id, 0) + 1

        if not scores:
            return None

        best = max(scores, key=lambda k: scores[k])
        if scores[best] < MIN_HEURISTIC_MATCHES:
            return None
        return self._by_id[best]

    def _from_shebang(self, line: str) -> LanguageProfile | None:
        parts = line[2:].strip().split()
        if not parts:
            return None
        interpreter = PurePath(parts[0]).name
        if interpreter == "env":
            # Skip env flags such as `-S`
            args = [p for p in parts[1:] if not p.startswith("-")]
            if not args:
                return None
            interpreter = args[0]
        interpreter = re.sub(r"[\d.]+$", "", interpreter) or interpreter
        return self._by_interpreter.get(interpreter)


DEFAULT_REGISTRY = LanguageRegistry()


def classify_language(
    path: str | None = None,
    hint: str | None = None,
    content: str | None = None,
    registry: LanguageRegistry | None = None,
) -> LanguageProfile:
    """Classify against the default registry (or the one given)."""
    return (registry or DEFAULT_REGISTRY).classify(path=path, hint=hint, content=content)


__all__ = [
    "BlockStyle",
    "DEFAULT_REGISTRY",
    "LanguageProfile",
    "LanguageRegistry",
    "PLAIN_TEXT",
    "classify_language",
]
