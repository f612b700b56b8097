"""Block elider: collapse declaration bodies in already-stripped code.

Runs only at the AGGRESSIVE filter level, on the output of the lexical
stripper. Detection combines two signals:

1. Signature match: one of the first identifier tokens of a line is in the
   profile's declaration keywords (`def`, `fn`, `func`, `function`, ...), or
   the line matches the profile's signature pattern (C-family methods).
   Lines that start with a control-flow keyword never match.
2. Nesting depth over the profile's block style: brace counting for brace
   languages, indentation relative to the declaration line for indentation
   languages.

The signature line stays verbatim and the body becomes one placeholder line
`... N lines elided`. The outermost match wins. A body whose delimiters do
not balance is left untouched; the elider never guesses a close.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from ..languages import BlockStyle, LanguageProfile
from .lexical_stripper import StrippedSource

logger = logging.getLogger(__name__)

ELISION_TEMPLATE = "... {count} lines elided"

PLACEHOLDER_PATTERN = re.compile(r"^\s*\.\.\. \d+ lines elided$")

_IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")

_CONTROL_KEYWORDS = frozenset(
    {
        "if",
        "else",
        "elif",
        "for",
        "foreach",
        "while",
        "do",
        "switch",
        "case",
        "match",
        "loop",
        "try",
        "catch",
        "except",
        "finally",
        "with",
        "return",
        "throw",
        "new",
        "defer",
        "go",
        "synchronized",
        "using",
        "lock",
    }
)

# How many leading identifier tokens may precede the declaration keyword
# (pub(crate) async unsafe extern fn ...)
_MAX_PREFIX_TOKENS = 6

_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())


class IndentPolicy(str, Enum):
    """How indentation-based bodies treat mixed tabs and spaces."""

    # A line continues the body only if its leading whitespace extends the
    # declaration's leading whitespace string. Any other indentation,
    # including a tab/space mismatch, ends the body.
    STRICT = "strict"
    # Compare widths after expanding tabs to `tab_width` columns.
    EXPAND_TABS = "expand_tabs"


@dataclass
class BlockElisionConfig:
    """Configuration for declaration body elision."""

    min_body_lines: int = 2  # Shorter bodies are kept
    max_signature_lines: int = 4  # Lines searched for the opening delimiter
    indent_policy: IndentPolicy = IndentPolicy.STRICT
    tab_width: int = 4


@dataclass
class ElisionResult:
    """Result of one elider pass."""

    lines: list[str]
    blocks_elided: int = 0
    lines_elided: int = 0
    unbalanced_regions: int = 0
    spans: list[tuple[int, int]] = field(default_factory=list)


class BlockElider:
    """Collapses declaration bodies into placeholder lines.

    Example:
        >>> elider = BlockElider(rust_profile)
        >>> result = elider.elide(stripped_source)
        >>> print("\\n".join(result.lines))
        fn main() {
            ... 5 lines elided
        }
    """

    def __init__(self, profile: LanguageProfile, config: BlockElisionConfig | None = None):
        self.profile = profile
        self.config = config or BlockElisionConfig()

    def elide(self, source: StrippedSource) -> ElisionResult:
        """Elide declaration bodies in stripped source."""
        style = self.profile.block_style
        if style is BlockStyle.BRACE:
            return self._elide_braces(source)
        if style is BlockStyle.INDENT:
            return self._elide_indented(source)
        return ElisionResult(lines=list(source.lines))

    def is_signature(self, view_line: str) -> bool:
        """Check whether a code-view line starts a declaration."""
        stripped = view_line.strip()
        if not stripped:
            return False

        tokens = _IDENTIFIER.findall(stripped)
        if not tokens or tokens[0] in _CONTROL_KEYWORDS:
            return False
        # Closing brace followed by a keyword: `} else {`, `} catch (e) {`
        if stripped.startswith("}"):
            return False

        keywords = self.profile.declaration_keywords
        if keywords and any(token in keywords for token in tokens[:_MAX_PREFIX_TOKENS]):
            return True

        pattern = self.profile.signature_pattern
        return bool(pattern and pattern.match(view_line))

    # Brace languages

    def _elide_braces(self, source: StrippedSource) -> ElisionResult:
        lines, views = source.lines, source.views
        braces = _map_braces(views)
        result = ElisionResult(lines=[])
        i = 0

        while i < len(lines):
            if not source.continued[i] and self.is_signature(views[i]):
                span = self._match_braces(views, braces, i)
                if span is None:
                    result.unbalanced_regions += 1
                elif span != (-1, -1):
                    open_idx, close_idx = span
                    body = lines[open_idx + 1 : close_idx]
                    placeholder = self._placeholder(body)
                    if placeholder is not None:
                        result.lines.extend(lines[i : open_idx + 1])
                        result.lines.append(placeholder)
                        result.blocks_elided += 1
                        result.lines_elided += len(body)
                        result.spans.append((open_idx + 1, close_idx - 1))
                        i = close_idx
                        continue

            result.lines.append(lines[i])
            i += 1

        return result

    def _match_braces(
        self, views: list[str], braces: _BraceMap, start: int
    ) -> tuple[int, int] | None:
        """Find the (opening line, closing line) of the body after `start`.

        Returns:
            The span; (-1, -1) when there is nothing to elide (prototype,
            one-line body, braces not isolated on their lines); None when the
            braces never balance.
        """
        open_idx = -1
        open_col = -1
        limit = min(len(views), start + self.config.max_signature_lines)
        for j in range(start, limit):
            brace = views[j].find("{")
            semicolon = views[j].find(";")
            if semicolon != -1 and (brace == -1 or semicolon < brace):
                return (-1, -1)
            if brace != -1:
                open_idx, open_col = j, brace
                break
        if open_idx == -1:
            return (-1, -1)

        match = braces.closes.get((open_idx, open_col))
        if match is None:
            return None
        close_idx, depth = match
        if close_idx == open_idx:
            return (-1, -1)
        # Removed lines must carry net-zero delimiter balance
        inner = depth + 1
        if braces.end_depth[open_idx] != inner or braces.start_depth[close_idx] != inner:
            return (-1, -1)
        return (open_idx, close_idx)

    # Indentation languages

    def _elide_indented(self, source: StrippedSource) -> ElisionResult:
        lines, views = source.lines, source.views
        result = ElisionResult(lines=[])
        i = 0

        while i < len(lines):
            if not source.continued[i] and self.is_signature(views[i]):
                sig_end = self._signature_end(views, i)
                if sig_end is not None:
                    base = _leading_whitespace(views[i])
                    last = sig_end
                    j = sig_end + 1
                    while j < len(lines):
                        if source.continued[j]:
                            # A string literal opened inside the body
                            if last > sig_end:
                                last = j
                            j += 1
                            continue
                        if not views[j].strip():
                            j += 1
                            continue
                        if not self._continues_block(base, _leading_whitespace(views[j])):
                            break
                        last = j
                        j += 1

                    body = lines[sig_end + 1 : last + 1]
                    placeholder = self._placeholder(body)
                    if placeholder is not None:
                        result.lines.extend(lines[i : sig_end + 1])
                        result.lines.append(placeholder)
                        result.blocks_elided += 1
                        result.lines_elided += len(body)
                        result.spans.append((sig_end + 1, last))
                        i = last + 1
                        continue

            result.lines.append(lines[i])
            i += 1

        return result

    def _signature_end(self, views: list[str], start: int) -> int | None:
        """Index of the line ending the signature with ':' at bracket depth 0."""
        depth = 0
        limit = min(len(views), start + self.config.max_signature_lines)
        for k in range(start, limit):
            for ch in views[k]:
                if ch in _OPENERS:
                    depth += 1
                elif ch in _CLOSERS:
                    depth -= 1
            if depth <= 0:
                return k if views[k].rstrip().endswith(":") else None
        return None

    def _continues_block(self, base: str, indent: str) -> bool:
        if self.config.indent_policy is IndentPolicy.EXPAND_TABS:
            width = self.config.tab_width
            return len(indent.expandtabs(width)) > len(base.expandtabs(width))
        return len(indent) > len(base) and indent.startswith(base)

    # Shared

    def _placeholder(self, body: list[str]) -> str | None:
        """Build the placeholder for a body, or None if it should stay."""
        if len(body) < max(1, self.config.min_body_lines):
            return None
        if len(body) == 1 and PLACEHOLDER_PATTERN.match(body[0]):
            return None

        first = next((line for line in body if line.strip()), None)
        if first is None:
            return None

        placeholder = _leading_whitespace(first) + ELISION_TEMPLATE.format(count=len(body))
        body_size = sum(len(line.encode("utf-8")) + 1 for line in body)
        # Never grow the output
        if len(placeholder) + 1 >= body_size:
            return None
        return placeholder


def _leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


@dataclass
class _BraceMap:
    """Brace matches for a whole file, built in one pass."""

    # (line, column) of each '{' -> (line of its '}', depth before the '{')
    closes: dict[tuple[int, int], tuple[int, int]]
    start_depth: list[int]
    end_depth: list[int]


def _map_braces(views: list[str]) -> _BraceMap:
    closes: dict[tuple[int, int], tuple[int, int]] = {}
    start_depth: list[int] = []
    end_depth: list[int] = []
    stack: list[tuple[int, int]] = []
    for k, view in enumerate(views):
        start_depth.append(len(stack))
        for col, ch in enumerate(view):
            if ch == "{":
                stack.append((k, col))
            elif ch == "}" and stack:
                opened = stack.pop()
                closes[opened] = (k, len(stack))
        end_depth.append(len(stack))
    return _BraceMap(closes, start_depth, end_depth)
