"""Lexical stripper: comment and whitespace removal driven by a LanguageProfile.

The stripper is one explicit finite-state automaton over the profile's
declared delimiters:

    CODE ──line marker──▶ LINE_COMMENT ──newline──▶ CODE
    CODE ──block start──▶ BLOCK_COMMENT ──block end──▶ CODE
    CODE ──string delim──▶ STRING ──same delim──▶ CODE

Delimiters are only honored in CODE. Inside STRING the escape character
consumes the next character unconditionally. Comment or string spans still
open at end of input are closed implicitly.

Besides the stripped text the scanner produces a *code view*: the same lines
with string literal contents blanked to spaces. Later stages (the block
elider) count delimiters on the view so braces inside strings never count.

Levels:
- NONE: input returned unchanged.
- MINIMAL: comments removed, comment-only lines dropped, trailing whitespace
  stripped, runs of blank lines collapsed to one. A leading shebang survives.
- AGGRESSIVE: MINIMAL output handed to the block elider (see block_elider.py).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..config import FilterLevel
from ..languages import LanguageProfile

# Characters after which a boundary-sensitive comment marker (shell '#') counts
_COMMENT_BOUNDARY_CHARS = frozenset(" \t;|&()")


class ScanState(Enum):
    """States of the lexical automaton."""

    CODE = "code"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    STRING = "string"


@dataclass
class ScannedLine:
    """One physical line after comment removal."""

    text: str
    view: str
    had_comment: bool = False
    starts_in_string: bool = False
    ends_in_string: bool = False


@dataclass
class StrippedSource:
    """Stripper output: aligned text/view lines plus counters.

    `continued[i]` is True when line i began inside a multi-line string, so
    its indentation carries no structural meaning.
    """

    lines: list[str]
    views: list[str]
    continued: list[bool] = field(default_factory=list)
    comments_removed: int = 0
    comment_lines_dropped: int = 0
    blank_lines_collapsed: int = 0

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class LexicalStripper:
    """Single-pass comment/whitespace stripper.

    Example:
        >>> from tokentrim.languages import DEFAULT_REGISTRY
        >>> stripper = LexicalStripper(DEFAULT_REGISTRY.get("python"))
        >>> stripper.strip("x = 1  # note\\n", FilterLevel.MINIMAL).text
        'x = 1\\n'
    """

    def __init__(self, profile: LanguageProfile):
        self.profile = profile

    def strip(self, text: str, level: FilterLevel) -> StrippedSource:
        """Strip comments and normalize whitespace at the given level.

        AGGRESSIVE returns the same result as MINIMAL here; block elision
        is a separate stage that consumes this output.
        """
        if level is FilterLevel.NONE:
            lines = text.split("\n")
            return StrippedSource(lines=lines, views=list(lines), continued=[False] * len(lines))

        scanned, comments = self.scan(text)
        return self._normalize(scanned, comments)

    def scan(self, text: str) -> tuple[list[ScannedLine], int]:
        """Run the automaton over raw text.

        Returns:
            Tuple of (scanned lines, number of comment spans removed).
        """
        profile = self.profile
        block = profile.block_comment
        escape = profile.escape_char

        lines: list[ScannedLine] = []
        out: list[str] = []
        view: list[str] = []
        had_comment = False
        starts_in_string = False
        comments = 0

        state = ScanState.CODE
        delimiter = ""
        i = 0
        n = len(text)

        if text.startswith("#!") and "#" in profile.line_comments:
            end = text.find("\n")
            end = n if end == -1 else end
            out.append(text[:end])
            view.append(text[:end])
            i = end

        while i < n:
            ch = text[i]

            if ch == "\n":
                if state is ScanState.LINE_COMMENT:
                    state = ScanState.CODE
                in_string = state is ScanState.STRING
                lines.append(
                    ScannedLine(
                        text="".join(out),
                        view="".join(view),
                        had_comment=had_comment,
                        starts_in_string=starts_in_string,
                        ends_in_string=in_string,
                    )
                )
                out, view = [], []
                had_comment = state is ScanState.BLOCK_COMMENT
                starts_in_string = in_string
                i += 1
                continue

            if state is ScanState.CODE:
                if block and text.startswith(block[0], i):
                    state = ScanState.BLOCK_COMMENT
                    had_comment = True
                    comments += 1
                    i += len(block[0])
                    continue

                marker = self._line_comment_at(text, i)
                if marker:
                    state = ScanState.LINE_COMMENT
                    had_comment = True
                    comments += 1
                    i += len(marker)
                    continue

                opened = next((d for d in profile.string_delimiters if text.startswith(d, i)), None)
                if opened:
                    state = ScanState.STRING
                    delimiter = opened
                    out.append(opened)
                    view.append(opened)
                    i += len(opened)
                    continue

                if profile.char_quote and ch == profile.char_quote:
                    length = self._char_literal_length(text, i)
                    if length:
                        out.append(text[i : i + length])
                        view.append(ch + " " * (length - 2) + ch)
                        i += length
                        continue

                out.append(ch)
                view.append(ch)
                i += 1

            elif state is ScanState.LINE_COMMENT:
                i += 1

            elif state is ScanState.BLOCK_COMMENT:
                assert block is not None
                if text.startswith(block[1], i):
                    state = ScanState.CODE
                    i += len(block[1])
                else:
                    i += 1

            else:  # STRING
                if escape and ch == escape and i + 1 < n and text[i + 1] != "\n":
                    out.append(text[i : i + 2])
                    view.append("  ")
                    i += 2
                elif text.startswith(delimiter, i):
                    state = ScanState.CODE
                    out.append(delimiter)
                    view.append(delimiter)
                    i += len(delimiter)
                else:
                    out.append(ch)
                    view.append(" ")
                    i += 1

        # Unterminated spans close implicitly at end of input
        lines.append(
            ScannedLine(
                text="".join(out),
                view="".join(view),
                had_comment=had_comment,
                starts_in_string=starts_in_string,
                ends_in_string=state is ScanState.STRING,
            )
        )
        return lines, comments

    def _line_comment_at(self, text: str, i: int) -> str | None:
        for marker in self.profile.line_comments:
            if not text.startswith(marker, i):
                continue
            if self.profile.comment_needs_boundary and i > 0:
                if text[i - 1] not in _COMMENT_BOUNDARY_CHARS and text[i - 1] != "\n":
                    continue
            return marker
        return None

    def _char_literal_length(self, text: str, i: int) -> int:
        """Length of a character literal starting at i, or 0.

        Only 'x' and escaped forms ('\\n', '\\u{1F600}', '\\x7f') count, so
        Rust lifetimes such as <'a> stay plain code.
        """
        quote = text[i]
        escape = self.profile.escape_char
        if i + 2 < len(text) and text[i + 1] not in (escape, "\n", quote) and text[i + 2] == quote:
            return 3
        if escape and i + 1 < len(text) and text[i + 1] == escape:
            end = text.find(quote, i + 3)
            newline = text.find("\n", i)
            if end != -1 and end - i <= 12 and (newline == -1 or end < newline):
                return end - i + 1
        return 0

    def _normalize(self, scanned: list[ScannedLine], comments: int) -> StrippedSource:
        result = StrippedSource(lines=[], views=[], comments_removed=comments)
        previous_blank = False

        for line in scanned:
            # Whitespace inside a multi-line string literal is content
            text = line.text if line.ends_in_string else line.text.rstrip()
            view = line.view if line.ends_in_string else line.view.rstrip()

            if not line.starts_in_string and not text.strip():
                if line.had_comment:
                    result.comment_lines_dropped += 1
                    continue
                if previous_blank:
                    result.blank_lines_collapsed += 1
                    continue
                previous_blank = True
                text = view = ""
            else:
                previous_blank = False

            result.lines.append(text)
            result.views.append(view)
            result.continued.append(line.starts_in_string)

        return result


def strip_source(text: str, profile: LanguageProfile, level: FilterLevel) -> StrippedSource:
    """Convenience wrapper around LexicalStripper.strip()."""
    return LexicalStripper(profile).strip(text, level)
