"""Tests for the lexical stripper automaton."""

import pytest

from tokentrim.config import FilterLevel
from tokentrim.languages import DEFAULT_REGISTRY, PLAIN_TEXT
from tokentrim.transforms.lexical_stripper import (
    LexicalStripper,
    ScanState,
    strip_source,
)


def _strip(language: str, text: str, level: FilterLevel = FilterLevel.MINIMAL) -> str:
    return LexicalStripper(DEFAULT_REGISTRY.get(language)).strip(text, level).text


class TestCommentRemoval:
    """Tests for comment spans."""

    def test_line_comment_removed(self):
        assert _strip("rust", "let x = 1; // note\n") == "let x = 1;\n"

    def test_comment_only_line_dropped(self):
        """A line that held only a comment disappears entirely."""
        assert _strip("rust", "// header\nfn a() {}\n") == "fn a() {}\n"

    def test_block_comment_spanning_lines(self):
        text = "int a; /* start\n still comment\n end */ int b;\n"
        assert _strip("c", text) == "int a;\n int b;\n"

    def test_comment_markers_inside_strings_are_kept(self):
        """Delimiters are only honored in CODE state."""
        text = 'let url = "http://example.com"; // trailing\n'
        assert _strip("rust", text) == 'let url = "http://example.com";\n'

    def test_escaped_quote_does_not_close_string(self):
        text = 'printf("say \\"hi\\" // not a comment");\n'
        assert _strip("c", text) == text

    def test_python_hash_in_string(self):
        assert _strip("python", 'x = "#notacomment"  # real\n') == 'x = "#notacomment"\n'

    def test_python_triple_quoted_string_kept(self):
        text = 'doc = """\n# inside docstring\n"""\n'
        assert _strip("python", text) == text

    def test_rust_lifetime_is_not_a_char_literal(self):
        """`'a` is code; the following comment is still removed."""
        text = "fn f<'a>(x: &'a str) -> char { 'x' } // c\n"
        assert _strip("rust", text) == "fn f<'a>(x: &'a str) -> char { 'x' }\n"

    def test_rust_char_literal_holding_quote(self):
        text = "let q = '\"'; // quote\nlet s = \"ok\";\n"
        assert _strip("rust", text) == "let q = '\"';\nlet s = \"ok\";\n"

    def test_shell_hash_needs_word_boundary(self):
        """`$#` and `${#var}` are not comments."""
        text = 'echo $# ${#name} # count\n'
        assert _strip("shell", text) == "echo $# ${#name}\n"

    def test_shebang_survives(self):
        assert _strip("python", "#!/usr/bin/env python3\n# c\nx = 1\n") == (
            "#!/usr/bin/env python3\nx = 1\n"
        )

    def test_unterminated_block_comment_closes_at_eof(self):
        assert _strip("c", "int a;\n/* never closed\nint b;\n") == "int a;"

    def test_unterminated_string_closes_at_eof(self):
        text = 'x = "open\n'
        assert _strip("python", text) == text


class TestWhitespaceNormalization:
    """Tests for trailing whitespace and blank-line runs."""

    def test_trailing_whitespace_stripped(self):
        assert _strip("go", "x := 1   \ny := 2\t\n") == "x := 1\ny := 2\n"

    def test_blank_runs_collapse_to_one(self):
        assert _strip("go", "a()\n\n\n\nb()\n") == "a()\n\nb()\n"

    def test_whitespace_inside_multiline_string_kept(self):
        """Lines inside a string literal are content, not layout."""
        text = 'q = """\nline one   \n\n\n"""\n'
        assert _strip("python", text) == text

    def test_plain_text_only_normalizes_whitespace(self):
        result = LexicalStripper(PLAIN_TEXT).strip("a  \n# not a comment\n\n\nb\n", FilterLevel.MINIMAL)
        assert result.text == "a\n# not a comment\n\nb\n"
        assert result.comments_removed == 0


class TestLevels:
    """Tests for level handling."""

    def test_none_returns_input_unchanged(self, rust_source):
        assert _strip("rust", rust_source, FilterLevel.NONE) == rust_source

    def test_aggressive_strips_like_minimal(self, rust_source):
        """Elision is a separate stage; stripping itself is level-independent above NONE."""
        assert _strip("rust", rust_source, FilterLevel.AGGRESSIVE) == _strip("rust", rust_source)

    @pytest.mark.parametrize("language", ["rust", "python", "c", "shell"])
    def test_minimal_is_idempotent(self, language, python_source, rust_source):
        source = python_source if language == "python" else rust_source
        once = _strip(language, source)
        assert _strip(language, once) == once


class TestCodeView:
    """Tests for the code view consumed by the block elider."""

    def test_string_contents_blanked(self):
        result = strip_source('s = "{ }";\n', DEFAULT_REGISTRY.get("c"), FilterLevel.MINIMAL)
        assert result.views[0] == 's = "   ";'
        assert result.lines[0] == 's = "{ }";'

    def test_views_align_with_lines(self, python_source):
        result = strip_source(python_source, DEFAULT_REGISTRY.get("python"), FilterLevel.MINIMAL)
        assert len(result.lines) == len(result.views) == len(result.continued)
        for line, view in zip(result.lines, result.views):
            assert len(line) == len(view)

    def test_continued_marks_lines_inside_strings(self):
        result = strip_source('a = """\n  x\n"""\n', DEFAULT_REGISTRY.get("python"), FilterLevel.MINIMAL)
        assert result.continued == [False, True, True, False]

    def test_counters(self):
        result = strip_source(
            "// a\nint x; // b\n\n\n\nint y;\n", DEFAULT_REGISTRY.get("c"), FilterLevel.MINIMAL
        )
        assert result.comments_removed == 2
        assert result.comment_lines_dropped == 1
        assert result.blank_lines_collapsed == 2

    def test_scan_states_exposed(self):
        assert {state.value for state in ScanState} == {
            "code",
            "line_comment",
            "block_comment",
            "string",
        }
