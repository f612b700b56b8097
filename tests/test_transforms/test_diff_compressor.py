"""Tests for the diff compactor."""

import pytest

from tokentrim.config import CommandOutputKind
from tokentrim.exceptions import MalformedInputError
from tokentrim.transforms.base import CompressionRequest
from tokentrim.transforms.diff_compressor import (
    ChangeKind,
    DiffCompressor,
    DiffCompressorConfig,
)


@pytest.fixture
def compressor():
    return DiffCompressor()


class TestSummaryMode:
    """One line per file in original order."""

    def test_three_file_diff(self, compressor, three_file_diff):
        result = compressor.compress(three_file_diff, CompressionRequest())
        assert result.compressed.split("\n") == [
            "src/main.rs +10 -2 (modified)",
            "src/old.rs +0 -5 (deleted)",
            "README.md +3 -0 (added)",
            "3 files changed, +13 -7",
        ]
        assert result.kind is CommandOutputKind.DIFF
        assert result.stats["files"] == 3
        assert result.compressed_bytes < result.original_bytes

    def test_rename(self, compressor):
        diff = (
            "diff --git a/docs/old.md b/docs/new.md\n"
            "similarity index 90%\n"
            "rename from docs/old.md\n"
            "rename to docs/new.md\n"
            "index 1234567..89abcde 100644\n"
            "--- a/docs/old.md\n"
            "+++ b/docs/new.md\n"
            "@@ -1,2 +1,2 @@\n"
            " # Title\n"
            "-old line\n"
            "+new line\n"
        )
        result = compressor.compress(diff, CompressionRequest())
        assert result.compressed.split("\n")[0] == "docs/old.md -> docs/new.md +1 -1 (renamed)"

    def test_binary_file(self, compressor):
        diff = (
            "diff --git a/assets/logo.png b/assets/logo.png\n"
            "index 1111111..2222222 100644\n"
            "Binary files a/assets/logo.png and b/assets/logo.png differ\n"
        )
        result = compressor.compress(diff, CompressionRequest())
        assert result.compressed.split("\n") == [
            "assets/logo.png (binary, modified)",
            "1 file changed, +0 -0",
        ]

    def test_plain_unified_diff(self, compressor):
        diff = (
            "--- a.txt\t2024-01-01 00:00:00\n"
            "+++ b.txt\t2024-01-02 00:00:00\n"
            "@@ -1,3 +1,3 @@\n"
            " one\n"
            "-two\n"
            "+TWO\n"
            " three\n"
        )
        result = compressor.compress(diff, CompressionRequest())
        assert result.compressed.split("\n")[0] == "b.txt +1 -1 (modified)"

    def test_lines_looking_like_headers_inside_hunk(self, compressor):
        """A removed line starting with '--' is a deletion, not a header."""
        diff = (
            "diff --git a/q.sql b/q.sql\n"
            "--- a/q.sql\n"
            "+++ b/q.sql\n"
            "@@ -1,2 +1,1 @@\n"
            "--- a SQL comment\n"
            " SELECT 1;\n"
        )
        result = compressor.compress(diff, CompressionRequest())
        assert result.compressed.split("\n")[0] == "q.sql +0 -1 (modified)"

    def test_path_with_spaces(self, compressor):
        diff = (
            "diff --git a/my docs/read me.md b/my docs/read me.md\n"
            "--- a/my docs/read me.md\n"
            "+++ b/my docs/read me.md\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
        )
        result = compressor.compress(diff, CompressionRequest())
        assert result.compressed.split("\n")[0] == "my docs/read me.md +1 -1 (modified)"


class TestDetailMode:
    """Hunk bodies with condensed context."""

    def test_long_unchanged_runs_collapse(self):
        context = "".join(f" keep {i}\n" for i in range(20))
        diff = (
            "diff --git a/f.py b/f.py\n"
            "--- a/f.py\n"
            "+++ b/f.py\n"
            "@@ -1,42 +1,42 @@\n"
            + context
            + "-old\n"
            "+new\n"
            + context
            + " tail\n"
        )
        compressor = DiffCompressor(DiffCompressorConfig(context_lines=2))
        result = compressor.compress(diff, CompressionRequest(detail=True))
        lines = result.compressed.split("\n")
        assert lines[0] == "f.py +1 -1 (modified)"
        assert "  … 18 unchanged lines …" in lines
        assert "  … 19 unchanged lines …" in lines
        assert "  -old" in lines and "  +new" in lines
        assert "   keep 18" in lines and "   keep 1" in lines
        # Truncation honesty: hidden counts add up to the unchanged lines not shown
        assert result.elided_items == 18 + 19

    def test_config_detail_flag(self, three_file_diff):
        compressor = DiffCompressor(DiffCompressorConfig(detail=True))
        result = compressor.compress(three_file_diff, CompressionRequest())
        assert "  @@ -1,5 +1,13 @@" in result.compressed.split("\n")

    def test_body_overflow_marker(self, three_file_diff):
        compressor = DiffCompressor(DiffCompressorConfig(detail=True, max_detail_lines_per_file=3))
        result = compressor.compress(three_file_diff, CompressionRequest())
        lines = result.compressed.split("\n")
        first_file = lines[: lines.index("src/old.rs +0 -5 (deleted)")]
        assert first_file[-1] == "  … +13 more lines"


class TestErrors:
    """Malformed and empty input."""

    def test_empty_input(self, compressor):
        result = compressor.compress("", CompressionRequest())
        assert result.compressed == ""

    def test_no_header_is_malformed(self, compressor):
        with pytest.raises(MalformedInputError) as exc_info:
            compressor.compress("just some text\nwithout a diff\n", CompressionRequest())
        assert exc_info.value.kind == "diff"


class TestDiffFile:
    """Tests for per-file classification."""

    def test_change_kinds(self, compressor, three_file_diff):
        files = compressor._parse_diff(three_file_diff.split("\n"))
        assert [f.change_kind for f in files] == [
            ChangeKind.MODIFIED,
            ChangeKind.DELETED,
            ChangeKind.ADDED,
        ]
        assert [(f.additions, f.deletions) for f in files] == [(10, 2), (0, 5), (3, 0)]
