"""Tests for CLI formatting helpers."""

from tokentrim.cli._utils import format_bytes, print_error, print_stats


class TestFormatBytes:
    """Tests for format_bytes function."""

    def test_bytes(self) -> None:
        """Small sizes stay in bytes."""
        assert format_bytes(512) == "512 B"

    def test_kilobytes(self) -> None:
        """Kilobytes get one decimal."""
        assert format_bytes(1536) == "1.5 KB"

    def test_megabytes(self) -> None:
        """Megabytes get one decimal."""
        assert format_bytes(2 * 1024 * 1024) == "2.0 MB"

    def test_gigabytes(self) -> None:
        """Sizes past a gigabyte do not stay in MB."""
        assert format_bytes(3 * 1024**3) == "3.0 GB"

    def test_negative(self) -> None:
        """Negative sizes clamp to zero."""
        assert format_bytes(-5) == "0 B"


class TestConsoleOutput:
    """Messages go to stderr so stdout carries only compressed output."""

    def test_print_error(self, capsys) -> None:
        """Errors are written to stderr."""
        print_error("boom")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Error: boom" in captured.err

    def test_print_stats(self, capsys) -> None:
        """Stats render as key/value lines."""
        print_stats({"Kind": "diff", "Saved": "80.0%"}, title="tokentrim")
        captured = capsys.readouterr()
        assert "Kind: diff" in captured.err
        assert "Saved: 80.0%" in captured.err
