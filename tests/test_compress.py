"""Tests for the one-function compress_output API."""

import logging

import pytest

import tokentrim
from tokentrim import compress_output
from tokentrim.config import CommandOutputKind
from tokentrim.exceptions import MalformedInputError


class TestCompressOutput:
    """Tests for compress_output()."""

    def test_detected_kind(self, three_file_diff):
        result = compress_output(three_file_diff)
        assert result.kind is CommandOutputKind.DIFF
        assert result.bytes_saved > 0

    def test_explicit_kind_and_level(self, rust_source):
        result = compress_output(rust_source, kind="code", level="aggressive", path="main.rs")
        assert result.compressed == "fn main() {\n    ... 5 lines elided\n}\n"

    def test_malformed_raises_by_default(self):
        with pytest.raises(MalformedInputError):
            compress_output("[1, 2", kind="json")

    def test_passthrough_on_error(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tokentrim.compress"):
            result = compress_output("[1, 2", kind="json", passthrough_on_error=True)
        assert result.compressed == "[1, 2"
        assert result.bytes_saved == 0
        assert result.kind is CommandOutputKind.JSON
        assert "Malformed input" in caplog.text

    def test_passthrough_on_undecodable_json(self):
        content = "[" * 5000 + "]" * 5000
        result = compress_output(content, kind="json", passthrough_on_error=True)
        assert result.compressed == content
        assert result.bytes_saved == 0

    def test_router_is_shared(self):
        compress_output("x", kind="log")
        first = tokentrim.compress._router
        compress_output("y", kind="log")
        assert tokentrim.compress._router is first
