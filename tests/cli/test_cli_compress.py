"""Tests for the compress, detect and languages commands."""

import json

import pytest
from click.testing import CliRunner

from tokentrim import __version__
from tokentrim.cli.main import main

SHAPE_INPUT = '{"a":[1,2,3],"b":"x"}'


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestCompressCommand:
    """Tests for `tokentrim compress`."""

    def test_json_from_stdin(self, runner: CliRunner) -> None:
        """Explicit kind on stdin prints the shape."""
        result = runner.invoke(main, ["compress", "--kind", "json"], input=SHAPE_INPUT)
        assert result.exit_code == 0
        assert result.output == "{\n  a: [number, …2 more],\n  b: string\n}\n"

    def test_file_argument_sets_path(self, runner: CliRunner, tmp_path, rust_source) -> None:
        """The file name selects the language."""
        source = tmp_path / "main.rs"
        source.write_text(rust_source)
        result = runner.invoke(main, ["compress", "-l", "aggressive", str(source)])
        assert result.exit_code == 0
        assert result.output == "fn main() {\n    ... 5 lines elided\n}\n"

    def test_malformed_input_echoes_original(self, runner: CliRunner) -> None:
        """Malformed JSON exits 2 and hands the original on."""
        result = runner.invoke(main, ["compress", "--kind", "json"], input="{not json")
        assert result.exit_code == 2
        assert result.output.startswith("{not json")
        assert "Error:" in result.output

    def test_stats_panel(self, runner: CliRunner, timestamped_log) -> None:
        """--stats reports the kind and savings."""
        result = runner.invoke(main, ["compress", "--stats"], input=timestamped_log)
        assert result.exit_code == 0
        assert "(x100)" in result.output
        assert "Kind: log" in result.output
        assert "Saved:" in result.output

    def test_config_file(self, runner: CliRunner, tmp_path) -> None:
        """Settings from --config reach the transformer."""
        config = tmp_path / "tokentrim.json"
        config.write_text(json.dumps({"json": {"compact": True}}))
        result = runner.invoke(
            main, ["compress", "--kind", "json", "--config", str(config)], input=SHAPE_INPUT
        )
        assert result.exit_code == 0
        assert result.output == "{a: [number, …2 more], b: string}\n"

    def test_bad_config_exits_1(self, runner: CliRunner, tmp_path) -> None:
        """Unknown config sections are reported."""
        config = tmp_path / "tokentrim.json"
        config.write_text(json.dumps({"yaml": {}}))
        result = runner.invoke(main, ["compress", "--config", str(config)], input="x")
        assert result.exit_code == 1
        assert "Unknown config section" in result.output

    def test_invalid_kind_is_usage_error(self, runner: CliRunner) -> None:
        """Kinds are validated by click."""
        result = runner.invoke(main, ["compress", "--kind", "yaml"], input="x")
        assert result.exit_code == 2
        assert "Invalid value" in result.output


class TestDetectCommand:
    """Tests for `tokentrim detect`."""

    def test_detect_json(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["detect"], input='{"id": 1}')
        assert result.exit_code == 0
        assert result.output == "json (confidence 1.00) top_level=dict, size=1\n"

    def test_low_confidence_warns(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["detect"], input="hello there\n")
        assert result.exit_code == 0
        assert result.output.startswith("code (confidence 0.50) language=text")
        assert "Warning:" in result.output


class TestMiscCommands:
    """Tests for languages and --version."""

    def test_languages_table(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["languages"])
        assert result.exit_code == 0
        assert "rust" in result.output
        assert "python" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output
