"""Tests for declaration body elision."""

import pytest

from tokentrim.config import FilterLevel
from tokentrim.languages import DEFAULT_REGISTRY
from tokentrim.transforms.block_elider import (
    BlockElider,
    BlockElisionConfig,
    IndentPolicy,
)
from tokentrim.transforms.lexical_stripper import strip_source


def _elide(language: str, text: str, config: BlockElisionConfig | None = None):
    profile = DEFAULT_REGISTRY.get(language)
    stripped = strip_source(text, profile, FilterLevel.MINIMAL)
    return BlockElider(profile, config).elide(stripped)


class TestBraceElision:
    """Tests for brace-delimited languages."""

    def test_function_body_replaced(self, rust_source):
        result = _elide("rust", rust_source)
        assert result.lines == ["fn main() {", "    ... 5 lines elided", "}", ""]
        assert result.blocks_elided == 1
        assert result.lines_elided == 5

    def test_braces_inside_strings_ignored(self):
        source = 'fn f() {\n    let a = "}";\n    let b = "{";\n    a.len() + b.len()\n}\n'
        result = _elide("rust", source)
        assert result.lines[:3] == ["fn f() {", "    ... 3 lines elided", "}"]

    def test_unbalanced_region_left_untouched(self):
        """A body that never closes is not elided."""
        source = "fn broken() {\n    let x = 1;\n    let y = 2;\n"
        result = _elide("rust", source)
        assert result.lines == source.split("\n")
        assert result.unbalanced_regions == 1
        assert result.blocks_elided == 0

    def test_unclosed_outer_body_keeps_inner_elision(self):
        source = (
            "fn outer() {\n"
            "fn inner() {\n"
            "    let first = compute_first();\n"
            "    let second = compute_second();\n"
            "}\n"
        )
        result = _elide("rust", source)
        assert result.lines == ["fn outer() {", "fn inner() {", "    ... 2 lines elided", "}", ""]
        assert result.unbalanced_regions == 1
        assert result.blocks_elided == 1

    def test_many_unclosed_signatures(self):
        """Every unclosed body is reported once and the text is kept as is."""
        source = "".join(f"fn f{i}() {{\n" for i in range(3000))
        result = _elide("rust", source)
        assert result.lines == source.split("\n")
        assert result.unbalanced_regions == 3000

    def test_prototype_not_elided(self):
        source = "int add(int a, int b);\nint x;\n"
        result = _elide("c", source)
        assert result.blocks_elided == 0

    def test_one_line_body_not_elided(self):
        source = "fn id(x: u32) -> u32 { x }\n"
        assert _elide("rust", source).lines == ["fn id(x: u32) -> u32 { x }", ""]

    def test_control_flow_not_a_signature(self):
        source = "if (ready) {\n    start();\n    run();\n    stop();\n}\n"
        assert _elide("javascript", source).blocks_elided == 0

    def test_c_family_method_without_keyword(self):
        source = (
            "public class Greeter {\n"
            "    public String greet(String name) {\n"
            '        String greeting = "Hello, " + name;\n'
            '        return greeting + "!";\n'
            "    }\n"
            "}\n"
        )
        result = _elide("java", source)
        assert result.lines == [
            "public class Greeter {",
            "    public String greet(String name) {",
            "        ... 2 lines elided",
            "    }",
            "}",
            "",
        ]

    def test_outermost_match_wins(self):
        source = (
            "function outer() {\n"
            "  function inner() {\n"
            "    return compute(1, 2, 3);\n"
            "  }\n"
            "  return inner();\n"
            "}\n"
        )
        result = _elide("javascript", source)
        assert result.lines == ["function outer() {", "  ... 4 lines elided", "}", ""]

    def test_signature_spanning_lines(self):
        source = (
            "pub fn configure(\n"
            "    name: &str,\n"
            "    retries: u32,\n"
            ") -> Config {\n"
            "    let mut config = Config::default();\n"
            "    config.name = name.to_string();\n"
            "    config\n"
            "}\n"
        )
        result = _elide("rust", source)
        assert result.lines[:5] == [
            "pub fn configure(",
            "    name: &str,",
            "    retries: u32,",
            ") -> Config {",
            "    ... 3 lines elided",
        ]

    def test_short_body_kept(self):
        """Bodies shorter than min_body_lines stay."""
        source = "fn one() {\n    do_the_single_long_thing_here();\n}\n"
        assert _elide("rust", source).blocks_elided == 0

    def test_removed_lines_are_balanced(self):
        """Delimiter balance holds after elision."""
        source = (
            "fn a() {\n"
            "    if x {\n"
            "        y();\n"
            "    } else {\n"
            "        z();\n"
            "    }\n"
            "}\n"
            "fn b() {\n"
            "    match v {\n"
            "        _ => {}\n"
            "    }\n"
            "}\n"
        )
        output = "\n".join(_elide("rust", source).lines)
        assert output.count("{") == output.count("}")


class TestIndentElision:
    """Tests for indentation-delimited languages."""

    def test_python_functions_elided(self, python_source):
        result = _elide("python", python_source)
        assert result.lines == [
            "#!/usr/bin/env python3",
            '"""Module docstring # not a comment."""',
            "",
            "import os",
            "",
            "def load(path):",
            "    ... 4 lines elided",
            "",
            "class Loader:",
            "    def run(self):",
            "        ... 4 lines elided",
            "",
        ]

    def test_body_ends_at_dedent(self):
        source = "def f():\n    a = compute_value()\n    return a * 2\nprint(f())\n"
        result = _elide("python", source)
        assert result.lines == ["def f():", "    ... 2 lines elided", "print(f())", ""]

    def test_multiline_signature(self):
        source = (
            "def build(\n"
            "    name,\n"
            "    size=3,\n"
            "):\n"
            "    items = [name] * size\n"
            "    return items\n"
        )
        result = _elide("python", source)
        assert result.lines[:5] == [
            "def build(",
            "    name,",
            "    size=3,",
            "):",
            "    ... 2 lines elided",
        ]

    def test_docstring_lines_do_not_end_body(self):
        """Dedented lines inside a string literal are body content."""
        source = (
            "def usage():\n"
            '    text = """\n'
            "usage: tool [options]\n"
            '"""\n'
            "    return text\n"
        )
        result = _elide("python", source)
        assert result.lines == ["def usage():", "    ... 4 lines elided", ""]

    def test_body_ending_in_multiline_string(self):
        """A string literal closing out the body is elided with it."""
        source = (
            "def query():\n"
            "    table = 'users'\n"
            '    return """\n'
            "SELECT *\n"
            "FROM users\n"
            '"""\n'
            "x = 1\n"
        )
        result = _elide("python", source, BlockElisionConfig())
        assert result.lines == ["def query():", "    ... 5 lines elided", "x = 1", ""]
        assert result.lines_elided == 5
        assert not any("SELECT" in line for line in result.lines)

    def test_strict_policy_stops_at_tab_mismatch(self):
        source = (
            "class A:\n"
            "    def f(self):\n"
            "\t\treturn self.value + 1\n"
            "\t\treturn self.value + 2\n"
        )
        assert _elide("python", source).blocks_elided == 0

    def test_expand_tabs_policy(self):
        source = (
            "class A:\n"
            "    def f(self):\n"
            "\t\treturn self.value + 1\n"
            "\t\treturn self.value + 2\n"
        )
        config = BlockElisionConfig(indent_policy=IndentPolicy.EXPAND_TABS, tab_width=4)
        result = _elide("python", source, config)
        assert result.lines[:3] == ["class A:", "    def f(self):", "\t\t... 2 lines elided"]


class TestIdempotence:
    """Elided output is a fixed point."""

    @pytest.mark.parametrize(
        "language,fixture_name",
        [("rust", "rust_source"), ("python", "python_source")],
    )
    def test_second_pass_changes_nothing(self, language, fixture_name, request):
        source = request.getfixturevalue(fixture_name)
        once = "\n".join(_elide(language, source).lines)
        twice = _elide(language, once)
        assert "\n".join(twice.lines) == once
        assert twice.blocks_elided == 0

    def test_is_signature(self):
        elider = BlockElider(DEFAULT_REGISTRY.get("rust"))
        assert elider.is_signature("pub(crate) async fn run() {")
        assert not elider.is_signature("} else {")
        assert not elider.is_signature("for x in xs {")
        assert not elider.is_signature("")
