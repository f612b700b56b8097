"""Tests for the language classifier and registry."""

import pytest

from tokentrim.languages import (
    DEFAULT_REGISTRY,
    PLAIN_TEXT,
    BlockStyle,
    LanguageProfile,
    LanguageRegistry,
    classify_language,
)


class TestClassifyByHintAndPath:
    """Tests for explicit hints and path lookups."""

    def test_hint_by_id(self, registry):
        assert registry.classify(hint="Rust").id == "rust"

    def test_hint_by_extension(self, registry):
        assert registry.classify(hint=".py").id == "python"
        assert registry.classify(hint="ts").id == "typescript"

    def test_hint_wins_over_path(self, registry):
        """An explicit hint overrides the file extension."""
        assert registry.classify(path="script.txt", hint="shell").id == "shell"

    def test_unknown_hint_falls_through_to_path(self, registry):
        assert registry.classify(path="lib.go", hint="cobol").id == "go"

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src/main.rs", "rust"),
            ("app/models.py", "python"),
            ("web/index.tsx", "typescript"),
            ("include/list.h", "c"),
            ("Main.java", "java"),
            ("deploy.SH", "shell"),
            ("Rakefile", "ruby"),
        ],
    )
    def test_path_lookup(self, registry, path, expected):
        assert registry.classify(path=path).id == expected


class TestClassifyByContent:
    """Tests for the shebang and keyword heuristics."""

    def test_shebang_with_env(self, registry):
        assert registry.classify(content="#!/usr/bin/env python3\nprint(1)\n").id == "python"

    def test_shebang_with_env_flags(self, registry):
        assert registry.classify(content="#!/usr/bin/env -S node --harmony\n").id == "javascript"

    def test_shebang_direct_interpreter(self, registry):
        assert registry.classify(content="#!/bin/bash\necho hi\n").id == "shell"

    def test_keyword_heuristic(self, registry):
        """Two or more matching lines select the language."""
        content = "use std::io;\n\npub fn main() {\n    println!(\"hi\");\n}\n"
        assert registry.classify(content=content).id == "rust"

    def test_single_match_is_not_enough(self, registry):
        """One matching line is below the heuristic threshold."""
        assert registry.classify(content="def f():\n    pass\n").id == "text"

    def test_unknown_falls_back_to_plain_text(self, registry):
        """Unclassifiable content never raises."""
        profile = registry.classify(path="notes.unknownext", content="just words here")
        assert profile is PLAIN_TEXT
        assert profile.is_plain_text

    def test_no_signals_at_all(self, registry):
        assert registry.classify() is registry.fallback


class TestLanguageRegistry:
    """Tests for registry construction and immutability."""

    def test_profiles_mapping_is_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.profiles["cobol"] = PLAIN_TEXT  # type: ignore[index]

    def test_profiles_are_frozen(self, registry):
        with pytest.raises(AttributeError):
            registry.get("python").block_style = BlockStyle.NONE  # type: ignore[misc]

    def test_string_delimiters_sorted_longest_first(self, registry):
        """Triple quotes must be tried before single quotes."""
        assert registry.get("python").string_delimiters[0] in ('"""', "'''")

    def test_custom_registry(self):
        """New languages are added purely by declaring a profile."""
        lua = LanguageProfile(
            id="lua",
            extensions=frozenset({".lua"}),
            line_comments=("--",),
            block_comment=("--[[", "]]"),
            string_delimiters=('"', "'"),
        )
        custom = LanguageRegistry(profiles=[lua])
        assert custom.classify(path="init.lua") is lua
        assert custom.get("python") is None
        assert classify_language(path="init.lua", registry=custom) is lua

    def test_classify_language_uses_default_registry(self):
        assert classify_language(path="x.kt") is DEFAULT_REGISTRY.get("kotlin")
