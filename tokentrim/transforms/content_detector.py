"""Output kind detection for captured command output.

When the caller does not say what produced a buffer, this module guesses the
CommandOutputKind so the router can pick a transformer.

Detection order (first confident match wins):
- JSON: the whole buffer parses as a JSON object or array
- DIFF: unified diff headers
- LISTING: `ls -l` permission columns
- TEST: test runner result lines
- LINT: compiler/linter diagnostics
- GREP: file:line: matches
- LOG: log levels, timestamps, stack traces
- CODE: anything a language profile recognizes, and the fallback, since the
  code transformer degrades to whitespace normalization on plain text
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from ..config import CommandOutputKind
from ..languages import DEFAULT_REGISTRY, LanguageRegistry


@dataclass
class DetectionResult:
    """Result of output kind detection."""

    kind: CommandOutputKind
    confidence: float  # 0.0 to 1.0
    metadata: dict[str, Any] = field(default_factory=dict)  # e.g. language for code


# Lines inspected per detector
_SCAN_LINES = 200

# file:line: but not a leading timestamp (2024-01-15T10:00:00, [10:00:00])
_SEARCH_RESULT_PATTERN = re.compile(
    r"^(?!\[?\d{4}-\d{2}-\d{2}[T ]\d|\[?\d{1,2}:\d{2}:\d{2})[^\s:]+:\d+:"
)

_DIFF_HEADER_PATTERN = re.compile(
    r"^(diff --git |--- (?:a/|/dev/null)|\+\+\+ (?:b/|/dev/null)"
    r"|@@ -\d+(?:,\d+)? \+\d+(?:,\d+)? @@)"
)

_DIFF_CHANGE_PATTERN = re.compile(r"^[+-][^+-]")

_LISTING_PATTERN = re.compile(r"^[-dlcbps][-rwxsStT@+.]{9,}\s+\d+\s+")

_TEST_PATTERNS = [
    re.compile(r"^test \S+ \.\.\. (ok|FAILED|ignored)"),  # cargo test
    re.compile(r"^test result: "),
    re.compile(r"^\S+\.py::\S+ (PASSED|FAILED|ERROR|SKIPPED)"),  # pytest -v
    re.compile(r"^={3,} .*\b(passed|failed)\b.* ={3,}$"),
    re.compile(r"^\s*--- (PASS|FAIL|SKIP): "),  # go test
    re.compile(r"^(ok|FAIL)\s+\S+\s+[\d.]+s$"),
    re.compile(r"^\s*(PASS|FAIL)\s+\S+\.(test|spec)\.\w+"),  # jest
    re.compile(r"^Tests:\s+\d+"),
    re.compile(r"^\w+ \([\w.]+\)(?:\s.*?)? \.\.\. (ok|FAIL|ERROR)$"),  # unittest -v
    re.compile(r"^Ran \d+ tests? in "),
    re.compile(r"^(not )?ok \d+ "),  # TAP
]

_LINT_PATTERNS = [
    re.compile(r"^(warning|error)(\[[\w:]+\])?: "),
    re.compile(r"^\s*--> \S+:\d+:\d+"),
    re.compile(r"^\S+:\d+:\d+:\s*(warning|error):", re.IGNORECASE),
]

_LOG_PATTERNS = [
    re.compile(r"\b(ERROR|FAIL|FAILED|FATAL|CRITICAL)\b", re.IGNORECASE),
    re.compile(r"\b(WARN|WARNING)\b", re.IGNORECASE),
    re.compile(r"\b(INFO|DEBUG|TRACE)\b", re.IGNORECASE),
    re.compile(r"^\s*\[?\d{4}-\d{2}-\d{2}"),  # timestamp
    re.compile(r"^\s*\[\d{2}:\d{2}:\d{2}\]"),  # time format
    re.compile(r"^\s*(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d{1,2} \d{2}:"),
    re.compile(r"^npm ERR!|^yarn error"),  # build tools
    re.compile(r"Traceback \(most recent call last\)"),  # Python traceback
    re.compile(r"^\s*at\s+[\w.$<>]+\("),  # JS/Java stack trace
]


def detect_output_kind(
    content: str,
    registry: LanguageRegistry | None = None,
) -> DetectionResult:
    """Detect the kind of a captured output for routing.

    Args:
        content: The content to analyze.
        registry: Language registry used to recognize source code.

    Returns:
        DetectionResult with kind, confidence, and metadata.

    Examples:
        >>> detect_output_kind('{"id": 1}').kind
        <CommandOutputKind.JSON: 'json'>

        >>> detect_output_kind('src/main.py:42:def process():').kind
        <CommandOutputKind.GREP: 'grep'>
    """
    if not content or not content.strip():
        return DetectionResult(CommandOutputKind.CODE, 0.0, {"language": "text"})

    lines = [line for line in content.split("\n")[:_SCAN_LINES] if line.strip()]

    json_result = _try_detect_json(content)
    if json_result:
        return json_result

    for detector, threshold in (
        (_try_detect_diff, 0.7),
        (_try_detect_listing, 0.6),
        (_try_detect_test, 0.5),
        (_try_detect_lint, 0.5),
        (_try_detect_search, 0.6),
        (_try_detect_log, 0.5),
    ):
        result = detector(lines)
        if result and result.confidence >= threshold:
            return result

    profile = (registry or DEFAULT_REGISTRY).classify(content=content)
    confidence = 0.5 if profile.is_plain_text else 0.8
    return DetectionResult(CommandOutputKind.CODE, confidence, {"language": profile.id})


def _try_detect_json(content: str) -> DetectionResult | None:
    content = content.strip()
    if not content.startswith(("{", "[")):
        return None

    try:
        parsed = json.loads(content)
    except (RecursionError, ValueError):
        # JSONDecodeError, nesting too deep, or integers too long
        return None

    size = len(parsed) if isinstance(parsed, (list, dict)) else 0
    return DetectionResult(
        CommandOutputKind.JSON,
        1.0,
        {"top_level": type(parsed).__name__, "size": size},
    )


def _try_detect_diff(lines: list[str]) -> DetectionResult | None:
    """Try to detect unified diff format."""
    header_matches = sum(1 for line in lines if _DIFF_HEADER_PATTERN.match(line))
    if header_matches == 0:
        return None
    change_matches = sum(1 for line in lines if _DIFF_CHANGE_PATTERN.match(line))

    # High confidence if we see diff headers
    confidence = min(1.0, 0.5 + (header_matches * 0.2) + (change_matches * 0.05))
    return DetectionResult(
        CommandOutputKind.DIFF,
        confidence,
        {"header_matches": header_matches, "change_lines": change_matches},
    )


def _try_detect_listing(lines: list[str]) -> DetectionResult | None:
    """Try to detect `ls -l` output."""
    entries = sum(1 for line in lines if _LISTING_PATTERN.match(line))
    if entries == 0:
        return None
    candidates = sum(1 for line in lines if not line.startswith("total "))
    ratio = entries / max(candidates, 1)
    return DetectionResult(CommandOutputKind.LISTING, ratio, {"entries": entries})


def _try_detect_test(lines: list[str]) -> DetectionResult | None:
    """Try to detect test runner output."""
    result_lines = sum(1 for line in lines if any(p.match(line) for p in _TEST_PATTERNS))
    if result_lines == 0:
        return None
    ratio = result_lines / len(lines)
    confidence = min(1.0, 0.4 + (ratio * 0.6) + (result_lines * 0.05))
    return DetectionResult(CommandOutputKind.TEST, confidence, {"result_lines": result_lines})


def _try_detect_lint(lines: list[str]) -> DetectionResult | None:
    """Try to detect compiler/linter diagnostics."""
    headers = sum(1 for line in lines if any(p.match(line) for p in _LINT_PATTERNS))
    if headers == 0:
        return None
    confidence = min(1.0, 0.4 + (headers * 0.1))
    return DetectionResult(CommandOutputKind.LINT, confidence, {"diagnostic_lines": headers})


def _try_detect_search(lines: list[str]) -> DetectionResult | None:
    """Try to detect grep/ripgrep search results."""
    matching_lines = sum(1 for line in lines if _SEARCH_RESULT_PATTERN.match(line))
    if matching_lines == 0:
        return None

    ratio = matching_lines / len(lines)

    # Need at least 30% of lines to match the pattern
    if ratio < 0.3:
        return None

    confidence = min(1.0, 0.4 + (ratio * 0.6))
    return DetectionResult(
        CommandOutputKind.GREP,
        confidence,
        {"matching_lines": matching_lines, "total_lines": len(lines)},
    )


def _try_detect_log(lines: list[str]) -> DetectionResult | None:
    """Try to detect log output."""
    pattern_matches = 0
    error_matches = 0

    for line in lines:
        for i, pattern in enumerate(_LOG_PATTERNS):
            if pattern.search(line):
                pattern_matches += 1
                if i < 2:  # ERROR or WARN patterns
                    error_matches += 1
                break  # One pattern per line is enough

    if pattern_matches == 0:
        return None

    ratio = pattern_matches / len(lines)

    # Need at least 10% of lines to match log patterns
    if ratio < 0.1:
        return None

    confidence = min(1.0, 0.3 + (ratio * 0.5) + (error_matches * 0.05))
    return DetectionResult(
        CommandOutputKind.LOG,
        confidence,
        {
            "pattern_matches": pattern_matches,
            "error_matches": error_matches,
            "total_lines": len(lines),
        },
    )
