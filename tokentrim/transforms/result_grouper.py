"""Result grouper for search matches, test outcomes and lint diagnostics.

All three outputs are lists of records that belong to a file (or module, or
lint rule). Grouping them by that key, keeping first-seen order, and bounding
how many records each group shows removes most of the volume while keeping
the shape of the result.

Search results (grep, ripgrep, ag):
    src/utils.py:42:def process_data(items):
    src/utils.py:43:    \"\"\"Process items with validation.\"\"\"
  become
    2 matches in 1 file
    src/utils.py (2)
      42: def process_data(items):
      43: \"\"\"Process items with validation.\"\"\"

Test results (pytest, cargo test, go test, jest, unittest, TAP): records are
partitioned into passed/failed/skipped. Non-verbose output shows only the
failing records plus an aggregate count line. Failing records and
failure-marker lines are never truncated.

Lint diagnostics (rustc/clippy, gcc/clang, eslint unix format): grouped by
rule, with a bounded number of locations per rule.

Every truncation emits an explicit `+N more` marker with the true count.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, TypeVar

from ..config import CommandOutputKind, CompressionResult, require_non_negative
from .base import CompressionRequest, OutputTransform

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TestStatus(str, Enum):
    """Outcome of one test record."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def mark(self) -> str:
        return {"passed": "✓", "failed": "✗", "skipped": "○"}[self.value]


@dataclass
class SearchMatch:
    """A single search match."""

    file: str
    line_number: int | None
    content: str


@dataclass
class TestRecord:
    """A single test outcome."""

    key: str  # File, module or package the test belongs to
    name: str
    status: TestStatus
    message: str = ""


@dataclass
class LintDiagnostic:
    """A single compiler/linter diagnostic."""

    rule: str
    severity: str  # "error" or "warning"
    message: str
    locations: list[str] = field(default_factory=list)


@dataclass
class ResultGrouperConfig:
    """Configuration for result grouping."""

    # Search results
    max_matches_per_file: int = 10
    max_files: int | None = 50
    max_line_length: int = 200

    # Test results
    max_passed_per_file: int = 10  # Verbose mode only
    max_failure_detail_lines: int = 30

    # Lint diagnostics
    max_locations_per_rule: int = 3
    max_rules: int | None = 30

    def __post_init__(self) -> None:
        require_non_negative(
            "results",
            max_matches_per_file=self.max_matches_per_file,
            max_files=self.max_files,
            max_line_length=self.max_line_length,
            max_passed_per_file=self.max_passed_per_file,
            max_failure_detail_lines=self.max_failure_detail_lines,
            max_locations_per_rule=self.max_locations_per_rule,
            max_rules=self.max_rules,
        )


def group_by(records: Iterable[T], key: Callable[[T], str]) -> dict[str, list[T]]:
    """Group records by key, preserving first-seen key order and record order."""
    groups: dict[str, list[T]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def take(items: list[T], limit: int | None) -> tuple[list[T], int]:
    """Split a list into (shown, number hidden)."""
    if limit is None or len(items) <= limit:
        return items, 0
    return items[:limit], len(items) - limit


def _plural(count: int, noun: str, plural: str | None = None) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {plural or noun + 's'}"


# Lines that carry a failure signal in any test runner's output
_FAILURE_MARKER = re.compile(
    r"(\b(?:FAIL|FAILED|FAILURE|ERROR|panicked|Traceback|AssertionError|assert(?:ion)?)\b"
    r"|\berror(?:\[\w+\])?:|\bError:|\bpanic:|\bfatal error:|^E\s{2,}|^\s*●)"
)


class SearchResultGrouper(OutputTransform):
    """Groups grep/ripgrep matches by file.

    Example:
        >>> grouper = SearchResultGrouper()
        >>> result = grouper.compress(rg_output, CompressionRequest())
        >>> print(result.compressed)
    """

    kind = CommandOutputKind.GREP
    name = "grep"

    # file:line:content (grep -n, rg --no-heading)
    _GREP_PATTERN = re.compile(r"^([^:\n]+):(\d+):(.*)$")

    # file:content (grep without -n); the path must look like a path
    _GREP_NO_LINE_PATTERN = re.compile(r"^((?:[^\s:]*/)?[^\s:/]+\.\w+|[^\s:]*/[^\s:]+):(.*)$")

    # line:content under a heading (rg --heading)
    _HEADING_MATCH_PATTERN = re.compile(r"^(\d+)[:-](.*)$")
    _HEADING_PATTERN = re.compile(
        r"^(?:\./)?(?:[\w.-]+/)*[\w-][\w.-]*\.\w+$|^(?:\./)?[\w.-]+(?:/[\w.-]+)+/?$"
    )

    def __init__(self, config: ResultGrouperConfig | None = None):
        self.config = config or ResultGrouperConfig()

    def compress(self, content: str, request: CompressionRequest) -> CompressionResult:
        matches, unparsed = self.parse(content)
        groups = group_by(matches, lambda m: m.file)

        lines: list[str] = [
            f"{_plural(len(matches), 'match', 'matches')} in {_plural(len(groups), 'file')}"
        ]
        shown_files, hidden_files = take(list(groups), self.config.max_files)
        hidden_matches = 0

        for file in shown_files:
            file_matches = groups[file]
            lines.append(f"{file} ({len(file_matches)})")
            shown, hidden = take(file_matches, self.config.max_matches_per_file)
            for match in shown:
                text = self._clip(match.content.strip())
                prefix = f"{match.line_number}: " if match.line_number is not None else ""
                lines.append(f"  {prefix}{text}")
            if hidden:
                lines.append(f"  +{hidden} more")
                hidden_matches += hidden

        if hidden_files:
            rest = list(groups)[len(shown_files) :]
            rest_matches = sum(len(groups[f]) for f in rest)
            lines.append(f"+{hidden_files} more files ({rest_matches} matches)")
            hidden_matches += rest_matches

        lines.extend(unparsed)
        logger.debug("Grouped %d matches into %d files", len(matches), len(groups))

        return self._result(
            content,
            "\n".join(lines),
            elided_items=hidden_matches,
            matches=len(matches),
            files=len(groups),
        )

    def parse(self, content: str) -> tuple[list[SearchMatch], list[str]]:
        """Parse search output into matches plus lines that did not parse."""
        matches: list[SearchMatch] = []
        unparsed: list[str] = []
        heading: str | None = None

        for raw in content.splitlines():
            line = raw.rstrip()
            if not line.strip():
                heading = None
                continue
            if line == "--":
                continue

            if heading is not None:
                under = self._HEADING_MATCH_PATTERN.match(line)
                if under:
                    matches.append(SearchMatch(heading, int(under.group(1)), under.group(2)))
                    continue

            found = self._GREP_PATTERN.match(line)
            if found:
                file_path, line_num, text = found.groups()
                matches.append(SearchMatch(file_path, int(line_num), text))
                heading = None
                continue

            found = self._GREP_NO_LINE_PATTERN.match(line)
            if found:
                matches.append(SearchMatch(found.group(1), None, found.group(2)))
                heading = None
                continue

            if self._HEADING_PATTERN.match(line):
                heading = line[2:] if line.startswith("./") else line
                continue

            unparsed.append(line)

        return matches, unparsed

    def _clip(self, text: str) -> str:
        limit = self.config.max_line_length
        if limit and len(text) > limit:
            return text[:limit] + "…"
        return text


@dataclass
class _TestRun:
    """Everything parsed out of one test runner output."""

    records: list[TestRecord] = field(default_factory=list)
    details: list[list[str]] = field(default_factory=list)
    summaries: list[str] = field(default_factory=list)
    stray_failures: list[str] = field(default_factory=list)


class TestResultGrouper(OutputTransform):
    """Groups test outcomes by file and keeps every failure.

    Example:
        >>> grouper = TestResultGrouper()
        >>> result = grouper.compress(cargo_test_output, CompressionRequest())
        >>> print(result.compressed)  # Failures + "15 passed, 1 failed"
    """

    kind = CommandOutputKind.TEST
    name = "test"
    __test__ = False  # Not a pytest test class

    # pytest -v: tests/test_api.py::TestLogin::test_ok PASSED [ 10%]
    _PYTEST_VERBOSE = re.compile(
        r"^(\S+?\.py)::(\S+)\s+(PASSED|FAILED|ERROR|SKIPPED|XFAIL|XPASS)\b"
    )
    # pytest short summary: FAILED tests/test_api.py::test_login - AssertionError
    _PYTEST_SUMMARY = re.compile(r"^(FAILED|ERROR)\s+(\S+?\.py)::(\S+)(?:\s+-\s+(.*))?$")
    # pytest progress: tests/test_api.py ..F.s [ 40%]
    _PYTEST_PROGRESS = re.compile(r"^(\S+\.py) ([.FEsxX]+)(?:\s+\[\s*\d+%\])?$")
    # pytest failure section header: ____ test_login ____
    _PYTEST_SECTION = re.compile(r"^_{3,} (.+?) _{3,}$")

    # cargo test: test foo::tests::bar ... ok
    _CARGO_TEST = re.compile(r"^test (\S+) \.\.\. (ok|FAILED|ignored)\b")
    _CARGO_FAILURE_SECTION = re.compile(r"^---- (\S+) stdout ----$")

    # go test: --- FAIL: TestParse (0.00s)
    _GO_TEST = re.compile(r"^\s*--- (PASS|FAIL|SKIP): (\S+)")
    _GO_PACKAGE = re.compile(r"^(ok|FAIL)\s+(\S+)\s+(?:[\d.]+s|\(cached\))")

    # jest: PASS src/a.test.js / ✓ renders (5 ms)
    _JEST_SUITE = re.compile(r"^\s*(PASS|FAIL)\s+(\S+\.\w+)")
    _JEST_TEST = re.compile(r"^\s*(✓|√|✕|×|○)\s+(.+?)(?:\s+\(\d+(?:\.\d+)?\s*m?s\))?$")
    _JEST_FAILURE_SECTION = re.compile(r"^\s*● (.+)$")

    # unittest -v: test_parse (tests.test_x.ParserTest) ... ok
    _UNITTEST_VERBOSE = re.compile(
        r"^(\w+) \(([\w.]+)\)(?:\s.*?)? \.\.\. (ok|FAIL|ERROR|skipped.*)$"
    )
    _UNITTEST_FAILURE_SECTION = re.compile(r"^(?:FAIL|ERROR): (\w+) \(([\w.]+)\)")

    # TAP: ok 1 - name / not ok 2 - name # SKIP
    _TAP = re.compile(r"^(ok|not ok) \d+(?: -)?\s*(.*?)(\s+#\s*(?:SKIP|TODO).*)?$", re.IGNORECASE)

    # Lines kept verbatim as the runner's own summary
    _SUMMARY_PATTERNS = [
        re.compile(r"^test result:"),
        re.compile(r"^={3,} .*\b(?:passed|failed|errors?|skipped|no tests ran)\b.* ={3,}$"),
        re.compile(r"^(?:Tests|Test Suites|Snapshots):\s+"),
        re.compile(r"^Ran \d+ tests? in"),
        re.compile(r"^(?:OK|FAILED)(?: \(.*\))?$"),
        re.compile(r"^# (?:tests|pass|fail|skip) \d+"),
    ]

    # Lines that end a failure detail block
    _DETAIL_END = re.compile(r"^(?:={3,}|-{20,}|failures:$|test result:)")

    _NOISE = re.compile(
        r"^\s*(?:Compiling|Downloading|Downloaded|Finished|Running|Doc-tests|running \d+ tests?"
        r"|=== (?:RUN|PAUSE|CONT)|collected \d+ items?|platform |rootdir:|plugins:|cachedir:)"
    )

    def __init__(self, config: ResultGrouperConfig | None = None):
        self.config = config or ResultGrouperConfig()

    def compress(self, content: str, request: CompressionRequest) -> CompressionResult:
        run = self.parse(content)
        records = run.records

        failed = [r for r in records if r.status is TestStatus.FAILED]
        passed = sum(1 for r in records if r.status is TestStatus.PASSED)
        skipped = sum(1 for r in records if r.status is TestStatus.SKIPPED)

        output: list[str] = []
        hidden_total = 0

        if failed:
            output.append(f"FAILED: {len(failed)} of {len(records)} tests")

        shown_records = [r for r in records if r.name] if request.verbose else failed
        for key, group in group_by(shown_records, lambda r: r.key).items():
            output.append(key)
            failing = [r for r in group if r.status is TestStatus.FAILED]
            others = [r for r in group if r.status is not TestStatus.FAILED]
            shown_others, hidden = take(others, self.config.max_passed_per_file)
            keep = {id(r) for r in failing} | {id(r) for r in shown_others}
            for record in group:
                if id(record) in keep:
                    message = f" - {record.message}" if record.message else ""
                    output.append(f"  {record.status.mark} {record.name}{message}")
            if hidden:
                output.append(f"  +{hidden} more")
                hidden_total += hidden

        for block in run.details:
            rendered, hidden = self._truncate_detail(block)
            output.append("")
            output.extend(rendered)
            hidden_total += hidden

        if run.stray_failures:
            output.append("")
            output.extend(run.stray_failures)

        if records or not run.summaries:
            output.append("")
            output.append(f"{passed} passed, {len(failed)} failed, {skipped} skipped")
        output.extend(run.summaries)

        compressed = "\n".join(output).strip("\n")
        if not request.verbose:
            hidden_total += len(records) - len(failed)

        logger.debug(
            "Test results: %d records, %d failed, %d detail blocks",
            len(records),
            len(failed),
            len(run.details),
        )
        return self._result(
            content,
            compressed,
            elided_items=hidden_total,
            passed=passed,
            failed=len(failed),
            skipped=skipped,
        )

    def parse(self, content: str) -> _TestRun:
        """Parse runner output into records, failure details and summaries."""
        run = _TestRun()
        seen: dict[tuple[str, str], TestRecord] = {}
        pending_go: list[TestRecord] = []
        progress_failures: dict[str, int] = {}
        jest_suite: str | None = None
        jest_suite_failed = False
        detail: list[str] | None = None
        go_record: TestRecord | None = None

        def add(record: TestRecord) -> TestRecord:
            existing = seen.get((record.key, record.name))
            if existing is not None:
                if record.status is TestStatus.FAILED:
                    existing.status = TestStatus.FAILED
                if record.message and not existing.message:
                    existing.message = record.message
                return existing
            seen[(record.key, record.name)] = record
            run.records.append(record)
            return record

        def close_jest_suite() -> None:
            if jest_suite and jest_suite_failed and not any(
                r.key == jest_suite and r.status is TestStatus.FAILED for r in run.records
            ):
                add(TestRecord(jest_suite, "(suite)", TestStatus.FAILED))

        for raw in content.splitlines():
            line = raw.rstrip()

            if detail is not None:
                if len(detail) == 1 and re.match(r"^-{20,}$", line):
                    detail.append(line)
                    continue
                if (
                    self._is_detail_start(line)
                    or self._DETAIL_END.match(line)
                    or self._is_summary(line)
                ):
                    run.details.append(detail)
                    detail = None
                elif line.strip() or detail[-1].strip():
                    detail.append(line)
                    continue
                else:
                    continue

            if not line.strip():
                go_record = None
                continue

            if self._is_summary(line):
                run.summaries.append(line)
                continue

            if self._is_detail_start(line):
                detail = [line]
                continue

            if self._NOISE.match(line):
                continue

            match = self._PYTEST_SUMMARY.match(line)
            if match:
                file, name, message = match.group(2), match.group(3), match.group(4) or ""
                add(TestRecord(file, name, TestStatus.FAILED, message))
                continue

            match = self._PYTEST_VERBOSE.match(line)
            if match:
                add(TestRecord(match.group(1), match.group(2), _pytest_status(match.group(3))))
                continue

            match = self._PYTEST_PROGRESS.match(line)
            if match:
                file, marks = match.groups()
                for mark in marks:
                    if mark in "FE":
                        progress_failures[file] = progress_failures.get(file, 0) + 1
                    else:
                        status = TestStatus.PASSED if mark in ".X" else TestStatus.SKIPPED
                        run.records.append(TestRecord(file, "", status))
                continue

            match = self._CARGO_TEST.match(line)
            if match:
                name, outcome = match.groups()
                module, _, _ = name.rpartition("::")
                add(TestRecord(module or "(crate)", name, _cargo_status(outcome)))
                continue

            match = self._GO_TEST.match(line)
            if match:
                outcome, name = match.groups()
                go_record = TestRecord("", name, _go_status(outcome))
                pending_go.append(go_record)
                continue

            match = self._GO_PACKAGE.match(line)
            if match:
                for record in pending_go:
                    record.key = match.group(2)
                    add(record)
                pending_go = []
                run.summaries.append(line)
                continue

            match = self._JEST_SUITE.match(line)
            if match:
                close_jest_suite()
                jest_suite = match.group(2)
                jest_suite_failed = match.group(1) == "FAIL"
                continue

            match = self._JEST_TEST.match(line)
            if match and jest_suite is not None:
                add(TestRecord(jest_suite, match.group(2), _jest_status(match.group(1))))
                continue

            match = self._UNITTEST_VERBOSE.match(line)
            if match:
                name, key, outcome = match.groups()
                add(TestRecord(key, name, _unittest_status(outcome)))
                continue

            match = self._TAP.match(line)
            if match:
                outcome, name, directive = match.groups()
                if directive:
                    status = TestStatus.SKIPPED
                else:
                    status = TestStatus.PASSED if outcome.lower() == "ok" else TestStatus.FAILED
                add(TestRecord("tap", name or "(unnamed)", status))
                continue

            # go test failure output is indented under its --- FAIL line
            in_go_failure = go_record is not None and go_record.status is TestStatus.FAILED
            if in_go_failure and raw[:1].isspace():
                run.stray_failures.append(line)
                continue

            if _FAILURE_MARKER.search(line):
                run.stray_failures.append(line)

        if detail is not None:
            run.details.append(detail)
        close_jest_suite()
        for record in pending_go:
            record.key = record.key or "go"
            add(record)

        for file, count in progress_failures.items():
            named = sum(1 for r in run.records if r.key == file and r.status is TestStatus.FAILED)
            for index in range(named, count):
                run.records.append(TestRecord(file, f"(failure {index + 1})", TestStatus.FAILED))

        return run

    def _is_summary(self, line: str) -> bool:
        return any(pattern.match(line) for pattern in self._SUMMARY_PATTERNS)

    def _is_detail_start(self, line: str) -> bool:
        return bool(
            self._CARGO_FAILURE_SECTION.match(line)
            or self._PYTEST_SECTION.match(line)
            or self._JEST_FAILURE_SECTION.match(line)
            or self._UNITTEST_FAILURE_SECTION.match(line)
        )

    def _truncate_detail(self, block: list[str]) -> tuple[list[str], int]:
        """Bound a failure detail block without dropping failure markers."""
        while block and not block[-1].strip():
            block = block[:-1]
        limit = self.config.max_failure_detail_lines
        if len(block) <= limit:
            return block, 0

        rendered = block[:limit]
        run = 0
        omitted = 0
        for line in block[limit:]:
            if not _FAILURE_MARKER.search(line):
                run += 1
                continue
            if run:
                rendered.append(f"  … {run} more lines")
                omitted += run
                run = 0
            rendered.append(line)
        if run:
            rendered.append(f"  … {run} more lines")
            omitted += run
        return rendered, omitted


def _pytest_status(outcome: str) -> TestStatus:
    if outcome in ("FAILED", "ERROR"):
        return TestStatus.FAILED
    if outcome in ("SKIPPED", "XFAIL"):
        return TestStatus.SKIPPED
    return TestStatus.PASSED


def _cargo_status(outcome: str) -> TestStatus:
    return {"ok": TestStatus.PASSED, "FAILED": TestStatus.FAILED}.get(outcome, TestStatus.SKIPPED)


def _go_status(outcome: str) -> TestStatus:
    return {"PASS": TestStatus.PASSED, "FAIL": TestStatus.FAILED}.get(outcome, TestStatus.SKIPPED)


def _jest_status(mark: str) -> TestStatus:
    if mark in ("✓", "√"):
        return TestStatus.PASSED
    if mark == "○":
        return TestStatus.SKIPPED
    return TestStatus.FAILED


def _unittest_status(outcome: str) -> TestStatus:
    if outcome == "ok":
        return TestStatus.PASSED
    if outcome.startswith("skipped"):
        return TestStatus.SKIPPED
    return TestStatus.FAILED


class LintResultGrouper(OutputTransform):
    """Groups compiler and linter diagnostics by rule.

    Example:
        >>> grouper = LintResultGrouper()
        >>> result = grouper.compress(clippy_output, CompressionRequest())
        >>> print(result.compressed)
        lint: 0 errors, 12 warnings
          warning clippy::needless_return (12x): unneeded `return` statement
            src/main.rs:10:5
            ...
    """

    kind = CommandOutputKind.LINT
    name = "lint"

    # rustc/clippy: warning: unused variable: `x` / error[E0308]: mismatched types
    _RUST_HEADER = re.compile(r"^(warning|error)(?:\[([\w:]+)\])?: (.+)$")
    _RUST_LOCATION = re.compile(r"^\s*--> (\S+)")
    # note: `#[warn(clippy::needless_return)]` on by default
    _RUST_LINT_NOTE = re.compile(r"#\[(?:warn|deny)\(([\w:]+)\)\]")

    # gcc/clang/eslint unix: src/a.c:10:5: warning: unused variable 'x' [-Wunused-variable]
    _UNIX_DIAGNOSTIC = re.compile(
        r"^(\S+?:\d+(?::\d+)?):\s*(warning|error)\s*:\s*(.+?)(?:\s+\[([^\]]+)\])?$",
        re.IGNORECASE,
    )

    # Aggregates the tool prints on its own
    _SKIP = re.compile(
        r"^(?:warning|error): (?:`[^`]+` \(.+\) generated \d+|aborting due to|could not compile"
        r"|build failed)|^\S+ generated \d+ warnings?"
    )
    _COMPILING = re.compile(r"^\s*(?:Compiling|Checking)\s+\S+")

    def __init__(self, config: ResultGrouperConfig | None = None):
        self.config = config or ResultGrouperConfig()

    def compress(self, content: str, request: CompressionRequest) -> CompressionResult:
        diagnostics, compiled = self.parse(content)
        errors = sum(1 for d in diagnostics if d.severity == "error")
        warnings = len(diagnostics) - errors

        if not diagnostics:
            return self._result(content, "lint: no issues found", compiled=compiled)

        header = f"lint: {_plural(errors, 'error')}, {_plural(warnings, 'warning')}"
        if compiled:
            header += f" ({_plural(compiled, 'crate')} compiled)"
        output = [header]

        groups = group_by(diagnostics, lambda d: f"{d.severity} {d.rule}")
        # Error groups are never cut by max_rules
        error_keys = [k for k in groups if k.startswith("error ")]
        warning_keys = [k for k in groups if not k.startswith("error ")]
        limit = self.config.max_rules
        shown_warnings, hidden_rules = take(
            warning_keys, None if limit is None else max(0, limit - len(error_keys))
        )
        shown_keys = [k for k in groups if k in error_keys or k in shown_warnings]

        hidden_total = 0
        for key in shown_keys:
            group = groups[key]
            output.append(f"  {key} ({len(group)}x): {group[0].message}")
            locations = [loc for d in group for loc in d.locations]
            shown, hidden = take(locations, self.config.max_locations_per_rule)
            output.extend(f"    {loc}" for loc in shown)
            if hidden:
                output.append(f"    +{hidden} more")
                hidden_total += hidden

        if hidden_rules:
            rest = warning_keys[len(shown_warnings) :]
            rest_count = sum(len(groups[k]) for k in rest)
            output.append(f"  +{hidden_rules} more rules ({rest_count} diagnostics)")
            hidden_total += rest_count

        logger.debug("Lint: %d diagnostics in %d rules", len(diagnostics), len(groups))
        return self._result(
            content,
            "\n".join(output),
            elided_items=hidden_total,
            errors=errors,
            warnings=warnings,
            rules=len(groups),
        )

    def parse(self, content: str) -> tuple[list[LintDiagnostic], int]:
        """Parse diagnostics; also count crates the build compiled."""
        diagnostics: list[LintDiagnostic] = []
        current: LintDiagnostic | None = None
        compiled = 0
        # rustc prints the `#[warn(rule)]` note only on a rule's first diagnostic
        rules_by_message: dict[str, str] = {}

        for raw in content.splitlines():
            line = raw.rstrip()

            if self._COMPILING.match(line):
                compiled += 1
                continue
            if self._SKIP.match(line):
                current = None
                continue

            match = self._UNIX_DIAGNOSTIC.match(line)
            if match:
                location, severity, message, rule = match.groups()
                diagnostics.append(
                    LintDiagnostic(
                        rule=rule or _rule_from_message(message),
                        severity=severity.lower(),
                        message=message,
                        locations=[location],
                    )
                )
                current = None
                continue

            match = self._RUST_HEADER.match(line)
            if match:
                severity, code, message = match.groups()
                current = LintDiagnostic(
                    rule=code or _rule_from_message(message),
                    severity=severity,
                    message=message,
                )
                diagnostics.append(current)
                continue

            if current is None:
                continue

            match = self._RUST_LOCATION.match(line)
            if match:
                current.locations.append(match.group(1))
                continue

            match = self._RUST_LINT_NOTE.search(line)
            if match and current.rule == _rule_from_message(current.message):
                current.rule = match.group(1)
                rules_by_message.setdefault(current.message, current.rule)

        for diagnostic in diagnostics:
            if diagnostic.rule == _rule_from_message(diagnostic.message):
                diagnostic.rule = rules_by_message.get(diagnostic.message, diagnostic.rule)

        return diagnostics, compiled


def _rule_from_message(message: str) -> str:
    """Fallback rule: a trailing `[rule]`, else the message up to its first detail."""
    if message.endswith("]") and "[" in message:
        return message[message.rfind("[") + 1 : -1]
    return re.split(r"[:`'\"(]", message, maxsplit=1)[0].strip() or message
