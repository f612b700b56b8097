"""Diff compactor for unified diff output.

Compresses `git diff` / `diff -u` output to one summary line per file, or to
a trimmed view of each hunk in detail mode. Typical compression: 10-50x.

Supported formats:
- git diff (diff --git headers, mode/rename/binary extended headers)
- plain unified diff (--- / +++ headers only)

Default output (one line per file, original file order):
    src/main.rs +10 -2 (modified)
    src/old.rs +0 -5 (deleted)
    docs/a.md -> docs/b.md +1 -1 (renamed)
    assets/logo.png (binary, modified)
    4 files changed, +11 -8

Detail mode additionally lists each hunk with up to `context_lines`
unchanged lines around every change; unchanged runs that are not shown are
replaced by a `… N unchanged lines …` marker carrying the true count.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from ..config import CommandOutputKind, CompressionResult, require_non_negative
from ..exceptions import MalformedInputError
from .base import CompressionRequest, OutputTransform

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """What happened to a file."""

    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"


@dataclass
class DiffHunk:
    """A single hunk within a file's diff."""

    header: str  # @@ -start,count +start,count @@ optional function
    lines: list[str] = field(default_factory=list)
    additions: int = 0
    deletions: int = 0


@dataclass
class DiffFile:
    """One file's section of a diff."""

    path: str
    old_path: str | None = None
    hunks: list[DiffHunk] = field(default_factory=list)
    is_binary: bool = False
    is_new_file: bool = False
    is_deleted_file: bool = False
    is_renamed: bool = False
    body: list[str] | None = None  # Rendered detail lines, when requested

    @property
    def additions(self) -> int:
        return sum(h.additions for h in self.hunks)

    @property
    def deletions(self) -> int:
        return sum(h.deletions for h in self.hunks)

    @property
    def change_kind(self) -> ChangeKind:
        if self.is_new_file:
            return ChangeKind.ADDED
        if self.is_deleted_file:
            return ChangeKind.DELETED
        if self.is_renamed:
            return ChangeKind.RENAMED
        return ChangeKind.MODIFIED

    @property
    def display_path(self) -> str:
        if self.is_renamed and self.old_path and self.old_path != self.path:
            return f"{self.old_path} -> {self.path}"
        return self.path


@dataclass
class DiffCompressorConfig:
    """Configuration for diff compaction."""

    # Detail mode (hunk bodies) instead of one line per file
    detail: bool = False

    # Unchanged lines kept before/after each change in detail mode
    context_lines: int = 3

    # Interior unchanged runs longer than this collapse into a marker
    collapse_threshold: int = 6

    # Upper bound on rendered body lines per file in detail mode
    max_detail_lines_per_file: int = 200

    def __post_init__(self) -> None:
        require_non_negative(
            "diff",
            context_lines=self.context_lines,
            collapse_threshold=self.collapse_threshold,
            max_detail_lines_per_file=self.max_detail_lines_per_file,
        )


class DiffCompressor(OutputTransform):
    """Compacts unified diff output.

    Example:
        >>> compressor = DiffCompressor()
        >>> result = compressor.compress(git_diff_output, CompressionRequest())
        >>> print(result.compressed)  # One summary line per file
    """

    kind = CommandOutputKind.DIFF
    name = "diff"

    # Pattern for diff --git header
    _DIFF_GIT_PATTERN = re.compile(r"^diff --git a/(.+) b/(.+)$")

    # Pattern for --- a/file or --- /dev/null (optional timestamp after a tab)
    _OLD_FILE_PATTERN = re.compile(r"^--- (?:a/)?([^\t]+)(?:\t.*)?$")

    # Pattern for +++ b/file or +++ /dev/null
    _NEW_FILE_PATTERN = re.compile(r"^\+\+\+ (?:b/)?([^\t]+)(?:\t.*)?$")

    # Pattern for hunk header @@ -start,count +start,count @@ optional context
    _HUNK_HEADER_PATTERN = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")

    # Pattern for binary file indication
    _BINARY_PATTERN = re.compile(r"^(?:Binary files .+ differ|GIT binary patch)$")

    _NEW_FILE_MODE_PATTERN = re.compile(r"^new file mode")
    _DELETED_FILE_MODE_PATTERN = re.compile(r"^deleted file mode")
    _RENAME_FROM_PATTERN = re.compile(r"^(?:rename|copy) from (.+)$")
    _RENAME_TO_PATTERN = re.compile(r"^(?:rename|copy) to (.+)$")

    _DEV_NULL = "/dev/null"

    def __init__(self, config: DiffCompressorConfig | None = None):
        """Initialize diff compactor.

        Args:
            config: Compaction configuration.
        """
        self.config = config or DiffCompressorConfig()

    def compress(self, content: str, request: CompressionRequest) -> CompressionResult:
        """Compact diff output.

        Args:
            content: Raw diff output.
            request: Invocation parameters; `request.detail` enables detail mode.

        Returns:
            CompressionResult with one summary line per file.

        Raises:
            MalformedInputError: If non-empty input has no file header.
        """
        if not content.strip():
            return self._result(content, "", files=0)

        lines = content.split("\n")
        diff_files = self._parse_diff(lines)
        if not diff_files:
            raise MalformedInputError(
                "No unified diff file header found",
                kind=self.kind.value,
                details={"first_line": lines[0][:80]},
            )

        detail = self.config.detail or request.detail
        omitted = 0
        if detail:
            for diff_file in diff_files:
                omitted += self._render_body(diff_file)

        compressed = self._format_output(diff_files, detail)
        logger.debug("Diff compacted: %d files, detail=%s", len(diff_files), detail)

        return self._result(
            content,
            compressed,
            elided_items=omitted if detail else sum(len(f.hunks) for f in diff_files),
            files=len(diff_files),
            additions=sum(f.additions for f in diff_files),
            deletions=sum(f.deletions for f in diff_files),
        )

    def _parse_diff(self, lines: list[str]) -> list[DiffFile]:
        """Parse diff content into per-file sections.

        Args:
            lines: Lines of diff content.

        Returns:
            List of DiffFile objects in input order.
        """
        diff_files: list[DiffFile] = []
        current_file: DiffFile | None = None
        current_hunk: DiffHunk | None = None
        # Remaining old/new line counts of the open hunk
        old_left = new_left = 0

        def close_hunk() -> None:
            nonlocal current_hunk
            if current_hunk is not None and current_file is not None:
                current_file.hunks.append(current_hunk)
            current_hunk = None

        i = 0
        while i < len(lines):
            line = lines[i]

            in_hunk = current_hunk is not None and (old_left > 0 or new_left > 0)
            if in_hunk:
                assert current_hunk is not None
                if line.startswith("+"):
                    current_hunk.additions += 1
                    new_left -= 1
                elif line.startswith("-"):
                    current_hunk.deletions += 1
                    old_left -= 1
                elif line.startswith(" ") or line == "":
                    old_left -= 1
                    new_left -= 1
                elif line.startswith("\\"):
                    pass  # "\ No newline at end of file"
                else:
                    old_left = new_left = 0
                    continue  # Reprocess as a header line
                current_hunk.lines.append(line)
                i += 1
                continue

            git_header = self._DIFF_GIT_PATTERN.match(line)
            if git_header:
                close_hunk()
                current_file = DiffFile(path=git_header.group(2), old_path=git_header.group(1))
                diff_files.append(current_file)
                i += 1
                continue

            old_header = self._OLD_FILE_PATTERN.match(line)
            if old_header and i + 1 < len(lines) and self._NEW_FILE_PATTERN.match(lines[i + 1]):
                close_hunk()
                new_header = self._NEW_FILE_PATTERN.match(lines[i + 1])
                assert new_header is not None
                old_path = old_header.group(1).strip()
                new_path = new_header.group(1).strip()
                if current_file is None or current_file.hunks:
                    # Plain unified diff: the ---/+++ pair opens the section
                    current_file = DiffFile(path=new_path, old_path=old_path)
                    diff_files.append(current_file)
                if old_path == self._DEV_NULL:
                    current_file.is_new_file = True
                if new_path == self._DEV_NULL:
                    current_file.is_deleted_file = True
                    current_file.path = old_path
                else:
                    current_file.path = new_path
                i += 2
                continue

            hunk_header = self._HUNK_HEADER_PATTERN.match(line)
            if hunk_header and current_file is not None:
                close_hunk()
                current_hunk = DiffHunk(header=line)
                old_left = int(hunk_header.group(2) or 1)
                new_left = int(hunk_header.group(4) or 1)
                i += 1
                continue

            if current_file is not None:
                self._apply_extended_header(current_file, line)

            i += 1

        close_hunk()
        return diff_files

    def _apply_extended_header(self, diff_file: DiffFile, line: str) -> None:
        if self._NEW_FILE_MODE_PATTERN.match(line):
            diff_file.is_new_file = True
        elif self._DELETED_FILE_MODE_PATTERN.match(line):
            diff_file.is_deleted_file = True
        elif self._BINARY_PATTERN.match(line):
            diff_file.is_binary = True
        else:
            rename_from = self._RENAME_FROM_PATTERN.match(line)
            rename_to = self._RENAME_TO_PATTERN.match(line)
            if rename_from:
                diff_file.is_renamed = True
                diff_file.old_path = rename_from.group(1)
            elif rename_to:
                diff_file.is_renamed = True
                diff_file.path = rename_to.group(1)

    def _render_body(self, diff_file: DiffFile) -> int:
        """Render detail lines for one file.

        Returns:
            Number of unchanged or overflow lines replaced by markers.
        """
        if diff_file.is_binary:
            diff_file.body = []
            return 0

        body: list[str] = []
        omitted = 0
        for hunk in diff_file.hunks:
            body.append(hunk.header)
            rendered, hidden = self._reduce_context(hunk)
            body.extend(rendered)
            omitted += hidden

        limit = self.config.max_detail_lines_per_file
        if len(body) > limit:
            overflow = len(body) - limit
            body = body[:limit] + [f"… +{overflow} more lines"]
            omitted += overflow

        diff_file.body = body
        return omitted

    def _reduce_context(self, hunk: DiffHunk) -> tuple[list[str], int]:
        """Keep changes plus limited context, collapsing the rest.

        Args:
            hunk: Hunk to reduce context in.

        Returns:
            Tuple of (rendered lines, unchanged lines hidden behind markers).
        """
        context = self.config.context_lines
        threshold = self.config.collapse_threshold

        change_positions = [
            i for i, line in enumerate(hunk.lines) if line.startswith(("+", "-"))
        ]
        if not change_positions:
            if not hunk.lines:
                return [], 0
            return [self._unchanged_marker(len(hunk.lines))], len(hunk.lines)

        rendered: list[str] = []
        hidden = 0
        run: list[str] = []
        seen_change = False

        def flush(trailing: bool) -> None:
            nonlocal hidden
            if not run:
                return
            if not seen_change:
                keep_head, keep_tail = 0, context
            elif trailing:
                keep_head, keep_tail = context, 0
            elif len(run) > max(threshold, 2 * context):
                keep_head, keep_tail = context, context
            else:
                keep_head, keep_tail = len(run), 0

            if keep_head + keep_tail >= len(run):
                rendered.extend(run)
            else:
                dropped = len(run) - keep_head - keep_tail
                rendered.extend(run[:keep_head])
                rendered.append(self._unchanged_marker(dropped))
                rendered.extend(run[len(run) - keep_tail :])
                hidden += dropped
            run.clear()

        for line in hunk.lines:
            if line.startswith(("+", "-")):
                flush(trailing=False)
                rendered.append(line)
                seen_change = True
            elif line.startswith("\\"):
                rendered.append(line)
            else:
                run.append(line)
        flush(trailing=True)

        return rendered, hidden

    @staticmethod
    def _unchanged_marker(count: int) -> str:
        noun = "line" if count == 1 else "lines"
        return f"… {count} unchanged {noun} …"

    def _format_output(self, diff_files: list[DiffFile], detail: bool) -> str:
        """Format per-file summary lines (and detail bodies) plus a total."""
        output_lines: list[str] = []

        for diff_file in diff_files:
            kind = diff_file.change_kind.value
            if diff_file.is_binary:
                output_lines.append(f"{diff_file.display_path} (binary, {kind})")
                continue

            output_lines.append(
                f"{diff_file.display_path} +{diff_file.additions} -{diff_file.deletions} ({kind})"
            )
            if detail and diff_file.body:
                output_lines.extend(f"  {line}" for line in diff_file.body)

        total_add = sum(f.additions for f in diff_files)
        total_del = sum(f.deletions for f in diff_files)
        noun = "file" if len(diff_files) == 1 else "files"
        output_lines.append(f"{len(diff_files)} {noun} changed, +{total_add} -{total_del}")

        return "\n".join(output_lines)
