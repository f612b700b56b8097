"""Structural JSON extractor: render a value's shape, never its data.

API responses and JSON dumps are mostly repeated records. What a reader with
limited context needs is the structure: which keys exist, what type each
value has, how long the arrays are.

Rendering rules:
- objects: `{key: shape, ...}` in original key order
- arrays: the shape of their elements plus the number not shown,
  `[number, …2 more]`; when sampled elements differ, their distinct shapes
  are joined with ` | `
- scalars: `string`, `number`, `boolean`, `null`
- past `max_depth`: `{…N keys}` / `[…N items]`
- objects wider than `max_keys`: `…N more keys`

Example:
    >>> extractor = JsonShapeExtractor(JsonShapeConfig(compact=True))
    >>> extractor.extract('{"a": [1, 2, 3], "b": "x"}')
    '{a: [number, …2 more], b: string}'
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from ..config import CommandOutputKind, CompressionResult, require_non_negative
from ..exceptions import MalformedInputError
from .base import CompressionRequest, OutputTransform

logger = logging.getLogger(__name__)


@dataclass
class JsonShapeConfig:
    """Configuration for shape extraction."""

    max_depth: int = 6  # Nesting levels rendered before a truncation marker
    array_sample_limit: int = 5  # Elements inspected per array for distinct shapes
    max_keys: int | None = 50  # Keys rendered per object (None = all)
    compact: bool = False  # Single-line rendering
    indent: int = 2

    def __post_init__(self) -> None:
        require_non_negative(
            "json",
            max_depth=self.max_depth,
            array_sample_limit=self.array_sample_limit,
            max_keys=self.max_keys,
            indent=self.indent,
        )


@dataclass
class _Shape:
    """Rendered shape plus the number of items it leaves out."""

    lines: list[str]
    omitted: int = 0


class JsonShapeExtractor(OutputTransform):
    """Renders the structure of a JSON document without literal values.

    Example:
        >>> result = JsonShapeExtractor().compress(api_response, CompressionRequest())
        >>> print(result.compressed)
    """

    kind = CommandOutputKind.JSON
    name = "json"

    def __init__(self, config: JsonShapeConfig | None = None):
        self.config = config or JsonShapeConfig()

    def compress(self, content: str, request: CompressionRequest) -> CompressionResult:
        """Extract the shape of a JSON document.

        Raises:
            MalformedInputError: If the content is not valid JSON.
        """
        value = self.parse(content)
        shape = self._shape(value, depth=0)
        compressed = self._render(shape)
        logger.debug("JSON shape extracted: %d items omitted", shape.omitted)
        return self._result(content, compressed, elided_items=shape.omitted)

    def extract(self, content: str) -> str:
        """Parse and render in one call."""
        return self._render(self._shape(self.parse(content), depth=0))

    def parse(self, content: str) -> Any:
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedInputError(
                e.msg,
                kind=self.kind.value,
                details={"line": e.lineno, "column": e.colno},
            ) from e
        except (RecursionError, ValueError) as e:
            # Nesting past the interpreter's recursion limit, or integers
            # past its digit limit
            raise MalformedInputError(
                "JSON document cannot be decoded",
                kind=self.kind.value,
                details={"reason": str(e)},
            ) from e

    def _render(self, shape: _Shape) -> str:
        if self.config.compact:
            return self._join_inline(shape.lines)
        return "\n".join(shape.lines)

    @staticmethod
    def _join_inline(lines: list[str]) -> str:
        text = " ".join(line.strip() for line in lines)
        return text.replace("{ ", "{").replace(" }", "}").replace("[ ", "[").replace(" ]", "]")

    def _shape(self, value: Any, depth: int) -> _Shape:
        if isinstance(value, dict):
            return self._object_shape(value, depth)
        if isinstance(value, list):
            return self._array_shape(value, depth)
        return _Shape([_scalar_type(value)])

    def _object_shape(self, value: dict[str, Any], depth: int) -> _Shape:
        if not value:
            return _Shape(["{}"])
        if depth >= self.config.max_depth:
            noun = "key" if len(value) == 1 else "keys"
            return _Shape([f"{{…{len(value)} {noun}}}"], omitted=len(value))

        pad = " " * self.config.indent
        keys = list(value)
        limit = self.config.max_keys
        shown = keys if limit is None else keys[:limit]
        hidden = len(keys) - len(shown)

        entries: list[list[str]] = []
        omitted = hidden
        for key in shown:
            child = self._shape(value[key], depth + 1)
            omitted += child.omitted
            first, *rest = child.lines
            entries.append([f"{pad}{key}: {first}", *(pad + line for line in rest)])
        if hidden:
            entries.append([f"{pad}…{hidden} more keys"])

        lines = ["{"]
        for index, entry in enumerate(entries):
            if index < len(entries) - 1:
                entry = entry[:-1] + [entry[-1] + ","]
            lines.extend(entry)
        lines.append("}")
        return _Shape(lines, omitted=omitted)

    def _array_shape(self, value: list[Any], depth: int) -> _Shape:
        if not value:
            return _Shape(["[]"])
        if depth >= self.config.max_depth:
            noun = "item" if len(value) == 1 else "items"
            return _Shape([f"[…{len(value)} {noun}]"], omitted=len(value))

        # Distinct shapes among the sampled elements, first-seen order
        sample = value[: max(1, self.config.array_sample_limit)]
        distinct: list[_Shape] = []
        seen: set[str] = set()
        for element in sample:
            element_shape = self._shape(element, depth + 1)
            signature = self._join_inline(element_shape.lines)
            if signature not in seen:
                seen.add(signature)
                distinct.append(element_shape)

        # Only the first representative's own omissions are counted; every
        # other element is covered by the "more" marker below.
        remaining = len(value) - 1
        omitted = remaining + distinct[0].omitted

        if len(distinct) == 1:
            element_lines = list(distinct[0].lines)
        else:
            element_lines = [" | ".join(self._join_inline(s.lines) for s in distinct)]

        suffix = f", …{remaining} more]" if remaining else "]"
        if len(element_lines) == 1:
            return _Shape([f"[{element_lines[0]}{suffix}"], omitted=omitted)
        lines = [f"[{element_lines[0]}", *element_lines[1:-1], element_lines[-1] + suffix]
        return _Shape(lines, omitted=omitted)


def _scalar_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "string"


def extract_json_shape(content: str, config: JsonShapeConfig | None = None) -> str:
    """Render the shape of a JSON document (convenience wrapper)."""
    return JsonShapeExtractor(config).extract(content)
