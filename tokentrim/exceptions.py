"""Custom exceptions for tokentrim.

All exceptions inherit from TokentrimError, making it easy to catch any
tokentrim-related error:

    from tokentrim import MalformedInputError, TokentrimError, compress_output

    try:
        result = compress_output(raw, kind="json")
    except MalformedInputError as e:
        print(raw)  # fall back to the original buffer
    except TokentrimError as e:
        print(f"tokentrim error: {e}")

Unknown languages are never an error: they degrade to the plain-text profile.
"""

from __future__ import annotations

from typing import Any


class TokentrimError(Exception):
    """Base exception for all tokentrim errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class MalformedInputError(TokentrimError):
    """Raised when input does not parse under its declared output kind.

    This includes:
    - Invalid JSON handed to the JSON shape extractor
    - Diff output without any recognizable file header

    The message is surfaced verbatim; no repair is attempted and no partial
    result is produced. Callers keep the original buffer.

    Example:
        MalformedInputError(
            "Expecting value",
            kind="json",
            details={"line": 1, "column": 5},
        )
    """

    def __init__(
        self,
        message: str,
        kind: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged = dict(details or {})
        if kind is not None:
            merged = {"kind": kind, **merged}
        super().__init__(message, merged)
        self.kind = kind


class ConfigurationError(TokentrimError):
    """Raised when tokentrim is misconfigured.

    This includes:
    - Unknown configuration sections or keys
    - Invalid enum values (filter level, merge mode, indent policy)
    - Negative limits

    Example:
        ConfigurationError(
            "Unknown config key",
            details={"section": "diff", "key": "max_context"},
        )
    """

    pass


class TransformError(TokentrimError):
    """Raised when no transformer can handle a request.

    Example:
        TransformError(
            "No transformer registered",
            details={"kind": "listing"},
        )
    """

    pass
