"""Compression CLI commands."""

from __future__ import annotations

import json
from typing import IO

import click

from ..config import CommandOutputKind, FilterLevel
from ..exceptions import ConfigurationError, MalformedInputError, TokentrimError
from ..languages import DEFAULT_REGISTRY
from ..transforms.content_detector import detect_output_kind
from ..transforms.content_router import ContentRouter, ContentRouterConfig
from ._utils.formatting import (
    format_bytes,
    print_error,
    print_stats,
    print_table,
    print_warning,
)
from .main import main

_STDIN_NAMES = ("<stdin>", "-")


def _load_config(config_path: str | None) -> ContentRouterConfig:
    """Read a JSON config file into a router config."""
    if config_path is None:
        return ContentRouterConfig()
    with open(config_path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                "Config file is not valid JSON",
                details={"path": config_path, "line": e.lineno},
            ) from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Config file must hold a JSON object", details={"path": config_path}
        )
    return ContentRouterConfig.from_dict(data)


def _source_path(file: IO[str], path: str | None) -> str | None:
    if path is not None:
        return path
    return None if file.name in _STDIN_NAMES else file.name


@main.command()
@click.argument("file", type=click.File("r", encoding="utf-8", errors="replace"), default="-")
@click.option(
    "--kind",
    "-k",
    type=click.Choice([k.value for k in CommandOutputKind]),
    default=None,
    help="What produced the output (detected when omitted).",
)
@click.option(
    "--level",
    "-l",
    type=click.Choice([level.value for level in FilterLevel]),
    default=None,
    help="Filter level for source code (default: minimal).",
)
@click.option("--language", default=None, help="Language id or extension for source code.")
@click.option("--path", default=None, help="Path used for detection (defaults to FILE).")
@click.option("--detail", is_flag=True, help="Diff: include condensed hunk bodies.")
@click.option("--verbose-results", is_flag=True, help="Tests: list passing records too.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with per-transformer settings.",
)
@click.option("--stats", is_flag=True, help="Print compression statistics to stderr.")
def compress(
    file: IO[str],
    kind: str | None,
    level: str | None,
    language: str | None,
    path: str | None,
    detail: bool,
    verbose_results: bool,
    config_path: str | None,
    stats: bool,
) -> None:
    """Compress a captured output read from FILE (or stdin).

    \b
    Examples:
        git diff | tokentrim compress --kind diff
        tokentrim compress -l aggressive src/main.rs
        rg -n TODO | tokentrim compress --stats
    """
    content = file.read()

    try:
        router = ContentRouter(_load_config(config_path))
        result = router.compress(
            content,
            kind=kind,
            level=level,
            language=language,
            path=_source_path(file, path),
            detail=detail or None,
            verbose=verbose_results or None,
        )
    except MalformedInputError as e:
        # The original output is still the best thing to hand on
        click.echo(content, nl=False)
        print_error(str(e))
        raise SystemExit(2) from None
    except TokentrimError as e:
        print_error(str(e))
        raise SystemExit(1) from None

    click.echo(result.compressed, nl=not result.compressed.endswith("\n"))

    if stats:
        summary: dict[str, object] = {
            "Kind": result.kind.value if result.kind else "unknown",
            "Original": format_bytes(result.original_bytes),
            "Compressed": format_bytes(result.compressed_bytes),
            "Saved": f"{result.savings_percentage:.1f}%",
            "Tokens saved (est.)": f"{result.tokens_saved_estimate:,}",
            "Items elided": result.elided_items,
        }
        for key, value in result.stats.items():
            summary[key.replace("_", " ").capitalize()] = value
        print_stats(summary, title="tokentrim")


@main.command()
@click.argument("file", type=click.File("r", encoding="utf-8", errors="replace"), default="-")
def detect(file: IO[str]) -> None:
    """Print the output kind detected for FILE (or stdin)."""
    content = file.read()
    detection = detect_output_kind(content, DEFAULT_REGISTRY)
    metadata = ", ".join(f"{k}={v}" for k, v in detection.metadata.items())
    line = f"{detection.kind.value} (confidence {detection.confidence:.2f}) {metadata}"
    click.echo(line.rstrip())
    if detection.confidence < 0.6:
        print_warning("Low confidence; pass --kind to compress to choose the kind")


@main.command()
def languages() -> None:
    """List the built-in language profiles."""
    rows = []
    for profile in DEFAULT_REGISTRY.profiles.values():
        comments = list(profile.line_comments)
        if profile.block_comment:
            comments.append(" ".join(profile.block_comment))
        rows.append(
            [
                profile.id,
                " ".join(sorted(profile.extensions)) or "-",
                " ".join(comments) or "-",
                profile.block_style.value,
            ]
        )
    print_table(["Language", "Extensions", "Comments", "Blocks"], rows, title="Language profiles")
