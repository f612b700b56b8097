"""Main CLI entry point for tokentrim."""

import logging

import click


def get_version() -> str:
    """Get the current version."""
    try:
        from tokentrim import __version__

        return __version__
    except ImportError:
        return "unknown"


@click.group()
@click.version_option(version=get_version(), prog_name="tokentrim")
@click.option("-v", "--verbose", is_flag=True, help="Log routing decisions to stderr.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """tokentrim - Output compression for command-line tool results.

    Reads a captured output, prints the compressed version.

    \b
    Examples:
        git diff | tokentrim compress --kind diff
        tokentrim compress --level aggressive src/lib.rs
        cargo test 2>&1 | tokentrim compress --kind test --stats
        tokentrim detect build.log
    """
    ctx.ensure_object(dict)
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s %(levelname)s: %(message)s",
        )


# Import subcommands - these register themselves with the main group
def _register_commands() -> None:
    """Register all subcommands."""
    from . import compress  # noqa: F401


_register_commands()

if __name__ == "__main__":
    main()
