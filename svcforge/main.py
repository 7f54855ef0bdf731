"""
svcforge — CLI entrypoint.

Usage:
    svcforge --help
    svcforge generate --config service.yml
    svcforge validate ./my-service
    svcforge deploy ./my-service --env production
"""

from __future__ import annotations

from pathlib import Path

import click

from svcforge import __version__
from svcforge.core.observability.logging_config import setup_from_flags


@click.group()
@click.version_option(version=__version__, prog_name="svcforge")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to service.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """svcforge — generate, validate and deploy Cloudflare Worker services."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_from_flags(debug=debug, verbose=verbose, quiet=quiet)


from svcforge.ui.cli.generate import generate  # noqa: E402
from svcforge.ui.cli.validate import validate  # noqa: E402
from svcforge.ui.cli.deploy import deploy  # noqa: E402

cli.add_command(generate)
cli.add_command(validate)
cli.add_command(deploy)


if __name__ == "__main__":
    cli()
