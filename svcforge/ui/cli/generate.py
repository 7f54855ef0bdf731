"""
CLI command for service-tree generation.

Thin wrapper over ``svcforge.core.engine.generation``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to service.yml (overrides the global --config).",
)
@click.option(
    "--output",
    "-o",
    "output_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Output directory (default: servicePath from service.yml).",
)
@click.option("--dry-run", is_flag=True, help="Show what would be written without touching disk.")
@click.option("--no-overwrite", is_flag=True, help="Keep files that already exist.")
@click.option("--continue-on-error", is_flag=True, help="Run remaining generators after a failure.")
@click.option(
    "--middleware-strategy",
    type=click.Choice(["contract", "legacy"]),
    default=None,
    help="Worker middleware flavour.",
)
@click.option(
    "--templates",
    "templates_path",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Use a custom templates directory.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def generate(
    ctx: click.Context,
    config_path: str | None,
    output_dir: str | None,
    dry_run: bool,
    no_overwrite: bool,
    continue_on_error: bool,
    middleware_strategy: str | None,
    templates_path: str | None,
    as_json: bool,
) -> None:
    """Generate a service tree from service.yml.

    Examples::

        svcforge generate
        svcforge -c services/blog.yml generate --output ./blog
        svcforge generate --dry-run --json
    """
    from svcforge.core.config.loader import ConfigError, load_service_config
    from svcforge.core.engine.generation import GenerationEngine
    from svcforge.core.errors import GenerationFailure

    overrides = {"middlewareStrategy": middleware_strategy} if middleware_strategy else None
    try:
        context = load_service_config(
            Path(config_path) if config_path else ctx.obj.get("config_path"),
            output_dir=Path(output_dir) if output_dir else None,
            overrides=overrides,
        )
    except ConfigError as e:
        _fail(str(e), as_json)

    engine = GenerationEngine(
        templates_path=templates_path,
        dry_run=dry_run,
        overwrite=not no_overwrite,
        stop_on_error=not continue_on_error,
    )
    try:
        report = engine.generate(context)
    except GenerationFailure as e:
        if as_json:
            payload = {"ok": False, "error": str(e)}
            if e.result is not None:
                payload["execution"] = e.result.to_dict()
            click.echo(json.dumps(payload, indent=2))
            sys.exit(1)
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({"ok": report.ok, **report.to_dict()}, indent=2))
        sys.exit(0 if report.ok else 1)

    quiet = ctx.obj.get("quiet", False)
    verb = "Would write" if dry_run else "Generated"
    click.secho(f"🛠  {verb} {len(report.files)} file(s) in {report.service_path}", fg="cyan", bold=True)
    if not quiet:
        for path in report.files:
            click.echo(f"   • {path}")
        for path in report.skipped_files:
            click.secho(f"   ⏭  {path} (exists, kept)", fg="yellow")

    summary = report.result.summary()
    click.echo(f"   Generators: {summary['success']} ok, {summary['skipped']} skipped, {summary['failed']} failed")
    for outcome in report.result.failed:
        click.secho(f"   ❌ {outcome.name}: {outcome.error}", fg="red")

    if not report.ok:
        sys.exit(1)


def _fail(message: str, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps({"ok": False, "error": message}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red")
    sys.exit(1)
