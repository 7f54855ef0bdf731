"""
CLI command for manifest ↔ wrangler.toml consistency checks.

Thin wrapper over ``svcforge.core.services.config_validator``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

_SEVERITY_STYLE = {
    "ERROR": ("❌", "red"),
    "WARNING": ("⚠️ ", "yellow"),
    "INFO": ("ℹ️ ", "white"),
}


@click.command()
@click.argument("service_dir", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--manifest", default="service-manifest.json", help="Manifest path, relative to SERVICE_DIR.")
@click.option("--descriptor", default="wrangler.toml", help="Descriptor path, relative to SERVICE_DIR.")
@click.option("--fix", is_flag=True, help="Rewrite the descriptor to match the manifest (backs it up first).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def validate(service_dir: str, manifest: str, descriptor: str, fix: bool, as_json: bool) -> None:
    """Check that wrangler.toml matches the service manifest.

    Examples::

        svcforge validate ./my-service
        svcforge validate ./my-service --fix
    """
    from svcforge.core.services.config_validator import ConfigValidator

    root = Path(service_dir)
    manifest_path = root / manifest
    descriptor_path = root / descriptor
    validator = ConfigValidator()

    fixed = None
    if fix:
        fixed = validator.auto_fix(manifest_path, descriptor_path)
    result = validator.validate_service_config(manifest_path, descriptor_path)

    if as_json:
        payload = result.to_dict()
        if fixed is not None:
            payload["fix"] = fixed.model_dump()
        click.echo(json.dumps(payload, indent=2))
        sys.exit(0 if result.valid else 1)

    if fixed is not None:
        for line in fixed.fixes:
            click.secho(f"   🔧 {line}", fg="green")
        for line in fixed.errors:
            click.secho(f"   ❌ {line}", fg="red")
        if fixed.backup_path:
            click.echo(f"   Backup: {fixed.backup_path}")

    if not result.issues:
        click.secho(f"✅ {descriptor_path} matches {manifest_path.name}", fg="green")
        return

    click.secho(f"📋 {descriptor_path}: {len(result.issues)} issue(s)", fg="cyan", bold=True)
    for issue in result.issues:
        icon, color = _SEVERITY_STYLE.get(issue.severity.value, ("•", "white"))
        click.secho(f"   {icon} {issue.message}", fg=color)
        if issue.suggested_fix:
            click.echo(f"      → {issue.suggested_fix}")

    if not result.valid:
        sys.exit(1)
