"""
CLI command for deploying a service with D1 binding recovery.

Thin wrapper over ``svcforge.core.services.wrangler`` and
``svcforge.core.services.binding_recovery``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click


@click.command()
@click.argument("service_dir", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--env", "environment", default=None, help="Target environment (wrangler --env).")
@click.option("--descriptor", default="wrangler.toml", help="Descriptor path, relative to SERVICE_DIR.")
@click.option(
    "--auto-create/--no-auto-create",
    default=True,
    show_default=True,
    help="Create a missing D1 database during recovery.",
)
@click.option("--select-existing", is_flag=True, help="Bind the account's only D1 database if the named one is missing.")
@click.option("--rollback-on-failure", is_flag=True, help="Restore descriptor backups if the deploy still fails.")
@click.option("--timeout", default=300, show_default=True, help="Per-command timeout in seconds.")
@click.pass_context
def deploy(
    ctx: click.Context,
    service_dir: str,
    environment: str | None,
    descriptor: str,
    auto_create: bool,
    select_existing: bool,
    rollback_on_failure: bool,
    timeout: int,
) -> None:
    """Deploy SERVICE_DIR with wrangler, repairing D1 binding errors once.

    Examples::

        svcforge deploy ./my-service --env production
        svcforge deploy . --no-auto-create --select-existing
    """
    from svcforge.core.errors import DeploymentError
    from svcforge.core.models.recovery import DeployConfig
    from svcforge.core.services.binding_recovery import BindingRecoveryManager
    from svcforge.core.services.wrangler import WranglerCli, WranglerD1Remediator

    root = Path(service_dir).resolve()
    cli = WranglerCli(root, timeout=timeout)
    manager = BindingRecoveryManager(
        WranglerD1Remediator(cli, auto_create=auto_create, select_existing=select_existing)
    )
    config = DeployConfig(environment=environment, config_path=descriptor, cwd=str(root))

    target = f"{root.name} ({environment})" if environment else root.name
    if not ctx.obj.get("quiet", False):
        click.secho(f"🚀 Deploying {target}...", fg="cyan", bold=True)

    try:
        output = manager.deploy_with_recovery(lambda: cli.deploy(environment, descriptor), config)
    except DeploymentError as e:
        click.secho(f"❌ {e}", fg="red")
        if e.stderr and ctx.obj.get("verbose", False):
            click.echo(e.stderr)
        if rollback_on_failure:
            for action in manager.rollback():
                click.secho(f"   ↩ {action.description}", fg="yellow")
        sys.exit(1)

    stats = manager.get_statistics()
    if stats["has_backups"]:
        click.secho(f"   🔧 Binding recovered; backup at {stats['latest_backup']}", fg="yellow")
    click.secho(f"✅ Deployed {target}", fg="green")
    if ctx.obj.get("verbose", False) and output:
        click.echo(output.strip())
