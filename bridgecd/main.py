"""
bridgecd — CLI entrypoint.

Usage:
    python -m bridgecd.main --help
    python -m bridgecd.main deliver path/to/project --domain test --dry-run
    python -m bridgecd.main config check path/to/project
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from bridgecd import __version__
from bridgecd.core.observability.logging_config import level_from_flags, setup_logging

EXIT_CONFIGURATION = 1
EXIT_DELIVERY = 2

_TASK_ICONS = {"ok": ("✓", "green"), "failed": ("✗", "red"), "skipped": ("⊘", "yellow")}


@click.group()
@click.version_option(version=__version__, prog_name="bridgecd")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """bridgecd — continuous delivery of services to Bridge nodes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    setup_logging(
        level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet),
        quiet_third_party=not debug,
    )


def _print_diagnostics(diagnostics) -> None:
    for diagnostic in diagnostics:
        if diagnostic.is_error:
            click.secho(f"   ✗ {diagnostic.message}", fg="red")
        else:
            click.secho(f"   ⚠ {diagnostic.message}", fg="yellow")


def _select_bridge(ctx: click.Context, name: str | None, dry_run: bool):
    """Pick the bridge factory to use.

    Returns ``(factory, problem)``. ``problem`` explains why no factory
    is usable; it is reported after the configuration has been checked.
    A dry run needs no factory.
    """
    from bridgecd.adapters.registry import default_registry

    registry = ctx.obj.get("registry") or default_registry()

    if name is None:
        real = [b for b in registry.list_bridges() if b != "mock"]
        if real:
            name = real[0]
        elif dry_run:
            return None, None
        else:
            return None, "No Bridge client installed. Use --bridge mock or install one."

    factory = registry.get(name)
    if factory is None:
        known = ", ".join(registry.list_bridges())
        return None, f"Unknown bridge '{name}' (known: {known})"
    return factory, None


@cli.command()
@click.argument(
    "project_root",
    required=False,
    type=click.Path(exists=True, path_type=Path),
)
@click.option("--domain", "-d", required=True, help="Domain to deliver to.")
@click.option("--node", "-n", "nodes", multiple=True, help="Only these nodes.")
@click.option("--label", "-l", "labels", multiple=True, help="Only nodes carrying these labels.")
@click.option("--solution", "-s", "solutions", multiple=True, help="Only these solutions.")
@click.option("--service", "services", multiple=True, help="Only these services.")
@click.option("--dry-run", is_flag=True, help="Show what would be done, do nothing.")
@click.option("--break-on-error", is_flag=True, help="Stop at the first failed task.")
@click.option(
    "--bridge",
    "bridge_name",
    envvar="BRIDGECD_BRIDGE",
    default=None,
    help="Bridge client to use (default: the installed one).",
)
@click.option("--user", "-u", default=None, help="Bridge user for nodes that declare none.")
@click.option("--password", "-P", default=None, help="Bridge password (prompted if omitted).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def deliver(
    ctx: click.Context,
    project_root: Path | None,
    domain: str,
    nodes: tuple[str, ...],
    labels: tuple[str, ...],
    solutions: tuple[str, ...],
    services: tuple[str, ...],
    dry_run: bool,
    break_on_error: bool,
    bridge_name: str | None,
    user: str | None,
    password: str | None,
    as_json: bool,
) -> None:
    """Deliver the services of a domain to its nodes.

    Examples:

        bridgecd deliver . --domain test --dry-run

        bridgecd deliver . --domain prod --label primary --service Orders

        bridgecd deliver . --domain prod --break-on-error
    """
    from bridgecd.adapters.credentials import PromptCredentialProvider
    from bridgecd.core.use_cases.deliver import run_delivery

    factory, bridge_problem = _select_bridge(ctx, bridge_name, dry_run)

    result = run_delivery(
        domain=domain,
        config_path=project_root,
        nodes=nodes,
        labels=labels,
        solutions=solutions,
        services=services,
        dry_run=dry_run,
        break_on_error=break_on_error,
        bridge_factory=factory,
        bridge_problem=bridge_problem,
        credentials=PromptCredentialProvider(user=user, password=password, err=as_json),
    )

    exit_code = 0
    if result.error_kind == "configuration":
        exit_code = EXIT_CONFIGURATION
    elif result.error_kind == "delivery":
        exit_code = EXIT_DELIVERY

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(exit_code)

    mode_label = "[dry-run] " if dry_run else ""
    click.secho(f"\n🚚 {mode_label}deliver — domain '{domain}'", fg="cyan", bold=True)

    if len(result.diagnostics):
        click.echo()
        _print_diagnostics(result.diagnostics)

    if result.error_kind == "configuration":
        click.echo()
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(exit_code)

    report = result.report
    assert report is not None

    for node_report in report.nodes:
        click.echo()
        click.secho(f"   Node {node_report.node}", fg="white", bold=True)
        for receipt in node_report.receipts:
            icon, color = _TASK_ICONS[receipt.status]
            click.secho(f"     {icon} {receipt.service} {receipt.task}", fg=color, nl=False)
            timing = f" ({receipt.duration_ms}ms)" if receipt.duration_ms else ""
            click.echo(timing)
            if receipt.failed and receipt.error:
                for line in receipt.error.split("\n")[:5]:
                    click.echo(f"       │ {line}")
            elif ctx.obj.get("verbose") and receipt.output:
                click.echo(f"       │ {receipt.output}")
        if node_report.aborted is not None:
            click.secho(f"     ⛔ {node_report.aborted}", fg="red")

    if report.skipped_nodes:
        click.echo()
        click.secho(f"   Not delivered: {', '.join(report.skipped_nodes)}", fg="red")

    click.echo()
    if dry_run:
        click.secho(f"   {report.skipped} tasks planned, nothing executed", fg="yellow", bold=True)
    else:
        status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(
            report.status, "white"
        )
        click.secho(
            f"   Result: {report.succeeded}/{report.total} tasks succeeded",
            fg=status_color,
            bold=True,
        )

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")

    click.echo()
    sys.exit(exit_code)


@cli.group()
def config() -> None:
    """Delivery configuration commands."""


@config.command("check")
@click.argument(
    "project_root",
    required=False,
    type=click.Path(exists=True, path_type=Path),
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def config_check(project_root: Path | None, as_json: bool) -> None:
    """Validate delivery.yml and resolve every domain."""
    from bridgecd.core.use_cases.config_check import check_config

    result = check_config(config_path=project_root)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        config_data = result.configuration
        assert config_data is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Domains:   {len(config_data.domains)}")
        click.echo(f"   Nodes:     {len(config_data.nodes)}")
        click.echo(f"   Solutions: {len(config_data.solutions)}")
        click.echo(f"   Services:  {len(config_data.services)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    click.echo()
    if not result.valid:
        sys.exit(1)


@cli.command("bridges")
@click.pass_context
def list_bridges(ctx: click.Context) -> None:
    """List the Bridge clients available to ``deliver --bridge``."""
    from bridgecd.adapters.registry import default_registry

    registry = ctx.obj.get("registry") or default_registry()
    for name in registry.list_bridges():
        click.echo(name)


if __name__ == "__main__":
    cli()
