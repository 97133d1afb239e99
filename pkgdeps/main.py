"""
pkgdeps — CLI entrypoint.

Usage:
    python -m pkgdeps.main --help
    python -m pkgdeps.main resolve my-install
    python -m pkgdeps.main reconcile my-install --seed 42
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from pkgdeps import __version__
from pkgdeps.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="pkgdeps")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to cluster.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """pkgdeps — resolve and install package dependencies."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )


def _load_cluster(ctx: click.Context, as_json: bool):
    """Load the snapshot or exit 1 with the config error."""
    from pkgdeps.core.config.loader import ConfigError, load_snapshot
    from pkgdeps.core.use_cases.dependency_pass import Cluster

    try:
        snapshot = load_snapshot(ctx.obj.get("config_path"))
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"error": str(e)}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    return Cluster.from_snapshot(snapshot)


def _run_pass(
    ctx: click.Context,
    name: str,
    namespace: str,
    as_json: bool,
    dry_run: bool,
    seed: int | None = None,
):
    from pkgdeps.core.services.dependencies import NameGenerator
    from pkgdeps.core.use_cases.dependency_pass import run_dependency_pass

    cluster = _load_cluster(ctx, as_json)
    result = run_dependency_pass(
        cluster,
        name,
        namespace=namespace,
        names=NameGenerator(seed=seed),
        dry_run=dry_run,
    )

    if not result.ok:
        if as_json:
            click.echo(json.dumps(result.to_dict(), indent=2))
        else:
            click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)
    return result


@cli.command()
@click.argument("name")
@click.option("--namespace", "-n", default="default", show_default=True, help="Install namespace.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def resolve(ctx: click.Context, name: str, namespace: str, as_json: bool) -> None:
    """Show the packages an install's dependencies resolve to."""
    result = _run_pass(ctx, name, namespace, as_json, dry_run=True)
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    pkg = result.package
    click.secho(f"\n📦 {namespace}/{name} → {pkg.ref_name}@{pkg.version}", fg="cyan", bold=True)
    if result.skipped:
        click.echo("   Dependency installation disabled.")
        return
    if not result.resolved:
        click.echo("   No dependencies.")
        return
    for dep in result.resolved:
        click.echo(f"     • {dep.ref_name}@{dep.version}")
    click.echo()


@cli.command()
@click.argument("name")
@click.option("--namespace", "-n", default="default", show_default=True, help="Install namespace.")
@click.option("--seed", type=int, default=None, help="Seed for generated install names.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def reconcile(
    ctx: click.Context,
    name: str,
    namespace: str,
    seed: int | None,
    as_json: bool,
) -> None:
    """Resolve an install's dependencies and create missing child installs."""
    result = _run_pass(ctx, name, namespace, as_json, dry_run=False, seed=seed)
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.skipped:
        click.echo(f"⊘ {namespace}/{name}: dependency installation disabled")
        return
    if not result.created:
        click.secho(f"✓ {namespace}/{name}: all dependencies installed", fg="green")
        return

    click.secho(f"✓ {namespace}/{name}: created {len(result.created)} install(s)", fg="green")
    for child in result.created:
        ref = child.package_ref
        click.echo(f"     + {child.name}  → {ref.ref_name}@{ref.version_selection.constraints}")


@cli.command()
@click.argument("name")
@click.option("--namespace", "-n", default="default", show_default=True, help="Install namespace.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def overrides(ctx: click.Context, name: str, namespace: str, as_json: bool) -> None:
    """Show the effective dependency overrides of an install."""
    result = _run_pass(ctx, name, namespace, as_json, dry_run=True)

    if as_json:
        click.echo(json.dumps(
            {k: v.model_dump(mode="json") for k, v in result.overrides.items()},
            indent=2,
        ))
        return

    if not result.overrides:
        click.echo("No overrides.")
        return
    for dep_name, selection in result.overrides.items():
        click.echo(f"  {dep_name}: {selection.constraints or '*'}")


if __name__ == "__main__":
    cli()
