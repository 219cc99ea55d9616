"""CLI entry point for watch-deps."""

from __future__ import annotations

import json
from pathlib import Path

import click

from .config import CONFIG_FILENAME, ConfigError, find_config, load_config
from .models import UpdateDecision, WatchConfig
from .pipeline import check_targets, run_refresh, run_watch
from .resolver import resolve
from .sources import SourceError

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _load(root: Path, config_path: str | None) -> WatchConfig:
    try:
        path = Path(config_path) if config_path else find_config(root)
        return load_config(path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc


def _select(
    config: WatchConfig, names: tuple[str, ...], kind: str = "target"
) -> None:
    items = config.targets if kind == "target" else config.refresh
    known = {item.name for item in items}
    unknown = [n for n in names if n not in known]
    if unknown:
        raise click.UsageError(
            f"Unknown {kind}(s): {', '.join(unknown)}. "
            f"Configured: {', '.join(sorted(known)) or '<none>'}"
        )


def _write_outputs(output_path: str, decisions: list[UpdateDecision]) -> None:
    """Append GitHub step outputs describing the decisions."""
    changed = [d.target.name for d in decisions if d.changed]
    with open(output_path, "a") as fh:
        fh.write(f"changed={json.dumps(changed)}\n")
        for d in decisions:
            fh.write(f"{d.target.name}-local={d.local.raw}\n")
            fh.write(f"{d.target.name}-latest={d.latest.raw if d.latest else ''}\n")


@click.group()
@click.version_option(package_name="watch-deps")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Repository root that pin paths are relative to.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"Configuration file (default: {CONFIG_FILENAME} or pyproject.toml).",
)
@click.pass_context
def cli(ctx: click.Context, root: Path, config_path: str | None) -> None:
    """Watch pinned dependency versions and open PRs when upstream moves."""
    ctx.obj = {"root": root.resolve(), "config_path": config_path}


@cli.command()
@click.option(
    "--workflow-dir",
    type=click.Path(),
    default=".github/workflows",
    show_default=True,
    help="Directory to write the workflow file.",
)
@click.pass_context
def init(ctx: click.Context, workflow_dir: str) -> None:
    """Scaffold a starter config and a scheduled GitHub Actions workflow."""
    root: Path = ctx.obj["root"]

    if not (root / ".git").exists():
        raise click.ClickException("Not a git repository. Run from the repo root.")

    config = root / CONFIG_FILENAME
    if config.exists():
        click.echo(f"• {CONFIG_FILENAME} already exists, leaving it alone")
    else:
        config.write_text((TEMPLATES_DIR / CONFIG_FILENAME).read_text())
        click.echo(f"✓ Wrote {CONFIG_FILENAME}")

    dest_dir = root / workflow_dir
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = dest_dir / "watch-dependencies.yml"
    dest.write_text((TEMPLATES_DIR / "watch-dependencies.yml").read_text())
    click.echo(f"✓ Wrote workflow to {dest.relative_to(root)}")
    click.echo()
    click.echo("Next steps:")
    click.echo(f"  1. Describe your pinned artifacts in {CONFIG_FILENAME}")
    click.echo("  2. Check them locally:")
    click.echo("       watch-deps check")
    click.echo("  3. Commit and push; the workflow runs daily at 05:00 UTC")


@cli.command()
@click.argument("names", nargs=-1)
@click.option(
    "--github-output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Append step outputs (changed, <name>-local, <name>-latest) here.",
)
@click.pass_context
def check(ctx: click.Context, names: tuple[str, ...], github_output: str | None) -> None:
    """Report pinned and latest versions without changing anything."""
    config = _load(ctx.obj["root"], ctx.obj["config_path"])
    _select(config, names)
    decisions, failed = check_targets(
        config.select(list(names)), ctx.obj["root"], settings=config.pull_request
    )
    if github_output:
        _write_outputs(github_output, decisions)
    if failed:
        ctx.exit(1)


@cli.command()
@click.argument("name")
@click.pass_context
def latest(ctx: click.Context, name: str) -> None:
    """Print the latest qualifying version of one target."""
    config = _load(ctx.obj["root"], ctx.obj["config_path"])
    _select(config, (name,))
    (target,) = config.select([name])
    try:
        result = resolve(target)
    except SourceError as exc:
        raise click.ClickException(str(exc)) from exc
    if result.latest is None:
        click.echo(f"{name}: no qualifying version", err=True)
        ctx.exit(1)
    click.echo(result.latest.raw)


@cli.command()
@click.argument("names", nargs=-1)
@click.option(
    "--no-pr",
    is_flag=True,
    help="Only edit the working tree; do not branch, commit or open PRs.",
)
@click.pass_context
def update(ctx: click.Context, names: tuple[str, ...], no_pr: bool) -> None:
    """Update outdated pins and open a pull request per target (usually in CI)."""
    config = _load(ctx.obj["root"], ctx.obj["config_path"])
    _select(config, names)
    failures = run_watch(config, ctx.obj["root"], names=names, create_pr=not no_pr)
    if failures:
        ctx.exit(1)


@cli.command()
@click.argument("names", nargs=-1)
@click.option(
    "--no-pr",
    is_flag=True,
    help="Only run the commands; do not branch, commit or open PRs.",
)
@click.pass_context
def refresh(ctx: click.Context, names: tuple[str, ...], no_pr: bool) -> None:
    """Run [[refresh]] tasks and open a pull request for any resulting diff."""
    config = _load(ctx.obj["root"], ctx.obj["config_path"])
    _select(config, names, kind="refresh")
    failures = run_refresh(config, ctx.obj["root"], names=names, create_pr=not no_pr)
    if failures:
        ctx.exit(1)
