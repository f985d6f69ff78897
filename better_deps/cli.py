"""CLI entry point for better-deps."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click
from pydantic import BaseModel, ValidationError

from better_deps.hoist import hoist_dev_deps
from better_deps.models import HoistOptions, PackageManifest, UnpinOptions, Workspace
from better_deps.star_local import star_local_dev_deps
from better_deps.unpin import unpin_dev_deps
from better_deps.workspace import WorkspaceError, get_workspace

F = TypeVar("F", bound=Callable[..., Any])
M = TypeVar("M", bound=BaseModel)

check_option = click.option(
    "--check",
    is_flag=True,
    help="Check for issues without making any changes, and exit non-zero if issues are found.",
)


def _split_names(
    ctx: click.Context, param: click.Parameter, value: tuple[str, ...]
) -> list[str] | None:
    """Accept both repeated options and comma-separated lists."""
    names = [name.strip() for item in value for name in item.split(",") if name.strip()]
    return names or None


def _parse_threshold(ctx: click.Context, param: click.Parameter, value: str | None) -> float:
    """Parse a threshold given as a fraction (0-1) or a percentage (1-100)."""
    if value is None:
        return 0
    try:
        number = float(value)
    except ValueError:
        number = -1
    if not 0 <= number <= 100:
        raise click.BadParameter("Must be a number between 0 and 100 (inclusive).")
    return number if number <= 1 else number / 100


def _names_option(name: str, help_text: str) -> Callable[[F], F]:
    return click.option(
        name, multiple=True, metavar="DEPS", callback=_split_names, help=help_text
    )


def _validated(options_cls: type[M], **kwargs: Any) -> M:
    """Build a pass options model, reporting invalid combinations as CLI errors."""
    try:
        return options_cls(**kwargs)
    except ValidationError as exc:
        messages = [err["msg"].removeprefix("Value error, ") for err in exc.errors()]
        raise click.ClickException("; ".join(messages)) from exc


def _load_workspace(ctx: click.Context) -> Workspace:
    try:
        return get_workspace(ctx.obj["cwd"])
    except WorkspaceError as exc:
        raise click.ClickException(str(exc)) from exc


def _fix_command(ctx: click.Context) -> str:
    """Rebuild the current command line without --check."""
    root = ctx.find_root()
    parts = [root.info_name or "better-deps"]
    if root.params.get("cwd") is not None:
        parts.append(f"--cwd {root.params['cwd']}")
    parts.append(ctx.info_name or "")
    for param in ctx.command.params:
        value = ctx.params.get(param.name)
        if param.name == "check" or value in (None, 0, False, param.default):
            continue
        flag = param.opts[0]
        if isinstance(value, list):
            parts.append(f"{flag} {','.join(value)}")
        else:
            parts.append(f"{flag} {value}")
    return " ".join(parts)


def _report(ctx: click.Context, updated: list[PackageManifest], check: bool) -> None:
    """Print the outcome of a pass and set the exit status."""
    if not check:
        click.echo(f"Updated {len(updated)} packages.")
        return
    if not updated:
        click.echo("No issues found.")
        return

    click.echo(f"Found {len(updated)} packages with new issues!", err=True)
    click.echo(
        f"Please re-run this command locally to fix them:\n  {_fix_command(ctx)}",
        err=True,
    )
    ctx.exit(1)


@click.group(name="better-deps")
@click.version_option(package_name="better-deps")
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory to look for the workspace from. (default: current directory)",
)
@click.pass_context
def cli(ctx: click.Context, cwd: Path | None) -> None:
    """Clean up issues with JavaScript dependencies in monorepos/workspaces."""
    ctx.ensure_object(dict)
    ctx.obj["cwd"] = cwd


@cli.command("hoist-dev-deps")
@check_option
@_names_option("--exclude", "Don't hoist these devDependencies.")
@_names_option(
    "--only", "Only hoist these devDependencies (mutually exclusive with other options)."
)
@click.option(
    "--threshold",
    callback=_parse_threshold,
    metavar="PERCENT",
    help="Only hoist devDependencies used in >= this % of packages. (default: 0, hoist everything)",
)
@_names_option(
    "--always", "Always hoist these devDependencies (only relevant with --threshold)."
)
@click.pass_context
def hoist(
    ctx: click.Context,
    check: bool,
    exclude: list[str] | None,
    only: list[str] | None,
    threshold: float,
    always: list[str] | None,
) -> None:
    """Hoist devDependencies from individual packages to the workspace root."""
    options = _validated(
        HoistOptions, exclude=exclude, only=only, threshold=threshold, always=always
    )
    workspace = _load_workspace(ctx)
    updated = hoist_dev_deps(options, write=not check, workspace=workspace)
    _report(ctx, updated, check)


@cli.command("star-local-dev-deps")
@check_option
@click.pass_context
def star_local(ctx: click.Context, check: bool) -> None:
    """Change version specs of devDependencies on local packages to "*"."""
    workspace = _load_workspace(ctx)
    updated = star_local_dev_deps(write=not check, workspace=workspace)
    _report(ctx, updated, check)


@cli.command("unpin-dev-deps")
@check_option
@_names_option("--exclude", "Don't modify these devDependencies.")
@_names_option("--patch", "Use patch ranges (~) for these devDependencies.")
@_names_option("--minor", "Use minor ranges (^) for these devDependencies.")
@click.option(
    "--range",
    "range_type",
    type=click.Choice(["minor", "patch"]),
    default="minor",
    show_default=True,
    help="Type of range to use for other devDependencies.",
)
@click.pass_context
def unpin(
    ctx: click.Context,
    check: bool,
    exclude: list[str] | None,
    patch: list[str] | None,
    minor: list[str] | None,
    range_type: str,
) -> None:
    """Replace exact devDependency versions with ranges."""
    options = _validated(
        UnpinOptions,
        exclude=exclude or [],
        patch=patch or [],
        minor=minor or [],
        range=range_type,
    )
    workspace = _load_workspace(ctx)
    updated = unpin_dev_deps(options, write=not check, workspace=workspace)
    _report(ctx, updated, check)
