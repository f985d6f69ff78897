"""Replace exact devDependency versions with ranges.

Exact versions such as ``4.0.3`` become ``^4.0.3`` (or ``~4.0.3`` for deps
that should only float on patch releases). Every distinct version of a dep
is kept as its own range, even when the ranges overlap.
"""

from __future__ import annotations

from dataclasses import dataclass

from .collect import collect_dev_deps
from .manifest import write_manifest_updates
from .models import PackageManifest, UnpinOptions, Workspace
from .versions import is_exact_version, unpin_version
from .workspace import get_workspace


@dataclass(frozen=True)
class VersionUpdate:
    """A version specifier change for one dependency."""

    name: str
    old_version: str
    new_version: str


def _range_type(name: str, options: UnpinOptions) -> str:
    if name in options.patch:
        return "patch"
    if name in options.minor:
        return "minor"
    return options.range


def plan_unpin(workspace: Workspace, options: UnpinOptions) -> list[VersionUpdate]:
    """Find every pinned external devDependency version and its new range.

    A dep with several pinned versions gets one update per version.
    """
    updates: list[VersionUpdate] = []
    for name, versions in collect_dev_deps(workspace, options.exclude).items():
        for old_version in versions:
            if not is_exact_version(old_version):
                continue
            new_version = unpin_version(old_version, _range_type(name, options))
            print(f"Updating {name}@{old_version} to {new_version}")
            updates.append(VersionUpdate(name, old_version, new_version))
    return updates


def apply_version_updates(
    manifest: PackageManifest, updates: list[VersionUpdate]
) -> PackageManifest | None:
    """Get a copy of ``manifest`` with matching devDependency versions updated.

    Returns:
        The updated manifest, or None if no devDependency matched.
    """
    dev_deps = manifest.dev_dependencies
    changed = False
    for update in updates:
        if dev_deps.get(update.name) == update.old_version:
            dev_deps[update.name] = update.new_version
            changed = True
    return manifest.with_dev_dependencies(dev_deps) if changed else None


def unpin_dev_deps(
    options: UnpinOptions | None = None,
    *,
    write: bool = True,
    workspace: Workspace | None = None,
) -> list[PackageManifest]:
    """Replace exact devDependency versions with ranges across the workspace.

    Args:
        options: Which deps to skip and which range type to use.
        write: If False, compute the updates without writing any files.
        workspace: Workspace to operate on. Loaded from the current
                   directory if not provided.

    Returns:
        Updated manifests: the root (if changed) followed by local packages.
    """
    options = options or UnpinOptions()
    workspace = workspace or get_workspace()

    updates = plan_unpin(workspace, options)

    updated: list[PackageManifest] = []
    for manifest in [workspace.root, *workspace.packages.values()]:
        updated_manifest = apply_version_updates(manifest, updates)
        if updated_manifest:
            updated.append(updated_manifest)

    if write:
        write_manifest_updates(updated)

    return updated
