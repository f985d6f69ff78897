"""Hoist devDependencies from local packages to the workspace root.

For each devDependency used in the workspace this module decides whether to
hoist it and which version to use, then removes the hoisted entries from the
local packages and adds them to the root package.json:

1. Collect devDependencies from the root and every local package
2. Choose a version to hoist for each dep (root version, then popularity)
3. Delete matching entries from local packages
4. Merge the hoisted versions into the root devDependencies

Each decision is printed with its reason so the result can be reviewed.
Version mismatches are warnings and go to stderr.
"""

from __future__ import annotations

import math
import sys

from .collect import collect_dev_deps
from .manifest import write_manifest_updates
from .models import (
    Dependencies,
    DependencyVersionMap,
    HoistOptions,
    PackageManifest,
    Workspace,
)
from .workspace import get_workspace

ALREADY_HOISTED = "already hoisted"


def _percent(fraction: float) -> int:
    """Round a fraction to a whole percentage, halves rounding up."""
    return math.floor(fraction * 100 + 0.5)


def choose_hoist_version(
    dep_name: str,
    versions: DependencyVersionMap,
    root_version: str | None,
    local_package_count: int,
    options: HoistOptions,
) -> str | None:
    """Decide whether a dep should be hoisted and which version to use.

    If the dep is declared at the root with a version some other package also
    uses, that version wins. Otherwise the most popular version is chosen
    (ties go to the version found first), subject to ``always`` and
    ``threshold``.

    Only the most popular version counts toward the threshold: a dep split
    40/40/20 between three versions is not hoisted at 50%, even though 80%
    of packages use some version of it.

    Args:
        dep_name: Name of the dependency.
        versions: Versions of this dep and the packages that use them.
        root_version: Version declared in the root package.json, if any.
        local_package_count: Number of local packages (root excluded).
        options: Hoisting policy.

    Returns:
        Version to hoist, or None to leave the dep where it is.
    """
    if options.only is not None and dep_name not in options.only:
        return None

    version_specs = list(versions)
    has_mismatch = len(version_specs) > 1
    if has_mismatch:
        print(
            f"Found multiple versions of {dep_name}: {', '.join(version_specs)}",
            file=sys.stderr,
        )
        for version, packages in versions.items():
            print(f"  {version} in {', '.join(packages)}", file=sys.stderr)

    # max() keeps the first of several equally popular versions
    popular_version = max(version_specs, key=lambda v: len(versions[v]))

    hoist_version: str | None = None
    reason = ""
    if root_version:
        if len(versions.get(root_version, [])) > 1:
            hoist_version = root_version
            if options.only is None or has_mismatch:
                reason = "included in root package.json"
        else:
            # Only the root uses it, so there's nothing to hoist
            reason = ALREADY_HOISTED
    elif options.always and dep_name in options.always:
        hoist_version = popular_version
        reason = "as requested"
    elif not options.threshold:
        # No threshold: hoist everything
        hoist_version = popular_version
    else:
        used = (
            len(versions[popular_version]) / local_package_count
            if local_package_count
            else 0.0
        )
        reason = f"used by {_percent(used)}%"
        if used >= options.threshold:
            hoist_version = popular_version

    if hoist_version:
        if has_mismatch and hoist_version != root_version:
            reason = ", ".join(filter(None, [reason, "choosing most popular version"]))
        print(f"Hoisting {dep_name}@{hoist_version}" + (f" ({reason})" if reason else ""))
        return hoist_version

    if reason != ALREADY_HOISTED:
        print(f"NOT hoisting {dep_name} ({reason})")
    return None


def plan_hoist(workspace: Workspace, options: HoistOptions) -> Dependencies:
    """Choose the version to hoist for every collected devDependency.

    Returns:
        Map of dep name → version to hoist, in dep name order.
    """
    root_dev_deps = workspace.root.dev_dependencies
    hoisted: Dependencies = {}
    for dep_name, versions in collect_dev_deps(workspace, options.exclude or []).items():
        hoist_version = choose_hoist_version(
            dep_name,
            versions,
            root_version=root_dev_deps.get(dep_name),
            local_package_count=len(workspace.packages),
            options=options,
        )
        if hoist_version:
            hoisted[dep_name] = hoist_version
    return hoisted


def remove_hoisted_deps(
    manifest: PackageManifest, hoisted: Dependencies
) -> PackageManifest | None:
    """Get a copy of ``manifest`` without the devDependencies in ``hoisted``.

    An entry is only removed if its version matches the hoisted version.
    A devDependencies field left empty is dropped.

    Returns:
        The updated manifest, or None if nothing was removed.
    """
    dev_deps = manifest.dev_dependencies
    remaining = {
        name: version
        for name, version in dev_deps.items()
        if hoisted.get(name) != version
    }
    if len(remaining) == len(dev_deps):
        return None
    return manifest.with_dev_dependencies(remaining or None)


def hoist_dev_deps(
    options: HoistOptions | None = None,
    *,
    write: bool = True,
    workspace: Workspace | None = None,
) -> list[PackageManifest]:
    """Hoist devDependencies of local packages to the workspace root.

    Args:
        options: Hoisting policy (validated when constructed, so invalid
                 combinations fail before the workspace is read).
        write: If False, compute the updates without writing any files.
        workspace: Workspace to operate on. Loaded from the current
                   directory if not provided.

    Returns:
        Updated manifests: local packages in workspace order, then the root.
        Empty if there is nothing to hoist.
    """
    options = options or HoistOptions()

    if options.threshold:
        print(f'"Widely used" threshold: {_percent(options.threshold)}% of packages\n')

    workspace = workspace or get_workspace()
    hoisted = plan_hoist(workspace, options)

    updated: list[PackageManifest] = []
    for manifest in workspace.packages.values():
        updated_manifest = remove_hoisted_deps(manifest, hoisted)
        if updated_manifest:
            updated.append(updated_manifest)

    # Nothing removed from any package means there's nothing to add at the root
    if updated:
        root_dev_deps = {**workspace.root.dev_dependencies, **hoisted}
        updated.append(
            workspace.root.with_dev_dependencies(
                {name: root_dev_deps[name] for name in sorted(root_dev_deps)}
            )
        )

    if write:
        write_manifest_updates(updated)

    return updated
