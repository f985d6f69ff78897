"""Dependency collection.

Groups the devDependencies of a whole workspace by dependency name and
version specifier, which is the input of every pass.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import CollectedDeps, Workspace


def collect_dev_deps(workspace: Workspace, exclude: Iterable[str] = ()) -> CollectedDeps:
    """Collect all external devDependencies of the workspace.

    Scans the root manifest first, then each local package. Dependencies on
    local packages are never collected, nor is anything in ``exclude``.
    dependencies and peerDependencies are ignored.

    Args:
        workspace: Workspace to scan.
        exclude: Dependency names to leave out.

    Returns:
        Map of dep name → {version specifier → package names}, with dep names
        sorted so output derived from it is deterministic. Package names are
        in the order they were found.

    Example:
        root has {jest: ^28}, pkg1 has {jest: ^28}, pkg2 has {jest: ^27}
        → {"jest": {"^28": ["root", "pkg1"], "^27": ["pkg2"]}}
    """
    all_exclude = set(exclude) | set(workspace.local_packages)

    dev_deps: CollectedDeps = {}
    for manifest in [workspace.root, *workspace.packages.values()]:
        for dep_name, version in manifest.dev_dependencies.items():
            if dep_name in all_exclude:
                continue
            dev_deps.setdefault(dep_name, {}).setdefault(version, []).append(
                manifest.name
            )

    return {name: dev_deps[name] for name in sorted(dev_deps)}
