"""Point devDependencies on local packages at ``*``.

Within a workspace, a devDependency on another local package always resolves
to the local copy, so a specific version range only goes stale. The workspace
root is left alone.
"""

from __future__ import annotations

from .manifest import write_manifest_updates
from .models import PackageManifest, Workspace
from .workspace import get_workspace

STAR = "*"


def star_local_deps(
    manifest: PackageManifest, local_packages: list[str]
) -> PackageManifest | None:
    """Get a copy of ``manifest`` with local devDependencies set to ``*``.

    Only deps on other local packages count. A package listing itself is
    left as it is.

    Returns:
        The updated manifest, or None if every local devDependency was
        already ``*``.
    """
    dev_deps = manifest.dev_dependencies
    changed = False
    for name, version in list(dev_deps.items()):
        if name in local_packages and name != manifest.name and version != STAR:
            print(f"Updating {name}@{version} to {STAR} in {manifest.name}")
            dev_deps[name] = STAR
            changed = True
    return manifest.with_dev_dependencies(dev_deps) if changed else None


def star_local_dev_deps(
    *, write: bool = True, workspace: Workspace | None = None
) -> list[PackageManifest]:
    """Change version specs of devDependencies on local packages to ``*``.

    Args:
        write: If False, compute the updates without writing any files.
        workspace: Workspace to operate on. Loaded from the current
                   directory if not provided.

    Returns:
        Updated local package manifests, in workspace order.
    """
    workspace = workspace or get_workspace()
    local_packages = workspace.local_packages

    updated: list[PackageManifest] = []
    for manifest in workspace.packages.values():
        updated_manifest = star_local_deps(manifest, local_packages)
        if updated_manifest:
            updated.append(updated_manifest)

    if write:
        write_manifest_updates(updated)

    return updated
