"""Workspace discovery.

Finds the workspace root for a directory and loads the root manifest plus the
manifest of every local package. Supports the ``workspaces`` field of
package.json (npm and yarn, including yarn's ``{"packages": [...]}`` form) and
``pnpm-workspace.yaml``. A directory outside any monorepo is treated as a
single-package workspace with no local packages.
"""

from __future__ import annotations

import glob
from pathlib import Path
from typing import Any

from .manifest import ManifestError, load_json, load_manifest
from .models import PackageManifest, Workspace

PACKAGE_JSON = "package.json"
PNPM_WORKSPACE = "pnpm-workspace.yaml"
EXCLUDES = {"node_modules"}


class WorkspaceError(RuntimeError):
    """The workspace could not be found or is inconsistent."""


def _is_workspace_root(directory: Path) -> bool:
    if (directory / PNPM_WORKSPACE).exists():
        return True
    package_json = directory / PACKAGE_JSON
    return package_json.exists() and "workspaces" in load_json(package_json)


def find_workspace_root(cwd: Path) -> Path:
    """Find the root of the workspace containing ``cwd``.

    The closest ancestor that declares workspaces wins. If there is none, the
    closest directory with a package.json is the root of a single-package
    project.

    Raises:
        WorkspaceError: If no package.json exists in ``cwd`` or any parent.
    """
    cwd = cwd.resolve()
    nearest: Path | None = None
    for directory in (cwd, *cwd.parents):
        if _is_workspace_root(directory):
            return directory
        if nearest is None and (directory / PACKAGE_JSON).exists():
            nearest = directory

    if nearest is None:
        raise WorkspaceError(f"Directory does not appear to be within a workspace: {cwd}")
    return nearest


def _glob_list(value: Any, source: str) -> list[str]:
    if not isinstance(value, list):
        raise WorkspaceError(f"Workspace packages in {source} must be a list of globs")
    return [str(p) for p in value]


def get_workspace_member_globs(root: Path) -> list[str]:
    """Extract workspace member glob patterns for the workspace at ``root``.

    pnpm-workspace.yaml takes precedence over the package.json field. Patterns
    starting with ``!`` exclude directories matched by the other patterns.

    Raises:
        WorkspaceError: If the workspace file can't be parsed or doesn't hold
            a list of globs.
    """
    pnpm_workspace = root / PNPM_WORKSPACE
    if pnpm_workspace.exists():
        import yaml

        try:
            doc = yaml.safe_load(pnpm_workspace.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise WorkspaceError(f"Could not parse {pnpm_workspace}: {exc}") from exc
        if not isinstance(doc, dict):
            raise WorkspaceError(f"Expected a mapping in {pnpm_workspace}")
        return _glob_list(doc.get("packages") or [], str(pnpm_workspace))

    package_json = root / PACKAGE_JSON
    workspaces = load_json(package_json).get("workspaces") or []
    # Yarn also accepts {"packages": [...], "nohoist": [...]}
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages") or []
    return _glob_list(workspaces, str(package_json))


def _expand_member_globs(root: Path, patterns: list[str]) -> list[Path]:
    """Expand member globs into package directories, in sorted order."""
    excluded: set[Path] = set()
    for pattern in patterns:
        if pattern.startswith("!"):
            for match in glob.glob(str(root / pattern[1:]), recursive=True):
                excluded.add(Path(match).resolve())

    member_dirs: list[Path] = []
    for pattern in patterns:
        if pattern.startswith("!"):
            continue
        for match in sorted(glob.glob(str(root / pattern), recursive=True)):
            p = Path(match).resolve()
            if p == root or p in excluded or p in member_dirs:
                continue
            if EXCLUDES & set(p.relative_to(root).parts):
                continue
            if (p / PACKAGE_JSON).is_file():
                member_dirs.append(p)
    return member_dirs


def get_workspace(cwd: Path | None = None) -> Workspace:
    """Load the workspace containing ``cwd`` (default: current directory).

    Returns:
        Workspace with the root manifest and a map of local package name ->
        manifest. The root is never included in the local packages.

    Raises:
        WorkspaceError: If no workspace is found, a manifest can't be read,
            or two local packages share a name.
    """
    try:
        root = find_workspace_root(cwd or Path.cwd())
        root_manifest = load_manifest(root / PACKAGE_JSON)
        packages: dict[str, PackageManifest] = {}
        for d in _expand_member_globs(root, get_workspace_member_globs(root)):
            manifest = load_manifest(d / PACKAGE_JSON)
            if manifest.name in packages:
                raise WorkspaceError(
                    f"Duplicate package name {manifest.name!r} in "
                    f"{packages[manifest.name].path} and {manifest.path}"
                )
            packages[manifest.name] = manifest
    except ManifestError as exc:
        raise WorkspaceError(str(exc)) from exc

    return Workspace(root=root_manifest, packages=packages)
