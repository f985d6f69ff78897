"""package.json reading and writing utilities.

Manifests are written back with 2-space indentation and a trailing newline,
which is what npm, yarn and pnpm produce. Key order is kept so that a
rewritten file only differs in the field that was edited.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .models import PackageManifest


class ManifestError(RuntimeError):
    """A package.json could not be read or parsed."""


def load_json(path: Path) -> dict[str, Any]:
    """Load and parse a JSON object from disk."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ManifestError(f"Could not read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"Expected a JSON object in {path}")
    return data


def load_manifest(path: Path) -> PackageManifest:
    """Load a package.json file into a PackageManifest."""
    return PackageManifest(path=path, data=load_json(path))


def dump_manifest(manifest: PackageManifest) -> str:
    """Serialize a manifest the way package managers format package.json."""
    return json.dumps(manifest.data, indent=2, ensure_ascii=False) + "\n"


def save_manifest(manifest: PackageManifest) -> None:
    """Write a manifest back to its package.json."""
    manifest.path.write_text(dump_manifest(manifest), encoding="utf-8")


def write_manifest_updates(manifests: Iterable[PackageManifest]) -> None:
    """Write each updated manifest to disk.

    Files are written one at a time with no rollback, so a failure part way
    through leaves the earlier files updated.
    """
    for manifest in manifests:
        save_manifest(manifest)
