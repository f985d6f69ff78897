"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from better_deps.models import PackageManifest, Workspace

ROOT_NAME = "fake-root"


@pytest.fixture
def fake_workspace() -> Callable[..., Workspace]:
    """Build an in-memory workspace from package.json contents.

    The root is named "fake-root" and packages live under
    fake-root/packages/<name>. Every manifest gets a name and version unless
    the given contents override them.
    """

    def _make(
        packages: dict[str, dict[str, Any]] | None = None,
        root: dict[str, Any] | None = None,
    ) -> Workspace:
        root_manifest = PackageManifest(
            path=Path(ROOT_NAME) / "package.json",
            data={"name": ROOT_NAME, "version": "1.0.0", **(root or {})},
        )
        local = {
            name: PackageManifest(
                path=Path(ROOT_NAME) / "packages" / name / "package.json",
                data={"name": name, "version": "1.0.0", **data},
            )
            for name, data in (packages or {}).items()
        }
        return Workspace(root=root_manifest, packages=local)

    return _make


def write_json(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")


@pytest.fixture
def workspace_dir(tmp_path: Path) -> Callable[..., Path]:
    """Write a workspace to disk and return its root directory.

    Packages are written to packages/<name>/package.json and listed in the
    root "workspaces" field. Pass ``workspaces=None`` for a single-package
    project.
    """

    def _make(
        packages: dict[str, dict[str, Any]] | None = None,
        root: dict[str, Any] | None = None,
        workspaces: list[str] | None = ["packages/*"],
    ) -> Path:
        root_data: dict[str, Any] = {"name": ROOT_NAME, "version": "1.0.0", "private": True}
        if workspaces is not None:
            root_data["workspaces"] = workspaces
        write_json(tmp_path / "package.json", {**root_data, **(root or {})})
        for name, data in (packages or {}).items():
            write_json(
                tmp_path / "packages" / name / "package.json",
                {"name": name, "version": "1.0.0", **data},
            )
        return tmp_path

    return _make
