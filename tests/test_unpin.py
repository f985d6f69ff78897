"""Tests for better_deps.unpin."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from better_deps.models import PackageManifest, UnpinOptions, Workspace
from better_deps.unpin import VersionUpdate, apply_version_updates, plan_unpin, unpin_dev_deps
from better_deps.workspace import get_workspace

MakeWorkspace = Callable[..., Workspace]


def get_dev_dependencies(manifests: list[PackageManifest]) -> dict[str, dict[str, str]]:
    return {m.name: m.dev_dependencies for m in manifests}


def get_logs(capsys: pytest.CaptureFixture[str]) -> str:
    return capsys.readouterr().out.rstrip("\n")


class TestUnpinDevDeps:
    def test_basic(
        self, fake_workspace: MakeWorkspace, capsys: pytest.CaptureFixture[str]
    ) -> None:
        workspace = fake_workspace(
            root={"devDependencies": {"typescript": "4.0.1"}},
            packages={
                "pkg1": {"devDependencies": {"jest": "28.5.6"}},
                "pkg2": {"devDependencies": {"rimraf": "3.0.0", "typescript": "4.0.1"}},
            },
        )

        res = unpin_dev_deps(write=False, workspace=workspace)

        assert [m.name for m in res] == ["fake-root", "pkg1", "pkg2"]
        assert get_dev_dependencies(res) == {
            "fake-root": {"typescript": "^4.0.1"},
            "pkg1": {"jest": "^28.5.6"},
            "pkg2": {"rimraf": "^3.0.0", "typescript": "^4.0.1"},
        }
        assert get_logs(capsys) == (
            "Updating jest@28.5.6 to ^28.5.6\n"
            "Updating rimraf@3.0.0 to ^3.0.0\n"
            "Updating typescript@4.0.1 to ^4.0.1"
        )

    def test_multiple_versions(
        self, fake_workspace: MakeWorkspace, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Each pinned version gets its own range, even if they overlap."""
        workspace = fake_workspace(
            packages={
                "pkg1": {"devDependencies": {"jest": "28.5.6"}},
                "pkg2": {"devDependencies": {"jest": "28.0.0"}},
            },
        )

        res = unpin_dev_deps(write=False, workspace=workspace)

        assert get_dev_dependencies(res) == {
            "pkg1": {"jest": "^28.5.6"},
            "pkg2": {"jest": "^28.0.0"},
        }
        assert get_logs(capsys) == (
            "Updating jest@28.5.6 to ^28.5.6\nUpdating jest@28.0.0 to ^28.0.0"
        )

    @pytest.mark.parametrize(
        "version", ["^28.0.0", "~28.0.0", ">=28.0.0", "28.x", "*", "latest", "28.0.0-rc.0"]
    )
    def test_leaves_non_exact_versions(
        self,
        fake_workspace: MakeWorkspace,
        capsys: pytest.CaptureFixture[str],
        version: str,
    ) -> None:
        workspace = fake_workspace(packages={"pkg1": {"devDependencies": {"jest": version}}})

        assert unpin_dev_deps(write=False, workspace=workspace) == []
        assert get_logs(capsys) == ""

    def test_single_package_project(
        self, workspace_dir: Callable[..., Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        root = workspace_dir(root={"devDependencies": {"jest": "28.5.6"}}, workspaces=None)

        res = unpin_dev_deps(write=False, workspace=get_workspace(root))

        assert get_dev_dependencies(res) == {"fake-root": {"jest": "^28.5.6"}}
        assert get_logs(capsys) == "Updating jest@28.5.6 to ^28.5.6"

    def test_leaves_local_packages(
        self, fake_workspace: MakeWorkspace, capsys: pytest.CaptureFixture[str]
    ) -> None:
        workspace = fake_workspace(
            packages={
                "pkg1": {"devDependencies": {"jest": "28.5.6", "scripts": "1.0.0"}},
                "scripts": {},
            },
        )

        res = unpin_dev_deps(write=False, workspace=workspace)

        assert get_dev_dependencies(res) == {"pkg1": {"jest": "^28.5.6", "scripts": "1.0.0"}}
        assert get_logs(capsys) == "Updating jest@28.5.6 to ^28.5.6"

    def test_leaves_dependencies(self, fake_workspace: MakeWorkspace) -> None:
        workspace = fake_workspace(
            packages={"pkg1": {"dependencies": {"jest": "28.5.6"}}}
        )

        assert unpin_dev_deps(write=False, workspace=workspace) == []

    def test_exclude(
        self, fake_workspace: MakeWorkspace, capsys: pytest.CaptureFixture[str]
    ) -> None:
        workspace = fake_workspace(
            packages={"pkg1": {"devDependencies": {"jest": "28.5.6", "typescript": "4.0.3"}}}
        )

        res = unpin_dev_deps(
            UnpinOptions(exclude=["typescript"]), write=False, workspace=workspace
        )

        assert get_dev_dependencies(res) == {"pkg1": {"jest": "^28.5.6", "typescript": "4.0.3"}}
        assert get_logs(capsys) == "Updating jest@28.5.6 to ^28.5.6"

    def test_patch(
        self, fake_workspace: MakeWorkspace, capsys: pytest.CaptureFixture[str]
    ) -> None:
        workspace = fake_workspace(
            packages={"pkg1": {"devDependencies": {"jest": "28.5.6", "typescript": "4.0.3"}}}
        )

        res = unpin_dev_deps(
            UnpinOptions(patch=["typescript"]), write=False, workspace=workspace
        )

        assert get_dev_dependencies(res) == {"pkg1": {"jest": "^28.5.6", "typescript": "~4.0.3"}}
        assert get_logs(capsys) == (
            "Updating jest@28.5.6 to ^28.5.6\nUpdating typescript@4.0.3 to ~4.0.3"
        )

    def test_patch_range_with_minor_overrides(self, fake_workspace: MakeWorkspace) -> None:
        workspace = fake_workspace(
            packages={"pkg1": {"devDependencies": {"jest": "28.5.6", "typescript": "4.0.3"}}}
        )

        res = unpin_dev_deps(
            UnpinOptions(range="patch", minor=["jest"]), write=False, workspace=workspace
        )

        assert get_dev_dependencies(res) == {"pkg1": {"jest": "^28.5.6", "typescript": "~4.0.3"}}

    def test_writes_updates(self, workspace_dir: Callable[..., Path]) -> None:
        root = workspace_dir(packages={"pkg1": {"devDependencies": {"jest": "28.5.6"}}})

        unpin_dev_deps(workspace=get_workspace(root))

        assert get_workspace(root).packages["pkg1"].dev_dependencies == {"jest": "^28.5.6"}
        assert unpin_dev_deps(write=False, workspace=get_workspace(root)) == []


class TestPlanUnpin:
    def test_collects_one_update_per_version(
        self, fake_workspace: MakeWorkspace, capsys: pytest.CaptureFixture[str]
    ) -> None:
        workspace = fake_workspace(
            root={"devDependencies": {"jest": "28.5.6"}},
            packages={"pkg1": {"devDependencies": {"jest": "28.5.6"}}},
        )

        assert plan_unpin(workspace, UnpinOptions()) == [
            VersionUpdate("jest", "28.5.6", "^28.5.6")
        ]


class TestApplyVersionUpdates:
    def test_only_matching_versions_change(self) -> None:
        manifest = PackageManifest(
            path=Path("pkg1/package.json"),
            data={"name": "pkg1", "devDependencies": {"jest": "28.0.0", "glob": "8.0.0"}},
        )

        updated = apply_version_updates(manifest, [VersionUpdate("jest", "28.5.6", "^28.5.6")])

        assert updated is None

    def test_keeps_key_order(self) -> None:
        manifest = PackageManifest(
            path=Path("pkg1/package.json"),
            data={"name": "pkg1", "devDependencies": {"jest": "28.5.6", "glob": "8.0.0"}},
        )

        updated = apply_version_updates(manifest, [VersionUpdate("jest", "28.5.6", "^28.5.6")])

        assert updated is not None
        assert list(updated.dev_dependencies.items()) == [
            ("jest", "^28.5.6"),
            ("glob", "8.0.0"),
        ]
        assert manifest.dev_dependencies["jest"] == "28.5.6"
