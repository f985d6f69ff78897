"""Data models for better-deps.

These Pydantic models represent the workspace snapshot that every pass reads
and the options that drive each pass. Manifests are frozen: a pass never edits
the snapshot it read, it builds a new manifest holding the changed field.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEPENDENCIES = "dependencies"
DEV_DEPENDENCIES = "devDependencies"
PEER_DEPENDENCIES = "peerDependencies"

# Map of dependency name -> version specifier, as stored in package.json
Dependencies = dict[str, str]
# Map of version specifier -> names of the packages using it (first-seen order)
DependencyVersionMap = dict[str, list[str]]
# Map of dependency name -> versions used across the workspace
CollectedDeps = dict[str, DependencyVersionMap]


class PackageManifest(BaseModel):
    """A parsed package.json and the file it was read from.

    Attributes:
        path: Location of the package.json file. Only used when writing.
        data: The parsed JSON object, in file key order.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        """Package name, falling back to the containing directory name."""
        return self.data.get("name") or self.path.parent.name

    @property
    def version(self) -> str:
        return self.data.get("version", "0.0.0")

    @property
    def dependencies(self) -> Dependencies:
        return self._get_deps(DEPENDENCIES)

    @property
    def dev_dependencies(self) -> Dependencies:
        return self._get_deps(DEV_DEPENDENCIES)

    @property
    def peer_dependencies(self) -> Dependencies:
        return self._get_deps(PEER_DEPENDENCIES)

    def _get_deps(self, field: str) -> Dependencies:
        # Always a copy so callers can't reach into the snapshot
        return dict(self.data.get(field) or {})

    def with_dev_dependencies(self, deps: Dependencies | None) -> PackageManifest:
        """Return a copy of this manifest with devDependencies replaced.

        The field keeps its position in the file. It is appended when the
        manifest didn't have one, and dropped when ``deps`` is None.
        """
        if deps is None:
            data = {k: v for k, v in self.data.items() if k != DEV_DEPENDENCIES}
        elif DEV_DEPENDENCIES in self.data:
            data = {
                k: (dict(deps) if k == DEV_DEPENDENCIES else v)
                for k, v in self.data.items()
            }
        else:
            data = {**self.data, DEV_DEPENDENCIES: dict(deps)}
        return self.model_copy(update={"data": data})


class Workspace(BaseModel):
    """A workspace root and its local packages.

    Attributes:
        root: Manifest at the workspace root. Never part of ``packages``.
        packages: Map of local package name -> manifest, in discovery order.
    """

    model_config = ConfigDict(frozen=True)

    root: PackageManifest
    packages: dict[str, PackageManifest] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_root_not_local(self) -> Workspace:
        if any(pkg.path == self.root.path for pkg in self.packages.values()):
            raise ValueError("the workspace root cannot also be a local package")
        return self

    @property
    def local_packages(self) -> list[str]:
        return list(self.packages)


class HoistOptions(BaseModel):
    """Policy for the hoist-dev-deps pass.

    Attributes:
        only: Only hoist these devDependencies. Mutually exclusive with the
              other options.
        threshold: Fraction of local packages (0 to 1) that must use the most
                   popular version of a dep before it's hoisted. 0 hoists
                   everything.
        always: Hoist these regardless of popularity (needs ``threshold``).
        exclude: Never hoist these.
    """

    model_config = ConfigDict(frozen=True)

    only: list[str] | None = None
    threshold: float = 0
    always: list[str] | None = None
    exclude: list[str] | None = None

    @model_validator(mode="after")
    def _check_compatible(self) -> HoistOptions:
        errors: list[str] = []
        if self.only is not None and (
            self.threshold or self.always is not None or self.exclude is not None
        ):
            errors.append("`only` and other options are not compatible")
        if self.always is not None and not self.threshold:
            errors.append("`always` is only relevant with `threshold`")
        if not 0 <= self.threshold <= 1:
            errors.append("`threshold` must be between 0 and 1 inclusive")
        if set(self.exclude or []) & set(self.always or []):
            errors.append("a package cannot be listed in both `exclude` and `always`")
        if errors:
            raise ValueError("; ".join(errors))
        return self


class UnpinOptions(BaseModel):
    """Policy for the unpin-dev-deps pass.

    Attributes:
        exclude: Leave these devDependencies alone.
        range: Range type for deps not listed in ``patch`` or ``minor``:
               minor (``^``) or patch (``~``).
        patch: Use patch ranges (``~``) for these.
        minor: Use minor ranges (``^``) for these.
    """

    model_config = ConfigDict(frozen=True)

    exclude: list[str] = Field(default_factory=list)
    range: Literal["minor", "patch"] = "minor"
    patch: list[str] = Field(default_factory=list)
    minor: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_compatible(self) -> UnpinOptions:
        if set(self.patch) & set(self.minor):
            raise ValueError("a package cannot be listed in both `patch` and `minor`")
        return self
