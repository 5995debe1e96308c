"""Value types shared by manifest readers and workspace managers."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

DependencyKind = Literal["prod", "dev"]

# Version reported for manifests that declare none
DEFAULT_VERSION = "0.0.0"

# Range reported for dependencies declared without a constraint
WILDCARD_RANGE = "*"


@dataclass(frozen=True)
class DependencySpec:
    """A single dependency declared by a package manifest.

    Attributes:
        name: Dependency package name
        version: Raw, ecosystem-native version range (e.g. "^1.2.0", ">=2.0")
        kind: "prod" for runtime dependencies, "dev" for development ones
    """

    name: str
    version: str
    kind: DependencyKind = "prod"


@dataclass(frozen=True)
class Package:
    """A package discovered in a workspace.

    Packages are snapshots of on-disk state at load time. Patching a
    package rewrites its manifest but never this record; reload the
    workspace to observe the change.

    Attributes:
        name: Package name (never empty)
        version: Package version, "0.0.0" when the manifest has none
        relative_path: Workspace-root-relative, slash-separated directory
        dependencies: Merged dependency mapping keyed by name
        manifest: Parsed manifest, when the reader keeps it
    """

    name: str
    version: str
    relative_path: str
    dependencies: dict[str, DependencySpec] = field(default_factory=dict)
    manifest: dict[str, Any] | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Workspace:
    """A workspace root, its ecosystem tag and its packages in discovery order."""

    type: str
    path: Path
    packages: list[Package] = field(default_factory=list)

    def get_package(self, name: str) -> Package | None:
        """Find a package by name.

        Args:
            name: Package name

        Returns:
            The first package with that name, or None
        """
        for package in self.packages:
            if package.name == name:
                return package
        return None

    def package_path(self, package: Package) -> Path:
        """Return the directory of a package on disk."""
        return self.path / package.relative_path


@dataclass
class PatchRequest:
    """Version edits to apply to one package manifest.

    Attributes:
        new_version: New package version; None leaves the version untouched
        dependencies_versions: Dependency name -> new version
    """

    new_version: str | None = None
    dependencies_versions: dict[str, str] = field(default_factory=dict)


def merge_dependencies(
    *groups: tuple[DependencyKind, Iterable[tuple[str, str]]],
) -> dict[str, DependencySpec]:
    """Merge raw dependency groups into one mapping keyed by name.

    Groups are merged in the order given; a name that appears in
    several groups keeps the entry from the last one.

    Args:
        groups: (kind, iterable of (name, version)) pairs

    Returns:
        Dependency mapping
    """
    merged: dict[str, DependencySpec] = {}
    for kind, entries in groups:
        for name, version in entries:
            merged[name] = DependencySpec(name=name, version=version, kind=kind)
    return merged
