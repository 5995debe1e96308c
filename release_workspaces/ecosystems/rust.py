"""Rust workspace manager for cargo workspaces and single crates."""

import functools
import logging
from pathlib import Path
from typing import Any

from release_workspaces.discovery import PackageReader
from release_workspaces.ecosystems.base import WorkspaceManager, WorkspaceManagerRegistry
from release_workspaces.exceptions import ManifestMissingError, ManifestParseError
from release_workspaces.host import Host, default_host
from release_workspaces.manifests.cargo import (
    CARGO_TOML,
    inherits_workspace_dependency,
    inherits_workspace_version,
    parse_cargo_toml,
    try_load_cargo_package,
    update_cargo_dependency,
    update_cargo_version,
    update_workspace_version,
    workspace_package_version,
)
from release_workspaces.models import Package, PatchRequest, Workspace

logger = logging.getLogger(__name__)


@WorkspaceManagerRegistry.register
class CargoWorkspaceManager(WorkspaceManager):
    """Cargo workspace (``[workspace].members``) or a single crate."""

    type = "cargo"
    display_name = "Cargo"
    aliases = ("rust",)
    marker_files = (CARGO_TOML,)
    priority = 40

    def _read_root(self, root: Path, host: Host) -> dict[str, Any]:
        """Read and parse the root Cargo.toml.

        Raises:
            ManifestMissingError: If the root Cargo.toml does not exist
            ManifestParseError: If it is not valid TOML
        """
        path = root / CARGO_TOML
        if not host.path_exists(path):
            raise ManifestMissingError(
                f"{CARGO_TOML} not found",
                details=f"Expected at: {path}",
                fix_hint="Run from the root of a cargo workspace or crate",
            )
        return parse_cargo_toml(host.read_file(path), path)

    def default_patterns(self, root: Path, host: Host) -> tuple[list[str], list[str]]:
        """Read workspace members from the root Cargo.toml.

        A root that is also a package is listed first. A crate without
        a [workspace] table is its own only member.
        """
        data = self._read_root(root, host)
        workspace = data.get("workspace")
        if not isinstance(workspace, dict):
            return ["."], []

        members = [m for m in workspace.get("members", []) if isinstance(m, str)]
        exclude = [e for e in workspace.get("exclude", []) if isinstance(e, str)]
        if isinstance(data.get("package"), dict):
            members.insert(0, ".")
        return members, exclude

    def package_reader(self, root: Path, host: Host) -> PackageReader:
        """Read crate manifests, resolving versions inherited from the root."""
        try:
            data = self._read_root(root, host)
        except (ManifestMissingError, ManifestParseError) as e:
            logger.debug("No workspace version available: %s", e.message)
            data = {}
        return functools.partial(
            try_load_cargo_package, workspace_version=workspace_package_version(data)
        )

    def update_versions_for_package(
        self,
        workspace: Workspace,
        package: Package,
        patch: PatchRequest,
        *,
        host: Host | None = None,
    ) -> bool:
        """Rewrite versions in a crate's Cargo.toml.

        A crate using ``version.workspace = true`` gets its new version
        written to ``[workspace.package]`` of the root Cargo.toml, and a
        dependency declared with ``{ workspace = true }`` is rewritten in
        the root ``[workspace.dependencies]`` table.

        Args:
            workspace: Loaded workspace the package belongs to
            package: Crate to patch
            patch: Edits to apply
            host: File system access (local file system by default)

        Returns:
            True if any manifest was rewritten
        """
        host = host or default_host()
        path = workspace.package_path(package) / CARGO_TOML
        content = host.read_file(path)
        new_content = content
        is_root = package.relative_path == "."
        root_version: str | None = None
        root_dependencies: dict[str, str] = {}

        if patch.new_version is not None:
            if not inherits_workspace_version(content):
                new_content = update_cargo_version(new_content, patch.new_version)
            elif is_root:
                new_content = update_workspace_version(new_content, patch.new_version)
            else:
                root_version = patch.new_version

        for dep_name, new_version in patch.dependencies_versions.items():
            new_content = update_cargo_dependency(new_content, dep_name, new_version)
            if not is_root and inherits_workspace_dependency(content, dep_name):
                root_dependencies[dep_name] = new_version

        changed = False
        if root_version is not None or root_dependencies:
            changed = self._update_root(workspace, root_version, root_dependencies, host)

        if new_content == content:
            logger.debug("No changes for %s", path)
            return changed

        host.write_file(path, new_content)
        logger.info("Updated %s", path)
        return True

    def _update_root(
        self,
        workspace: Workspace,
        new_version: str | None,
        dependencies: dict[str, str],
        host: Host,
    ) -> bool:
        root_path = workspace.path / CARGO_TOML
        content = host.read_file(root_path)
        new_content = content
        if new_version is not None:
            new_content = update_workspace_version(new_content, new_version)
        for dep_name, dep_version in dependencies.items():
            new_content = update_cargo_dependency(new_content, dep_name, dep_version)
        if new_content == content:
            logger.debug("No inherited versions to update in %s", root_path)
            return False
        host.write_file(root_path, new_content)
        logger.info("Updated workspace root %s", root_path)
        return True
