"""Node.js workspace managers: pnpm, Rush and npm.

All three share package.json as the package manifest; they differ in
where the workspace members are declared:
- pnpm: ``packages`` list of pnpm-workspace.yaml (``!glob`` excludes)
- Rush: ``projects[].projectFolder`` of rush.json (JSON with comments)
- npm: ``workspaces`` of the root package.json (array or {packages: [...]})
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from release_workspaces.discovery import PackageReader, split_negated_patterns
from release_workspaces.ecosystems.base import WorkspaceManager, WorkspaceManagerRegistry
from release_workspaces.exceptions import ManifestMissingError, ManifestParseError
from release_workspaces.host import Host, default_host
from release_workspaces.manifests.node import (
    PACKAGE_JSON,
    parse_package_json,
    try_load_node_package,
    update_package_json,
)
from release_workspaces.models import Package, PatchRequest, Workspace

logger = logging.getLogger(__name__)

PNPM_WORKSPACE_YAML = "pnpm-workspace.yaml"
RUSH_JSON = "rush.json"

# Strings are matched first so comment markers inside them survive
_JSON_COMMENT_RE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)


class NodeWorkspaceManager(WorkspaceManager):
    """Shared package.json handling for Node.js workspace managers."""

    def package_reader(self, root: Path, host: Host) -> PackageReader:
        """Read package.json manifests."""
        return try_load_node_package

    def update_versions_for_package(
        self,
        workspace: Workspace,
        package: Package,
        patch: PatchRequest,
        *,
        host: Host | None = None,
    ) -> bool:
        """Write version and dependency edits to a package.json.

        Args:
            workspace: Loaded workspace the package belongs to
            package: Package to patch
            patch: Edits to apply
            host: File system access (local file system by default)

        Returns:
            True if package.json was rewritten

        Raises:
            ManifestParseError: If package.json is not valid JSON
        """
        host = host or default_host()
        path = workspace.package_path(package) / PACKAGE_JSON
        return update_package_json(host, path, patch)


@WorkspaceManagerRegistry.register
class PnpmWorkspaceManager(NodeWorkspaceManager):
    """pnpm workspace declared in pnpm-workspace.yaml."""

    type = "pnpm"
    display_name = "pnpm"
    marker_files = (PNPM_WORKSPACE_YAML,)
    priority = 10

    def default_patterns(self, root: Path, host: Host) -> tuple[list[str], list[str]]:
        """Read member patterns from pnpm-workspace.yaml.

        Raises:
            ManifestMissingError: If the file or its packages list is absent
            ManifestParseError: If the file is not valid YAML
        """
        path = root / PNPM_WORKSPACE_YAML
        if not host.path_exists(path):
            raise ManifestMissingError(
                f"{PNPM_WORKSPACE_YAML} not found",
                details=f"Expected at: {path}",
                fix_hint="Run from the root of a pnpm workspace",
            )

        try:
            data = yaml.safe_load(host.read_file(path))
        except yaml.YAMLError as e:
            raise ManifestParseError(
                f"Invalid YAML in {path}",
                details=str(e),
                fix_hint=f"Fix YAML syntax errors in {path}",
            ) from e

        packages = data.get("packages") if isinstance(data, dict) else None
        if not isinstance(packages, list):
            raise ManifestMissingError(
                f"No packages defined in {PNPM_WORKSPACE_YAML}",
                fix_hint="Add a 'packages' list of globs to pnpm-workspace.yaml",
            )

        return split_negated_patterns([str(entry) for entry in packages])


@WorkspaceManagerRegistry.register
class RushWorkspaceManager(NodeWorkspaceManager):
    """Rush monorepo declared in rush.json."""

    type = "rush"
    display_name = "Rush"
    marker_files = (RUSH_JSON,)
    priority = 20

    def default_patterns(self, root: Path, host: Host) -> tuple[list[str], list[str]]:
        """Read project folders from rush.json.

        Raises:
            ManifestMissingError: If the file or its projects list is absent
            ManifestParseError: If the file is not valid JSON with comments
        """
        path = root / RUSH_JSON
        if not host.path_exists(path):
            raise ManifestMissingError(
                f"{RUSH_JSON} not found",
                details=f"Expected at: {path}",
                fix_hint="Run from the root of a Rush monorepo",
            )

        data = parse_json_with_comments(host.read_file(path), path)
        projects = data.get("projects")
        if not isinstance(projects, list):
            raise ManifestMissingError(
                f"No projects defined in {RUSH_JSON}",
                fix_hint="Add a 'projects' list to rush.json",
            )

        folders = [
            project["projectFolder"]
            for project in projects
            if isinstance(project, dict) and isinstance(project.get("projectFolder"), str)
        ]
        return folders, []


@WorkspaceManagerRegistry.register
class NpmWorkspaceManager(NodeWorkspaceManager):
    """npm workspace declared by the ``workspaces`` field of package.json."""

    type = "npm"
    display_name = "npm"
    marker_files = (PACKAGE_JSON,)
    priority = 30

    def detect(self, root: Path, *, host: Host | None = None) -> bool:
        """Detect a package.json that declares workspaces.

        A plain package.json (a single package) is not a workspace.

        Returns:
            True if package.json has a non-empty workspaces declaration
        """
        host = host or default_host()
        path = Path(root) / PACKAGE_JSON
        if not host.path_exists(path):
            return False
        try:
            data = parse_package_json(host.read_file(path), path)
        except ManifestParseError:
            return False
        return bool(workspace_patterns(data))

    def default_patterns(self, root: Path, host: Host) -> tuple[list[str], list[str]]:
        """Read the workspaces declaration of the root package.json.

        Raises:
            ManifestMissingError: If package.json or its workspaces are absent
            ManifestParseError: If package.json is not valid JSON
        """
        path = root / PACKAGE_JSON
        if not host.path_exists(path):
            raise ManifestMissingError(
                f"{PACKAGE_JSON} not found",
                details=f"Expected at: {path}",
                fix_hint="Run from the root of an npm workspace",
            )

        patterns = workspace_patterns(parse_package_json(host.read_file(path), path))
        if not patterns:
            raise ManifestMissingError(
                f"No workspaces defined in {path}",
                fix_hint='Add "workspaces": ["packages/*"] to package.json',
            )
        return patterns, []


def workspace_patterns(data: dict[str, Any]) -> list[str]:
    """Extract workspace globs from a parsed package.json.

    Workspaces can be an array or an object with a "packages" key.
    """
    workspaces = data.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if not isinstance(workspaces, list):
        return []
    return [pattern for pattern in workspaces if isinstance(pattern, str)]


def parse_json_with_comments(content: str, path: Path) -> dict[str, Any]:
    """Parse JSON that may contain // and /* */ comments (rush.json style).

    Raises:
        ManifestParseError: If the content is not a JSON object
    """
    stripped = _JSON_COMMENT_RE.sub(lambda m: m.group(1) or "", content)
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise ManifestParseError(
            f"Invalid JSON in {path}",
            details=str(e),
            fix_hint=f"Fix JSON syntax errors in {path}",
        ) from e
    if not isinstance(data, dict):
        raise ManifestParseError(f"{path} is not a JSON object")
    return data
