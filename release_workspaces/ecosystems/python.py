"""Python workspace manager.

Python has no native workspace declaration; packages are discovered
under ``sdk/`` unless configured otherwise. Each package is described
by a pyproject.toml (PEP 621 or Poetry, TOML or YAML encoded) or a
setup.py.
"""

import logging
from pathlib import Path

from release_workspaces.discovery import PackageReader
from release_workspaces.ecosystems.base import WorkspaceManager, WorkspaceManagerRegistry
from release_workspaces.host import Host, default_host
from release_workspaces.manifests.patcher import apply_pyproject_patch, apply_setup_py_patch
from release_workspaces.manifests.python import (
    PYPROJECT_TOML,
    REQUIREMENTS_TXT,
    SETUP_PY,
    find_manifest,
    try_load_python_package,
)
from release_workspaces.models import Package, PatchRequest, Workspace

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ("sdk/**",)


@WorkspaceManagerRegistry.register
class PythonWorkspaceManager(WorkspaceManager):
    """Python (pip) workspace of independently packaged distributions."""

    type = "python"
    display_name = "Python"
    aliases = ("py", "pip")
    marker_files = (SETUP_PY, PYPROJECT_TOML, REQUIREMENTS_TXT)
    priority = 50

    def default_patterns(self, root: Path, host: Host) -> tuple[list[str], list[str]]:
        """Return the conventional ``sdk/**`` layout."""
        return list(DEFAULT_PATTERNS), []

    def package_reader(self, root: Path, host: Host) -> PackageReader:
        """Read pyproject.toml, falling back to setup.py."""
        return try_load_python_package

    def update_versions_for_package(
        self,
        workspace: Workspace,
        package: Package,
        patch: PatchRequest,
        *,
        host: Host | None = None,
    ) -> bool:
        """Rewrite versions in the package's pyproject.toml or setup.py.

        The manifest the package was read from is patched: pyproject.toml
        when it declares the package, otherwise setup.py. A package with
        neither is left alone. Edits that match nothing leave the file
        untouched.

        Args:
            workspace: Loaded workspace the package belongs to
            package: Package to patch
            patch: Edits to apply
            host: File system access (local file system by default)

        Returns:
            True if a manifest was rewritten
        """
        host = host or default_host()
        directory = workspace.package_path(package)

        path = find_manifest(host, directory)
        if path is None:
            logger.debug("No Python manifest for %s in %s", package.name, directory)
            return False
        apply = apply_pyproject_patch if path.name == PYPROJECT_TOML else apply_setup_py_patch

        content = host.read_file(path)
        new_content = apply(content, patch)
        if new_content == content:
            logger.debug("No changes for %s", path)
            return False

        host.write_file(path, new_content)
        logger.info("Updated %s", path)
        return True
