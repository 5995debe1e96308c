"""Workspace manager selection and one-call workspace loading."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from release_workspaces.ecosystems import WorkspaceManager, WorkspaceManagerRegistry
from release_workspaces.exceptions import NoWorkspaceDetectedError, UnknownEcosystemError
from release_workspaces.host import Host
from release_workspaces.models import Workspace

if TYPE_CHECKING:
    from release_workspaces.config.models import WorkspaceConfig

logger = logging.getLogger(__name__)

AUTO = "auto"


def resolve_workspace_manager(
    root: Path,
    ecosystem: str | None = AUTO,
    *,
    host: Host | None = None,
) -> WorkspaceManager:
    """Select the workspace manager for a root directory.

    With "auto" (or None) every registered manager is asked, in
    priority order, whether the root is its kind of workspace. A
    specific type or alias is trusted as-is: detection is skipped.

    Args:
        root: Workspace root
        ecosystem: Ecosystem type, alias, or "auto"
        host: File system access (local file system by default)

    Returns:
        Selected manager

    Raises:
        NoWorkspaceDetectedError: If no manager recognizes the root
        UnknownEcosystemError: If a forced ecosystem is not registered
    """
    if ecosystem is None or ecosystem.lower() == AUTO:
        manager = WorkspaceManagerRegistry.detect(Path(root), host=host)
        if manager is None:
            raise NoWorkspaceDetectedError(
                f"No workspace detected at {root}",
                details=f"Tried: {', '.join(WorkspaceManagerRegistry.list_registered())}",
                fix_hint="Pass an explicit ecosystem (e.g. --ecosystem python)",
            )
        return manager

    manager = WorkspaceManagerRegistry.get(ecosystem)
    if manager is None:
        raise UnknownEcosystemError(
            f"Unknown ecosystem: {ecosystem}",
            details=f"Available: {', '.join(WorkspaceManagerRegistry.list_registered())}",
            fix_hint="Use one of the available ecosystem types or 'auto'",
        )
    logger.debug("Using forced ecosystem %s for %s", manager.type, root)
    return manager


def load_workspace(
    root: Path,
    ecosystem: str | None = None,
    config: "WorkspaceConfig | None" = None,
    *,
    host: Host | None = None,
) -> Workspace:
    """Resolve the manager for a root and load its workspace.

    Args:
        root: Workspace root
        ecosystem: Ecosystem type, alias, or "auto"; defaults to config.ecosystem
        config: Workspace configuration
        host: File system access (local file system by default)

    Returns:
        Loaded workspace
    """
    if ecosystem is None and config is not None:
        ecosystem = config.ecosystem
    manager = resolve_workspace_manager(root, ecosystem, host=host)
    return manager.load(Path(root), config, host=host)


def get_ecosystem(type_: str) -> WorkspaceManager:
    """Look up a manager by canonical type only (aliases do not match).

    Raises:
        UnknownEcosystemError: If no manager has exactly this type
    """
    manager = WorkspaceManagerRegistry.get(type_)
    if manager is None or manager.type != type_:
        raise UnknownEcosystemError(
            f"Unknown ecosystem type: {type_}",
            details=f"Available: {', '.join(WorkspaceManagerRegistry.list_registered())}",
        )
    return manager


def list_ecosystems() -> list[WorkspaceManager]:
    """List registered managers in auto-detection order."""
    return WorkspaceManagerRegistry.ordered()
