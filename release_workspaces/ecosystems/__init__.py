"""Workspace manager implementations, one module per ecosystem family."""

from release_workspaces.ecosystems.base import WorkspaceManager, WorkspaceManagerRegistry

# Import manager implementations to trigger registration
from release_workspaces.ecosystems import (
    nodejs,  # noqa: F401
    python,  # noqa: F401
    rust,  # noqa: F401
)

__all__ = ["WorkspaceManager", "WorkspaceManagerRegistry"]
