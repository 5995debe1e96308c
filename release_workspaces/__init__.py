"""Multi-ecosystem workspace package discovery and version patching."""

__version__ = "0.1.0"

from release_workspaces.exceptions import (
    ConfigurationError,
    ManifestMissingError,
    ManifestParseError,
    NoWorkspaceDetectedError,
    NotImplementedOperationError,
    PackageNotFoundError,
    UnknownEcosystemError,
    WorkspaceError,
)
from release_workspaces.models import DependencySpec, Package, PatchRequest, Workspace
from release_workspaces.resolver import (
    get_ecosystem,
    list_ecosystems,
    load_workspace,
    resolve_workspace_manager,
)

__all__ = [
    "__version__",
    "DependencySpec",
    "Package",
    "PatchRequest",
    "Workspace",
    "get_ecosystem",
    "list_ecosystems",
    "load_workspace",
    "resolve_workspace_manager",
    "WorkspaceError",
    "ConfigurationError",
    "NoWorkspaceDetectedError",
    "UnknownEcosystemError",
    "ManifestMissingError",
    "ManifestParseError",
    "NotImplementedOperationError",
    "PackageNotFoundError",
]
