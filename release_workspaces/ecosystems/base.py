"""Abstract base class for workspace managers and their registry.

A workspace manager encapsulates everything ecosystem-specific about a
multi-package workspace:
- Detection from marker files at the workspace root
- Default member patterns (usually read from a declaration file)
- The manifest reader used to turn a directory into a Package
- Writing version and dependency edits back to a package manifest
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from release_workspaces.discovery import (
    PackageReader,
    find_packages_from_pattern,
    split_negated_patterns,
)
from release_workspaces.exceptions import NotImplementedOperationError
from release_workspaces.host import Host, default_host
from release_workspaces.models import Package, PatchRequest, Workspace

if TYPE_CHECKING:
    from release_workspaces.config.models import WorkspaceConfig

logger = logging.getLogger(__name__)


class WorkspaceManager(ABC):
    """Abstract base class for workspace manager implementations.

    Managers are stateless; the registry keeps one instance per
    ecosystem and every method receives the workspace root it works on.
    """

    # Class-level attributes to be defined by subclasses
    type: ClassVar[str]
    display_name: ClassVar[str]
    aliases: ClassVar[tuple[str, ...]] = ()
    marker_files: ClassVar[tuple[str, ...]]  # Files that indicate this ecosystem
    priority: ClassVar[int]  # Lower values are tried first during auto-detection

    def detect(self, root: Path, *, host: Host | None = None) -> bool:
        """Detect if a directory is a workspace of this ecosystem.

        The default implementation checks for any marker file.

        Args:
            root: Candidate workspace root
            host: File system access (local file system by default)

        Returns:
            True if the ecosystem is detected
        """
        host = host or default_host()
        root = Path(root)
        return any(host.path_exists(root / marker) for marker in self.marker_files)

    @abstractmethod
    def default_patterns(self, root: Path, host: Host) -> tuple[list[str], list[str]]:
        """Get the member patterns a workspace declares.

        Args:
            root: Workspace root
            host: File system access

        Returns:
            (include patterns, extra ignore patterns)

        Raises:
            ManifestMissingError: If the workspace declaration is absent
            ManifestParseError: If the workspace declaration is malformed
        """

    @abstractmethod
    def package_reader(self, root: Path, host: Host) -> PackageReader:
        """Get the manifest reader for packages of this workspace."""

    def load(
        self,
        root: Path,
        config: "WorkspaceConfig | None" = None,
        *,
        host: Host | None = None,
    ) -> Workspace:
        """Discover the packages of a workspace.

        Patterns from ``config.package_patterns`` replace the declared
        ones; the declaration is then not read at all. Configured entries
        starting with "!" are excludes.

        Args:
            root: Workspace root
            config: Workspace configuration
            host: File system access (local file system by default)

        Returns:
            Workspace with packages in discovery order
        """
        host = host or default_host()
        root = Path(root)

        if config is not None and config.package_patterns:
            patterns, ignore = split_negated_patterns(config.package_patterns)
        else:
            patterns, ignore = self.default_patterns(root, host)

        packages = find_packages_from_pattern(
            host,
            root,
            patterns,
            self.package_reader(root, host),
            ignore=ignore,
            max_workers=config.max_workers if config is not None else None,
        )
        logger.info(
            "Loaded %s workspace at %s with %d package(s)", self.type, root, len(packages)
        )
        return Workspace(type=self.type, path=root, packages=packages)

    def update_versions_for_package(
        self,
        workspace: Workspace,
        package: Package,
        patch: PatchRequest,
        *,
        host: Host | None = None,
    ) -> bool:
        """Write version and dependency edits to a package manifest.

        Args:
            workspace: Loaded workspace the package belongs to
            package: Package to patch
            patch: Edits to apply
            host: File system access (local file system by default)

        Returns:
            True if a manifest was rewritten

        Raises:
            NotImplementedOperationError: If the ecosystem cannot patch manifests
        """
        raise NotImplementedOperationError(
            f"Updating package versions is not supported for {self.display_name}",
            details=f"Ecosystem: {self.type}",
        )


class WorkspaceManagerRegistry:
    """Registry for workspace manager implementations.

    Holds one manager instance per ecosystem, addressable by type or
    alias, and ordered by priority for auto-detection.
    """

    _managers: dict[str, WorkspaceManager] = {}
    _aliases: dict[str, str] = {}

    @classmethod
    def register(cls, manager_class: type[WorkspaceManager]) -> type[WorkspaceManager]:
        """Register a workspace manager class.

        Can be used as a decorator:
            @WorkspaceManagerRegistry.register
            class CargoWorkspaceManager(WorkspaceManager):
                ...

        Args:
            manager_class: Manager class to register

        Returns:
            The registered class (for decorator usage)

        Raises:
            TypeError: If manager_class is missing required attributes
            ValueError: If the type or an alias is already registered
        """
        # Validate required class attributes exist
        required_attrs = ["type", "display_name", "marker_files", "priority"]
        missing = [attr for attr in required_attrs if not hasattr(manager_class, attr)]
        if missing:
            raise TypeError(
                f"Workspace manager {manager_class.__name__} missing required "
                f"class attributes: {', '.join(missing)}. "
                "All managers must define 'type', 'display_name', 'marker_files', "
                "and 'priority'."
            )

        # Validate type is a non-empty string
        name = manager_class.type
        if not isinstance(name, str) or not name:
            raise TypeError(
                f"Workspace manager {manager_class.__name__}.type must be a non-empty "
                f"string, got {type(name).__name__}: {name!r}"
            )
        if not isinstance(manager_class.priority, int):
            raise TypeError(
                f"Workspace manager {manager_class.__name__}.priority must be an int"
            )

        # Check for duplicate types (allow re-registration of same class)
        key = name.lower()
        if key in cls._managers:
            existing = type(cls._managers[key])
            if existing is not manager_class:
                raise ValueError(
                    f"Workspace type '{name}' already registered by {existing.__name__}. "
                    f"Cannot register {manager_class.__name__}."
                )
            # Same class registered twice - idempotent, just return
            return manager_class

        aliases = [alias.lower() for alias in manager_class.aliases]
        for alias in aliases:
            if alias in cls._managers or alias in cls._aliases:
                raise ValueError(
                    f"Alias '{alias}' of {manager_class.__name__} is already registered."
                )

        cls._managers[key] = manager_class()
        for alias in aliases:
            cls._aliases[alias] = key
        return manager_class

    @classmethod
    def get(cls, name: str) -> WorkspaceManager | None:
        """Get a manager by type or alias (case-insensitive).

        Args:
            name: Ecosystem type or alias

        Returns:
            Manager instance or None if not found
        """
        key = name.lower()
        return cls._managers.get(cls._aliases.get(key, key))

    @classmethod
    def ordered(cls) -> list[WorkspaceManager]:
        """List managers in auto-detection order (ascending priority)."""
        return sorted(cls._managers.values(), key=lambda manager: manager.priority)

    @classmethod
    def detect(cls, root: Path, *, host: Host | None = None) -> WorkspaceManager | None:
        """Detect the ecosystem of a workspace root.

        Managers are tried in priority order, independently of the
        order in which they were registered.

        Args:
            root: Workspace root
            host: File system access (local file system by default)

        Returns:
            First matching manager, or None
        """
        for manager in cls.ordered():
            if manager.detect(root, host=host):
                logger.debug("Detected %s workspace at %s", manager.type, root)
                return manager
        return None

    @classmethod
    def list_registered(cls) -> list[str]:
        """List all registered ecosystem types in priority order.

        Returns:
            List of ecosystem types
        """
        return [manager.type for manager in cls.ordered()]
