"""Custom exception hierarchy for workspace discovery and patching.

Exit codes follow Unix conventions:
- 1: General error
- 2: Configuration error
- 3: No workspace detected
- 4: Unknown ecosystem
- 5: Workspace declaration missing
- 6: Manifest parse error
- 7: Operation not implemented for an ecosystem
- 8: Package not found in workspace
"""


class WorkspaceError(Exception):
    """Base exception for all workspace errors.

    All workspace-related exceptions inherit from this class.
    Each subclass defines an exit_code for CLI error reporting.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Brief error message
            details: Detailed explanation of what went wrong
            fix_hint: Suggested command or action to fix the issue
        """
        super().__init__(message)
        self.message = message
        self.details = details
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"\nDetails: {self.details}")
        if self.fix_hint:
            parts.append(f"\nFix: {self.fix_hint}")
        return "".join(parts)


class ConfigurationError(WorkspaceError):
    """Configuration file errors.

    Raised when:
    - An explicitly requested config file does not exist
    - Config file has invalid syntax (YAML/TOML)
    - Config values fail validation
    """

    exit_code = 2


class NoWorkspaceDetectedError(WorkspaceError):
    """Auto-detection found no registered ecosystem for a directory."""

    exit_code = 3


class UnknownEcosystemError(WorkspaceError):
    """A forced ecosystem type or alias is not registered."""

    exit_code = 4


class ManifestMissingError(WorkspaceError):
    """The workspace declaration an ecosystem needs is absent.

    Raised when:
    - package.json has no ``workspaces`` array
    - pnpm-workspace.yaml has no ``packages`` entry
    - rush.json has no ``projects`` entry
    - The root declaration file itself does not exist
    """

    exit_code = 5


class ManifestParseError(WorkspaceError):
    """A manifest file could not be parsed.

    Package discovery recovers from this error locally and skips the
    directory. It only reaches callers when a workspace declaration or a
    manifest being patched is malformed.
    """

    exit_code = 6


class NotImplementedOperationError(WorkspaceError, NotImplementedError):
    """An ecosystem does not support the requested operation."""

    exit_code = 7


class PackageNotFoundError(WorkspaceError):
    """A package name does not exist in the loaded workspace."""

    exit_code = 8
