"""Default configuration generation.

Writes a commented workspace_conf.yml pre-filled with the ecosystem
detected at the project root and the member patterns it declares.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from release_workspaces.exceptions import ConfigurationError, WorkspaceError
from release_workspaces.host import Host, default_host
from release_workspaces.resolver import AUTO, resolve_workspace_manager


def generate_default_config(project_root: Path, host: Host | None = None) -> dict[str, Any]:
    """Build the default configuration for a project.

    Falls back to ``ecosystem: auto`` with no patterns when nothing is
    detected or the workspace declaration cannot be read.

    Args:
        project_root: Project root directory
        host: File system access (local file system by default)

    Returns:
        Configuration dictionary
    """
    host = host or default_host()
    config: dict[str, Any] = {"ecosystem": AUTO, "package_patterns": None}
    try:
        manager = resolve_workspace_manager(project_root, AUTO, host=host)
        patterns, ignore = manager.default_patterns(project_root, host)
    except WorkspaceError:
        return config

    config["ecosystem"] = manager.type
    config["package_patterns"] = [*patterns, *(f"!{i}" for i in ignore)] or None
    return config


def generate_config_header(ecosystem: str) -> str:
    """Generate the YAML header comment.

    Args:
        ecosystem: Detected ecosystem type, or "auto"

    Returns:
        Header comment string
    """
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    return f"""# ============================================================================
# Workspace Configuration - workspace_conf.yml
# ============================================================================
# Auto-generated on {now}
# Ecosystem: {ecosystem}
#
# package_patterns replaces the workspace's own member declaration;
# remove it to follow the declaration instead.
#
# To regenerate with auto-detected values:
#   release-workspaces init-config --force
# ============================================================================

"""


def write_default_config(
    output_path: Path,
    project_root: Path | None = None,
) -> None:
    """Generate and write default configuration file.

    Args:
        output_path: Path to write configuration
        project_root: Project root directory (defaults to cwd)

    Raises:
        ConfigurationError: If file cannot be written
    """
    if project_root is None:
        project_root = Path.cwd()

    config = generate_default_config(project_root)
    header = generate_config_header(config["ecosystem"])

    try:
        # Create parent directory if needed
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(header)
            f.write(
                yaml.safe_dump(
                    config,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                )
            )
            f.write("\n# Thread pool size for manifest reads\n# max_workers: 8\n")

    except PermissionError:
        raise ConfigurationError(
            f"Permission denied writing config to {output_path}",
            fix_hint="Check file permissions or use a different location",
        ) from None
    except OSError as e:
        raise ConfigurationError(
            f"Failed to write config to {output_path}",
            details=str(e),
            fix_hint="Check disk space and path validity",
        ) from e
