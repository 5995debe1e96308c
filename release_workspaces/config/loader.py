"""Configuration file loading utilities.

Supports loading configuration from YAML and TOML files with:
- Automatic format detection
- Error reporting with file location
- Defaults when no configuration file exists
"""

import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from release_workspaces.config.models import WorkspaceConfig
from release_workspaces.exceptions import ConfigurationError

SEARCH_PATHS = (
    "config/workspace_conf.yml",
    "config/workspace_conf.yaml",
    "workspace_conf.yml",
    "workspace_conf.yaml",
    "config/workspace.toml",
    "workspace.toml",
)


def _read_text(path: Path) -> str:
    """Read a configuration file as UTF-8 text.

    Raises:
        ConfigurationError: If the file is missing or unreadable
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Create the file or use 'release-workspaces init-config' to generate one",
        ) from None
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            f"Cannot read configuration file {path}",
            details=str(e),
        ) from e


def _as_mapping(data: Any, path: Path) -> dict[str, Any]:
    # An empty document means "all defaults"
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid configuration in {path}",
            details=f"Expected a mapping at top level, got {type(data).__name__}",
        )
    return data


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file.

    Raises:
        ConfigurationError: If the file is missing, malformed or not a mapping
    """
    text = _read_text(path)
    try:
        return _as_mapping(yaml.safe_load(text), path)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {path}",
            details=str(e),
            fix_hint="Check YAML syntax at the indicated line",
        ) from e


def load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML configuration file (always a table at top level)."""
    text = _read_text(path)
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Invalid TOML in {path}",
            details=str(e),
            fix_hint="Check TOML syntax at the indicated line",
        ) from e


LOADERS: dict[str, Callable[[Path], dict[str, Any]]] = {
    ".yml": load_yaml,
    ".yaml": load_yaml,
    ".toml": load_toml,
}


def find_config_file(project_root: Path) -> Path | None:
    """Find the first configuration file in the standard locations."""
    for search_path in SEARCH_PATHS:
        candidate = project_root / search_path
        if candidate.exists():
            return candidate
    return None


def load_config(
    path: Path | None = None,
    project_root: Path | None = None,
) -> WorkspaceConfig:
    """Load workspace configuration from file.

    Search order if path not specified:
    1. config/workspace_conf.yml
    2. config/workspace_conf.yaml
    3. workspace_conf.yml
    4. workspace_conf.yaml
    5. config/workspace.toml
    6. workspace.toml

    Without an explicit path and without any of these files, the
    defaults (plus environment overrides) are returned.

    Args:
        path: Explicit path to config file
        project_root: Project root directory (defaults to cwd)

    Returns:
        Validated WorkspaceConfig instance

    Raises:
        ConfigurationError: If an explicit config is missing, or any config is invalid
    """
    if project_root is None:
        project_root = Path.cwd()

    config_path: Path | None = None
    if path:
        config_path = Path(path)
        if not config_path.is_absolute():
            config_path = project_root / config_path
    else:
        config_path = find_config_file(project_root)

    if config_path is None:
        return _validate({}, "environment")

    loader = LOADERS.get(config_path.suffix)
    if loader is None:
        raise ConfigurationError(
            f"Unsupported config format: {config_path.suffix}",
            fix_hint="Use .yml, .yaml, or .toml extension",
        )

    return _validate(loader(config_path), str(config_path))


def _validate(data: dict[str, Any], source: str) -> WorkspaceConfig:
    try:
        return WorkspaceConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {source}",
            details=str(e),
            fix_hint="Check the configuration values match expected types",
        ) from e
