"""Configuration management for workspace discovery."""

from release_workspaces.config.loader import load_config
from release_workspaces.config.models import WorkspaceConfig

__all__ = ["WorkspaceConfig", "load_config"]
