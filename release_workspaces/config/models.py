"""Pydantic v2 configuration model for workspace_conf.yml.

Supports environment variable overrides with the RELEASE_WORKSPACES_
prefix, e.g. RELEASE_WORKSPACES_ECOSYSTEM=cargo.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkspaceConfig(BaseSettings):
    """Workspace discovery configuration."""

    ecosystem: str = Field(
        default="auto",
        description="Ecosystem type or alias (pnpm, rush, npm, cargo, python), or 'auto'",
    )
    package_patterns: list[str] | None = Field(
        default=None,
        description="Glob patterns replacing the workspace's own member declaration",
    )
    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Thread pool size for manifest reads (default: executor default)",
    )

    model_config = SettingsConfigDict(
        env_prefix="RELEASE_WORKSPACES_",
        env_nested_delimiter="__",
    )

    @field_validator("ecosystem")
    @classmethod
    def normalize_ecosystem(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("ecosystem must not be empty (use 'auto' to detect)")
        return v

    @field_validator("package_patterns")
    @classmethod
    def validate_package_patterns(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        if any(not pattern.strip() for pattern in v):
            raise ValueError("package_patterns entries must be non-empty globs")
        return v
