"""Pytest fixtures for workspace discovery tests.

Provides common fixtures for:
- Temporary project directories
- Ecosystem-specific test workspaces (pnpm, npm, Rush, cargo, Python)
- Configuration files
- Environment isolation
"""

import json
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import tomli_w
import yaml


@pytest.fixture
def temp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary directory for tests.

    Yields:
        Path to temporary directory
    """
    yield tmp_path
    # Cleanup handled by pytest's tmp_path


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a temporary project directory.

    Returns:
        Path to project directory
    """
    project = temp_dir / "test-project"
    project.mkdir()
    return project


@pytest.fixture
def write_package_json() -> Callable[..., Path]:
    """Return a helper writing a package.json into a directory.

    Returns:
        write(directory, name=None, version=None, **fields) -> file path
    """

    def write(
        directory: Path,
        name: str | None = None,
        version: str | None = None,
        **fields: Any,
    ) -> Path:
        data: dict[str, Any] = {}
        if name is not None:
            data["name"] = name
        if version is not None:
            data["version"] = version
        data.update(fields)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / "package.json"
        path.write_text(json.dumps(data, indent=2) + "\n")
        return path

    return write


@pytest.fixture
def write_pyproject() -> Callable[[Path, dict[str, Any]], Path]:
    """Return a helper writing a TOML pyproject.toml into a directory."""

    def write(directory: Path, data: dict[str, Any]) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / "pyproject.toml"
        path.write_text(tomli_w.dumps(data))
        return path

    return write


@pytest.fixture
def pnpm_workspace(project_dir: Path, write_package_json: Callable[..., Path]) -> Path:
    """Create a pnpm workspace with two packages and an excluded one.

    Returns:
        Path to workspace root
    """
    (project_dir / "pnpm-workspace.yaml").write_text(
        yaml.safe_dump({"packages": ["packages/*", "!packages/legacy"]})
    )
    write_package_json(project_dir, "root", "0.0.0", private=True)
    write_package_json(
        project_dir / "packages" / "pkg-a",
        "pkg-a",
        "1.0.0",
        dependencies={"pkg-b": "workspace:*", "lodash": "^4.17.0"},
    )
    write_package_json(project_dir / "packages" / "pkg-b", "pkg-b", "2.0.0")
    write_package_json(project_dir / "packages" / "legacy", "legacy", "0.1.0")
    return project_dir


@pytest.fixture
def npm_workspace(project_dir: Path, write_package_json: Callable[..., Path]) -> Path:
    """Create an npm workspace declared in the root package.json.

    Returns:
        Path to workspace root
    """
    write_package_json(project_dir, "root", "1.0.0", workspaces=["packages/*"])
    write_package_json(
        project_dir / "packages" / "pkg-a",
        "pkg-a",
        "1.0.0",
        dependencies={"pkg-b": "^1.0.0"},
        devDependencies={"jest": "^29.0.0"},
    )
    write_package_json(project_dir / "packages" / "pkg-b", "pkg-b", "1.0.0")
    return project_dir


@pytest.fixture
def rush_workspace(project_dir: Path, write_package_json: Callable[..., Path]) -> Path:
    """Create a Rush monorepo with a commented rush.json.

    Returns:
        Path to workspace root
    """
    (project_dir / "rush.json").write_text(
        """\
/**
 * Rush configuration
 */
{
  "rushVersion": "5.100.0",
  // Projects are listed explicitly
  "projects": [
    { "packageName": "app", "projectFolder": "apps/app" },
    { "packageName": "lib", "projectFolder": "libraries/lib" }
  ]
}
"""
    )
    write_package_json(project_dir / "apps" / "app", "app", "1.0.0")
    write_package_json(project_dir / "libraries" / "lib", "lib", "3.1.0")
    return project_dir


@pytest.fixture
def cargo_workspace(project_dir: Path) -> Path:
    """Create a cargo workspace with a version-inheriting crate.

    Returns:
        Path to workspace root
    """
    (project_dir / "Cargo.toml").write_text(
        """\
[workspace]
members = ["crates/*"]
exclude = ["crates/experimental"]

[workspace.package]
version = "0.5.0"
edition = "2021"
"""
    )
    core = project_dir / "crates" / "core"
    core.mkdir(parents=True)
    (core / "Cargo.toml").write_text(
        """\
[package]
name = "core"
version = "1.0.0"
edition = "2021"

[dependencies]
serde = { version = "1.0", features = ["derive"] }
"""
    )
    cli = project_dir / "crates" / "cli"
    cli.mkdir(parents=True)
    (cli / "Cargo.toml").write_text(
        """\
[package]
name = "cli"
version.workspace = true
edition = "2021"

[dependencies]
core = { path = "../core", version = "1.0.0" }
anyhow = "1.0"

[dev-dependencies]
tempfile = "3"
"""
    )
    experimental = project_dir / "crates" / "experimental"
    experimental.mkdir(parents=True)
    (experimental / "Cargo.toml").write_text(
        '[package]\nname = "experimental"\nversion = "0.0.1"\n'
    )
    return project_dir


@pytest.fixture
def python_workspace(
    project_dir: Path, write_pyproject: Callable[[Path, dict[str, Any]], Path]
) -> Path:
    """Create a Python workspace with PEP 621, Poetry and setup.py packages.

    Returns:
        Path to workspace root
    """
    write_pyproject(project_dir, {"project": {"name": "monorepo", "version": "0.0.0"}})
    write_pyproject(
        project_dir / "sdk" / "pkg-a",
        {
            "project": {
                "name": "pkg-a",
                "version": "1.0.0",
                "dependencies": ["pkg-b>=1.0.0", "requests"],
            }
        },
    )
    write_pyproject(
        project_dir / "sdk" / "pkg-b",
        {
            "tool": {
                "poetry": {
                    "name": "pkg-b",
                    "version": "1.0.0",
                    "dependencies": {"python": "^3.11", "pyyaml": "^6.0"},
                    "dev-dependencies": {"pytest": "^7.0"},
                }
            }
        },
    )
    pkg_c = project_dir / "sdk" / "pkg-c"
    pkg_c.mkdir(parents=True)
    (pkg_c / "setup.py").write_text(
        'from setuptools import setup\n\nsetup(name="pkg-c", version="0.3.0")\n'
    )
    return project_dir


@pytest.fixture
def workspace_config(project_dir: Path) -> Path:
    """Create a workspace configuration file.

    Returns:
        Path to config file
    """
    config = {
        "ecosystem": "python",
        "package_patterns": ["libs/*"],
        "max_workers": 2,
    }

    config_dir = project_dir / "config"
    config_dir.mkdir()
    config_path = config_dir / "workspace_conf.yml"
    config_path.write_text(yaml.safe_dump(config))

    return config_path


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Temporarily clean environment variables.

    Removes RELEASE_WORKSPACES_* environment variables during test.
    """
    old_env = {}
    for key in list(os.environ.keys()):
        if key.startswith("RELEASE_WORKSPACES_"):
            old_env[key] = os.environ.pop(key)

    yield

    os.environ.update(old_env)
