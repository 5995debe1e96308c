"""Cargo.toml reading and text patching."""

import logging
import re
import tomllib
from pathlib import Path
from typing import Any

from release_workspaces.exceptions import ManifestParseError
from release_workspaces.host import Host
from release_workspaces.manifests.patcher import (
    iter_tables,
    substitute_in_tables,
    update_table_version,
)
from release_workspaces.models import (
    DEFAULT_VERSION,
    WILDCARD_RANGE,
    Package,
    merge_dependencies,
)

logger = logging.getLogger(__name__)

CARGO_TOML = "Cargo.toml"

DEPENDENCY_TABLES = ("dependencies", "dev-dependencies", "build-dependencies")

# Shared versions that members pick up with `{ workspace = true }`
WORKSPACE_DEPENDENCIES = "workspace.dependencies"

_VERSION_WORKSPACE_RE = re.compile(
    r"^[ \t]*version[ \t]*(?:\.[ \t]*workspace[ \t]*=[ \t]*true"
    r"|=[ \t]*\{[^}\n]*workspace[ \t]*=[ \t]*true)",
    re.MULTILINE,
)


def parse_cargo_toml(content: str, path: Path) -> dict[str, Any]:
    """Parse Cargo.toml text.

    Raises:
        ManifestParseError: If the content is not valid TOML
    """
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise ManifestParseError(
            f"Invalid TOML in {path}",
            details=str(e),
            fix_hint=f"Fix TOML syntax errors in {path}",
        ) from e


def workspace_package_version(data: dict[str, Any]) -> str | None:
    """Return ``[workspace.package].version`` of a root manifest, if any."""
    workspace = data.get("workspace")
    if not isinstance(workspace, dict):
        return None
    package = workspace.get("package")
    if not isinstance(package, dict):
        return None
    version = package.get("version")
    return version if isinstance(version, str) else None


def inherits_workspace_version(content: str) -> bool:
    """Check whether a crate manifest uses ``version.workspace = true``."""
    return _VERSION_WORKSPACE_RE.search(content) is not None


def inherits_workspace_dependency(content: str, dep_name: str) -> bool:
    """Check whether a crate declares ``dep_name = { workspace = true }``."""
    pattern = re.compile(
        rf"^[ \t]*([\"']?){re.escape(dep_name)}\1[ \t]*"
        r"(?:\.[ \t]*workspace[ \t]*=[ \t]*true|=[ \t]*\{[^}\n]*workspace[ \t]*=[ \t]*true)",
        re.MULTILINE,
    )
    return pattern.search(content) is not None


def try_load_cargo_package(
    host: Host,
    root: Path,
    relative_path: str,
    workspace_version: str | None = None,
) -> Package | None:
    """Load a crate from the Cargo.toml in a directory.

    Bind ``workspace_version`` with functools.partial to resolve
    crates that inherit their version from the workspace root.

    Args:
        host: File system access
        root: Workspace root
        relative_path: Crate directory relative to root
        workspace_version: ``[workspace.package].version`` of the root

    Returns:
        Package, or None if there is no usable [package] table
    """
    path = root / relative_path / CARGO_TOML
    if not host.path_exists(path):
        return None

    try:
        data = parse_cargo_toml(host.read_file(path), path)
    except ManifestParseError as e:
        logger.debug("Skipping %s: %s", relative_path, e.message)
        return None

    package = data.get("package")
    if not isinstance(package, dict):
        # Virtual manifest (workspace root only)
        return None
    name = package.get("name")
    if not isinstance(name, str) or not name:
        return None

    version = package.get("version")
    if isinstance(version, dict) and version.get("workspace"):
        version = workspace_version
    if not isinstance(version, str) or not version:
        version = DEFAULT_VERSION

    return Package(
        name=name,
        version=version,
        relative_path=relative_path,
        dependencies=merge_dependencies(
            ("prod", _dependency_entries(data.get("dependencies"))),
            ("dev", _dependency_entries(data.get("dev-dependencies"))),
        ),
    )


def update_cargo_version(content: str, new_version: str) -> str:
    """Rewrite ``version`` inside the ``[package]`` table."""
    return update_table_version(content, "package", new_version)


def update_workspace_version(content: str, new_version: str) -> str:
    """Rewrite ``version`` inside the ``[workspace.package]`` table."""
    return update_table_version(content, "workspace.package", new_version)


def update_cargo_dependency(content: str, dep_name: str, new_version: str) -> str:
    """Rewrite one dependency's version in a Cargo.toml.

    Handles, in every dependency table (target-specific ones and
    ``[workspace.dependencies]`` included):
        foo = "1.0.0"                  -> foo = "2.0.0"
        foo = { version = "1.0", ... } -> foo = { version = "2.0", ... }
        [dependencies.foo] version     -> rewritten in that table

    Args:
        content: Manifest text
        dep_name: Crate name
        new_version: New version requirement

    Returns:
        Updated text (unchanged if the dependency was not found)
    """
    escaped = re.escape(dep_name)
    simple = re.compile(
        rf"^([ \t]*)([\"']?){escaped}\2([ \t]*=[ \t]*)([\"'])[^\"'\n]*\4",
        re.MULTILINE,
    )
    inline = re.compile(
        rf"^([ \t]*)([\"']?){escaped}\2"
        r"([ \t]*=[ \t]*\{[^}\n]*?(?<![\w\-])version[ \t]*=[ \t]*)([\"'])[^\"'\n]*\4",
        re.MULTILINE,
    )

    def repl(match: re.Match[str]) -> str:
        indent, key_quote, middle, quote = match.groups()
        return f"{indent}{key_quote}{dep_name}{key_quote}{middle}{quote}{new_version}{quote}"

    result, _ = substitute_in_tables(content, _is_dependency_table, simple, repl)
    result, _ = substitute_in_tables(result, _is_dependency_table, inline, repl)

    for name, _, _ in iter_tables(result):
        parent, _, last = name.rpartition(".")
        if last == dep_name and _is_dependency_table(parent):
            result = update_table_version(result, name, new_version)
    return result


def _is_dependency_table(name: str) -> bool:
    if name in DEPENDENCY_TABLES or name == WORKSPACE_DEPENDENCIES:
        return True
    # [target.'cfg(unix)'.dependencies]
    return name.startswith("target.") and name.rsplit(".", 1)[-1] in DEPENDENCY_TABLES


def _dependency_entries(entries: Any) -> list[tuple[str, str]]:
    if not isinstance(entries, dict):
        return []
    result = []
    for name, spec in entries.items():
        if isinstance(spec, dict):
            version = spec.get("version")
            result.append((name, str(version) if version else WILDCARD_RANGE))
        else:
            result.append((name, str(spec)))
    return result
