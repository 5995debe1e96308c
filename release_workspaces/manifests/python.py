"""Python package manifest reading (pyproject.toml, setup.py)."""

import logging
import re
import tomllib
from pathlib import Path
from typing import Any

import yaml

from release_workspaces.exceptions import ManifestParseError
from release_workspaces.host import Host
from release_workspaces.models import (
    DEFAULT_VERSION,
    WILDCARD_RANGE,
    DependencyKind,
    Package,
    merge_dependencies,
)

logger = logging.getLogger(__name__)

PYPROJECT_TOML = "pyproject.toml"
SETUP_PY = "setup.py"
REQUIREMENTS_TXT = "requirements.txt"

_SETUP_NAME_RE = re.compile(r"(?<![\w.])name\s*=\s*[\"']([^\"']+)[\"']")
_SETUP_VERSION_RE = re.compile(r"(?<![\w.])version\s*=\s*[\"']([^\"']+)[\"']")

# PEP 508 requirement: distribution name, then whatever constraint follows
_REQUIREMENT_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)(.*)$", re.DOTALL)


def parse_pyproject(content: str, path: Path) -> dict[str, Any]:
    """Parse pyproject.toml text.

    The file is read as TOML; content that is not valid TOML is read
    as YAML, the other encoding the version patcher understands.

    Args:
        content: File content
        path: File path, for error messages

    Returns:
        Parsed document

    Raises:
        ManifestParseError: If the content is neither TOML nor a YAML mapping
    """
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as toml_error:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ManifestParseError(
                f"Invalid TOML in {path}",
                details=str(toml_error),
                fix_hint=f"Fix TOML syntax errors in {path}",
            ) from e
        if not isinstance(data, dict):
            raise ManifestParseError(
                f"Invalid TOML in {path}",
                details=str(toml_error),
                fix_hint=f"Fix TOML syntax errors in {path}",
            ) from toml_error
        return data


def parse_requirement(requirement: str) -> tuple[str, str] | None:
    """Split a requirement string into (name, constraint).

    >>> parse_requirement("requests>=2.0")
    ('requests', '>=2.0')
    >>> parse_requirement("pkg-b")
    ('pkg-b', '*')
    """
    match = _REQUIREMENT_RE.match(requirement)
    if not match:
        return None
    constraint = match.group(2).strip()
    return match.group(1), constraint or WILDCARD_RANGE


def try_load_python_package(host: Host, root: Path, relative_path: str) -> Package | None:
    """Load a package from the Python manifests in a directory.

    pyproject.toml is preferred; if it is absent, unparseable or has
    no name, setup.py is tried. Read errors are not swallowed.

    Args:
        host: File system access
        root: Workspace root
        relative_path: Package directory relative to root

    Returns:
        Package, or None if no manifest yields a name
    """
    directory = root / relative_path

    pyproject_path = directory / PYPROJECT_TOML
    if host.path_exists(pyproject_path):
        try:
            data = parse_pyproject(host.read_file(pyproject_path), pyproject_path)
        except ManifestParseError as e:
            logger.debug("Ignoring %s: %s", pyproject_path, e.message)
        else:
            package = _package_from_pyproject(data, relative_path)
            if package is not None:
                return package

    setup_path = directory / SETUP_PY
    if host.path_exists(setup_path):
        return _package_from_setup_py(host.read_file(setup_path), relative_path)

    return None


def find_manifest(host: Host, directory: Path) -> Path | None:
    """Return the manifest a package in ``directory`` is read from.

    Mirrors :func:`try_load_python_package`: pyproject.toml when it parses
    and names a package, otherwise setup.py when present.
    """
    pyproject_path = directory / PYPROJECT_TOML
    if host.path_exists(pyproject_path):
        try:
            data = parse_pyproject(host.read_file(pyproject_path), pyproject_path)
        except ManifestParseError:
            data = {}
        if _package_from_pyproject(data, ".") is not None:
            return pyproject_path

    setup_path = directory / SETUP_PY
    if host.path_exists(setup_path):
        return setup_path
    return None


def _package_from_pyproject(data: dict[str, Any], relative_path: str) -> Package | None:
    project = data.get("project")
    if isinstance(project, dict) and _is_name(project.get("name")):
        dependencies = _requirements(project.get("dependencies"))
        return Package(
            name=project["name"],
            version=_version(project.get("version")),
            relative_path=relative_path,
            dependencies=merge_dependencies(("prod", dependencies)),
        )

    tool = data.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    if isinstance(poetry, dict) and _is_name(poetry.get("name")):
        groups: list[tuple[DependencyKind, list[tuple[str, str]]]] = [
            ("prod", _poetry_table(poetry.get("dependencies"))),
            ("dev", _poetry_table(poetry.get("dev-dependencies"))),
        ]
        poetry_groups = poetry.get("group")
        if isinstance(poetry_groups, dict):
            for group in poetry_groups.values():
                if isinstance(group, dict):
                    groups.append(("dev", _poetry_table(group.get("dependencies"))))
        return Package(
            name=poetry["name"],
            version=_version(poetry.get("version")),
            relative_path=relative_path,
            dependencies=merge_dependencies(*groups),
        )

    return None


def _package_from_setup_py(content: str, relative_path: str) -> Package | None:
    name_match = _SETUP_NAME_RE.search(content)
    if not name_match:
        logger.debug("Skipping %s: setup.py has no literal name", relative_path)
        return None
    version_match = _SETUP_VERSION_RE.search(content)
    return Package(
        name=name_match.group(1),
        version=version_match.group(1) if version_match else DEFAULT_VERSION,
        relative_path=relative_path,
    )


def _requirements(entries: Any) -> list[tuple[str, str]]:
    if not isinstance(entries, list):
        return []
    parsed = (parse_requirement(entry) for entry in entries if isinstance(entry, str))
    return [requirement for requirement in parsed if requirement is not None]


def _poetry_table(entries: Any) -> list[tuple[str, str]]:
    if not isinstance(entries, dict):
        return []
    result = []
    for name, spec in entries.items():
        # The interpreter constraint is not a package
        if name == "python":
            continue
        if isinstance(spec, dict):
            version = spec.get("version")
            result.append((name, str(version) if version else WILDCARD_RANGE))
        else:
            result.append((name, str(spec)))
    return result


def _is_name(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _version(value: Any) -> str:
    return str(value) if value else DEFAULT_VERSION
