"""package.json reading and patching shared by npm, pnpm and Rush."""

import json
import logging
import re
from pathlib import Path
from typing import Any

from release_workspaces.exceptions import ManifestParseError
from release_workspaces.host import Host
from release_workspaces.models import (
    DEFAULT_VERSION,
    Package,
    PatchRequest,
    merge_dependencies,
)

logger = logging.getLogger(__name__)

PACKAGE_JSON = "package.json"

# Sections read into Package.dependencies, in merge order
DEPENDENCY_SECTIONS = (("dependencies", "prod"), ("devDependencies", "dev"))

# Sections whose entries are rewritten when patching
PATCHABLE_SECTIONS = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)

_INDENT_RE = re.compile(r"^([ \t]+)\S", re.MULTILINE)


def parse_package_json(content: str, path: Path) -> dict[str, Any]:
    """Parse package.json text.

    Args:
        content: File content
        path: File path, for error messages

    Returns:
        Parsed JSON object

    Raises:
        ManifestParseError: If the content is not a JSON object
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ManifestParseError(
            f"Invalid JSON in {path}",
            details=str(e),
            fix_hint=f"Fix JSON syntax errors in {path}",
        ) from e
    if not isinstance(data, dict):
        raise ManifestParseError(
            f"{path} is not a JSON object",
            details=f"Top-level value is {type(data).__name__}",
        )
    return data


def try_load_node_package(host: Host, root: Path, relative_path: str) -> Package | None:
    """Load a package from the package.json in a directory.

    Args:
        host: File system access
        root: Workspace root
        relative_path: Package directory relative to root

    Returns:
        Package, or None if there is no usable package.json
    """
    path = root / relative_path / PACKAGE_JSON
    if not host.path_exists(path):
        return None

    try:
        data = parse_package_json(host.read_file(path), path)
    except ManifestParseError as e:
        logger.debug("Skipping %s: %s", relative_path, e.message)
        return None

    name = data.get("name")
    if not isinstance(name, str) or not name:
        logger.debug("Skipping %s: package.json has no name", relative_path)
        return None

    version = data.get("version")
    if not isinstance(version, str) or not version:
        version = DEFAULT_VERSION

    groups = []
    for section, kind in DEPENDENCY_SECTIONS:
        entries = data.get(section)
        if isinstance(entries, dict):
            groups.append((kind, [(dep, str(spec)) for dep, spec in entries.items()]))

    return Package(
        name=name,
        version=version,
        relative_path=relative_path,
        dependencies=merge_dependencies(*groups),
        manifest=data,
    )


def update_package_json(host: Host, path: Path, patch: PatchRequest) -> bool:
    """Apply a patch request to a package.json file.

    Only dependencies already listed in one of the patchable sections
    are updated. Ranges using the ``workspace:`` protocol are resolved
    by the package manager at publish time and stay as they are.

    Args:
        host: File system access
        path: package.json path
        patch: Edits to apply

    Returns:
        True if the file was rewritten

    Raises:
        ManifestParseError: If package.json is not valid JSON
    """
    content = host.read_file(path)
    data = parse_package_json(content, path)
    changed = False

    if patch.new_version is not None and data.get("version") != patch.new_version:
        data["version"] = patch.new_version
        changed = True

    for section in PATCHABLE_SECTIONS:
        entries = data.get(section)
        if not isinstance(entries, dict):
            continue
        for dep_name, new_version in patch.dependencies_versions.items():
            current = entries.get(dep_name)
            if current is None or str(current).startswith("workspace:"):
                continue
            if current != new_version:
                entries[dep_name] = new_version
                changed = True

    if not changed:
        logger.debug("No changes for %s", path)
        return False

    new_content = json.dumps(data, indent=_detect_indent(content), ensure_ascii=False)
    host.write_file(path, new_content + "\n")
    logger.info("Updated %s", path)
    return True


def _detect_indent(content: str) -> int | str:
    """Return the indent used by a JSON document (2 spaces by default)."""
    match = _INDENT_RE.search(content)
    if not match:
        return 2
    indent = match.group(1)
    return indent if "\t" in indent else len(indent)
