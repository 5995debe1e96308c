"""Package discovery from glob patterns.

Expands workspace member patterns into candidate directories and maps
each candidate through an ecosystem-specific manifest reader:
- Patterns are evaluated in order; results keep pattern order
- Dependency caches and build output are never candidates
- Directories without a usable manifest are skipped, not reported
- Manifest reads fan out on a thread pool without changing order
"""

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from release_workspaces.host import Host
from release_workspaces.models import Package

logger = logging.getLogger(__name__)

# reader(host, root, relative_path) -> Package or None
PackageReader = Callable[[Host, Path, str], Package | None]

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "**/node_modules",
    "**/__pycache__",
    "**/dist",
    "**/build",
    "**/*.egg-info",
)


def split_negated_patterns(entries: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split pattern entries into includes and ``!``-prefixed excludes.

    Returns:
        (include patterns, ignore patterns without the leading "!")
    """
    patterns: list[str] = []
    ignore: list[str] = []
    for entry in entries:
        if entry.startswith("!"):
            ignore.append(entry[1:])
        else:
            patterns.append(entry)
    return patterns, ignore


def find_package_roots(
    host: Host,
    root: Path,
    patterns: str | Sequence[str],
    ignore: Sequence[str] = (),
) -> list[str]:
    """Expand patterns into candidate package directories.

    Args:
        host: File system access
        root: Workspace root
        patterns: A glob pattern or an ordered list of patterns
        ignore: Extra ignore patterns on top of the default ones

    Returns:
        Root-relative directories in pattern order
    """
    return host.glob(
        patterns,
        base_dir=root,
        only_directories=True,
        ignore=[*DEFAULT_IGNORE_PATTERNS, *ignore],
    )


def find_packages_from_pattern(
    host: Host,
    root: Path,
    patterns: str | Sequence[str],
    reader: PackageReader,
    *,
    ignore: Sequence[str] = (),
    max_workers: int | None = None,
) -> list[Package]:
    """Discover packages matching glob patterns.

    Each candidate directory gets exactly one reader call. Candidates
    for which the reader returns None contribute nothing.

    Args:
        host: File system access
        root: Workspace root
        patterns: A glob pattern or an ordered list of patterns
        reader: Manifest reader for the ecosystem
        ignore: Extra ignore patterns on top of the default ones
        max_workers: Thread pool size for manifest reads (None = default)

    Returns:
        Packages in candidate order
    """
    package_roots = find_package_roots(host, root, patterns, ignore)
    if not package_roots:
        logger.debug("No candidate directories for %s under %s", patterns, root)
        return []

    # Executor.map yields results in submission order
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        loaded = list(pool.map(lambda path: reader(host, root, path), package_roots))

    packages = [package for package in loaded if package is not None]
    logger.debug(
        "Found %d package(s) in %d candidate directories",
        len(packages),
        len(package_roots),
    )
    return packages
