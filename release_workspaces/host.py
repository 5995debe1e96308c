"""File system and glob access used by readers and managers.

Everything that touches the disk goes through a :class:`Host` so that
managers stay independent of where manifests actually live. The
:class:`LocalHost` implementation works on the local file system:
- Order-preserving, deterministic glob expansion
- Fast-glob style ignore patterns (``**/node_modules``)
- Newline-preserving UTF-8 reads
- Atomic writes (temp file + rename)
"""

import fnmatch
import glob
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path, PurePath
from typing import Protocol, runtime_checkable

_MAGIC_CHARS = frozenset("*?[")


@runtime_checkable
class Host(Protocol):
    """File system capabilities required by workspace managers."""

    def glob(
        self,
        patterns: str | Sequence[str],
        *,
        base_dir: Path,
        only_directories: bool = True,
        ignore: Sequence[str] = (),
    ) -> list[str]:
        """Expand patterns to slash-separated paths relative to base_dir."""
        ...

    def read_file(self, path: Path) -> str:
        """Read a UTF-8 text file."""
        ...

    def write_file(self, path: Path, content: str) -> None:
        """Replace a file's content."""
        ...

    def path_exists(self, path: Path) -> bool:
        """Check whether a path exists."""
        ...


class LocalHost:
    """Host backed by the local file system."""

    def glob(
        self,
        patterns: str | Sequence[str],
        *,
        base_dir: Path,
        only_directories: bool = True,
        ignore: Sequence[str] = (),
    ) -> list[str]:
        """Expand glob patterns relative to a base directory.

        Patterns are evaluated in order and their results flattened.
        Matches of a single pattern are sorted so that results do not
        depend on directory enumeration order. A path matched by more
        than one pattern is reported once, at its first position.

        Args:
            patterns: A glob pattern or an ordered list of patterns
            base_dir: Directory the patterns are relative to
            only_directories: Drop matches that are not directories
            ignore: Patterns excluding a path and everything below it

        Returns:
            Slash-separated paths relative to base_dir
        """
        if isinstance(patterns, str):
            patterns = [patterns]
        ignore_patterns = [_normalize_ignore(pattern) for pattern in ignore]

        seen: set[str] = set()
        results: list[str] = []
        for pattern in patterns:
            for match in _expand(base_dir, pattern):
                if match in seen:
                    continue
                if only_directories and not (base_dir / match).is_dir():
                    continue
                if _is_ignored(match, ignore_patterns):
                    continue
                seen.add(match)
                results.append(match)
        return results

    def read_file(self, path: Path) -> str:
        """Read a UTF-8 text file, keeping its line endings as-is."""
        with open(path, encoding="utf-8", newline="") as f:
            return f.read()

    def write_file(self, path: Path, content: str) -> None:
        """Atomically replace a file's content.

        Writes to a temp file in the same directory, then renames it
        over the target, so readers never observe a partial write.
        """
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}-",
            suffix=".tmp",
        )
        closed = False
        try:
            os.write(fd, content.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, path)
        except BaseException:
            if not closed:
                os.close(fd)
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def path_exists(self, path: Path) -> bool:
        """Check whether a path exists."""
        return path.exists()


def _expand(base_dir: Path, pattern: str) -> list[str]:
    """Expand one pattern to sorted, normalized relative paths."""
    pattern = pattern.strip()
    while pattern.startswith("./"):
        pattern = pattern[2:]
    pattern = pattern.rstrip("/")

    if pattern in ("", "."):
        return ["."]

    if not any(char in _MAGIC_CHARS for char in pattern):
        return [pattern] if (base_dir / pattern).exists() else []

    matches = glob.glob(pattern, root_dir=base_dir, recursive=True)
    normalized = {PurePath(match).as_posix().rstrip("/") for match in matches}
    return sorted(match for match in normalized if match and match != ".")


def _normalize_ignore(pattern: str) -> str:
    """Reduce a fast-glob ignore pattern to one matched per path prefix."""
    pattern = pattern.strip().rstrip("/")
    while pattern.startswith("./"):
        pattern = pattern[2:]
    while pattern.startswith("**/"):
        pattern = pattern[3:]
    return pattern


def _is_ignored(relative_path: str, ignore_patterns: Sequence[str]) -> bool:
    """Check a path and each of its parents against ignore patterns.

    A pattern matches either a full relative prefix ("packages/legacy")
    or a single directory name ("node_modules", "*.egg-info").
    """
    if not ignore_patterns:
        return False
    parts = relative_path.split("/")
    for index in range(1, len(parts) + 1):
        prefix = "/".join(parts[:index])
        name = parts[index - 1]
        for pattern in ignore_patterns:
            if fnmatch.fnmatchcase(prefix, pattern) or fnmatch.fnmatchcase(name, pattern):
                return True
    return False


_default_host = LocalHost()


def default_host() -> Host:
    """Return the process-wide local file system host."""
    return _default_host
