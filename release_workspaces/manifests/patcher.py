"""Best-effort text patching of Python manifests.

Version and dependency edits are applied as narrowly scoped regex
substitutions on the raw manifest text instead of a parse/dump round
trip, so comments, ordering and formatting survive:
- pyproject.toml in TOML (PEP 621 ``[project]`` or ``[tool.poetry]``)
- pyproject.toml written as YAML (``key: value``)
- setup.py (regex only; lossy for anything but literal strings)

A substitution that matches nothing returns the content unchanged.
PEP 621 and setup.py dependency rewrites always produce a
``name>=version`` constraint, whatever operator was there before.
"""

import re
import tomllib
from collections.abc import Callable

from release_workspaces.models import PatchRequest

# Table header: [name] or [[name]], optionally followed by a comment
_TABLE_HEADER_RE = re.compile(
    r"^[ \t]*\[\[?[ \t]*([^\[\]\n]+?)[ \t]*\]\]?[ \t]*(?:#.*)?$",
    re.MULTILINE,
)

_TOML_VERSION_RE = re.compile(
    r"^([ \t]*version[ \t]*=[ \t]*)([\"'])[^\"'\n]*\2",
    re.MULTILINE,
)

_YAML_VERSION_RE = re.compile(
    r"^([ \t]*[\"']?version[\"']?:[ \t]*)([\"']?)[^\s\"'#,{}\[\]]+\2",
    re.MULTILINE,
)

_SETUP_PY_VERSION_RE = re.compile(
    r"(?<![\w.])(version[ \t]*=[ \t]*)([\"'])[^\"'\n]*\2",
)

PEP621_DEPENDENCY_TABLES = ("project", "project.optional-dependencies", "dependency-groups")


def is_toml(content: str) -> bool:
    """Check whether text parses as TOML (YAML rewrites are skipped if so)."""
    try:
        tomllib.loads(content)
    except tomllib.TOMLDecodeError:
        return False
    return True


def normalize_table_name(raw: str) -> str:
    """Normalize a TOML table header ('tool . "poetry"' -> 'tool.poetry')."""
    name = re.sub(r"[ \t]*\.[ \t]*", ".", raw.strip())
    return name.replace('"', "").replace("'", "")


def iter_tables(content: str) -> list[tuple[str, int, int]]:
    """List the tables of a TOML document.

    Each table spans from the end of its header line to the start of
    the next header (or the end of the document).

    Args:
        content: TOML text

    Returns:
        (normalized name, body start, body end) per table, in file order
    """
    headers = list(_TABLE_HEADER_RE.finditer(content))
    tables = []
    for index, header in enumerate(headers):
        end = headers[index + 1].start() if index + 1 < len(headers) else len(content)
        tables.append((normalize_table_name(header.group(1)), header.end(), end))
    return tables


def substitute_in_tables(
    content: str,
    matches_table: Callable[[str], bool],
    pattern: re.Pattern[str],
    repl: Callable[[re.Match[str]], str],
    count: int = 0,
) -> tuple[str, int]:
    """Run a substitution inside selected TOML tables only.

    Text outside the selected tables is never touched, so a key with
    the same name in another table keeps its value.

    Args:
        content: TOML text
        matches_table: Predicate on normalized table names
        pattern: Compiled pattern to substitute
        repl: Replacement function
        count: Maximum number of substitutions overall (0 = unlimited)

    Returns:
        (new content, number of substitutions)
    """
    pieces: list[str] = []
    last = 0
    total = 0
    for name, start, end in iter_tables(content):
        if not matches_table(name):
            continue
        remaining = count - total if count else 0
        if count and remaining <= 0:
            break
        body, replaced = pattern.subn(repl, content[start:end], count=remaining)
        if replaced:
            pieces.append(content[last:start])
            pieces.append(body)
            last = end
            total += replaced
    pieces.append(content[last:])
    return "".join(pieces), total


def update_table_version(content: str, table: str, new_version: str) -> str:
    """Rewrite the first ``version = "..."`` key of one TOML table.

    The original quote style is kept.
    """

    def repl(match: re.Match[str]) -> str:
        quote = match.group(2)
        return f"{match.group(1)}{quote}{new_version}{quote}"

    result, _ = substitute_in_tables(
        content, lambda name: name == table, _TOML_VERSION_RE, repl, count=1
    )
    return result


def update_pyproject_version(content: str, new_version: str) -> str:
    """Rewrite the package version in a pyproject.toml.

    Tries, in order, stopping at the first that changes the text:
    1. YAML style ``version: x`` (first occurrence), only for content
       that is not valid TOML
    2. ``version = "x"`` inside ``[project]``
    3. ``version = "x"`` inside ``[tool.poetry]``

    Args:
        content: Manifest text
        new_version: New version string

    Returns:
        Updated text (unchanged if no version field was found)
    """
    if not is_toml(content):
        result = _YAML_VERSION_RE.sub(
            lambda m: f"{m.group(1)}{m.group(2)}{new_version}{m.group(2)}",
            content,
            count=1,
        )
        if result != content:
            return result

    for table in ("project", "tool.poetry"):
        result = update_table_version(content, table, new_version)
        if result != content:
            return result
    return content


def update_pyproject_dependency(content: str, dep_name: str, new_version: str) -> str:
    """Rewrite one dependency's version in a pyproject.toml.

    In content that is not valid TOML, a YAML style ``name: x`` entry is
    rewritten everywhere it appears. If there is none, two TOML passes run:
    - Poetry: ``name = "x"``, ``name = { version = "x", ... }`` and
      ``[...dependencies.name]`` tables in ``tool.poetry`` dependency tables
    - PEP 621: ``"name<constraint>"`` strings in ``[project]``,
      ``[project.optional-dependencies]`` and ``[dependency-groups]``,
      rewritten to ``"name>=new_version"``

    Args:
        content: Manifest text
        dep_name: Dependency name, matched literally
        new_version: New version string

    Returns:
        Updated text (unchanged if the dependency was not found)
    """
    if not is_toml(content):
        result = _yaml_dependency_re(dep_name).sub(
            lambda m: (
                f"{m.group(1)}{m.group(2)}{dep_name}{m.group(2)}"
                f"{m.group(3)}{m.group(4)}{new_version}{m.group(4)}"
            ),
            content,
        )
        if result != content:
            return result

    result = _update_poetry_dependency(content, dep_name, new_version)
    return _update_pep621_dependency(result, dep_name, new_version)


def update_setup_py_version(content: str, new_version: str) -> str:
    """Rewrite the first ``version="x"`` keyword in a setup.py."""
    return _SETUP_PY_VERSION_RE.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{new_version}{m.group(2)}",
        content,
        count=1,
    )


def update_setup_py_dependency(content: str, dep_name: str, new_version: str) -> str:
    """Rewrite ``"name<op>..."`` requirement strings in a setup.py.

    Only strings that carry a version operator are rewritten; a bare
    ``"name"`` requirement is left alone.
    """
    pattern = re.compile(
        rf"(?P<q>[\"']){re.escape(dep_name)}"
        r"(?P<extras>\[[^\]\"'\n]*\])?"
        r"[ \t]*[<>=!~]+[^\"'\n;]*"
        r"(?P<marker>;[^\n]*?)?"
        r"(?P=q)"
    )
    return pattern.sub(lambda m: _requirement(m, dep_name, new_version), content)


def apply_pyproject_patch(content: str, patch: PatchRequest) -> str:
    """Apply a patch request to pyproject.toml text."""
    if patch.new_version:
        content = update_pyproject_version(content, patch.new_version)
    for dep_name, new_version in patch.dependencies_versions.items():
        content = update_pyproject_dependency(content, dep_name, new_version)
    return content


def apply_setup_py_patch(content: str, patch: PatchRequest) -> str:
    """Apply a patch request to setup.py text."""
    if patch.new_version:
        content = update_setup_py_version(content, patch.new_version)
    for dep_name, new_version in patch.dependencies_versions.items():
        content = update_setup_py_dependency(content, dep_name, new_version)
    return content


def _yaml_dependency_re(dep_name: str) -> re.Pattern[str]:
    return re.compile(
        rf"^([ \t]*(?:-[ \t]+)?)([\"']?){re.escape(dep_name)}\2"
        r"(:[ \t]*)([\"']?)[^\s\"'#,{}\[\]]+\4",
        re.MULTILINE,
    )


def _is_poetry_dependency_table(name: str) -> bool:
    return name.startswith("tool.poetry") and name.endswith("dependencies")


def _update_poetry_dependency(content: str, dep_name: str, new_version: str) -> str:
    escaped = re.escape(dep_name)
    simple = re.compile(
        rf"(?<![\w.\-])([\"']?){escaped}\1([ \t]*=[ \t]*)([\"'])[^\"'\n]*\3"
    )
    inline = re.compile(
        rf"(?<![\w.\-])([\"']?){escaped}\1"
        r"([ \t]*=[ \t]*\{[^}\n]*?(?<![\w\-])version[ \t]*=[ \t]*)([\"'])[^\"'\n]*\3"
    )

    def repl(match: re.Match[str]) -> str:
        key_quote, middle, quote = match.group(1), match.group(2), match.group(3)
        return f"{key_quote}{dep_name}{key_quote}{middle}{quote}{new_version}{quote}"

    result, _ = substitute_in_tables(content, _is_poetry_dependency_table, simple, repl)
    result, _ = substitute_in_tables(result, _is_poetry_dependency_table, inline, repl)

    # [tool.poetry.dependencies.name] sub-tables
    for name, _, _ in iter_tables(result):
        if _is_poetry_dependency_table(name.rsplit(".", 1)[0]) and name.endswith(
            f".{dep_name}"
        ):
            result = update_table_version(result, name, new_version)
    return result


def _update_pep621_dependency(content: str, dep_name: str, new_version: str) -> str:
    # A match that starts at "=" is a key assignment (name = "dep"), not an
    # array entry; it is consumed and returned unchanged.
    pattern = re.compile(
        r"(?P<assign>=[ \t]*)?"
        rf"(?P<q>[\"']){re.escape(dep_name)}"
        r"(?P<extras>[ \t]*\[[^\]\"'\n]*\])?"
        r"[ \t]*(?:[<>=!~^][^\"';\n]*?)?"
        r"(?P<marker>[ \t]*;[^\n]*?)?"
        r"(?P=q)(?![ \t]*[=:])"
    )

    def repl(match: re.Match[str]) -> str:
        if match.group("assign") is not None:
            return match.group(0)
        return _requirement(match, dep_name, new_version)

    result, _ = substitute_in_tables(
        content, lambda name: name in PEP621_DEPENDENCY_TABLES, pattern, repl
    )
    return result


def _requirement(match: re.Match[str], dep_name: str, new_version: str) -> str:
    quote = match.group("q")
    extras = (match.group("extras") or "").strip()
    marker = match.group("marker") or ""
    return f"{quote}{dep_name}{extras}>={new_version}{marker}{quote}"
