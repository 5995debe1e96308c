"""Unit tests for the pnpm, Rush and npm workspace managers.

Tests cover:
- Detection via marker files (npm: workspaces declaration)
- Member patterns from pnpm-workspace.yaml, rush.json and package.json
- Errors for missing or malformed declarations
- package.json patching
"""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from release_workspaces.config.models import WorkspaceConfig
from release_workspaces.ecosystems.nodejs import (
    NpmWorkspaceManager,
    PnpmWorkspaceManager,
    RushWorkspaceManager,
    parse_json_with_comments,
)
from release_workspaces.exceptions import ManifestMissingError, ManifestParseError
from release_workspaces.models import PatchRequest


class TestPnpmWorkspaceManager:
    """Tests for PnpmWorkspaceManager."""

    def test_detect_requires_workspace_yaml(self, project_dir: Path) -> None:
        """Detection follows pnpm-workspace.yaml presence."""
        manager = PnpmWorkspaceManager()
        assert manager.detect(project_dir) is False

        (project_dir / "pnpm-workspace.yaml").write_text("packages: []\n")
        assert manager.detect(project_dir) is True

    def test_load_applies_negated_patterns(self, pnpm_workspace: Path) -> None:
        """'!' entries exclude directories from discovery."""
        workspace = PnpmWorkspaceManager().load(pnpm_workspace)

        assert workspace.type == "pnpm"
        assert workspace.path == pnpm_workspace
        assert [p.name for p in workspace.packages] == ["pkg-a", "pkg-b"]
        assert workspace.packages[0].relative_path == "packages/pkg-a"

    def test_load_reads_dependencies(self, pnpm_workspace: Path) -> None:
        """Dependencies keep their raw ranges, workspace protocol included."""
        workspace = PnpmWorkspaceManager().load(pnpm_workspace)
        pkg_a = workspace.get_package("pkg-a")

        assert pkg_a is not None
        assert pkg_a.dependencies["pkg-b"].version == "workspace:*"
        assert pkg_a.dependencies["lodash"].kind == "prod"

    def test_load_without_yaml_raises(self, project_dir: Path) -> None:
        """A missing pnpm-workspace.yaml is reported, not treated as empty."""
        with pytest.raises(ManifestMissingError):
            PnpmWorkspaceManager().load(project_dir)

    def test_load_without_packages_key_raises(self, project_dir: Path) -> None:
        """pnpm-workspace.yaml must declare a packages list."""
        (project_dir / "pnpm-workspace.yaml").write_text("catalog:\n  react: ^18\n")

        with pytest.raises(ManifestMissingError) as exc_info:
            PnpmWorkspaceManager().load(project_dir)
        assert "No packages defined" in str(exc_info.value)

    def test_load_invalid_yaml_raises(self, project_dir: Path) -> None:
        """Malformed YAML surfaces as a parse error."""
        (project_dir / "pnpm-workspace.yaml").write_text("packages: [unclosed\n")

        with pytest.raises(ManifestParseError):
            PnpmWorkspaceManager().load(project_dir)

    def test_config_patterns_replace_declaration(
        self, project_dir: Path, write_package_json: Callable[..., Path]
    ) -> None:
        """Configured patterns are used without reading pnpm-workspace.yaml."""
        write_package_json(project_dir / "tools" / "t1", "t1", "1.0.0")

        workspace = PnpmWorkspaceManager().load(
            project_dir, WorkspaceConfig(package_patterns=["tools/*"])
        )

        assert [p.name for p in workspace.packages] == ["t1"]

    def test_zero_matches_yields_empty_workspace(self, project_dir: Path) -> None:
        """Patterns matching nothing give an empty package list."""
        (project_dir / "pnpm-workspace.yaml").write_text("packages:\n  - 'nothing/*'\n")

        workspace = PnpmWorkspaceManager().load(project_dir)

        assert workspace.packages == []


class TestRushWorkspaceManager:
    """Tests for RushWorkspaceManager."""

    def test_load_reads_project_folders(self, rush_workspace: Path) -> None:
        """Each projectFolder is a package, in rush.json order."""
        workspace = RushWorkspaceManager().load(rush_workspace)

        assert workspace.type == "rush"
        assert [(p.name, p.version) for p in workspace.packages] == [
            ("app", "1.0.0"),
            ("lib", "3.1.0"),
        ]

    def test_load_without_projects_raises(self, project_dir: Path) -> None:
        """rush.json must declare projects."""
        (project_dir / "rush.json").write_text('{"rushVersion": "5.0.0"}')

        with pytest.raises(ManifestMissingError):
            RushWorkspaceManager().load(project_dir)

    def test_load_without_rush_json_raises(self, project_dir: Path) -> None:
        """A missing rush.json is reported."""
        with pytest.raises(ManifestMissingError):
            RushWorkspaceManager().load(project_dir)

    def test_comment_markers_inside_strings_survive(self, tmp_path: Path) -> None:
        """Only real comments are stripped from JSON with comments."""
        content = '{"url": "https://example.com/*x*/", /* c */ "n": 1} // end'

        data = parse_json_with_comments(content, tmp_path / "rush.json")

        assert data == {"url": "https://example.com/*x*/", "n": 1}


class TestNpmWorkspaceManager:
    """Tests for NpmWorkspaceManager."""

    def test_detect_requires_workspaces_field(
        self, project_dir: Path, write_package_json: Callable[..., Path]
    ) -> None:
        """A single-package package.json is not an npm workspace."""
        manager = NpmWorkspaceManager()
        write_package_json(project_dir, "single", "1.0.0")
        assert manager.detect(project_dir) is False

        write_package_json(project_dir, "root", "1.0.0", workspaces=["packages/*"])
        assert manager.detect(project_dir) is True

    def test_detect_accepts_object_form(
        self, project_dir: Path, write_package_json: Callable[..., Path]
    ) -> None:
        """workspaces may be {"packages": [...]}."""
        write_package_json(project_dir, "root", workspaces={"packages": ["libs/*"]})

        assert NpmWorkspaceManager().detect(project_dir) is True

    def test_detect_invalid_json_is_false(self, project_dir: Path) -> None:
        """Unparseable package.json does not raise during detection."""
        (project_dir / "package.json").write_text("{not json")

        assert NpmWorkspaceManager().detect(project_dir) is False

    def test_load_merges_dev_dependencies(self, npm_workspace: Path) -> None:
        """Prod and dev dependencies are merged with their kind."""
        workspace = NpmWorkspaceManager().load(npm_workspace)
        pkg_a = workspace.get_package("pkg-a")

        assert pkg_a is not None
        assert pkg_a.dependencies["pkg-b"].kind == "prod"
        assert pkg_a.dependencies["jest"].kind == "dev"

    def test_load_missing_version_defaults(
        self, project_dir: Path, write_package_json: Callable[..., Path]
    ) -> None:
        """A package without version reports 0.0.0."""
        write_package_json(project_dir, "root", workspaces=["packages/*"])
        write_package_json(project_dir / "packages" / "nover", "nover")

        workspace = NpmWorkspaceManager().load(project_dir)

        assert workspace.packages[0].version == "0.0.0"

    def test_load_skips_nameless_and_invalid_packages(
        self, project_dir: Path, write_package_json: Callable[..., Path]
    ) -> None:
        """Directories without a usable package.json are excluded."""
        write_package_json(project_dir, "root", workspaces=["packages/*"])
        write_package_json(project_dir / "packages" / "a", "a", "1.0.0")
        write_package_json(project_dir / "packages" / "b", version="1.0.0")
        (project_dir / "packages" / "c").mkdir()
        (project_dir / "packages" / "c" / "package.json").write_text("{broken")
        (project_dir / "packages" / "d").mkdir()

        workspace = NpmWorkspaceManager().load(project_dir)

        assert [p.name for p in workspace.packages] == ["a"]

    def test_load_without_workspaces_raises(
        self, project_dir: Path, write_package_json: Callable[..., Path]
    ) -> None:
        """Loading a plain package.json as npm workspace fails."""
        write_package_json(project_dir, "single", "1.0.0")

        with pytest.raises(ManifestMissingError):
            NpmWorkspaceManager().load(project_dir)

    def test_load_without_package_json_raises(self, project_dir: Path) -> None:
        """A missing root package.json is reported."""
        with pytest.raises(ManifestMissingError):
            NpmWorkspaceManager().load(project_dir)

    def test_node_modules_are_never_packages(
        self, project_dir: Path, write_package_json: Callable[..., Path]
    ) -> None:
        """Installed dependencies are not discovered even when globs reach them."""
        write_package_json(project_dir, "root", workspaces=["**"])
        write_package_json(project_dir / "packages" / "a", "a", "1.0.0")
        write_package_json(project_dir / "node_modules" / "left-pad", "left-pad", "1.3.0")

        workspace = NpmWorkspaceManager().load(project_dir)

        assert "left-pad" not in [p.name for p in workspace.packages]
        assert "a" in [p.name for p in workspace.packages]


class TestNodeUpdateVersions:
    """Tests for package.json patching through the Node managers."""

    def test_update_version_and_dependencies(self, npm_workspace: Path) -> None:
        """Version and existing dependency entries are rewritten."""
        manager = NpmWorkspaceManager()
        workspace = manager.load(npm_workspace)
        pkg_a = workspace.get_package("pkg-a")
        assert pkg_a is not None

        changed = manager.update_versions_for_package(
            workspace,
            pkg_a,
            PatchRequest(new_version="1.1.0", dependencies_versions={"pkg-b": "^2.0.0"}),
        )

        assert changed is True
        data = json.loads((npm_workspace / "packages" / "pkg-a" / "package.json").read_text())
        assert data["version"] == "1.1.0"
        assert data["dependencies"]["pkg-b"] == "^2.0.0"
        assert data["devDependencies"] == {"jest": "^29.0.0"}

    def test_workspace_protocol_is_kept(self, pnpm_workspace: Path) -> None:
        """workspace: ranges are left for the package manager to resolve."""
        manager = PnpmWorkspaceManager()
        workspace = manager.load(pnpm_workspace)
        pkg_a = workspace.get_package("pkg-a")
        assert pkg_a is not None

        manager.update_versions_for_package(
            workspace, pkg_a, PatchRequest(dependencies_versions={"pkg-b": "3.0.0"})
        )

        data = json.loads(
            (pnpm_workspace / "packages" / "pkg-a" / "package.json").read_text()
        )
        assert data["dependencies"]["pkg-b"] == "workspace:*"

    def test_version_only_patch_leaves_dependencies(self, npm_workspace: Path) -> None:
        """A patch without dependency edits does not touch dependency fields."""
        manager = NpmWorkspaceManager()
        workspace = manager.load(npm_workspace)
        pkg_a = workspace.get_package("pkg-a")
        assert pkg_a is not None

        manager.update_versions_for_package(workspace, pkg_a, PatchRequest(new_version="9.0.0"))

        data = json.loads((npm_workspace / "packages" / "pkg-a" / "package.json").read_text())
        assert data["dependencies"] == {"pkg-b": "^1.0.0"}

    def test_noop_patch_leaves_file_identical(self, npm_workspace: Path) -> None:
        """Edits that match nothing do not rewrite the file."""
        manager = NpmWorkspaceManager()
        workspace = manager.load(npm_workspace)
        pkg_b = workspace.get_package("pkg-b")
        assert pkg_b is not None
        path = npm_workspace / "packages" / "pkg-b" / "package.json"
        before = path.read_bytes()

        changed = manager.update_versions_for_package(
            workspace, pkg_b, PatchRequest(dependencies_versions={"unknown": "1.0.0"})
        )

        assert changed is False
        assert path.read_bytes() == before
