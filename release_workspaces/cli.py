"""Command-line interface for workspace discovery.

Provides commands for:
- detect: Show the ecosystem of a workspace root
- list: List the packages of a workspace
- bump: Write a new version and dependency versions to one package
- ecosystems: List the supported ecosystems
- init-config: Generate configuration
"""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from release_workspaces import __version__
from release_workspaces.config.defaults import write_default_config
from release_workspaces.config.loader import load_config
from release_workspaces.config.models import WorkspaceConfig
from release_workspaces.exceptions import PackageNotFoundError, WorkspaceError
from release_workspaces.models import PatchRequest, Workspace
from release_workspaces.resolver import list_ecosystems, resolve_workspace_manager

# Create Typer app
app = typer.Typer(
    name="release-workspaces",
    help="Multi-ecosystem workspace package discovery and version patching",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"release-workspaces version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def resolve_config(
    root: Path,
    config: Path | None,
    ecosystem: str | None = None,
    patterns: list[str] | None = None,
) -> WorkspaceConfig:
    """Load configuration and apply command-line overrides.

    Args:
        root: Workspace root (config files are searched there)
        config: Explicit config file
        ecosystem: --ecosystem override
        patterns: --pattern overrides

    Returns:
        Effective configuration
    """
    cfg = load_config(config, project_root=root)
    overrides: dict[str, object] = {}
    if ecosystem:
        overrides["ecosystem"] = ecosystem.lower()
    if patterns:
        overrides["package_patterns"] = list(patterns)
    return cfg.model_copy(update=overrides) if overrides else cfg


def load(root: Path, cfg: WorkspaceConfig) -> Workspace:
    """Resolve the manager for a root and load its workspace."""
    manager = resolve_workspace_manager(root, cfg.ecosystem)
    return manager.load(root, cfg)


def parse_dependency_overrides(values: list[str]) -> dict[str, str]:
    """Parse NAME=VERSION pairs.

    Raises:
        typer.BadParameter: If a pair has no '=' or an empty side
    """
    overrides: dict[str, str] = {}
    for value in values:
        name, sep, version = value.partition("=")
        name, version = name.strip(), version.strip()
        if not sep or not name or not version:
            raise typer.BadParameter(
                f"Expected NAME=VERSION, got {value!r}", param_hint="--dep"
            )
        overrides[name] = version
    return overrides


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: B008
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(  # noqa: B008
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Multi-ecosystem workspace package discovery.

    Finds the packages of pnpm, Rush, npm, cargo and Python workspaces
    and writes version bumps back into their manifests.
    """
    configure_logging(verbose)


@app.command()
def detect(
    root: Path = typer.Argument(  # noqa: B008
        Path("."),
        help="Workspace root",
    ),
) -> None:
    """Show the ecosystem detected at a workspace root.

    Examples:
        release-workspaces detect
        release-workspaces detect path/to/monorepo
    """
    try:
        manager = resolve_workspace_manager(root)
        console.print(f"[green]{manager.type}[/green] ({manager.display_name})")

    except WorkspaceError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=e.exit_code) from None


@app.command(name="list")
def list_packages(
    root: Path = typer.Argument(  # noqa: B008
        Path("."),
        help="Workspace root",
    ),
    ecosystem: str | None = typer.Option(  # noqa: B008
        None,
        "--ecosystem",
        "-e",
        help="Ecosystem type or alias (auto-detected if not specified)",
    ),
    pattern: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--pattern",
        "-p",
        help="Package glob, replaces the declared members (repeatable)",
    ),
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
    as_json: bool = typer.Option(  # noqa: B008
        False,
        "--json",
        help="Print packages as JSON",
    ),
) -> None:
    """List the packages of a workspace in discovery order.

    Examples:
        release-workspaces list
        release-workspaces list -e python -p "libs/*"
        release-workspaces list --json
    """
    try:
        cfg = resolve_config(root, config, ecosystem, pattern)
        workspace = load(root, cfg)

        if as_json:
            payload = {
                "type": workspace.type,
                "path": str(workspace.path),
                "packages": [
                    {
                        "name": package.name,
                        "version": package.version,
                        "path": package.relative_path,
                        "dependencies": {
                            dep.name: {"version": dep.version, "kind": dep.kind}
                            for dep in package.dependencies.values()
                        },
                    }
                    for package in workspace.packages
                ],
            }
            typer.echo(json.dumps(payload, indent=2))
            return

        table = Table(title=f"{workspace.type} workspace: {workspace.path}")
        table.add_column("Package", style="cyan")
        table.add_column("Version", style="green")
        table.add_column("Path")
        table.add_column("Deps", justify="right")
        for package in workspace.packages:
            table.add_row(
                package.name,
                package.version,
                package.relative_path,
                str(len(package.dependencies)),
            )
        console.print(table)
        if not workspace.packages:
            console.print("[yellow]No packages found[/yellow]")

    except WorkspaceError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=e.exit_code) from None


@app.command()
def bump(
    package_name: str = typer.Argument(  # noqa: B008
        ...,
        metavar="PACKAGE",
        help="Name of the package to patch",
    ),
    root: Path = typer.Option(  # noqa: B008
        Path("."),
        "--root",
        help="Workspace root",
    ),
    set_version: str | None = typer.Option(  # noqa: B008
        None,
        "--set-version",
        help="New version of the package",
    ),
    dep: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--dep",
        help="Dependency version update as NAME=VERSION (repeatable)",
    ),
    ecosystem: str | None = typer.Option(  # noqa: B008
        None,
        "--ecosystem",
        "-e",
        help="Ecosystem type or alias (auto-detected if not specified)",
    ),
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
) -> None:
    """Write a new version and dependency versions to one package manifest.

    Examples:
        release-workspaces bump pkg-a --set-version 2.0.0
        release-workspaces bump pkg-a --dep pkg-b=2.0.0 --dep pkg-c=1.1.0
    """
    dependencies_versions = parse_dependency_overrides(dep or [])
    if set_version is None and not dependencies_versions:
        console.print("[red]Error:[/red] Nothing to update")
        console.print("Use --set-version and/or --dep NAME=VERSION")
        raise typer.Exit(code=1)

    try:
        cfg = resolve_config(root, config, ecosystem)
        manager = resolve_workspace_manager(root, cfg.ecosystem)
        workspace = manager.load(root, cfg)

        package = workspace.get_package(package_name)
        if package is None:
            raise PackageNotFoundError(
                f"Package not found: {package_name}",
                details=f"{len(workspace.packages)} package(s) in {workspace.type} workspace",
                fix_hint="Run 'release-workspaces list' to see available packages",
            )

        patch = PatchRequest(
            new_version=set_version,
            dependencies_versions=dependencies_versions,
        )
        if manager.update_versions_for_package(workspace, package, patch):
            console.print(
                Panel(
                    f"Updated [cyan]{package.name}[/cyan] "
                    f"({workspace.package_path(package)})",
                    title="bump",
                )
            )
        else:
            console.print(f"[yellow]No changes for {package.name}[/yellow]")

    except WorkspaceError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=e.exit_code) from None


@app.command()
def ecosystems() -> None:
    """List supported ecosystems in auto-detection order."""
    table = Table(title="Ecosystems")
    table.add_column("Priority", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Aliases")
    table.add_column("Markers", style="green")
    for manager in list_ecosystems():
        table.add_row(
            str(manager.priority),
            manager.type,
            ", ".join(manager.aliases),
            ", ".join(manager.marker_files),
        )
    console.print(table)


@app.command(name="init-config")
def init_config(
    output: Path = typer.Option(  # noqa: B008
        Path("config/workspace_conf.yml"),
        "--output",
        "-o",
        help="Output path for configuration file",
    ),
    root: Path = typer.Option(  # noqa: B008
        Path("."),
        "--root",
        help="Workspace root used for auto-detection",
    ),
    force: bool = typer.Option(  # noqa: B008
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Generate a workspace configuration file.

    Auto-detects the workspace ecosystem and its member patterns.

    Examples:
        release-workspaces init-config
        release-workspaces init-config -o workspace_conf.yml
    """
    if output.exists() and not force:
        console.print(f"[red]Configuration already exists:[/red] {output}")
        console.print("Use --force to overwrite")
        raise typer.Exit(code=1)

    try:
        write_default_config(output, root)
        console.print(f"[green]Configuration written to:[/green] {output}")

    except WorkspaceError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=e.exit_code) from None


if __name__ == "__main__":
    app()
