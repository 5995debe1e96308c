"""Manifest readers and text patchers, one module per manifest format."""

from release_workspaces.manifests.cargo import try_load_cargo_package
from release_workspaces.manifests.node import try_load_node_package
from release_workspaces.manifests.python import try_load_python_package

__all__ = ["try_load_cargo_package", "try_load_node_package", "try_load_python_package"]
