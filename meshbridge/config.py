"""
Configuration & Path Management
===============================
Global constants and the resource-folder resolver.

Exports:
    APP_NAME (str): Name used for the default resource folder.
    GLTF_VERSION (str): Asset version written into built documents.
    GENERATOR (str): Generator string written into built documents.
    DEFAULT_WORKERS (int): Worker count for batch ingestion.
    FLOAT_TOLERANCE (float): Tolerance for identity checks on transforms.
"""
import os
from pathlib import Path

APP_NAME = "meshbridge"
GLTF_VERSION = "2.0"
GENERATOR = "meshbridge"
DEFAULT_WORKERS = max(1, os.cpu_count() or 1)
FLOAT_TOLERANCE = 1e-5

# Overrides the base folder of get_resource_path()
RESOURCE_ROOT_ENV = "MESHBRIDGE_RESOURCE_ROOT"


def get_resource_path(app_name: str, resource: str = "") -> str:
    """
    Get a writable folder for a named resource of an application.

    The folder lives under $MESHBRIDGE_RESOURCE_ROOT/<app_name> when the
    variable is set, otherwise under ~/.<app_name>. It is created if absent.

    Args:
        app_name: Application name, one folder per application.
        resource: Logical resource name (sub-folder), empty for the app root.

    Returns:
        Absolute path of the folder.
    """
    root = os.environ.get(RESOURCE_ROOT_ENV)
    if root:
        base_path = Path(root) / app_name
    else:
        base_path = Path.home() / f".{app_name}"

    folder = base_path / resource if resource else base_path
    folder.mkdir(parents=True, exist_ok=True)
    return str(folder.resolve())
