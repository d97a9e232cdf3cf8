#!/usr/bin/env python3
"""
Readers Module
Manifest readers and the runtime model builder
"""

from pathlib import Path

from .base_reader import BaseReader
from .gltf_reader import GltfReader
from .runtime_builder import RuntimeBuilder

# Supported file extensions
GLTF_EXTENSIONS = {'.gltf'}
SUPPORTED_EXTENSIONS = GLTF_EXTENSIONS


def create_reader(input_file, progress_callback=None, require_binary=False):
    """Factory function to create appropriate reader based on file extension

    Args:
        input_file: Path to input manifest
        progress_callback: Optional function to call for progress updates
        require_binary: Fail the parse when no payload could be loaded

    Returns:
        BaseReader: GltfReader instance

    Raises:
        ValueError: If file extension is not supported
    """
    path = Path(input_file)
    ext = path.suffix.lower()

    if ext in GLTF_EXTENSIONS:
        return GltfReader(input_file, progress_callback, require_binary=require_binary)
    else:
        raise ValueError(
            f"Unsupported file format: {ext}\n"
            f"Supported formats: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )


def is_supported_format(input_file):
    """Check if a file has a supported format

    Args:
        input_file: Path to input manifest

    Returns:
        bool: True if format is supported
    """
    ext = Path(input_file).suffix.lower()
    return ext in SUPPORTED_EXTENSIONS


__all__ = [
    'BaseReader',
    'GltfReader',
    'RuntimeBuilder',
    'create_reader',
    'is_supported_format',
    'GLTF_EXTENSIONS',
    'SUPPORTED_EXTENSIONS',
]
