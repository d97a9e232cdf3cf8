#!/usr/bin/env python3
"""
Base Exporter Module
Abstract base class ensuring a consistent interface across exporters

Exporters receive a Document, never a reader. Everything flowing out of the
runtime model goes through DocumentBuilder first.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from meshbridge.core.errors import ResourceError

if TYPE_CHECKING:
    from meshbridge.core.document import Document

logger = logging.getLogger(__name__)


class BaseExporter(ABC):
    """Abstract base class for document exporters

    Provides the shared progress logging and output-path handling.
    """

    def __init__(self, progress_callback=None):
        """Initialize exporter

        Args:
            progress_callback: Optional function to call for progress updates
                              Signature: callback(message: str) -> None
        """
        self.progress_callback = progress_callback

    def log(self, message):
        """Send progress/status message"""
        if self.progress_callback:
            self.progress_callback(message)
        logger.info(message)

    @abstractmethod
    def export(self, document: 'Document', output_path, name):
        """Export a document

        Args:
            document: Document to serialize
            output_path: Output directory path (Path object or string)
            name: Base name for the written files

        Returns:
            dict: Export results, at least:
                  - 'success': bool
                  - 'files': list of created file paths
                  - 'message': str status message
        """
        pass

    @abstractmethod
    def get_format_name(self):
        """Return human-readable format name"""
        pass

    @abstractmethod
    def get_file_extension(self):
        """Return primary file extension without dot (e.g. "gltf")"""
        pass

    def validate_output_path(self, output_path):
        """Validate and create output directory if needed

        Args:
            output_path: Directory path to validate

        Returns:
            Path: Validated Path object

        Raises:
            ResourceError: If the directory cannot be created or is not a directory
        """
        path = Path(output_path)

        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ResourceError(f"Cannot create output directory {path}: {e}") from e

        if not path.is_dir():
            raise ResourceError(f"Output path is not a directory: {path}")

        return path

    def get_export_summary(self, result):
        """Generate human-readable summary of export results

        Args:
            result: Export result dict from export() method

        Returns:
            str: Formatted summary text
        """
        status = "✓" if result.get('success') else "✗"
        lines = [f"{status} {self.get_format_name()} Export"]

        files = result.get('files', [])
        if files:
            lines.append(f"  Files created: {len(files)}")
            for file_path in files:
                lines.append(f"    - {Path(file_path).name}")

        if 'message' in result:
            lines.append(f"  {result['message']}")

        return "\n".join(lines)
