#!/usr/bin/env python3
"""
Base Reader Module
Abstract interface for reading scene manifests into a Document
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from meshbridge.core.document import Document
    from meshbridge.core.runtime_model import RuntimeMesh

logger = logging.getLogger(__name__)


class BaseReader(ABC):
    """Abstract base class for manifest readers

    A reader turns one file into a Document. The runtime model is then built
    from that Document, so every reader gets extract_model() for free.
    """

    def __init__(self, file_path: str, progress_callback=None):
        """Initialize reader with file path

        Args:
            file_path: Path to the manifest file
            progress_callback: Optional function to call for progress updates
                              Signature: callback(message: str) -> None
        """
        self.file_path = Path(file_path)
        self.progress_callback = progress_callback
        self._document: Optional['Document'] = None

    def log(self, message):
        """Send progress/status message"""
        if self.progress_callback:
            self.progress_callback(message)
        logger.info(message)

    @abstractmethod
    def get_format_name(self) -> str:
        """Return human-readable format name (e.g., 'glTF')"""
        pass

    @abstractmethod
    def parse(self) -> 'Document':
        """Parse the file into a Document

        Returns:
            Document: Fully populated document

        Raises:
            StructuralError: If the manifest violates the schema
            ResourceError: If the manifest cannot be read
        """
        pass

    @property
    def document(self) -> 'Document':
        """Parsed document (parses on first access)"""
        if self._document is None:
            self._document = self.parse()
        return self._document

    def extract_model(self) -> Optional['RuntimeMesh']:
        """Build the runtime model from the parsed document

        Returns:
            RuntimeMesh: Flattened model, or None if the document has no primitives
        """
        from meshbridge.readers.runtime_builder import RuntimeBuilder

        return RuntimeBuilder(self.document, self.progress_callback).build()
