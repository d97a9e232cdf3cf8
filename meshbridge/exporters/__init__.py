#!/usr/bin/env python3
"""
Exporters Module
Reverse builder and manifest writer
"""

from .base_exporter import BaseExporter
from .document_builder import DocumentBuilder
from .gltf_writer import GltfWriter, document_to_json

__all__ = [
    'BaseExporter',
    'DocumentBuilder',
    'GltfWriter',
    'document_to_json',
]
