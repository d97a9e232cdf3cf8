#!/usr/bin/env python3
"""
Errors Module
Typed failures raised by the parser, builders and writer.
"""


class MeshBridgeError(Exception):
    """Base class for every failure meshbridge raises on purpose"""


class StructuralError(MeshBridgeError, ValueError):
    """The document is malformed or references something that does not exist

    Raised for missing required fields, unsupported component/accessor types,
    out-of-range cross-references and reads past the end of a buffer.
    """


class ResourceError(MeshBridgeError, OSError):
    """A file the operation depends on is missing, unreadable or unwritable"""
