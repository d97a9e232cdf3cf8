#!/usr/bin/env python3
"""
Core Module
Format-agnostic data structures, decoding helpers and transform math.
"""

from .errors import MeshBridgeError, StructuralError, ResourceError
from .gltf_types import (
    ComponentType,
    AccessorType,
    PrimitiveMode,
    BufferTarget,
)
from .document import (
    Document,
    Asset,
    Buffer,
    BufferView,
    Accessor,
    MeshPrimitive,
    Mesh,
    TextureInfo,
    PbrMetallicRoughness,
    Material,
    Texture,
    Sampler,
    Image,
    Node,
    Scene,
)
from .runtime_model import RuntimeMesh, RuntimeSurface

__all__ = [
    'MeshBridgeError',
    'StructuralError',
    'ResourceError',
    'ComponentType',
    'AccessorType',
    'PrimitiveMode',
    'BufferTarget',
    'Document',
    'Asset',
    'Buffer',
    'BufferView',
    'Accessor',
    'MeshPrimitive',
    'Mesh',
    'TextureInfo',
    'PbrMetallicRoughness',
    'Material',
    'Texture',
    'Sampler',
    'Image',
    'Node',
    'Scene',
    'RuntimeMesh',
    'RuntimeSurface',
]
