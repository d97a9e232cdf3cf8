#!/usr/bin/env python3
"""
glTF Type Tables
Enumerations of the interchange format with their per-variant byte widths,
component counts and numpy dtypes.

Every decode and encode site looks sizes up here instead of switching on the
enum value itself.
"""

from enum import Enum, IntEnum

import numpy as np

from .errors import StructuralError


class ComponentType(IntEnum):
    """Scalar component type of an accessor (glTF enumerant values)"""
    BYTE = 5120
    UNSIGNED_BYTE = 5121
    SHORT = 5122
    UNSIGNED_SHORT = 5123
    UNSIGNED_INT = 5125
    FLOAT = 5126

    @classmethod
    def from_value(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise StructuralError(f"Unsupported component type: {value}")

    @property
    def byte_width(self):
        return _COMPONENT_TABLE[self][0]

    @property
    def dtype(self):
        return np.dtype(_COMPONENT_TABLE[self][1])

    @property
    def is_integer(self):
        return self != ComponentType.FLOAT


# (byte width, little-endian numpy dtype)
_COMPONENT_TABLE = {
    ComponentType.BYTE: (1, '<i1'),
    ComponentType.UNSIGNED_BYTE: (1, '<u1'),
    ComponentType.SHORT: (2, '<i2'),
    ComponentType.UNSIGNED_SHORT: (2, '<u2'),
    ComponentType.UNSIGNED_INT: (4, '<u4'),
    ComponentType.FLOAT: (4, '<f4'),
}

# Component types allowed for triangle indices
INDEX_COMPONENT_TYPES = {
    ComponentType.UNSIGNED_BYTE,
    ComponentType.UNSIGNED_SHORT,
    ComponentType.UNSIGNED_INT,
}


class AccessorType(Enum):
    """Element shape of an accessor"""
    SCALAR = "SCALAR"
    VEC2 = "VEC2"
    VEC3 = "VEC3"
    VEC4 = "VEC4"
    MAT2 = "MAT2"
    MAT3 = "MAT3"
    MAT4 = "MAT4"

    @classmethod
    def from_value(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise StructuralError(f"Unknown accessor type: {value}")

    @property
    def num_components(self):
        return _ACCESSOR_COMPONENTS[self]


_ACCESSOR_COMPONENTS = {
    AccessorType.SCALAR: 1,
    AccessorType.VEC2: 2,
    AccessorType.VEC3: 3,
    AccessorType.VEC4: 4,
    AccessorType.MAT2: 4,
    AccessorType.MAT3: 9,
    AccessorType.MAT4: 16,
}


class PrimitiveMode(IntEnum):
    """Topology of a mesh primitive"""
    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6

    @classmethod
    def from_value(cls, value):
        try:
            return cls(value)
        except ValueError:
            raise StructuralError(f"Unknown primitive mode: {value}")


class BufferTarget(IntEnum):
    """GPU binding hint of a buffer view"""
    ARRAY_BUFFER = 34962
    ELEMENT_ARRAY_BUFFER = 34963


# Sampler wrap mode default (REPEAT)
WRAP_REPEAT = 10497

# Attribute semantics the runtime builder understands
POSITION = "POSITION"
NORMAL = "NORMAL"
TEXCOORD_0 = "TEXCOORD_0"
TEXCOORD_1 = "TEXCOORD_1"
