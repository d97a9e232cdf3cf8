#!/usr/bin/env python3
"""
Runtime Model Module
Render-ready triangle mesh built from a Document.

Vertex data is stored row-per-vertex: positions and normals are (N, 3)
float32 arrays, UV channels (N, 2) float32, surface indices (T, 3) uint32.
An absent optional channel is an empty array with the right column count.
"""

import copy
from dataclasses import dataclass, field
from typing import List

import numpy as np

from . import transforms
from .document import Material, Texture, Image, Sampler


def empty_vec3():
    return np.zeros((0, 3), dtype=np.float32)


def empty_vec2():
    return np.zeros((0, 2), dtype=np.float32)


def empty_triangles():
    return np.zeros((0, 3), dtype=np.uint32)


@dataclass
class RuntimeSurface:
    """A group of triangles sharing one material

    Attributes:
        indices: (T, 3) uint32 triangle vertex indices
        material: Material copied by value from the document
        name: Optional surface name
    """
    indices: np.ndarray = field(default_factory=empty_triangles)
    material: Material = field(default_factory=Material)
    name: str = ""

    @property
    def triangle_count(self) -> int:
        return int(len(self.indices))


@dataclass
class RuntimeMesh:
    """Triangle mesh with one or more surfaces

    Attributes:
        positions: (N, 3) vertex positions
        normals: (N, 3) vertex normals or empty
        uv0: (N, 2) first UV channel or empty
        uv1: (N, 2) second UV channel or empty
        surfaces: Triangle groups, each with its own material
        textures: Texture table copied from the source document
        images: Image table copied from the source document
        samplers: Sampler table copied from the source document
    """
    positions: np.ndarray = field(default_factory=empty_vec3)
    normals: np.ndarray = field(default_factory=empty_vec3)
    uv0: np.ndarray = field(default_factory=empty_vec2)
    uv1: np.ndarray = field(default_factory=empty_vec2)
    surfaces: List[RuntimeSurface] = field(default_factory=list)
    textures: List[Texture] = field(default_factory=list)
    images: List[Image] = field(default_factory=list)
    samplers: List[Sampler] = field(default_factory=list)

    @classmethod
    def create(cls):
        return cls()

    @property
    def vertex_count(self) -> int:
        return int(len(self.positions))

    @property
    def triangle_count(self) -> int:
        return sum(s.triangle_count for s in self.surfaces)

    @property
    def has_normals(self) -> bool:
        return len(self.normals) > 0

    @property
    def has_uv0(self) -> bool:
        return len(self.uv0) > 0

    @property
    def has_uv1(self) -> bool:
        return len(self.uv1) > 0

    def is_valid(self) -> bool:
        """True if the mesh can be exported or processed"""
        if self.vertex_count < 3:
            return False
        if self.has_normals and len(self.normals) != self.vertex_count:
            return False
        if not self.surfaces:
            return False
        if self.triangle_count == 0:
            return False
        return True

    def transform_vertices(self, matrix):
        """Apply an affine transform to the positions in place

        Normals are left untouched.
        """
        self.positions = transforms.transform_points(matrix, self.positions)

    def all_surface_indices(self) -> np.ndarray:
        """Triangle indices of every surface stacked in surface order"""
        if not self.surfaces:
            return empty_triangles()
        return np.concatenate([s.indices for s in self.surfaces], axis=0)

    def copy(self) -> 'RuntimeMesh':
        return copy.deepcopy(self)

    def reset(self):
        self.positions = empty_vec3()
        self.normals = empty_vec3()
        self.uv0 = empty_vec2()
        self.uv1 = empty_vec2()
        self.surfaces = []
