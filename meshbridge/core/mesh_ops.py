#!/usr/bin/env python3
"""
Mesh Operations Module
Small geometric utilities over a RuntimeMesh: bounds, centering, size
normalization and rotation.
"""

import math

import numpy as np

from . import transforms


def bounding_box(mesh):
    """Axis-aligned bounds of the vertex positions

    Returns:
        tuple: (min xyz, max xyz) as float32 arrays

    Raises:
        ValueError: If the mesh has no vertices
    """
    if mesh.vertex_count == 0:
        raise ValueError("Cannot compute bounds of a mesh without vertices")
    return mesh.positions.min(axis=0), mesh.positions.max(axis=0)


def center_vertices(mesh, scale=1.0):
    """Move the bounding-box center to the origin, then scale"""
    lo, hi = bounding_box(mesh)
    center = (lo.astype(np.float64) + hi) / 2.0
    moved = (mesh.positions.astype(np.float64) - center) * scale
    mesh.positions = moved.astype(np.float32)


def normalize_size(mesh):
    """Scale factor that makes the largest bounding-box edge equal to 1"""
    lo, hi = bounding_box(mesh)
    max_edge = float(np.max(hi.astype(np.float64) - lo))
    if max_edge <= 0.0:
        return 1.0
    return 1.0 / max_edge


def rotate_model(mesh, angle_degrees, axis):
    """Rotate the vertex positions about an axis through the origin"""
    matrix = transforms.axis_angle_matrix(axis, math.radians(angle_degrees))
    mesh.transform_vertices(matrix)
