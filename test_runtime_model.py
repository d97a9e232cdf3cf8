#!/usr/bin/env python3
"""
Runtime model and mesh operation tests
"""

import numpy as np
import pytest

from meshbridge.core import mesh_ops, transforms
from meshbridge.core.runtime_model import RuntimeMesh, RuntimeSurface


def make_mesh(positions, triangles=((0, 1, 2),), normals=None):
    mesh = RuntimeMesh.create()
    mesh.positions = np.array(positions, dtype=np.float32)
    if normals is not None:
        mesh.normals = np.array(normals, dtype=np.float32)
    mesh.surfaces.append(RuntimeSurface(indices=np.array(triangles, dtype=np.uint32)))
    return mesh


def test_valid_mesh():
    mesh = make_mesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]], normals=[[0, 0, 1]] * 3)

    assert mesh.is_valid()
    assert mesh.vertex_count == 3
    assert mesh.triangle_count == 1


def test_two_vertices_is_invalid():
    mesh = make_mesh([[0, 0, 0], [1, 0, 0]])

    assert not mesh.is_valid()


def test_mismatched_normal_count_is_invalid():
    mesh = make_mesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]], normals=[[0, 0, 1]] * 2)

    assert not mesh.is_valid()


def test_mesh_without_surfaces_or_triangles_is_invalid():
    mesh = make_mesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]])
    mesh.surfaces = []
    assert not mesh.is_valid()

    mesh.surfaces = [RuntimeSurface()]
    assert not mesh.is_valid()


def test_transform_vertices_leaves_normals():
    mesh = make_mesh([[1, 0, 0], [0, 1, 0], [0, 0, 1]], normals=[[1, 0, 0]] * 3)

    mesh.transform_vertices(transforms.trs_matrix(translation=(0, 0, 2), scale=(3, 3, 3)))

    np.testing.assert_allclose(mesh.positions, [[3, 0, 2], [0, 3, 2], [0, 0, 5]])
    np.testing.assert_array_equal(mesh.normals, [[1, 0, 0]] * 3)
    assert mesh.positions.dtype == np.float32


def test_copy_is_independent():
    mesh = make_mesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]])
    clone = mesh.copy()
    clone.positions[0, 0] = 42.0
    clone.surfaces[0].material.name = "other"

    assert mesh.positions[0, 0] == 0.0
    assert mesh.surfaces[0].material.name == ""


def test_reset():
    mesh = make_mesh([[0, 0, 0], [1, 0, 0], [0, 1, 0]])
    mesh.reset()

    assert mesh.vertex_count == 0
    assert mesh.surfaces == []


def test_all_surface_indices():
    mesh = make_mesh([[0, 0, 0], [1, 0, 0], [0, 1, 0], [1, 1, 0]])
    mesh.surfaces.append(RuntimeSurface(indices=np.array([[1, 3, 2]], dtype=np.uint32)))

    np.testing.assert_array_equal(mesh.all_surface_indices(), [[0, 1, 2], [1, 3, 2]])


def test_bounding_box():
    mesh = make_mesh([[-1, 2, 0], [3, -2, 1], [0, 0, 5]])

    lo, hi = mesh_ops.bounding_box(mesh)

    np.testing.assert_array_equal(lo, [-1, -2, 0])
    np.testing.assert_array_equal(hi, [3, 2, 5])


def test_bounding_box_of_empty_mesh():
    with pytest.raises(ValueError):
        mesh_ops.bounding_box(RuntimeMesh.create())


def test_center_vertices():
    mesh = make_mesh([[0, 0, 0], [2, 0, 0], [0, 4, 0]])

    mesh_ops.center_vertices(mesh, scale=0.5)

    np.testing.assert_allclose(mesh.positions, [[-0.5, -1, 0], [0.5, -1, 0], [-0.5, 1, 0]])


def test_normalize_size():
    mesh = make_mesh([[0, 0, 0], [4, 0, 0], [0, 2, 0]])
    assert mesh_ops.normalize_size(mesh) == pytest.approx(0.25)

    flat = make_mesh([[1, 1, 1]] * 3)
    assert mesh_ops.normalize_size(flat) == 1.0


def test_rotate_model():
    mesh = make_mesh([[1, 0, 0], [0, 1, 0], [0, 0, 1]])

    mesh_ops.rotate_model(mesh, 90.0, (0, 0, 1))

    np.testing.assert_allclose(mesh.positions, [[0, 1, 0], [-1, 0, 0], [0, 0, 1]], atol=1e-6)
