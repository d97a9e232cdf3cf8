#!/usr/bin/env python3
"""
Runtime builder tests
Primitive decoding, scene-graph transforms, instancing and flattening
"""

import math

import numpy as np
import pytest

from meshbridge.core.document import Material
from meshbridge.core.errors import StructuralError
from meshbridge.readers import GltfReader, RuntimeBuilder

TRIANGLE = [[0, 0, 0], [1, 0, 0], [0, 1, 0]]


def build(path):
    return GltfReader(path).extract_model()


def test_quad(quad_gltf):
    model = build(quad_gltf)

    assert model.is_valid()
    assert model.vertex_count == 4
    assert model.triangle_count == 2
    assert len(model.surfaces) == 1
    assert model.has_normals
    assert model.has_uv0
    assert not model.has_uv1
    np.testing.assert_array_equal(model.surfaces[0].indices, [[0, 1, 2], [0, 2, 3]])
    assert model.positions.dtype == np.float32
    assert model.surfaces[0].indices.dtype == np.uint32


def test_child_transform_composes_with_parent(manifest_builder):
    """Root (1,0,0) and child (0,1,0) move the origin vertex to (1,1,0)"""
    builder = manifest_builder()
    mesh = builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2])])
    builder.add_node(translation=[1, 0, 0], children=[1])
    builder.add_node(translation=[0, 1, 0], mesh=mesh)

    model = build(builder.write())

    np.testing.assert_allclose(model.positions[0], [1, 1, 0], atol=1e-6)
    np.testing.assert_allclose(model.positions[1], [2, 1, 0], atol=1e-6)


def test_trs_order_is_translate_rotate_scale(manifest_builder):
    builder = manifest_builder()
    mesh = builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2])])
    half = math.sqrt(0.5)
    builder.add_node(mesh=mesh, translation=[0, 0, 5], rotation=[0, 0, half, half],
                     scale=[2, 2, 2])

    model = build(builder.write())

    # (1,0,0) scaled to (2,0,0), rotated 90 degrees about z to (0,2,0), then moved
    np.testing.assert_allclose(model.positions[1], [0, 2, 5], atol=1e-5)


def test_normals_are_not_rotated_by_node_transforms(manifest_builder):
    builder = manifest_builder()
    normals = [[1, 0, 0]] * 3
    mesh = builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2], normals=normals)])
    half = math.sqrt(0.5)
    builder.add_node(mesh=mesh, rotation=[0, 0, half, half])

    model = build(builder.write())

    np.testing.assert_allclose(model.positions[1], [0, 1, 0], atol=1e-6)
    np.testing.assert_array_equal(model.normals, normals)


def test_matrix_node(manifest_builder):
    builder = manifest_builder()
    mesh = builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2])])
    builder.add_node(mesh=mesh, matrix=[2, 0, 0, 0, 0, 2, 0, 0, 0, 0, 2, 0, 0, 0, 3, 1])

    model = build(builder.write())

    np.testing.assert_allclose(model.positions, [[0, 0, 3], [2, 0, 3], [0, 2, 3]], atol=1e-6)


def test_flatten_offsets_second_primitive(manifest_builder):
    """4 + 6 vertices flatten to 10; the second surface is offset by +4"""
    builder = manifest_builder()
    first = builder.add_primitive([[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]],
                                  [0, 1, 2, 0, 2, 3])
    second_indices = [0, 1, 2, 3, 4, 5, 5, 4, 3]
    second = builder.add_primitive([[i, 0, 1] for i in range(6)], second_indices)
    mesh = builder.add_mesh([first, second])
    builder.add_node(mesh=mesh)

    model = build(builder.write())

    assert model.vertex_count == 10
    assert len(model.surfaces) == 2
    np.testing.assert_array_equal(model.surfaces[0].indices, [[0, 1, 2], [0, 2, 3]])
    np.testing.assert_array_equal(
        model.surfaces[1].indices,
        np.array(second_indices).reshape(-1, 3) + 4,
    )
    np.testing.assert_array_equal(model.positions[4:], [[i, 0, 1] for i in range(6)])


def test_flatten_zero_fills_missing_uvs_and_drops_partial_normals(manifest_builder):
    builder = manifest_builder()
    first = builder.add_primitive(TRIANGLE, [0, 1, 2], normals=[[0, 0, 1]] * 3,
                                  uv0=[[0.5, 0.5]] * 3)
    second = builder.add_primitive(TRIANGLE, [0, 1, 2])
    builder.add_mesh([first, second])

    model = build(builder.write())

    assert model.vertex_count == 6
    assert model.uv0.shape == (6, 2)
    np.testing.assert_array_equal(model.uv0[:3], [[0.5, 0.5]] * 3)
    np.testing.assert_array_equal(model.uv0[3:], np.zeros((3, 2)))
    assert not model.has_normals
    assert not model.has_uv1


def test_flatten_across_meshes_in_encounter_order(manifest_builder):
    builder = manifest_builder()
    first = builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2])])
    second = builder.add_mesh([builder.add_primitive([[0, 0, 9], [1, 0, 9], [0, 1, 9]], [2, 1, 0])])
    builder.add_node(mesh=second)
    builder.add_node(mesh=first)

    model = build(builder.write())

    assert model.vertex_count == 6
    assert model.positions[3, 2] == 9
    np.testing.assert_array_equal(model.surfaces[1].indices, [[5, 4, 3]])


def test_mesh_referenced_twice_is_instanced(manifest_builder):
    builder = manifest_builder()
    mesh = builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2])])
    builder.add_node(mesh=mesh, translation=[10, 0, 0])
    builder.add_node(mesh=mesh, translation=[0, 10, 0])

    model = build(builder.write())

    assert model.vertex_count == 6
    assert len(model.surfaces) == 2
    np.testing.assert_allclose(model.positions[0], [10, 0, 0])
    np.testing.assert_allclose(model.positions[3], [0, 10, 0])


def test_non_indexed_primitive_gets_sequential_indices(manifest_builder):
    builder = manifest_builder()
    positions = TRIANGLE + [[0, 0, 1], [1, 0, 1], [0, 1, 1]]
    builder.add_mesh([builder.add_primitive(positions)])

    model = build(builder.write())

    np.testing.assert_array_equal(model.surfaces[0].indices, [[0, 1, 2], [3, 4, 5]])


def test_triangle_strip_and_fan(manifest_builder):
    square = [[0, 0, 0], [1, 0, 0], [0, 1, 0], [1, 1, 0]]
    builder = manifest_builder()
    strip = builder.add_primitive(square, [0, 1, 2, 3], mode=5)
    fan = builder.add_primitive(square, [0, 1, 2, 3], mode=6)
    builder.add_mesh([strip, fan])

    model = build(builder.write())

    np.testing.assert_array_equal(model.surfaces[0].indices, [[0, 1, 2], [2, 1, 3]])
    np.testing.assert_array_equal(model.surfaces[1].indices, [[4, 5, 6], [4, 6, 7]])


def test_points_are_not_supported(manifest_builder):
    builder = manifest_builder()
    builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2], mode=0)])

    with pytest.raises(StructuralError, match="Unsupported primitive mode"):
        build(builder.write())


def test_fewer_than_three_indices_is_fatal(manifest_builder):
    builder = manifest_builder()
    builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1])])

    with pytest.raises(StructuralError, match="No triangle indices"):
        build(builder.write())


def test_index_out_of_vertex_range(manifest_builder):
    builder = manifest_builder()
    builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 5])])

    with pytest.raises(StructuralError, match="out of range"):
        build(builder.write())


def test_invalid_node_mesh_index(manifest_builder):
    builder = manifest_builder()
    builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2])])
    builder.add_node(mesh=3)

    with pytest.raises(StructuralError, match="meshes"):
        build(builder.write())


def test_invalid_child_index(manifest_builder):
    builder = manifest_builder()
    builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2])])
    builder.add_node(children=[4])

    with pytest.raises(StructuralError, match="nodes"):
        build(builder.write())


def test_cycle_without_roots(manifest_builder):
    builder = manifest_builder()
    builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2])])
    builder.add_node(children=[1])
    builder.add_node(children=[0])

    with pytest.raises(StructuralError, match="cycle"):
        build(builder.write())


def test_node_with_two_parents(manifest_builder):
    builder = manifest_builder()
    builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2])])
    builder.add_node(children=[2])
    builder.add_node(children=[2])
    builder.add_node(mesh=0)

    with pytest.raises(StructuralError, match="more than once"):
        build(builder.write())


def test_material_is_copied_by_value(manifest_builder):
    builder = manifest_builder()
    material = builder.add_material(name="Red", pbrMetallicRoughness={
        "baseColorFactor": [1, 0, 0, 1]})
    builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2], material=material),
                      builder.add_primitive(TRIANGLE, [0, 1, 2])])

    document = GltfReader(builder.write()).parse()
    model = RuntimeBuilder(document).build()
    document.materials[0].name = "Changed"

    assert model.surfaces[0].material.name == "Red"
    assert model.surfaces[0].material.pbr.base_color_factor == (1, 0, 0, 1)
    assert model.surfaces[1].material == Material()


def test_invalid_material_index(manifest_builder):
    builder = manifest_builder()
    builder.add_mesh([builder.add_primitive(TRIANGLE, [0, 1, 2], material=2)])

    with pytest.raises(StructuralError, match="materials"):
        build(builder.write())


def test_document_without_primitives(tmp_path):
    path = tmp_path / "empty.gltf"
    path.write_text('{"asset": {"version": "2.0"}, "nodes": [{"name": "lonely"}]}',
                    encoding="utf-8")

    assert build(path) is None


def test_primitives_sharing_attributes_share_vertices(manifest_builder):
    builder = manifest_builder()
    square = builder.add_primitive([[0, 0, 0], [1, 0, 0], [0, 1, 0], [1, 1, 0]], [0, 1, 2])
    second = {"attributes": dict(square["attributes"]),
              "indices": builder.add_accessor(np.array([2, 1, 3], dtype=np.uint32), 5125, "SCALAR")}
    builder.add_mesh([square, second])

    model = build(builder.write())

    assert model.vertex_count == 4
    assert len(model.surfaces) == 2
    np.testing.assert_array_equal(model.surfaces[1].indices, [[2, 1, 3]])
