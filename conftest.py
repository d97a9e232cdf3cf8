#!/usr/bin/env python3
"""
Shared test fixtures
Synthesises small glTF manifests and payloads in a temporary folder.
"""

import json
from pathlib import Path

import numpy as np
import pytest

FLOAT = 5126
UNSIGNED_INT = 5125
UNSIGNED_SHORT = 5123


class ManifestBuilder:
    """Accumulates a manifest plus one binary payload, then writes both

    Usage:
        builder = ManifestBuilder(tmp_path)
        pos = builder.add_accessor(positions, FLOAT, "VEC3")
        idx = builder.add_accessor(indices, UNSIGNED_INT, "SCALAR")
        mesh = builder.add_mesh([{"attributes": {"POSITION": pos}, "indices": idx}])
        builder.add_node(mesh=mesh)
        path = builder.write()
    """

    def __init__(self, directory, name="scene"):
        self.directory = Path(directory)
        self.name = name
        self.payload = bytearray()
        self.manifest = {
            "asset": {"version": "2.0", "generator": "tests"},
            "bufferViews": [],
            "accessors": [],
            "meshes": [],
            "nodes": [],
        }

    def _align(self):
        while len(self.payload) % 4:
            self.payload.append(0)

    def add_view(self, raw, stride=None, target=None):
        self._align()
        view = {"buffer": 0, "byteOffset": len(self.payload), "byteLength": len(raw)}
        if stride:
            view["byteStride"] = stride
        if target:
            view["target"] = target
        self.payload.extend(raw)
        self.manifest["bufferViews"].append(view)
        return len(self.manifest["bufferViews"]) - 1

    def add_accessor_on_view(self, view, component_type, accessor_type, count,
                             byte_offset=0, normalized=False):
        accessor = {
            "bufferView": view,
            "byteOffset": byte_offset,
            "componentType": component_type,
            "count": count,
            "type": accessor_type,
        }
        if normalized:
            accessor["normalized"] = True
        self.manifest["accessors"].append(accessor)
        return len(self.manifest["accessors"]) - 1

    def add_accessor(self, array, component_type, accessor_type, normalized=False):
        array = np.ascontiguousarray(array)
        view = self.add_view(array.tobytes())
        return self.add_accessor_on_view(view, component_type, accessor_type,
                                         int(array.shape[0]), normalized=normalized)

    def add_primitive(self, positions, indices=None, normals=None, uv0=None,
                      material=None, mode=None):
        """Primitive dict with its accessors added to the payload"""
        primitive = {"attributes": {
            "POSITION": self.add_accessor(np.asarray(positions, dtype=np.float32), FLOAT, "VEC3"),
        }}
        if normals is not None:
            primitive["attributes"]["NORMAL"] = self.add_accessor(
                np.asarray(normals, dtype=np.float32), FLOAT, "VEC3")
        if uv0 is not None:
            primitive["attributes"]["TEXCOORD_0"] = self.add_accessor(
                np.asarray(uv0, dtype=np.float32), FLOAT, "VEC2")
        if indices is not None:
            primitive["indices"] = self.add_accessor(
                np.asarray(indices, dtype=np.uint32).reshape(-1), UNSIGNED_INT, "SCALAR")
        if material is not None:
            primitive["material"] = material
        if mode is not None:
            primitive["mode"] = mode
        return primitive

    def add_mesh(self, primitives, name=""):
        mesh = {"primitives": primitives}
        if name:
            mesh["name"] = name
        self.manifest["meshes"].append(mesh)
        return len(self.manifest["meshes"]) - 1

    def add_node(self, **fields):
        self.manifest["nodes"].append({k: v for k, v in fields.items() if v is not None})
        return len(self.manifest["nodes"]) - 1

    def add_material(self, **fields):
        self.manifest.setdefault("materials", []).append(fields)
        return len(self.manifest["materials"]) - 1

    def write(self, write_binary=True):
        """Write <name>.gltf and <name>.bin, returning the manifest path"""
        self.directory.mkdir(parents=True, exist_ok=True)
        bin_name = f"{self.name}.bin"
        manifest = {k: v for k, v in self.manifest.items() if v != []}
        manifest["buffers"] = [{"byteLength": len(self.payload), "uri": bin_name}]
        if write_binary:
            (self.directory / bin_name).write_bytes(bytes(self.payload))

        path = self.directory / f"{self.name}.gltf"
        path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        return path


QUAD_POSITIONS = [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]]
QUAD_INDICES = [0, 1, 2, 0, 2, 3]


@pytest.fixture
def manifest_builder(tmp_path):
    """Factory for ManifestBuilder instances writing into tmp_path"""
    def make(name="scene", directory=None):
        return ManifestBuilder(directory or tmp_path, name)
    return make


@pytest.fixture
def quad_gltf(manifest_builder):
    """One node, one mesh, one indexed quad with normals and UVs"""
    builder = manifest_builder("quad")
    primitive = builder.add_primitive(
        QUAD_POSITIONS,
        indices=QUAD_INDICES,
        normals=[[0, 0, 1]] * 4,
        uv0=[[0, 0], [1, 0], [1, 1], [0, 1]],
    )
    mesh = builder.add_mesh([primitive], name="Quad")
    builder.add_node(mesh=mesh, name="QuadNode")
    return builder.write()
