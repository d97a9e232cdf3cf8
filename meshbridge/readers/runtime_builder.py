#!/usr/bin/env python3
"""
Runtime Builder Module
Builds a RuntimeMesh from a parsed Document.

Steps:
    1. One RuntimeSurface per mesh primitive, in a RuntimeMesh holding the
       vertices of its attribute accessors
    2. Scene-graph transforms applied to vertex positions, starting at every
       root node with an identity parent transform
    3. Several models flattened into a single RuntimeMesh
"""

import copy
import logging
from typing import Dict, List, Optional

import numpy as np

from meshbridge.core import accessors
from meshbridge.core import transforms
from meshbridge.core.document import Document, Material, MeshPrimitive
from meshbridge.core.errors import StructuralError
from meshbridge.core.gltf_types import PrimitiveMode, POSITION, NORMAL, TEXCOORD_0, TEXCOORD_1
from meshbridge.core.runtime_model import RuntimeMesh, RuntimeSurface

logger = logging.getLogger(__name__)


def _strip_to_list(values):
    triangles = []
    for i in range(len(values) - 2):
        if i % 2 == 0:
            triangles.append((values[i], values[i + 1], values[i + 2]))
        else:
            triangles.append((values[i + 1], values[i], values[i + 2]))
    return np.array(triangles, dtype=np.uint32).reshape(-1, 3)


def _fan_to_list(values):
    triangles = [(values[0], values[i + 1], values[i + 2]) for i in range(len(values) - 2)]
    return np.array(triangles, dtype=np.uint32).reshape(-1, 3)


def flatten(models: List[RuntimeMesh]) -> RuntimeMesh:
    """Merge several models into one model

    Vertices are concatenated in list order and every surface's indices are
    shifted by the number of vertices that precede its model. Surfaces are
    kept as they are, in model order.

    Channel policy:
        - UV0/UV1: zero-filled for models lacking the channel when at least
          one model has it, left empty when none has it
        - Normals: concatenated only when every model has them

    Args:
        models: Models to merge

    Returns:
        RuntimeMesh: The flattened model
    """
    flattened = RuntimeMesh.create()

    vertex_offsets = []
    total_vertices = 0
    for model in models:
        vertex_offsets.append(total_vertices)
        total_vertices += model.vertex_count

    flattened.positions = np.concatenate([m.positions for m in models], axis=0).astype(np.float32)

    if all(m.has_normals for m in models):
        flattened.normals = np.concatenate([m.normals for m in models], axis=0).astype(np.float32)

    for channel in ('uv0', 'uv1'):
        if not any(len(getattr(m, channel)) for m in models):
            continue
        merged = np.zeros((total_vertices, 2), dtype=np.float32)
        for offset, model in zip(vertex_offsets, models):
            uv = getattr(model, channel)
            if len(uv):
                merged[offset:offset + len(uv)] = uv[:model.vertex_count]
        setattr(flattened, channel, merged)

    for offset, model in zip(vertex_offsets, models):
        for surface in model.surfaces:
            flattened.surfaces.append(RuntimeSurface(
                indices=(surface.indices.astype(np.uint32) + np.uint32(offset)),
                material=surface.material,
                name=surface.name,
            ))

    first = models[0]
    flattened.textures = first.textures
    flattened.images = first.images
    flattened.samplers = first.samplers

    logger.debug(f"Flattened {len(models)} models into {total_vertices} vertices, "
                 f"{flattened.triangle_count} triangles")
    return flattened


class RuntimeBuilder:
    """Builds the runtime model for one Document

    Usage:
        model = RuntimeBuilder(document).build()
    """

    def __init__(self, document: Document, progress_callback=None):
        self.document = document
        self.progress_callback = progress_callback

    def log(self, message):
        if self.progress_callback:
            self.progress_callback(message)
        logger.info(message)

    def build(self) -> Optional[RuntimeMesh]:
        """Build the model

        Returns:
            RuntimeMesh: All primitives flattened into a single mesh,
                         or None if the document has no primitives

        Raises:
            StructuralError: Invalid references, unsupported data, or fewer than
                             3 indices in a primitive
            ResourceError: A primitive needs a buffer whose payload was not loaded
        """
        per_mesh = self.build_primitive_models()
        instances = self.apply_node_transforms(per_mesh)

        models = [model for mesh_models in per_mesh for model in mesh_models]
        models.extend(instances)

        if not models:
            self.log("Document contains no mesh primitives")
            return None

        result = models[0] if len(models) == 1 else flatten(models)
        self.log(f"Built model: {result.vertex_count} vertices, "
                 f"{result.triangle_count} triangles, {len(result.surfaces)} surfaces")
        return result

    def build_primitive_models(self) -> List[List[RuntimeMesh]]:
        """Runtime models grouped by mesh index

        Each primitive becomes one surface. Primitives of the same mesh that
        reference exactly the same attribute accessors share one model (and
        one copy of the vertices); any other primitive gets a model of its own.
        """
        per_mesh = []
        for mesh_index, mesh in enumerate(self.document.meshes):
            models = []
            shared: Dict[tuple, RuntimeMesh] = {}
            for prim_index, primitive in enumerate(mesh.primitives):
                logger.debug(f"Building mesh {mesh_index} primitive {prim_index}")
                key = tuple(sorted(primitive.attributes.items()))
                model = shared.get(key)
                if model is None:
                    model = self.build_primitive(primitive)
                    shared[key] = model
                    models.append(model)
                else:
                    model.surfaces.append(self.build_surface(primitive, model.vertex_count))
            per_mesh.append(models)
        return per_mesh

    def build_primitive(self, primitive: MeshPrimitive) -> RuntimeMesh:
        """Decode one primitive into a single-surface RuntimeMesh"""
        document = self.document
        model = RuntimeMesh.create()

        # get vertex attributes
        if POSITION in primitive.attributes:
            model.positions = self._float_attribute(primitive, POSITION, 3)
        if NORMAL in primitive.attributes:
            model.normals = self._float_attribute(primitive, NORMAL, 3)
        if TEXCOORD_0 in primitive.attributes:
            model.uv0 = self._float_attribute(primitive, TEXCOORD_0, 2)
        if TEXCOORD_1 in primitive.attributes:
            model.uv1 = self._float_attribute(primitive, TEXCOORD_1, 2)

        model.surfaces.append(self.build_surface(primitive, model.vertex_count))

        model.images = copy.deepcopy(document.images)
        model.textures = copy.deepcopy(document.textures)
        model.samplers = copy.deepcopy(document.samplers)
        return model

    def build_surface(self, primitive: MeshPrimitive, vertex_count: int) -> RuntimeSurface:
        """Triangles and material of one primitive"""
        document = self.document
        surface = RuntimeSurface(indices=self._triangles(primitive, vertex_count))
        if vertex_count and len(surface.indices) and int(surface.indices.max()) >= vertex_count:
            raise StructuralError(
                f"Triangle index {int(surface.indices.max())} out of range for "
                f"{vertex_count} vertices"
            )

        # material is copied by value
        if primitive.material is None:
            surface.material = Material()
        else:
            surface.material = copy.deepcopy(document.get('materials', primitive.material))
            surface.name = surface.material.name
        return surface

    def _float_attribute(self, primitive, semantic, columns):
        accessor = self.document.get('accessors', primitive.attributes[semantic])
        values = accessors.read_float_attribute(self.document, accessor)
        if values.shape[1] != columns:
            raise StructuralError(
                f"{semantic} accessor has {values.shape[1]} components, expected {columns}"
            )
        return values

    def _triangles(self, primitive, vertex_count):
        """Triangle list for a primitive, converting strips and fans"""
        mode = primitive.mode
        if mode not in (PrimitiveMode.TRIANGLES, PrimitiveMode.TRIANGLE_STRIP,
                        PrimitiveMode.TRIANGLE_FAN):
            raise StructuralError(f"Unsupported primitive mode: {mode.name}")

        if primitive.indices is None:
            # non-indexed geometry draws vertices in order
            if vertex_count < accessors.TRI_INDICES:
                raise StructuralError("No triangle indices")
            values = np.arange(vertex_count, dtype=np.uint32)
        else:
            accessor = self.document.get('accessors', primitive.indices)
            if mode == PrimitiveMode.TRIANGLES:
                return accessors.read_triangle_indices(self.document, accessor)
            if accessor.count < accessors.TRI_INDICES:
                raise StructuralError("No triangle indices")
            values = accessors.read_index_values(self.document, accessor)

        if mode == PrimitiveMode.TRIANGLE_STRIP:
            return _strip_to_list(values)
        if mode == PrimitiveMode.TRIANGLE_FAN:
            return _fan_to_list(values)
        num_triangles = len(values) // accessors.TRI_INDICES
        return values[:num_triangles * 3].reshape(num_triangles, 3)

    def apply_node_transforms(self, per_mesh: List[List[RuntimeMesh]]) -> List[RuntimeMesh]:
        """Apply the composed node transforms to the referenced meshes

        The first node referencing a mesh transforms its models in place.
        Every further reference transforms a copy of the untransformed
        models; those copies are returned.

        Returns:
            list: Extra model instances created for repeated mesh references
        """
        document = self.document
        for node in document.nodes:
            if node.mesh is not None:
                document.get('meshes', node.mesh)

        reference_counts: Dict[int, int] = {}
        for node in document.nodes:
            if node.mesh is not None:
                reference_counts[node.mesh] = reference_counts.get(node.mesh, 0) + 1
        pristine = {
            mesh_index: [model.copy() for model in per_mesh[mesh_index]]
            for mesh_index, count in reference_counts.items() if count > 1
        }

        visited = set()
        used_meshes = set()
        instances = []

        def visit(node_index, parent_transform):
            if node_index in visited:
                raise StructuralError(f"Node {node_index} is reachable more than once")
            visited.add(node_index)
            node = document.get('nodes', node_index)

            current = parent_transform @ node.local_matrix()

            if node.mesh is not None:
                if node.mesh in used_meshes:
                    targets = [model.copy() for model in pristine[node.mesh]]
                    instances.extend(targets)
                else:
                    used_meshes.add(node.mesh)
                    targets = per_mesh[node.mesh]
                for model in targets:
                    model.transform_vertices(current)

            for child_index in node.children:
                visit(child_index, current)

        for root in document.root_nodes():
            visit(root, transforms.identity())

        if len(visited) != len(document.nodes):
            raise StructuralError("Node hierarchy contains a cycle")

        return instances
