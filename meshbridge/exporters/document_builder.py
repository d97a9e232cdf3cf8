#!/usr/bin/env python3
"""
Document Builder Module
Converts a RuntimeMesh back into a Document and writes its binary payload.

Payload layout (one buffer, fixed order):
    positions   VEC3 float32, stride 12, ARRAY_BUFFER
    normals     VEC3 float32, stride 12, ARRAY_BUFFER          (if present)
    uv0         VEC2 float32, stride 8,  ARRAY_BUFFER          (if present)
    indices     SCALAR uint32, one block per surface, ELEMENT_ARRAY_BUFFER

Every block is a multiple of 4 bytes, so all offsets stay 4-byte aligned.
"""

import copy
import logging
from pathlib import Path

import numpy as np

from meshbridge import config
from meshbridge.core.document import (
    Document, Asset, Buffer, BufferView, Accessor, MeshPrimitive, Mesh, Node, Scene,
)
from meshbridge.core.errors import StructuralError, ResourceError
from meshbridge.core.gltf_types import (
    ComponentType, AccessorType, PrimitiveMode, BufferTarget,
    POSITION, NORMAL, TEXCOORD_0,
)
from meshbridge.core.runtime_model import RuntimeMesh

logger = logging.getLogger(__name__)


class DocumentBuilder:
    """Builds a single-mesh, single-node Document from a RuntimeMesh

    Usage:
        document = DocumentBuilder().build(model, "out/model.bin")
    """

    def __init__(self, progress_callback=None):
        self.progress_callback = progress_callback
        self._payload = []
        self._offset = 0

    def log(self, message):
        if self.progress_callback:
            self.progress_callback(message)
        logger.info(message)

    def build(self, model: RuntimeMesh, bin_path) -> Document:
        """Convert the model and write the binary payload

        Args:
            model: A valid RuntimeMesh
            bin_path: Destination of the binary payload; its file name becomes
                      the buffer URI

        Returns:
            Document: Populated document whose single buffer holds the payload

        Raises:
            StructuralError: If the model is not valid
            ResourceError: If the payload file cannot be written
        """
        if not model.is_valid():
            raise StructuralError(
                f"Invalid runtime mesh: {model.vertex_count} vertices, "
                f"{model.triangle_count} triangles, {len(model.surfaces)} surfaces"
            )

        bin_path = Path(bin_path)
        self._payload = []
        self._offset = 0

        document = Document(asset=Asset(version=config.GLTF_VERSION, generator=config.GENERATOR))

        for surface in model.surfaces:
            document.materials.append(copy.deepcopy(surface.material))
        document.images = copy.deepcopy(model.images)
        document.textures = copy.deepcopy(model.textures)
        document.samplers = copy.deepcopy(model.samplers)

        attributes = {}

        positions = np.ascontiguousarray(model.positions, dtype='<f4')
        attributes[POSITION] = self._add_block(
            document, positions, AccessorType.VEC3, ComponentType.FLOAT,
            BufferTarget.ARRAY_BUFFER, stride=12, with_bounds=True,
        )

        if model.has_normals:
            normals = np.ascontiguousarray(model.normals, dtype='<f4')
            attributes[NORMAL] = self._add_block(
                document, normals, AccessorType.VEC3, ComponentType.FLOAT,
                BufferTarget.ARRAY_BUFFER, stride=12,
            )

        if model.has_uv0:
            uv0 = np.ascontiguousarray(model.uv0, dtype='<f4')
            attributes[TEXCOORD_0] = self._add_block(
                document, uv0, AccessorType.VEC2, ComponentType.FLOAT,
                BufferTarget.ARRAY_BUFFER, stride=8,
            )

        mesh = Mesh(name=bin_path.stem)
        for surface_index, surface in enumerate(model.surfaces):
            indices = np.ascontiguousarray(surface.indices, dtype='<u4').reshape(-1, 1)
            index_accessor = self._add_block(
                document, indices, AccessorType.SCALAR, ComponentType.UNSIGNED_INT,
                BufferTarget.ELEMENT_ARRAY_BUFFER,
            )
            mesh.primitives.append(MeshPrimitive(
                indices=index_accessor,
                material=surface_index,
                attributes=dict(attributes),
                mode=PrimitiveMode.TRIANGLES,
            ))
        document.meshes.append(mesh)

        data = b"".join(self._payload)
        document.buffers.append(Buffer(byte_length=len(data), uri=bin_path.name, data=data))

        document.nodes.append(Node(mesh=0))
        document.scenes.append(Scene(nodes=[0]))
        document.scene = 0

        self._write_payload(bin_path, data)
        self.log(f"Built document: {len(document.buffer_views)} buffer views, "
                 f"{len(document.accessors)} accessors, {len(data)} bytes of binary data")
        return document

    def _add_block(self, document, array, accessor_type, component_type, target,
                   stride=None, with_bounds=False):
        """Append one block to the payload with its BufferView and Accessor

        Returns:
            int: Index of the new accessor
        """
        raw = array.tobytes()
        view = BufferView(
            buffer=0,
            byte_offset=self._offset,
            byte_length=len(raw),
            byte_stride=stride,
            target=int(target),
        )
        accessor = Accessor(
            buffer_view=len(document.buffer_views),
            byte_offset=0,
            component_type=component_type,
            count=int(array.shape[0]),
            type=accessor_type,
        )
        if with_bounds:
            accessor.min_values = [float(v) for v in array.min(axis=0)]
            accessor.max_values = [float(v) for v in array.max(axis=0)]

        logger.debug(f"BufferView {len(document.buffer_views)}: offset {self._offset}, "
                     f"{len(raw)} bytes, {accessor.count} x {accessor_type.value}")

        document.buffer_views.append(view)
        document.accessors.append(accessor)
        self._payload.append(raw)
        self._offset += len(raw)
        return len(document.accessors) - 1

    def _write_payload(self, bin_path, data):
        try:
            bin_path.parent.mkdir(parents=True, exist_ok=True)
            bin_path.write_bytes(data)
        except OSError as e:
            logger.critical(f"Unable to write binary data: {bin_path}")
            raise ResourceError(f"Unable to write binary data: {bin_path}: {e}") from e
        logger.debug(f"Wrote {len(data)} bytes to {bin_path}")
