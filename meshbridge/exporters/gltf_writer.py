#!/usr/bin/env python3
"""
glTF Writer Module
Serializes a Document to a .gltf manifest and writes its binary payloads.

Omission rules:
    - A top-level array is left out when empty; 'asset' is always written
    - Optional indices and texture references are left out when unset
    - Accessor min/max are left out when empty
    - Numeric fields with a default value (sampler wrap modes, normalized,
      material factors) are always written
    - A node writes translation/rotation/scale only where it differs from
      identity, or its raw matrix when the matrix is not a pure T*R*S
"""

import json
import logging
from pathlib import Path
from urllib.parse import unquote

from meshbridge import config
from meshbridge.core import transforms
from meshbridge.core.errors import ResourceError

from .base_exporter import BaseExporter

logger = logging.getLogger(__name__)


def _floats(values):
    return [float(v) for v in values]


def _texture_info_to_json(info):
    if info is None or info.index < 0:
        return None
    item = {"index": info.index, "texCoord": info.tex_coord}
    if info.scale is not None:
        item["scale"] = float(info.scale)
    if info.strength is not None:
        item["strength"] = float(info.strength)
    return item


def _set_texture_info(target, key, info):
    """Store a texture reference, leaving out references without a texture index"""
    item = _texture_info_to_json(info)
    if item is not None:
        target[key] = item


def _material_to_json(material):
    pbr = material.pbr
    pbr_json = {
        "baseColorFactor": _floats(pbr.base_color_factor),
        "metallicFactor": float(pbr.metallic_factor),
        "roughnessFactor": float(pbr.roughness_factor),
    }
    _set_texture_info(pbr_json, "baseColorTexture", pbr.base_color_texture)
    _set_texture_info(pbr_json, "metallicRoughnessTexture", pbr.metallic_roughness_texture)

    item = {}
    if material.name:
        item["name"] = material.name
    item["pbrMetallicRoughness"] = pbr_json
    _set_texture_info(item, "normalTexture", material.normal_texture)
    _set_texture_info(item, "occlusionTexture", material.occlusion_texture)
    _set_texture_info(item, "emissiveTexture", material.emissive_texture)
    item["emissiveFactor"] = _floats(material.emissive_factor)
    return item


def _node_transform_to_json(node, item):
    tolerance = config.FLOAT_TOLERANCE
    if node.is_matrix_mode:
        if not transforms.is_trs_representable(node.matrix, tolerance):
            item["matrix"] = transforms.matrix_to_column_major(node.matrix)
            return
        translation, rotation, scale = transforms.decompose(node.matrix)
    else:
        translation, rotation, scale = node.translation, node.rotation, node.scale

    if not transforms.is_identity(translation, transforms.IDENTITY_TRANSLATION, tolerance):
        item["translation"] = _floats(translation)
    if not transforms.is_identity(rotation, transforms.IDENTITY_ROTATION, tolerance):
        item["rotation"] = _floats(rotation)
    if not transforms.is_identity(scale, transforms.IDENTITY_SCALE, tolerance):
        item["scale"] = _floats(scale)


def _node_to_json(node):
    item = {}
    if node.name:
        item["name"] = node.name
    if node.mesh is not None:
        item["mesh"] = node.mesh
    if node.children:
        item["children"] = list(node.children)
    _node_transform_to_json(node, item)
    return item


def _mesh_to_json(mesh):
    item = {}
    if mesh.name:
        item["name"] = mesh.name
    primitives = []
    for primitive in mesh.primitives:
        prim = {"attributes": dict(primitive.attributes)}
        if primitive.indices is not None:
            prim["indices"] = primitive.indices
        if primitive.material is not None:
            prim["material"] = primitive.material
        prim["mode"] = int(primitive.mode)
        primitives.append(prim)
    item["primitives"] = primitives
    return item


def _accessor_to_json(accessor):
    item = {
        "bufferView": accessor.buffer_view,
        "byteOffset": accessor.byte_offset,
        "componentType": int(accessor.component_type),
        "count": accessor.count,
        "type": accessor.type.value,
        "normalized": accessor.normalized,
    }
    if len(accessor.min_values):
        item["min"] = _floats(accessor.min_values)
    if len(accessor.max_values):
        item["max"] = _floats(accessor.max_values)
    return item


def _buffer_view_to_json(view):
    item = {
        "buffer": view.buffer,
        "byteOffset": view.byte_offset,
        "byteLength": view.byte_length,
    }
    if view.byte_stride:
        item["byteStride"] = view.byte_stride
    if view.target:
        item["target"] = view.target
    return item


def _buffer_to_json(buffer):
    item = {"byteLength": buffer.byte_length}
    if buffer.uri:
        item["uri"] = buffer.uri
    return item


def _texture_to_json(texture):
    item = {}
    if texture.source is not None:
        item["source"] = texture.source
    if texture.sampler is not None:
        item["sampler"] = texture.sampler
    if texture.name:
        item["name"] = texture.name
    return item


def _image_to_json(image):
    item = {}
    if image.uri:
        item["uri"] = image.uri
    if image.buffer_view is not None:
        item["bufferView"] = image.buffer_view
    if image.mime_type:
        item["mimeType"] = image.mime_type
    if image.name:
        item["name"] = image.name
    return item


def _sampler_to_json(sampler):
    item = {}
    if sampler.mag_filter is not None:
        item["magFilter"] = sampler.mag_filter
    if sampler.min_filter is not None:
        item["minFilter"] = sampler.min_filter
    item["wrapS"] = sampler.wrap_s
    item["wrapT"] = sampler.wrap_t
    if sampler.name:
        item["name"] = sampler.name
    return item


def _scene_to_json(scene):
    item = {}
    if scene.name:
        item["name"] = scene.name
    item["nodes"] = list(scene.nodes)
    return item


def document_to_json(document):
    """Build the manifest JSON object for a Document

    Returns:
        dict: JSON-serializable manifest
    """
    asset = {"version": document.asset.version}
    if document.asset.generator:
        asset["generator"] = document.asset.generator
    if document.asset.min_version:
        asset["minVersion"] = document.asset.min_version

    manifest = {"asset": asset}
    if document.scene is not None:
        manifest["scene"] = document.scene

    sections = [
        ("scenes", document.scenes, _scene_to_json),
        ("nodes", document.nodes, _node_to_json),
        ("meshes", document.meshes, _mesh_to_json),
        ("materials", document.materials, _material_to_json),
        ("textures", document.textures, _texture_to_json),
        ("images", document.images, _image_to_json),
        ("samplers", document.samplers, _sampler_to_json),
        ("accessors", document.accessors, _accessor_to_json),
        ("bufferViews", document.buffer_views, _buffer_view_to_json),
        ("buffers", document.buffers, _buffer_to_json),
    ]
    for key, items, convert in sections:
        if items:
            manifest[key] = [convert(item) for item in items]
    return manifest


class GltfWriter(BaseExporter):
    """Writes a Document as .gltf manifest plus .bin payload files

    Usage:
        writer = GltfWriter()
        writer.write(document, "out/model.gltf")
    """

    def get_format_name(self):
        return "glTF"

    def get_file_extension(self):
        return "gltf"

    def export(self, document, output_path, name):
        """Write <output_path>/<name>.gltf and the document's payloads

        Returns:
            dict: Export results with keys:
                - 'success': bool
                - 'files': list of written file paths
                - 'gltf_file': path of the manifest
                - 'message': str status message
        """
        output_dir = self.validate_output_path(output_path)
        manifest_path = output_dir / f"{name}.{self.get_file_extension()}"
        files = self.write(document, manifest_path)
        return {
            'success': True,
            'files': [str(f) for f in files],
            'gltf_file': str(manifest_path),
            'message': f"Wrote {manifest_path.name} with {len(files) - 1} binary file(s)",
        }

    def write(self, document, manifest_path):
        """Serialize the manifest and write every loaded buffer next to it

        Args:
            document: Document to write
            manifest_path: Destination .gltf path; each buffer is written to
                           its recorded URI relative to the manifest folder

        Returns:
            list: Paths of the written files, manifest first

        Raises:
            ResourceError: If a file cannot be written
        """
        manifest_path = Path(manifest_path)
        manifest = document_to_json(document)

        try:
            with open(manifest_path, 'w', encoding='utf-8') as f:
                json.dump(manifest, f, indent=4)
        except OSError as e:
            logger.critical(f"Unable to write manifest: {manifest_path}")
            raise ResourceError(f"Unable to write manifest: {manifest_path}: {e}") from e
        self.log(f"Wrote manifest: {manifest_path}")

        files = [manifest_path]
        for i, buffer in enumerate(document.buffers):
            if not buffer.data:
                logger.debug(f"Buffer {i} has no payload, skipping binary file")
                continue
            if not buffer.uri:
                logger.info(f"Buffer {i} has no uri, skipping binary file")
                continue
            bin_path = manifest_path.parent / unquote(buffer.uri)
            try:
                bin_path.parent.mkdir(parents=True, exist_ok=True)
                bin_path.write_bytes(buffer.data)
            except OSError as e:
                logger.critical(f"Unable to write binary data: {bin_path}")
                raise ResourceError(f"Unable to write binary data: {bin_path}: {e}") from e
            self.log(f"Wrote binary data: {bin_path} ({len(buffer.data)} bytes)")
            files.append(bin_path)

        return files
