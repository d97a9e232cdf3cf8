#!/usr/bin/env python3
"""
glTF Reader Module
Parses a .gltf manifest and its external binary payloads into a Document.

Section order is fixed: buffers are resolved and loaded first because every
later decode step needs the raw bytes. The remaining sections are
independent; an absent section leaves its list empty.

A payload that cannot be found or opened is a per-buffer failure: the buffer
record stays in place without data and parsing continues, so the document
is still usable for inspection. Decoding from such a buffer fails later.
"""

import json
import logging
from urllib.parse import unquote

from meshbridge.core import transforms
from meshbridge.core.document import (
    Document, Asset, Buffer, BufferView, Accessor, MeshPrimitive, Mesh,
    TextureInfo, PbrMetallicRoughness, Material, Texture, Sampler, Image,
    Node, Scene,
)
from meshbridge.core.errors import StructuralError, ResourceError
from meshbridge.core.gltf_types import ComponentType, AccessorType, PrimitiveMode, WRAP_REPEAT

from .base_reader import BaseReader

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _require_object(value, where):
    if not isinstance(value, dict):
        raise StructuralError(f"{where} must be a JSON object")
    return value


def _opt_int(obj, key, where, default=None):
    if key not in obj:
        return default
    value = obj[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise StructuralError(f"{where}.{key} must be an integer, got {value!r}")
    return value


def _opt_float(obj, key, where, default=None):
    if key not in obj:
        return default
    value = obj[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise StructuralError(f"{where}.{key} must be a number, got {value!r}")
    return float(value)


def _opt_str(obj, key, where, default=""):
    if key not in obj:
        return default
    value = obj[key]
    if not isinstance(value, str):
        raise StructuralError(f"{where}.{key} must be a string, got {value!r}")
    return value


def _opt_bool(obj, key, where, default=False):
    if key not in obj:
        return default
    value = obj[key]
    if not isinstance(value, bool):
        raise StructuralError(f"{where}.{key} must be a boolean, got {value!r}")
    return value


def _opt_numbers(obj, key, where, length=None):
    """Optional array of numbers, returned as a list of floats"""
    if key not in obj:
        return None
    values = obj[key]
    if not isinstance(values, list) or any(
            isinstance(v, bool) or not isinstance(v, (int, float)) for v in values):
        raise StructuralError(f"{where}.{key} must be an array of numbers")
    if length is not None and len(values) != length:
        raise StructuralError(f"{where}.{key} must have {length} elements, got {len(values)}")
    return [float(v) for v in values]


def _opt_indices(obj, key, where):
    if key not in obj:
        return []
    values = obj[key]
    if not isinstance(values, list) or any(
            isinstance(v, bool) or not isinstance(v, int) for v in values):
        raise StructuralError(f"{where}.{key} must be an array of integers")
    return list(values)


class GltfReader(BaseReader):
    """Reader for .gltf manifests with external .bin payloads

    Usage:
        reader = GltfReader("scene.gltf")
        document = reader.parse()
        model = reader.extract_model()
    """

    def __init__(self, file_path, progress_callback=None, require_binary=False):
        """Initialize reader

        Args:
            file_path: Path to the .gltf manifest
            progress_callback: Optional function to call for progress updates
            require_binary: Raise ResourceError when no payload could be loaded
                            instead of only logging a critical message
        """
        super().__init__(file_path, progress_callback)
        self.require_binary = require_binary
        self.json_data = {}

    def get_format_name(self):
        return "glTF"

    def parse(self):
        """Parse the manifest and load its binary payloads

        Returns:
            Document: Populated document

        Raises:
            ResourceError: If the manifest cannot be opened, or no payload
                           was loaded while require_binary is set
            StructuralError: If the manifest is not valid JSON or violates
                             the schema (e.g. missing asset.version)
        """
        try:
            text = self.file_path.read_text(encoding='utf-8')
        except OSError as e:
            logger.critical(f"Failed to open file: {self.file_path}")
            raise ResourceError(f"Failed to open file: {self.file_path}: {e}") from e

        try:
            self.json_data = _require_object(json.loads(text), "manifest")
        except json.JSONDecodeError as e:
            raise StructuralError(f"Manifest is not valid JSON: {self.file_path}: {e}") from e

        document = Document(source_path=str(self.file_path))

        # must be first
        self._parse_buffers(document)
        if document.loaded_buffer_count == 0:
            logger.critical(f"Failed to load any binary data: {self.file_path}")
            if self.require_binary:
                raise ResourceError(f"Failed to load any binary data: {self.file_path}")

        self._parse_asset(document)
        self._parse_nodes(document)
        self._parse_meshes(document)
        self._parse_materials(document)
        self._parse_accessors(document)
        self._parse_buffer_views(document)
        self._parse_textures(document)
        self._parse_images(document)
        self._parse_samplers(document)
        self._parse_scenes(document)

        self.log(f"Parsed {self.file_path.name}: {len(document.meshes)} meshes, "
                 f"{len(document.nodes)} nodes, {document.loaded_buffer_count}/"
                 f"{len(document.buffers)} buffers loaded")
        self._document = document
        return document

    def _section(self, key):
        """Top-level array, empty if the section is absent"""
        if key not in self.json_data:
            return []
        items = self.json_data[key]
        if not isinstance(items, list):
            raise StructuralError(f"'{key}' must be an array")
        return [_require_object(item, f"{key}[{i}]") for i, item in enumerate(items)]

    # ------------------------------------------------------------------
    # Buffers
    # ------------------------------------------------------------------

    def resolve_uri(self, uri):
        """Full path of a payload URI, None for data URIs"""
        if uri.startswith("data:"):
            return None
        return self.file_path.parent / unquote(uri)

    def _parse_buffers(self, document):
        """Parse buffer records and load their payload files

        A buffer whose payload cannot be loaded is not dropped from the
        document: it stays in place with data=None so that buffer view
        indices keep pointing at the right buffer. Decoding from such a
        buffer raises ResourceError later.
        """
        items = self._section("buffers")
        if not items:
            logger.info("No buffers found in the glTF file.")
            return

        for i, item in enumerate(items):
            where = f"buffers[{i}]"
            buffer = Buffer(
                byte_length=_opt_int(item, "byteLength", where, 0),
                uri=_opt_str(item, "uri", where),
            )
            if buffer.uri:
                path = self.resolve_uri(buffer.uri)
                if path is None:
                    logger.info(f"{where}: embedded data URIs are not loaded")
                else:
                    buffer.data = self._load_binary_file(path)
            document.buffers.append(buffer)

    def _load_binary_file(self, path):
        if not path.exists():
            logger.critical(f"Invalid path to glTF binary: {path}")
            return None
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.critical(f"Unable to open file: {path}: {e}")
            return None
        logger.debug(f"Loaded {len(data)} bytes from {path}")
        return data

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _parse_asset(self, document):
        if "asset" not in self.json_data:
            raise StructuralError("glTF manifest must contain an asset object")
        item = _require_object(self.json_data["asset"], "asset")
        if "version" not in item:
            raise StructuralError("glTF Asset must contain a version string.")
        version = _opt_str(item, "version", "asset")
        if not version:
            raise StructuralError("glTF Asset version must not be empty.")

        document.asset = Asset(
            version=version,
            generator=_opt_str(item, "generator", "asset"),
            min_version=_opt_str(item, "minVersion", "asset"),
        )

    def _parse_nodes(self, document):
        for i, item in enumerate(self._section("nodes")):
            where = f"nodes[{i}]"
            node = Node(name=_opt_str(item, "name", where))

            matrix = _opt_numbers(item, "matrix", where, length=16)
            if matrix is not None:
                node.matrix = transforms.matrix_from_column_major(matrix)
            else:
                translation = _opt_numbers(item, "translation", where, length=3)
                rotation = _opt_numbers(item, "rotation", where, length=4)
                scale = _opt_numbers(item, "scale", where, length=3)
                if translation is not None:
                    node.translation = tuple(translation)
                if rotation is not None:
                    node.rotation = tuple(rotation)
                if scale is not None:
                    node.scale = tuple(scale)

            node.mesh = _opt_int(item, "mesh", where)
            node.children = _opt_indices(item, "children", where)
            document.nodes.append(node)

    def _parse_meshes(self, document):
        for i, item in enumerate(self._section("meshes")):
            where = f"meshes[{i}]"
            mesh = Mesh(name=_opt_str(item, "name", where))

            primitives = item.get("primitives", [])
            if not isinstance(primitives, list):
                raise StructuralError(f"{where}.primitives must be an array")

            for j, prim_json in enumerate(primitives):
                prim_where = f"{where}.primitives[{j}]"
                _require_object(prim_json, prim_where)
                primitive = MeshPrimitive(
                    indices=_opt_int(prim_json, "indices", prim_where),
                    material=_opt_int(prim_json, "material", prim_where),
                    mode=PrimitiveMode.from_value(
                        _opt_int(prim_json, "mode", prim_where, int(PrimitiveMode.TRIANGLES))
                    ),
                )
                attributes = _require_object(prim_json.get("attributes", {}), f"{prim_where}.attributes")
                for semantic in attributes:
                    primitive.attributes[semantic] = _opt_int(attributes, semantic, f"{prim_where}.attributes")
                mesh.primitives.append(primitive)

            document.meshes.append(mesh)

    def _parse_texture_info(self, obj, key, where):
        if key not in obj:
            return None
        item = _require_object(obj[key], f"{where}.{key}")
        where = f"{where}.{key}"
        return TextureInfo(
            index=_opt_int(item, "index", where, -1),
            tex_coord=_opt_int(item, "texCoord", where, 0),
            scale=_opt_float(item, "scale", where),
            strength=_opt_float(item, "strength", where),
        )

    def _parse_materials(self, document):
        for i, item in enumerate(self._section("materials")):
            where = f"materials[{i}]"
            material = Material(name=_opt_str(item, "name", where))

            if "pbrMetallicRoughness" in item:
                pbr_where = f"{where}.pbrMetallicRoughness"
                pbr_json = _require_object(item["pbrMetallicRoughness"], pbr_where)
                pbr = PbrMetallicRoughness()
                factor = _opt_numbers(pbr_json, "baseColorFactor", pbr_where, length=4)
                if factor is not None:
                    pbr.base_color_factor = tuple(factor)
                pbr.metallic_factor = _opt_float(pbr_json, "metallicFactor", pbr_where, 1.0)
                pbr.roughness_factor = _opt_float(pbr_json, "roughnessFactor", pbr_where, 1.0)
                pbr.base_color_texture = self._parse_texture_info(pbr_json, "baseColorTexture", pbr_where)
                pbr.metallic_roughness_texture = self._parse_texture_info(
                    pbr_json, "metallicRoughnessTexture", pbr_where)
                material.pbr = pbr

            material.normal_texture = self._parse_texture_info(item, "normalTexture", where)
            material.occlusion_texture = self._parse_texture_info(item, "occlusionTexture", where)
            material.emissive_texture = self._parse_texture_info(item, "emissiveTexture", where)
            emissive = _opt_numbers(item, "emissiveFactor", where, length=3)
            if emissive is not None:
                material.emissive_factor = tuple(emissive)

            document.materials.append(material)

    def _parse_accessors(self, document):
        items = self._section("accessors")
        if not items:
            logger.info("No accessors found in the glTF file.")
            return

        for i, item in enumerate(items):
            where = f"accessors[{i}]"
            accessor = Accessor(
                buffer_view=_opt_int(item, "bufferView", where, -1),
                byte_offset=_opt_int(item, "byteOffset", where, 0),
                count=_opt_int(item, "count", where, 0),
                normalized=_opt_bool(item, "normalized", where),
            )
            if "componentType" in item:
                accessor.component_type = ComponentType.from_value(
                    _opt_int(item, "componentType", where))
            if "type" in item:
                accessor.type = AccessorType.from_value(_opt_str(item, "type", where))
            accessor.min_values = _opt_numbers(item, "min", where) or []
            accessor.max_values = _opt_numbers(item, "max", where) or []
            document.accessors.append(accessor)

    def _parse_buffer_views(self, document):
        items = self._section("bufferViews")
        if not items:
            logger.info("No bufferViews found in the glTF file.")
            return

        for i, item in enumerate(items):
            where = f"bufferViews[{i}]"
            document.buffer_views.append(BufferView(
                buffer=_opt_int(item, "buffer", where, -1),
                byte_offset=_opt_int(item, "byteOffset", where, 0),
                byte_length=_opt_int(item, "byteLength", where, 0),
                byte_stride=_opt_int(item, "byteStride", where),
                target=_opt_int(item, "target", where),
            ))

    def _parse_textures(self, document):
        for i, item in enumerate(self._section("textures")):
            where = f"textures[{i}]"
            document.textures.append(Texture(
                source=_opt_int(item, "source", where),
                sampler=_opt_int(item, "sampler", where),
                name=_opt_str(item, "name", where),
            ))

    def _parse_images(self, document):
        for i, item in enumerate(self._section("images")):
            where = f"images[{i}]"
            document.images.append(Image(
                uri=_opt_str(item, "uri", where),
                buffer_view=_opt_int(item, "bufferView", where),
                mime_type=_opt_str(item, "mimeType", where),
                name=_opt_str(item, "name", where),
            ))

    def _parse_samplers(self, document):
        for i, item in enumerate(self._section("samplers")):
            where = f"samplers[{i}]"
            document.samplers.append(Sampler(
                mag_filter=_opt_int(item, "magFilter", where),
                min_filter=_opt_int(item, "minFilter", where),
                wrap_s=_opt_int(item, "wrapS", where, WRAP_REPEAT),
                wrap_t=_opt_int(item, "wrapT", where, WRAP_REPEAT),
                name=_opt_str(item, "name", where),
            ))

    def _parse_scenes(self, document):
        for i, item in enumerate(self._section("scenes")):
            where = f"scenes[{i}]"
            document.scenes.append(Scene(
                name=_opt_str(item, "name", where),
                nodes=_opt_indices(item, "nodes", where),
            ))
        document.scene = _opt_int(self.json_data, "scene", "manifest")

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def log_statistics(self):
        """Log a summary of the parsed document"""
        document = self.document

        logger.info("glTF Data Statistics:")
        logger.info("Asset:")
        logger.info(f"  Version: {document.asset.version}")
        logger.info(f"  Generator: {document.asset.generator}")

        logger.info(f"Total scenes: {len(document.scenes)}")
        for scene in document.scenes:
            logger.info(f"  Scene Name: {scene.name}")

        logger.info(f"Total nodes: {len(document.nodes)}")
        for node in document.nodes:
            logger.info(f"  Node Name: {node.name}")

        logger.info(f"Total meshes: {len(document.meshes)}")
        for mesh in document.meshes:
            logger.info(f"  Mesh Name: {mesh.name} ({len(mesh.primitives)} primitives)")

        logger.info(f"Total materials: {len(document.materials)}")
        for material in document.materials:
            logger.info(f"  Material Name: {material.name}")

        logger.info(f"Total textures: {len(document.textures)}")
        logger.info(f"Total samplers: {len(document.samplers)}")

        logger.info(f"Total images: {len(document.images)}")
        for image in document.images:
            logger.info(f"  Image URI: {image.uri}")

        logger.info(f"Total buffers: {len(document.buffers)}")
        for buffer in document.buffers:
            status = "loaded" if buffer.is_loaded else "not loaded"
            logger.info(f"  Buffer Size: {buffer.byte_length} ({status})")

        logger.info(f"Total bufferViews: {len(document.buffer_views)}")
        for view in document.buffer_views:
            logger.debug(f"  BufferView - Buffer: {view.buffer}")
            logger.debug(f"  Byte Length: {view.byte_length}")
            logger.debug(f"  Byte Offset: {view.byte_offset}")

        logger.info(f"Total accessors: {len(document.accessors)}")
        for accessor in document.accessors:
            logger.debug(f"  Accessor Component Type: {accessor.component_type.name}")
