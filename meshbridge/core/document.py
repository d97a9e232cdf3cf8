#!/usr/bin/env python3
"""
Document Model Module
Typed representation of a glTF manifest and its loaded binary payloads.

The reader populates a Document section by section; the runtime builder
decodes from it and the writer serializes it back. Cross-references are
plain integer indices into the Document's lists (a forest stored as an
arena), never object references.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple

import numpy as np

from . import transforms
from .errors import StructuralError
from .gltf_types import ComponentType, AccessorType, PrimitiveMode, WRAP_REPEAT


@dataclass
class Asset:
    """Asset metadata

    Attributes:
        version: glTF version string (required, non-empty)
        generator: Tool that produced the file
        min_version: Minimum glTF version the file is compatible with
    """
    version: str = "2.0"
    generator: str = ""
    min_version: str = ""


@dataclass
class Buffer:
    """A binary payload

    Attributes:
        byte_length: Declared size in bytes
        uri: File-relative path of the payload
        data: Raw bytes once loaded, None if the payload could not be loaded
    """
    byte_length: int = 0
    uri: str = ""
    data: Optional[bytes] = None

    @property
    def is_loaded(self) -> bool:
        return self.data is not None


@dataclass
class BufferView:
    """Byte-range window into a buffer"""
    buffer: int = -1
    byte_offset: int = 0
    byte_length: int = 0
    byte_stride: Optional[int] = None
    target: Optional[int] = None


@dataclass
class Accessor:
    """Typed view over a buffer view

    Attributes:
        buffer_view: Index of the buffer view
        byte_offset: Offset into the buffer view in bytes
        component_type: Scalar component type
        count: Number of elements
        type: Element shape
        normalized: Whether integer data maps to [0, 1] / [-1, 1]
        min_values: Per-component minimum (optional, empty if absent)
        max_values: Per-component maximum (optional, empty if absent)
    """
    buffer_view: int = -1
    byte_offset: int = 0
    component_type: ComponentType = ComponentType.FLOAT
    count: int = 0
    type: AccessorType = AccessorType.SCALAR
    normalized: bool = False
    min_values: List[float] = field(default_factory=list)
    max_values: List[float] = field(default_factory=list)


@dataclass
class MeshPrimitive:
    """One drawable unit of a mesh"""
    indices: Optional[int] = None
    material: Optional[int] = None
    attributes: Dict[str, int] = field(default_factory=dict)
    mode: PrimitiveMode = PrimitiveMode.TRIANGLES


@dataclass
class Mesh:
    name: str = ""
    primitives: List[MeshPrimitive] = field(default_factory=list)


@dataclass
class TextureInfo:
    """Reference from a material slot to a texture

    Attributes:
        index: Index of the texture
        tex_coord: UV channel the texture is sampled with
        scale: Normal map scale (normalTexture only)
        strength: Occlusion strength (occlusionTexture only)
    """
    index: int = -1
    tex_coord: int = 0
    scale: Optional[float] = None
    strength: Optional[float] = None


@dataclass
class PbrMetallicRoughness:
    base_color_factor: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)
    metallic_factor: float = 1.0
    roughness_factor: float = 1.0
    base_color_texture: Optional[TextureInfo] = None
    metallic_roughness_texture: Optional[TextureInfo] = None


@dataclass
class Material:
    """Metallic-roughness material

    Attributes:
        name: Material name
        pbr: Metallic-roughness parameters
        normal_texture: Optional normal map
        occlusion_texture: Optional ambient occlusion map
        emissive_texture: Optional emissive map
        emissive_factor: RGB emissive factor
    """
    name: str = ""
    pbr: PbrMetallicRoughness = field(default_factory=PbrMetallicRoughness)
    normal_texture: Optional[TextureInfo] = None
    occlusion_texture: Optional[TextureInfo] = None
    emissive_texture: Optional[TextureInfo] = None
    emissive_factor: Tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass
class Texture:
    source: Optional[int] = None
    sampler: Optional[int] = None
    name: str = ""


@dataclass
class Sampler:
    mag_filter: Optional[int] = None
    min_filter: Optional[int] = None
    wrap_s: int = WRAP_REPEAT
    wrap_t: int = WRAP_REPEAT
    name: str = ""


@dataclass
class Image:
    uri: str = ""
    buffer_view: Optional[int] = None
    mime_type: str = ""
    name: str = ""


@dataclass
class Node:
    """Scene graph node

    A node carries either an explicit matrix or a translation/rotation/scale
    triple, never both. In TRS form the equivalent matrix is T * R * S.

    Attributes:
        name: Node name
        matrix: Explicit 4x4 local transform, None in TRS form
        translation: (x, y, z)
        rotation: Quaternion (x, y, z, w)
        scale: (x, y, z)
        mesh: Index of the referenced mesh, None if the node has no mesh
        children: Indices of child nodes
    """
    name: str = ""
    matrix: Optional[np.ndarray] = None
    translation: Tuple[float, float, float] = transforms.IDENTITY_TRANSLATION
    rotation: Tuple[float, float, float, float] = transforms.IDENTITY_ROTATION
    scale: Tuple[float, float, float] = transforms.IDENTITY_SCALE
    mesh: Optional[int] = None
    children: List[int] = field(default_factory=list)

    @property
    def is_matrix_mode(self) -> bool:
        return self.matrix is not None

    def local_matrix(self) -> np.ndarray:
        """Local transform as a 4x4 matrix"""
        if self.matrix is not None:
            return np.array(self.matrix, dtype=np.float64)
        return transforms.trs_matrix(self.translation, self.rotation, self.scale)


@dataclass
class Scene:
    name: str = ""
    nodes: List[int] = field(default_factory=list)


@dataclass
class Document:
    """Top-level container for one parsed or built manifest

    Attributes:
        asset: Asset metadata
        scene: Index of the default scene, None if not specified
        source_path: Manifest the document was parsed from (empty if built)
    """
    asset: Asset = field(default_factory=Asset)
    buffers: List[Buffer] = field(default_factory=list)
    buffer_views: List[BufferView] = field(default_factory=list)
    accessors: List[Accessor] = field(default_factory=list)
    meshes: List[Mesh] = field(default_factory=list)
    materials: List[Material] = field(default_factory=list)
    textures: List[Texture] = field(default_factory=list)
    samplers: List[Sampler] = field(default_factory=list)
    images: List[Image] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    scenes: List[Scene] = field(default_factory=list)
    scene: Optional[int] = None
    source_path: str = ""

    @property
    def loaded_buffer_count(self) -> int:
        return sum(1 for buffer in self.buffers if buffer.is_loaded)

    def get(self, section: str, index: Optional[int]):
        """Resolve a cross-reference into one of the document's lists

        Args:
            section: Attribute name of the list (e.g. 'accessors')
            index: Index to resolve

        Returns:
            The referenced item

        Raises:
            StructuralError: If the index is missing or out of range
        """
        items = getattr(self, section)
        if index is None or not 0 <= index < len(items):
            raise StructuralError(
                f"Invalid {section} index {index} (document has {len(items)})"
            )
        return items[index]

    def root_nodes(self) -> List[int]:
        """Indices of nodes no other node lists as a child"""
        referenced = set()
        for node in self.nodes:
            referenced.update(node.children)
        return [i for i in range(len(self.nodes)) if i not in referenced]
