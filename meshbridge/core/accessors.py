#!/usr/bin/env python3
"""
Accessor Decoding Module
Reads typed element arrays out of a Document's loaded buffers.

Decoding always copies out of the buffer bytes; returned arrays never alias
the Document's payload.
"""

import logging

import numpy as np

from .errors import StructuralError, ResourceError
from .gltf_types import ComponentType, INDEX_COMPONENT_TYPES

logger = logging.getLogger(__name__)

TRI_INDICES = 3

# Divisors mapping normalized integer components onto [0, 1] / [-1, 1]
_NORMALIZE_DIVISORS = {
    ComponentType.BYTE: 127.0,
    ComponentType.UNSIGNED_BYTE: 255.0,
    ComponentType.SHORT: 32767.0,
    ComponentType.UNSIGNED_SHORT: 65535.0,
    ComponentType.UNSIGNED_INT: 4294967295.0,
}


def _payload(document, accessor):
    """Return (buffer bytes, start offset, buffer view) for an accessor"""
    view = document.get('buffer_views', accessor.buffer_view)
    buffer = document.get('buffers', view.buffer)
    if not buffer.is_loaded:
        raise ResourceError(
            f"Buffer {view.buffer} ({buffer.uri or 'no uri'}) has no loaded payload"
        )
    start = view.byte_offset + accessor.byte_offset
    return buffer.data, start, view


def _check_range(data, start, end, what):
    if start < 0 or end > len(data):
        raise StructuralError(
            f"{what} reads bytes {start}..{end} past the end of a {len(data)} byte buffer"
        )


def read_accessor(document, accessor, honor_stride=True):
    """Decode an accessor into a (count, num_components) array

    Values keep the accessor's own component dtype (native byte order).
    An explicit byteStride larger than the element size is honoured when
    honor_stride is set; otherwise elements are read tightly packed.

    Args:
        document: Document owning the accessor
        accessor: Accessor to decode

    Returns:
        np.ndarray: Decoded elements

    Raises:
        StructuralError: On out-of-range references or reads past the buffer
        ResourceError: If the buffer payload was never loaded
    """
    data, start, view = _payload(document, accessor)
    ncomp = accessor.type.num_components
    dtype = accessor.component_type.dtype
    element_size = ncomp * accessor.component_type.byte_width
    count = accessor.count

    if count == 0:
        return np.zeros((0, ncomp), dtype=dtype.newbyteorder('='))

    stride = view.byte_stride or 0
    if honor_stride and stride > element_size:
        end = start + (count - 1) * stride + element_size
        _check_range(data, start, end, "Accessor")
        raw = np.frombuffer(data, dtype=np.uint8, count=end - start, offset=start)
        padded = np.zeros(count * stride, dtype=np.uint8)
        padded[:len(raw)] = raw
        rows = padded.reshape(count, stride)[:, :element_size]
        values = np.ascontiguousarray(rows).view(dtype).reshape(count, ncomp)
    else:
        end = start + count * element_size
        _check_range(data, start, end, "Accessor")
        values = np.frombuffer(data, dtype=dtype, count=count * ncomp, offset=start)
        values = values.reshape(count, ncomp)

    return values.astype(dtype.newbyteorder('='), copy=True)


def read_index_values(document, accessor):
    """Decode an index accessor into a flat uint32 array

    Indices are read tightly packed (width x components); byteStride is
    never applied to index data.
    """
    if accessor.component_type == ComponentType.FLOAT:
        raise StructuralError("Index accessor cannot use FLOAT components")
    values = read_accessor(document, accessor, honor_stride=False).reshape(-1)
    if accessor.component_type not in INDEX_COMPONENT_TYPES and np.any(values < 0):
        raise StructuralError("Index accessor contains negative values")
    return values.astype(np.uint32)


def read_triangle_indices(document, accessor):
    """Decode an index accessor into (count // 3, 3) uint32 triangles

    Raises:
        StructuralError: If the accessor holds fewer than 3 indices
    """
    if accessor.count < TRI_INDICES:
        raise StructuralError("No triangle indices")

    num_triangles = accessor.count // TRI_INDICES
    flat = read_index_values(document, accessor)
    triangles = flat[:num_triangles * TRI_INDICES].reshape(num_triangles, TRI_INDICES)
    logger.debug(f"Triangle count: {num_triangles}")
    return triangles


def read_float_attribute(document, accessor):
    """Decode a vertex attribute as float32

    FLOAT data is copied directly; integer data is widened, and mapped to
    [0, 1] or [-1, 1] when the accessor is normalized.
    """
    values = read_accessor(document, accessor)
    component_type = accessor.component_type
    if component_type == ComponentType.FLOAT:
        return values.astype(np.float32)

    widened = values.astype(np.float64)
    if accessor.normalized:
        widened = widened / _NORMALIZE_DIVISORS[component_type]
        if component_type in (ComponentType.BYTE, ComponentType.SHORT):
            widened = np.maximum(widened, -1.0)
    return widened.astype(np.float32)
