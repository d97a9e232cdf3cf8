#!/usr/bin/env python3
"""
Transform Math Module
4x4 affine helpers for node transforms: translation/rotation/scale
composition, quaternion conversion, decomposition and point transformation.

Conventions:
    - Matrices are 4x4 float64 numpy arrays acting on column vectors.
    - The manifest stores matrices column-major (16 numbers).
    - Quaternions are (x, y, z, w), the manifest's order.
"""

import numpy as np

IDENTITY_TRANSLATION = (0.0, 0.0, 0.0)
IDENTITY_ROTATION = (0.0, 0.0, 0.0, 1.0)
IDENTITY_SCALE = (1.0, 1.0, 1.0)


def identity():
    return np.eye(4, dtype=np.float64)


def matrix_from_column_major(values):
    """Build a 4x4 matrix from 16 column-major numbers"""
    return np.array(values, dtype=np.float64).reshape(4, 4).T.copy()


def matrix_to_column_major(matrix):
    """Flatten a 4x4 matrix into 16 column-major floats"""
    return [float(v) for v in np.asarray(matrix).T.reshape(16)]


def quaternion_to_matrix(q):
    """Convert an (x, y, z, w) quaternion into a 3x3 rotation matrix

    The quaternion is normalized first; a zero quaternion yields identity.
    """
    x, y, z, w = (float(v) for v in q)
    n = x * x + y * y + z * z + w * w
    if n < 1e-12:
        return np.eye(3, dtype=np.float64)
    s = 2.0 / n
    xx, yy, zz = x * x * s, y * y * s, z * z * s
    xy, xz, yz = x * y * s, x * z * s, y * z * s
    wx, wy, wz = w * x * s, w * y * s, w * z * s
    return np.array([
        [1.0 - (yy + zz), xy - wz, xz + wy],
        [xy + wz, 1.0 - (xx + zz), yz - wx],
        [xz - wy, yz + wx, 1.0 - (xx + yy)],
    ], dtype=np.float64)


def matrix_to_quaternion(r):
    """Convert a 3x3 rotation matrix into a unit (x, y, z, w) quaternion"""
    r = np.asarray(r, dtype=np.float64)
    trace = r[0, 0] + r[1, 1] + r[2, 2]
    if trace > 0.0:
        s = np.sqrt(trace + 1.0) * 2.0
        w = 0.25 * s
        x = (r[2, 1] - r[1, 2]) / s
        y = (r[0, 2] - r[2, 0]) / s
        z = (r[1, 0] - r[0, 1]) / s
    elif r[0, 0] > r[1, 1] and r[0, 0] > r[2, 2]:
        s = np.sqrt(1.0 + r[0, 0] - r[1, 1] - r[2, 2]) * 2.0
        w = (r[2, 1] - r[1, 2]) / s
        x = 0.25 * s
        y = (r[0, 1] + r[1, 0]) / s
        z = (r[0, 2] + r[2, 0]) / s
    elif r[1, 1] > r[2, 2]:
        s = np.sqrt(1.0 + r[1, 1] - r[0, 0] - r[2, 2]) * 2.0
        w = (r[0, 2] - r[2, 0]) / s
        x = (r[0, 1] + r[1, 0]) / s
        y = 0.25 * s
        z = (r[1, 2] + r[2, 1]) / s
    else:
        s = np.sqrt(1.0 + r[2, 2] - r[0, 0] - r[1, 1]) * 2.0
        w = (r[1, 0] - r[0, 1]) / s
        x = (r[0, 2] + r[2, 0]) / s
        y = (r[1, 2] + r[2, 1]) / s
        z = 0.25 * s
    q = np.array([x, y, z, w], dtype=np.float64)
    q /= np.linalg.norm(q)
    # keep w non-negative so identity decomposes to (0, 0, 0, 1)
    if q[3] < 0.0:
        q = -q
    return tuple(float(v) for v in q)


def axis_angle_matrix(axis, angle_radians):
    """4x4 rotation about an arbitrary axis"""
    axis = np.asarray(axis, dtype=np.float64)
    axis = axis / np.linalg.norm(axis)
    half = angle_radians / 2.0
    q = (*(axis * np.sin(half)), np.cos(half))
    m = identity()
    m[:3, :3] = quaternion_to_matrix(q)
    return m


def trs_matrix(translation=IDENTITY_TRANSLATION, rotation=IDENTITY_ROTATION, scale=IDENTITY_SCALE):
    """Compose Translation(T) * Rotation(R) * Scale(S)"""
    m = identity()
    m[:3, :3] = quaternion_to_matrix(rotation) @ np.diag(np.asarray(scale, dtype=np.float64))
    m[:3, 3] = np.asarray(translation, dtype=np.float64)
    return m


def decompose(matrix):
    """Split an affine matrix into translation, rotation and scale

    A negative determinant is folded into the x scale. The result is only
    exact when the matrix has no shear; use is_trs_representable() to check.

    Returns:
        tuple: (translation, rotation, scale) as tuples of floats
    """
    m = np.asarray(matrix, dtype=np.float64)
    translation = tuple(float(v) for v in m[:3, 3])
    basis = m[:3, :3]
    scale = np.linalg.norm(basis, axis=0)
    if np.linalg.det(basis) < 0.0:
        scale[0] = -scale[0]
    safe = np.where(np.abs(scale) < 1e-12, 1.0, scale)
    rotation = matrix_to_quaternion(basis / safe)
    return translation, rotation, tuple(float(v) for v in scale)


def is_trs_representable(matrix, tolerance=1e-5):
    """True if decompose() followed by trs_matrix() reproduces the matrix"""
    m = np.asarray(matrix, dtype=np.float64)
    if not np.allclose(m[3], (0.0, 0.0, 0.0, 1.0), atol=tolerance):
        return False
    rebuilt = trs_matrix(*decompose(m))
    return bool(np.allclose(rebuilt, m, atol=tolerance))


def is_identity(values, reference, tolerance=1e-5):
    return bool(np.allclose(np.asarray(values, dtype=np.float64), reference, atol=tolerance))


def transform_points(matrix, points):
    """Apply an affine transform to an (N, 3) point array, keeping its dtype"""
    points = np.asarray(points)
    if points.size == 0:
        return points
    m = np.asarray(matrix, dtype=np.float64)
    moved = points.astype(np.float64) @ m[:3, :3].T + m[:3, 3]
    return moved.astype(points.dtype)
