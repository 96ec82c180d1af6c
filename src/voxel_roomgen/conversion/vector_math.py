"""
Vector and rotation math for voxel cells and markers.

Vectors are plain (x, y, z) tuples and rotations are (x, y, z, w) quaternion
tuples. Axis conventions follow a left-handed, Y-up frame: +Z is forward,
+X is right. Euler angles are in degrees and applied Z first, then X, then Y.
"""

from __future__ import annotations
import math
from typing import Sequence, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]
Quat = Tuple[float, float, float, float]

EPSILON = 1e-6

IDENTITY: Quat = (0.0, 0.0, 0.0, 1.0)

LEFT: Vec3 = (-1.0, 0.0, 0.0)
RIGHT: Vec3 = (1.0, 0.0, 0.0)
FORWARD: Vec3 = (0.0, 0.0, 1.0)
BACK: Vec3 = (0.0, 0.0, -1.0)
UP: Vec3 = (0.0, 1.0, 0.0)


def as_vec3(value: Sequence[float]) -> Vec3:
    """Coerce any 3-sequence (tuple, list, ndarray) to a float tuple."""
    if len(value) != 3:
        raise ValueError(f"Expected 3 components, got {len(value)}")
    return (float(value[0]), float(value[1]), float(value[2]))


def _cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def scale(a: Vec3, b: Vec3) -> Vec3:
    """Component-wise product."""
    return (a[0] * b[0], a[1] * b[1], a[2] * b[2])


def negate(v: Vec3) -> Vec3:
    return (-v[0], -v[1], -v[2])


def length(v: Vec3) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def _normalize(v: Vec3) -> Vec3:
    ln = length(v)
    if ln < EPSILON:
        return (0.0, 0.0, 1.0)
    return (v[0] / ln, v[1] / ln, v[2] / ln)


def is_zero(v: Vec3) -> bool:
    return abs(v[0]) < EPSILON and abs(v[1]) < EPSILON and abs(v[2]) < EPSILON


# ---------------------------------------------------------------
# Quaternions
# ---------------------------------------------------------------

def quat_multiply(a: Quat, b: Quat) -> Quat:
    """Hamilton product a * b (b is applied first)."""
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return (
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    )


def _axis_angle(axis: Vec3, degrees: float) -> Quat:
    half = math.radians(degrees) / 2.0
    s = math.sin(half)
    return (axis[0] * s, axis[1] * s, axis[2] * s, math.cos(half))


def quaternion_from_euler(rotation: Vec3) -> Quat:
    """Quaternion for Euler angles in degrees, rotating about Z, then X, then Y."""
    qx = _axis_angle((1.0, 0.0, 0.0), rotation[0])
    qy = _axis_angle((0.0, 1.0, 0.0), rotation[1])
    qz = _axis_angle((0.0, 0.0, 1.0), rotation[2])
    return quat_multiply(quat_multiply(qy, qx), qz)


def rotate_vector(q: Quat, v: Vec3) -> Vec3:
    """Rotate v by unit quaternion q."""
    u = (q[0], q[1], q[2])
    w = q[3]
    t = _cross(u, v)
    t = (2.0 * t[0], 2.0 * t[1], 2.0 * t[2])
    c = _cross(u, t)
    return (
        v[0] + w * t[0] + c[0],
        v[1] + w * t[1] + c[1],
        v[2] + w * t[2] + c[2],
    )


def look_rotation(forward: Vec3, up: Vec3 = UP) -> Quat:
    """Rotation whose local +Z axis points along `forward` with `up` as Y hint.

    A zero forward vector yields the identity rotation.
    """
    if is_zero(forward):
        return IDENTITY

    f = _normalize(forward)
    r = _cross(up, f)
    if length(r) < EPSILON:
        # forward is parallel to up; pick any perpendicular right axis
        r = _cross((1.0, 0.0, 0.0) if abs(f[0]) < 0.9 else (0.0, 0.0, 1.0), f)
    r = _normalize(r)
    u = _cross(f, r)

    # Rotation matrix columns are r, u, f
    m00, m01, m02 = r[0], u[0], f[0]
    m10, m11, m12 = r[1], u[1], f[1]
    m20, m21, m22 = r[2], u[2], f[2]

    trace = m00 + m11 + m22
    if trace > 0.0:
        s = math.sqrt(trace + 1.0) * 2.0
        q = ((m21 - m12) / s, (m02 - m20) / s, (m10 - m01) / s, 0.25 * s)
    elif m00 > m11 and m00 > m22:
        s = math.sqrt(1.0 + m00 - m11 - m22) * 2.0
        q = (0.25 * s, (m01 + m10) / s, (m02 + m20) / s, (m21 - m12) / s)
    elif m11 > m22:
        s = math.sqrt(1.0 + m11 - m00 - m22) * 2.0
        q = ((m01 + m10) / s, 0.25 * s, (m12 + m21) / s, (m02 - m20) / s)
    else:
        s = math.sqrt(1.0 + m22 - m00 - m11) * 2.0
        q = ((m02 + m20) / s, (m12 + m21) / s, 0.25 * s, (m10 - m01) / s)
    return q


def quaternions_match(a: Quat, b: Quat, tolerance: float = 1e-5) -> bool:
    """True when a and b describe the same rotation (q and -q are equivalent)."""
    return abs(abs(_dot4(a, b)) - 1.0) < tolerance


def _dot4(a: Quat, b: Quat) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2] + a[3] * b[3]


def trs_matrix(position: Vec3, rotation: Quat, scale_xyz: Vec3 = (1.0, 1.0, 1.0)) -> np.ndarray:
    """4x4 translate-rotate-scale matrix (column vectors)."""
    x, y, z, w = rotation
    rot = np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
    ], dtype=np.float64)
    m = np.eye(4, dtype=np.float64)
    m[:3, :3] = rot * np.asarray(scale_xyz, dtype=np.float64)
    m[:3, 3] = position
    return m
