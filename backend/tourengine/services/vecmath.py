"""
Small vector and quaternion helpers built on NumPy.

Vectors are ``float64`` arrays of shape ``(3,)`` and quaternions are
arrays of shape ``(4,)`` in ``(x, y, z, w)`` order, matching the
``Quaternion`` wire model.  Every function returns a new array; inputs
are never modified in place.
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np

from ..api.models import Quaternion, Vector3

IDENTITY_QUAT = np.array([0.0, 0.0, 0.0, 1.0])

# Above this cosine the two orientations are treated as parallel and
# interpolated linearly to avoid dividing by a vanishing sine.
_SLERP_LINEAR_THRESHOLD = 0.9995


def vec3(value: Vector3 | Iterable[float]) -> np.ndarray:
    """Convert a ``Vector3`` or any 3-sequence into a float array."""
    if isinstance(value, Vector3):
        return np.array([value.x, value.y, value.z], dtype=float)
    return np.asarray(list(value), dtype=float).reshape(3)


def quat(value: Quaternion | Iterable[float]) -> np.ndarray:
    """Convert a ``Quaternion`` or any 4-sequence (x, y, z, w) into a float array."""
    if isinstance(value, Quaternion):
        return np.array([value.x, value.y, value.z, value.w], dtype=float)
    return np.asarray(list(value), dtype=float).reshape(4)


def to_vector3(v: np.ndarray) -> Vector3:
    return Vector3(x=float(v[0]), y=float(v[1]), z=float(v[2]))


def to_quaternion(q: np.ndarray) -> Quaternion:
    return Quaternion(x=float(q[0]), y=float(q[1]), z=float(q[2]), w=float(q[3]))


def normalize_quat(q: np.ndarray) -> np.ndarray:
    """Return ``q`` scaled to unit length; a zero quaternion becomes identity."""
    norm = float(np.linalg.norm(q))
    if norm < 1e-12:
        return IDENTITY_QUAT.copy()
    return q / norm


def lerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    return a + (b - a) * t


def slerp(q0: np.ndarray, q1: np.ndarray, t: float) -> np.ndarray:
    """Shortest-arc spherical interpolation between two orientations.

    The result is always renormalized.  When the quaternions lie in
    opposite hemispheres ``q1`` is negated first so the interpolation
    takes the short way round.

    Args:
        q0: Start orientation.
        q1: End orientation.
        t: Interpolation parameter; 0 returns ``q0`` and 1 returns ``q1``.

    Returns:
        A unit quaternion.
    """
    a = normalize_quat(q0)
    b = normalize_quat(q1)
    dot = float(np.dot(a, b))
    if dot < 0.0:
        b = -b
        dot = -dot
    if dot > _SLERP_LINEAR_THRESHOLD:
        return normalize_quat(a + (b - a) * t)
    theta = math.acos(min(dot, 1.0))
    sin_theta = math.sin(theta)
    s0 = math.sin((1.0 - t) * theta) / sin_theta
    s1 = math.sin(t * theta) / sin_theta
    return normalize_quat(s0 * a + s1 * b)


def ease_in_out_cubic(t: float) -> float:
    """Cubic ease-in/ease-out curve mapping [0, 1] onto [0, 1]."""
    t = min(max(t, 0.0), 1.0)
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - ((-2.0 * t + 2.0) ** 3) / 2.0


def quaternion_from_euler(pitch: float, yaw: float, roll: float) -> np.ndarray:
    """Build a quaternion from Euler angles (radians) applied yaw, pitch, roll.

    The rotation order is yaw about Y, then pitch about X, then roll
    about Z, which is the convention the viewer uses when authors type
    angles into the waypoint editor.
    """
    hp, hy, hr = pitch * 0.5, yaw * 0.5, roll * 0.5
    sp, cp = math.sin(hp), math.cos(hp)
    sy, cy = math.sin(hy), math.cos(hy)
    sr, cr = math.sin(hr), math.cos(hr)
    return np.array(
        [
            cy * sp * cr + sy * cp * sr,
            sy * cp * cr - cy * sp * sr,
            cy * cp * sr - sy * sp * cr,
            cy * cp * cr + sy * sp * sr,
        ]
    )
