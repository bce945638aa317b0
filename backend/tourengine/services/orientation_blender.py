"""
Pose computation along the tour path.

Given a progress value the blender produces a *target* pose:

* orientation – the progress is mapped to a waypoint segment and the
  two keyframes bounding that segment are slerped at the local
  parameter;
* position – the two path samples surrounding the progress value are
  linearly interpolated.

The camera is then eased toward the target with its own rotation and
position damping.  This second smoothing stage is separate from the
scroll smoothing and is what gives the camera its trailing motion.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from ..api.models import CameraPose
from .path_builder import TourPath
from .vecmath import IDENTITY_QUAT, lerp, slerp, to_quaternion, to_vector3


@dataclass
class Pose:
    """Mutable camera pose (position ``(3,)``, rotation ``(4,)`` x, y, z, w)."""

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: IDENTITY_QUAT.copy())

    def copy(self) -> "Pose":
        return Pose(position=self.position.copy(), rotation=self.rotation.copy())

    def to_model(self) -> CameraPose:
        return CameraPose(position=to_vector3(self.position), rotation=to_quaternion(self.rotation))


def segment_of(progress: float, sample_count: int, waypoint_count: int) -> Tuple[int, float]:
    """Map a progress value onto ``(segment index, local parameter)``.

    ``t = progress / (N - 1)`` is stretched over the ``n - 1`` waypoint
    segments.  The index is clamped to ``[0, n - 2]`` so the final sample
    maps to local parameter 1 of the last segment.
    """
    if waypoint_count < 2:
        return 0, 0.0
    t = progress / (sample_count - 1) if sample_count > 1 else 0.0
    seg_t = t * (waypoint_count - 1)
    seg_index = min(max(int(math.floor(seg_t)), 0), waypoint_count - 2)
    return seg_index, seg_t - seg_index


def blend_orientation(progress: float, sample_count: int, keyframes: np.ndarray) -> np.ndarray:
    """Return the unit orientation for ``progress``.

    Args:
        progress: Continuous sample index.
        sample_count: Number of path samples.
        keyframes: ``(n, 4)`` rotation keyframes, one per waypoint.
    """
    n = len(keyframes)
    if n == 1:
        return keyframes[0].copy()
    seg_index, local_t = segment_of(progress, sample_count, n)
    q0 = keyframes[seg_index]
    q1 = keyframes[seg_index + 1] if seg_index + 1 < n else keyframes[-1]
    return slerp(q0, q1, local_t)


def interpolate_position(progress: float, samples: np.ndarray) -> np.ndarray:
    """Linearly interpolate between the samples on either side of ``progress``."""
    last = len(samples) - 1
    p = min(max(progress, 0.0), float(last))
    lo = int(math.floor(p))
    hi = min(lo + 1, last)
    return lerp(samples[lo], samples[hi], p - lo)


def target_pose(progress: float, path: TourPath) -> Pose:
    """Pose the camera should settle at for ``progress`` on ``path``."""
    return Pose(
        position=interpolate_position(progress, path.samples),
        rotation=blend_orientation(progress, path.sample_count, path.keyframes),
    )


class CameraDamper:
    """Eases a camera pose toward a target, one tick at a time."""

    def __init__(self, rotation_damping: float = 0.05, position_damping: float = 0.1) -> None:
        self.rotation_damping = rotation_damping
        self.position_damping = position_damping

    def follow(self, camera: Pose, target: Pose) -> None:
        camera.rotation = slerp(camera.rotation, target.rotation, self.rotation_damping)
        camera.position = lerp(camera.position, target.position, self.position_damping)
