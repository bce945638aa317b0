"""
Path construction for tour navigation.

The tour path is a dense polyline sampled from an open Catmull–Rom
spline passing through every waypoint position in order.  The first
and last waypoints are duplicated as phantom control points so the
curve starts and ends exactly on them.  For ``n`` waypoints the curve
is sampled at ``(n - 1) * samples_per_segment`` evenly spaced curve
parameters from the first waypoint to the last, inclusive.  A single
waypoint yields a one-sample path.

Orientations are not sampled: the builder returns one rotation keyframe
per waypoint which the orientation blender interpolates per segment.

A ``TourPath`` is immutable.  Whenever the waypoint list changes the
caller builds a new one and swaps the reference, so a reader never sees
a partially rebuilt path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from ..api.models import Vector3, Waypoint
from .errors import ConfigurationError, StateInvariantViolation
from .vecmath import normalize_quat, quat, quaternion_from_euler, to_quaternion, vec3

logger = logging.getLogger(__name__)

SAMPLES_PER_SEGMENT: int = 10


@dataclass(frozen=True)
class TourPath:
    """Sampled path plus per-waypoint keyframes.

    Attributes:
        samples: ``(N, 3)`` array of path samples.
        keyframes: ``(n, 4)`` array of unit quaternions, one per waypoint.
        waypoint_positions: ``(n, 3)`` array of the waypoint positions.
    """

    samples: np.ndarray
    keyframes: np.ndarray
    waypoint_positions: np.ndarray

    def __post_init__(self) -> None:
        if len(self.keyframes) != len(self.waypoint_positions):
            raise StateInvariantViolation(
                f"{len(self.keyframes)} rotation keyframes for "
                f"{len(self.waypoint_positions)} waypoints"
            )
        for arr in (self.samples, self.keyframes, self.waypoint_positions):
            arr.setflags(write=False)

    @property
    def sample_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def waypoint_count(self) -> int:
        return int(self.waypoint_positions.shape[0])

    @property
    def max_progress(self) -> float:
        """Largest valid progress value (``sample_count - 1``)."""
        return float(self.sample_count - 1)

    def length(self) -> float:
        """Return the polyline length of the sampled path."""
        if self.sample_count < 2:
            return 0.0
        return float(np.linalg.norm(np.diff(self.samples, axis=0), axis=1).sum())


def expected_sample_count(waypoint_count: int, samples_per_segment: int = SAMPLES_PER_SEGMENT) -> int:
    """Number of path samples produced for ``waypoint_count`` waypoints."""
    if waypoint_count <= 1:
        return 1
    return (waypoint_count - 1) * samples_per_segment


def catmull_rom(p0: np.ndarray, p1: np.ndarray, p2: np.ndarray, p3: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Evaluate uniform Catmull–Rom segments.

    All point arguments are ``(M, 3)`` arrays holding the four control
    points of each segment; ``t`` is a ``(M,)`` array of local parameters
    in [0, 1].  The curve passes through ``p1`` at ``t=0`` and ``p2`` at
    ``t=1``.
    """
    t = t[:, None]
    t2 = t * t
    t3 = t2 * t
    return 0.5 * (
        2.0 * p1
        + (-p0 + p2) * t
        + (2.0 * p0 - 5.0 * p1 + 4.0 * p2 - p3) * t2
        + (-p0 + 3.0 * p1 - 3.0 * p2 + p3) * t3
    )


def sample_catmull_rom(points: np.ndarray, num_samples: int) -> np.ndarray:
    """Sample an open Catmull–Rom spline through ``points``.

    Args:
        points: ``(n, 3)`` array of control points, ``n >= 2``.
        num_samples: Number of evenly spaced curve parameters to evaluate,
            including both end points.

    Returns:
        ``(num_samples, 3)`` array of points along the curve.
    """
    n = len(points)
    padded = np.vstack([points[:1], points, points[-1:]])
    u = np.linspace(0.0, float(n - 1), num_samples)
    seg = np.minimum(np.floor(u).astype(int), n - 2)
    local = u - seg
    return catmull_rom(padded[seg], padded[seg + 1], padded[seg + 2], padded[seg + 3], local)


def build_path(waypoints: Sequence[Waypoint], samples_per_segment: int = SAMPLES_PER_SEGMENT) -> TourPath:
    """Build the sampled path and rotation keyframes for a waypoint list.

    Args:
        waypoints: Ordered waypoints; at least one is required.
        samples_per_segment: Samples per waypoint-to-waypoint segment.

    Returns:
        A new immutable ``TourPath``.

    Raises:
        ConfigurationError: If ``waypoints`` is empty.
    """
    if not waypoints:
        raise ConfigurationError("A tour needs at least one waypoint")
    if samples_per_segment < 1:
        raise ConfigurationError("samples_per_segment must be positive")
    positions = np.array([vec3(wp.position) for wp in waypoints], dtype=float)
    keyframes = np.array([normalize_quat(quat(wp.rotation)) for wp in waypoints], dtype=float)
    n = len(waypoints)
    if n == 1:
        logger.debug("Single waypoint tour; using a one-sample path at %s", positions[0].tolist())
        samples = positions.copy()
    else:
        samples = sample_catmull_rom(positions, expected_sample_count(n, samples_per_segment))
    path = TourPath(samples=samples, keyframes=keyframes, waypoint_positions=positions)
    logger.info(
        "Built tour path: waypoints=%d samples=%d length=%.3f",
        n,
        path.sample_count,
        path.length(),
    )
    return path


def path_points(path: TourPath) -> List[tuple[float, float, float]]:
    """Return the samples as plain tuples for export."""
    return [tuple(float(c) for c in p) for p in path.samples]


def default_tour_waypoints() -> List[Waypoint]:
    """Demo tour: five waypoints along -z, yawing 0.1 rad per step."""
    waypoints: List[Waypoint] = []
    for i in range(5):
        waypoints.append(
            Waypoint(
                position=Vector3(x=0.0, y=0.0, z=-10.0 + 2.0 * i),
                rotation=to_quaternion(quaternion_from_euler(0.0, 0.1 * i, 0.0)),
            )
        )
    return waypoints
