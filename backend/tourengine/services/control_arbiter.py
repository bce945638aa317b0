"""
Control arbitration between path-following and free user control.

The camera is either *path locked* (the tick loop drives it along the
path) or *user controlled* (an external controller moves it freely).
Whether a pointer or key press may take control depends on the
constraint mode:

* ``auto`` – any press hands control to the user;
* ``path`` – presses are ignored unless free fly is enabled.

Scrolling while user controlled starts a *hand-back*: the camera
position is projected onto the path to find a continuous progress
value, the scroll state jumps there, and a fixed-length eased tween
carries the camera from where the user left it to the path pose.
Further scroll input is suppressed until the tween completes, at which
point the camera is path locked again.

Switching to ``path`` mode with free fly disabled locks the camera
immediately, without a tween.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from .config import ConstraintMode, EngineConfig, HandBackPolicy
from .orientation_blender import Pose, target_pose
from .path_builder import TourPath
from .scroll_controller import ScrollPositionController
from .vecmath import ease_in_out_cubic, lerp, slerp

logger = logging.getLogger(__name__)


class LockState(str, Enum):
    PATH_LOCKED = "pathLocked"
    USER_CONTROLLED = "userControlled"


class WheelOutcome(str, Enum):
    """What a wheel event did; returned for logging and tests."""

    IGNORED = "ignored"
    SUPPRESSED = "suppressed"
    HAND_BACK = "handBack"
    SCROLLED = "scrolled"


@dataclass
class ControlState:
    locked: LockState = LockState.PATH_LOCKED
    mode: ConstraintMode = ConstraintMode.AUTO
    free_fly: bool = False
    handing_back: bool = False
    edit_mode: bool = False

    @property
    def may_acquire(self) -> bool:
        """True when a pointer/key press is allowed to take control."""
        return self.mode == ConstraintMode.AUTO or self.free_fly

    @property
    def path_locked(self) -> bool:
        return self.locked == LockState.PATH_LOCKED

    @property
    def follows_path(self) -> bool:
        """True when the tick loop should drive the camera along the path."""
        return self.path_locked and not self.handing_back and not self.edit_mode


def nearest_sample(samples: np.ndarray, point: np.ndarray) -> int:
    """Index of the sample closest to ``point``; the first one wins ties."""
    d2 = ((samples - point) ** 2).sum(axis=1)
    return int(np.argmin(d2))


def project_onto_path(samples: np.ndarray, point: np.ndarray) -> float:
    """Continuous progress value whose path position is closest to ``point``.

    The nearest sample is found by a linear scan.  The vector from that
    sample to ``point`` is then projected onto each adjacent segment
    (dot product over squared segment length, clamped to [0, 1]) and the
    projection lying closest to ``point`` decides the fractional part.
    The forward segment is tried first, so it wins exact ties.
    """
    last = len(samples) - 1
    if last <= 0:
        return 0.0
    i = nearest_sample(samples, point)
    best = float(i)
    best_d2 = float(((samples[i] - point) ** 2).sum())
    for j in (i + 1, i - 1):
        if j < 0 or j > last:
            continue
        seg = samples[j] - samples[i]
        seg_len2 = float(np.dot(seg, seg))
        if seg_len2 < 1e-12:
            continue
        frac = min(max(float(np.dot(point - samples[i], seg)) / seg_len2, 0.0), 1.0)
        d2 = float(((samples[i] + seg * frac - point) ** 2).sum())
        if d2 < best_d2:
            best_d2 = d2
            best = i + frac * (j - i)
    return best


class HandBackTween:
    """Fixed-length eased transition of the camera from its pose to ``end``."""

    def __init__(self, start: Pose, end: Pose, frames: int, progress: float) -> None:
        self.start = start.copy()
        self.end = end.copy()
        self.frames = frames
        self.progress = progress
        self.frame = 0

    @property
    def finished(self) -> bool:
        return self.frame >= self.frames

    def advance(self, camera: Pose) -> bool:
        """Move ``camera`` one frame along the tween; return True on the last frame."""
        self.frame = min(self.frame + 1, self.frames)
        if self.finished:
            camera.position = self.end.position.copy()
            camera.rotation = self.end.rotation.copy()
            return True
        k = ease_in_out_cubic(self.frame / self.frames)
        camera.position = lerp(self.start.position, self.end.position, k)
        camera.rotation = slerp(self.start.rotation, self.end.rotation, k)
        return False


class ControlModeArbiter:
    """Owns the control state of one tour session.

    Args:
        scroll: The session's scroll controller.
        camera: The session's camera pose, mutated in place.
        config: Engine tuning (initial mode, free fly, tween length, policy).
    """

    def __init__(self, scroll: ScrollPositionController, camera: Pose, config: EngineConfig) -> None:
        self.scroll = scroll
        self.camera = camera
        self.state = ControlState(mode=config.constraint_mode, free_fly=config.free_fly)
        self.policy = config.hand_back_policy
        self.animation_frames = config.animation_frames
        self.tween: Optional[HandBackTween] = None

    # -- control acquisition -------------------------------------------------

    def request_control(self, source: str = "pointer") -> bool:
        """Handle a pointer/key press; return True if the user now has control."""
        if self.state.handing_back:
            if self.policy == HandBackPolicy.ATOMIC:
                logger.debug("Control request from %s ignored during hand-back", source)
                return False
            logger.debug("Control request from %s interrupts hand-back", source)
            self._cancel_tween()
        if not self.state.may_acquire:
            logger.debug("Control request from %s ignored in %s mode", source, self.state.mode.value)
            return False
        if self.state.locked != LockState.USER_CONTROLLED:
            logger.debug("User took control via %s", source)
        self.state.locked = LockState.USER_CONTROLLED
        return True

    # -- scroll input ----------------------------------------------------------

    def on_wheel(self, delta: float, path: TourPath) -> WheelOutcome:
        if self.state.edit_mode:
            return WheelOutcome.IGNORED
        if self.state.handing_back:
            return WheelOutcome.SUPPRESSED
        if self.state.locked == LockState.USER_CONTROLLED:
            self.begin_hand_back(path)
            return WheelOutcome.HAND_BACK
        self.scroll.apply_delta(delta)
        return WheelOutcome.SCROLLED

    def on_step(self, direction: int) -> bool:
        """Apply a discrete step; a step while user controlled returns to the path."""
        if self.state.handing_back or self.state.edit_mode:
            return False
        self.scroll.step(direction)
        if self.state.locked == LockState.USER_CONTROLLED:
            logger.debug("Step command returned control to the path")
            self.state.locked = LockState.PATH_LOCKED
        return True

    # -- hand-back ---------------------------------------------------------------

    def begin_hand_back(self, path: TourPath) -> HandBackTween:
        """Start the eased transition from the free camera back onto the path."""
        progress = project_onto_path(path.samples, self.camera.position)
        self.scroll.jump_to(progress)
        end = target_pose(self.scroll.progress, path)
        self.tween = HandBackTween(self.camera, end, self.animation_frames, self.scroll.progress)
        self.state.handing_back = True
        logger.info(
            "Hand-back started: progress=%.3f frames=%d", self.scroll.progress, self.animation_frames
        )
        return self.tween

    def advance_tween(self) -> bool:
        """Advance a running hand-back; return True on the tick it completes."""
        if self.tween is None:
            return False
        if not self.tween.advance(self.camera):
            return False
        self.scroll.jump_to(self.tween.progress)
        self.tween = None
        self.state.handing_back = False
        self.state.locked = LockState.PATH_LOCKED
        logger.info("Hand-back complete; camera path locked at progress %.3f", self.scroll.progress)
        return True

    def retarget(self, path: TourPath) -> None:
        """Point a running hand-back at the rebuilt path's pose for the clamped progress."""
        if self.tween is None:
            return
        self.tween.progress = min(self.tween.progress, path.max_progress)
        self.tween.end = target_pose(self.tween.progress, path)

    def _cancel_tween(self) -> None:
        self.tween = None
        self.state.handing_back = False

    # -- mode toggles --------------------------------------------------------------

    def set_mode(self, mode: ConstraintMode) -> None:
        self.state.mode = mode
        self._enforce_constraint()

    def set_free_fly(self, enabled: bool) -> None:
        self.state.free_fly = enabled
        self._enforce_constraint()

    def set_edit_mode(self, enabled: bool) -> None:
        self.state.edit_mode = enabled

    def _enforce_constraint(self) -> None:
        s = self.state
        if s.mode != ConstraintMode.PATH_CONSTRAINED or s.free_fly:
            return
        if s.locked == LockState.USER_CONTROLLED or s.handing_back:
            logger.info("Path constraint enabled; camera locked to the path without transition")
        self._cancel_tween()
        s.locked = LockState.PATH_LOCKED
