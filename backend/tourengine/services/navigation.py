"""
Tour session engine.

A ``TourEngine`` is the single navigation context of one tour.  It owns
the path, the scroll state, the camera pose, the control arbiter, the
trigger tracker and the effect dispatcher, and advances them together
once per tick:

1. drain queued input events in arrival order;
2. resolve pending sound loads;
3. advance the scroll progress toward its target;
4. if path locked, ease the camera toward the path pose; if a hand-back
   is running, advance the tween instead;
5. if path locked (and not handing back), evaluate trigger zones and
   dispatch enter/exit effects.

Nothing else mutates a session, so callers never need locking as long
as they do not tick the same engine from two threads.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Optional, Sequence

from ..api.models import (
    ControlFlags,
    EffectSignal,
    FrameState,
    InputEvent,
    KeyDownEvent,
    PointerDownEvent,
    SetEditModeEvent,
    SetFreeFlyEvent,
    SetModeEvent,
    SetMutedEvent,
    StartEvent,
    StepEvent,
    Waypoint,
    WheelEvent,
)
from .audio import AudioBackend
from .config import EngineConfig, debug_enabled
from .control_arbiter import ControlModeArbiter
from .effect_dispatcher import InteractionEffectDispatcher
from .errors import ConfigurationError
from .orientation_blender import CameraDamper, Pose, target_pose
from .path_builder import TourPath, build_path
from .scroll_controller import ScrollPositionController
from .trigger_tracker import TriggerZoneTracker

logger = logging.getLogger(__name__)


def _interaction_ids(waypoints: Sequence[Waypoint]) -> List[str]:
    return [i.id for wp in waypoints for i in wp.interactions]


def _same_waypoint(a: Waypoint, b: Waypoint) -> bool:
    """Same trigger zone and same attached interactions."""
    return a.position == b.position and [i.id for i in a.interactions] == [i.id for i in b.interactions]


class TourEngine:
    """Navigation context for one tour session.

    Args:
        waypoints: Ordered waypoints; at least one.
        config: Engine tuning; defaults to ``EngineConfig()``.
        backend: Audio backend used for sound effects.

    Raises:
        ConfigurationError: If ``waypoints`` is empty.
    """

    def __init__(
        self,
        waypoints: Sequence[Waypoint],
        config: Optional[EngineConfig] = None,
        backend: Optional[AudioBackend] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.waypoints: List[Waypoint] = list(waypoints)
        self.path: TourPath = build_path(self.waypoints, self.config.samples_per_segment)
        self.camera = Pose(
            position=self.path.waypoint_positions[0].copy(),
            rotation=self.path.keyframes[0].copy(),
        )
        self.scroll = ScrollPositionController(
            self.path.sample_count,
            scroll_speed=self.config.scroll_speed,
            smoothing=self.config.scroll_smoothing,
            step_percent=self.config.step_percent,
        )
        self.arbiter = ControlModeArbiter(self.scroll, self.camera, self.config)
        self.damper = CameraDamper(self.config.rotation_damping, self.config.position_damping)
        self.tracker = TriggerZoneTracker(self.config.trigger_radius)
        self.backend = backend if backend is not None else AudioBackend()
        self.dispatcher = InteractionEffectDispatcher(self.backend)
        self.frame = 0
        self._events: Deque[InputEvent] = deque()
        self._debug = debug_enabled()
        self.last_frame: FrameState = self.snapshot()

    # -- input ---------------------------------------------------------------------

    def post(self, event: InputEvent) -> int:
        """Queue an input event for the next tick; return the queue length."""
        self._events.append(event)
        return len(self._events)

    @property
    def pending_events(self) -> int:
        return len(self._events)

    def _handle(self, event: InputEvent) -> List[EffectSignal]:
        if isinstance(event, (PointerDownEvent, KeyDownEvent)):
            self.arbiter.request_control(event.kind)
        elif isinstance(event, WheelEvent):
            outcome = self.arbiter.on_wheel(event.deltaY, self.path)
            if self._debug:
                logger.debug("wheel %.3f -> %s", event.deltaY, outcome.value)
        elif isinstance(event, StepEvent):
            self.arbiter.on_step(event.direction)
        elif isinstance(event, SetModeEvent):
            self.arbiter.set_mode(event.mode)
        elif isinstance(event, SetFreeFlyEvent):
            self.arbiter.set_free_fly(event.enabled)
        elif isinstance(event, SetEditModeEvent):
            self.arbiter.set_edit_mode(event.enabled)
        elif isinstance(event, SetMutedEvent):
            self.dispatcher.set_muted(event.muted)
        elif isinstance(event, StartEvent):
            return self.dispatcher.start_autoplay(self.waypoints)
        else:
            raise TypeError(f"Unhandled input event: {type(event).__name__}")
        return []

    # -- waypoint edits ------------------------------------------------------------

    def set_waypoints(self, waypoints: Sequence[Waypoint]) -> TourPath:
        """Replace the waypoint list and rebuild the path synchronously.

        The new path is fully built before any state is touched, so a
        rejected list leaves the session unchanged.
        """
        waypoints = list(waypoints)
        if not waypoints:
            raise ConfigurationError("A tour needs at least one waypoint")
        path = build_path(waypoints, self.config.samples_per_segment)
        # An active index survives only if it still names the same waypoint.
        kept = [
            i
            for i in self.tracker.active
            if i < len(waypoints) and _same_waypoint(self.waypoints[i], waypoints[i])
        ]
        self.waypoints = waypoints
        self.path = path
        self.scroll.resize(path.sample_count)
        self.arbiter.retarget(path)
        self.tracker.prune(path.waypoint_count, kept)
        self.dispatcher.prune(_interaction_ids(waypoints))
        logger.info("Waypoints replaced: %d waypoints, %d samples", path.waypoint_count, path.sample_count)
        self.last_frame = self.snapshot()
        return path

    # -- tick loop -------------------------------------------------------------------

    def tick(self) -> FrameState:
        """Advance the session by one frame and return the resulting state."""
        self.frame += 1
        signals: List[EffectSignal] = []
        while self._events:
            signals.extend(self._handle(self._events.popleft()))

        self.backend.poll()
        self.scroll.advance()

        state = self.arbiter.state
        if state.follows_path:
            self.damper.follow(self.camera, target_pose(self.scroll.progress, self.path))
        elif state.handing_back:
            self.arbiter.advance_tween()

        if state.path_locked and not state.handing_back:
            for transition in self.tracker.update(self.camera.position, self.path.waypoint_positions):
                waypoint = self.waypoints[transition.waypoint_index]
                if transition.phase == "enter":
                    signals.extend(self.dispatcher.enter(transition.waypoint_index, waypoint))
                else:
                    signals.extend(self.dispatcher.exit(transition.waypoint_index, waypoint))

        if self._debug:
            logger.debug(
                "tick %d progress=%.3f target=%.3f locked=%s active=%s",
                self.frame,
                self.scroll.progress,
                self.scroll.target,
                state.locked.value,
                self.tracker.sorted_active(),
            )
        self.last_frame = self.snapshot(signals, self.dispatcher.drain_warnings())
        return self.last_frame

    def run(self, frames: int) -> FrameState:
        """Run ``frames`` ticks and return the state after the last one."""
        if frames < 1:
            raise ConfigurationError("frames must be at least 1")
        for _ in range(frames):
            self.tick()
        return self.last_frame

    # -- reporting -------------------------------------------------------------------

    def snapshot(
        self,
        signals: Optional[List[EffectSignal]] = None,
        warnings: Optional[List[str]] = None,
    ) -> FrameState:
        state = self.arbiter.state
        return FrameState(
            frame=self.frame,
            camera=self.camera.to_model(),
            progress=self.scroll.progress,
            target=self.scroll.target,
            progressPercent=self.scroll.percentage,
            activeWaypoints=self.tracker.sorted_active(),
            control=ControlFlags(
                locked=state.locked.value,
                mode=state.mode,
                freeFly=state.free_fly,
                handingBack=state.handing_back,
                editMode=state.edit_mode,
                muted=self.dispatcher.muted,
                handBackPolicy=self.arbiter.policy,
            ),
            signals=signals or [],
            infoText=self.dispatcher.info_text,
            activeEffects=self.dispatcher.ledger(),
            warnings=warnings or [],
        )

    def close(self) -> None:
        """Release every sound held by the session."""
        self.dispatcher.prune([])
        self._events.clear()
