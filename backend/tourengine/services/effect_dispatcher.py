"""
Interaction effects fired on waypoint enter/exit.

Every interaction attached to a waypoint is dispatched by type:

* audio – on enter, start the interaction's sound unless a handle for
  the same interaction id is already playing (entering twice never
  creates a second sound).  On exit only non-spatial sounds flagged
  ``stopOnExit`` are stopped and released; spatial sounds and unflagged
  sounds keep playing.
* info – enter publishes the text to the single info slot (last writer
  wins); exit clears the slot.
* animation / custom – accepted but not executed; a ``notImplemented``
  signal is reported and the remaining interactions are still processed.

Sound failures are isolated to their interaction: they are logged,
dropped from the registry and reported as frame warnings.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Set

from ..api.models import (
    ActiveEffect,
    AnimationInteraction,
    AudioInteraction,
    CustomInteraction,
    EffectSignal,
    InfoInteraction,
    Waypoint,
)
from .audio import AudioBackend, SoundHandle, SoundOptions
from .errors import ResourceError
from .vecmath import to_vector3, vec3

logger = logging.getLogger(__name__)

Phase = Literal["enter", "exit"]


class InteractionEffectDispatcher:
    """Executes and reverses interaction effects for one tour session."""

    def __init__(self, backend: Optional[AudioBackend] = None) -> None:
        self.backend = backend if backend is not None else AudioBackend()
        self.registry: Dict[str, SoundHandle] = {}
        self.info_text: Optional[str] = None
        self._info_owner: Optional[str] = None
        self.muted = False
        self._paused_by_mute: Set[str] = set()
        self._warnings: List[str] = []

    # -- dispatch ---------------------------------------------------------------

    def enter(self, waypoint_index: int, waypoint: Waypoint) -> List[EffectSignal]:
        return self._dispatch("enter", waypoint_index, waypoint)

    def exit(self, waypoint_index: int, waypoint: Waypoint) -> List[EffectSignal]:
        return self._dispatch("exit", waypoint_index, waypoint)

    def _dispatch(self, phase: Phase, waypoint_index: int, waypoint: Waypoint) -> List[EffectSignal]:
        signals: List[EffectSignal] = []
        for interaction in waypoint.interactions:
            if isinstance(interaction, AudioInteraction):
                if phase == "enter":
                    action = self._audio_enter(interaction, waypoint)
                else:
                    action = self._audio_exit(interaction)
            elif isinstance(interaction, InfoInteraction):
                action = self._info_enter(interaction) if phase == "enter" else self._info_exit()
            elif isinstance(interaction, (AnimationInteraction, CustomInteraction)):
                logger.warning(
                    "%s interaction %s on waypoint %d is not implemented; skipping %s",
                    interaction.type,
                    interaction.id,
                    waypoint_index,
                    phase,
                )
                action = "notImplemented"
            else:
                raise TypeError(f"Unhandled interaction type: {type(interaction).__name__}")
            signals.append(
                EffectSignal(
                    interactionId=interaction.id,
                    interactionType=interaction.type,
                    waypointIndex=waypoint_index,
                    phase=phase,
                    action=action,
                )
            )
        return signals

    # -- audio ----------------------------------------------------------------------

    def _audio_enter(self, interaction: AudioInteraction, waypoint: Waypoint) -> str:
        if self.muted:
            return "skippedMuted"
        data = interaction.data
        existing = self.registry.get(interaction.id)
        if existing is not None:
            if existing.is_active:
                return "alreadyPlaying"
            if not data.autoplay:
                return "idle"
            existing.play()
            return "resumed"
        try:
            handle = self.backend.create_sound(
                interaction.id, data.url, SoundOptions.from_audio_data(data)
            )
        except ResourceError as exc:
            self._report_failure(interaction.id, exc)
            return "failed"
        if data.spatialSound:
            handle.set_position(vec3(waypoint.position))
        handle.on_ready(self._on_sound_ready)
        handle.on_error(self._on_sound_failed)
        self.registry[interaction.id] = handle
        if data.autoplay:
            handle.play()
            return "started"
        return "created"

    def _audio_exit(self, interaction: AudioInteraction) -> str:
        data = interaction.data
        if data.spatialSound or not data.stopOnExit:
            return "leftRunning"
        handle = self.registry.pop(interaction.id, None)
        self._paused_by_mute.discard(interaction.id)
        if handle is not None:
            handle.stop()
            handle.dispose()
        return "stopped"

    def _on_sound_ready(self, handle: SoundHandle) -> None:
        logger.debug("Sound %s ready (playing=%s)", handle.sound_id, handle.is_playing)

    def _on_sound_failed(self, handle: SoundHandle, error: ResourceError) -> None:
        if self.registry.get(handle.sound_id) is handle:
            del self.registry[handle.sound_id]
        self._paused_by_mute.discard(handle.sound_id)
        self._report_failure(handle.sound_id, error)

    def _report_failure(self, interaction_id: str, error: ResourceError) -> None:
        logger.warning("Audio interaction %s failed: %s", interaction_id, error.reason)
        self._warnings.append(f"Audio interaction {interaction_id} failed: {error.reason}")

    # -- info -----------------------------------------------------------------------

    def _info_enter(self, interaction: InfoInteraction) -> str:
        self.info_text = interaction.data.text
        self._info_owner = interaction.id
        return "displayed"

    def _info_exit(self) -> str:
        self.info_text = None
        self._info_owner = None
        return "cleared"

    # -- session level ------------------------------------------------------------

    def set_muted(self, muted: bool) -> None:
        """Pause every active sound, or resume the ones a previous mute paused."""
        if muted == self.muted:
            return
        self.muted = muted
        if muted:
            for interaction_id, handle in self.registry.items():
                if handle.is_active:
                    handle.pause()
                    self._paused_by_mute.add(interaction_id)
        else:
            for interaction_id in sorted(self._paused_by_mute):
                handle = self.registry.get(interaction_id)
                if handle is not None:
                    handle.play()
            self._paused_by_mute.clear()
        logger.info("Audio %s", "muted" if muted else "unmuted")

    def start_autoplay(self, waypoints: Sequence[Waypoint]) -> List[EffectSignal]:
        """Start every autoplay sound of the tour regardless of camera position."""
        signals: List[EffectSignal] = []
        for index, waypoint in enumerate(waypoints):
            for interaction in waypoint.interactions:
                if isinstance(interaction, AudioInteraction) and interaction.data.autoplay:
                    signals.append(
                        EffectSignal(
                            interactionId=interaction.id,
                            interactionType="audio",
                            waypointIndex=index,
                            phase="enter",
                            action=self._audio_enter(interaction, waypoint),
                        )
                    )
        return signals

    def prune(self, live_ids: Iterable[str]) -> None:
        """Release effects whose interaction no longer exists."""
        live = set(live_ids)
        for interaction_id in [i for i in self.registry if i not in live]:
            handle = self.registry.pop(interaction_id)
            handle.dispose()
            self._paused_by_mute.discard(interaction_id)
            logger.debug("Released sound of removed interaction %s", interaction_id)
        if self._info_owner is not None and self._info_owner not in live:
            self._info_exit()

    def drain_warnings(self) -> List[str]:
        warnings, self._warnings = self._warnings, []
        return warnings

    def ledger(self) -> List[ActiveEffect]:
        effects: List[ActiveEffect] = []
        for interaction_id in sorted(self.registry):
            handle = self.registry[interaction_id]
            effects.append(
                ActiveEffect(
                    interactionId=interaction_id,
                    source=handle.source,
                    state=handle.state.value,
                    playing=handle.is_playing,
                    spatial=handle.options.spatial,
                    volume=handle.options.volume,
                    loop=handle.options.loop,
                    position=to_vector3(handle.position) if handle.position is not None else None,
                )
            )
        return effects
