"""
Tests for interaction effect dispatch.

Sounds are created through the in-memory audio backend; readiness is
resolved by ``poll()`` exactly as the tick loop does, or reported by
hand through ``resolve``/``fail`` when the backend is not auto-ready.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from tourengine.api.models import (  # type: ignore
    AnimationInteraction,
    AudioInteraction,
    AudioInteractionData,
    CustomInteraction,
    InfoInteraction,
    InfoInteractionData,
    Vector3,
    Waypoint,
)
from tourengine.services.audio import AudioBackend, SoundOptions, SoundState  # type: ignore
from tourengine.services.effect_dispatcher import InteractionEffectDispatcher  # type: ignore
from tourengine.services.trigger_tracker import TriggerZoneTracker  # type: ignore


def _audio(interaction_id: str, **data) -> AudioInteraction:
    data.setdefault("url", f"{interaction_id}.mp3")
    return AudioInteraction(id=interaction_id, data=AudioInteractionData(**data))


def _info(interaction_id: str, text: str) -> InfoInteraction:
    return InfoInteraction(id=interaction_id, data=InfoInteractionData(text=text))


def _actions(signals) -> list:
    return [s.action for s in signals]


@pytest.fixture
def backend() -> AudioBackend:
    return AudioBackend()


@pytest.fixture
def dispatcher(backend: AudioBackend) -> InteractionEffectDispatcher:
    return InteractionEffectDispatcher(backend)


def test_enter_twice_keeps_one_sound(dispatcher, backend) -> None:
    waypoint = Waypoint(position=Vector3(), interactions=[_audio("a")])
    assert _actions(dispatcher.enter(0, waypoint)) == ["started"]
    handle = dispatcher.registry["a"]
    # Still loading, but the pending play request counts as playing
    assert _actions(dispatcher.enter(0, waypoint)) == ["alreadyPlaying"]
    backend.poll()
    assert handle.is_playing
    assert _actions(dispatcher.enter(0, waypoint)) == ["alreadyPlaying"]
    assert dispatcher.registry["a"] is handle
    assert len(dispatcher.ledger()) == 1


def test_non_autoplay_sound_is_created_idle(dispatcher, backend) -> None:
    waypoint = Waypoint(position=Vector3(), interactions=[_audio("a", autoplay=False)])
    assert _actions(dispatcher.enter(0, waypoint)) == ["created"]
    backend.poll()
    assert dispatcher.registry["a"].state == SoundState.READY
    assert not dispatcher.registry["a"].is_playing
    assert _actions(dispatcher.enter(0, waypoint)) == ["idle"]


def test_paused_sound_resumes_on_enter(dispatcher, backend) -> None:
    waypoint = Waypoint(position=Vector3(), interactions=[_audio("a")])
    dispatcher.enter(0, waypoint)
    backend.poll()
    dispatcher.registry["a"].pause()
    assert _actions(dispatcher.enter(0, waypoint)) == ["resumed"]
    assert dispatcher.registry["a"].is_playing


def test_spatial_sound_anchored_at_waypoint(dispatcher) -> None:
    waypoint = Waypoint(position=Vector3(x=1.0, y=2.0, z=3.0), interactions=[_audio("a", spatialSound=True)])
    dispatcher.enter(2, waypoint)
    assert np.allclose(dispatcher.registry["a"].position, [1.0, 2.0, 3.0])
    effect = dispatcher.ledger()[0]
    assert effect.spatial is True
    assert effect.position.z == 3.0


def test_exit_stops_only_non_spatial_stop_on_exit(dispatcher, backend) -> None:
    """Leaving two zones at once stops one sound and leaves the other playing."""
    spatial = Waypoint(position=Vector3(x=0.0), interactions=[_audio("spatial", spatialSound=True)])
    ambient = Waypoint(position=Vector3(x=0.0, z=0.2), interactions=[_audio("ambient", stopOnExit=True)])
    waypoints = [spatial, ambient]
    positions = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 0.2]])
    tracker = TriggerZoneTracker(radius=1.0)

    for t in tracker.update(np.array([0.5, 0.0, 0.0]), positions):
        dispatcher.enter(t.waypoint_index, waypoints[t.waypoint_index])
    backend.poll()
    stopped_handle = dispatcher.registry["ambient"]

    signals = []
    for t in tracker.update(np.array([2.0, 0.0, 0.0]), positions):
        assert t.phase == "exit"
        signals.extend(dispatcher.exit(t.waypoint_index, waypoints[t.waypoint_index]))

    assert _actions(signals) == ["leftRunning", "stopped"]
    assert dispatcher.registry["spatial"].is_playing
    assert "ambient" not in dispatcher.registry
    assert not stopped_handle.is_playing
    assert stopped_handle.state == SoundState.DISPOSED


def test_info_last_writer_wins_and_exit_clears(dispatcher) -> None:
    first = Waypoint(position=Vector3(), interactions=[_info("i1", "Entrance hall")])
    second = Waypoint(position=Vector3(z=0.5), interactions=[_info("i2", "Gallery")])
    assert _actions(dispatcher.enter(0, first)) == ["displayed"]
    dispatcher.enter(1, second)
    assert dispatcher.info_text == "Gallery"
    assert _actions(dispatcher.exit(0, first)) == ["cleared"]
    assert dispatcher.info_text is None


def test_unimplemented_interactions_do_not_block_others(dispatcher) -> None:
    waypoint = Waypoint(
        position=Vector3(),
        interactions=[
            AnimationInteraction(id="anim"),
            CustomInteraction(id="script"),
            _info("i", "hello"),
        ],
    )
    signals = dispatcher.enter(0, waypoint)
    assert _actions(signals) == ["notImplemented", "notImplemented", "displayed"]
    assert [s.interactionType for s in signals] == ["animation", "custom", "info"]
    assert dispatcher.info_text == "hello"


def test_missing_source_is_reported_as_warning(dispatcher) -> None:
    waypoint = Waypoint(position=Vector3(), interactions=[_audio("a", url=""), _info("i", "still shown")])
    assert _actions(dispatcher.enter(0, waypoint)) == ["failed", "displayed"]
    assert dispatcher.registry == {}
    warnings = dispatcher.drain_warnings()
    assert len(warnings) == 1 and "a" in warnings[0]
    assert dispatcher.drain_warnings() == []


def test_load_failure_drops_sound_from_registry() -> None:
    backend = AudioBackend(auto_ready=False)
    dispatcher = InteractionEffectDispatcher(backend)
    waypoint = Waypoint(position=Vector3(), interactions=[_audio("a"), _audio("b")])
    dispatcher.enter(0, waypoint)
    backend.fail("a", "404 Not Found")
    backend.resolve("b")
    assert "a" not in dispatcher.registry
    assert dispatcher.registry["b"].is_playing
    assert "404 Not Found" in dispatcher.drain_warnings()[0]
    # A later enter retries the failed sound
    assert _actions(dispatcher.enter(0, waypoint)) == ["started", "alreadyPlaying"]


def test_mute_pauses_and_unmute_resumes_only_paused(dispatcher, backend) -> None:
    waypoint = Waypoint(position=Vector3(), interactions=[_audio("on"), _audio("off", autoplay=False)])
    dispatcher.enter(0, waypoint)
    backend.poll()
    dispatcher.set_muted(True)
    assert not dispatcher.registry["on"].is_playing
    assert _actions(dispatcher.enter(0, waypoint)) == ["skippedMuted", "skippedMuted"]
    dispatcher.set_muted(False)
    assert dispatcher.registry["on"].is_playing
    assert not dispatcher.registry["off"].is_playing


def test_start_autoplay_primes_every_autoplay_sound(dispatcher) -> None:
    waypoints = [
        Waypoint(position=Vector3(), interactions=[_audio("a"), _info("i", "x")]),
        Waypoint(position=Vector3(z=5.0), interactions=[_audio("b", autoplay=False), _audio("c")]),
    ]
    signals = dispatcher.start_autoplay(waypoints)
    assert [(s.interactionId, s.waypointIndex, s.action) for s in signals] == [
        ("a", 0, "started"),
        ("c", 1, "started"),
    ]
    assert sorted(dispatcher.registry) == ["a", "c"]


def test_prune_releases_removed_interactions(dispatcher) -> None:
    waypoint = Waypoint(position=Vector3(), interactions=[_audio("a"), _audio("b"), _info("i", "x")])
    dispatcher.enter(0, waypoint)
    handle = dispatcher.registry["a"]
    dispatcher.prune(["b"])
    assert sorted(dispatcher.registry) == ["b"]
    assert handle.state == SoundState.DISPOSED
    assert dispatcher.info_text is None


def test_disposing_a_loading_sound_withdraws_it_from_backend() -> None:
    backend = AudioBackend(auto_ready=False)
    keep = backend.create_sound("keep", "keep.mp3", SoundOptions())
    gone = backend.create_sound("gone", "gone.mp3", SoundOptions())
    gone.play()
    assert backend.pending_count == 2

    gone.dispose()
    assert backend.pending_count == 1
    backend.resolve("gone")
    assert gone.state == SoundState.DISPOSED
    assert not gone.is_playing

    backend.resolve("keep")
    assert keep.state == SoundState.READY
    assert backend.pending_count == 0


def test_pruned_sounds_do_not_linger_while_loading() -> None:
    backend = AudioBackend(auto_ready=False)
    dispatcher = InteractionEffectDispatcher(backend)
    waypoint = Waypoint(position=Vector3(), interactions=[_audio("a"), _audio("b")])
    dispatcher.enter(0, waypoint)
    assert backend.pending_count == 2
    dispatcher.prune(["b"])
    assert backend.pending_count == 1
    backend.resolve("b")
    assert backend.pending_count == 0
    assert dispatcher.registry["b"].is_playing
