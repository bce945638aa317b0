"""Tests for waypoint trigger zone membership."""

import sys
from pathlib import Path

import numpy as np

sys.path.append(str(Path(__file__).resolve().parents[1]))

from tourengine.services.trigger_tracker import TriggerTransition, TriggerZoneTracker  # type: ignore

WAYPOINTS = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 1.5], [0.0, 0.0, 10.0]])


def test_enter_is_idempotent() -> None:
    tracker = TriggerZoneTracker(radius=1.0)
    camera = np.array([0.0, 0.0, 0.2])
    assert tracker.update(camera, WAYPOINTS) == [TriggerTransition(0, "enter")]
    assert tracker.update(camera, WAYPOINTS) == []
    assert tracker.sorted_active() == [0]


def test_overlapping_zones_are_all_active() -> None:
    tracker = TriggerZoneTracker(radius=1.0)
    transitions = tracker.update(np.array([0.0, 0.0, 0.75]), WAYPOINTS)
    assert transitions == [TriggerTransition(0, "enter"), TriggerTransition(1, "enter")]
    assert tracker.sorted_active() == [0, 1]


def test_radius_boundary_counts_as_inside() -> None:
    tracker = TriggerZoneTracker(radius=1.0)
    tracker.update(np.array([1.0, 0.0, 0.0]), WAYPOINTS)
    assert tracker.sorted_active() == [0]


def test_exit_when_leaving_zone() -> None:
    tracker = TriggerZoneTracker(radius=1.0)
    tracker.update(np.array([0.0, 0.0, 0.0]), WAYPOINTS)
    transitions = tracker.update(np.array([0.0, 0.0, 5.0]), WAYPOINTS)
    assert transitions == [TriggerTransition(0, "exit")]
    assert tracker.sorted_active() == []


def test_prune_drops_removed_waypoints() -> None:
    tracker = TriggerZoneTracker(radius=1.0)
    tracker.update(np.array([0.0, 0.0, 10.0]), WAYPOINTS)
    tracker.prune(2)
    assert tracker.sorted_active() == []


def test_prune_keeps_only_unchanged_indices() -> None:
    tracker = TriggerZoneTracker(radius=2.0)
    tracker.update(np.array([0.0, 0.0, 0.75]), WAYPOINTS)
    assert tracker.sorted_active() == [0, 1]
    tracker.prune(3, unchanged=[1])
    assert tracker.sorted_active() == [1]
    # The dropped index is entered again, never exited
    assert tracker.update(np.array([0.0, 0.0, 0.75]), WAYPOINTS) == [TriggerTransition(0, "enter")]
