"""
Proximity triggers around waypoints.

Each tick the camera position is compared with every waypoint.  A
waypoint becomes *active* when the camera is within the trigger radius
and inactive again once it moves beyond it; the transitions are the
enter/exit events that drive interaction effects.  Trigger zones may
overlap, so any number of waypoints can be active at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Literal, Optional, Set

import numpy as np


@dataclass(frozen=True)
class TriggerTransition:
    waypoint_index: int
    phase: Literal["enter", "exit"]


class TriggerZoneTracker:
    """Maintains the set of waypoints whose trigger zone contains the camera."""

    def __init__(self, radius: float = 1.0) -> None:
        self.radius = radius
        self.active: Set[int] = set()

    def update(self, camera_position: np.ndarray, waypoint_positions: np.ndarray) -> List[TriggerTransition]:
        """Compare the camera against every waypoint and return the transitions.

        Transitions are reported in waypoint order.  A distance exactly
        equal to the radius counts as inside.
        """
        distances = np.linalg.norm(waypoint_positions - camera_position, axis=1)
        transitions: List[TriggerTransition] = []
        for index, distance in enumerate(distances):
            inside = float(distance) <= self.radius
            if inside and index not in self.active:
                self.active.add(index)
                transitions.append(TriggerTransition(index, "enter"))
            elif not inside and index in self.active:
                self.active.discard(index)
                transitions.append(TriggerTransition(index, "exit"))
        return transitions

    def prune(self, waypoint_count: int, unchanged: Optional[Iterable[int]] = None) -> None:
        """Forget indices that no longer refer to a waypoint.

        When ``unchanged`` is given only those indices survive, so an index
        whose waypoint was replaced is dropped even if it is still in range.
        Dropped indices fire no exit.
        """
        keep = set(unchanged) if unchanged is not None else set(range(waypoint_count))
        self.active = {i for i in self.active if i < waypoint_count and i in keep}

    def sorted_active(self) -> List[int]:
        return sorted(self.active)
