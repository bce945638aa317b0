"""
Scroll progress smoothing.

Progress is a continuous index into the path's samples, in
``[0, sample_count - 1]``.  External input only ever writes the target;
each tick the progress covers a fixed fraction of the remaining
distance (``p += (target - p) * smoothing``).  The approach is
asymptotic, so the progress gets arbitrarily close to the target but
is not guaranteed to equal it; compare with a tolerance.

Both values are clamped on every write; non-finite writes are ignored.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ScrollState:
    progress: float = 0.0
    target: float = 0.0
    smoothing: float = 0.1


class ScrollPositionController:
    """Owns the scroll progress of one tour session.

    Args:
        sample_count: Number of samples on the current path (>= 1).
        scroll_speed: Progress units added per unit of wheel delta.
        smoothing: Fraction of the remaining distance covered per tick.
        step_percent: Size of a discrete step as a percentage of the path.
    """

    def __init__(
        self,
        sample_count: int,
        scroll_speed: float = 0.1,
        smoothing: float = 0.1,
        step_percent: float = 10.0,
    ) -> None:
        self.state = ScrollState(smoothing=smoothing)
        self.scroll_speed = scroll_speed
        self.step_percent = step_percent
        self._max = 0.0
        self.resize(sample_count)

    @property
    def progress(self) -> float:
        return self.state.progress

    @property
    def target(self) -> float:
        return self.state.target

    @property
    def max_progress(self) -> float:
        return self._max

    def _clamp(self, value: float) -> float:
        return min(max(value, 0.0), self._max)

    def resize(self, sample_count: int) -> None:
        """Adopt a rebuilt path's sample count and re-clamp both values."""
        self._max = float(max(sample_count, 1) - 1)
        self.state.progress = self._clamp(self.state.progress)
        self.state.target = self._clamp(self.state.target)

    def set_target(self, value: float) -> None:
        if not math.isfinite(value):
            logger.warning("Ignoring non-finite scroll target %r", value)
            return
        self.state.target = self._clamp(value)

    def apply_delta(self, delta: float) -> None:
        """Move the target by a wheel/drag delta scaled by the scroll speed."""
        self.set_target(self.state.target + delta * self.scroll_speed)

    def step(self, direction: int) -> None:
        """Move the target by ``step_percent`` of the path forward (+1) or back (-1)."""
        if self._max <= 0.0:
            return
        self.set_target(self.state.target + self._max * (self.step_percent / 100.0) * direction)

    def jump_to(self, value: float) -> None:
        """Set progress and target together, bypassing smoothing."""
        if not math.isfinite(value):
            logger.warning("Ignoring non-finite scroll position %r", value)
            return
        clamped = self._clamp(value)
        self.state.progress = clamped
        self.state.target = clamped

    def advance(self) -> float:
        """Run one smoothing step and return the new progress."""
        s = self.state
        s.progress = self._clamp(s.progress + (s.target - s.progress) * s.smoothing)
        return s.progress

    @property
    def percentage(self) -> float:
        """Progress as a percentage of the path; 0 for a single-sample path."""
        if self._max <= 0.0:
            return 0.0
        return self.state.progress / self._max * 100.0
