"""
Error types raised by the tour navigation engine.

Three categories are distinguished:

* ``ConfigurationError`` – the caller supplied input the engine cannot
  work with at all (an empty waypoint list, a non-positive frame count).
  A single waypoint is *not* an error; it is served by the degenerate
  single-point path.
* ``ResourceError`` – an effect resource (usually a sound) could not be
  created or failed to become ready.  These are logged and turned into
  frame warnings by the dispatcher; they never unwind navigation state.
* ``StateInvariantViolation`` – an internal invariant was broken, for
  example rotation keyframes out of step with the waypoint list.  This is
  a programming error and is never caught by the engine.
"""

from __future__ import annotations


class TourEngineError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(TourEngineError, ValueError):
    """Invalid engine input or configuration."""


class ResourceError(TourEngineError):
    """An effect resource could not be loaded or started."""

    def __init__(self, resource_id: str, reason: str) -> None:
        super().__init__(f"{resource_id}: {reason}")
        self.resource_id = resource_id
        self.reason = reason


class StateInvariantViolation(TourEngineError, AssertionError):
    """Internal state no longer satisfies an engine invariant."""
