"""
Engine configuration.

All tuning constants used by the navigation engine live on a single
``EngineConfig`` model so that a tour session can be created with
per-session overrides while the defaults match the stock viewer
behaviour (scroll speed 0.1, 120 frame hand-back, 0.05/0.1 camera
damping, 1.0 unit trigger radius).

``load_engine_config`` reads optional ``TOUR_*`` environment variables
on top of the defaults.  Unparseable values are ignored with a warning
rather than aborting start-up.
"""

from __future__ import annotations

import logging
import os
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class ConstraintMode(str, Enum):
    """How strictly the camera is bound to the path."""

    AUTO = "auto"
    PATH_CONSTRAINED = "path"


class HandBackPolicy(str, Enum):
    """Whether a running hand-back tween may be cut short by a control request."""

    ATOMIC = "atomic"
    INTERRUPTIBLE = "interruptible"


class EngineConfig(BaseModel):
    """Tuning parameters for a single tour session."""

    scroll_speed: float = Field(default=0.1, allow_inf_nan=False, description="Progress units per wheel delta unit")
    scroll_smoothing: float = Field(
        default=0.1, gt=0.0, le=1.0, description="Per-tick fraction of the remaining progress covered"
    )
    step_percent: float = Field(
        default=10.0, ge=0.0, le=100.0, description="Percentage of the path moved by a step command"
    )
    rotation_damping: float = Field(default=0.05, gt=0.0, le=1.0)
    position_damping: float = Field(default=0.1, gt=0.0, le=1.0)
    animation_frames: int = Field(default=120, ge=1, description="Length of the hand-back tween in ticks")
    trigger_radius: float = Field(default=1.0, ge=0.0, allow_inf_nan=False)
    samples_per_segment: int = Field(default=10, ge=1)
    constraint_mode: ConstraintMode = ConstraintMode.AUTO
    free_fly: bool = False
    hand_back_policy: HandBackPolicy = HandBackPolicy.ATOMIC


# Environment variable -> (field name, parser)
_ENV_OVERRIDES: Dict[str, tuple[str, Any]] = {
    "TOUR_SCROLL_SPEED": ("scroll_speed", float),
    "TOUR_SCROLL_SMOOTHING": ("scroll_smoothing", float),
    "TOUR_STEP_PERCENT": ("step_percent", float),
    "TOUR_ROTATION_DAMPING": ("rotation_damping", float),
    "TOUR_POSITION_DAMPING": ("position_damping", float),
    "TOUR_ANIMATION_FRAMES": ("animation_frames", int),
    "TOUR_TRIGGER_RADIUS": ("trigger_radius", float),
    "TOUR_CONSTRAINT_MODE": ("constraint_mode", ConstraintMode),
    "TOUR_FREE_FLY": ("free_fly", lambda v: v.strip().lower() in ("1", "true", "yes", "on")),
    "TOUR_HAND_BACK_POLICY": ("hand_back_policy", HandBackPolicy),
}


def debug_enabled() -> bool:
    """Return True when verbose per-tick logging was requested via ``TOUR_DEBUG``."""
    return bool(os.getenv("TOUR_DEBUG"))


def load_engine_config(**overrides: Any) -> EngineConfig:
    """Build an ``EngineConfig`` from defaults, environment and explicit overrides.

    Explicit keyword overrides take precedence over environment values.
    ``None`` overrides are ignored so request models can pass optional
    fields straight through.

    Returns:
        A validated ``EngineConfig``.

    Raises:
        ConfigurationError: If the combined values fail validation.
    """
    values: Dict[str, Any] = {}
    for env_name, (field_name, parser) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        try:
            values[field_name] = parser(raw)
        except ValueError:
            logger.warning("Ignoring invalid value %r for %s", raw, env_name)
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return EngineConfig(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid engine configuration: {exc}") from exc
