"""
Persistence of viewer preferences.

The viewer keeps one set of preferences (scroll speed, hand-back
length, free camera speed and sensitivity, background colour, default
constraint mode) across sessions.  They are stored as a single
``ViewerSettingsRecord`` row; reading before anything was saved yields
the defaults without writing them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

from ..api.models import ViewerSettings
from .config import ConstraintMode
from .db import create_db_and_tables, get_session

logger = logging.getLogger(__name__)

SETTINGS_ROW_ID = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ViewerSettingsRecord(SQLModel, table=True):
    """The persisted preferences row."""

    id: Optional[int] = Field(default=None, primary_key=True)
    scroll_speed: float = 0.1
    animation_frames: int = 120
    camera_movement_speed: float = 0.2
    camera_rotation_sensitivity: float = 4000.0
    background_color: str = "#7D7D7D"
    constraint_mode: str = ConstraintMode.AUTO.value
    free_fly: bool = False
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_settings(self) -> ViewerSettings:
        return ViewerSettings(
            scrollSpeed=self.scroll_speed,
            animationFrames=self.animation_frames,
            cameraMovementSpeed=self.camera_movement_speed,
            cameraRotationSensitivity=self.camera_rotation_sensitivity,
            backgroundColor=self.background_color,
            constraintMode=ConstraintMode(self.constraint_mode),
            freeFly=self.free_fly,
        )


def init_db() -> None:
    """Create the settings table if it does not exist yet."""
    create_db_and_tables()


def get_settings() -> ViewerSettings:
    """Return the stored preferences, or the defaults when none were saved."""
    with get_session() as session:
        record = session.get(ViewerSettingsRecord, SETTINGS_ROW_ID)
        if record is None:
            return ViewerSettings()
        return record.to_settings()


def save_settings(settings: ViewerSettings) -> ViewerSettings:
    """Insert or overwrite the preferences row.

    Args:
        settings: Validated preferences to store.

    Returns:
        The preferences as stored.
    """
    with get_session() as session:
        record = session.get(ViewerSettingsRecord, SETTINGS_ROW_ID)
        if record is None:
            record = ViewerSettingsRecord(id=SETTINGS_ROW_ID)
        record.scroll_speed = settings.scrollSpeed
        record.animation_frames = settings.animationFrames
        record.camera_movement_speed = settings.cameraMovementSpeed
        record.camera_rotation_sensitivity = settings.cameraRotationSensitivity
        record.background_color = settings.backgroundColor
        record.constraint_mode = settings.constraintMode.value
        record.free_fly = settings.freeFly
        record.updated_at = _utcnow()
        session.add(record)
        session.commit()
        session.refresh(record)
        logger.info("Viewer settings saved")
        return record.to_settings()


def reset_settings() -> ViewerSettings:
    """Delete the stored preferences and return the defaults."""
    with get_session() as session:
        record = session.get(ViewerSettingsRecord, SETTINGS_ROW_ID)
        if record is not None:
            session.delete(record)
            session.commit()
            logger.info("Viewer settings reset to defaults")
    return ViewerSettings()
