"""
Routes for persisted viewer preferences.

``GET`` returns the stored preferences (defaults when nothing was
saved), ``PUT`` validates and stores a full set, ``DELETE`` restores the
defaults.  New tour sessions read these values at creation time.
"""

from __future__ import annotations

from fastapi import APIRouter

from .models import ViewerSettings
from ..services.settings_store import get_settings, reset_settings, save_settings

router = APIRouter()


@router.get("/settings", response_model=ViewerSettings)
async def read_settings() -> ViewerSettings:
    return get_settings()


@router.put("/settings", response_model=ViewerSettings)
async def update_settings(body: ViewerSettings) -> ViewerSettings:
    return save_settings(body)


@router.delete("/settings", response_model=ViewerSettings)
async def delete_settings() -> ViewerSettings:
    return reset_settings()
