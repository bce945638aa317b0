"""
Routes for tour sessions.

A tour session wraps one ``TourEngine``.  Clients create a session from
a waypoint list, post input events as the viewer produces them and
drive the engine with ``tick`` requests, reading back the frame state
(camera pose, progress, active triggers and effects) after each.

Sessions are held in an in-memory registry keyed by a uuid hex id and
are lost on restart.
"""

from __future__ import annotations

import csv
import io
import logging
import uuid
from typing import Dict, List

from fastapi import APIRouter, HTTPException, Query, Response

from .models import (
    EffectSignal,
    EventsRequest,
    EventsResponse,
    FrameState,
    TourCreateRequest,
    TourPathResponse,
    TourResponse,
    WaypointsUpdateRequest,
)
from ..services.config import load_engine_config
from ..services.errors import ConfigurationError
from ..services.navigation import TourEngine
from ..services.path_builder import default_tour_waypoints, path_points
from ..services.settings_store import get_settings
from ..services.vecmath import to_quaternion, to_vector3

logger = logging.getLogger(__name__)

router = APIRouter()

# tourId -> {"engine": TourEngine, "hotspots": List[Hotspot]}
tour_registry: Dict[str, Dict] = {}

MAX_TICKS_PER_REQUEST: int = 10000

# EngineOverrides field -> EngineConfig field
_OVERRIDE_FIELDS: Dict[str, str] = {
    "scrollSpeed": "scroll_speed",
    "animationFrames": "animation_frames",
    "triggerRadius": "trigger_radius",
    "scrollSmoothing": "scroll_smoothing",
    "rotationDamping": "rotation_damping",
    "positionDamping": "position_damping",
    "stepPercent": "step_percent",
    "constraintMode": "constraint_mode",
    "freeFly": "free_fly",
    "handBackPolicy": "hand_back_policy",
}


def _get_entry(tour_id: str) -> Dict:
    entry = tour_registry.get(tour_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Tour not found")
    return entry


def _tour_response(tour_id: str, entry: Dict) -> TourResponse:
    engine: TourEngine = entry["engine"]
    return TourResponse(
        tourId=tour_id,
        waypointCount=engine.path.waypoint_count,
        sampleCount=engine.path.sample_count,
        pathLength=engine.path.length(),
        waypoints=engine.waypoints,
        hotspots=entry["hotspots"],
        frame=engine.last_frame,
    )


@router.post("/tours", response_model=TourResponse, status_code=201)
async def create_tour(body: TourCreateRequest) -> TourResponse:
    """Create a tour session.

    Stored viewer settings supply the scroll speed, hand-back length,
    constraint mode and free fly flag; values in ``body.settings`` take
    precedence over them.

    Args:
        body: Waypoints (the demo tour when omitted), hotspots and
            optional engine overrides.

    Returns:
        TourResponse: The new session with its initial frame.
    """
    stored = get_settings()
    values = {
        "scroll_speed": stored.scrollSpeed,
        "animation_frames": stored.animationFrames,
        "constraint_mode": stored.constraintMode,
        "free_fly": stored.freeFly,
    }
    if body.settings is not None:
        for name, field_name in _OVERRIDE_FIELDS.items():
            value = getattr(body.settings, name)
            if value is not None:
                values[field_name] = value
    waypoints = body.waypoints if body.waypoints is not None else default_tour_waypoints()
    try:
        config = load_engine_config(**values)
        engine = TourEngine(waypoints, config)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    tour_id = uuid.uuid4().hex
    entry = {"engine": engine, "hotspots": list(body.hotspots)}
    tour_registry[tour_id] = entry
    logger.info("Created tour %s with %d waypoints", tour_id, engine.path.waypoint_count)
    return _tour_response(tour_id, entry)


@router.get("/tours/{tour_id}", response_model=TourResponse)
async def get_tour(tour_id: str) -> TourResponse:
    return _tour_response(tour_id, _get_entry(tour_id))


@router.delete("/tours/{tour_id}", status_code=204)
async def delete_tour(tour_id: str) -> Response:
    entry = _get_entry(tour_id)
    entry["engine"].close()
    del tour_registry[tour_id]
    logger.info("Deleted tour %s", tour_id)
    return Response(status_code=204)


@router.put("/tours/{tour_id}/waypoints", response_model=TourResponse)
async def replace_waypoints(tour_id: str, body: WaypointsUpdateRequest) -> TourResponse:
    """Replace the waypoint list of a tour and rebuild its path."""
    entry = _get_entry(tour_id)
    try:
        entry["engine"].set_waypoints(body.waypoints)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _tour_response(tour_id, entry)


@router.post("/tours/{tour_id}/events", response_model=EventsResponse, status_code=202)
async def post_events(tour_id: str, body: EventsRequest) -> EventsResponse:
    """Queue input events; they are applied at the start of the next tick."""
    engine: TourEngine = _get_entry(tour_id)["engine"]
    for event in body.events:
        engine.post(event)
    return EventsResponse(queued=engine.pending_events)


@router.post("/tours/{tour_id}/tick", response_model=FrameState)
async def tick_tour(
    tour_id: str,
    frames: int = Query(1, ge=1, le=MAX_TICKS_PER_REQUEST, description="Number of ticks to run"),
) -> FrameState:
    """Run ``frames`` ticks and return the frame state after the last one.

    Effect signals and warnings of every tick in the batch are merged
    into the returned frame so none are lost when several ticks run in
    one request.
    """
    engine: TourEngine = _get_entry(tour_id)["engine"]
    signals: List[EffectSignal] = []
    warnings: List[str] = []
    frame = engine.last_frame
    for _ in range(frames):
        frame = engine.tick()
        signals.extend(frame.signals)
        warnings.extend(frame.warnings)
    return frame.model_copy(update={"signals": signals, "warnings": warnings})


@router.get("/tours/{tour_id}/path", response_model=TourPathResponse)
async def get_tour_path(tour_id: str) -> TourPathResponse:
    engine: TourEngine = _get_entry(tour_id)["engine"]
    path = engine.path
    return TourPathResponse(
        tourId=tour_id,
        points=[to_vector3(p) for p in path.samples],
        keyframes=[to_quaternion(q) for q in path.keyframes],
        metadata={
            "length": path.length(),
            "points": path.sample_count,
            "waypoints": path.waypoint_count,
            "samplesPerSegment": engine.config.samples_per_segment,
        },
    )


@router.get("/tours/{tour_id}/export")
async def export_tour_path(tour_id: str) -> Response:
    """Export the sampled path as CSV with an ``x,y,z`` header."""
    engine: TourEngine = _get_entry(tour_id)["engine"]
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["x", "y", "z"])
    for x, y, z in path_points(engine.path):
        writer.writerow([x, y, z])
    return Response(content=buffer.getvalue(), media_type="text/csv")
