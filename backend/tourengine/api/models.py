"""
Pydantic data models for the tour navigation API.

These models define the records exchanged with the authoring layer
(waypoints, interactions, hotspots), the input events a viewer sends
while a tour plays, and the per-tick frame state the engine reports
back.  The engine services consume the same records directly, so the
field names follow the wire format used by the viewer (camelCase).

Interactions and input events are tagged unions: ``type`` and ``kind``
respectively select the concrete model, which lets the dispatcher and
the event loop branch on concrete classes instead of raw strings.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, FiniteFloat

from ..services.config import ConstraintMode, HandBackPolicy


class Vector3(BaseModel):
    """Single 3D point or direction."""

    x: FiniteFloat = 0.0
    y: FiniteFloat = 0.0
    z: FiniteFloat = 0.0


class Quaternion(BaseModel):
    """Orientation stored as (x, y, z, w); identity by default."""

    x: FiniteFloat = 0.0
    y: FiniteFloat = 0.0
    z: FiniteFloat = 0.0
    w: FiniteFloat = 1.0


# ---------------------------------------------------------------------------
# Interactions


class AudioInteractionData(BaseModel):
    """Playback parameters for an audio interaction."""

    url: str = Field(default="", description="Source reference of the sound")
    spatialSound: bool = Field(
        default=False, description="Anchor the sound at the owning waypoint's position"
    )
    volume: float = Field(default=1.0, ge=0.0, allow_inf_nan=False)
    loop: bool = True
    autoplay: bool = Field(
        default=True, description="Start playback on enter; when false the sound is only created"
    )
    distanceModel: Literal["linear", "inverse", "exponential"] = "exponential"
    maxDistance: float = Field(default=100.0, gt=0.0, allow_inf_nan=False)
    refDistance: float = Field(default=1.0, gt=0.0, allow_inf_nan=False)
    rolloffFactor: float = Field(default=1.0, ge=0.0, allow_inf_nan=False)
    stopOnExit: bool = Field(
        default=False,
        description="Stop the sound when leaving the waypoint (non-spatial sounds only)",
    )


class InfoInteractionData(BaseModel):
    """Text shown in the shared info overlay."""

    text: str = ""


class AnimationInteractionData(BaseModel):
    """Scene animation reference; accepted but not executed by the engine."""

    animationName: str = ""
    targetMeshName: Optional[str] = None


class CustomInteractionData(BaseModel):
    """Author supplied script; accepted but not executed by the engine."""

    script: str = ""


class AudioInteraction(BaseModel):
    id: str
    type: Literal["audio"] = "audio"
    data: AudioInteractionData = Field(default_factory=AudioInteractionData)


class InfoInteraction(BaseModel):
    id: str
    type: Literal["info"] = "info"
    data: InfoInteractionData = Field(default_factory=InfoInteractionData)


class AnimationInteraction(BaseModel):
    id: str
    type: Literal["animation"] = "animation"
    data: AnimationInteractionData = Field(default_factory=AnimationInteractionData)


class CustomInteraction(BaseModel):
    id: str
    type: Literal["custom"] = "custom"
    data: CustomInteractionData = Field(default_factory=CustomInteractionData)


Interaction = Annotated[
    Union[AudioInteraction, InfoInteraction, AnimationInteraction, CustomInteraction],
    Field(discriminator="type"),
]


class Waypoint(BaseModel):
    """An authored camera pose with the interactions attached to it."""

    position: Vector3
    rotation: Quaternion = Field(default_factory=Quaternion)
    interactions: List[Interaction] = Field(default_factory=list)


class Hotspot(BaseModel):
    """Clickable scene marker.  Stored and returned untouched by the engine."""

    id: str
    position: Vector3
    scale: Vector3 = Field(default_factory=lambda: Vector3(x=1.0, y=1.0, z=1.0))
    title: str = ""
    information: Optional[str] = None
    photoUrl: Optional[str] = None
    activationMode: Literal["click", "hover"] = "click"
    color: str = "#ffffff"


# ---------------------------------------------------------------------------
# Input events


class PointerDownEvent(BaseModel):
    kind: Literal["pointerDown"] = "pointerDown"


class KeyDownEvent(BaseModel):
    kind: Literal["keyDown"] = "keyDown"
    key: Optional[str] = None


class WheelEvent(BaseModel):
    kind: Literal["wheel"] = "wheel"
    deltaY: FiniteFloat


class StepEvent(BaseModel):
    """Discrete forward (+1) or backward (-1) jump along the path."""

    kind: Literal["step"] = "step"
    direction: Literal[-1, 1]


class SetModeEvent(BaseModel):
    kind: Literal["setMode"] = "setMode"
    mode: ConstraintMode


class SetFreeFlyEvent(BaseModel):
    kind: Literal["setFreeFly"] = "setFreeFly"
    enabled: bool


class SetEditModeEvent(BaseModel):
    kind: Literal["setEditMode"] = "setEditMode"
    enabled: bool


class SetMutedEvent(BaseModel):
    kind: Literal["setMuted"] = "setMuted"
    muted: bool


class StartEvent(BaseModel):
    """The viewer's start button: primes every autoplay sound of the tour."""

    kind: Literal["start"] = "start"


InputEvent = Annotated[
    Union[
        PointerDownEvent,
        KeyDownEvent,
        WheelEvent,
        StepEvent,
        SetModeEvent,
        SetFreeFlyEvent,
        SetEditModeEvent,
        SetMutedEvent,
        StartEvent,
    ],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Frame output


class CameraPose(BaseModel):
    position: Vector3
    rotation: Quaternion


class ControlFlags(BaseModel):
    """Current control state, reported so the UI can reflect it."""

    locked: Literal["pathLocked", "userControlled"]
    mode: ConstraintMode
    freeFly: bool
    handingBack: bool
    editMode: bool
    muted: bool
    handBackPolicy: HandBackPolicy


class EffectSignal(BaseModel):
    """Outcome of one enter/exit dispatch for a single interaction."""

    interactionId: str
    interactionType: Literal["audio", "info", "animation", "custom"]
    waypointIndex: int
    phase: Literal["enter", "exit"]
    action: Literal[
        "started",
        "created",
        "resumed",
        "idle",
        "alreadyPlaying",
        "stopped",
        "leftRunning",
        "displayed",
        "cleared",
        "notImplemented",
        "skippedMuted",
        "failed",
    ]


class ActiveEffect(BaseModel):
    """Entry of the active-effect ledger (one live sound per interaction id)."""

    interactionId: str
    source: str
    state: Literal["loading", "ready", "failed", "disposed"]
    playing: bool
    spatial: bool
    volume: float
    loop: bool
    position: Optional[Vector3] = None


class FrameState(BaseModel):
    """Everything the viewer needs after a tick."""

    frame: int = Field(..., description="Number of ticks run so far")
    camera: CameraPose
    progress: float
    target: float
    progressPercent: float
    activeWaypoints: List[int] = Field(default_factory=list)
    control: ControlFlags
    signals: List[EffectSignal] = Field(default_factory=list)
    infoText: Optional[str] = None
    activeEffects: List[ActiveEffect] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Tour session requests/responses


class EngineOverrides(BaseModel):
    """Optional per-tour overrides of the engine tuning constants."""

    scrollSpeed: Optional[FiniteFloat] = None
    animationFrames: Optional[int] = None
    triggerRadius: Optional[FiniteFloat] = None
    scrollSmoothing: Optional[FiniteFloat] = None
    rotationDamping: Optional[FiniteFloat] = None
    positionDamping: Optional[FiniteFloat] = None
    stepPercent: Optional[FiniteFloat] = None
    constraintMode: Optional[ConstraintMode] = None
    freeFly: Optional[bool] = None
    handBackPolicy: Optional[HandBackPolicy] = None


class TourCreateRequest(BaseModel):
    """Request body for creating a tour session."""

    waypoints: Optional[List[Waypoint]] = Field(
        default=None,
        description="Ordered waypoints; when omitted the demo tour along -z is used",
    )
    hotspots: List[Hotspot] = Field(default_factory=list)
    settings: Optional[EngineOverrides] = None


class WaypointsUpdateRequest(BaseModel):
    """Wholesale replacement of a tour's waypoint list."""

    waypoints: List[Waypoint]


class EventsRequest(BaseModel):
    events: List[InputEvent] = Field(..., description="Input events in arrival order")


class EventsResponse(BaseModel):
    queued: int = Field(..., description="Events waiting for the next tick")


class TourResponse(BaseModel):
    """Summary of a tour session."""

    tourId: str
    waypointCount: int
    sampleCount: int
    pathLength: float
    waypoints: List[Waypoint]
    hotspots: List[Hotspot] = Field(default_factory=list)
    frame: FrameState


class TourPathResponse(BaseModel):
    """Sampled path and rotation keyframes of a tour."""

    tourId: str
    points: List[Vector3] = Field(..., description="Dense path samples in order")
    keyframes: List[Quaternion] = Field(..., description="One orientation per waypoint")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ViewerSettings(BaseModel):
    """Viewer preferences persisted across sessions."""

    scrollSpeed: float = Field(default=0.1, gt=0.0, allow_inf_nan=False)
    animationFrames: int = Field(default=120, ge=1)
    cameraMovementSpeed: float = Field(default=0.2, gt=0.0, allow_inf_nan=False)
    cameraRotationSensitivity: float = Field(default=4000.0, gt=0.0, allow_inf_nan=False)
    backgroundColor: str = Field(default="#7D7D7D", pattern=r"^#[0-9A-Fa-f]{6}$")
    constraintMode: ConstraintMode = ConstraintMode.AUTO
    freeFly: bool = False
