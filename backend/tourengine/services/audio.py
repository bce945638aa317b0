"""
Sound handles and the in-memory audio backend.

The engine never decodes or plays audio itself.  It asks an
``AudioBackend`` for a ``SoundHandle`` and tells the handle to play,
pause or stop; whoever renders the tour (a browser client polling the
frame state, a desktop viewer) follows the resulting ledger.

Creating a sound is fire and forget.  A new handle starts in the
``loading`` state and becomes ``ready`` when the backend resolves it,
which happens in ``poll()`` at the start of the next tick rather than
inside the call that created it.  A play request made while loading is
remembered and honoured on readiness.  Hosts that load resources
themselves construct the backend with ``auto_ready=False`` and report
the outcome through ``resolve()`` or ``fail()``.  Disposing a handle
that is still loading withdraws it from the backend.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

import numpy as np

from ..api.models import AudioInteractionData
from .errors import ResourceError

logger = logging.getLogger(__name__)


class SoundState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    DISPOSED = "disposed"


@dataclass(frozen=True)
class SoundOptions:
    volume: float = 1.0
    loop: bool = True
    spatial: bool = False
    distance_model: str = "exponential"
    max_distance: float = 100.0
    ref_distance: float = 1.0
    rolloff_factor: float = 1.0

    @classmethod
    def from_audio_data(cls, data: AudioInteractionData) -> "SoundOptions":
        return cls(
            volume=data.volume,
            loop=data.loop,
            spatial=data.spatialSound,
            distance_model=data.distanceModel,
            max_distance=data.maxDistance,
            ref_distance=data.refDistance,
            rolloff_factor=data.rolloffFactor,
        )


class SoundHandle:
    """Live state of one sound."""

    def __init__(
        self,
        sound_id: str,
        source: str,
        options: SoundOptions,
        backend: Optional["AudioBackend"] = None,
    ) -> None:
        self.sound_id = sound_id
        self.source = source
        self.options = options
        self.state = SoundState.LOADING
        self.is_playing = False
        self.position: Optional[np.ndarray] = None
        self.error: Optional[ResourceError] = None
        self._backend = backend
        self._play_requested = False
        self._ready_callbacks: List[Callable[["SoundHandle"], None]] = []
        self._error_callbacks: List[Callable[["SoundHandle", ResourceError], None]] = []

    @property
    def is_active(self) -> bool:
        """Playing, or loading with a play request pending."""
        return self.is_playing or (self.state == SoundState.LOADING and self._play_requested)

    def on_ready(self, callback: Callable[["SoundHandle"], None]) -> None:
        self._ready_callbacks.append(callback)

    def on_error(self, callback: Callable[["SoundHandle", ResourceError], None]) -> None:
        self._error_callbacks.append(callback)

    def set_position(self, position: np.ndarray) -> None:
        self.position = np.asarray(position, dtype=float).copy()

    def play(self) -> None:
        if self.state == SoundState.LOADING:
            self._play_requested = True
        elif self.state == SoundState.READY:
            self.is_playing = True

    def pause(self) -> None:
        self._play_requested = False
        self.is_playing = False

    def stop(self) -> None:
        self.pause()

    def dispose(self) -> None:
        self.stop()
        self.state = SoundState.DISPOSED
        if self._backend is not None:
            self._backend._forget(self)

    def _resolve(self) -> None:
        if self.state != SoundState.LOADING:
            return
        self.state = SoundState.READY
        if self._play_requested:
            self.is_playing = True
            self._play_requested = False
        for callback in self._ready_callbacks:
            callback(self)

    def _fail(self, reason: str) -> None:
        if self.state != SoundState.LOADING:
            return
        self.state = SoundState.FAILED
        self.is_playing = False
        self._play_requested = False
        self.error = ResourceError(self.sound_id, reason)
        for callback in self._error_callbacks:
            callback(self, self.error)


class AudioBackend:
    """Creates sound handles and resolves their readiness between ticks.

    Args:
        auto_ready: Resolve every pending sound on the next ``poll()``.
            When False, readiness is reported through ``resolve``/``fail``.
    """

    def __init__(self, auto_ready: bool = True) -> None:
        self.auto_ready = auto_ready
        # sound id -> handle still loading, in request order
        self._pending: Dict[str, SoundHandle] = {}

    def create_sound(self, sound_id: str, source: str, options: SoundOptions) -> SoundHandle:
        """Create a sound without waiting for it to load.

        Raises:
            ResourceError: If the sound cannot even be requested.
        """
        if not source or not source.strip():
            raise ResourceError(sound_id, "no audio source given")
        handle = SoundHandle(sound_id, source, options, backend=self)
        self._pending[sound_id] = handle
        logger.debug("Requested sound %s from %s", sound_id, source)
        return handle

    def poll(self) -> None:
        """Resolve pending sounds; called once at the start of every tick."""
        if not self.auto_ready:
            return
        handles = list(self._pending.values())
        self._pending.clear()
        for handle in handles:
            handle._resolve()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def resolve(self, sound_id: str) -> None:
        handle = self._pending.pop(sound_id, None)
        if handle is not None:
            handle._resolve()

    def fail(self, sound_id: str, reason: str) -> None:
        handle = self._pending.pop(sound_id, None)
        if handle is not None:
            handle._fail(reason)

    def _forget(self, handle: SoundHandle) -> None:
        if self._pending.get(handle.sound_id) is handle:
            del self._pending[handle.sound_id]
            logger.debug("Dropped pending sound %s on dispose", handle.sound_id)
