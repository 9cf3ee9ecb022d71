"""
Playback timeline
=================

`AnimationController` moves the time cursor forward one unit per tick,
wrapping from 100 back to 0. It is a two-state machine:

    stopped --play()--> playing --pause()--> stopped
    any     --reset()-> stopped (cursor 0)

Ticks are not driven by a thread. The controller asks a scheduler to call
it back later; in the Streamlit page that scheduler is a
`DeferredScheduler` which the script drains once per rerun.

Every scheduled tick remembers the controller's generation number at the
time it was scheduled. pause() and reset() bump the generation, so a tick
that still fires after cancellation is ignored.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .time_index import AXIS_MAX, AXIS_MIN, clamp_index

logger = logging.getLogger(__name__)

TICK_DELAY_MS = 200

STOPPED = "stopped"
PLAYING = "playing"


class DeferredScheduler:
    """Holds callbacks until `run_pending()` is called."""

    def __init__(self) -> None:
        self._pending: Dict[int, Callable[[], None]] = {}
        self._ids = itertools.count(1)

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: Optional[int]) -> None:
        self._pending.pop(handle, None)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def run_pending(self) -> int:
        """Fire the callbacks queued so far; ones they queue wait for the next call."""
        due, self._pending = self._pending, {}
        for handle in sorted(due):
            due[handle]()
        return len(due)


@dataclass
class AnimationState:
    cursor: int = AXIS_MIN
    is_playing: bool = False
    handle: Optional[int] = None


class AnimationController:
    """Play / pause / reset over the 0-100 time axis."""

    def __init__(self, scheduler=None, on_change: Optional[Callable[[int], None]] = None,
                 tick_delay_ms: int = TICK_DELAY_MS) -> None:
        self.scheduler = scheduler if scheduler is not None else DeferredScheduler()
        self.on_change = on_change
        self.tick_delay_ms = tick_delay_ms
        self.state = AnimationState()
        self._generation = 0

    @property
    def cursor(self) -> int:
        return self.state.cursor

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def status(self) -> str:
        return PLAYING if self.state.is_playing else STOPPED

    # ---------------- Transitions ----------------
    def play(self) -> None:
        if self.state.is_playing:
            return
        self.state.is_playing = True
        logger.debug("Playback started at %d", self.state.cursor)
        self._tick(self._generation)

    def pause(self) -> None:
        self._cancel()
        self.state.is_playing = False

    def toggle(self) -> None:
        if self.state.is_playing:
            self.pause()
        else:
            self.play()

    def reset(self) -> None:
        self.pause()
        self.state.cursor = AXIS_MIN
        self._notify()

    def set_cursor(self, value: int) -> None:
        """Jump to `value`; playback, if running, continues from there."""
        self.state.cursor = clamp_index(value)
        self._notify()

    # ---------------- Ticks ----------------
    def _tick(self, generation: int) -> None:
        if generation != self._generation or not self.state.is_playing:
            logger.debug("Dropped stale tick (generation %d)", generation)
            return
        self.state.handle = None
        cursor = self.state.cursor + 1
        if cursor > AXIS_MAX:
            cursor = AXIS_MIN
        self.state.cursor = cursor
        self._notify()
        # the listener may have paused us
        if self.state.is_playing and generation == self._generation:
            self.state.handle = self.scheduler.call_later(
                self.tick_delay_ms / 1000.0, lambda: self._tick(generation)
            )

    def _cancel(self) -> None:
        self._generation += 1
        if self.state.handle is not None:
            self.scheduler.cancel(self.state.handle)
            self.state.handle = None

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.state.cursor)
