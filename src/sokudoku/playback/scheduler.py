"""
Drift-corrected playback scheduler.

The scheduler owns the cursor, the rate and every timestamp. Cadence is
derived from an absolute monotonic clock: each step compares ``now`` with
the next due timestamp instead of counting fixed ticks, so late or uneven
steps never accumulate drift.

States:
    Stopped: index and elapsed time are frozen; seek is free.
    Running: ``step()`` is called at least once per frame and advances
        the index whenever the due timestamp has passed.
"""

from __future__ import annotations

import math
import time
from enum import Enum
from typing import Callable, Optional, Sequence

from ..core.errors import ConfigurationInvalid, IndexOutOfRange
from ..core.logging import log
from ..core.models import Chunk, PlaybackState
from ..obs.events import EventAction, EventEmitter, EventLevel

Clock = Callable[[], float]


class RateChangePolicy(str, Enum):
    """How a rate change while running re-arms the next advance."""

    # Time already spent on the current chunk counts toward the new interval
    PRESERVE = "preserve"
    # The current chunk gets a full new interval from the moment of change
    RESTART = "restart"


def validate_rate(rate: float) -> float:
    """Return ``rate`` as float or raise ConfigurationInvalid."""
    try:
        value = float(rate)
    except (TypeError, ValueError) as e:
        raise ConfigurationInvalid(f"rate must be a number, got {rate!r}") from e
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationInvalid(f"rate must be a positive finite number, got {rate!r}")
    return value


class PlaybackScheduler:
    """Advances a cursor over chunks at ``rate`` chunks per minute."""

    def __init__(
        self,
        chunks: Sequence[Chunk] = (),
        rate: float = 300.0,
        clock: Clock = time.monotonic,
        rate_policy: RateChangePolicy = RateChangePolicy.PRESERVE,
        emitter: Optional[EventEmitter] = None,
    ):
        self._clock = clock
        self._rate = validate_rate(rate)
        self.rate_policy = RateChangePolicy(rate_policy)
        self._emitter = emitter
        self._listeners: list[Callable[[], None]] = []

        self._chunks: tuple[Chunk, ...] = tuple(chunks)
        self._index = 0
        self._playing = False
        self._accumulated = 0.0
        self._elapsed = 0.0
        self._run_start: Optional[float] = None
        self._next_due: Optional[float] = None

    # Read-only state

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self._chunks

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_chunk(self) -> Optional[Chunk]:
        if 0 <= self._index < len(self._chunks):
            return self._chunks[self._index]
        return None

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def interval_seconds(self) -> float:
        return 60.0 / self._rate

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def elapsed_seconds(self) -> float:
        return self._elapsed

    @property
    def next_due(self) -> Optional[float]:
        return self._next_due

    def snapshot(self) -> PlaybackState:
        return PlaybackState(
            chunks=[c.surface for c in self._chunks],
            current_index=self._index,
            rate=self._rate,
            is_playing=self._playing,
            elapsed_seconds=self._elapsed,
        )

    def add_stop_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback run synchronously whenever playback stops."""
        self._listeners.append(callback)

    # Transitions

    def load(self, chunks: Sequence[Chunk]) -> None:
        """Replace the chunk sequence; always stops and rewinds first."""
        self.stop()
        self._chunks = tuple(chunks)
        self._index = 0
        self._accumulated = 0.0
        self._elapsed = 0.0
        self._emit(EventAction.REBUILD, chunks=len(self._chunks))

    def start(self, now: Optional[float] = None) -> bool:
        """Stopped -> Running. Returns False (no-op) when there is nothing to play."""
        if self._playing or not self._chunks or self._index >= len(self._chunks):
            return False
        now = self._now(now)
        self._run_start = now
        self._next_due = now + self.interval_seconds
        self._playing = True
        self._emit(EventAction.START, index=self._index, rate=self._rate)
        return True

    def stop(self, now: Optional[float] = None) -> None:
        """Running -> Stopped, keeping the index and folding in elapsed time."""
        if not self._playing:
            return
        now = self._now(now)
        if self._run_start is not None:
            self._accumulated += max(0.0, now - self._run_start)
        self._elapsed = self._accumulated
        self._run_start = None
        self._next_due = None
        self._playing = False
        self._notify_stopped()
        self._emit(EventAction.STOP, index=self._index, elapsed_seconds=round(self._elapsed, 3))

    def seek(self, index: int, strict: bool = False) -> int:
        """
        Jump to ``index``, stopping first and resetting elapsed time.

        Out-of-range targets are clamped to ``[0, len - 1]`` (0 when empty)
        unless ``strict`` is set, in which case IndexOutOfRange is raised.
        """
        self.stop()
        last = max(0, len(self._chunks) - 1)
        target = int(index)
        if not 0 <= target <= last:
            if strict:
                raise IndexOutOfRange(f"index {target} outside [0, {last}]")
            log.debug("playback.seek.clamped", requested=target, last=last)
            target = min(max(target, 0), last)
        self._index = target
        self._accumulated = 0.0
        self._elapsed = 0.0
        self._emit(EventAction.SEEK, index=target)
        return target

    def set_rate(self, rate: float, now: Optional[float] = None) -> None:
        """Change the rate; while running, re-arm per ``rate_policy``."""
        new_rate = validate_rate(rate)
        old_interval = self.interval_seconds
        self._rate = new_rate
        if self._playing and self._next_due is not None:
            now = self._now(now)
            if self.rate_policy is RateChangePolicy.RESTART:
                self._next_due = now + self.interval_seconds
            else:
                self._next_due += self.interval_seconds - old_interval
        self._emit(EventAction.RATE, rate=new_rate, policy=self.rate_policy.value)

    def step(self, now: Optional[float] = None) -> bool:
        """
        One scheduling step. Returns True when the index changed.

        At most one advance happens per step. If the step is late by more
        than one interval (suspended process, backgrounded frame loop) the
        next due time is resynchronised to ``now + interval`` rather than
        firing a burst of catch-up advances.
        """
        if not self._playing or self._run_start is None or self._next_due is None:
            return False
        now = self._now(now)
        self._elapsed = self._accumulated + max(0.0, now - self._run_start)

        if now < self._next_due:
            return False

        next_index = self._index + 1
        if next_index >= len(self._chunks):
            self._finish()
            return True

        self._index = next_index
        interval = self.interval_seconds
        self._next_due += interval
        if now > self._next_due:
            self._emit(
                EventAction.RESYNC,
                level=EventLevel.WARNING,
                index=self._index,
                behind_seconds=round(now - self._next_due, 3),
            )
            self._next_due = now + interval
        return True

    # Internals

    def _finish(self) -> None:
        """End of sequence: stop and rewind to the first chunk."""
        self._playing = False
        self._run_start = None
        self._next_due = None
        self._index = 0
        self._accumulated = 0.0
        self._elapsed = 0.0
        self._notify_stopped()
        self._emit(EventAction.END, chunks=len(self._chunks))

    def _notify_stopped(self) -> None:
        for callback in list(self._listeners):
            callback()

    def _now(self, now: Optional[float]) -> float:
        return self._clock() if now is None else now

    def _emit(self, action: EventAction, level: EventLevel = EventLevel.INFO, **kwargs) -> None:
        if self._emitter is not None:
            self._emitter.emit(action, level, **kwargs)
