"""
Frame driver: calls ``PlaybackScheduler.step`` once per frame on an asyncio loop.

Only one step runs at a time (the loop is single threaded) and stopping is
synchronous: the pending frame handle is cancelled before ``stop()``
returns, so no step executes afterwards.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from ..core.logging import log
from .scheduler import PlaybackScheduler

FrameCallback = Callable[[PlaybackScheduler, bool], None]


class FrameDriver:
    """Repeating per-frame step, the asyncio analogue of an animation frame loop."""

    def __init__(
        self,
        scheduler: PlaybackScheduler,
        frame_rate: int = 60,
        on_frame: Optional[FrameCallback] = None,
    ):
        if frame_rate < 1:
            log.warning("driver.frame_rate.clamped", value=frame_rate, clamped_to=1)
            frame_rate = 1
        self.scheduler = scheduler
        self.frame_interval = 1.0 / frame_rate
        self.on_frame = on_frame
        self.frames = 0

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._done: Optional[asyncio.Future] = None
        scheduler.add_stop_listener(self._cancel_pending)

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> bool:
        """Start the scheduler and begin stepping it. Must run inside a loop."""
        if self.running:
            return False
        loop = asyncio.get_running_loop()
        if not self.scheduler.is_playing and not self.scheduler.start():
            return False
        self._loop = loop
        self._done = loop.create_future()
        self._schedule()
        return True

    def stop(self) -> None:
        """Stop playback; the scheduler's stop listener withdraws the pending frame."""
        self.scheduler.stop()
        self._cancel_pending()

    async def run_until_stopped(self) -> None:
        """Start (if needed) and wait until playback stops for any reason."""
        if not self.running and not self.start():
            return
        if self._done is not None:
            await self._done

    def _schedule(self) -> None:
        if self._loop is None:
            raise RuntimeError("FrameDriver.start() was not called")
        self._handle = self._loop.call_later(self.frame_interval, self._frame)

    def _frame(self) -> None:
        self._handle = None
        advanced = self.scheduler.step()
        self.frames += 1
        if self.on_frame is not None:
            self.on_frame(self.scheduler, advanced)
        if self.scheduler.is_playing:
            self._schedule()
        else:
            self._resolve()

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._resolve()

    def _resolve(self) -> None:
        if self._done is not None and not self._done.done():
            self._done.set_result(None)
