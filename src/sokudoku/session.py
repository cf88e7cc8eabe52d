"""
Reader session: the surface the UI layer talks to.

Holds the raw text and composition settings, rebuilds the chunk sequence
whenever any of them change, and forwards playback control to the
scheduler. Every recoverable error is handled here; nothing raises across
this interface.
"""

from __future__ import annotations

import math
import time
import uuid
from typing import Any, Dict, Optional, Sequence, Union

from pydantic import ValidationError

from .chunking.engine import build_chunks
from .chunking.segmenters import Segmenter
from .core.config import SETTINGS, Settings
from .core.errors import ConfigurationInvalid
from .core.logging import log
from .core.models import Chunk, GroupingConfig, PlaybackState
from .obs.events import EventEmitter
from .playback.scheduler import Clock, PlaybackScheduler, RateChangePolicy, validate_rate


class ReaderSession:
    """Text + configuration in, chunk sequence and playback cursor out."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Clock = time.monotonic,
        segmenter: Union[Segmenter, str, None] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        settings = settings or SETTINGS
        self.session_id = uuid.uuid4().hex[:12]
        self.min_rate = max(float(settings.MIN_RATE), 1e-6)
        self.emitter = emitter or EventEmitter(self.session_id, settings.EVENTS_PATH)
        self.emitter.open()

        self._text = ""
        self._segmenter: Union[Segmenter, str] = segmenter or settings.SEGMENTER
        self._terms: list[str] = list(settings.PROTECTED_TERMS)
        self._config = self._coerce_config(
            {"mode": settings.GROUPING_MODE, "max_chunk_length": settings.MAX_CHUNK_LENGTH},
            fallback=GroupingConfig(),
        )

        try:
            policy = RateChangePolicy(settings.RATE_CHANGE_POLICY)
        except ValueError:
            log.warning("config.rate_change_policy.invalid", value=settings.RATE_CHANGE_POLICY)
            policy = RateChangePolicy.PRESERVE

        self.scheduler = PlaybackScheduler(
            rate=self._clamp_rate(settings.RATE),
            clock=clock,
            rate_policy=policy,
            emitter=self.emitter,
        )

    # Inputs that trigger a rebuild

    def set_text(self, raw: str) -> None:
        self._text = raw if isinstance(raw, str) else ""
        self._rebuild()

    def set_grouping_config(self, config: Union[GroupingConfig, Dict[str, Any]]) -> None:
        self._config = self._coerce_config(config, fallback=self._config)
        self._rebuild()

    def set_protected_terms(self, terms: Sequence[str]) -> None:
        self._terms = [t for t in terms if isinstance(t, str) and t]
        self._rebuild()

    # Playback control

    def start(self) -> bool:
        return self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    def seek(self, index: int) -> int:
        try:
            target = int(index)
        except (TypeError, ValueError, OverflowError):
            # +inf means "the end"; anything else unusable means the start
            target = len(self.chunks) if index == math.inf else 0
            log.warning("playback.seek.invalid", value=repr(index), clamped_to=target)
        return self.scheduler.seek(target)

    def set_rate(self, chunks_per_minute: float) -> float:
        rate = self._clamp_rate(chunks_per_minute)
        self.scheduler.set_rate(rate)
        return rate

    def step(self, now: Optional[float] = None) -> bool:
        """Frame callback hook for hosts that run their own render loop."""
        return self.scheduler.step(now)

    def close(self) -> None:
        self.scheduler.stop()
        self.emitter.close()

    # Read-only state

    @property
    def text(self) -> str:
        return self._text

    @property
    def grouping_config(self) -> GroupingConfig:
        return self._config

    @property
    def protected_terms(self) -> tuple[str, ...]:
        return tuple(self._terms)

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self.scheduler.chunks

    @property
    def current_index(self) -> int:
        return self.scheduler.current_index

    @property
    def current_chunk(self) -> Optional[Chunk]:
        return self.scheduler.current_chunk

    @property
    def is_playing(self) -> bool:
        return self.scheduler.is_playing

    @property
    def elapsed_seconds(self) -> float:
        return self.scheduler.elapsed_seconds

    @property
    def rate(self) -> float:
        return self.scheduler.rate

    @property
    def total_character_count(self) -> int:
        return len(self._text)

    def state(self) -> PlaybackState:
        return self.scheduler.snapshot()

    # Internals

    def _rebuild(self) -> None:
        self.scheduler.stop()
        chunks = build_chunks(self._text, self._config, self._terms, self._segmenter)
        self.scheduler.load(chunks)
        log.info(
            "session.rebuild",
            session_id=self.session_id,
            chars=len(self._text),
            chunks=len(chunks),
            mode=self._config.mode.value,
            max_chunk_length=self._config.max_chunk_length,
        )

    def _clamp_rate(self, rate: Any) -> float:
        try:
            return max(validate_rate(rate), self.min_rate)
        except ConfigurationInvalid as e:
            log.warning("config.rate.clamped", value=repr(rate), clamped_to=self.min_rate, reason=str(e))
            return self.min_rate

    @staticmethod
    def _coerce_config(
        config: Union[GroupingConfig, Dict[str, Any]], fallback: GroupingConfig
    ) -> GroupingConfig:
        if isinstance(config, GroupingConfig):
            return config
        try:
            return GroupingConfig(**{**fallback.model_dump(), **config})
        except (ValidationError, TypeError, OverflowError) as e:
            log.warning("config.grouping.invalid", value=repr(config), error=str(e))
            return fallback
