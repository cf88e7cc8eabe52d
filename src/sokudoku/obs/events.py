"""Playback event emitter with a typed schema and NDJSON output."""

import json
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from pydantic import BaseModel, Field

from ..core.logging import log


class EventLevel(str, Enum):
    """Event levels for structured logging."""

    INFO = "info"
    WARNING = "warning"


class EventAction(str, Enum):
    """Standard playback actions."""

    REBUILD = "rebuild"
    START = "start"
    STOP = "stop"
    SEEK = "seek"
    RATE = "rate"
    RESYNC = "resync"
    END = "end"


class PlaybackEvent(BaseModel):
    """Typed schema for playback events."""

    ts: str = Field(..., description="ISO 8601 timestamp with Z suffix")
    session_id: str = Field(..., description="Reader session identifier")
    pid: int = Field(..., description="Process ID")
    level: EventLevel = Field(EventLevel.INFO, description="Event level")
    action: EventAction = Field(..., description="Event action")

    index: Optional[int] = None
    chunks: Optional[int] = None
    rate: Optional[float] = None
    elapsed_seconds: Optional[float] = None

    metadata: Dict[str, Any] = Field(default_factory=dict)


class EventEmitter:
    """Emits playback events to structlog and, when a path is set, to NDJSON."""

    def __init__(self, session_id: str, events_path: Optional[str] = None):
        self.session_id = session_id
        self.pid = os.getpid()
        self.events_path = Path(events_path) if events_path else None
        self._file: Optional[TextIO] = None
        self.emitted = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def open(self) -> None:
        """Open the NDJSON file; an unwritable path disables file output."""
        if self.events_path and self._file is None:
            try:
                self.events_path.parent.mkdir(parents=True, exist_ok=True)
                self._file = open(self.events_path, "a", encoding="utf-8")
            except OSError as e:
                log.warning("events.open_failed", path=str(self.events_path), error=str(e))
                self._file = None

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def emit(
        self,
        action: EventAction,
        level: EventLevel = EventLevel.INFO,
        **kwargs: Any,
    ) -> PlaybackEvent:
        """Emit one event; file errors are logged and never raised."""
        known = {k: kwargs.pop(k) for k in ("index", "chunks", "rate", "elapsed_seconds") if k in kwargs}
        event = PlaybackEvent(
            ts=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            session_id=self.session_id,
            pid=self.pid,
            level=level,
            action=action,
            metadata=kwargs,
            **known,
        )
        self.emitted += 1

        log_method = log.warning if level is EventLevel.WARNING else log.debug
        log_method(f"playback.{action.value}", session_id=self.session_id, **known, **kwargs)

        if self._file:
            try:
                self._file.write(event.model_dump_json(exclude_none=True) + "\n")
                self._file.flush()
            except OSError as e:
                log.warning("events.write_failed", path=str(self.events_path), error=str(e))
        return event


def read_events(path: str) -> list:
    """Load an NDJSON event file written by EventEmitter."""
    events = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            if line.strip():
                events.append(json.loads(line))
    return events
