from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .logging import log


class Token(NamedTuple):
    """Atomic span produced by a segmentation provider."""

    surface: str
    start: int
    end: int


class Chunk(NamedTuple):
    """One display unit shown per playback step."""

    surface: str
    start: int = 0  # offset of the first source character
    end: int = 0  # offset past the last source character
    token_count: int = 1
    forced: bool = False  # grew past the length budget by absorption or protection


class GroupingMode(str, Enum):
    ATOMIC = "atomic"
    GROUPED = "grouped"

    @classmethod
    def _missing_(cls, value: object) -> "GroupingMode | None":
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        aliases = {"word": cls.ATOMIC, "bunsetsu": cls.GROUPED}
        if key in aliases:
            return aliases[key]
        for member in cls:
            if member.value == key:
                return member
        return None


class GroupingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: GroupingMode = GroupingMode.GROUPED
    max_chunk_length: int = Field(default=4, ge=1)

    @field_validator("mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return GroupingMode(value)
        return value

    @field_validator("max_chunk_length", mode="before")
    @classmethod
    def _clamp_length(cls, value: Any) -> int:
        try:
            length = int(value)
        except (TypeError, ValueError, OverflowError):
            log.warning("config.max_chunk_length.invalid", value=repr(value), clamped_to=1)
            return 1
        if length < 1:
            log.warning("config.max_chunk_length.clamped", value=length, clamped_to=1)
            return 1
        return length


class PlaybackState(BaseModel):
    """Read-only snapshot of the scheduler for renderers."""

    model_config = ConfigDict(frozen=True)

    chunks: list[str] = []
    current_index: int = 0
    rate: float
    is_playing: bool = False
    elapsed_seconds: float = 0.0

    @property
    def current_chunk(self) -> str | None:
        if 0 <= self.current_index < len(self.chunks):
            return self.chunks[self.current_index]
        return None
