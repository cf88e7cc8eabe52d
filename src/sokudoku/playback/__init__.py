"""
Playback: drift-corrected scheduling of a chunk sequence.
"""

from .display import focus_split, format_elapsed
from .driver import FrameDriver
from .scheduler import PlaybackScheduler, RateChangePolicy, validate_rate

__all__ = [
    "FrameDriver",
    "PlaybackScheduler",
    "RateChangePolicy",
    "focus_split",
    "format_elapsed",
    "validate_rate",
]
