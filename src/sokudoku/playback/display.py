"""Renderer-facing helpers: focus character and elapsed-time display."""

from typing import Tuple


def focus_index(surface: str) -> int:
    """Index of the character the eye should fix on (the middle one)."""
    return max(0, len(surface) // 2)


def focus_split(surface: str) -> Tuple[str, str, str]:
    """Split a chunk into (before, focus, after) around its focus character."""
    if not surface:
        return "", "", ""
    center = focus_index(surface)
    return surface[:center], surface[center], surface[center + 1 :]


def format_elapsed(seconds: float) -> str:
    """Format elapsed seconds as m:ss."""
    total = int(max(0.0, seconds))
    return f"{total // 60}:{total % 60:02d}"
