"""
Character classes and token classification for chunk composition.
"""

from enum import Enum
from typing import FrozenSet

OPENING_BRACKETS: FrozenSet[str] = frozenset("「『（(【[{〈《〔＜<")
CLOSING_BRACKETS: FrozenSet[str] = frozenset("」』）)】]}〉》〕＞>")

# Sentence and clause marks that always attach to the preceding chunk
CLOSING_PUNCTUATION: FrozenSet[str] = CLOSING_BRACKETS | frozenset(
    "、。，．,.?!？！…‥"
)

SMALL_TSU: FrozenSet[str] = frozenset("っッ")

PARTICLES = ("は", "が", "を", "に", "へ", "と", "で", "から", "より", "まで", "や", "の", "も")
AUXILIARIES = ("です", "ます", "た", "だ", "ない", "ね", "よ", "か", "な")
SUFFIXES = ("さん", "ちゃん", "くん", "たち", "達", "様", "的")

DEPENDENT_ELEMENTS: FrozenSet[str] = frozenset(PARTICLES + AUXILIARIES + SUFFIXES)

# Longest first so that "から" wins over a hypothetical "か" prefix
_PARTICLES_BY_LENGTH = tuple(sorted(PARTICLES, key=len, reverse=True))


class TokenClass(Enum):
    """How a token participates in chunk composition."""

    BLANK = "blank"
    OPENING = "opening"
    CLOSING = "closing"
    DEPENDENT = "dependent"
    CONTENT = "content"


def is_blank(surface: str) -> bool:
    return not surface.strip()


def is_opening_punctuation(surface: str) -> bool:
    """True when every character is an opening bracket."""
    return bool(surface) and all(ch in OPENING_BRACKETS for ch in surface)


def is_closing_punctuation(surface: str) -> bool:
    """True when every character is closing punctuation."""
    return bool(surface) and all(ch in CLOSING_PUNCTUATION for ch in surface)


def is_dependent(surface: str) -> bool:
    return surface in DEPENDENT_ELEMENTS


def classify_token(surface: str) -> TokenClass:
    """Classify a token surface. Punctuation checks win over dependency."""
    if is_blank(surface):
        return TokenClass.BLANK
    stripped = surface.strip()
    if is_closing_punctuation(stripped):
        return TokenClass.CLOSING
    if is_opening_punctuation(stripped):
        return TokenClass.OPENING
    if is_dependent(stripped):
        return TokenClass.DEPENDENT
    return TokenClass.CONTENT


def leading_particle(text: str) -> str:
    """Return the longest particle that ``text`` starts with, or ''."""
    for particle in _PARTICLES_BY_LENGTH:
        if text.startswith(particle):
            return particle
    return ""


def ends_with_small_tsu(surface: str) -> bool:
    return bool(surface) and surface[-1] in SMALL_TSU


def opening_split_point(surface: str) -> int:
    """Index to split before an interior opening bracket, or -1.

    Only splits when the text in front of the bracket holds something other
    than opening brackets, so a run like 「『 stays bound.
    """
    for pos in range(1, len(surface)):
        if surface[pos] in OPENING_BRACKETS and not is_opening_punctuation(surface[:pos]):
            return pos
    return -1


def closing_split_point(surface: str) -> int:
    """Index to split after an interior closing bracket, or -1.

    Trailing closing punctuation stays attached, so 」。 is never broken.
    """
    for pos in range(len(surface) - 1):
        if surface[pos] in CLOSING_BRACKETS and not is_closing_punctuation(surface[pos + 1 :]):
            return pos + 1
    return -1
