"""
Segmentation providers that turn raw text into atomic tokens.

Every provider returns tokens whose concatenation reconstructs the input
exactly; ``validate_tokens`` enforces that on the way out.
"""

import re
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Tuple

from ..core.errors import SegmentationUnavailable
from ..core.logging import log
from ..core.models import Token
from .boundaries import leading_particle

_KANJI = "㐀-䶿一-鿿豈-﫿々〆〇ヶ"
_HIRAGANA = "ぁ-ゟ"
_KATAKANA = "ァ-ヿｦ-ﾟ"
_ALNUM = "A-Za-z0-9０-９Ａ-Ｚａ-ｚ"

SCRIPT_RUN_RE = re.compile(
    rf"""
    (?P<space>\s+)
    |(?P<kanji>[{_KANJI}]+)
    |(?P<hiragana>[{_HIRAGANA}ー]+)
    |(?P<katakana>[{_KATAKANA}ー]+)
    |(?P<alnum>[{_ALNUM}]+(?:['’\-_][{_ALNUM}]+)*)
    |(?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)

WHITESPACE_RUN_RE = re.compile(r"\s+|\S+")


def validate_tokens(tokens: List[Token], text: str) -> None:
    """Raise SegmentationUnavailable unless tokens tile ``text`` exactly."""
    if not text:
        if tokens:
            raise SegmentationUnavailable("tokens returned for empty text")
        return
    if not tokens:
        raise SegmentationUnavailable("no tokens returned for non-empty text")
    if tokens[0].start != 0 or tokens[-1].end != len(text):
        raise SegmentationUnavailable(
            f"tokens span [{tokens[0].start}, {tokens[-1].end}) but text has {len(text)} chars"
        )
    for prev, cur in zip(tokens, tokens[1:]):
        if prev.end != cur.start:
            raise SegmentationUnavailable(f"gap or overlap at offset {prev.end}")
    for token in tokens:
        if not token.surface or text[token.start : token.end] != token.surface:
            raise SegmentationUnavailable(f"token {token.surface!r} does not match text at {token.start}")


def align_surfaces(text: str, surfaces: Iterable[str]) -> List[Token]:
    """Place surfaces onto ``text`` in order, filling skipped whitespace.

    External segmenters commonly drop whitespace; anything else they skip is
    a misalignment.
    """
    tokens: List[Token] = []
    pos = 0

    def fill_gap(until: int) -> None:
        gap = text[pos:until]
        if gap.strip():
            raise SegmentationUnavailable(f"segmenter skipped {gap!r} at offset {pos}")
        tokens.append(Token(gap, pos, until))

    for surface in surfaces:
        if not surface:
            continue
        found = text.find(surface, pos)
        if found == -1:
            raise SegmentationUnavailable(f"surface {surface!r} not found after offset {pos}")
        if found > pos:
            fill_gap(found)
        tokens.append(Token(surface, found, found + len(surface)))
        pos = found + len(surface)

    if pos < len(text):
        fill_gap(len(text))
    return tokens


class Segmenter(ABC):
    """Strategy interface for segmentation providers."""

    name: str = "base"

    def segment(self, text: str) -> List[Token]:
        if not isinstance(text, str):
            raise SegmentationUnavailable(f"expected str, got {type(text).__name__}")
        tokens = self._segment(text)
        validate_tokens(tokens, text)
        return tokens

    @abstractmethod
    def _segment(self, text: str) -> List[Token]:
        raise NotImplementedError


class WhitespaceSegmenter(Segmenter):
    """Whitespace / non-whitespace runs; the fallback for every other provider."""

    name = "whitespace"

    def _segment(self, text: str) -> List[Token]:
        return [Token(m.group(0), m.start(), m.end()) for m in WHITESPACE_RUN_RE.finditer(text)]


class RegexSegmenter(Segmenter):
    """Script-class segmentation tuned for Japanese prose.

    Hiragana following kanji is treated as okurigana and stays on the kanji
    run, except when it starts with a particle: 子供の -> 子供 / の,
    手をあげ -> 手 / を / あげ, 言った -> 言った.
    """

    name = "regex"

    def _segment(self, text: str) -> List[Token]:
        tokens: List[Token] = []
        prev_kind = ""

        for match in SCRIPT_RUN_RE.finditer(text):
            kind = match.lastgroup or "other"
            surface, start, end = match.group(0), match.start(), match.end()

            if kind == "hiragana" and prev_kind == "kanji" and tokens:
                particle = leading_particle(surface)
                if particle:
                    split = start + len(particle)
                    tokens.append(Token(particle, start, split))
                    if split < end:
                        tokens.append(Token(text[split:end], split, end))
                else:
                    head = tokens.pop()
                    tokens.append(Token(head.surface + surface, head.start, end))
            else:
                tokens.append(Token(surface, start, end))
            prev_kind = kind

        return tokens


class CallableSegmenter(Segmenter):
    """Adapter for an external tokenizer that returns surface strings."""

    def __init__(self, func: Callable[[str], Iterable[str]], name: str = "callable"):
        self._func = func
        self.name = name

    def _segment(self, text: str) -> List[Token]:
        try:
            surfaces = list(self._func(text))
        except SegmentationUnavailable:
            raise
        except Exception as e:
            raise SegmentationUnavailable(f"{self.name} failed: {e}") from e
        return align_surfaces(text, surfaces)


class TinySegmenterAdapter(CallableSegmenter):
    """TinySegmenter, the compact statistical word segmenter for Japanese."""

    def __init__(self):
        try:
            import tinysegmenter
        except ImportError as e:
            raise SegmentationUnavailable("tinysegmenter is not installed") from e
        super().__init__(tinysegmenter.TinySegmenter().tokenize, name="tinysegmenter")


SEGMENTERS: Dict[str, Callable[[], Segmenter]] = {
    RegexSegmenter.name: RegexSegmenter,
    "tinysegmenter": TinySegmenterAdapter,
    WhitespaceSegmenter.name: WhitespaceSegmenter,
}


def get_segmenter(name: str) -> Segmenter:
    """Resolve a provider by registry name."""
    factory = SEGMENTERS.get(name.strip().lower()) if isinstance(name, str) else None
    if factory is None:
        raise SegmentationUnavailable(f"unknown segmenter {name!r}; choose from {sorted(SEGMENTERS)}")
    return factory()


def segment_with_fallback(text: str, segmenter: Segmenter) -> Tuple[List[Token], bool]:
    """Segment ``text``; fall back to a whitespace split if the provider fails.

    Returns:
        (tokens, fell_back)
    """
    try:
        return segmenter.segment(text), False
    except SegmentationUnavailable as e:
        log.warning(
            "segment.fallback",
            segmenter=getattr(segmenter, "name", type(segmenter).__name__),
            reason=str(e),
            chars=len(text),
        )
        return WhitespaceSegmenter().segment(text), True
