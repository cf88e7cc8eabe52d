"""
Chunk composer: turns atomic tokens into display-sized chunks.

Grouped composition applies, per token and in this order:

1. Blank tokens are dropped.
2. Dependent elements (particles, auxiliaries, suffixes) attach to the
   accumulating chunk.
3. Closing punctuation attaches to the accumulating chunk, even a closed one.
4. Opening punctuation starts a new chunk; content following a chunk made
   only of opening punctuation binds to it.
5. Anything else joins the accumulator while it fits ``max_chunk_length``.
   A token longer than the budget is never split.
6. A chunk ending in small tsu takes one character from the next chunk,
   unless that character is an opening bracket (rule 4 wins).
7. An interior opening bracket splits the accumulator before it.
8. An interior closing bracket splits the accumulator after it.

Absorption (2, 3, 4) takes precedence over the budget (5).
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Union

from ..core.errors import SegmentationUnavailable
from ..core.logging import log
from ..core.models import Chunk, GroupingConfig, GroupingMode, Token
from .boundaries import (
    CLOSING_PUNCTUATION,
    OPENING_BRACKETS,
    TokenClass,
    classify_token,
    closing_split_point,
    ends_with_small_tsu,
    is_opening_punctuation,
    opening_split_point,
)
from .protect import protect
from .segmenters import (
    Segmenter,
    WhitespaceSegmenter,
    get_segmenter,
    segment_with_fallback,
)


class _Span:
    """Mutable accumulator tracking the source offset of every character."""

    __slots__ = ("chars", "offsets", "token_ids", "forced")

    def __init__(self) -> None:
        self.chars: List[str] = []
        self.offsets: List[int] = []
        self.token_ids: List[int] = []
        self.forced = False

    @property
    def text(self) -> str:
        return "".join(self.chars)

    def __len__(self) -> int:
        return len(self.chars)

    def add(self, token: Token, token_id: int) -> None:
        for i, ch in enumerate(token.surface):
            self.chars.append(ch)
            self.offsets.append(token.start + i)
            self.token_ids.append(token_id)

    def split(self, pos: int) -> "_Span":
        """Cut at ``pos``; return the head and keep the tail in place."""
        head = _Span()
        head.chars, self.chars = self.chars[:pos], self.chars[pos:]
        head.offsets, self.offsets = self.offsets[:pos], self.offsets[pos:]
        head.token_ids, self.token_ids = self.token_ids[:pos], self.token_ids[pos:]
        head.forced = self.forced
        return head

    def to_chunk(self) -> Chunk:
        return Chunk(
            surface=self.text,
            start=self.offsets[0],
            end=self.offsets[-1] + 1,
            token_count=len(set(self.token_ids)),
            forced=self.forced,
        )


class _GroupedComposer:
    """Greedy left-to-right accumulator for grouped mode."""

    def __init__(self, max_chunk_length: int):
        self.max_chunk_length = max_chunk_length
        self.done: List[_Span] = []
        self.acc = _Span()

    def flush(self) -> None:
        if len(self.acc):
            self.done.append(self.acc)
        self.acc = _Span()

    def start_new(self, token: Token, token_id: int) -> None:
        self.flush()
        self.acc.add(token, token_id)

    def absorb(self, token: Token, token_id: int) -> None:
        if len(self.acc) + len(token.surface) > self.max_chunk_length:
            self.acc.forced = True
        self.acc.add(token, token_id)

    def feed(self, token: Token, token_id: int, kind: TokenClass) -> None:
        acc_text = self.acc.text
        if not acc_text:
            self.acc.add(token, token_id)
        elif kind is TokenClass.CLOSING:
            self.absorb(token, token_id)
        elif is_opening_punctuation(acc_text):
            self.absorb(token, token_id)
        elif kind is TokenClass.OPENING:
            self.start_new(token, token_id)
        elif kind is TokenClass.DEPENDENT:
            self.absorb(token, token_id)
        elif acc_text[-1] in CLOSING_PUNCTUATION:
            # closed chunk: only punctuation and dependents may still attach
            self.start_new(token, token_id)
        elif len(acc_text) + len(token.surface) > self.max_chunk_length:
            self.start_new(token, token_id)
        else:
            self.acc.add(token, token_id)
        self.resplit()

    def resplit(self) -> None:
        while True:
            text = self.acc.text
            pos = opening_split_point(text)
            if pos == -1:
                pos = closing_split_point(text)
            if pos == -1:
                return
            head = self.acc.split(pos)
            head.forced = head.forced and len(head) > self.max_chunk_length
            self.acc.forced = self.acc.forced and len(self.acc) > self.max_chunk_length
            self.done.append(head)

    def finish(self) -> List[_Span]:
        self.flush()
        return self.done


def _carry_small_tsu(spans: List[_Span], max_chunk_length: int) -> List[_Span]:
    """Move one leading character onto any chunk that ends in small tsu."""
    for cur, nxt in zip(spans, spans[1:]):
        if not (len(cur) and len(nxt)) or not ends_with_small_tsu(cur.text):
            continue
        # an opening bracket always starts its chunk
        if nxt.chars[0] in OPENING_BRACKETS:
            continue
        cur.chars.append(nxt.chars.pop(0))
        cur.offsets.append(nxt.offsets.pop(0))
        cur.token_ids.append(nxt.token_ids.pop(0))
        if len(cur) > max_chunk_length:
            cur.forced = True
    return [span for span in spans if len(span)]


def _tokens_well_formed(tokens: Sequence[Token]) -> bool:
    for token in tokens:
        if token.end - token.start != len(token.surface):
            return False
    return all(prev.end == cur.start for prev, cur in zip(tokens, tokens[1:]))


def _atomic(tokens: Iterable[Token]) -> List[Chunk]:
    return [Chunk(surface=t.surface, start=t.start, end=t.end) for t in tokens]


def compose(tokens: Sequence[Token], config: Optional[GroupingConfig] = None) -> List[Chunk]:
    """
    Compose atomic tokens into display chunks.

    Pure and total: malformed token sequences degrade to one chunk per
    non-blank token instead of failing.

    Args:
        tokens: Atomic tokens tiling the source text
        config: Grouping mode and length budget

    Returns:
        Ordered list of chunks
    """
    config = config or GroupingConfig()
    kept = [t for t in tokens if classify_token(t.surface) is not TokenClass.BLANK]
    if not kept:
        return []

    if config.mode is GroupingMode.ATOMIC:
        return _atomic(kept)

    if not _tokens_well_formed(tokens):
        log.warning("compose.malformed_tokens", tokens=len(tokens), fallback="atomic")
        return _atomic(kept)

    composer = _GroupedComposer(config.max_chunk_length)
    for token_id, token in enumerate(kept):
        composer.feed(token, token_id, classify_token(token.surface))

    spans = _carry_small_tsu(composer.finish(), config.max_chunk_length)
    return [span.to_chunk() for span in spans]


def build_chunks(
    text: str,
    config: Optional[GroupingConfig] = None,
    terms: Sequence[str] = (),
    segmenter: Union[Segmenter, str, None] = None,
) -> List[Chunk]:
    """Full pipeline: segment (with fallback), compose, protect terms."""
    if not text:
        return []
    if segmenter is None or isinstance(segmenter, str):
        name = segmenter or "regex"
        try:
            segmenter = get_segmenter(name)
        except SegmentationUnavailable as e:
            log.warning("segment.unavailable", segmenter=name, reason=str(e))
            segmenter = WhitespaceSegmenter()

    tokens, fell_back = segment_with_fallback(text, segmenter)
    chunks = compose(tokens, config)
    chunks = protect(chunks, terms, text)

    log.debug(
        "chunk.build",
        chars=len(text),
        tokens=len(tokens),
        chunks=len(chunks),
        fell_back=fell_back,
    )
    return chunks
