"""
Protected-term merger: keeps configured literal terms inside one chunk.
"""

from typing import List, NamedTuple, Sequence

from ..core.models import Chunk


class TermSpan(NamedTuple):
    start: int
    end: int
    term: str


def find_term_spans(text: str, terms: Sequence[str]) -> List[TermSpan]:
    """
    Locate every occurrence of each term in ``text``.

    Matches of a single term never overlap each other (the scan resumes
    after each accepted match); matches of different terms may.

    Returns:
        Spans sorted by start, longer spans first on ties
    """
    spans: List[TermSpan] = []
    for term in dict.fromkeys(terms):
        if not term:
            continue
        pos = text.find(term)
        while pos != -1:
            spans.append(TermSpan(pos, pos + len(term), term))
            pos = text.find(term, pos + len(term))
    spans.sort(key=lambda s: (s.start, -s.end))
    return spans


def _merge(chunks: Sequence[Chunk]) -> Chunk:
    return Chunk(
        surface="".join(c.surface for c in chunks),
        start=chunks[0].start,
        end=chunks[-1].end,
        token_count=sum(c.token_count for c in chunks),
        forced=True,
    )


def protect(chunks: Sequence[Chunk], terms: Sequence[str], original_text: str) -> List[Chunk]:
    """
    Merge chunks so that no protected term straddles a chunk boundary.

    A chunk overlapping a term is merged with every following chunk that
    starts before the term ends. When terms overlap each other the merge
    group keeps growing, leftmost first, until no term crosses its edge.

    Args:
        chunks: Composed chunks, in source order, carrying source offsets
        terms: Literal terms (exact match, no normalization)
        original_text: The text the chunks were composed from

    Returns:
        New chunk list; chunks without overlap pass through unchanged
    """
    spans = find_term_spans(original_text, terms)
    if not spans or not chunks:
        return list(chunks)

    result: List[Chunk] = []
    n = len(chunks)
    i = 0
    k = 0  # first span that may still overlap chunks[i:]

    while i < n:
        chunk = chunks[i]
        while k < len(spans) and spans[k].end <= chunk.start:
            k += 1
        if k == len(spans) or spans[k].start >= chunk.end:
            result.append(chunk)
            i += 1
            continue

        group_end = spans[k].end
        j = i + 1
        m = k + 1
        while True:
            while j < n and chunks[j].start < group_end:
                j += 1
            covered_to = chunks[j - 1].end
            while m < len(spans) and spans[m].start < covered_to:
                group_end = max(group_end, spans[m].end)
                m += 1
            if j < n and chunks[j].start < group_end:
                continue
            break

        result.append(_merge(chunks[i:j]) if j - i > 1 else chunk)
        i = j

    return result
