"""
Chunk assurance and quality reporting.
"""

import re
import statistics
from typing import Dict, List, Optional, Sequence

from ..core.models import Chunk, GroupingConfig
from .protect import find_term_spans

_WS_RE = re.compile(r"\s+")
MAX_EXAMPLES = 5


def _first_mismatch(expected: str, actual: str) -> Optional[int]:
    for pos, (a, b) in enumerate(zip(expected, actual)):
        if a != b:
            return pos
    if len(expected) != len(actual):
        return min(len(expected), len(actual))
    return None


def build_chunk_assurance(
    text: str,
    chunks: Sequence[Chunk],
    config: Optional[GroupingConfig] = None,
    terms: Sequence[str] = (),
) -> Dict:
    """
    Build chunk assurance report for a composed chunk sequence.

    Args:
        text: Source text the chunks were built from
        chunks: Output of the chunk pipeline
        config: Grouping configuration used
        terms: Protected terms used

    Returns:
        Assurance report dictionary
    """
    config = config or GroupingConfig()
    lengths = [len(c.surface) for c in chunks]

    # Coverage: non-blank content survives in order
    expected = _WS_RE.sub("", text)
    actual = _WS_RE.sub("", "".join(c.surface for c in chunks))
    mismatch = _first_mismatch(expected, actual)

    # Length: budget merges stay within maxChunkLength
    breaches: List[Dict] = []
    for ord_, chunk in enumerate(chunks):
        if chunk.token_count >= 2 and not chunk.forced and len(chunk.surface) > config.max_chunk_length:
            breaches.append({"ord": ord_, "surface": chunk.surface, "chars": len(chunk.surface)})

    # No-split: protected terms never straddle a boundary
    splits: List[Dict] = []
    for span in find_term_spans(text, terms):
        for chunk in chunks:
            starts_inside = span.start < chunk.start < span.end
            ends_inside = span.start < chunk.end < span.end
            if starts_inside or ends_inside:
                splits.append({"term": span.term, "start": span.start, "end": span.end})
                break

    status = "PASS" if mismatch is None and not breaches and not splits else "FAIL"

    return {
        "chunkCount": len(chunks),
        "groupingMode": config.mode.value,
        "maxChunkLength": config.max_chunk_length,
        "charStats": {
            "min": min(lengths) if lengths else 0,
            "median": statistics.median(lengths) if lengths else 0,
            "max": max(lengths) if lengths else 0,
            "total": sum(lengths),
        },
        "coverage": {
            "ok": mismatch is None,
            "expectedChars": len(expected),
            "actualChars": len(actual),
            "firstMismatch": mismatch,
        },
        "lengthBreaches": {
            "count": len(breaches),
            "examples": breaches[:MAX_EXAMPLES],
        },
        "protectedSplits": {
            "terms": len(list(dict.fromkeys(t for t in terms if t))),
            "count": len(splits),
            "examples": splits[:MAX_EXAMPLES],
        },
        "status": status,
    }
