"""
Sokudoku Chunking Package

Turns raw Japanese text into display-sized chunks:
- Pluggable segmentation providers with a whitespace fallback
- Grouped composition honoring particles, punctuation and a length budget
- Protected terms that never straddle a chunk boundary
- Assurance reporting for coverage, length and no-split guarantees
"""

from .assurance import build_chunk_assurance
from .boundaries import TokenClass, classify_token
from .engine import build_chunks, compose
from .protect import find_term_spans, protect
from .segmenters import (
    CallableSegmenter,
    RegexSegmenter,
    Segmenter,
    TinySegmenterAdapter,
    WhitespaceSegmenter,
    get_segmenter,
    segment_with_fallback,
    validate_tokens,
)

__all__ = [
    "CallableSegmenter",
    "RegexSegmenter",
    "Segmenter",
    "TinySegmenterAdapter",
    "TokenClass",
    "WhitespaceSegmenter",
    "build_chunk_assurance",
    "build_chunks",
    "classify_token",
    "compose",
    "find_term_spans",
    "get_segmenter",
    "protect",
    "segment_with_fallback",
    "validate_tokens",
]
