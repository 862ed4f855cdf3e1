"""
Chunking step for the corpus build.

This package provides:
- Heading-first, paragraph-fallback greedy packing under a token budget
- Minimum-token filtering of undersized fragments
- Optional paragraph overlap across chunk boundaries
- Corpus verification against the same contract
"""

from .boundaries import (
    DEFAULT_ENCODING,
    TiktokenCounter,
    TokenCounter,
    normalize_text,
    split_by_headings,
    split_by_paragraphs,
)
from .engine import Chunk, Segmenter, chunk_markdown
from .verify import verify_corpus

__all__ = [
    "Chunk",
    "DEFAULT_ENCODING",
    "Segmenter",
    "TiktokenCounter",
    "TokenCounter",
    "chunk_markdown",
    "normalize_text",
    "split_by_headings",
    "split_by_paragraphs",
    "verify_corpus",
]
