"""
Boundary detection and token counting for chunking.
"""

import re
from typing import Callable, List

import tiktoken

from ....core.errors import TokenizerError

# Anything that maps text to a token count can drive the segmenter.
TokenCounter = Callable[[str], int]

DEFAULT_ENCODING = "cl100k_base"

_HEADING_BOUNDARY = re.compile(r"\n(?=#+\s)")
_PARAGRAPH_BOUNDARY = re.compile(r"\n{2,}")


def normalize_text(text: str) -> str:
    """Normalize markdown for consistent chunking."""
    # Normalize line endings CRLF -> LF
    text = re.sub(r"\r\n?", "\n", text)
    # Drop trailing whitespace on every line
    text = re.sub(r"[ \t]+\n", "\n", text)
    # Remove any triple+ blank lines
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def split_by_headings(text: str) -> List[str]:
    """Split text immediately before every ATX heading line.

    A text without headings comes back as a single section.
    """
    parts = (part.strip() for part in _HEADING_BOUNDARY.split(text))
    return [part for part in parts if part]


def split_by_paragraphs(text: str) -> List[str]:
    """Split text on blank-line boundaries."""
    parts = (part.strip() for part in _PARAGRAPH_BOUNDARY.split(text))
    return [part for part in parts if part]


class TiktokenCounter:
    """Token counter backed by a fixed tiktoken encoding."""

    def __init__(self, encoding_name: str = DEFAULT_ENCODING):
        self.encoding_name = encoding_name
        try:
            self._encoding = tiktoken.get_encoding(encoding_name)
        except Exception as e:
            raise TokenizerError(f"Could not load token encoding {encoding_name!r}: {e}") from e

    def __call__(self, text: str) -> int:
        try:
            # Special-token text in page content is ordinary text here
            return len(self._encoding.encode(text, disallowed_special=()))
        except Exception as e:
            raise TokenizerError(f"Encoding with {self.encoding_name!r} failed: {e}") from e

    def __repr__(self) -> str:
        return f"TiktokenCounter({self.encoding_name!r})"
