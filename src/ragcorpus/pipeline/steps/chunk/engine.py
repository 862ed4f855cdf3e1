"""
Chunking engine: heading-first greedy packing with paragraph fallback.

Sections (split before each heading) are merged greedily while the result
stays within ``max_tokens``. A section that is too large on its own is packed
paragraph by paragraph instead, optionally repeating trailing paragraphs at
the start of the next chunk. Anything under ``min_tokens`` is dropped. The
engine never splits below paragraph granularity: an oversized paragraph is
emitted whole.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, NamedTuple, Optional

from .boundaries import TokenCounter, split_by_headings, split_by_paragraphs

SEPARATOR = "\n\n"

# Minimum number of trailing paragraphs remembered for overlap
OVERLAP_HISTORY_FLOOR = 3


class Chunk(NamedTuple):
    """A retained chunk with its position in the page."""

    index: int
    text: str
    token_count: int


class _Buffer:
    """Accumulator for one packing pass.

    Holds the text gathered so far and, for paragraph packing, the most
    recent paragraphs appended to it.
    """

    def __init__(self, history: int = 0):
        self.text = ""
        self.tail: Deque[str] = deque(maxlen=history or None)

    def joined(self, part: str) -> str:
        return f"{self.text}{SEPARATOR}{part}" if self.text else part

    def append(self, part: str, text: str) -> None:
        self.text = text
        if self.tail.maxlen:
            self.tail.append(part)

    def restart(self, text: str, part: Optional[str] = None) -> None:
        self.text = text
        self.tail.clear()
        if part is not None and self.tail.maxlen:
            self.tail.append(part)

    def clear(self) -> None:
        self.restart("")


class Segmenter:
    """Split normalized page text into token-bounded chunk strings."""

    def __init__(
        self,
        count_tokens: TokenCounter,
        max_tokens: int = 450,
        min_tokens: int = 120,
        overlap_paragraphs: int = 0,
    ):
        if max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {max_tokens}")
        if not 0 <= min_tokens <= max_tokens:
            raise ValueError(f"min_tokens must be within [0, {max_tokens}], got {min_tokens}")
        if overlap_paragraphs < 0:
            raise ValueError(f"overlap_paragraphs must be >= 0, got {overlap_paragraphs}")

        self.count_tokens = count_tokens
        self.max_tokens = max_tokens
        self.min_tokens = min_tokens
        self.overlap_paragraphs = overlap_paragraphs

    def split(self, text: str) -> List[str]:
        """Return the chunk strings for ``text`` in source order."""
        chunks: List[str] = []
        buffer = _Buffer()

        for section in split_by_headings(text):
            candidate = buffer.joined(section)
            if self._fits(candidate):
                buffer.restart(candidate)
                continue

            self._flush(buffer.text, chunks)
            buffer.clear()

            if self._fits(section):
                # Carried forward so a small following section can join it
                buffer.restart(section)
            else:
                chunks.extend(self._split_section(section))

        self._flush(buffer.text, chunks)
        return chunks

    def chunks(self, text: str) -> List[Chunk]:
        """Like :meth:`split`, with index and token count attached."""
        return [
            Chunk(index=i, text=chunk_text, token_count=self.count_tokens(chunk_text))
            for i, chunk_text in enumerate(self.split(text))
        ]

    def _split_section(self, section: str) -> List[str]:
        """Pack the paragraphs of an oversized section."""
        chunks: List[str] = []
        buffer = _Buffer(history=max(OVERLAP_HISTORY_FLOOR, self.overlap_paragraphs))

        for paragraph in split_by_paragraphs(section):
            candidate = buffer.joined(paragraph)
            if self._fits(candidate):
                buffer.append(paragraph, candidate)
                continue

            self._flush(buffer.text, chunks)
            overlap = self._overlap(buffer.tail, paragraph)
            buffer.restart(SEPARATOR.join([*overlap, paragraph]), paragraph)

        self._flush(buffer.text, chunks)
        return chunks

    def _overlap(self, tail: Iterable[str], paragraph: str) -> List[str]:
        """Trailing paragraphs to repeat ahead of ``paragraph``.

        Oldest paragraphs are dropped until the seeded chunk fits the budget.
        """
        if self.overlap_paragraphs <= 0:
            return []

        overlap = list(tail)[-self.overlap_paragraphs :]
        while overlap and not self._fits(SEPARATOR.join([*overlap, paragraph])):
            overlap.pop(0)
        return overlap

    def _fits(self, text: str) -> bool:
        return self.count_tokens(text) <= self.max_tokens

    def _flush(self, text: str, chunks: List[str]) -> None:
        text = text.strip()
        if not text:
            return
        if self.count_tokens(text) < self.min_tokens:
            return
        chunks.append(text)


def chunk_markdown(
    markdown: str,
    count_tokens: TokenCounter,
    max_tokens: int = 450,
    min_tokens: int = 120,
    overlap_paragraphs: int = 0,
) -> List[str]:
    """Functional entry point around :class:`Segmenter`."""
    segmenter = Segmenter(
        count_tokens,
        max_tokens=max_tokens,
        min_tokens=min_tokens,
        overlap_paragraphs=overlap_paragraphs,
    )
    return segmenter.split(markdown)
