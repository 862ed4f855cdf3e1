"""Per-page pipeline: read, extract, normalize, segment, assemble records.

Every page ends in exactly one of two outcomes, ``PageSucceeded`` or
``PageSkipped``. Skips are ordinary results rather than exceptions; only a
``TokenizerError`` escapes :meth:`PagePipeline.process`, because a broken
encoding makes the whole build meaningless.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Union

from ..core.errors import TokenizerError
from ..core.logging import log
from ..core.models import ChunkRecord, Document, ExtractedContent, PageSummary
from .steps.chunk.boundaries import TokenCounter
from .steps.chunk.engine import Segmenter
from .steps.normalize.html_to_md import extract_main_content, html_to_markdown

Extractor = Callable[[str, str], Optional[ExtractedContent]]
TextConverter = Callable[[str], str]

DEFAULT_MIN_TEXT_CHARS = 80


class SkipReason(str, Enum):
    """Why a page produced no chunks."""

    READ_ERROR = "read_error"
    EXTRACTION_FAILED = "extraction_failed"
    CONVERSION_ERROR = "conversion_error"
    TOO_SHORT = "too_short"
    NO_CHUNKS = "no_chunks"


@dataclass(frozen=True)
class PageSucceeded:
    document: Document
    summary: PageSummary
    records: List[ChunkRecord] = field(default_factory=list)

    status = "succeeded"


@dataclass(frozen=True)
class PageSkipped:
    document: Document
    reason: SkipReason
    detail: str = ""

    status = "skipped"


PageResult = Union[PageSucceeded, PageSkipped]


def chunk_id(url: str, index: int) -> str:
    return f"{url}#chunk={index}"


class PagePipeline:
    """Turns one Document into chunk records and a page summary."""

    def __init__(
        self,
        segmenter: Segmenter,
        extractor: Extractor = extract_main_content,
        to_text: TextConverter = html_to_markdown,
        min_text_chars: int = DEFAULT_MIN_TEXT_CHARS,
    ):
        self.segmenter = segmenter
        self.extractor = extractor
        self.to_text = to_text
        self.min_text_chars = min_text_chars

    @property
    def count_tokens(self) -> TokenCounter:
        return self.segmenter.count_tokens

    def process(self, document: Document) -> PageResult:
        try:
            raw_html = document.path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            return self._skip(document, SkipReason.READ_ERROR, str(e))

        try:
            extracted = self.extractor(raw_html, document.url)
            if extracted is None:
                return self._skip(document, SkipReason.EXTRACTION_FAILED)
            text = self.to_text(extracted.content_html).strip()
        except TokenizerError:
            raise
        except Exception as e:
            return self._skip(document, SkipReason.CONVERSION_ERROR, f"{type(e).__name__}: {e}")

        if len(text) < self.min_text_chars:
            return self._skip(document, SkipReason.TOO_SHORT, f"{len(text)} chars")

        chunks = self.segmenter.chunks(text)
        if not chunks:
            return self._skip(document, SkipReason.NO_CHUNKS)

        title = extracted.title or document.url
        records = [
            ChunkRecord(
                id=chunk_id(document.url, chunk.index),
                url=document.url,
                title=title,
                source_path=document.source_path,
                chunk_index=chunk.index,
                token_count=chunk.token_count,
                text=chunk.text,
            )
            for chunk in chunks
        ]
        summary = PageSummary(
            url=document.url,
            title=title,
            excerpt=extracted.excerpt or "",
            source_path=document.source_path,
            chunk_count=len(records),
        )
        return PageSucceeded(document=document, summary=summary, records=records)

    def _skip(self, document: Document, reason: SkipReason, detail: str = "") -> PageSkipped:
        log.warning(
            "build.page.skipped",
            source_path=document.source_path,
            url=document.url,
            reason=reason.value,
            detail=detail or None,
        )
        return PageSkipped(document=document, reason=reason, detail=detail)
