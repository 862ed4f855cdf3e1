"""Corpus output: chunks.jsonl, pages.json and .meta.json."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional, TextIO

from ..core.models import BuildMetadata, ChunkRecord, PageSummary

CHUNKS_FILE = "chunks.jsonl"
PAGES_FILE = "pages.json"
META_FILE = ".meta.json"


def safe_json_line(record: ChunkRecord) -> str:
    """Serialize a record as one JSONL line.

    U+2028/U+2029 are dropped because some JSONL readers treat them as line
    breaks.
    """
    line = json.dumps(record.model_dump(), ensure_ascii=False)
    return line.replace("\u2028", "").replace("\u2029", "")


class CorpusWriter:
    """Sequential writer owned by the build aggregator.

    Chunks stream to a temporary file that only replaces ``chunks.jsonl``
    when :meth:`commit` runs, so an aborted build leaves no partial corpus
    and no metadata file behind.
    """

    def __init__(self, out_dir: Path):
        self.out_dir = out_dir
        self.chunks_path = out_dir / CHUNKS_FILE
        self.pages_path = out_dir / PAGES_FILE
        self.meta_path = out_dir / META_FILE
        self._tmp_chunks_path = out_dir / f"{CHUNKS_FILE}.tmp"
        self._file: Optional[TextIO] = None
        self.pages: List[PageSummary] = []
        self.chunks_written = 0

    def __enter__(self) -> "CorpusWriter":
        self.out_dir.mkdir(parents=True, exist_ok=True)
        self._file = open(self._tmp_chunks_path, "w", encoding="utf-8", newline="\n")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._file:
            self._file.close()
            self._file = None
        if exc_type is not None and self._tmp_chunks_path.exists():
            self._tmp_chunks_path.unlink()

    def write_page(self, summary: PageSummary, records: List[ChunkRecord]) -> None:
        if self._file is None:
            raise RuntimeError("CorpusWriter used outside of its context")
        for record in records:
            self._file.write(safe_json_line(record) + "\n")
        self.chunks_written += len(records)
        self.pages.append(summary)

    def commit(self, metadata: BuildMetadata) -> None:
        """Publish chunks, then the page index, then metadata."""
        if self._file is not None:
            self._file.close()
            self._file = None
        os.replace(self._tmp_chunks_path, self.chunks_path)

        pages = [page.model_dump(by_alias=True) for page in self.pages]
        self.pages_path.write_text(json.dumps(pages, indent=2, ensure_ascii=False), encoding="utf-8")
        self.meta_path.write_text(
            json.dumps(metadata.model_dump(by_alias=True), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )


def read_chunks(path: Path) -> List[dict]:
    records = []
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            if line.strip():
                records.append(json.loads(line))
    return records


def read_pages(path: Path) -> List[dict]:
    return json.loads(path.read_text(encoding="utf-8"))
