from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A discovered HTML file, before it is read."""

    model_config = ConfigDict(frozen=True)

    index: int  # discovery order
    source_path: str  # posix path relative to the dist dir
    path: Path
    url: str


class ExtractedContent(BaseModel):
    title: str = ""
    excerpt: str = ""
    content_html: str


class ChunkRecord(BaseModel):
    """One line of chunks.jsonl."""

    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    title: str
    source_path: str
    chunk_index: int
    token_count: int
    text: str


class PageSummary(BaseModel):
    """One entry of pages.json."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    title: str
    excerpt: str = ""
    source_path: str
    chunk_count: int = Field(..., alias="chunkCount")


class BuildMetadata(BaseModel):
    """Contents of .meta.json."""

    model_config = ConfigDict(populate_by_name=True)

    generated_at: str = Field(..., alias="generatedAt")
    config_path: str | None = Field(None, alias="configPath")
    dist_dir: str = Field(..., alias="distDir")
    dist_dir_abs: str = Field(..., alias="distDirAbs")
    out_dir: str = Field(..., alias="outDir")
    out_dir_abs: str = Field(..., alias="outDirAbs")
    base_url: str = Field(..., alias="baseUrl")
    url_style: str = Field(..., alias="urlStyle")
    include: list[str] = []
    exclude: list[str] = []
    encoding: str
    min_text_chars: int = Field(..., alias="minTextChars")
    pages_ok: int = Field(0, alias="pagesOk")
    pages_skipped: int = Field(0, alias="pagesSkipped")
    total_pages_found: int = Field(0, alias="totalPagesFound")
    total_chunks: int = Field(0, alias="totalChunks")
    skip_reasons: dict[str, int] = Field(default_factory=dict, alias="skipReasons")
    chunk: dict[str, Any] = {}
