"""Corpus build: discovery, a bounded worker pool, and one aggregator.

Workers run :meth:`PagePipeline.process` and return immutable results. The
calling thread is the only writer: it buffers results that finish early and
writes pages strictly in discovery order, so the corpus is identical no
matter how many workers run.
"""

import concurrent.futures
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from ..core.config import SETTINGS, CorpusConfig
from ..core.logging import log
from ..core.models import BuildMetadata
from ..core.progress import ProgressRenderer
from .page import PagePipeline, PageResult, PageSkipped
from .steps.chunk.boundaries import TiktokenCounter, TokenCounter
from .steps.chunk.engine import Segmenter
from .steps.ingest.site import discover_documents
from .writer import CorpusWriter


@dataclass
class BuildCounters:
    pages_ok: int = 0
    pages_skipped: int = 0
    total_chunks: int = 0
    skip_reasons: Counter = field(default_factory=Counter)

    def record(self, result: PageResult) -> None:
        if isinstance(result, PageSkipped):
            self.pages_skipped += 1
            self.skip_reasons[result.reason.value] += 1
        else:
            self.pages_ok += 1
            self.total_chunks += len(result.records)


@dataclass
class BuildResult:
    metadata: BuildMetadata
    chunks_path: Path
    pages_path: Path
    meta_path: Path

    @property
    def paths(self) -> List[str]:
        return [str(self.chunks_path), str(self.pages_path), str(self.meta_path)]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_corpus(
    config: CorpusConfig,
    out_dir: Path,
    config_path: Optional[str] = None,
    workers: Optional[int] = None,
    count_tokens: Optional[TokenCounter] = None,
    renderer: Optional[ProgressRenderer] = None,
    base_dir: Optional[Path] = None,
) -> BuildResult:
    """Build chunks.jsonl, pages.json and .meta.json for a rendered site.

    Raises ConfigError for an unusable dist dir and TokenizerError when the
    encoding fails; both abort the build before any metadata is written.
    Per-page failures are counted as skipped and never abort the build.
    """
    base_dir = base_dir or Path.cwd()
    dist_dir_abs = (base_dir / config.dist_dir).resolve()
    out_dir_abs = (base_dir / out_dir).resolve()
    workers = max(1, workers or SETTINGS.BUILD_WORKERS)
    renderer = renderer or ProgressRenderer(enabled=False)

    encoding = config.resolved_encoding()
    if count_tokens is None:
        count_tokens = TiktokenCounter(encoding)

    documents = discover_documents(
        dist_dir_abs,
        config.base_url,
        include_patterns=config.include,
        exclude_patterns=config.exclude,
        url_style=config.url_style,
    )

    pipeline = PagePipeline(
        Segmenter(
            count_tokens,
            max_tokens=config.chunk.max_tokens,
            min_tokens=config.chunk.min_tokens,
            overlap_paragraphs=config.chunk.overlap_paragraphs,
        ),
        min_text_chars=config.min_text_chars,
    )

    log.info(
        "build.start",
        dist_dir=str(dist_dir_abs),
        out_dir=str(out_dir_abs),
        pages=len(documents),
        workers=workers,
        encoding=encoding,
    )
    renderer.start_banner(config.echo(), len(documents))

    counters = BuildCounters()
    with CorpusWriter(out_dir_abs) as writer:
        renderer.start(len(documents))
        try:
            _run_pool(pipeline, documents, workers, counters, writer, renderer)
        finally:
            renderer.stop()

        metadata = BuildMetadata(
            generated_at=_now_iso(),
            config_path=config_path,
            dist_dir=config.dist_dir,
            dist_dir_abs=str(dist_dir_abs),
            out_dir=str(out_dir),
            out_dir_abs=str(out_dir_abs),
            base_url=config.base_url,
            url_style=config.url_style,
            include=list(config.include),
            exclude=list(config.exclude),
            encoding=encoding,
            min_text_chars=config.min_text_chars,
            pages_ok=counters.pages_ok,
            pages_skipped=counters.pages_skipped,
            total_pages_found=len(documents),
            total_chunks=counters.total_chunks,
            skip_reasons=dict(sorted(counters.skip_reasons.items())),
            chunk=config.chunk.model_dump(by_alias=True),
        )
        writer.commit(metadata)

    log.info(
        "build.done",
        pages_ok=counters.pages_ok,
        pages_skipped=counters.pages_skipped,
        total_pages_found=len(documents),
        total_chunks=counters.total_chunks,
    )
    return BuildResult(
        metadata=metadata,
        chunks_path=writer.chunks_path,
        pages_path=writer.pages_path,
        meta_path=writer.meta_path,
    )


def _run_pool(pipeline, documents, workers, counters, writer, renderer) -> None:
    """Fan pages out to workers and write results back in discovery order."""
    pending: Dict[int, PageResult] = {}
    next_index = 0

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(pipeline.process, doc) for doc in documents]
        try:
            for future in concurrent.futures.as_completed(futures):
                # TokenizerError propagates from here and ends the build
                result = future.result()
                pending[result.document.index] = result
                renderer.advance()

                while next_index in pending:
                    ready = pending.pop(next_index)
                    counters.record(ready)
                    if not isinstance(ready, PageSkipped):
                        writer.write_page(ready.summary, ready.records)
                    next_index += 1
        except BaseException:
            for future in futures:
                future.cancel()
            raise
