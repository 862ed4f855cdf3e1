import json
from pathlib import Path

import typer

from ..core.config import SETTINGS, load_corpus_config
from ..core.errors import ConfigError, RagCorpusError
from ..core.logging import log, setup_logging
from ..core.progress import ProgressRenderer
from ..pipeline.runner import build_corpus
from ..pipeline.steps.chunk.boundaries import TiktokenCounter, normalize_text
from ..pipeline.steps.chunk.engine import Segmenter
from ..pipeline.steps.chunk.verify import verify_corpus, write_report

app = typer.Typer(add_completion=False, help="RAG corpus builder for static sites")


@app.callback()
def _init() -> None:
    setup_logging(SETTINGS.LOG_FORMAT, SETTINGS.LOG_LEVEL)  # type: ignore[arg-type]


@app.command()
def version() -> None:
    from .. import __version__

    typer.echo(__version__)


@app.command()
def build(
    config_file: str | None = typer.Option(None, "--config", help="Corpus config file (default: $RAG_CONFIG or rag.config.json)"),
    out_dir: str | None = typer.Option(None, "--out-dir", help="Output directory (default: $RAG_OUT_DIR or rag)"),
    workers: int | None = typer.Option(None, "--workers", help="Override worker count"),
    max_tokens: int | None = typer.Option(None, "--max-tokens", help="Maximum tokens per chunk"),
    min_tokens: int | None = typer.Option(None, "--min-tokens", help="Minimum tokens per chunk"),
    overlap_paragraphs: int | None = typer.Option(None, "--overlap-paragraphs", help="Paragraphs repeated across a split"),
    progress: bool = typer.Option(SETTINGS.PROGRESS, "--progress/--no-progress", help="Show banner and progress bar"),
) -> None:
    """
    Build chunks.jsonl, pages.json and .meta.json from rendered HTML.

    Config precedence: config file < env vars < CLI flags

    Example:
        ragcorpus build                              # rag.config.json -> rag/
        ragcorpus build --config site.yaml --out-dir out/rag --max-tokens 600
    """
    config_path = config_file or SETTINGS.RAG_CONFIG
    try:
        config = load_corpus_config(
            config_path,
            overrides={
                "chunk.max_tokens": max_tokens,
                "chunk.min_tokens": min_tokens,
                "chunk.overlap_paragraphs": overlap_paragraphs,
            },
        )
        log.info("config.loaded", config_file=config_path)
    except ConfigError as e:
        typer.echo(f"❌ Config error: {e}", err=True)
        raise typer.Exit(1) from e

    renderer = ProgressRenderer(enabled=None if progress else False, no_color=SETTINGS.NO_COLOR)

    try:
        result = build_corpus(
            config,
            Path(out_dir or SETTINGS.RAG_OUT_DIR),
            config_path=config_path,
            workers=workers,
            renderer=renderer,
        )
    except RagCorpusError as e:
        log.error("build.failed", error=str(e))
        typer.echo(f"❌ Build failed: {e}", err=True)
        raise typer.Exit(1) from e

    meta = result.metadata
    renderer.summary(
        meta.pages_ok,
        meta.pages_skipped,
        meta.total_pages_found,
        meta.total_chunks,
        result.paths,
    )


@app.command()
def chunk(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Markdown or text file"),
    max_tokens: int = typer.Option(450, "--max-tokens", help="Maximum tokens per chunk"),
    min_tokens: int = typer.Option(120, "--min-tokens", help="Minimum tokens per chunk"),
    overlap_paragraphs: int = typer.Option(0, "--overlap-paragraphs", help="Paragraphs repeated across a split"),
    encoding: str | None = typer.Option(None, "--encoding", help="tiktoken encoding (default: $TOKEN_ENCODING)"),
) -> None:
    """
    Segment one markdown file and print one JSON line per chunk.

    Useful for tuning token limits before a full build.
    """
    try:
        segmenter = Segmenter(
            TiktokenCounter(encoding or SETTINGS.TOKEN_ENCODING),
            max_tokens=max_tokens,
            min_tokens=min_tokens,
            overlap_paragraphs=overlap_paragraphs,
        )
        text = normalize_text(file.read_text(encoding="utf-8"))
        for piece in segmenter.chunks(text):
            typer.echo(
                json.dumps(
                    {"chunk_index": piece.index, "token_count": piece.token_count, "text": piece.text},
                    ensure_ascii=False,
                )
            )
    except (ValueError, RagCorpusError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1) from e


@app.command()
def verify(
    out_dir: str | None = typer.Option(None, "--out-dir", help="Corpus directory (default: $RAG_OUT_DIR or rag)"),
    config_file: str | None = typer.Option(None, "--config", help="Corpus config file for token limits"),
    recount: bool = typer.Option(False, "--recount/--no-recount", help="Recompute token counts with tiktoken"),
    report: str | None = typer.Option(None, "--report", help="Write the JSON report to this path"),
) -> None:
    """
    Verify a built corpus: minimum tokens, unique ids, contiguous indexes,
    and page chunk counts. Exits 1 when violations are found.
    """
    corpus_dir = Path(out_dir or SETTINGS.RAG_OUT_DIR)
    try:
        config = load_corpus_config(config_file or SETTINGS.RAG_CONFIG)
        count_tokens = TiktokenCounter(config.resolved_encoding()) if recount else None
        result = verify_corpus(
            corpus_dir,
            min_tokens=config.chunk.min_tokens,
            max_tokens=config.chunk.max_tokens,
            count_tokens=count_tokens,
        )
    except RagCorpusError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1) from e

    if report:
        write_report(result, Path(report))

    typer.echo(f"📊 Chunks: {result['chunks_total']:,}  Pages: {result['pages_total']:,}", err=True)
    typer.echo(f"📏 Oversize (single paragraphs): {len(result['oversize_chunks'])}", err=True)
    if result["ok"]:
        typer.echo("✅ Corpus verified", err=True)
        return

    for key in ("small_chunks", "duplicate_ids", "index_gaps", "page_count_mismatches", "token_mismatches"):
        if result[key]:
            typer.echo(f"❌ {key}: {len(result[key])}", err=True)
    raise typer.Exit(1)


@app.command()
def config(
    config_file: str | None = typer.Option(None, "--config", help="Corpus config file"),
) -> None:
    """Print the resolved corpus configuration as JSON."""
    try:
        corpus_config = load_corpus_config(config_file or SETTINGS.RAG_CONFIG)
    except ConfigError as e:
        typer.echo(f"❌ Config error: {e}", err=True)
        raise typer.Exit(1) from e

    resolved = {
        "distDir": corpus_config.dist_dir,
        **corpus_config.echo(),
        "encoding": corpus_config.resolved_encoding(),
        "outDir": SETTINGS.RAG_OUT_DIR,
        "workers": SETTINGS.BUILD_WORKERS,
    }
    typer.echo(json.dumps(resolved, indent=2))


if __name__ == "__main__":
    app()
