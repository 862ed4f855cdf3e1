"""
Corpus-wide chunk verification.
"""

import json
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional

from ....core.errors import ConfigError
from ....core.logging import log
from ...writer import CHUNKS_FILE, PAGES_FILE, read_chunks, read_pages
from .boundaries import TokenCounter


def verify_corpus(
    out_dir: Path,
    min_tokens: int = 120,
    max_tokens: int = 450,
    count_tokens: Optional[TokenCounter] = None,
) -> Dict:
    """
    Check a built corpus against the chunking contract.

    Args:
        out_dir: Directory holding chunks.jsonl and pages.json
        min_tokens: Every chunk must have at least this many tokens
        max_tokens: Chunks above this are reported as oversize (informational,
            a single paragraph larger than the budget is emitted whole)
        count_tokens: When given, token counts are recomputed and compared

    Returns:
        Verification results dictionary; ``ok`` is False on any violation
    """
    chunks_path = out_dir / CHUNKS_FILE
    pages_path = out_dir / PAGES_FILE
    if not chunks_path.exists() or not pages_path.exists():
        raise ConfigError(f"No corpus found in {out_dir} (expected {CHUNKS_FILE} and {PAGES_FILE})")

    chunks = read_chunks(chunks_path)
    pages = read_pages(pages_path)

    small_chunks: List[Dict] = []
    oversize_chunks: List[Dict] = []
    token_mismatches: List[Dict] = []
    duplicate_ids: List[str] = []
    seen_ids = set()
    indexes_by_url: Dict[str, List[int]] = defaultdict(list)

    for chunk in chunks:
        chunk_id = chunk.get("id", "")
        if chunk_id in seen_ids:
            duplicate_ids.append(chunk_id)
        seen_ids.add(chunk_id)
        indexes_by_url[chunk.get("url", "")].append(chunk.get("chunk_index", -1))

        token_count = chunk.get("token_count", 0)
        if count_tokens is not None:
            actual = count_tokens(chunk.get("text", ""))
            if actual != token_count:
                token_mismatches.append({"id": chunk_id, "reported": token_count, "actual": actual})
                token_count = actual

        if token_count < min_tokens:
            small_chunks.append({"id": chunk_id, "token_count": token_count})
        if token_count > max_tokens:
            oversize_chunks.append({"id": chunk_id, "token_count": token_count})

    gaps = [
        {"url": url, "chunk_indexes": indexes}
        for url, indexes in indexes_by_url.items()
        if indexes != list(range(len(indexes)))
    ]

    count_mismatches = []
    for page in pages:
        expected = page.get("chunkCount", 0)
        actual = len(indexes_by_url.get(page.get("url", ""), []))
        if expected != actual:
            count_mismatches.append({"url": page.get("url"), "chunkCount": expected, "records": actual})

    result = {
        "chunks_total": len(chunks),
        "pages_total": len(pages),
        "small_chunks": small_chunks,
        "oversize_chunks": oversize_chunks,
        "duplicate_ids": duplicate_ids,
        "index_gaps": gaps,
        "page_count_mismatches": count_mismatches,
        "token_mismatches": token_mismatches,
    }
    result["ok"] = not any(
        result[key]
        for key in ("small_chunks", "duplicate_ids", "index_gaps", "page_count_mismatches", "token_mismatches")
    )

    log.info(
        "verify.done",
        out_dir=str(out_dir),
        ok=result["ok"],
        chunks=len(chunks),
        small=len(small_chunks),
        oversize=len(oversize_chunks),
    )
    return result


def write_report(result: Dict, path: Path) -> None:
    path.write_text(json.dumps(result, indent=2), encoding="utf-8")
