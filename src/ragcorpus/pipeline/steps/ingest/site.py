"""Static-site discovery.

Scans the build output directory for HTML files and maps each one to the
public URL it is served from.
"""

from pathlib import Path
from typing import List, Optional
from urllib.parse import quote, urljoin

from wcmatch import glob

from ....core.errors import ConfigError
from ....core.logging import log
from ....core.models import Document

CONTENT_SUFFIX = ".html"
INDEX_FILE = "index" + CONTENT_SUFFIX

# Characters left as-is when quoting a path for a URL
_URL_SAFE = "/:@!$&'()*+,;=-._~%"

# "*" stops at "/", "**/" spans zero or more directories
_GLOB_FLAGS = glob.GLOBSTAR


def file_path_to_url(source_path: str, base_url: str, url_style: str = "plain") -> str:
    """Map a dist-relative file path to its absolute URL.

    - ``index.html`` -> site root
    - ``foo/index.html`` -> ``/foo/``
    - ``about.html`` -> ``/about.html`` (plain) or ``/about`` (pretty)
    """
    rel = source_path.replace("\\", "/").lstrip("/")

    if rel == INDEX_FILE:
        route = "/"
    elif rel.endswith("/" + INDEX_FILE):
        route = "/" + rel[: -len(INDEX_FILE)]
    elif rel.endswith(CONTENT_SUFFIX) and url_style == "pretty":
        route = "/" + rel[: -len(CONTENT_SUFFIX)]
    else:
        route = "/" + rel

    return urljoin(base_url, quote(route, safe=_URL_SAFE))


def _matches(rel_path: str, pattern: str) -> bool:
    return glob.globmatch(rel_path, pattern, flags=_GLOB_FLAGS)


def _should_include_file(
    rel_path: str,
    include_patterns: List[str],
    exclude_patterns: Optional[List[str]] = None,
) -> bool:
    """Check if file should be included based on glob patterns."""
    if exclude_patterns and any(_matches(rel_path, p) for p in exclude_patterns):
        return False
    return any(_matches(rel_path, p) for p in include_patterns)


def discover_documents(
    dist_dir: Path,
    base_url: str,
    include_patterns: Optional[List[str]] = None,
    exclude_patterns: Optional[List[str]] = None,
    url_style: str = "plain",
) -> List[Document]:
    """List the documents to index, in a stable (sorted) order.

    Raises ConfigError when ``dist_dir`` is missing or cannot be listed.
    """
    if not dist_dir.is_dir():
        raise ConfigError(f"Dist directory not found: {dist_dir}")

    include_patterns = include_patterns or ["**/*" + CONTENT_SUFFIX]

    try:
        rel_paths = sorted(
            p.relative_to(dist_dir).as_posix() for p in dist_dir.rglob("*") if p.is_file()
        )
    except OSError as e:
        raise ConfigError(f"Cannot read dist directory {dist_dir}: {e}") from e

    documents: List[Document] = []
    for rel_path in rel_paths:
        if not _should_include_file(rel_path, include_patterns, exclude_patterns):
            continue
        documents.append(
            Document(
                index=len(documents),
                source_path=rel_path,
                path=dist_dir / rel_path,
                url=file_path_to_url(rel_path, base_url, url_style),
            )
        )

    log.info(
        "ingest.scan.done",
        dist_dir=str(dist_dir),
        found=len(documents),
        scanned=len(rel_paths),
    )
    return documents
