from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup, Tag
from markdownify import markdownify as md  # type: ignore
import trafilatura

from ....core.models import ExtractedContent
from ..chunk.boundaries import normalize_text

# Page chrome that never belongs to the readable content
_CHROME_TAGS = ["script", "style", "noscript", "template", "nav", "aside", "form"]

# Site banners and footers; kept when they sit inside the content itself
_LANDMARK_TAGS = ["header", "footer"]

# Candidate main-content containers, most specific first
_CONTENT_SELECTORS = ["main", "[role=main]", "article", "#main-content"]


def normalise_whitespace(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


# ---------- Extraction ----------


def _page_title(soup: BeautifulSoup) -> str:
    title = soup.find("title")
    if title is not None:
        text = normalise_whitespace(title.get_text())
        if text:
            return text
    h1 = soup.find("h1")
    return normalise_whitespace(h1.get_text()) if h1 is not None else ""


def _meta_description(soup: BeautifulSoup) -> str:
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        meta = soup.find("meta", attrs=attrs)
        if isinstance(meta, Tag):
            content = meta.get("content")
            if isinstance(content, str) and content.strip():
                return normalise_whitespace(content)
    return ""


def _readable_container(soup: BeautifulSoup) -> Optional[Tag]:
    """Pick the element holding the page's main content, if any has text."""
    for selector in _CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None and normalise_whitespace(container.get_text()):
            return container
    return None


def _readable_fallback(raw_html: str, url: str) -> Optional[Tag]:
    """Run trafilatura on a page without a content landmark.

    Output is requested as HTML so headings and paragraph breaks survive
    into the markdown conversion.
    """
    extracted = trafilatura.extract(
        raw_html,
        url=url,
        output_format="html",
        include_formatting=True,
        include_links=False,
        include_images=False,
        include_tables=True,
    )
    if not extracted:
        return None

    readable = BeautifulSoup(extracted, "html.parser")
    container = readable.body or readable
    if not normalise_whitespace(container.get_text()):
        return None
    return container


def extract_main_content(raw_html: str, url: str) -> Optional[ExtractedContent]:
    """Extract title, excerpt and main-content HTML from a rendered page.

    Pages without a content landmark go through trafilatura; when it finds
    nothing, the chrome-stripped body is used as is, keeping its headings
    and paragraphs. Returns None when the page has no text at all.
    """
    soup = BeautifulSoup(raw_html, "html.parser")
    title = _page_title(soup)
    excerpt = _meta_description(soup)

    for tag in soup(_CHROME_TAGS):
        tag.decompose()
    for tag in soup(_LANDMARK_TAGS):
        if not tag.decomposed and tag.find_parent(["main", "article"]) is None:
            tag.decompose()

    container = _readable_container(soup)
    if container is None:
        container = _readable_fallback(raw_html, url)
    if container is None:
        body = soup.body or soup
        if not normalise_whitespace(body.get_text()):
            return None
        container = body

    if not excerpt:
        first_paragraph = container.find("p")
        if first_paragraph is not None:
            excerpt = normalise_whitespace(first_paragraph.get_text())
    return ExtractedContent(title=title, excerpt=excerpt, content_html=str(container))


# ---------- Markdown conversion ----------


def html_to_markdown(content_html: str) -> str:
    """Convert a content block to normalized ATX-heading markdown."""
    if not content_html:
        return ""
    text = md(content_html, heading_style="ATX", strip=["script", "style", "noscript"])
    return normalize_text(text)
