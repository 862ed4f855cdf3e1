"""Global test configuration for ragcorpus tests."""

import json
from pathlib import Path

import pytest


def word_tokens(text: str) -> int:
    """Deterministic stand-in for tiktoken: one token per whitespace-separated word."""
    return len(text.split())


def words(count: int, prefix: str = "w") -> str:
    """A paragraph of exactly ``count`` distinct words."""
    return " ".join(f"{prefix}{i}" for i in range(count))


class FakeTiktokenCounter:
    """Replaces TiktokenCounter so tests never download an encoding."""

    def __init__(self, encoding_name: str = "cl100k_base"):
        self.encoding_name = encoding_name

    def __call__(self, text: str) -> int:
        return word_tokens(text)


@pytest.fixture
def count_tokens():
    return word_tokens


@pytest.fixture
def fake_tiktoken(monkeypatch):
    """Swap the tiktoken-backed counter everywhere it is constructed."""
    monkeypatch.setattr("ragcorpus.pipeline.runner.TiktokenCounter", FakeTiktokenCounter)
    monkeypatch.setattr("ragcorpus.cli.main.TiktokenCounter", FakeTiktokenCounter)
    return FakeTiktokenCounter


def html_page(title: str, body: str) -> str:
    return (
        "<!doctype html><html><head>"
        f"<title>{title}</title>"
        '<meta name="description" content="About ' + title + '">'
        "</head><body>"
        "<header><nav><a href='/'>Home</a></nav></header>"
        f"<main>{body}</main>"
        "<footer>Footer links</footer>"
        "</body></html>"
    )


def article_html(heading: str, paragraphs: int, words_per_paragraph: int, prefix: str = "w") -> str:
    parts = [f"<h2>{heading}</h2>"]
    for i in range(paragraphs):
        parts.append(f"<p>{words(words_per_paragraph, prefix=f'{prefix}{i}x')}</p>")
    return "".join(parts)


@pytest.fixture
def site(tmp_path):
    """Build a small rendered site plus rag.config.json under tmp_path."""

    def _make(pages: dict[str, str], **config_overrides) -> Path:
        dist = tmp_path / "_site"
        for rel_path, content in pages.items():
            target = dist / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        dist.mkdir(parents=True, exist_ok=True)

        config = {
            "distDir": str(dist),
            "baseUrl": "https://example.org",
            "chunk": {"maxTokens": 100, "minTokens": 20, "overlapParagraphs": 0},
        }
        config.update(config_overrides)
        config_path = tmp_path / "rag.config.json"
        config_path.write_text(json.dumps(config), encoding="utf-8")
        return config_path

    return _make
