"""Tests for the ragcorpus CLI."""

import json

import pytest
from typer.testing import CliRunner

from conftest import article_html, html_page, words
from ragcorpus.cli.main import app

pytestmark = pytest.mark.unit

runner = CliRunner()


def site_pages():
    return {
        "index.html": html_page("Home", article_html("Welcome", paragraphs=3, words_per_paragraph=30)),
        "about.html": html_page("About", article_html("About us", paragraphs=5, words_per_paragraph=40)),
        "tiny.html": html_page("Tiny", "<p>tiny</p>"),
    }


def test_build_command(site, tmp_path, fake_tiktoken):
    config_path = site(site_pages())
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        ["build", "--config", str(config_path), "--out-dir", str(out_dir), "--no-progress", "--workers", "2"],
    )

    assert result.exit_code == 0, result.output
    assert "RAG corpus built: pagesOk=2, pagesSkipped=1, totalPagesFound=3" in result.output
    assert (out_dir / "chunks.jsonl").exists()
    assert (out_dir / "pages.json").exists()
    meta = json.loads((out_dir / ".meta.json").read_text(encoding="utf-8"))
    assert meta["configPath"] == str(config_path)
    assert meta["pagesOk"] == 2


def test_build_flags_override_config(site, tmp_path, fake_tiktoken):
    config_path = site(site_pages())
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        [
            "build",
            "--config", str(config_path),
            "--out-dir", str(out_dir),
            "--no-progress",
            "--max-tokens", "300",
            "--min-tokens", "5",
            "--overlap-paragraphs", "1",
        ],
    )

    assert result.exit_code == 0, result.output
    meta = json.loads((out_dir / ".meta.json").read_text(encoding="utf-8"))
    assert meta["chunk"] == {"maxTokens": 300, "minTokens": 5, "overlapParagraphs": 1}


def test_build_without_base_url_fails(tmp_path, fake_tiktoken):
    config_path = tmp_path / "rag.config.json"
    config_path.write_text(json.dumps({"distDir": str(tmp_path)}), encoding="utf-8")
    out_dir = tmp_path / "out"

    result = runner.invoke(app, ["build", "--config", str(config_path), "--out-dir", str(out_dir)])

    assert result.exit_code == 1
    assert "Config error" in result.output
    assert not (out_dir / ".meta.json").exists()


def test_build_with_missing_dist_dir_fails(site, tmp_path, fake_tiktoken):
    config_path = site({}, distDir=str(tmp_path / "missing"))

    result = runner.invoke(app, ["build", "--config", str(config_path), "--out-dir", str(tmp_path / "out")])

    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert not (tmp_path / "out" / ".meta.json").exists()


def test_chunk_command_prints_json_lines(tmp_path, fake_tiktoken):
    source = tmp_path / "page.md"
    paragraphs = [words(40, prefix=f"p{i}_") for i in range(5)]
    source.write_text("# Title\r\n\r\n" + "\n\n".join(paragraphs), encoding="utf-8")

    result = runner.invoke(app, ["chunk", str(source), "--max-tokens", "100", "--min-tokens", "10"])

    assert result.exit_code == 0, result.output
    lines = [json.loads(line) for line in result.stdout.splitlines() if line.startswith("{")]
    assert [line["chunk_index"] for line in lines] == list(range(len(lines)))
    assert len(lines) == 3
    assert all(10 <= line["token_count"] <= 100 for line in lines)


def test_chunk_command_rejects_bad_limits(tmp_path, fake_tiktoken):
    source = tmp_path / "page.md"
    source.write_text(words(10), encoding="utf-8")

    result = runner.invoke(app, ["chunk", str(source), "--max-tokens", "10", "--min-tokens", "20"])

    assert result.exit_code == 1


def test_verify_command(site, tmp_path, fake_tiktoken):
    config_path = site(site_pages())
    out_dir = tmp_path / "out"
    build = runner.invoke(app, ["build", "--config", str(config_path), "--out-dir", str(out_dir), "--no-progress"])
    assert build.exit_code == 0, build.output

    report = tmp_path / "report.json"
    result = runner.invoke(
        app,
        ["verify", "--config", str(config_path), "--out-dir", str(out_dir), "--recount", "--report", str(report)],
    )

    assert result.exit_code == 0, result.output
    assert "Corpus verified" in result.output
    assert json.loads(report.read_text(encoding="utf-8"))["ok"] is True


def test_verify_command_flags_violations(site, tmp_path, fake_tiktoken):
    config_path = site(site_pages())
    out_dir = tmp_path / "out"
    runner.invoke(app, ["build", "--config", str(config_path), "--out-dir", str(out_dir), "--no-progress"])
    pages = json.loads((out_dir / "pages.json").read_text(encoding="utf-8"))
    pages[0]["chunkCount"] += 1
    (out_dir / "pages.json").write_text(json.dumps(pages), encoding="utf-8")

    result = runner.invoke(app, ["verify", "--config", str(config_path), "--out-dir", str(out_dir)])

    assert result.exit_code == 1
    assert "page_count_mismatches" in result.output


def test_config_command(site, fake_tiktoken):
    config_path = site({}, urlStyle="pretty")

    result = runner.invoke(app, ["config", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    resolved = json.loads(result.stdout[result.stdout.index("{") :])
    assert resolved["urlStyle"] == "pretty"
    assert resolved["chunk"]["maxTokens"] == 100


def test_version_command():
    from ragcorpus import __version__

    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout
