"""Tests for dist-dir discovery and URL mapping."""

import pytest

from ragcorpus.core.errors import ConfigError
from ragcorpus.pipeline.steps.ingest.site import discover_documents, file_path_to_url

pytestmark = pytest.mark.unit

BASE = "https://example.org"


@pytest.mark.parametrize(
    "source_path,url_style,expected",
    [
        ("index.html", "plain", "https://example.org/"),
        ("index.html", "pretty", "https://example.org/"),
        ("licensing/index.html", "plain", "https://example.org/licensing/"),
        ("licensing/taxis/index.html", "pretty", "https://example.org/licensing/taxis/"),
        ("about.html", "plain", "https://example.org/about.html"),
        ("about.html", "pretty", "https://example.org/about"),
        ("fees/fees-charges.html", "pretty", "https://example.org/fees/fees-charges"),
        ("docs/readme.txt", "pretty", "https://example.org/docs/readme.txt"),
        ("my page.html", "plain", "https://example.org/my%20page.html"),
        ("windows\\path.html", "plain", "https://example.org/windows/path.html"),
    ],
)
def test_file_path_to_url(source_path, url_style, expected):
    assert file_path_to_url(source_path, BASE, url_style) == expected


def test_urls_resolve_against_base_origin():
    assert file_path_to_url("about.html", "https://example.org/sub/dir/") == "https://example.org/about.html"


def make_tree(root, paths):
    for rel in paths:
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("<p>x</p>", encoding="utf-8")


def test_discovery_applies_include_and_exclude(tmp_path):
    make_tree(
        tmp_path,
        [
            "index.html",
            "b/page.html",
            "a/index.html",
            "_revision/quiz.html",
            "assets/app.js",
            "notes.txt",
        ],
    )

    documents = discover_documents(
        tmp_path,
        BASE,
        include_patterns=["**/*.html"],
        exclude_patterns=["_revision/**"],
        url_style="pretty",
    )

    assert [d.source_path for d in documents] == ["a/index.html", "b/page.html", "index.html"]
    assert [d.index for d in documents] == [0, 1, 2]
    assert [d.url for d in documents] == [
        "https://example.org/a/",
        "https://example.org/b/page",
        "https://example.org/",
    ]
    assert documents[0].path == tmp_path / "a" / "index.html"


def test_discovery_defaults_to_html_files(tmp_path):
    make_tree(tmp_path, ["one.html", "two.htm", "three.html"])

    documents = discover_documents(tmp_path, BASE)

    assert [d.source_path for d in documents] == ["one.html", "three.html"]


def test_discovery_is_stable(tmp_path):
    make_tree(tmp_path, [f"p{i}/index.html" for i in range(5)])

    first = discover_documents(tmp_path, BASE)
    second = discover_documents(tmp_path, BASE)

    assert first == second


def test_missing_dist_dir_is_a_config_error(tmp_path):
    with pytest.raises(ConfigError):
        discover_documents(tmp_path / "missing", BASE)


GLOB_TREE = ["about.html", "licensing/index.html", "licensing/taxis/index.html", "sub/about.html"]


@pytest.mark.parametrize(
    "pattern,expected",
    [
        ("licensing/**/*.html", ["licensing/index.html", "licensing/taxis/index.html"]),
        ("*.html", ["about.html"]),
        ("*/about.html", ["sub/about.html"]),
        ("**/about.html", ["about.html", "sub/about.html"]),
        ("**/*.html", GLOB_TREE),
    ],
)
def test_include_patterns_follow_globstar_rules(tmp_path, pattern, expected):
    make_tree(tmp_path, GLOB_TREE)

    documents = discover_documents(tmp_path, BASE, include_patterns=[pattern])

    assert [d.source_path for d in documents] == expected


def test_exclude_single_star_stays_in_one_directory(tmp_path):
    make_tree(tmp_path, GLOB_TREE)

    documents = discover_documents(tmp_path, BASE, exclude_patterns=["licensing/*.html"])

    assert [d.source_path for d in documents] == ["about.html", "licensing/taxis/index.html", "sub/about.html"]
