"""
Test stylesheet flattening, pruning and bundling.
"""

import hashlib
import logging

import pytest

from dotview.templates import StylesheetBundler, collect_classes, concat_css, remove_unused_css


@pytest.fixture
def css_dir(tmp_path):
    (tmp_path / "parts").mkdir()
    (tmp_path / "site.css").write_text(
        '@import "parts/base.css";\nbody{background:url(./img/bg.png)}'
    )
    (tmp_path / "parts" / "base.css").write_text(".a{background:url(../img/a.png)}")
    return tmp_path


# ============================================================================
# Flattening
# ============================================================================

def test_concat_inlines_imports_and_rewrites_urls(css_dir):
    assert concat_css(css_dir / "site.css") == (
        ".a{background:url(../parts/../img/a.png)}\n"
        "body{background:url(../img/bg.png)}"
    )


def test_concat_custom_relative_path(css_dir):
    css = concat_css(css_dir / "parts" / "base.css", relative_path="/static/")

    assert css == ".a{background:url(/static/../img/a.png)}"


def test_concat_rewrites_quoted_references(tmp_path):
    (tmp_path / "fonts.css").write_text(
        "@font-face{src:url(\"./f.woff\")}\n.x{background:url('../up.png')}"
    )

    assert concat_css(tmp_path / "fonts.css") == (
        "@font-face{src:url(\"../f.woff\")}\n.x{background:url('../../up.png')}"
    )


def test_concat_missing_file(tmp_path):
    missing = tmp_path / "nope.css"

    assert concat_css(missing) == f"/* SOURCE CSS FILE '{missing}' NOT FOUND */"


def test_concat_import_cycle(tmp_path, caplog):
    (tmp_path / "a.css").write_text('@import "b.css";A')
    (tmp_path / "b.css").write_text('@import "a.css";B')

    with caplog.at_level(logging.WARNING, logger="dotview.templates.stylesheet"):
        assert concat_css(tmp_path / "a.css") == "BA"

    assert any("cycle" in r.getMessage() for r in caplog.records)


def test_concat_shared_import_is_not_a_cycle(tmp_path, caplog):
    (tmp_path / "a.css").write_text('@import "b.css";@import "c.css";A')
    (tmp_path / "b.css").write_text('@import "d.css";B')
    (tmp_path / "c.css").write_text('@import "d.css";C')
    (tmp_path / "d.css").write_text("D")

    with caplog.at_level(logging.WARNING, logger="dotview.templates.stylesheet"):
        assert concat_css(tmp_path / "a.css") == "DBDCA"

    assert not any("cycle" in r.getMessage() for r in caplog.records)


# ============================================================================
# Pruning
# ============================================================================

def test_collect_classes():
    html = "<p class=\"a  b\"></p><i class='c'></i><b id=\"d\"></b>"

    assert collect_classes(html) == {".a", ".b", ".c"}


def test_remove_unused_css():
    css = ".a{color:red}.b{color:blue}@media (max-width:1px){.b{x:y}.a{x:z}}:root{--c:1}"

    assert remove_unused_css(css, {".a"}) == ".a{color:red}@media (max-width:1px){.a{x:z}}:root{--c:1}"


@pytest.mark.parametrize("css, used, expected", [
    ("body{x:y}", set(), "body{x:y}"),
    (".a .b{x:y}", {".b"}, ".a .b{x:y}"),
    ("div.c{x:y}p{z:w}", {".a"}, "p{z:w}"),
    ('@charset "utf-8";.b{x:y}', set(), '@charset "utf-8";'),
    (".ab{x:y}", {".a"}, ""),
])
def test_remove_unused_css_selectors(css, used, expected):
    assert remove_unused_css(css, used) == expected


# ============================================================================
# Bundling
# ============================================================================

def test_bundle_name():
    bundler = StylesheetBundler()
    digest = hashlib.md5(b"main").hexdigest()

    assert bundler.bundle_name("css/site.min.css", "main") == f"site_cache_{digest}.css"


def test_prepare_writes_minified_bundle(css_dir):
    bundler = StylesheetBundler()
    link = bundler.prepare(css_dir / "site.css", "/css/<filename>", 'rel="stylesheet"', after="<!-- <filename> -->")
    name = bundler.bundle_name("site.css")

    assert link == f'<link href="/css/cache/{name}" rel="stylesheet"><!-- cache/{name} -->'
    assert (css_dir / "cache" / name).read_text() == (
        ".a{background:url(../parts/../img/a.png)}body{background:url(../img/bg.png)}"
    )


def test_prepare_missing_source(tmp_path):
    bundler = StylesheetBundler()
    link = bundler.prepare(tmp_path / "gone.css", "/<filename>")

    assert link.startswith('<link href="/cache/gone_cache_')
    assert "NOT FOUND" in next((tmp_path / "cache").glob("*.css")).read_text()
    assert bundler.rendered_files == []


def test_prune_rewrites_rendered_bundles(tmp_path):
    (tmp_path / "page.css").write_text(".used{a:b}.unused{c:d}")
    bundler = StylesheetBundler()
    bundler.prepare(tmp_path / "page.css", "/<filename>")

    assert bundler.prune('<div class="used"></div>') == 1
    assert next((tmp_path / "cache").glob("*.css")).read_text() == ".used{a:b}"
    assert bundler.prune('<div class="used"></div>') == 0


def test_use_cache_keeps_existing_bundle(tmp_path):
    (tmp_path / "page.css").write_text(".a{b:c}")
    bundler = StylesheetBundler(use_cache=True)
    bundler.prepare(tmp_path / "page.css", "/<filename>")
    bundle = next((tmp_path / "cache").glob("*.css"))
    bundle.write_text("/* cached */")

    bundler.prepare(tmp_path / "page.css", "/<filename>")

    assert bundle.read_text() == "/* cached */"
