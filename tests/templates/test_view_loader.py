"""
Test view and layout loading and layout composition.
"""

import logging

import pytest

from dotview.templates import TemplateNotFoundFault, ViewLoader


@pytest.fixture
def loader(site_dir):
    return ViewLoader(site_dir / "views", modules_dir=site_dir / "modules")


def test_default_layouts_dir(site_dir):
    loader = ViewLoader(site_dir / "views")

    assert loader.layouts_dir == site_dir / "views" / "layouts"


def test_load_view(loader):
    assert loader.load_view("home") == "<h1>{{ var: $title }}</h1>{{ content }}"


def test_load_missing_view(loader):
    with pytest.raises(TemplateNotFoundFault) as exc:
        loader.load_view("missing")

    assert exc.value.code == "TEMPLATE_NOT_FOUND"
    assert exc.value.name == "missing.view.html"


def test_view_name_cannot_escape_directory(loader):
    with pytest.raises(TemplateNotFoundFault):
        loader.load_view("../secret")


def test_get_layout(loader):
    assert loader.get_layout("parts/menu") == "<a>Home</a>"
    assert loader.get_layout("missing") == ""
    assert loader.get_layout("") == ""


def test_compose_nested_layouts(loader):
    assert loader.compose("main") == "<nav><a>Home</a></nav>"


def test_compose_code(loader):
    assert loader.compose(code="[{{ layout:footer }}]") == "[<footer>base</footer>]"


def test_module_directories(loader):
    loader.module("shop")

    assert loader.load_view("cart") == "{{ layout:side }}|{{ baselayout:footer }}"
    assert loader.compose(code=loader.load_view("cart")) == "<aside>shop</aside>|<footer>base</footer>"

    with pytest.raises(TemplateNotFoundFault):
        loader.load_view("home")


def test_module_reset(loader):
    loader.module("shop").module("")

    assert loader.load_view("home").startswith("<h1>")


def test_compose_depth_limit(site_dir, caplog):
    (site_dir / "views" / "layouts" / "loop.layout.html").write_text("x{{ layout:loop }}")
    loader = ViewLoader(site_dir / "views", max_layout_depth=3)

    with caplog.at_level(logging.WARNING, logger="dotview.templates.loader"):
        assert loader.compose("loop") == "xxx"

    assert any("depth" in r.getMessage() for r in caplog.records)


def test_compose_default_depth(site_dir):
    (site_dir / "views" / "layouts" / "loop.layout.html").write_text("x{{ layout:loop }}")

    assert ViewLoader(site_dir / "views").compose("loop") == "x" * 20
