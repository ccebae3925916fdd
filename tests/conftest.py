"""
Shared test fixtures for the DotView test suite.
"""

import shutil
import tempfile
from pathlib import Path

import pytest

from dotview.templates import TemplateConfig, TemplateEngine


@pytest.fixture
def engine():
    """Engine with default configuration and no view directories."""
    return TemplateEngine()


@pytest.fixture
def site_dir():
    """
    Temporary site tree:

        views/home.view.html
        views/plain.view.html
        views/layouts/main.layout.html
        views/layouts/parts/menu.layout.html
        views/layouts/footer.layout.html
        modules/shop/views/cart.view.html
        modules/shop/views/layouts/side.layout.html
    """
    temp_dir = tempfile.mkdtemp()
    root = Path(temp_dir)

    views = root / "views"
    (views / "layouts" / "parts").mkdir(parents=True)
    (views / "home.view.html").write_text("<h1>{{ var: $title }}</h1>{{ content }}")
    (views / "plain.view.html").write_text("{{ if $user }}Hi {{ var: $user }}{{ else }}Guest{{ /if }}")
    (views / "layouts" / "main.layout.html").write_text("<nav>{{ layout:parts/menu }}</nav>")
    (views / "layouts" / "parts" / "menu.layout.html").write_text("<a>Home</a>")
    (views / "layouts" / "footer.layout.html").write_text("<footer>base</footer>")

    shop = root / "modules" / "shop" / "views"
    (shop / "layouts").mkdir(parents=True)
    (shop / "cart.view.html").write_text("{{ layout:side }}|{{ baselayout:footer }}")
    (shop / "layouts" / "side.layout.html").write_text("<aside>shop</aside>")

    yield root

    shutil.rmtree(temp_dir)


@pytest.fixture
def site_engine(site_dir):
    """Engine reading views from the temporary site tree."""
    config = TemplateConfig(
        views_dir=str(site_dir / "views"),
        modules_dir=str(site_dir / "modules"),
    )
    return TemplateEngine(config)
