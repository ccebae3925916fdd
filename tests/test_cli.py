"""
Test the `dv` command line.
"""

import pytest
from click.testing import CliRunner

from dotview import __version__
from dotview.cli.__main__ import cli


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, *args):
    return runner.invoke(cli, list(args), obj={}, color=False)


def test_version(runner):
    result = invoke(runner, "--version")

    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_commands(runner):
    result = invoke(runner, "--help")

    assert result.exit_code == 0
    for name in ("compile", "minify", "render"):
        assert name in result.output


# ============================================================================
# compile
# ============================================================================

def test_compile(runner, tmp_path):
    path = tmp_path / "page.view.html"
    path.write_text("{{ var: $x }}")

    result = invoke(runner, "compile", str(path))

    assert result.exit_code == 0
    assert result.output == "<?= x ?>"


def test_compile_no_escape(runner, tmp_path):
    path = tmp_path / "page.view.html"
    path.write_text("<?php a(); ?>{{ var: $x }}")

    assert invoke(runner, "compile", str(path)).output == "<?= x ?>"
    assert invoke(runner, "compile", "--no-escape", str(path)).output == "<?php a(); ?><?= x ?>"


def test_compile_malformed(runner, tmp_path):
    path = tmp_path / "bad.view.html"
    path.write_text("{{ if $a }}never closed")

    result = invoke(runner, "compile", str(path))

    assert result.exit_code == 1
    assert "MALFORMED_DIRECTIVE" in result.output


def test_compile_missing_file(runner, tmp_path):
    result = invoke(runner, "compile", str(tmp_path / "missing.html"))

    assert result.exit_code == 2


# ============================================================================
# minify
# ============================================================================

@pytest.mark.parametrize("kind, source, expected", [
    ("css", "body {  color:  red;  }", "body{color:red}\n"),
    ("html", "<div>  Test  </div>", "<div>Test</div>\n"),
    ("js", "var x = 2; // c", "var x=2;\n"),
])
def test_minify(runner, tmp_path, kind, source, expected):
    path = tmp_path / f"asset.{kind}"
    path.write_text(source)

    result = invoke(runner, "minify", kind, str(path))

    assert result.exit_code == 0
    assert result.output == expected


def test_minify_unknown_kind(runner, tmp_path):
    path = tmp_path / "asset.txt"
    path.write_text("x")

    assert invoke(runner, "minify", "xml", str(path)).exit_code == 2


# ============================================================================
# render
# ============================================================================

def test_render(runner, site_dir):
    result = invoke(
        runner, "render", "plain",
        "--views-dir", str(site_dir / "views"),
        "--var", "user=Ada",
    )

    assert result.exit_code == 0
    assert result.output == "Hi Ada\n"


def test_render_with_layout(runner, site_dir):
    result = invoke(
        runner, "render", "home",
        "--views-dir", str(site_dir / "views"),
        "--layout", "main",
        "--var", "title=Hi",
    )

    assert result.exit_code == 0
    assert result.output == "<h1>Hi</h1><nav><a>Home</a></nav>\n"


def test_render_minify(runner, tmp_path):
    views = tmp_path / "views"
    views.mkdir()
    (views / "page.view.html").write_text("<div>\n  <p> hi </p>\n</div>")

    result = invoke(runner, "render", "page", "--views-dir", str(views), "--minify")

    assert result.output == "<div><p>hi</p></div>\n"


def test_render_config_file(runner, site_dir, tmp_path):
    config = tmp_path / "dotview.yaml"
    config.write_text(f"templates:\n  views_dir: {site_dir / 'views'}\n")

    result = invoke(runner, "render", "plain", "--config", str(config))

    assert result.exit_code == 0
    assert result.output == "Guest\n"


def test_render_verbose(runner, site_dir):
    result = invoke(runner, "-v", "render", "plain", "--views-dir", str(site_dir / "views"))

    assert result.exit_code == 0
    assert "Views:" in result.output
    assert result.output.endswith("Guest\n")


def test_render_missing_view(runner, site_dir):
    result = invoke(runner, "render", "missing", "--views-dir", str(site_dir / "views"))

    assert result.exit_code == 1
    assert "TEMPLATE_NOT_FOUND" in result.output


def test_render_bad_var(runner, site_dir):
    result = invoke(runner, "render", "plain", "--views-dir", str(site_dir / "views"), "--var", "novalue")

    assert result.exit_code == 2


def test_render_invalid_config(runner, tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("- not a mapping\n")

    result = invoke(runner, "render", "plain", "--config", str(config))

    assert result.exit_code == 1
    assert "mapping" in result.output
