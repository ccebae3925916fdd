"""DotView CLI - Main Entry Point.

Commands:
    compile  - Print compiled view code for a template file
    minify   - Minify an HTML, CSS or JavaScript file
    render   - Render a view with an optional layout and variables
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from jinja2 import TemplateError

from . import __version__, __cli_name__
from .utils.colors import error, kv, _CROSS


class DotViewGroup(click.Group):
    """Click group listing commands in aligned columns."""

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None or cmd.hidden:
                continue
            commands.append((subcommand, cmd.get_short_help_str(limit=48)))

        if commands:
            with formatter.section(click.style("Commands", fg="cyan", bold=True)):
                max_len = max(len(c[0]) for c in commands) + 2
                for name, help_text in commands:
                    styled_name = click.style(name.ljust(max_len), fg="green")
                    formatter.write(f"  {styled_name} {help_text}\n")


def _parse_vars(pairs: Tuple[str, ...]) -> dict:
    variables = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected key=value, got '{pair}'", param_hint="--var")
        key, value = pair.split("=", 1)
        variables[key.strip()] = value
    return variables


@click.group(cls=DotViewGroup)
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, verbose: bool):
    """Compile, render and minify directive templates.

    \b
    Quick start:
      dv compile views/home.view.html
      dv render home --views-dir views --var user=Ada
      dv minify css static/site.css
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ============================================================================
# Commands
# ============================================================================

@cli.command('compile')
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--no-escape', is_flag=True, help='Keep embedded server code')
def compile_cmd(file: Path, no_escape: bool):
    """
    Print compiled view code for FILE.

    Examples:
      dv compile views/home.view.html
      dv compile partial.html --no-escape
    """
    from dotview.templates import TemplateEngine, TemplateFault

    engine = TemplateEngine()
    try:
        click.echo(engine.compile(file.read_text(encoding="utf-8"), escape=not no_escape), nl=False)
    except TemplateFault as e:
        error(f"  {_CROSS} {e}")
        sys.exit(1)


@cli.command('minify')
@click.argument('kind', type=click.Choice(['html', 'css', 'js']))
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
def minify_cmd(kind: str, file: Path):
    """
    Print minified FILE.

    Examples:
      dv minify html public/index.html
      dv minify js static/app.js
    """
    from dotview.templates import minimize_css, minimize_html, minimize_js

    minifier = {"html": minimize_html, "css": minimize_css, "js": minimize_js}[kind]
    click.echo(minifier(file.read_text(encoding="utf-8")))


@cli.command('render')
@click.argument('view')
@click.option('--views-dir', type=click.Path(file_okay=False, path_type=Path), help='Views directory')
@click.option('--layout', type=str, help='Layout to wrap the view with')
@click.option('--var', 'var_pairs', multiple=True, help='View variable as key=value (repeatable)')
@click.option('--minify', is_flag=True, help='Minify the rendered HTML')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False), help='YAML/JSON config file')
@click.pass_context
def render_cmd(
    ctx,
    view: str,
    views_dir: Optional[Path],
    layout: Optional[str],
    var_pairs: Tuple[str, ...],
    minify: bool,
    config_file: Optional[str],
):
    """
    Render VIEW and print the output.

    Examples:
      dv render home --views-dir app/views
      dv render home --views-dir app/views --layout main --var title=Hello
      dv render home --config dotview.yaml --minify
    """
    from dotview.config import ConfigError, ConfigLoader
    from dotview.templates import TemplateEngine, TemplateFault

    try:
        overrides = {}
        if views_dir is not None:
            overrides["views_dir"] = str(views_dir)
        if minify:
            overrides["minify_output"] = True

        loader = ConfigLoader.load(
            paths=[config_file] if config_file else None,
            overrides={"templates": overrides},
        )
        config = loader.get_template_config()

        if ctx.obj['verbose']:
            kv("Views", config.views_dir)
            kv("Layout", layout or "-")

        engine = TemplateEngine(config)
        engine.set_view(view)
        if layout:
            engine.set_layout(layout)
        for key, value in _parse_vars(var_pairs).items():
            engine.set_view_var(key, value)

        click.echo(engine.render_view())

    except (TemplateFault, ConfigError, TemplateError) as e:
        error(f"  {_CROSS} {e}")
        sys.exit(1)


def main():
    """Entry point for `dv` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
