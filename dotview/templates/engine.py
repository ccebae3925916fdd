"""
Template Engine - Directive compilation and rendering of views and layouts.

Provides:
- Directive compilation into host view code (escape -> blocks -> directives)
- Sandboxed evaluation of compiled view code
- Named renderer and block registries owned by the instance
- Layout/view selection with scoped variables
- Output minification and stylesheet bundling
"""

import hashlib
import logging
import re
from collections import OrderedDict
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from jinja2 import Template
from markupsafe import Markup

from .blocks import BlockCompiler, BlockHandler, BlockRegistry
from .compiler import TRANSLATOR_NAME, DirectiveCompiler
from .config import TemplateConfig
from .context import RenderContext
from .escape import escape_php
from .loader import ViewLoader
from .minify import minimize_css, minimize_html, minimize_js
from .renderers import HandlerSpec, Renderer, RendererRegistry
from .security import SandboxPolicy, TemplateSandbox
from .stylesheet import StylesheetBundler

logger = logging.getLogger("dotview.templates.engine")


BLOCK_RENDERER = "dotapp.block"

_CONTENT_RE = re.compile(r"\{\{\s*content\s*\}\}")


def _identity(text: str) -> str:
    return text


class TemplateEngine:
    """
    Directive template engine.

    One instance per render scope: the registries and render context are
    instance state and are not shared between engines.

    Args:
        config: Engine configuration (copied; settings changed through the
            engine stay local to it)
        loader: View loader (default: built from ``config``)
        translator: Translation callable ``(key) -> str`` (default: identity)
        sandbox_policy: Security policy for the host evaluator
        globals: Extra globals for view code
        filters: Extra filters for view code

    Example:
        engine = TemplateEngine(TemplateConfig(views_dir="app/views"))
        engine.set_view("home").set_view_var("user", "Ada")
        html = engine.render_view()
    """

    def __init__(
        self,
        config: Optional[TemplateConfig] = None,
        *,
        loader: Optional[ViewLoader] = None,
        translator: Optional[Callable[[str], str]] = None,
        sandbox_policy: Optional[SandboxPolicy] = None,
        globals: Optional[Dict[str, Any]] = None,
        filters: Optional[Dict[str, Callable]] = None,
    ):
        self.config = replace(config) if config else TemplateConfig()
        self.loader = loader or ViewLoader(
            views_dir=self.config.views_dir,
            layouts_dir=self.config.layouts_dir,
            modules_dir=self.config.modules_dir,
            view_suffix=self.config.view_suffix,
            layout_suffix=self.config.layout_suffix,
            max_layout_depth=self.config.max_layout_depth,
        )
        self.context = RenderContext()

        self.renderers = RendererRegistry()
        self.blocks = BlockRegistry()
        self.block_compiler = BlockCompiler(self.blocks, strict=self.config.strict_blocks)
        self.directive_compiler = DirectiveCompiler()
        self.renderers.add(BLOCK_RENDERER, self._render_blocks)

        self.stylesheets = StylesheetBundler(use_cache=self.config.css_cache)

        policy = sandbox_policy or SandboxPolicy(
            autoescape=self.config.autoescape,
            strict_undefined=self.config.strict_undefined,
        )
        self._sandbox = TemplateSandbox(policy=policy, sandboxed=self.config.sandbox)
        self._sandbox.register_global(TRANSLATOR_NAME, translator or _identity)
        self._sandbox.register_global("stylesheet", self._stylesheet_global)
        for name, value in (globals or {}).items():
            self._sandbox.register_global(name, value)
        for name, func in (filters or {}).items():
            self._sandbox.register_filter(name, func)
        self.env = self._sandbox.create_environment()

        self._template_cache: "OrderedDict[str, Template]" = OrderedDict()

    # ========================================================================
    # Registries
    # ========================================================================

    def add_renderer(self, name: str, renderer: HandlerSpec) -> "TemplateEngine":
        """
        Register a renderer ``(code, *args) -> code`` under ``name``.

        Raises:
            RendererInvalidFault: ``renderer`` is not callable or importable
        """
        self.renderers.add(name, renderer)
        return self

    def get_renderer(self, name: str) -> Renderer:
        """
        Raises:
            UnknownRendererFault: No renderer registered under ``name``
        """
        return self.renderers.get(name)

    def render_with(self, name: str, code: str, *args: Any) -> str:
        return self.renderers.render_with(name, code, *args)

    def custom_renderers(self) -> Mapping[str, Renderer]:
        """Read-only snapshot of registered renderers."""
        return self.renderers.snapshot()

    def add_block(self, name: str, handler: HandlerSpec) -> "TemplateEngine":
        """
        Register a block handler ``(inner, attributes, context) -> str``.

        Raises:
            RendererInvalidFault: Blank name or handler not callable
        """
        self.blocks.add(name, handler)
        return self

    def get_block(self, name: str) -> Optional[BlockHandler]:
        return self.blocks.get(name)

    def _render_blocks(self, code: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        context = self.get_view_vars() if variables is None else variables
        return self.block_compiler.compile(code, context)

    # ========================================================================
    # Render context
    # ========================================================================

    def module(self, name: str) -> "TemplateEngine":
        self.loader.module(name)
        return self

    def set_layout(self, name: str) -> "TemplateEngine":
        self.context.set_layout(name)
        return self

    def set_view(self, name: str) -> "TemplateEngine":
        self.context.set_view(name)
        return self

    def set_layout_var(self, name: str, value: Any) -> "TemplateEngine":
        self.context.set_layout_var(name, value)
        return self

    def get_layout_var(self, name: str, default: Any = "") -> Any:
        return self.context.get_layout_var(name, default)

    def get_layout_vars(self) -> Dict[str, Any]:
        return self.context.get_layout_vars()

    def set_view_var(self, name: str, value: Any) -> "TemplateEngine":
        self.context.set_view_var(name, value)
        return self

    def get_view_var(self, name: str, default: Any = "") -> Any:
        return self.context.get_view_var(name, default)

    def get_view_vars(self) -> Dict[str, Any]:
        return self.context.get_view_vars()

    def set_translator(self, translator: Callable[[str], str]) -> "TemplateEngine":
        self.env.globals[TRANSLATOR_NAME] = translator
        return self

    # ========================================================================
    # Settings
    # ========================================================================

    def use_cache(self, enabled: bool) -> "TemplateEngine":
        self.config.cache_enabled = enabled
        if not enabled:
            self.invalidate_cache()
        return self

    def use_css_cache(self, enabled: bool) -> "TemplateEngine":
        self.config.css_cache = enabled
        self.stylesheets.use_cache = enabled
        return self

    def remove_unused_css(self, enabled: bool) -> "TemplateEngine":
        self.config.remove_unused_css = enabled
        return self

    # ========================================================================
    # Text transforms
    # ========================================================================

    minimize_html = staticmethod(minimize_html)
    minimize_css = staticmethod(minimize_css)
    minimize_js = staticmethod(minimize_js)
    escape_php = staticmethod(escape_php)

    # ========================================================================
    # Compilation
    # ========================================================================

    def compile(
        self,
        code: str,
        variables: Optional[Mapping[str, Any]] = None,
        escape: Optional[bool] = None,
    ) -> str:
        """
        Compile directive template text into host view code.

        Args:
            code: Template text
            variables: Context passed to block handlers (default: view variables)
            escape: Strip embedded server code first (default: ``config.escape``)

        Raises:
            MalformedDirectiveFault: Unbalanced, crossed or unterminated directives
            UnknownBlockFault: Unregistered block name with ``strict_blocks``
        """
        if escape is None:
            escape = self.config.escape
        if escape:
            code = escape_php(code)

        code = self.render_with(BLOCK_RENDERER, code, variables)
        return self.directive_compiler.compile(code)

    def _get_template(self, compiled: str) -> Template:
        if not self.config.cache_enabled:
            return self.env.from_string(compiled)

        key = hashlib.sha256(compiled.encode("utf-8")).hexdigest()
        template = self._template_cache.get(key)
        if template is not None:
            self._template_cache.move_to_end(key)
            return template

        template = self._template_cache[key] = self.env.from_string(compiled)
        while len(self._template_cache) > self.config.cache_size:
            self._template_cache.popitem(last=False)
        return template

    def evaluate(self, compiled: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """
        Run compiled view code in the host evaluator.

        Raises:
            jinja2.TemplateSyntaxError: Directive expression is not valid
            jinja2.exceptions.SecurityError: Sandbox violation
        """
        return self._get_template(compiled).render(dict(variables or {}))

    def invalidate_cache(self) -> None:
        self._template_cache.clear()
        logger.debug("Compiled template cache cleared")

    # ========================================================================
    # Rendering
    # ========================================================================

    def render_code(
        self,
        code: str,
        variables: Optional[Mapping[str, Any]] = None,
        escape: Optional[bool] = None,
        renderers: Iterable[str] = (),
    ) -> str:
        """
        Compile and evaluate template text.

        Args:
            code: Template text
            variables: Variables for view code (default: view variables)
            escape: Strip embedded server code first (default: ``config.escape``)
            renderers: Named renderers applied to the output, in order
        """
        if variables is None:
            variables = self.get_view_vars()
        compiled = self.compile(code, variables, escape)
        return self._finish(self.evaluate(compiled, variables), renderers)

    def render_layout_code(self) -> str:
        """Composed and compiled source of the selected layout ("" if none)."""
        if not self.context.layout:
            return ""
        source = self.loader.compose(self.context.layout)
        return self.compile(source, self.get_layout_vars())

    def render_view_code(self) -> str:
        """
        Composed and compiled source of the selected view ("" if none).

        When a layout is selected, it replaces ``{{ content }}`` in the view.

        Raises:
            TemplateNotFoundFault: View file does not exist
        """
        if not self.context.view:
            return ""

        source = self.loader.compose(code=self.loader.load_view(self.context.view))
        if self.context.layout:
            layout = self.loader.compose(self.context.layout)
            source = _CONTENT_RE.sub(lambda _: layout, source)
        return self.compile(source, self.get_view_vars())

    def render_layout(self, renderers: Iterable[str] = ()) -> str:
        variables = self.get_layout_vars()
        output = self.evaluate(self.render_layout_code(), variables)
        return self._finish(output, renderers)

    def render_view(self, renderers: Iterable[str] = ()) -> str:
        variables = self.get_view_vars()
        output = self.evaluate(self.render_view_code(), variables)
        return self._finish(output, renderers)

    def _finish(self, output: str, renderers: Iterable[str]) -> str:
        if self.config.minify_output:
            output = minimize_html(output)

        for name in renderers:
            output = self.render_with(name, output)

        if self.config.remove_unused_css:
            pruned = self.stylesheets.prune(output)
            if pruned:
                logger.debug(f"Pruned {pruned} stylesheet bundle(s)")
        return output

    # ========================================================================
    # Stylesheets
    # ========================================================================

    def prepare_css(self, file: str, href: str, attributes: str = "", after: str = "") -> str:
        """
        Bundle a stylesheet for the selected layout and return its link tag.
        """
        return self.stylesheets.prepare(file, href, attributes, after, layout=self.context.layout)

    def _stylesheet_global(self, file: str, href: str, attributes: str = "", after: str = "") -> Markup:
        return Markup(self.prepare_css(file, href, attributes, after))
