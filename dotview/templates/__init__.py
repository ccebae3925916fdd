"""
DotView Templates - Directive template compiler and renderer.

Template text uses a small directive dialect:

    {{ var: $user->name }}
    {{_ "Welcome" }}
    {{ if $items }}...{{ elseif $draft }}...{{ else }}...{{ /if }}
    {{ foreach $items as $item }}...{{ /foreach }}
    {{ block:card(title="News") }}...{{ /block:card }}
    {{ layout:parts/navbar }}

Directives are compiled into view code for a sandboxed Jinja2 host
evaluator, then optionally minified and post-processed by named renderers.

Example:
    from dotview.templates import TemplateEngine

    engine = TemplateEngine()
    engine.add_block("card", lambda inner, attrs, ctx: f"<div class='card'>{inner}</div>")
    html = engine.render_code('{{ block:card }}{{ var: $title }}{{ /block:card }}', {"title": "Hi"})
"""

from .engine import BLOCK_RENDERER, TemplateEngine
from .config import TemplateConfig
from .context import RenderContext
from .compiler import DirectiveCompiler, host_expression
from .blocks import BlockCompiler, BlockRegistry, parse_block_attributes
from .renderers import RendererRegistry
from .loader import ViewLoader
from .security import HOST_SYNTAX, SandboxPolicy, TemplateSandbox
from .escape import escape_php
from .minify import minimize_css, minimize_html, minimize_js
from .stylesheet import StylesheetBundler, collect_classes, concat_css, remove_unused_css
from .faults import (
    MalformedDirectiveFault,
    RendererInvalidFault,
    TemplateFault,
    TemplateNotFoundFault,
    UnknownBlockFault,
    UnknownRendererFault,
    UnsafeContentFault,
)

__all__ = [
    # Core
    "TemplateEngine",
    "TemplateConfig",
    "RenderContext",
    "BLOCK_RENDERER",

    # Compilers & registries
    "DirectiveCompiler",
    "host_expression",
    "BlockCompiler",
    "BlockRegistry",
    "parse_block_attributes",
    "RendererRegistry",

    # Loading & evaluation
    "ViewLoader",
    "HOST_SYNTAX",
    "SandboxPolicy",
    "TemplateSandbox",

    # Text transforms
    "escape_php",
    "minimize_html",
    "minimize_css",
    "minimize_js",

    # Stylesheets
    "StylesheetBundler",
    "collect_classes",
    "concat_css",
    "remove_unused_css",

    # Faults
    "TemplateFault",
    "MalformedDirectiveFault",
    "UnknownRendererFault",
    "UnknownBlockFault",
    "RendererInvalidFault",
    "UnsafeContentFault",
    "TemplateNotFoundFault",
]
