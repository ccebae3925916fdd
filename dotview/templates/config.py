"""
Template subsystem configuration.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


@dataclass
class TemplateConfig:
    """
    Template engine configuration.

    Loaded from workspace config via ``ConfigLoader.get_template_config()``.
    """
    views_dir: str = "views"
    layouts_dir: Optional[str] = None      # Default: <views_dir>/layouts
    modules_dir: str = "modules"
    view_suffix: str = ".view.html"
    layout_suffix: str = ".layout.html"

    # Compilation
    escape: bool = True                    # Strip embedded server code before compiling
    strict_blocks: bool = True             # Unregistered block names fail the compile
    max_layout_depth: int = 20

    # Host evaluator
    sandbox: bool = True
    autoescape: bool = True
    strict_undefined: bool = False

    # Output
    minify_output: bool = False

    # Caching
    cache_enabled: bool = True             # Compiled host templates, keyed by hash
    cache_size: int = 256                  # Compiled host templates kept (LRU)
    css_cache: bool = False                # Reuse bundled stylesheets already on disk
    remove_unused_css: bool = False        # Prune bundled stylesheets after render

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TemplateConfig":
        """Build from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "views_dir": self.views_dir,
            "layouts_dir": self.layouts_dir,
            "modules_dir": self.modules_dir,
            "view_suffix": self.view_suffix,
            "layout_suffix": self.layout_suffix,
            "escape": self.escape,
            "strict_blocks": self.strict_blocks,
            "max_layout_depth": self.max_layout_depth,
            "sandbox": self.sandbox,
            "autoescape": self.autoescape,
            "strict_undefined": self.strict_undefined,
            "minify_output": self.minify_output,
            "cache_enabled": self.cache_enabled,
            "cache_size": self.cache_size,
            "css_cache": self.css_cache,
            "remove_unused_css": self.remove_unused_css,
        }
