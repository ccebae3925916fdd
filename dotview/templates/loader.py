"""
View Loader - Filesystem lookup and layout composition.

Directory layout:
    <views_dir>/<name>.view.html
    <layouts_dir>/<name>.layout.html
    <modules_dir>/<module>/views/<name>.view.html
    <modules_dir>/<module>/views/layouts/<name>.layout.html

Layouts include other layouts with ``{{ layout:name }}`` (active
directories) or ``{{ baselayout:name }}`` (base directories, even while a
module is selected). Inclusion recurses up to ``max_layout_depth``.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Union

from jinja2 import TemplateNotFound
from jinja2.loaders import FileSystemLoader

from .faults import TemplateNotFoundFault

logger = logging.getLogger("dotview.templates.loader")


_LAYOUT_RE = re.compile(r"\{\{\s*layout\s*:\s*([^}\s]+)\s*\}\}")
_BASELAYOUT_RE = re.compile(r"\{\{\s*baselayout\s*:\s*([^}\s]+)\s*\}\}")

PathLike = Union[str, Path]


class ViewLoader:
    """
    Reads view and layout sources.

    Names are resolved through jinja2's ``FileSystemLoader``, so they may
    contain sub-directories (``parts/navbar``) but never escape the search
    directory.

    Args:
        views_dir: Base views directory
        layouts_dir: Base layouts directory (default: ``<views_dir>/layouts``)
        modules_dir: Directory holding module packages
        view_suffix: File suffix of views
        layout_suffix: File suffix of layouts
        max_layout_depth: Maximum layout inclusion depth
        encoding: Source file encoding
    """

    def __init__(
        self,
        views_dir: PathLike = "views",
        layouts_dir: Optional[PathLike] = None,
        modules_dir: Optional[PathLike] = None,
        view_suffix: str = ".view.html",
        layout_suffix: str = ".layout.html",
        max_layout_depth: int = 20,
        encoding: str = "utf-8",
    ):
        self.base_views_dir = Path(views_dir)
        self.base_layouts_dir = Path(layouts_dir) if layouts_dir else self.base_views_dir / "layouts"
        self.modules_dir = Path(modules_dir) if modules_dir else Path("modules")
        self.view_suffix = view_suffix
        self.layout_suffix = layout_suffix
        self.max_layout_depth = max_layout_depth
        self.encoding = encoding

        self.views_dir = self.base_views_dir
        self.layouts_dir = self.base_layouts_dir
        self._loaders: Dict[Path, FileSystemLoader] = {}

    def module(self, name: str) -> "ViewLoader":
        """Select a module's view directories; an empty name restores the base ones."""
        if name:
            self.views_dir = self.modules_dir / name / "views"
            self.layouts_dir = self.views_dir / "layouts"
        else:
            self.views_dir = self.base_views_dir
            self.layouts_dir = self.base_layouts_dir
        logger.debug(f"View directory set to {self.views_dir}")
        return self

    def _read(self, directory: Path, filename: str) -> Optional[str]:
        loader = self._loaders.get(directory)
        if loader is None:
            loader = self._loaders[directory] = FileSystemLoader(str(directory), encoding=self.encoding)
        try:
            source, _, _ = loader.get_source(None, filename)
        except TemplateNotFound:
            return None
        return source

    def get_layout(self, name: str, base: bool = False) -> str:
        """Layout source, or "" when ``name`` is empty or the file is missing."""
        if not name:
            return ""
        directory = self.base_layouts_dir if base else self.layouts_dir
        source = self._read(directory, name + self.layout_suffix)
        if source is None:
            logger.debug(f"Layout '{name}' not found in {directory}")
            return ""
        return source

    def load_view(self, name: str) -> str:
        """
        View source.

        Raises:
            TemplateNotFoundFault: View file does not exist
        """
        source = self._read(self.views_dir, name + self.view_suffix)
        if source is None:
            raise TemplateNotFoundFault(name + self.view_suffix, [str(self.views_dir)])
        return source

    def compose(self, layout: str = "", code: str = "", depth: int = 0, base: bool = False) -> str:
        """
        Inline nested layouts.

        Args:
            layout: Layout to load when ``code`` is empty
            code: Source to compose instead of loading ``layout``
            depth: Current inclusion depth
            base: Resolve ``{{ layout:... }}`` from the base directories

        Returns:
            Composed source; "" once ``max_layout_depth`` is reached
        """
        if depth >= self.max_layout_depth:
            logger.warning(
                f"Layout inclusion depth {self.max_layout_depth} reached at '{layout}', "
                f"possible include cycle"
            )
            return ""

        source = code or self.get_layout(layout, base=base)
        depth += 1

        source = _LAYOUT_RE.sub(
            lambda m: self.compose(m.group(1), depth=depth, base=base), source
        )
        return _BASELAYOUT_RE.sub(
            lambda m: self.compose(m.group(1), depth=depth, base=True), source
        )
