"""
Stylesheet Bundling - Concatenate, minify and prune page stylesheets.

A view calls ``stylesheet(file, href)``; the source stylesheet and its
``@import`` tree are flattened into ``<dir>/cache/<stem>_cache_<md5>.css``
and a ``<link>`` tag pointing at the bundle is emitted. After the page is
rendered, bundles can be pruned to the classes the page actually uses.
"""

import hashlib
import logging
import posixpath
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from .minify import minimize_css

logger = logging.getLogger("dotview.templates.stylesheet")


_IMPORT_RE = re.compile(
    r"""@import\s+(?:url\(\s*)?["']?([^"')\s;]+)["']?\s*\)?[^;]*;""",
    re.IGNORECASE,
)
_RELATIVE_REF_RE = re.compile(r"""(?P<quote>["'])(?P<dots>\.\.?/)|url\((?P<url>\.\.?/)""")
_CLASS_ATTR_RE = re.compile(r"""\bclass="([^"]*)"|\bclass='([^']*)'""")
_SELECTOR_CLASS_RE = re.compile(r"\.(-?[_a-zA-Z][\w-]*)")

PathLike = Union[str, Path]


def _normalize(path: str) -> str:
    while "//" in path or "././" in path:
        path = path.replace("//", "/").replace("././", "./")
    return path


def concat_css(path: PathLike, relative_path: str = "../", _chain: Optional[Set[Path]] = None) -> str:
    """
    Flatten a stylesheet and its ``@import`` statements.

    Relative references (``"./"``, ``"../"``, ``url(./``, ``url(../``) are
    prefixed with ``relative_path`` so they resolve from the bundle
    directory, which sits one level below the source by default.

    Example:
        ``url(./img/bg.png)`` -> ``url(../img/bg.png)``
        ``url(../img/a.png)`` in ``parts/base.css`` -> ``url(../parts/../img/a.png)``

    A sheet imported from two places is inlined at both. An import back
    into the chain of sheets being flattened is a cycle and is skipped.
    """
    source_path = Path(_normalize(str(path)))
    relative_path = _normalize(relative_path)
    chain = _chain if _chain is not None else set()

    resolved = source_path.resolve()
    if resolved in chain:
        logger.warning(f"Stylesheet import cycle at {source_path}, skipped")
        return ""

    try:
        css = source_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning(f"Stylesheet {source_path} not found")
        return f"/* SOURCE CSS FILE '{source_path}' NOT FOUND */"

    imports: List[str] = []

    def stash_import(match: "re.Match[str]") -> str:
        imports.append(match.group(1))
        return f"\x00{len(imports) - 1}\x00"

    css = _IMPORT_RE.sub(stash_import, css)

    def rewrite(match: "re.Match[str]") -> str:
        prefix = "url(" if match.group("url") else match.group("quote")
        dots = match.group("url") or match.group("dots")
        return f"{prefix}{relative_path}{'' if dots == './' else dots}"

    css = _RELATIVE_REF_RE.sub(rewrite, css)

    def inline_import(match: "re.Match[str]") -> str:
        target = imports[int(match.group(1))]
        sub_dir = posixpath.dirname(target)
        nested = f"{relative_path}/{sub_dir}/" if sub_dir else relative_path
        return concat_css(source_path.parent / target, nested, chain)

    chain.add(resolved)
    try:
        return re.sub(r"\x00(\d+)\x00", inline_import, css)
    finally:
        chain.discard(resolved)


def collect_classes(html: str) -> Set[str]:
    """Class selectors (``.name``) used by ``class`` attributes in ``html``."""
    classes: Set[str] = set()
    for match in _CLASS_ATTR_RE.finditer(html):
        value = match.group(1) if match.group(1) is not None else match.group(2)
        classes.update(f".{name}" for name in value.split())
    return classes


def _keeps(selector: str, used: Set[str]) -> bool:
    selector = selector.strip()
    if selector.startswith("@") or ":root" in selector:
        return True
    names = _SELECTOR_CLASS_RE.findall(selector)
    return not names or any(f".{name}" in used for name in names)


def remove_unused_css(css: str, used: Iterable[str]) -> str:
    """
    Drop rule blocks whose selector names classes that are all unused.

    At-rules (``@media``, ``@font-face``, ...) and ``:root`` are kept;
    rules nested inside ``@media`` are filtered the same way.

    Example:
        >>> remove_unused_css(".a{color:red}.b{color:blue}", {".a"})
        '.a{color:red}'
    """
    used = set(used)
    out: List[str] = []
    buffer: List[str] = []
    skipping = 0

    for ch in css:
        if skipping:
            if ch == "{":
                skipping += 1
            elif ch == "}":
                skipping -= 1
            continue

        if ch == "{":
            head, sep, selector = "".join(buffer).rpartition(";")
            out.append(head + sep)
            buffer = []
            if _keeps(selector, used):
                out.append(selector + "{")
            else:
                skipping = 1
        elif ch == "}":
            out.append("".join(buffer) + "}")
            buffer = []
        else:
            buffer.append(ch)

    out.append("".join(buffer))
    return "".join(out)


class StylesheetBundler:
    """
    Builds cached stylesheet bundles for rendered pages.

    Args:
        use_cache: Reuse an existing bundle file instead of rebuilding it
        cache_dir_name: Bundle directory created next to each source file
    """

    def __init__(self, use_cache: bool = False, cache_dir_name: str = "cache"):
        self.use_cache = use_cache
        self.cache_dir_name = cache_dir_name
        self.rendered_files: List[Path] = []

    def bundle_name(self, file: PathLike, layout: str = "") -> str:
        stem = Path(file).name.split(".")[0]
        digest = hashlib.md5(layout.encode("utf-8")).hexdigest()
        return f"{stem}_cache_{digest}.css"

    def prepare(
        self,
        file: PathLike,
        href: str,
        attributes: str = "",
        after: str = "",
        layout: str = "",
    ) -> str:
        """
        Build (or reuse) the bundle for ``file`` and return its link tag.

        ``<filename>`` in ``href`` and ``after`` is replaced with the
        bundle's path relative to the source directory.
        """
        source = Path(file)
        cache_dir = source.parent / self.cache_dir_name
        cache_dir.mkdir(parents=True, exist_ok=True)

        name = self.bundle_name(source, layout)
        target = cache_dir / name

        if not self.use_cache or not target.exists():
            if source.exists():
                css = minimize_css(concat_css(source))
                self.rendered_files.append(target)
            else:
                logger.warning(f"Stylesheet {source} not found")
                css = f"/* SOURCE CSS FILE '{source}' NOT FOUND */"
            target.write_text(css, encoding="utf-8")
            logger.debug(f"Wrote stylesheet bundle {target}")

        bundle_ref = f"{self.cache_dir_name}/{name}"
        href = href.replace("<filename>", bundle_ref)
        after = after.replace("<filename>", bundle_ref)
        attrs = f" {attributes}" if attributes else ""
        return f'<link href="{href}"{attrs}>{after}'

    def prune(self, html: str) -> int:
        """
        Remove rules for classes ``html`` does not use from bundles built
        since the last prune. Returns the number of files rewritten.
        """
        if not self.rendered_files:
            return 0

        used = collect_classes(html)
        count = 0
        for path in self.rendered_files:
            if path.exists():
                path.write_text(remove_unused_css(path.read_text(encoding="utf-8"), used), encoding="utf-8")
                count += 1
        self.rendered_files = []
        return count
