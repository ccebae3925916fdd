"""
Renderer Registry - Named post-processing functions for compiled output.

Renderers are registered per engine instance. Entries may be callables or
``"package.module:attribute"`` import strings, resolved at registration.
"""

import importlib
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Union

from .faults import RendererInvalidFault, UnknownRendererFault

logger = logging.getLogger("dotview.templates.renderers")


Renderer = Callable[..., str]
HandlerSpec = Union[Callable[..., Any], str]


def resolve_callable(name: str, target: HandlerSpec) -> Callable[..., Any]:
    """
    Resolve a handler registration to a callable.

    Args:
        name: Registration name (used in fault messages)
        target: Callable or ``"module:attribute"`` import string

    Raises:
        RendererInvalidFault: Target does not resolve to a callable
    """
    if callable(target):
        return target

    if not isinstance(target, str) or ":" not in target:
        raise RendererInvalidFault(name, f"expected callable or 'module:attribute', got {target!r}")

    module_path, attr_path = target.rsplit(":", 1)
    try:
        obj: Any = importlib.import_module(module_path)
    except ImportError as e:
        raise RendererInvalidFault(name, f"cannot import '{module_path}': {e}") from e

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise RendererInvalidFault(name, f"'{target}' has no attribute '{part}'") from e

    if not callable(obj):
        raise RendererInvalidFault(name, f"'{target}' is not callable")
    return obj


class RendererRegistry:
    """
    Mapping of renderer name to ``(code, *args) -> code`` function.

    Registering an existing name replaces the previous entry. Lookups of
    unknown names raise ``UnknownRendererFault``.

    Example:
        registry = RendererRegistry()
        registry.add("upper", str.upper)
        registry.render_with("upper", "abc")  # 'ABC'
    """

    def __init__(self):
        self._renderers: Dict[str, Renderer] = {}

    def add(self, name: str, renderer: HandlerSpec) -> "RendererRegistry":
        fn = resolve_callable(name, renderer)
        if name in self._renderers:
            logger.debug(f"Replacing renderer '{name}'")
        self._renderers[name] = fn
        return self

    def get(self, name: str) -> Renderer:
        """
        Get a registered renderer.

        Raises:
            UnknownRendererFault: No renderer registered under ``name``
        """
        try:
            return self._renderers[name]
        except KeyError:
            raise UnknownRendererFault(name, self._renderers.keys()) from None

    def render_with(self, name: str, code: str, *args: Any) -> str:
        """Look up ``name`` and apply it to ``code``."""
        renderer = self.get(name)
        logger.debug(f"Rendering with '{name}'")
        return renderer(code, *args)

    def snapshot(self) -> Mapping[str, Renderer]:
        """Read-only copy of the registry."""
        return MappingProxyType(dict(self._renderers))

    def __contains__(self, name: object) -> bool:
        return name in self._renderers

    def __len__(self) -> int:
        return len(self._renderers)
