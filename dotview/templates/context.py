"""
Render Context - Layout and view variable state.

Layout variables and view variables are two independent mappings; a
lookup in one never falls back to the other. Each mapping is scoped by the
name of the active layout or view, so switching the selection switches
the visible bag.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class RenderContext:
    """
    Variable state for one render scope.

    Attributes:
        layout: Active layout name ("" when none is selected)
        view: Active view name ("" when none is selected)
        layout_vars: Layout variable bags keyed by layout name
        view_vars: View variable bags keyed by view name
    """

    layout: str = ""
    view: str = ""
    layout_vars: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    view_vars: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def set_layout(self, name: str) -> None:
        self.layout = name

    def set_view(self, name: str) -> None:
        self.view = name

    # ------------------------------------------------------------------
    # Layout variables
    # ------------------------------------------------------------------

    def set_layout_var(self, name: str, value: Any) -> None:
        self.layout_vars.setdefault(self.layout, {})[name] = value

    def get_layout_var(self, name: str, default: Any = "") -> Any:
        return self.layout_vars.get(self.layout, {}).get(name, default)

    def get_layout_vars(self) -> Dict[str, Any]:
        return dict(self.layout_vars.get(self.layout, {}))

    # ------------------------------------------------------------------
    # View variables
    # ------------------------------------------------------------------

    def set_view_var(self, name: str, value: Any) -> None:
        self.view_vars.setdefault(self.view, {})[name] = value

    def get_view_var(self, name: str, default: Any = "") -> Any:
        return self.view_vars.get(self.view, {}).get(name, default)

    def get_view_vars(self) -> Dict[str, Any]:
        return dict(self.view_vars.get(self.view, {}))

    def clear(self, scope: Optional[str] = None) -> None:
        """
        Drop variables.

        Args:
            scope: "layout" or "view" to clear only the active bag of that
                kind; None clears every bag
        """
        if scope == "layout":
            self.layout_vars.pop(self.layout, None)
        elif scope == "view":
            self.view_vars.pop(self.view, None)
        elif scope is None:
            self.layout_vars.clear()
            self.view_vars.clear()
        else:
            raise ValueError(f"Unknown context scope: {scope!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layout": self.layout,
            "view": self.view,
            "layout_vars": self.get_layout_vars(),
            "view_vars": self.get_view_vars(),
        }
