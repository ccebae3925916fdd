"""
DotView Templates - Fault domain integration.

Defines typed template faults: structural compile errors, registry
misses, invalid registrations and sanitization reports.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from dotview.faults.core import Fault, FaultDomain, Severity


# Register template fault domain
FaultDomain.TEMPLATES = FaultDomain("templates", "Template compilation and rendering faults")


class TemplateFault(Fault):
    """Base class for all template faults."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        severity: Severity = Severity.ERROR,
        metadata: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            domain=FaultDomain.TEMPLATES,
            severity=severity,
            retryable=False,
            public=False,
            metadata=metadata,
        )


class MalformedDirectiveFault(TemplateFault):
    """Directive structure is broken (unbalanced, unterminated or crossed)."""

    def __init__(self, directive: str, reason: str, position: Optional[int] = None):
        location = f" at offset {position}" if position is not None else ""
        super().__init__(
            code="MALFORMED_DIRECTIVE",
            message=f"Malformed directive '{directive}'{location}: {reason}",
            metadata={"directive": directive, "reason": reason, "position": position},
        )
        self.directive = directive
        self.position = position


class UnknownRendererFault(TemplateFault):
    """No renderer registered under the requested name."""

    def __init__(self, name: str, available: Sequence[str] = ()):
        super().__init__(
            code="UNKNOWN_RENDERER",
            message=f"Renderer '{name}' does not exist",
            metadata={"name": name, "available": sorted(available)},
        )
        self.name = name


class UnknownBlockFault(TemplateFault):
    """Block directive used without a registered handler."""

    def __init__(self, name: str, position: Optional[int] = None):
        super().__init__(
            code="UNKNOWN_BLOCK",
            message=f"Block '{name}' has no registered handler",
            metadata={"name": name, "position": position},
        )
        self.name = name


class RendererInvalidFault(TemplateFault):
    """Renderer or block handler registration is not usable."""

    def __init__(self, name: str, reason: str):
        super().__init__(
            code="RENDERER_INVALID",
            message=f"Cannot register '{name}': {reason}",
            metadata={"name": name, "reason": reason},
        )


class UnsafeContentFault(TemplateFault):
    """
    Embedded server code was removed from template text.

    Reported through logging only; sanitization never aborts a render.
    """

    def __init__(self, segments: Sequence[str]):
        super().__init__(
            code="UNSAFE_CONTENT",
            message=f"Removed {len(segments)} embedded server-code segment(s)",
            severity=Severity.WARN,
            metadata={"segments": [s[:80] for s in segments]},
        )
        self.segments = list(segments)


class TemplateNotFoundFault(TemplateFault):
    """View or layout source could not be located."""

    def __init__(self, name: str, search_paths: Sequence[str] = ()):
        super().__init__(
            code="TEMPLATE_NOT_FOUND",
            message=f"Template '{name}' not found",
            metadata={"name": name, "search_paths": [str(p) for p in search_paths]},
        )
        self.name = name
