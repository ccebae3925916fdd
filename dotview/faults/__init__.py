"""
DotView Faults - Typed fault signals.

Errors in DotView are structured faults carrying a stable code, a domain
and a severity, so callers can branch on ``fault.code`` instead of parsing
messages.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain registry
- Severity: Severity levels
"""

from .core import (
    DOMAIN_DEFAULTS,
    Fault,
    FaultDomain,
    Severity,
)

__all__ = [
    "DOMAIN_DEFAULTS",
    "Fault",
    "FaultDomain",
    "Severity",
]
