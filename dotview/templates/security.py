"""
Template Security - Sandboxed host evaluator for compiled view code.

Provides:
- Sandboxed Jinja2 environment speaking the host dialect (``<?= ?>``, ``<?py ?>``)
- Allowlist-based filter, test and global registry
- XSS protection via autoescape
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Optional, Set

from jinja2 import Environment, StrictUndefined, Undefined, select_autoescape
from jinja2.sandbox import ImmutableSandboxedEnvironment, SandboxedEnvironment


# Delimiters of compiled view code. Directive syntax ({{ }}) is plain data
# to the host evaluator.
HOST_SYNTAX: Dict[str, Any] = {
    "block_start_string": "<?py",
    "block_end_string": "?>",
    "variable_start_string": "<?=",
    "variable_end_string": "?>",
    "comment_start_string": "<?#",
    "comment_end_string": "?>",
    "keep_trailing_newline": True,
}


@dataclass
class SandboxPolicy:
    """
    Host evaluator security policy.

    Attributes:
        allow_unsafe_filters: Allow filters outside the allowlist
        allow_unsafe_globals: Allow globals outside the allowlist
        allowed_filters: Whitelist of allowed filter names
        allowed_tests: Whitelist of allowed test names
        allowed_globals: Whitelist of allowed global names
        autoescape: HTML-escape interpolated values
        strict_undefined: Raise on undefined variables instead of rendering ""
    """

    allow_unsafe_filters: bool = False
    allow_unsafe_globals: bool = False

    allowed_filters: Set[str] = field(default_factory=lambda: {
        "abs", "capitalize", "default", "escape", "first", "float",
        "format", "int", "join", "last", "length", "list", "lower",
        "replace", "reverse", "round", "safe", "sort", "string",
        "striptags", "sum", "title", "trim", "truncate", "unique",
        "upper", "urlencode", "wordcount",
    })

    allowed_tests: Set[str] = field(default_factory=lambda: {
        "boolean", "defined", "divisibleby", "eq", "even", "false",
        "ge", "gt", "in", "iterable", "le", "lt", "mapping", "ne",
        "none", "number", "odd", "sequence", "string", "true",
        "undefined",
    })

    allowed_globals: Set[str] = field(default_factory=lambda: {
        "range", "dict",
    })

    autoescape: bool = True
    strict_undefined: bool = False

    @classmethod
    def strict(cls) -> "SandboxPolicy":
        """Minimal allowlist, undefined variables raise."""
        return cls(strict_undefined=True)

    @classmethod
    def permissive(cls) -> "SandboxPolicy":
        """Expanded allowlist for development."""
        policy = cls()
        policy.allowed_filters.update(["tojson", "pprint", "dictsort"])
        return policy

    def copy(self) -> "SandboxPolicy":
        """Independent copy; the allowlists are not shared."""
        return replace(
            self,
            allowed_filters=set(self.allowed_filters),
            allowed_tests=set(self.allowed_tests),
            allowed_globals=set(self.allowed_globals),
        )

    def is_filter_allowed(self, name: str) -> bool:
        return self.allow_unsafe_filters or name in self.allowed_filters

    def is_test_allowed(self, name: str) -> bool:
        return name in self.allowed_tests

    def is_global_allowed(self, name: str) -> bool:
        return self.allow_unsafe_globals or name in self.allowed_globals


class TemplateSandbox:
    """
    Creates host evaluator environments under a security policy.

    Args:
        policy: Security policy to enforce (copied; registrations do not
            change the caller's policy)
        immutable: Use ImmutableSandboxedEnvironment (no mutation of
            lists and dicts from view code)
        sandboxed: Use a sandboxed environment; a plain jinja2
            Environment otherwise (trusted view code only)
    """

    def __init__(
        self,
        policy: Optional[SandboxPolicy] = None,
        immutable: bool = False,
        sandboxed: bool = True,
    ):
        self.policy = policy.copy() if policy else SandboxPolicy()
        self.immutable = immutable
        self.sandboxed = sandboxed

        self._custom_filters: Dict[str, Callable] = {}
        self._custom_globals: Dict[str, Any] = {}

    def create_environment(self, **kwargs) -> Environment:
        """
        Create the sandboxed host environment.

        Args:
            **kwargs: Additional environment options (override HOST_SYNTAX)
        """
        if not self.sandboxed:
            env_class = Environment
        elif self.immutable:
            env_class = ImmutableSandboxedEnvironment
        else:
            env_class = SandboxedEnvironment

        env_options = {
            **HOST_SYNTAX,
            "autoescape": select_autoescape(
                enabled_extensions=("html", "htm", "xml"),
                default_for_string=True,
            ) if self.policy.autoescape else False,
            "undefined": StrictUndefined if self.policy.strict_undefined else Undefined,
            **kwargs,
        }

        env = env_class(**env_options)

        for name, func in self._custom_filters.items():
            if self.policy.is_filter_allowed(name):
                env.filters[name] = func

        for name, value in self._custom_globals.items():
            if self.policy.is_global_allowed(name):
                env.globals[name] = value

        self._filter_environment(env)
        return env

    def register_filter(self, name: str, func: Callable) -> None:
        """Register a filter and add it to the allowlist."""
        self._custom_filters[name] = func
        self.policy.allowed_filters.add(name)

    def register_global(self, name: str, value: Any) -> None:
        """Register a global and add it to the allowlist."""
        self._custom_globals[name] = value
        self.policy.allowed_globals.add(name)

    def _filter_environment(self, env: Environment) -> None:
        """Remove disallowed filters, tests, and globals from environment."""
        for name in list(env.filters.keys()):
            if not self.policy.is_filter_allowed(name):
                del env.filters[name]

        for name in list(env.tests.keys()):
            if not self.policy.is_test_allowed(name):
                del env.tests[name]

        for name in list(env.globals.keys()):
            if not self.policy.is_global_allowed(name):
                del env.globals[name]
