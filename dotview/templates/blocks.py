"""
Block Registry & Block Compiler - Named, paired extension directives.

Syntax:

    {{ block:name }}Inner content{{ /block:name }}
    {{ block:name(arg1, arg2, key="value") }}Inner content{{ /block:name }}

A handler is called as ``handler(inner, attributes, context)`` and its
result replaces the whole span, delimiters included. Blocks may nest,
including blocks of the same name; the innermost pair is resolved first.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .faults import MalformedDirectiveFault, RendererInvalidFault, UnknownBlockFault
from .lexer import Token, TokenType, tokenize_list
from .renderers import HandlerSpec, resolve_callable

logger = logging.getLogger("dotview.templates.blocks")


BlockHandler = Callable[[str, Dict[Union[int, str], str], Any], Any]

_ATTRIBUTE_SPLIT_RE = re.compile(r""",(?=(?:[^"']*["'][^"']*["'])*[^"']*$)""")
_KEYWORD_ATTRIBUTE_RE = re.compile(r"^([A-Za-z_][\w-]*)\s*=\s*(.*)$", re.DOTALL)


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_block_attributes(raw: Optional[str]) -> Dict[Union[int, str], str]:
    """
    Parse the attribute list of a block opening tag.

    Positional values are keyed by their index in the list, ``key=value``
    pairs by key. Surrounding quotes are removed.

    Example:
        >>> parse_block_attributes('abc, "x, y", size=large')
        {0: 'abc', 1: 'x, y', 'size': 'large'}
    """
    attributes: Dict[Union[int, str], str] = {}
    if raw is None or not raw.strip():
        return attributes

    for index, part in enumerate(_ATTRIBUTE_SPLIT_RE.split(raw)):
        match = _KEYWORD_ATTRIBUTE_RE.match(part.strip())
        if match:
            attributes[match.group(1)] = _unquote(match.group(2))
        else:
            attributes[index] = _unquote(part)
    return attributes


class BlockRegistry:
    """Mapping of block name to handler."""

    def __init__(self):
        self._handlers: Dict[str, BlockHandler] = {}

    def add(self, name: str, handler: HandlerSpec) -> "BlockRegistry":
        """
        Register a block handler, replacing any previous one.

        Raises:
            RendererInvalidFault: Blank name or handler not callable
        """
        if not isinstance(name, str) or not name.strip():
            raise RendererInvalidFault(repr(name), "block name must not be blank")
        self._handlers[name] = resolve_callable(name, handler)
        logger.debug(f"Registered block '{name}'")
        return self

    def get(self, name: str) -> Optional[BlockHandler]:
        return self._handlers.get(name)

    def names(self) -> List[str]:
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers


class BlockCompiler:
    """
    Resolves block directives in template text.

    Args:
        registry: Block handlers
        strict: Raise ``UnknownBlockFault`` for unregistered names; when
            False the directive is left verbatim around its resolved content

    Example:
        registry = BlockRegistry().add("bold", lambda inner, attrs, ctx: f"<b>{inner}</b>")
        BlockCompiler(registry).compile("{{ block:bold }}x{{ /block:bold }}")
        # '<b>x</b>'
    """

    def __init__(self, registry: BlockRegistry, strict: bool = True):
        self.registry = registry
        self.strict = strict

    def compile(self, code: str, context: Any = None) -> str:
        """
        Resolve every block in ``code``.

        Raises:
            MalformedDirectiveFault: Unclosed, unmatched or crossed block tags
            UnknownBlockFault: Unregistered block name in strict mode
        """
        tokens = tokenize_list(code)
        if not any(t.type in (TokenType.BLOCK_OPEN, TokenType.BLOCK_CLOSE) for t in tokens):
            return code

        output, _, _ = self._resolve(tokens, 0, None, context)
        return output

    def _resolve(
        self,
        tokens: Sequence[Token],
        pos: int,
        opener: Optional[Token],
        context: Any,
    ) -> Tuple[str, int, Optional[Token]]:
        parts: List[str] = []
        while pos < len(tokens):
            token = tokens[pos]
            pos += 1

            if token.type is TokenType.BLOCK_OPEN:
                inner, pos, closer = self._resolve(tokens, pos, token, context)
                parts.append(self._apply(token, inner, closer, context))
            elif token.type is TokenType.BLOCK_CLOSE:
                if opener is None:
                    raise MalformedDirectiveFault(
                        token.text.strip(), "no matching block opening", token.start
                    )
                if token.argument != opener.argument:
                    raise MalformedDirectiveFault(
                        token.text.strip(),
                        f"expected '{{{{ /block:{opener.argument} }}}}'",
                        token.start,
                    )
                return "".join(parts), pos, token
            else:
                parts.append(token.text)

        if opener is not None:
            raise MalformedDirectiveFault(
                opener.text.strip(), "block is never closed", opener.start
            )
        return "".join(parts), pos, None

    def _apply(self, opener: Token, inner: str, closer: Token, context: Any) -> str:
        handler = self.registry.get(opener.argument)
        if handler is None:
            if self.strict:
                raise UnknownBlockFault(opener.argument, opener.start)
            logger.warning(f"Block '{opener.argument}' has no handler, left verbatim")
            return f"{opener.text}{inner}{closer.text}"

        attributes = parse_block_attributes(opener.attributes)
        result = handler(inner, attributes, context)
        return "" if result is None else str(result)
