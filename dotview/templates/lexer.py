"""
Directive Lexer - Splits template text into literal text and directives.

A directive is any ``{{ ... }}`` span. The lexer classifies each span by
its body; spans it does not recognise become ``UNKNOWN`` tokens that the
compilers copy verbatim.

Recognised bodies:

    var: $expr                  VAR
    _ "literal"                 TRANSLATE      (underscore directly after ``{{``)
    _ var: $expr                TRANSLATE_VAR
    if expr / elseif expr       IF / ELSEIF
    else / /if                  ELSE / ENDIF
    foreach expr / /foreach     FOREACH / ENDFOREACH
    block:name(attrs)           BLOCK_OPEN
    /block:name                 BLOCK_CLOSE

The scan position strictly increases on every step, and an opening
``{{`` without a matching ``}}`` is rejected.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from .faults import MalformedDirectiveFault


OPEN = "{{"
CLOSE = "}}"


class TokenType(str, Enum):
    """Token classes produced by the lexer."""
    TEXT = "text"
    VAR = "var"
    TRANSLATE = "translate"
    TRANSLATE_VAR = "translate_var"
    IF = "if"
    ELSEIF = "elseif"
    ELSE = "else"
    ENDIF = "endif"
    FOREACH = "foreach"
    ENDFOREACH = "endforeach"
    BLOCK_OPEN = "block_open"
    BLOCK_CLOSE = "block_close"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Token:
    """
    A lexed span of template text.

    Attributes:
        type: Token class
        text: Exact source text of the span
        start: Offset of the span in the source
        argument: Expression, literal or block name carried by the directive
        attributes: Raw attribute list of a block opening tag
    """

    type: TokenType
    text: str
    start: int
    argument: str = ""
    attributes: Optional[str] = None

    @property
    def end(self) -> int:
        return self.start + len(self.text)

    @property
    def is_directive(self) -> bool:
        return self.type is not TokenType.TEXT


_VARIABLE_RE = re.compile(r"^\$(?!_)[A-Za-z_]\w*")
_STRING_LITERAL_RE = re.compile(r'^"(?:\\.|[^"\\])*"$', re.DOTALL)
_BLOCK_OPEN_RE = re.compile(r"^block:([\w.-]+)\s*(?:\((.*)\))?$", re.DOTALL)
_BLOCK_CLOSE_RE = re.compile(r"^/block:([\w.-]+)$")
_KEYWORD_RE = re.compile(r"^(\S+)(?:\s+(.*))?$", re.DOTALL)


def classify(raw: str, start: int) -> Token:
    """Build the token for a directive whose full text is ``raw``."""
    body = raw[len(OPEN):-len(CLOSE)]

    if body.startswith("_"):
        rest = body[1:].strip()
        if rest.startswith("var:"):
            expr = rest[4:].strip()
            if _VARIABLE_RE.match(expr):
                return Token(TokenType.TRANSLATE_VAR, raw, start, expr)
        elif _STRING_LITERAL_RE.match(rest):
            return Token(TokenType.TRANSLATE, raw, start, rest)
        return Token(TokenType.UNKNOWN, raw, start)

    body = body.strip()

    if body.startswith("var:"):
        expr = body[4:].strip()
        if _VARIABLE_RE.match(expr):
            return Token(TokenType.VAR, raw, start, expr)
        return Token(TokenType.UNKNOWN, raw, start)

    match = _BLOCK_OPEN_RE.match(body)
    if match:
        return Token(TokenType.BLOCK_OPEN, raw, start, match.group(1), match.group(2))
    match = _BLOCK_CLOSE_RE.match(body)
    if match:
        return Token(TokenType.BLOCK_CLOSE, raw, start, match.group(1))

    match = _KEYWORD_RE.match(body)
    if not match:
        return Token(TokenType.UNKNOWN, raw, start)
    keyword, rest = match.group(1), (match.group(2) or "").strip()

    if keyword in ("if", "elseif", "foreach") and rest:
        return Token(TokenType(keyword), raw, start, rest)
    if not rest:
        if keyword == "else":
            return Token(TokenType.ELSE, raw, start)
        if keyword == "/if":
            return Token(TokenType.ENDIF, raw, start)
        if keyword == "/foreach":
            return Token(TokenType.ENDFOREACH, raw, start)
    return Token(TokenType.UNKNOWN, raw, start)


def _find_close(text: str, pos: int) -> int:
    """
    Find the ``}}`` closing a directive body that starts at ``pos``.

    Single- and double-quoted strings inside the body may contain ``}}``.
    If quote tracking runs off the end of the text, the first plain ``}}``
    wins. Returns -1 when there is none.
    """
    i = pos
    n = len(text)
    quote = None
    while i < n:
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif text.startswith(CLOSE, i):
            return i
        i += 1
    return text.find(CLOSE, pos)


def tokenize(text: str) -> Iterator[Token]:
    """
    Yield tokens for ``text`` from left to right.

    Raises:
        MalformedDirectiveFault: An opening ``{{`` is never closed
    """
    pos = 0
    n = len(text)
    while pos < n:
        start = text.find(OPEN, pos)
        if start == -1:
            yield Token(TokenType.TEXT, text[pos:], pos)
            return

        close = _find_close(text, start + len(OPEN))
        if close == -1:
            snippet = text[start:start + 40]
            raise MalformedDirectiveFault(snippet, "unterminated directive, missing '}}'", start)

        # A later '{{' before the close means the earlier one is literal text.
        inner_open = text.rfind(OPEN, start + 1, close)
        if inner_open != -1:
            start = inner_open
            close = _find_close(text, start + len(OPEN))

        if start > pos:
            yield Token(TokenType.TEXT, text[pos:start], pos)

        end = close + len(CLOSE)
        yield classify(text[start:end], start)
        pos = end


def tokenize_list(text: str) -> List[Token]:
    """Tokenize ``text`` eagerly."""
    return list(tokenize(text))
