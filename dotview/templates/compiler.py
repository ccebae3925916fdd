"""
Directive Compiler - Rewrites template directives into host view code.

The host evaluator is a sandboxed Jinja2 environment using
processing-instruction delimiters (see ``security.HOST_SYNTAX``):

    {{ var: $name }}                    ->  <?= name ?>
    {{_ "Hello" }}                      ->  <?= translator("Hello") ?>
    {{_ var: $key }}                    ->  <?= translator(key) ?>
    {{ if $c }}A{{ elseif $d }}B{{ else }}C{{ /if }}
                                        ->  <?py if c ?>A<?py elif d ?>B<?py else ?>C<?py endif ?>
    {{ foreach $items as $item }}       ->  <?py for item in items ?>
    {{ foreach $map as $k => $v }}      ->  <?py for k, v in map.items() ?>
    {{ /foreach }}                      ->  <?py endfor ?>

Anything else between ``{{`` and ``}}`` is copied verbatim. Structural
errors abort the compile; no partially substituted text is returned.
"""

import logging
import re
from typing import FrozenSet, List, Optional, Sequence, Tuple

from .faults import MalformedDirectiveFault
from .lexer import Token, TokenType, tokenize_list

logger = logging.getLogger("dotview.templates.compiler")


TRANSLATOR_NAME = "translator"

_IF_BRANCHES = frozenset({TokenType.ELSEIF, TokenType.ELSE, TokenType.ENDIF})
_FOREACH_END = frozenset({TokenType.ENDFOREACH})
_CLOSERS = _IF_BRANCHES | _FOREACH_END

_FOREACH_RE = re.compile(
    r"^(?P<iterable>.+?)\s+as\s+\$(?P<first>[A-Za-z]\w*)"
    r"(?:\s*=>\s*\$(?P<second>[A-Za-z]\w*))?$",
    re.DOTALL,
)
_NAME_RE = re.compile(r"\w+")


def host_expression(expr: str, directive: Optional[str] = None, position: Optional[int] = None) -> str:
    """
    Rewrite a directive expression into a host expression.

    Outside string literals, ``$name`` becomes ``name``, ``->`` becomes
    ``.``, ``&&``/``||`` become ``and``/``or``, ``===``/``!==`` become
    ``==``/``!=`` and a ``!`` that is not part of ``!=`` becomes ``not``.

    Args:
        expr: Directive expression
        directive: Directive text reported on error (default: ``expr``)
        position: Offset of the directive reported on error

    Raises:
        MalformedDirectiveFault: The expression names a private ``$_`` variable

    Example:
        >>> host_expression("$user->admin && !$banned")
        'user.admin and not banned'
    """
    out: List[str] = []
    i = 0
    n = len(expr)

    def word_operator(word: str) -> None:
        while out and out[-1].endswith(" "):
            out[-1] = out[-1].rstrip()
        out.append(f" {word} " if out and out[-1] not in ("(", "[") else f"{word} ")

    while i < n:
        ch = expr[i]
        if ch in "\"'":
            j = i + 1
            while j < n and expr[j] != ch:
                j += 2 if expr[j] == "\\" else 1
            out.append(expr[i:j + 1])
            i = j + 1
            continue
        if ch == "$" and i + 1 < n and (expr[i + 1].isalpha() or expr[i + 1] == "_"):
            if expr[i + 1] == "_":
                name = _NAME_RE.match(expr, i + 1).group(0)
                raise MalformedDirectiveFault(
                    directive or expr, f"private variable '${name}' is not accessible", position
                )
            i += 1
            continue
        if expr.startswith("===", i) or expr.startswith("!==", i):
            out.append("==" if ch == "=" else "!=")
            i += 3
            continue
        if expr.startswith("->", i):
            out.append(".")
            i += 2
            continue
        if expr.startswith("&&", i) or expr.startswith("||", i):
            word_operator("and" if ch == "&" else "or")
            i += 2
            while i < n and expr[i].isspace():
                i += 1
            continue
        if ch == "!" and not expr.startswith("!=", i):
            word_operator("not")
            i += 1
            while i < n and expr[i].isspace():
                i += 1
            continue
        out.append(ch)
        i += 1

    return "".join(out).strip()


class _Parser:
    """Recursive-descent pass over one token list."""

    def __init__(self, compiler: "DirectiveCompiler", tokens: Sequence[Token]):
        self.compiler = compiler
        self.tokens = tokens
        self.pos = 0

    def parse(
        self,
        until: FrozenSet[TokenType] = frozenset(),
        opener: Optional[Token] = None,
    ) -> Tuple[List[str], Optional[Token]]:
        """
        Compile tokens until one of ``until`` is reached.

        Returns the compiled parts and the terminating token.
        """
        parts: List[str] = []
        while self.pos < len(self.tokens):
            token = self.tokens[self.pos]
            self.pos += 1

            if token.type in until:
                return parts, token
            if token.type is TokenType.IF:
                parts.append(self._parse_if(token))
            elif token.type is TokenType.FOREACH:
                parts.append(self._parse_foreach(token))
            elif token.type in _CLOSERS:
                raise MalformedDirectiveFault(
                    token.text.strip(), "no matching opening directive", token.start
                )
            else:
                parts.append(self.compiler.emit(token))

        if opener is not None:
            raise MalformedDirectiveFault(
                opener.text.strip(), "missing closing directive", opener.start
            )
        return parts, None

    @staticmethod
    def _expression(expr: str, token: Token) -> str:
        return host_expression(expr, token.text.strip(), token.start)

    def _parse_if(self, opener: Token) -> str:
        parts = [self.compiler.statement(f"if {self._expression(opener.argument, opener)}")]
        body, end = self.parse(_IF_BRANCHES, opener)
        parts.extend(body)

        seen_else = False
        while end.type is not TokenType.ENDIF:
            if seen_else:
                raise MalformedDirectiveFault(
                    end.text.strip(), "branch after 'else'", end.start
                )
            if end.type is TokenType.ELSEIF:
                parts.append(self.compiler.statement(f"elif {self._expression(end.argument, end)}"))
            else:
                seen_else = True
                parts.append(self.compiler.statement("else"))
            body, end = self.parse(_IF_BRANCHES, opener)
            parts.extend(body)

        parts.append(self.compiler.statement("endif"))
        return "".join(parts)

    def _parse_foreach(self, opener: Token) -> str:
        match = _FOREACH_RE.match(opener.argument)
        if not match:
            raise MalformedDirectiveFault(
                opener.text.strip(), "expected '<iterable> as $item'", opener.start
            )

        iterable = self._expression(match.group("iterable"), opener)
        if match.group("second"):
            head = f"for {match.group('first')}, {match.group('second')} in {iterable}.items()"
        else:
            head = f"for {match.group('first')} in {iterable}"

        parts = [self.compiler.statement(head)]
        body, _ = self.parse(_FOREACH_END, opener)
        parts.extend(body)
        parts.append(self.compiler.statement("endfor"))
        return "".join(parts)


class DirectiveCompiler:
    """
    Compiles directive templates into host view code.

    Args:
        translator_name: Name of the translation callable in the host scope

    Example:
        compiler = DirectiveCompiler()
        compiler.compile('{{ if $user }}{{_ "Hello" }}{{ /if }}')
        # '<?py if user ?><?= translator("Hello") ?><?py endif ?>'
    """

    def __init__(self, translator_name: str = TRANSLATOR_NAME):
        self.translator_name = translator_name

    def compile(self, text: str) -> str:
        """
        Compile ``text``.

        Raises:
            MalformedDirectiveFault: Unbalanced, crossed or unterminated directives
        """
        tokens = tokenize_list(text)
        parts, _ = _Parser(self, tokens).parse()
        compiled = "".join(parts)
        logger.debug(
            f"Compiled {sum(1 for t in tokens if t.is_directive)} directive(s) "
            f"({len(text)} -> {len(compiled)} chars)"
        )
        return compiled

    def emit(self, token: Token) -> str:
        """
        Host code for a single non-structural token.

        Interpolations naming a private ``$_`` variable anywhere in their
        expression are copied verbatim, like any unrecognised directive.
        """
        if token.type is TokenType.TRANSLATE:
            return self.interpolation(f"{self.translator_name}({token.argument})")
        if token.type not in (TokenType.VAR, TokenType.TRANSLATE_VAR):
            return token.text

        try:
            expr = host_expression(token.argument, token.text.strip(), token.start)
        except MalformedDirectiveFault as e:
            logger.debug(f"Left directive verbatim: {e.message}")
            return token.text
        if token.type is TokenType.TRANSLATE_VAR:
            expr = f"{self.translator_name}({expr})"
        return self.interpolation(expr)

    @staticmethod
    def interpolation(expr: str) -> str:
        return f"<?= {expr} ?>"

    @staticmethod
    def statement(stmt: str) -> str:
        return f"<?py {stmt} ?>"
