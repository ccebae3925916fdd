"""
Output Minifiers - Whitespace and comment stripping for generated output.

Provides three independent, pure transforms:
- minimize_html: drops comments and whitespace touching tag boundaries
- minimize_css: drops comments and whitespace around punctuation
- minimize_js: string/regex aware comment and whitespace stripping

All three are idempotent: minifying minified output returns it unchanged.
"""

import re
from typing import List, Optional, Tuple


# ============================================================================
# HTML
# ============================================================================

# Conditional comments (<!--[if IE]>, <![endif]-->) are kept.
_HTML_COMMENT_RE = re.compile(r"<!--(?!\[)(?!<!).*?-->", re.DOTALL)

# Elements whose content is whitespace-significant or not markup.
_HTML_PRESERVE_RE = re.compile(
    r"<(pre|textarea|script|style)\b[^>]*>.*?</\1\s*>",
    re.DOTALL | re.IGNORECASE,
)

_WHITESPACE_RE = re.compile(r"\s+")
_AFTER_TAG_RE = re.compile(r">\s+")
_BEFORE_TAG_RE = re.compile(r"\s+<")


def _minimize_markup(chunk: str) -> str:
    chunk = _HTML_COMMENT_RE.sub("", chunk)
    chunk = _WHITESPACE_RE.sub(" ", chunk)
    chunk = _AFTER_TAG_RE.sub(">", chunk)
    return _BEFORE_TAG_RE.sub("<", chunk)


def minimize_html(html: str) -> str:
    """
    Minify markup.

    Removes comments, removes whitespace that touches a tag boundary and
    collapses remaining whitespace runs inside text to a single space.
    Content of ``pre``, ``textarea``, ``script`` and ``style`` elements is
    left untouched.

    Example:
        >>> minimize_html("<div>  Test  </div> <!-- c --> <p>  Text  </p>")
        '<div>Test</div><p>Text</p>'
    """
    parts: List[str] = []
    last = 0
    for match in _HTML_PRESERVE_RE.finditer(html):
        parts.append(_minimize_markup(html[last:match.start()]).rstrip())
        parts.append(match.group(0))
        last = match.end()
        # Whitespace after a preserved element touches its closing tag.
        while last < len(html) and html[last].isspace():
            last += 1
    parts.append(_minimize_markup(html[last:]))
    return "".join(parts).strip()


# ============================================================================
# CSS
# ============================================================================

_CSS_SEGMENT_RE = re.compile(
    r"""("(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*'|/\*.*?\*/)""",
    re.DOTALL,
)
_CSS_PUNCT_RE = re.compile(r"\s*([{};:,>])\s*")
_CSS_EMPTY_DECL_RE = re.compile(r";+(?=[;}])")
_CSS_IMPORTANT_RE = re.compile(r"!\s+important", re.IGNORECASE)


def minimize_css(css: str) -> str:
    """
    Minify a stylesheet.

    Removes comments and whitespace adjacent to ``{ } : ; , >`` and drops
    the semicolon before ``}``. A single space before value tokens such as
    ``!important`` is kept. Quoted strings are never altered.

    Example:
        >>> minimize_css("p { margin: 0 !important; }")
        'p{margin:0 !important}'
    """
    # Comments become a space so neighbouring tokens stay apart.
    segments = _CSS_SEGMENT_RE.split(css)
    text = "".join(
        " " if index % 2 and segment.startswith("/*") else segment
        for index, segment in enumerate(segments)
    )

    # Even indices are outside string literals.
    segments = _CSS_SEGMENT_RE.split(text)
    for index in range(0, len(segments), 2):
        segment = _WHITESPACE_RE.sub(" ", segments[index])
        segment = _CSS_PUNCT_RE.sub(r"\1", segment)
        segment = _CSS_IMPORTANT_RE.sub("!important", segment)
        segments[index] = _CSS_EMPTY_DECL_RE.sub("", segment)
    return "".join(segments).strip()


# ============================================================================
# JavaScript
# ============================================================================

_GAP = "gap"
_WORD = "word"
_PUNCT = "punct"
_LITERAL = "literal"

# Tokens after which a slash starts a regular expression literal.
_REGEX_AFTER_PUNCT = set("(,=:[!&|?{};+-*%<>~^")
_REGEX_AFTER_WORD = {
    "return", "typeof", "case", "do", "else", "in", "instanceof",
    "new", "void", "delete", "throw", "yield", "await",
}
_CONTROL_KEYWORDS = {"for", "while", "if", "with"}


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$\\" or ord(ch) > 127


def _scan_quoted(js: str, start: int, quote: str) -> int:
    """Return the index after the closing quote (or end of line/text)."""
    i = start + 1
    n = len(js)
    while i < n:
        ch = js[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n":
            return i
        i += 1
    return n


def _scan_template(js: str, start: int) -> int:
    """
    Return the index after a template literal's closing backtick.

    ``${ ... }`` substitutions are followed to their matching brace, so
    strings and template literals nested inside them stay part of the
    outer literal.
    """
    i = start + 1
    n = len(js)
    while i < n:
        ch = js[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "`":
            return i + 1
        if js.startswith("${", i):
            i = _scan_substitution(js, i + 2)
            continue
        i += 1
    return n


def _scan_substitution(js: str, start: int) -> int:
    """Return the index after the ``}`` closing a ``${`` substitution."""
    depth = 1
    i = start
    n = len(js)
    while i < n:
        ch = js[i]
        if ch in "\"'":
            i = _scan_quoted(js, i, ch)
            continue
        if ch == "`":
            i = _scan_template(js, i)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return n


def _scan_regex(js: str, start: int) -> Optional[int]:
    """Return the index after a regex literal's flags, or None if not a regex."""
    i = start + 1
    n = len(js)
    in_class = False
    while i < n:
        ch = js[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "\n":
            return None
        if ch == "[":
            in_class = True
        elif ch == "]":
            in_class = False
        elif ch == "/" and not in_class:
            i += 1
            while i < n and _is_word_char(js[i]):
                i += 1
            return i
        i += 1
    return None


def _tokenize_js(js: str) -> List[Tuple[str, str]]:
    """
    Split script text into (kind, text) tokens.

    Kinds are words, single punctuation characters, literals (strings,
    template strings, regular expressions) and gaps. A gap stands for any
    run of whitespace and comments; its text is ``"\\n"`` when the run
    contains a line break and ``" "`` otherwise.
    """
    tokens: List[Tuple[str, str]] = []
    last_significant: Optional[Tuple[str, str]] = None
    i = 0
    n = len(js)

    def add_gap(newline: bool) -> None:
        if tokens and tokens[-1][0] == _GAP:
            if newline:
                tokens[-1] = (_GAP, "\n")
            return
        tokens.append((_GAP, "\n" if newline else " "))

    while i < n:
        ch = js[i]
        nxt = js[i + 1] if i + 1 < n else ""

        if ch.isspace():
            j = i
            while j < n and js[j].isspace():
                j += 1
            add_gap("\n" in js[i:j])
            i = j
            continue

        if ch == "/" and nxt == "/":
            end = js.find("\n", i)
            i = n if end == -1 else end
            add_gap(False)
            continue

        if ch == "/" and nxt == "*":
            end = js.find("*/", i + 2)
            end = n if end == -1 else end + 2
            add_gap("\n" in js[i:end])
            i = end
            continue

        if ch == "`":
            end = _scan_template(js, i)
            token = (_LITERAL, js[i:end])
        elif ch in "\"'":
            end = _scan_quoted(js, i, ch)
            token = (_LITERAL, js[i:end])
        elif ch == "/" and (
            last_significant is None
            or (last_significant[0] == _PUNCT and last_significant[1] in _REGEX_AFTER_PUNCT)
            or (last_significant[0] == _WORD and last_significant[1] in _REGEX_AFTER_WORD)
        ):
            end = _scan_regex(js, i)
            token = (_LITERAL, js[i:end]) if end is not None else (_PUNCT, ch)
            end = end if end is not None else i + 1
        elif _is_word_char(ch):
            end = i
            while end < n and _is_word_char(js[end]):
                end += 1
            token = (_WORD, js[i:end])
        else:
            end = i + 1
            token = (_PUNCT, ch)

        tokens.append(token)
        last_significant = token
        i = end

    return tokens


def _ends_statement(text: str) -> bool:
    return _is_word_char(text[-1]) or text[-1] in ")]\"'`"


def _starts_statement(text: str) -> bool:
    return _is_word_char(text[0]) or text[0] in "\"'`!~"


def minimize_js(js: str) -> str:
    """
    Minify script text.

    Removes ``//`` and ``/* */`` comments and whitespace between tokens
    that do not need it. A line break is kept where automatic semicolon
    insertion depends on it. String, template and regex literals are
    copied verbatim, so comment markers inside quotes survive. A semicolon
    directly before ``}`` is dropped unless it is the empty body of a
    ``for``/``while``/``if`` header; any other terminating semicolon stays.

    Example:
        >>> minimize_js("function test() {  return 1;  } // c \\n var x = 2;")
        'function test(){return 1}var x=2;'
    """
    out: List[str] = []
    pending_gap: Optional[str] = None
    last_kind: Optional[str] = None
    last_word: Optional[str] = None
    paren_stack: List[bool] = []
    closed_control_header = False
    keep_semicolon = False

    for kind, text in _tokenize_js(js):
        if kind == _GAP:
            pending_gap = text
            continue

        if out:
            tail = out[-1]
            if pending_gap is not None:
                if _is_word_char(tail[-1]) and _is_word_char(text[0]):
                    out.append("\n" if pending_gap == "\n" else " ")
                elif pending_gap == "\n" and _ends_statement(tail) and _starts_statement(text):
                    out.append("\n")
                elif tail[-1] in "+-/" and text[0] == tail[-1]:
                    out.append(" ")
                elif tail[-1] == "/" and text[0] == "*":
                    out.append(" ")

            if kind == _PUNCT and text == "}" and out[-1] == ";" and not keep_semicolon:
                out.pop()

        pending_gap = None

        if kind == _PUNCT:
            if text == "(":
                paren_stack.append(last_kind == _WORD and last_word in _CONTROL_KEYWORDS)
            elif text == ")":
                closed_control_header = paren_stack.pop() if paren_stack else False
            if text == ";":
                keep_semicolon = last_kind == _PUNCT and out and out[-1] == ")" and closed_control_header
            else:
                keep_semicolon = False
        else:
            keep_semicolon = False

        out.append(text)
        last_kind = kind
        last_word = text if kind == _WORD else None

    return "".join(out).strip()
