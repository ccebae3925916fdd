"""
Escape Filter - Removes embedded server code from template text.

Template text is markup authored outside the application. Anything that
the host evaluator (or a PHP/ASP runtime sharing the same files) would
execute is stripped before directives are compiled:

- ``<?php ... ?>``, ``<?py ... ?>``, ``<?= ... ?>``, ``<?# ... ?>``
- short open tags ``<? ... ?>``
- ASP-style ``<% ... %>``
- ``<script language="php">`` / ``<script language="python">`` elements

Lookalikes that are not executable, such as ``<?xml version="1.0"?>``,
are left untouched. A processing-instruction or server script opener
without a close removes the rest of the text, since the runtime would
execute it to the end. An ASP-style ``<%`` is only removed together with
its ``%>``, so a stray ``<%`` in ordinary text stays as it is.
"""

import logging
import re
from typing import List

from .faults import UnsafeContentFault

logger = logging.getLogger("dotview.templates.escape")


_SERVER_CODE_RE = re.compile(
    r"""
    <\?(?:php|py|[=\#]|(?=\s)).*?(?:\?>|\Z)           # processing-instruction tags
    | <%.*?%>                                          # ASP-style tags, closed only
    | <script\b[^>]*?\blanguage\s*=\s*["']?(?:php|python)\b["']?[^>]*>
      .*?(?:</script\s*>|\Z)                           # server-side script elements
    """,
    re.DOTALL | re.IGNORECASE | re.VERBOSE,
)


def find_server_code(text: str) -> List[str]:
    """Return every embedded server-code segment found in ``text``."""
    return [match.group(0) for match in _SERVER_CODE_RE.finditer(text)]


def escape_php(text: str) -> str:
    """
    Strip embedded server code from ``text``.

    Removal is reported as an ``UnsafeContentFault`` through logging; it
    never raises.

    Example:
        >>> escape_php("<?php echo 'test'; ?>")
        ''
        >>> escape_php("<?xml version='1.0' ?><tag></tag>")
        "<?xml version='1.0' ?><tag></tag>"
    """
    segments = find_server_code(text)
    if not segments:
        return text

    removed: List[str] = []
    # Removal can join the surrounding text into a new tag.
    while segments:
        removed.extend(segments)
        text = _SERVER_CODE_RE.sub("", text)
        segments = find_server_code(text)

    fault = UnsafeContentFault(removed)
    logger.warning(f"{fault}", extra={"fault": fault.to_dict()})
    return text
