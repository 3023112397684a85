"""Text helpers shared by the renderers.

Example:
    >>> from fragmark.utils.text import slugify
    >>> slugify("Hello World!")
    'hello-world'
"""

from __future__ import annotations

import html as html_module
import re

_NON_WORD = re.compile(r"[^\w\s-]")
_SEPARATORS = re.compile(r"[-\s]+")


def slugify(text: str, separator: str = "-") -> str:
    """Convert heading text to a URL-safe anchor.

    Unicode word characters are kept, so ``"Café"`` becomes ``"café"``.

    Examples:
        >>> slugify("Test &amp; Code")
        'test-code'
        >>> slugify("你好世界")
        '你好世界'
    """
    if not text:
        return ""
    text = html_module.unescape(text).lower().strip()
    text = _NON_WORD.sub("", text)
    text = _SEPARATORS.sub(separator, text)
    return text.strip(separator)


def indent_lines(text: str, first: str, rest: str) -> str:
    """Prefix the first line of ``text`` with ``first`` and later lines with ``rest``.

    Blank lines get the prefix with trailing whitespace removed.
    """
    lines = text.split("\n")
    out: list[str] = []
    for i, line in enumerate(lines):
        prefix = first if i == 0 else rest
        out.append(prefix + line if line else prefix.rstrip())
    return "\n".join(out)
