"""Token balance counting for inline Markdown markers.

Every function here is pure and works on the raw character stream. A marker
is "open" when it occurs an odd number of times once escapes and
non-delimiter occurrences are discounted.

Escapes:
    A backslash followed by ASCII punctuation is an escape. ``mask_escapes``
    replaces each escaped pair with two backslashes, which keeps offsets
    stable and hides the escaped character from every counter.

Flanking:
    ``_`` between two ASCII alphanumerics (``snake_case``) is not a delimiter.
    ``++`` and ``==`` only count when preceded or followed by a
    non-alphanumeric or a string boundary, so ``C++17`` and ``x==1`` stay
    literal.

"""

from __future__ import annotations

import string

_ASCII_PUNCTUATION = frozenset(string.punctuation)
_DIGITS = frozenset(string.digits)

# (single, double) pairs in detection order
EMPHASIS_PAIRS: tuple[tuple[str, str], ...] = (
    ("*", "**"),
    ("_", "__"),
    ("~", "~~"),
    ("+", "++"),
    ("=", "=="),
)

# Delimiters that only exist in their doubled form
DOUBLE_ONLY = frozenset({"+", "="})


def _is_word(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def mask_escapes(text: str) -> str:
    """Hide backslash-escaped punctuation from the counters."""
    if "\\" not in text:
        return text
    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\" and i + 1 < n and text[i + 1] in _ASCII_PUNCTUATION:
            out.append("\\\\")
            i += 2
        else:
            out.append(ch)
            i += 1
    return "".join(out)


# =============================================================================
# Code spans
# =============================================================================


def count_backticks(text: str) -> int:
    """Count backticks that act as code span delimiters.

    Outside a span a backslash escapes the next punctuation character.
    Inside a span backslashes are literal, as in CommonMark.
    """
    count = 0
    in_code = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\" and not in_code and i + 1 < n and text[i + 1] in _ASCII_PUNCTUATION:
            i += 2
            continue
        if ch == "`":
            count += 1
            in_code = not in_code
        i += 1
    return count


def has_unmatched_backtick(text: str) -> bool:
    """True when a code span is left open."""
    return count_backticks(text) % 2 == 1


# =============================================================================
# Math
# =============================================================================


def count_math_dollars(text: str) -> int:
    """Count ``$`` delimiters.

    Escaped ``\\$`` is skipped, and so is a ``$`` directly followed by a digit,
    which reads as a price rather than math.
    """
    masked = mask_escapes(text)
    count = 0
    n = len(masked)
    for i, ch in enumerate(masked):
        if ch != "$":
            continue
        if i + 1 < n and masked[i + 1] in _DIGITS:
            continue
        count += 1
    return count


def has_unclosed_math(text: str, delimiter: str = "$") -> bool:
    """True when ``delimiter`` (``"$"`` or ``"$$"``) is left open."""
    if delimiter == "$":
        return count_math_dollars(text) % 2 == 1
    return mask_escapes(text).count(delimiter) % 2 == 1


# =============================================================================
# Emphasis family
# =============================================================================


def count_emphasis_underscores(text: str) -> int:
    """Count underscores that can delimit emphasis.

    An underscore with word characters on both sides is intraword and is
    skipped.
    """
    count = 0
    prev_word = False
    n = len(text)
    for i, ch in enumerate(text):
        if ch == "_":
            next_word = i + 1 < n and _is_word(text[i + 1])
            if not (prev_word and next_word):
                count += 1
            prev_word = False
        else:
            prev_word = _is_word(ch)
    return count


def count_flanking(text: str, delimiter: str) -> int:
    """Count non-overlapping ``delimiter`` runs in flanking position."""
    count = 0
    size = len(delimiter)
    n = len(text)
    pos = text.find(delimiter)
    while pos != -1:
        end = pos + size
        before_ok = pos == 0 or not _is_word(text[pos - 1])
        after_ok = end >= n or not _is_word(text[end])
        if before_ok or after_ok:
            count += 1
        pos = text.find(delimiter, end)
    return count


def _count_single(text: str, single: str) -> int:
    if single == "_":
        return count_emphasis_underscores(text)
    return text.count(single)


def unmatched_emphasis_suffix(text: str, single: str, double: str) -> str:
    """Closer for one (single, double) delimiter pair, or ``""``.

    When both forms are open, the combined closer ``double + single`` wins
    unless the text already ends in the single form alone.
    """
    if single in DOUBLE_ONLY:
        return double if count_flanking(text, double) % 2 == 1 else ""

    doubles = text.count(double)
    open_double = doubles % 2 == 1
    open_single = max(_count_single(text, single) - doubles * 2, 0) % 2 == 1

    if open_double and open_single:
        if text.endswith(single) and not text.endswith(double):
            return single
        return double + single
    if open_double:
        return double
    if open_single:
        return single
    return ""


def unmatched_suffix(text: str) -> str:
    """The first closing suffix that balances an emphasis-family marker.

    Pairs are tried in the order of ``EMPHASIS_PAIRS``.

    >>> unmatched_suffix("**Fol")
    '**'
    >>> unmatched_suffix("C++17 and snake_case")
    ''
    """
    masked = mask_escapes(text)
    for single, double in EMPHASIS_PAIRS:
        suffix = unmatched_emphasis_suffix(masked, single, double)
        if suffix:
            return suffix
    return ""


# =============================================================================
# Links and images
# =============================================================================


def find_label_start(text: str, index: int) -> int | None:
    """Scan backwards from ``index`` for the ``[`` opening a label.

    Returns None when a ``]`` is met first or the start is reached.
    """
    while index >= 0:
        ch = text[index]
        if ch == "[":
            return index
        if ch == "]":
            return None
        index -= 1
    return None


def _closes_at_depth_zero(text: str) -> bool:
    depth = 0
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            if depth == 0:
                return True
            depth -= 1
    return False


def has_incomplete_link_destination(text: str) -> bool:
    """True when the last ``](`` opens a destination that never closes."""
    masked = mask_escapes(text)
    pos = masked.rfind("](")
    if pos == -1:
        return False
    if find_label_start(masked, pos - 1) is None:
        return False
    return not _closes_at_depth_zero(masked[pos + 2 :])


def has_unclosed_label(text: str) -> bool:
    """True when ``[`` outnumbers ``]``."""
    masked = mask_escapes(text)
    return masked.count("[") > masked.count("]")


def ends_with_link_label(text: str) -> bool:
    """True when ``text`` ends in a complete ``[label]``.

    Footnote references (``[^note]``) are not link labels.
    """
    masked = mask_escapes(text)
    if not masked.endswith("]"):
        return False
    start = find_label_start(masked, len(masked) - 2)
    if start is None:
        return False
    return not masked.startswith("^", start + 1)
