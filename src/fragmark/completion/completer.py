"""Fragment completion for streamed Markdown.

Given a possibly incomplete chunk of Markdown, ``complete`` appends the
smallest text that makes it parse the way its finished form will: an open
``**bold`` gets its closer, an open code fence gets a closing line, a link
cut off mid-label gets a placeholder destination.

Strategy order (first applicable wins):
    1. Unclosed fence: top up a partial closer or add a closing line
    2. Tables: close a row missing its last pipe, or synthesize the
       delimiter row under a header followed by a newline
    3. Unclosed math: append ``$$`` or ``$``
    4. Lone fence opener: leave untouched until its body arrives
    5. Unclosed code span: append a backtick
    6. Opening marker at the start that never closes: repeat its character
    7. Text ending in a closer: accept as is
    8. List item line: complete the content after the marker
    9. Links and images: close destination, label or add a placeholder
    10. Fallback: close any emphasis-family run left open on the last line

Whitespace:
    Leading whitespace is dropped unless it carries a line break, a tab or
    four spaces (an indented code block). Trailing whitespace is kept, minus
    a newline that a fence, table or math completion absorbed.

Example:
    >>> complete("**Fol")
    '**Fol**'
    >>> complete("```python\\nprint(1)")
    '```python\\nprint(1)\\n```'

"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias

from fragmark.completion.balance import (
    ends_with_link_label,
    has_incomplete_link_destination,
    has_unclosed_label,
    has_unclosed_math,
    has_unmatched_backtick,
    mask_escapes,
    unmatched_suffix,
)
from fragmark.completion.fence import (
    FENCE_CHARS,
    MIN_FENCE_RUN,
    find_unclosed_fence,
    partial_closing_gap,
    text_after_fences,
)
from fragmark.utils.logger import get_logger

logger = get_logger(__name__)

WHITESPACE = "\t\n\x0b\x0c\r "

PLACEHOLDER_URL = "fragmark:incomplete-link"
LABEL_PLACEHOLDER = f"]({PLACEHOLDER_URL})"
DESTINATION_PLACEHOLDER = f"({PLACEHOLDER_URL})"

# Checked in order: doubled forms before singles
OPENING_TOKENS: tuple[str, ...] = ("**", "__", "~~", "*", "_", "~")

# 0-3 spaces, then a task marker, a bullet, or an ordered marker
LIST_MARKER_RE = re.compile(r" {0,3}(?:- \[[ xX]\][ \t]|[*+-][ \t]|[0-9]+[.)][ \t])")

# A pipe-table delimiter row still being typed
_DELIMITER_ROW_RE = re.compile(r" {0,3}\|[ \t:|-]*")

# (completed core, newline taken from the trailing whitespace)
Completion: TypeAlias = tuple[str, str]


@dataclass(frozen=True, slots=True)
class State:
    """Carry-over between completion calls of one stream.

    Attributes:
        last_unclosed_token: Marker left open by the text seen so far

    """

    last_unclosed_token: str | None = None


def complete_with_state(fragment: str, state: State | None = None) -> tuple[str, State]:
    """Complete ``fragment`` using and updating stream state.

    The carried token is passed to ``complete`` as the prefix. The new state
    records whatever marker is still open across ``prefix + fragment``.

    Example:
        >>> text, state = complete_with_state("**Fol")
        >>> text, state.last_unclosed_token
        ('**Fol**', '**')
    """
    prefix = (state.last_unclosed_token if state else None) or ""
    completed = complete(fragment, prefix)
    suffix = unmatched_suffix(prefix + fragment)
    return completed, State(last_unclosed_token=suffix or None)


def complete(fragment: str, prefix: str = "") -> str:
    """Complete a Markdown fragment so it parses as its finished form would.

    Args:
        fragment: Raw Markdown, possibly cut mid-construct
        prefix: Marker carried over from the previous fragment (e.g. ``"**"``)

    Returns:
        The fragment plus whatever closes its open constructs. Text that is
        already complete comes back unchanged.
    """
    if is_list_marker_line(fragment):
        core = fragment.rstrip(WHITESPACE)
        leading = ""
    else:
        stripped = fragment.lstrip(WHITESPACE)
        leading = fragment[: len(fragment) - len(stripped)]
        if not _preserve_leading(leading):
            leading = ""
        core = stripped.rstrip(WHITESPACE)
    trailing = fragment[len(fragment.rstrip(WHITESPACE)) :]
    if not core:
        trailing = ""

    completed, consumed = _complete_core(core, prefix, trailing)
    if consumed and trailing.startswith(consumed):
        trailing = trailing[len(consumed) :]
    return leading + completed + trailing


def is_list_marker_line(line: str) -> bool:
    """True when ``line`` starts with a bullet, ordered or task marker."""
    return LIST_MARKER_RE.match(line) is not None


# =============================================================================
# Whitespace
# =============================================================================


def _preserve_leading(leading: str) -> bool:
    if not leading:
        return False
    if "\n" in leading or "\r" in leading or "\t" in leading:
        return True
    return _final_space_run(leading) >= 4


def _final_space_run(text: str) -> int:
    run = 0
    for ch in text:
        if ch in "\n\r":
            run = 0
        elif ch == " ":
            run += 1
    return run


def _last_line(text: str) -> str:
    return text.rsplit("\n", 1)[-1]


def _replace_last_line(text: str, line: str) -> str:
    head, sep, _ = text.rpartition("\n")
    return head + sep + line


def _leading_run(text: str, char: str) -> int:
    return len(text) - len(text.lstrip(char))


# =============================================================================
# Block-level strategies
# =============================================================================


def _complete_fence(core: str, trailing: str) -> Completion | None:
    info = find_unclosed_fence(core)
    if info is None:
        return None
    gap = partial_closing_gap(core, info)
    if gap:
        return core + gap, ""
    consumed = "\n" if trailing.startswith("\n") else ""
    if consumed:
        separator = consumed
    elif core.endswith("\n"):
        separator = ""
    else:
        separator = "\n"
    return core + separator + info.closing_line, consumed


def _is_pipe_row(line: str) -> bool:
    trimmed = line.strip()
    return trimmed.startswith("|") and trimmed.endswith("|")


def _table_columns(rows: list[str]) -> int:
    """Column count of the table whose rows end ``rows``, from its header."""
    start = len(rows)
    while start > 0 and _is_pipe_row(rows[start - 1]):
        start -= 1
    return rows[start].strip().count("|") - 1


def _complete_table_row(core: str) -> Completion | None:
    """Close a delimiter or body row that is missing its final pipe."""
    lines = core.split("\n")
    row = lines[-1]
    if len(lines) < 2 or _is_pipe_row(row) or not row.lstrip(" ").startswith("|"):
        return None
    if not _is_pipe_row(lines[-2]):
        return None
    columns = _table_columns(lines[:-1])
    missing = max(columns - row.count("|"), 0)
    header_only = len(lines) == 2 or not _is_pipe_row(lines[-3])
    if header_only:
        if not _DELIMITER_ROW_RE.fullmatch(row):
            return None
        cell = "" if row.rsplit("|", 1)[-1].count("-") else "-"
        return core + cell + " |" + " - |" * missing, ""
    return core + " |" + " |" * missing, ""


def _complete_table(core: str, trailing: str) -> Completion | None:
    partial = _complete_table_row(core)
    if partial is not None:
        return partial
    if not trailing.startswith("\n"):
        return None
    lines = core.split("\n")
    header = lines[-1]
    if not _is_pipe_row(header):
        return None
    # A pipe row above means the header and delimiter already exist
    if len(lines) > 1 and _is_pipe_row(lines[-2]):
        return None
    pipes = header.count("|")
    if pipes < 2:
        return None
    separator = "|" + " - |" * (pipes - 1)
    return core + "\n" + separator, "\n"


def _complete_math(core: str, trailing: str) -> Completion | None:
    scope = text_after_fences(core)
    if has_unclosed_math(scope, "$$"):
        if trailing.startswith("\n"):
            return core + "\n$$", "\n"
        return core + "$$", ""
    if has_unclosed_math(scope, "$"):
        return core + "$", ""
    return None


_BLOCK_STRATEGIES: tuple[tuple[str, Callable[[str, str], Completion | None]], ...] = (
    ("fence", _complete_fence),
    ("table", _complete_table),
    ("math", _complete_math),
)


# =============================================================================
# Inline strategies
# =============================================================================


def _skip_completion(core: str, line: str) -> bool:
    """A fence opener still waiting for its body is left alone."""
    for char in FENCE_CHARS:
        if "\n" not in core and _leading_run(core, char) >= MIN_FENCE_RUN:
            return True
        if _leading_run(line, char) >= MIN_FENCE_RUN:
            return True
    return False


def _opening_append(core: str) -> str:
    if is_list_marker_line(core):
        return ""
    token = next((t for t in OPENING_TOKENS if core.startswith(t)), None)
    if token is None:
        return ""
    char = token[0]
    present = len(core) - len(core.rstrip(char))
    if present >= len(token):
        return ""
    if mask_escapes(core).count(token) % 2 == 0:
        return ""
    return char * (len(token) - present)


def _closing_token(core: str) -> str | None:
    return next((t for t in OPENING_TOKENS if core.endswith(t)), None)


def complete_link(text: str) -> str | None:
    """Close an unterminated link or image, or return None.

    Placeholders are only appended once, so completing twice is stable.
    """
    if has_incomplete_link_destination(text):
        return text + ")"
    if has_unclosed_label(text):
        return text if text.endswith(LABEL_PLACEHOLDER) else text + LABEL_PLACEHOLDER
    if ends_with_link_label(text):
        if text.endswith(DESTINATION_PLACEHOLDER):
            return text
        return text + DESTINATION_PLACEHOLDER
    return None


def _complete_list_line(core: str, line: str) -> str:
    match = LIST_MARKER_RE.match(line)
    if match is None:
        return core
    marker, content = line[: match.end()], line[match.end() :]
    if not content:
        return core
    suffix = unmatched_suffix(content)
    if suffix:
        return _replace_last_line(core, marker + content + suffix)
    link = complete_link(content)
    if link is not None:
        return _replace_last_line(core, marker + link)
    return core


def _complete_core(core: str, prefix: str, trailing: str) -> Completion:
    if not core:
        return "", ""

    for name, strategy in _BLOCK_STRATEGIES:
        result = strategy(core, trailing)
        if result is not None:
            logger.debug("completed open %s (%d chars)", name, len(core))
            return result

    line = _last_line(core)
    if _skip_completion(core, line):
        return core, ""

    if has_unmatched_backtick(text_after_fences(core)):
        if prefix and has_unmatched_backtick(prefix) and core.endswith("`"):
            return prefix + core, ""
        return core + "`", ""

    append = _opening_append(core)
    if append:
        return core + append, ""

    closer = _closing_token(core)
    if closer is not None:
        if prefix and prefix == closer:
            return prefix + core, ""
        return core, ""

    if is_list_marker_line(line):
        return _complete_list_line(core, line), ""

    link = complete_link(core)
    if link is not None:
        return link, ""

    return core + unmatched_suffix(line), ""
