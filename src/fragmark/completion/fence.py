"""Line scanner for unterminated fenced code blocks.

A fence line has at most three spaces of indent followed by a run of one
fence character (`` ` `` or ``~``). Runs of three or more open or close a
block. A block only counts as open once at least one line follows its
opener, so a lone ```` ``` ```` typed at the end of a stream is left alone
until its body starts.

Example:
    >>> info = find_unclosed_fence("```python\\nprint(1)")
    >>> (info.char, info.run_length)
    ('`', 3)

"""

from __future__ import annotations

from dataclasses import dataclass, replace

FENCE_CHARS = frozenset("`~")
MIN_FENCE_RUN = 3


@dataclass(frozen=True, slots=True)
class FenceInfo:
    """A fence line found while scanning.

    Attributes:
        indent: Leading spaces before the run (0-3)
        char: The fence character
        run_length: Length of the run of ``char``
        trailing_rest: Text after the run (info string or blanks)
        line_index: Zero-based line number of the fence line
        has_body: Whether any line follows the opener

    """

    indent: int
    char: str
    run_length: int
    trailing_rest: str
    line_index: int = 0
    has_body: bool = False

    @property
    def closing_line(self) -> str:
        """Canonical line that closes this fence."""
        return " " * self.indent + self.char * self.run_length


def _only_blanks(text: str) -> bool:
    return all(ch in " \t" for ch in text)


def parse_fence_line(line: str, line_index: int = 0) -> FenceInfo | None:
    """Describe ``line`` as a fence-character run, or return None.

    Any run length is reported; callers decide what length counts.
    """
    indent = 0
    while indent < 3 and indent < len(line) and line[indent] == " ":
        indent += 1
    rest = line[indent:]
    if not rest or rest[0] not in FENCE_CHARS:
        return None
    char = rest[0]
    run = len(rest) - len(rest.lstrip(char))
    return FenceInfo(
        indent=indent,
        char=char,
        run_length=run,
        trailing_rest=rest[run:],
        line_index=line_index,
    )


def opens_fence(info: FenceInfo) -> bool:
    """True when ``info`` can open a fenced block.

    A backtick fence cannot carry a backtick in its info string.
    """
    if info.run_length < MIN_FENCE_RUN:
        return False
    return not (info.char == "`" and "`" in info.trailing_rest)


def closes_fence(candidate: FenceInfo, opener: FenceInfo) -> bool:
    """True when ``candidate`` is a valid closing line for ``opener``."""
    return (
        candidate.char == opener.char
        and candidate.run_length >= opener.run_length
        and _only_blanks(candidate.trailing_rest)
    )


def find_unclosed_fence(text: str) -> FenceInfo | None:
    """Return the fence left open at the end of ``text``, if any."""
    open_fence: FenceInfo | None = None
    for index, line in enumerate(text.split("\n")):
        info = parse_fence_line(line, index)
        if info is not None and info.run_length >= MIN_FENCE_RUN:
            if open_fence is None:
                if opens_fence(info):
                    open_fence = info
                continue
            if closes_fence(info, open_fence):
                open_fence = None
                continue
        if open_fence is not None and not open_fence.has_body:
            open_fence = replace(open_fence, has_body=True)

    if open_fence is None or not open_fence.has_body:
        return None
    return open_fence


def partial_closing_gap(text: str, opener: FenceInfo) -> str:
    """Characters missing from a partially typed closing fence.

    When the last line of ``text`` is a shorter run of the opener's character
    at the same indent, returns the characters that complete it. Otherwise
    returns ``""``.
    """
    last = text.rsplit("\n", 1)[-1]
    info = parse_fence_line(last)
    if info is None:
        return ""
    if info.indent != opener.indent or info.char != opener.char:
        return ""
    if not 0 < info.run_length < opener.run_length:
        return ""
    if not _only_blanks(info.trailing_rest):
        return ""
    return opener.char * (opener.run_length - info.run_length)


def text_after_fences(text: str) -> str:
    """The part of ``text`` after its last closed fenced block.

    Inline markers inside code blocks are literal, so balance checks only
    look at what follows the last block.
    """
    lines = text.split("\n")
    open_fence: FenceInfo | None = None
    start = 0
    for index, line in enumerate(lines):
        info = parse_fence_line(line, index)
        if info is None or info.run_length < MIN_FENCE_RUN:
            continue
        if open_fence is None:
            if opens_fence(info):
                open_fence = info
        elif closes_fence(info, open_fence):
            open_fence = None
            start = index + 1
    if start == 0:
        return text
    return "\n".join(lines[start:])
