"""Fragment completion for streamed Markdown.

- balance: parity counters for inline markers
- fence: scanner for unterminated fenced code blocks
- completer: ``complete`` and ``complete_with_state``
"""

from fragmark.completion.completer import (
    PLACEHOLDER_URL,
    State,
    complete,
    complete_with_state,
)
from fragmark.completion.fence import FenceInfo, find_unclosed_fence

__all__ = [
    "PLACEHOLDER_URL",
    "FenceInfo",
    "State",
    "complete",
    "complete_with_state",
    "find_unclosed_fence",
]
