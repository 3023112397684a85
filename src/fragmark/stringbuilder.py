"""StringBuilder for O(n) string accumulation.

Renderers append fragments to a list and join once at the end instead of
concatenating strings repeatedly. Each render call owns its own builder.
"""

from __future__ import annotations


class StringBuilder:
    """Efficient string accumulator.

    Usage:
        >>> sb = StringBuilder()
        >>> _ = sb.append("<p>").append("Hi").append("</p>")
        >>> sb.build()
        '<p>Hi</p>'

    """

    __slots__ = ("_parts",)

    def __init__(self) -> None:
        self._parts: list[str] = []

    def append(self, s: str) -> StringBuilder:
        """Append a string; empty strings are skipped."""
        if s:
            self._parts.append(s)
        return self

    def build(self) -> str:
        """Join all parts into the final string."""
        return "".join(self._parts)

    def __len__(self) -> int:
        """Number of parts, not total length."""
        return len(self._parts)

    def __bool__(self) -> bool:
        return bool(self._parts)
