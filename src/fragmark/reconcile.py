"""Stream reconciliation: rebuild the next parse input.

The committed tree is rendered back to canonical Markdown, then the buffered
raw chunks are appended to it. If the tree ends in a fenced code block, the
closing fence a previous completion pass synthesized is stripped first, so
the block is still open when the new chunks continue its body.
"""

from __future__ import annotations

from collections.abc import Iterable

from fragmark.nodes import CodeBlock, Node


def closing_fence_line(block: CodeBlock) -> str:
    """Canonical closing line of a fenced code block."""
    return " " * max(block.fence_offset, 0) + block.fence_char * block.fence_length


def strip_closing_fence(markdown: str, block: CodeBlock) -> str:
    """Remove ``block``'s closing fence line from the end of ``markdown``."""
    closing = "\n" + closing_fence_line(block)
    if markdown.endswith(closing + "\n"):
        return markdown[: -len(closing) - 1]
    if markdown.endswith(closing):
        return markdown[: -len(closing)]
    return markdown


def merge_stream_buffer(
    existing: str,
    buffer: Iterable[str],
    last_node: Node | None = None,
) -> str:
    """Combine committed Markdown with buffered chunks.

    Args:
        existing: Canonical Markdown of the committed tree
        buffer: Raw chunks in arrival order
        last_node: Last top-level node of the committed tree

    Returns:
        ``existing`` with a reopened trailing fence and exactly one trailing
        newline, followed by the chunks oldest first. An empty ``existing``
        contributes nothing.

    Example:
        >>> block = CodeBlock(literal="x\\n", info="py")
        >>> merge_stream_buffer("```py\\nx\\n```", ["y\\n"], block)
        '```py\\nx\\ny\\n'
    """
    if isinstance(last_node, CodeBlock) and last_node.fenced:
        existing = strip_closing_fence(existing, last_node)
    if existing and not existing.endswith("\n"):
        existing += "\n"
    return existing + "".join(buffer)
