"""Streaming session.

A MarkdownStream owns a committed Document and a buffer of raw chunks that
have not been parsed yet. Rendering combines the two: the committed tree is
rendered back to Markdown, the chunks are appended, the result is completed
(in streaming mode) and parsed again.

Usage:
    >>> stream = MarkdownStream(config=StreamConfig(streaming=True))
    >>> stream.extend(["# Title\\n", "Some **bo"]).to_html()
    '<h1 id="title">Title</h1>\\n<p>Some <strong>bo</strong></p>\\n'

Thread Safety:
    A session is mutable and owned by one caller. Separate sessions share
    nothing and can run on separate threads.

"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Literal, TypeAlias

from fragmark.completion import complete
from fragmark.config import DEFAULT_CONFIG, StreamConfig
from fragmark.errors import InvalidNodeError
from fragmark.nodes import Document, Node
from fragmark.parser import Parser
from fragmark.reconcile import merge_stream_buffer
from fragmark.renderers.html import HtmlRenderer
from fragmark.renderers.markdown import MarkdownRenderer
from fragmark.tree import append_nodes
from fragmark.utils.logger import get_logger

logger = get_logger(__name__)

Position: TypeAlias = Literal["top", "bottom"]


class MarkdownStream:
    """Incrementally built Markdown document.

    Chunks are buffered by ``put_markdown`` and only parsed when a render is
    requested. ``run`` commits the buffer into the tree; ``to_html``,
    ``to_markdown`` and ``snapshot`` render it without committing.

    """

    __slots__ = ("_buffer", "_config", "_document", "_html", "_markdown", "_parser")

    def __init__(self, document: Document | None = None, *, config: StreamConfig | None = None) -> None:
        """Create a session.

        Args:
            document: Tree to start from (empty by default)
            config: Session configuration

        Raises:
            InvalidNodeError: ``document`` is not a Document
        """
        if document is not None and not isinstance(document, Document):
            raise InvalidNodeError(document, f"expected a Document, got {type(document).__name__}")
        self._config = config or DEFAULT_CONFIG
        self._document = document if document is not None else Document()
        self._buffer: deque[str] = deque()
        self._parser = Parser(self._config)
        self._html = HtmlRenderer(escape_html=self._config.escape_html)
        self._markdown = MarkdownRenderer()

    def __repr__(self) -> str:
        return (
            f"MarkdownStream(blocks={len(self._document.children)}, "
            f"pending={sum(map(len, self._buffer))}, streaming={self._config.streaming})"
        )

    @property
    def config(self) -> StreamConfig:
        return self._config

    @property
    def document(self) -> Document:
        """The committed tree. Buffered chunks are not part of it."""
        return self._document

    @property
    def pending(self) -> str:
        """Buffered text in the order it will be parsed."""
        return "".join(self._buffer)

    # =========================================================================
    # Input
    # =========================================================================

    def put_markdown(self, text: str, position: Position = "bottom") -> MarkdownStream:
        """Buffer a chunk of raw Markdown.

        Args:
            text: Chunk, complete or not
            position: ``"bottom"`` appends after earlier chunks, ``"top"``
                places the chunk before them

        Raises:
            ValueError: unknown position
            InvalidNodeError: ``text`` is not a string
        """
        if not isinstance(text, str):
            raise InvalidNodeError(text, f"expected Markdown text, got {type(text).__name__}")
        match position:
            case "bottom":
                self._buffer.append(text)
            case "top":
                self._buffer.appendleft(text)
            case _:
                raise ValueError(f"position must be 'top' or 'bottom', got {position!r}")
        return self

    def put_node(self, node: Node) -> MarkdownStream:
        """Fold a node into the tree, after committing any buffered text.

        Raises:
            InvalidNodeError: ``node`` is not an insertable node
        """
        if self._buffer:
            self.run()
        self._document = append_nodes(self._document, [node])
        return self

    def extend(self, items: Iterable[object]) -> MarkdownStream:
        """Add strings, nodes and nested iterables of them, in order.

        Raises:
            InvalidNodeError: an item is neither text, a node, nor iterable
        """
        for item in items:
            match item:
                case str():
                    self.put_markdown(item)
                case Node():
                    self.put_node(item)
                case Iterable():
                    self.extend(item)
                case _:
                    raise InvalidNodeError(item)
        return self

    # =========================================================================
    # Reconciliation
    # =========================================================================

    def source(self) -> str:
        """The text the next parse will read: committed tree plus buffer."""
        children = self._document.children
        last = children[-1] if children else None
        source = merge_stream_buffer(self._markdown.render(self._document), self._buffer, last)
        if self._config.streaming:
            source = complete(source)
        return source

    def snapshot(self) -> Document:
        """Parse the committed tree plus buffer without committing."""
        if not self._buffer:
            return self._document
        source = self.source()
        logger.debug("reparsing %d chars (%d chunks)", len(source), len(self._buffer))
        return self._parser.parse(source)

    def run(self) -> Document:
        """Commit the buffer into the tree and return the new tree.

        Later chunks start on a new line after the committed content.
        """
        if not self._buffer:
            return self._document
        self._document = self.snapshot()
        self._buffer.clear()
        return self._document

    # =========================================================================
    # Output
    # =========================================================================

    def to_html(self) -> str:
        """Render the current state to HTML."""
        return self._html.render(self.snapshot())

    def to_markdown(self) -> str:
        """Render the current state to canonical Markdown."""
        return self._markdown.render(self.snapshot())
