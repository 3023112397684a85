"""
fragmark: streaming Markdown completion and tree reconciliation.

Renders Markdown that arrives in pieces. Every partial render is valid
output, and the final render matches parsing the assembled text at once.

Quick Start:
    >>> from fragmark import complete, parse, render
    >>> complete("**Fol")
    '**Fol**'
    >>> render(parse(complete("Some `code")))
    '<p>Some <code>code</code></p>\\n'

Streaming session:
    >>> from fragmark import MarkdownStream, StreamConfig
    >>> stream = MarkdownStream(config=StreamConfig(streaming=True))
    >>> stream.extend(["```python\\n", "print(1)"]).to_markdown()
    '```python\\nprint(1)\\n```'

Merging trees:
    >>> from fragmark import merge
    >>> len(merge(parse("- a"), parse("- b")).children)
    1

Installation:
    pip install fragmark
"""

from fragmark.completion import PLACEHOLDER_URL, State, complete, complete_with_state
from fragmark.config import DEFAULT_CONFIG, StreamConfig
from fragmark.errors import FragmarkError, InvalidNodeError, ParseError, RenderError
from fragmark.nodes import (
    Block,
    BlockQuote,
    CodeBlock,
    CodeSpan,
    DescriptionDetails,
    DescriptionItem,
    DescriptionList,
    DescriptionTerm,
    Document,
    Emphasis,
    FootnoteDefinition,
    FootnoteRef,
    FrontMatter,
    Heading,
    HtmlBlock,
    HtmlInline,
    Image,
    Inline,
    Insert,
    LineBreak,
    Link,
    List,
    ListItem,
    Mark,
    Math,
    MathBlock,
    Node,
    Paragraph,
    SoftBreak,
    Strikethrough,
    Strong,
    Subscript,
    Superscript,
    Table,
    TableCell,
    TableRow,
    TaskItem,
    Text,
    ThematicBreak,
)
from fragmark.parser import Parser
from fragmark.reconcile import merge_stream_buffer
from fragmark.renderers.html import HtmlRenderer
from fragmark.renderers.markdown import MarkdownRenderer
from fragmark.renderers.protocol import TreeRenderer
from fragmark.stream import MarkdownStream
from fragmark.tree import append_nodes, can_contain, maybe_append_to_node, merge

__version__ = "0.1.0"


def parse(source: str, config: StreamConfig | None = None) -> Document:
    """Parse Markdown source into a Document.

    Args:
        source: Markdown text
        config: Enabled extensions (all of them by default)

    Raises:
        ParseError: the underlying parser failed
    """
    return Parser(config).parse(source)


def render(doc: Document, *, escape_html: bool = False) -> str:
    """Render a Document to HTML.

    Example:
        >>> render(parse("# Hello"))
        '<h1 id="hello">Hello</h1>\\n'
    """
    return HtmlRenderer(escape_html=escape_html).render(doc)


def to_markdown(doc: Document) -> str:
    """Render a Document to canonical Markdown.

    Raises:
        RenderError: the tree holds a node Markdown cannot express
    """
    return MarkdownRenderer().render(doc)


__all__ = [
    # Completion
    "PLACEHOLDER_URL",
    "State",
    "complete",
    "complete_with_state",
    # Reconciliation and merging
    "append_nodes",
    "can_contain",
    "maybe_append_to_node",
    "merge",
    "merge_stream_buffer",
    # Parsing and rendering
    "HtmlRenderer",
    "MarkdownRenderer",
    "Parser",
    "TreeRenderer",
    "parse",
    "render",
    "to_markdown",
    # Session and configuration
    "DEFAULT_CONFIG",
    "MarkdownStream",
    "StreamConfig",
    # Errors
    "FragmarkError",
    "InvalidNodeError",
    "ParseError",
    "RenderError",
    # Nodes
    "Block",
    "BlockQuote",
    "CodeBlock",
    "CodeSpan",
    "DescriptionDetails",
    "DescriptionItem",
    "DescriptionList",
    "DescriptionTerm",
    "Document",
    "Emphasis",
    "FootnoteDefinition",
    "FootnoteRef",
    "FrontMatter",
    "Heading",
    "HtmlBlock",
    "HtmlInline",
    "Image",
    "Inline",
    "Insert",
    "LineBreak",
    "Link",
    "List",
    "ListItem",
    "Mark",
    "Math",
    "MathBlock",
    "Node",
    "Paragraph",
    "SoftBreak",
    "Strikethrough",
    "Strong",
    "Subscript",
    "Superscript",
    "Table",
    "TableCell",
    "TableRow",
    "TaskItem",
    "Text",
    "ThematicBreak",
    "__version__",
]
