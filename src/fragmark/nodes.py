"""Typed tree nodes for fragmark.

All nodes are frozen dataclasses with slots:
- Immutability: a tree can be shared between sessions and threads
- Pattern matching: renderers and the merge engine dispatch with ``match``
- Structural updates go through ``dataclasses.replace``

Every container keeps its ordered children in a ``children`` tuple so the
merge engine can walk any container the same way. Leaf kinds carry no
children at all.

Node Hierarchy:
Node (base)
├── Block
│   ├── Document
│   ├── FrontMatter
│   ├── Heading / Paragraph / ThematicBreak
│   ├── CodeBlock / HtmlBlock / MathBlock
│   ├── BlockQuote
│   ├── List → ListItem | TaskItem
│   ├── DescriptionList → DescriptionItem → DescriptionTerm | DescriptionDetails
│   ├── Table → TableRow → TableCell
│   └── FootnoteDefinition
└── Inline
    ├── Text / SoftBreak / LineBreak
    ├── CodeSpan / HtmlInline / Math / FootnoteRef
    ├── Emphasis / Strong / Strikethrough / Mark / Insert
    ├── Superscript / Subscript
    └── Link / Image

"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

Align: TypeAlias = Literal["left", "center", "right"] | None


# =============================================================================
# Base Node
# =============================================================================


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all tree nodes."""


# =============================================================================
# Inline Nodes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Text(Node):
    """Literal text.

    The most common inline node. Adjacent runs are merged by the parser.

    """

    content: str


@dataclass(frozen=True, slots=True)
class SoftBreak(Node):
    """Soft line break (single newline inside a paragraph)."""


@dataclass(frozen=True, slots=True)
class LineBreak(Node):
    """Hard line break.

    Markdown: ``\\`` at end of line or two trailing spaces
    HTML: <br />

    """


@dataclass(frozen=True, slots=True)
class CodeSpan(Node):
    """Inline code.

    Markdown: `code`
    HTML: <code>code</code>

    """

    code: str


@dataclass(frozen=True, slots=True)
class HtmlInline(Node):
    """Inline raw HTML, passed through unchanged."""

    html: str


@dataclass(frozen=True, slots=True)
class Math(Node):
    """Inline math expression.

    Markdown: $E = mc^2$

    """

    content: str


@dataclass(frozen=True, slots=True)
class FootnoteRef(Node):
    """Footnote reference.

    Markdown: [^note]

    """

    identifier: str


@dataclass(frozen=True, slots=True)
class Emphasis(Node):
    """Emphasized text. Markdown: *text* or _text_"""

    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Strong(Node):
    """Strong text. Markdown: **text** or __text__"""

    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Strikethrough(Node):
    """Deleted text. Markdown: ~~text~~"""

    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Mark(Node):
    """Highlighted text. Markdown: ==text=="""

    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Insert(Node):
    """Inserted text. Markdown: ^^text^^"""

    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Superscript(Node):
    """Superscript. Markdown: ^text^"""

    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Subscript(Node):
    """Subscript. Markdown: ~text~"""

    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Link(Node):
    """Hyperlink.

    Markdown: [text](url "title")
    HTML: <a href="url" title="title">text</a>

    """

    url: str
    title: str | None = None
    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class Image(Node):
    """Image. The alt text is kept as inline children.

    Markdown: ![alt](url "title")
    HTML: <img src="url" alt="alt" title="title" />

    """

    url: str
    title: str | None = None
    children: tuple[Inline, ...] = ()


# PEP 695 type alias for inline elements
Inline: TypeAlias = (
    Text
    | SoftBreak
    | LineBreak
    | CodeSpan
    | HtmlInline
    | Math
    | FootnoteRef
    | Emphasis
    | Strong
    | Strikethrough
    | Mark
    | Insert
    | Superscript
    | Subscript
    | Link
    | Image
)


# =============================================================================
# Block Nodes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Document(Node):
    """Root node. Holds all top-level blocks."""

    children: tuple[Block, ...] = ()


@dataclass(frozen=True, slots=True)
class FrontMatter(Node):
    """Metadata block delimited by ``---`` lines at the top of a document.

    ``literal`` holds the raw text between the delimiters.

    """

    literal: str


@dataclass(frozen=True, slots=True)
class Heading(Node):
    """ATX or setext heading.

    Markdown: # Heading or Heading\\n=======
    HTML: <h1>Heading</h1>

    """

    level: Literal[1, 2, 3, 4, 5, 6] = 1
    children: tuple[Inline, ...] = ()
    setext: bool = False


@dataclass(frozen=True, slots=True)
class Paragraph(Node):
    """Paragraph block."""

    children: tuple[Inline, ...] = ()


@dataclass(frozen=True, slots=True)
class ThematicBreak(Node):
    """Thematic break. Markdown: ---"""


@dataclass(frozen=True, slots=True)
class CodeBlock(Node):
    """Fenced or indented code block.

    The fence metadata is what the stream reconciler needs to rebuild the
    canonical closing line: ``" " * fence_offset + fence_char * fence_length``.

    """

    literal: str = ""
    info: str = ""
    fenced: bool = True
    fence_char: Literal["`", "~"] = "`"
    fence_length: int = 3
    fence_offset: int = 0


@dataclass(frozen=True, slots=True)
class HtmlBlock(Node):
    """Raw HTML block, passed through unchanged."""

    html: str


@dataclass(frozen=True, slots=True)
class MathBlock(Node):
    """Display math.

    Markdown:
        $$
        E = mc^2
        $$

    """

    content: str


@dataclass(frozen=True, slots=True)
class BlockQuote(Node):
    """Block quote. Markdown: > quoted"""

    children: tuple[Block, ...] = ()


@dataclass(frozen=True, slots=True)
class ListItem(Node):
    """Item of a bullet or ordered list.

    ``ordered`` mirrors the flavor of the list the item was parsed from.

    """

    children: tuple[Block, ...] = ()
    ordered: bool = False


@dataclass(frozen=True, slots=True)
class TaskItem(Node):
    """Task list item. Markdown: - [ ] todo / - [x] done"""

    children: tuple[Block, ...] = ()
    checked: bool = False
    ordered: bool = False


@dataclass(frozen=True, slots=True)
class List(Node):
    """Bullet or ordered list.

    Markdown: - item or 1. item
    HTML: <ul>/<ol> with <li> children

    """

    children: tuple[ListItem | TaskItem, ...] = ()
    ordered: bool = False
    start: int = 1
    tight: bool = True
    bullet_char: str = "-"
    delimiter: Literal[".", ")"] = "."


@dataclass(frozen=True, slots=True)
class DescriptionList(Node):
    """Definition list made of term/details items."""

    children: tuple[DescriptionItem, ...] = ()


@dataclass(frozen=True, slots=True)
class DescriptionItem(Node):
    """One term with its details."""

    children: tuple[DescriptionTerm | DescriptionDetails, ...] = ()


@dataclass(frozen=True, slots=True)
class DescriptionTerm(Node):
    """The term being described."""

    children: tuple[Block, ...] = ()


@dataclass(frozen=True, slots=True)
class DescriptionDetails(Node):
    """The description of a term. Markdown: ``: details``"""

    children: tuple[Block, ...] = ()


@dataclass(frozen=True, slots=True)
class TableCell(Node):
    """Table cell (th or td)."""

    children: tuple[Inline, ...] = ()
    align: Align = None


@dataclass(frozen=True, slots=True)
class TableRow(Node):
    """Table row. The first row of a table is its header."""

    children: tuple[TableCell, ...] = ()
    header: bool = False


@dataclass(frozen=True, slots=True)
class Table(Node):
    """GFM table.

    Markdown:
        | A | B |
        |---|---|
        | 1 | 2 |

    """

    children: tuple[TableRow, ...] = ()
    alignments: tuple[Align, ...] = ()


@dataclass(frozen=True, slots=True)
class FootnoteDefinition(Node):
    """Footnote definition. Markdown: [^note]: text"""

    identifier: str
    children: tuple[Block, ...] = ()


# PEP 695 type alias for block elements
Block: TypeAlias = (
    Document
    | FrontMatter
    | Heading
    | Paragraph
    | ThematicBreak
    | CodeBlock
    | HtmlBlock
    | MathBlock
    | BlockQuote
    | List
    | ListItem
    | TaskItem
    | DescriptionList
    | DescriptionItem
    | DescriptionTerm
    | DescriptionDetails
    | Table
    | TableRow
    | TableCell
    | FootnoteDefinition
)


# =============================================================================
# Classification
# =============================================================================

BLOCK_TYPES: tuple[type[Node], ...] = (
    Document,
    FrontMatter,
    Heading,
    Paragraph,
    ThematicBreak,
    CodeBlock,
    HtmlBlock,
    MathBlock,
    BlockQuote,
    List,
    ListItem,
    TaskItem,
    DescriptionList,
    DescriptionItem,
    DescriptionTerm,
    DescriptionDetails,
    Table,
    TableRow,
    TableCell,
    FootnoteDefinition,
)

INLINE_TYPES: tuple[type[Node], ...] = (
    Text,
    SoftBreak,
    LineBreak,
    CodeSpan,
    HtmlInline,
    Math,
    FootnoteRef,
    Emphasis,
    Strong,
    Strikethrough,
    Mark,
    Insert,
    Superscript,
    Subscript,
    Link,
    Image,
)

# Containers whose children must all be inline
INLINE_CONTAINER_TYPES: tuple[type[Node], ...] = (
    Paragraph,
    Heading,
    TableCell,
    Emphasis,
    Strong,
    Strikethrough,
    Mark,
    Insert,
    Superscript,
    Subscript,
    Link,
    Image,
)


def is_block(node: object) -> bool:
    """Return True if ``node`` is a block-level node."""
    return isinstance(node, BLOCK_TYPES)


def is_inline(node: object) -> bool:
    """Return True if ``node`` is an inline node."""
    return isinstance(node, INLINE_TYPES)


def children_of(node: Node) -> tuple[Node, ...]:
    """Children of ``node``, or an empty tuple for leaf kinds."""
    return getattr(node, "children", ())


def plain_text(nodes: tuple[Node, ...]) -> str:
    """Concatenate the literal text under ``nodes``."""
    parts: list[str] = []
    for node in nodes:
        match node:
            case Text():
                parts.append(node.content)
            case CodeSpan():
                parts.append(node.code)
            case Math():
                parts.append(node.content)
            case SoftBreak() | LineBreak():
                parts.append(" ")
            case _:
                parts.append(plain_text(children_of(node)))
    return "".join(parts)
