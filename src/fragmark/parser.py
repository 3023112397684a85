"""Markdown parser producing fragmark's typed tree.

The grammar itself is delegated to mistune 3. Its AST mode returns a list of
token dicts, which this module converts into frozen fragmark nodes. Leading
front matter is split off before mistune sees the text.

Usage:
    >>> parser = Parser()
    >>> doc = parser.parse("# Hello **World**")
    >>> doc.children[0]
    Heading(level=1, children=(Text(content='Hello '), Strong(...)), setext=False)

Thread Safety:
    A Parser holds one configured mistune instance. Each parse builds a
    fresh mistune state and an immutable tree, but one Parser should not be
    shared across threads mid-parse. Create one per session.

"""

from __future__ import annotations

import html
import re
from typing import Any, TypeAlias

import mistune

from fragmark.config import DEFAULT_CONFIG, StreamConfig
from fragmark.errors import ParseError
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
from fragmark.utils.logger import get_logger

logger = get_logger(__name__)

Token: TypeAlias = dict[str, Any]

_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\n(?P<body>.*?)^---[ \t]*$\n?", re.DOTALL | re.MULTILINE)

# Inline tokens that wrap other inline tokens
_INLINE_WRAPPERS: dict[str, type[Emphasis | Strong | Strikethrough | Mark | Insert | Superscript | Subscript]] = {
    "emphasis": Emphasis,
    "strong": Strong,
    "strikethrough": Strikethrough,
    "mark": Mark,
    "insert": Insert,
    "superscript": Superscript,
    "subscript": Subscript,
}


def split_front_matter(source: str) -> tuple[str | None, str]:
    """Split a leading ``---`` block off ``source``.

    Returns:
        (front matter text or None, remaining Markdown)
    """
    match = _FRONT_MATTER_RE.match(source)
    if match is None:
        return None, source
    return match.group("body").rstrip("\n"), source[match.end() :]


class Parser:
    """Parse Markdown into a ``Document``.

    Configuration selects the mistune plugins and front matter handling.
    """

    __slots__ = ("_config", "_markdown")

    def __init__(self, config: StreamConfig | None = None) -> None:
        self._config = config or DEFAULT_CONFIG
        self._markdown = mistune.create_markdown(
            renderer=None,
            plugins=self._config.mistune_plugins(),
        )

    @property
    def config(self) -> StreamConfig:
        return self._config

    def parse(self, source: str) -> Document:
        """Parse ``source`` into a new Document.

        Raises:
            ParseError: mistune failed on the input
        """
        front_matter: str | None = None
        body = source
        if self._config.front_matter_enabled:
            front_matter, body = split_front_matter(source)

        try:
            tokens, _state = self._markdown.parse(body)
        except Exception as e:
            raise ParseError(f"mistune failed: {e}", source_length=len(source)) from e

        blocks = self._convert_blocks(tokens)
        if front_matter is not None:
            blocks = (FrontMatter(literal=front_matter), *blocks)
        return Document(children=blocks)

    # =========================================================================
    # Block tokens
    # =========================================================================

    def _convert_blocks(self, tokens: list[Token]) -> tuple[Block, ...]:
        blocks: list[Block] = []
        for token in tokens:
            node = self._convert_block(token)
            if node is None:
                continue
            if isinstance(node, tuple):
                blocks.extend(node)
            else:
                blocks.append(node)
        return tuple(blocks)

    def _convert_block(self, token: Token) -> Block | tuple[Block, ...] | None:
        attrs = token.get("attrs") or {}
        match token["type"]:
            case "paragraph" | "block_text":
                return Paragraph(children=self._convert_inlines(token.get("children", [])))
            case "heading":
                return Heading(
                    level=attrs.get("level", 1),
                    children=self._convert_inlines(token.get("children", [])),
                    setext=token.get("style") == "setext",
                )
            case "block_code":
                return self._convert_code(token, attrs)
            case "block_quote":
                return BlockQuote(children=self._convert_blocks(token.get("children", [])))
            case "list":
                return self._convert_list(token, attrs)
            case "thematic_break":
                return ThematicBreak()
            case "block_html":
                return HtmlBlock(html=token.get("raw", ""))
            case "block_math":
                return MathBlock(content=token.get("raw", "").strip("\n"))
            case "table":
                return self._convert_table(token)
            case "def_list":
                return self._convert_def_list(token)
            case "footnotes":
                return tuple(
                    FootnoteDefinition(
                        identifier=str((item.get("attrs") or {}).get("key", "")),
                        children=self._convert_blocks(item.get("children", [])),
                    )
                    for item in token.get("children", [])
                )
            case "blank_line":
                return None
            case other:
                logger.debug("skipping unsupported block token %r", other)
                if "children" in token:
                    return self._convert_blocks(token["children"])
                return None

    def _convert_code(self, token: Token, attrs: dict[str, Any]) -> CodeBlock:
        literal = token.get("raw", "")
        if literal and not literal.endswith("\n"):
            literal += "\n"
        if token.get("style") != "fenced":
            return CodeBlock(literal=literal, fenced=False, fence_length=0)
        marker = token.get("marker") or "```"
        return CodeBlock(
            literal=literal,
            info=(attrs.get("info") or "").strip(),
            fenced=True,
            fence_char="~" if marker[0] == "~" else "`",
            fence_length=len(marker),
        )

    def _convert_list(self, token: Token, attrs: dict[str, Any]) -> List:
        ordered = bool(attrs.get("ordered", False))
        bullet = token.get("bullet") or ("." if ordered else "-")
        items: list[ListItem | TaskItem] = []
        for child in token.get("children", []):
            blocks = self._convert_blocks(child.get("children", []))
            if child["type"] == "task_list_item":
                checked = bool((child.get("attrs") or {}).get("checked", False))
                items.append(TaskItem(children=blocks, checked=checked, ordered=ordered))
            else:
                items.append(ListItem(children=blocks, ordered=ordered))
        return List(
            children=tuple(items),
            ordered=ordered,
            start=int(attrs.get("start", 1)),
            tight=bool(token.get("tight", True)),
            bullet_char="-" if ordered else bullet,
            delimiter=")" if ordered and bullet == ")" else ".",
        )

    def _convert_table(self, token: Token) -> Table:
        rows: list[TableRow] = []
        alignments: tuple[Any, ...] = ()
        for part in token.get("children", []):
            match part["type"]:
                case "table_head":
                    cells = self._convert_cells(part.get("children", []))
                    alignments = tuple(cell.align for cell in cells)
                    rows.append(TableRow(children=cells, header=True))
                case "table_body":
                    for row in part.get("children", []):
                        rows.append(TableRow(children=self._convert_cells(row.get("children", []))))
        return Table(children=tuple(rows), alignments=alignments)

    def _convert_cells(self, tokens: list[Token]) -> tuple[TableCell, ...]:
        return tuple(
            TableCell(
                children=self._convert_inlines(cell.get("children", [])),
                align=(cell.get("attrs") or {}).get("align"),
            )
            for cell in tokens
        )

    def _convert_def_list(self, token: Token) -> DescriptionList:
        items: list[DescriptionItem] = []
        for child in token.get("children", []):
            match child["type"]:
                case "def_list_head":
                    term = DescriptionTerm(
                        children=(Paragraph(children=self._convert_inlines(child.get("children", []))),)
                    )
                    items.append(DescriptionItem(children=(term,)))
                case "def_list_item":
                    details = DescriptionDetails(children=self._convert_blocks(child.get("children", [])))
                    if not items:
                        items.append(DescriptionItem())
                    last = items[-1]
                    items[-1] = DescriptionItem(children=(*last.children, details))
        return DescriptionList(children=tuple(items))

    # =========================================================================
    # Inline tokens
    # =========================================================================

    def _convert_inlines(self, tokens: list[Token]) -> tuple[Inline, ...]:
        nodes: list[Inline] = []
        for token in tokens:
            node = self._convert_inline(token)
            if node is None:
                continue
            # Empty table cells come through as empty text runs
            if isinstance(node, Text) and not node.content:
                continue
            # mistune splits text at every delimiter it tried; join the runs
            if isinstance(node, Text) and nodes and isinstance(nodes[-1], Text):
                nodes[-1] = Text(content=nodes[-1].content + node.content)
            else:
                nodes.append(node)
        return tuple(nodes)

    def _convert_inline(self, token: Token) -> Inline | None:
        attrs = token.get("attrs") or {}
        kind = token["type"]
        match kind:
            case "text":
                # mistune leaves entity references undecoded in text
                return Text(content=html.unescape(token.get("raw", "")))
            case "codespan":
                return CodeSpan(code=token.get("raw", ""))
            case "softbreak":
                return SoftBreak()
            case "linebreak":
                return LineBreak()
            case "inline_html":
                return HtmlInline(html=token.get("raw", ""))
            case "inline_math":
                return Math(content=token.get("raw", ""))
            case "footnote_ref":
                return FootnoteRef(identifier=str(token.get("raw", "")))
            case "link":
                return Link(
                    url=attrs.get("url", ""),
                    title=attrs.get("title"),
                    children=self._convert_inlines(token.get("children", [])),
                )
            case "image":
                return Image(
                    url=attrs.get("url", ""),
                    title=attrs.get("title"),
                    children=self._convert_inlines(token.get("children", [])),
                )
            case _ if kind in _INLINE_WRAPPERS:
                return _INLINE_WRAPPERS[kind](children=self._convert_inlines(token.get("children", [])))
            case _:
                logger.debug("skipping unsupported inline token %r", kind)
                if "raw" in token:
                    return Text(content=token["raw"])
                return None


def parse(source: str, config: StreamConfig | None = None) -> Document:
    """Parse Markdown source into a Document.

    Example:
        >>> parse("- a\\n- b").children[0].ordered
        False
    """
    return Parser(config).parse(source)
