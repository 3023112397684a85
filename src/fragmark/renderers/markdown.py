"""Canonical Markdown renderer.

Turns a fragmark tree back into Markdown that the parser reads into the same
tree. The stream session relies on this round trip: the committed tree is
rendered, buffered chunks are appended, and the result is parsed again.

Output conventions:
- Blocks are separated by one blank line; no trailing newline
- ATX headings, except setext headings of level 1 and 2
- ``***`` for thematic breaks, so a leading break is never read as front matter
- Two adjacent lists are separated by ``<!-- end list -->``
- Text is backslash-escaped wherever it could start inline or block syntax

"""

from __future__ import annotations

import re

from fragmark.errors import RenderError
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
from fragmark.tree import wrap_node
from fragmark.utils.text import indent_lines

END_LIST_MARKER = "<!-- end list -->"

_DELIMITERS: dict[type, str] = {
    Emphasis: "*",
    Strong: "**",
    Strikethrough: "~~",
    Mark: "==",
    Insert: "^^",
    Superscript: "^",
    Subscript: "~",
}

_ALIGN_MARKERS: dict[str | None, str] = {
    None: "---",
    "left": ":--",
    "center": ":-:",
    "right": "--:",
}

_ESCAPE_RE = re.compile(r"([\\`*_\[\]<~$^|])")
_ENTITY_RE = re.compile(r"&(?=#?[0-9A-Za-z]+;)")
_EQUALS_RUN_RE = re.compile(r"={2,}")
_BLOCK_START_RE = re.compile(r"(?:>|[#+=-]+(?:[ \t]|$))")
_ORDERED_START_RE = re.compile(r"(\d{1,9})([.)])(?=[ \t]|$)")
_BACKTICK_RUN_RE = re.compile(r"`+")
_DESTINATION_NEEDS_BRACKETS_RE = re.compile(r"[\s<>()]")


def escape_text(text: str, line_start: bool = False) -> str:
    """Backslash-escape ``text`` so it reads back as literal text.

    Args:
        text: Literal text
        line_start: ``text`` begins a line, so block markers are escaped too

    Example:
        >>> escape_text("a*b*")
        'a\\\\*b\\\\*'
    """
    escaped = _ESCAPE_RE.sub(r"\\\1", text)
    escaped = _ENTITY_RE.sub(r"\\&", escaped)
    escaped = _EQUALS_RUN_RE.sub(lambda m: "\\=" * len(m.group()), escaped)
    lines = escaped.split("\n")
    return "\n".join(
        _escape_line_start(line) if (i or line_start) else line for i, line in enumerate(lines)
    )


def _escape_line_start(line: str) -> str:
    stripped = line.lstrip(" ")
    indent = line[: len(line) - len(stripped)]
    ordered = _ORDERED_START_RE.match(stripped)
    if ordered:
        return indent + ordered.group(1) + "\\" + stripped[ordered.end(1) :]
    if _BLOCK_START_RE.match(stripped):
        return indent + "\\" + stripped
    return line


def code_span(code: str) -> str:
    """Wrap ``code`` in a backtick run longer than any run inside it."""
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=0)
    fence = "`" * (longest + 1)
    pad = ""
    if code.startswith("`") or code.endswith("`"):
        pad = " "
    elif code.startswith(" ") and code.endswith(" ") and code.strip(" "):
        pad = " "
    return f"{fence}{pad}{code}{pad}{fence}"


def _destination(url: str) -> str:
    if not url or _DESTINATION_NEEDS_BRACKETS_RE.search(url):
        return "<" + url.replace("<", "\\<").replace(">", "\\>") + ">"
    return url


def _title(title: str | None) -> str:
    if not title:
        return ""
    return ' "' + title.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _fence_for(block: CodeBlock) -> str:
    length = max(block.fence_length, 3)
    for line in block.literal.split("\n"):
        run = len(line.lstrip(" ")) - len(line.lstrip(" ").lstrip(block.fence_char))
        if run >= length:
            length = run + 1
    return block.fence_char * length


def _separates_lists(previous: Node | None, block: Node) -> bool:
    if not isinstance(previous, List):
        return False
    return isinstance(block, List) or (isinstance(block, CodeBlock) and not block.fenced)


class MarkdownRenderer:
    """Render a Document to canonical Markdown.

    Usage:
        >>> from fragmark.parser import parse
        >>> MarkdownRenderer().render(parse("Hello  *world*"))
        'Hello  *world*'

    """

    __slots__ = ()

    def render(self, node: Document) -> str:
        """Render a document to Markdown.

        Raises:
            RenderError: the tree holds a node Markdown cannot express,
                such as a Document nested below the root
        """
        if not isinstance(node, Document):
            raise RenderError(f"expected a Document root, got {type(node).__name__}")
        return self._render_blocks(node.children)

    # =========================================================================
    # Blocks
    # =========================================================================

    def _render_blocks(self, blocks: tuple[Block, ...], separator: str = "\n\n") -> str:
        out: list[str] = []
        previous: Node | None = None
        for block in blocks:
            text = self._render_block(block)
            if out:
                if _separates_lists(previous, block):
                    out.append(f"\n\n{END_LIST_MARKER}\n\n")
                else:
                    out.append(separator)
            out.append(text)
            previous = block
        return "".join(out)

    def _render_block(self, block: Block) -> str:
        match block:
            case Paragraph():
                return self._render_inlines(block.children)
            case Heading():
                return self._render_heading(block)
            case ThematicBreak():
                return "***"
            case CodeBlock():
                return self._render_code(block)
            case HtmlBlock():
                return block.html.rstrip("\n")
            case MathBlock():
                return f"$$\n{block.content}\n$$"
            case BlockQuote():
                return indent_lines(self._render_blocks(block.children), "> ", "> ")
            case List():
                return self._render_list(block)
            case Table():
                return self._render_table(block)
            case DescriptionList():
                return "\n\n".join(self._render_description_item(item) for item in block.children)
            case FootnoteDefinition():
                body = self._render_blocks(block.children)
                return indent_lines(body, f"[^{block.identifier}]: ", "    ")
            case FrontMatter():
                return f"---\n{block.literal}\n---"
            case (
                ListItem()
                | TaskItem()
                | DescriptionItem()
                | DescriptionTerm()
                | DescriptionDetails()
                | TableRow()
                | TableCell()
            ):
                # Outside its container: render inside the one it implies
                return self._render_block(wrap_node(block))
            case Document():
                raise RenderError("a Document cannot be nested inside another Document")
            case _:
                raise RenderError(f"cannot render {type(block).__name__} as a block")

    def _render_heading(self, heading: Heading) -> str:
        content = self._render_inlines(heading.children)
        if heading.setext and heading.level <= 2 and content:
            underline = "===" if heading.level == 1 else "---"
            return f"{content}\n{underline}"
        if content.endswith("#"):
            content = content[:-1] + "\\#"
        hashes = "#" * heading.level
        return f"{hashes} {content}" if content else hashes

    def _render_code(self, block: CodeBlock) -> str:
        if not block.fenced:
            return indent_lines(block.literal.rstrip("\n"), "    ", "    ")
        fence = _fence_for(block)
        body = block.literal
        if body and not body.endswith("\n"):
            body += "\n"
        return f"{fence}{block.info}\n{body}{fence}"

    def _render_list(self, lst: List) -> str:
        items: list[str] = []
        for i, item in enumerate(lst.children):
            if lst.ordered:
                marker = f"{lst.start + i}{lst.delimiter} "
            else:
                marker = f"{lst.bullet_char} "
            items.append(self._render_list_item(item, marker, lst.tight))
        return ("\n" if lst.tight else "\n\n").join(items)

    def _render_list_item(self, item: ListItem | TaskItem, marker: str, tight: bool) -> str:
        continuation = " " * len(marker)
        if isinstance(item, TaskItem):
            marker += "[x] " if item.checked else "[ ] "
        body = self._render_blocks(item.children, "\n" if tight else "\n\n")
        if not body:
            return marker.rstrip()
        return indent_lines(body, marker, continuation)

    def _render_table(self, table: Table) -> str:
        if not table.children:
            return ""
        width = max(len(table.alignments), *(len(row.children) for row in table.children))
        alignments = table.alignments + (None,) * (width - len(table.alignments))

        header, *body = table.children
        lines = [self._render_table_row(header, width)]
        lines.append("| " + " | ".join(_ALIGN_MARKERS.get(a, "---") for a in alignments) + " |")
        lines.extend(self._render_table_row(row, width) for row in body)
        return "\n".join(lines)

    def _render_table_row(self, row: TableRow, width: int) -> str:
        cells = [self._render_inlines(cell.children, line_start=False) for cell in row.children]
        cells.extend([""] * (width - len(cells)))
        return "| " + " | ".join(cells) + " |"

    def _render_description_item(self, item: DescriptionItem) -> str:
        parts: list[str] = []
        for part in item.children:
            body = self._render_blocks(part.children)
            if isinstance(part, DescriptionDetails):
                parts.append(indent_lines(body, ": ", "  "))
            else:
                parts.append(body)
        return "\n".join(parts)

    # =========================================================================
    # Inlines
    # =========================================================================

    def _render_inlines(self, inlines: tuple[Inline, ...], line_start: bool = True) -> str:
        out: list[str] = []
        for inline in inlines:
            out.append(self._render_inline(inline, line_start))
            line_start = isinstance(inline, (SoftBreak, LineBreak))
        return "".join(out)

    def _render_inline(self, inline: Inline, line_start: bool) -> str:
        match inline:
            case Text():
                return escape_text(inline.content, line_start)
            case SoftBreak():
                return "\n"
            case LineBreak():
                return "\\\n"
            case CodeSpan():
                return code_span(inline.code)
            case HtmlInline():
                return inline.html
            case Math():
                return f"${inline.content}$"
            case FootnoteRef():
                return f"[^{inline.identifier}]"
            case Emphasis() | Strong() | Strikethrough() | Mark() | Insert() | Superscript() | Subscript():
                if not inline.children:
                    return ""
                delimiter = _DELIMITERS[type(inline)]
                return delimiter + self._render_inlines(inline.children, line_start=False) + delimiter
            case Link():
                label = self._render_inlines(inline.children, line_start=False)
                return f"[{label}]({_destination(inline.url)}{_title(inline.title)})"
            case Image():
                alt = self._render_inlines(inline.children, line_start=False)
                return f"![{alt}]({_destination(inline.url)}{_title(inline.title)})"
            case _:
                raise RenderError(f"cannot render {type(inline).__name__} inline")
