"""HTML renderer using the StringBuilder pattern.

Renders a fragmark tree to HTML in one pass.

Thread Safety:
All per-render state lives in a RenderContext created fresh for each
render() call. One HtmlRenderer can be shared between threads.

Heading anchors:
Heading IDs are slugified during the walk and de-duplicated per render.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from urllib.parse import quote as url_quote

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
    plain_text,
)
from fragmark.stringbuilder import StringBuilder
from fragmark.utils.logger import get_logger
from fragmark.utils.text import slugify

logger = get_logger(__name__)

_TAGS: dict[type, str] = {
    Emphasis: "em",
    Strong: "strong",
    Strikethrough: "del",
    Mark: "mark",
    Insert: "ins",
    Superscript: "sup",
    Subscript: "sub",
}


def html_escape(s: str) -> str:
    """Escape <, >, & and double quotes; single quotes are left alone."""
    return html.escape(s, quote=False).replace('"', "&quot;")


def _encode_url(url: str) -> str:
    """Percent-encode a URL for an href/src attribute.

    Entities are decoded first; already-encoded sequences are preserved.
    """
    return url_quote(html.unescape(url), safe="/:?#[]@!$&'()*+,;=-_.~%")


@dataclass(slots=True)
class RenderContext:
    """Per-render mutable state."""

    seen_slugs: set[str] = field(default_factory=set)
    footnote_defs: dict[str, FootnoteDefinition] = field(default_factory=dict)
    footnote_refs: list[str] = field(default_factory=list)


class HtmlRenderer:
    """Render a Document to HTML.

    Usage:
        >>> from fragmark.parser import parse
        >>> HtmlRenderer().render(parse("# Hello **World**"))
        '<h1 id="hello-world">Hello <strong>World</strong></h1>\\n'

    """

    __slots__ = ("_escape_html",)

    def __init__(self, *, escape_html: bool = False) -> None:
        """Initialize renderer.

        Args:
            escape_html: Escape raw HTML blocks and inline HTML instead of
                passing them through
        """
        self._escape_html = escape_html

    def render(self, node: Document) -> str:
        """Render a document to an HTML string."""
        ctx = RenderContext()
        for child in node.children:
            if isinstance(child, FootnoteDefinition):
                ctx.footnote_defs[child.identifier] = child

        sb = StringBuilder()
        for child in node.children:
            self._render_block(child, sb, ctx)

        if ctx.footnote_refs:
            self._render_footnotes_section(sb, ctx)
        return sb.build()

    # =========================================================================
    # Block rendering
    # =========================================================================

    def _render_blocks(self, blocks: tuple[Block, ...], sb: StringBuilder, ctx: RenderContext) -> None:
        for block in blocks:
            self._render_block(block, sb, ctx)

    def _render_block(self, block: Block, sb: StringBuilder, ctx: RenderContext) -> None:
        match block:
            case Heading():
                self._render_heading(block, sb, ctx)
            case Paragraph():
                sb.append("<p>")
                self._render_inlines(block.children, sb, ctx)
                sb.append("</p>\n")
            case CodeBlock():
                self._render_code(block, sb)
            case BlockQuote():
                sb.append("<blockquote>\n")
                self._render_blocks(block.children, sb, ctx)
                sb.append("</blockquote>\n")
            case List():
                self._render_list(block, sb, ctx)
            case ListItem() | TaskItem():
                # Stray item nested directly in another block
                self._render_list_item(block, sb, ctx, tight=True)
            case ThematicBreak():
                sb.append("<hr />\n")
            case HtmlBlock():
                content = block.html.rstrip("\n")
                sb.append(html_escape(content) if self._escape_html else content).append("\n")
            case MathBlock():
                sb.append('<div class="math-block">\n')
                sb.append(html_escape(block.content))
                sb.append("\n</div>\n")
            case Table():
                self._render_table(block, sb, ctx)
            case TableRow():
                self._render_table_row(block, sb, ctx, ())
            case TableCell():
                self._render_table_cell(block, sb, ctx, "td", None)
            case DescriptionList():
                sb.append("<dl>\n")
                self._render_blocks(block.children, sb, ctx)
                sb.append("</dl>\n")
            case DescriptionItem():
                self._render_blocks(block.children, sb, ctx)
            case DescriptionTerm():
                sb.append("<dt>")
                self._render_tight(block.children, sb, ctx)
                sb.append("</dt>\n")
            case DescriptionDetails():
                sb.append("<dd>")
                self._render_tight(block.children, sb, ctx)
                sb.append("</dd>\n")
            case FootnoteDefinition():
                pass  # Rendered in footnotes section
            case FrontMatter():
                pass  # Metadata, not content
            case Document():
                self._render_blocks(block.children, sb, ctx)

    def _render_heading(self, heading: Heading, sb: StringBuilder, ctx: RenderContext) -> None:
        slug = slugify(plain_text(heading.children))
        original = slug
        counter = 1
        while slug in ctx.seen_slugs:
            slug = f"{original}-{counter}"
            counter += 1
        ctx.seen_slugs.add(slug)

        sb.append(f'<h{heading.level} id="{html_escape(slug)}">')
        self._render_inlines(heading.children, sb, ctx)
        sb.append(f"</h{heading.level}>\n")

    def _render_code(self, code: CodeBlock, sb: StringBuilder) -> None:
        # First word of the info string names the language
        info = html.unescape(code.info) if code.info else ""
        lang = info.split()[0] if info.strip() else None
        lang_class = f' class="language-{html_escape(lang)}"' if lang else ""
        sb.append(f"<pre><code{lang_class}>")
        sb.append(html_escape(code.literal))
        sb.append("</code></pre>\n")

    def _render_list(self, lst: List, sb: StringBuilder, ctx: RenderContext) -> None:
        if lst.ordered:
            start_attr = f' start="{lst.start}"' if lst.start != 1 else ""
            sb.append(f"<ol{start_attr}>\n")
        else:
            sb.append("<ul>\n")

        for item in lst.children:
            self._render_list_item(item, sb, ctx, lst.tight)

        sb.append("</ol>\n" if lst.ordered else "</ul>\n")

    def _render_list_item(
        self, item: ListItem | TaskItem, sb: StringBuilder, ctx: RenderContext, tight: bool
    ) -> None:
        """Render list item.

        Tight lists render paragraphs as bare text; loose lists keep <p>.
        """
        sb.append("<li>")
        if isinstance(item, TaskItem):
            checked = " checked" if item.checked else ""
            sb.append(f'<input type="checkbox" disabled{checked} /> ')

        if tight:
            self._render_tight(item.children, sb, ctx)
        elif item.children:
            sb.append("\n")
            self._render_blocks(item.children, sb, ctx)
        sb.append("</li>\n")

    def _render_tight(self, blocks: tuple[Block, ...], sb: StringBuilder, ctx: RenderContext) -> None:
        """Render blocks with paragraphs unwrapped, as in tight lists."""
        for i, child in enumerate(blocks):
            if isinstance(child, Paragraph):
                self._render_inlines(child.children, sb, ctx)
                if i < len(blocks) - 1:
                    sb.append("\n")
            else:
                if i == 0:
                    sb.append("\n")
                self._render_block(child, sb, ctx)

    def _render_table(self, table: Table, sb: StringBuilder, ctx: RenderContext) -> None:
        sb.append("<table>\n")
        head = [row for row in table.children if row.header]
        body = [row for row in table.children if not row.header]

        if head:
            sb.append("<thead>\n")
            for row in head:
                self._render_table_row(row, sb, ctx, table.alignments)
            sb.append("</thead>\n")

        if body:
            sb.append("<tbody>\n")
            for row in body:
                self._render_table_row(row, sb, ctx, table.alignments)
            sb.append("</tbody>\n")

        sb.append("</table>\n")

    def _render_table_row(
        self,
        row: TableRow,
        sb: StringBuilder,
        ctx: RenderContext,
        alignments: tuple[str | None, ...],
    ) -> None:
        sb.append("<tr>\n")
        tag = "th" if row.header else "td"
        for i, cell in enumerate(row.children):
            align = cell.align or (alignments[i] if i < len(alignments) else None)
            self._render_table_cell(cell, sb, ctx, tag, align)
        sb.append("</tr>\n")

    def _render_table_cell(
        self, cell: TableCell, sb: StringBuilder, ctx: RenderContext, tag: str, align: str | None
    ) -> None:
        style = f' style="text-align: {align}"' if align else ""
        sb.append(f"<{tag}{style}>")
        self._render_inlines(cell.children, sb, ctx)
        sb.append(f"</{tag}>\n")

    # =========================================================================
    # Inline rendering
    # =========================================================================

    def _render_inlines(self, inlines: tuple[Inline, ...], sb: StringBuilder, ctx: RenderContext) -> None:
        for inline in inlines:
            self._render_inline(inline, sb, ctx)

    def _render_inline(self, inline: Inline, sb: StringBuilder, ctx: RenderContext) -> None:
        match inline:
            case Text():
                sb.append(html_escape(inline.content))
            case Emphasis() | Strong() | Strikethrough() | Mark() | Insert() | Superscript() | Subscript():
                tag = _TAGS[type(inline)]
                sb.append(f"<{tag}>")
                self._render_inlines(inline.children, sb, ctx)
                sb.append(f"</{tag}>")
            case Link():
                href = html_escape(_encode_url(inline.url))
                title = f' title="{html_escape(inline.title)}"' if inline.title else ""
                sb.append(f'<a href="{href}"{title}>')
                self._render_inlines(inline.children, sb, ctx)
                sb.append("</a>")
            case Image():
                src = html_escape(_encode_url(inline.url))
                alt = html_escape(plain_text(inline.children))
                title = f' title="{html_escape(inline.title)}"' if inline.title else ""
                sb.append(f'<img src="{src}" alt="{alt}"{title} />')
            case CodeSpan():
                sb.append("<code>")
                sb.append(html_escape(inline.code))
                sb.append("</code>")
            case LineBreak():
                sb.append("<br />\n")
            case SoftBreak():
                sb.append("\n")
            case HtmlInline():
                sb.append(html_escape(inline.html) if self._escape_html else inline.html)
            case Math():
                sb.append('<span class="math">')
                sb.append(html_escape(inline.content))
                sb.append("</span>")
            case FootnoteRef():
                ctx.footnote_refs.append(inline.identifier)
                ref_num = len(ctx.footnote_refs)
                esc_id = html_escape(inline.identifier)
                sb.append(
                    f'<sup><a href="#fn-{esc_id}" id="fnref-{esc_id}-{ref_num}">{ref_num}</a></sup>'
                )
            case _:
                logger.debug("no HTML for inline %s", type(inline).__name__)

    def _render_footnotes_section(self, sb: StringBuilder, ctx: RenderContext) -> None:
        sb.append('<section class="footnotes">\n')
        sb.append("<ol>\n")

        rendered: set[str] = set()
        for identifier in ctx.footnote_refs:
            if identifier in rendered or identifier not in ctx.footnote_defs:
                continue
            rendered.add(identifier)
            esc_id = html_escape(identifier)
            sb.append(f'<li id="fn-{esc_id}">\n')
            self._render_blocks(ctx.footnote_defs[identifier].children, sb, ctx)
            sb.append(f'<a href="#fnref-{esc_id}-1">↩</a>\n')
            sb.append("</li>\n")

        sb.append("</ol>\n")
        sb.append("</section>\n")
