"""Tests for the HTML renderer."""

from fragmark import HtmlRenderer, parse, render
from fragmark.nodes import (
    CodeBlock,
    Document,
    HtmlInline,
    Image,
    List,
    Mark,
    Paragraph,
    TaskItem,
    Text,
)
from fragmark.renderers.html import html_escape


class TestBlocks:
    def test_heading_has_slug_id(self) -> None:
        assert render(parse("# Hello **World**")) == '<h1 id="hello-world">Hello <strong>World</strong></h1>\n'

    def test_duplicate_slugs_are_numbered(self) -> None:
        html = render(parse("# Intro\n\n# Intro"))
        assert 'id="intro"' in html
        assert 'id="intro-1"' in html

    def test_paragraph(self) -> None:
        assert render(parse("Hello")) == "<p>Hello</p>\n"

    def test_code_block_language(self) -> None:
        doc = Document((CodeBlock(literal="a < b\n", info="python extra"),))
        assert render(doc) == '<pre><code class="language-python">a &lt; b\n</code></pre>\n'

    def test_tight_list(self) -> None:
        assert render(parse("- a\n- b")) == "<ul>\n<li>a</li>\n<li>b</li>\n</ul>\n"

    def test_ordered_list_start(self) -> None:
        assert render(parse("3. x")).startswith('<ol start="3">')

    def test_task_item_checkbox(self) -> None:
        doc = Document((List(children=(TaskItem(children=(Paragraph((Text("done"),)),), checked=True),)),))
        assert '<input type="checkbox" disabled checked /> done' in render(doc)

    def test_table(self) -> None:
        html = render(parse("| A | B |\n| :-: | - |\n| 1 | 2 |"))
        assert "<thead>" in html and "<tbody>" in html
        assert '<th style="text-align: center">A</th>' in html
        assert "<td>2</td>" in html

    def test_front_matter_is_not_rendered(self) -> None:
        assert render(parse("---\ntitle: x\n---\nbody")) == "<p>body</p>\n"

    def test_block_quote(self) -> None:
        assert render(parse("> q")) == "<blockquote>\n<p>q</p>\n</blockquote>\n"


class TestInlines:
    def test_text_is_escaped(self) -> None:
        assert render(Document((Paragraph((Text('<a href="x">'),)),))) == "<p>&lt;a href=&quot;x&quot;&gt;</p>\n"

    def test_link(self) -> None:
        assert render(parse('[a](https://x.org "T")')) == '<p><a href="https://x.org" title="T">a</a></p>\n'

    def test_image_alt_is_plain_text(self) -> None:
        doc = Document((Paragraph((Image(url="p.png", children=(Mark((Text("hi"),)),)),)),))
        assert render(doc) == '<p><img src="p.png" alt="hi" /></p>\n'

    def test_raw_html_passes_through(self) -> None:
        doc = Document((Paragraph((HtmlInline("<b>"),)),))
        assert render(doc) == "<p><b></p>\n"

    def test_raw_html_can_be_escaped(self) -> None:
        doc = Document((Paragraph((HtmlInline("<b>"),)),))
        assert render(doc, escape_html=True) == "<p>&lt;b&gt;</p>\n"
        assert HtmlRenderer(escape_html=True).render(doc) == "<p>&lt;b&gt;</p>\n"

    def test_math(self) -> None:
        assert '<span class="math">x</span>' in render(parse("$x$"))


class TestFootnotes:
    def test_section_lists_referenced_notes(self) -> None:
        html = render(parse("Text[^1]\n\n[^1]: Note"))
        assert '<sup><a href="#fn-1" id="fnref-1-1">1</a></sup>' in html
        assert '<section class="footnotes">' in html
        assert '<li id="fn-1">\n<p>Note</p>' in html

    def test_no_section_without_references(self) -> None:
        assert "footnotes" not in render(parse("plain"))


class TestHelpers:
    def test_html_escape_keeps_single_quotes(self) -> None:
        assert html_escape("<'&\">") == "&lt;'&amp;&quot;&gt;"

    def test_renderer_is_reusable(self) -> None:
        renderer = HtmlRenderer()
        doc = parse("# A")
        assert renderer.render(doc) == renderer.render(doc)
