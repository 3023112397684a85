"""Tests for the tree append/merge engine."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from fragmark import (
    InvalidNodeError,
    append_nodes,
    can_contain,
    maybe_append_to_node,
    merge,
    parse,
    to_markdown,
)
from fragmark.nodes import (
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
    FrontMatter,
    Heading,
    List,
    ListItem,
    Node,
    Paragraph,
    Strong,
    Table,
    TableCell,
    TableRow,
    TaskItem,
    Text,
    ThematicBreak,
    children_of,
)
from fragmark.tree import wrap_node


def para(text: str) -> Paragraph:
    return Paragraph(children=(Text(text),))


def item(text: str, *, ordered: bool = False) -> ListItem:
    return ListItem(children=(para(text),), ordered=ordered)


def bullets(*texts: str) -> List:
    return List(children=tuple(item(t) for t in texts))


def numbered(*texts: str) -> List:
    return List(children=tuple(item(t, ordered=True) for t in texts), ordered=True)


class TestCanContain:
    """The containment matrix."""

    def test_document_takes_blocks(self) -> None:
        doc = Document()
        assert can_contain(doc, para("a"))
        assert can_contain(doc, FrontMatter("title: x"))
        assert not can_contain(doc, Document())
        assert not can_contain(doc, Text("a"))

    def test_document_rejects_items_outside_their_container(self) -> None:
        doc = Document()
        assert not can_contain(doc, item("a"))
        assert not can_contain(doc, TableRow())
        assert not can_contain(doc, DescriptionItem())

    def test_list_flavor(self) -> None:
        assert can_contain(bullets(), item("a"))
        assert not can_contain(bullets(), item("a", ordered=True))
        assert can_contain(numbered(), TaskItem(ordered=True))
        assert can_contain(bullets(), bullets("b"))
        assert not can_contain(bullets(), numbered("b"))
        assert not can_contain(bullets(), para("a"))

    def test_list_item_takes_any_block(self) -> None:
        li = item("a")
        assert can_contain(li, para("b"))
        assert can_contain(li, item("b", ordered=True))
        assert can_contain(li, bullets("b"))
        assert can_contain(li, numbered("b"))
        assert can_contain(TaskItem(), numbered("b"))
        assert not can_contain(li, Document())
        assert not can_contain(li, Text("b"))

    def test_block_containers(self) -> None:
        for parent in (BlockQuote(), FootnoteDefinition("1"), DescriptionTerm(), DescriptionDetails()):
            assert can_contain(parent, para("a"))
            assert not can_contain(parent, Document())

    def test_description_list(self) -> None:
        assert can_contain(DescriptionList(), DescriptionItem())
        assert not can_contain(DescriptionList(), DescriptionTerm())
        assert can_contain(DescriptionItem(), DescriptionTerm())
        assert can_contain(DescriptionItem(), DescriptionDetails())

    def test_tables(self) -> None:
        assert can_contain(Table(), TableRow())
        assert can_contain(TableRow(), TableCell())
        assert can_contain(TableCell(), Text("a"))
        assert not can_contain(Table(), TableCell())

    def test_inline_containers(self) -> None:
        assert can_contain(para("a"), Strong())
        assert can_contain(Heading(), CodeSpan("x"))
        assert can_contain(Emphasis(), Text("a"))
        assert not can_contain(para("a"), para("b"))

    def test_leaves_contain_nothing(self) -> None:
        assert not can_contain(Text("a"), Text("b"))
        assert not can_contain(CodeBlock(), Text("b"))
        assert not can_contain(ThematicBreak(), para("a"))


class TestMaybeAppendToNode:
    def test_appends_directly(self) -> None:
        result = maybe_append_to_node(bullets("a"), item("b"))
        assert result == bullets("a", "b")

    def test_splices_same_list_kind(self) -> None:
        result = maybe_append_to_node(bullets("a"), bullets("b", "c"))
        assert result == bullets("a", "b", "c")

    def test_splices_description_lists(self) -> None:
        first = DescriptionItem(children=(DescriptionTerm(children=(para("a"),)),))
        second = DescriptionItem(children=(DescriptionTerm(children=(para("b"),)),))
        result = maybe_append_to_node(DescriptionList((first,)), DescriptionList((second,)))
        assert result == DescriptionList((first, second))

    def test_concatenates_trailing_text_in_list_item(self) -> None:
        li = ListItem(children=(Text("Item "),))  # type: ignore[arg-type]
        result = maybe_append_to_node(li, Text("One"))
        assert result == ListItem(children=(Text("Item One"),))  # type: ignore[arg-type]

    def test_recurses_to_the_deepest_container(self) -> None:
        result = maybe_append_to_node(bullets("a"), Text("b"))
        assert result == List(children=(ListItem(children=(Paragraph(children=(Text("a"), Text("b"))),)),))

    def test_returns_none_when_nothing_fits(self) -> None:
        assert maybe_append_to_node(CodeBlock(), para("a")) is None
        assert maybe_append_to_node(para("a"), para("b")) is None


class TestAppendNodes:
    """Folding nodes onto a document."""

    def test_empty_document(self) -> None:
        result = append_nodes(Document(), [para("Hello")])
        assert result == Document((para("Hello"),))
        assert to_markdown(result) == "Hello"

    def test_input_is_not_modified(self) -> None:
        doc = Document((bullets("a"),))
        append_nodes(doc, [item("b")])
        assert doc == Document((bullets("a"),))

    def test_appends_list_item_to_existing_list(self) -> None:
        doc = Document((Paragraph(children=(CodeSpan("code"),)), bullets("item1")))
        result = append_nodes(doc, [item("item2")])
        assert result.children[1] == bullets("item1", "item2")
        assert to_markdown(result) == "`code`\n\n- item1\n- item2"

    def test_wraps_list_item_without_list(self) -> None:
        doc = Document((Paragraph(children=(CodeSpan("code"),)),))
        result = append_nodes(doc, [item("item")])
        assert result.children[1] == bullets("item")
        assert to_markdown(result) == "`code`\n\n- item"

    def test_wraps_task_item(self) -> None:
        task = TaskItem(children=(para("Todo"),))
        result = append_nodes(Document(), [task])
        assert result == Document((List(children=(task,)),))
        assert to_markdown(result) == "- [ ] Todo"

    def test_ordered_item_is_wrapped_in_ordered_list(self) -> None:
        result = append_nodes(Document(), [item("a", ordered=True)])
        assert result.children[0] == numbered("a")

    def test_splices_same_flavor_lists(self) -> None:
        doc = Document((para("intro"), bullets("bullet1")))
        result = append_nodes(doc, [bullets("bullet2", "bullet3")])
        assert result == Document((para("intro"), bullets("bullet1", "bullet2", "bullet3")))
        assert to_markdown(result) == "intro\n\n- bullet1\n- bullet2\n- bullet3"

    def test_different_flavor_list_nests_in_last_item(self) -> None:
        doc = Document((para("intro"), bullets("bullet1")))
        result = append_nodes(doc, [numbered("ordered1", "ordered2")])
        nested = ListItem(children=(para("bullet1"), numbered("ordered1", "ordered2")))
        assert result.children == (para("intro"), List(children=(nested,)))
        assert to_markdown(result) == "intro\n\n- bullet1\n  1. ordered1\n  2. ordered2"

    def test_list_after_other_block_becomes_a_sibling(self) -> None:
        doc = Document((para("intro"),))
        result = append_nodes(doc, [numbered("ordered1")])
        assert result.children == (para("intro"), numbered("ordered1"))

    def test_only_the_last_top_level_node_is_extended(self) -> None:
        doc = Document((bullets("a"), ThematicBreak()))
        result = append_nodes(doc, [item("b")])
        assert result.children == (bullets("a"), ThematicBreak(), bullets("b"))

    def test_block_goes_into_open_block_quote(self) -> None:
        doc = Document((BlockQuote(children=(para("Quote"),)),))
        result = append_nodes(doc, [Heading(level=1, children=(Text("Title"),))])
        quote = result.children[0]
        assert isinstance(quote, BlockQuote)
        assert quote.children[-1] == Heading(level=1, children=(Text("Title"),))
        assert to_markdown(result) == "> Quote\n>\n> # Title"

    def test_inline_joins_last_paragraph(self) -> None:
        doc = Document((para("Hello"),))
        result = append_nodes(doc, [CodeSpan("test")])
        assert result.children == (Paragraph(children=(Text("Hello"), CodeSpan("test"))),)
        assert to_markdown(result) == "Hello`test`"

    def test_inline_after_leaf_block_gets_a_paragraph(self) -> None:
        result = append_nodes(Document((ThematicBreak(),)), [Strong(children=(Text("x"),))])
        assert result.children[-1] == Paragraph(children=(Strong(children=(Text("x"),)),))

    def test_paragraph_after_description_list_joins_last_term(self) -> None:
        term = DescriptionTerm(children=(para("term"),))
        doc = Document((DescriptionList((DescriptionItem((term,)),)),))
        result = append_nodes(doc, [para("more")])
        new_term = result.children[0].children[0].children[0]
        assert new_term == DescriptionTerm(children=(para("term"), para("more")))

    def test_table_row_is_wrapped(self) -> None:
        row = TableRow(children=(TableCell(children=(Text("a"),)), TableCell()))
        result = append_nodes(Document((para("x"),)), [row])
        assert result.children[-1] == Table(children=(row,), alignments=(None, None))

    def test_table_row_extends_existing_table(self) -> None:
        header = TableRow(children=(TableCell(children=(Text("h"),)),), header=True)
        row = TableRow(children=(TableCell(children=(Text("a"),)),))
        doc = Document((Table(children=(header,), alignments=(None,)),))
        result = append_nodes(doc, [row])
        assert result.children == (Table(children=(header, row), alignments=(None,)),)

    def test_single_node_is_accepted(self) -> None:
        result = append_nodes(Document(), para("a"))  # type: ignore[arg-type]
        assert result == Document((para("a"),))

    def test_merge(self) -> None:
        merged = merge(parse("- a"), parse("- b"))
        assert len(merged.children) == 1
        assert to_markdown(merged) == "- a\n- b"


class TestInvalidNodes:
    """Values that cannot be inserted raise InvalidNodeError."""

    @pytest.mark.parametrize("value", ["text", 42, None, {"type": "paragraph"}])
    def test_non_nodes(self, value: object) -> None:
        with pytest.raises(InvalidNodeError) as exc_info:
            append_nodes(Document(), [value])  # type: ignore[list-item]
        assert exc_info.value.value == value

    def test_nested_document(self) -> None:
        with pytest.raises(InvalidNodeError, match="Document"):
            append_nodes(Document(), [Document()])

    def test_non_document_root(self) -> None:
        with pytest.raises(InvalidNodeError):
            append_nodes(para("a"), [para("b")])  # type: ignore[arg-type]

    def test_is_a_type_error(self) -> None:
        with pytest.raises(TypeError):
            merge(Document(), "not a document")  # type: ignore[arg-type]

    def test_nothing_is_returned_on_failure(self) -> None:
        doc = Document((para("a"),))
        with pytest.raises(InvalidNodeError):
            append_nodes(doc, [para("b"), 3])  # type: ignore[list-item]
        assert doc == Document((para("a"),))


class TestWrapNode:
    def test_containers(self) -> None:
        assert wrap_node(DescriptionTerm()) == DescriptionList((DescriptionItem((DescriptionTerm(),)),))
        assert wrap_node(TableCell()) == Table(children=(TableRow(children=(TableCell(),)),), alignments=(None,))
        assert wrap_node(Text("a")) == Paragraph(children=(Text("a"),))

    def test_blocks_are_returned_as_is(self) -> None:
        block = para("a")
        assert wrap_node(block) is block


# Nodes whose internal structure already satisfies the matrix
NODE_POOL: list[Node] = [
    para("p"),
    Heading(level=2, children=(Text("h"),)),
    Text("t"),
    Strong(children=(Text("s"),)),
    CodeSpan("c"),
    item("i"),
    item("o", ordered=True),
    TaskItem(children=(para("todo"),), checked=True),
    bullets("b"),
    numbered("n"),
    BlockQuote(children=(para("q"),)),
    CodeBlock(literal="x\n"),
    ThematicBreak(),
    TableRow(children=(TableCell(children=(Text("c"),)),)),
    TableCell(children=(Text("c"),)),
    DescriptionItem(children=(DescriptionTerm(children=(para("t"),)),)),
    DescriptionDetails(children=(para("d"),)),
    FootnoteDefinition("1", children=(para("f"),)),
]


def _assert_contained(parent: Node) -> None:
    for child in children_of(parent):
        assert can_contain(parent, child), f"{type(parent).__name__} holds {type(child).__name__}"
        _assert_contained(child)


class TestContainmentProperty:
    @given(st.lists(st.sampled_from(NODE_POOL), max_size=12))
    @settings(max_examples=200)
    def test_every_edge_is_legal(self, nodes: list[Node]) -> None:
        """Every tree append_nodes builds satisfies the containment matrix."""
        _assert_contained(append_nodes(Document(), nodes))

    @given(
        st.lists(st.sampled_from(NODE_POOL), max_size=12),
        st.lists(st.sampled_from(NODE_POOL), max_size=6),
    )
    @settings(max_examples=100)
    def test_earlier_blocks_are_never_touched(self, first: list[Node], more: list[Node]) -> None:
        """Only the last top-level block can change when nodes are appended."""
        doc = append_nodes(Document(), first)
        result = append_nodes(doc, more)
        kept = doc.children[:-1]
        assert result.children[: len(kept)] == kept
