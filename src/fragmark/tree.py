"""Tree append/merge engine.

Folds freshly parsed or hand-built nodes onto an existing document while
keeping the containment matrix intact:

- Document: any block except Document and the kinds that only live inside
  a container (list items, description parts, table rows and cells)
- List: ListItem/TaskItem or List of the same flavor (a List is spliced)
- ListItem, TaskItem, BlockQuote, FootnoteDefinition, DescriptionTerm,
  DescriptionDetails: any block except Document. A List of another flavor
  appended after a list nests inside its last item
- DescriptionList: DescriptionItem
- DescriptionItem: DescriptionTerm or DescriptionDetails
- Table: TableRow; TableRow: TableCell
- TableCell, Paragraph, Heading and the inline containers: inline kinds only
- everything else: nothing

Nodes are frozen, so every update rebuilds the path from the root with
``dataclasses.replace``. The input trees are never modified.

Example:
    >>> doc = Document((List((ListItem((Paragraph((Text("a"),)),)),)),))
    >>> more = List((ListItem((Paragraph((Text("b"),)),)),))
    >>> len(append_nodes(doc, [more]).children[0].children)
    2

"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from fragmark.errors import InvalidNodeError
from fragmark.nodes import (
    INLINE_CONTAINER_TYPES,
    BlockQuote,
    DescriptionDetails,
    DescriptionItem,
    DescriptionList,
    DescriptionTerm,
    Document,
    FootnoteDefinition,
    List,
    ListItem,
    Node,
    Paragraph,
    Table,
    TableCell,
    TableRow,
    TaskItem,
    Text,
    children_of,
    is_block,
    is_inline,
)
from fragmark.utils.logger import get_logger

logger = get_logger(__name__)

# Block kinds that must sit inside their own container
NESTED_ONLY_TYPES: tuple[type[Node], ...] = (
    ListItem,
    TaskItem,
    DescriptionItem,
    DescriptionTerm,
    DescriptionDetails,
    TableRow,
    TableCell,
)

LIST_LIKE_TYPES: tuple[type[Node], ...] = (List, DescriptionList)


def _any_block(child: Node) -> bool:
    return is_block(child) and not isinstance(child, Document)


def can_contain(parent: Node, child: Node) -> bool:
    """Whether ``parent`` may directly own ``child``."""
    match parent:
        case Document():
            return _any_block(child) and not isinstance(child, NESTED_ONLY_TYPES)
        case List():
            if isinstance(child, (ListItem, TaskItem, List)):
                return child.ordered == parent.ordered
            return False
        case (
            ListItem() | TaskItem() | BlockQuote() | FootnoteDefinition() | DescriptionTerm() | DescriptionDetails()
        ):
            return _any_block(child)
        case DescriptionList():
            return isinstance(child, DescriptionItem)
        case DescriptionItem():
            return isinstance(child, (DescriptionTerm, DescriptionDetails))
        case Table():
            return isinstance(child, TableRow)
        case TableRow():
            return isinstance(child, TableCell)
        case _ if isinstance(parent, INLINE_CONTAINER_TYPES):
            return is_inline(child)
        case _:
            return False


def _same_list_kind(parent: Node, node: Node) -> bool:
    if type(parent) is not type(node) or not isinstance(parent, LIST_LIKE_TYPES):
        return False
    return getattr(parent, "ordered", None) == getattr(node, "ordered", None)


def maybe_append_to_node(parent: Node, node: Node) -> Node | None:
    """Append ``node`` at the deepest legal spot on ``parent``'s right spine.

    Returns the rebuilt parent, or None when no container on the spine can
    take the node.
    """
    children = children_of(parent)

    if can_contain(parent, node) or _same_list_kind(parent, node):
        if _same_list_kind(parent, node):
            return replace(parent, children=children + children_of(node))
        return replace(parent, children=children + (node,))

    if isinstance(parent, (ListItem, TaskItem)) and isinstance(node, Text):
        if children and isinstance(children[-1], Text):
            merged = replace(children[-1], content=children[-1].content + node.content)
            return replace(parent, children=children[:-1] + (merged,))

    if children:
        updated = maybe_append_to_node(children[-1], node)
        if updated is not None:
            return replace(parent, children=children[:-1] + (updated,))

    return None


def wrap_node(node: Node) -> Node:
    """Wrap ``node`` in the containers it needs to sit at the top level."""
    match node:
        case ListItem() | TaskItem():
            return List(children=(node,), ordered=node.ordered)
        case DescriptionItem():
            return DescriptionList(children=(node,))
        case DescriptionTerm() | DescriptionDetails():
            return DescriptionList(children=(DescriptionItem(children=(node,)),))
        case TableRow():
            return Table(children=(node,), alignments=(None,) * len(node.children))
        case TableCell():
            return Table(children=(TableRow(children=(node,)),), alignments=(None,))
        case _ if is_inline(node):
            return Paragraph(children=(node,))
        case _:
            return node


def validate_fragment(node: object) -> Node:
    """Return ``node`` if it can be inserted into a tree, else raise.

    Raises:
        InvalidNodeError: ``node`` is not a Node, or is a Document
    """
    if not isinstance(node, Node):
        raise InvalidNodeError(node)
    if isinstance(node, Document):
        raise InvalidNodeError(node, "a Document cannot be nested inside another Document")
    return node


def append_node(document: Document, node: Node) -> Document:
    """Fold one node onto ``document``.

    Only the last top-level node is tried, rather than walking every
    top-level node from right to left: earlier blocks are complete and never
    receive new content. When the last node cannot take the node, the node
    is wrapped in its container and appended as a new top-level block.
    """
    validate_fragment(node)
    children = document.children
    if children:
        updated = maybe_append_to_node(children[-1], node)
        if updated is not None:
            return replace(document, children=children[:-1] + (updated,))

    wrapped = wrap_node(node)
    if wrapped is not node:
        logger.debug("wrapped %s in %s", type(node).__name__, type(wrapped).__name__)
    return replace(document, children=children + (wrapped,))


def append_nodes(document: Document, nodes: Iterable[Node]) -> Document:
    """Fold ``nodes`` onto ``document`` in order.

    Args:
        document: Tree to extend
        nodes: Nodes to fold in, first to last

    Returns:
        A new Document; ``document`` itself is unchanged.

    Raises:
        InvalidNodeError: ``document`` is not a Document, or a node is not
            insertable. Nothing is returned in that case.
    """
    if not isinstance(document, Document):
        raise InvalidNodeError(document, f"expected a Document root, got {type(document).__name__}")
    if isinstance(nodes, Node):
        nodes = (nodes,)
    for node in nodes:
        document = append_node(document, node)
    return document


def merge(first: Document, second: Document) -> Document:
    """Append the top-level nodes of ``second`` onto ``first``."""
    if not isinstance(second, Document):
        raise InvalidNodeError(second, f"expected a Document, got {type(second).__name__}")
    return append_nodes(first, second.children)
