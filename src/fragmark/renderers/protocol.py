"""Renderer protocol: the one method a tree renderer must provide.

Example:
    from fragmark.renderers.protocol import TreeRenderer

    def publish(renderer: TreeRenderer, doc: Document) -> str:
        return renderer.render(doc)

"""

from typing import Protocol, runtime_checkable

from fragmark.nodes import Document


@runtime_checkable
class TreeRenderer(Protocol):
    """Anything that turns a Document into a string.

    ``HtmlRenderer`` and ``MarkdownRenderer`` both conform.

    """

    def render(self, node: Document) -> str:
        """Render a Document to a string.

        Args:
            node: The document to render.

        Returns:
            Rendered output.

        """
        ...
