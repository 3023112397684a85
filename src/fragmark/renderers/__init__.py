"""fragmark renderers.

Renderers turn a Document into an output format.

Available Renderers:
- HtmlRenderer: HTML via the StringBuilder pattern
- MarkdownRenderer: canonical Markdown that parses back to the same tree

Thread Safety:
Renderers keep no state between render() calls. Safe to share.

"""

from fragmark.renderers.html import HtmlRenderer
from fragmark.renderers.markdown import MarkdownRenderer
from fragmark.renderers.protocol import TreeRenderer

__all__ = ["HtmlRenderer", "MarkdownRenderer", "TreeRenderer"]
