"""Exception classes for fragmark.

The completer and reconciler are total and never raise. Errors come from
misuse of the tree API or from the parser and renderers.
"""

from __future__ import annotations


class FragmarkError(Exception):
    """Base exception for all fragmark errors.

    Subclass this for specific error categories.
    """

    pass


class InvalidNodeError(FragmarkError, TypeError):
    """A value cannot be inserted into a document tree.

    Raised for values that are not nodes at all, and for a ``Document``
    placed anywhere except the root.
    """

    def __init__(self, value: object, message: str | None = None) -> None:
        """Initialize with the offending value.

        Args:
            value: The value that was rejected
            message: Optional description overriding the default
        """
        self.value = value
        kind = type(value).__name__
        super().__init__(message or f"{kind} is not an insertable fragment: {value!r}")


class ParseError(FragmarkError):
    """The Markdown parser failed on its input.

    Wraps unexpected failures from the underlying parser so callers can
    catch one exception type.
    """

    def __init__(self, message: str, source_length: int | None = None) -> None:
        """Initialize parse error.

        Args:
            message: Error description
            source_length: Length of the source that failed (optional)
        """
        self.message = message
        self.source_length = source_length
        suffix = f" ({source_length} chars)" if source_length is not None else ""
        super().__init__(f"{message}{suffix}")


class RenderError(FragmarkError):
    """A renderer met a node it cannot express.

    Raised by the Markdown renderer for nodes with no Markdown syntax in
    their position, such as a nested ``Document``.
    """

    pass
