"""Tests for the top-level fragmark API."""

import fragmark
from fragmark import (
    FragmarkError,
    InvalidNodeError,
    ParseError,
    RenderError,
    TreeRenderer,
    complete,
    parse,
    render,
    to_markdown,
)


class TestExports:
    def test_all_names_resolve(self) -> None:
        for name in fragmark.__all__:
            assert hasattr(fragmark, name), name

    def test_version(self) -> None:
        assert fragmark.__version__ == "0.1.0"

    def test_error_hierarchy(self) -> None:
        for error in (InvalidNodeError, ParseError, RenderError):
            assert issubclass(error, FragmarkError)
        assert issubclass(InvalidNodeError, TypeError)


class TestPipeline:
    """complete -> parse -> render, as a caller without a session uses it."""

    def test_partial_chunk_renders_finished(self) -> None:
        assert render(parse(complete("Some `code"))) == "<p>Some <code>code</code></p>\n"

    def test_markdown_round_trip(self) -> None:
        assert to_markdown(parse(complete("## Heading with **bo"))) == "## Heading with **bo**"

    def test_renderers_satisfy_protocol(self) -> None:
        assert isinstance(fragmark.HtmlRenderer(), TreeRenderer)
        assert isinstance(fragmark.MarkdownRenderer(), TreeRenderer)
