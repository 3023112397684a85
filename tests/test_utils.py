"""Tests for fragmark utility modules."""

import logging

import pytest

from fragmark.stringbuilder import StringBuilder
from fragmark.utils import get_logger, slugify
from fragmark.utils.text import indent_lines


class TestSlugify:
    """Tests for slugify function."""

    def test_basic_slugify(self) -> None:
        assert slugify("Hello World") == "hello-world"
        assert slugify("Hello World!") == "hello-world"
        assert slugify("Test & Code") == "test-code"

    def test_html_entities(self) -> None:
        assert slugify("Test &amp; Code") == "test-code"
        assert slugify("&lt;script&gt;") == "script"

    def test_unicode(self) -> None:
        assert slugify("Café") == "café"
        assert slugify("你好世界") == "你好世界"

    def test_custom_separator(self) -> None:
        assert slugify("hello world", separator="_") == "hello_world"

    def test_empty_string(self) -> None:
        assert slugify("") == ""


class TestIndentLines:
    def test_first_and_rest_prefixes(self) -> None:
        assert indent_lines("a\nb", "- ", "  ") == "- a\n  b"

    def test_blank_lines_get_trimmed_prefix(self) -> None:
        assert indent_lines("a\n\nb", "> ", "> ") == "> a\n>\n> b"

    def test_single_line(self) -> None:
        assert indent_lines("x", "1. ", "   ") == "1. x"


class TestGetLogger:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("fragmark", "fragmark"),
            ("fragmark.stream", "fragmark.stream"),
            ("stream", "fragmark.stream"),
            ("fragmarker", "fragmark.fragmarker"),
        ],
    )
    def test_names_are_namespaced(self, name: str, expected: str) -> None:
        assert get_logger(name).name == expected

    def test_package_logger_receives_records(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="fragmark"):
            get_logger("fragmark.test").debug("hello %s", "world")
        assert "hello world" in caplog.text

    def test_completion_logs_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        from fragmark import complete

        with caplog.at_level(logging.DEBUG, logger="fragmark"):
            complete("```python\nx")
        assert any(r.name == "fragmark.completion.completer" for r in caplog.records)


class TestStringBuilder:
    def test_build(self) -> None:
        sb = StringBuilder()
        sb.append("<p>").append("Hi").append("</p>")
        assert sb.build() == "<p>Hi</p>"

    def test_empty_strings_are_skipped(self) -> None:
        sb = StringBuilder()
        sb.append("").append("a")
        assert len(sb) == 1
        assert sb

    def test_empty_builder(self) -> None:
        sb = StringBuilder()
        assert not sb
        assert sb.build() == ""
