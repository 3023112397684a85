"""Stream configuration for fragmark.

One immutable ``StreamConfig`` is built per session and passed explicitly to
the parser and the stream. There is no module-level or context-local config.

Usage:
    config = StreamConfig(streaming=True)
    stream = MarkdownStream(config=config)

    # From external settings
    config = StreamConfig.from_dict({"streaming": True, "math_enabled": False})

"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class StreamConfig:
    """Immutable parse and stream configuration.

    Attributes:
        streaming: Complete partial fragments before each parse
        tables_enabled: Enable GFM tables
        strikethrough_enabled: Enable ~~strikethrough~~
        task_lists_enabled: Enable - [ ] task list items
        footnotes_enabled: Enable [^ref] footnotes
        math_enabled: Enable $inline$ and $$block$$ math
        autolinks_enabled: Enable bare URL linking
        definition_lists_enabled: Enable term / ": details" lists
        mark_enabled: Enable ==mark==
        insert_enabled: Enable ^^insert^^
        superscript_enabled: Enable ^sup^
        subscript_enabled: Enable ~sub~
        front_matter_enabled: Parse a leading --- block as FrontMatter
        escape_html: Escape raw HTML in HTML output instead of passing it through

    """

    streaming: bool = False
    tables_enabled: bool = True
    strikethrough_enabled: bool = True
    task_lists_enabled: bool = True
    footnotes_enabled: bool = True
    math_enabled: bool = True
    autolinks_enabled: bool = True
    definition_lists_enabled: bool = True
    mark_enabled: bool = True
    insert_enabled: bool = True
    superscript_enabled: bool = True
    subscript_enabled: bool = True
    front_matter_enabled: bool = True
    escape_html: bool = False

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> StreamConfig:
        """Create a StreamConfig from a dictionary.

        Only keys naming a StreamConfig field are used; unknown keys are
        ignored.

        Example:
            >>> config = StreamConfig.from_dict({"streaming": True, "other": 1})
            >>> config.streaming
            True

        """
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in valid_fields}
        return cls(**filtered)

    def with_overrides(self, **overrides: Any) -> StreamConfig:
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)

    def mistune_plugins(self) -> list[str]:
        """Names of the mistune plugins this configuration enables."""
        # strikethrough registers before subscript: ~~ must win over ~
        toggles = (
            ("strikethrough", self.strikethrough_enabled),
            ("table", self.tables_enabled),
            ("footnotes", self.footnotes_enabled),
            ("task_lists", self.task_lists_enabled),
            ("math", self.math_enabled),
            ("def_list", self.definition_lists_enabled),
            ("mark", self.mark_enabled),
            ("insert", self.insert_enabled),
            ("superscript", self.superscript_enabled),
            ("subscript", self.subscript_enabled),
            ("url", self.autolinks_enabled),
        )
        return [name for name, enabled in toggles if enabled]


DEFAULT_CONFIG: StreamConfig = StreamConfig()

__all__ = ["DEFAULT_CONFIG", "StreamConfig"]
