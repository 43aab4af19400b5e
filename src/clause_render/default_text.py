"""Default begin/end text for options in their default state.

The provider contract: given an option id and its descriptor, return an
ordered sequence of items (plain ``str`` or ``MarkupText``) for the synthetic
"begin" marker and the closing "end" footer. Either sequence may be empty.

``TemplateDefaultTextProvider`` is the reference provider. Per-option
overrides come from descriptor metadata (``default_begin`` /
``default_end``, a string or a list of strings, interpreted as markup);
otherwise the configured templates are formatted with ``{label}`` and
``{id}``.

Markup is turned into display text with BeautifulSoup's ``html.parser``.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, Protocol

from bs4 import BeautifulSoup

from clause_render.render_types import MarkupText, OptionDescriptor, TextItem

if TYPE_CHECKING:
    from clause_render.config import RenderConfig

DEFAULT_BEGIN_TEMPLATE = "<b>[{label}]</b> "
DEFAULT_END_TEMPLATE = "[End of {label}]"

_TAG_HINT_RE = re.compile(r"<[A-Za-z/!]")


class DefaultTextProvider(Protocol):
    def begin_text(
        self, option_id: str, option: OptionDescriptor | None,
    ) -> tuple[TextItem, ...]: ...

    def end_text(
        self, option_id: str, option: OptionDescriptor | None,
    ) -> tuple[TextItem, ...]: ...


class TemplateDefaultTextProvider:
    """Default text from descriptor overrides or label templates."""

    def __init__(
        self,
        begin_template: str = DEFAULT_BEGIN_TEMPLATE,
        end_template: str = DEFAULT_END_TEMPLATE,
    ) -> None:
        self._begin_template = begin_template
        self._end_template = end_template

    @classmethod
    def from_config(cls, config: RenderConfig) -> TemplateDefaultTextProvider:
        return cls(config.begin_template, config.end_template)

    def begin_text(
        self, option_id: str, option: OptionDescriptor | None,
    ) -> tuple[TextItem, ...]:
        return self._items("default_begin", self._begin_template, option_id, option)

    def end_text(
        self, option_id: str, option: OptionDescriptor | None,
    ) -> tuple[TextItem, ...]:
        return self._items("default_end", self._end_template, option_id, option)

    def _items(
        self,
        key: str,
        template: str,
        option_id: str,
        option: OptionDescriptor | None,
    ) -> tuple[TextItem, ...]:
        if option is not None and key in option.metadata:
            return _coerce_override(option.metadata[key])
        if not template:
            return ()
        label = option.display_label if option is not None else option_id
        return (
            MarkupText(template.format(
                label=html.escape(label or ""),
                id=html.escape(option_id or ""),
            )),
        )


def _coerce_override(value: Any) -> tuple[TextItem, ...]:
    """Metadata overrides are markup; a missing/blank override means no text."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (MarkupText(value),) if value else ()
    if isinstance(value, Sequence):
        return tuple(MarkupText(str(v)) for v in value if v)
    return (MarkupText(str(value)),)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def format_text_items(items: Iterable[TextItem] | None) -> str:
    """Join items into one HTML string; plain strings are escaped."""
    if not items:
        return ""
    parts: list[str] = []
    for item in items:
        if isinstance(item, MarkupText):
            parts.append(item.as_html())
        else:
            parts.append(html.escape(str(item), quote=False))
    return "".join(parts)


def markup_to_text(markup: str) -> str:
    """Extract display text from an HTML snippet.

    Whitespace is preserved as-is. Text without anything that looks like a
    tag skips the parser and only has its entities decoded.
    """
    if not markup:
        return ""
    if not _TAG_HINT_RE.search(markup):
        return html.unescape(markup)
    soup = BeautifulSoup(markup, "html.parser")
    return soup.get_text()


def text_items_to_plain(items: Iterable[TextItem] | None) -> str:
    """Display text of a default-text sequence."""
    return markup_to_text(format_text_items(items))
