"""Leaf content rendering.

The leaf renderer turns one content fragment into display text plus its
effective formatting. It owns no state; everything it may use arrives in a
``LeafRequest``.

``TextLeafRenderer`` is the reference implementation:
  - markup is reduced to display text (optional);
  - ``[Optional(...):...:]`` metadata markers never reach the display;
  - literal "[" / "]" survive only with ``preserve_bracket_formats``;
  - under an active parent option (``parent_option_id_shown``) the `` ]``
    closing sequence of a nested attached clause is dropped;
  - mode = update_parent(inherited mode, content mode), focus is OR-ed.
"""

from __future__ import annotations

from typing import Protocol

from clause_render.bracket_parser import (
    CLOSING_BRACKET,
    OPENING_BRACKET,
    OPTION_INFO_CLOSING,
    strip_option_markers,
)
from clause_render.default_text import markup_to_text
from clause_render.propagation import update_parent
from clause_render.render_types import LeafRequest, RenderedLeaf


class LeafRenderer(Protocol):
    def render(self, request: LeafRequest) -> RenderedLeaf: ...


class TextLeafRenderer:
    """Plain-text leaf renderer."""

    def __init__(self, *, strip_markup: bool = True) -> None:
        self._strip_markup = strip_markup

    def render(self, request: LeafRequest) -> RenderedLeaf:
        text = request.raw_text
        if self._strip_markup:
            text = markup_to_text(text)
        text = strip_option_markers(text)
        if request.parent_option_id_shown:
            text = text.replace(OPTION_INFO_CLOSING, "")
        if not request.preserve_bracket_formats:
            text = text.replace(OPENING_BRACKET, "").replace(CLOSING_BRACKET, "")

        parent = request.parent_status
        status = request.render_status
        return RenderedLeaf(
            content_id=request.content_id,
            text=text,
            mode=update_parent(parent.mode, status.content_mode),
            focused=parent.focused or status.focused,
            schedule_num=request.schedule_num,
        )
