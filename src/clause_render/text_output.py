"""Serialize rendered documents: plain dicts for orjson, and a text view."""

from __future__ import annotations

from typing import Any

from clause_render.default_text import format_text_items, markup_to_text
from clause_render.render_types import (
    FRAGMENT_BRACKET,
    MODE_PLAIN,
    Fragment,
    RenderedDocument,
    RenderedLeaf,
    RenderedParagraph,
    RenderedPiece,
    RenderStatus,
)

_INDENT = "    "


# ---------------------------------------------------------------------------
# Dicts
# ---------------------------------------------------------------------------

def _status_to_dict(status: RenderStatus) -> dict[str, Any]:
    return {
        "paragraph_mode": status.paragraph_mode,
        "default_mode": status.default_mode,
        "content_mode": status.content_mode,
        "focused": status.focused,
        "is_default_visible": status.is_default_visible,
    }


def piece_to_dict(piece: RenderedPiece) -> dict[str, Any]:
    if isinstance(piece, RenderedLeaf):
        out: dict[str, Any] = {
            "kind": "leaf",
            "content_id": piece.content_id,
            "text": piece.text,
            "mode": piece.mode,
            "focused": piece.focused,
        }
        if piece.schedule_num is not None:
            out["schedule_num"] = piece.schedule_num
        return out
    return {
        "kind": piece.kind,
        "role": piece.role,
        "text": piece.text,
        "option_id": piece.option_id,
    }


def paragraph_to_dict(paragraph: RenderedParagraph) -> dict[str, Any]:
    return {
        "node_id": paragraph.node_id,
        "element_id": paragraph.element_id,
        "numbering": paragraph.numbering_string,
        "level": paragraph.level,
        "layout": paragraph.layout,
        "option_id": paragraph.option_id,
        "option_state": paragraph.option_state,
        "render_status": _status_to_dict(paragraph.render_status),
        "inherited_mode": paragraph.parent_status.mode,
        "begin_text": format_text_items(paragraph.begin_text),
        "end_text": format_text_items(paragraph.end_text),
        "footer_placed": paragraph.footer_placed,
        "suppress_option_bracket": paragraph.suppress_option_bracket,
        "pieces": [piece_to_dict(p) for p in paragraph.pieces],
        "children": [paragraph_to_dict(c) for c in paragraph.children],
    }


def document_to_dict(document: RenderedDocument) -> dict[str, Any]:
    return {
        "root_id": document.root_id,
        "numbering": document.numbering(),
        "paragraphs": [paragraph_to_dict(p) for p in document.paragraphs],
    }


# ---------------------------------------------------------------------------
# Text view
# ---------------------------------------------------------------------------

def _piece_text(piece: RenderedPiece) -> str:
    if isinstance(piece, RenderedLeaf):
        if piece.mode != MODE_PLAIN and piece.text:
            return f"{{{piece.mode}:{piece.text}}}"
        return piece.text
    return _fragment_text(piece)


def _fragment_text(fragment: Fragment) -> str:
    if fragment.kind == FRAGMENT_BRACKET:
        return fragment.text
    return markup_to_text(fragment.text)


def paragraph_text(paragraph: RenderedParagraph) -> str:
    """One display line for a paragraph, without numbering."""
    return "".join(_piece_text(p) for p in paragraph.pieces)


def render_plain_text(document: RenderedDocument) -> str:
    """Indented, numbered text view of a rendered document.

    Non-plain leaves are wrapped as ``{mode:text}`` so struck and highlighted
    runs stay visible in a terminal.
    """
    lines: list[str] = []

    def walk(paragraph: RenderedParagraph, depth: int) -> None:
        text = paragraph_text(paragraph).strip()
        lines.append(f"{_INDENT * depth}{paragraph.numbering_string} {text}".rstrip())
        for child in paragraph.children:
            walk(child, depth + 1)

    for paragraph in document.paragraphs:
        walk(paragraph, 0)
    return "\n".join(lines) + ("\n" if lines else "")
