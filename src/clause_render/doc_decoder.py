"""Decode raw document JSON nodes into ParagraphNode trees.

Raw node shape (as produced by the contract editor)::

    {
      "element_id": "p-12",
      "text": "The Borrower shall ...",      # or "content"
      "optioninfo": {"id": "opt-7", "label": "Guarantee"},  # or a JSON string
      "inlineoptions": [{"id": "opt-8"}, ...],
      "children": [ ...raw nodes... ],
      "resetVersion": 3
    }

Every function here is total and deterministic: malformed metadata yields
``None`` / empty tuples, never an exception.
"""

from __future__ import annotations

import logging
from typing import Any

import orjson

from clause_render.render_types import OptionDescriptor, ParagraphNode

log = logging.getLogger(__name__)

_LABEL_KEYS = ("label", "name", "title")


def json_to_option(raw: Any) -> OptionDescriptor | None:
    """Decode option metadata (a dict or a JSON-encoded dict)."""
    if isinstance(raw, (str, bytes)):
        if not raw:
            return None
        try:
            raw = orjson.loads(raw)
        except orjson.JSONDecodeError:
            log.debug("Unparseable option metadata %r", raw[:60])
            return None
    if not isinstance(raw, dict):
        return None
    option_id = raw.get("id")
    if not isinstance(option_id, str) or not option_id:
        return None
    return _descriptor(option_id, raw)


def _descriptor(option_id: str, raw: dict[str, Any]) -> OptionDescriptor:
    label = ""
    for key in _LABEL_KEYS:
        value = raw.get(key)
        if isinstance(value, str) and value:
            label = value
            break
    metadata = {
        k: v for k, v in raw.items()
        if isinstance(k, str) and k != "id" and k not in _LABEL_KEYS
    }
    return OptionDescriptor(id=option_id, label=label, metadata=metadata)


def read_option_from_json(raw: Any) -> tuple[str | None, OptionDescriptor | None]:
    """(attached option id, descriptor) of a raw node, or (None, None)."""
    if not isinstance(raw, dict):
        return None, None
    option = json_to_option(raw.get("optioninfo"))
    if option is None:
        return None, None
    return option.id, option


def read_inline_options(raw: Any) -> tuple[OptionDescriptor, ...]:
    """Inline option descriptors in text order.

    Entries without a usable id are kept as id-less descriptors so the k-th
    descriptor still lines up with the k-th marker.
    """
    if not isinstance(raw, dict):
        return ()
    entries = raw.get("inlineoptions")
    if not isinstance(entries, list):
        return ()
    out: list[OptionDescriptor] = []
    for entry in entries:
        option = json_to_option(entry)
        if option is None:
            fallback = entry if isinstance(entry, dict) else {}
            option = _descriptor("", {k: v for k, v in fallback.items() if k != "id"})
        out.append(option)
    return tuple(out)


def check_for_children(raw: Any) -> bool:
    if not isinstance(raw, dict):
        return False
    children = raw.get("children")
    return isinstance(children, list) and any(isinstance(c, dict) for c in children)


def _raw_text(raw: dict[str, Any]) -> str:
    for key in ("text", "content"):
        value = raw.get(key)
        if isinstance(value, str):
            return value
    return ""


def _reset_version(raw: dict[str, Any]) -> int:
    value = raw.get("resetVersion", 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    return value


def decode_paragraph(raw: Any) -> ParagraphNode:
    """Decode one raw node and its subtree."""
    if not isinstance(raw, dict):
        return ParagraphNode(id="")

    element_id = raw.get("element_id")
    node_id = element_id if isinstance(element_id, str) else ""
    _, attached = read_option_from_json(raw)
    inline = read_inline_options(raw)
    if attached is not None and inline:
        log.debug(
            "Node %r carries both optioninfo and %d inline option(s); keeping inline",
            node_id, len(inline),
        )
        attached = None

    children: tuple[ParagraphNode, ...] = ()
    if check_for_children(raw):
        children = tuple(
            decode_paragraph(child) for child in raw["children"] if isinstance(child, dict)
        )

    return ParagraphNode(
        id=node_id,
        raw_text=_raw_text(raw),
        attached_option=attached,
        inline_options=inline,
        children=children,
        reset_version=_reset_version(raw),
    )


def decode_document(raw: Any) -> ParagraphNode:
    """Decode a document root; a bare list is treated as the root's children."""
    if isinstance(raw, list):
        raw = {"element_id": "root", "children": raw}
    return decode_paragraph(raw)
