"""Optional-clause paragraph rendering: parsing, resolution, propagation, render."""

from clause_render.bracket_parser import (
    InlineOptionMatch,
    OptionInfoMatch,
    find_balancing_bracket,
    parse_inline_option,
    parse_option_info,
    strip_option_markers,
)
from clause_render.config import RenderConfig
from clause_render.default_text import (
    DefaultTextProvider,
    TemplateDefaultTextProvider,
    format_text_items,
    markup_to_text,
)
from clause_render.doc_decoder import decode_document, decode_paragraph, json_to_option
from clause_render.leaf_renderer import LeafRenderer, TextLeafRenderer
from clause_render.option_resolver import (
    FragmentCache,
    FragmentCacheKey,
    resolve_attached_option,
    resolve_inline_options,
    resolve_option_fragments,
)
from clause_render.option_state import (
    STATE_DEFAULT,
    STATE_HIDDEN,
    OptionStateStore,
    classify_state,
    compute_render_status,
)
from clause_render.propagation import (
    derive_parent_info,
    layout_for_level,
    number_child,
    propagate_parent_option_id_shown,
    propagate_suppress,
    root_parent_info,
    update_parent,
)
from clause_render.render_types import (
    Fragment,
    MarkupText,
    OptionDescriptor,
    ParagraphNode,
    ParentInfo,
    RenderedDocument,
    RenderedLeaf,
    RenderedParagraph,
    RenderOptions,
    RenderStatus,
    __version__,
)
from clause_render.renderer import ParagraphContext, ParagraphRenderer
from clause_render.session import RenderSession
from clause_render.subscriptions import (
    NumberingBroadcaster,
    OptionObserverRegistry,
    OptionSubscription,
)
from clause_render.text_output import document_to_dict, paragraph_to_dict, render_plain_text

__all__ = [
    "DefaultTextProvider",
    "Fragment",
    "FragmentCache",
    "FragmentCacheKey",
    "InlineOptionMatch",
    "LeafRenderer",
    "MarkupText",
    "NumberingBroadcaster",
    "OptionDescriptor",
    "OptionInfoMatch",
    "OptionObserverRegistry",
    "OptionStateStore",
    "OptionSubscription",
    "ParagraphContext",
    "ParagraphNode",
    "ParagraphRenderer",
    "ParentInfo",
    "RenderConfig",
    "RenderOptions",
    "RenderSession",
    "RenderStatus",
    "RenderedDocument",
    "RenderedLeaf",
    "RenderedParagraph",
    "STATE_DEFAULT",
    "STATE_HIDDEN",
    "TemplateDefaultTextProvider",
    "TextLeafRenderer",
    "__version__",
    "classify_state",
    "compute_render_status",
    "decode_document",
    "decode_paragraph",
    "derive_parent_info",
    "document_to_dict",
    "find_balancing_bracket",
    "format_text_items",
    "json_to_option",
    "layout_for_level",
    "markup_to_text",
    "number_child",
    "paragraph_to_dict",
    "parse_inline_option",
    "parse_option_info",
    "propagate_parent_option_id_shown",
    "propagate_suppress",
    "render_plain_text",
    "resolve_attached_option",
    "resolve_inline_options",
    "resolve_option_fragments",
    "root_parent_info",
    "strip_option_markers",
    "update_parent",
]
