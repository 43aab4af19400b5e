"""Render-Status Propagator: what a paragraph hands down to its children.

Per node, computed top-down:
  numbering  : "<parent>.<index+1>", or "<index+1>" at the top level
  critical   : inherited formatting mode (update_parent) and focus (OR)
  footer     : deferred closing-text claim (see derive_parent_info)
  suppression: sticky bracket-suppression flags for descendants
  layout     : headline / standard / grandchild from the level

Footer ownership flows back up as the walk returns: the renderer reports
whether a subtree placed a live footer so later siblings stop receiving it.
"""

from __future__ import annotations

from dataclasses import replace

from clause_render.default_text import DefaultTextProvider
from clause_render.option_state import is_active_choice, is_explicit_non_default
from clause_render.render_types import (
    LAYOUT_GRANDCHILD,
    LAYOUT_HEADLINE,
    LAYOUT_STANDARD,
    MODE_RANK,
    CriticalRenderStatus,
    FooterRenderStatus,
    OptionDescriptor,
    ParagraphLayout,
    ParentInfo,
    RenderingMode,
    RenderStatus,
)


def root_parent_info(level: int = 1) -> ParentInfo:
    """ParentInfo a document root hands to its top-level paragraphs."""
    return ParentInfo(level=level)


# ---------------------------------------------------------------------------
# Numbering
# ---------------------------------------------------------------------------

def number_child(parent_numbering: str, index: int) -> str:
    if index < 0:
        raise ValueError(f"sibling index must be >= 0, got {index}")
    if parent_numbering:
        return f"{parent_numbering}.{index + 1}"
    return str(index + 1)


# ---------------------------------------------------------------------------
# Critical-mode merge
# ---------------------------------------------------------------------------

def update_parent(parent_mode: RenderingMode, child_mode: RenderingMode) -> RenderingMode:
    """More specific mode wins; on a tie the child's own mode is kept."""
    if MODE_RANK[child_mode] >= MODE_RANK[parent_mode]:
        return child_mode
    return parent_mode


def merge_critical_status(
    parent: CriticalRenderStatus, status: RenderStatus,
) -> CriticalRenderStatus:
    return CriticalRenderStatus(
        mode=update_parent(parent.mode, status.paragraph_mode),
        focused=parent.focused or status.focused,
    )


# ---------------------------------------------------------------------------
# Footer deferral
# ---------------------------------------------------------------------------

def claims_footer(
    status: RenderStatus,
    option_id: str | None,
    has_children: bool,
    preview_only: bool,
) -> bool:
    """A default-visible option over children defers its footer downward."""
    return bool(status.is_default_visible and option_id and has_children and not preview_only)


def derive_footer_status(
    incoming: FooterRenderStatus,
    status: RenderStatus,
    *,
    option_id: str | None,
    option: OptionDescriptor | None,
    has_children: bool,
    preview_only: bool,
    provider: DefaultTextProvider | None,
) -> FooterRenderStatus:
    """Footer status passed to children.

    A live incoming claim is passed through unchanged in content and mode,
    whatever this node's own option says. Otherwise this node may claim,
    recording its option's end text once.
    """
    if incoming.should_child_place_footer:
        return incoming
    claim = claims_footer(status, option_id, has_children, preview_only)
    content = incoming.content
    if claim and option_id and provider is not None:
        content = provider.end_text(option_id, option)
    return FooterRenderStatus(
        content=content,
        should_child_place_footer=claim,
        mode=status.default_mode,
    )


def needs_default_text(
    status: RenderStatus,
    option_id: str | None,
    parent_info: ParentInfo,
    has_children: bool,
    preview_only: bool,
) -> bool:
    """Leaves with a visible default option, or a live inherited claim."""
    wants = bool(status.is_default_visible and option_id) or (
        parent_info.footer_render_status.should_child_place_footer
    )
    return wants and not has_children and not preview_only


def clear_footer(parent_info: ParentInfo) -> ParentInfo:
    """Same context with the footer claim consumed."""
    footer = parent_info.footer_render_status
    if not footer.should_child_place_footer:
        return parent_info
    return replace(
        parent_info,
        footer_render_status=FooterRenderStatus(mode=footer.mode),
    )


# ---------------------------------------------------------------------------
# ParentInfo derivation
# ---------------------------------------------------------------------------

def derive_parent_info(
    parent_info: ParentInfo,
    status: RenderStatus,
    *,
    option_id: str | None,
    option: OptionDescriptor | None,
    has_children: bool,
    numbering_string: str,
    preview_only: bool = False,
    provider: DefaultTextProvider | None = None,
) -> ParentInfo:
    """New ParentInfo for this node's children; ``parent_info`` is untouched."""
    return ParentInfo(
        footer_render_status=derive_footer_status(
            parent_info.footer_render_status,
            status,
            option_id=option_id,
            option=option,
            has_children=has_children,
            preview_only=preview_only,
            provider=provider,
        ),
        last_critical_render_status=merge_critical_status(
            parent_info.last_critical_render_status, status,
        ),
        numbering_string=numbering_string,
        level=parent_info.level + 1,
    )


# ---------------------------------------------------------------------------
# Bracket suppression
# ---------------------------------------------------------------------------

def propagate_suppress(
    suppress_option_bracket: bool,
    option: OptionDescriptor | None,
    state: str | None,
) -> bool:
    """Sticky: an attached option set to anything but default suppresses below."""
    return suppress_option_bracket or (option is not None and is_explicit_non_default(state))


def propagate_parent_option_id_shown(
    parent_option_id_shown: bool,
    option: OptionDescriptor | None,
    state: str | None,
    has_children: bool,
) -> bool:
    """Sticky: an active attached option with children hides brackets below."""
    return parent_option_id_shown or (
        option is not None and is_active_choice(state) and has_children
    )


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

def layout_for_level(
    level: int,
    *,
    headline_max_level: int = 1,
    grandchild_min_level: int = 3,
) -> ParagraphLayout:
    if level <= headline_max_level:
        return LAYOUT_HEADLINE
    if level >= grandchild_min_level:
        return LAYOUT_GRANDCHILD
    return LAYOUT_STANDARD
