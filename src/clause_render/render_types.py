"""Core types shared by every layer of the clause renderer.

All dataclasses are frozen with slots=True. Nothing in the render path is
mutated in place: a changed option state produces new RenderStatus,
ParentInfo and fragment tuples, and stale copies are simply dropped.

Type hierarchy:
  OptionDescriptor   — Static metadata of one option (id + label + extras)
  ParagraphNode      — One node of the decoded document tree
  RenderStatus       — Per-node formatting/visibility state
  FooterRenderStatus — Deferred closing-text claim passed to descendants
  CriticalRenderStatus — Inherited formatting/focus merged down the tree
  ParentInfo         — The immutable context threaded one level down
  Fragment           — Ordered piece of a paragraph (content/marker/bracket)
  RenderOptions      — Host-level switches (preview, schedule tag)
  LeafRequest        — Input contract of the leaf content renderer
  RenderedLeaf       — Output of the leaf content renderer
  RenderedParagraph  — Rendered node with its children
  RenderedDocument   — Rendered top-level paragraphs of one document
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

# ---------------------------------------------------------------------------
# Rendering modes
# ---------------------------------------------------------------------------

RenderingMode: TypeAlias = Literal["plain", "highlight", "strike"]

MODE_PLAIN: RenderingMode = "plain"
MODE_HIGHLIGHT: RenderingMode = "highlight"
MODE_STRIKE: RenderingMode = "strike"

# Specificity order used when a child mode meets an inherited one
MODE_RANK: dict[RenderingMode, int] = {
    MODE_PLAIN: 0,
    MODE_HIGHLIGHT: 1,
    MODE_STRIKE: 2,
}


# ---------------------------------------------------------------------------
# Markup items (default begin/end text)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MarkupText:
    """An HTML snippet produced by a default-text provider.

    Plain ``str`` items are text; ``MarkupText`` items are already markup and
    are passed through verbatim when formatting.
    """
    html: str

    def as_html(self) -> str:
        return self.html


TextItem: TypeAlias = str | MarkupText


# ---------------------------------------------------------------------------
# Document model
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class OptionDescriptor:
    """Static metadata for one option, as decoded from the document."""
    id: str                  # "" when the source metadata carried no usable id
    label: str = ""          # Human label used by default-text templates
    metadata: dict[str, Any] = field(default_factory=dict[str, Any])

    @property
    def display_label(self) -> str:
        return self.label or self.id


@dataclass(frozen=True, slots=True)
class ParagraphNode:
    """One node of the document tree.

    A paragraph carries at most one ``attached_option`` (governing the whole
    paragraph) or any number of ``inline_options`` (text order), never both.
    Children are owned exclusively by this node.
    """
    id: str                                         # element_id, stable across edits
    raw_text: str = ""
    attached_option: OptionDescriptor | None = None
    inline_options: tuple[OptionDescriptor, ...] = ()
    children: tuple[ParagraphNode, ...] = ()
    reset_version: int = 0                          # Bumped after structural edits

    def __post_init__(self) -> None:
        if self.reset_version < 0:
            raise ValueError(
                f"ParagraphNode.reset_version must be >= 0, got {self.reset_version}"
            )
        if self.attached_option is not None and self.inline_options:
            raise ValueError(
                f"ParagraphNode {self.id!r} has both an attached option and "
                f"{len(self.inline_options)} inline option(s)"
            )

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def governing_option_id(self) -> str | None:
        """Attached option id, else the first inline option id, else None."""
        if self.attached_option is not None and self.attached_option.id:
            return self.attached_option.id
        if self.inline_options and self.inline_options[0].id:
            return self.inline_options[0].id
        return None


# ---------------------------------------------------------------------------
# Render status
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RenderStatus:
    """Per-node formatting/visibility state, recomputed on option changes."""
    paragraph_mode: RenderingMode = MODE_PLAIN
    default_mode: RenderingMode = MODE_PLAIN
    content_mode: RenderingMode = MODE_PLAIN
    focused: bool = False
    is_default_visible: bool = True     # Gates default marker/footer text


INITIAL_RENDER_STATUS = RenderStatus()


@dataclass(frozen=True, slots=True)
class FooterRenderStatus:
    """Closing-text claim handed down to descendants."""
    content: tuple[TextItem, ...] = ()
    should_child_place_footer: bool = False
    mode: RenderingMode = MODE_PLAIN


@dataclass(frozen=True, slots=True)
class CriticalRenderStatus:
    """Formatting mode and focus inherited along the ancestor chain."""
    mode: RenderingMode = MODE_PLAIN
    focused: bool = False


@dataclass(frozen=True, slots=True)
class ParentInfo:
    """Immutable context passed from a paragraph to each of its children.

    Derived anew at every level; siblings never share an instance that is
    later modified.
    """
    footer_render_status: FooterRenderStatus = FooterRenderStatus()
    last_critical_render_status: CriticalRenderStatus = CriticalRenderStatus()
    numbering_string: str = ""
    level: int = 0

    def __post_init__(self) -> None:
        if self.level < 0:
            raise ValueError(f"ParentInfo.level must be >= 0, got {self.level}")


# ---------------------------------------------------------------------------
# Fragments
# ---------------------------------------------------------------------------

FragmentKind: TypeAlias = Literal["content", "markerText", "bracket"]

FRAGMENT_CONTENT: FragmentKind = "content"
FRAGMENT_MARKER_TEXT: FragmentKind = "markerText"
FRAGMENT_BRACKET: FragmentKind = "bracket"

_FRAGMENT_KINDS = frozenset({FRAGMENT_CONTENT, FRAGMENT_MARKER_TEXT, FRAGMENT_BRACKET})


@dataclass(frozen=True, slots=True)
class Fragment:
    """One ordered piece of a paragraph produced by the option resolver.

    ``content`` fragments are editable text handed to the leaf renderer;
    ``markerText`` and ``bracket`` fragments are synthetic and non-editable.
    """
    kind: FragmentKind
    text: str = ""
    role: str = ""               # "before" | "inside" | "after" | "prefix" | "space" | "bracket" | "begin" | "end" | "content"
    option_id: str | None = None
    index: int = 0               # Position of the governing clause in its paragraph

    def __post_init__(self) -> None:
        if self.kind not in _FRAGMENT_KINDS:
            raise ValueError(f"Unknown fragment kind {self.kind!r}")
        if self.kind == FRAGMENT_BRACKET and not self.text:
            raise ValueError("Bracket fragments must carry their bracket text")

    @property
    def is_synthetic(self) -> bool:
        return self.kind != FRAGMENT_CONTENT


# ---------------------------------------------------------------------------
# Render inputs / outputs
# ---------------------------------------------------------------------------

ParagraphLayout: TypeAlias = Literal["headline", "standard", "grandchild"]

LAYOUT_HEADLINE: ParagraphLayout = "headline"
LAYOUT_STANDARD: ParagraphLayout = "standard"
LAYOUT_GRANDCHILD: ParagraphLayout = "grandchild"


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Host switches for one render pass."""
    preview_only: bool = False
    schedule_num: int | None = None


@dataclass(frozen=True, slots=True)
class LeafRequest:
    """Everything the leaf content renderer is allowed to see."""
    content_id: str
    raw_text: str
    render_status: RenderStatus
    parent_status: CriticalRenderStatus
    option_id: str | None
    preview_only: bool
    schedule_num: int | None
    preserve_bracket_formats: bool = True
    parent_option_id_shown: bool = False


@dataclass(frozen=True, slots=True)
class RenderedLeaf:
    """Renderable leaf content; owns no state."""
    content_id: str
    text: str
    mode: RenderingMode
    focused: bool
    schedule_num: int | None = None


RenderedPiece: TypeAlias = Fragment | RenderedLeaf


@dataclass(frozen=True, slots=True)
class RenderedParagraph:
    """A rendered paragraph node and its rendered children."""
    node_id: str                        # Stable key (element id, or "#<numbering>")
    element_id: str
    numbering_string: str
    level: int
    layout: ParagraphLayout
    option_id: str | None
    option_state: str | None            # Raw store value for the attached option
    render_status: RenderStatus
    parent_status: CriticalRenderStatus
    fragments: tuple[Fragment, ...]     # Resolver output (content not yet rendered)
    pieces: tuple[RenderedPiece, ...]   # Display order: begin, fragments/leaves, end
    begin_text: tuple[TextItem, ...] = ()
    end_text: tuple[TextItem, ...] = ()
    footer_placed: bool = False         # This subtree placed an inherited footer
    suppress_option_bracket: bool = False
    parent_option_id_shown: bool = False
    children: tuple[RenderedParagraph, ...] = ()

    def iter_tree(self) -> Iterator[RenderedParagraph]:
        """Depth-first, document order, self first."""
        yield self
        for child in self.children:
            yield from child.iter_tree()


@dataclass(frozen=True, slots=True)
class RenderedDocument:
    """Rendered top-level paragraphs of one document root."""
    root_id: str
    paragraphs: tuple[RenderedParagraph, ...] = ()

    def iter_paragraphs(self) -> Iterator[RenderedParagraph]:
        for paragraph in self.paragraphs:
            yield from paragraph.iter_tree()

    def find(self, node_id: str) -> RenderedParagraph | None:
        for paragraph in self.iter_paragraphs():
            if paragraph.node_id == node_id:
                return paragraph
        return None

    def numbering(self) -> dict[str, str]:
        """Map of node key -> numbering string."""
        return {p.node_id: p.numbering_string for p in self.iter_paragraphs()}


# ---------------------------------------------------------------------------
# Module version
# ---------------------------------------------------------------------------
__version__ = "0.1.0"
