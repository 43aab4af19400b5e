"""Recursive paragraph renderer.

``ParagraphRenderer.render(document_root, initial_parent_info, options)`` walks
the paragraph tree depth-first. Each paragraph:

  1. computes its numbering and looks up (or mounts) its RenderStatus;
  2. subscribes to the options it reads and broadcasts its numbering
     (interactive mode only);
  3. derives the ParentInfo for its children (propagation.py);
  4. resolves its fragments through the FragmentCache (option_resolver.py)
     and renders content fragments through the leaf renderer;
  5. renders its children with fresh ParagraphContext records, stopping the
     inherited footer claim once a child subtree has placed it.

Every context record is immutable and kept per mounted node, so a host can
re-render any subtree later with exactly the inputs it saw the first time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import partial

from clause_render.config import RenderConfig
from clause_render.default_text import (
    DefaultTextProvider,
    TemplateDefaultTextProvider,
    format_text_items,
)
from clause_render.leaf_renderer import LeafRenderer, TextLeafRenderer
from clause_render.option_resolver import (
    ROLE_AFTER,
    ROLE_BEFORE,
    ROLE_INSIDE,
    FragmentCache,
    FragmentCacheKey,
    plain_content,
    resolve_attached_option,
    resolve_inline_options,
)
from clause_render.option_state import (
    OptionStateStore,
    compute_render_status,
)
from clause_render.propagation import (
    clear_footer,
    derive_parent_info,
    layout_for_level,
    needs_default_text,
    number_child,
    propagate_parent_option_id_shown,
    propagate_suppress,
    root_parent_info,
)
from clause_render.render_types import (
    FRAGMENT_CONTENT,
    FRAGMENT_MARKER_TEXT,
    INITIAL_RENDER_STATUS,
    Fragment,
    LeafRequest,
    ParagraphNode,
    ParentInfo,
    RenderedDocument,
    RenderedParagraph,
    RenderedPiece,
    RenderOptions,
    RenderStatus,
    TextItem,
)
from clause_render.subscriptions import (
    NumberingBroadcaster,
    OptionObserverRegistry,
    OptionSubscription,
)

log = logging.getLogger(__name__)

ROLE_BEGIN = "begin"
ROLE_END = "end"

_CONTENT_ID_SUFFIX: dict[str, str] = {
    ROLE_BEFORE: "before",
    ROLE_INSIDE: "inline",
    ROLE_AFTER: "after",
}


@dataclass(frozen=True, slots=True)
class ParagraphContext:
    """Everything a paragraph receives from its parent."""
    parent_info: ParentInfo
    index: int = 0                        # Position among siblings
    is_first: bool = True                 # First of a run governed by one option
    suppress_option_bracket: bool = False
    parent_option_id_shown: bool = False
    path: tuple[int, ...] = ()            # Sibling indices from the document root


@dataclass(frozen=True, slots=True)
class MountedParagraph:
    node: ParagraphNode
    context: ParagraphContext


def node_key(node: ParagraphNode, numbering_string: str) -> str:
    """Stable key: the element id, or the numbering for id-less nodes."""
    return node.id or f"#{numbering_string}"


class ParagraphRenderer:
    """Depth-first renderer over ParagraphNode trees.

    Collaborators are injected; registries are optional so the renderer can
    run without a host session (tests, one-shot previews).
    """

    def __init__(
        self,
        store: OptionStateStore,
        *,
        provider: DefaultTextProvider | None = None,
        leaf_renderer: LeafRenderer | None = None,
        observers: OptionObserverRegistry | None = None,
        numbering: NumberingBroadcaster | None = None,
        cache: FragmentCache | None = None,
        config: RenderConfig | None = None,
    ) -> None:
        self.config = config or RenderConfig()
        self.store = store
        self.provider = provider or TemplateDefaultTextProvider.from_config(self.config)
        self.leaf_renderer = leaf_renderer or TextLeafRenderer(
            strip_markup=self.config.strip_markup,
        )
        self.observers = observers
        self.numbering = numbering
        self.cache = cache if cache is not None else FragmentCache(self.config.cache_max_entries)
        self._options = RenderOptions()
        self._statuses: dict[str, RenderStatus] = {}
        self._mounted: dict[str, MountedParagraph] = {}

    @property
    def options(self) -> RenderOptions:
        return self._options

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def render(
        self,
        document_root: ParagraphNode,
        initial_parent_info: ParentInfo | None = None,
        options: RenderOptions | None = None,
        *,
        remount: bool = True,
    ) -> RenderedDocument:
        """Render the root's children as top-level paragraphs.

        ``remount`` tears down subscriptions and RenderStatus of the previous
        walk first; without it, mounted statuses are reused.
        """
        if options is not None:
            self._options = options
        parent_info = initial_parent_info or root_parent_info(self.config.root_level)
        if remount:
            self.unmount()
        paragraphs, _ = self._render_children(
            document_root.children,
            parent_info,
            suppress_option_bracket=False,
            parent_option_id_shown=False,
            path=(),
        )
        log.debug(
            "Rendered document %r: %d paragraph(s), cache hits=%d misses=%d",
            document_root.id, len(self._mounted), self.cache.hits, self.cache.misses,
        )
        return RenderedDocument(root_id=document_root.id, paragraphs=paragraphs)

    def rerender(self, key: str) -> RenderedParagraph:
        """Re-render a mounted subtree with its recorded context."""
        mounted = self._mounted.get(key)
        if mounted is None:
            raise KeyError(f"Paragraph {key!r} is not mounted")
        return self.render_paragraph(mounted.node, mounted.context)

    def unmount(self) -> None:
        """Drop every subscription, RenderStatus, numbering and recorded context."""
        for key, mounted in self._mounted.items():
            if self.observers is not None:
                self.observers.unregister_node(key)
            if self.numbering is not None and mounted.node.id:
                self.numbering.forget(mounted.node.id)
        self._mounted.clear()
        self._statuses.clear()

    def mounted(self, key: str) -> MountedParagraph | None:
        return self._mounted.get(key)

    def path_of(self, key: str) -> tuple[int, ...] | None:
        mounted = self._mounted.get(key)
        return mounted.context.path if mounted is not None else None

    def status_of(self, key: str) -> RenderStatus | None:
        return self._statuses.get(key)

    def refresh_status(self, key: str) -> RenderStatus:
        """Recompute a mounted node's RenderStatus from the store."""
        mounted = self._mounted.get(key)
        option_id = mounted.node.governing_option_id if mounted is not None else None
        status = self._compute_status(option_id)
        self._statuses[key] = status
        return status

    # ------------------------------------------------------------------
    # Recursion
    # ------------------------------------------------------------------

    def _render_children(
        self,
        children: Sequence[ParagraphNode],
        parent_info: ParentInfo,
        *,
        suppress_option_bracket: bool,
        parent_option_id_shown: bool,
        path: tuple[int, ...],
    ) -> tuple[tuple[RenderedParagraph, ...], bool]:
        """Render siblings; second value: a live inherited footer was placed."""
        rendered: list[RenderedParagraph] = []
        placed = False
        info = parent_info
        previous_option: str | None = None

        for index, child in enumerate(children):
            option_id = child.governing_option_id
            is_first = index == 0 or option_id != previous_option
            previous_option = option_id
            context = ParagraphContext(
                parent_info=info,
                index=index,
                is_first=is_first,
                suppress_option_bracket=suppress_option_bracket,
                parent_option_id_shown=parent_option_id_shown,
                path=(*path, index),
            )
            paragraph = self.render_paragraph(child, context)
            rendered.append(paragraph)
            if paragraph.footer_placed:
                placed = True
                info = clear_footer(info)

        return tuple(rendered), placed

    def render_paragraph(
        self, node: ParagraphNode, context: ParagraphContext,
    ) -> RenderedParagraph:
        parent_info = context.parent_info
        preview = self._options.preview_only
        option = node.attached_option
        option_id = node.governing_option_id
        has_children = node.has_children
        numbering_string = number_child(parent_info.numbering_string, context.index)
        key = node_key(node, numbering_string)
        state = self.store.get(option.id) if option is not None and option.id else None

        self._mounted[key] = MountedParagraph(node, context)
        status = self._statuses.get(key)
        if status is None:
            status = self._statuses[key] = self._compute_status(option_id)

        if not preview:
            self._subscribe(key, node)
            if node.id and self.numbering is not None:
                self.numbering.broadcast(node.id, numbering_string)

        child_info = derive_parent_info(
            parent_info,
            status,
            option_id=option_id,
            option=option,
            has_children=has_children,
            numbering_string=numbering_string,
            preview_only=preview,
            provider=self.provider,
        )

        footer = parent_info.footer_render_status
        begin_text: tuple[TextItem, ...] = ()
        if (
            option is not None
            and option_id
            and status.is_default_visible
            and context.is_first
            and not preview
        ):
            begin_text = self.provider.begin_text(option_id, option)

        end_text: tuple[TextItem, ...] = ()
        placed_here = False
        if needs_default_text(status, option_id, parent_info, has_children, preview):
            if footer.should_child_place_footer:
                end_text = footer.content
                placed_here = True
            elif option is not None and option_id:
                end_text = self.provider.end_text(option_id, option)

        fragments = self._resolve(node, key, context)
        pieces = self._pieces(
            node, key, fragments, status, context, option_id, begin_text, end_text,
        )

        children, child_placed = self._render_children(
            node.children,
            child_info,
            suppress_option_bracket=propagate_suppress(
                context.suppress_option_bracket, option, state,
            ),
            parent_option_id_shown=propagate_parent_option_id_shown(
                context.parent_option_id_shown, option, state, has_children,
            ),
            path=context.path,
        )

        return RenderedParagraph(
            node_id=key,
            element_id=node.id,
            numbering_string=numbering_string,
            level=parent_info.level,
            layout=layout_for_level(
                parent_info.level,
                headline_max_level=self.config.headline_max_level,
                grandchild_min_level=self.config.grandchild_min_level,
            ),
            option_id=option_id,
            option_state=state,
            render_status=status,
            parent_status=parent_info.last_critical_render_status,
            fragments=fragments,
            pieces=pieces,
            begin_text=begin_text,
            end_text=end_text,
            footer_placed=footer.should_child_place_footer and (placed_here or child_placed),
            suppress_option_bracket=context.suppress_option_bracket,
            parent_option_id_shown=context.parent_option_id_shown,
            children=children,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _compute_status(self, option_id: str | None) -> RenderStatus:
        if option_id is None:
            return INITIAL_RENDER_STATUS
        return compute_render_status(
            self.store.get(option_id),
            focused=self.store.is_focused(option_id),
        )

    def _on_option_change(self, key: str, option_id: str) -> None:
        status = self.refresh_status(key)
        log.debug("Paragraph %s re-evaluated after %s changed: %s", key, option_id, status)

    def _subscribe(self, key: str, node: ParagraphNode) -> None:
        if self.observers is None:
            return
        callback = partial(self._on_option_change, key)
        readers = (node.attached_option,) if node.attached_option is not None else ()
        for option in (*readers, *node.inline_options):
            if option.id:
                self.observers.register(option.id, OptionSubscription(key, option, callback))

    def _resolve(
        self,
        node: ParagraphNode,
        key: str,
        context: ParagraphContext,
    ) -> tuple[Fragment, ...]:
        preview = self._options.preview_only
        shown = context.parent_option_id_shown
        option = node.attached_option
        compute: Callable[[], tuple[Fragment, ...]]
        prefixes: tuple[str, ...] = ()

        if node.inline_options:
            option_ids = [o.id for o in node.inline_options if o.id]
            if not preview:
                prefixes = tuple(
                    format_text_items(self.provider.begin_text(o.id, o))
                    for o in node.inline_options if o.id
                )

            def compute() -> tuple[Fragment, ...]:
                return resolve_inline_options(
                    node.raw_text,
                    node.inline_options,
                    self.store,
                    preview_only=preview,
                    parent_option_id_shown=shown,
                    provider=self.provider,
                )
        elif option is not None and option.id:
            option_ids = [option.id]

            def compute() -> tuple[Fragment, ...]:
                fragments = resolve_attached_option(
                    node.raw_text,
                    option,
                    self.store,
                    preview_only=preview,
                    parent_option_id_shown=shown,
                )
                # Empty resolution renders the raw text (struck through when hidden)
                return fragments or plain_content(node.raw_text, option.id)
        else:
            option_ids = []

            def compute() -> tuple[Fragment, ...]:
                return plain_content(node.raw_text)

        cache_key = FragmentCacheKey(
            node_id=key,
            reset_version=node.reset_version,
            raw_text=node.raw_text,
            state_signature=self.store.signature(option_ids),
            preview_only=preview,
            parent_option_id_shown=shown,
            prefix_signature=prefixes,
        )
        return self.cache.get_or_compute(cache_key, compute)

    def _pieces(
        self,
        node: ParagraphNode,
        key: str,
        fragments: tuple[Fragment, ...],
        status: RenderStatus,
        context: ParagraphContext,
        option_id: str | None,
        begin_text: tuple[TextItem, ...],
        end_text: tuple[TextItem, ...],
    ) -> tuple[RenderedPiece, ...]:
        element_id = node.id or key
        is_plain = node.attached_option is None and not node.inline_options
        pieces: list[RenderedPiece] = []

        begin_html = format_text_items(begin_text)
        if begin_html:
            pieces.append(Fragment(FRAGMENT_MARKER_TEXT, begin_html, ROLE_BEGIN, option_id))

        for fragment in fragments:
            if fragment.kind != FRAGMENT_CONTENT:
                pieces.append(fragment)
                continue
            suffix = _CONTENT_ID_SUFFIX.get(fragment.role)
            content_id = (
                f"{element_id}-{suffix}-{fragment.index}" if suffix else element_id
            )
            pieces.append(self.leaf_renderer.render(LeafRequest(
                content_id=content_id,
                raw_text=fragment.text,
                render_status=status,
                parent_status=context.parent_info.last_critical_render_status,
                option_id=option_id,
                preview_only=self._options.preview_only,
                schedule_num=self._options.schedule_num,
                preserve_bracket_formats=True,
                parent_option_id_shown=context.parent_option_id_shown if is_plain else False,
            )))

        end_html = format_text_items(end_text)
        if end_html:
            pieces.append(Fragment(FRAGMENT_MARKER_TEXT, end_html, ROLE_END, option_id))

        return tuple(pieces)
