"""Host session: one document, one option store, incremental re-renders.

Typical use::

    with RenderSession(decode_document(raw)) as session:
        doc = session.render()
        session.set_option_state("opt-7", "hidden")
        doc = session.refresh()      # re-renders only the affected subtree

Option changes mark the subscribed paragraphs dirty. ``refresh()`` re-renders
the smallest subtree covering every dirty paragraph and splices it into the
previous RenderedDocument; untouched subtrees are shared, not copied.
Preview renders hold no subscriptions, so any change re-walks the document.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace
from types import TracebackType

from clause_render.config import RenderConfig
from clause_render.default_text import DefaultTextProvider
from clause_render.leaf_renderer import LeafRenderer
from clause_render.option_resolver import FragmentCache
from clause_render.option_state import OptionStateStore
from clause_render.propagation import root_parent_info
from clause_render.render_types import (
    ParagraphNode,
    ParentInfo,
    RenderedDocument,
    RenderedParagraph,
    RenderOptions,
)
from clause_render.renderer import ParagraphRenderer
from clause_render.subscriptions import NumberingBroadcaster, OptionObserverRegistry

log = logging.getLogger(__name__)


def common_ancestor_path(paths: Sequence[tuple[int, ...]]) -> tuple[int, ...]:
    """Longest shared prefix of sibling-index paths."""
    if not paths:
        return ()
    prefix = paths[0]
    for path in paths[1:]:
        size = 0
        for a, b in zip(prefix, path):
            if a != b:
                break
            size += 1
        prefix = prefix[:size]
    return prefix


def splice_paragraph(
    paragraphs: tuple[RenderedParagraph, ...],
    path: tuple[int, ...],
    replacement: RenderedParagraph,
) -> tuple[RenderedParagraph, ...]:
    """Copy of ``paragraphs`` with the paragraph at ``path`` replaced."""
    if not path:
        raise ValueError("path cannot be empty")
    head, rest = path[0], path[1:]
    if not 0 <= head < len(paragraphs):
        raise IndexError(f"path index {head} out of range")
    target = paragraphs[head]
    if rest:
        new = replace(target, children=splice_paragraph(target.children, rest, replacement))
    else:
        new = replacement
    return (*paragraphs[:head], new, *paragraphs[head + 1:])


def paragraph_at(
    paragraphs: tuple[RenderedParagraph, ...], path: tuple[int, ...],
) -> RenderedParagraph:
    if not path:
        raise ValueError("path cannot be empty")
    node = paragraphs[path[0]]
    for index in path[1:]:
        node = node.children[index]
    return node


class RenderSession:
    """Owns the registries, cache and store for one document session."""

    def __init__(
        self,
        document_root: ParagraphNode,
        *,
        store: OptionStateStore | None = None,
        config: RenderConfig | None = None,
        provider: DefaultTextProvider | None = None,
        leaf_renderer: LeafRenderer | None = None,
        options: RenderOptions | None = None,
        initial_parent_info: ParentInfo | None = None,
    ) -> None:
        self.config = config or RenderConfig()
        self.store = store if store is not None else OptionStateStore()
        self.option_observers = OptionObserverRegistry()
        self.numbering = NumberingBroadcaster()
        self.cache = FragmentCache(self.config.cache_max_entries)
        self.renderer = ParagraphRenderer(
            self.store,
            provider=provider,
            leaf_renderer=leaf_renderer,
            observers=self.option_observers,
            numbering=self.numbering,
            cache=self.cache,
            config=self.config,
        )
        self._root = document_root
        self._options = options or RenderOptions()
        self._initial_parent_info = initial_parent_info or root_parent_info(self.config.root_level)
        self._document: RenderedDocument | None = None
        self._dirty: set[str] = set()
        self._needs_full = False

    @property
    def document(self) -> RenderedDocument | None:
        return self._document

    @property
    def dirty(self) -> frozenset[str]:
        return frozenset(self._dirty)

    @property
    def options(self) -> RenderOptions:
        return self._options

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> RenderedDocument:
        """Full mount: fresh subscriptions and statuses."""
        self._document = self.renderer.render(
            self._root, self._initial_parent_info, self._options,
        )
        self._dirty.clear()
        self._needs_full = False
        return self._document

    def set_render_options(self, options: RenderOptions) -> None:
        """Switch preview / schedule tagging; takes effect on the next render."""
        if options != self._options:
            self._options = options
            self._needs_full = True

    def refresh(self) -> RenderedDocument:
        """Bring the document up to date with the option store."""
        document = self._document
        if document is None or self._needs_full:
            return self.render()
        if not self._dirty:
            return document

        paths = [
            path for key in sorted(self._dirty)
            if (path := self.renderer.path_of(key)) is not None
        ]
        self._dirty.clear()
        if not paths:
            return document

        anchor = common_ancestor_path(paths)
        if not anchor:
            log.debug("Re-walking document: %d dirty paragraph(s) span the root", len(paths))
            self._document = self.renderer.render(
                self._root, self._initial_parent_info, self._options, remount=False,
            )
            return self._document

        previous = paragraph_at(document.paragraphs, anchor)
        log.debug("Re-rendering subtree %s at %s", previous.node_id, anchor)
        subtree = self.renderer.rerender(previous.node_id)
        if subtree.footer_placed != previous.footer_placed:
            # Later siblings were rendered against the old footer claim.
            log.debug("Footer ownership moved under %s; re-walking", previous.node_id)
            self._document = self.renderer.render(
                self._root, self._initial_parent_info, self._options, remount=False,
            )
            return self._document
        self._document = replace(
            document, paragraphs=splice_paragraph(document.paragraphs, anchor, subtree),
        )
        return self._document

    # ------------------------------------------------------------------
    # Option changes
    # ------------------------------------------------------------------

    def set_option_state(self, option_id: str, state: str) -> tuple[str, ...]:
        """Record a choice; returns the paragraph keys marked dirty."""
        if not self.store.set(option_id, state):
            return ()
        return self._mark_dirty(option_id)

    def reset_option_state(self, option_id: str) -> tuple[str, ...]:
        if not self.store.clear(option_id):
            return ()
        return self._mark_dirty(option_id)

    def focus_option(self, option_id: str | None) -> tuple[str, ...]:
        """Move focus; both the old and new option's readers are marked dirty."""
        previous = self.store.focus(option_id)
        if previous == option_id:
            return ()
        affected: list[str] = []
        for changed in (previous, option_id):
            if changed:
                affected.extend(self._mark_dirty(changed))
        return tuple(dict.fromkeys(affected))

    def _mark_dirty(self, option_id: str) -> tuple[str, ...]:
        affected = self.option_observers.notify(option_id)
        if self._options.preview_only:
            self._needs_full = True
        self._dirty.update(affected)
        log.debug("Option %s: %d paragraph(s) dirty", option_id, len(affected))
        return affected

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.renderer.unmount()
        self.option_observers.clear()
        self.numbering.clear()
        self.cache.clear()
        self._document = None
        self._dirty.clear()

    def __enter__(self) -> RenderSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
