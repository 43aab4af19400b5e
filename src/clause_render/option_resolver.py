"""Option State Resolver: option state + parsed clause -> ordered fragments.

Decision table (identical for inline and attached options):

  state                                  before prefix inside bracket after
  hidden                                 emit   -      -      -       emit
  active choice                          emit   -      emit   -       emit
  default, preview                       emit   -      emit   -       emit
  default, interactive, parent not shown emit   emit   emit   emit    emit
  default, interactive, parent shown     emit   emit   emit   -       emit

The prefix is only requested when the caller asks for it (inline options);
attached options get their begin text from the paragraph renderer, which
gates it on first-of-list. Empty text never produces a fragment.

Everything here is pure. ``FragmentCache`` memoises resolver output under a
composite key; any key component change is a miss.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from clause_render.bracket_parser import (
    CLOSING_BRACKET,
    ParsedClause,
    parse_inline_option,
    parse_option_info,
)
from clause_render.default_text import DefaultTextProvider, format_text_items
from clause_render.option_state import (
    VARIANT_ACTIVE,
    VARIANT_HIDDEN,
    OptionStateStore,
    classify_state,
)
from clause_render.render_types import (
    FRAGMENT_BRACKET,
    FRAGMENT_CONTENT,
    FRAGMENT_MARKER_TEXT,
    Fragment,
    OptionDescriptor,
)

log = logging.getLogger(__name__)

ROLE_BEFORE = "before"
ROLE_INSIDE = "inside"
ROLE_AFTER = "after"
ROLE_PREFIX = "prefix"
ROLE_SPACE = "space"
ROLE_BRACKET = "bracket"
ROLE_CONTENT = "content"


def _content(text: str, role: str, option_id: str | None, index: int) -> Fragment:
    return Fragment(FRAGMENT_CONTENT, text, role, option_id, index)


def plain_content(raw_text: str, option_id: str | None = None) -> tuple[Fragment, ...]:
    """The whole paragraph as one content fragment (graceful fallback)."""
    return (_content(raw_text, ROLE_CONTENT, option_id, 0),)


# ---------------------------------------------------------------------------
# Single clause
# ---------------------------------------------------------------------------

def resolve_option_fragments(
    option: OptionDescriptor,
    parsed: ParsedClause,
    state: str | None,
    *,
    preview_only: bool = False,
    parent_option_id_shown: bool = False,
    provider: DefaultTextProvider | None = None,
    with_begin_marker: bool = False,
    index: int = 0,
) -> tuple[Fragment, ...]:
    """Apply the decision table to one parsed clause."""
    oid = option.id
    variant = classify_state(state)
    out: list[Fragment] = []

    if parsed.before_content:
        out.append(_content(parsed.before_content, ROLE_BEFORE, oid, index))

    if variant == VARIANT_HIDDEN:
        pass
    elif variant == VARIANT_ACTIVE:
        if parsed.inside_content:
            out.append(_content(parsed.inside_content, ROLE_INSIDE, oid, index))
    else:
        if with_begin_marker and not preview_only and provider is not None:
            prefix = format_text_items(provider.begin_text(oid, option))
            if prefix:
                out.append(Fragment(FRAGMENT_MARKER_TEXT, prefix, ROLE_PREFIX, oid, index))
        if parsed.inside_content:
            out.append(_content(parsed.inside_content, ROLE_INSIDE, oid, index))
        if parsed.has_closing_bracket and not preview_only and not parent_option_id_shown:
            if parsed.space_before_bracket:
                out.append(Fragment(
                    FRAGMENT_MARKER_TEXT, parsed.space_before_bracket, ROLE_SPACE, oid, index,
                ))
            out.append(Fragment(FRAGMENT_BRACKET, CLOSING_BRACKET, ROLE_BRACKET, oid, index))

    if parsed.after_content:
        out.append(_content(parsed.after_content, ROLE_AFTER, oid, index))

    return tuple(out)


# ---------------------------------------------------------------------------
# Paragraph-level entry points
# ---------------------------------------------------------------------------

def resolve_inline_options(
    raw_text: str,
    options: Sequence[OptionDescriptor],
    store: OptionStateStore,
    *,
    preview_only: bool = False,
    parent_option_id_shown: bool = False,
    provider: DefaultTextProvider | None = None,
) -> tuple[Fragment, ...]:
    """Resolve every inline clause of a paragraph, in text order.

    The k-th descriptor governs the k-th marker. The after-content of one
    clause is the working text of the next; only the last resolved clause
    emits its after-content. Markers left over once descriptors run out stay
    in that trailing content. A descriptor without an id consumes its clause
    but contributes no clause fragments.
    """
    if not options:
        return plain_content(raw_text)

    fragments: list[Fragment] = []
    working = raw_text
    matched_any = False

    for idx, option in enumerate(options):
        parsed = parse_inline_option(working)
        if parsed is None:
            if idx == 0:
                log.debug("No terminated optional clause in %r; rendering as plain", raw_text[:60])
            break
        matched_any = True

        remainder = parsed.after_content
        is_last = idx == len(options) - 1 or parse_inline_option(remainder) is None
        if not is_last:
            parsed = replace(parsed, after_content="")

        if option.id:
            fragments.extend(resolve_option_fragments(
                option,
                parsed,
                store.get(option.id),
                preview_only=preview_only,
                parent_option_id_shown=parent_option_id_shown,
                provider=provider,
                with_begin_marker=True,
                index=idx,
            ))
        else:
            log.debug("Inline option #%d has no id; clause fragments omitted", idx)
            if parsed.before_content:
                fragments.append(_content(parsed.before_content, ROLE_BEFORE, None, idx))
            if parsed.after_content:
                fragments.append(_content(parsed.after_content, ROLE_AFTER, None, idx))

        if is_last:
            break
        working = remainder

    if not matched_any:
        return plain_content(raw_text)
    return tuple(fragments)


def resolve_attached_option(
    raw_text: str,
    option: OptionDescriptor | None,
    store: OptionStateStore,
    *,
    preview_only: bool = False,
    parent_option_id_shown: bool = False,
) -> tuple[Fragment, ...]:
    """Resolve a paragraph governed by a single attached option.

    Returns an empty tuple when the option resolves to nothing visible;
    the caller decides how to render that.
    """
    if option is None or not option.id:
        return plain_content(raw_text)
    return resolve_option_fragments(
        option,
        parse_option_info(raw_text),
        store.get(option.id),
        preview_only=preview_only,
        parent_option_id_shown=parent_option_id_shown,
    )


# ---------------------------------------------------------------------------
# Memoisation
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FragmentCacheKey:
    """Every input the resolver output depends on."""
    node_id: str
    reset_version: int
    raw_text: str
    state_signature: tuple[tuple[str, str], ...]
    preview_only: bool
    parent_option_id_shown: bool
    prefix_signature: tuple[str, ...] = ()   # Begin-marker text per inline option


class FragmentCache:
    """Bounded recompute-on-miss cache of resolver output.

    Eviction is oldest-first once ``max_entries`` is reached.
    """
    __slots__ = ("_entries", "_max_entries", "hits", "misses")

    def __init__(self, max_entries: int = 4096) -> None:
        if max_entries <= 0:
            raise ValueError(f"max_entries must be > 0, got {max_entries}")
        self._entries: dict[FragmentCacheKey, tuple[Fragment, ...]] = {}
        self._max_entries = max_entries
        self.hits = 0
        self.misses = 0

    def get_or_compute(
        self,
        key: FragmentCacheKey,
        compute: Callable[[], tuple[Fragment, ...]],
    ) -> tuple[Fragment, ...]:
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        value = compute()
        if len(self._entries) >= self._max_entries:
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = value
        return value

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
