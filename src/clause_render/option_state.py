"""Option-state store and state classification.

An option state is ``"default"``, ``"hidden"`` or any other string, which
denotes an active choice (usually the id of an alternative wording). Absent
entries are treated as ``"default"`` everywhere, but the raw value (None for
absent) stays observable because bracket suppression distinguishes an
explicit ``"default"`` from a missing entry.

The store also tracks which single option currently has focus in the editor;
focus only affects formatting (RenderStatus), never fragment selection.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Literal, TypeAlias

from clause_render.render_types import (
    MODE_HIGHLIGHT,
    MODE_PLAIN,
    MODE_STRIKE,
    RenderStatus,
)

STATE_DEFAULT = "default"
STATE_HIDDEN = "hidden"

OptionVariant: TypeAlias = Literal["default", "hidden", "active"]

VARIANT_DEFAULT: OptionVariant = "default"
VARIANT_HIDDEN: OptionVariant = "hidden"
VARIANT_ACTIVE: OptionVariant = "active"


def classify_state(state: str | None) -> OptionVariant:
    """Map a raw store value onto its render variant."""
    if state is None or state == STATE_DEFAULT:
        return VARIANT_DEFAULT
    if state == STATE_HIDDEN:
        return VARIANT_HIDDEN
    return VARIANT_ACTIVE


def is_active_choice(state: str | None) -> bool:
    """True for a present, non-default, non-hidden state."""
    return classify_state(state) == VARIANT_ACTIVE


def is_explicit_non_default(state: str | None) -> bool:
    """True when the store holds a value other than ``"default"``."""
    return state is not None and state != STATE_DEFAULT


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class OptionStateStore:
    """Process-wide option id -> state mapping, owned by the host session.

    Written between render walks (user actions); read on every walk.
    """
    __slots__ = ("_states", "_focused")

    def __init__(self, states: Mapping[str, str] | None = None) -> None:
        self._states: dict[str, str] = dict(states or {})
        self._focused: str | None = None

    def get(self, option_id: str) -> str | None:
        """Raw value, None when the option has never been set."""
        return self._states.get(option_id)

    def resolve(self, option_id: str) -> str:
        """Value with the absent-means-default rule applied."""
        return self._states.get(option_id, STATE_DEFAULT)

    def set(self, option_id: str, state: str) -> bool:
        """Store ``state``; return True if the raw value changed."""
        if not option_id:
            raise ValueError("option_id cannot be empty")
        if not state:
            raise ValueError(f"state for option {option_id!r} cannot be empty")
        previous = self._states.get(option_id)
        self._states[option_id] = state
        return previous != state

    def clear(self, option_id: str) -> bool:
        """Drop the entry (back to implicit default); True if one existed."""
        return self._states.pop(option_id, None) is not None

    @property
    def focused(self) -> str | None:
        return self._focused

    def focus(self, option_id: str | None) -> str | None:
        """Move focus to ``option_id`` (None clears it); return the previous one."""
        previous = self._focused
        self._focused = option_id or None
        return previous

    def is_focused(self, option_id: str | None) -> bool:
        return option_id is not None and option_id == self._focused

    def signature(self, option_ids: Iterable[str]) -> tuple[tuple[str, str], ...]:
        """Deterministic (id, resolved state) tuple for cache keys."""
        return tuple((oid, self.resolve(oid)) for oid in option_ids)

    def snapshot(self) -> dict[str, str]:
        return dict(self._states)

    def __contains__(self, option_id: object) -> bool:
        return option_id in self._states

    def __iter__(self) -> Iterator[str]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def __repr__(self) -> str:
        return f"OptionStateStore({len(self._states)} states, focused={self._focused!r})"


# ---------------------------------------------------------------------------
# RenderStatus derivation
# ---------------------------------------------------------------------------

def compute_render_status(state: str | None, *, focused: bool = False) -> RenderStatus:
    """Derive a paragraph's RenderStatus from its governing option's state.

    hidden  -> struck-through paragraph/content, default text not visible
    active  -> plain, default text not visible
    default -> plain, default text visible
    Focus highlights whatever is not already struck through.
    """
    variant = classify_state(state)
    if variant == VARIANT_HIDDEN:
        return RenderStatus(
            paragraph_mode=MODE_STRIKE,
            default_mode=MODE_PLAIN,
            content_mode=MODE_STRIKE,
            focused=focused,
            is_default_visible=False,
        )
    mode = MODE_HIGHLIGHT if focused else MODE_PLAIN
    return RenderStatus(
        paragraph_mode=mode,
        default_mode=mode if variant == VARIANT_DEFAULT else MODE_PLAIN,
        content_mode=MODE_PLAIN,
        focused=focused,
        is_default_visible=variant == VARIANT_DEFAULT,
    )
