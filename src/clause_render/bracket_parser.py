"""Bracket parsing for optional clauses.

Two pure entry points split a paragraph's raw text around an optional clause:

  parse_inline_option: finds the first ``[Optional(<label>):<meta>:] [``
                       marker and matches its balanced closing bracket, so
                       nested bracketed sub-options stay inside the clause.
  parse_option_info:   single-option paragraphs; the clause closes at the
                       first literal `` ]``.

Neither function raises on malformed text. An absent marker or an
unterminated clause returns None (inline) or an unclosed match (option info);
callers then render the paragraph as plain content.

Invariant (lossless split)::

    m = parse_inline_option(text)
    start, end = m.matched_span
    m.before_content + text[start:end] + m.after_content == text
"""

from __future__ import annotations

import re
from typing import TypeAlias
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

OPENING_BRACKET = "["
CLOSING_BRACKET = "]"

# Attached-option paragraphs close their clause with a space + bracket
OPTION_INFO_CLOSING = " " + CLOSING_BRACKET

# Marker metadata only: "[Optional(<label>):<meta>:]"
OPTION_MARKER_RE = re.compile(
    r"\[Optional\((?P<label>[^\]]+)\):(?P<meta>[^\]]*):\]",
)

# Marker + optional whitespace + the clause's opening bracket
_INLINE_PREFIX_RE = re.compile(
    r"\[Optional\((?P<label>[^\]]+)\):(?P<meta>[^\]]*):\]\s*\[",
)

_TRAILING_SPACE_RE = re.compile(r"(\s+)$")


# ---------------------------------------------------------------------------
# Match types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class InlineOptionMatch:
    """Result of splitting text around one inline optional clause."""
    before_content: str        # Text before the marker
    inside_content: str        # Clause body, trailing whitespace removed
    after_content: str         # Text after the balancing "]"
    space_before_bracket: str  # Whitespace run moved out of inside_content
    prefix_end: int            # Offset just past the clause's opening "["
    prefix_start: int = 0      # Offset of the marker's "["
    closing_index: int = -1    # Offset of the balancing "]"
    marker_label: str = ""     # "<label>" group of the marker
    marker_meta: str = ""      # "<meta>" group of the marker

    @property
    def has_closing_bracket(self) -> bool:
        return True

    @property
    def matched_span(self) -> tuple[int, int]:
        """[start, end) of marker + clause + closing bracket in the source."""
        return self.prefix_start, self.closing_index + 1


@dataclass(frozen=True, slots=True)
class OptionInfoMatch:
    """Result of splitting an attached-option paragraph at `` ]``."""
    inside_content: str
    after_content: str
    space_before_bracket: str
    has_closing_bracket: bool
    before_content: str = ""
    prefix_end: int = 0


ParsedClause: TypeAlias = InlineOptionMatch | OptionInfoMatch


# ---------------------------------------------------------------------------
# Balanced matching
# ---------------------------------------------------------------------------

def find_balancing_bracket(text: str, start: int, depth: int = 1) -> int:
    """Return the offset of the "]" that brings ``depth`` to zero, or -1.

    Scanning begins at ``start``; every "[" increments the counter and every
    "]" decrements it.
    """
    for i in range(start, len(text)):
        ch = text[i]
        if ch == OPENING_BRACKET:
            depth += 1
        elif ch == CLOSING_BRACKET:
            depth -= 1
            if depth == 0:
                return i
    return -1


def _split_trailing_space(inside: str) -> tuple[str, str]:
    m = _TRAILING_SPACE_RE.search(inside)
    if not m:
        return inside, ""
    space = m.group(1)
    return inside[:-len(space)], space


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def parse_inline_option(text: str) -> InlineOptionMatch | None:
    """Split ``text`` around its first inline optional clause.

    Returns None when no marker is present or when the clause never closes.
    """
    if not text:
        return None
    prefix = _INLINE_PREFIX_RE.search(text)
    if prefix is None:
        return None

    prefix_start = prefix.start()
    prefix_end = prefix.end()
    closing_index = find_balancing_bracket(text, prefix_end)
    if closing_index == -1:
        return None

    inside, space = _split_trailing_space(text[prefix_end:closing_index])
    return InlineOptionMatch(
        before_content=text[:prefix_start],
        inside_content=inside,
        after_content=text[closing_index + 1:],
        space_before_bracket=space,
        prefix_end=prefix_end,
        prefix_start=prefix_start,
        closing_index=closing_index,
        marker_label=prefix.group("label"),
        marker_meta=prefix.group("meta"),
    )


def parse_option_info(text: str) -> OptionInfoMatch:
    """Split an attached-option paragraph at the first `` ]``.

    Without that sequence the whole text is the clause body and
    ``has_closing_bracket`` is False.
    """
    text = text or ""
    idx = text.find(OPTION_INFO_CLOSING)
    if idx == -1:
        return OptionInfoMatch(
            inside_content=text,
            after_content="",
            space_before_bracket="",
            has_closing_bracket=False,
        )
    return OptionInfoMatch(
        inside_content=text[:idx],
        after_content=text[idx + len(OPTION_INFO_CLOSING):],
        space_before_bracket=" ",
        has_closing_bracket=True,
    )


def strip_option_markers(text: str) -> str:
    """Remove ``[Optional(...):...:]`` metadata markers from display text."""
    return OPTION_MARKER_RE.sub("", text)
