"""Tests for clause_render.renderer (the recursive paragraph walk)."""
from __future__ import annotations

from clause_render.option_state import OptionStateStore
from clause_render.render_types import (
    FRAGMENT_BRACKET,
    FRAGMENT_MARKER_TEXT,
    MODE_HIGHLIGHT,
    MODE_PLAIN,
    MODE_STRIKE,
    Fragment,
    MarkupText,
    OptionDescriptor,
    ParagraphNode,
    RenderedDocument,
    RenderedLeaf,
    RenderedParagraph,
    RenderOptions,
)
from clause_render.renderer import ParagraphRenderer
from clause_render.subscriptions import NumberingBroadcaster, OptionObserverRegistry

FEE = OptionDescriptor(id="fee", label="Fee")
TAX = OptionDescriptor(id="tax", label="Tax")
END_OF_FEE = (MarkupText("[End of Fee]"),)


def _node(
    node_id: str,
    text: str = "",
    *,
    option: OptionDescriptor | None = None,
    inline: tuple[OptionDescriptor, ...] = (),
    children: tuple[ParagraphNode, ...] = (),
) -> ParagraphNode:
    return ParagraphNode(
        id=node_id,
        raw_text=text,
        attached_option=option,
        inline_options=inline,
        children=children,
    )


def _root(*children: ParagraphNode) -> ParagraphNode:
    return ParagraphNode(id="root", children=children)


def _renderer(states: dict[str, str] | None = None) -> ParagraphRenderer:
    return ParagraphRenderer(
        OptionStateStore(states),
        observers=OptionObserverRegistry(),
        numbering=NumberingBroadcaster(),
    )


def _render(
    root: ParagraphNode,
    states: dict[str, str] | None = None,
    options: RenderOptions | None = None,
) -> RenderedDocument:
    return _renderer(states).render(root, options=options)


def _para(doc: RenderedDocument, node_id: str) -> RenderedParagraph:
    paragraph = doc.find(node_id)
    assert paragraph is not None, node_id
    return paragraph


def _leaves(paragraph: RenderedParagraph) -> list[RenderedLeaf]:
    return [p for p in paragraph.pieces if isinstance(p, RenderedLeaf)]


def _roles(paragraph: RenderedParagraph) -> list[str]:
    return [p.role if isinstance(p, Fragment) else "leaf" for p in paragraph.pieces]


# Fee clause over two nested non-leaf levels, then a sibling leaf
FOOTER_TREE = _root(
    _node("p", "Fee applies ] as follows:", option=FEE, children=(
        _node("c", "Where:", children=(
            _node("d", "In each case:", children=(
                _node("l1", "first leaf"),
                _node("l2", "second leaf"),
            )),
        )),
        _node("c2", "sibling leaf"),
    )),
)


class TestNumbering:
    def test_numbering_strings(self) -> None:
        root = _root(
            _node("a", children=(_node("a1"), _node("a2"))),
            _node("b", children=(_node("b1"), _node("b2"))),
        )
        doc = _render(root)
        assert doc.numbering() == {
            "a": "1", "a1": "1.1", "a2": "1.2",
            "b": "2", "b1": "2.1", "b2": "2.2",
        }

    def test_levels_and_layout(self) -> None:
        doc = _render(_root(_node("a", children=(_node("b", children=(_node("c"),)),))))
        assert [(p.level, p.layout) for p in doc.iter_paragraphs()] == [
            (1, "headline"), (2, "standard"), (3, "grandchild"),
        ]

    def test_idless_node_key(self) -> None:
        doc = _render(_root(_node("a", children=(_node(""), _node("")))))
        assert [p.node_id for p in doc.iter_paragraphs()] == ["a", "#1.1", "#1.2"]

    def test_broadcasts_numbering(self) -> None:
        renderer = _renderer()
        seen: list[tuple[str, str]] = []
        assert renderer.numbering is not None
        renderer.numbering.subscribe(lambda node_id, n: seen.append((node_id, n)))
        renderer.render(_root(_node("a", children=(_node("a1"),)), _node("b")))
        assert seen == [("a", "1"), ("a1", "1.1"), ("b", "2")]


class TestFooterDeferral:
    def test_first_leaf_places_footer_once(self) -> None:
        doc = _render(FOOTER_TREE)
        placed = [p.node_id for p in doc.iter_paragraphs() if p.end_text]
        assert placed == ["l1"]
        assert _para(doc, "l1").end_text == END_OF_FEE

    def test_footer_placed_flags(self) -> None:
        doc = _render(FOOTER_TREE)
        flags = {p.node_id: p.footer_placed for p in doc.iter_paragraphs()}
        assert flags == {
            "p": False, "c": True, "d": True, "l1": True, "l2": False, "c2": False,
        }

    def test_owner_emits_no_footer(self) -> None:
        doc = _render(FOOTER_TREE)
        assert _para(doc, "p").end_text == ()
        assert _roles(_para(doc, "l1"))[-1] == "end"

    def test_hidden_owner_does_not_defer(self) -> None:
        doc = _render(FOOTER_TREE, {"fee": "hidden"})
        assert not any(p.end_text for p in doc.iter_paragraphs())

    def test_preview_has_no_footer(self) -> None:
        doc = _render(FOOTER_TREE, options=RenderOptions(preview_only=True))
        assert not any(p.end_text or p.begin_text for p in doc.iter_paragraphs())

    def test_leaf_with_own_option(self) -> None:
        doc = _render(_root(_node("q", "Tax applies ]", option=TAX)))
        q = _para(doc, "q")
        assert q.end_text == (MarkupText("[End of Tax]"),)
        assert _roles(q) == ["begin", "leaf", "space", "bracket", "end"]


class TestBeginText:
    def test_first_of_run(self) -> None:
        doc = _render(_root(
            _node("s1", "one ]", option=FEE),
            _node("s2", "two ]", option=FEE),
            _node("s3", "three ]", option=TAX),
            _node("s4", "four ]", option=FEE),
        ))
        begins = {p.node_id: bool(p.begin_text) for p in doc.iter_paragraphs()}
        assert begins == {"s1": True, "s2": False, "s3": True, "s4": True}

    def test_not_visible_when_chosen(self) -> None:
        doc = _render(_root(_node("s1", "one ]", option=FEE)), {"fee": "alt-2"})
        assert _para(doc, "s1").begin_text == ()

    def test_begin_marker_piece(self) -> None:
        doc = _render(_root(_node("s1", "one ]", option=FEE)))
        first = _para(doc, "s1").pieces[0]
        assert isinstance(first, Fragment)
        assert first.kind == FRAGMENT_MARKER_TEXT
        assert first.text == "<b>[Fee]</b> "


class TestParagraphPieces:
    def test_inline_option_content_ids(self) -> None:
        doc = _render(_root(_node("i", "Pay [Optional(Fee):m:] [a fee ] now.", inline=(FEE,))))
        i = _para(doc, "i")
        assert [leaf.content_id for leaf in _leaves(i)] == ["i-before-0", "i-inline-0", "i-after-0"]
        assert [leaf.text for leaf in _leaves(i)] == ["Pay ", "a fee", " now."]
        assert _roles(i) == ["leaf", "prefix", "leaf", "space", "bracket", "leaf"]
        assert i.begin_text == ()
        assert i.end_text == ()

    def test_plain_paragraph(self) -> None:
        doc = _render(_root(_node("x", "See Section [2.01].")))
        (leaf,) = _leaves(_para(doc, "x"))
        assert leaf.content_id == "x"
        assert leaf.text == "See Section [2.01]."

    def test_unterminated_inline_is_plain(self) -> None:
        doc = _render(_root(_node("u", "A [Optional(x):1:] [never", inline=(FEE,))))
        assert [leaf.text for leaf in _leaves(_para(doc, "u"))] == ["A  [never"]

    def test_hidden_attached_paragraph(self) -> None:
        doc = _render(_root(_node("h", "Whole clause", option=FEE)), {"fee": "hidden"})
        h = _para(doc, "h")
        (leaf,) = _leaves(h)
        assert leaf.content_id == "h"
        assert leaf.text == "Whole clause"
        assert leaf.mode == MODE_STRIKE
        assert h.render_status.paragraph_mode == MODE_STRIKE
        assert h.begin_text == ()
        assert h.end_text == ()

    def test_empty_attached_paragraph_falls_back(self) -> None:
        doc = _render(_root(_node("e", "", option=FEE)), {"fee": "alt-2"})
        (leaf,) = _leaves(_para(doc, "e"))
        assert leaf.content_id == "e"

    def test_schedule_tag(self) -> None:
        doc = _render(FOOTER_TREE, options=RenderOptions(schedule_num=3))
        leaves = [leaf for p in doc.iter_paragraphs() for leaf in _leaves(p)]
        assert leaves
        assert {leaf.schedule_num for leaf in leaves} == {3}


class TestInheritedStatus:
    def test_hidden_strikes_descendants(self) -> None:
        doc = _render(FOOTER_TREE, {"fee": "hidden"})
        for node_id in ("c", "d", "l1", "c2"):
            assert {leaf.mode for leaf in _leaves(_para(doc, node_id))} == {MODE_STRIKE}

    def test_focus_highlights_descendants(self) -> None:
        renderer = _renderer()
        renderer.store.focus("fee")
        doc = renderer.render(FOOTER_TREE)
        assert _para(doc, "p").render_status.paragraph_mode == MODE_HIGHLIGHT
        l1 = _leaves(_para(doc, "l1"))[0]
        assert l1.mode == MODE_HIGHLIGHT
        assert l1.focused is True

    def test_default_is_plain(self) -> None:
        doc = _render(FOOTER_TREE)
        assert {leaf.mode for p in doc.iter_paragraphs() for leaf in _leaves(p)} == {MODE_PLAIN}


class TestBracketSuppression:
    def _tree(self) -> ParagraphNode:
        return _root(
            _node("p", "Parent ]", option=FEE, children=(
                _node("c", "Child ]", option=TAX, children=(
                    _node("g", "grandchild ] text"),
                )),
            )),
        )

    def test_sticky_after_explicit_choice(self) -> None:
        doc = _render(self._tree(), {"fee": "hidden", "tax": "default"})
        flags = {p.node_id: p.suppress_option_bracket for p in doc.iter_paragraphs()}
        assert flags == {"p": False, "c": True, "g": True}

    def test_absent_state_does_not_suppress(self) -> None:
        doc = _render(self._tree())
        assert not any(p.suppress_option_bracket for p in doc.iter_paragraphs())

    def test_explicit_default_does_not_suppress(self) -> None:
        doc = _render(self._tree(), {"fee": "default"})
        assert not any(p.suppress_option_bracket for p in doc.iter_paragraphs())

    def test_active_parent_hides_nested_brackets(self) -> None:
        doc = _render(self._tree(), {"fee": "alt-2"})
        c = _para(doc, "c")
        assert c.parent_option_id_shown is True
        assert not any(
            isinstance(p, Fragment) and p.kind == FRAGMENT_BRACKET for p in c.pieces
        )
        (leaf,) = _leaves(_para(doc, "g"))
        assert leaf.text == "grandchild text"

    def test_flags_stay_set_below_own_options(self) -> None:
        cap = OptionDescriptor(id="cap", label="Cap")
        root = _root(
            _node("p", "Parent ]", option=FEE, children=(
                _node("c", "Where:", children=(
                    _node("g", "Tax clause ]", option=TAX, children=(
                        _node("gg", "deep ] text"),
                    )),
                    _node("g2", "Cap clause ] end", option=cap),
                )),
            )),
        )
        doc = _render(root, {"fee": "alt-2", "tax": "hidden", "cap": "alt-3"})
        shown = {p.node_id: p.parent_option_id_shown for p in doc.iter_paragraphs()}
        suppressed = {p.node_id: p.suppress_option_bracket for p in doc.iter_paragraphs()}
        assert shown == {"p": False, "c": True, "g": True, "gg": True, "g2": True}
        assert suppressed == {"p": False, "c": True, "g": True, "gg": True, "g2": True}
        (deep,) = _leaves(_para(doc, "gg"))
        assert deep.text == "deep text"
        assert _roles(_para(doc, "g2")) == ["leaf", "leaf"]


class TestMounting:
    def test_subscribes_options(self) -> None:
        renderer = _renderer()
        renderer.render(FOOTER_TREE)
        assert renderer.observers is not None
        assert [s.node_id for s in renderer.observers.subscribers("fee")] == ["p"]

    def test_remount_does_not_duplicate(self) -> None:
        renderer = _renderer()
        renderer.render(FOOTER_TREE)
        renderer.render(FOOTER_TREE)
        assert renderer.observers is not None
        assert len(renderer.observers) == 1

    def test_preview_does_not_subscribe(self) -> None:
        renderer = _renderer()
        renderer.render(FOOTER_TREE, options=RenderOptions(preview_only=True))
        assert renderer.observers is not None
        assert len(renderer.observers) == 0
        assert renderer.numbering is not None
        assert renderer.numbering.snapshot() == {}

    def test_notification_refreshes_status(self) -> None:
        renderer = _renderer()
        renderer.render(FOOTER_TREE)
        renderer.store.set("fee", "hidden")
        assert renderer.observers is not None
        assert renderer.observers.notify("fee") == ("p",)
        status = renderer.status_of("p")
        assert status is not None
        assert status.paragraph_mode == MODE_STRIKE

    def test_rerender_subtree(self) -> None:
        renderer = _renderer()
        doc = renderer.render(FOOTER_TREE)
        again = renderer.rerender("d")
        assert again == _para(doc, "d")
        assert renderer.path_of("d") == (0, 0, 0)

    def test_cache_reuse(self) -> None:
        renderer = _renderer()
        renderer.render(FOOTER_TREE)
        misses = renderer.cache.misses
        renderer.render(FOOTER_TREE)
        assert renderer.cache.misses == misses
        assert renderer.cache.hits >= misses

    def test_relabelled_option_refreshes_prefix(self) -> None:
        renderer = _renderer()
        text = "Pay [Optional(Fee):m:] [a fee ] now."
        renderer.render(_root(_node("i", text, inline=(FEE,))))
        renamed = OptionDescriptor(id="fee", label="Closing Fee")
        doc = renderer.render(_root(_node("i", text, inline=(renamed,))))
        prefix = [p for p in _para(doc, "i").pieces if isinstance(p, Fragment) and p.role == "prefix"]
        assert [p.text for p in prefix] == ["<b>[Closing Fee]</b> "]
        assert renderer.cache.misses == 2

    def test_unmount_forgets_numbering(self) -> None:
        renderer = _renderer()
        seen: list[tuple[str, str]] = []
        assert renderer.numbering is not None
        renderer.numbering.subscribe(lambda node_id, n: seen.append((node_id, n)))
        renderer.render(_root(_node("a")))
        renderer.unmount()
        assert renderer.numbering.latest("a") is None
        renderer.render(_root(_node("a")))
        assert seen == [("a", "1"), ("a", "1")]

    def test_reset_version_invalidates(self) -> None:
        renderer = _renderer()
        renderer.render(_root(_node("x", "text")))
        renderer.render(_root(ParagraphNode(id="x", raw_text="text", reset_version=1)))
        assert renderer.cache.misses == 2
