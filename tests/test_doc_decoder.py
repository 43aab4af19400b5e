"""Tests for clause_render.doc_decoder."""
from clause_render.doc_decoder import (
    check_for_children,
    decode_document,
    decode_paragraph,
    json_to_option,
    read_inline_options,
    read_option_from_json,
)
from clause_render.render_types import OptionDescriptor

RAW_DOC = {
    "element_id": "root",
    "children": [
        {
            "element_id": "p1",
            "text": "The Borrower shall pay ] thereafter.",
            "optioninfo": {"id": "fee", "label": "Fee", "default_end": "<i>end</i>"},
            "children": [
                {"element_id": "p1-1", "content": "First sub-clause."},
            ],
        },
        {
            "element_id": "p2",
            "text": "Pay [Optional(Tax):t:] [tax] now.",
            "inlineoptions": [{"id": "tax", "name": "Tax"}],
            "resetVersion": 2,
        },
    ],
}


class TestJsonToOption:
    def test_dict(self) -> None:
        option = json_to_option({"id": "fee", "label": "Fee", "group": "costs"})
        assert option == OptionDescriptor(id="fee", label="Fee", metadata={"group": "costs"})

    def test_json_string(self) -> None:
        option = json_to_option('{"id": "fee", "title": "Closing Fee"}')
        assert option is not None
        assert option.label == "Closing Fee"

    def test_malformed(self) -> None:
        assert json_to_option("{not json") is None
        assert json_to_option("") is None
        assert json_to_option({"label": "no id"}) is None
        assert json_to_option({"id": ""}) is None
        assert json_to_option(42) is None

    def test_read_option_from_json(self) -> None:
        option_id, option = read_option_from_json({"optioninfo": {"id": "fee"}})
        assert option_id == "fee"
        assert option is not None
        assert read_option_from_json({}) == (None, None)
        assert read_option_from_json("nope") == (None, None)


class TestReadInlineOptions:
    def test_keeps_order(self) -> None:
        options = read_inline_options({"inlineoptions": [{"id": "a"}, {"id": "b"}]})
        assert [o.id for o in options] == ["a", "b"]

    def test_idless_entries_keep_position(self) -> None:
        options = read_inline_options(
            {"inlineoptions": [{"label": "first"}, {"id": "b"}, "junk"]},
        )
        assert [o.id for o in options] == ["", "b", ""]
        assert options[0].label == "first"

    def test_missing(self) -> None:
        assert read_inline_options({}) == ()
        assert read_inline_options({"inlineoptions": "x"}) == ()


class TestDecodeParagraph:
    def test_document(self) -> None:
        root = decode_document(RAW_DOC)
        assert root.id == "root"
        p1, p2 = root.children
        assert p1.attached_option is not None
        assert p1.attached_option.metadata == {"default_end": "<i>end</i>"}
        assert p1.children[0].raw_text == "First sub-clause."
        assert p2.inline_options[0].label == "Tax"
        assert p2.reset_version == 2
        assert p2.governing_option_id == "tax"

    def test_bare_list(self) -> None:
        root = decode_document([{"element_id": "a"}, {"element_id": "b"}])
        assert root.id == "root"
        assert [c.id for c in root.children] == ["a", "b"]

    def test_inline_wins_over_attached(self) -> None:
        node = decode_paragraph({
            "element_id": "p",
            "optioninfo": {"id": "fee"},
            "inlineoptions": [{"id": "tax"}],
        })
        assert node.attached_option is None
        assert [o.id for o in node.inline_options] == ["tax"]

    def test_malformed_values(self) -> None:
        node = decode_paragraph({"element_id": 7, "text": None, "resetVersion": -3})
        assert node.id == ""
        assert node.raw_text == ""
        assert node.reset_version == 0

    def test_non_dict(self) -> None:
        assert decode_paragraph(None).id == ""

    def test_skips_non_dict_children(self) -> None:
        node = decode_paragraph({"element_id": "p", "children": [{"element_id": "c"}, "x"]})
        assert [c.id for c in node.children] == ["c"]

    def test_check_for_children(self) -> None:
        assert check_for_children({"children": [{"element_id": "c"}]}) is True
        assert check_for_children({"children": []}) is False
        assert check_for_children({"children": ["x"]}) is False
