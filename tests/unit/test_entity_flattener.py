import pytest

from po_robot.core.entity_flattener import (
    flatten_document,
    flatten_entity,
    resolve_value,
    text_from_anchor,
)
from po_robot.core.errors import MalformedInputError

pytestmark = pytest.mark.unit


def test_mention_text_wins_over_anchor():
    raw = {
        "type": "order_date",
        "mentionText": "2024/01/15",
        "textAnchor": {"textSegments": [{"startIndex": 0, "endIndex": 3}]},
    }
    assert resolve_value(raw, "XYZ-full-text") == "2024/01/15"


def test_anchor_segments_concatenate_without_separator_and_trim():
    text = "  AB-12  \n  34 "
    anchor = {"textSegments": [
        {"startIndex": 0, "endIndex": 7},
        {"startIndex": "12", "endIndex": "14"},
    ]}
    assert text_from_anchor(anchor, text) == "AB-1234"


def test_anchor_missing_start_index_defaults_to_zero():
    """Proto3 omite startIndex = 0 no JSON."""
    anchor = {"textSegments": [{"endIndex": "5"}]}
    assert text_from_anchor(anchor, "HELLO WORLD") == "HELLO"


def test_empty_mention_falls_back_to_anchor():
    raw = {"type": "name", "mentionText": "", "textAnchor": {"textSegments": [{"startIndex": 6, "endIndex": 11}]}}
    assert resolve_value(raw, "HELLO WORLD") == "WORLD"


def test_no_mention_no_anchor_is_empty():
    assert resolve_value({"type": "name"}, "HELLO") == ""


def test_defaults_for_missing_fields():
    node = flatten_entity({"type": "order_number"})

    assert node.value == ""
    assert node.confidence == 0
    assert node.normalized_value == ""
    assert node.page == 1
    assert node.properties == []


@pytest.mark.parametrize(
    "page_anchor,expected",
    [
        ({"pageRefs": [{"page": "0"}]}, 1),
        ({"pageRefs": [{}]}, 1),
        ({"pageRefs": [{"page": 2}, {"page": 0}]}, 3),
        ({"pageRefs": []}, 1),
        (None, 1),
    ],
)
def test_page_is_first_ref_plus_one(page_anchor, expected):
    node = flatten_entity({"type": "x", "pageAnchor": page_anchor})
    assert node.page == expected


@pytest.mark.parametrize(
    "raw_confidence,expected",
    [(0.87, 0.87), (None, 0.0), ("0.5", 0.5), ("abc", 0.0), (1.7, 1.0), (-0.2, 0.0)],
)
def test_confidence_is_bounded(raw_confidence, expected):
    node = flatten_entity({"type": "x", "confidence": raw_confidence})
    assert node.confidence == pytest.approx(expected)
    assert 0.0 <= node.confidence <= 1.0


def test_normalized_value_text():
    node = flatten_entity({"type": "order_date", "normalizedValue": {"text": "2024-01-15"}})
    assert node.normalized_value == "2024-01-15"


def test_children_flattened_in_source_order(order_document):
    entities = flatten_document(order_document)

    company = entities[2]
    assert company.type == "recipient_company"
    assert [p.type for p in company.properties] == ["name", "address", "phone"]
    assert company.properties[1].value == "Tokyo, Chiyoda 1-2-3"


def test_nested_depth_is_not_fixed():
    raw = {"type": "a", "properties": [{"type": "b", "properties": [{"type": "c", "properties": [{"type": "d", "mentionText": "deep"}]}]}]}

    node = flatten_entity(raw)

    assert node.properties[0].properties[0].properties[0].value == "deep"


def test_flatten_document_reads_offsets_from_full_text(order_document):
    entities = flatten_document(order_document)

    assert entities[0].type == "order_number"
    assert entities[0].value == "PO-7781"
    assert entities[4].page == 2


def test_flatten_is_idempotent_through_raw_form(order_document):
    entities = flatten_document(order_document)

    again = [flatten_entity(node.to_raw()) for node in entities]

    assert again == entities


@pytest.mark.parametrize("bad_document", [None, "text", 42, ["entities"]])
def test_non_record_document_is_malformed(bad_document):
    with pytest.raises(MalformedInputError):
        flatten_document(bad_document)


def test_non_record_child_aborts_whole_document():
    document = {"text": "", "entities": [{"type": "item", "properties": ["not-a-record"]}]}

    with pytest.raises(MalformedInputError):
        flatten_document(document)


def test_document_without_entities_is_empty():
    assert flatten_document({"text": "abc"}) == []
    assert flatten_document({"text": "abc", "entities": None}) == []
