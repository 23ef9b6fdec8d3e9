"""Unit tests for predicate composition and parsing."""

from __future__ import annotations

import pytest

from packages.filestore_sdk.errors import EnvelopeValidationError
from packages.filestore_sdk.predicates import (
    Operator,
    Predicate,
    listing_predicates,
    parse_predicates,
    payload_field_predicates,
    payload_id_predicates,
    record_key_predicates,
    target_predicates,
)


def test_listing_hides_deleted_then_filters_by_name() -> None:
    """show_all=False with a keyword yields the is_del filter first."""
    predicates = listing_predicates(show_all=False, keyword="cat")

    assert [predicate.to_wire() for predicate in predicates] == [
        {"field": "is_del", "operator": "=", "value": False},
        {"field": "file_name", "operator": "LIKE", "value": "%cat%"},
    ]


def test_listing_with_show_all_and_blank_keyword_is_empty() -> None:
    """show_all with a blank keyword applies no filter at all."""
    assert listing_predicates(show_all=True, keyword="") == []
    assert listing_predicates(show_all=True, keyword="   ") == []


def test_blank_keyword_degenerates_to_plain_listing() -> None:
    """Search with whitespace only should equal the list predicates."""
    assert listing_predicates(show_all=False, keyword="  ") == listing_predicates(
        show_all=False
    )


def test_keyword_is_trimmed() -> None:
    """Surrounding whitespace should not reach the LIKE pattern."""
    (predicate,) = listing_predicates(show_all=True, keyword="  dog ")
    assert predicate.value == "%dog%"


def test_target_predicates_match_by_id() -> None:
    """Detail, edit and delete target rows by store id."""
    assert target_predicates(42) == [Predicate("id", Operator.EQ, 42)]


def test_record_key_prefers_id_then_file_id() -> None:
    """Selection keys by id when present, otherwise by file_id."""
    assert record_key_predicates({"id": 5, "file_id": "file_x"})[0].field == "id"
    assert record_key_predicates({"file_id": "file_x"}) == [
        Predicate("file_id", Operator.EQ, "file_x")
    ]
    with pytest.raises(EnvelopeValidationError):
        record_key_predicates({"file_name": "a.png"})


def test_payload_derived_predicates() -> None:
    """Payload ids and fields derive equality predicates."""
    assert payload_id_predicates({"id": 9, "file_name": "a"}) == [
        Predicate("id", Operator.EQ, 9)
    ]
    assert payload_id_predicates({"file_name": "a"}) is None
    assert payload_field_predicates({"file_name": "a", "file_status": "active"}) == [
        Predicate("file_name", Operator.EQ, "a"),
        Predicate("file_status", Operator.EQ, "active"),
    ]
    assert payload_field_predicates({}) == []


def test_parse_predicates_accepts_wire_shape() -> None:
    """User JSON in wire shape parses into predicates; operator defaults to '='."""
    parsed = parse_predicates(
        [
            {"field": "id", "operator": "=", "value": 3},
            {"field": "file_name", "operator": "like", "value": "%a%"},
            {"field": "file_status", "value": "active"},
        ]
    )

    assert [predicate.operator for predicate in parsed] == [
        Operator.EQ,
        Operator.LIKE,
        Operator.EQ,
    ]


@pytest.mark.parametrize(
    "raw",
    [
        {"field": "id", "value": 1},
        "id = 1",
        [1],
        [{"operator": "=", "value": 1}],
        [{"field": "id", "operator": ">", "value": 1}],
    ],
)
def test_parse_predicates_rejects_malformed_input(raw: object) -> None:
    """Non-list shapes, missing fields and unknown operators are rejected."""
    with pytest.raises(EnvelopeValidationError):
        parse_predicates(raw)
