"""Unit tests for pre-transmission envelope validation."""

from __future__ import annotations

import pytest

from packages.filestore_sdk.envelope import Operation, OperationEnvelope
from packages.filestore_sdk.errors import EnvelopeValidationError
from packages.filestore_sdk.predicates import eq
from packages.filestore_sdk.validate import ensure_valid, validate_envelope


def _envelope(operation: Operation, **kwargs: object) -> OperationEnvelope:
    values: dict[str, object] = {"type_classifier": "image", "operation": operation}
    values.update(kwargs)
    return OperationEnvelope(**values)


@pytest.mark.parametrize("predicates", [None, ()])
@pytest.mark.parametrize("operation", [Operation.UPDATE, Operation.ISDEL])
def test_targeted_operations_require_predicates(
    operation: Operation, predicates: tuple | None
) -> None:
    """update and isdel with null or empty predicates are rejected."""
    outcome = validate_envelope(
        _envelope(operation, payload={"file_name": "a"}, predicates=predicates)
    )

    assert outcome.ok is False
    assert "where_conditions" in outcome.reason
    assert outcome.code == "MISSING_PREDICATES"


def test_update_requires_payload() -> None:
    """An update with predicates but no fields is rejected."""
    outcome = validate_envelope(_envelope(Operation.UPDATE, predicates=(eq("id", 1),)))
    assert outcome.ok is False
    assert outcome.code == "EMPTY_PAYLOAD"


def test_isdel_allows_empty_payload() -> None:
    """isdel only needs predicates."""
    assert validate_envelope(_envelope(Operation.ISDEL, predicates=(eq("id", 1),))).ok


def test_check_is_always_accepted() -> None:
    """check with or without predicates is valid."""
    assert validate_envelope(_envelope(Operation.CHECK)).ok
    assert validate_envelope(_envelope(Operation.CHECK, predicates=())).ok


def test_add_rules() -> None:
    """add needs fields, and only the layout's content field."""
    assert validate_envelope(_envelope(Operation.ADD)).ok is False
    assert validate_envelope(_envelope(Operation.ADD, payload={"file_content": "c"})).ok
    misplaced = validate_envelope(_envelope(Operation.ADD, payload={"image_content": "c"}))
    assert misplaced.ok is False
    assert "image_content" in misplaced.reason
    assert validate_envelope(
        OperationEnvelope(
            type_classifier="img2dicom",
            operation=Operation.ADD,
            payload={"image_content": "c", "dicom_content": "", "dicom_path": ""},
        )
    ).ok


def test_blank_classifier_is_rejected() -> None:
    """Every operation needs a type classifier."""
    outcome = validate_envelope(
        OperationEnvelope(type_classifier="  ", operation=Operation.CHECK)
    )
    assert outcome.ok is False
    assert outcome.code == "MISSING_REQUIRED_FIELD"


def test_ensure_valid_raises_typed_error() -> None:
    """ensure_valid should raise with the rejection reason and code."""
    with pytest.raises(EnvelopeValidationError) as exc_info:
        ensure_valid(_envelope(Operation.ISDEL))
    assert exc_info.value.code == "MISSING_PREDICATES"

    envelope = _envelope(Operation.CHECK)
    assert ensure_valid(envelope) is envelope
