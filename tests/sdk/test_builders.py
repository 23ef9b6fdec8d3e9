"""Unit tests for envelope construction."""

from __future__ import annotations

import random
import re
from datetime import UTC, datetime

import pytest

from packages.filestore_sdk.builders import (
    DerivedContent,
    RecordDefaults,
    build_add_envelope,
    build_delete_envelope,
    build_detail_envelope,
    build_edit_envelope,
    build_list_envelope,
    build_probe_envelope,
    build_table_add_envelope,
    build_update_envelope,
    iso_utc,
    update_template,
)
from packages.filestore_sdk.envelope import Operation, SoftDeleteConfig
from packages.filestore_sdk.errors import EnvelopeValidationError
from packages.filestore_sdk.hashing import Fingerprint
from packages.filestore_sdk.intents import EditFields, ProbeIntent
from packages.filestore_sdk.predicates import eq
from packages.filestore_sdk.records import UploadFile

X_SHA256 = "2d711642b726b04401627ca9fbac32f5c8530fb1903cc4db02258717921a4881"
UPLOADED_AT = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=UTC)


def _upload(media_type: str = "image/png") -> UploadFile:
    return UploadFile(name="cat.png", media_type=media_type, content=b"x")


def _derived() -> DerivedContent:
    return DerivedContent(
        fingerprint=Fingerprint(X_SHA256),
        uploaded_at=UPLOADED_AT,
        upload_ip="203.0.113.7",
    )


def test_iso_utc_uses_milliseconds_and_z_suffix() -> None:
    """Timestamps should match the ``...sssZ`` UTC form."""
    assert iso_utc(UPLOADED_AT) == "2024-01-02T03:04:05.678Z"
    assert iso_utc(datetime(2024, 1, 2)) == "2024-01-02T00:00:00.000Z"


def test_add_builds_full_metadata_for_generic_file() -> None:
    """A plain upload carries derived metadata and content in file_content."""
    envelope = build_add_envelope(_upload(), _derived(), rng=random.Random(5))
    payload = envelope.payload

    assert envelope.type_classifier == "image/png"
    assert envelope.operation is Operation.ADD
    assert re.fullmatch(r"file_2d711642b726b044_\d{4}", payload["file_id"])
    assert payload["file_sha256"] == X_SHA256
    assert payload["file_name"] == "cat.png"
    assert payload["file_type"] == "image/png"
    assert payload["file_size"] == 1
    assert payload["file_upload_time"] == "2024-01-02T03:04:05.678Z"
    assert payload["file_upload_user"] == "current_user"
    assert payload["file_upload_ip"] == "203.0.113.7"
    assert payload["file_roles"] == ["user"]
    assert payload["file_status"] == "active"
    assert payload["file_content"] == "data:image/png;base64,eA=="
    assert "image_content" not in payload
    assert "where_conditions" not in envelope.to_wire()


def test_add_overrides_win_except_protected_identity_fields() -> None:
    """Caller values win, but file_id and file_sha256 stay derived."""
    envelope = build_add_envelope(
        _upload(),
        _derived(),
        overrides={
            "description": "a cat",
            "file_id": "file_forged",
            "file_sha256": "0" * 64,
            "file_status": "archived",
        },
        defaults=RecordDefaults(roles=("admin",)),
    )
    payload = envelope.payload

    assert payload["file_description"] == "a cat"
    assert "description" not in payload
    assert payload["file_id"] != "file_forged"
    assert payload["file_id"].startswith("file_2d711642b726b044_")
    assert payload["file_sha256"] == X_SHA256
    assert payload["file_status"] == "archived"
    assert payload["file_roles"] == ["admin"]


def test_add_with_img2dicom_keeps_classifier_and_uses_image_content() -> None:
    """The special classifier is preserved and content moves to image_content."""
    envelope = build_add_envelope(_upload(), _derived(), special_classifier="img2dicom")
    payload = envelope.payload

    assert envelope.type_classifier == "img2dicom"
    assert payload["image_content"] == "data:image/png;base64,eA=="
    assert payload["dicom_path"] == ""
    assert payload["dicom_content"] == ""
    assert "file_content" not in payload
    assert payload["file_type"] == "image/png"


def test_add_without_media_type_falls_back_to_octet_stream() -> None:
    """A file with no declared type is classified as octet-stream."""
    envelope = build_add_envelope(_upload(media_type=""), _derived())
    assert envelope.type_classifier == "application/octet-stream"


def test_list_envelope_shapes() -> None:
    """List/search use classifier 'all', unaudited, with optional predicates."""
    hidden = build_list_envelope(show_all=False).to_wire()
    everything = build_list_envelope(show_all=True).to_wire()
    search = build_list_envelope(show_all=True, keyword="cat").to_wire()

    assert hidden == {
        "file_type": "all",
        "operation": "check",
        "data": {},
        "where_conditions": [{"field": "is_del", "operator": "=", "value": False}],
        "audit": False,
    }
    assert everything["where_conditions"] is None
    assert search["where_conditions"] == [
        {"field": "file_name", "operator": "LIKE", "value": "%cat%"}
    ]


def test_blank_search_equals_list() -> None:
    """A blank keyword should produce exactly the list envelope."""
    assert build_list_envelope(show_all=False, keyword=" ") == build_list_envelope(
        show_all=False
    )


def test_detail_envelope_is_audited_single_row_check() -> None:
    """Detail targets one id with audit enabled."""
    assert build_detail_envelope(7).to_wire() == {
        "file_type": "all",
        "operation": "check",
        "data": {},
        "where_conditions": [{"field": "id", "operator": "=", "value": 7}],
        "audit": True,
    }


def test_update_splits_where_conditions_out_of_fields() -> None:
    """A where_conditions member in caller JSON becomes the predicate list."""
    envelope = build_update_envelope(
        type_classifier="image",
        fields={
            "where_conditions": [{"field": "file_id", "operator": "=", "value": "file_a"}],
            "file_name": "renamed.png",
        },
    )

    assert envelope.payload == {"file_name": "renamed.png"}
    assert envelope.predicates == (eq("file_id", "file_a"),)


def test_update_predicate_precedence() -> None:
    """Explicit list, then record id, then payload id."""
    explicit = build_update_envelope(
        type_classifier="image",
        fields={"id": 1, "file_name": "a"},
        predicates=[eq("file_name", "old")],
        record_id=2,
    )
    by_target = build_update_envelope(
        type_classifier="image", fields={"id": 1, "file_name": "a"}, record_id=2
    )
    by_payload = build_update_envelope(type_classifier="image", fields={"id": 1, "file_name": "a"})
    missing = build_update_envelope(type_classifier="image", fields={"file_name": "a"})

    assert explicit.predicates == (eq("file_name", "old"),)
    assert by_target.predicates == (eq("id", 2),)
    assert by_payload.predicates == (eq("id", 1),)
    assert missing.predicates is None
    assert missing.to_wire()["where_conditions"] is None


def test_update_with_new_binary_overlays_fresh_content() -> None:
    """Fresh content, fingerprint and upload time win over stale caller values."""
    envelope = build_update_envelope(
        type_classifier="image",
        fields={
            "file_name": "cat.png",
            "file_content": "stale",
            "file_sha256": "old",
            "file_description": None,
        },
        record_id=3,
        upload=_upload(),
        derived=_derived(),
    )
    payload = envelope.payload

    assert payload["file_content"] == "data:image/png;base64,eA=="
    assert payload["file_sha256"] == X_SHA256
    assert payload["file_upload_time"] == "2024-01-02T03:04:05.678Z"
    assert "file_description" not in payload
    assert "file_upload_ip" not in payload


def test_update_with_binary_requires_derived_content() -> None:
    """An upload without derived content is a programming error."""
    with pytest.raises(ValueError):
        build_update_envelope(
            type_classifier="image", fields={"file_name": "a"}, record_id=1, upload=_upload()
        )


def test_edit_envelope_uses_image_classifier_and_drops_blank_fields() -> None:
    """Blank type and description leave those fields unchanged."""
    envelope = build_edit_envelope(12, EditFields(file_name="dog.png", file_type=""))

    assert envelope.to_wire() == {
        "file_type": "image",
        "operation": "update",
        "data": {"file_name": "dog.png"},
        "where_conditions": [{"field": "id", "operator": "=", "value": 12}],
    }


def test_delete_envelope_by_id_carries_soft_delete_config() -> None:
    """Delete sends isdel on 'image' with the default soft-delete flag."""
    assert build_delete_envelope(record_id=4).to_wire() == {
        "file_type": "image",
        "operation": "isdel",
        "data": {},
        "where_conditions": [{"field": "id", "operator": "=", "value": 4}],
        "soft_delete_config": {"field": "is_del", "value": "true"},
    }


def test_delete_falls_back_to_payload_fields() -> None:
    """Without explicit predicates or id, each payload field becomes a predicate."""
    envelope = build_delete_envelope(payload={"file_name": "a.png"})
    empty = build_delete_envelope(payload={})

    assert envelope.predicates == (eq("file_name", "a.png"),)
    assert empty.predicates is None


def test_probe_check_without_predicates_sends_empty_list() -> None:
    """An empty check probe matches everything and still sends a list."""
    envelope = build_probe_envelope(
        ProbeIntent(type_classifier="resources", operation=Operation.CHECK, audit=True)
    )

    assert envelope.to_wire() == {
        "file_type": "resources",
        "operation": "check",
        "data": {},
        "where_conditions": [],
        "audit": True,
    }


@pytest.mark.parametrize("operation", [Operation.ADD, Operation.UPDATE, Operation.ISDEL])
def test_probe_rejects_empty_json_for_writes(operation: Operation) -> None:
    """add/update/isdel probes need JSON data or a file."""
    with pytest.raises(EnvelopeValidationError) as exc_info:
        build_probe_envelope(ProbeIntent(type_classifier="image", operation=operation))
    assert exc_info.value.code == "EMPTY_PAYLOAD"


def test_probe_isdel_uses_where_conditions_and_custom_flag() -> None:
    """isdel probes honour caller predicates and soft-delete settings."""
    envelope = build_probe_envelope(
        ProbeIntent(
            type_classifier="image",
            operation=Operation.ISDEL,
            payload={
                "where_conditions": [{"field": "id", "operator": "=", "value": 8}],
                "reason": "dup",
            },
            soft_delete=SoftDeleteConfig(field="deleted", value="1"),
        )
    )
    wire = envelope.to_wire()

    assert wire["data"] == {"reason": "dup"}
    assert wire["where_conditions"] == [{"field": "id", "operator": "=", "value": 8}]
    assert wire["soft_delete_config"] == {"field": "deleted", "value": "1"}


def test_probe_add_without_file_sends_json_verbatim() -> None:
    """Plain add probes pass caller JSON through unchanged."""
    envelope = build_probe_envelope(
        ProbeIntent(type_classifier="notes", operation=Operation.ADD, payload={"title": "t"})
    )
    assert envelope.to_wire() == {
        "file_type": "notes",
        "operation": "add",
        "data": {"title": "t"},
    }


def test_probe_update_with_file_refreshes_full_metadata() -> None:
    """Update probes with a file refresh every file metadata field."""
    envelope = build_probe_envelope(
        ProbeIntent(
            type_classifier="img2dicom",
            operation=Operation.UPDATE,
            payload={"id": 3, "file_name": "old.png"},
            upload=_upload(),
        ),
        derived=_derived(),
    )
    payload = envelope.payload

    assert payload["file_name"] == "cat.png"
    assert payload["image_content"] == "data:image/png;base64,eA=="
    assert payload["dicom_path"] == ""
    assert payload["file_upload_ip"] == "203.0.113.7"
    assert envelope.predicates == (eq("id", 3),)


def test_table_add_completes_resource_rows() -> None:
    """Resource rows with content but no fingerprint get test metadata."""
    moment = datetime(2024, 5, 6, 7, 8, 9, tzinfo=UTC)
    envelope = build_table_add_envelope(
        "resources",
        {"content": "data:text/plain;base64,eA==", "description": "seed", "file_status": "draft"},
        upload_ip="198.51.100.2",
        now=moment,
        rng=random.Random(2),
    )
    payload = envelope.payload

    assert envelope.type_classifier == "resources"
    assert re.fullmatch(rf"test_{int(moment.timestamp() * 1000)}_\d{{4}}", payload["file_sha256"])
    assert payload["file_id"].startswith("file_" + payload["file_sha256"][:16])
    assert payload["file_upload_time"] == "2024-05-06T07:08:09.000Z"
    assert payload["file_upload_user"] == "test_user"
    assert payload["file_upload_ip"] == "198.51.100.2"
    assert payload["file_roles"] == ["test_role"]
    assert payload["file_status"] == "draft"
    assert payload["file_content"] == "data:text/plain;base64,eA=="
    assert payload["file_description"] == "seed"
    assert "content" not in payload
    assert "description" not in payload


def test_table_add_leaves_other_rows_untouched() -> None:
    """Rows outside resources, or already fingerprinted, pass through."""
    other = build_table_add_envelope("notes", {"content": "hello"})
    fingerprinted = build_table_add_envelope(
        "resources", {"content": "hello", "file_sha256": X_SHA256, "file_type": "text/plain"}
    )

    assert other.payload == {"content": "hello"}
    assert other.type_classifier == "notes"
    assert fingerprinted.payload == {
        "content": "hello",
        "file_sha256": X_SHA256,
        "file_type": "text/plain",
    }
    assert fingerprinted.type_classifier == "text/plain"


def test_table_add_requires_table_name() -> None:
    """A blank table is rejected before anything is built."""
    with pytest.raises(EnvelopeValidationError):
        build_table_add_envelope(" ", {"a": 1})


def test_update_template_keys_by_id_or_file_id() -> None:
    """Selecting a record for update yields editable probe JSON."""
    assert update_template({"id": 4, "file_name": "a.png"}) == {
        "where_conditions": [{"field": "id", "operator": "=", "value": 4}],
        "file_name": "a.png",
        "file_description": "",
        "file_roles": ["user"],
    }
    template = update_template({"file_id": "file_x", "file_roles": ["admin"]})
    assert template["where_conditions"][0]["field"] == "file_id"
    assert template["file_roles"] == ["admin"]


def test_null_where_conditions_means_no_conditions() -> None:
    """A null where_conditions member is treated like an absent one."""
    check = build_probe_envelope(
        ProbeIntent(
            type_classifier="image",
            operation=Operation.CHECK,
            payload={"where_conditions": None},
        )
    )
    update = build_probe_envelope(
        ProbeIntent(
            type_classifier="image",
            operation=Operation.UPDATE,
            payload={"where_conditions": None, "id": 4, "file_name": "a.png"},
        )
    )

    assert check.to_wire()["where_conditions"] == []
    assert check.payload == {}
    assert update.to_wire()["where_conditions"] == [
        {"field": "id", "operator": "=", "value": 4}
    ]
    assert "where_conditions" not in update.payload


def test_table_add_rejects_non_string_file_type() -> None:
    """file_type becomes the classifier, so it must be a string."""
    with pytest.raises(EnvelopeValidationError, match="file_type must be a string") as exc:
        build_table_add_envelope("images", {"file_type": 5, "x": 1})
    assert exc.value.code == "INVALID_ARGUMENT"
