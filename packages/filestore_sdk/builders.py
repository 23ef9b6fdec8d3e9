"""Envelope construction from normalized intents and derived content.

Every function here is pure: anything that needs I/O (reading the file,
hashing it, looking up the egress address) is computed beforehand and passed
in as ``DerivedContent``.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Iterable, Mapping, Sequence

from packages.filestore_shared.errors import codes

from .envelope import Operation, OperationEnvelope, SoftDeleteConfig
from .errors import EnvelopeValidationError
from .hashing import TEST_PREFIX, Fingerprint, synthetic_fingerprint
from .identifiers import new_file_id
from .intents import EditFields, ProbeIntent
from .merge import drop_unset, merge_fields
from .predicates import (
    WHERE_KEY,
    Predicate,
    listing_predicates,
    parse_predicates,
    payload_field_predicates,
    payload_id_predicates,
    record_key_predicates,
    target_predicates,
)
from .records import (
    ALL_TYPES,
    DEFAULT_MEDIA_TYPE,
    IMAGE_TYPE,
    IMG2DICOM,
    RecordLayout,
    UploadFile,
    layout_for,
)

# Never caller-overridable once computed for a new record.
PROTECTED_ADD_FIELDS = ("file_id", "file_sha256")

RESOURCES_TABLE = "resources"


@dataclass(frozen=True, slots=True)
class RecordDefaults:
    """Role/status tags stamped on new records."""

    upload_user: str = "current_user"
    roles: tuple[str, ...] = ("user",)
    status: str = "active"


@dataclass(frozen=True, slots=True)
class DerivedContent:
    """Locally computed metadata for one attached binary."""

    fingerprint: Fingerprint
    uploaded_at: datetime
    upload_ip: str
    upload_user: str = "current_user"

    @property
    def upload_time(self) -> str:
        return iso_utc(self.uploaded_at)


def iso_utc(value: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision and ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    text = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def file_metadata(
    upload: UploadFile, derived: DerivedContent, layout: RecordLayout
) -> dict[str, Any]:
    """Return the upload metadata plus content fields for ``layout``."""
    metadata: dict[str, Any] = {
        "file_name": upload.name,
        "file_type": upload.media_type,
        "file_size": upload.size,
        "file_sha256": derived.fingerprint.value,
        "file_upload_time": derived.upload_time,
        "file_upload_user": derived.upload_user,
        "file_upload_ip": derived.upload_ip,
    }
    metadata.update(layout.content_fields(upload.data_url()))
    return metadata


def normalize_aliases(fields: Mapping[str, Any], layout: RecordLayout) -> dict[str, Any]:
    """Rename ``description``/``content`` to their destination field names.

    An alias is only moved when its destination is not already set.
    """
    normalized = dict(fields)
    for alias, destination in (
        ("description", "file_description"),
        ("content", layout.content_field),
    ):
        if alias in normalized and not normalized.get(destination):
            normalized[destination] = normalized.pop(alias)
    return normalized


def build_add_envelope(
    upload: UploadFile,
    derived: DerivedContent,
    *,
    overrides: Mapping[str, Any] | None = None,
    special_classifier: str | None = None,
    defaults: RecordDefaults = RecordDefaults(),
    rng: random.Random | None = None,
) -> OperationEnvelope:
    """Build an ``add`` for a new binary.

    Derived metadata is the base and caller overrides win on collision,
    except for ``file_id`` and ``file_sha256``. A special classifier is kept
    verbatim; otherwise the file's media type classifies the record.
    """
    classifier = special_classifier or upload.media_type or DEFAULT_MEDIA_TYPE
    layout = layout_for(classifier)
    base: dict[str, Any] = {
        "file_id": new_file_id(derived.fingerprint.value, rng=rng),
        "file_roles": list(defaults.roles),
        "file_status": defaults.status,
    }
    base.update(file_metadata(upload, derived, layout))
    payload = merge_fields(
        base,
        normalize_aliases(overrides or {}, layout),
        protected=PROTECTED_ADD_FIELDS,
    )
    return OperationEnvelope(
        type_classifier=classifier,
        operation=Operation.ADD,
        payload=payload,
    )


def build_list_envelope(*, show_all: bool, keyword: str = "") -> OperationEnvelope:
    """Build the ``check`` behind the list and search views."""
    predicates = listing_predicates(show_all=show_all, keyword=keyword)
    return OperationEnvelope(
        type_classifier=ALL_TYPES,
        operation=Operation.CHECK,
        payload={},
        predicates=tuple(predicates) if predicates else None,
        audit=False,
    )


def build_detail_envelope(
    record_id: Any,
    *,
    type_classifier: str = ALL_TYPES,
    audit: bool = True,
) -> OperationEnvelope:
    """Build the audited single-row ``check`` for a detail or edit view."""
    return OperationEnvelope(
        type_classifier=type_classifier,
        operation=Operation.CHECK,
        payload={},
        predicates=tuple(target_predicates(record_id)),
        audit=audit,
    )


def build_update_envelope(
    *,
    type_classifier: str,
    fields: Mapping[str, Any],
    predicates: Sequence[Predicate] | None = None,
    record_id: Any = None,
    upload: UploadFile | None = None,
    derived: DerivedContent | None = None,
    refresh_full_metadata: bool = False,
) -> OperationEnvelope:
    """Build an ``update``.

    Caller fields are the base. With a new binary, fresh content, fingerprint
    and upload time are layered on top and win, so stale caller JSON never
    masks a content change. Predicates resolve as: explicit list, then a
    ``where_conditions`` member of ``fields``, then ``record_id``, then the
    payload's own ``id``.
    """
    payload = drop_unset(fields)
    predicates = _split_where(payload, predicates)

    if upload is not None:
        if derived is None:
            raise ValueError("derived content is required when an upload is attached")
        layout = layout_for(type_classifier)
        if refresh_full_metadata:
            refresh = file_metadata(upload, derived, layout)
        else:
            refresh = layout.content_fields(upload.data_url())
            refresh["file_sha256"] = derived.fingerprint.value
            refresh["file_upload_time"] = derived.upload_time
        payload = merge_fields(payload, refresh)

    resolved: Sequence[Predicate] | None = predicates
    if resolved is None and record_id is not None:
        resolved = target_predicates(record_id)
    if resolved is None:
        resolved = payload_id_predicates(payload)

    return OperationEnvelope(
        type_classifier=type_classifier,
        operation=Operation.UPDATE,
        payload=payload,
        predicates=None if resolved is None else tuple(resolved),
    )


def build_edit_envelope(
    record_id: Any,
    edit: EditFields,
    *,
    upload: UploadFile | None = None,
    derived: DerivedContent | None = None,
) -> OperationEnvelope:
    """Build the ``update`` saved from the edit form."""
    return build_update_envelope(
        type_classifier=IMAGE_TYPE,
        fields=edit.to_payload(),
        record_id=record_id,
        upload=upload,
        derived=derived,
    )


def build_delete_envelope(
    *,
    record_id: Any = None,
    predicates: Sequence[Predicate] | None = None,
    payload: Mapping[str, Any] | None = None,
    type_classifier: str = IMAGE_TYPE,
    soft_delete: SoftDeleteConfig = SoftDeleteConfig(),
) -> OperationEnvelope:
    """Build an ``isdel``.

    Predicates resolve as: explicit list, then ``record_id``, then one
    equality per payload field. An empty payload derives nothing and the
    envelope is left for validation to reject.
    """
    data = dict(payload or {})
    resolved: Sequence[Predicate] | None = predicates
    if resolved is None and record_id is not None:
        resolved = target_predicates(record_id)
    if resolved is None and data:
        resolved = payload_field_predicates(data)
    return OperationEnvelope(
        type_classifier=type_classifier,
        operation=Operation.ISDEL,
        payload=data,
        predicates=None if resolved is None else tuple(resolved),
        soft_delete=soft_delete,
    )


def build_probe_envelope(
    intent: ProbeIntent,
    *,
    derived: DerivedContent | None = None,
    defaults: RecordDefaults = RecordDefaults(),
    rng: random.Random | None = None,
) -> OperationEnvelope:
    """Build an envelope for an arbitrary probe against any table."""
    operation = intent.operation
    special = IMG2DICOM if intent.type_classifier == IMG2DICOM else None

    if intent.upload is not None and operation in (Operation.ADD, Operation.UPDATE):
        if derived is None:
            raise ValueError("derived content is required when an upload is attached")
        if operation is Operation.ADD:
            return build_add_envelope(
                intent.upload,
                derived,
                overrides=intent.payload,
                special_classifier=special,
                defaults=defaults,
                rng=rng,
            )
        return build_update_envelope(
            type_classifier=intent.type_classifier,
            fields=intent.payload,
            upload=intent.upload,
            derived=derived,
            refresh_full_metadata=True,
        )

    payload = dict(intent.payload)
    if operation is not Operation.CHECK and not payload:
        hint = " or choose a file" if operation is Operation.ADD else ""
        raise EnvelopeValidationError(
            message=f"provide JSON data{hint} for {operation.value}",
            code=codes.EMPTY_PAYLOAD,
        )

    if operation is Operation.ADD:
        return OperationEnvelope(
            type_classifier=intent.type_classifier,
            operation=Operation.ADD,
            payload=payload,
        )
    if operation is Operation.UPDATE:
        return build_update_envelope(type_classifier=intent.type_classifier, fields=payload)

    predicates = _split_where(payload, None)
    if operation is Operation.ISDEL:
        return build_delete_envelope(
            predicates=predicates,
            payload=payload,
            type_classifier=intent.type_classifier,
            soft_delete=intent.soft_delete,
        )
    return OperationEnvelope(
        type_classifier=intent.type_classifier,
        operation=Operation.CHECK,
        payload=payload,
        predicates=tuple(predicates or ()),
        audit=intent.audit,
    )


def needs_resource_defaults(table: str, data: Mapping[str, Any]) -> bool:
    """True for ``resources`` rows that carry content but no fingerprint."""
    return table == RESOURCES_TABLE and bool(data.get("content")) and not data.get("file_sha256")


def build_table_add_envelope(
    table: str,
    data: Mapping[str, Any],
    *,
    upload_ip: str | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> OperationEnvelope:
    """Build a raw ``add`` of caller JSON into ``table``.

    ``resources`` rows with content but no fingerprint are completed with a
    synthetic ``test_`` fingerprint and the identifier derived from it, plus
    test-user metadata, each only where the caller left the field unset.
    """
    if table.strip() == "":
        raise EnvelopeValidationError(
            message="table name is required",
            code=codes.MISSING_REQUIRED_FIELD,
        )
    processed = dict(data)
    declared_type = processed.get("file_type")
    if declared_type is not None and not isinstance(declared_type, str):
        raise EnvelopeValidationError(
            message=f"file_type must be a string, got {type(declared_type).__name__}",
            code=codes.INVALID_ARGUMENT,
        )
    if needs_resource_defaults(table, processed):
        moment = now or datetime.now(UTC)
        fingerprint = synthetic_fingerprint(
            TEST_PREFIX, clock=moment.timestamp, rng=rng
        )
        processed["file_sha256"] = fingerprint
        generated = {
            "file_id": new_file_id(fingerprint, rng=rng),
            "file_upload_time": iso_utc(moment),
            "file_upload_user": "test_user",
            "file_upload_ip": upload_ip or "127.0.0.1",
            "file_roles": ["test_role"],
            "file_status": "active",
        }
        for key, value in generated.items():
            if not processed.get(key):
                processed[key] = value
        processed = normalize_aliases(processed, layout_for(table))

    return OperationEnvelope(
        type_classifier=processed.get("file_type") or table,
        operation=Operation.ADD,
        payload=processed,
    )


def _split_where(
    payload: dict[str, Any], predicates: Iterable[Predicate] | None
) -> list[Predicate] | None:
    """Pop a ``where_conditions`` member out of ``payload`` unless one is given.

    A ``null`` member means no conditions, same as leaving it out.
    """
    if predicates is not None:
        payload.pop(WHERE_KEY, None)
        return list(predicates)
    raw = payload.pop(WHERE_KEY, None)
    if raw is None:
        return None
    return parse_predicates(raw)


def update_template(record: Mapping[str, Any]) -> dict[str, Any]:
    """Return editable probe JSON for updating an existing ``record``.

    The row is keyed by ``id`` when present, otherwise by ``file_id``.
    """
    return {
        WHERE_KEY: [predicate.to_wire() for predicate in record_key_predicates(record)],
        "file_name": record.get("file_name"),
        "file_description": record.get("file_description") or "",
        "file_roles": record.get("file_roles") or ["user"],
    }
