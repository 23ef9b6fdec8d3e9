"""Public filestore SDK interface for the CLI and other callers."""

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
    update_template,
)
from packages.filestore_sdk.client import StoreClient
from packages.filestore_sdk.config import FileStoreSdkConfig
from packages.filestore_sdk.egress import EgressAddressResolver, EgressProvider
from packages.filestore_sdk.envelope import Operation, OperationEnvelope, SoftDeleteConfig
from packages.filestore_sdk.errors import (
    EnvelopeValidationError,
    FileStoreSdkError,
    StoreApplicationError,
    StoreResponseShapeError,
    StoreTransportError,
    UploadReadError,
    to_error_detail,
)
from packages.filestore_sdk.hashing import Fingerprint, compute_fingerprint, sha256_hex
from packages.filestore_sdk.identifiers import new_file_id
from packages.filestore_sdk.intents import EditFields, ProbeIntent
from packages.filestore_sdk.predicates import Operator, Predicate
from packages.filestore_sdk.records import UploadFile, layout_for
from packages.filestore_sdk.results import FailureKind, StoreResult, normalize_response
from packages.filestore_sdk.selection import SelectionSlot, WorkflowContext
from packages.filestore_sdk.validate import ValidationOutcome, ensure_valid, validate_envelope
from packages.filestore_sdk.workflows import (
    FileStoreWorkflows,
    Notification,
    NotificationLevel,
    ProbeReport,
    WorkflowOutcome,
)

__all__ = [
    "DerivedContent",
    "EditFields",
    "EgressAddressResolver",
    "EgressProvider",
    "EnvelopeValidationError",
    "FailureKind",
    "FileStoreSdkConfig",
    "FileStoreSdkError",
    "FileStoreWorkflows",
    "Fingerprint",
    "Notification",
    "NotificationLevel",
    "Operation",
    "OperationEnvelope",
    "Operator",
    "Predicate",
    "ProbeIntent",
    "ProbeReport",
    "RecordDefaults",
    "SelectionSlot",
    "SoftDeleteConfig",
    "StoreApplicationError",
    "StoreClient",
    "StoreResponseShapeError",
    "StoreResult",
    "StoreTransportError",
    "UploadFile",
    "UploadReadError",
    "ValidationOutcome",
    "WorkflowContext",
    "WorkflowOutcome",
    "build_add_envelope",
    "build_delete_envelope",
    "build_detail_envelope",
    "build_edit_envelope",
    "build_list_envelope",
    "build_probe_envelope",
    "build_table_add_envelope",
    "build_update_envelope",
    "compute_fingerprint",
    "ensure_valid",
    "layout_for",
    "new_file_id",
    "normalize_response",
    "sha256_hex",
    "to_error_detail",
    "update_template",
    "validate_envelope",
]
