"""Pre-transmission envelope validation."""

from __future__ import annotations

from dataclasses import dataclass

from packages.filestore_shared.errors import codes
from packages.filestore_shared.logging import fields, get_logger

from .envelope import Operation, OperationEnvelope
from .errors import EnvelopeValidationError
from .records import CONTENT_FIELDS, layout_for

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Result of checking one envelope: ``ok`` or a ``reason`` and code."""

    ok: bool
    reason: str = ""
    code: str = ""

    @classmethod
    def accept(cls) -> ValidationOutcome:
        return cls(ok=True)

    @classmethod
    def reject(cls, reason: str, code: str = codes.VALIDATION_ERROR) -> ValidationOutcome:
        return cls(ok=False, reason=reason, code=code)


def validate_envelope(envelope: OperationEnvelope) -> ValidationOutcome:
    """Check one envelope against the per-operation rules."""
    if envelope.type_classifier.strip() == "":
        return ValidationOutcome.reject(
            "type classifier is required", codes.MISSING_REQUIRED_FIELD
        )

    operation = envelope.operation
    if operation is Operation.ADD:
        if not envelope.payload:
            return ValidationOutcome.reject("add requires at least one field", codes.EMPTY_PAYLOAD)
        allowed = layout_for(envelope.type_classifier).client_content_fields
        misplaced = sorted(
            name
            for name in CONTENT_FIELDS - allowed
            if envelope.payload.get(name)
        )
        if misplaced:
            return ValidationOutcome.reject(
                f"{', '.join(misplaced)} not allowed for {envelope.type_classifier}",
                codes.INVALID_ARGUMENT,
            )
    elif operation is Operation.UPDATE:
        if not envelope.predicates:
            return ValidationOutcome.reject(
                "update requires where_conditions", codes.MISSING_PREDICATES
            )
        if not envelope.payload:
            return ValidationOutcome.reject(
                "update requires at least one field", codes.EMPTY_PAYLOAD
            )
    elif operation is Operation.ISDEL:
        if not envelope.predicates:
            return ValidationOutcome.reject(
                "isdel requires where_conditions", codes.MISSING_PREDICATES
            )
    return ValidationOutcome.accept()


def ensure_valid(envelope: OperationEnvelope) -> OperationEnvelope:
    """Return ``envelope`` unchanged or raise ``EnvelopeValidationError``."""
    outcome = validate_envelope(envelope)
    if not outcome.ok:
        logger.info(
            "envelope rejected: %s",
            outcome.reason,
            extra={
                fields.EVENT: fields.ENVELOPE_REJECTED_EVENT,
                fields.OPERATION: envelope.operation.value,
                fields.TYPE_CLASSIFIER: envelope.type_classifier,
            },
        )
        raise EnvelopeValidationError(message=outcome.reason, code=outcome.code)
    return envelope
