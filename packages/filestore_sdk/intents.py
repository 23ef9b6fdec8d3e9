"""Normalized user intents and parsing of raw user input."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from packages.filestore_shared.errors import codes

from .envelope import Operation, SoftDeleteConfig
from .errors import EnvelopeValidationError
from .records import UploadFile


@dataclass(frozen=True, slots=True)
class EditFields:
    """Values from the edit form; ``None`` leaves a field unchanged."""

    file_name: str
    file_type: str | None = None
    file_description: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "file_type": self.file_type or None,
            "file_description": self.file_description or None,
        }


@dataclass(frozen=True, slots=True)
class ProbeIntent:
    """An arbitrary request against any table for API exploration."""

    type_classifier: str
    operation: Operation
    payload: dict[str, Any] = field(default_factory=dict)
    upload: UploadFile | None = None
    audit: bool = False
    soft_delete: SoftDeleteConfig = field(default_factory=SoftDeleteConfig)


def parse_user_json(text: str | None) -> dict[str, Any]:
    """Parse a user-typed JSON object; blank input means an empty object."""
    if text is None or text.strip() == "":
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise EnvelopeValidationError(
            message=f"malformed JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            code=codes.INVALID_JSON,
        ) from None
    if not isinstance(parsed, dict):
        raise EnvelopeValidationError(
            message="JSON data must be an object",
            code=codes.INVALID_JSON,
        )
    return parsed


def coerce_record_id(value: Any) -> int:
    """Return a usable numeric store id or raise a validation error."""
    if isinstance(value, bool):
        raise EnvelopeValidationError(message="invalid record id", code=codes.INVALID_RECORD_ID)
    if isinstance(value, int):
        record_id = value
    else:
        text = str(value).strip() if value is not None else ""
        try:
            record_id = int(text)
        except ValueError:
            raise EnvelopeValidationError(
                message=f"invalid record id: {value!r}",
                code=codes.INVALID_RECORD_ID,
            ) from None
    if record_id == 0:
        raise EnvelopeValidationError(message="invalid record id: 0", code=codes.INVALID_RECORD_ID)
    return record_id
