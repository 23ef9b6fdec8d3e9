"""Operation envelope model and its JSON wire form."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .predicates import DELETED_FIELD, Predicate


class Operation(str, Enum):
    """The four operations exposed by the store."""

    ADD = "add"
    CHECK = "check"
    UPDATE = "update"
    ISDEL = "isdel"


@dataclass(frozen=True, slots=True)
class SoftDeleteConfig:
    """Flag field and value the store writes on ``isdel``."""

    field: str = DELETED_FIELD
    value: str = "true"

    def to_wire(self) -> dict[str, str]:
        return {"field": self.field, "value": str(self.value)}


class OperationEnvelope(BaseModel):
    """One request to the store, built fresh per user action."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type_classifier: str
    operation: Operation
    payload: dict[str, Any] = Field(default_factory=dict)
    predicates: tuple[Predicate, ...] | None = None
    audit: bool | None = None
    soft_delete: SoftDeleteConfig | None = None

    @property
    def path(self) -> str:
        """Operation path relative to the API prefix."""
        return f"/{self.operation.value}"

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON body for this envelope.

        ``audit`` is only sent for ``check`` and ``soft_delete_config`` only
        for ``isdel``; ``add`` never carries predicates.
        """
        body: dict[str, Any] = {
            "file_type": self.type_classifier,
            "operation": self.operation.value,
            "data": dict(self.payload),
        }
        if self.operation is not Operation.ADD:
            body["where_conditions"] = (
                None
                if self.predicates is None
                else [predicate.to_wire() for predicate in self.predicates]
            )
        if self.operation is Operation.CHECK:
            body["audit"] = bool(self.audit)
        if self.operation is Operation.ISDEL and self.soft_delete is not None:
            body["soft_delete_config"] = self.soft_delete.to_wire()
        return body
