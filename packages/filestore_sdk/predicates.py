"""Predicate composition for ``check``/``update``/``isdel`` envelopes.

A predicate list is conjunctive (AND). Builders here never merge an explicit
list with a derived one: explicit lists win and the derived paths exist only
as last resorts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from packages.filestore_shared.errors import codes

from .errors import EnvelopeValidationError

DELETED_FIELD = "is_del"
NAME_FIELD = "file_name"
ID_FIELD = "id"
FILE_ID_FIELD = "file_id"
WHERE_KEY = "where_conditions"


class Operator(str, Enum):
    """Comparison operators accepted by the store."""

    EQ = "="
    LIKE = "LIKE"


@dataclass(frozen=True, slots=True)
class Predicate:
    """One ``(field, operator, value)`` condition."""

    field: str
    operator: Operator
    value: Any

    def to_wire(self) -> dict[str, Any]:
        """Return the store's ``{field, operator, value}`` shape."""
        return {"field": self.field, "operator": self.operator.value, "value": self.value}


def eq(field: str, value: Any) -> Predicate:
    return Predicate(field=field, operator=Operator.EQ, value=value)


def like(field: str, pattern: str) -> Predicate:
    return Predicate(field=field, operator=Operator.LIKE, value=pattern)


def listing_predicates(*, show_all: bool, keyword: str = "") -> list[Predicate]:
    """Return predicates for the list and search views.

    Hidden soft-deleted rows come first; a blank keyword makes search identical
    to a plain listing.
    """
    predicates: list[Predicate] = []
    if not show_all:
        predicates.append(eq(DELETED_FIELD, False))
    term = keyword.strip()
    if term:
        predicates.append(like(NAME_FIELD, f"%{term}%"))
    return predicates


def target_predicates(record_id: Any) -> list[Predicate]:
    """Return the single-row predicate for a known store id."""
    return [eq(ID_FIELD, record_id)]


def record_key_predicates(record: Mapping[str, Any]) -> list[Predicate]:
    """Key an existing record by ``id`` when present, otherwise ``file_id``."""
    if record.get(ID_FIELD):
        return [eq(ID_FIELD, record[ID_FIELD])]
    if record.get(FILE_ID_FIELD):
        return [eq(FILE_ID_FIELD, record[FILE_ID_FIELD])]
    raise EnvelopeValidationError(
        message="record has neither id nor file_id",
        code=codes.MISSING_REQUIRED_FIELD,
    )


def payload_id_predicates(payload: Mapping[str, Any]) -> list[Predicate] | None:
    """Derive ``[(id, =, payload.id)]`` when the payload carries an id."""
    if payload.get(ID_FIELD):
        return [eq(ID_FIELD, payload[ID_FIELD])]
    return None


def payload_field_predicates(payload: Mapping[str, Any]) -> list[Predicate]:
    """Derive one equality predicate per payload field.

    An empty payload yields an empty list, which validation rejects for
    targeted operations.
    """
    return [eq(key, value) for key, value in payload.items()]


def parse_predicates(raw: Any) -> list[Predicate]:
    """Parse user-supplied ``where_conditions`` JSON into predicates."""
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise EnvelopeValidationError(
            message="where_conditions must be a list of {field, operator, value} objects",
            code=codes.INVALID_ARGUMENT,
        )
    parsed: list[Predicate] = []
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise EnvelopeValidationError(
                message=f"where_conditions[{index}] must be an object",
                code=codes.INVALID_ARGUMENT,
            )
        field = item.get("field")
        if not isinstance(field, str) or field.strip() == "":
            raise EnvelopeValidationError(
                message=f"where_conditions[{index}].field is required",
                code=codes.MISSING_REQUIRED_FIELD,
            )
        raw_operator = str(item.get("operator", Operator.EQ.value)).upper()
        try:
            operator = Operator(raw_operator)
        except ValueError:
            raise EnvelopeValidationError(
                message=f"where_conditions[{index}].operator {raw_operator!r} is not supported",
                code=codes.INVALID_ARGUMENT,
            ) from None
        parsed.append(Predicate(field=field, operator=operator, value=item.get("value")))
    return parsed
