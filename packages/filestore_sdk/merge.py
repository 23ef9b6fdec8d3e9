"""Explicit field-merge with per-operation precedence."""

from __future__ import annotations

from typing import Any, Iterable, Mapping


def merge_fields(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
    *,
    protected: Iterable[str] = (),
) -> dict[str, Any]:
    """Layer ``overlay`` over ``base`` and return a new dict.

    Overlay values win on key collision, except for ``protected`` keys present
    in ``base``, which keep the base value. Neither input is mutated.
    """
    locked = {key for key in protected if key in base}
    merged = dict(base)
    for key, value in overlay.items():
        if key in locked:
            continue
        merged[key] = value
    return merged


def drop_unset(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Drop ``None`` values, which mean "leave unchanged" to the store."""
    return {key: value for key, value in fields.items() if value is not None}
