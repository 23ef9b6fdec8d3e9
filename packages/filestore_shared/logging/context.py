"""Workflow fields attached to every log line via ``contextvars``.

Each asyncio task runs in a copy of its parent's context, so fields bound by
one workflow never show up in a concurrently running one.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

_EMPTY: Mapping[str, str] = MappingProxyType({})
_bound: ContextVar[Mapping[str, str]] = ContextVar("filestore_log_context", default=_EMPTY)


def get_context() -> dict[str, str]:
    """Return a mutable copy of the fields bound right now."""
    return dict(_bound.get())


def bind_context(**values: object) -> None:
    """Add fields to the current context, stringified; ``None`` is skipped."""
    updates = {key: str(value) for key, value in values.items() if value is not None}
    if updates:
        _bound.set(MappingProxyType({**_bound.get(), **updates}))


def clear_context(*keys: str) -> None:
    """Drop ``keys`` from the context, or every field when none are given."""
    if not keys:
        _bound.set(_EMPTY)
        return
    remaining = {key: value for key, value in _bound.get().items() if key not in keys}
    _bound.set(MappingProxyType(remaining))


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind ``values`` for the duration of the block, then restore."""
    token = _bound.set(_bound.get())
    try:
        bind_context(**{str(key): value for key, value in values.items()})
        yield
    finally:
        _bound.reset(token)
