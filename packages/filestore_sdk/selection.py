"""Current-target selection shared between workflows of one process.

Opening a target yields a new immutable ``WorkflowContext`` stamped with a
monotonically increasing generation. Work started under a context checks
``is_current`` before applying its result; anything started under an older
context is stale and dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from packages.filestore_shared.logging import fields, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class WorkflowContext:
    """The record a workflow operates on, as of one selection generation."""

    target_id: Any
    generation: int


class SelectionSlot:
    """Single mutable slot holding the current ``WorkflowContext``."""

    def __init__(self) -> None:
        self._current: WorkflowContext | None = None
        self._generation = 0

    @property
    def current(self) -> WorkflowContext | None:
        return self._current

    def open(self, target_id: Any) -> WorkflowContext:
        """Select ``target_id``, superseding any earlier context."""
        self._generation += 1
        context = WorkflowContext(target_id=target_id, generation=self._generation)
        self._current = context
        logger.debug(
            "selection opened",
            extra={
                fields.EVENT: fields.SELECTION_CHANGED_EVENT,
                fields.TARGET_ID: target_id,
                fields.GENERATION: context.generation,
            },
        )
        return context

    def clear(self, target_id: Any = None) -> None:
        """Drop the selection; with ``target_id``, only if it is selected."""
        if self._current is None:
            return
        if target_id is not None and self._current.target_id != target_id:
            return
        self._generation += 1
        self._current = None
        logger.debug(
            "selection cleared",
            extra={
                fields.EVENT: fields.SELECTION_CHANGED_EVENT,
                fields.GENERATION: self._generation,
            },
        )

    def is_current(self, context: WorkflowContext | None) -> bool:
        """True when ``context`` is still the selected one."""
        return context is not None and context == self._current
