"""Canonical shared error types for filestore packages.

A transport-agnostic error taxonomy used at workflow boundaries and by the
CLI actor to pick exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class ErrorCategory(str, Enum):
    """High-level error categories shared across package boundaries."""

    UNSPECIFIED = "unspecified"
    VALIDATION = "validation"
    DEPENDENCY = "dependency"
    REMOTE = "remote"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """Structured error object carried by workflow notifications."""

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)
