"""Display helpers for record listings and details."""

from __future__ import annotations

from datetime import datetime
from typing import Any

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: Any) -> str:
    """Return a 1024-based human size such as ``"1.5 KB"``."""
    try:
        value = float(size or 0)
    except (TypeError, ValueError):
        return "0 Bytes"
    if value <= 0:
        return "0 Bytes"
    exponent = 0
    while value >= 1024 and exponent < len(SIZE_UNITS) - 1:
        value /= 1024
        exponent += 1
    scaled = round(value, 2)
    text = f"{scaled:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[exponent]}"


def format_datetime(value: Any) -> str:
    """Return a local ``YYYY-MM-DD HH:MM:SS`` rendering of an ISO timestamp."""
    if not value:
        return "N/A"
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return "Invalid Date"
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.strftime("%Y-%m-%d %H:%M:%S")
