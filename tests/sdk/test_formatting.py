"""Unit tests for display formatting helpers."""

from __future__ import annotations

import pytest

from packages.filestore_sdk.formatting import format_datetime, format_file_size
from packages.filestore_sdk.records import preview_content


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "0 Bytes"),
        (None, "0 Bytes"),
        ("junk", "0 Bytes"),
        (512, "512 Bytes"),
        (1024, "1 KB"),
        (1536, "1.5 KB"),
        (1048576, "1 MB"),
        (5 * 1024**3, "5 GB"),
    ],
)
def test_format_file_size(size: object, expected: str) -> None:
    """Sizes use 1024-based units with up to two decimals."""
    assert format_file_size(size) == expected


def test_format_datetime_handles_missing_and_invalid_values() -> None:
    """Missing timestamps are N/A and unparseable ones are flagged."""
    assert format_datetime(None) == "N/A"
    assert format_datetime("") == "N/A"
    assert format_datetime("yesterday") == "Invalid Date"


def test_format_datetime_renders_naive_values_verbatim() -> None:
    """Naive timestamps are shown without timezone conversion."""
    assert format_datetime("2024-01-02T03:04:05") == "2024-01-02 03:04:05"


def test_preview_prefers_dicom_content_for_dicom_records() -> None:
    """DICOM-typed records preview the converted content first."""
    record = {"file_type": "img2dicom", "image_content": "img", "dicom_content": "dcm"}
    assert preview_content(record) == "dcm"
    assert preview_content({"file_type": "image/png", "image_content": "img"}) == "img"
    assert preview_content({"file_type": "image/png"}) == ""
