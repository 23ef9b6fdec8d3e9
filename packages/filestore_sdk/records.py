"""Record layouts keyed by type classifier, and upload file handling.

Every record variant declares which content-bearing fields it owns. Callers
dispatch on the classifier through ``layout_for`` instead of probing payloads
for field presence; all other fields travel in the record's open extension
map (a plain dict).
"""

from __future__ import annotations

import asyncio
import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Mapping

from .errors import UploadReadError

IMG2DICOM = "img2dicom"
DICOM = "dicom"
ALL_TYPES = "all"
IMAGE_TYPE = "image"
DEFAULT_MEDIA_TYPE = "application/octet-stream"

FILE_CONTENT = "file_content"
IMAGE_CONTENT = "image_content"
DICOM_CONTENT = "dicom_content"
DICOM_PATH = "dicom_path"
CONTENT_FIELDS = frozenset({FILE_CONTENT, IMAGE_CONTENT, DICOM_CONTENT})


@dataclass(frozen=True)
class RecordLayout:
    """Generic record variant: content lives in ``file_content``."""

    classifier: str
    content_field: ClassVar[str] = FILE_CONTENT
    server_fields: ClassVar[tuple[str, ...]] = ()

    @property
    def client_content_fields(self) -> frozenset[str]:
        """Content fields a client may populate for this variant."""
        return frozenset({self.content_field})

    def content_fields(self, encoded: str) -> dict[str, str]:
        """Place encoded content and empty server placeholders."""
        placed = {self.content_field: encoded}
        for name in self.server_fields:
            placed[name] = ""
        return placed


@dataclass(frozen=True)
class Img2DicomLayout(RecordLayout):
    """Image-to-DICOM conversion request.

    The source image goes in ``image_content``; ``dicom_path`` and
    ``dicom_content`` are computed by the store and only initialised empty.
    """

    content_field: ClassVar[str] = IMAGE_CONTENT
    server_fields: ClassVar[tuple[str, ...]] = (DICOM_PATH, DICOM_CONTENT)


def layout_for(classifier: str) -> RecordLayout:
    """Return the record variant for one type classifier."""
    if classifier == IMG2DICOM:
        return Img2DicomLayout(classifier=classifier)
    return RecordLayout(classifier=classifier)


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A binary chosen by the user, with its declared media type."""

    name: str
    media_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    def data_url(self) -> str:
        """Return the content as a ``data:<type>;base64,`` URL."""
        return encode_data_url(self.content, self.media_type)


def encode_data_url(content: bytes, media_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{media_type or DEFAULT_MEDIA_TYPE};base64,{encoded}"


def guess_media_type(path: str | Path) -> str:
    """Guess a media type from the file name, defaulting to octet-stream."""
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed or DEFAULT_MEDIA_TYPE


async def read_upload(path: str | Path, *, media_type: str | None = None) -> UploadFile:
    """Read one local file off the event loop into an ``UploadFile``."""
    resolved = Path(path)
    try:
        content = await asyncio.to_thread(resolved.read_bytes)
    except OSError as exc:
        raise UploadReadError(
            message=f"could not read {resolved}: {exc.strerror or exc}",
            path=str(resolved),
        ) from exc
    return UploadFile(
        name=resolved.name,
        media_type=media_type or guess_media_type(resolved),
        content=content,
    )


def preview_content(record: Mapping[str, Any]) -> str:
    """Return the best content field for previewing one stored record."""
    if record.get("file_type") in {IMG2DICOM, DICOM}:
        order = (DICOM_CONTENT, FILE_CONTENT, IMAGE_CONTENT)
    else:
        order = (FILE_CONTENT, IMAGE_CONTENT)
    for name in order:
        value = record.get(name)
        if value:
            return str(value)
    return ""


def record_key(record: Mapping[str, Any]) -> Any:
    """Return the display key of a stored record: ``id`` else ``file_id``."""
    return record.get("id") or record.get("file_id")


def is_deleted(record: Mapping[str, Any]) -> bool:
    return bool(record.get("is_del") or False)
