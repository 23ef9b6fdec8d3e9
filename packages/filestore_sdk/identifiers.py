"""Record identifier derivation from content fingerprints."""

from __future__ import annotations

import random
import re

FILE_ID_PREFIX = "file_"
FINGERPRINT_SLICE = 16

# Slice is length-based: synthetic fingerprints may contribute non-hex chars.
FILE_ID_PATTERN = re.compile(r"^file_.{16}_\d{4}$")
HEX_FILE_ID_PATTERN = re.compile(r"^file_[0-9a-f]{16}_\d{4}$")


def new_file_id(fingerprint: str, *, rng: random.Random | None = None) -> str:
    """Return ``file_<fingerprint[:16]>_<1000..9999>``.

    Raises ``ValueError`` when the fingerprint is shorter than 16 characters.
    Uniqueness against the store is not checked.
    """
    if len(fingerprint) < FINGERPRINT_SLICE:
        raise ValueError(
            f"fingerprint must be at least {FINGERPRINT_SLICE} characters, got {len(fingerprint)}"
        )
    source = rng if rng is not None else random
    suffix = source.randint(1000, 9999)
    return f"{FILE_ID_PREFIX}{fingerprint[:FINGERPRINT_SLICE]}_{suffix}"
