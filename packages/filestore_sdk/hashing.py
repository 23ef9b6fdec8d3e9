"""Content fingerprinting for uploaded binaries."""

from __future__ import annotations

import hashlib
import random
import time
from dataclasses import dataclass
from typing import Callable

from packages.filestore_shared.logging import fields, get_logger

logger = get_logger(__name__)

SIMULATED_PREFIX = "simulated"
TEST_PREFIX = "test"

Digest = Callable[[bytes], str]


@dataclass(frozen=True, slots=True)
class Fingerprint:
    """Hex digest of some content, or a synthetic stand-in."""

    value: str
    simulated: bool = False

    def __str__(self) -> str:
        return self.value


def sha256_hex(content: bytes) -> str:
    """Return the lowercase, zero-padded hex SHA-256 of ``content``."""
    return hashlib.sha256(content).hexdigest()


def synthetic_fingerprint(
    prefix: str = SIMULATED_PREFIX,
    *,
    clock: Callable[[], float] = time.time,
    rng: random.Random | None = None,
) -> str:
    """Return ``<prefix>_<ms-epoch>_<4-digit-random>``."""
    source = rng if rng is not None else random
    millis = int(clock() * 1000)
    return f"{prefix}_{millis}_{source.randint(1000, 9999)}"


def compute_fingerprint(
    content: bytes,
    *,
    digest: Digest = sha256_hex,
    clock: Callable[[], float] = time.time,
    rng: random.Random | None = None,
) -> Fingerprint:
    """Fingerprint ``content``, degrading to a synthetic value on failure.

    A failing digest never aborts the caller; it only lowers identifier
    quality, so the fallback is logged at WARNING to keep the two cases
    distinguishable downstream.
    """
    try:
        return Fingerprint(value=digest(content))
    except Exception as exc:
        value = synthetic_fingerprint(SIMULATED_PREFIX, clock=clock, rng=rng)
        logger.warning(
            "content digest failed (%s); using synthetic fingerprint %s",
            exc,
            value,
            extra={fields.EVENT: fields.FINGERPRINT_SIMULATED_EVENT},
        )
        return Fingerprint(value=value, simulated=True)
