"""
Stored credential string layouts.

Three shapes share the ``$z$<prf>$<iterations>$<salt>`` prefix:

    salt-only   $z$<prf>$<iter>$<salt>$
    legacy      $z$<prf>$<iter>$<salt>$<digest>
    SCRAM       $z$<prf>$<iter>$<salt>$<server key>$<stored client key>

Each shape is parsed by a full-string match into its own variant type. The
salt-only shape is a generation template and is never accepted for
verification; the digest-bearing shapes are never accepted for generation.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Final

from ..utils.logging import get_logger
from .constants import BASE64_CHARS, ITERCNT_MAX, ITERCNT_MIN, SALTLEN_MAX, SALTLEN_MIN
from .errors import EncodingError, ParseError, RangeError
from .prf import PRFDescriptor

logger = get_logger(__name__)

_PREFIX: Final[str] = r"\$z\$([0-9]{1,10})\$([0-9]{1,10})\$([" + BASE64_CHARS + r"]+)"
_FIELD: Final[str] = r"\$([" + BASE64_CHARS + r"]+)"

SCRAM_PATTERN = re.compile(_PREFIX + _FIELD + _FIELD)
LEGACY_PATTERN = re.compile(_PREFIX + _FIELD)
SALT_PATTERN = re.compile(_PREFIX + r"\$?")
SALT_VIEW_PATTERN = re.compile(_PREFIX + r"(?:\$|\Z)")


@dataclass(frozen=True)
class SaltOnlyLayout:
    """Parameters without a derived key; the template for a fresh hash."""

    prf: int
    iterations: int
    salt: str


@dataclass(frozen=True)
class LegacyLayout:
    """Plain PBKDF2 hash carrying a single base64 digest."""

    prf: int
    iterations: int
    salt: str
    digest: str


@dataclass(frozen=True)
class ScramLayout:
    """SCRAM-capable hash carrying base64 server and stored client keys."""

    prf: int
    iterations: int
    salt: str
    server_key: str
    stored_key: str


StoredLayout = SaltOnlyLayout | LegacyLayout | ScramLayout


def parse(text: str, verifying: bool) -> StoredLayout:
    """Match ``text`` against the layouts valid for the requested mode."""

    if verifying:
        match = SCRAM_PATTERN.fullmatch(text)
        if match:
            logger.debug("layout_matched", extra={"layout": "scram"})
            prf, iterations, salt, server_key, stored_key = match.groups()
            return ScramLayout(int(prf), int(iterations), salt, server_key, stored_key)

        match = LEGACY_PATTERN.fullmatch(text)
        if match:
            logger.debug("layout_matched", extra={"layout": "legacy"})
            prf, iterations, salt, digest = match.groups()
            return LegacyLayout(int(prf), int(iterations), salt, digest)

        logger.debug("layout_unmatched", extra={"mode": "verifying"})
        raise ParseError("stored credential matches no hash layout")

    match = SALT_PATTERN.fullmatch(text)
    if match:
        logger.debug("layout_matched", extra={"layout": "salt"})
        prf, iterations, salt = match.groups()
        return SaltOnlyLayout(int(prf), int(iterations), salt)

    logger.error("layout_unmatched", extra={"mode": "generating"})
    raise ParseError("parameters do not match the salt-only layout")


def parse_salt_view(text: str) -> SaltOnlyLayout:
    """Read only the prefix fields shared by every layout."""

    match = SALT_VIEW_PATTERN.match(text)
    if not match:
        raise ParseError("stored credential has no recognizable parameter prefix")
    prf, iterations, salt = match.groups()
    return SaltOnlyLayout(int(prf), int(iterations), salt)


def check_layout_mode(layout: LegacyLayout | ScramLayout, descriptor: PRFDescriptor) -> None:
    """Reject a digest-bearing layout whose shape disagrees with its PRF.

    SCRAM PRFs are only valid with the two-key layout and plain HMAC PRFs only
    with the single-digest layout.
    """

    if isinstance(layout, ScramLayout) != descriptor.scram:
        logger.error(
            "layout_prf_mismatch",
            extra={"prf": layout.prf, "scram": descriptor.scram},
        )
        raise ParseError(f"PRF '{layout.prf}' does not match the stored layout")


def check_parameters(salt_length: int, iterations: int) -> None:
    """Reject salt lengths and iteration counts outside policy bounds."""

    if not SALTLEN_MIN <= salt_length <= SALTLEN_MAX:
        logger.error("salt_length_out_of_range", extra={"salt_length": salt_length})
        raise RangeError(f"salt length {salt_length} out of range")
    if not ITERCNT_MIN <= iterations <= ITERCNT_MAX:
        logger.error("iteration_count_out_of_range", extra={"iterations": iterations})
        raise RangeError(f"iteration count {iterations} out of range")


def b64decode(field: str, label: str) -> bytes:
    try:
        return base64.b64decode(field, validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.error("base64_decode_failed", extra={"field": label})
        raise EncodingError(f"base64 decode of {label} failed") from exc


def b64encode(raw: bytes | bytearray) -> str:
    return base64.b64encode(bytes(raw)).decode("ascii")


def decode_salt(field: str, descriptor: PRFDescriptor) -> bytes:
    """Return the raw salt for ``field`` according to the PRF's salt encoding."""

    if descriptor.salt64:
        return b64decode(field, "salt")
    # Legacy salts are the printable characters themselves.
    return field.encode("ascii")


def decode_key(field: str, descriptor: PRFDescriptor, label: str) -> bytearray:
    """Decode a stored digest-sized field, enforcing the PRF's digest length."""

    raw = b64decode(field, label)
    if len(raw) != descriptor.digest_length:
        logger.error(
            "stored_key_length_mismatch",
            extra={"field": label, "length": len(raw), "expected": descriptor.digest_length},
        )
        raise EncodingError(
            f"{label} decodes to {len(raw)} bytes, expected {descriptor.digest_length}"
        )
    return bytearray(raw)


def salt_length(layout: SaltOnlyLayout, descriptor: PRFDescriptor) -> int:
    """Length of the salt in bytes, decoded for base64-salted PRFs."""

    return len(decode_salt(layout.salt, descriptor))


__all__ = [
    "LegacyLayout",
    "SaltOnlyLayout",
    "ScramLayout",
    "StoredLayout",
    "b64decode",
    "b64encode",
    "check_layout_mode",
    "check_parameters",
    "decode_key",
    "decode_salt",
    "parse",
    "parse_salt_view",
    "salt_length",
]
