"""Fixed identifiers, bounds and format constants for PBKDF2v2 credentials."""

from __future__ import annotations

from enum import IntEnum
from typing import Final

MODULE_NAME: Final[str] = "pbkdf2v2"


class PRF(IntEnum):
    """Numeric PRF identifiers as they appear in stored credential strings."""

    HMAC_SHA1 = 4
    HMAC_SHA2_256 = 5
    HMAC_SHA2_512 = 6

    HMAC_SHA1_S64 = 24
    HMAC_SHA2_256_S64 = 25
    HMAC_SHA2_512_S64 = 26

    SCRAM_SHA1 = 44
    SCRAM_SHA2_256 = 45
    SCRAM_SHA2_512 = 46

    SCRAM_SHA1_S64 = 64
    SCRAM_SHA2_256_S64 = 65
    SCRAM_SHA2_512_S64 = 66


SALTLEN_MIN: Final[int] = 8
SALTLEN_MAX: Final[int] = 64
SALTLEN_DEF: Final[int] = 32

ITERCNT_MIN: Final[int] = 10_000
ITERCNT_MAX: Final[int] = 5_000_000
ITERCNT_DEF: Final[int] = 64_000

DIGEST_DEF: Final[PRF] = PRF.HMAC_SHA2_512_S64

# Upper bound on a stored credential string, and on the password text the
# normalizer will accept.
PASSLEN: Final[int] = 288

# Largest digest any PRF produces (SHA-512).
MAX_DIGEST_LENGTH: Final[int] = 64

SERVER_KEY_CONTEXT: Final[bytes] = b"Server Key"
CLIENT_KEY_CONTEXT: Final[bytes] = b"Client Key"

HASH_PREFIX: Final[str] = "$z$"
BASE64_CHARS: Final[str] = "A-Za-z0-9+/="

# Configuration selectors accepted for the default PRF.
DIGEST_SELECTORS: Final[dict[str, PRF]] = {
    "SHA1": PRF.HMAC_SHA1_S64,
    "SHA256": PRF.HMAC_SHA2_256_S64,
    "SHA512": PRF.HMAC_SHA2_512_S64,
    "SCRAM-SHA1": PRF.SCRAM_SHA1_S64,
    "SCRAM-SHA256": PRF.SCRAM_SHA2_256_S64,
}
SCRAM_SELECTORS: Final[frozenset[str]] = frozenset({"SCRAM-SHA1", "SCRAM-SHA256"})
DIGEST_SELECTOR_DEF: Final[str] = "SHA512"

__all__ = [
    "BASE64_CHARS",
    "CLIENT_KEY_CONTEXT",
    "DIGEST_DEF",
    "DIGEST_SELECTORS",
    "DIGEST_SELECTOR_DEF",
    "HASH_PREFIX",
    "ITERCNT_DEF",
    "ITERCNT_MAX",
    "ITERCNT_MIN",
    "MAX_DIGEST_LENGTH",
    "MODULE_NAME",
    "PASSLEN",
    "PRF",
    "SALTLEN_DEF",
    "SALTLEN_MAX",
    "SALTLEN_MIN",
    "SCRAM_SELECTORS",
    "SERVER_KEY_CONTEXT",
]
