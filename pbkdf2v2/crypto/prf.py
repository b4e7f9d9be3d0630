"""PRF identifier resolution."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from ..utils.logging import get_logger
from ..utils.metrics import SCRAM_WITHOUT_SASLPREP
from .constants import PRF
from .errors import UnknownPRFError

logger = get_logger(__name__)


@dataclass(frozen=True)
class PRFDescriptor:
    """Digest algorithm and encoding flags for one PRF identifier."""

    prf: PRF
    digest_name: str
    digest_length: int
    scram: bool
    salt64: bool


def _table() -> dict[int, PRFDescriptor]:
    families = (
        ("sha1", 20, PRF.HMAC_SHA1, PRF.HMAC_SHA1_S64, PRF.SCRAM_SHA1, PRF.SCRAM_SHA1_S64),
        (
            "sha256",
            32,
            PRF.HMAC_SHA2_256,
            PRF.HMAC_SHA2_256_S64,
            PRF.SCRAM_SHA2_256,
            PRF.SCRAM_SHA2_256_S64,
        ),
        (
            "sha512",
            64,
            PRF.HMAC_SHA2_512,
            PRF.HMAC_SHA2_512_S64,
            PRF.SCRAM_SHA2_512,
            PRF.SCRAM_SHA2_512_S64,
        ),
    )
    table: dict[int, PRFDescriptor] = {}
    for name, length, hmac_raw, hmac_s64, scram_raw, scram_s64 in families:
        table[hmac_raw] = PRFDescriptor(hmac_raw, name, length, scram=False, salt64=False)
        table[hmac_s64] = PRFDescriptor(hmac_s64, name, length, scram=False, salt64=True)
        table[scram_raw] = PRFDescriptor(scram_raw, name, length, scram=True, salt64=False)
        table[scram_s64] = PRFDescriptor(scram_s64, name, length, scram=True, salt64=True)
    return table


PRF_TABLE = MappingProxyType(_table())


def resolve_prf(value: int, normalizer_available: bool = True) -> PRFDescriptor:
    """Return the descriptor for ``value`` or raise :class:`UnknownPRFError`."""

    descriptor = PRF_TABLE.get(value)
    if descriptor is None:
        logger.debug("prf_unknown", extra={"prf": value})
        raise UnknownPRFError(f"PRF ID '{value}' unknown")

    if descriptor.scram and not normalizer_available:
        logger.info(
            "scram_hash_without_saslprep",
            extra={
                "prf": int(descriptor.prf),
                "detail": "user logins may fail if they have exotic password characters",
            },
        )
        SCRAM_WITHOUT_SASLPREP.inc()

    return descriptor


__all__ = ["PRF_TABLE", "PRFDescriptor", "resolve_prf"]
