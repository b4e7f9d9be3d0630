"""Credential extraction for a SASL SCRAM-SHA mechanism."""

from __future__ import annotations

from dataclasses import dataclass

from ..utils.logging import get_logger
from .constants import PRF
from .derive import scram_derive
from .errors import CredentialError, UnknownPRFError
from .formats import (
    ScramLayout,
    check_layout_mode,
    check_parameters,
    decode_key,
    decode_salt,
    parse,
)
from .prf import resolve_prf
from .saslprep import saslprep

logger = get_logger(__name__)

# SCRAM mechanisms exist for SHA-1 (RFC 5802) and SHA-256 (RFC 7677) only.
_SCRAM_MECHANISM = {
    "sha1": PRF.SCRAM_SHA1,
    "sha256": PRF.SCRAM_SHA2_256,
}


@dataclass
class ScramCredential:
    """Everything a SCRAM server needs to authenticate one account."""

    prf: PRF
    iterations: int
    salt: bytes
    server_key: bytearray
    stored_key: bytearray

    def wipe(self) -> None:
        self.server_key[:] = bytes(len(self.server_key))
        self.stored_key[:] = bytes(len(self.stored_key))


def extract(stored: str) -> ScramCredential:
    """Build a :class:`ScramCredential` from a legacy or SCRAM stored string.

    Legacy digests are the SCRAM salted password already, so the keys are
    derived from them directly.
    """

    layout = parse(stored, verifying=True)
    descriptor = resolve_prf(layout.prf)
    check_layout_mode(layout, descriptor)

    salt = decode_salt(layout.salt, descriptor)
    check_parameters(len(salt), layout.iterations)

    mechanism = _SCRAM_MECHANISM.get(descriptor.digest_name)
    if mechanism is None:
        logger.debug("scram_prf_unsupported", extra={"prf": layout.prf})
        raise UnknownPRFError(f"unsupported PRF '{layout.prf}' for SCRAM")

    if isinstance(layout, ScramLayout):
        server_key = decode_key(layout.server_key, descriptor, "server_key")
        try:
            stored_key = decode_key(layout.stored_key, descriptor, "stored_key")
        except CredentialError:
            server_key[:] = bytes(len(server_key))
            raise
    else:
        digest = decode_key(layout.digest, descriptor, "digest")
        try:
            keys = scram_derive(digest, descriptor)
        finally:
            digest[:] = bytes(len(digest))
        server_key, stored_key = keys.server_key, keys.stored_key
        logger.info("scram_login_with_pbkdf2_credentials", extra={"prf": layout.prf})

    return ScramCredential(
        prf=mechanism,
        iterations=layout.iterations,
        salt=salt,
        server_key=server_key,
        stored_key=stored_key,
    )


def scram_dbextract(stored: str) -> ScramCredential | None:
    """Public wrapper around :func:`extract` reporting failure as ``None``."""

    try:
        return extract(stored)
    except CredentialError as exc:
        logger.debug("scram_dbextract_failed", extra={"error": type(exc).__name__})
        return None


def scram_normalize(password: str) -> str | None:
    """SASLprep ``password`` for a SCRAM exchange, or ``None`` if rejected."""

    try:
        return saslprep(password)
    except CredentialError as exc:
        logger.debug("scram_normalize_failed", extra={"error": str(exc)})
        return None


__all__ = ["ScramCredential", "extract", "scram_dbextract", "scram_normalize"]
