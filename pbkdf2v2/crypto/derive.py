"""PBKDF2 key stretching and the SCRAM key derivations built on it."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass

from ..utils.logging import get_logger
from ..utils.metrics import StretchTimer
from .constants import CLIENT_KEY_CONTEXT, SERVER_KEY_CONTEXT
from .errors import CryptoPrimitiveError, EmptyPasswordError
from .prf import PRFDescriptor

logger = get_logger(__name__)


def stretch(
    password: bytes,
    salt: bytes,
    iterations: int,
    descriptor: PRFDescriptor,
) -> bytearray:
    """Run PBKDF2-HMAC over ``password`` and return a digest-length key."""

    if not password:
        logger.error("password_empty")
        raise EmptyPasswordError("password length == 0")

    try:
        with StretchTimer(descriptor.digest_name):
            derived = hashlib.pbkdf2_hmac(
                descriptor.digest_name,
                password,
                salt,
                iterations,
                dklen=descriptor.digest_length,
            )
    except (ValueError, OverflowError) as exc:
        logger.error("pbkdf2_failed", extra={"digest": descriptor.digest_name})
        raise CryptoPrimitiveError("PBKDF2-HMAC failed") from exc

    return bytearray(derived)


@dataclass
class ScramKeys:
    """Server key and stored (hashed) client key; either may be absent."""

    server_key: bytearray | None = None
    stored_key: bytearray | None = None

    def wipe(self) -> None:
        for buffer in (self.server_key, self.stored_key):
            if buffer is not None:
                buffer[:] = bytes(len(buffer))


def _hmac(key: bytes | bytearray, message: bytes, descriptor: PRFDescriptor, label: str) -> bytes:
    try:
        return hmac.new(bytes(key), message, descriptor.digest_name).digest()
    except ValueError as exc:
        logger.error("hmac_failed", extra={"key": label, "digest": descriptor.digest_name})
        raise CryptoPrimitiveError(f"HMAC failed for {label}") from exc


def scram_derive(
    salted_password: bytes | bytearray,
    descriptor: PRFDescriptor,
    server: bool = True,
    client: bool = True,
) -> ScramKeys:
    """Derive the SCRAM server key and/or stored key from a stretched password.

    ServerKey = HMAC(SaltedPassword, "Server Key")
    StoredKey = H(HMAC(SaltedPassword, "Client Key"))
    """

    keys = ScramKeys()
    if server:
        keys.server_key = bytearray(
            _hmac(salted_password, SERVER_KEY_CONTEXT, descriptor, "server_key")
        )
    if client:
        client_key = bytearray(_hmac(salted_password, CLIENT_KEY_CONTEXT, descriptor, "client_key"))
        try:
            keys.stored_key = bytearray(hashlib.new(descriptor.digest_name, client_key).digest())
        except ValueError as exc:
            keys.wipe()
            logger.error("digest_failed", extra={"key": "stored_key"})
            raise CryptoPrimitiveError("digest of client key failed") from exc
        finally:
            client_key[:] = bytes(len(client_key))
    return keys


__all__ = ["ScramKeys", "scram_derive", "stretch"]
