"""
PBKDF2v2 credential codec.

Public surface used by the services daemon's crypt layer:

    salt()                    fresh salt-only parameter string from the policy
    crypt(password, params)   full stored string for a new or reset password
    verify(password, stored)  True when the password matches
    recrypt_needed(stored)    True when the credential predates current policy

Every operation re-parses the stored string, re-derives from scratch and wipes
its scratch buffers before returning. Failures are logged and reported as
``None``/``False``; no exception escapes the public methods.
"""

from __future__ import annotations

import hmac
import secrets
import string
from dataclasses import dataclass, field

from .. import config
from ..config import CredentialPolicy, PolicyStore
from ..utils.logging import get_logger
from ..utils.metrics import observe_operation
from .constants import HASH_PREFIX, MODULE_NAME, PASSLEN
from .derive import ScramKeys, scram_derive, stretch
from .errors import CredentialError, EmptyPasswordError, EncodingError
from .formats import (
    LegacyLayout,
    SaltOnlyLayout,
    ScramLayout,
    StoredLayout,
    b64encode,
    check_layout_mode,
    check_parameters,
    decode_key,
    decode_salt,
    parse,
    parse_salt_view,
    salt_length,
)
from .prf import PRF_TABLE, PRFDescriptor, resolve_prf
from .saslprep import Normalizer, saslprep

logger = get_logger(__name__)

_SALT_CHARS = string.ascii_uppercase + string.ascii_lowercase + string.digits

_DEFAULT_NORMALIZER = object()


def _wipe(buffer: bytearray | None) -> None:
    if buffer is not None:
        buffer[:] = bytes(len(buffer))


@dataclass
class CredentialParameters:
    """Parsed parameters plus digest slots for a single codec call."""

    layout: StoredLayout
    descriptor: PRFDescriptor
    salt: bytes
    # freshly computed stretched key
    cdg: bytearray = field(default_factory=bytearray)
    # stored digest (legacy layout)
    sdg: bytearray | None = None
    # stored server key and stored client key (SCRAM layout)
    ssk: bytearray | None = None
    shk: bytearray | None = None

    def wipe(self) -> None:
        for buffer in (self.cdg, self.sdg, self.ssk, self.shk):
            _wipe(buffer)


class Pbkdf2v2Codec:
    """Credential codec bound to a policy store and an optional normalizer."""

    name = MODULE_NAME

    def __init__(
        self,
        policy_store: PolicyStore | None = None,
        normalizer: Normalizer | None | object = _DEFAULT_NORMALIZER,
    ) -> None:
        self._policy_store = policy_store or config.policy_store
        if normalizer is _DEFAULT_NORMALIZER:
            normalizer = saslprep if config.settings.SASLPREP_ENABLED else None
        self._normalizer: Normalizer | None = normalizer  # type: ignore[assignment]

    @property
    def policy(self) -> CredentialPolicy:
        return self._policy_store.current

    @property
    def normalizer(self) -> Normalizer | None:
        return self._normalizer

    def salt(self) -> str | None:
        """Return a fresh salt-only parameter string for the current policy."""

        policy = self.policy
        descriptor = PRF_TABLE[policy.prf]
        try:
            if descriptor.salt64:
                salt = b64encode(secrets.token_bytes(policy.salt_length))
            else:
                salt = "".join(secrets.choice(_SALT_CHARS) for _ in range(policy.salt_length))
        except (OSError, NotImplementedError):
            logger.exception("salt_generation_failed")
            observe_operation("salt", "error")
            return None

        result = f"{HASH_PREFIX}{int(policy.prf)}${policy.iterations}${salt}$"
        if len(result) >= PASSLEN:
            logger.error("salt_result_overflow", extra={"length": len(result)})
            observe_operation("salt", "error")
            return None

        observe_operation("salt", "success")
        return result

    def compute(self, password: str, parameters: str, verifying: bool) -> CredentialParameters:
        """Parse ``parameters`` and stretch ``password`` under them.

        Raises a :class:`CredentialError` subclass on any failure; the
        returned record must be wiped by the caller.
        """

        layout = parse(parameters, verifying)
        descriptor = resolve_prf(layout.prf, self._normalizer is not None)
        if not isinstance(layout, SaltOnlyLayout):
            check_layout_mode(layout, descriptor)

        if descriptor.scram and self._normalizer is not None:
            password = self._normalizer(password)

        salt = decode_salt(layout.salt, descriptor)
        check_parameters(len(salt), layout.iterations)

        try:
            secret = password.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncodingError("password is not encodable as UTF-8") from exc
        if not secret:
            logger.error("password_empty")
            raise EmptyPasswordError("password length == 0")

        parsed = CredentialParameters(layout=layout, descriptor=descriptor, salt=salt)
        try:
            if isinstance(layout, ScramLayout):
                parsed.ssk = decode_key(layout.server_key, descriptor, "server_key")
                parsed.shk = decode_key(layout.stored_key, descriptor, "stored_key")
            elif isinstance(layout, LegacyLayout):
                parsed.sdg = decode_key(layout.digest, descriptor, "digest")
            parsed.cdg = stretch(secret, salt, layout.iterations, descriptor)
        except CredentialError:
            parsed.wipe()
            raise
        return parsed

    def crypt(self, password: str, parameters: str) -> str | None:
        """Compute a complete stored string from a salt-only parameter string."""

        parsed: CredentialParameters | None = None
        keys = ScramKeys()
        try:
            parsed = self.compute(password, parameters, verifying=False)
            layout = parsed.layout
            prefix = f"{HASH_PREFIX}{layout.prf}${layout.iterations}${layout.salt}$"

            if parsed.descriptor.scram:
                keys = scram_derive(parsed.cdg, parsed.descriptor)
                result = f"{prefix}{b64encode(keys.server_key)}${b64encode(keys.stored_key)}"
            else:
                result = f"{prefix}{b64encode(parsed.cdg)}"

            if len(result) >= PASSLEN:
                logger.error("crypt_result_overflow", extra={"length": len(result)})
                raise EncodingError("stored credential would exceed PASSLEN")
        except CredentialError as exc:
            logger.debug("crypt_failed", extra={"error": type(exc).__name__})
            observe_operation("crypt", "error")
            return None
        finally:
            keys.wipe()
            if parsed is not None:
                parsed.wipe()

        observe_operation("crypt", "success")
        return result

    def verify(self, password: str, stored: str) -> bool:
        """Check ``password`` against a stored legacy or SCRAM credential."""

        parsed: CredentialParameters | None = None
        keys = ScramKeys()
        try:
            parsed = self.compute(password, stored, verifying=True)
            if parsed.ssk is not None:
                keys = scram_derive(parsed.cdg, parsed.descriptor, client=False)
                matched = hmac.compare_digest(bytes(parsed.ssk), bytes(keys.server_key or b""))
                field_name = "server_key"
            else:
                matched = hmac.compare_digest(bytes(parsed.sdg or b""), bytes(parsed.cdg))
                field_name = "digest"
        except CredentialError as exc:
            logger.debug("verify_failed", extra={"error": type(exc).__name__})
            observe_operation("verify", "error")
            return False
        finally:
            keys.wipe()
            if parsed is not None:
                parsed.wipe()

        if not matched:
            logger.debug("credential_mismatch", extra={"field": field_name})
            observe_operation("verify", "mismatch")
            return False

        observe_operation("verify", "success")
        return True

    def recrypt_needed(self, stored: str) -> bool | None:
        """Whether ``stored`` was produced under a different policy.

        Returns ``None`` when the parameter prefix cannot be read.
        """

        policy = self.policy
        try:
            layout = parse_salt_view(stored)
        except CredentialError:
            logger.error("recrypt_unparseable")
            observe_operation("recrypt", "error")
            return None

        if layout.prf != policy.prf:
            logger.debug(
                "recrypt_prf_changed",
                extra={"prf": layout.prf, "default": int(policy.prf)},
            )
            observe_operation("recrypt", "needed")
            return True
        if layout.iterations != policy.iterations:
            logger.debug(
                "recrypt_rounds_changed",
                extra={"iterations": layout.iterations, "default": policy.iterations},
            )
            observe_operation("recrypt", "needed")
            return True

        try:
            length = salt_length(layout, PRF_TABLE[policy.prf])
        except CredentialError:
            logger.error("recrypt_salt_undecodable")
            observe_operation("recrypt", "error")
            return None
        if length != policy.salt_length:
            logger.debug(
                "recrypt_salt_length_changed",
                extra={"salt_length": length, "default": policy.salt_length},
            )
            observe_operation("recrypt", "needed")
            return True

        observe_operation("recrypt", "current")
        return False


default_codec = Pbkdf2v2Codec()


def generate_salt() -> str | None:
    """Fresh salt-only parameter string under the process policy."""

    return default_codec.salt()


def crypt(password: str, parameters: str) -> str | None:
    return default_codec.crypt(password, parameters)


def verify(password: str, stored: str) -> bool:
    return default_codec.verify(password, stored)


def recrypt_needed(stored: str) -> bool | None:
    return default_codec.recrypt_needed(stored)


__all__ = [
    "CredentialParameters",
    "Pbkdf2v2Codec",
    "crypt",
    "default_codec",
    "generate_salt",
    "recrypt_needed",
    "verify",
]
