"""
Runtime configuration for the pbkdf2v2 credential module.

Settings are loaded from the environment (prefix ``PBKDF2V2_``) or a local
``.env`` file via pydantic-settings:

    PBKDF2V2_DIGEST            default PRF selector (SHA1, SHA256, SHA512,
                               SCRAM-SHA1, SCRAM-SHA256)
    PBKDF2V2_ROUNDS            default iteration count
    PBKDF2V2_SASLPREP_ENABLED  whether SCRAM passwords are SASLprep-normalized
    PBKDF2V2_LOG_LEVEL         logging level
    PBKDF2V2_LOG_JSON          emit JSON log lines
    PBKDF2V2_SERVICE_NAME      service name stamped on log lines
    PBKDF2V2_METRICS_NAMESPACE Prometheus namespace

The default PRF and iteration count form the process-wide credential policy.
Operations read an immutable :class:`CredentialPolicy` snapshot from the
:class:`PolicyStore`; a configuration reload swaps the snapshot as a whole.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .crypto.constants import (
    DIGEST_DEF,
    DIGEST_SELECTOR_DEF,
    DIGEST_SELECTORS,
    ITERCNT_DEF,
    ITERCNT_MAX,
    ITERCNT_MIN,
    PRF,
    SALTLEN_DEF,
    SALTLEN_MAX,
    SALTLEN_MIN,
    SCRAM_SELECTORS,
)
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


class Settings(BaseSettings):
    """Environment-driven settings for the credential module."""

    model_config = SettingsConfigDict(
        env_prefix="PBKDF2V2_",
        env_file=".env",
        extra="ignore",
    )

    DIGEST: str = DIGEST_SELECTOR_DEF
    ROUNDS: int = Field(default=ITERCNT_DEF, ge=ITERCNT_MIN, le=ITERCNT_MAX)
    SASLPREP_ENABLED: bool = True

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    SERVICE_NAME: str = "pbkdf2v2"
    METRICS_NAMESPACE: str = "pbkdf2v2"

    @field_validator("DIGEST")
    @classmethod
    def normalize_digest(cls, value: str) -> str:
        return value.strip().upper()


@dataclass(frozen=True)
class CredentialPolicy:
    """Defaults that new credentials are generated with."""

    prf: PRF = DIGEST_DEF
    iterations: int = ITERCNT_DEF
    salt_length: int = SALTLEN_DEF

    def __post_init__(self) -> None:
        if not ITERCNT_MIN <= self.iterations <= ITERCNT_MAX:
            raise ValueError(
                f"iteration count {self.iterations} outside [{ITERCNT_MIN}, {ITERCNT_MAX}]"
            )
        if not SALTLEN_MIN <= self.salt_length <= SALTLEN_MAX:
            raise ValueError(
                f"salt length {self.salt_length} outside [{SALTLEN_MIN}, {SALTLEN_MAX}]"
            )
        object.__setattr__(self, "prf", PRF(self.prf))


def resolve_digest_selector(selector: str | None, saslprep_enabled: bool = True) -> PRF:
    """Map a configured digest selector onto the PRF used for new credentials."""

    if not selector:
        logger.warning("digest_selector_missing", extra={"default": DIGEST_SELECTOR_DEF})
        return DIGEST_DEF

    key = selector.strip().upper()
    if key in SCRAM_SELECTORS and not saslprep_enabled:
        logger.warning(
            "digest_selector_requires_saslprep",
            extra={"selector": key, "default": DIGEST_SELECTOR_DEF},
        )
        return DIGEST_DEF

    prf = DIGEST_SELECTORS.get(key)
    if prf is None:
        logger.warning(
            "digest_selector_invalid",
            extra={"selector": key, "default": DIGEST_SELECTOR_DEF},
        )
        return DIGEST_DEF
    return prf


def load_policy(config: Settings) -> CredentialPolicy:
    """Build a :class:`CredentialPolicy` from loaded settings."""

    return CredentialPolicy(
        prf=resolve_digest_selector(config.DIGEST, config.SASLPREP_ENABLED),
        iterations=config.ROUNDS,
    )


class PolicyStore:
    """Holder for the current policy snapshot.

    Readers take ``current`` without locking; the attribute is only ever
    rebound to a new immutable snapshot, never mutated in place.
    """

    def __init__(self, policy: CredentialPolicy | None = None) -> None:
        self._policy = policy or CredentialPolicy()
        self._lock = threading.Lock()

    @property
    def current(self) -> CredentialPolicy:
        return self._policy

    def reload(self, policy: CredentialPolicy) -> CredentialPolicy:
        """Install ``policy`` and return the snapshot it replaced."""

        with self._lock:
            previous = self._policy
            self._policy = policy
        logger.info(
            "credential_policy_reloaded",
            extra={
                "prf": int(policy.prf),
                "iterations": policy.iterations,
                "salt_length": policy.salt_length,
            },
        )
        return previous


settings = Settings()
policy_store = PolicyStore(load_policy(settings))


def reload_policy(config: Settings | None = None) -> CredentialPolicy:
    """Re-read settings and swap the process-wide policy snapshot."""

    global settings

    settings = config or Settings()
    policy = load_policy(settings)
    policy_store.reload(policy)
    return policy


def configure_from_settings(config: Settings | None = None) -> None:
    """Install process logging from the ``LOG_*`` and ``SERVICE_NAME`` settings."""

    config = config or settings
    configure_logging(
        config.LOG_LEVEL,
        service_name=config.SERVICE_NAME,
        json_output=config.LOG_JSON,
    )


__all__ = [
    "CredentialPolicy",
    "PolicyStore",
    "Settings",
    "configure_from_settings",
    "load_policy",
    "policy_store",
    "reload_policy",
    "resolve_digest_selector",
    "settings",
]
