"""
Pytest configuration and shared fixtures for the pbkdf2v2 test suite.

Provides:
- Test logging setup
- Codec fixtures bound to an isolated policy store
- A helper for building salt-only parameter strings for any PRF
"""

import base64
import logging
from collections.abc import Callable

import pytest

from pbkdf2v2.config import CredentialPolicy, PolicyStore
from pbkdf2v2.crypto.codec import Pbkdf2v2Codec
from pbkdf2v2.crypto.constants import ITERCNT_MIN, PRF
from pbkdf2v2.crypto.prf import PRF_TABLE
from pbkdf2v2.crypto.saslprep import saslprep

# ============================================================================
# Logging Configuration for Tests
# ============================================================================


def setup_test_logging():
    """Configure logging for test runs."""
    logger = logging.getLogger("tests")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)-20s | %(funcName)-25s | %(message)s",
        datefmt="%H:%M:%S",
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


test_logger = setup_test_logging()


def pytest_configure(config):
    """Pytest configuration hook."""
    test_logger.info("Starting pbkdf2v2 test suite")
    config.addinivalue_line("markers", "slow: Tests running many PBKDF2 derivations")


def pytest_runtest_setup(item):
    """Called before each test runs."""
    test_logger.debug(f"Setting up test: {item.nodeid}")


# ============================================================================
# Policy and Codec Fixtures
# ============================================================================

# 16 raw bytes; also valid as a 24-character legacy salt once base64-encoded.
SALT_BYTES = bytes(range(16))


@pytest.fixture
def fast_policy() -> CredentialPolicy:
    """Policy at the minimum iteration count so derivations stay quick."""
    return CredentialPolicy(prf=PRF.HMAC_SHA2_512_S64, iterations=ITERCNT_MIN)


@pytest.fixture
def store(fast_policy: CredentialPolicy) -> PolicyStore:
    return PolicyStore(fast_policy)


@pytest.fixture
def codec(store: PolicyStore) -> Pbkdf2v2Codec:
    """Codec with SASLprep normalization available."""
    return Pbkdf2v2Codec(policy_store=store, normalizer=saslprep)


@pytest.fixture
def codec_without_saslprep(store: PolicyStore) -> Pbkdf2v2Codec:
    """Codec running in degraded mode with no normalizer."""
    return Pbkdf2v2Codec(policy_store=store, normalizer=None)


def build_salt_params(
    prf: int,
    iterations: int = ITERCNT_MIN,
    salt: bytes = SALT_BYTES,
    trailing: bool = True,
) -> str:
    """Return a salt-only parameter string for ``prf``.

    Base64-salted PRFs get ``salt`` encoded; raw-salted PRFs get the
    base64 text itself used as the printable salt.
    """
    salt_text = base64.b64encode(salt).decode("ascii")
    suffix = "$" if trailing else ""
    return f"$z${int(prf)}${iterations}${salt_text}{suffix}"


def raw_salt_for(prf: int, salt: bytes = SALT_BYTES) -> bytes:
    """The salt bytes PBKDF2 actually consumes for :func:`build_salt_params`."""
    salt_text = base64.b64encode(salt)
    return salt if PRF_TABLE[prf].salt64 else salt_text


@pytest.fixture
def salt_params() -> Callable[..., str]:
    return build_salt_params


@pytest.fixture
def raw_salt() -> Callable[..., bytes]:
    return raw_salt_for
