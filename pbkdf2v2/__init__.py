"""
pbkdf2v2: PBKDF2 password credentials for a services daemon.

Turns plaintext passwords into versioned ``$z$...`` credential strings,
verifies candidates against them, and reports when a credential should be
regenerated under the current policy. SCRAM-capable credentials also serve
SASL SCRAM-SHA-1/SHA-256 authentication.
"""

from .config import (
    CredentialPolicy,
    PolicyStore,
    Settings,
    configure_from_settings,
    policy_store,
    reload_policy,
)
from .crypto.codec import (
    CredentialParameters,
    Pbkdf2v2Codec,
    crypt,
    default_codec,
    generate_salt,
    recrypt_needed,
    verify,
)
from .crypto.constants import MODULE_NAME, PRF
from .crypto.errors import (
    CredentialError,
    CryptoPrimitiveError,
    EmptyPasswordError,
    EncodingError,
    NormalizationError,
    ParseError,
    RangeError,
    UnknownPRFError,
)
from .crypto.scram import ScramCredential, scram_dbextract, scram_normalize
from .utils.metrics import metrics_response

__version__ = "1.0.0"

__all__ = [
    "MODULE_NAME",
    "PRF",
    "CredentialError",
    "CredentialParameters",
    "CredentialPolicy",
    "CryptoPrimitiveError",
    "EmptyPasswordError",
    "EncodingError",
    "NormalizationError",
    "ParseError",
    "Pbkdf2v2Codec",
    "PolicyStore",
    "RangeError",
    "ScramCredential",
    "Settings",
    "UnknownPRFError",
    "configure_from_settings",
    "crypt",
    "default_codec",
    "generate_salt",
    "metrics_response",
    "policy_store",
    "recrypt_needed",
    "reload_policy",
    "scram_dbextract",
    "scram_normalize",
    "verify",
]
