"""Exception hierarchy for credential parsing and derivation."""

from __future__ import annotations


class CredentialError(Exception):
    """Base credential error."""


class ParseError(CredentialError):
    """Raised when a stored string matches no layout valid for the requested mode."""


class UnknownPRFError(CredentialError):
    """Raised when a PRF identifier is outside the known enumeration."""


class RangeError(CredentialError):
    """Raised when the salt length or iteration count is outside policy bounds."""


class EncodingError(CredentialError):
    """Raised when base64 decoding/encoding fails or yields the wrong length."""


class EmptyPasswordError(CredentialError):
    """Raised when a zero-length password reaches the key stretcher."""


class NormalizationError(CredentialError):
    """Raised when SASLprep rejects the password or it exceeds the length bound."""


class CryptoPrimitiveError(CredentialError):
    """Raised when an underlying HMAC, PBKDF2 or digest call fails."""


__all__ = [
    "CredentialError",
    "CryptoPrimitiveError",
    "EmptyPasswordError",
    "EncodingError",
    "NormalizationError",
    "ParseError",
    "RangeError",
    "UnknownPRFError",
]
