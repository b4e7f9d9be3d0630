"""SASLprep (RFC 4013) password normalization for SCRAM-mode credentials."""

from __future__ import annotations

import stringprep
import unicodedata
from collections.abc import Callable

from ..utils.logging import get_logger
from .constants import PASSLEN
from .errors import NormalizationError

logger = get_logger(__name__)

Normalizer = Callable[[str], str]

# RFC 4013 section 2.3
_PROHIBITED: tuple[tuple[str, Callable[[str], bool]], ...] = (
    ("non-ASCII space", stringprep.in_table_c12),
    ("ASCII control", stringprep.in_table_c21),
    ("non-ASCII control", stringprep.in_table_c22),
    ("private use", stringprep.in_table_c3),
    ("non-character code point", stringprep.in_table_c4),
    ("surrogate code point", stringprep.in_table_c5),
    ("inappropriate for plain text", stringprep.in_table_c6),
    ("inappropriate for canonical representation", stringprep.in_table_c7),
    ("change display property or deprecated", stringprep.in_table_c8),
    ("tagging character", stringprep.in_table_c9),
    ("unassigned code point", stringprep.in_table_a1),
)


def saslprep(password: str, max_length: int = PASSLEN) -> str:
    """Apply the SASLprep profile to ``password``.

    Raises :class:`NormalizationError` when the input or output exceeds
    ``max_length`` UTF-8 bytes, contains a prohibited or unassigned code
    point, or violates the bidirectional text rules.
    """

    if _utf8_length(password) > max_length:
        logger.debug("saslprep_input_too_long", extra={"max_length": max_length})
        raise NormalizationError("password exceeds the normalization bound")

    # Mapping: non-ASCII space to SPACE, commonly-mapped-to-nothing removed.
    mapped = "".join(
        " " if stringprep.in_table_c12(char) else char
        for char in password
        if not stringprep.in_table_b1(char)
    )
    normalized = unicodedata.ucd_3_2_0.normalize("NFKC", mapped)

    for char in normalized:
        for reason, in_table in _PROHIBITED:
            if in_table(char):
                logger.debug("saslprep_prohibited", extra={"reason": reason})
                raise NormalizationError(f"prohibited character ({reason})")

    if any(stringprep.in_table_d1(char) for char in normalized):
        if any(stringprep.in_table_d2(char) for char in normalized):
            logger.debug("saslprep_bidi_mixed")
            raise NormalizationError("string contains both RandALCat and LCat characters")
        if not (stringprep.in_table_d1(normalized[0]) and stringprep.in_table_d1(normalized[-1])):
            logger.debug("saslprep_bidi_boundary")
            raise NormalizationError("RandALCat string must start and end with RandALCat")

    if _utf8_length(normalized) > max_length:
        logger.debug("saslprep_output_too_long", extra={"max_length": max_length})
        raise NormalizationError("normalized password exceeds the bound")

    return normalized


def _utf8_length(text: str) -> int:
    try:
        return len(text.encode("utf-8"))
    except UnicodeEncodeError as exc:
        raise NormalizationError("password is not valid Unicode text") from exc


__all__ = ["Normalizer", "saslprep"]
