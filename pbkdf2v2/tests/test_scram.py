"""Tests for SCRAM key derivation and credential extraction."""

from __future__ import annotations

import base64
import hashlib
import hmac

import pytest

from pbkdf2v2.crypto import scram as scram_module
from pbkdf2v2.crypto.codec import Pbkdf2v2Codec
from pbkdf2v2.crypto.constants import ITERCNT_MIN, PRF
from pbkdf2v2.crypto.derive import scram_derive, stretch
from pbkdf2v2.crypto.errors import EmptyPasswordError, EncodingError, UnknownPRFError
from pbkdf2v2.crypto.formats import decode_key
from pbkdf2v2.crypto.prf import resolve_prf
from pbkdf2v2.crypto.scram import ScramCredential, extract, scram_dbextract, scram_normalize

PASSWORD = "pencil"


def test_scram_derive_halves_are_independent() -> None:
    descriptor = resolve_prf(int(PRF.SCRAM_SHA2_256_S64))
    salted = bytes(range(32))

    both = scram_derive(salted, descriptor)
    server_only = scram_derive(salted, descriptor, client=False)
    client_only = scram_derive(salted, descriptor, server=False)

    assert server_only.stored_key is None
    assert client_only.server_key is None
    assert server_only.server_key == both.server_key
    assert client_only.stored_key == both.stored_key
    assert both.server_key == hmac.new(salted, b"Server Key", "sha256").digest()
    assert both.stored_key == hashlib.sha256(
        hmac.new(salted, b"Client Key", "sha256").digest()
    ).digest()


def test_scram_keys_wipe_zeroes_buffers() -> None:
    keys = scram_derive(b"k" * 20, resolve_prf(int(PRF.SCRAM_SHA1)))
    keys.wipe()
    assert keys.server_key == bytearray(20)
    assert keys.stored_key == bytearray(20)


def test_stretch_rejects_empty_password() -> None:
    with pytest.raises(EmptyPasswordError):
        stretch(b"", b"saltsalt", ITERCNT_MIN, resolve_prf(int(PRF.HMAC_SHA1)))


def test_stretch_output_length_follows_digest() -> None:
    for prf, length in ((PRF.HMAC_SHA1, 20), (PRF.HMAC_SHA2_256, 32), (PRF.HMAC_SHA2_512, 64)):
        assert len(stretch(b"pw", b"saltsalt", ITERCNT_MIN, resolve_prf(int(prf)))) == length


@pytest.mark.parametrize(
    ("prf", "mechanism"),
    [
        (PRF.SCRAM_SHA1_S64, PRF.SCRAM_SHA1),
        (PRF.SCRAM_SHA2_256_S64, PRF.SCRAM_SHA2_256),
        (PRF.SCRAM_SHA2_256, PRF.SCRAM_SHA2_256),
    ],
)
def test_extract_from_scram_credential(
    codec: Pbkdf2v2Codec, salt_params, raw_salt, prf: PRF, mechanism: PRF
) -> None:
    stored = codec.crypt(PASSWORD, salt_params(prf))
    assert stored is not None
    _, server_key, stored_key = stored.rsplit("$", 2)

    credential = extract(stored)
    assert credential.prf is mechanism
    assert credential.iterations == ITERCNT_MIN
    assert credential.salt == raw_salt(prf)
    assert credential.server_key == base64.b64decode(server_key)
    assert credential.stored_key == base64.b64decode(stored_key)


@pytest.mark.parametrize(
    ("prf", "mechanism"),
    [(PRF.HMAC_SHA1_S64, PRF.SCRAM_SHA1), (PRF.HMAC_SHA2_256, PRF.SCRAM_SHA2_256)],
)
def test_extract_derives_keys_from_legacy_digest(
    codec: Pbkdf2v2Codec, salt_params, prf: PRF, mechanism: PRF
) -> None:
    stored = codec.crypt(PASSWORD, salt_params(prf))
    assert stored is not None
    digest = base64.b64decode(stored.rsplit("$", 1)[1])
    name = resolve_prf(int(prf)).digest_name

    credential = extract(stored)
    assert credential.prf is mechanism
    assert credential.server_key == hmac.new(digest, b"Server Key", name).digest()
    assert credential.stored_key == hashlib.new(
        name, hmac.new(digest, b"Client Key", name).digest()
    ).digest()


def test_legacy_and_scram_credentials_extract_identically(
    codec: Pbkdf2v2Codec, salt_params
) -> None:
    legacy = codec.crypt(PASSWORD, salt_params(PRF.HMAC_SHA2_256_S64))
    scram = codec.crypt(PASSWORD, salt_params(PRF.SCRAM_SHA2_256_S64))
    assert legacy is not None and scram is not None

    from_legacy = extract(legacy)
    from_scram = extract(scram)
    assert from_legacy.server_key == from_scram.server_key
    assert from_legacy.stored_key == from_scram.stored_key


@pytest.mark.parametrize("prf", [PRF.HMAC_SHA2_512_S64, PRF.SCRAM_SHA2_512_S64])
def test_extract_rejects_sha512_families(codec: Pbkdf2v2Codec, salt_params, prf: PRF) -> None:
    stored = codec.crypt(PASSWORD, salt_params(prf))
    assert stored is not None
    with pytest.raises(UnknownPRFError):
        extract(stored)
    assert scram_dbextract(stored) is None


def test_scram_dbextract_reports_failure_as_none(codec: Pbkdf2v2Codec, salt_params) -> None:
    assert scram_dbextract("not a credential") is None
    assert scram_dbextract(salt_params(PRF.SCRAM_SHA2_256_S64)) is None


def test_scram_credential_wipe() -> None:
    stored_key = bytearray(b"\x01" * 20)
    credential = ScramCredential(PRF.SCRAM_SHA1, ITERCNT_MIN, b"saltsalt", bytearray(20), stored_key)
    credential.wipe()
    assert stored_key == bytearray(20)


def test_scram_normalize() -> None:
    assert scram_normalize("I\u00adX") == "IX"
    assert scram_normalize("\u0007") is None


def test_extract_wipes_server_key_when_stored_key_is_bad(
    codec: Pbkdf2v2Codec, salt_params, monkeypatch: pytest.MonkeyPatch
) -> None:
    stored = codec.crypt(PASSWORD, salt_params(PRF.SCRAM_SHA2_256_S64))
    assert stored is not None
    head, server_key, _ = stored.rsplit("$", 2)

    decoded: list[bytearray] = []

    def recording_decode_key(field, descriptor, label):
        buffer = decode_key(field, descriptor, label)
        decoded.append(buffer)
        return buffer

    monkeypatch.setattr(scram_module, "decode_key", recording_decode_key)
    with pytest.raises(EncodingError):
        extract(f"{head}${server_key}$AAAA")
    assert decoded == [bytearray(32)]
