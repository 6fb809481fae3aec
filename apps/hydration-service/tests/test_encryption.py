"""Tests for key import and AES-GCM open/seal."""

import base64

import pytest

from hydration.encryption import generate_key, import_key, open_triple, seal
from hydration.errors import AuthenticationError, FormatError, InvalidKeyError

from conftest import TEST_KEY_B64


def test_import_key_is_cached_by_fingerprint(key):
    again = import_key(TEST_KEY_B64)
    assert again is key
    assert len(key.short_id) == 8


def test_import_key_accepts_aes128():
    handle = import_key(base64.b64encode(bytes(16)).decode())
    assert handle.fingerprint


@pytest.mark.parametrize("material", ["", "not base64!", base64.b64encode(bytes(24)).decode()])
def test_import_key_rejects_bad_material(material):
    with pytest.raises(InvalidKeyError):
        import_key(material)


def test_key_material_not_in_repr(key):
    assert TEST_KEY_B64 not in repr(key)
    assert "AESGCM" not in repr(key)


def test_generate_key_imports():
    assert import_key(generate_key()).fingerprint


def test_seal_then_open(key):
    triple = seal(key, b"42.5", bytes(12))
    assert len(triple.tag) == 16
    assert len(triple.ciphertext) == 4
    assert open_triple(key, triple.nonce, triple.ciphertext, triple.tag) == b"42.5"


def test_open_with_wrong_key_fails_authentication(key):
    triple = seal(key, b"42.5")
    other = import_key(generate_key())
    with pytest.raises(AuthenticationError):
        open_triple(other, triple.nonce, triple.ciphertext, triple.tag)


def test_open_rejects_bad_nonce_length(key):
    triple = seal(key, b"1")
    with pytest.raises(FormatError):
        open_triple(key, triple.nonce[:8], triple.ciphertext, triple.tag)


def test_open_rejects_bad_tag_length(key):
    triple = seal(key, b"1")
    with pytest.raises(FormatError):
        open_triple(key, triple.nonce, triple.ciphertext, triple.tag[:12])
