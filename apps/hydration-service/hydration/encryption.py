"""AES-GCM (96-bit nonce, 128-bit tag) for measurement values.

The key is imported once into a ``KeyHandle`` and passed explicitly to every
call. Only a short fingerprint of the key is ever logged.
"""

import base64
import binascii
import hashlib
import logging
import os
from dataclasses import dataclass, field

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .codec import NONCE_SIZE, TAG_SIZE, ByteTriple
from .errors import AuthenticationError, FormatError, InvalidKeyError

logger = logging.getLogger(__name__)

SUPPORTED_KEY_SIZES = (16, 32)

_handles: dict[str, "KeyHandle"] = {}


@dataclass(frozen=True)
class KeyHandle:
    fingerprint: str
    _aesgcm: AESGCM = field(repr=False, compare=False)

    @property
    def short_id(self) -> str:
        return self.fingerprint[:8]


def _fingerprint(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


def import_key(key_b64: str) -> KeyHandle:
    """Import a Base64 shared key into a decrypt handle.

    Handles are cached by fingerprint, so importing the same material twice
    returns the same object. Raises InvalidKeyError for missing, non-Base64,
    or wrongly sized key material.
    """
    if not key_b64:
        raise InvalidKeyError("Encryption key is not configured")
    try:
        raw = base64.b64decode(key_b64.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidKeyError("Encryption key is not valid Base64") from e
    if len(raw) not in SUPPORTED_KEY_SIZES:
        raise InvalidKeyError(
            f"Encryption key must be one of {SUPPORTED_KEY_SIZES} bytes, got {len(raw)}"
        )

    fp = _fingerprint(raw)
    handle = _handles.get(fp)
    if handle is None:
        handle = KeyHandle(fingerprint=fp, _aesgcm=AESGCM(raw))
        _handles[fp] = handle
        logger.info(f"Imported AES-{len(raw) * 8}-GCM key {handle.short_id}")
    return handle


def generate_key(size: int = 32) -> str:
    """Return fresh Base64 key material (AES-256 by default)."""
    if size not in SUPPORTED_KEY_SIZES:
        raise InvalidKeyError(f"Unsupported key size: {size}")
    return base64.b64encode(AESGCM.generate_key(bit_length=size * 8)).decode()


def open_triple(key: KeyHandle, nonce: bytes, ciphertext: bytes, tag: bytes) -> bytes:
    """Authenticated decryption of a detached-tag triple.

    AES-GCM expects ciphertext || tag, so the tag is appended before
    decrypting. Raises AuthenticationError when the tag does not verify.
    """
    if len(nonce) != NONCE_SIZE:
        raise FormatError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    if len(tag) != TAG_SIZE:
        raise FormatError(f"Tag must be {TAG_SIZE} bytes, got {len(tag)}")
    try:
        return key._aesgcm.decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as e:
        raise AuthenticationError("Authentication tag did not verify") from e


def seal(key: KeyHandle, plaintext: bytes, nonce: bytes | None = None) -> ByteTriple:
    """Encrypt ``plaintext`` and split off the tag, mirroring ``open_triple``."""
    if nonce is None:
        nonce = os.urandom(NONCE_SIZE)
    if len(nonce) != NONCE_SIZE:
        raise FormatError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    combined = key._aesgcm.encrypt(nonce, plaintext, None)
    return ByteTriple(
        nonce=nonce,
        ciphertext=combined[:-TAG_SIZE],
        tag=combined[-TAG_SIZE:],
    )
