"""Turn one wire value into one plaintext number."""

import logging
import math
from dataclasses import dataclass
from typing import Union

from .codec import ByteTriple, decode_wire, encode_wire, is_encrypted
from .encryption import KeyHandle, open_triple, seal
from .errors import DecryptionError, FormatError, NonNumericPlaintextError

logger = logging.getLogger(__name__)

# Value written into a reassembled tree for a leaf that failed to decrypt.
# It is never a measurement: every failed leaf is also reported explicitly.
FAILURE_SENTINEL = 0.0


@dataclass(frozen=True)
class Plaintext:
    value: float


@dataclass(frozen=True)
class Failed:
    reason: str


DecryptionOutcome = Union[Plaintext, Failed]


def _parse_number(text: str) -> float:
    try:
        value = float(text)
    except (TypeError, ValueError) as e:
        raise NonNumericPlaintextError(f"Plaintext is not numeric: {text!r}") from e
    if math.isnan(value):
        raise NonNumericPlaintextError("Plaintext is NaN")
    return value


def decrypt_text(raw: str, key: KeyHandle) -> str:
    """Decrypt an encrypted wire value to its plaintext string."""
    triple = decode_wire(raw)
    plaintext = open_triple(key, triple.nonce, triple.ciphertext, triple.tag)
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise NonNumericPlaintextError("Plaintext is not UTF-8") from e


def _plain_value(raw) -> float:
    if isinstance(raw, bool):
        raise FormatError("Boolean is not a measurement")
    if isinstance(raw, (int, float)):
        return float(raw)
    if not isinstance(raw, str):
        raise FormatError(f"Unsupported wire value type: {type(raw).__name__}")
    try:
        return _parse_number(raw)
    except NonNumericPlaintextError as e:
        raise FormatError(f"Unencrypted value is not numeric: {raw!r}") from e


def decrypt_value(raw, key: KeyHandle) -> float:
    """Decrypt one wire value to a float.

    Numbers and strings without the separator pass through, parsed as float.
    Raises FormatError, AuthenticationError or NonNumericPlaintextError.
    """
    if not is_encrypted(raw):
        return _plain_value(raw)
    return _parse_number(decrypt_text(raw, key))


def try_decrypt_value(raw, key: KeyHandle) -> DecryptionOutcome:
    try:
        return Plaintext(decrypt_value(raw, key))
    except DecryptionError as e:
        return Failed(e.reason)


def plain_outcome(raw) -> DecryptionOutcome:
    """Outcome for a leaf that carries no ciphertext; needs no key."""
    if is_encrypted(raw):
        return Failed(FormatError.reason)
    try:
        return Plaintext(_plain_value(raw))
    except DecryptionError as e:
        return Failed(e.reason)


def parse_plaintext(text: str | None) -> DecryptionOutcome:
    """Outcome for plaintext returned by a remote boundary; None is a failed item."""
    if text is None:
        return Failed("decryption")
    try:
        return Plaintext(_parse_number(text))
    except NonNumericPlaintextError as e:
        return Failed(e.reason)


def outcome_value(outcome: DecryptionOutcome) -> float:
    if isinstance(outcome, Plaintext):
        return outcome.value
    return FAILURE_SENTINEL


def encrypt_value(plaintext: str, key: KeyHandle, nonce: bytes | None = None) -> str:
    """Produce a wire value for ``plaintext``; the inverse of ``decrypt_text``."""
    triple: ByteTriple = seal(key, plaintext.encode("utf-8"), nonce)
    return encode_wire(triple)
