"""Wire format for encrypted measurements: ``NONCE^CIPHERTEXT^TAG``.

Each segment is Base64, but upstream emits a custom alphabet that has to be
repaired before standard decoding. Every substitution seen in upstream
payloads is listed in ``ALPHABET_SUBSTITUTIONS`` and applied uniformly to all
callers.
"""

import base64
import binascii
from dataclasses import dataclass

from .errors import FormatError

SEPARATOR = "^"

NONCE_SIZE = 12
TAG_SIZE = 16

# Applied in order before standard Base64 decoding.
ALPHABET_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ("-", "+"),
    ("_", "/"),
    ("$", "="),  # padding substitute
    ("~", "&"),  # observed upstream, never present in valid segments
)

# Inverse of the first three rows, used when producing wire text.
_ENCODE_SUBSTITUTIONS: tuple[tuple[str, str], ...] = (
    ("+", "-"),
    ("/", "_"),
    ("=", "$"),
)


@dataclass(frozen=True)
class ByteTriple:
    nonce: bytes
    ciphertext: bytes
    tag: bytes


def repair_alphabet(segment: str) -> str:
    for old, new in ALPHABET_SUBSTITUTIONS:
        segment = segment.replace(old, new)
    return segment


def decode_segment(segment: str) -> bytes:
    """Decode one custom-alphabet Base64 segment.

    Raises FormatError when the repaired text is not valid standard Base64.
    """
    repaired = repair_alphabet(segment)
    # Unpadded segments are accepted; a length of 1 mod 4 is never valid.
    if "=" not in repaired and len(repaired) % 4 in (2, 3):
        repaired += "=" * (4 - len(repaired) % 4)
    try:
        return base64.b64decode(repaired, validate=True)
    except (binascii.Error, ValueError) as e:
        raise FormatError(f"Invalid Base64 segment: {e}") from e


def encode_segment(data: bytes) -> str:
    text = base64.b64encode(data).decode("ascii")
    for old, new in _ENCODE_SUBSTITUTIONS:
        text = text.replace(old, new)
    return text


def is_encrypted(value) -> bool:
    """A wire value is encrypted iff it is a string containing the separator."""
    return isinstance(value, str) and SEPARATOR in value


def split_triple(wire: str) -> tuple[str, str, str]:
    parts = wire.split(SEPARATOR)
    if len(parts) != 3 or not all(parts):
        raise FormatError(
            f"Expected 3 non-empty segments separated by '{SEPARATOR}', got {len(parts)}"
        )
    return parts[0], parts[1], parts[2]


def join_triple(nonce: str, ciphertext: str, tag: str) -> str:
    return SEPARATOR.join((nonce, ciphertext, tag))


def decode_wire(wire: str) -> ByteTriple:
    """Split and decode a wire value, checking the fixed segment lengths."""
    nonce_s, ct_s, tag_s = split_triple(wire)
    nonce = decode_segment(nonce_s)
    ciphertext = decode_segment(ct_s)
    tag = decode_segment(tag_s)
    if len(nonce) != NONCE_SIZE:
        raise FormatError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    if len(tag) != TAG_SIZE:
        raise FormatError(f"Tag must be {TAG_SIZE} bytes, got {len(tag)}")
    return ByteTriple(nonce=nonce, ciphertext=ciphertext, tag=tag)


def encode_wire(triple: ByteTriple) -> str:
    return join_triple(
        encode_segment(triple.nonce),
        encode_segment(triple.ciphertext),
        encode_segment(triple.tag),
    )
