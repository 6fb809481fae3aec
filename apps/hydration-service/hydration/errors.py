"""Exception taxonomy for the decryption subsystem."""


class DecryptionError(Exception):
    """Base class for anything that prevents a value from decrypting."""

    reason = "error"


class FormatError(DecryptionError):
    """Malformed wire text: segment count, Base64, or decoded lengths."""

    reason = "format"


class AuthenticationError(DecryptionError):
    """The AEAD tag did not verify (tampered value or wrong key)."""

    reason = "authentication"


class NonNumericPlaintextError(DecryptionError):
    reason = "non-numeric plaintext"


class InvalidKeyError(Exception):
    """Key material missing or of an unsupported length."""


class TransportError(Exception):
    """The decrypting boundary was unreachable or returned non-success."""

    reason = "transport"


class UpstreamError(Exception):
    """The third-party measurement API failed."""
