# -----------------------------
# Error Taxonomy
# -----------------------------
class LpopError(Exception):
    """Base class for every error raised by the secure exchange core."""


class DecodeError(LpopError, ValueError):
    """Malformed printable encoding, token or payload."""


class InvalidKeyError(LpopError, ValueError):
    """Key material with the wrong length or structure."""


class AuthenticationError(LpopError, ValueError):
    """
    Integrity check failed while opening a sealed payload.

    Raised for tampered or truncated ciphertexts and for ciphertexts sealed
    under a different shared secret (including wrong-recipient decryption).
    """


class KeyStorageError(LpopError, OSError):
    """The device key location could not be written or cleaned up."""
