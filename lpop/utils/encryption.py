import secrets
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from lpop.exceptions import AuthenticationError
from lpop.models import SharedSecret

# -----------------------------
# Sealed Layout
# -----------------------------
IV_LEN = 12   # 96-bit GCM nonce
TAG_LEN = 16  # 128-bit GCM tag
HEADER_LEN = IV_LEN + TAG_LEN

# -----------------------------
# Authenticated Encryption
# -----------------------------
def seal(plaintext: bytes, shared_secret: bytes) -> bytes:
    """
    Encrypt and authenticate a payload under a KEM shared secret.

    AES-256-GCM keyed directly with the 32-byte shared secret:
    - Fresh random IV per call, so sealing the same payload twice under the
      same secret gives different outputs
    - GCM tag covers the whole ciphertext
    - Output layout is iv (12) || tag (16) || ciphertext

    Args:
        plaintext: Payload bytes (may be empty)
        shared_secret: 32-byte secret from encaps()/decaps()

    Returns:
        Sealed bytes
    """
    key = SharedSecret(shared_secret)
    iv = secrets.token_bytes(IV_LEN)
    ct_and_tag = AESGCM(key).encrypt(iv, bytes(plaintext), None)
    # cryptography appends the tag; move it up front
    return iv + ct_and_tag[-TAG_LEN:] + ct_and_tag[:-TAG_LEN]

def open_sealed(sealed: bytes, shared_secret: bytes) -> bytes:
    """
    Verify and decrypt a payload produced by seal().

    Raises:
        AuthenticationError: If the input is truncated, was modified, or was
            sealed under a different shared secret. No plaintext is ever
            returned on failure.
    """
    key = SharedSecret(shared_secret)
    sealed = bytes(sealed)
    if len(sealed) < HEADER_LEN:
        raise AuthenticationError("Sealed payload is truncated")
    iv, tag, ct = sealed[:IV_LEN], sealed[IV_LEN:HEADER_LEN], sealed[HEADER_LEN:]
    try:
        return AESGCM(key).decrypt(iv, ct + tag, None)
    except InvalidTag:
        raise AuthenticationError("Authentication failed: payload was tampered with or sealed for another key") from None
