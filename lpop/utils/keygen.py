from kyber_py.ml_kem import ML_KEM_768  # Using ML_KEM_768 for ~128-bit security

from lpop.exceptions import InvalidKeyError
from lpop.models import (
    SharedSecret, PUBLIC_KEY_LEN, PRIVATE_KEY_LEN, ENCAPSULATED_KEY_LEN
)

# -----------------------------
# ML-KEM Key Encapsulation
# -----------------------------
def generate_keypair() -> tuple[bytes, bytes]:
    """
    Fresh ML-KEM-768 key pair from OS randomness.

    Returns:
        Tuple of (public_key, private_key): the 1184-byte encapsulation key
        and the 2400-byte decapsulation key. Two calls never share a seed.
    """
    ek, dk = ML_KEM_768.keygen()
    return bytes(ek), bytes(dk)

def encaps(public_key: bytes) -> tuple[bytes, SharedSecret]:
    """
    Encapsulate a fresh shared secret to a recipient public key.

    Args:
        public_key: Recipient's 1184-byte ML-KEM-768 encapsulation key

    Returns:
        Tuple of (encapsulated_key, shared_secret). Only the encapsulated
        key is ever transmitted.

    Raises:
        InvalidKeyError: If the key has the wrong length or fails the
            ML-KEM modulus check
    """
    public_key = bytes(public_key)
    if len(public_key) != PUBLIC_KEY_LEN:
        raise InvalidKeyError(f"Public key must be {PUBLIC_KEY_LEN} bytes, got {len(public_key)}")
    try:
        key, ct = ML_KEM_768.encaps(public_key)
    except ValueError as e:
        raise InvalidKeyError(f"Malformed public key: {e}") from None
    return bytes(ct), SharedSecret(key)

def decaps(encapsulated_key: bytes, private_key: bytes) -> SharedSecret:
    """
    Recover the shared secret from an encapsulated key.

    With the matching private key this reproduces the secret from encaps()
    byte-for-byte. With any other well-formed private key ML-KEM's implicit
    rejection returns an unrelated pseudorandom secret; the symmetric layer
    turns that into an authentication failure.

    Raises:
        InvalidKeyError: If either input has the wrong length or the private
            key fails the ML-KEM integrity check
    """
    encapsulated_key, private_key = bytes(encapsulated_key), bytes(private_key)
    if len(encapsulated_key) != ENCAPSULATED_KEY_LEN:
        raise InvalidKeyError(
            f"Encapsulated key must be {ENCAPSULATED_KEY_LEN} bytes, got {len(encapsulated_key)}"
        )
    if len(private_key) != PRIVATE_KEY_LEN:
        raise InvalidKeyError(f"Private key must be {PRIVATE_KEY_LEN} bytes, got {len(private_key)}")
    try:
        key = ML_KEM_768.decaps(private_key, encapsulated_key)
    except ValueError as e:
        raise InvalidKeyError(f"Malformed private key: {e}") from None
    return SharedSecret(key)
