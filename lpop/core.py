import json
import logging
from collections.abc import Mapping
from typing import Iterable, Optional, Union

from lpop.exceptions import DecodeError
from lpop.models import EncapsulatedEnvelope, ENCAPSULATED_KEY_LEN
from lpop.utils.codec import encode, decode
from lpop.utils.encryption import seal, open_sealed
from lpop.utils.keygen import encaps, decaps
from lpop.utils.keystore import DeviceKeyManager

logger = logging.getLogger(__name__)

SecretSet = dict[str, str]

# -----------------------------
# Secret Set Serialization
# -----------------------------
def to_secret_set(pairs: Union[Mapping, Iterable[tuple[str, str]]]) -> SecretSet:
    """
    Normalise a mapping or an iterable of (key, value) pairs into an ordered
    secret set. Duplicate keys are rejected rather than silently merged.
    """
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    secret_set: SecretSet = {}
    for key, value in items:
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError("Secret keys and values must be strings")
        if key in secret_set:
            raise ValueError(f"Duplicate secret key: {key}")
        secret_set[key] = value
    return secret_set

def serialize_secret_set(pairs) -> bytes:
    """Canonical payload: compact JSON object, insertion order, UTF-8."""
    return json.dumps(to_secret_set(pairs), separators=(",", ":"), ensure_ascii=False).encode("utf-8")

def _reject_duplicates(items: list) -> dict:
    keys = [k for k, _ in items]
    if len(keys) != len(set(keys)):
        raise DecodeError("Payload contains duplicate secret keys")
    return dict(items)

def deserialize_secret_set(payload: bytes) -> SecretSet:
    try:
        data = json.loads(payload.decode("utf-8"), object_pairs_hook=_reject_duplicates)
    except ValueError as e:
        # DecodeError is a ValueError too; keep its message
        if isinstance(e, DecodeError):
            raise
        raise DecodeError("Payload is not a JSON secret set") from None
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise DecodeError("Payload must be a JSON object of string values")
    return data

# -----------------------------
# Seal / Open
# -----------------------------
def seal_for(secret_set, recipient_public_key: Union[str, bytes]) -> EncapsulatedEnvelope:
    """
    Implements hybrid encryption of a secret set for one recipient.

    This follows the standard KEM/DEM pattern:
    1. Serialize the secret set to its canonical byte form
    2. Encapsulate a fresh shared secret to the recipient's ML-KEM public key
    3. Seal the payload with AES-256-GCM under that shared secret
    4. Base-58 encode the encapsulated key and the sealed payload

    Args:
        secret_set: Mapping or iterable of (key, value) string pairs
        recipient_public_key: Base-58 string (as pasted) or raw key bytes

    Returns:
        EncapsulatedEnvelope; call to_token() for the single-line wire form

    Raises:
        DecodeError: If a string public key is not base-58
        InvalidKeyError: If the public key is not a valid ML-KEM-768 key
    """
    if isinstance(recipient_public_key, str):
        recipient_public_key = decode(recipient_public_key)
    payload = serialize_secret_set(secret_set)

    encapsulated_key, shared_secret = encaps(recipient_public_key)
    sealed = seal(payload, shared_secret)
    logger.debug("Sealed %d byte payload for recipient", len(payload))
    return EncapsulatedEnvelope(encapsulated_key=encode(encapsulated_key), ciphertext=encode(sealed))

def _as_envelope(envelope: Union[EncapsulatedEnvelope, str]) -> EncapsulatedEnvelope:
    if isinstance(envelope, str):
        return EncapsulatedEnvelope.from_token(envelope)
    return envelope

def open_with_private_key(envelope: Union[EncapsulatedEnvelope, str], private_key: bytes) -> SecretSet:
    """
    Reverses seal_for() with an explicit private key.

    Decapsulate, then verify-and-decrypt, then parse. DecodeError and
    AuthenticationError propagate unchanged and no partial plaintext
    escapes on failure.
    """
    envelope = _as_envelope(envelope)
    encapsulated_key = decode(envelope.encapsulated_key)
    sealed = decode(envelope.ciphertext)
    # A bad blob is a token problem, not a local key problem
    if len(encapsulated_key) != ENCAPSULATED_KEY_LEN:
        raise DecodeError(
            f"Token encapsulated key must be {ENCAPSULATED_KEY_LEN} bytes, got {len(encapsulated_key)}"
        )

    shared_secret = decaps(encapsulated_key, private_key)
    payload = open_sealed(sealed, shared_secret)
    return deserialize_secret_set(payload)

def open_with_device_key(envelope: Union[EncapsulatedEnvelope, str],
                         manager: Optional[DeviceKeyManager] = None) -> SecretSet:
    """Open a token addressed to this machine's device key."""
    manager = manager or DeviceKeyManager()
    device_key = manager.get_or_create()
    return open_with_private_key(envelope, device_key.private_key)
