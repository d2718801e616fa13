import json
import math
import os
from dataclasses import dataclass, field
from typing import Optional

from lpop.exceptions import DecodeError, InvalidKeyError
from lpop.utils.codec import encode, decode

# -----------------------------
# CLI Colors
# -----------------------------
class bcolors:
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'

# -----------------------------
# ML-KEM-768 Sizes (FIPS 203)
# -----------------------------
PUBLIC_KEY_LEN = 1184      # encapsulation key
PRIVATE_KEY_LEN = 2400     # decapsulation key
ENCAPSULATED_KEY_LEN = 1088
SHARED_SECRET_LEN = 32

DAY_MS = 24 * 60 * 60 * 1000

# -----------------------------
# Configuration
# -----------------------------
def _default_key_dir() -> str:
    return os.environ.get("LPOP_HOME") or os.path.join(os.path.expanduser("~"), ".lpop")

@dataclass
class ExchangeParams:
    """
    Tunables for the device key lifecycle.

    The key directory defaults to $LPOP_HOME, falling back to ~/.lpop. The
    key file is plain JSON protected only by filesystem permissions.
    """
    key_dir: str = field(default_factory=_default_key_dir)
    key_file: str = "device-key.json"
    expiry_days: int = 7  # Device keys rotate weekly

    def __post_init__(self):
        if self.expiry_days < 1:
            raise ValueError("expiry_days must be at least 1")

    @property
    def key_path(self) -> str:
        return os.path.join(self.key_dir, self.key_file)

    @property
    def expiry_ms(self) -> int:
        return self.expiry_days * DAY_MS

# -----------------------------
# Shared Secret
# -----------------------------
class SharedSecret(bytes):
    """
    KEM output used as symmetric key material.

    Always exactly SHARED_SECRET_LEN bytes; anything else is rejected here
    instead of being truncated or padded later.
    """
    def __new__(cls, value: bytes):
        if len(value) != SHARED_SECRET_LEN:
            raise InvalidKeyError(
                f"Shared secret must be {SHARED_SECRET_LEN} bytes, got {len(value)}"
            )
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return "SharedSecret(<redacted>)"

# -----------------------------
# Device Key Pair
# -----------------------------
@dataclass(frozen=True)
class DeviceKeyPair:
    """
    The long-lived per-machine ML-KEM key pair.

    Timestamps are milliseconds since the epoch, matching the on-disk shape
    { publicKey, privateKey, createdAt, expiresAt }.
    """
    public_key: bytes
    private_key: bytes = field(repr=False)
    created_at: int
    expires_at: int

    def __post_init__(self):
        if len(self.public_key) != PUBLIC_KEY_LEN:
            raise InvalidKeyError(f"Public key must be {PUBLIC_KEY_LEN} bytes, got {len(self.public_key)}")
        if len(self.private_key) != PRIVATE_KEY_LEN:
            raise InvalidKeyError(f"Private key must be {PRIVATE_KEY_LEN} bytes, got {len(self.private_key)}")
        if self.expires_at <= self.created_at:
            raise ValueError("Device key must expire after it was created")

    @property
    def encoded_public_key(self) -> str:
        return encode(self.public_key)

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at

    def to_dict(self) -> dict:
        return {
            "publicKey": encode(self.public_key),
            "privateKey": encode(self.private_key),
            "createdAt": self.created_at,
            "expiresAt": self.expires_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DeviceKeyPair":
        """
        Rebuild a key pair from its persisted record.

        Raises ValueError (DecodeError / InvalidKeyError included), KeyError
        or TypeError when the record is not a well-formed key pair.
        """
        if not isinstance(data, dict):
            raise TypeError("Device key record must be a JSON object")
        created_at, expires_at = data["createdAt"], data["expiresAt"]
        for stamp in (created_at, expires_at):
            if isinstance(stamp, bool) or not isinstance(stamp, (int, float)):
                raise TypeError("Device key timestamps must be numbers")
            if isinstance(stamp, float) and not math.isfinite(stamp):
                raise ValueError("Device key timestamps must be finite")
        return cls(
            public_key=decode(data["publicKey"]),
            private_key=decode(data["privateKey"]),
            created_at=int(created_at),
            expires_at=int(expires_at),
        )

@dataclass(frozen=True)
class KeyStatus:
    exists: bool
    expires_at: Optional[int] = None
    days_until_expiry: Optional[int] = None

# -----------------------------
# Exchange Token
# -----------------------------
@dataclass(frozen=True)
class EncapsulatedEnvelope:
    """
    One sealed secret set addressed to a single recipient.

    Both fields are base-58 strings: the ML-KEM encapsulated key and the
    AES-GCM sealed payload. The wire token is the compact JSON object
    {"encryptedKey": ..., "ciphertext": ...} on a single line.
    """
    encapsulated_key: str
    ciphertext: str

    def to_dict(self) -> dict:
        return {"encryptedKey": self.encapsulated_key, "ciphertext": self.ciphertext}

    def to_token(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_token(cls, token: str) -> "EncapsulatedEnvelope":
        try:
            data = json.loads(token.strip())
        except (AttributeError, ValueError):
            raise DecodeError("Token is not valid JSON") from None
        if not isinstance(data, dict):
            raise DecodeError("Token must be a JSON object")
        encrypted_key, ciphertext = data.get("encryptedKey"), data.get("ciphertext")
        if not isinstance(encrypted_key, str) or not isinstance(ciphertext, str):
            raise DecodeError("Token must contain string fields 'encryptedKey' and 'ciphertext'")
        return cls(encapsulated_key=encrypted_key, ciphertext=ciphertext)
