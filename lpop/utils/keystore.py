import json
import logging
import math
import os
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

from lpop.exceptions import KeyStorageError
from lpop.models import DeviceKeyPair, ExchangeParams, KeyStatus, DAY_MS
from lpop.utils.keygen import generate_keypair

logger = logging.getLogger(__name__)

# -----------------------------
# Key Stores
# -----------------------------
class KeyStore(Protocol):
    """Persistence for the single device key record."""

    def load(self) -> Optional[dict]: ...

    def save(self, record: dict) -> None: ...

    def delete(self) -> None: ...


class FileKeyStore:
    """
    Device key record as a JSON file (default ~/.lpop/device-key.json).

    The record is not encrypted at rest; the file is created with mode 0600
    and otherwise relies on the permissions of the user's home directory.
    There is no file lock: two first-use invocations racing each other both
    generate a pair and the last write wins.
    """

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[dict]:
        # Read and JSON errors propagate; the manager treats them as corruption
        if not self.path.exists():
            return None
        return json.loads(self.path.read_text(encoding="utf-8"))

    def save(self, record: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(record, indent=2), encoding="utf-8")
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise KeyStorageError(f"Cannot write device key to {self.path}: {e}") from e
        logger.debug("Device key written to %s", self.path)

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise KeyStorageError(f"Cannot remove device key at {self.path}: {e}") from e


class MemoryKeyStore:
    """In-process key store, used in tests and for throwaway sessions."""

    def __init__(self, record: Optional[dict] = None):
        self.record = record

    def load(self) -> Optional[dict]:
        return self.record

    def save(self, record: dict) -> None:
        self.record = dict(record)

    def delete(self) -> None:
        self.record = None

# -----------------------------
# Device Key Lifecycle
# -----------------------------
def now_ms() -> int:
    return int(time.time() * 1000)


class DeviceKeyManager:
    """
    Owns the one long-lived key pair of this machine.

    States are Absent, Valid and Expired. Expiry is enforced lazily: every
    read checks expiresAt, and an expired or unreadable record is deleted so
    that the next get_or_create() generates a fresh pair. An expired pair is
    never returned.
    """

    def __init__(self, store: Optional[KeyStore] = None, params: Optional[ExchangeParams] = None,
                 clock: Callable[[], int] = now_ms):
        self.params = params or ExchangeParams()
        self.store = store if store is not None else FileKeyStore(self.params.key_path)
        self.clock = clock

    def load_valid(self) -> Optional[DeviceKeyPair]:
        """
        Return the persisted pair if it is present, well-formed and unexpired.

        Corrupt and expired records are deleted and reported as absent.
        KeyStorageError from the deletion itself is not caught.
        """
        try:
            record = self.store.load()
            if record is None:
                return None
            pair = DeviceKeyPair.from_dict(record)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable device key: %s", e)
            self.store.delete()
            return None

        if pair.is_expired(self.clock()):
            logger.warning("Device key expired at %d, removing it", pair.expires_at)
            self.store.delete()
            return None
        return pair

    def generate(self) -> DeviceKeyPair:
        """Create, stamp and persist a brand new pair (overwrites any existing one)."""
        public_key, private_key = generate_keypair()
        created_at = self.clock()
        pair = DeviceKeyPair(
            public_key=public_key,
            private_key=private_key,
            created_at=created_at,
            expires_at=created_at + self.params.expiry_ms,
        )
        self.store.save(pair.to_dict())
        logger.info("Generated new device key, valid for %d days", self.params.expiry_days)
        return pair

    def get_or_create(self) -> DeviceKeyPair:
        pair = self.load_valid()
        if pair is None:
            self.generate()
            pair = self.load_valid()
            if pair is None:
                raise KeyStorageError("Failed to store or retrieve device key")
        return pair

    def status(self) -> KeyStatus:
        pair = self.load_valid()
        if pair is None:
            return KeyStatus(exists=False)
        days = math.ceil((pair.expires_at - self.clock()) / DAY_MS)
        return KeyStatus(exists=True, expires_at=pair.expires_at, days_until_expiry=days)

    def cleanup(self) -> bool:
        """Drop an expired or corrupt key. True when no valid key remains."""
        return self.load_valid() is None
