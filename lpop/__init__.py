"""
lpop - secure exchange core

Lets a developer hand a set of secrets to exactly one colleague as a single
opaque token that is pasted into chat.

Post-Quantum Cryptography:

ML-KEM-768 (Kyber) key encapsulation, NIST security level 3
Module-LWE hardness; implicit rejection on decapsulation

Hybrid Encryption Architecture:

KEM/DEM paradigm: ML-KEM shared secret keys AES-256-GCM
Fresh random IV per token, so identical inputs never give identical tokens
Any tampering or wrong-recipient decryption is a hard AuthenticationError

Device Keys:

One key pair per machine, stored as JSON under ~/.lpop (or $LPOP_HOME)
Generated lazily, expires after 7 days, corrupt records are regenerated

Encoding:

Base-58 (Bitcoin alphabet) for every value that crosses the human boundary
"""
from lpop.exceptions import (
    LpopError, DecodeError, InvalidKeyError, AuthenticationError, KeyStorageError
)

from lpop.models import (
    DeviceKeyPair, EncapsulatedEnvelope, ExchangeParams, KeyStatus, SharedSecret
)

from lpop.utils.keygen import (generate_keypair, encaps, decaps)

from lpop.utils.keystore import (
    KeyStore, FileKeyStore, MemoryKeyStore, DeviceKeyManager
)

from lpop.core import (
    seal_for, open_with_device_key, open_with_private_key, serialize_secret_set, deserialize_secret_set
)

__version__ = "1.0.0"
