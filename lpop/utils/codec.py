import base58

from lpop.exceptions import DecodeError

# -----------------------------
# Base-58 Codec
# -----------------------------
# Bitcoin alphabet: no 0/O/I/l, nothing that needs quoting in a shell or chat client
ALPHABET = base58.BITCOIN_ALPHABET.decode("ascii")
_ALPHABET_SET = frozenset(ALPHABET)

def encode(data: bytes) -> str:
    """
    Render raw bytes as a base-58 string.

    Leading zero bytes become leading '1' characters so the mapping stays
    reversible; the empty buffer encodes to the empty string.
    """
    return base58.b58encode(bytes(data)).decode("ascii")

def decode(value: str) -> bytes:
    """
    Recover raw bytes from a base-58 string.

    Args:
        value: Printable string produced by encode()

    Returns:
        Decoded bytes

    Raises:
        DecodeError: If value is not a string or contains any character
            outside the alphabet (whitespace included)
    """
    if not isinstance(value, str):
        raise DecodeError(f"Expected a base-58 string, got {type(value).__name__}")
    bad = set(value) - _ALPHABET_SET
    if bad:
        raise DecodeError(f"Invalid base-58 character(s): {''.join(sorted(bad))!r}")
    try:
        return base58.b58decode(value)
    except ValueError as e:
        raise DecodeError(f"Malformed base-58 string: {e}") from None
