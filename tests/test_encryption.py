import secrets

import pytest

from lpop.exceptions import AuthenticationError, InvalidKeyError
from lpop.utils.encryption import seal, open_sealed, IV_LEN, TAG_LEN, HEADER_LEN


@pytest.fixture
def key():
    return secrets.token_bytes(32)


@pytest.mark.parametrize("plaintext", [b"", b"x", b'{"API_KEY":"secret123"}', secrets.token_bytes(64 * 1024)])
def test_open_reverses_seal(plaintext, key):
    assert open_sealed(seal(plaintext, key), key) == plaintext


def test_layout_is_iv_tag_ciphertext(key):
    sealed = seal(b"abcdef", key)
    assert len(sealed) == IV_LEN + TAG_LEN + 6


def test_seal_is_randomized(key):
    first, second = seal(b"same payload", key), seal(b"same payload", key)
    assert first != second
    assert first[:IV_LEN] != second[:IV_LEN]
    assert open_sealed(first, key) == open_sealed(second, key) == b"same payload"


def test_every_single_bit_flip_is_detected(key):
    sealed = seal(b"DATABASE_URL=postgres://localhost", key)
    for i in range(len(sealed) * 8):
        tampered = bytearray(sealed)
        tampered[i // 8] ^= 1 << (i % 8)
        with pytest.raises(AuthenticationError):
            open_sealed(bytes(tampered), key)


def test_wrong_secret_is_detected(key):
    sealed = seal(b"secret", key)
    with pytest.raises(AuthenticationError):
        open_sealed(sealed, secrets.token_bytes(32))


@pytest.mark.parametrize("cut", [0, 1, IV_LEN, HEADER_LEN - 1])
def test_truncated_input_is_detected(key, cut):
    sealed = seal(b"secret", key)
    with pytest.raises(AuthenticationError):
        open_sealed(sealed[:cut], key)


def test_dropping_trailing_bytes_is_detected(key):
    sealed = seal(b"a longer secret value", key)
    with pytest.raises(AuthenticationError):
        open_sealed(sealed[:-1], key)


def test_key_must_be_32_bytes():
    with pytest.raises(InvalidKeyError):
        seal(b"data", b"short")
    with pytest.raises(InvalidKeyError):
        open_sealed(b"\x00" * 40, b"\x00" * 16)
