import pytest
from eth_keys import keys as ecc
from web3 import Web3

import address
from errors import InvalidField

PRIVATE_KEY = bytes.fromhex('46' * 32)


def test_checksum_vectors(eip55_vectors):
    for vector in eip55_vectors:
        assert address.checksum(vector.lower()) == vector
        assert address.checksum(vector[2:].upper()) == vector


def test_checksum_matches_web3(eip55_vectors):
    for vector in eip55_vectors:
        assert address.checksum(vector.lower()) == Web3.to_checksum_address(vector.lower())


def test_verify_checksum(eip55_vectors):
    for vector in eip55_vectors:
        assert address.verify_checksum(vector)
        # Single-case addresses carry no checksum.
        assert address.verify_checksum(vector.lower())
        assert address.verify_checksum('0x' + vector[2:].upper())
        assert not address.verify_checksum(vector.swapcase().replace('0X', '0x'))


@pytest.mark.parametrize('value, expected', [
    ('0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed', True),
    ('5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed', True),
    ('0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed', True),
    ('0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed', False),
    ('0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAe', False),
    ('0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAedd', False),
    ('0xgaAeb6053F3E94C9b9A09f33669435E7Ef1BeAed', False),
    (None, False),
])
def test_is_valid(value, expected):
    assert address.is_valid(value) is expected


def test_from_private_key():
    expected = ecc.PrivateKey(PRIVATE_KEY).public_key.to_checksum_address()
    assert address.from_private_key(PRIVATE_KEY) == expected
    assert address.from_private_key('0x' + PRIVATE_KEY.hex()) == expected


def test_from_public_key_forms_agree():
    public_key = ecc.PrivateKey(PRIVATE_KEY).public_key
    uncompressed = b'\x04' + public_key.to_bytes()
    compressed = public_key.to_compressed_bytes()
    expected = public_key.to_checksum_address()
    assert address.from_public_key(uncompressed) == expected
    assert address.from_public_key(compressed) == expected
    assert address.from_public_key('0x' + compressed.hex()) == expected


def test_from_public_key_bad_length():
    with pytest.raises(InvalidField):
        address.from_public_key(b'\x04' + b'\x01' * 63)
