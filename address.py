"""
Ethereum address derivation and EIP-55 mixed-case checksums.
"""
import re
from typing import Union

from eth_hash.auto import keccak
from eth_keys import keys as ecc
from eth_typing import ChecksumAddress

from errors import InvalidField
from utils import add_0x, hex_to_bytes, strip_0x

_ADDRESS_RE = re.compile(r'^(0[xX])?[0-9a-fA-F]{40}$')


def checksum(address: str) -> ChecksumAddress:
    """
    Applies EIP-55 casing to an address.

    The checksum hashes the ASCII text of the lower-case hex digits, not the
    decoded bytes: keccak(b'beef...') rather than keccak(bytes.fromhex('beef...')).

    Args:
        address (str): A hex address, with or without the 0x prefix, in any case.

    Returns:
        ChecksumAddress: The 0x-prefixed address with each letter upper-cased where
            the matching nibble of the hash is greater than 7.
    """
    lowered = strip_0x(address).lower()
    digest = keccak(lowered.encode('ascii')).hex()
    # One hash nibble per address character.
    cased = ''.join(char.upper() if int(digest[i], 16) > 7 else char for i, char in enumerate(lowered))
    return ChecksumAddress(add_0x(cased))


def verify_checksum(address: str) -> bool:
    """
    Checks the EIP-55 casing of an address.

    An address written entirely in lower or upper case carries no checksum and is
    accepted as-is. Otherwise the casing of every character must match `checksum`.

    Args:
        address (str): The address to check.

    Returns:
        bool: True if the casing is consistent with the checksum.
    """
    digits = strip_0x(address)
    if digits == digits.lower() or digits == digits.upper():
        return True
    return strip_0x(checksum(digits)) == digits


def is_valid(address: str) -> bool:
    """True for a 20-byte hex address whose casing passes `verify_checksum`."""
    return isinstance(address, str) and bool(_ADDRESS_RE.match(address)) and verify_checksum(address)


def from_public_key(public_key: Union[str, bytes]) -> ChecksumAddress:
    """
    Derives the checksummed address of a secp256k1 public key.

    Args:
        public_key (Union[str, bytes]): A 33-byte compressed or 65-byte uncompressed key,
            as bytes or hex.

    Returns:
        ChecksumAddress: The low 20 bytes of keccak(x || y), checksummed.
    """
    if isinstance(public_key, str):
        public_key = hex_to_bytes(public_key)
    if len(public_key) == 33:
        # eth_keys stores the 64-byte x || y form without the 0x04 prefix.
        xy = ecc.PublicKey.from_compressed_bytes(public_key).to_bytes()
    elif len(public_key) == 65:
        xy = public_key[1:]
    else:
        raise InvalidField('publicKey', f'invalid key with length {len(public_key)}')
    return checksum(keccak(xy)[-20:].hex())


def from_private_key(private_key: Union[str, bytes]) -> ChecksumAddress:
    """Derives the checksummed address controlled by a 32-byte private key."""
    if isinstance(private_key, str):
        private_key = hex_to_bytes(private_key)
    xy = ecc.PrivateKey(private_key).public_key.to_bytes()
    return from_public_key(b'\x04' + xy)
