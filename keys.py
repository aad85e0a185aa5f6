import logging
from typing import Tuple, Union

from eth_account import Account
from eth_keys import keys as ecc
from eth_keys.backends import NativeECCBackend

import address
from utils import hex_to_bytes

logger = logging.getLogger(__name__)

# --- Module-level Constants ---
CHAIN_ID_OFFSET = 35 # A constant used in calculating the 'v' component of an Ethereum signature for EIP-155 (replay protection).
V_OFFSET = 27 # A constant used in calculating the 'v' component of an Ethereum signature for pre-EIP-155 transactions.

# The curve order n of secp256k1. Signatures with s > n / 2 are "high-S".
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# Pure-Python backend: recovers high-S signatures the same way on every install.
_BACKEND = NativeECCBackend()


class Keys:
    """
    A utility class to hold a private key together with its checksummed
    Ethereum address. It provides methods to load keys from various sources.
    """

    def __init__(self, priv_key: Union[str, bytes]):
        """
        Initializes a Keys object from a private key.

        Args:
            priv_key (Union[str, bytes]): The 32-byte private key, raw or as a hex string (e.g., '0x...').
        """
        self.priv_key_bytes = hex_to_bytes(priv_key) if isinstance(priv_key, str) else bytes(priv_key)
        self.priv_key = '0x' + self.priv_key_bytes.hex()
        # The address is derived, never trusted from the caller.
        self.address = address.from_private_key(self.priv_key_bytes)

    @staticmethod
    def from_private_key(priv_key: Union[str, bytes]) -> 'Keys':
        return Keys(priv_key)

    @staticmethod
    def from_geth_file(file_name: str, pswd: str = '') -> 'Keys':
        """
        Loads keys from a Geth-style (V3) keystore file.

        Args:
            file_name (str): The full path to the Geth keystore file.
            pswd (str, optional): The password for the keystore file. Defaults to an empty string.

        Returns:
            Keys: A `Keys` object holding the decrypted private key.
        """
        with open(file_name) as keyfile:
            encrypted_key = keyfile.read()
        private_key = Account.decrypt(encrypted_key, pswd)
        return Keys(bytes(private_key))

    def __repr__(self) -> str:
        # Never print the private key.
        return f'Keys(address={self.address!r})'


def to_eth_v(recovery_id: int, chain_id: int = None) -> int:
    """
    Turns a raw recovery id (0 or 1) into the 'v' of a legacy transaction.

    Args:
        recovery_id (int): The recovery id returned by the signing algorithm.
        chain_id (int, optional): The EIP-155 chain id. If falsy, a pre-EIP-155 'v' (27 or 28)
                                  is produced.

    Returns:
        int: recovery_id + chain_id * 2 + 35, or recovery_id + 27 without a chain id.
    """
    if chain_id:
        return recovery_id + CHAIN_ID_OFFSET + 2 * chain_id
    return recovery_id + V_OFFSET


def from_eth_v(v: int, chain_id: int = None) -> int:
    """Inverse of `to_eth_v`: the recovery id encoded in a legacy 'v'."""
    if chain_id:
        return v - (CHAIN_ID_OFFSET + 2 * chain_id)
    return v - V_OFFSET


def chain_id_from_v(v: int):
    """The chain id folded into an EIP-155 'v', or None for v < 35."""
    if v < CHAIN_ID_OFFSET:
        return None
    return (v - CHAIN_ID_OFFSET) // 2


def is_high_s(s: int) -> bool:
    return s > SECP256K1_N // 2


def sign_hash(msg_hash: bytes, private_key: Union[str, bytes]) -> Tuple[int, int, int]:
    """
    Signs a 32-byte digest with deterministic (RFC 6979) ECDSA.

    Args:
        msg_hash (bytes): The Keccak-256 digest to sign.
        private_key (Union[str, bytes]): The 32-byte private key, raw or hex.

    Returns:
        Tuple[int, int, int]: (r, s, recovery_id); s is always in the lower half of the curve order.
    """
    if isinstance(private_key, str):
        private_key = hex_to_bytes(private_key)
    signature = ecc.PrivateKey(private_key, backend=_BACKEND).sign_msg_hash(msg_hash)
    return signature.r, signature.s, signature.v


def recover_public_key(msg_hash: bytes, r: int, s: int, recovery_id: int) -> bytes:
    """
    Recovers the uncompressed (65-byte, 0x04-prefixed) public key that produced a signature.

    Errors from eth_keys (recovery id other than 0/1, r or s out of range, no
    point on the curve) are propagated unchanged.
    """
    signature = ecc.Signature(vrs=(recovery_id, r, s), backend=_BACKEND)
    public_key = signature.recover_public_key_from_msg_hash(msg_hash)
    return b'\x04' + public_key.to_bytes()
