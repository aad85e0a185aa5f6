from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Optional, Union

from eth_hash.auto import keccak
from eth_typing import ChecksumAddress, HexStr

import address
import codec
import fields
import keys
from chains import (
    DEFAULT_CHAIN,
    DEFAULT_CHAIN_ID,
    DEFAULT_HARDFORK,
    PRE_EIP155_HARDFORKS,
    SIGNATURE_FIELD_COUNT,
    TxType,
    chain_id_of,
    chain_label_of,
    ensure_hardfork,
    to_tx_type,
)
from errors import (
    AlreadySigned,
    ChainMismatch,
    DecodeError,
    InvalidLength,
    InvalidSignature,
    NotSigned,
    RecoveryFailed,
    TypeMismatch,
)
from utils import clone_deep, hex_to_bytes, hex_to_int, is_hex

logger = logging.getLogger(__name__)

# Envelopes this short cannot hold a transaction.
MIN_TX_BYTES = 3


class Transaction:
    """
    An immutable Ethereum transaction: legacy, EIP-2930 (access list) or
    EIP-1559 (fee market).

    A transaction can be built from its serialized form (hex string or bytes), from
    a positional list of fields in wire order, or from a dict of named fields.
    Whatever the input, the fields are normalized, serialized and decoded again, so
    `raw` always holds the canonical form of exactly what `bytes` encodes.

    Signing never modifies an instance: `sign` returns a new, signed Transaction.
    """

    DEFAULT_CHAIN = DEFAULT_CHAIN
    DEFAULT_HARDFORK = DEFAULT_HARDFORK

    def __init__(self, data: Union[str, bytes, list, tuple, dict], chain: Optional[str] = None,
                 hardfork: Optional[str] = None, type=None):
        """
        Initializes a Transaction.

        Args:
            data (Union[str, bytes, list, tuple, dict]): The serialized transaction, its fields
                in wire order, or a mapping of field name to value.
            chain (str, optional): A chain label from `chains.CHAIN_TYPES` (e.g., 'mainnet'). When
                omitted, the chain is taken from the fields or falls back to the default chain.
            hardfork (str, optional): The hardfork the transaction is judged under. It decides
                whether legacy signatures are replay protected and whether high-S
                signatures are accepted. Defaults to `DEFAULT_HARDFORK`.
            type (optional): Expected transaction type ('legacy', 'eip2930', 'eip1559', a TxType or
                a type id). Construction fails if the data says otherwise.
        """
        hardfork = ensure_hardfork(hardfork or DEFAULT_HARDFORK)
        hint = to_tx_type(type) if type is not None else None
        label_id = chain_id_of(chain) if chain is not None else None

        if isinstance(data, str):
            if not is_hex(data):
                raise DecodeError('expected a hex string')
            serialized = hex_to_bytes(data)
        elif isinstance(data, (bytes, bytearray)):
            serialized = bytes(data)
        elif isinstance(data, (list, tuple)):
            serialized = self._serialize_positional(data, chain, hint)
        elif isinstance(data, dict):
            serialized = self._serialize_named(data, chain, hint)
        else:
            raise TypeError('Expected valid serialized tx')
        if len(serialized) < MIN_TX_BYTES:
            raise InvalidLength(len(serialized), 'Invalid tx length')

        default_chain_id = label_id if label_id is not None else DEFAULT_CHAIN_ID
        tx_type, raw, chain_id, encoded = codec.decode_envelope(serialized, default_chain_id)
        if hint is not None and hint is not tx_type:
            raise TypeMismatch(hint.value, tx_type.value)
        if label_id is not None and encoded and chain_id != label_id:
            raise ChainMismatch(label_id, chain_id)

        # Assigned last: a failed construction leaves nothing behind.
        self._bytes = serialized
        self._type = tx_type
        self._raw = raw
        self._chain_id = chain_id
        self._chain = chain if chain is not None else chain_label_of(chain_id)
        self._hardfork = hardfork
        self._is_signed = hex_to_int(raw['r']) != 0

    @staticmethod
    def _serialize_positional(values, chain, hint) -> bytes:
        tx_type = fields.resolve_positional_type(values, hint)
        normalized = [fields.normalize_field(name, value) for name, value in zip(tx_type.fields, values)]
        if tx_type is TxType.LEGACY:
            chain_id = fields.reconcile_chain_id(chain, None)
        else:
            chain_id = fields.reconcile_chain_id(chain, normalized[0])
        chain_id = chain_id or DEFAULT_CHAIN_ID
        if tx_type is not TxType.LEGACY:
            normalized[0] = fields.normalize_field('chainId', chain_id)
        return codec.encode(tx_type, fields.strip_signature(tx_type, normalized, chain_id))

    @staticmethod
    def _serialize_named(data: dict, chain, hint) -> bytes:
        tx_type = fields.resolve_named_type(data, hint)
        chain_id = fields.reconcile_chain_id(chain, data.get('chainId')) or DEFAULT_CHAIN_ID
        values = fields.to_positional(tx_type, data, chain_id)
        return codec.encode(tx_type, fields.strip_signature(tx_type, values, chain_id))

    # --- Accessors ---

    @property
    def bytes(self) -> bytes:
        return self._bytes

    @property
    def hex(self) -> HexStr:
        return HexStr('0x' + self._bytes.hex())

    @property
    def raw(self) -> MappingProxyType:
        """The canonical fields, in wire order, as a read-only mapping."""
        return MappingProxyType(self._raw)

    raw_fields = raw

    @property
    def type(self) -> TxType:
        return self._type

    @property
    def hardfork(self) -> str:
        return self._hardfork

    @property
    def is_signed(self) -> bool:
        """True iff the 'r' field is present and non-zero."""
        return self._is_signed

    @property
    def chain(self) -> Optional[str]:
        """The chain label, or None for a chain id that has no label."""
        return self._chain

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def nonce(self) -> int:
        # Nonce is a counter that represents a number of outgoing transactions on the account.
        return hex_to_int(self._raw['nonce'])

    @property
    def amount(self) -> int:
        """Amount in wei."""
        return hex_to_int(self._raw['value'])

    @property
    def fee(self) -> int:
        """
        Maximum total fee in wei: the gas limit times gasPrice, or times maxFeePerGas
        for fee-market transactions.
        """
        price_field = 'maxFeePerGas' if self._type is TxType.FEE_MARKET else 'gasPrice'
        return hex_to_int(self._raw[price_field]) * hex_to_int(self._raw['gasLimit'])

    @property
    def upfront_cost(self) -> int:
        """Amount plus fee, in wei."""
        return self.amount + self.fee

    @property
    def to(self) -> Optional[ChecksumAddress]:
        """The checksummed recipient, or None for contract creation."""
        if not self._raw['to']:
            return None
        return address.checksum(self._raw['to'])

    @property
    def hash(self) -> HexStr:
        """The transaction hash used by block explorers. Only signed transactions have one."""
        if not self.is_signed:
            raise NotSigned()
        return HexStr('0x' + self.message_to_sign(include_signature=True).hex())

    @property
    def sender(self) -> ChecksumAddress:
        """The checksummed address of the signer."""
        public_key = self.recover_public_key()
        if not public_key:
            raise RecoveryFailed('Invalid signed transaction: no public key recovered')
        return address.from_public_key(public_key)

    # --- Signing state machine ---

    def supports_replay_protection(self) -> bool:
        """
        Whether the legacy signing message binds the chain id (EIP-155).

        Always true for an unsigned transaction. A signed one qualifies only after
        the pre-EIP-155 hardforks and when its 'v' is chainId * 2 + 35 or + 36.
        Typed transactions carry chainId in their payload and always qualify.
        """
        if self._type is not TxType.LEGACY or not self.is_signed:
            return True
        if self.hardfork in PRE_EIP155_HARDFORKS:
            return False
        v = hex_to_int(self._raw['v'])
        eip155_v = self._chain_id * 2 + keys.CHAIN_ID_OFFSET
        return v in (eip155_v, eip155_v + 1)

    def _binds_chain_id(self) -> bool:
        # Pre-EIP-155 hardforks sign legacy transactions without the chain id, v = 27 or 28.
        if self._type is not TxType.LEGACY:
            return False
        return self.hardfork not in PRE_EIP155_HARDFORKS and self.supports_replay_protection()

    def message_to_sign(self, include_signature: bool = False) -> bytes:
        """
        Computes the Keccak-256 digest of the serialized fields.

        Args:
            include_signature (bool): If False (default), the signature fields are left out,
                and a legacy transaction gets the EIP-155 (chainId, '', '') suffix when
                replay protection applies under a post-EIP-155 hardfork. This is the digest
                that is signed. If True, the full envelope is hashed (the transaction hash).

        Returns:
            bytes: The 32-byte digest.
        """
        values = [self._raw[name] for name in self._type.fields]
        if not include_signature:
            values = values[:-SIGNATURE_FIELD_COUNT]
            if self._binds_chain_id():
                values.extend([fields.normalize_field('chainId', self._chain_id), '', ''])
        # Typed envelopes hash the type byte together with the payload.
        return keccak(codec.encode(self._type, values))

    def sign(self, private_key: Union[str, bytes]) -> 'Transaction':
        """
        Signs the transaction.

        Args:
            private_key (Union[str, bytes]): The 32-byte secp256k1 private key, raw or hex.

        Returns:
            Transaction: A new, signed transaction on the same chain and hardfork.

        Raises:
            AlreadySigned: If this transaction already carries a signature.
        """
        if self.is_signed:
            raise AlreadySigned()
        r, s, recovery_id = keys.sign_hash(self.message_to_sign(), private_key)
        if self._type is TxType.LEGACY:
            signed_raw = dict(self._raw)
            chain_id = self._chain_id if self._binds_chain_id() else None
            signed_raw.update(v=keys.to_eth_v(recovery_id, chain_id), r=r, s=s)
        else:
            signed_raw = clone_deep(self._raw)
            signed_raw.update(yParity=recovery_id, r=r, s=s)
        logger.debug('Signed %s transaction (chainId=%s)', self._type.value, self._chain_id)
        return Transaction(signed_raw, chain=self._chain, hardfork=self.hardfork, type=self._type)

    def recover_public_key(self) -> bytes:
        """
        Recovers the uncompressed public key of the signer.

        Raises:
            NotSigned: For an unsigned transaction.
            InvalidSignature: For a high-S signature under any hardfork but chainstart.
        """
        if not self.is_signed:
            raise NotSigned('Expected signed transaction: cannot recover sender of unsigned tx')
        r = hex_to_int(self._raw['r'])
        s = hex_to_int(self._raw['s'])
        if self.hardfork != 'chainstart' and keys.is_high_s(s):
            raise InvalidSignature('Invalid signature: s is invalid')
        if self._type is TxType.LEGACY:
            chain_id = self._chain_id if self._binds_chain_id() else None
            recovery_id = keys.from_eth_v(hex_to_int(self._raw['v']), chain_id)
        else:
            recovery_id = hex_to_int(self._raw['yParity'])
        public_key = keys.recover_public_key(self.message_to_sign(), r, s, recovery_id)
        logger.debug('Recovered signer of %s transaction', self._type.value)
        return public_key

    def equals(self, other: 'Transaction') -> bool:
        """True if both transactions sign the same message, whatever their signatures."""
        return self.message_to_sign() == other.message_to_sign()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.equals(other)

    def __hash__(self) -> int:
        return hash(self.message_to_sign())

    def __repr__(self) -> str:
        return (f'Transaction(type={self._type.value!r}, chain={self._chain!r}, chainId={self._chain_id}, '
                f'signed={self.is_signed}, hex={self.hex!r})')
