"""
Process-wide constant tables: known chains, transaction types, hardforks and
the ordered field list of every transaction type.

The tables are read-only views created once at import. The default chain and
hardfork can be overridden through the environment before the first import:

- ETH_TX_DEFAULT_CHAIN: chain label used when a transaction names no chain (default: mainnet)
- ETH_TX_DEFAULT_HARDFORK: hardfork label used when none is given (default: london)
"""

import os
from enum import Enum
from types import MappingProxyType
from typing import Optional

from errors import InvalidField

# --- Chain table ---
CHAIN_TYPES = MappingProxyType({
    'mainnet': 1,
    'ropsten': 3,
    'rinkeby': 4,
    'goerli': 5,
    'kovan': 42,
})

# Chronological; the first four predate EIP-155 replay protection.
HARDFORKS = (
    'chainstart',
    'homestead',
    'dao',
    'tangerineWhistle',
    'spuriousDragon',
    'byzantium',
    'constantinople',
    'petersburg',
    'istanbul',
    'muirGlacier',
    'berlin',
    'london',
)
PRE_EIP155_HARDFORKS = frozenset(HARDFORKS[:4])


class TxType(str, Enum):
    """The closed set of supported transaction envelopes."""

    LEGACY = 'legacy'
    ACCESS_LIST = 'eip2930'  # EIP-2930
    FEE_MARKET = 'eip1559'  # EIP-1559

    @property
    def type_id(self) -> int:
        return TRANSACTION_TYPES[self.value]

    @property
    def fields(self) -> tuple:
        return TX_FIELDS[self]


TRANSACTION_TYPES = MappingProxyType({
    'legacy': 0,
    'eip2930': 1,
    'eip1559': 2,
})

# The order is the wire order. The trailing three entries are the signature.
TX_FIELDS = MappingProxyType({
    TxType.LEGACY: ('nonce', 'gasPrice', 'gasLimit', 'to', 'value', 'data', 'v', 'r', 's'),
    TxType.ACCESS_LIST: ('chainId', 'nonce', 'gasPrice', 'gasLimit', 'to', 'value', 'data',
                         'accessList', 'yParity', 'r', 's'),
    TxType.FEE_MARKET: ('chainId', 'nonce', 'maxPriorityFeePerGas', 'maxFeePerGas', 'gasLimit', 'to',
                        'value', 'data', 'accessList', 'yParity', 'r', 's'),
})
SIGNATURE_FIELD_COUNT = 3

# Field count -> type, for positional input.
TYPES_BY_LENGTH = MappingProxyType({len(fields): tx_type for tx_type, fields in TX_FIELDS.items()})
TYPES_BY_ID = MappingProxyType({tx_type.type_id: tx_type for tx_type in TxType})


def chain_id_of(label: str) -> int:
    """
    Resolves a symbolic chain name to its numeric chain id.

    Args:
        label (str): A key of `CHAIN_TYPES` (e.g. 'mainnet').

    Returns:
        int: The EIP-155 chain id.
    """
    try:
        return CHAIN_TYPES[label]
    except (KeyError, TypeError):
        raise InvalidField('chain', f'unknown chain {label!r}') from None


def chain_label_of(chain_id: int) -> Optional[str]:
    """Returns the label of a known chain id, or None for an unlisted network."""
    for label, known_id in CHAIN_TYPES.items():
        if known_id == chain_id:
            return label
    return None


def to_tx_type(value) -> TxType:
    """Coerces a type hint ('legacy', 'eip1559', a TxType or a type id) into a TxType."""
    if isinstance(value, TxType):
        return value
    if isinstance(value, int) and not isinstance(value, bool) and value in TYPES_BY_ID:
        return TYPES_BY_ID[value]
    try:
        return TxType(value)
    except ValueError:
        raise InvalidField('type', f'unknown transaction type {value!r}') from None


def ensure_hardfork(label: str) -> str:
    if label not in HARDFORKS:
        raise InvalidField('hardfork', f'unknown hardfork {label!r}')
    return label


# --- Defaults, read once from the environment ---
DEFAULT_CHAIN = (os.getenv('ETH_TX_DEFAULT_CHAIN') or 'mainnet').strip()
DEFAULT_HARDFORK = ensure_hardfork((os.getenv('ETH_TX_DEFAULT_HARDFORK') or 'london').strip())
DEFAULT_CHAIN_ID = chain_id_of(DEFAULT_CHAIN)
