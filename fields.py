"""
Field normalization and transaction-type inference.

Every field is canonicalized to the representation stored in `Transaction.raw`:

- numeric fields: 0x-prefixed hex without leading zero bytes, '' for zero
- data fields (data, to, address, storageKey): '' when empty, otherwise 0x-prefixed
  lower-case hex with an even digit count
- accessList: a tuple of (address, (storageKey, ...)) pairs, one per address
"""
import logging
from typing import Dict, List, Optional, Sequence

from chains import (
    SIGNATURE_FIELD_COUNT,
    TX_FIELDS,
    TYPES_BY_LENGTH,
    TxType,
    chain_id_of,
    to_tx_type,
)
from errors import ChainMismatch, InvalidField, InvalidLength, TypeMismatch
from utils import int_to_hex, is_hex, strip_0x

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = frozenset({
    'chainId', 'nonce', 'gasPrice', 'maxPriorityFeePerGas', 'maxFeePerGas', 'gasLimit', 'value',
    'yParity', 'v', 'r', 's',
})
DATA_FIELDS = frozenset({'data', 'to', 'address', 'storageKey'})
ACCESS_LIST_FIELDS = frozenset({'accessList'})
ALL_TX_FIELDS = frozenset(name for names in TX_FIELDS.values() for name in names)

# Fixed byte widths; 'to' may also be empty (contract creation).
BYTE_LENGTHS = {'to': 20, 'address': 20, 'storageKey': 32}

DEFAULT_GAS_LIMIT = '0x5208'  # 21000, the cost of a plain transfer

# Field names whose presence rules types out.
_FEE_MARKET_ONLY = frozenset({'maxFeePerGas', 'maxPriorityFeePerGas'})
_TYPED_ONLY = frozenset({'accessList', 'yParity'})


def _is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return strip_0x(value) == ''
    if isinstance(value, (bytes, bytearray, list, tuple, dict)):
        return len(value) == 0
    return value == 0


def to_int(field: str, value) -> int:
    """
    Parses a numeric field value into a non-negative int.

    Accepts ints, 0x-prefixed hex strings, decimal strings, and bytes (read as a
    big-endian magnitude). Booleans are accepted only for 'yParity'.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        if field != 'yParity':
            raise InvalidField(field, 'a boolean is not a number')
        num = int(value)
    elif isinstance(value, int):
        num = value
    elif isinstance(value, (bytes, bytearray)):
        num = int.from_bytes(value, 'big')
    elif isinstance(value, str):
        text = value.strip()
        if text[:2] in ('0x', '0X'):
            if not is_hex(text):
                raise InvalidField(field, f'{value!r} is not a hex string')
            num = int(text[2:], 16) if len(text) > 2 else 0
        elif text == '':
            num = 0
        elif text.isascii() and text.isdigit():
            num = int(text)
        else:
            raise InvalidField(field, f'{value!r} is neither a decimal nor a 0x-prefixed hex number')
    else:
        raise InvalidField(field, f'unsupported type {type(value).__name__}')
    if num < 0:
        raise InvalidField(field, 'must not be negative')
    return num


def _normalize_number(field: str, value) -> str:
    num = to_int(field, value)
    if field == 'gasLimit' and num == 0:
        return DEFAULT_GAS_LIMIT
    if field == 'gasPrice' and num == 0:
        raise InvalidField(field, 'must have a non-zero value')
    return '0x' + int_to_hex(num) if num else ''


def _normalize_data(field: str, value) -> str:
    if not value:
        return ''
    if isinstance(value, (bytes, bytearray)):
        hex_str = bytes(value).hex()
    elif isinstance(value, str):
        if not is_hex(value):
            raise InvalidField(field, f'{value!r} is not a hex string')
        hex_str = strip_0x(value).lower()
        if not hex_str:
            return ''
        if len(hex_str) % 2:
            hex_str = '0' + hex_str
    else:
        raise InvalidField(field, f'unsupported type {type(value).__name__}')
    expected = BYTE_LENGTHS.get(field)
    if expected is not None and len(hex_str) != expected * 2:
        raise InvalidField(field, f'must be {expected} bytes, got {len(hex_str) // 2}')
    return '0x' + hex_str


def _access_list_pairs(value) -> list:
    if isinstance(value, dict):
        return list(value.items())
    if not isinstance(value, (list, tuple)):
        raise InvalidField('accessList', 'must be a list or a mapping of address to storage keys')
    pairs = []
    for entry in value:
        if isinstance(entry, dict):
            if 'address' not in entry:
                raise InvalidField('accessList', 'entry is missing "address"')
            pairs.append((entry['address'], entry.get('storageKeys')))
        elif isinstance(entry, (list, tuple)):
            if len(entry) != 2:
                raise InvalidField('accessList', f'entry must have 2 elements, got {len(entry)}')
            pairs.append((entry[0], entry[1]))
        else:
            raise InvalidField('accessList', f'unsupported entry type {type(entry).__name__}')
    return pairs


def normalize_access_list(value) -> tuple:
    """
    Normalizes an access list given as pairs, as JSON-RPC objects or as a mapping.

    Accepted shapes:
        [[address, [key, ...]], ...]
        [{'address': address, 'storageKeys': [key, ...]}, ...]
        {address: [key, ...], ...}

    Repeated addresses are merged and repeated storage keys dropped; addresses and
    keys keep the order in which they were first seen.

    Returns:
        tuple: ((address, (storageKey, ...)), ...)
    """
    if not value:
        return ()
    merged: Dict[str, dict] = {}
    for addr, storage_keys in _access_list_pairs(value):
        if not isinstance(storage_keys, (list, tuple)):
            raise InvalidField('accessList', 'storage keys must be an array')
        normalized_addr = _normalize_data('address', addr)
        if not normalized_addr:
            raise InvalidField('address', 'must not be empty')
        # A dict is an insertion-ordered set.
        slots = merged.setdefault(normalized_addr, {})
        for key in storage_keys:
            normalized_key = _normalize_data('storageKey', key)
            if not normalized_key:
                raise InvalidField('storageKey', 'must not be empty')
            slots[normalized_key] = None
    return tuple((addr, tuple(slots)) for addr, slots in merged.items())


def normalize_field(field: str, value):
    """
    Converts one field value into its canonical representation.

    Args:
        field (str): The field name; it selects the numeric, data or access-list rules.
        value: Any accepted input shape for that field.

    Returns:
        The canonical hex string, or the canonical access-list tuple.

    Raises:
        InvalidField: On an unknown field, or a value of the wrong type, shape or range.
    """
    if field in NUMERIC_FIELDS:
        return _normalize_number(field, value)
    if field in DATA_FIELDS:
        return _normalize_data(field, value)
    if field in ACCESS_LIST_FIELDS:
        return normalize_access_list(value)
    raise InvalidField(field, 'unknown field')


def from_wire(field: str, item):
    """
    Canonicalizes a value decoded from the wire. Numbers are taken as they are
    (no gasLimit default, no gasPrice restriction): historical transactions may
    legitimately carry them.
    """
    if field in NUMERIC_FIELDS:
        if not isinstance(item, bytes):
            raise InvalidField(field, 'expected a byte string, got a list')
        return '0x' + int_to_hex(int.from_bytes(item, 'big')) if item.lstrip(b'\x00') else ''
    if field in DATA_FIELDS and isinstance(item, bytes):
        return _normalize_data(field, item)
    if field in ACCESS_LIST_FIELDS and isinstance(item, (list, bytes)):
        return normalize_access_list(item)
    raise InvalidField(field, f'unexpected wire value {type(item).__name__}')


def compatible_types(field_names) -> List[TxType]:
    """
    The transaction types that can carry every one of the given field names,
    in declaration order (legacy first).
    """
    names = set(field_names)
    candidates = list(TxType)
    if names & _FEE_MARKET_ONLY:
        candidates = [t for t in candidates if t is TxType.FEE_MARKET]
    if names & _TYPED_ONLY:
        candidates = [t for t in candidates if t is not TxType.LEGACY]
    if 'gasPrice' in names:
        candidates = [t for t in candidates if t is not TxType.FEE_MARKET]
    return candidates


def resolve_positional_type(values: Sequence, hint=None) -> TxType:
    """
    Infers the type of a positional field list from its length (9, 11 or 12).

    Raises:
        InvalidLength: For any other length.
        TypeMismatch: When `hint` names a different type.
    """
    tx_type = TYPES_BY_LENGTH.get(len(values))
    if tx_type is None:
        raise InvalidLength(len(values))
    if hint is not None and to_tx_type(hint) is not tx_type:
        raise TypeMismatch(to_tx_type(hint).value, tx_type.value)
    return tx_type


def resolve_named_type(fields: dict, hint=None) -> TxType:
    """
    Infers the type of a named field map.

    With a hint, the hinted type must be compatible with the present fields. Without
    one, legacy wins when it is compatible; otherwise the first remaining compatible
    type is taken (eip2930 before eip1559), so callers that need a specific typed
    envelope should pass the hint.
    """
    candidates = compatible_types(fields.keys())
    allowed = ', '.join(t.value for t in candidates) or 'none'
    if hint is not None:
        tx_type = to_tx_type(hint)
        if tx_type not in candidates:
            raise TypeMismatch(tx_type.value, allowed)
        return tx_type
    if not candidates:
        raise TypeMismatch('inferred', allowed)
    tx_type = TxType.LEGACY if TxType.LEGACY in candidates else candidates[0]
    logger.debug('Inferred transaction type %s from fields %s', tx_type.value, sorted(fields))
    return tx_type


def reconcile_chain_id(chain: Optional[str], chain_id_value) -> Optional[int]:
    """
    Combines a symbolic chain and an explicit chainId into one numeric id.

    Returns:
        Optional[int]: The agreed chain id, or None when neither source is given.

    Raises:
        ChainMismatch: If both are given and resolve to different networks.
    """
    explicit = to_int('chainId', chain_id_value) or None
    if chain is None:
        return explicit
    label_id = chain_id_of(chain)
    if explicit is not None and explicit != label_id:
        raise ChainMismatch(label_id, explicit)
    return label_id


def to_positional(tx_type: TxType, fields: dict, chain_id: int) -> list:
    """
    Lays out a named field map in the wire order of `tx_type`, normalizing each value.

    Known fields that `tx_type` does not carry are tolerated only when empty
    ('chainId' is always consumed: it becomes part of the legacy EIP-155 suffix).
    """
    names = TX_FIELDS[tx_type]
    for name, value in fields.items():
        if name not in ALL_TX_FIELDS:
            raise InvalidField(name, 'unknown field')
        if name not in names and name != 'chainId' and not _is_empty(value):
            raise InvalidField(name, f'not a field of {tx_type.value} transactions')
    values = []
    for name in names:
        if name == 'chainId':
            values.append(normalize_field(name, chain_id))
        else:
            values.append(normalize_field(name, fields.get(name)))
    return values


def strip_signature(tx_type: TxType, values: list, chain_id: Optional[int]) -> list:
    """
    Drops the trailing signature fields when all of them are empty.

    An unsigned legacy transaction then gets the EIP-155 suffix (chainId, '', '') so
    that its chain survives serialization in the 'v' slot.
    """
    signature = values[-SIGNATURE_FIELD_COUNT:]
    if any(signature):
        return list(values)
    stripped = list(values[:-SIGNATURE_FIELD_COUNT])
    if tx_type is TxType.LEGACY and chain_id:
        stripped.extend([normalize_field('chainId', chain_id), '', ''])
    return stripped
