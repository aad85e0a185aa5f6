"""
Envelope codec: the ordered field list of a transaction <-> its wire bytes.

Legacy transactions are a bare RLP list. Typed transactions (EIP-2718) are one
type byte followed by the RLP list: 0x01 for EIP-2930, 0x02 for EIP-1559.
"""
import logging
from typing import Optional, Tuple

import rlp
from rlp.exceptions import DecodingError

import fields
import keys
from chains import DEFAULT_CHAIN_ID, TYPES_BY_ID, TxType
from errors import DecodeError, InvalidField
from utils import hex_to_bytes, hex_to_int

logger = logging.getLogger(__name__)

RESERVED_TYPE_BYTE = 0xff
MAX_TYPE_BYTE = 0x7f


def _to_wire(value):
    # Canonical hex strings become byte strings; access-list tuples become nested lists.
    if isinstance(value, str):
        return hex_to_bytes(value)
    if isinstance(value, (list, tuple)):
        return [_to_wire(item) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise TypeError(f'Cannot serialize {type(value).__name__}')


def encode(tx_type: TxType, values: list) -> bytes:
    """
    Serializes an ordered list of canonical field values.

    Args:
        tx_type (TxType): Selects the type byte prefix (none for legacy).
        values (list): Canonical values in wire order, signature fields optional.

    Returns:
        bytes: The envelope bytes.
    """
    payload = rlp.encode([_to_wire(value) for value in values])
    if tx_type is TxType.LEGACY:
        return payload
    return bytes([tx_type.type_id]) + payload


def decode(data: bytes) -> Tuple[TxType, list]:
    """
    Splits envelope bytes into the transaction type and the decoded RLP items.

    Raises:
        DecodeError: On a reserved or unknown type byte, malformed RLP, or a payload
            that is not a list.
    """
    if not data:
        raise DecodeError('empty input')
    first = data[0]
    if first == RESERVED_TYPE_BYTE:
        raise DecodeError('reserved type byte 0xff')
    if first <= MAX_TYPE_BYTE:
        tx_type = TYPES_BY_ID.get(first)
        if tx_type is None or tx_type is TxType.LEGACY:
            raise DecodeError(f'unsupported transaction type {first}')
        payload = data[1:]
    else:
        tx_type = TxType.LEGACY
        payload = data
    try:
        items = rlp.decode(payload)
    except DecodingError as exc:
        raise DecodeError(f'{tx_type.value} envelope: {exc}') from exc
    if not isinstance(items, list):
        raise DecodeError(f'{tx_type.value} envelope: expected a list')
    return tx_type, items


def decode_envelope(data: bytes, default_chain_id: int = DEFAULT_CHAIN_ID) -> Tuple[TxType, dict, int, bool]:
    """
    Decodes envelope bytes into named canonical fields.

    Items beyond the type's field count are ignored; missing trailing items (an
    unsigned typed transaction) decode as empty. For an unsigned legacy
    transaction the 'v' slot holds the chain id and is cleared; for a signed one
    the chain id is read back from an EIP-155 'v'.

    Args:
        data (bytes): The envelope.
        default_chain_id (int): Used when the envelope carries no chain id.

    Returns:
        Tuple[TxType, dict, int, bool]: (type, raw fields, chain id, whether the chain id
            came from the envelope).
    """
    tx_type, items = decode(data)
    raw = {}
    try:
        for i, name in enumerate(tx_type.fields):
            raw[name] = fields.from_wire(name, items[i] if i < len(items) else b'')
    except InvalidField as exc:
        raise DecodeError(f'{tx_type.value} envelope: {exc.message}') from exc

    chain_id: Optional[int]
    if tx_type is TxType.LEGACY:
        if not raw['r'] and not raw['s']:
            chain_id = hex_to_int(raw['v']) or None
            raw['v'] = ''
        else:
            chain_id = keys.chain_id_from_v(hex_to_int(raw['v']))
    else:
        chain_id = hex_to_int(raw['chainId']) or None

    encoded = chain_id is not None
    if not encoded:
        chain_id = default_chain_id
        if tx_type is not TxType.LEGACY:
            raw['chainId'] = fields.normalize_field('chainId', chain_id)
    logger.debug('Decoded %s transaction (chainId=%s, encoded=%s)', tx_type.value, chain_id, encoded)
    return tx_type, raw, chain_id, encoded
