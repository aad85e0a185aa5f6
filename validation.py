"""
Validation pipeline between human-entered transaction parameters and raw
transaction fields.

Humanized values are numbers, decimal strings or 0x-hex strings; amounts carry an
optional unit ('wei', 'gwei' or 'eth'). The bounds below are product limits for
values typed into a UI, stricter than what the protocol itself allows.
"""
import logging
from typing import Optional, TypedDict, Union

from web3 import Web3

import address
from errors import InvalidField, TransactionFieldError, TxError
from utils import add_0x, hex_to_int, int_to_hex, is_hex

logger = logging.getLogger(__name__)

# --- Units ---
GWEI = 10 ** 9
ETHER = 10 ** 18
# Our unit tags -> the unit names understood by Web3.to_wei / Web3.from_wei.
UNITS = {'wei': 'wei', 'gwei': 'gwei', 'eth': 'ether'}

# --- Bounds (inclusive) ---
MAX_AMOUNT = ETHER * 100_000_000  # 100M ether
MIN_GAS_PRICE = 1
MAX_GAS_PRICE = GWEI * 10_000  # 10,000 gwei
MIN_GAS_LIMIT = 21_000
MAX_GAS_LIMIT = 20_000_000
MAX_NONCE = 10_000_000
MAX_DATA_SIZE = 10_000_000  # characters of the hex string
MAX_CHAIN_ID = 2 ** 32 - 1

Number = Union[int, str]

HumanizedTx = TypedDict('HumanizedTx', {
    'from': str,
    'to': str,
    'value': Number,
    'maxFeePerGas': Number,
    'maxPriorityFeePerGas': Number,
    'nonce': Number,
    'data': str,
    'gasLimit': Number,
    'amountUnit': str,
    'maxFeePerGasUnit': str,
    'maxPriorityFeePerGasUnit': str,
    'chainId': Number,
}, total=False)

REQUIRED_FIELDS = ('maxFeePerGas', 'maxPriorityFeePerGas', 'to', 'value', 'nonce')
# Options that qualify a field instead of being fields themselves.
OPTION_FIELDS = {
    'value': ('amountUnit',),
    'to': ('from',),
    'maxFeePerGas': ('maxFeePerGasUnit',),
    'maxPriorityFeePerGas': ('maxPriorityFeePerGasUnit',),
}
ALL_OPTION_FIELDS = frozenset(option for options in OPTION_FIELDS.values() for option in options)

RAW_DEFAULTS = {
    'nonce': '0x',
    'to': '0x',
    'value': '0x',
    'gasLimit': '0x5208',
    'data': '0x',
    'v': '0x',
    'r': '0x',
    's': '0x',
    'chainId': 1,
}


def _minmax(field: str, num: int, lo: int, hi: int, err: Optional[str] = None):
    if num < lo or num > hi:
        raise InvalidField(field, f'Must be {err or f">= {lo} and <= {hi}"}')


def _ensure_not_hex(val):
    # 0x-prefixed strings are hex numbers; everything else is left for decimal parsing.
    if isinstance(val, str) and val.strip()[:2] in ('0x', '0X'):
        return int(val.strip(), 16)
    return val


def parse_unit(val, unit: str) -> int:
    """
    Converts an amount expressed in `unit` into wei.

    Args:
        val: An int, a decimal string (e.g. '1.5'), or a 0x-hex string.
        unit (str): 'wei', 'gwei' or 'eth'.

    Returns:
        int: The amount in wei.
    """
    if unit not in UNITS:
        raise ValueError(f'Wrong unit name: {unit}')
    text = str(_ensure_not_hex(val)).strip()
    if unit == 'wei':
        return int(text)
    return int(Web3.to_wei(text, UNITS[unit]))


def format_unit(wei: int, unit: str) -> str:
    """Formats an amount in wei as a plain decimal string in `unit` (e.g. '1.5')."""
    if unit not in UNITS:
        raise ValueError(f'Wrong unit name: {unit}')
    if unit == 'wei' or not wei:
        return str(wei)
    return format(Web3.from_wei(wei, UNITS[unit]).normalize(), 'f')


# --- Checks on normalized values ---

def _check_nonce(num: int, _data=None):
    _minmax('nonce', num, 0, MAX_NONCE)


def _check_max_fee(num: int, _data=None):
    _minmax('maxFeePerGas', num, MIN_GAS_PRICE, MAX_GAS_PRICE, '>= 1 wei and < 10000 gwei')


def _check_priority_fee(num: int, data=None):
    _minmax('maxPriorityFeePerGas', num, MIN_GAS_PRICE, MAX_GAS_PRICE, '>= 1 wei and < 10000 gwei')
    max_fee = (data or {}).get('maxFeePerGas')
    if isinstance(max_fee, int) and num > max_fee:
        raise InvalidField('maxPriorityFeePerGas', f'cannot be bigger than maxFeePerGas={max_fee}')


def _check_gas_limit(num: int, _data=None):
    _minmax('gasLimit', num, MIN_GAS_LIMIT, MAX_GAS_LIMIT)


def _check_to(addr: str, _data=None):
    if len(addr) not in (40, 42):
        raise InvalidField('to', 'Address length must be 40 or 42 symbols')
    addr = add_0x(addr)
    if len(addr) != 42 or not is_hex(addr):
        raise InvalidField('to', 'Address must be hex')
    if not address.verify_checksum(addr):
        raise InvalidField('to', 'Address checksum does not match')


def _check_value(num: int, _data=None):
    _minmax('value', num, 0, MAX_AMOUNT, '>= 0 and < 100M eth')


def _check_data(val: str, _data=None):
    if isinstance(val, str) and len(val) > MAX_DATA_SIZE:
        raise InvalidField('data', 'Data is too big')


def _check_chain_id(num: int, _data=None):
    if not num:
        return
    _minmax('chainId', num, 1, MAX_CHAIN_ID, '>= 1 and <= 2**32-1')


CHECKS = {
    'nonce': _check_nonce,
    'maxFeePerGas': _check_max_fee,
    'maxPriorityFeePerGas': _check_priority_fee,
    'gasLimit': _check_gas_limit,
    'to': _check_to,
    'value': _check_value,
    'data': _check_data,
    'chainId': _check_chain_id,
}


# --- Humanized -> normalized ---

def _h2r_to(val: str, opts: dict) -> str:
    if not isinstance(val, str):
        raise InvalidField('to', 'Address must be a string')
    sender = opts.get('from')
    if sender and sender.lower() == val.lower():
        raise InvalidField('to', 'Must differ from sender address')
    return val


HUMAN_TO_RAW = {
    'nonce': lambda val, opts: int(str(_ensure_not_hex(val))),
    'maxFeePerGas': lambda val, opts: parse_unit(val, opts.get('maxFeePerGasUnit') or 'gwei'),
    'maxPriorityFeePerGas': lambda val, opts: parse_unit(val, opts.get('maxPriorityFeePerGasUnit') or 'gwei'),
    'gasLimit': lambda val, opts: int(str(_ensure_not_hex(val)) or 0) or MIN_GAS_LIMIT,
    'to': _h2r_to,
    'value': lambda val, opts: parse_unit(val, opts.get('amountUnit') or 'eth'),
    'data': lambda val, opts: val or '',
    'chainId': lambda val, opts: int(str(_ensure_not_hex(val)) or 0) or 1,
}


# --- Raw -> normalized ---

def _parse_hex(val) -> int:
    if isinstance(val, int):
        return val
    return hex_to_int(val or '')


RAW_TO_HUMAN = {
    'nonce': _parse_hex,
    'maxFeePerGas': _parse_hex,
    'maxPriorityFeePerGas': _parse_hex,
    'gasLimit': _parse_hex,
    'to': lambda val: address.checksum(val or ''),
    'value': _parse_hex,
    'data': lambda val: val or '',
    'chainId': lambda val: _parse_hex(val) or 1,
}


def _to_raw_string(val) -> str:
    # Numbers become minimal hex ('0x' for zero); strings are only prefixed.
    if isinstance(val, int):
        return '0x' + int_to_hex(val)
    return add_0x(val)


def _normalize(field: str, val, opts: dict, data: Optional[dict] = None):
    try:
        normalized = HUMAN_TO_RAW[field](val, opts)
    except TxError:
        raise
    except (ValueError, TypeError, ArithmeticError) as exc:
        raise InvalidField(field, str(exc) or exc.__class__.__name__) from exc
    CHECKS[field](normalized, data)
    return normalized


def _field_options(fields: dict, field: str) -> dict:
    return {option: fields[option] for option in OPTION_FIELDS.get(field, ())
            if fields.get(option) is not None}


def to_raw_fields(fields: HumanizedTx) -> dict:
    """
    Converts human-entered parameters into a complete raw field map.

    Every field is checked; failures are collected and reported together rather than
    stopping at the first one.

    Args:
        fields (HumanizedTx): The humanized transaction. 'maxFeePerGas',
            'maxPriorityFeePerGas', 'to', 'value' and 'nonce' are required.

    Returns:
        dict: The raw field map (0x-prefixed hex strings) merged over `RAW_DEFAULTS`.

    Raises:
        TransactionFieldError: With one entry per rejected field.
    """
    errors = {}
    normalized = {}
    for field in REQUIRED_FIELDS:
        if fields.get(field) is None:
            errors[field] = 'Cannot be empty'
    # maxFeePerGas first: the priority fee is checked against it.
    ordered = sorted(fields, key=lambda name: name != 'maxFeePerGas')
    for field in ordered:
        val = fields[field]
        if field in ALL_OPTION_FIELDS or val is None:
            continue
        if field not in HUMAN_TO_RAW:
            errors[field] = 'Unknown field'
            continue
        try:
            normalized[field] = _normalize(field, val, _field_options(fields, field), normalized)
        except InvalidField as exc:
            errors[field] = exc.reason
    if errors:
        logger.debug('Transaction fields rejected: %s', sorted(errors))
        raise TransactionFieldError(errors)
    raw = dict(RAW_DEFAULTS)
    raw.update({field: _to_raw_string(val) for field, val in normalized.items()})
    return raw


def validate_field(field: str, val, opts: Optional[dict] = None) -> str:
    """
    Normalizes and checks a single humanized field.

    Args:
        field (str): The field name (e.g. 'value').
        val: The humanized value.
        opts (dict, optional): Qualifiers such as 'amountUnit' or 'from'.

    Returns:
        str: The raw 0x-prefixed value.

    Raises:
        InvalidField: If the value cannot be parsed or is out of bounds.
    """
    if field not in HUMAN_TO_RAW:
        raise InvalidField(field, 'Unknown field')
    return _to_raw_string(_normalize(field, val, opts or {}))


def validate_fields(raw: dict) -> None:
    """
    Runs the humanized-value checks on an existing raw field map, e.g. before
    showing an imported transaction to a user.

    Raises:
        TransactionFieldError: With one entry per field that fails its check.
    """
    errors = {}
    decoded = {}
    for field in sorted(raw, key=lambda name: name != 'maxFeePerGas'):
        convert = RAW_TO_HUMAN.get(field)
        if convert is None:
            continue
        try:
            decoded[field] = convert(raw[field])
            CHECKS[field](decoded[field], decoded)
        except InvalidField as exc:
            errors[field] = exc.reason
        except (ValueError, TypeError) as exc:
            errors[field] = str(exc)
    if errors:
        logger.debug('Raw transaction fields rejected: %s', sorted(errors))
        raise TransactionFieldError(errors)


def to_humanized(raw: dict, amount_unit: str = 'eth', fee_unit: str = 'gwei') -> HumanizedTx:
    """
    Formats a raw field map for display, converting amounts back into units.

    Args:
        raw (dict): Raw fields (hex strings), e.g. `Transaction.raw` or `to_raw_fields` output.
        amount_unit (str): Unit for 'value'. Defaults to 'eth'.
        fee_unit (str): Unit for the fee-per-gas fields. Defaults to 'gwei'.

    Returns:
        HumanizedTx: Values as strings in the given units, ints, and a checksummed 'to'.
            Feeding it back to `to_raw_fields` gives the same raw values.
    """
    for unit in (amount_unit, fee_unit):
        if unit not in UNITS:
            raise ValueError(f'Wrong unit name: {unit}')
    humanized = {}
    for field, val in raw.items():
        if field in ('value', 'maxFeePerGas', 'maxPriorityFeePerGas'):
            unit = amount_unit if field == 'value' else fee_unit
            humanized[field] = format_unit(_parse_hex(val), unit)
            humanized[OPTION_FIELDS[field][0]] = unit
        elif field == 'to':
            humanized['to'] = address.checksum(val) if val and val != '0x' else ''
        elif field in ('nonce', 'gasLimit', 'chainId'):
            humanized[field] = RAW_TO_HUMAN[field](val)
        elif field == 'data':
            humanized['data'] = val or ''
    return humanized
