import json
import re

from eth_typing import HexStr

_HEX_PREFIX = re.compile(r'^0[xX]')
_HEX_DIGITS = re.compile(r'^[0-9a-fA-F]*$')


def read_json(file_name: str):
    """
    Reads and parses a JSON file, typically used for loading transaction
    fixtures and published test vectors.

    Args:
        file_name (str): The path to the JSON file to be read.

    Returns:
        The parsed JSON content (usually a dict or a list).
    """
    with open(file_name, 'r') as fle:
        return json.load(fle)


def add_0x(hex_str: str) -> HexStr:
    return HexStr(hex_str if _HEX_PREFIX.match(hex_str) else '0x' + hex_str)


def strip_0x(hex_str: str) -> str:
    return _HEX_PREFIX.sub('', hex_str)


def is_hex(hex_str: str) -> bool:
    """True if the string (with or without the 0x prefix) holds only hex digits."""
    return bool(_HEX_DIGITS.match(strip_0x(hex_str)))


def int_to_hex(num: int) -> str:
    """
    Converts a non-negative integer to even-length hex without the 0x prefix.
    Zero becomes the empty string (an empty byte string on the wire).
    """
    if num == 0:
        return ''
    digits = format(num, 'x')
    return '0' + digits if len(digits) % 2 else digits


def hex_to_int(hex_str: str) -> int:
    """Parses a hex string; '' and '0x' both mean zero."""
    digits = strip_0x(hex_str)
    return int(digits, 16) if digits else 0


def hex_to_bytes(hex_str: str) -> bytes:
    """Decodes a hex string, left-padding an odd digit count with a zero."""
    digits = strip_0x(hex_str)
    if len(digits) % 2:
        digits = '0' + digits
    return bytes.fromhex(digits)


def clone_deep(obj):
    """
    Recursively copies dicts, lists, tuples and bytearrays so the copy shares
    no mutable structure with the source. Ints, strings and bytes are immutable
    and are returned as-is.
    """
    if isinstance(obj, dict):
        return {key: clone_deep(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [clone_deep(item) for item in obj]
    if isinstance(obj, tuple):
        return tuple(clone_deep(item) for item in obj)
    if isinstance(obj, bytearray):
        return bytearray(obj)
    return obj
