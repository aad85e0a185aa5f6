import pytest

from utils import add_0x, clone_deep, hex_to_bytes, hex_to_int, int_to_hex, is_hex, strip_0x


@pytest.mark.parametrize('num, expected', [(0, ''), (1, '01'), (255, 'ff'), (256, '0100'), (2 ** 64, '010000000000000000')])
def test_int_to_hex(num, expected):
    assert int_to_hex(num) == expected


def test_hex_helpers():
    assert add_0x('ab') == '0xab'
    assert add_0x('0Xab') == '0Xab'
    assert strip_0x('0xab') == 'ab'
    assert hex_to_int('') == hex_to_int('0x') == 0
    assert hex_to_bytes('0xabc') == b'\x0a\xbc'
    assert is_hex('0xDEADbeef')
    assert is_hex('')
    assert not is_hex('0xg0')


def test_clone_deep_shares_nothing_mutable():
    source = {'accessList': [['0x11', ['0x01']]], 'value': 2 ** 255, 'blob': bytearray(b'ab')}
    copy = clone_deep(source)
    assert copy == source
    copy['accessList'][0][1].append('0x02')
    copy['blob'][0] = 0
    assert source['accessList'] == [['0x11', ['0x01']]]
    assert source['blob'] == bytearray(b'ab')
    assert copy['value'] == 2 ** 255
