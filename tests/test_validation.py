import pytest

import validation
from errors import InvalidField, TransactionFieldError

SENDER = '0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359'
RECIPIENT = '0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed'


@pytest.fixture
def humanized():
    return {
        'from': SENDER,
        'to': RECIPIENT,
        'value': '1.5',
        'maxFeePerGas': '100',
        'maxPriorityFeePerGas': '2',
        'nonce': '1',
    }


class TestParseUnit:

    @pytest.mark.parametrize('value, unit, wei', [
        ('1', 'wei', 1),
        ('1', 'gwei', 10 ** 9),
        ('1.5', 'eth', 15 * 10 ** 17),
        ('0.000000001', 'eth', 10 ** 9),
        (2, 'gwei', 2 * 10 ** 9),
        ('0x10', 'wei', 16),
        ('0x10', 'gwei', 16 * 10 ** 9),
    ])
    def test_units(self, value, unit, wei):
        assert validation.parse_unit(value, unit) == wei

    def test_unknown_unit(self):
        with pytest.raises(ValueError):
            validation.parse_unit('1', 'finney')

    def test_format_unit(self):
        assert validation.format_unit(15 * 10 ** 17, 'eth') == '1.5'
        assert validation.format_unit(10 * 10 ** 18, 'eth') == '10'
        assert validation.format_unit(0, 'gwei') == '0'
        assert validation.format_unit(7, 'wei') == '7'


class TestToRawFields:

    def test_complete(self, humanized):
        raw = validation.to_raw_fields(humanized)
        assert int(raw['value'], 16) == 15 * 10 ** 17
        assert int(raw['maxFeePerGas'], 16) == 100 * 10 ** 9
        assert int(raw['maxPriorityFeePerGas'], 16) == 2 * 10 ** 9
        assert raw['nonce'] == '0x01'
        assert raw['to'] == RECIPIENT
        assert raw['gasLimit'] == '0x5208'
        assert raw['data'] == '0x'
        assert raw['chainId'] == 1
        assert raw['v'] == raw['r'] == raw['s'] == '0x'
        assert 'from' not in raw

    def test_units(self, humanized):
        humanized.update(value='1000', amountUnit='wei', maxFeePerGas='0.5', maxFeePerGasUnit='gwei',
                         maxPriorityFeePerGas='100000000', maxPriorityFeePerGasUnit='wei')
        raw = validation.to_raw_fields(humanized)
        assert raw['value'] == '0x03e8'
        assert int(raw['maxFeePerGas'], 16) == 5 * 10 ** 8
        assert int(raw['maxPriorityFeePerGas'], 16) == 10 ** 8

    def test_optional_fields(self, humanized):
        humanized.update(gasLimit='50000', data='0xdeadbeef', chainId='5')
        raw = validation.to_raw_fields(humanized)
        assert raw['gasLimit'] == '0xc350'
        assert raw['data'] == '0xdeadbeef'
        assert raw['chainId'] == '0x05'

    def test_zero_nonce(self, humanized):
        humanized['nonce'] = 0
        assert validation.to_raw_fields(humanized)['nonce'] == '0x'

    def test_missing_required_fields(self):
        with pytest.raises(TransactionFieldError) as exc_info:
            validation.to_raw_fields({})
        assert exc_info.value.field_errors == {
            field: 'Cannot be empty' for field in validation.REQUIRED_FIELDS
        }

    def test_errors_are_collected(self, humanized):
        humanized.update(nonce='-1', gasLimit='1000', value='lots')
        with pytest.raises(TransactionFieldError) as exc_info:
            validation.to_raw_fields(humanized)
        assert set(exc_info.value.field_errors) == {'nonce', 'gasLimit', 'value'}

    def test_to_equals_from(self, humanized):
        humanized['to'] = SENDER.lower()
        with pytest.raises(TransactionFieldError) as exc_info:
            validation.to_raw_fields(humanized)
        assert set(exc_info.value.field_errors) == {'to'}

    def test_bad_checksum(self, humanized):
        humanized['to'] = '0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed'
        with pytest.raises(TransactionFieldError) as exc_info:
            validation.to_raw_fields(humanized)
        assert 'checksum' in exc_info.value.field_errors['to']

    def test_priority_fee_above_max_fee(self, humanized):
        humanized.update(maxFeePerGas='1', maxPriorityFeePerGas='2')
        with pytest.raises(TransactionFieldError) as exc_info:
            validation.to_raw_fields(humanized)
        assert set(exc_info.value.field_errors) == {'maxPriorityFeePerGas'}

    def test_fee_bounds(self, humanized):
        humanized.update(maxFeePerGas='20000', maxPriorityFeePerGas='0')
        with pytest.raises(TransactionFieldError) as exc_info:
            validation.to_raw_fields(humanized)
        assert set(exc_info.value.field_errors) == {'maxFeePerGas', 'maxPriorityFeePerGas'}

    def test_unknown_field(self, humanized):
        humanized['gasPrice'] = '1'
        with pytest.raises(TransactionFieldError) as exc_info:
            validation.to_raw_fields(humanized)
        assert exc_info.value.field_errors == {'gasPrice': 'Unknown field'}


class TestValidateField:

    def test_value(self):
        assert validation.validate_field('value', '1', {'amountUnit': 'gwei'}) == '0x3b9aca00'

    def test_to_without_prefix(self):
        assert validation.validate_field('to', RECIPIENT[2:]) == RECIPIENT

    @pytest.mark.parametrize('field, value', [
        ('nonce', -1),
        ('nonce', validation.MAX_NONCE + 1),
        ('gasLimit', validation.MAX_GAS_LIMIT + 1),
        ('value', '100000001'),
        ('chainId', 2 ** 32),
        ('to', '0x1234'),
        ('to', '0x' + 'z' * 40),
        ('data', 'ab' * (validation.MAX_DATA_SIZE // 2 + 1)),
        ('gasUsed', 1),
    ])
    def test_rejected(self, field, value):
        with pytest.raises(InvalidField) as exc_info:
            validation.validate_field(field, value)
        assert exc_info.value.field == field


class TestValidateFields:

    def test_accepts_pipeline_output(self, humanized):
        validation.validate_fields(validation.to_raw_fields(humanized))

    def test_rejects_out_of_bounds(self, humanized):
        raw = validation.to_raw_fields(humanized)
        raw.update(nonce='0x' + format(validation.MAX_NONCE + 1, 'x'), gasLimit='0x01')
        with pytest.raises(TransactionFieldError) as exc_info:
            validation.validate_fields(raw)
        assert set(exc_info.value.field_errors) == {'nonce', 'gasLimit'}


class TestToHumanized:

    def test_formats_units(self, humanized):
        result = validation.to_humanized(validation.to_raw_fields(humanized))
        assert result['value'] == '1.5'
        assert result['amountUnit'] == 'eth'
        assert result['maxFeePerGas'] == '100'
        assert result['maxPriorityFeePerGas'] == '2'
        assert result['maxFeePerGasUnit'] == 'gwei'
        assert result['nonce'] == 1
        assert result['gasLimit'] == 21000
        assert result['to'] == RECIPIENT

    def test_round_trip(self, humanized):
        raw = validation.to_raw_fields(humanized)
        again = validation.to_raw_fields(dict(validation.to_humanized(raw), **{'from': SENDER}))
        for field in ('value', 'maxFeePerGas', 'maxPriorityFeePerGas', 'nonce', 'to', 'gasLimit', 'data'):
            assert again[field] == raw[field]

    def test_custom_units(self, humanized):
        result = validation.to_humanized(validation.to_raw_fields(humanized), amount_unit='gwei', fee_unit='wei')
        assert result['value'] == '1500000000'
        assert result['maxFeePerGas'] == str(100 * 10 ** 9)
