"""
Shared fixtures: a deterministic private key and the published test vectors
under tests/vectors.
"""
import os

import pytest

from utils import read_json

VECTORS_DIR = os.path.join(os.path.dirname(__file__), 'vectors')

PRIVATE_KEY = '0x' + '46' * 32
RECIPIENT = '0x3535353535353535353535353535353535353535'


@pytest.fixture
def private_key():
    return PRIVATE_KEY


@pytest.fixture(scope='session')
def eip155_vector():
    return read_json(os.path.join(VECTORS_DIR, 'eip155.json'))


@pytest.fixture(scope='session')
def eip55_vectors():
    return read_json(os.path.join(VECTORS_DIR, 'eip55.json'))


@pytest.fixture
def legacy_fields():
    return {
        'nonce': 9,
        'gasPrice': 20 * 10 ** 9,
        'gasLimit': 21000,
        'to': RECIPIENT,
        'value': 10 ** 18,
        'data': '',
    }


@pytest.fixture
def fee_market_fields():
    return {
        'chainId': 1,
        'nonce': 3,
        'maxPriorityFeePerGas': 2 * 10 ** 9,
        'maxFeePerGas': 100 * 10 ** 9,
        'gasLimit': 50000,
        'to': RECIPIENT,
        'value': 12345,
        'data': '0xdeadbeef',
        'accessList': [
            {'address': '0x' + '11' * 20, 'storageKeys': ['0x' + '00' * 31 + '01']},
        ],
    }
