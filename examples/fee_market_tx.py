import os.path

import keys
import validation
from model import Transaction

# --- Configuration Section ---
chain = 'goerli'  # The chain label. It is resolved to its numeric chain id (5) through chains.CHAIN_TYPES.
ethereum_data_dir = './projects/go-ethereum/data'  # The path to the Go-Ethereum (Geth) data directory.
                                                   # This directory contains the keystore file.

# --- Key Initialization ---
key_file = os.path.join(ethereum_data_dir,
                        'keystore/UTC--2025-06-07T23-18-27.738383000Z--71562b71999873db5b286df957af199ec94617f7')
# Constructs the full path to the Ethereum keystore file using os.path.join for OS compatibility.

keys_supplier = keys.Keys.from_geth_file(key_file)  # Decrypts the account key from the Geth keystore file.

# --- Transaction Parameter Preparation ---
raw_fields = validation.to_raw_fields({
    'from': keys_supplier.address,
    'to': '0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed',
    'value': '0.01',  # In eth, the default amountUnit.
    'maxFeePerGas': '30',  # In gwei, the default fee unit.
    'maxPriorityFeePerGas': '1.5',
    'nonce': 0,
    'chainId': 5,
})
# Checks the human-entered values and converts them into raw, 0x-prefixed hex fields.
# Every rejected field is reported at once through errors.TransactionFieldError.

# --- Transaction Construction and Signing ---
tx = Transaction(raw_fields, chain=chain, type='eip1559')
# The type hint makes the envelope explicit; without it the type is inferred from the field names.

signed = tx.sign(keys_supplier.priv_key)  # Returns a new, signed Transaction; `tx` stays unsigned.

print(validation.to_humanized(signed.raw))  # The fields as a user would enter them.
print(signed.hex)  # The serialized EIP-1559 envelope, ready for eth_sendRawTransaction.
print(signed.hash)  # The transaction hash.
print(signed.sender == keys_supplier.address)  # The sender is recovered from the signature.
