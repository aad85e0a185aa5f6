from model import Transaction

# --- Configuration Section ---
private_key = '0x4646464646464646464646464646464646464646464646464646464646464646'
# A well-known throwaway key. Never use it for real funds.

# --- Transaction Construction ---
tx = Transaction({
    'nonce': 9,
    'gasPrice': 20 * 10 ** 9,  # 20 gwei.
    'gasLimit': 21000,
    'to': '0x3535353535353535353535353535353535353535',
    'value': 10 ** 18,  # 1 ether, in wei.
}, chain='mainnet')
# Without 'maxFeePerGas' or 'accessList' the fields describe a legacy transaction.
# The unsigned envelope carries the chain id in its 'v' slot (EIP-155).

print(tx.hex)  # The unsigned serialization.
print('0x' + tx.message_to_sign().hex())  # The Keccak-256 digest that gets signed.

# --- Signing and Verification ---
signed = tx.sign(private_key)
print(signed.raw['v'])  # 0x25 (37): recovery id + chainId * 2 + 35.
print(signed.hex)

decoded = Transaction(signed.hex)  # Decoding restores type, chain id and signature.
print(decoded.sender, decoded.to, decoded.upfront_cost)
