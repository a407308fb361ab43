"""Standard test addresses.

All addresses are 20 bytes (canonical form, not checksummed).
"""

from eth_keys import keys

from tbaregistry.common.config import DEFAULT_REGISTRY_ADDRESS

# Implementation (delegation target) and token contracts: 0x…A1 / 0x…B2
IMPLEMENTATION_ADDRESS = bytes.fromhex("00" * 19 + "a1")
OTHER_IMPLEMENTATION_ADDRESS = bytes.fromhex("00" * 19 + "a2")
TOKEN_CONTRACT_ADDRESS = bytes.fromhex("00" * 19 + "b2")
OTHER_TOKEN_CONTRACT_ADDRESS = bytes.fromhex("00" * 19 + "b3")

REGISTRY_ADDRESS = DEFAULT_REGISTRY_ADDRESS

# Token owner, derived from private key 0x01...01
OWNER_PRIVATE_KEY = bytes.fromhex("01" * 32)
OWNER_ADDRESS = keys.PrivateKey(OWNER_PRIVATE_KEY).public_key.to_canonical_address()

ZERO_ADDRESS = bytes.fromhex("00" * 20)
