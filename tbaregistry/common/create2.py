"""Deterministic account address derivation (EIP-1014 CREATE2).

Token-bound accounts live at the address a CREATE2 deployment from the
registry would produce:

    address = keccak256(0xff ++ registry ++ salt ++ keccak256(init_code))[12:]

The registry never stores where an account lives; it recomputes it from the
account parameters every time.

Reference: https://eips.ethereum.org/EIPS/eip-1014
"""

from __future__ import annotations

from eth_utils import keccak

CREATE2_PREFIX = b"\xff"


def _check_lengths(deployer: bytes, salt: bytes) -> None:
    if len(deployer) != 20:
        raise ValueError(f"Deployer must be 20 bytes, got {len(deployer)}")
    if len(salt) != 32:
        raise ValueError(f"Salt must be 32 bytes, got {len(salt)}")


def compute_create2_address(deployer: bytes, salt: bytes, init_code: bytes) -> bytes:
    """
    Address of ``init_code`` deployed by ``deployer`` with ``salt``.

    Args:
        deployer: 20-byte registry address
        salt: 32-byte big-endian salt
        init_code: Creation code; only its hash enters the address

    Raises:
        ValueError: If deployer or salt has the wrong length

    Example:
        >>> compute_create2_address(bytes(20), bytes(32), b"\\x00").hex()
        '4d1a2e2bb4f88f0250f26ffff098b0b30b26bf38'
    """
    _check_lengths(deployer, salt)
    return compute_create2_address_with_code_hash(deployer, salt, keccak(init_code))


def compute_create2_address_with_code_hash(
    deployer: bytes,
    salt: bytes,
    init_code_hash: bytes,
) -> bytes:
    """Same as ``compute_create2_address`` for an already hashed init code."""
    _check_lengths(deployer, salt)
    if len(init_code_hash) != 32:
        raise ValueError(f"Init code hash must be 32 bytes, got {len(init_code_hash)}")
    return keccak(CREATE2_PREFIX + deployer + salt + init_code_hash)[12:]
