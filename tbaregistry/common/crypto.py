"""Hashing utilities using pycryptodome."""

from __future__ import annotations

from Crypto.Hash import keccak as _keccak_mod


def keccak256(data: bytes) -> bytes:
    """Compute Keccak-256 hash (NOT SHA3-256)."""
    h = _keccak_mod.new(digest_bits=256)
    h.update(data)
    return h.digest()


def event_topic(signature: str) -> bytes:
    """Topic 0 of a Solidity event, e.g. ``Transfer(address,address,uint256)``."""
    return keccak256(signature.encode("ascii"))


def function_selector(signature: str) -> bytes:
    return keccak256(signature.encode("ascii"))[:4]
