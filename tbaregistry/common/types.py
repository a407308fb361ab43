"""
Registry data model: creation/initialization parameters and decoded records.

Parameters are normalized on construction (hex strings become canonical
bytes / ints) but never validated there; validation belongs to the registry
so that it can report ``InvalidParameter`` before touching the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Union

from eth_utils import is_hex_address, to_canonical_address, to_checksum_address


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ZERO_ADDRESS = b"\x00" * 20
ADDRESS_SIZE = 20
WORD_SIZE = 32
UINT256_MAX = (1 << 256) - 1

AddressLike = Union[bytes, str, None]


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def to_address(value: Any) -> Any:
    """Canonicalize an address-like value, leaving unknown shapes untouched."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and is_hex_address(value):
        return to_canonical_address(value)
    return value


def to_uint(value: Any) -> Any:
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 16) if text[:2].lower() == "0x" else int(text)
        except ValueError:
            return value
    if isinstance(value, (bytes, bytearray)) and len(value) == WORD_SIZE:
        return int.from_bytes(value, "big")
    return value


def to_data(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, str):
        text = value[2:] if value[:2].lower() == "0x" else value
        return bytes.fromhex(text)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    raise ValueError(f"Expected hex string or bytes, got {type(value).__name__}")


def format_address(address: bytes) -> str:
    return to_checksum_address(address)


def is_null_address(value: Any) -> bool:
    return value is None or value == ZERO_ADDRESS


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AccountCreationParams:
    """The tuple that fully determines an account's identity."""

    implementation: AddressLike
    chain_id: int
    token_contract: AddressLike
    token_id: int
    salt: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "implementation", to_address(self.implementation))
        object.__setattr__(self, "token_contract", to_address(self.token_contract))
        object.__setattr__(self, "chain_id", to_uint(self.chain_id))
        object.__setattr__(self, "token_id", to_uint(self.token_id))
        object.__setattr__(self, "salt", to_uint(self.salt))

    @property
    def salt_bytes(self) -> bytes:
        return self.salt.to_bytes(WORD_SIZE, "big")

    @classmethod
    def from_dict(cls, data: dict) -> AccountCreationParams:
        """Build from a JSON object (camelCase or snake_case keys)."""
        def pick(*names: str, default: Any = None) -> Any:
            for name in names:
                if name in data:
                    return data[name]
            return default

        return cls(
            implementation=pick("implementation"),
            chain_id=pick("chainId", "chain_id"),
            token_contract=pick("tokenContract", "token_contract"),
            token_id=pick("tokenId", "token_id"),
            salt=pick("salt", default=0),
        )


@dataclass(frozen=True)
class InitializationParams:
    init_data: bytes = b""
    deadline: int = 0  # unix seconds, 0 = no deadline

    def __post_init__(self) -> None:
        object.__setattr__(self, "init_data", to_data(self.init_data))
        object.__setattr__(self, "deadline", to_uint(self.deadline or 0))

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> InitializationParams:
        if not data:
            return cls()
        return cls(
            init_data=data.get("initData", data.get("init_data", b"")),
            deadline=data.get("deadline", 0),
        )


# ---------------------------------------------------------------------------
# Decoded records
# ---------------------------------------------------------------------------

class TokenBinding(NamedTuple):
    chain_id: int
    token_contract: bytes
    token_id: int


@dataclass(frozen=True)
class AccountMetadata:
    """Everything recoverable from an account's deployed code."""

    implementation: bytes
    chain_id: int
    token_contract: bytes
    token_id: int
    salt: int
    layout_version: int = 1

    @property
    def token(self) -> TokenBinding:
        return TokenBinding(self.chain_id, self.token_contract, self.token_id)


@dataclass(frozen=True)
class AccountCreated:
    """Creation record emitted once per deployed account."""

    account: bytes
    implementation: bytes
    chain_id: int
    token_contract: bytes
    token_id: int
    salt: int
    init_data: bytes = b""
