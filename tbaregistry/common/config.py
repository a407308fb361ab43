"""
Registry configuration.

Values come from defaults, an optional JSON file, and CLI overrides, in that
order of precedence (lowest first).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional, Union

from eth_utils import is_hex_address, to_canonical_address


# Canonical ERC-6551 registry deployment address.
DEFAULT_REGISTRY_ADDRESS = bytes.fromhex("000000006551c19487814612e58fe06813775758")
DEFAULT_CHAIN_ID = 1337
DEFAULT_GAS_LIMIT = 30_000_000
DEFAULT_INIT_GAS = 1_000_000

LEDGER_BACKENDS = ("memory", "evm")

_JSON_KEYS = {
    "chainId": "chain_id",
    "registryAddress": "registry_address",
    "initGas": "init_gas",
    "gasLimit": "gas_limit",
    "rpcHost": "rpc_host",
    "rpcPort": "rpc_port",
}


@dataclass
class RegistryConfig:
    chain_id: int = DEFAULT_CHAIN_ID
    registry_address: bytes = DEFAULT_REGISTRY_ADDRESS
    ledger: str = "memory"
    init_gas: int = DEFAULT_INIT_GAS
    gas_limit: int = DEFAULT_GAS_LIMIT
    rpc_host: str = "127.0.0.1"
    rpc_port: int = 8545

    def __post_init__(self) -> None:
        if isinstance(self.registry_address, str):
            if not is_hex_address(self.registry_address):
                raise ValueError(f"Invalid registry address: {self.registry_address}")
            self.registry_address = to_canonical_address(self.registry_address)
        if len(self.registry_address) != 20:
            raise ValueError(
                f"Registry address must be 20 bytes, got {len(self.registry_address)}"
            )
        if self.ledger not in LEDGER_BACKENDS:
            raise ValueError(
                f"Unknown ledger backend {self.ledger!r}, expected one of {LEDGER_BACKENDS}"
            )
        if self.chain_id <= 0:
            raise ValueError(f"Chain ID must be positive, got {self.chain_id}")
        if self.init_gas <= 0 or self.init_gas > self.gas_limit:
            raise ValueError(
                f"Init gas must be in (0, {self.gas_limit}], got {self.init_gas}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RegistryConfig:
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _JSON_KEYS.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown config key: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Union[str, Path]) -> RegistryConfig:
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def override(self, **changes: Optional[Any]) -> RegistryConfig:
        """Return a copy with every non-None change applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
