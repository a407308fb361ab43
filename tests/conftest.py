"""Pytest configuration and shared fixtures for all tests."""

import pytest

from tbaregistry.common.types import AccountCreationParams
from tbaregistry.registry.registry import AccountRegistry
from tbaregistry.storage.memory_backend import MemoryLedger

# Import test fixtures
from tests.fixtures.addresses import (
    IMPLEMENTATION_ADDRESS,
    TOKEN_CONTRACT_ADDRESS,
    REGISTRY_ADDRESS,
)


# =============================================================================
# Ledger and registry
# =============================================================================

@pytest.fixture
def ledger():
    """In-memory ledger with a pinned clock."""
    return MemoryLedger(timestamp=1_700_000_000)


@pytest.fixture
def registry(ledger):
    """Registry at the default address over the in-memory ledger."""
    return AccountRegistry(ledger, address=REGISTRY_ADDRESS)


@pytest.fixture
def evm_ledger():
    """py-evm backed ledger with a pinned genesis timestamp."""
    from tbaregistry.storage.evm_backend import ChainConfig, EVMLedger

    return EVMLedger(ChainConfig(chain_id=1337, timestamp=1_700_000_000))


@pytest.fixture
def evm_registry(evm_ledger):
    return AccountRegistry(evm_ledger, address=REGISTRY_ADDRESS)


# =============================================================================
# Parameters
# =============================================================================

@pytest.fixture
def make_params():
    """Factory for creation parameters with sensible defaults."""
    def _make(**overrides):
        values = {
            "implementation": IMPLEMENTATION_ADDRESS,
            "chain_id": 1,
            "token_contract": TOKEN_CONTRACT_ADDRESS,
            "token_id": 42,
            "salt": 7,
        }
        values.update(overrides)
        return AccountCreationParams(**values)
    return _make


@pytest.fixture
def params(make_params):
    """implementation=0x…A1, chain 1, token 0x…B2 #42, salt 7."""
    return make_params()
