"""Test fixtures for registry tests."""

from .addresses import (
    IMPLEMENTATION_ADDRESS,
    OTHER_IMPLEMENTATION_ADDRESS,
    TOKEN_CONTRACT_ADDRESS,
    OTHER_TOKEN_CONTRACT_ADDRESS,
    REGISTRY_ADDRESS,
    OWNER_ADDRESS,
    ZERO_ADDRESS,
)
from .contracts import (
    STORE_42_IMPLEMENTATION,
    STORE_CALLER_IMPLEMENTATION,
    REVERT_IMPLEMENTATION,
    EMIT_LOG_IMPLEMENTATION,
    revert_with,
    error_string,
)
