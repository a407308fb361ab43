"""Shared types, constants and hashing helpers."""

from .crypto import keccak256
from .create2 import compute_create2_address, compute_create2_address_with_code_hash
from .errors import (
    RegistryError,
    InvalidParameter,
    DeadlineExceeded,
    AccountNotFound,
    AccountDecodeError,
    OperationFailed,
)

__all__ = [
    "keccak256",
    "compute_create2_address",
    "compute_create2_address_with_code_hash",
    "RegistryError",
    "InvalidParameter",
    "DeadlineExceeded",
    "AccountNotFound",
    "AccountDecodeError",
    "OperationFailed",
]
