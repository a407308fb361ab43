"""Account registry: code builder, creation records and the registry itself."""

from .registry import AccountRegistry, check_creation_params, decode_revert_reason
from .bytecode import (
    ACCOUNT_LAYOUT_V1,
    build_account_code,
    build_init_code,
    decode_account_code,
)

__all__ = [
    "AccountRegistry",
    "check_creation_params",
    "decode_revert_reason",
    "ACCOUNT_LAYOUT_V1",
    "build_account_code",
    "build_init_code",
    "decode_account_code",
]
