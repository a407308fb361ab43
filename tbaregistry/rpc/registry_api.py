"""
registry_ namespace JSON-RPC API handlers.

Account parameters travel as one JSON object:

    {"implementation": "0x...", "chainId": 1, "tokenContract": "0x...",
     "tokenId": "0x2a", "salt": 7}

Integers may be JSON numbers or hex strings.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional

from eth_utils import is_hex_address, to_canonical_address

from tbaregistry.common.errors import (
    AccountDecodeError,
    AccountNotFound,
    DeadlineExceeded,
    InvalidParameter,
    OperationFailed,
    RegistryError,
)
from tbaregistry.common.types import (
    AccountCreated,
    AccountCreationParams,
    InitializationParams,
    format_address,
)
from tbaregistry.registry.registry import AccountRegistry
from tbaregistry.rpc.server import (
    EXECUTION_ERROR,
    INVALID_PARAMS,
    RPCError,
    RPCServer,
    bytes_to_hex,
    int_to_hex,
)

logger = logging.getLogger(__name__)


ACCOUNT_NOT_FOUND = -32001
DEADLINE_EXCEEDED = -32002
ACCOUNT_DECODE_ERROR = -32003


# ---------------------------------------------------------------------------
# Parsing and error translation
# ---------------------------------------------------------------------------

def _parse_address(value: Any) -> bytes:
    if not isinstance(value, str) or not is_hex_address(value):
        raise RPCError(INVALID_PARAMS, f"Invalid address: {value!r}")
    return to_canonical_address(value)


def _parse_params(value: Any) -> AccountCreationParams:
    if not isinstance(value, dict):
        raise RPCError(INVALID_PARAMS, "Account parameters must be an object")
    try:
        return AccountCreationParams.from_dict(value)
    except ValueError as e:
        raise RPCError(INVALID_PARAMS, str(e))


def _parse_init_params(value: Any) -> InitializationParams:
    if value is not None and not isinstance(value, dict):
        raise RPCError(INVALID_PARAMS, "Initialization parameters must be an object")
    try:
        return InitializationParams.from_dict(value)
    except ValueError as e:
        raise RPCError(INVALID_PARAMS, str(e))


def _to_rpc_error(error: RegistryError) -> RPCError:
    if isinstance(error, InvalidParameter):
        return RPCError(INVALID_PARAMS, str(error), {"field": error.field, "reason": error.reason})
    if isinstance(error, AccountNotFound):
        return RPCError(ACCOUNT_NOT_FOUND, str(error), {"account": format_address(error.address)})
    if isinstance(error, DeadlineExceeded):
        return RPCError(DEADLINE_EXCEEDED, str(error), {"deadline": error.deadline, "now": error.now})
    if isinstance(error, AccountDecodeError):
        return RPCError(ACCOUNT_DECODE_ERROR, str(error), {"reason": error.reason})
    if isinstance(error, OperationFailed):
        return RPCError(EXECUTION_ERROR, str(error), {"operation": error.operation, "reason": error.reason})
    return RPCError(EXECUTION_ERROR, str(error))


def _translate_errors(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except RegistryError as e:
            raise _to_rpc_error(e) from e
    return wrapper


def _format_token(chain_id: int, token_contract: bytes, token_id: int) -> dict:
    return {
        "chainId": int_to_hex(chain_id),
        "tokenContract": format_address(token_contract),
        "tokenId": int_to_hex(token_id),
    }


def _format_record(record: AccountCreated) -> dict:
    result = _format_token(record.chain_id, record.token_contract, record.token_id)
    result["account"] = format_address(record.account)
    result["implementation"] = format_address(record.implementation)
    result["salt"] = int_to_hex(record.salt)
    result["initData"] = bytes_to_hex(record.init_data)
    return result


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register_registry_api(rpc: RPCServer, registry: AccountRegistry, chain_id: int) -> None:
    """Register eth_ and registry_ methods backed by ``registry``."""

    @rpc.method("eth_chainId")
    def chain_id_() -> str:
        return int_to_hex(chain_id)

    @rpc.method("eth_getCode")
    def get_code(address: str, block: str = "latest") -> str:
        return bytes_to_hex(registry.ledger.code_at(_parse_address(address)))

    @rpc.method("registry_address")
    def registry_address() -> str:
        return format_address(registry.address)

    @rpc.method("registry_validateParams")
    def validate_params(params: dict) -> dict:
        valid, reason = registry.validate_creation_params(_parse_params(params))
        return {"valid": valid, "reason": reason}

    @rpc.method("registry_account")
    @_translate_errors
    def account(params: dict) -> str:
        return format_address(registry.predict_address(_parse_params(params)))

    @rpc.method("registry_exists")
    @_translate_errors
    def exists(params: dict) -> dict:
        deployed, location = registry.exists(_parse_params(params))
        return {"exists": deployed, "account": format_address(location)}

    @rpc.method("registry_createAccount")
    @_translate_errors
    def create_account(params: dict, init_params: Optional[dict] = None) -> str:
        location = registry.create_account(_parse_params(params), _parse_init_params(init_params))
        return format_address(location)

    @rpc.method("registry_implementation")
    @_translate_errors
    def implementation(account: str) -> str:
        return format_address(registry.get_implementation(_parse_address(account)))

    @rpc.method("registry_token")
    @_translate_errors
    def token(account: str) -> dict:
        binding = registry.get_token_for_account(_parse_address(account))
        return _format_token(binding.chain_id, binding.token_contract, binding.token_id)

    @rpc.method("registry_metadata")
    @_translate_errors
    def metadata(account: str) -> dict:
        meta = registry.get_account_metadata(_parse_address(account))
        result = _format_token(meta.chain_id, meta.token_contract, meta.token_id)
        result["implementation"] = format_address(meta.implementation)
        result["salt"] = int_to_hex(meta.salt)
        result["layoutVersion"] = meta.layout_version
        return result

    @rpc.method("registry_getCreationRecords")
    def creation_records(account: Optional[str] = None) -> list[dict]:
        target = _parse_address(account) if account is not None else None
        return [_format_record(record) for record in registry.get_creation_records(target)]

    logger.debug("Registered %d RPC methods", len(rpc.methods))
