"""
Token-bound account registry.

Derives, deploys and inspects accounts whose identity is a pure function of
``(implementation, chain_id, token_contract, token_id, salt)``:

- ``predict_address`` / ``exists``: read-only identity queries
- ``create_account``: idempotent create-or-return with an optional
  initializer call, all-or-nothing
- ``get_implementation`` / ``get_token_for_account``: decode the binding
  back out of the deployed code

The registry keeps no index: the ledger's code map answers "does it exist"
and the ledger's event log holds creation records.
"""

from __future__ import annotations

import logging
from typing import Optional

from tbaregistry.common.config import DEFAULT_INIT_GAS, DEFAULT_REGISTRY_ADDRESS, RegistryConfig
from tbaregistry.common.create2 import compute_create2_address
from tbaregistry.common.errors import (
    AccountDecodeError,
    AccountNotFound,
    DeadlineExceeded,
    InvalidParameter,
    OperationFailed,
)
from tbaregistry.common.types import (
    ADDRESS_SIZE,
    UINT256_MAX,
    AccountCreated,
    AccountCreationParams,
    AccountMetadata,
    InitializationParams,
    TokenBinding,
    format_address,
    is_null_address,
)
from tbaregistry.registry.bytecode import build_account_code, build_init_code, decode_account_code
from tbaregistry.registry.events import (
    ACCOUNT_CREATED_TOPIC,
    decode_account_created,
    encode_account_created,
)
from tbaregistry.storage.ledger import Ledger

logger = logging.getLogger(__name__)

INITIALIZATION = "account initialization"
ERROR_STRING_SELECTOR = bytes.fromhex("08c379a0")  # Error(string)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _check_address(field: str, value: object) -> None:
    if is_null_address(value):
        raise InvalidParameter(field, "must not be the zero address")
    if not isinstance(value, bytes) or len(value) != ADDRESS_SIZE:
        raise InvalidParameter(field, "must be a 20-byte address")


def _check_uint(field: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter(field, "must be an integer")
    if value < 0 or value > UINT256_MAX:
        raise InvalidParameter(field, "out of uint256 range")


def check_creation_params(params: AccountCreationParams) -> None:
    """Raise InvalidParameter for the first invalid field."""
    _check_address("implementation", params.implementation)
    _check_uint("chain_id", params.chain_id)
    if params.chain_id == 0:
        raise InvalidParameter("chain_id", "must be non-zero")
    _check_address("token_contract", params.token_contract)
    _check_uint("token_id", params.token_id)
    _check_uint("salt", params.salt)


def check_init_params(init: InitializationParams) -> None:
    _check_uint("deadline", init.deadline)


def decode_revert_reason(output: bytes) -> Optional[str]:
    """Human-readable reason from revert data, None if there is none."""
    if not output:
        return None
    if output[:4] == ERROR_STRING_SELECTOR and len(output) >= 68:
        payload = output[4:]
        offset = int.from_bytes(payload[:32], "big")
        length = int.from_bytes(payload[offset:offset + 32], "big")
        message = payload[offset + 32:offset + 32 + length]
        if len(message) == length:
            return message.decode("utf-8", errors="replace")
    return "0x" + output.hex()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class AccountRegistry:
    """Deterministic registry of token-bound accounts on a ledger."""

    def __init__(
        self,
        ledger: Ledger,
        address: bytes = DEFAULT_REGISTRY_ADDRESS,
        init_gas: int = DEFAULT_INIT_GAS,
    ) -> None:
        if len(address) != ADDRESS_SIZE:
            raise ValueError(f"Registry address must be 20 bytes, got {len(address)}")
        self.ledger = ledger
        self.address = address
        self.init_gas = init_gas

    @classmethod
    def from_config(cls, config: RegistryConfig, ledger: Ledger) -> AccountRegistry:
        return cls(ledger, address=config.registry_address, init_gas=config.init_gas)

    # -----------------------------------------------------------------
    # Identity
    # -----------------------------------------------------------------

    def validate_creation_params(self, params: AccountCreationParams) -> tuple[bool, str]:
        try:
            check_creation_params(params)
        except InvalidParameter as e:
            return False, f"{e.field}: {e.reason}"
        return True, ""

    def _build(self, params: AccountCreationParams) -> tuple[bytes, bytes]:
        account_code = build_account_code(
            params.implementation,
            params.chain_id,
            params.token_contract,
            params.token_id,
            params.salt,
        )
        location = compute_create2_address(
            self.address,
            params.salt_bytes,
            build_init_code(account_code),
        )
        return account_code, location

    def predict_address(self, params: AccountCreationParams) -> bytes:
        check_creation_params(params)
        _, location = self._build(params)
        return location

    def exists(self, params: AccountCreationParams) -> tuple[bool, bytes]:
        location = self.predict_address(params)
        return self.ledger.has_code(location), location

    # -----------------------------------------------------------------
    # Creation
    # -----------------------------------------------------------------

    def create_account(
        self,
        params: AccountCreationParams,
        init_params: Optional[InitializationParams] = None,
    ) -> bytes:
        """Deploy the account for ``params`` unless it already exists.

        Deployment, initialization and the creation record form one unit:
        if the initializer fails the deployment is discarded too, so a
        failed call never leaves a claimed but uninitialized account.
        """
        check_creation_params(params)
        init = init_params or InitializationParams()
        check_init_params(init)

        with self.ledger.atomic():
            if init.deadline:
                now = self.ledger.timestamp()
                if now > init.deadline:
                    raise DeadlineExceeded(init.deadline, now)

            account_code, location = self._build(params)

            if self.ledger.has_code(location):
                logger.debug("Account %s already deployed", format_address(location))
                return location

            self.ledger.deploy_code(location, account_code)

            if init.init_data:
                result = self.ledger.call(self.address, location, init.init_data, self.init_gas)
                if not result.success:
                    reason = decode_revert_reason(result.output) or "initializer reverted"
                    logger.warning(
                        "Initialization of %s failed: %s", format_address(location), reason
                    )
                    raise OperationFailed(INITIALIZATION, reason)

            record = AccountCreated(
                account=location,
                implementation=params.implementation,
                chain_id=params.chain_id,
                token_contract=params.token_contract,
                token_id=params.token_id,
                salt=params.salt,
                init_data=init.init_data,
            )
            topics, data = encode_account_created(record)
            self.ledger.emit_log(self.address, topics, data)

        logger.info(
            "Created account %s (token %s #%d on chain %d)",
            format_address(location),
            format_address(params.token_contract),
            params.token_id,
            params.chain_id,
        )
        return location

    # -----------------------------------------------------------------
    # Metadata
    # -----------------------------------------------------------------

    def get_account_metadata(self, account: bytes) -> AccountMetadata:
        code = self.ledger.code_at(account)
        if not code:
            raise AccountNotFound(account)
        try:
            return decode_account_code(code)
        except AccountDecodeError as e:
            raise AccountDecodeError(e.reason, account) from e

    def get_implementation(self, account: bytes) -> bytes:
        return self.get_account_metadata(account).implementation

    def get_token_for_account(self, account: bytes) -> TokenBinding:
        return self.get_account_metadata(account).token

    def get_creation_records(self, account: Optional[bytes] = None) -> list[AccountCreated]:
        """Creation records emitted by this registry, oldest first."""
        topics: list = [ACCOUNT_CREATED_TOPIC]
        if account is not None:
            topics.append(bytes(12) + account)
        entries = self.ledger.get_logs(address=self.address, topics=topics)
        return [decode_account_created(entry.topics, entry.data) for entry in entries]
