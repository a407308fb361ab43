"""py-evm ledger backend.

Accounts deployed here are real EVM contracts: initializer calls run the
account's proxy code, which DELEGATECALLs the implementation exactly as it
would on chain. All writes go to a single VM state; atomic units map onto
the state journal's snapshot/revert/commit.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from eth import constants
from eth.chains.base import MiningChain
from eth.consensus.noproof import NoProofConsensus
from eth.db.atomic import AtomicDB
from eth.db.backends.memory import MemoryDB
from eth.vm.forks.prague import PragueVM

from tbaregistry.common.config import DEFAULT_CHAIN_ID, DEFAULT_GAS_LIMIT
from tbaregistry.storage.ledger import CallResult, Ledger

logger = logging.getLogger(__name__)


@dataclass
class ChainConfig:
    chain_id: int = DEFAULT_CHAIN_ID
    gas_limit: int = DEFAULT_GAS_LIMIT
    timestamp: Optional[int] = None
    coinbase: bytes = b"\x00" * 20
    genesis_state: Optional[dict] = None


class EVMLedger(Ledger):
    def __init__(self, chain_config: Optional[ChainConfig] = None) -> None:
        super().__init__()
        self.config = chain_config or ChainConfig()
        self._setup_chain()

    def _setup_chain(self) -> None:
        """Initialize a single-node chain with PragueVM."""
        PragueNoProof = PragueVM.configure(consensus_class=NoProofConsensus)

        chain_class = MiningChain.configure(
            __name__="RegistryChain",
            vm_configuration=((constants.GENESIS_BLOCK_NUMBER, PragueNoProof),),
            chain_id=self.config.chain_id,
        )

        genesis_params = {
            "difficulty": 0,
            "gas_limit": self.config.gas_limit,
            "timestamp": self.config.timestamp if self.config.timestamp is not None else int(time.time()),
            "coinbase": self.config.coinbase,
        }

        formatted_state = {}
        if self.config.genesis_state:
            for address, account_state in self.config.genesis_state.items():
                addr = address if isinstance(address, bytes) else bytes.fromhex(address.removeprefix("0x"))
                formatted_state[addr] = {
                    "balance": account_state.get("balance", 0),
                    "nonce": account_state.get("nonce", 0),
                    "code": account_state.get("code", b""),
                    "storage": account_state.get("storage", {}),
                }

        self.base_db = AtomicDB(MemoryDB())
        self.chain = chain_class.from_genesis(self.base_db, genesis_params, formatted_state)
        # One VM instance for the ledger's lifetime: its state journal holds
        # every write made through this backend.
        self.vm = self.chain.get_vm()
        logger.debug("EVM ledger ready (chain id %d)", self.config.chain_id)

    @property
    def state(self):
        return self.vm.state

    # -----------------------------------------------------------------
    # Code and storage
    # -----------------------------------------------------------------

    def code_at(self, address: bytes) -> bytes:
        with self._lock:
            return self.state.get_code(address)

    def deploy_code(self, address: bytes, code: bytes) -> None:
        with self._lock:
            self.state.set_code(address, code)
            # EIP-161: contract accounts start at nonce 1
            if self.state.get_nonce(address) == 0:
                self.state.set_nonce(address, 1)

    def set_code(self, address: bytes, code: bytes) -> None:
        """Install code without contract-creation bookkeeping."""
        with self._lock:
            self.state.set_code(address, code)

    def storage_at(self, address: bytes, slot: int) -> int:
        with self._lock:
            return self.state.get_storage(address, slot)

    # -----------------------------------------------------------------
    # Execution
    # -----------------------------------------------------------------

    def call(self, sender: bytes, to: bytes, data: bytes = b"", gas: int = 1_000_000) -> CallResult:
        with self._lock:
            snapshot = self.state.snapshot()
            computation = self.vm.execute_bytecode(
                origin=sender,
                gas_price=0,
                gas=gas,
                to=to,
                sender=sender,
                value=0,
                data=data,
                code=self.state.get_code(to),
            )

            if computation.is_error:
                self.state.revert(snapshot)
                logger.debug("call to 0x%s reverted: %s", to.hex(), computation.error)
                return CallResult(success=False, output=computation.output, gas_used=gas)

            self.state.commit(snapshot)
            for address, topics, log_data in computation.get_log_entries():
                self.emit_log(
                    address,
                    [topic.to_bytes(32, "big") for topic in topics],
                    log_data,
                )
            return CallResult(
                success=True,
                output=computation.output,
                gas_used=computation.get_gas_used(),
            )

    def timestamp(self) -> int:
        """Pinned genesis time if configured, else wall-clock time.

        No blocks are mined, so the pending header's timestamp stays at
        ledger creation.
        """
        if self.config.timestamp is not None:
            return self.config.timestamp
        return max(self.state.timestamp, int(time.time()))

    # -----------------------------------------------------------------
    # State snapshots
    # -----------------------------------------------------------------

    def snapshot(self) -> Any:
        with self._lock:
            return self.state.snapshot()

    def rollback(self, snapshot_id: Any) -> None:
        with self._lock:
            self.state.revert(snapshot_id)

    def commit(self, snapshot_id: Any) -> None:
        with self._lock:
            self.state.commit(snapshot_id)
