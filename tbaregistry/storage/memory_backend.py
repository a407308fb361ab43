"""
In-memory ledger backend.

Dict-based implementation of the Ledger interface for testing and development.
Contracts are Python callables registered per address; a call to an account
whose code is a minimal proxy runs the implementation's handler against the
account's own storage, which is what DELEGATECALL does on a real chain.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from tbaregistry.registry.bytecode import proxy_target
from tbaregistry.storage.ledger import CallResult, ExecutionReverted, Ledger


@dataclass
class CallContext:
    """Execution context handed to a contract handler."""

    ledger: MemoryLedger
    address: bytes       # storage owner (the account for delegated calls)
    code_address: bytes  # contract whose handler runs
    sender: bytes
    data: bytes

    def sload(self, slot: int) -> int:
        return self.ledger.storage_at(self.address, slot)

    def sstore(self, slot: int, value: int) -> None:
        self.ledger.set_storage(self.address, slot, value)

    def emit(self, topics: list[bytes], data: bytes = b"") -> None:
        self.ledger.emit_log(self.address, topics, data)


ContractHandler = Callable[[CallContext], Optional[bytes]]


class MemoryLedger(Ledger):
    """In-memory ledger using Python dicts."""

    def __init__(self, timestamp: Optional[int] = None) -> None:
        super().__init__()
        self._code: dict[bytes, bytes] = {}
        self._storage: dict[tuple[bytes, int], int] = {}  # (addr, slot) -> value
        self._handlers: dict[bytes, ContractHandler] = {}
        self._timestamp = timestamp

        self._snapshots: list[dict] = []

    # -----------------------------------------------------------------
    # Code
    # -----------------------------------------------------------------

    def code_at(self, address: bytes) -> bytes:
        with self._lock:
            return self._code.get(address, b"")

    def deploy_code(self, address: bytes, code: bytes) -> None:
        with self._lock:
            self._code[address] = bytes(code)

    # -----------------------------------------------------------------
    # Storage
    # -----------------------------------------------------------------

    def storage_at(self, address: bytes, slot: int) -> int:
        with self._lock:
            return self._storage.get((address, slot), 0)

    def set_storage(self, address: bytes, slot: int, value: int) -> None:
        with self._lock:
            if value == 0:
                self._storage.pop((address, slot), None)
            else:
                self._storage[(address, slot)] = value

    # -----------------------------------------------------------------
    # Contracts
    # -----------------------------------------------------------------

    def register_contract(self, address: bytes, handler: ContractHandler) -> None:
        """Attach Python logic to an address (typically an implementation)."""
        with self._lock:
            self._handlers[address] = handler

    def call(self, sender: bytes, to: bytes, data: bytes = b"", gas: int = 1_000_000) -> CallResult:
        with self._lock:
            code = self._code.get(to, b"")
            target = proxy_target(code) or to
            handler = self._handlers.get(target)
            if handler is None:
                # Like the EVM, calling (or delegating to) an address without
                # logic succeeds with empty output.
                return CallResult(success=True)

            snapshot_id = self.snapshot()
            log_mark = len(self._logs)
            try:
                output = handler(CallContext(self, to, target, sender, data))
            except ExecutionReverted as e:
                self.rollback(snapshot_id)
                del self._logs[log_mark:]
                return CallResult(success=False, output=e.output)
            except BaseException:
                self.rollback(snapshot_id)
                del self._logs[log_mark:]
                raise
            self.commit(snapshot_id)
            return CallResult(success=True, output=output or b"")

    # -----------------------------------------------------------------
    # Clock
    # -----------------------------------------------------------------

    def timestamp(self) -> int:
        if self._timestamp is not None:
            return self._timestamp
        return int(time.time())

    def set_timestamp(self, timestamp: Optional[int]) -> None:
        """Pin the clock; None follows wall-clock time again."""
        self._timestamp = timestamp

    # -----------------------------------------------------------------
    # State snapshots
    # -----------------------------------------------------------------

    def snapshot(self) -> int:
        with self._lock:
            self._snapshots.append({
                "code": dict(self._code),
                "storage": dict(self._storage),
            })
            return len(self._snapshots) - 1

    def rollback(self, snapshot_id: int) -> None:
        with self._lock:
            if snapshot_id >= len(self._snapshots):
                return
            snap = self._snapshots[snapshot_id]
            self._code = snap["code"]
            self._storage = snap["storage"]
            self._snapshots = self._snapshots[:snapshot_id]

    def commit(self, snapshot_id: int) -> None:
        with self._lock:
            self._snapshots = self._snapshots[:snapshot_id]
