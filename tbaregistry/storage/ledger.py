"""
Ledger interface: the state the registry reads and writes.

The registry owns no storage of its own. Account existence and metadata live
in the ledger's code map; creation records live in its event log. Backends
provide code access, message calls, a clock and snapshots; this base class
layers the event log and all-or-nothing units of work on top.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Sequence, Union


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class CallResult:
    success: bool = True
    output: bytes = b""
    gas_used: int = 0


@dataclass
class LogEntry:
    address: bytes
    topics: list[bytes] = field(default_factory=list)
    data: bytes = b""
    log_index: int = 0


class ExecutionReverted(Exception):
    """Raised by contract handlers to revert a call with ``output``."""

    def __init__(self, output: bytes = b"") -> None:
        self.output = output
        super().__init__(f"execution reverted: 0x{output.hex()}")


TopicFilter = Sequence[Union[bytes, Sequence[bytes], None]]


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

class Ledger(ABC):
    """Abstract ledger.

    Implementations can be in-memory (testing) or EVM-backed.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._logs: list[LogEntry] = []

    # -----------------------------------------------------------------
    # Code
    # -----------------------------------------------------------------

    @abstractmethod
    def code_at(self, address: bytes) -> bytes:
        """Deployed code at address, b"" if none."""
        ...

    @abstractmethod
    def deploy_code(self, address: bytes, code: bytes) -> None:
        """Write runtime code to an address."""
        ...

    def has_code(self, address: bytes) -> bool:
        return len(self.code_at(address)) > 0

    # -----------------------------------------------------------------
    # Execution
    # -----------------------------------------------------------------

    @abstractmethod
    def call(self, sender: bytes, to: bytes, data: bytes = b"", gas: int = 1_000_000) -> CallResult:
        """Execute a state-changing message call against ``to``."""
        ...

    @abstractmethod
    def timestamp(self) -> int:
        """Current ledger time in unix seconds."""
        ...

    # -----------------------------------------------------------------
    # Snapshots
    # -----------------------------------------------------------------

    @abstractmethod
    def snapshot(self) -> Any:
        ...

    @abstractmethod
    def rollback(self, snapshot_id: Any) -> None:
        ...

    @abstractmethod
    def commit(self, snapshot_id: Any) -> None:
        ...

    @contextmanager
    def atomic(self) -> Iterator[Ledger]:
        """Run a block as one unit of work.

        Holds the ledger lock for the whole block, so units are totally
        ordered. Any exception rolls back code, storage and logs written
        inside the block and is re-raised.
        """
        with self._lock:
            snapshot_id = self.snapshot()
            log_mark = len(self._logs)
            try:
                yield self
            except BaseException:
                self.rollback(snapshot_id)
                del self._logs[log_mark:]
                raise
            self.commit(snapshot_id)

    # -----------------------------------------------------------------
    # Event log
    # -----------------------------------------------------------------

    def emit_log(self, address: bytes, topics: list[bytes], data: bytes = b"") -> LogEntry:
        with self._lock:
            entry = LogEntry(
                address=address,
                topics=list(topics),
                data=data,
                log_index=len(self._logs),
            )
            self._logs.append(entry)
            return entry

    def get_logs(
        self,
        address: Optional[bytes] = None,
        topics: Optional[TopicFilter] = None,
    ) -> list[LogEntry]:
        """
        Get logs matching the filter criteria.

        Each topic filter element can be:
        - None: Match any topic at this position
        - bytes: Match this exact topic
        - list[bytes]: Match any topic in the list
        """
        with self._lock:
            entries = list(self._logs)

        result = []
        for entry in entries:
            if address is not None and entry.address != address:
                continue
            if topics is not None and not _match_topics(entry.topics, topics):
                continue
            result.append(entry)
        return result


def _match_topics(log_topics: list[bytes], filter_topics: TopicFilter) -> bool:
    for i, filter_topic in enumerate(filter_topics):
        if i >= len(log_topics):
            return False
        if filter_topic is None:
            continue
        if isinstance(filter_topic, (bytes, bytearray)):
            if log_topics[i] != filter_topic:
                return False
        elif log_topics[i] not in filter_topic:
            return False
    return True
