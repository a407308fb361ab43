"""Tests for the Ledger base class and the in-memory backend."""

import pytest

from tbaregistry.registry.bytecode import build_account_code
from tbaregistry.storage.ledger import ExecutionReverted, LogEntry
from tbaregistry.storage.memory_backend import MemoryLedger
from tests.fixtures.addresses import (
    IMPLEMENTATION_ADDRESS,
    OWNER_ADDRESS,
    TOKEN_CONTRACT_ADDRESS,
)

ADDR = b"\x01" * 20
TOPIC_A = b"\xaa" * 32
TOPIC_B = b"\xbb" * 32


class TestCode:
    def test_empty(self):
        ledger = MemoryLedger()
        assert ledger.code_at(ADDR) == b""
        assert not ledger.has_code(ADDR)

    def test_deploy(self):
        ledger = MemoryLedger()
        ledger.deploy_code(ADDR, b"\x60\x00")
        assert ledger.code_at(ADDR) == b"\x60\x00"
        assert ledger.has_code(ADDR)

    def test_storage_zero_deletes(self):
        ledger = MemoryLedger()
        ledger.set_storage(ADDR, 1, 5)
        assert ledger.storage_at(ADDR, 1) == 5
        ledger.set_storage(ADDR, 1, 0)
        assert ledger.storage_at(ADDR, 1) == 0
        assert (ADDR, 1) not in ledger._storage


class TestClock:
    def test_pinned(self):
        ledger = MemoryLedger(timestamp=123)
        assert ledger.timestamp() == 123
        ledger.set_timestamp(456)
        assert ledger.timestamp() == 456

    def test_wall_clock(self):
        ledger = MemoryLedger()
        assert ledger.timestamp() > 1_600_000_000


class TestAtomic:
    def test_commit(self):
        ledger = MemoryLedger()
        with ledger.atomic():
            ledger.deploy_code(ADDR, b"\x01")
            ledger.emit_log(ADDR, [TOPIC_A])
        assert ledger.has_code(ADDR)
        assert len(ledger.get_logs()) == 1

    def test_rollback_on_exception(self):
        """Code, storage and logs written in a failed unit are discarded."""
        ledger = MemoryLedger()
        ledger.emit_log(ADDR, [TOPIC_B])
        with pytest.raises(RuntimeError):
            with ledger.atomic():
                ledger.deploy_code(ADDR, b"\x01")
                ledger.set_storage(ADDR, 0, 7)
                ledger.emit_log(ADDR, [TOPIC_A])
                raise RuntimeError("boom")
        assert not ledger.has_code(ADDR)
        assert ledger.storage_at(ADDR, 0) == 0
        assert [entry.topics for entry in ledger.get_logs()] == [[TOPIC_B]]

    def test_nested(self):
        ledger = MemoryLedger()
        with ledger.atomic():
            ledger.deploy_code(ADDR, b"\x01")
            with pytest.raises(ValueError):
                with ledger.atomic():
                    ledger.deploy_code(b"\x02" * 20, b"\x02")
                    raise ValueError
        assert ledger.has_code(ADDR)
        assert not ledger.has_code(b"\x02" * 20)


class TestLogs:
    def test_log_index(self):
        ledger = MemoryLedger()
        first = ledger.emit_log(ADDR, [TOPIC_A], b"\x01")
        second = ledger.emit_log(ADDR, [TOPIC_B], b"\x02")
        assert first == LogEntry(ADDR, [TOPIC_A], b"\x01", 0)
        assert second.log_index == 1

    def test_filter_by_address(self):
        ledger = MemoryLedger()
        ledger.emit_log(ADDR, [TOPIC_A])
        ledger.emit_log(b"\x02" * 20, [TOPIC_A])
        assert len(ledger.get_logs(address=ADDR)) == 1

    def test_filter_by_topics(self):
        ledger = MemoryLedger()
        ledger.emit_log(ADDR, [TOPIC_A, TOPIC_B])
        ledger.emit_log(ADDR, [TOPIC_B])
        assert len(ledger.get_logs(topics=[TOPIC_A])) == 1
        assert len(ledger.get_logs(topics=[None, TOPIC_B])) == 1
        assert len(ledger.get_logs(topics=[[TOPIC_A, TOPIC_B]])) == 2
        assert ledger.get_logs(topics=[TOPIC_B, TOPIC_A]) == []


class TestCalls:
    def test_no_handler(self):
        ledger = MemoryLedger()
        result = ledger.call(OWNER_ADDRESS, ADDR, b"\x01")
        assert result.success
        assert result.output == b""

    def test_direct_call(self):
        ledger = MemoryLedger()
        ledger.register_contract(ADDR, lambda ctx: ctx.data[::-1])
        result = ledger.call(OWNER_ADDRESS, ADDR, b"\x01\x02")
        assert result.success
        assert result.output == b"\x02\x01"

    def test_proxy_delegates_with_own_storage(self):
        """A call to account code runs the implementation against the account."""
        ledger = MemoryLedger()
        account = b"\x0a" * 20
        ledger.deploy_code(
            account,
            build_account_code(IMPLEMENTATION_ADDRESS, 1, TOKEN_CONTRACT_ADDRESS, 1, 0),
        )

        def handler(ctx):
            ctx.sstore(3, ctx.sload(3) + 1)
            ctx.emit([TOPIC_A])

        ledger.register_contract(IMPLEMENTATION_ADDRESS, handler)
        assert ledger.call(OWNER_ADDRESS, account).success
        assert ledger.storage_at(account, 3) == 1
        assert ledger.storage_at(IMPLEMENTATION_ADDRESS, 3) == 0
        assert ledger.get_logs()[0].address == account

    def test_revert_discards_writes(self):
        ledger = MemoryLedger()

        def handler(ctx):
            ctx.sstore(0, 1)
            ctx.emit([TOPIC_A])
            raise ExecutionReverted(b"\x08")

        ledger.register_contract(ADDR, handler)
        result = ledger.call(OWNER_ADDRESS, ADDR)
        assert not result.success
        assert result.output == b"\x08"
        assert ledger.storage_at(ADDR, 0) == 0
        assert ledger.get_logs() == []

    def test_unexpected_error_propagates(self):
        ledger = MemoryLedger()

        def handler(ctx):
            ctx.sstore(0, 1)
            raise KeyError("bug")

        ledger.register_contract(ADDR, handler)
        with pytest.raises(KeyError):
            ledger.call(OWNER_ADDRESS, ADDR)
        assert ledger.storage_at(ADDR, 0) == 0
