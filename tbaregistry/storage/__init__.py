"""Ledger backends."""

from .ledger import CallResult, ExecutionReverted, Ledger, LogEntry

__all__ = ["CallResult", "ExecutionReverted", "Ledger", "LogEntry"]
