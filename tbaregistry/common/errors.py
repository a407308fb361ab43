"""
Registry error taxonomy.

Every failure carries structured attributes next to its message so the RPC
layer (and callers) can act on the reason without parsing strings.
"""

from __future__ import annotations

from typing import Optional


class RegistryError(Exception):
    """Base class for all registry failures."""


class InvalidParameter(RegistryError):
    """Malformed creation parameter. Raised before any side effect."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"invalid {field}: {reason}")


class DeadlineExceeded(RegistryError):
    """The caller-supplied deadline has already passed."""

    def __init__(self, deadline: int, now: int) -> None:
        self.deadline = deadline
        self.now = now
        super().__init__(f"deadline {deadline} exceeded (now {now})")


class AccountNotFound(RegistryError):
    """Metadata query against an address without code."""

    def __init__(self, address: bytes) -> None:
        self.address = address
        super().__init__(f"no account at 0x{address.hex()}")


class AccountDecodeError(RegistryError):
    """Code at an address does not follow the account layout."""

    def __init__(self, reason: str, address: Optional[bytes] = None) -> None:
        self.reason = reason
        self.address = address
        if address is not None:
            super().__init__(f"cannot decode account 0x{address.hex()}: {reason}")
        else:
            super().__init__(f"cannot decode account code: {reason}")


class OperationFailed(RegistryError):
    """A downstream call reported failure; ``reason`` is the callee's."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")
