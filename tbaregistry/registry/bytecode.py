"""
Account bytecode: builder, layout schema and decoder.

A token-bound account is an EIP-1167 minimal proxy followed by its binding
data. The runtime code is

    prologue(10) | implementation(20) | epilogue(15) |
    chainId(32) | tokenContract(32, left-padded) | tokenId(32) | salt(32)

When executed it DELEGATECALLs ``implementation`` with the full calldata and
bubbles up the result. The trailing words are never reached by execution and
are only read back through code inspection.

The creation code prepends a 10-byte header that copies the runtime code out
of itself and returns it:

    3d        RETURNDATASIZE   [0]
    60 ad     PUSH1 0xad       [0, 173]
    80        DUP1             [0, 173, 173]
    60 0a     PUSH1 0x0a       [0, 173, 173, 10]
    3d        RETURNDATASIZE   [0, 173, 173, 10, 0]
    39        CODECOPY         mem[0:173] = code[10:183]
    81        DUP2             [0, 173, 0]
    f3        RETURN           mem[0:173]

Both the predict and the create path go through ``build_account_code`` and
``build_init_code``; the account address is a fingerprint of their output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from tbaregistry.common.errors import AccountDecodeError
from tbaregistry.common.types import ADDRESS_SIZE, WORD_SIZE, AccountMetadata


PROXY_PROLOGUE = bytes.fromhex("363d3d373d3d3d363d73")
PROXY_EPILOGUE = bytes.fromhex("5af43d82803e903d91602b57fd5bf3")

# Field kinds
TEMPLATE = "template"
ADDRESS = "address"
PADDED_ADDRESS = "padded_address"
UINT = "uint"


# ---------------------------------------------------------------------------
# Layout schema
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LayoutField:
    name: str
    size: int
    kind: str
    template: bytes = b""


@dataclass(frozen=True)
class CodeLayout:
    """Named, fixed-width fields of an account's runtime code."""

    version: int
    fields: tuple[LayoutField, ...]
    offsets: dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        offsets = {}
        position = 0
        for item in self.fields:
            if item.kind == TEMPLATE and len(item.template) != item.size:
                raise ValueError(f"Template {item.name} must be {item.size} bytes")
            offsets[item.name] = position
            position += item.size
        object.__setattr__(self, "offsets", offsets)

    @property
    def size(self) -> int:
        return sum(item.size for item in self.fields)

    def get_field(self, name: str) -> LayoutField:
        for item in self.fields:
            if item.name == name:
                return item
        raise KeyError(name)

    def span(self, name: str) -> tuple[int, int]:
        start = self.offsets[name]
        return start, start + self.get_field(name).size

    def encode(self, values: dict[str, Any]) -> bytes:
        parts = []
        for item in self.fields:
            if item.kind == TEMPLATE:
                parts.append(item.template)
            elif item.kind == ADDRESS:
                parts.append(bytes(values[item.name]))
            elif item.kind == PADDED_ADDRESS:
                parts.append(bytes(item.size - ADDRESS_SIZE) + bytes(values[item.name]))
            else:
                parts.append(values[item.name].to_bytes(item.size, "big"))
        return b"".join(parts)

    def decode(self, code: bytes) -> dict[str, Any]:
        """Split ``code`` into field values; length and templates are checked first."""
        if len(code) != self.size:
            raise AccountDecodeError(f"expected {self.size} bytes of code, got {len(code)}")

        values: dict[str, Any] = {}
        for item in self.fields:
            start, end = self.span(item.name)
            chunk = code[start:end]
            if item.kind == TEMPLATE:
                if chunk != item.template:
                    raise AccountDecodeError(f"{item.name} does not match the proxy template")
            elif item.kind == ADDRESS:
                values[item.name] = chunk
            elif item.kind == PADDED_ADDRESS:
                padding = chunk[: item.size - ADDRESS_SIZE]
                if any(padding):
                    raise AccountDecodeError(f"{item.name} has non-zero padding")
                values[item.name] = chunk[item.size - ADDRESS_SIZE:]
            else:
                values[item.name] = int.from_bytes(chunk, "big")
        return values


ACCOUNT_LAYOUT_V1 = CodeLayout(
    version=1,
    fields=(
        LayoutField("prologue", len(PROXY_PROLOGUE), TEMPLATE, PROXY_PROLOGUE),
        LayoutField("implementation", ADDRESS_SIZE, ADDRESS),
        LayoutField("epilogue", len(PROXY_EPILOGUE), TEMPLATE, PROXY_EPILOGUE),
        LayoutField("chain_id", WORD_SIZE, UINT),
        LayoutField("token_contract", WORD_SIZE, PADDED_ADDRESS),
        LayoutField("token_id", WORD_SIZE, UINT),
        LayoutField("salt", WORD_SIZE, UINT),
    ),
)

LAYOUTS = {ACCOUNT_LAYOUT_V1.version: ACCOUNT_LAYOUT_V1}


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

def build_account_code(
    implementation: bytes,
    chain_id: int,
    token_contract: bytes,
    token_id: int,
    salt: int,
    layout: CodeLayout = ACCOUNT_LAYOUT_V1,
) -> bytes:
    """Assemble the runtime code of an account. Inputs must be pre-validated."""
    return layout.encode({
        "implementation": implementation,
        "chain_id": chain_id,
        "token_contract": token_contract,
        "token_id": token_id,
        "salt": salt,
    })


def creation_header(runtime_size: int) -> bytes:
    if not 0 < runtime_size < 256:
        raise ValueError(f"Runtime size must fit in one byte, got {runtime_size}")
    return bytes([0x3D, 0x60, runtime_size, 0x80, 0x60, 0x0A, 0x3D, 0x39, 0x81, 0xF3])


def build_init_code(account_code: bytes) -> bytes:
    """Creation code that returns ``account_code`` when executed."""
    return creation_header(len(account_code)) + account_code


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------

def decode_account_code(code: bytes, layout: CodeLayout = ACCOUNT_LAYOUT_V1) -> AccountMetadata:
    values = layout.decode(code)
    return AccountMetadata(
        implementation=values["implementation"],
        chain_id=values["chain_id"],
        token_contract=values["token_contract"],
        token_id=values["token_id"],
        salt=values["salt"],
        layout_version=layout.version,
    )


def proxy_target(code: bytes) -> Optional[bytes]:
    """Delegation target of an EIP-1167 proxy, trailing data allowed."""
    start = len(PROXY_PROLOGUE)
    end = start + ADDRESS_SIZE
    if code[:start] != PROXY_PROLOGUE:
        return None
    if code[end:end + len(PROXY_EPILOGUE)] != PROXY_EPILOGUE:
        return None
    return code[start:end]
