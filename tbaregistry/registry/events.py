"""
AccountCreated log codec.

    event AccountCreated(
        address indexed account,
        address implementation,
        uint256 chainId,
        address tokenContract,
        uint256 tokenId,
        uint256 salt,
        bytes initData
    );

The non-indexed fields are ABI-encoded: five static words, then the offset,
length and right-padded body of ``initData``.
"""

from __future__ import annotations

from tbaregistry.common.crypto import event_topic
from tbaregistry.common.types import ADDRESS_SIZE, WORD_SIZE, AccountCreated


ACCOUNT_CREATED_SIGNATURE = (
    "AccountCreated(address,address,uint256,address,uint256,uint256,bytes)"
)
ACCOUNT_CREATED_TOPIC = event_topic(ACCOUNT_CREATED_SIGNATURE)

_STATIC_WORDS = 6  # five static fields + the initData offset


def _word(value: int) -> bytes:
    return value.to_bytes(WORD_SIZE, "big")


def _address_word(address: bytes) -> bytes:
    return bytes(WORD_SIZE - ADDRESS_SIZE) + address


def _read_word(data: bytes, index: int) -> bytes:
    start = index * WORD_SIZE
    chunk = data[start:start + WORD_SIZE]
    if len(chunk) != WORD_SIZE:
        raise ValueError(f"Log data truncated at word {index}")
    return chunk


def encode_account_created(record: AccountCreated) -> tuple[list[bytes], bytes]:
    """Return ``(topics, data)`` for a creation record."""
    topics = [ACCOUNT_CREATED_TOPIC, _address_word(record.account)]

    body = record.init_data
    padded = body + bytes(-len(body) % WORD_SIZE)
    data = b"".join([
        _address_word(record.implementation),
        _word(record.chain_id),
        _address_word(record.token_contract),
        _word(record.token_id),
        _word(record.salt),
        _word(_STATIC_WORDS * WORD_SIZE),
        _word(len(body)),
        padded,
    ])
    return topics, data


def decode_account_created(topics: list[bytes], data: bytes) -> AccountCreated:
    if len(topics) != 2 or topics[0] != ACCOUNT_CREATED_TOPIC:
        raise ValueError("Not an AccountCreated log")

    offset = int.from_bytes(_read_word(data, 5), "big")
    length = int.from_bytes(data[offset:offset + WORD_SIZE], "big")
    body_start = offset + WORD_SIZE
    init_data = data[body_start:body_start + length]
    if len(init_data) != length:
        raise ValueError("initData truncated")

    return AccountCreated(
        account=topics[1][-ADDRESS_SIZE:],
        implementation=_read_word(data, 0)[-ADDRESS_SIZE:],
        chain_id=int.from_bytes(_read_word(data, 1), "big"),
        token_contract=_read_word(data, 2)[-ADDRESS_SIZE:],
        token_id=int.from_bytes(_read_word(data, 3), "big"),
        salt=int.from_bytes(_read_word(data, 4), "big"),
        init_data=init_data,
    )
