"""Tests for the AccountCreated log codec."""

import pytest

from tbaregistry.common.crypto import keccak256
from tbaregistry.common.types import AccountCreated
from tbaregistry.registry.events import (
    ACCOUNT_CREATED_SIGNATURE,
    ACCOUNT_CREATED_TOPIC,
    decode_account_created,
    encode_account_created,
)
from tests.fixtures.addresses import IMPLEMENTATION_ADDRESS, TOKEN_CONTRACT_ADDRESS

ACCOUNT = bytes.fromhex("cc" * 20)


def _record(init_data=b""):
    return AccountCreated(
        account=ACCOUNT,
        implementation=IMPLEMENTATION_ADDRESS,
        chain_id=1,
        token_contract=TOKEN_CONTRACT_ADDRESS,
        token_id=42,
        salt=7,
        init_data=init_data,
    )


class TestEncodeAccountCreated:
    def test_topic0(self):
        assert ACCOUNT_CREATED_TOPIC == keccak256(ACCOUNT_CREATED_SIGNATURE.encode())

    def test_topics(self):
        topics, _ = encode_account_created(_record())
        assert topics == [ACCOUNT_CREATED_TOPIC, bytes(12) + ACCOUNT]

    def test_static_words(self):
        _, data = encode_account_created(_record())
        words = [data[i:i + 32] for i in range(0, len(data), 32)]
        assert words[0] == bytes(12) + IMPLEMENTATION_ADDRESS
        assert int.from_bytes(words[1], "big") == 1
        assert words[2] == bytes(12) + TOKEN_CONTRACT_ADDRESS
        assert int.from_bytes(words[3], "big") == 42
        assert int.from_bytes(words[4], "big") == 7
        assert int.from_bytes(words[5], "big") == 192
        assert int.from_bytes(words[6], "big") == 0
        assert len(words) == 7

    def test_init_data_padded(self):
        _, data = encode_account_created(_record(b"\xab" * 33))
        assert int.from_bytes(data[192:224], "big") == 33
        assert data[224:257] == b"\xab" * 33
        assert data[257:] == bytes(31)
        assert len(data) % 32 == 0


class TestDecodeAccountCreated:
    @pytest.mark.parametrize("init_data", [b"", b"\x01\x02\x03", b"\xff" * 64])
    def test_decode(self, init_data):
        topics, data = encode_account_created(_record(init_data))
        assert decode_account_created(topics, data) == _record(init_data)

    def test_wrong_topic(self):
        _, data = encode_account_created(_record())
        with pytest.raises(ValueError, match="Not an AccountCreated log"):
            decode_account_created([bytes(32), bytes(32)], data)

    def test_missing_account_topic(self):
        _, data = encode_account_created(_record())
        with pytest.raises(ValueError, match="Not an AccountCreated log"):
            decode_account_created([ACCOUNT_CREATED_TOPIC], data)

    def test_truncated_static_part(self):
        topics, data = encode_account_created(_record())
        with pytest.raises(ValueError, match="truncated"):
            decode_account_created(topics, data[:100])

    def test_truncated_init_data(self):
        topics, data = encode_account_created(_record(b"\x01" * 40))
        with pytest.raises(ValueError, match="initData truncated"):
            decode_account_created(topics, data[:230])
