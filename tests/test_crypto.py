"""Tests for hashing helpers."""

from tbaregistry.common.crypto import event_topic, function_selector, keccak256


class TestKeccak:
    def test_empty(self):
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_not_sha3(self):
        # SHA3-256("") is a7ffc6f8...; Keccak-256 uses different padding
        assert not keccak256(b"").hex().startswith("a7ffc6f8")

    def test_event_topic(self):
        topic = event_topic("Transfer(address,address,uint256)")
        assert topic.hex() == (
            "ddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
        )

    def test_function_selector(self):
        assert function_selector("transfer(address,uint256)").hex() == "a9059cbb"
        assert function_selector("Error(string)").hex() == "08c379a0"
