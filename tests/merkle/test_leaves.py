import hashlib
import os

import pytest

from zkmerkle.merkle.leaves import (
    bits_to_hex,
    bytes_to_bits,
    hash_leaf,
    hex_to_bits,
)


class TestBitConversions:
    def test_msb_first(self):
        assert bytes_to_bits(b"\x80\x01") == [1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1]

    def test_hex_matches_bytes_hex(self):
        data = hashlib.sha256(b"b").digest()
        assert bits_to_hex(bytes_to_bits(data)) == data.hex()

    def test_hex_width_follows_bits(self):
        assert bits_to_hex([0, 0, 0, 0, 1, 0, 1, 0]) == "0a"


class TestHexToBits:
    def test_parses_root(self):
        text = hashlib.sha256(b"c").hexdigest()
        assert hex_to_bits(text) == bytes_to_bits(bytes.fromhex(text))

    def test_strips_newline(self):
        assert hex_to_bits("0a\n", 8) == [0, 0, 0, 0, 1, 0, 1, 0]

    def test_wrong_length(self):
        with pytest.raises(ValueError, match="64 hex characters"):
            hex_to_bits("ab" * 31)

    def test_uppercase_rejected(self):
        with pytest.raises(ValueError):
            hex_to_bits("AB" * 32)

    def test_non_hex_rejected(self):
        with pytest.raises(ValueError):
            hex_to_bits("zz" * 32)


class TestHashLeaf:
    def test_sha256_of_utf8(self):
        assert hash_leaf("a") == bytes_to_bits(hashlib.sha256(b"a").digest())

    def test_bytes_input(self):
        assert hash_leaf(b"a") == hash_leaf("a")

    def test_truncated(self):
        assert hash_leaf("a", 8) == hash_leaf("a")[:8]

    def test_too_wide(self):
        with pytest.raises(ValueError):
            hash_leaf("a", 512)

    def test_non_utf8_argument(self):
        """UTF-8이 아닌 명령줄 인자는 원래 바이트 그대로 해싱된다."""
        raw = b"\xff\xfe"
        assert hash_leaf(os.fsdecode(raw)) == bytes_to_bits(hashlib.sha256(raw).digest())
