import hashlib

import pytest

from zkmerkle.gadgets.digest import DigestVariable
from zkmerkle.gadgets.protoboard import Protoboard
from zkmerkle.gadgets.sha256 import (
    IV,
    Sha256TwoToOneHashGadget,
    sha256_compress,
    two_to_one,
)
from zkmerkle.merkle.leaves import bytes_to_bits


def _single_block(message):
    """55바이트 이하 메시지의 SHA-256 패딩 블록."""
    assert len(message) <= 55
    padding = b"\x80" + b"\x00" * (55 - len(message))
    return message + padding + (8 * len(message)).to_bytes(8, "big")


def _words_to_bytes(words):
    return b"".join(w.to_bytes(4, "big") for w in words)


def _bits_to_bytes(bits):
    return bytes(
        int("".join(str(b) for b in bits[i:i + 8]), 2)
        for i in range(0, len(bits), 8)
    )


LEFT = hashlib.sha256(b"left").digest()
RIGHT = hashlib.sha256(b"right").digest()


class TestNativeCompression:
    @pytest.mark.parametrize("message", [b"", b"abc", b"zkmerkle membership"])
    def test_matches_hashlib(self, message):
        words = sha256_compress(IV, _single_block(message))
        assert _words_to_bytes(words) == hashlib.sha256(message).digest()

    def test_two_to_one_is_unpadded_compression(self):
        assert two_to_one(LEFT, RIGHT) == _words_to_bytes(sha256_compress(IV, LEFT + RIGHT))
        assert two_to_one(LEFT, RIGHT) != hashlib.sha256(LEFT + RIGHT).digest()

    def test_order_matters(self):
        assert two_to_one(LEFT, RIGHT) != two_to_one(RIGHT, LEFT)

    def test_rejects_wrong_lengths(self):
        with pytest.raises(ValueError):
            two_to_one(LEFT[:31], RIGHT)
        with pytest.raises(ValueError):
            sha256_compress(IV, b"\x00" * 63)


@pytest.fixture(scope="module")
def sha_board():
    """left/right/output 다이제스트와 SHA-256 가젯 하나, 위트니스까지 채운 상태."""
    pb = Protoboard()
    left = DigestVariable(pb, annotation="left")
    right = DigestVariable(pb, annotation="right")
    output = DigestVariable(pb, annotation="output")
    gadget = Sha256TwoToOneHashGadget(pb, left, right, output, annotation="h")
    left.generate_r1cs_constraints()
    right.generate_r1cs_constraints()
    gadget.generate_r1cs_constraints()

    left.generate_assignments(bytes_to_bits(LEFT))
    right.generate_assignments(bytes_to_bits(RIGHT))
    gadget.generate_r1cs_witness()
    return pb, output


class TestSha256Gadget:
    def test_satisfied(self, sha_board):
        pb, _ = sha_board
        assert pb.first_unsatisfied() is None

    def test_output_matches_native(self, sha_board):
        _, output = sha_board
        assert _bits_to_bytes(output.get_digest()) == two_to_one(LEFT, RIGHT)

    def test_output_tamper_detected(self, sha_board):
        pb, output = sha_board
        index = output.bits[17]
        original = pb.val(index)
        pb.set_val(index, 1 - int(original))
        try:
            assert pb.first_unsatisfied() is not None
        finally:
            pb.set_val(index, original)

    def test_output_non_boolean_detected(self, sha_board):
        """출력 비트의 불리언성은 마지막 덧셈이 보장한다."""
        pb, output = sha_board
        index = output.bits[200]
        original = pb.val(index)
        pb.set_val(index, 2)
        try:
            assert not pb.is_satisfied()
        finally:
            pb.set_val(index, original)

    def test_output_is_not_reallocated(self, sha_board):
        pb, output = sha_board
        assert output.bits == list(range(513, 769))
        assert pb.num_variables > 768

    def test_rejects_wrong_digest_size(self):
        pb = Protoboard()
        small = DigestVariable(pb, digest_size=8, annotation="small")
        full = DigestVariable(pb, annotation="full")
        with pytest.raises(ValueError):
            Sha256TwoToOneHashGadget(pb, small, full, full)
