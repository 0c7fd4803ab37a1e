import sys
import os
import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from zkmerkle.groth16.backend import init_backend
from zkmerkle.groth16.r1cs import LinearCombination
from zkmerkle import workflow


# ── 테스트용 two-to-one 가젯 ──
#
# SHA-256 가젯은 압축 한 번에 수만 개의 제약을 만들어 순수 Python Groth16으로는
# 키 생성이 너무 느리다. 엔드투엔드 테스트는 비트당 제약 하나인 가젯을 쓴다:
#
#   out[i] = left[i] XOR right[(i + 1) mod n]
#   (-2·l) · r = out - l - r

class XorTwoToOneGadget:
    digest_size = 8

    def __init__(self, pb, left, right, output, annotation="xor"):
        self.pb = pb
        self.left = left
        self.right = right
        self.output = output
        self.annotation = annotation

    def _wires(self, i):
        n = self.digest_size
        return self.left.bits[i], self.right.bits[(i + 1) % n], self.output.bits[i]

    def generate_r1cs_constraints(self):
        for i in range(self.digest_size):
            l, r, o = (LinearCombination.variable(w) for w in self._wires(i))
            self.pb.add_r1cs_constraint(l * -2, r, o - l - r, f"{self.annotation}[{i}]")

    def generate_r1cs_witness(self):
        for i in range(self.digest_size):
            l, r, o = self._wires(i)
            self.pb.set_val(o, int(self.pb.val(l)) ^ int(self.pb.val(r)))

    @classmethod
    def native(cls, left_bits, right_bits):
        n = cls.digest_size
        return [left_bits[i] ^ right_bits[(i + 1) % n] for i in range(n)]


class Xor256Gadget(XorTwoToOneGadget):
    digest_size = 256


class BrokenXorGadget(XorTwoToOneGadget):
    """위트니스의 첫 출력 비트를 뒤집는다."""

    def generate_r1cs_witness(self):
        super().generate_r1cs_witness()
        first = self.output.bits[0]
        self.pb.set_val(first, 1 - int(self.pb.val(first)))


def native_merkle_root(gadget, leaf_digests):
    level = list(leaf_digests)
    while len(level) > 1:
        level = [gadget.native(level[i], level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


@pytest.fixture(scope="session", autouse=True)
def test_hash_gadgets():
    """워크플로우 레지스트리에 테스트용 가젯을 등록한다."""
    with pytest.MonkeyPatch.context() as mp:
        mp.setitem(workflow.HASH_GADGETS, "xor8", XorTwoToOneGadget)
        mp.setitem(workflow.HASH_GADGETS, "xor256", Xor256Gadget)
        mp.setitem(workflow.HASH_GADGETS, "broken", BrokenXorGadget)
        yield workflow.HASH_GADGETS


@pytest.fixture(scope="session")
def xor_gadget():
    return XorTwoToOneGadget


@pytest.fixture(scope="session")
def broken_gadget():
    return BrokenXorGadget


@pytest.fixture(scope="session")
def merkle_root_of():
    return native_merkle_root


@pytest.fixture(scope="session")
def backend():
    """시드 고정 백엔드. 고정 기저 테이블 캐시를 세션 동안 공유한다."""
    return init_backend(seed=20240601)
