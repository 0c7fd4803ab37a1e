from zkmerkle.groth16.r1cs import LinearCombination
from zkmerkle.gadgets.protoboard import boolean_constraint

DIGEST_SIZE = 256


class DigestVariable:
    """digest_size개의 순서 있는 불리언 변수 (MSB 먼저).

    identity는 할당 순서 + annotation. 변수를 할당한 회로가 소유한다.
    """

    def __init__(self, pb, digest_size=DIGEST_SIZE, annotation=""):
        self.pb = pb
        self.digest_size = digest_size
        self.annotation = annotation
        self.bits = pb.allocate_variables(digest_size, annotation)

    def __len__(self):
        return self.digest_size

    def bit_lcs(self):
        return [LinearCombination.variable(index) for index in self.bits]

    def generate_r1cs_constraints(self):
        for i, index in enumerate(self.bits):
            boolean_constraint(
                self.pb,
                LinearCombination.variable(index),
                f"{self.annotation}[{i}] is boolean",
            )

    def generate_assignments(self, bits):
        bits = list(bits)
        if len(bits) != self.digest_size:
            raise ValueError(
                f"{self.annotation}: expected {self.digest_size} bits, got {len(bits)}"
            )
        for index, bit in zip(self.bits, bits):
            if bit not in (0, 1):
                raise ValueError(f"{self.annotation}: digest bit must be 0 or 1, got {bit!r}")
            self.pb.set_val(index, bit)

    def get_digest(self):
        return [int(self.pb.val(index)) for index in self.bits]

    def __repr__(self):
        return f"DigestVariable({self.annotation!r}, {self.digest_size} bits)"
