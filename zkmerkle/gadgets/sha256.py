"""
SHA-256 two-to-one 해시 가젯
=============================

두 256비트 다이제스트 left, right를 하나의 512비트 블록으로 보고
표준 IV에서 시작하는 SHA-256 압축 함수를 한 번 적용한다 (패딩 없음).

    out = compress(IV, left || right)

**비트 수준 R1CS**:
  - 워드는 32개의 선형결합 리스트 (MSB 먼저)
  - 회전/시프트는 배선 재배치일 뿐 제약이 없다
  - XOR, Ch, Maj는 모두 한 가지 곱셈 단계로 만든다:
        out = offset + x · y
      XOR(x, y) = (x + y) + (-2x) · y
      Ch(e, f, g) = g + e · (f - g)
      Maj(a, b, c) = t + a · (b + c - 2t),  t = b · c
    한쪽이 상수이면 곱이 선형이므로 변수와 제약 없이 접는다
    (처음 몇 라운드의 IV, 라운드 상수 K).
  - mod 2^32 덧셈: 합을 올림 비트까지 포함한 불리언 비트로 분해한다
        Σ words = Σ 2^k · bits[k]
    하위 32비트가 결과 워드이고, 각 비트에 불리언 제약이 붙는다.

마지막 피드포워드 덧셈(IV + 작업 변수)은 출력 다이제스트 변수에 직접 쓴다.
따라서 출력 비트의 불리언성은 이 덧셈이 보장한다.

네이티브 참조 구현 sha256_compress / two_to_one도 함께 제공한다.
"""

from zkmerkle.groth16.r1cs import LinearCombination
from zkmerkle.gadgets.digest import DIGEST_SIZE
from zkmerkle.gadgets.protoboard import boolean_constraint


WORD_MASK = 0xFFFFFFFF

IV = [
    0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A,
    0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19,
]

K = [
    0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5, 0x3956C25B, 0x59F111F1, 0x923F82A4, 0xAB1C5ED5,
    0xD807AA98, 0x12835B01, 0x243185BE, 0x550C7DC3, 0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7, 0xC19BF174,
    0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC, 0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA,
    0x983E5152, 0xA831C66D, 0xB00327C8, 0xBF597FC7, 0xC6E00BF3, 0xD5A79147, 0x06CA6351, 0x14292967,
    0x27B70A85, 0x2E1B2138, 0x4D2C6DFC, 0x53380D13, 0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
    0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3, 0xD192E819, 0xD6990624, 0xF40E3585, 0x106AA070,
    0x19A4C116, 0x1E376C08, 0x2748774C, 0x34B0BCB5, 0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F, 0x682E6FF3,
    0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208, 0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
]


# ─────────────────────────────────────────────────────────────────────
# 네이티브 참조 구현
# ─────────────────────────────────────────────────────────────────────

def _rotr32(x, n):
    return ((x >> n) | (x << (32 - n))) & WORD_MASK


def sha256_compress(state, block):
    """SHA-256 압축 함수 (피드포워드 포함).

    Args:
        state: 8개의 32비트 워드
        block: 64바이트

    Returns:
        list[int]: 새 상태 8워드
    """
    if len(block) != 64:
        raise ValueError(f"block must be 64 bytes, got {len(block)}")

    w = [int.from_bytes(block[4 * t:4 * t + 4], "big") for t in range(16)]
    for t in range(16, 64):
        s0 = _rotr32(w[t - 15], 7) ^ _rotr32(w[t - 15], 18) ^ (w[t - 15] >> 3)
        s1 = _rotr32(w[t - 2], 17) ^ _rotr32(w[t - 2], 19) ^ (w[t - 2] >> 10)
        w.append((w[t - 16] + s0 + w[t - 7] + s1) & WORD_MASK)

    a, b, c, d, e, f, g, h = state
    for t in range(64):
        S1 = _rotr32(e, 6) ^ _rotr32(e, 11) ^ _rotr32(e, 25)
        ch = (e & f) ^ (~e & WORD_MASK & g)
        temp1 = (h + S1 + ch + K[t] + w[t]) & WORD_MASK
        S0 = _rotr32(a, 2) ^ _rotr32(a, 13) ^ _rotr32(a, 22)
        maj = (a & b) ^ (a & c) ^ (b & c)
        temp2 = (S0 + maj) & WORD_MASK
        h, g, f, e, d, c, b, a = g, f, e, (d + temp1) & WORD_MASK, c, b, a, (temp1 + temp2) & WORD_MASK

    return [(x + y) & WORD_MASK for x, y in zip(state, [a, b, c, d, e, f, g, h])]


def two_to_one(left, right):
    """compress(IV, left || right) → 32바이트"""
    if len(left) != 32 or len(right) != 32:
        raise ValueError("two_to_one expects two 32-byte digests")
    words = sha256_compress(IV, bytes(left) + bytes(right))
    return b"".join(word.to_bytes(4, "big") for word in words)


# ─────────────────────────────────────────────────────────────────────
# 워드 (비트 선형결합 리스트, MSB 먼저)
# ─────────────────────────────────────────────────────────────────────

def constant_word(value):
    return [LinearCombination.constant((value >> (31 - j)) & 1) for j in range(32)]


def rotr(word, n):
    return word[-n:] + word[:-n]


def shr(word, n):
    return [LinearCombination() for _ in range(n)] + word[:-n]


def pack(words):
    """Σ_word Σ_j 2^(31-j) · word[j]"""
    total = LinearCombination()
    for word in words:
        for j, bit in enumerate(word):
            weight = 1 << (31 - j)
            for index, coeff in bit.terms.items():
                total.add_term(index, coeff * weight)
    return total


class _ProductStep:
    """out = offset + x · y"""

    __slots__ = ("out", "offset", "x", "y", "annotation")

    def __init__(self, out, offset, x, y, annotation):
        self.out = out
        self.offset = offset
        self.x = x
        self.y = y
        self.annotation = annotation

    def emit(self, pb):
        pb.add_r1cs_constraint(
            self.x,
            self.y,
            LinearCombination.variable(self.out) - self.offset,
            self.annotation,
        )

    def assign(self, pb):
        pb.set_val(self.out, pb.lc_val(self.offset) + pb.lc_val(self.x) * pb.lc_val(self.y))


class _PackedAdditionStep:
    """total = Σ 2^k · bits[k] (bits는 LSB 먼저, 올림 비트 포함)"""

    __slots__ = ("total", "bits", "annotation")

    def __init__(self, total, bits, annotation):
        self.total = total
        self.bits = bits
        self.annotation = annotation

    def emit(self, pb):
        packed = LinearCombination()
        for k, index in enumerate(self.bits):
            packed.add_term(index, 1 << k)
        pb.add_r1cs_constraint(self.total, LinearCombination.constant(1), packed, self.annotation)
        for k, index in enumerate(self.bits):
            boolean_constraint(pb, LinearCombination.variable(index), f"{self.annotation}.bit[{k}]")

    def assign(self, pb):
        value = int(pb.lc_val(self.total))
        for k, index in enumerate(self.bits):
            pb.set_val(index, (value >> k) & 1)


# ─────────────────────────────────────────────────────────────────────
# 가젯
# ─────────────────────────────────────────────────────────────────────

class Sha256TwoToOneHashGadget:
    """output = SHA-256 compress(IV, left || right)

    생성자에서 내부 변수를 모두 할당하고 (할당 순서는 결정적),
    generate_r1cs_constraints / generate_r1cs_witness는 기록된 단계를
    같은 순서로 따라간다.
    """

    digest_size = DIGEST_SIZE

    def __init__(self, pb, left, right, output, annotation="sha256"):
        for digest in (left, right, output):
            if digest.digest_size != self.digest_size:
                raise ValueError(
                    f"{annotation}: {digest!r} does not hold a {self.digest_size}-bit digest"
                )
        self.pb = pb
        self.left = left
        self.right = right
        self.output = output
        self.annotation = annotation
        self.steps = []

        block = left.bit_lcs() + right.bit_lcs()
        w = [block[32 * t:32 * (t + 1)] for t in range(16)]
        for t in range(16, 64):
            ann = f"{annotation}.W[{t}]"
            s0 = self._xor3(rotr(w[t - 15], 7), rotr(w[t - 15], 18), shr(w[t - 15], 3), ann + ".s0")
            s1 = self._xor3(rotr(w[t - 2], 17), rotr(w[t - 2], 19), shr(w[t - 2], 10), ann + ".s1")
            w.append(self._add([w[t - 16], s0, w[t - 7], s1], ann))

        a, b, c, d, e, f, g, h = [constant_word(v) for v in IV]
        for t in range(64):
            ann = f"{annotation}.round[{t}]"
            S1 = self._xor3(rotr(e, 6), rotr(e, 11), rotr(e, 25), ann + ".S1")
            ch = self._choice(e, f, g, ann + ".ch")
            S0 = self._xor3(rotr(a, 2), rotr(a, 13), rotr(a, 22), ann + ".S0")
            maj = self._majority(a, b, c, ann + ".maj")
            k = constant_word(K[t])
            new_e = self._add([d, h, S1, ch, k, w[t]], ann + ".e")
            new_a = self._add([h, S1, ch, k, w[t], S0, maj], ann + ".a")
            h, g, f, e, d, c, b, a = g, f, e, new_e, c, b, a, new_a

        for i, word in enumerate([a, b, c, d, e, f, g, h]):
            self._add(
                [constant_word(IV[i]), word],
                f"{annotation}.out[{i}]",
                result=output.bits[32 * i:32 * (i + 1)],
            )

    # ─── 비트 연산 ───

    def _product(self, offset, x, y, annotation):
        """offset + x · y"""
        if x.is_constant():
            return offset + y * x.constant_value()
        if y.is_constant():
            return offset + x * y.constant_value()
        out = self.pb.allocate_variable(annotation)
        self.steps.append(_ProductStep(out, offset, x, y, annotation))
        return LinearCombination.variable(out)

    def _xor(self, x, y, annotation):
        return self._product(x + y, x * -2, y, annotation)

    def _xor3(self, x, y, z, annotation):
        return [
            self._xor(self._xor(x[j], y[j], f"{annotation}[{j}].0"), z[j], f"{annotation}[{j}]")
            for j in range(32)
        ]

    def _choice(self, e, f, g, annotation):
        return [
            self._product(g[j], e[j], f[j] - g[j], f"{annotation}[{j}]")
            for j in range(32)
        ]

    def _majority(self, a, b, c, annotation):
        word = []
        for j in range(32):
            bc = self._product(LinearCombination(), b[j], c[j], f"{annotation}[{j}].bc")
            word.append(self._product(bc, a[j], b[j] + c[j] - bc * 2, f"{annotation}[{j}]"))
        return word

    def _add(self, words, annotation, result=None):
        """Σ words mod 2^32

        Args:
            result: 결과 워드로 쓸 변수 인덱스 32개 (MSB 먼저). 없으면 새로 할당한다.
        """
        carry_bits = (len(words) * WORD_MASK).bit_length() - 32
        if result is None:
            result = self.pb.allocate_variables(32, annotation)
        carries = self.pb.allocate_variables(carry_bits, annotation + ".carry")
        self.steps.append(
            _PackedAdditionStep(pack(words), list(reversed(result)) + carries, annotation)
        )
        return [LinearCombination.variable(index) for index in result]

    # ─── 가젯 인터페이스 ───

    def generate_r1cs_constraints(self):
        for step in self.steps:
            step.emit(self.pb)

    def generate_r1cs_witness(self):
        for step in self.steps:
            step.assign(self.pb)
