"""
Groth16 기반 모듈: 스칼라 필드 및 bn128 타원곡선 연산
======================================================

Groth16 백엔드 전체에서 사용하는 대수적 도구를 정의한다.

**유한체 FR**:
  bn128 곡선의 스칼라 필드. R1CS 변수 값, QAP 평가값, toxic waste가
  모두 이 필드의 원소이다.
  - p - 1 = 2^28 × m (m은 홀수) → 최대 2^28차 단위근 지원

**타원곡선 연산**:
  py_ecc의 optimized_bn128 (사영 좌표) 구현을 사용한다.
  무한원점은 Z1 / Z2 (z = 0)으로 표현되며, 점 비교는 반드시 ec_eq로 한다.

**다중 스칼라 곱 (MSM)**:
  - FixedBaseTable: 생성자 G1/G2에 대한 고정 기저 윈도우 테이블.
    키 생성 시 수천 번의 스칼라 곱을 덧셈 몇십 번으로 줄인다.
  - multiexp: 가변 기저 버킷(Pippenger) 방식. 0/1 스칼라(비트 배선)는
    단순 덧셈으로 처리한다.

사용 예시:
    >>> from zkmerkle.groth16.field import FR, G1, ec_mul
    >>> P = ec_mul(G1, FR(5))
"""

from py_ecc.fields import bn128_FQ as FQ
from py_ecc import optimized_bn128 as bn128


# ─────────────────────────────────────────────────────────────────────
# 유한체(Finite Field) FR
# ─────────────────────────────────────────────────────────────────────

class FR(FQ):
    """bn128 스칼라 필드 위의 유한체 원소."""
    field_modulus = bn128.curve_order


CURVE_ORDER = bn128.curve_order

# FR*의 생성자. 코셋 FFT의 shift로도 사용한다.
MULTIPLICATIVE_GENERATOR = FR(5)


# ─────────────────────────────────────────────────────────────────────
# 타원곡선 상수 및 연산
# ─────────────────────────────────────────────────────────────────────

G1 = bn128.G1
G2 = bn128.G2

# 무한원점 (항등원)
Z1 = bn128.Z1
Z2 = bn128.Z2

FQ12 = bn128.FQ12


def ec_mul(point, scalar):
    """타원곡선 스칼라 곱셈: scalar · point."""
    if isinstance(scalar, FQ):
        scalar = int(scalar)
    return bn128.multiply(point, scalar % CURVE_ORDER)


def ec_add(p1, p2):
    return bn128.add(p1, p2)


def ec_neg(point):
    return bn128.neg(point)


def ec_eq(p1, p2):
    """사영 좌표에서의 점 비교. 튜플 == 비교는 사용하면 안 된다."""
    return bn128.eq(p1, p2)


def is_inf(point):
    return bn128.is_inf(point)


def zero_like(point):
    """point와 같은 그룹의 무한원점."""
    return (point[0].one(), point[0].one(), point[0].zero())


def pairing_check(pairs):
    """∏ e(Q_i, P_i) == 1 인지 확인한다.

    각 페어링은 Miller loop까지만 계산하고, 곱한 뒤
    final exponentiation을 한 번만 수행한다.

    Args:
        pairs: [(G2 점, G1 점), ...]

    Returns:
        bool
    """
    acc = FQ12.one()
    for g2_point, g1_point in pairs:
        acc = acc * bn128.pairing(g2_point, g1_point, final_exponentiate=False)
    return bn128.final_exponentiate(acc) == FQ12.one()


# ─────────────────────────────────────────────────────────────────────
# 단위근 (Roots of Unity)
# ─────────────────────────────────────────────────────────────────────

def get_root_of_unity(n):
    """n차 원시 단위근 ω를 반환한다.

    ω = g^((p-1)/n), g = FR(5)

    Raises:
        ValueError: n이 2의 거듭제곱이 아니거나 2^28을 초과할 때
    """
    if n < 1 or (n & (n - 1)) != 0:
        raise ValueError(f"n must be a power of two: {n}")
    if n > (1 << 28):
        raise ValueError(f"n must not exceed 2^28: {n}")
    if n == 1:
        return FR(1)
    return MULTIPLICATIVE_GENERATOR ** ((CURVE_ORDER - 1) // n)


def get_roots_of_unity(n):
    """[1, ω, ω², ..., ω^(n-1)]"""
    omega = get_root_of_unity(n)
    roots = []
    current = FR(1)
    for _ in range(n):
        roots.append(current)
        current = current * omega
    return roots


# ─────────────────────────────────────────────────────────────────────
# 고정 기저 스칼라 곱 (Fixed-base windowed multiplication)
# ─────────────────────────────────────────────────────────────────────

def fixed_base_window(num_scalars):
    """곱셈 횟수에 맞는 윈도우 크기(비트)를 고른다.

    테이블 생성 비용은 (254 / w) · 2^w 번의 덧셈이므로,
    곱셈이 적을 때는 작은 윈도우가 낫다.
    """
    if num_scalars < 64:
        return 4
    if num_scalars < 1024:
        return 6
    return 8


class FixedBaseTable:
    """고정 기저점 B에 대한 윈도우 테이블.

    rows[k][d] = d · 2^(k·w) · B  (1 ≤ d < 2^w)

    scalar = Σ d_k · 2^(k·w) 로 분해하면
    scalar · B = Σ rows[k][d_k] 이므로 곱셈 한 번이 최대 ⌈254/w⌉ 번의
    덧셈이 된다.
    """

    def __init__(self, base, window_bits=8):
        self.window_bits = window_bits
        self.zero = zero_like(base)
        self.rows = []

        num_windows = -(-CURVE_ORDER.bit_length() // window_bits)
        window_base = base
        for _ in range(num_windows):
            row = [self.zero, window_base]
            for _ in range(2, 1 << window_bits):
                row.append(bn128.add(row[-1], window_base))
            self.rows.append(row)
            # 다음 윈도우의 기저: 2^w · window_base
            window_base = bn128.add(row[-1], window_base)

    def multiply(self, scalar):
        k = int(scalar) % CURVE_ORDER
        mask = (1 << self.window_bits) - 1
        acc = self.zero
        for row in self.rows:
            if not k:
                break
            digit = k & mask
            if digit:
                acc = bn128.add(acc, row[digit])
            k >>= self.window_bits
        return acc

    def batch_multiply(self, scalars):
        return [self.multiply(s) for s in scalars]


# ─────────────────────────────────────────────────────────────────────
# 가변 기저 다중 스칼라 곱 (Multi-scalar multiplication)
# ─────────────────────────────────────────────────────────────────────

# 이 개수 미만이면 버킷 방식보다 개별 곱셈이 빠르다
_BUCKET_THRESHOLD = 16


def _bucket_window(count):
    return max(2, count.bit_length() - 2)


def multiexp(points, scalars, zero):
    """Σ scalars[i] · points[i] 를 계산한다.

    0 스칼라와 무한원점은 건너뛰고, 스칼라 1은 덧셈으로 처리한다.
    나머지는 Pippenger 버킷 방식으로 합산한다.

    Args:
        points: 같은 그룹의 점 리스트
        scalars: FR 또는 int 리스트 (points와 같은 길이)
        zero: 해당 그룹의 무한원점 (Z1 또는 Z2)

    Returns:
        합산된 점
    """
    if len(points) != len(scalars):
        raise ValueError(
            f"multiexp length mismatch: {len(points)} points, {len(scalars)} scalars"
        )

    acc = zero
    pending = []
    for point, scalar in zip(points, scalars):
        s = int(scalar) % CURVE_ORDER
        if s == 0 or bn128.is_inf(point):
            continue
        if s == 1:
            acc = bn128.add(acc, point)
        else:
            pending.append((point, s))

    if len(pending) < _BUCKET_THRESHOLD:
        for point, s in pending:
            acc = bn128.add(acc, bn128.multiply(point, s))
        return acc

    c = _bucket_window(len(pending))
    mask = (1 << c) - 1
    num_windows = -(-CURVE_ORDER.bit_length() // c)

    result = zero
    for window in reversed(range(num_windows)):
        for _ in range(c):
            result = bn128.double(result)

        buckets = [zero] * (1 << c)
        shift = window * c
        for point, s in pending:
            digit = (s >> shift) & mask
            if digit:
                buckets[digit] = bn128.add(buckets[digit], point)

        # Σ d · bucket[d] = 누적합의 누적합
        running = zero
        window_sum = zero
        for bucket in reversed(buckets[1:]):
            running = bn128.add(running, bucket)
            window_sum = bn128.add(window_sum, running)
        result = bn128.add(result, window_sum)

    return bn128.add(acc, result)
