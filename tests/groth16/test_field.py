import pytest
from py_ecc import optimized_bn128 as bn128

from zkmerkle.groth16.field import (
    FR,
    CURVE_ORDER,
    G1,
    G2,
    Z1,
    Z2,
    FixedBaseTable,
    ec_add,
    ec_eq,
    ec_mul,
    ec_neg,
    fixed_base_window,
    get_root_of_unity,
    get_roots_of_unity,
    is_inf,
    multiexp,
    pairing_check,
    zero_like,
)


class TestFR:
    def test_modulus_is_curve_order(self):
        assert FR.field_modulus == CURVE_ORDER

    def test_wraps_negative(self):
        assert FR(-1) == FR(CURVE_ORDER - 1)

    def test_inverse(self):
        assert FR(7) * (FR(1) / FR(7)) == FR(1)


class TestRootsOfUnity:
    @pytest.mark.parametrize("n", [2, 4, 8, 64])
    def test_primitive(self, n):
        """ω^n = 1, ω^(n/2) ≠ 1"""
        omega = get_root_of_unity(n)
        assert omega ** n == FR(1)
        assert omega ** (n // 2) != FR(1)

    def test_n_equals_one(self):
        assert get_root_of_unity(1) == FR(1)

    def test_not_power_of_two(self):
        with pytest.raises(ValueError):
            get_root_of_unity(6)

    def test_too_large(self):
        with pytest.raises(ValueError):
            get_root_of_unity(1 << 29)

    def test_roots_are_distinct(self):
        roots = get_roots_of_unity(8)
        assert len({int(r) for r in roots}) == 8
        assert roots[0] == FR(1)


class TestPointOps:
    def test_mul_reduces_scalar(self):
        assert ec_eq(ec_mul(G1, CURVE_ORDER + 5), ec_mul(G1, 5))

    def test_mul_accepts_fr(self):
        assert ec_eq(ec_mul(G1, FR(9)), ec_mul(G1, 9))

    def test_add_neg_is_infinity(self):
        p = ec_mul(G1, 11)
        assert is_inf(ec_add(p, ec_neg(p)))

    def test_projective_equality(self):
        """같은 점이라도 사영 좌표 표현은 다를 수 있다."""
        p = ec_add(ec_mul(G1, 2), G1)
        q = ec_mul(G1, 3)
        assert ec_eq(p, q)

    def test_zero_like(self):
        assert is_inf(zero_like(G1))
        assert is_inf(zero_like(G2))
        assert ec_eq(zero_like(G2), Z2)


class TestFixedBaseTable:
    @pytest.fixture(scope="class")
    def g1_table(self):
        return FixedBaseTable(G1, window_bits=4)

    @pytest.mark.parametrize("scalar", [0, 1, 2, 15, 16, 255, 123456789, CURVE_ORDER - 1])
    def test_matches_double_and_add(self, g1_table, scalar):
        assert ec_eq(g1_table.multiply(scalar), bn128.multiply(G1, scalar))

    def test_accepts_fr(self, g1_table):
        assert ec_eq(g1_table.multiply(FR(-2)), ec_neg(ec_mul(G1, 2)))

    def test_batch(self, g1_table):
        scalars = [FR(3), FR(0), FR(1000)]
        points = g1_table.batch_multiply(scalars)
        for p, s in zip(points, scalars):
            assert ec_eq(p, ec_mul(G1, s))

    def test_g2(self):
        table = FixedBaseTable(G2, window_bits=4)
        assert ec_eq(table.multiply(77), bn128.multiply(G2, 77))

    def test_window_choice(self):
        assert fixed_base_window(10) == 4
        assert fixed_base_window(500) == 6
        assert fixed_base_window(5000) == 8


def _naive(points, scalars, zero):
    acc = zero
    for p, s in zip(points, scalars):
        acc = ec_add(acc, ec_mul(p, s))
    return acc


class TestMultiexp:
    def test_small(self):
        points = [ec_mul(G1, i + 2) for i in range(5)]
        scalars = [FR(3), FR(0), FR(1), FR(-1), FR(12345)]
        assert ec_eq(multiexp(points, scalars, Z1), _naive(points, scalars, Z1))

    def test_bucket_path(self):
        """개별 곱셈 임계값 이상이면 버킷 방식으로 합산한다."""
        points = [ec_mul(G1, 3 * i + 1) for i in range(40)]
        scalars = [FR(i * 7919 + 1) ** 5 for i in range(40)]
        assert ec_eq(multiexp(points, scalars, Z1), _naive(points, scalars, Z1))

    def test_bits_only(self):
        points = [ec_mul(G1, i + 1) for i in range(6)]
        scalars = [1, 0, 1, 1, 0, 1]
        assert ec_eq(multiexp(points, scalars, Z1), ec_mul(G1, 1 + 3 + 4 + 6))

    def test_skips_infinity(self):
        assert ec_eq(multiexp([Z1, G1], [FR(5), FR(2)], Z1), ec_mul(G1, 2))

    def test_empty(self):
        assert is_inf(multiexp([], [], Z1))

    def test_g2(self):
        points = [G2, ec_mul(G2, 2)]
        assert ec_eq(multiexp(points, [FR(3), FR(4)], Z2), ec_mul(G2, 11))

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            multiexp([G1, G1], [FR(1)], Z1)


class TestPairingCheck:
    def test_bilinear(self):
        """e(a·G2, b·G1) · e(G2, -(ab)·G1) = 1"""
        a, b = 6, 11
        assert pairing_check([
            (ec_mul(G2, a), ec_mul(G1, b)),
            (G2, ec_neg(ec_mul(G1, a * b))),
        ])

    def test_rejects_wrong_product(self):
        a, b = 6, 11
        assert not pairing_check([
            (ec_mul(G2, a), ec_mul(G1, b)),
            (G2, ec_neg(ec_mul(G1, a * b + 1))),
        ])
