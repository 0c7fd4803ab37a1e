import pytest

from zkmerkle.groth16.field import FR, MULTIPLICATIVE_GENERATOR, get_roots_of_unity, get_root_of_unity
from zkmerkle.groth16.poly_utils import (
    coset_fft,
    coset_ifft,
    domain_size_for,
    fft,
    ifft,
    lagrange_evals,
    vanishing_eval,
)


def _eval(coeffs, x):
    """호너 방식 다항식 평가."""
    acc = FR(0)
    for c in reversed(coeffs):
        acc = acc * x + c
    return acc


COEFFS = [FR(v) for v in [5, 1, 0, 1, 7, 0, 3, 2]]


class TestDomainSize:
    @pytest.mark.parametrize("m, n", [(0, 2), (1, 2), (2, 2), (3, 4), (4, 4), (5, 8), (1000, 1024)])
    def test_power_of_two(self, m, n):
        assert domain_size_for(m) == n


class TestFFT:
    def test_matches_direct_evaluation(self):
        roots = get_roots_of_unity(8)
        evals = fft(COEFFS, get_root_of_unity(8))
        assert evals == [_eval(COEFFS, r) for r in roots]

    def test_ifft_inverts_fft(self):
        omega = get_root_of_unity(8)
        assert ifft(fft(COEFFS, omega), omega) == COEFFS

    def test_accepts_ints(self):
        omega = get_root_of_unity(2)
        assert fft([1, 2], omega) == [FR(3), FR(-1)]

    def test_coset_evaluation(self):
        omega = get_root_of_unity(8)
        g = MULTIPLICATIVE_GENERATOR
        evals = coset_fft(COEFFS, omega, g)
        assert evals == [_eval(COEFFS, g * r) for r in get_roots_of_unity(8)]

    def test_coset_ifft_inverts(self):
        omega = get_root_of_unity(8)
        g = MULTIPLICATIVE_GENERATOR
        assert coset_ifft(coset_fft(COEFFS, omega, g), omega, g) == COEFFS


class TestVanishing:
    def test_zero_on_domain(self):
        for r in get_roots_of_unity(4):
            assert vanishing_eval(4, r) == FR(0)

    def test_nonzero_off_domain(self):
        assert vanishing_eval(4, FR(2)) == FR(15)


class TestLagrange:
    TAU = FR(123456789)

    def test_partition_of_unity(self):
        """Σ L_j(τ) = 1"""
        total = FR(0)
        for v in lagrange_evals(8, self.TAU):
            total = total + v
        assert total == FR(1)

    def test_interpolates(self):
        """deg f < n 이면 Σ f(ω^j) · L_j(τ) = f(τ)"""
        roots = get_roots_of_unity(8)
        basis = lagrange_evals(8, self.TAU)
        total = FR(0)
        for r, l in zip(roots, basis):
            total = total + _eval(COEFFS, r) * l
        assert total == _eval(COEFFS, self.TAU)

    def test_rejects_domain_point(self):
        with pytest.raises(ValueError):
            lagrange_evals(8, get_root_of_unity(8))
