"""
Groth16 평가 도메인 유틸리티: FFT / IFFT / 코셋 FFT / Lagrange 기저
====================================================================

R1CS의 j번째 제약을 도메인 H = {1, ω, ..., ω^(n-1)}의 j번째 점에 대응시킨다.
그러면 변수 i의 QAP 다항식 A_i(x)는 A_i(ω^j) = A[j][i]를 만족하는
보간 다항식이 된다.

  - setup: A_i(τ) = Σ_j A[j][i] · L_j(τ)  (Lagrange 기저를 τ에서 평가)
  - proving: h(x) = (A(x)·B(x) - C(x)) / Z(x)를 코셋 gH 위에서 계산
    (H 위에서는 Z(x) = 0이므로 나눌 수 없다)

Z(x) = x^n - 1 (도메인의 소거 다항식)
"""

from zkmerkle.groth16.field import FR, get_roots_of_unity


def domain_size_for(num_constraints):
    """제약 수 이상인 최소의 2의 거듭제곱 (최소 2)."""
    n = 2
    while n < num_constraints:
        n *= 2
    return n


# ─────────────────────────────────────────────────────────────────────
# FFT / IFFT
# ─────────────────────────────────────────────────────────────────────

def fft(coeffs, omega):
    """계수 → 평가값. 재귀적 Cooley-Tukey radix-2.

    Args:
        coeffs: FR 계수 리스트 (길이는 2의 거듭제곱)
        omega: len(coeffs)차 원시 단위근

    Returns:
        list[FR]: [p(1), p(ω), ..., p(ω^(n-1))]
    """
    n = len(coeffs)
    if n == 1:
        return [coeffs[0] if isinstance(coeffs[0], FR) else FR(coeffs[0])]

    omega_sq = omega * omega
    even_vals = fft(coeffs[0::2], omega_sq)
    odd_vals = fft(coeffs[1::2], omega_sq)

    result = [FR(0)] * n
    omega_k = FR(1)
    half = n // 2
    for k in range(half):
        t = omega_k * odd_vals[k]
        result[k] = even_vals[k] + t
        result[k + half] = even_vals[k] - t
        omega_k = omega_k * omega

    return result


def ifft(evals, omega):
    """평가값 → 계수. ω^{-1}로 FFT 후 n으로 나눈다."""
    n = len(evals)
    coeffs = fft(evals, FR(1) / omega)
    n_inv = FR(1) / FR(n)
    return [c * n_inv for c in coeffs]


def coset_fft(coeffs, omega, shift):
    """p(shift · ω^k), k = 0..n-1"""
    scaled = []
    power = FR(1)
    for c in coeffs:
        scaled.append(c * power)
        power = power * shift
    return fft(scaled, omega)


def coset_ifft(evals, omega, shift):
    """coset_fft의 역변환."""
    coeffs = ifft(evals, omega)
    shift_inv = FR(1) / shift
    power = FR(1)
    result = []
    for c in coeffs:
        result.append(c * power)
        power = power * shift_inv
    return result


# ─────────────────────────────────────────────────────────────────────
# 소거 다항식 / Lagrange 기저
# ─────────────────────────────────────────────────────────────────────

def vanishing_eval(n, x):
    """Z(x) = x^n - 1"""
    return x ** n - FR(1)


def lagrange_evals(n, tau):
    """도메인 크기 n의 Lagrange 기저를 τ에서 평가한다.

    L_j(τ) = (τ^n - 1) / n · ω^j / (τ - ω^j)

    Raises:
        ValueError: τ가 도메인 위의 점인 경우 (Z(τ) = 0)
    """
    z_tau = vanishing_eval(n, tau)
    if z_tau == FR(0):
        raise ValueError("tau lies on the evaluation domain")

    factor = z_tau / FR(n)
    return [factor * omega_j / (tau - omega_j) for omega_j in get_roots_of_unity(n)]
