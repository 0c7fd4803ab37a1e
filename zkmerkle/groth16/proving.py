from zkmerkle.groth16.field import (
    FR,
    MULTIPLICATIVE_GENERATOR,
    Z1,
    Z2,
    ec_add,
    ec_mul,
    ec_neg,
    get_root_of_unity,
    multiexp,
)
from zkmerkle.groth16.poly_utils import coset_fft, coset_ifft, ifft


class Proof:
    """Groth16 증명: A ∈ G1, B ∈ G2, C ∈ G1"""

    def __init__(self, a, b, c):
        self.a = a
        self.b = b
        self.c = c


def constraint_evals(cs, assignment, domain_size):
    """각 제약 j에 대한 <A_j,w>, <B_j,w>, <C_j,w>. 도메인 크기까지 0으로 채운다."""
    pad = [FR(0)] * (domain_size - cs.num_constraints)
    a_evals = [c.a.evaluate(assignment) for c in cs.constraints] + pad
    b_evals = [c.b.evaluate(assignment) for c in cs.constraints] + pad
    c_evals = [c.c.evaluate(assignment) for c in cs.constraints] + pad
    return a_evals, b_evals, c_evals


# (A(x)·B(x) - C(x)) / Z(x) = H(x)
def hx_coeffs(cs, assignment, domain_size):
    """몫 다항식 h(x)의 계수 (n-1개).

    A·B - C는 H 위에서 0이므로 코셋 gH 위에서 평가하여 Z(g·ω^k) = g^n - 1로 나눈다.
    """
    omega = get_root_of_unity(domain_size)
    shift = MULTIPLICATIVE_GENERATOR
    a_evals, b_evals, c_evals = constraint_evals(cs, assignment, domain_size)

    a_coset = coset_fft(ifft(a_evals, omega), omega, shift)
    b_coset = coset_fft(ifft(b_evals, omega), omega, shift)
    c_coset = coset_fft(ifft(c_evals, omega), omega, shift)

    z_inv = FR(1) / (shift ** domain_size - FR(1))
    h_evals = [
        (a * b - c) * z_inv for a, b, c in zip(a_coset, b_coset, c_coset)
    ]
    h = coset_ifft(h_evals, omega, shift)
    # deg h ≤ n - 2
    return h[:domain_size - 1]


def proof_a(pk, assignment, r):
    proof_A = ec_add(pk.alpha_g1, multiexp(pk.a_query, assignment, Z1))
    return ec_add(proof_A, ec_mul(pk.delta_g1, r))


def proof_b(pk, assignment, s):
    """B는 G2에서, C 계산용으로 G1에서도 같은 값을 만든다."""
    proof_B = ec_add(pk.beta_g2, multiexp(pk.b_g2_query, assignment, Z2))
    proof_B = ec_add(proof_B, ec_mul(pk.delta_g2, s))

    temp_proof_B = ec_add(pk.beta_g1, multiexp(pk.b_g1_query, assignment, Z1))
    temp_proof_B = ec_add(temp_proof_B, ec_mul(pk.delta_g1, s))
    return proof_B, temp_proof_B


def proof_c(pk, assignment, Hx, s, r, prf_A, temp_proof_B):
    num_public = pk.constraint_system.primary_input_size
    private = assignment[num_public + 1:]

    proof_C = multiexp(pk.l_query, private, Z1)
    proof_C = ec_add(proof_C, multiexp(pk.h_query, Hx, Z1))
    proof_C = ec_add(proof_C, ec_mul(prf_A, s))
    proof_C = ec_add(proof_C, ec_mul(temp_proof_B, r))
    proof_C = ec_add(proof_C, ec_neg(ec_mul(pk.delta_g1, r * s)))
    return proof_C


def prove(pk, primary_input, auxiliary_input, random_scalar):
    """Groth16 증명 생성.

    Args:
        pk: ProvingKey
        primary_input: 공개 입력 값 리스트
        auxiliary_input: 비공개 입력 값 리스트
        random_scalar: () -> FR, 블라인딩 r, s 용

    Returns:
        Proof
    """
    cs = pk.constraint_system
    assignment = cs.full_assignment(primary_input, auxiliary_input)

    Hx = hx_coeffs(cs, assignment, pk.domain_size)

    r = random_scalar()
    s = random_scalar()

    prf_A = proof_a(pk, assignment, r)
    prf_B, temp_proof_B = proof_b(pk, assignment, s)
    prf_C = proof_c(pk, assignment, Hx, s, r, prf_A, temp_proof_B)

    return Proof(prf_A, prf_B, prf_C)
