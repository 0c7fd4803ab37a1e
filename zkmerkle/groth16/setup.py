from zkmerkle.groth16.field import (
    FR,
    G1,
    G2,
    FixedBaseTable,
    fixed_base_window,
)
from zkmerkle.groth16.poly_utils import (
    domain_size_for,
    lagrange_evals,
    vanishing_eval,
)


class ProvingKey:
    """증명 키.

    a_query, b_g1_query, b_g2_query: 모든 변수 i에 대한 [A_i(τ)], [B_i(τ)]
    h_query: [τ^k · Z(τ) / δ]_1, k = 0..n-2
    l_query: 비공개 변수에 대한 [(β·A_i(τ) + α·B_i(τ) + C_i(τ)) / δ]_1
    """

    def __init__(self, constraint_system, domain_size,
                 alpha_g1, beta_g1, beta_g2, delta_g1, delta_g2,
                 a_query, b_g1_query, b_g2_query, h_query, l_query):
        self.constraint_system = constraint_system
        self.domain_size = domain_size
        self.alpha_g1 = alpha_g1
        self.beta_g1 = beta_g1
        self.beta_g2 = beta_g2
        self.delta_g1 = delta_g1
        self.delta_g2 = delta_g2
        self.a_query = a_query
        self.b_g1_query = b_g1_query
        self.b_g2_query = b_g2_query
        self.h_query = h_query
        self.l_query = l_query


class VerificationKey:
    """검증 키. ic는 상수 배선 + 공개 입력에 대한 [(β·A_i + α·B_i + C_i) / γ]_1"""

    def __init__(self, alpha_g1, beta_g2, gamma_g2, delta_g2, ic):
        self.alpha_g1 = alpha_g1
        self.beta_g2 = beta_g2
        self.gamma_g2 = gamma_g2
        self.delta_g2 = delta_g2
        self.ic = ic

    @property
    def num_public_inputs(self):
        return len(self.ic) - 1


def sample_toxic_waste(random_scalar, domain_size):
    """α, β, γ, δ, τ. τ가 도메인 위에 오면 다시 뽑는다."""
    alpha = random_scalar()
    beta = random_scalar()
    gamma = random_scalar()
    delta = random_scalar()
    tau = random_scalar()
    while vanishing_eval(domain_size, tau) == FR(0):
        tau = random_scalar()
    return alpha, beta, gamma, delta, tau


def qap_evals(cs, lagrange):
    """모든 변수 i에 대해 A_i(τ), B_i(τ), C_i(τ)."""
    num_variables = cs.num_variables
    At = [FR(0)] * num_variables
    Bt = [FR(0)] * num_variables
    Ct = [FR(0)] * num_variables
    for j, constraint in enumerate(cs.constraints):
        lj = lagrange[j]
        for i, coeff in constraint.a.terms.items():
            At[i] = At[i] + coeff * lj
        for i, coeff in constraint.b.terms.items():
            Bt[i] = Bt[i] + coeff * lj
        for i, coeff in constraint.c.terms.items():
            Ct[i] = Ct[i] + coeff * lj
    return At, Bt, Ct


def sigma11(g1_table, alpha, beta, delta):
    return [g1_table.multiply(alpha), g1_table.multiply(beta), g1_table.multiply(delta)]


def sigma13(g1_table, num_public, alpha, beta, gamma, At, Bt, Ct):
    """IC: 상수 배선과 공개 입력 (인덱스 0..num_public)"""
    gamma_inv = FR(1) / gamma
    vals = [
        (beta * At[i] + alpha * Bt[i] + Ct[i]) * gamma_inv
        for i in range(num_public + 1)
    ]
    return g1_table.batch_multiply(vals)


def sigma14(g1_table, num_public, alpha, beta, delta, At, Bt, Ct):
    """L: 비공개 입력 (인덱스 num_public+1 ..)"""
    delta_inv = FR(1) / delta
    vals = [
        (beta * At[i] + alpha * Bt[i] + Ct[i]) * delta_inv
        for i in range(num_public + 1, len(At))
    ]
    return g1_table.batch_multiply(vals)


def sigma15(g1_table, domain_size, delta, tau):
    """H: τ^k · Z(τ) / δ, k = 0..n-2"""
    factor = vanishing_eval(domain_size, tau) / delta
    vals = []
    tau_k = FR(1)
    for _ in range(domain_size - 1):
        vals.append(tau_k * factor)
        tau_k = tau_k * tau
    return g1_table.batch_multiply(vals)


def sigma21(g2_table, beta, gamma, delta):
    return [g2_table.multiply(beta), g2_table.multiply(gamma), g2_table.multiply(delta)]


def generate_keypair(cs, random_scalar, tables=None):
    """Groth16 키 생성.

    Args:
        cs: ConstraintSystem
        random_scalar: () -> FR (0이 아닌 난수)
        tables: (window_bits -> (G1 테이블, G2 테이블)) 캐시. 없으면 새로 만든다.

    Returns:
        (ProvingKey, VerificationKey)
    """
    domain_size = domain_size_for(cs.num_constraints)
    alpha, beta, gamma, delta, tau = sample_toxic_waste(random_scalar, domain_size)

    lagrange = lagrange_evals(domain_size, tau)
    At, Bt, Ct = qap_evals(cs, lagrange)

    window = fixed_base_window(cs.num_variables + domain_size)
    if tables is None:
        tables = {}
    if window not in tables:
        tables[window] = (FixedBaseTable(G1, window), FixedBaseTable(G2, window))
    g1_table, g2_table = tables[window]

    num_public = cs.primary_input_size
    s11 = sigma11(g1_table, alpha, beta, delta)
    s21 = sigma21(g2_table, beta, gamma, delta)
    ic = sigma13(g1_table, num_public, alpha, beta, gamma, At, Bt, Ct)
    l_query = sigma14(g1_table, num_public, alpha, beta, delta, At, Bt, Ct)
    h_query = sigma15(g1_table, domain_size, delta, tau)

    a_query = g1_table.batch_multiply(At)
    b_g1_query = g1_table.batch_multiply(Bt)
    b_g2_query = g2_table.batch_multiply(Bt)

    pk = ProvingKey(
        constraint_system=cs,
        domain_size=domain_size,
        alpha_g1=s11[0],
        beta_g1=s11[1],
        beta_g2=s21[0],
        delta_g1=s11[2],
        delta_g2=s21[2],
        a_query=a_query,
        b_g1_query=b_g1_query,
        b_g2_query=b_g2_query,
        h_query=h_query,
        l_query=l_query,
    )
    vk = VerificationKey(
        alpha_g1=s11[0],
        beta_g2=s21[0],
        gamma_g2=s21[1],
        delta_g2=s21[2],
        ic=ic,
    )
    return pk, vk
