from zkmerkle.groth16.field import Z1, ec_add, ec_neg, multiexp, pairing_check


def public_input_commitment(vk, primary_input):
    """IC_0 + Σ x_i · IC_i"""
    if len(primary_input) != vk.num_public_inputs:
        raise ValueError(
            f"expected {vk.num_public_inputs} public inputs, got {len(primary_input)}"
        )
    return ec_add(vk.ic[0], multiexp(vk.ic[1:], primary_input, Z1))


# e(A, B) == e(α, β) · e(IC(x), γ) · e(C, δ)
def verify(vk, primary_input, proof):
    ic_sum = public_input_commitment(vk, primary_input)
    return pairing_check([
        (proof.b, proof.a),
        (vk.beta_g2, ec_neg(vk.alpha_g1)),
        (vk.gamma_g2, ec_neg(ic_sum)),
        (vk.delta_g2, ec_neg(proof.c)),
    ])
