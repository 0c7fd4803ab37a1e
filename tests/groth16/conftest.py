import pytest

from zkmerkle.groth16.field import FR
from zkmerkle.groth16.r1cs import ConstraintSystem, LinearCombination, R1CSConstraint


# ── 테스트 회로: x³ + x + 5 = out ──
#
#   w = [1, out, x, sym1, y, sym2]
#   x · x       = sym1
#   sym1 · x    = y
#   (y + x) · 1 = sym2
#   (sym2 + 5) · 1 = out
X_VALUE = 3

OUT, X, SYM1, Y, SYM2 = 1, 2, 3, 4, 5


def _v(index):
    return LinearCombination.variable(index)


def build_qeval_cs():
    cs = ConstraintSystem(primary_input_size=1, auxiliary_input_size=4)
    one = LinearCombination.constant(1)
    cs.add(R1CSConstraint(_v(X), _v(X), _v(SYM1), "x * x = sym1"))
    cs.add(R1CSConstraint(_v(SYM1), _v(X), _v(Y), "sym1 * x = y"))
    cs.add(R1CSConstraint(_v(Y) + _v(X), one, _v(SYM2), "y + x = sym2"))
    cs.add(R1CSConstraint(_v(SYM2) + LinearCombination.constant(5), one, _v(OUT), "sym2 + 5 = out"))
    return cs


def qeval_witness(x):
    sym1 = x * x
    y = sym1 * x
    sym2 = y + x
    return [sym2 + 5], [x, sym1, y, sym2]


@pytest.fixture(scope="session")
def qeval_cs():
    return build_qeval_cs()


@pytest.fixture(scope="session")
def qeval_inputs():
    primary, auxiliary = qeval_witness(X_VALUE)
    return [FR(v) for v in primary], [FR(v) for v in auxiliary]


@pytest.fixture(scope="session")
def keypair(backend, qeval_cs):
    return backend.generate(qeval_cs)


@pytest.fixture(scope="session")
def valid_proof(backend, keypair, qeval_inputs):
    pk, _ = keypair
    primary, auxiliary = qeval_inputs
    return backend.prove(pk, primary, auxiliary)
