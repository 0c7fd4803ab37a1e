"""
R1CS (Rank-1 Constraint System)
=================================

제약 하나는 세 개의 선형결합 A, B, C에 대해

    <A, w> · <B, w> = <C, w>

를 요구한다. w는 전체 변수 할당 벡터이며

    w = [1, x_1, ..., x_l, a_1, ..., a_m]

  - w[0] = 1 (상수 배선, 인덱스 ONE)
  - x: 공개 입력 (primary input), 검증자가 알고 있는 값
  - a: 비공개 입력 (auxiliary input), 증명자만 아는 값

선형결합은 {변수 인덱스: FR 계수} 사전으로 표현한다 (희소 표현).
"""

from zkmerkle.groth16.field import FR

# 상수 1 배선의 인덱스
ONE = 0


def _as_fr(value):
    return value if isinstance(value, FR) else FR(value)


class LinearCombination:
    """Σ coeff_i · w[i]"""

    __slots__ = ("terms",)

    def __init__(self, terms=None):
        self.terms = {}
        if terms:
            for index, coeff in terms.items():
                self.add_term(index, coeff)

    @classmethod
    def variable(cls, index, coeff=1):
        return cls({index: coeff})

    @classmethod
    def constant(cls, value):
        return cls({ONE: value})

    def add_term(self, index, coeff):
        coeff = _as_fr(coeff)
        total = self.terms.get(index, FR(0)) + coeff
        if total == FR(0):
            self.terms.pop(index, None)
        else:
            self.terms[index] = total

    def copy(self):
        lc = LinearCombination()
        lc.terms = dict(self.terms)
        return lc

    def __add__(self, other):
        if not isinstance(other, LinearCombination):
            other = LinearCombination.constant(other)
        result = self.copy()
        for index, coeff in other.terms.items():
            result.add_term(index, coeff)
        return result

    def __radd__(self, other):
        return self.__add__(other)

    def __neg__(self):
        return self * -1

    def __sub__(self, other):
        if not isinstance(other, LinearCombination):
            other = LinearCombination.constant(other)
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    def __mul__(self, scalar):
        scalar = _as_fr(scalar)
        if scalar == FR(0):
            return LinearCombination()
        lc = LinearCombination()
        lc.terms = {index: coeff * scalar for index, coeff in self.terms.items()}
        return lc

    def __rmul__(self, scalar):
        return self.__mul__(scalar)

    def is_constant(self):
        return all(index == ONE for index in self.terms)

    def constant_value(self):
        return self.terms.get(ONE, FR(0))

    def evaluate(self, assignment):
        total = FR(0)
        for index, coeff in self.terms.items():
            total = total + coeff * assignment[index]
        return total

    def __eq__(self, other):
        return isinstance(other, LinearCombination) and self.terms == other.terms

    def __repr__(self):
        inner = " + ".join(
            f"{int(c)}*w{i}" for i, c in sorted(self.terms.items())
        )
        return f"LinearCombination({inner or '0'})"


class R1CSConstraint:
    """<a, w> · <b, w> = <c, w>"""

    def __init__(self, a, b, c, annotation=""):
        self.a = a
        self.b = b
        self.c = c
        self.annotation = annotation

    def is_satisfied(self, assignment):
        return self.a.evaluate(assignment) * self.b.evaluate(assignment) == \
            self.c.evaluate(assignment)

    def __eq__(self, other):
        """annotation은 비교하지 않는다 (직렬화되지 않으므로)."""
        return isinstance(other, R1CSConstraint) and \
            (self.a, self.b, self.c) == (other.a, other.b, other.c)


class ConstraintSystem:
    """제약 리스트 + 공개/비공개 변수 개수.

    속성:
        primary_input_size: 공개 입력 수 l (w[1..l])
        auxiliary_input_size: 비공개 입력 수 m (w[l+1..l+m])
        constraints: R1CSConstraint 리스트
    """

    def __init__(self, primary_input_size=0, auxiliary_input_size=0):
        self.primary_input_size = primary_input_size
        self.auxiliary_input_size = auxiliary_input_size
        self.constraints = []

    @property
    def num_variables(self):
        """상수 배선을 포함한 전체 변수 수."""
        return 1 + self.primary_input_size + self.auxiliary_input_size

    @property
    def num_constraints(self):
        return len(self.constraints)

    def add(self, constraint):
        self.constraints.append(constraint)

    def __eq__(self, other):
        """같은 변수 배치와 같은 제약 (순서 포함)."""
        return isinstance(other, ConstraintSystem) and \
            self.primary_input_size == other.primary_input_size and \
            self.auxiliary_input_size == other.auxiliary_input_size and \
            self.constraints == other.constraints

    def full_assignment(self, primary_input, auxiliary_input):
        if len(primary_input) != self.primary_input_size:
            raise ValueError(
                f"expected {self.primary_input_size} primary inputs, "
                f"got {len(primary_input)}"
            )
        if len(auxiliary_input) != self.auxiliary_input_size:
            raise ValueError(
                f"expected {self.auxiliary_input_size} auxiliary inputs, "
                f"got {len(auxiliary_input)}"
            )
        return [FR(1)] + [_as_fr(v) for v in primary_input] + \
            [_as_fr(v) for v in auxiliary_input]

    def first_unsatisfied(self, primary_input, auxiliary_input):
        """만족되지 않는 첫 제약의 인덱스. 모두 만족하면 None."""
        assignment = self.full_assignment(primary_input, auxiliary_input)
        for index, constraint in enumerate(self.constraints):
            if not constraint.is_satisfied(assignment):
                return index
        return None

    def is_satisfied(self, primary_input, auxiliary_input):
        return self.first_unsatisfied(primary_input, auxiliary_input) is None
