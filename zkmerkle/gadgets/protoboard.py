"""
Protoboard: 회로 변수 할당기 + 할당값 저장소
==============================================

가젯들은 protoboard 위에서 변수를 할당하고 제약을 추가한다.

  - 인덱스 0은 상수 1 배선 (ONE)
  - 변수는 할당 순서대로 1, 2, 3, ... 인덱스를 받는다
  - set_input_sizes(l): 처음 할당된 l개의 변수가 공개 입력이 된다

완성된 protoboard는 constraint_system()으로 백엔드가 쓰는
ConstraintSystem을, primary_input() / auxiliary_input()으로 증명자가 쓰는
할당 벡터를 내놓는다.
"""

from zkmerkle.groth16.field import FR
from zkmerkle.groth16.r1cs import ONE, ConstraintSystem, LinearCombination, R1CSConstraint


class Protoboard:
    def __init__(self):
        self.values = [FR(1)]
        self.annotations = ["ONE"]
        self.constraints = []
        self.primary_input_size = 0

    @property
    def num_variables(self):
        """상수 배선을 제외한 할당된 변수 수."""
        return len(self.values) - 1

    @property
    def num_constraints(self):
        return len(self.constraints)

    # ─── 변수 ───

    def allocate_variable(self, annotation=""):
        self.values.append(FR(0))
        self.annotations.append(annotation)
        return len(self.values) - 1

    def allocate_variables(self, count, annotation=""):
        return [
            self.allocate_variable(f"{annotation}_{i}") for i in range(count)
        ]

    def set_input_sizes(self, primary_input_size):
        if primary_input_size > self.num_variables:
            raise ValueError(
                f"cannot declare {primary_input_size} primary inputs, "
                f"only {self.num_variables} variables allocated"
            )
        self.primary_input_size = primary_input_size

    def val(self, index):
        return self.values[index]

    def set_val(self, index, value):
        if index == ONE:
            raise ValueError("the constant-one wire cannot be reassigned")
        self.values[index] = value if isinstance(value, FR) else FR(value)

    def lc_val(self, lc):
        return lc.evaluate(self.values)

    # ─── 제약 ───

    def add_r1cs_constraint(self, a, b, c, annotation=""):
        self.constraints.append(R1CSConstraint(a, b, c, annotation))

    def constraint_system(self):
        cs = ConstraintSystem(
            self.primary_input_size,
            self.num_variables - self.primary_input_size,
        )
        for constraint in self.constraints:
            cs.add(constraint)
        return cs

    def primary_input(self):
        return self.values[1:self.primary_input_size + 1]

    def auxiliary_input(self):
        return self.values[self.primary_input_size + 1:]

    def first_unsatisfied(self):
        """만족되지 않는 첫 제약의 설명 (annotation). 모두 만족하면 None."""
        cs = self.constraint_system()
        index = cs.first_unsatisfied(self.primary_input(), self.auxiliary_input())
        if index is None:
            return None
        return cs.constraints[index].annotation or f"constraint #{index}"

    def is_satisfied(self):
        return self.first_unsatisfied() is None


def boolean_constraint(pb, lc, annotation=""):
    """x · (1 - x) = 0"""
    pb.add_r1cs_constraint(
        lc,
        LinearCombination.constant(1) - lc,
        LinearCombination(),
        annotation,
    )
