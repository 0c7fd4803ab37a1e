"""
Merkle 트리 회로
================

깊이 D의 완전 이진 트리: 2^D개의 리프 다이제스트, 2^D - 1개의 해시 가젯.

    root_public (공개 입력) == root
                               │
                        H(node_0, node_1)
                         /            \\
                  H(leaf_0, leaf_1)  H(leaf_2, leaf_3)   ...

변수 할당 순서 (결정적):
  1. root_digest_bits: 공개 입력 (protoboard의 처음 digest_size개 변수)
  2. leaf_0 .. leaf_{2^D - 1}
  3. root_digest: 트리가 계산한 루트
  4. 레벨별로 왼쪽부터: 중간 다이제스트, 그 가젯의 내부 변수

노드는 참조 대신 정수 id로 서로를 가리킨다:
  - digests[id]: DigestVariable
  - nodes[id]: TreeNode(kind, digest_id, left, right), left/right는 자식 노드 id
  - bindings: HashGadgetBinding(left, right, output, gadget), 다이제스트 id
"""

import logging
from collections import namedtuple

from zkmerkle.groth16.r1cs import LinearCombination
from zkmerkle.gadgets.digest import DigestVariable
from zkmerkle.gadgets.sha256 import Sha256TwoToOneHashGadget
from zkmerkle.merkle.leaves import bits_to_hex


logger = logging.getLogger(__name__)

LEAF = "leaf"
INTERMEDIATE = "intermediate"
ROOT = "root"

TreeNode = namedtuple("TreeNode", ["kind", "digest_id", "left", "right"])


class HashGadgetBinding:
    """digests[output] = H(digests[left], digests[right])"""

    def __init__(self, left, right, output, gadget):
        self.left = left
        self.right = right
        self.output = output
        self.gadget = gadget

    def emit_constraints(self):
        self.gadget.generate_r1cs_constraints()

    def compute_and_assign(self):
        self.gadget.generate_r1cs_witness()


class MerkleTreeCircuit:
    def __init__(self, pb, tree_depth, hash_gadget=Sha256TwoToOneHashGadget):
        if tree_depth < 1:
            raise ValueError(f"tree depth must be at least 1, got {tree_depth}")

        self.pb = pb
        self.tree_depth = tree_depth
        self.hash_gadget = hash_gadget
        self.digest_size = hash_gadget.digest_size
        self.digests = []
        self.nodes = []
        self.bindings = []
        self._constraints_generated = False

        self.root_public_id = self._new_digest("root_digest_bits")
        pb.set_input_sizes(self.digest_size)

        level = [
            self._new_node(LEAF, self._new_digest(f"leaf_{i}"))
            for i in range(self.num_leaves)
        ]
        self.leaf_nodes = list(level)
        root_digest_id = self._new_digest("root_digest")

        height = tree_depth - 1
        while len(level) > 1:
            parents = []
            for i in range(0, len(level), 2):
                left, right = level[i], level[i + 1]
                if len(level) == 2:
                    kind, digest_id = ROOT, root_digest_id
                else:
                    kind = INTERMEDIATE
                    digest_id = self._new_digest(f"intermediate_{height}_{i // 2}")
                parents.append(self._bind(kind, digest_id, left, right))
            level = parents
            height -= 1

        self.root_node = level[0]
        self.root_digest_id = root_digest_id
        logger.debug(
            "Merkle circuit depth %d: %d digests, %d gadgets, %d variables",
            tree_depth, len(self.digests), len(self.bindings), pb.num_variables,
        )

    @property
    def num_leaves(self):
        return 1 << self.tree_depth

    @property
    def root_public(self):
        return self.digests[self.root_public_id]

    @property
    def root_digest(self):
        return self.digests[self.root_digest_id]

    def leaf_digests(self):
        return [self.digests[self.nodes[n].digest_id] for n in self.leaf_nodes]

    def _new_digest(self, annotation):
        self.digests.append(DigestVariable(self.pb, self.digest_size, annotation))
        return len(self.digests) - 1

    def _new_node(self, kind, digest_id, left=None, right=None):
        self.nodes.append(TreeNode(kind, digest_id, left, right))
        return len(self.nodes) - 1

    def _bind(self, kind, digest_id, left, right):
        left_digest = self.nodes[left].digest_id
        right_digest = self.nodes[right].digest_id
        gadget = self.hash_gadget(
            self.pb,
            self.digests[left_digest],
            self.digests[right_digest],
            self.digests[digest_id],
            annotation=f"hash_{self.digests[digest_id].annotation}",
        )
        self.bindings.append(HashGadgetBinding(left_digest, right_digest, digest_id, gadget))
        return self._new_node(kind, digest_id, left, right)

    # ─── 제약 ───

    def generate_constraints(self):
        """루트 동등성 (비트별) → 리프 불리언성 → 각 가젯 제약."""
        if self._constraints_generated:
            raise RuntimeError("constraints were already generated for this circuit")
        self._constraints_generated = True

        one = LinearCombination.constant(1)
        zero = LinearCombination()
        public_bits = self.root_public.bit_lcs()
        root_bits = self.root_digest.bit_lcs()
        for i, (pub, root) in enumerate(zip(public_bits, root_bits)):
            self.pb.add_r1cs_constraint(pub - root, one, zero, f"root_digest_bits[{i}] == root_digest[{i}]")

        for digest in self.leaf_digests():
            digest.generate_r1cs_constraints()

        for binding in self.bindings:
            binding.emit_constraints()

    # ─── 위트니스 ───

    def generate_witness(self, leaf_digests):
        """리프 다이제스트를 할당하고 아래에서 위로 가젯을 계산한 뒤
        계산된 루트를 공개 입력에 복사한다.

        Args:
            leaf_digests: 2^D개의 비트 리스트 (각 digest_size 비트)
        """
        leaf_digests = list(leaf_digests)
        if len(leaf_digests) != self.num_leaves:
            raise ValueError(
                f"expected {self.num_leaves} leaf digests, got {len(leaf_digests)}"
            )
        for i, bits in enumerate(leaf_digests):
            if len(bits) != self.digest_size:
                raise ValueError(
                    f"leaf {i}: expected {self.digest_size} bits, got {len(bits)}"
                )

        for digest, bits in zip(self.leaf_digests(), leaf_digests):
            digest.generate_assignments(bits)

        for binding in self.bindings:
            binding.compute_and_assign()

        self.root_public.generate_assignments(self.root_digest.get_digest())

    def root_bits(self):
        return self.root_public.get_digest()

    def root_hex(self):
        return bits_to_hex(self.root_bits())
