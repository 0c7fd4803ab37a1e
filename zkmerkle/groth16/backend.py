"""
Groth16 백엔드 컨텍스트
=======================

키 생성 / 증명 / 검증을 하나의 객체로 묶는다. 프로세스 시작 시
init_backend()로 한 번 만들고, 워크플로우의 각 단계에 명시적으로 넘긴다.

백엔드가 갖는 상태:
  - 난수원: secrets.SystemRandom, 또는 재현 가능한 실행을 위한 시드 고정 Random
  - 고정 기저 테이블 캐시: 같은 프로세스에서 키를 여러 번 만들 때 재사용

사용 예시:
    >>> backend = init_backend()
    >>> pk, vk = backend.generate(cs)
    >>> proof = backend.prove(pk, primary, auxiliary)
    >>> backend.verify(vk, primary, proof)
    True
"""

import logging
import random
import secrets
import time

from zkmerkle.groth16.field import FR, CURVE_ORDER
from zkmerkle.groth16 import serializers
from zkmerkle.groth16.proving import prove
from zkmerkle.groth16.setup import generate_keypair
from zkmerkle.groth16.verifying import verify


logger = logging.getLogger(__name__)


class Groth16Backend:
    def __init__(self, rng):
        self.rng = rng
        self.tables = {}

    def random_scalar(self):
        """[1, r) 범위의 FR 난수."""
        return FR(self.rng.randrange(1, CURVE_ORDER))

    def generate(self, cs):
        logger.info(
            "Generating keypair: %d constraints, %d variables (%d public)",
            cs.num_constraints, cs.num_variables, cs.primary_input_size,
        )
        start = time.perf_counter()
        pk, vk = generate_keypair(cs, self.random_scalar, tables=self.tables)
        logger.info(
            "Keypair generated in %.2fs (domain size %d)",
            time.perf_counter() - start, pk.domain_size,
        )
        return pk, vk

    def prove(self, pk, primary_input, auxiliary_input):
        start = time.perf_counter()
        proof = prove(pk, primary_input, auxiliary_input, self.random_scalar)
        logger.info("Proof generated in %.2fs", time.perf_counter() - start)
        return proof

    def verify(self, vk, primary_input, proof):
        start = time.perf_counter()
        result = verify(vk, primary_input, proof)
        logger.debug(
            "Pairing check finished in %.2fs: %s",
            time.perf_counter() - start, result,
        )
        return result

    # ─── 네이티브 직렬화 ───

    dump_proving_key = staticmethod(serializers.serialize_proving_key)
    load_proving_key = staticmethod(serializers.deserialize_proving_key)
    dump_verification_key = staticmethod(serializers.serialize_verification_key)
    load_verification_key = staticmethod(serializers.deserialize_verification_key)
    dump_proof = staticmethod(serializers.serialize_proof)
    load_proof = staticmethod(serializers.deserialize_proof)


def init_backend(seed=None):
    """백엔드 컨텍스트를 만든다.

    Args:
        seed: None이면 OS 난수원. 정수를 주면 결정적 난수 (테스트/재현용,
            toxic waste가 예측 가능하므로 실제 배포에는 사용하지 않는다)
    """
    if seed is None:
        rng = secrets.SystemRandom()
    else:
        logger.warning("Using a seeded RNG; keys and proofs are reproducible")
        rng = random.Random(seed)
    return Groth16Backend(rng)
