"""
Groth16 키/증명 바이너리 직렬화
=================================

proving_key.raw / verification_key.raw / proof.raw 의 형식.

  헤더: b"ZKMK" | kind (1바이트) | version (1바이트)
  정수: 4바이트 빅엔디안 (개수, 인덱스)
  FR / FQ: 32바이트 빅엔디안
  G1: flag(1) | x(32) | y(32)             flag 0 = 무한원점
  G2: flag(1) | x.c0 | x.c1 | y.c0 | y.c1

모든 점은 아핀 좌표로 정규화하여 쓰고, 읽을 때 곡선 위의 점인지 검사한다.
증명 키에는 증명자가 h(x)를 계산할 수 있도록 제약 시스템이 함께 들어간다.
"""

from py_ecc import optimized_bn128 as bn128

from zkmerkle.groth16.field import FR, CURVE_ORDER, Z1, Z2, is_inf
from zkmerkle.groth16.r1cs import ConstraintSystem, LinearCombination, R1CSConstraint
from zkmerkle.groth16.setup import ProvingKey, VerificationKey
from zkmerkle.groth16.proving import Proof


MAGIC = b"ZKMK"
FORMAT_VERSION = 1

KIND_PROVING_KEY = 1
KIND_VERIFICATION_KEY = 2
KIND_PROOF = 3

_KIND_NAMES = {
    KIND_PROVING_KEY: "proving key",
    KIND_VERIFICATION_KEY: "verification key",
    KIND_PROOF: "proof",
}

_INF_FLAG = 0
_POINT_FLAG = 1


class SerializationError(ValueError):
    """잘린 데이터, 잘못된 헤더, 곡선 밖의 점 등."""


class ByteReader:
    def __init__(self, data):
        self.data = bytes(data)
        self.offset = 0

    def read(self, size):
        end = self.offset + size
        if end > len(self.data):
            raise SerializationError(
                f"unexpected end of data at offset {self.offset} (need {size} bytes)"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def read_int(self, size):
        return int.from_bytes(self.read(size), "big")

    def read_u32(self):
        return self.read_int(4)

    def expect_end(self):
        if self.offset != len(self.data):
            raise SerializationError(
                f"{len(self.data) - self.offset} trailing bytes after payload"
            )


def _u32(value):
    return value.to_bytes(4, "big")


def _int32(value):
    return int(value).to_bytes(32, "big")


# ─── 헤더 ───

def write_header(kind):
    return MAGIC + bytes([kind, FORMAT_VERSION])


def read_header(reader, kind):
    if reader.read(len(MAGIC)) != MAGIC:
        raise SerializationError("bad magic, not a zkmerkle artifact")
    found_kind, version = reader.read(2)
    if found_kind != kind:
        raise SerializationError(
            f"expected a {_KIND_NAMES[kind]}, "
            f"found {_KIND_NAMES.get(found_kind, f'kind {found_kind}')}"
        )
    if version != FORMAT_VERSION:
        raise SerializationError(f"unsupported format version {version}")


# ─── FR ───

def serialize_fr(val):
    return _int32(int(val))


def deserialize_fr(reader):
    value = reader.read_int(32)
    if value >= CURVE_ORDER:
        raise SerializationError("scalar out of range")
    return FR(value)


# ─── G1 point ───

def serialize_g1(point):
    """G1 → 65바이트"""
    if is_inf(point):
        return bytes([_INF_FLAG]) + b"\x00" * 64
    x, y = bn128.normalize(point)
    return bytes([_POINT_FLAG]) + _int32(x) + _int32(y)


def deserialize_g1(reader):
    flag = reader.read(1)[0]
    x = reader.read_int(32)
    y = reader.read_int(32)
    if flag == _INF_FLAG:
        return Z1
    if flag != _POINT_FLAG:
        raise SerializationError(f"bad point flag {flag}")
    point = (bn128.FQ(x), bn128.FQ(y), bn128.FQ.one())
    if not bn128.is_on_curve(point, bn128.b):
        raise SerializationError("G1 point is not on the curve")
    return point


# ─── G2 point ───

def serialize_g2(point):
    """G2 → 129바이트"""
    if is_inf(point):
        return bytes([_INF_FLAG]) + b"\x00" * 128
    x, y = bn128.normalize(point)
    return (
        bytes([_POINT_FLAG])
        + _int32(x.coeffs[0]) + _int32(x.coeffs[1])
        + _int32(y.coeffs[0]) + _int32(y.coeffs[1])
    )


def deserialize_g2(reader, check_subgroup=False):
    flag = reader.read(1)[0]
    coords = [reader.read_int(32) for _ in range(4)]
    if flag == _INF_FLAG:
        return Z2
    if flag != _POINT_FLAG:
        raise SerializationError(f"bad point flag {flag}")
    point = (
        bn128.FQ2([coords[0], coords[1]]),
        bn128.FQ2([coords[2], coords[3]]),
        bn128.FQ2.one(),
    )
    if not bn128.is_on_curve(point, bn128.b2):
        raise SerializationError("G2 point is not on the twisted curve")
    if check_subgroup and not is_inf(bn128.multiply(point, CURVE_ORDER)):
        raise SerializationError("G2 point is not in the prime-order subgroup")
    return point


def serialize_g1_list(points):
    return _u32(len(points)) + b"".join(serialize_g1(p) for p in points)


def deserialize_g1_list(reader):
    return [deserialize_g1(reader) for _ in range(reader.read_u32())]


def serialize_g2_list(points):
    return _u32(len(points)) + b"".join(serialize_g2(p) for p in points)


def deserialize_g2_list(reader):
    return [deserialize_g2(reader) for _ in range(reader.read_u32())]


# ─── 제약 시스템 ───

def serialize_lc(lc):
    out = [_u32(len(lc.terms))]
    for index, coeff in sorted(lc.terms.items()):
        out.append(_u32(index))
        out.append(serialize_fr(coeff))
    return b"".join(out)


def deserialize_lc(reader, num_variables):
    lc = LinearCombination()
    for _ in range(reader.read_u32()):
        index = reader.read_u32()
        if index >= num_variables:
            raise SerializationError(f"variable index {index} out of range")
        lc.add_term(index, deserialize_fr(reader))
    return lc


def serialize_constraint_system(cs):
    out = [
        _u32(cs.primary_input_size),
        _u32(cs.auxiliary_input_size),
        _u32(cs.num_constraints),
    ]
    for constraint in cs.constraints:
        out.append(serialize_lc(constraint.a))
        out.append(serialize_lc(constraint.b))
        out.append(serialize_lc(constraint.c))
    return b"".join(out)


def deserialize_constraint_system(reader):
    cs = ConstraintSystem(reader.read_u32(), reader.read_u32())
    num_constraints = reader.read_u32()
    for _ in range(num_constraints):
        a = deserialize_lc(reader, cs.num_variables)
        b = deserialize_lc(reader, cs.num_variables)
        c = deserialize_lc(reader, cs.num_variables)
        cs.add(R1CSConstraint(a, b, c))
    return cs


# ─── 증명 키 ───

def serialize_proving_key(pk):
    return b"".join([
        write_header(KIND_PROVING_KEY),
        serialize_constraint_system(pk.constraint_system),
        _u32(pk.domain_size),
        serialize_g1(pk.alpha_g1),
        serialize_g1(pk.beta_g1),
        serialize_g2(pk.beta_g2),
        serialize_g1(pk.delta_g1),
        serialize_g2(pk.delta_g2),
        serialize_g1_list(pk.a_query),
        serialize_g1_list(pk.b_g1_query),
        serialize_g2_list(pk.b_g2_query),
        serialize_g1_list(pk.h_query),
        serialize_g1_list(pk.l_query),
    ])


def deserialize_proving_key(data):
    reader = ByteReader(data)
    read_header(reader, KIND_PROVING_KEY)
    cs = deserialize_constraint_system(reader)
    domain_size = reader.read_u32()
    if domain_size < cs.num_constraints or domain_size & (domain_size - 1):
        raise SerializationError(f"bad evaluation domain size {domain_size}")
    pk = ProvingKey(
        constraint_system=cs,
        domain_size=domain_size,
        alpha_g1=deserialize_g1(reader),
        beta_g1=deserialize_g1(reader),
        beta_g2=deserialize_g2(reader),
        delta_g1=deserialize_g1(reader),
        delta_g2=deserialize_g2(reader),
        a_query=deserialize_g1_list(reader),
        b_g1_query=deserialize_g1_list(reader),
        b_g2_query=deserialize_g2_list(reader),
        h_query=deserialize_g1_list(reader),
        l_query=deserialize_g1_list(reader),
    )
    reader.expect_end()

    num_private = cs.auxiliary_input_size
    expected = {
        "a_query": (len(pk.a_query), cs.num_variables),
        "b_g1_query": (len(pk.b_g1_query), cs.num_variables),
        "b_g2_query": (len(pk.b_g2_query), cs.num_variables),
        "h_query": (len(pk.h_query), domain_size - 1),
        "l_query": (len(pk.l_query), num_private),
    }
    for name, (found, want) in expected.items():
        if found != want:
            raise SerializationError(f"{name} has {found} entries, expected {want}")
    return pk


# ─── 검증 키 ───

def serialize_verification_key(vk):
    return b"".join([
        write_header(KIND_VERIFICATION_KEY),
        serialize_g1(vk.alpha_g1),
        serialize_g2(vk.beta_g2),
        serialize_g2(vk.gamma_g2),
        serialize_g2(vk.delta_g2),
        serialize_g1_list(vk.ic),
    ])


def deserialize_verification_key(data):
    reader = ByteReader(data)
    read_header(reader, KIND_VERIFICATION_KEY)
    vk = VerificationKey(
        alpha_g1=deserialize_g1(reader),
        beta_g2=deserialize_g2(reader),
        gamma_g2=deserialize_g2(reader),
        delta_g2=deserialize_g2(reader),
        ic=deserialize_g1_list(reader),
    )
    reader.expect_end()
    if not vk.ic:
        raise SerializationError("verification key has no IC entries")
    return vk


# ─── 증명 ───

def serialize_proof(proof):
    return b"".join([
        write_header(KIND_PROOF),
        serialize_g1(proof.a),
        serialize_g2(proof.b),
        serialize_g1(proof.c),
    ])


def deserialize_proof(data):
    reader = ByteReader(data)
    read_header(reader, KIND_PROOF)
    proof = Proof(
        a=deserialize_g1(reader),
        b=deserialize_g2(reader, check_subgroup=True),
        c=deserialize_g1(reader),
    )
    reader.expect_end()
    return proof
