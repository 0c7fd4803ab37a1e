"""
setup / prove / verify workflow.

The three phases share nothing in memory. They communicate only through the
artifacts in the work directory:

    setup   → proving_key.raw, verification_key.raw
    prove   → proof.raw, root.txt          (reads proving_key.raw)
    verify  → pass / fail                  (reads verification_key.raw, proof.raw, root.txt)

setup and prove rebuild the same circuit from the configured depth and hash
gadget. verify never builds a circuit.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from zkmerkle.config import MerkleConfig
from zkmerkle.errors import (
    ArtifactIOError,
    BackendFailure,
    ConstraintViolation,
    UsageError,
)
from zkmerkle.gadgets.protoboard import Protoboard
from zkmerkle.gadgets.sha256 import Sha256TwoToOneHashGadget
from zkmerkle.groth16.field import FR
from zkmerkle.groth16.serializers import SerializationError
from zkmerkle.merkle.circuit import MerkleTreeCircuit
from zkmerkle.merkle.leaves import hash_leaf, hex_to_bits


logger = logging.getLogger(__name__)

HASH_GADGETS = {
    "sha256": Sha256TwoToOneHashGadget,
}

INCLUSION_CAVEAT = (
    "Note: the leaf argument is not checked against the proof. Leaves are private "
    "inputs, so a passing result only shows the proof is valid for the committed root."
)


@dataclass
class SetupResult:
    num_constraints: int
    num_variables: int
    proving_key_path: Path
    verification_key_path: Path


@dataclass
class ProveResult:
    root_hex: str
    proof_path: Path
    root_path: Path


@dataclass
class VerifyResult:
    verified: bool
    root_hex: str
    leaf: Optional[str]


def get_hash_gadget(name: str):
    try:
        return HASH_GADGETS[name]
    except KeyError:
        choices = ", ".join(sorted(HASH_GADGETS))
        raise UsageError(f"unknown hash gadget {name!r} (choose from: {choices})") from None


def build_circuit(config: MerkleConfig) -> Tuple[Protoboard, MerkleTreeCircuit]:
    """Fresh protoboard + circuit with constraints emitted."""
    pb = Protoboard()
    circuit = MerkleTreeCircuit(pb, config.tree_depth, get_hash_gadget(config.hash_gadget))
    circuit.generate_constraints()
    logger.info(
        "Built depth-%d %s Merkle circuit: %d constraints, %d variables",
        config.tree_depth, config.hash_gadget, pb.num_constraints, pb.num_variables,
    )
    return pb, circuit


# ─── artifacts ───

def _read_artifact(path: Path, loader=None):
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise ArtifactIOError(path, "file not found") from None
    except OSError as e:
        raise ArtifactIOError(path, e.strerror or str(e)) from e
    if loader is None:
        return data
    try:
        return loader(data)
    except SerializationError as e:
        raise ArtifactIOError(path, str(e)) from e


def _restore(replaced):
    for target, backup in reversed(replaced):
        if backup is not None:
            os.replace(backup, target)
        else:
            target.unlink(missing_ok=True)


def _write_atomic(files: List[Tuple[Path, bytes]]) -> None:
    """Write every file to a temporary sibling, then rename them into place.

    Existing files are moved to `.bak` siblings first. If any write or rename
    fails, the temporaries are removed and every target is restored.
    """
    pending = []
    replaced = []
    current = None
    try:
        for current, data in files:
            current.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=current.parent, prefix=f".{current.name}.", suffix=".tmp")
            pending.append((Path(tmp), current))
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
        for tmp, current in pending:
            backup = None
            if current.exists():
                backup = current.with_name(f".{current.name}.bak")
                os.replace(current, backup)
            replaced.append((current, backup))
            os.replace(tmp, current)
    except OSError as e:
        for tmp, _ in pending:
            tmp.unlink(missing_ok=True)
        _restore(replaced)
        raise ArtifactIOError(current, e.strerror or str(e)) from e
    for target, backup in replaced:
        if backup is not None:
            backup.unlink()
        logger.debug("Wrote %s (%d bytes)", target, target.stat().st_size)


# ─── phases ───

def run_setup(config: MerkleConfig, backend) -> SetupResult:
    pb, _ = build_circuit(config)
    cs = pb.constraint_system()

    try:
        pk, vk = backend.generate(cs)
        pk_bytes = backend.dump_proving_key(pk)
        vk_bytes = backend.dump_verification_key(vk)
    except Exception as e:
        raise BackendFailure(f"key generation failed: {e}") from e

    _write_atomic([
        (config.proving_key_path, pk_bytes),
        (config.verification_key_path, vk_bytes),
    ])
    logger.info("Wrote %s and %s", config.proving_key_path, config.verification_key_path)
    return SetupResult(
        num_constraints=cs.num_constraints,
        num_variables=cs.num_variables,
        proving_key_path=config.proving_key_path,
        verification_key_path=config.verification_key_path,
    )


def run_prove(config: MerkleConfig, backend, leaves: Iterable) -> ProveResult:
    leaves = list(leaves)
    if len(leaves) != config.num_leaves:
        raise UsageError(
            f"prove needs exactly {config.num_leaves} leaves for depth {config.tree_depth}, "
            f"got {len(leaves)}"
        )

    gadget = get_hash_gadget(config.hash_gadget)
    pk = _read_artifact(config.proving_key_path, backend.load_proving_key)

    leaf_digests = [hash_leaf(leaf, gadget.digest_size) for leaf in leaves]
    pb, circuit = build_circuit(config)

    if pk.constraint_system != pb.constraint_system():
        raise ArtifactIOError(
            config.proving_key_path,
            "proving key was generated for a different circuit (check depth and hash gadget)",
        )

    circuit.generate_witness(leaf_digests)
    failing = pb.first_unsatisfied()
    if failing is not None:
        raise ConstraintViolation(failing)
    logger.debug("Witness satisfies all %d constraints", pb.num_constraints)

    try:
        proof = backend.prove(pk, pb.primary_input(), pb.auxiliary_input())
        proof_bytes = backend.dump_proof(proof)
    except Exception as e:
        raise BackendFailure(f"proof generation failed: {e}") from e

    root_hex = circuit.root_hex()
    _write_atomic([
        (config.proof_path, proof_bytes),
        (config.root_path, f"{root_hex}\n".encode("ascii")),
    ])
    logger.info("Proof and root generated: %s", root_hex)
    return ProveResult(root_hex=root_hex, proof_path=config.proof_path, root_path=config.root_path)


def run_verify(config: MerkleConfig, backend, leaf: Optional[str] = None) -> VerifyResult:
    vk = _read_artifact(config.verification_key_path, backend.load_verification_key)
    proof = _read_artifact(config.proof_path, backend.load_proof)
    raw_root = _read_artifact(config.root_path)

    try:
        root_hex = raw_root.decode("ascii").strip()
        bits = hex_to_bits(root_hex, vk.num_public_inputs)
    except (UnicodeDecodeError, ValueError) as e:
        raise ArtifactIOError(config.root_path, str(e)) from e

    if leaf is not None:
        logger.info("Candidate leaf %r is not checked against the proof", leaf)

    try:
        verified = backend.verify(vk, [FR(bit) for bit in bits], proof)
    except Exception as e:
        raise BackendFailure(f"verification failed to run: {e}") from e

    logger.info("Verification %s for root %s", "passed" if verified else "failed", root_hex)
    return VerifyResult(verified=verified, root_hex=root_hex, leaf=leaf)
