from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from zkmerkle.errors import UsageError


@dataclass
class MerkleConfig:
    tree_depth: int = 3
    hash_gadget: str = "sha256"
    work_dir: Path = Path(".")
    proving_key_file: str = "proving_key.raw"
    verification_key_file: str = "verification_key.raw"
    proof_file: str = "proof.raw"
    root_file: str = "root.txt"
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        self.work_dir = Path(self.work_dir)
        if self.tree_depth < 1:
            raise UsageError(f"tree depth must be at least 1, got {self.tree_depth}")

    @property
    def num_leaves(self) -> int:
        return 1 << self.tree_depth

    @property
    def proving_key_path(self) -> Path:
        return self.work_dir / self.proving_key_file

    @property
    def verification_key_path(self) -> Path:
        return self.work_dir / self.verification_key_file

    @property
    def proof_path(self) -> Path:
        return self.work_dir / self.proof_file

    @property
    def root_path(self) -> Path:
        return self.work_dir / self.root_file

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "MerkleConfig":
        """Build a config from ZKMERKLE_* variables; keyword overrides win when not None."""
        env = os.environ if environ is None else environ
        values = {}

        def _int(name: str) -> Optional[int]:
            raw = env.get(name)
            if raw is None or raw == "":
                return None
            try:
                return int(raw)
            except ValueError:
                raise UsageError(f"{name} must be an integer, got {raw!r}") from None

        depth = _int("ZKMERKLE_TREE_DEPTH")
        if depth is not None:
            values["tree_depth"] = depth
        if env.get("ZKMERKLE_HASH_GADGET"):
            values["hash_gadget"] = env["ZKMERKLE_HASH_GADGET"]
        if env.get("ZKMERKLE_WORKDIR"):
            values["work_dir"] = Path(env["ZKMERKLE_WORKDIR"])
        seed = _int("ZKMERKLE_SEED")
        if seed is not None:
            values["seed"] = seed

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
