from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import click
import typer

from zkmerkle.config import MerkleConfig
from zkmerkle.errors import MerkleProofError, UsageError
from zkmerkle.groth16.backend import Groth16Backend, init_backend
from zkmerkle.workflow import INCLUSION_CAVEAT, run_prove, run_setup, run_verify


app = typer.Typer(
    help="Zero-knowledge Merkle tree membership proofs (Groth16 over bn128).",
    add_completion=False,
)


@dataclass
class CliState:
    config: MerkleConfig
    backend: Groth16Backend


def _fail(error: MerkleProofError) -> None:
    typer.echo(f"Error: {error}", err=True)
    if isinstance(error, UsageError):
        typer.echo("Usage: zkmerkle prove [leaf1] [leaf2] ... | setup | verify [leaf]", err=True)
    raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    workdir: Optional[Path] = typer.Option(
        None,
        "--workdir",
        "-w",
        help="Directory holding proving_key.raw, verification_key.raw, proof.raw and root.txt.",
    ),
    depth: Optional[int] = typer.Option(
        None, "--depth", "-d", help="Merkle tree depth; prove takes 2^depth leaves."
    ),
    hash_gadget: Optional[str] = typer.Option(
        None, "--hash-gadget", help="Two-to-one hash gadget used by the circuit."
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", help="Seed the backend RNG (reproducible, insecure keys)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress at DEBUG level."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors."),
) -> None:
    """Run `setup`, then `prove` with 2^depth leaves, then `verify`."""
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if ctx.invoked_subcommand is None:
        typer.echo("Invalid command. Use setup, prove, or verify.", err=True)
        typer.echo(ctx.get_usage(), err=True)
        raise typer.Exit(code=1)

    try:
        config = MerkleConfig.from_env(
            tree_depth=depth, hash_gadget=hash_gadget, work_dir=workdir, seed=seed
        )
    except MerkleProofError as e:
        _fail(e)
    ctx.obj = CliState(config=config, backend=init_backend(config.seed))


@app.command()
def setup(ctx: typer.Context) -> None:
    """Build the circuit and write proving_key.raw / verification_key.raw."""
    state: CliState = ctx.obj
    try:
        result = run_setup(state.config, state.backend)
    except MerkleProofError as e:
        _fail(e)
    typer.echo(f"Number of R1CS constraints: {result.num_constraints}")
    typer.echo(f"Wrote {result.proving_key_path} and {result.verification_key_path}")


@app.command()
def prove(
    ctx: typer.Context,
    leaves: Optional[List[str]] = typer.Argument(
        None, help="Exactly 2^depth leaf strings, in tree order."
    ),
) -> None:
    """Prove the Merkle root of the given leaves; writes proof.raw and root.txt."""
    state: CliState = ctx.obj
    try:
        result = run_prove(state.config, state.backend, leaves or [])
    except MerkleProofError as e:
        _fail(e)
    typer.echo("Proof and root generated.")
    typer.echo(f"Root: {result.root_hex}")


@app.command()
def verify(
    ctx: typer.Context,
    leaf: str = typer.Argument(..., help="Candidate leaf (logged only, see caveat)."),
) -> None:
    """Check proof.raw against verification_key.raw and root.txt."""
    state: CliState = ctx.obj
    try:
        result = run_verify(state.config, state.backend, leaf)
    except MerkleProofError as e:
        _fail(e)
    if result.verified:
        typer.echo("Verification passed. The leaf may be part of the Merkle tree.")
        typer.echo(INCLUSION_CAVEAT)
    else:
        typer.echo("Verification failed!")


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        result = app(args=argv, prog_name="zkmerkle", standalone_mode=False)
    except click.UsageError as e:
        e.show()
        return 1
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    raise SystemExit(main())
