"""
Exception hierarchy for the Merkle membership workflow.

Every failure a command can report derives from MerkleProofError. A verifier
returning False is not an error and never raises.
"""


class MerkleProofError(Exception):
    """Base exception for all zkmerkle errors."""
    pass


class UsageError(MerkleProofError):
    """
    Raised for a wrong argument count or shape, or a bad configuration value.

    Raised before any file is read or written.
    """
    pass


class ArtifactIOError(MerkleProofError):
    """
    Raised when a key, proof or root file is missing, unreadable or malformed.
    """
    def __init__(self, path, reason):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ConstraintViolation(MerkleProofError):
    """
    Raised when the witness does not satisfy the constraint system.

    This indicates a circuit or witness bug, not bad user input. The prover
    is never called in this case.
    """
    def __init__(self, annotation):
        super().__init__(f"Constraints not satisfied! First failing constraint: {annotation}")
        self.annotation = annotation


class BackendFailure(MerkleProofError):
    """
    Raised when key generation, proving or verification itself fails.

    Not retried.
    """
    pass
