"""
Zeek - Storage proof verification

This module contains the functions used by both the CLI and API interfaces to
check a ZKsync storage proof against the root hash of its L1 batch.

A proof is checked by deriving the slot's tree key, hashing the leaf, and
folding the leaf with the supplied sibling hashes along the key's path bits.
The proof is valid when the folded root equals the expected root.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .constants import MAX_TREE_DEPTH
from .merkle import (
    Bytes32,
    HexDecodeError,
    bytes_to_hex,
    compute_leaf_hash,
    compute_tree_key,
    compute_root_from_proof,
    get_key_bits,
)
from .merkle.core import is_valid_depth
from .models.api_models import ProofResult, StorageProof

logger = logging.getLogger(__name__)


class ProofFormatError(ValueError):
    """Raised when a proof is structurally impossible (e.g. deeper than the tree)."""
    pass


@dataclass(frozen=True)
class FoldStep:
    """One level of the root fold."""
    depth: int
    bit: bool
    sibling: bytes
    combined: bytes

    @property
    def position(self) -> str:
        return "right" if self.bit else "left"


@dataclass(frozen=True)
class VerificationReport:
    """Container for everything computed while checking one proof."""
    is_valid: bool
    tree_key: bytes
    key_bits: List[bool]
    leaf_hash: bytes
    steps: List[FoldStep]
    reconstructed_root: bytes
    expected_root: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "tree_key": bytes_to_hex(self.tree_key),
            "leaf_hash": bytes_to_hex(self.leaf_hash),
            "reconstructed_root": bytes_to_hex(self.reconstructed_root),
            "expected_root": bytes_to_hex(self.expected_root),
            "depth": len(self.steps),
            "steps": [
                {
                    "depth": step.depth,
                    "bit": int(step.bit),
                    "position": step.position,
                    "sibling": bytes_to_hex(step.sibling),
                    "combined": bytes_to_hex(step.combined),
                }
                for step in self.steps
            ],
        }


@dataclass
class ProofVerification:
    """Outcome for one proof of a batch response."""
    proof: StorageProof
    report: Optional[VerificationReport] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.report is not None and self.report.is_valid


def format_key_bits(key_bits: List[bool]) -> str:
    """Render path bits as 0/1 characters grouped per byte."""
    chars = ["1" if bit else "0" for bit in key_bits]
    return " ".join("".join(chars[i:i + 8]) for i in range(0, len(chars), 8))


def verify_proof_detailed(
    proof: StorageProof,
    expected_root: str,
    address: str,
    storage_key: Optional[str] = None,
) -> VerificationReport:
    """
    Check a storage proof and return every intermediate value.

    Args:
        proof: Storage proof as returned by zks_getProof
        expected_root: Root hash of the batch (hex, either case, optional 0x)
        address: Account address the proof belongs to
        storage_key: Slot key; defaults to ``proof.key``

    Returns:
        VerificationReport whose ``is_valid`` tells whether the roots match

    Raises:
        HexDecodeError: If any hex input is malformed or has the wrong length
        ProofFormatError: If the proof has more siblings than the tree has levels
    """
    if storage_key is None:
        storage_key = proof.key

    if not is_valid_depth(proof.proof):
        raise ProofFormatError(
            f"Proof has {len(proof.proof)} siblings, tree depth is {MAX_TREE_DEPTH}"
        )

    expected = Bytes32.from_hex(expected_root)
    siblings = [Bytes32.from_hex(sibling) for sibling in proof.proof]

    leaf_hash = compute_leaf_hash(proof.index, proof.value)

    tree_key = compute_tree_key(address, storage_key)
    key_bits = get_key_bits(tree_key)
    logger.debug(f"Key bits: {format_key_bits(key_bits)}")

    steps: List[FoldStep] = []

    def record_step(depth: int, bit: bool, sibling: bytes, combined: bytes) -> None:
        step = FoldStep(depth, bit, sibling, combined)
        steps.append(step)
        logger.debug(
            f"Level {depth}: bit={int(bit)} sibling={bytes_to_hex(sibling)} "
            f"position={step.position} combined={bytes_to_hex(combined)}"
        )

    current = compute_root_from_proof(leaf_hash, key_bits, siblings, on_step=record_step)

    is_valid = current == expected
    logger.debug(f"Reconstructed root: {bytes_to_hex(current)}")
    logger.debug(f"Expected root: {expected.to_hex()}")

    return VerificationReport(
        is_valid=is_valid,
        tree_key=tree_key,
        key_bits=key_bits,
        leaf_hash=leaf_hash,
        steps=steps,
        reconstructed_root=current,
        expected_root=bytes(expected),
    )


def verify_proof(
    proof: StorageProof,
    expected_root: str,
    address: str,
    storage_key: Optional[str] = None,
) -> bool:
    """
    Check a storage proof against the expected root hash.

    A root mismatch returns False; only malformed input raises.

    Raises:
        HexDecodeError: If any hex input is malformed or has the wrong length
        ProofFormatError: If the proof has more siblings than the tree has levels
    """
    return verify_proof_detailed(proof, expected_root, address, storage_key).is_valid


def verify_storage_proofs(
    proof_result: ProofResult, expected_root: str
) -> List[ProofVerification]:
    """
    Verify every proof of a zks_getProof response.

    Each proof is checked on its own; a proof that fails to decode is recorded
    with its error and does not stop the remaining proofs.
    """
    results: List[ProofVerification] = []
    for storage_proof in proof_result.storage_proof:
        try:
            report = verify_proof_detailed(
                storage_proof, expected_root, proof_result.address, storage_proof.key
            )
            results.append(ProofVerification(storage_proof, report=report))
            logger.info(f"Proof for key {storage_proof.key} verified: {report.is_valid}")
        except (HexDecodeError, ProofFormatError) as e:
            logger.error(f"Could not verify proof for key {storage_proof.key}: {e}")
            results.append(ProofVerification(storage_proof, error=str(e)))
    return results
