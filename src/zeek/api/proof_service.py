"""
Proof Service Module

This module provides a service layer that fetches storage proofs and batch
roots through the RPC client and checks them with the functions of main.py.
"""

import logging
from typing import Any, Dict, List, Optional

from ..main import ProofVerification, verify_proof_detailed, verify_storage_proofs
from ..merkle.encoding import normalize_hex
from ..models.api_models import ProofEntry, StorageProof, StorageProofsResponse
from .rpc_client import ZkSyncRPCClient, ZkSyncRPCError

logger = logging.getLogger(__name__)


class ProofServiceError(Exception):
    """Custom exception for proof service operations."""
    pass


class ProofService:
    """Service for fetching and verifying storage proofs."""

    def __init__(self, rpc_client: Optional[ZkSyncRPCClient] = None):
        """
        Initialize the proof service.

        Args:
            rpc_client: ZkSyncRPCClient instance. If None, a new client will
                        only be created when necessary for RPC calls.
        """
        self.rpc_client = rpc_client

    def _client(self) -> ZkSyncRPCClient:
        if not self.rpc_client:
            self.rpc_client = ZkSyncRPCClient()
        return self.rpc_client

    def get_batch_root(self, batch: int) -> str:
        """
        Look up the storage tree root hash of an L1 batch.

        Raises:
            ProofServiceError: If the node has no root hash for the batch yet
        """
        details = self._client().get_l1_batch_details(batch)
        if not details.root_hash:
            raise ProofServiceError(f"L1 batch {batch} has no root hash yet (status: {details.status})")
        return details.root_hash

    def get_proofs(
        self,
        address: str,
        keys: List[str],
        batch: int,
        verify: bool = False,
    ) -> Dict[str, Any]:
        """
        Fetch storage proofs and optionally verify them against the batch root.

        Args:
            address: Account address
            keys: Storage slot keys
            batch: L1 batch number
            verify: Whether to check each proof

        Returns:
            Dictionary in the StorageProofsResponse layout

        Raises:
            ZkSyncRPCError: If an RPC call fails
            ProofServiceError: If the batch root is unavailable
        """
        proof_result = self._client().get_proof(address, keys, batch)

        root_hash = None
        verifications: List[Optional[ProofVerification]] = [None] * len(proof_result.storage_proof)
        if verify:
            root_hash = self.get_batch_root(batch)
            verifications = verify_storage_proofs(proof_result, root_hash)

        entries = []
        for storage_proof, verification in zip(proof_result.storage_proof, verifications):
            entries.append(
                ProofEntry(
                    key=storage_proof.key,
                    value=storage_proof.value,
                    index=storage_proof.index,
                    proof=storage_proof.proof,
                    verified=verification.is_valid if verification and not verification.error else None,
                    error=verification.error if verification else None,
                )
            )

        response = StorageProofsResponse(
            address=proof_result.address,
            batch=batch,
            root_hash=root_hash,
            proofs=entries,
        )
        return response.model_dump()

    def verify_submitted_proof(
        self, proof: StorageProof, expected_root: str, address: str
    ) -> Dict[str, Any]:
        """
        Verify a proof supplied by the caller, without any RPC call.

        Raises:
            HexDecodeError: If any hex input is malformed
        """
        report = verify_proof_detailed(proof, expected_root, address, proof.key)
        logger.info(f"Submitted proof for key {proof.key} verified: {report.is_valid}")
        details = report.to_dict()
        return {
            "address": normalize_hex(address),
            "key": proof.key,
            "value": proof.value,
            "index": proof.index,
            "is_valid": report.is_valid,
            "expected_root": details["expected_root"],
            "reconstructed_root": details["reconstructed_root"],
            "leaf_hash": details["leaf_hash"],
            "tree_key": details["tree_key"],
            "depth": details["depth"],
        }


__all__ = ["ProofService", "ProofServiceError", "ZkSyncRPCError"]
