"""
ZKsync RPC Integration Package

This package provides the ZKsync node integration used to fetch storage proofs
and batch roots. It includes:

- ZkSyncRPCClient: JSON-RPC client for a ZKsync node
- ProofService: fetches proofs and verifies them against the batch root

Usage:
    from zeek.api import ZkSyncRPCClient

    client = ZkSyncRPCClient()
    details = client.get_l1_batch_details(500000)
"""

from .rpc_client import ZkSyncRPCClient, ZkSyncRPCError
from .proof_service import ProofService, ProofServiceError

__all__ = [
    'ZkSyncRPCClient',
    'ZkSyncRPCError',
    'ProofService',
    'ProofServiceError',
]
