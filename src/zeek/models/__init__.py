"""
API Models Package

This package contains the Pydantic models used for JSON-RPC payloads from a
ZKsync node and for the REST API request and response bodies.

Usage:
    from zeek.models import StorageProof, ProofResult

    proof = StorageProof(key="0x...", value="0x...", index=7, proof=[])
"""

from .api_models import (
    CallRequest,
    ErrorResponse,
    FeeEstimate,
    FeeParams,
    FeeParamsV2,
    HealthResponse,
    L1BatchDetails,
    ProofEntry,
    ProofResult,
    StorageProof,
    StorageProofRequest,
    StorageProofsResponse,
    VerifyProofRequest,
    VerifyProofResponse,
)

__all__ = [
    'CallRequest',
    'ErrorResponse',
    'FeeEstimate',
    'FeeParams',
    'FeeParamsV2',
    'HealthResponse',
    'L1BatchDetails',
    'ProofEntry',
    'ProofResult',
    'StorageProof',
    'StorageProofRequest',
    'StorageProofsResponse',
    'VerifyProofRequest',
    'VerifyProofResponse',
]
