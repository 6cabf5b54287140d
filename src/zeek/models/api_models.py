"""
API Models

This module defines Pydantic models for the data exchanged with a ZKsync node
over JSON-RPC and for the request and response bodies of the REST API.

RPC payloads are sanitized to snake_case before validation (see
ZkSyncRPCClient.sanitize_rpc_data), so every field here is snake_case.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import MAX_UINT64
from ..merkle.encoding import Address, Bytes32, HexDecodeError, hex_to_bytes


def _check_hex(value: str, length: Optional[int] = None) -> str:
    try:
        hex_to_bytes(value, expected_bytes=length)
    except HexDecodeError as e:
        raise ValueError(str(e)) from e
    return value


# ---------------------------------------------------------------------------
# JSON-RPC payloads
# ---------------------------------------------------------------------------


class RpcErrorObject(BaseModel):
    """The ``error`` member of a failed JSON-RPC response."""
    code: int
    message: str
    data: Optional[Any] = None


class StorageProof(BaseModel):
    """
    Proof for a single storage slot, as returned by ``zks_getProof``.

    Attributes:
        key: Storage slot key (hex)
        value: Stored value (hex)
        index: Leaf index of the slot in the tree
        proof: Sibling hashes (hex), root-to-leaf as supplied by the node
    """
    key: str = Field(..., description="Storage slot key (hex)")
    value: str = Field(..., description="Stored value (hex)")
    index: int = Field(..., ge=0, le=MAX_UINT64, description="Leaf index (uint64)")
    proof: List[str] = Field(default_factory=list, description="Sibling hashes (hex)")


class ProofResult(BaseModel):
    """Result of ``zks_getProof``: one address, one proof per requested key."""
    address: str
    storage_proof: List[StorageProof] = Field(default_factory=list)


class BaseSystemContractsHashes(BaseModel):
    bootloader: str
    default_aa: str


class L1BatchDetails(BaseModel):
    """
    Result of ``zks_getL1BatchDetails``.

    ``root_hash`` is the storage tree root the proofs of this batch are checked
    against. It is null for batches the node has not sealed yet.
    """
    number: int
    timestamp: int
    l1_tx_count: int
    l2_tx_count: int
    root_hash: Optional[str] = None
    status: str
    commit_tx_hash: Optional[str] = None
    committed_at: Optional[str] = None
    prove_tx_hash: Optional[str] = None
    proven_at: Optional[str] = None
    execute_tx_hash: Optional[str] = None
    executed_at: Optional[str] = None
    l1_gas_price: int
    l2_fair_gas_price: int
    base_system_contracts_hashes: Optional[BaseSystemContractsHashes] = None


class CallRequest(BaseModel):
    """Transaction call object sent to the fee estimation methods."""
    model_config = ConfigDict(populate_by_name=True)

    from_address: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    gas: Optional[str] = None
    gas_price: Optional[str] = None
    value: Optional[str] = None
    data: Optional[str] = None

    def to_rpc_params(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class FeeEstimate(BaseModel):
    """Result of ``zks_estimateFee``; all quantities are hex strings."""
    gas_limit: str
    max_fee_per_gas: str
    max_priority_fee_per_gas: str
    gas_per_pubdata_limit: str


class FeeConfig(BaseModel):
    minimal_l2_gas_price: int
    compute_overhead_part: float
    pubdata_overhead_part: float
    batch_overhead_l1_gas: int
    max_gas_per_batch: int
    max_pubdata_per_batch: int


class FeeParamsV2(BaseModel):
    config: FeeConfig
    l1_gas_price: int
    l1_pubdata_price: int


class FeeParams(BaseModel):
    """Result of ``zks_getFeeParams``; only the V2 layout is understood."""
    v2: Optional[FeeParamsV2] = None


# ---------------------------------------------------------------------------
# REST API bodies
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """
    Response model for API errors.

    Attributes:
        error: Error message
        code: Error code (string identifier)
        details: Additional error details
    """
    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    details: Optional[dict] = Field(default=None, description="Additional error details")


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""
    status: str = Field(..., description="Service status")
    rpc_api: bool = Field(..., description="ZKsync RPC connectivity")
    rpc_url: Optional[str] = Field(default=None, description="Configured RPC endpoint")
    version: str = Field(default="0.1.0", description="Service version")
    timestamp: Optional[str] = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Response timestamp",
    )


class VerifyProofRequest(BaseModel):
    """
    Request model for verifying a proof the caller already holds.

    Attributes:
        address: Account address the proof belongs to (20-byte hex)
        root_hash: Expected storage tree root (32-byte hex)
        proof: The storage proof to check
    """
    address: str = Field(..., description="Account address (20-byte hex)")
    root_hash: str = Field(..., description="Expected root hash (32-byte hex)")
    proof: StorageProof

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return _check_hex(v, Address.length)

    @field_validator("root_hash")
    @classmethod
    def validate_root_hash(cls, v):
        return _check_hex(v, Bytes32.length)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "address": "0x" + "00" * 18 + "8003",
                "root_hash": "0x" + "ab" * 32,
                "proof": {
                    "key": "0x" + "00" * 31 + "01",
                    "value": "0x" + "00" * 31 + "2a",
                    "index": 27900957,
                    "proof": ["0x" + "11" * 32, "0x" + "22" * 32],
                },
            }
        }
    )


class VerifyProofResponse(BaseModel):
    """Outcome of a single proof verification."""
    address: str
    key: str
    value: str
    index: int
    is_valid: bool
    expected_root: str
    reconstructed_root: str
    leaf_hash: str
    tree_key: str
    depth: int


class StorageProofRequest(BaseModel):
    """
    Request model for fetching (and optionally verifying) storage proofs.

    Attributes:
        address: Account address
        keys: Storage slot keys to prove
        batch: L1 batch number the proofs are generated for
        verify: Whether to check each proof against the batch root hash
    """
    address: str = Field(..., description="Account address (20-byte hex)")
    keys: List[str] = Field(..., min_length=1, description="Storage slot keys (32-byte hex)")
    batch: int = Field(..., ge=0, description="L1 batch number")
    verify: bool = Field(default=True, description="Verify proofs against the batch root")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return _check_hex(v, Address.length)

    @field_validator("keys")
    @classmethod
    def validate_keys(cls, v):
        for key in v:
            _check_hex(key, Bytes32.length)
        return v


class ProofEntry(BaseModel):
    """One storage proof in a StorageProofsResponse."""
    key: str
    value: str
    index: int
    proof: List[str]
    verified: Optional[bool] = Field(default=None, description="None when not verified")
    error: Optional[str] = Field(default=None, description="Decoding error, if any")


class StorageProofsResponse(BaseModel):
    """Response model for fetched storage proofs."""
    address: str
    batch: int
    root_hash: Optional[str] = None
    proofs: List[ProofEntry]
