"""
REST API for Zeek

This module provides a FastAPI-based REST API for verifying ZKsync storage
proofs and fetching them from a node, with full OpenAPI documentation.
"""

import logging
import traceback

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..models.api_models import (
    ErrorResponse,
    HealthResponse,
    L1BatchDetails,
    StorageProofRequest,
    StorageProofsResponse,
    VerifyProofRequest,
    VerifyProofResponse,
)
from .proof_service import ProofService, ProofServiceError
from .rpc_client import ZkSyncRPCClient, ZkSyncRPCError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Zeek API",
    description="""
    Verify ZKsync storage proofs against L1 batch root hashes.

    ## Features
    - **Offline verification**: check a proof you already hold against a root hash
    - **Fetch and verify**: fetch proofs with `zks_getProof` and check them against
      the root hash from `zks_getL1BatchDetails`
    - **Batch details**: look up an L1 batch

    ## Hex encoding
    Addresses, keys, values and hashes are hex strings, with or without `0x`,
    in either case. Addresses must be 20 bytes; keys and hashes 32 bytes.
    """,
    version=__version__,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    }
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global RPC client instance
rpc_client = None


def get_rpc_client() -> ZkSyncRPCClient:
    """Dependency to get the RPC client instance."""
    global rpc_client
    if rpc_client is None:
        rpc_client = ZkSyncRPCClient()
    return rpc_client


def get_proof_service(client: ZkSyncRPCClient = Depends(get_rpc_client)) -> ProofService:
    return ProofService(client)


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    """Handle validation and decoding errors."""
    logger.error(f"Validation error: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=str(exc),
            code="VALIDATION_ERROR",
            details={"error_type": type(exc).__name__}
        ).model_dump()
    )


@app.exception_handler(ZkSyncRPCError)
async def rpc_exception_handler(request, exc: ZkSyncRPCError):
    """Handle ZKsync RPC errors."""
    logger.error(f"ZKsync RPC error: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorResponse(
            error=str(exc),
            code="RPC_ERROR",
            details={"error_type": "ZkSyncRPCError", "rpc_code": exc.code}
        ).model_dump()
    )


@app.exception_handler(ProofServiceError)
async def proof_service_exception_handler(request, exc: ProofServiceError):
    """Handle proof service errors such as an unsealed batch."""
    logger.error(f"Proof service error: {exc}")
    return JSONResponse(
        status_code=409,
        content=ErrorResponse(
            error=str(exc),
            code="PROOF_SERVICE_ERROR",
            details={"error_type": "ProofServiceError"}
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unexpected error: {exc}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            code="INTERNAL_ERROR",
            details={"error_type": type(exc).__name__}
        ).model_dump()
    )


@app.get("/", response_model=dict)
async def root():
    """API root endpoint with basic information."""
    return {
        "name": "Zeek API",
        "version": __version__,
        "description": "Verify ZKsync storage proofs",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", response_model=HealthResponse)
def health_check(client: ZkSyncRPCClient = Depends(get_rpc_client)):
    """
    Health check endpoint.

    Checks the status of the API and ZKsync RPC connectivity.
    """
    rpc_status = client.health_check()
    return HealthResponse(
        status="healthy" if rpc_status else "degraded",
        rpc_api=rpc_status,
        rpc_url=client.rpc_url,
        version=__version__,
    )


@app.post("/proofs/verify", response_model=VerifyProofResponse)
def verify_proof_endpoint(
    request: VerifyProofRequest,
    service: ProofService = Depends(get_proof_service)
):
    """
    Verify a storage proof against a root hash.

    No RPC call is made: the caller supplies the proof, the account address
    and the expected root hash. A root mismatch is reported as
    `is_valid: false`; malformed hex is a 400 error.
    """
    result = service.verify_submitted_proof(request.proof, request.root_hash, request.address)
    return VerifyProofResponse(**result)


@app.post("/proofs", response_model=StorageProofsResponse)
def get_storage_proofs(
    request: StorageProofRequest,
    service: ProofService = Depends(get_proof_service)
):
    """
    Fetch storage proofs for an address at an L1 batch.

    With `verify` set (the default), each proof is checked against the root
    hash of the batch. A proof that fails to decode carries an `error` and
    does not affect the others.
    """
    return service.get_proofs(request.address, request.keys, request.batch, verify=request.verify)


@app.get("/batches/{batch}", response_model=L1BatchDetails)
def get_batch_details(batch: int, client: ZkSyncRPCClient = Depends(get_rpc_client)):
    """Return the details of an L1 batch, including its root hash."""
    return client.get_l1_batch_details(batch)


def run_server(host: str = "127.0.0.1", port: int = 8000, dev: bool = False):
    """
    Run the API server.

    Args:
        host: Host to bind to
        port: Port to bind to
        dev: Enable development mode with auto-reload
    """
    logger.info(f"Starting Zeek API server on {host}:{port}")
    uvicorn.run(
        "zeek.api.rest_api:app",
        host=host,
        port=port,
        reload=dev,
        log_level="info"
    )


if __name__ == "__main__":
    run_server(dev=True)
