"""
ZKsync RPC Client

This module provides a JSON-RPC client for a ZKsync node. It fetches storage
proofs and L1 batch details for proof verification, and the fee data used by
the gas commands.
"""

import os
import logging
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv
from pydantic import ValidationError

from ..constants import DEFAULT_RPC_TIMEOUT, DEFAULT_RPC_URL
from ..gas import parse_hex_quantity
from ..models.api_models import (
    CallRequest,
    FeeEstimate,
    FeeParams,
    FeeParamsV2,
    L1BatchDetails,
    ProofResult,
    RpcErrorObject,
)

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class ZkSyncRPCError(Exception):
    """Exception raised for ZKsync RPC related errors."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class ZkSyncRPCClient:
    """
    JSON-RPC client for a ZKsync node.

    Responses are sanitized (camelCase keys to snake_case, hex values
    lower-cased) and validated into the models of ``zeek.models``.
    """

    def __init__(self, rpc_url: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize the RPC client.

        Args:
            rpc_url: Node endpoint. If None, uses ZKSYNC_RPC_URL or the public mainnet URL.
            timeout: Request timeout in seconds. If None, uses ZKSYNC_RPC_TIMEOUT or 30.
        """
        self.rpc_url = rpc_url or os.getenv("ZKSYNC_RPC_URL", DEFAULT_RPC_URL)
        self.timeout = timeout or float(os.getenv("ZKSYNC_RPC_TIMEOUT", DEFAULT_RPC_TIMEOUT))
        self._request_id = 0

        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json'
        })

        logger.info(f"Initialized ZkSyncRPCClient with rpc_url: {self.rpc_url}")

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Send one JSON-RPC request and return its sanitized ``result``.

        Args:
            method: RPC method name
            params: Positional parameters

        Returns:
            The ``result`` member of the response

        Raises:
            ZkSyncRPCError: On transport failure, RPC error, or missing result
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params if params is not None else [],
            "id": self._next_id(),
        }

        try:
            logger.debug(f"RPC request {method} params={payload['params']}")
            response = self.session.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.ConnectionError as e:
            raise ZkSyncRPCError(
                f"Failed to connect to ZKsync RPC at {self.rpc_url}. "
                f"Check the URL or set ZKSYNC_RPC_URL / --rpc-url. "
                f"Original error: {e}"
            )
        except requests.Timeout as e:
            raise ZkSyncRPCError(
                f"Timeout calling {method} on {self.rpc_url} after {self.timeout}s. "
                f"Original error: {e}"
            )
        except requests.RequestException as e:
            raise ZkSyncRPCError(f"Request {method} to {self.rpc_url} failed: {e}")
        except ValueError as e:
            raise ZkSyncRPCError(f"Invalid JSON in response to {method}: {e}")

        if not isinstance(data, dict):
            raise ZkSyncRPCError(f"Invalid response format for {method}: expected an object")

        if data.get("error") is not None:
            error = RpcErrorObject.model_validate(data["error"])
            raise ZkSyncRPCError(f"RPC Error {error.code}: {error.message}", code=error.code)

        if data.get("result") is None:
            raise ZkSyncRPCError(f"No result in RPC response to {method}")

        return self.sanitize_rpc_data(data["result"])

    def _call_model(self, model, method: str, params: Optional[List[Any]] = None):
        result = self.call(method, params)
        try:
            return model.model_validate(result)
        except ValidationError as e:
            raise ZkSyncRPCError(f"Unexpected {method} result: {e}")

    def get_proof(self, address: str, keys: List[str], batch: int) -> ProofResult:
        """
        Fetch storage proofs for ``keys`` of ``address`` at L1 batch ``batch``.

        Raises:
            ZkSyncRPCError: If the request fails or returns invalid data
        """
        logger.info(f"Fetching {len(keys)} storage proof(s) for {address} at batch {batch}")
        return self._call_model(ProofResult, "zks_getProof", [address, keys, batch])

    def get_l1_batch_details(self, batch: int) -> L1BatchDetails:
        """Fetch the details (including the root hash) of an L1 batch."""
        logger.info(f"Fetching details for L1 batch {batch}")
        return self._call_model(L1BatchDetails, "zks_getL1BatchDetails", [batch])

    def estimate_fee(self, call_request: CallRequest) -> FeeEstimate:
        return self._call_model(FeeEstimate, "zks_estimateFee", [call_request.to_rpc_params()])

    def estimate_gas_l1_to_l2(self, call_request: CallRequest) -> int:
        result = self.call("zks_estimateGasL1ToL2", [call_request.to_rpc_params()])
        return self._parse_quantity("zks_estimateGasL1ToL2", result)

    def get_fee_params(self) -> FeeParamsV2:
        """
        Fetch the node's fee parameters.

        Raises:
            ZkSyncRPCError: If the node does not report V2 fee parameters
        """
        fee_params = self._call_model(FeeParams, "zks_getFeeParams")
        if fee_params.v2 is None:
            raise ZkSyncRPCError("Missing V2 in fee parameters")
        return fee_params.v2

    def get_l1_gas_price(self) -> int:
        return self._parse_quantity("zks_getL1GasPrice", self.call("zks_getL1GasPrice"))

    def get_gas_price(self) -> int:
        return self._parse_quantity("eth_gasPrice", self.call("eth_gasPrice"))

    def health_check(self) -> bool:
        """
        Check if the RPC endpoint is reachable.

        Returns:
            True if eth_chainId answers, False otherwise
        """
        try:
            self.call("eth_chainId")
            return True
        except ZkSyncRPCError as e:
            logger.warning(f"Health check against {self.rpc_url} failed: {e}")
            return False

    @staticmethod
    def _parse_quantity(method: str, result: Any) -> int:
        try:
            return parse_hex_quantity(result)
        except (TypeError, ValueError) as e:
            raise ZkSyncRPCError(f"Invalid quantity {result!r} returned by {method}: {e}")

    @staticmethod
    def sanitize_rpc_data(data: Any) -> Any:
        """
        Sanitize RPC data by converting camelCase keys to snake_case
        and normalizing hex strings to lower case.

        Args:
            data: Raw ``result`` member

        Returns:
            Sanitized data with consistent formatting
        """
        if isinstance(data, dict):
            sanitized = {}
            for key, value in data.items():
                snake_key = ZkSyncRPCClient._camel_to_snake(key)
                sanitized[snake_key] = ZkSyncRPCClient.sanitize_rpc_data(value)
            return sanitized
        elif isinstance(data, list):
            return [ZkSyncRPCClient.sanitize_rpc_data(item) for item in data]
        elif isinstance(data, str) and data.startswith('0x'):
            return ZkSyncRPCClient._normalize_hex(data)
        return data

    @staticmethod
    def _camel_to_snake(camel_str: str) -> str:
        """Convert camelCase string to snake_case."""
        result = []
        for i, char in enumerate(camel_str):
            if char.isupper() and i > 0 and camel_str[i - 1] != '_':
                result.append('_')
            result.append(char.lower())
        return ''.join(result)

    @staticmethod
    def _normalize_hex(hex_str: str) -> str:
        """Normalize hex string to consistent format."""
        return hex_str.lower()
