"""
Gas and Fee Helpers

Conversions between the hex quantities returned by the ZKsync fee methods and
human units, plus the construction of call requests for fee estimation.
"""

from typing import Dict, Optional

from .constants import WEI_PER_ETH, WEI_PER_GWEI
from .merkle.encoding import strip_hex_prefix
from .models.api_models import CallRequest, FeeEstimate, FeeParamsV2


def parse_hex_quantity(quantity: str) -> int:
    """
    Parse a JSON-RPC hex quantity such as "0x1a".

    Raises:
        ValueError: If the string is not a hex number
    """
    digits = strip_hex_prefix(quantity)
    if not digits:
        raise ValueError(f"Empty hex quantity: {quantity!r}")
    return int(digits, 16)


def to_hex_quantity(value: int) -> str:
    if value < 0:
        raise ValueError("Quantities must be non-negative")
    return hex(value)


def eth_to_wei(eth: float) -> int:
    return int(eth * WEI_PER_ETH)


def gwei_to_wei(gwei: float) -> int:
    return int(gwei * WEI_PER_GWEI)


def wei_to_gwei(wei: int) -> float:
    return wei / WEI_PER_GWEI


def wei_to_eth(wei: int) -> float:
    return wei / WEI_PER_ETH


def build_call_request(
    to: Optional[str] = None,
    data: str = "0x",
    from_address: Optional[str] = None,
    value_eth: Optional[float] = None,
    gas_limit: Optional[int] = None,
    gas_price_gwei: Optional[float] = None,
) -> CallRequest:
    """
    Build the call object for zks_estimateFee / zks_estimateGasL1ToL2.

    Args:
        to: Recipient address
        data: Calldata (hex)
        from_address: Sender address
        value_eth: Value to send, in ETH
        gas_limit: Gas limit
        gas_price_gwei: Gas price, in Gwei

    Returns:
        CallRequest with all numeric fields encoded as hex quantities in wei
    """
    return CallRequest(
        from_address=from_address,
        to=to,
        gas=to_hex_quantity(gas_limit) if gas_limit is not None else None,
        gas_price=(
            to_hex_quantity(gwei_to_wei(gas_price_gwei))
            if gas_price_gwei is not None
            else None
        ),
        value=to_hex_quantity(eth_to_wei(value_eth)) if value_eth is not None else None,
        data=data,
    )


def parse_fee_estimate(fee_estimate: FeeEstimate) -> Dict[str, int]:
    """Decode every hex quantity of a fee estimate."""
    return {
        "gas_limit": parse_hex_quantity(fee_estimate.gas_limit),
        "max_fee_per_gas": parse_hex_quantity(fee_estimate.max_fee_per_gas),
        "max_priority_fee_per_gas": parse_hex_quantity(fee_estimate.max_priority_fee_per_gas),
        "gas_per_pubdata_limit": parse_hex_quantity(fee_estimate.gas_per_pubdata_limit),
    }


def calculate_pubdata_cost(fee_estimate: FeeEstimate, fee_params: FeeParamsV2) -> float:
    """
    Cost of the pubdata allowance of a transaction, in ETH.

    cost = gas_per_pubdata_limit * l1_pubdata_price (wei)
    """
    gas_per_pubdata_limit = parse_hex_quantity(fee_estimate.gas_per_pubdata_limit)
    return wei_to_eth(gas_per_pubdata_limit * fee_params.l1_pubdata_price)
