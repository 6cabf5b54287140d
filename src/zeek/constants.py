"""
Protocol Constants

Fixed values of the ZKsync storage tree and the defaults used by the RPC client.
"""

# Default public endpoint used when ZKSYNC_RPC_URL is not set
DEFAULT_RPC_URL = "https://mainnet.era.zksync.io"
DEFAULT_RPC_TIMEOUT = 30

# Byte widths of the values hashed into the tree
ADDRESS_LENGTH = 20
BYTES32_LENGTH = 32
INDEX_LENGTH = 8

# The address is left-padded to 32 bytes inside the tree key preimage
ADDRESS_PADDING = b"\x00" * (BYTES32_LENGTH - ADDRESS_LENGTH)

# One path bit per bit of the 32-byte tree key
MAX_TREE_DEPTH = BYTES32_LENGTH * 8

MAX_UINT64 = 2**64 - 1

# Unit conversions
WEI_PER_GWEI = 10**9
WEI_PER_ETH = 10**18
