"""
Storage Tree Hashing Primitives

This module implements the four steps needed to check a ZKsync storage proof:

- tree key derivation from an (address, storage key) pair
- path bit extraction from the tree key
- leaf hashing of (index, value)
- folding the leaf with its sibling hashes up to a candidate root

Every function is pure. All digests are BLAKE2s-256.
"""

import logging
from hashlib import blake2s
from typing import Callable, List, Optional, Sequence

from ..constants import ADDRESS_PADDING, INDEX_LENGTH, MAX_TREE_DEPTH, MAX_UINT64
from .encoding import Address, Bytes32, HexLike, as_bytes, bytes_to_hex

FoldCallback = Callable[[int, bool, bytes, bytes], None]

logger = logging.getLogger(__name__)


def hash_bytes(data: bytes) -> bytes:
    """BLAKE2s-256 digest of ``data``."""
    return blake2s(data).digest()


def hash_pair(left: bytes, right: bytes) -> bytes:
    """Digest of two child nodes, left child first."""
    return blake2s(left + right).digest()


def compute_tree_key(address: HexLike, storage_key: HexLike) -> bytes:
    """
    Derive the 32-byte tree key of a storage slot.

    The preimage is the address left-padded with 12 zero bytes to a full
    32-byte word, followed by the 32-byte storage key.

    Args:
        address: 20-byte account address (hex string or bytes)
        storage_key: 32-byte storage slot key (hex string or bytes)

    Returns:
        32-byte tree key

    Raises:
        HexDecodeError: If either input is malformed hex or has the wrong length
    """
    address_bytes = Address.coerce(address)
    key_bytes = Bytes32.coerce(storage_key)

    preimage = ADDRESS_PADDING + address_bytes + key_bytes
    tree_key = hash_bytes(preimage)

    logger.debug(f"Tree key preimage: {bytes_to_hex(preimage)}")
    logger.debug(f"Tree key: {bytes_to_hex(tree_key)}")
    return tree_key


def get_key_bits(tree_key: bytes) -> List[bool]:
    """
    Expand a tree key into its 256 path bits.

    Bytes are read from last to first and each byte contributes its bits from
    least to most significant, so ``bits[d]`` is the branch taken at fold
    depth ``d``. The order must match the node's tree layout bit for bit.

    Args:
        tree_key: 32-byte tree key

    Returns:
        List of 256 booleans, True meaning the node at that depth is a right child

    Examples:
        >>> bits = get_key_bits(b"\\x00" * 31 + b"\\x01")
        >>> bits[0], bits[1], bits[8]
        (True, False, False)
    """
    key = Bytes32.coerce(tree_key)
    return [bool((byte >> i) & 1) for byte in reversed(key) for i in range(8)]


def compute_leaf_hash(index: int, value: HexLike) -> bytes:
    """
    Hash a leaf: 8-byte big-endian index followed by the raw stored value.

    Args:
        index: Leaf index as reported by the node (uint64)
        value: Stored value (hex string or bytes), any length

    Returns:
        32-byte leaf hash

    Raises:
        ValueError: If index does not fit in a uint64
        HexDecodeError: If value is malformed hex
    """
    if index < 0 or index > MAX_UINT64:
        raise ValueError(f"Leaf index {index} does not fit in uint64")

    index_bytes = index.to_bytes(INDEX_LENGTH, "big")
    value_bytes = as_bytes(value)
    leaf_hash = hash_bytes(index_bytes + value_bytes)

    logger.debug(f"Leaf index bytes: {bytes_to_hex(index_bytes)}")
    logger.debug(f"Leaf value bytes: {bytes_to_hex(value_bytes)}")
    logger.debug(f"Leaf hash: {bytes_to_hex(leaf_hash)}")
    return leaf_hash


def fold_step(current: bytes, sibling: bytes, bit: bool) -> bytes:
    """Combine the running hash with one sibling according to its path bit."""
    if bit:
        # Current node is the right child
        return hash_pair(current, sibling)
    return hash_pair(sibling, current)


def compute_root_from_proof(
    leaf: bytes,
    key_bits: Sequence[bool],
    siblings: Sequence[bytes],
    on_step: Optional[FoldCallback] = None,
) -> bytes:
    """
    Rebuild the candidate root from a leaf hash and its sibling hashes.

    Siblings are consumed in the order given; ``siblings[d]`` is paired with
    ``key_bits[d]``. A depth without a path bit is treated as a left child.

    Args:
        leaf: 32-byte leaf hash
        key_bits: Path bits from get_key_bits
        siblings: Sibling hashes as 32-byte values
        on_step: Called as ``on_step(depth, bit, sibling, combined)`` after
                 every level, e.g. to record a verification trace

    Returns:
        The reconstructed root, or ``leaf`` itself when there are no siblings
    """
    current = leaf
    for depth, sibling in enumerate(siblings):
        bit = key_bits[depth] if depth < len(key_bits) else False
        current = fold_step(current, sibling, bit)
        if on_step is not None:
            on_step(depth, bit, sibling, current)
    return current


def is_valid_depth(siblings: Sequence) -> bool:
    """A proof cannot be deeper than the number of path bits."""
    return len(siblings) <= MAX_TREE_DEPTH
