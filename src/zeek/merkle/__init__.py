"""
Storage Tree Merkle Operations

This package holds the pure building blocks of storage proof verification:

- encoding: hex parsing and fixed-size byte types
- core: tree key derivation, path bits, leaf hashing and root folding
"""

from .encoding import (
    Address,
    Bytes32,
    FixedBytes,
    HexDecodeError,
    bytes_to_hex,
    hex_to_bytes,
    normalize_hex,
    strip_hex_prefix,
)

from .core import (
    compute_leaf_hash,
    compute_root_from_proof,
    compute_tree_key,
    fold_step,
    get_key_bits,
    hash_bytes,
    hash_pair,
)

__all__ = [
    # Encoding
    "Address",
    "Bytes32",
    "FixedBytes",
    "HexDecodeError",
    "bytes_to_hex",
    "hex_to_bytes",
    "normalize_hex",
    "strip_hex_prefix",
    # Core functions
    "compute_leaf_hash",
    "compute_root_from_proof",
    "compute_tree_key",
    "fold_step",
    "get_key_bits",
    "hash_bytes",
    "hash_pair",
]
