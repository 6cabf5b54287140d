"""
Hex Encoding and Fixed-Size Byte Types

This module parses the hex strings that arrive at the boundary of the verifier
(RPC responses, CLI arguments, API requests) into byte buffers, and provides
fixed-width byte types for addresses and 32-byte words so that a buffer of the
wrong size is rejected before it is hashed.
"""

from typing import Optional, Union

from ..constants import ADDRESS_LENGTH, BYTES32_LENGTH

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

HexLike = Union[str, bytes]


class HexDecodeError(ValueError):
    """Raised when a hex string is malformed or decodes to the wrong length."""
    pass


def strip_hex_prefix(hex_str: str) -> str:
    """Remove a leading '0x' / '0X' if present."""
    if hex_str[:2] in ("0x", "0X"):
        return hex_str[2:]
    return hex_str


def hex_to_bytes(hex_str: str, expected_bytes: Optional[int] = None) -> bytes:
    """
    Decode a hex string into bytes.

    Unlike the lenient helpers used for display, an odd number of digits is an
    error here: a value with a missing nibble cannot be hashed meaningfully.

    Args:
        hex_str: Hex string, with or without '0x' prefix, any case
        expected_bytes: If given, the decoded length must match exactly

    Returns:
        Decoded bytes

    Raises:
        HexDecodeError: On non-hex characters, odd length, or length mismatch

    Examples:
        >>> hex_to_bytes("0x1234")
        b'\\x124'
        >>> hex_to_bytes("ABCD")
        b'\\xab\\xcd'
    """
    if not isinstance(hex_str, str):
        raise HexDecodeError(f"Expected a hex string, got {type(hex_str).__name__}")

    digits = strip_hex_prefix(hex_str)

    if not all(c in HEX_DIGITS for c in digits):
        raise HexDecodeError(f"Invalid hex string: {hex_str!r}")
    if len(digits) % 2 == 1:
        raise HexDecodeError(f"Odd number of hex digits in {hex_str!r}")

    data = bytes.fromhex(digits)

    if expected_bytes is not None and len(data) != expected_bytes:
        raise HexDecodeError(
            f"Expected {expected_bytes} bytes, got {len(data)} bytes from {hex_str!r}"
        )
    return data


def bytes_to_hex(data: bytes, prefix: bool = True) -> str:
    """Encode bytes as lower-case hex, '0x'-prefixed by default."""
    hex_str = data.hex()
    return f"0x{hex_str}" if prefix else hex_str


def normalize_hex(hex_str: str) -> str:
    """
    Canonical form of a hex string: lower-case with a '0x' prefix.

    Raises:
        HexDecodeError: If the string is not valid hex
    """
    return bytes_to_hex(hex_to_bytes(hex_str))


def as_bytes(value: HexLike) -> bytes:
    """Accept either raw bytes or a hex string and return bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return hex_to_bytes(value)


class FixedBytes(bytes):
    """
    Immutable byte string of a fixed length.

    Subclasses set ``length``; constructing one from a buffer of any other
    size raises HexDecodeError.
    """

    length: int = 0

    def __new__(cls, value: bytes = b""):
        if len(value) != cls.length:
            raise HexDecodeError(
                f"{cls.__name__} must be {cls.length} bytes, got {len(value)}"
            )
        return super().__new__(cls, value)

    @classmethod
    def from_hex(cls, hex_str: str) -> "FixedBytes":
        return cls(hex_to_bytes(hex_str, expected_bytes=cls.length))

    @classmethod
    def coerce(cls, value: HexLike) -> "FixedBytes":
        """Build from hex or bytes, passing existing instances through."""
        if isinstance(value, cls):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls(bytes(value))
        return cls.from_hex(value)

    def to_hex(self) -> str:
        return bytes_to_hex(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_hex()})"


class Address(FixedBytes):
    """20-byte account address."""

    length = ADDRESS_LENGTH


class Bytes32(FixedBytes):
    """32-byte word: storage slot keys, tree keys and digests."""

    length = BYTES32_LENGTH
