"""Byte, hash and address helpers shared across the package."""

from .address import ZERO_ADDRESS, is_address, normalize_address, to_checksum_address  # noqa: F401
from .bytes import ensure_bytes, from_hex, hex_to_int, int_to_hex, to_hex  # noqa: F401
from .hash import keccak256, selector  # noqa: F401

__all__ = [
    "ZERO_ADDRESS",
    "is_address",
    "normalize_address",
    "to_checksum_address",
    "ensure_bytes",
    "from_hex",
    "hex_to_int",
    "int_to_hex",
    "to_hex",
    "keccak256",
    "selector",
]
