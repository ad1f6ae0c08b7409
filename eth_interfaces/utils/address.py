"""
Hex account addresses.

Addresses travel through the package as lowercase, 0x-prefixed, 40-nibble
strings. `to_checksum_address` renders the EIP-55 mixed-case form for display.
"""

from __future__ import annotations

import re
from typing import Union

from .bytes import BytesLike
from .hash import keccak256

ZERO_ADDRESS = "0x" + "00" * 20

_ADDR_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: object) -> bool:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return len(value) == 20
    return isinstance(value, str) and bool(_ADDR_RE.match(value))


def normalize_address(value: Union[str, BytesLike]) -> str:
    """Return the canonical lowercase form; raise ValueError on anything else."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) != 20:
            raise ValueError(f"address must be 20 bytes, got {len(raw)}")
        return "0x" + raw.hex()
    if not is_address(value):
        raise ValueError(f"invalid address: {value!r}")
    return value.lower()


def to_checksum_address(value: Union[str, BytesLike]) -> str:
    """EIP-55 checksum encoding."""
    addr = normalize_address(value)[2:]
    digest = keccak256(addr.encode("ascii")).hex()
    out = [
        ch.upper() if ch.isalpha() and int(digest[i], 16) >= 8 else ch
        for i, ch in enumerate(addr)
    ]
    return "0x" + "".join(out)


__all__ = ["ZERO_ADDRESS", "is_address", "normalize_address", "to_checksum_address"]
