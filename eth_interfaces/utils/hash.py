from __future__ import annotations

from Crypto.Hash import keccak as _keccak

from .bytes import BytesLike, ensure_bytes

# Ethereum uses the original Keccak padding, not NIST SHA3-256, so hashlib's
# sha3_256 gives different digests.


def keccak256(data: BytesLike) -> bytes:
    """Return Keccak-256 digest of *data* (bytes)."""
    h = _keccak.new(digest_bits=256)
    h.update(ensure_bytes(data))
    return h.digest()


def selector(signature: str) -> bytes:
    """First 4 bytes of keccak256(signature), e.g. balanceOf(address) -> 70a08231."""
    return keccak256(signature.encode("utf-8"))[:4]


__all__ = ["keccak256", "selector"]
