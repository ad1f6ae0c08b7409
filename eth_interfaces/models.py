"""
Plain value objects returned by session convenience operations.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TokenMeta:
    """Collection/token metadata. `uri` is only set for a specific ERC-721 token."""

    name: str
    symbol: str
    uri: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RoyaltyInfo:
    """EIP-2981 answer for one (token, sale price) pair."""

    receiver: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["TokenMeta", "RoyaltyInfo"]
