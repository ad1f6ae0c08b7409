"""
Package configuration: RPC endpoint, chain id, timeouts, verification
concurrency and the default sender account.

- Loads sane defaults and supports overrides via environment variables (ETH_IFACE_*).
- Provides helpers for building HTTP headers and the default call/tx contexts.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .client import CallContext, TxContext
from .utils.address import normalize_address
from .version import __version__

_DEFAULT_RPC = "http://127.0.0.1:8545"

_HEX_RE = re.compile(r"^0x[0-9a-fA-F]+$")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_chain_id(val: Any) -> Optional[int]:
    """
    Accepts int, decimal str, or 0x-hex str and returns int. Empty means "ask the node".
    """
    if val is None or val == "":
        return None
    if isinstance(val, int):
        return val
    s = str(val).strip()
    if _HEX_RE.match(s):
        return int(s, 16)
    return int(s, 10)


def _parse_bool(val: Optional[str], default: bool) -> bool:
    if val is None or val == "":
        return default
    s = val.strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"invalid boolean: {val!r}")


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


@dataclass(slots=True)
class InterfacesConfig:
    # Node
    rpc_url: str = field(default_factory=lambda: _DEFAULT_RPC)
    chain_id: Optional[int] = None
    # HTTP behavior; the core never retries, the transport only does if asked
    request_timeout: float = 10.0
    max_retries: int = 0
    backoff_factor: float = 0.25
    # Verification
    verify_workers: int = 1
    liveness_probe: bool = True
    call_block: str = "pending"
    # Account used for calls and transactions (an unlocked node account)
    sender: Optional[str] = None
    user_agent: str = field(default_factory=lambda: f"eth-interfaces-py/{__version__}")

    def __post_init__(self) -> None:
        _ensure_scheme(self.rpc_url, ("http", "https"))
        if self.sender:
            self.sender = normalize_address(self.sender)
        if self.verify_workers < 1:
            raise ValueError("verify_workers must be >= 1")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @classmethod
    def from_env(cls, prefix: str = "ETH_IFACE_") -> "InterfacesConfig":
        """
        Create config from environment variables:

        ETH_IFACE_RPC_URL         (http/https)
        ETH_IFACE_CHAIN_ID        (int or 0x-hex) optional
        ETH_IFACE_TIMEOUT         (float seconds)
        ETH_IFACE_MAX_RETRIES     (int)
        ETH_IFACE_BACKOFF         (float)
        ETH_IFACE_VERIFY_WORKERS  (int, concurrent trial calls)
        ETH_IFACE_LIVENESS_PROBE  (bool)
        ETH_IFACE_CALL_BLOCK      (block tag for eth_call)
        ETH_IFACE_SENDER          (0x address)
        ETH_IFACE_USER_AGENT      (str)
        """
        return cls(
            rpc_url=_env(f"{prefix}RPC_URL", _DEFAULT_RPC) or _DEFAULT_RPC,
            chain_id=_parse_chain_id(_env(f"{prefix}CHAIN_ID")),
            request_timeout=float(_env(f"{prefix}TIMEOUT", "10.0")),
            max_retries=int(_env(f"{prefix}MAX_RETRIES", "0")),
            backoff_factor=float(_env(f"{prefix}BACKOFF", "0.25")),
            verify_workers=int(_env(f"{prefix}VERIFY_WORKERS", "1")),
            liveness_probe=_parse_bool(_env(f"{prefix}LIVENESS_PROBE"), True),
            call_block=_env(f"{prefix}CALL_BLOCK", "pending") or "pending",
            sender=_env(f"{prefix}SENDER") or None,
            user_agent=_env(f"{prefix}USER_AGENT") or f"eth-interfaces-py/{__version__}",
        )

    @classmethod
    def with_overrides(
        cls, base: Optional["InterfacesConfig"] = None, **overrides: Any
    ) -> "InterfacesConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data})
        if "chain_id" in overrides:
            data["chain_id"] = _parse_chain_id(overrides["chain_id"])
        return cls(**data)

    def http_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    def call_context(self) -> CallContext:
        return CallContext(sender=self.sender, block=self.call_block, timeout=self.request_timeout)

    def tx_context(self) -> Optional[TxContext]:
        if not self.sender:
            return None
        return TxContext(sender=self.sender, timeout=self.request_timeout)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "chain_id": self.chain_id,
            "request_timeout": float(self.request_timeout),
            "max_retries": int(self.max_retries),
            "backoff_factor": float(self.backoff_factor),
            "verify_workers": int(self.verify_workers),
            "liveness_probe": bool(self.liveness_probe),
            "call_block": self.call_block,
            "sender": self.sender,
            "user_agent": self.user_agent,
        }


# Convenience singleton (safe to use for simple scripts)
DEFAULT = InterfacesConfig.from_env()

__all__ = ["InterfacesConfig", "DEFAULT"]
