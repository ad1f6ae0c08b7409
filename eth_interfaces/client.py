"""
Interface of the chain client the core depends on.

The core never talks to a node directly. It needs four primitives, keyed by
contract address and encoded calldata:

    call(address, data, *, sender, block, timeout) -> bytes      read-only
    send_transaction(address, data, tx) -> tx hash               state-mutating
    get_code(address, *, timeout) -> bytes
    chain_id(*, timeout) -> int

and it needs failures reported in three distinguishable ways:

    FunctionNotFound       the contract has no function for the selector
    ContractRevert         the function exists and reverted (payload in .data)
    ChainConnectionError   transport failure, timeout, cancellation

`eth_interfaces.rpc.http.EthRpcClient` implements this over JSON-RPC; tests
use an in-memory fake.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Protocol, runtime_checkable

from .utils.address import normalize_address

TxHandle = str
"""0x-prefixed transaction hash returned by send_transaction."""


@dataclass(frozen=True)
class CallContext:
    """
    Options for read-only calls.

    Attributes:
        sender:   `from` address for eth_call; some contracts answer differently per caller.
        block:    block tag or number the call executes against ("pending" by default).
        timeout:  per-call deadline in seconds, passed through to the client.
    """

    sender: Optional[str] = None
    block: str = "pending"
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if self.sender is not None:
            object.__setattr__(self, "sender", normalize_address(self.sender))


@dataclass(frozen=True)
class TxContext:
    """
    Account and fee options for state-mutating calls. Opaque to the core: it is
    handed to `ChainClient.send_transaction` unchanged.
    """

    sender: str
    gas: Optional[int] = None
    gas_price: Optional[int] = None
    value: int = 0
    nonce: Optional[int] = None
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", normalize_address(self.sender))

    def call_context(self, block: str = "pending") -> CallContext:
        return CallContext(sender=self.sender, block=block, timeout=self.timeout)

    def with_overrides(self, **overrides: object) -> "TxContext":
        return replace(self, **overrides)


@runtime_checkable
class ChainClient(Protocol):
    def call(
        self,
        address: str,
        data: bytes,
        *,
        sender: Optional[str] = None,
        block: str = "pending",
        timeout: Optional[float] = None,
    ) -> bytes: ...

    def send_transaction(self, address: str, data: bytes, tx: TxContext) -> TxHandle: ...

    def get_code(self, address: str, *, timeout: Optional[float] = None) -> bytes: ...

    def chain_id(self, *, timeout: Optional[float] = None) -> int: ...


__all__ = ["TxHandle", "CallContext", "TxContext", "ChainClient"]
