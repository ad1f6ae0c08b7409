"""
eth_interfaces.sessions.session
===============================

A Session binds one contract address to the capability set that was verified
against it. It never changes after construction; the only way to get a session
with more capabilities is to build or compose a new one.

Every invocation goes through the same steps:

1. the capability must be in the verified set, otherwise
   UnverifiedCapabilityError is raised before any network activity;
2. arguments are ABI-encoded and sent through the chain client (`eth_call`
   for reads, a transaction for writes);
3. failures are wrapped into CallError carrying the capability label, the
   contract address and the original exception. ChainConnectionError is not
   wrapped: transport trouble is not a property of the contract.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .. import metrics
from ..abi import decode_return
from ..capabilities.capability import CallKind, Capability, CapabilityLike, CapabilitySet
from ..client import CallContext, ChainClient, TxContext, TxHandle
from ..errors import (AbiError, CallError, ChainConnectionError,
                      UnverifiedCapabilityError)
from ..utils.address import normalize_address, to_checksum_address
from ..wrap import wrap_call_error

log = logging.getLogger(__name__)


class Invoker:
    """
    Capability invocation shared by plain and composed sessions.

    Subclasses provide `client`, `address`, `capabilities`, `call_context`
    and `tx_context`.
    """

    client: ChainClient
    address: str
    capabilities: CapabilitySet
    call_context: CallContext
    tx_context: Optional[TxContext]

    # ---- membership ----

    def supports(self, capability: CapabilityLike) -> bool:
        return self.capabilities.get(capability) is not None

    def require(self, capability: CapabilityLike) -> Capability:
        found = self.capabilities.get(capability)
        if found is None:
            sig = capability.signature if isinstance(capability, Capability) else str(capability)
            raise UnverifiedCapabilityError(sig, self.address)
        return found

    # ---- invocation ----

    def read(self, capability: CapabilityLike, *args: Any) -> Any:
        """eth_call a verified capability and decode its declared outputs."""
        cap = self.require(capability)
        data = cap.encode(args)
        ctx = self.call_context
        try:
            ret = self.client.call(
                self.address,
                data,
                sender=ctx.sender,
                block=ctx.block,
                timeout=ctx.timeout,
            )
        except ChainConnectionError:
            raise
        except Exception as e:
            raise self._call_failed(cap, e) from e
        try:
            return decode_return(cap.outputs, ret)
        except AbiError as e:
            raise self._call_failed(cap, e) from e

    def transact(self, capability: CapabilityLike, *args: Any, tx: Optional[TxContext] = None) -> TxHandle:
        """Send a transaction invoking a verified capability; returns the tx hash."""
        cap = self.require(capability)
        tx = tx or self.tx_context
        if tx is None:
            raise ValueError(
                f"{cap.label} needs a transaction context: pass tx= or build the session with tx_context"
            )
        data = cap.encode(args)
        try:
            return self.client.send_transaction(self.address, data, tx)
        except ChainConnectionError:
            raise
        except Exception as e:
            raise self._call_failed(cap, e) from e

    def invoke(self, capability: CapabilityLike, *args: Any, tx: Optional[TxContext] = None) -> Any:
        """Dispatch on the capability's kind: read for READ, transact for WRITE."""
        cap = self.require(capability)
        if cap.kind is CallKind.WRITE:
            return self.transact(cap, *args, tx=tx)
        return self.read(cap, *args)

    # ---- helpers ----

    def default_account(self) -> str:
        """The account this session acts as: the tx sender, else the call sender."""
        if self.tx_context is not None:
            return self.tx_context.sender
        if self.call_context.sender is not None:
            return self.call_context.sender
        raise ValueError("session has no sender; build it with tx_context or a call_context sender")

    def _call_failed(self, cap: Capability, cause: BaseException) -> CallError:
        err = wrap_call_error(cap.label, self.address, cause)
        metrics.CALL_ERRORS_TOTAL.labels(capability=cap.label).inc()
        log.warning(
            "call_failed",
            extra={"address": self.address, "capability": cap.label, "reason": err.reason},
        )
        return err


@dataclass(frozen=True)
class Session(Invoker):
    """
    Verified binding to one contract.

    Build through `new_session` (or the typed factories) rather than directly:
    the constructor trusts that `capabilities` has been verified.
    """

    client: ChainClient
    address: str
    capabilities: CapabilitySet
    call_context: CallContext = field(default_factory=CallContext)
    tx_context: Optional[TxContext] = None
    standard: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(address={to_checksum_address(self.address)}, standard={self.standard!r}, "
            f"capabilities={len(self.capabilities)})"
        )


__all__ = ["Invoker", "Session"]
