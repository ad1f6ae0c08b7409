"""
eth_interfaces.capabilities.verifier
====================================

Decide which capabilities of a requested set a deployed contract supports,
without changing chain state.

Protocol
--------
1. Fetch the account code. An address without code supports nothing: calls to
   it succeed with empty return data whatever the selector.
2. For every requested capability, issue a read-only trial call (eth_call,
   never a transaction) with zero-valued arguments of the right shape, and
   classify the result:

   =====================  ==============  ==========
   client reports         outcome         supported
   =====================  ==============  ==========
   FunctionNotFound       ABSENT*         no
   ContractRevert         REVERTED        yes
   return data            RETURNED        yes
   undecodable return     SHAPE_MISMATCH  no
   transport failure      ChainConnectionError is raised
   =====================  ==============  ==========
   * REVERTED when the contract code dispatches the selector.

   A node cannot tell a bare `revert()` from an unknown selector: both come back
   as an empty revert, which clients report as FunctionNotFound. The contract
   code fetched in step 1 settles it: Solidity and Vyper dispatchers compare
   the calldata selector against PUSH4 immediates, so a selector found there
   is a function that reverted.

   A revert means the function exists and rejected the zero arguments; only
   interface presence is being checked, not business outcome. The return
   shape check applies to read capabilities, and to write capabilities that
   returned data at all (tokens that omit the bool return of transfer() are
   tolerated).
3. Missing capabilities are sorted by canonical signature.

Trial calls are independent and may run on a thread pool (`max_workers`).
Results are aggregated in signature order, so concurrency never shows in the
result. There are no retries.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from .. import metrics
from ..abi import decode, zero_args
from ..client import CallContext, ChainClient
from ..errors import (AbiError, ChainConnectionError, ContractRevert,
                      FunctionNotFound, SignatureMismatchError)
from ..utils.address import normalize_address
from .capability import CallKind, Capability, CapabilitySet

log = logging.getLogger(__name__)

_PUSH1 = 0x60
_PUSH32 = 0x7F


def code_dispatches(code: bytes, selector: bytes) -> bool:
    """
    True if `selector` appears as a push immediate in `code`.

    Walks the opcodes so bytes inside other push data never match. Optimized
    dispatchers push selectors with leading zero bytes as PUSH3 or shorter.
    """
    want = bytes(selector).lstrip(b"\x00")
    if not want:
        return False
    code = bytes(code)
    i, n = 0, len(code)
    while i < n:
        op = code[i]
        if _PUSH1 <= op <= _PUSH32:
            width = op - _PUSH1 + 1
            if width <= 4 and code[i + 1:i + 1 + width].lstrip(b"\x00") == want:
                return True
            i += width
        i += 1
    return False


class ProbeOutcome(str, Enum):
    RETURNED = "returned"
    REVERTED = "reverted"
    ABSENT = "absent"
    SHAPE_MISMATCH = "shape_mismatch"

    @property
    def supported(self) -> bool:
        return self in (ProbeOutcome.RETURNED, ProbeOutcome.REVERTED)


@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of checking a CapabilitySet against one contract.

    Attributes:
        address:    normalized contract address
        supported:  capabilities the contract answers
        missing:    capabilities it does not, sorted by canonical signature
        outcomes:   canonical signature -> ProbeOutcome, for every requested capability
    """

    address: str
    supported: CapabilitySet
    missing: Tuple[Capability, ...]
    outcomes: Mapping[str, ProbeOutcome]

    @property
    def ok(self) -> bool:
        return not self.missing

    @property
    def missing_signatures(self) -> Tuple[str, ...]:
        return tuple(c.signature for c in self.missing)

    @property
    def requested(self) -> CapabilitySet:
        return self.supported.union(CapabilitySet(self.missing))

    def raise_for_missing(self) -> None:
        if self.missing:
            raise SignatureMismatchError(self.address, self.missing_signatures)


class SignatureVerifier:
    """
    Verifies capability sets against contracts through a ChainClient.

    Parameters
    ----------
    client : ChainClient
    call_context : sender/block/timeout used for trial calls.
    max_workers : >1 issues trial calls concurrently.
    check_code : skip probing addresses without code.
    """

    def __init__(
        self,
        client: ChainClient,
        *,
        call_context: Optional[CallContext] = None,
        max_workers: int = 1,
        check_code: bool = True,
    ) -> None:
        self._client = client
        self._ctx = call_context or CallContext()
        self._max_workers = max(1, int(max_workers))
        self._check_code = bool(check_code)

    @property
    def client(self) -> ChainClient:
        return self._client

    @property
    def call_context(self) -> CallContext:
        return self._ctx

    # ------------------------------------------------------------------ public

    def verify(
        self,
        address: str,
        requested: Union[CapabilitySet, Iterable[Capability]],
    ) -> VerificationResult:
        addr = normalize_address(address)
        caps = requested if isinstance(requested, CapabilitySet) else CapabilitySet(requested)

        with metrics.time_verification():
            try:
                outcomes = self._probe_all(addr, caps)
            except ChainConnectionError:
                metrics.VERIFY_TOTAL.labels(outcome="connection_error").inc()
                raise

        for outcome in outcomes.values():
            metrics.PROBE_TOTAL.labels(outcome=outcome.value).inc()

        supported = CapabilitySet(c for c in caps if outcomes[c.signature].supported)
        missing = tuple(c for c in caps if not outcomes[c.signature].supported)
        result = VerificationResult(
            address=addr,
            supported=supported,
            missing=missing,
            outcomes=MappingProxyType({c.signature: outcomes[c.signature] for c in caps}),
        )

        metrics.VERIFY_TOTAL.labels(outcome="ok" if result.ok else "mismatch").inc()
        log.info(
            "verification_finished",
            extra={
                "address": addr,
                "requested": len(caps),
                "missing": list(result.missing_signatures),
            },
        )
        return result

    def probe(self, address: str, capability: Capability, *, code: Optional[bytes] = None) -> ProbeOutcome:
        """
        Trial-call one capability. Raises ChainConnectionError on transport failure.

        `code` is the contract bytecode, used to tell an empty revert from a
        missing function.
        """
        data = capability.encode(zero_args(capability.inputs))
        try:
            ret = self._client.call(
                address,
                data,
                sender=self._ctx.sender,
                block=self._ctx.block,
                timeout=self._ctx.timeout,
            )
        except FunctionNotFound:
            if code and code_dispatches(code, capability.selector):
                return ProbeOutcome.REVERTED
            return ProbeOutcome.ABSENT
        except ContractRevert:
            return ProbeOutcome.REVERTED
        except ChainConnectionError:
            raise
        except Exception as e:
            raise ChainConnectionError(
                f"trial call of {capability.signature} on {address} failed: {e}",
                operation="call",
            ) from e

        ret = bytes(ret or b"")
        if capability.outputs and (capability.kind is CallKind.READ or ret):
            try:
                decode(capability.outputs, ret)
            except AbiError:
                return ProbeOutcome.SHAPE_MISMATCH
        return ProbeOutcome.RETURNED

    # ------------------------------------------------------------------ internals

    def _fetch_code(self, address: str) -> bytes:
        try:
            code = self._client.get_code(address, timeout=self._ctx.timeout)
        except ChainConnectionError:
            raise
        except Exception as e:
            raise ChainConnectionError(f"eth_getCode for {address} failed: {e}", operation="get_code") from e
        return bytes(code or b"")

    def _probe_all(self, address: str, caps: CapabilitySet) -> Dict[str, ProbeOutcome]:
        if not caps:
            return {}
        code = self._fetch_code(address) if self._check_code else None
        if code is not None and not code:
            log.debug("no_code_at_address", extra={"address": address})
            return {c.signature: ProbeOutcome.ABSENT for c in caps}

        if self._max_workers == 1 or len(caps) == 1:
            return {c.signature: self.probe(address, c, code=code) for c in caps}

        outcomes: Dict[str, ProbeOutcome] = {}
        failures: Dict[str, ChainConnectionError] = {}
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(caps))) as pool:
            futs = {pool.submit(self.probe, address, c, code=code): c.signature for c in caps}
            for fut in as_completed(futs):
                sig = futs[fut]
                try:
                    outcomes[sig] = fut.result()
                except ChainConnectionError as e:
                    failures[sig] = e
        if failures:
            # Same error whichever probe finished first.
            raise failures[min(failures)]
        return outcomes


__all__ = ["ProbeOutcome", "VerificationResult", "SignatureVerifier", "code_dispatches"]
