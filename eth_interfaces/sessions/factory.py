"""
Session factory: verify, probe liveness, bind.

    from eth_interfaces.rpc import EthRpcClient
    from eth_interfaces.sessions import new_erc20_session

    client = EthRpcClient("http://127.0.0.1:8545")
    token = new_erc20_session(client, "0x5FbDB2315678afecb367f032d93F642f64180aa3")
    print(token.name(), token.total_supply())

Either a complete session is returned or an exception is raised; there are no
partially verified sessions.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Type, TypeVar, Union

from .. import metrics
from ..capabilities.capability import Capability, CapabilitySet
from ..capabilities.verifier import SignatureVerifier
from ..client import CallContext, ChainClient, TxContext
from ..config import DEFAULT as DEFAULT_CONFIG
from ..config import InterfacesConfig
from ..errors import ChainConnectionError
from ..utils.address import normalize_address
from .session import Session

log = logging.getLogger(__name__)

S = TypeVar("S", bound=Session)


def _liveness_probe(client: ChainClient, ctx: CallContext, expected_chain_id: Optional[int]) -> int:
    try:
        chain_id = client.chain_id(timeout=ctx.timeout)
    except ChainConnectionError:
        raise
    except Exception as e:
        raise ChainConnectionError(f"liveness probe failed: {e}", operation="chain_id") from e
    if expected_chain_id is not None and chain_id != expected_chain_id:
        raise ChainConnectionError(
            f"client is connected to chain {chain_id}, expected {expected_chain_id}",
            operation="chain_id",
        )
    return chain_id


def new_session(
    client: ChainClient,
    address: str,
    requested: Union[CapabilitySet, Iterable[Capability]],
    *,
    call_context: Optional[CallContext] = None,
    tx_context: Optional[TxContext] = None,
    verifier: Optional[SignatureVerifier] = None,
    config: Optional[InterfacesConfig] = None,
    session_cls: Type[S] = Session,  # type: ignore[assignment]
    standard: Optional[str] = None,
) -> S:
    """
    Verify `requested` against the contract at `address` and return a session.

    Raises
    ------
    ValueError              malformed address (before any network activity)
    SignatureMismatchError  some requested signatures are not answered; lists all of them, sorted
    ChainConnectionError    transport failure during verification or the liveness probe
    """
    cfg = config or DEFAULT_CONFIG
    addr = normalize_address(address)
    caps = requested if isinstance(requested, CapabilitySet) else CapabilitySet(requested)

    tx_context = tx_context or cfg.tx_context()
    if call_context is None:
        call_context = tx_context.call_context(cfg.call_block) if tx_context else cfg.call_context()
    verifier = verifier or SignatureVerifier(
        client, call_context=call_context, max_workers=cfg.verify_workers
    )

    result = verifier.verify(addr, caps)
    if not result.ok:
        log.warning(
            "session_rejected",
            extra={"address": addr, "standard": standard, "missing": list(result.missing_signatures)},
        )
        result.raise_for_missing()

    if cfg.liveness_probe:
        _liveness_probe(client, call_context, cfg.chain_id)

    session = session_cls(
        client=client,
        address=addr,
        capabilities=result.supported,
        call_context=call_context,
        tx_context=tx_context,
        standard=standard,
    )
    metrics.SESSIONS_TOTAL.labels(kind="base").inc()
    log.info(
        "session_created",
        extra={"address": addr, "standard": standard, "capabilities": len(result.supported)},
    )
    return session


__all__ = ["new_session"]
