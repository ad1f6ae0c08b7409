from __future__ import annotations

"""
HTTP JSON-RPC client (sync) and the Ethereum chain client built on it.

- `RpcClient` speaks JSON-RPC 2.0 over httpx. Transport failures, timeouts and
  malformed responses raise ChainConnectionError; error objects from the node
  raise RpcError. Retries happen only on 429/5xx and transport failures, and
  only when `max_retries > 0` (the default is 0).
- `EthRpcClient` implements `eth_interfaces.client.ChainClient` with the
  `eth_*` methods, and classifies execution errors into FunctionNotFound /
  ContractRevert.

Example:
    from eth_interfaces.rpc.http import EthRpcClient
    with EthRpcClient("http://127.0.0.1:8545") as client:
        print(client.chain_id())
"""

import json
import logging
import random
import time
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

import httpx

from ..client import TxContext, TxHandle
from ..config import InterfacesConfig
from ..errors import (ChainConnectionError, ContractRevert, FunctionNotFound,
                      RpcError, TransactionFailed)
from ..utils.address import normalize_address
from ..utils.bytes import from_hex, hex_to_int, int_to_hex, to_hex
from ..version import __version__ as PKG_VERSION

log = logging.getLogger(__name__)

JSON = Union[dict, list, str, int, float, bool, None]
Params = Union[Sequence[Any], Mapping[str, Any], None]

# geth/anvil report reverts with code 3; older nodes use -32000 and a message.
_REVERT_CODE = 3
_NOT_FOUND_HINTS = (
    "function selector was not recognized",
    "function does not exist",
)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_retriable_http(status: int) -> bool:
    # Typical transient HTTP statuses: 429/502/503/504
    return status in (429, 502, 503, 504)


def _jitter_backoff(base: float, factor: float, attempt: int, jitter: float) -> float:
    # Exponential backoff with jitter in [0, jitter]
    return base * (factor ** max(attempt - 1, 0)) + random.random() * jitter


class _Retriable(Exception):
    pass


@dataclass
class RpcClient:
    """Synchronous JSON-RPC 2.0 client over HTTP."""

    url: str
    timeout: float = 10.0
    max_retries: int = 0
    backoff_base: float = 0.15
    backoff_factor: float = 1.8
    backoff_jitter: float = 0.2
    headers: Optional[Mapping[str, str]] = None
    _id_counter: Iterable[int] = field(default_factory=lambda: count(start=_now_ms()))
    _client: Any = field(init=False, default=None)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"eth-interfaces-py/{PKG_VERSION}",
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        self._client = httpx.Client(timeout=self.timeout, headers=merged_headers)

    @classmethod
    def from_config(cls, config: InterfacesConfig) -> "RpcClient":
        return cls(
            url=config.rpc_url,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            backoff_base=config.backoff_factor,
            headers=config.http_headers(),
        )

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    # --- public API ------------------------------------------------------

    def request(self, method: str, params: Params = None, *, timeout: Optional[float] = None) -> JSON:
        """Perform a single JSON-RPC request and return `result`."""
        payload = self._make_payload(method, params)
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 2):  # N retries -> N+1 attempts
            try:
                return self._send_once(method, payload, timeout)
            except _Retriable as e:
                last_exc = e
                if attempt > self.max_retries:
                    break
                time.sleep(_jitter_backoff(self.backoff_base, self.backoff_factor, attempt, self.backoff_jitter))
        raise ChainConnectionError(f"{method}: {last_exc}", operation=method) from last_exc.__cause__

    # --- internals -------------------------------------------------------

    def _make_payload(self, method: str, params: Params) -> Dict[str, Any]:
        if params is None:
            params = []
        elif isinstance(params, Mapping):
            params = dict(params)
        else:
            params = list(params)
        return {"jsonrpc": "2.0", "id": next(self._id_counter), "method": method, "params": params}  # type: ignore[call-overload]

    def _send_once(self, method: str, payload: Dict[str, Any], timeout: Optional[float]) -> JSON:
        body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        try:
            r = self._client.post(self.url, content=body, timeout=timeout if timeout is not None else self.timeout)
        except httpx.TimeoutException as e:
            raise _Retriable("timed out") from e
        except httpx.TransportError as e:
            raise _Retriable(f"network error: {e}") from e
        if _is_retriable_http(r.status_code):
            raise _Retriable(f"HTTP {r.status_code}")
        try:
            resp = r.json()
        except ValueError as e:
            raise ChainConnectionError(
                f"{method}: non-JSON response (HTTP {r.status_code}): {r.text[:256]}",
                operation=method,
            ) from e

        if not isinstance(resp, dict):
            raise ChainConnectionError(f"{method}: invalid JSON-RPC response type", operation=method)
        if resp.get("error") is not None:
            err = resp["error"] or {}
            raise RpcError(
                method=method,
                rpc_code=err.get("code", -32603),
                message=err.get("message", "Unknown error"),
                data=err.get("data"),
            )
        if "result" not in resp:
            raise ChainConnectionError(f"{method}: malformed JSON-RPC response", operation=method)
        return resp["result"]


def _revert_data(data: Any) -> bytes:
    """Pull the revert payload out of an error's `data` (str, or nested dict on some nodes)."""
    if isinstance(data, dict):
        data = data.get("data") or data.get("result")
    if isinstance(data, str) and data.startswith(("0x", "0X")):
        try:
            return from_hex(data)
        except ValueError:
            return b""
    return b""


def _hex_result(method: str, res: JSON) -> bytes:
    if isinstance(res, str):
        try:
            return from_hex(res)
        except ValueError:
            pass
    raise ChainConnectionError(f"{method}: unexpected result {res!r}", operation=method)


def _quantity_result(method: str, res: JSON) -> int:
    if isinstance(res, str):
        try:
            return hex_to_int(res)
        except ValueError:
            pass
    raise ChainConnectionError(f"{method}: unexpected result {res!r}", operation=method)


def classify_execution_error(err: RpcError, calldata: bytes) -> Exception:
    """
    Map a node error for eth_call/eth_sendTransaction onto the client vocabulary:

    - reverted with a payload            -> ContractRevert(payload)
    - reverted without a payload, or the node says the selector is unknown
                                         -> FunctionNotFound
    - anything else                      -> the RpcError unchanged
    """
    node_msg = err.rpc_message
    msg = node_msg.lower()
    reverted = err.rpc_code == _REVERT_CODE or "revert" in msg
    if not reverted:
        return err
    data = _revert_data(err.data)
    if not data or any(h in msg for h in _NOT_FOUND_HINTS):
        return FunctionNotFound(calldata[:4], reason=node_msg)
    return ContractRevert(data, reason=node_msg)


class EthRpcClient(RpcClient):
    """ChainClient over the Ethereum JSON-RPC API."""

    def call(
        self,
        address: str,
        data: bytes,
        *,
        sender: Optional[str] = None,
        block: str = "pending",
        timeout: Optional[float] = None,
    ) -> bytes:
        tx: Dict[str, Any] = {"to": normalize_address(address), "data": to_hex(data)}
        if sender:
            tx["from"] = normalize_address(sender)
        try:
            res = self.request("eth_call", [tx, block], timeout=timeout)
        except RpcError as e:
            mapped = classify_execution_error(e, data)
            if mapped is e:
                raise
            raise mapped from e
        return _hex_result("eth_call", res)

    def send_transaction(self, address: str, data: bytes, tx: TxContext) -> TxHandle:
        body: Dict[str, Any] = {
            "from": tx.sender,
            "to": normalize_address(address),
            "data": to_hex(data),
        }
        if tx.value:
            body["value"] = int_to_hex(tx.value)
        if tx.gas is not None:
            body["gas"] = int_to_hex(tx.gas)
        if tx.gas_price is not None:
            body["gasPrice"] = int_to_hex(tx.gas_price)
        if tx.nonce is not None:
            body["nonce"] = int_to_hex(tx.nonce)
        try:
            res = self.request("eth_sendTransaction", [body], timeout=tx.timeout)
        except RpcError as e:
            mapped = classify_execution_error(e, data)
            if mapped is e:
                raise
            raise mapped from e
        if not isinstance(res, str):
            raise ChainConnectionError(f"eth_sendTransaction: unexpected result {res!r}", operation="eth_sendTransaction")
        log.debug("transaction_sent", extra={"to": body["to"], "tx_hash": res})
        return res

    def get_code(self, address: str, *, timeout: Optional[float] = None) -> bytes:
        res = self.request("eth_getCode", [normalize_address(address), "latest"], timeout=timeout)
        return _hex_result("eth_getCode", res)

    def chain_id(self, *, timeout: Optional[float] = None) -> int:
        res = self.request("eth_chainId", [], timeout=timeout)
        return _quantity_result("eth_chainId", res)

    def block_number(self, *, timeout: Optional[float] = None) -> int:
        res = self.request("eth_blockNumber", [], timeout=timeout)
        return _quantity_result("eth_blockNumber", res)

    def get_transaction_receipt(self, tx_hash: TxHandle) -> Optional[Dict[str, Any]]:
        """The receipt, or None while the transaction is pending."""
        res = self.request("eth_getTransactionReceipt", [tx_hash])
        if res is None:
            return None
        if not isinstance(res, dict):
            raise ChainConnectionError(f"unexpected receipt payload: {type(res)!r}", operation="eth_getTransactionReceipt")
        return res

    def wait_for_receipt(
        self,
        tx_hash: TxHandle,
        *,
        timeout_s: float = 60.0,
        poll_interval_s: float = 0.5,
    ) -> Dict[str, Any]:
        """
        Poll until the transaction is mined.

        Raises TransactionFailed for a receipt with status 0x0 and
        ChainConnectionError if no receipt shows up within `timeout_s`.
        """
        deadline = time.monotonic() + timeout_s
        while True:
            receipt = self.get_transaction_receipt(tx_hash)
            if receipt is not None:
                if receipt.get("status") in ("0x0", 0):
                    raise TransactionFailed(tx_hash, receipt=receipt)
                return receipt
            if time.monotonic() >= deadline:
                raise ChainConnectionError(
                    f"no receipt for {tx_hash} after {timeout_s:.1f}s",
                    operation="wait_for_receipt",
                )
            time.sleep(poll_interval_s)


__all__ = ["RpcClient", "EthRpcClient", "classify_execution_error"]
