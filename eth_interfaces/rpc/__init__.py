"""
eth_interfaces.rpc
------------------

JSON-RPC transport.

- RpcClient:    HTTP JSON-RPC 2.0 client (see .http)
- EthRpcClient: ChainClient over the eth_* API

    from eth_interfaces.rpc import EthRpcClient
    client = EthRpcClient(url="http://127.0.0.1:8545")
"""

from __future__ import annotations

from .http import EthRpcClient, RpcClient, classify_execution_error  # noqa: F401

__all__ = ["RpcClient", "EthRpcClient", "classify_execution_error"]
