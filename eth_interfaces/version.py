"""
Version of the eth-interfaces package.

Bump `__version__` when publishing; it is also embedded in the HTTP
User-Agent sent by `eth_interfaces.rpc.http`.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
