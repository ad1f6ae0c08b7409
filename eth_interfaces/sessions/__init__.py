"""
eth_interfaces.sessions
=======================

Verified sessions over token contracts.

- session    : Session (verified binding) and the shared Invoker
- factory    : new_session (verify, liveness probe, bind)
- erc20      : ERC20Session, new_erc20_session
- erc721     : ERC721Session, new_erc721_session
- extensions : per-extension views (enumerable, royalties, burnable, permit)
- compose    : ComposedSession, compose
"""

from __future__ import annotations

from .compose import ComposedSession, compose  # noqa: F401
from .erc20 import ERC20Session, new_erc20_session  # noqa: F401
from .erc721 import ERC721Session, new_erc721_session  # noqa: F401
from .extensions import (ERC20BurnableExtension,  # noqa: F401
                         ERC721BurnableExtension, EnumerableExtension,
                         ExtensionView, PermitExtension, RoyaltiesExtension)
from .factory import new_session  # noqa: F401
from .session import Invoker, Session  # noqa: F401

__all__ = [
    "Session",
    "Invoker",
    "new_session",
    "ERC20Session",
    "new_erc20_session",
    "ERC721Session",
    "new_erc721_session",
    "ComposedSession",
    "compose",
    "ExtensionView",
    "EnumerableExtension",
    "RoyaltiesExtension",
    "ERC20BurnableExtension",
    "ERC721BurnableExtension",
    "PermitExtension",
]
