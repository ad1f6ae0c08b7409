"""
ERC-20 sessions.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

from ..capabilities.capability import Capability, CapabilitySet
from ..capabilities.registry import DEFAULT_REGISTRY, ERC20 as ERC20_STANDARD
from ..capabilities.standards import ERC20
from ..client import ChainClient, TxContext, TxHandle
from ..models import TokenMeta
from .factory import new_session
from .session import Session


class ERC20Session(Session):
    """Typed accessors for the ERC-20 surface. Each one requires its capability to be verified."""

    def name(self) -> str:
        return self.read(ERC20.NAME)

    def symbol(self) -> str:
        return self.read(ERC20.SYMBOL)

    def decimals(self) -> int:
        return self.read(ERC20.DECIMALS)

    def total_supply(self) -> int:
        return self.read(ERC20.TOTAL_SUPPLY)

    def balance_of(self, owner: str) -> int:
        return self.read(ERC20.BALANCE_OF, owner)

    def allowance(self, owner: str, spender: str) -> int:
        return self.read(ERC20.ALLOWANCE, owner, spender)

    def transfer(self, to: str, amount: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self.transact(ERC20.TRANSFER, to, amount, tx=tx)

    def approve(self, spender: str, amount: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self.transact(ERC20.APPROVE, spender, amount, tx=tx)

    def transfer_from(self, owner: str, to: str, amount: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self.transact(ERC20.TRANSFER_FROM, owner, to, amount, tx=tx)

    # ---- convenience ----

    def get_balance(self) -> int:
        """Balance of the session's own account."""
        return self.balance_of(self.default_account())

    def transfer_to(self, to: str, amount: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self.transfer(to, amount, tx=tx)

    def token_meta_infos(self) -> TokenMeta:
        return TokenMeta(name=self.name(), symbol=self.symbol())


def new_erc20_session(
    client: ChainClient,
    address: str,
    requested: Optional[Union[CapabilitySet, Iterable[Capability]]] = None,
    **kwargs: Any,
) -> ERC20Session:
    """Build an ERC20Session; `requested` defaults to the whole ERC-20 standard."""
    if requested is None:
        requested = DEFAULT_REGISTRY.standard(ERC20_STANDARD)
    return new_session(
        client,
        address,
        requested,
        session_cls=ERC20Session,
        standard=ERC20_STANDARD,
        **kwargs,
    )


__all__ = ["ERC20Session", "new_erc20_session"]
