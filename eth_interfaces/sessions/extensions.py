"""
Extension views.

A view exposes the operations of one extension on top of an invoker (in
practice the ComposedSession it belongs to). Views hold no state of their own
beyond that reference, so every call goes through the invoker's verified-set
check and error wrapping.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Type

from ..capabilities import registry as reg
from ..capabilities.standards import (ERC20Burnable, ERC20Permit, ERC721Burnable,
                                      ERC721Enumerable, ERC721Royalties)
from ..client import TxContext, TxHandle
from ..models import RoyaltyInfo
from .session import Invoker


class ExtensionView:
    name: str = ""

    def __init__(self, session: Invoker) -> None:
        self._session = session

    @property
    def session(self) -> Invoker:
        return self._session

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self._session.address})"


class EnumerableExtension(ExtensionView):
    name = reg.ERC721_ENUMERABLE

    def total_supply(self) -> int:
        return self._session.read(ERC721Enumerable.TOTAL_SUPPLY)

    def token_by_index(self, index: int) -> int:
        return self._session.read(ERC721Enumerable.TOKEN_BY_INDEX, index)

    def token_of_owner_by_index(self, owner: str, index: int) -> int:
        return self._session.read(ERC721Enumerable.TOKEN_OF_OWNER_BY_INDEX, owner, index)

    def get_address_owned_tokens(self, owner: str) -> List[int]:
        """All token ids held by `owner`: balanceOf, then one indexed lookup per token."""
        balance = self._session.read(ERC721Enumerable.BALANCE_OF, owner)
        return [self.token_of_owner_by_index(owner, i) for i in range(balance)]

    def get_all_token_ids(self) -> List[int]:
        """Every token id in the collection, in index order."""
        return [self.token_by_index(i) for i in range(self.total_supply())]


class RoyaltiesExtension(ExtensionView):
    name = reg.ERC721_ROYALTIES

    def royalty_info(self, token_id: int, sale_price: int) -> RoyaltyInfo:
        receiver, amount = self._session.read(ERC721Royalties.ROYALTY_INFO, token_id, sale_price)
        return RoyaltyInfo(receiver=receiver, amount=amount)


class ERC20BurnableExtension(ExtensionView):
    name = reg.ERC20_BURNABLE

    def burn(self, amount: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self._session.transact(ERC20Burnable.BURN, amount, tx=tx)

    def burn_from(self, owner: str, amount: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self._session.transact(ERC20Burnable.BURN_FROM, owner, amount, tx=tx)


class ERC721BurnableExtension(ExtensionView):
    name = reg.ERC721_BURNABLE

    def burn(self, token_id: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self._session.transact(ERC721Burnable.BURN, token_id, tx=tx)


class PermitExtension(ExtensionView):
    """EIP-2612. Signatures are produced elsewhere; this only submits them."""

    name = reg.ERC20_PERMIT

    def nonces(self, owner: str) -> int:
        return self._session.read(ERC20Permit.NONCES, owner)

    def domain_separator(self) -> bytes:
        return self._session.read(ERC20Permit.DOMAIN_SEPARATOR)

    def permit(
        self,
        owner: str,
        spender: str,
        value: int,
        deadline: int,
        v: int,
        r: bytes,
        s: bytes,
        *,
        tx: Optional[TxContext] = None,
    ) -> TxHandle:
        return self._session.transact(ERC20Permit.PERMIT, owner, spender, value, deadline, v, r, s, tx=tx)


VIEWS: Dict[str, Type[ExtensionView]] = {
    cls.name: cls
    for cls in (
        EnumerableExtension,
        RoyaltiesExtension,
        ERC20BurnableExtension,
        ERC721BurnableExtension,
        PermitExtension,
    )
}


def view_for(name: str, session: Invoker) -> ExtensionView:
    """View for a registered extension; extensions without operations get a bare view."""
    cls = VIEWS.get(name)
    if cls is None:
        view = ExtensionView(session)
        view.name = name
        return view
    return cls(session)


__all__ = [
    "ExtensionView",
    "EnumerableExtension",
    "RoyaltiesExtension",
    "ERC20BurnableExtension",
    "ERC721BurnableExtension",
    "PermitExtension",
    "VIEWS",
    "view_for",
]
