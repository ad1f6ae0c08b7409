"""
ERC-721 sessions.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

from ..capabilities.capability import Capability, CapabilitySet
from ..capabilities.registry import DEFAULT_REGISTRY, ERC721 as ERC721_STANDARD
from ..capabilities.standards import ERC721
from ..client import ChainClient, TxContext, TxHandle
from ..models import TokenMeta
from ..utils.address import normalize_address
from ..utils.bytes import BytesLike, ensure_bytes
from .factory import new_session
from .session import Session


class ERC721Session(Session):
    """Typed accessors for the ERC-721 surface."""

    def name(self) -> str:
        return self.read(ERC721.NAME)

    def symbol(self) -> str:
        return self.read(ERC721.SYMBOL)

    def token_uri(self, token_id: int) -> str:
        return self.read(ERC721.TOKEN_URI, token_id)

    def balance_of(self, owner: str) -> int:
        return self.read(ERC721.BALANCE_OF, owner)

    def owner_of(self, token_id: int) -> str:
        return self.read(ERC721.OWNER_OF, token_id)

    def get_approved(self, token_id: int) -> str:
        return self.read(ERC721.GET_APPROVED, token_id)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self.read(ERC721.IS_APPROVED_FOR_ALL, owner, operator)

    def supports_interface(self, interface_id: BytesLike) -> bool:
        """ERC-165 query; `interface_id` is 4 bytes (or 0x-hex)."""
        return self.read(ERC721.SUPPORTS_INTERFACE, ensure_bytes(interface_id))

    def approve(self, to: str, token_id: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self.transact(ERC721.APPROVE, to, token_id, tx=tx)

    def set_approval_for_all(self, operator: str, approved: bool, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self.transact(ERC721.SET_APPROVAL_FOR_ALL, operator, approved, tx=tx)

    def transfer_from(self, owner: str, to: str, token_id: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self.transact(ERC721.TRANSFER_FROM, owner, to, token_id, tx=tx)

    def safe_transfer_from(self, owner: str, to: str, token_id: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        return self.transact(ERC721.SAFE_TRANSFER_FROM, owner, to, token_id, tx=tx)

    # ---- convenience ----

    def get_balance(self) -> int:
        """Number of tokens held by the session's own account."""
        return self.balance_of(self.default_account())

    def transfer_to(self, to: str, token_id: int, *, tx: Optional[TxContext] = None) -> TxHandle:
        """
        Transfer `token_id` from the sending account to `to`, after checking
        that the sender owns it. A foreign token fails with CallError without
        sending anything.
        """
        cap = self.require(ERC721.TRANSFER_FROM)
        tx = tx or self.tx_context
        sender = tx.sender if tx is not None else self.default_account()
        owner = self.owner_of(token_id)
        if normalize_address(owner) != sender:
            raise self._call_failed(cap, PermissionError(f"token {token_id} is owned by {owner}, not {sender}"))
        return self.transfer_from(sender, to, token_id, tx=tx)

    def token_meta_infos(self, token_id: Optional[int] = None) -> TokenMeta:
        """Collection name and symbol, plus the token URI when `token_id` is given."""
        uri = self.token_uri(token_id) if token_id is not None else None
        return TokenMeta(name=self.name(), symbol=self.symbol(), uri=uri)


def new_erc721_session(
    client: ChainClient,
    address: str,
    requested: Optional[Union[CapabilitySet, Iterable[Capability]]] = None,
    **kwargs: Any,
) -> ERC721Session:
    """Build an ERC721Session; `requested` defaults to the whole ERC-721 standard."""
    if requested is None:
        requested = DEFAULT_REGISTRY.standard(ERC721_STANDARD)
    return new_session(
        client,
        address,
        requested,
        session_cls=ERC721Session,
        standard=ERC721_STANDARD,
        **kwargs,
    )


__all__ = ["ERC721Session", "new_erc721_session"]
