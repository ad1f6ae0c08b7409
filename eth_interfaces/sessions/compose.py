"""
eth_interfaces.sessions.compose
===============================

Layer named extension bundles onto a verified session.

    nft = new_erc721_session(client, address)
    full = compose(nft, "erc721.enumerable", "erc721.royalties")
    full.get_all_token_ids()          # enumerable view
    full.royalty_info(1, 10_000)      # royalties view
    full.owner_of(1)                  # forwarded to the base session

`compose` is deterministic in its inputs: the order of extension names does
not matter, duplicates collapse, and failures are reported the same way
whatever the request order.

1. Names are resolved in the registry (UnknownExtensionError otherwise).
2. Every pair among the requested extensions and those already composed onto
   `base` is checked for incompatibility; a conflict raises
   ExtensionConflictError before any network call.
3. All new extension capabilities are verified against the base contract in
   one pass. Missing signatures from all extensions are reported together in a
   single SignatureMismatchError.
4. The ComposedSession holds a reference to the base session (it does not
   copy or subclass it) plus one view per extension.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from .. import metrics
from ..capabilities.capability import CapabilitySet
from ..capabilities.registry import DEFAULT_REGISTRY, Registry
from ..capabilities.verifier import SignatureVerifier
from ..client import CallContext, ChainClient, TxContext
from ..config import DEFAULT as DEFAULT_CONFIG
from ..config import InterfacesConfig
from ..errors import (ExtensionConflictError, SignatureMismatchError,
                      UnknownExtensionError)
from ..utils.address import to_checksum_address
from .extensions import ExtensionView, view_for
from .session import Invoker, Session

log = logging.getLogger(__name__)

# ExtensionView plumbing (name, session, ...) never shadows base operations.
_VIEW_ATTRS = frozenset(dir(ExtensionView))


class ComposedSession(Invoker):
    """
    A base session plus verified extensions.

    Attribute lookup falls through to the extension views (in name order) and
    then to the base session, so `composed.burn(...)` and
    `composed.balance_of(...)` both work. Use `extension(name)` to address a
    view explicitly.
    """

    def __init__(self, base: Session, capabilities: CapabilitySet, extensions: Iterable[str]) -> None:
        object.__setattr__(self, "base", base)
        object.__setattr__(self, "capabilities", capabilities)
        object.__setattr__(self, "extension_names", tuple(sorted(set(extensions))))
        object.__setattr__(
            self,
            "_views",
            MappingProxyType({name: view_for(name, self) for name in self.extension_names}),
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    # ---- base session passthrough ----

    @property
    def client(self) -> ChainClient:  # type: ignore[override]
        return self.base.client

    @property
    def address(self) -> str:  # type: ignore[override]
        return self.base.address

    @property
    def call_context(self) -> CallContext:  # type: ignore[override]
        return self.base.call_context

    @property
    def tx_context(self) -> Optional[TxContext]:  # type: ignore[override]
        return self.base.tx_context

    @property
    def standard(self) -> Optional[str]:
        return self.base.standard

    # ---- extensions ----

    @property
    def views(self) -> Mapping[str, ExtensionView]:
        return self._views

    def has_extension(self, name: str) -> bool:
        return name in self._views

    def extension(self, name: str) -> ExtensionView:
        try:
            return self._views[name]
        except KeyError:
            raise UnknownExtensionError(name) from None

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails.
        if name.startswith("_"):
            raise AttributeError(name)
        for view in self.__dict__.get("_views", {}).values():
            if name not in _VIEW_ATTRS and hasattr(type(view), name):
                return getattr(view, name)
        base = self.__dict__.get("base")
        if base is None:
            raise AttributeError(name)
        return getattr(base, name)

    def __repr__(self) -> str:
        return (
            f"ComposedSession(address={to_checksum_address(self.address)}, standard={self.standard!r}, "
            f"extensions={list(self.extension_names)}, capabilities={len(self.capabilities)})"
        )


def _split(base: Union[Session, ComposedSession]) -> Tuple[Session, Tuple[str, ...], CapabilitySet]:
    if isinstance(base, ComposedSession):
        return base.base, base.extension_names, base.capabilities
    return base, (), base.capabilities


def compose(
    base: Union[Session, ComposedSession],
    *names: str,
    registry: Registry = DEFAULT_REGISTRY,
    verifier: Optional[SignatureVerifier] = None,
    config: Optional[InterfacesConfig] = None,
) -> ComposedSession:
    """
    Verify the named extensions against `base`'s contract and merge them in.

    `config` sets the verification concurrency (`verify_workers`); it defaults
    to the environment config, like `new_session`.

    Raises
    ------
    UnknownExtensionError   a name is not registered
    ExtensionConflictError  two of the extensions (requested or already composed) are incompatible
    SignatureMismatchError  missing signatures across all requested extensions, sorted
    ChainConnectionError    transport failure during verification
    """
    root, existing, current = _split(base)
    requested = registry.resolve(names)
    all_names = set(existing) | {ext.name for ext in requested}

    conflict = registry.first_conflict(all_names)
    if conflict is not None:
        log.warning("extension_conflict", extra={"address": root.address, "extensions": list(conflict)})
        raise ExtensionConflictError(*conflict)

    new_exts = [ext for ext in requested if ext.name not in existing]
    to_verify = CapabilitySet().union(*(ext.capabilities for ext in new_exts)) - current

    if to_verify:
        verifier = verifier or SignatureVerifier(
            root.client,
            call_context=root.call_context,
            max_workers=(config or DEFAULT_CONFIG).verify_workers,
        )
        result = verifier.verify(root.address, to_verify)
        if not result.ok:
            missing = set(result.missing_signatures)
            by_extension = {
                ext.name: [c.signature for c in ext.capabilities if c.signature in missing]
                for ext in new_exts
            }
            log.warning(
                "compose_rejected",
                extra={"address": root.address, "missing": sorted(missing)},
            )
            raise SignatureMismatchError(
                root.address,
                result.missing_signatures,
                by_extension={k: v for k, v in by_extension.items() if v},
            )

    merged = current.union(*(ext.capabilities for ext in new_exts))
    composed = ComposedSession(root, merged, all_names)
    metrics.SESSIONS_TOTAL.labels(kind="composed").inc()
    log.info(
        "session_composed",
        extra={
            "address": root.address,
            "extensions": list(composed.extension_names),
            "capabilities": len(merged),
        },
    )
    return composed


__all__ = ["ComposedSession", "compose"]
