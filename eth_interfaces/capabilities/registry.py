"""
eth_interfaces.capabilities.registry
====================================

Static catalogue of capability sets: one per base standard ("erc20",
"erc721") and one per optional extension ("erc721.enumerable", ...), plus the
custom revert errors the error wrapper knows how to render.

A Registry is built once and never mutated. `DEFAULT_REGISTRY` is the
process-wide instance built at import; sessions and the composer only read
from it. Every selector is derived from its signature string, so two
independently built registries never disagree.

Canonical names
---------------
standards   : erc20, erc721
extensions  : erc20.burnable, erc20.permit,
              erc721.enumerable, erc721.royalties, erc721.burnable
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import combinations
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple

from ..abi import canonical_signature, error_selector
from ..errors import UnknownExtensionError
from . import standards as std
from .capability import Capability, CapabilitySet

log = logging.getLogger(__name__)

ERC20 = "erc20"
ERC721 = "erc721"

ERC20_BURNABLE = "erc20.burnable"
ERC20_PERMIT = "erc20.permit"
ERC721_ENUMERABLE = "erc721.enumerable"
ERC721_ROYALTIES = "erc721.royalties"
ERC721_BURNABLE = "erc721.burnable"


@dataclass(frozen=True)
class Extension:
    """A named, optional capability bundle."""

    name: str
    capabilities: CapabilitySet
    incompatible_with: FrozenSet[str] = field(default_factory=frozenset)
    standard: Optional[str] = None
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("extension name must be non-empty")
        object.__setattr__(self, "incompatible_with", frozenset(self.incompatible_with))
        if self.name in self.incompatible_with:
            raise ValueError(f"extension {self.name!r} cannot be incompatible with itself")


class Registry:
    """
    Read-only lookup of standards, extensions and known errors.

    Incompatibility is symmetric: if either extension lists the other, the
    pair conflicts.
    """

    def __init__(
        self,
        standards: Mapping[str, CapabilitySet],
        extensions: Iterable[Extension] = (),
        errors: Iterable[str] = (),
    ) -> None:
        ext_map: Dict[str, Extension] = {}
        for ext in extensions:
            if ext.name in ext_map:
                raise ValueError(f"duplicate extension: {ext.name!r}")
            if ext.name in standards:
                raise ValueError(f"extension name shadows a standard: {ext.name!r}")
            ext_map[ext.name] = ext

        pairs = set()
        for ext in ext_map.values():
            if ext.standard is not None and ext.standard not in standards:
                raise ValueError(f"extension {ext.name!r} extends unknown standard {ext.standard!r}")
            for other in ext.incompatible_with:
                if other not in ext_map:
                    raise ValueError(f"extension {ext.name!r} declares unknown incompatibility {other!r}")
                pairs.add(frozenset((ext.name, other)))

        self._standards: Mapping[str, CapabilitySet] = MappingProxyType(dict(sorted(standards.items())))
        self._extensions: Mapping[str, Extension] = MappingProxyType(dict(sorted(ext_map.items())))
        self._conflicts: FrozenSet[FrozenSet[str]] = frozenset(pairs)
        self._errors: Mapping[bytes, str] = MappingProxyType(
            {error_selector(sig): canonical_signature(sig) for sig in errors}
        )

        log.debug(
            "registry_built",
            extra={
                "standards": list(self._standards),
                "extensions": list(self._extensions),
                "errors": len(self._errors),
            },
        )

    # ---- standards ----

    def standard_names(self) -> Tuple[str, ...]:
        return tuple(self._standards)

    def standard(self, name: str) -> CapabilitySet:
        try:
            return self._standards[name]
        except KeyError:
            raise UnknownExtensionError(name, kind="standard") from None

    # ---- extensions ----

    def extension_names(self) -> Tuple[str, ...]:
        return tuple(self._extensions)

    def extension(self, name: str) -> Extension:
        try:
            return self._extensions[name]
        except KeyError:
            raise UnknownExtensionError(name) from None

    def resolve(self, names: Sequence[str]) -> Tuple[Extension, ...]:
        """Look up several extensions; duplicates collapse and the result is sorted by name."""
        return tuple(self.extension(n) for n in sorted(set(names)))

    def conflicts(self, a: str, b: str) -> bool:
        return frozenset((a, b)) in self._conflicts

    def first_conflict(self, names: Iterable[str]) -> Optional[Tuple[str, str]]:
        """The first conflicting pair in sorted order, or None."""
        for a, b in combinations(sorted(set(names)), 2):
            if self.conflicts(a, b):
                return a, b
        return None

    # ---- lookups ----

    def capability(self, signature: str) -> Optional[Capability]:
        """Find a catalogued capability by signature (standards first, then extensions)."""
        for caps in self._standards.values():
            found = caps.get(signature)
            if found is not None:
                return found
        for ext in self._extensions.values():
            found = ext.capabilities.get(signature)
            if found is not None:
                return found
        return None

    @property
    def known_errors(self) -> Mapping[bytes, str]:
        """4-byte error selector -> canonical error signature."""
        return self._errors


def build_default_registry() -> Registry:
    return Registry(
        standards={
            ERC20: std.members(std.ERC20),
            ERC721: std.members(std.ERC721),
        },
        extensions=(
            Extension(
                ERC20_BURNABLE,
                std.members(std.ERC20Burnable),
                incompatible_with=frozenset({ERC721_BURNABLE}),
                standard=ERC20,
                description="ERC20Burnable: burn(amount), burnFrom(owner, amount)",
            ),
            Extension(
                ERC20_PERMIT,
                std.members(std.ERC20Permit),
                standard=ERC20,
                description="EIP-2612 signed approvals",
            ),
            Extension(
                ERC721_ENUMERABLE,
                std.members(std.ERC721Enumerable),
                standard=ERC721,
                description="ERC721Enumerable: index-based token listing",
            ),
            Extension(
                ERC721_ROYALTIES,
                std.members(std.ERC721Royalties),
                standard=ERC721,
                description="EIP-2981 royalty info",
            ),
            Extension(
                ERC721_BURNABLE,
                std.members(std.ERC721Burnable),
                incompatible_with=frozenset({ERC20_BURNABLE}),
                standard=ERC721,
                description="ERC721Burnable: burn(tokenId)",
            ),
        ),
        errors=std.KNOWN_ERRORS,
    )


DEFAULT_REGISTRY = build_default_registry()


__all__ = [
    "ERC20",
    "ERC721",
    "ERC20_BURNABLE",
    "ERC20_PERMIT",
    "ERC721_ENUMERABLE",
    "ERC721_ROYALTIES",
    "ERC721_BURNABLE",
    "Extension",
    "Registry",
    "build_default_registry",
    "DEFAULT_REGISTRY",
]
