"""
eth_interfaces.capabilities
===========================

Capability model, the static registry of standards/extensions, and the
signature verifier.

Submodules
----------
- capability : Capability, CapabilitySet, CallKind
- standards  : capability constants per standard/extension, known errors
- registry   : Extension, Registry, DEFAULT_REGISTRY
- verifier   : SignatureVerifier, VerificationResult, ProbeOutcome
"""

from __future__ import annotations

from .capability import CallKind, Capability, CapabilitySet  # noqa: F401
from .registry import DEFAULT_REGISTRY, Extension, Registry  # noqa: F401
from .standards import (ERC20, ERC721, ERC20Burnable, ERC20Permit,  # noqa: F401
                        ERC721Burnable, ERC721Enumerable, ERC721Royalties)
from .verifier import ProbeOutcome, SignatureVerifier, VerificationResult  # noqa: F401

__all__ = [
    "CallKind",
    "Capability",
    "CapabilitySet",
    "DEFAULT_REGISTRY",
    "Extension",
    "Registry",
    "ERC20",
    "ERC20Burnable",
    "ERC20Permit",
    "ERC721",
    "ERC721Burnable",
    "ERC721Enumerable",
    "ERC721Royalties",
    "ProbeOutcome",
    "SignatureVerifier",
    "VerificationResult",
]
