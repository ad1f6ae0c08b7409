"""
eth_interfaces.capabilities.capability
======================================

A Capability is one verifiable contract function: its canonical signature,
the 4-byte selector derived from it, whether calling it mutates state, and a
human label used in error messages.

A CapabilitySet is an immutable collection of capabilities keyed by selector.
Iteration order is canonical-signature order, so anything derived from a set
(error messages, logs, verification results) is reproducible regardless of
how the set was assembled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence, Tuple, Union

from ..abi import canonical_type, encode_call, parse_signature
from ..errors import AbiError
from ..utils.hash import selector as _selector


class CallKind(str, Enum):
    READ = "read"  # answered by eth_call, no state change
    WRITE = "write"  # requires a transaction


@dataclass(frozen=True)
class Capability:
    """
    One contract function.

    Equality and hashing use the canonical signature only: two capabilities
    with the same signature are interchangeable whatever their labels.
    """

    signature: str
    kind: CallKind = field(default=CallKind.READ, compare=False)
    label: str = field(default="", compare=False)
    outputs: Tuple[str, ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        name, inputs = parse_signature(self.signature)
        object.__setattr__(self, "signature", f"{name}({','.join(inputs)})")
        object.__setattr__(self, "kind", CallKind(self.kind))
        object.__setattr__(self, "outputs", tuple(canonical_type(t) for t in self.outputs))
        if not self.label:
            object.__setattr__(self, "label", f"{name}()")

    @property
    def name(self) -> str:
        return self.signature.split("(", 1)[0]

    @property
    def inputs(self) -> Tuple[str, ...]:
        return parse_signature(self.signature)[1]

    @property
    def selector(self) -> bytes:
        return _selector(self.signature)

    @property
    def selector_hex(self) -> str:
        return "0x" + self.selector.hex()

    @property
    def mutates(self) -> bool:
        return self.kind is CallKind.WRITE

    def encode(self, args: Sequence[Any]) -> bytes:
        return encode_call(self.selector, self.inputs, list(args))

    def __str__(self) -> str:
        return self.signature


def read(signature: str, label: str = "", outputs: Sequence[str] = ()) -> Capability:
    return Capability(signature, CallKind.READ, label, tuple(outputs))


def write(signature: str, label: str = "", outputs: Sequence[str] = ()) -> Capability:
    return Capability(signature, CallKind.WRITE, label, tuple(outputs))


CapabilityLike = Union[Capability, str]


def _sort_key(cap: Capability) -> Tuple[str, str, str]:
    return (cap.signature, cap.kind.value, cap.label)


class CapabilitySet:
    """
    Immutable set of capabilities, deduplicated by selector.

    If two members share a selector, the one with the smallest
    (signature, kind, label) wins, which keeps `|` commutative.
    """

    __slots__ = ("_by_selector",)

    def __init__(self, capabilities: Iterable[Capability] = ()) -> None:
        merged: Dict[bytes, Capability] = {}
        for cap in capabilities:
            if not isinstance(cap, Capability):
                raise TypeError(f"CapabilitySet members must be Capability, got {type(cap).__name__}")
            prev = merged.get(cap.selector)
            if prev is None or _sort_key(cap) < _sort_key(prev):
                merged[cap.selector] = cap
        ordered = sorted(merged.values(), key=_sort_key)
        object.__setattr__(self, "_by_selector", {c.selector: c for c in ordered})

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("CapabilitySet is immutable")

    # ---- set protocol ----

    def __iter__(self) -> Iterator[Capability]:
        return iter(self._by_selector.values())

    def __len__(self) -> int:
        return len(self._by_selector)

    def __bool__(self) -> bool:
        return bool(self._by_selector)

    def __contains__(self, item: object) -> bool:
        return self.get(item) is not None  # type: ignore[arg-type]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CapabilitySet):
            return NotImplemented
        return self.signatures() == other.signatures()

    def __hash__(self) -> int:
        return hash(self.signatures())

    def __or__(self, other: "CapabilitySet") -> "CapabilitySet":
        return self.union(other)

    def __sub__(self, other: "CapabilitySet") -> "CapabilitySet":
        return CapabilitySet(c for c in self if c not in other)

    def __repr__(self) -> str:
        return f"CapabilitySet({list(self.signatures())!r})"

    # ---- queries ----

    def get(self, item: CapabilityLike) -> Optional[Capability]:
        """Find the member matching a Capability, a signature string or a 4-byte selector."""
        if isinstance(item, Capability):
            key = item.selector
        elif isinstance(item, str):
            try:
                key = _selector(Capability(item).signature)
            except AbiError:
                return None
        elif isinstance(item, (bytes, bytearray)):
            key = bytes(item)
        else:
            return None
        return self._by_selector.get(key)

    def union(self, *others: "CapabilitySet") -> "CapabilitySet":
        caps = list(self)
        for other in others:
            caps.extend(other)
        return CapabilitySet(caps)

    def signatures(self) -> Tuple[str, ...]:
        """Canonical signatures in sorted order."""
        return tuple(c.signature for c in self)

    def selectors(self) -> Tuple[bytes, ...]:
        return tuple(self._by_selector.keys())


__all__ = [
    "CallKind",
    "Capability",
    "CapabilityLike",
    "CapabilitySet",
    "read",
    "write",
]
