"""
eth_interfaces.errors
---------------------

Exception hierarchy for capability verification, session construction and
capability invocation.

Every error carries a stable, upper-snake `code`, a single-line `message`,
structured `details` safe for logs, and a `retryable` hint. Callers can catch
a specific failure mode or the base `InterfacesError`.

Four kinds matter to callers of sessions:

- ChainConnectionError   transport/RPC failure, unrelated to contract semantics
- SignatureMismatchError the contract does not implement requested signatures
- ExtensionConflictError two requested extensions are mutually incompatible
- CallError              a verified capability failed at call time

`ContractRevert` / `FunctionNotFound` are the vocabulary a chain client uses
to report what the contract did with a call; the verifier and the error
wrapper translate them into the kinds above.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple


class InterfacesError(Exception):
    """
    Base class for all package errors.

    Attributes
    ----------
    code : str
        Stable, upper-snake ASCII identifier.
    message : str
        Human-friendly explanation.
    details : dict
        Structured data safe to log.
    retryable : bool
        Hint to callers whether retrying later *might* succeed.
    """

    code: str = "INTERFACES_ERROR"

    def __init__(
        self,
        message: str = "eth-interfaces error",
        *,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})
        self.retryable = bool(retryable)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
        }

    def __str__(self) -> str:
        return self.message


# --- client signals ------------------------------------------------------------


class ContractRevert(InterfacesError):
    """
    The contract recognized the call and reverted.

    `data` is the raw revert payload (may be empty), `reason` whatever text the
    node attached to the failure.
    """

    code = "CONTRACT_REVERT"

    def __init__(self, data: bytes = b"", *, reason: Optional[str] = None) -> None:
        self.data = bytes(data)
        self.reason = reason
        msg = reason or "execution reverted"
        if self.data:
            msg = f"{msg} (data=0x{self.data.hex()})"
        super().__init__(msg, details={"data": "0x" + self.data.hex(), "reason": reason})


class FunctionNotFound(ContractRevert):
    """The contract has no function for the call's selector."""

    code = "FUNCTION_NOT_FOUND"

    def __init__(self, selector: bytes = b"", *, reason: Optional[str] = None) -> None:
        self.selector = bytes(selector)
        super().__init__(b"", reason=reason or "function selector was not recognized")
        if self.selector:
            self.details["selector"] = "0x" + self.selector.hex()


class RpcError(InterfacesError):
    """The node answered a JSON-RPC request with an error object."""

    code = "RPC_ERROR"

    def __init__(
        self,
        *,
        method: Optional[str],
        rpc_code: int,
        message: str,
        data: Any = None,
    ) -> None:
        self.method = method
        self.rpc_code = int(rpc_code)
        self.data = data
        self.rpc_message = message
        super().__init__(
            f"RPC[{method or '-'}] code={rpc_code} msg={message!r}",
            details={"method": method, "rpc_code": self.rpc_code, "data": data},
        )


class TransactionFailed(InterfacesError):
    """A transaction was mined but its receipt reports failure."""

    code = "TRANSACTION_FAILED"

    def __init__(self, tx_hash: str, *, receipt: Optional[Mapping[str, Any]] = None) -> None:
        self.tx_hash = tx_hash
        self.receipt = dict(receipt or {})
        super().__init__(f"transaction {tx_hash} reverted", details={"tx_hash": tx_hash})


class AbiError(InterfacesError):
    """ABI encoding/decoding or validation failed."""

    code = "ABI_ERROR"

    def __init__(self, message: str, *, type_str: Optional[str] = None) -> None:
        self.type_str = type_str
        super().__init__(message, details={"type": type_str} if type_str else None)


# --- the caller-facing taxonomy ---------------------------------------------------


class ChainConnectionError(InterfacesError):
    """
    Transport/RPC failure unrelated to contract semantics (refused connection,
    timeout, cancellation, malformed node response). Never retried by the core.
    """

    code = "CONNECTION_ERROR"

    def __init__(self, message: str = "chain client unavailable", *, operation: Optional[str] = None) -> None:
        self.operation = operation
        super().__init__(message, details={"operation": operation}, retryable=True)


class SignatureMismatchError(InterfacesError):
    """
    The contract does not answer some requested signatures.

    `missing` is sorted by canonical signature. When raised by the extension
    composer, `by_extension` maps each extension name to its own missing
    signatures.
    """

    code = "SIGNATURE_MISMATCH"

    def __init__(
        self,
        address: str,
        missing: Sequence[str],
        *,
        by_extension: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        self.address = address
        self.missing: Tuple[str, ...] = tuple(sorted(missing))
        self.by_extension: Dict[str, Tuple[str, ...]] = {
            name: tuple(sorted(sigs)) for name, sigs in sorted((by_extension or {}).items())
        }
        super().__init__(
            f"contract {address} does not implement the requested interface, "
            f"not supported functions: {', '.join(self.missing)}",
            details={"address": address, "missing": list(self.missing)},
        )


class ExtensionConflictError(InterfacesError):
    """Two requested extensions declare each other incompatible."""

    code = "EXTENSION_CONFLICT"

    def __init__(self, first: str, second: str) -> None:
        a, b = sorted((first, second))
        self.extensions: Tuple[str, str] = (a, b)
        super().__init__(
            f"extensions {a!r} and {b!r} cannot be composed together",
            details={"extensions": [a, b]},
        )


class UnknownExtensionError(InterfacesError, KeyError):
    """A standard or extension name is not in the registry."""

    code = "UNKNOWN_EXTENSION"

    def __init__(self, name: str, *, kind: str = "extension") -> None:
        self.name = name
        InterfacesError.__init__(self, f"unknown {kind}: {name!r}", details={"name": name, "kind": kind})

    def __str__(self) -> str:
        return self.message


class CallError(InterfacesError):
    """
    A verified capability failed when invoked.

    The session stays usable. `cause` is the original failure (also chained as
    `__cause__`), `reason` the decoded revert reason when there was one.
    """

    code = "CALL_ERROR"

    def __init__(
        self,
        capability: str,
        address: str,
        cause: BaseException,
        *,
        reason: Optional[str] = None,
    ) -> None:
        self.capability = capability
        self.address = address
        self.cause = cause
        self.reason = reason or str(cause) or type(cause).__name__
        super().__init__(
            f"call error on {capability}: {self.reason}",
            details={
                "capability": capability,
                "address": address,
                "cause": type(cause).__name__,
            },
        )
        self.__cause__ = cause


class UnverifiedCapabilityError(InterfacesError):
    """
    Programming error: a capability outside the session's verified set was
    invoked. Raised before any network activity.
    """

    code = "UNVERIFIED_CAPABILITY"

    def __init__(self, signature: str, address: str) -> None:
        self.signature = signature
        self.address = address
        super().__init__(
            f"{signature} was not verified for contract {address}; "
            "request it when building the session",
            details={"signature": signature, "address": address},
        )


__all__ = [
    "InterfacesError",
    "ContractRevert",
    "FunctionNotFound",
    "RpcError",
    "TransactionFailed",
    "AbiError",
    "ChainConnectionError",
    "SignatureMismatchError",
    "ExtensionConflictError",
    "UnknownExtensionError",
    "CallError",
    "UnverifiedCapabilityError",
]
