"""
Error wrapper: turn a raw capability-call failure into a CallError.

`wrap_call_error` is pure. It keeps the original exception (`.cause` and
`__cause__`) and, when the failure was a contract revert, renders the revert
payload as text using the registry's catalogue of known custom errors:

    call error on erc20.Burn(): ERC20InsufficientBalance(0xab…, 0, 1)
"""

from __future__ import annotations

from typing import Mapping, Optional

from .abi import decode_revert
from .capabilities.registry import DEFAULT_REGISTRY
from .errors import CallError, ContractRevert


def revert_reason(
    cause: BaseException,
    known_errors: Optional[Mapping[bytes, str]] = None,
) -> Optional[str]:
    """Readable revert reason for a ContractRevert, None for anything else."""
    if not isinstance(cause, ContractRevert):
        return None
    errors = DEFAULT_REGISTRY.known_errors if known_errors is None else known_errors
    return decode_revert(cause.data, errors) or cause.reason


def wrap_call_error(
    capability_name: str,
    address: str,
    cause: BaseException,
    *,
    known_errors: Optional[Mapping[bytes, str]] = None,
) -> CallError:
    return CallError(
        capability_name,
        address,
        cause,
        reason=revert_reason(cause, known_errors),
    )


__all__ = ["revert_reason", "wrap_call_error"]
