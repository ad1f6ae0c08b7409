"""
eth-interfaces
Verified, capability-typed client sessions for ERC-20 / ERC-721 contracts.
Convenience exports for the most common APIs.
"""

from .version import __version__  # noqa: F401

# Config & errors
from .config import InterfacesConfig  # noqa: F401
from .errors import (  # noqa: F401
    InterfacesError,
    ChainConnectionError,
    SignatureMismatchError,
    ExtensionConflictError,
    CallError,
    UnverifiedCapabilityError,
    UnknownExtensionError,
    AbiError,
    ContractRevert,
    FunctionNotFound,
    RpcError,
    TransactionFailed,
)

# Client contract & default transport
from .client import CallContext, ChainClient, TxContext  # noqa: F401
from .rpc.http import EthRpcClient  # noqa: F401

# Capabilities
from .capabilities import (  # noqa: F401
    Capability,
    CapabilitySet,
    CallKind,
    DEFAULT_REGISTRY,
    SignatureVerifier,
    VerificationResult,
    ProbeOutcome,
)

# Sessions
from .sessions import (  # noqa: F401
    Session,
    ERC20Session,
    ERC721Session,
    ComposedSession,
    new_session,
    new_erc20_session,
    new_erc721_session,
    compose,
)

from .models import TokenMeta, RoyaltyInfo  # noqa: F401
from .wrap import wrap_call_error  # noqa: F401
