"""
Canonical capabilities of the supported token standards and extensions.

Each class is a namespace of Capability constants; `members()` turns one into
a CapabilitySet. Labels follow the `<family>.<Function>()` form used in
CallError messages, e.g. "call error on erc20.Burn(): ...".
"""

from __future__ import annotations

from typing import Tuple

from .capability import Capability, CapabilitySet, read, write


class ERC20:
    NAME = read("name()", "erc20.Name()", ["string"])
    SYMBOL = read("symbol()", "erc20.Symbol()", ["string"])
    DECIMALS = read("decimals()", "erc20.Decimals()", ["uint8"])
    TOTAL_SUPPLY = read("totalSupply()", "erc20.TotalSupply()", ["uint256"])
    BALANCE_OF = read("balanceOf(address)", "erc20.BalanceOf()", ["uint256"])
    ALLOWANCE = read("allowance(address,address)", "erc20.Allowance()", ["uint256"])
    TRANSFER = write("transfer(address,uint256)", "erc20.Transfer()", ["bool"])
    APPROVE = write("approve(address,uint256)", "erc20.Approve()", ["bool"])
    TRANSFER_FROM = write("transferFrom(address,address,uint256)", "erc20.TransferFrom()", ["bool"])


class ERC20Burnable:
    BURN = write("burn(uint256)", "erc20.Burn()")
    BURN_FROM = write("burnFrom(address,uint256)", "erc20.BurnFrom()")


class ERC20Permit:
    # EIP-2612
    PERMIT = write(
        "permit(address,address,uint256,uint256,uint8,bytes32,bytes32)",
        "erc20.Permit()",
    )
    NONCES = read("nonces(address)", "erc20.Nonces()", ["uint256"])
    DOMAIN_SEPARATOR = read("DOMAIN_SEPARATOR()", "erc20.DomainSeparator()", ["bytes32"])


class ERC721:
    NAME = read("name()", "nft.Name()", ["string"])
    SYMBOL = read("symbol()", "nft.Symbol()", ["string"])
    TOKEN_URI = read("tokenURI(uint256)", "nft.TokenURI()", ["string"])
    BALANCE_OF = read("balanceOf(address)", "nft.BalanceOf()", ["uint256"])
    OWNER_OF = read("ownerOf(uint256)", "nft.OwnerOf()", ["address"])
    GET_APPROVED = read("getApproved(uint256)", "nft.GetApproved()", ["address"])
    IS_APPROVED_FOR_ALL = read("isApprovedForAll(address,address)", "nft.IsApprovedForAll()", ["bool"])
    SUPPORTS_INTERFACE = read("supportsInterface(bytes4)", "nft.SupportsInterface()", ["bool"])
    APPROVE = write("approve(address,uint256)", "nft.Approve()")
    SET_APPROVAL_FOR_ALL = write("setApprovalForAll(address,bool)", "nft.SetApprovalForAll()")
    TRANSFER_FROM = write("transferFrom(address,address,uint256)", "nft.TransferFrom()")
    SAFE_TRANSFER_FROM = write("safeTransferFrom(address,address,uint256)", "nft.SafeTransferFrom()")


class ERC721Enumerable:
    # IERC721Enumerable extends IERC721; owner listing needs balanceOf.
    BALANCE_OF = ERC721.BALANCE_OF
    TOTAL_SUPPLY = read("totalSupply()", "nft.TotalSupply()", ["uint256"])
    TOKEN_BY_INDEX = read("tokenByIndex(uint256)", "nft.TokenByIndex()", ["uint256"])
    TOKEN_OF_OWNER_BY_INDEX = read(
        "tokenOfOwnerByIndex(address,uint256)", "nft.TokenOfOwnerByIndex()", ["uint256"]
    )


class ERC721Royalties:
    # EIP-2981
    ROYALTY_INFO = read("royaltyInfo(uint256,uint256)", "nft.RoyaltyInfo()", ["address", "uint256"])


class ERC721Burnable:
    BURN = write("burn(uint256)", "nft.Burn()")


def members(namespace: type) -> CapabilitySet:
    """All Capability constants declared on a namespace class."""
    return CapabilitySet(v for v in vars(namespace).values() if isinstance(v, Capability))


# OpenZeppelin v5 custom errors (IERC6093, ERC-2612). Used to render revert
# payloads in CallError messages.
KNOWN_ERRORS: Tuple[str, ...] = (
    "ERC20InsufficientBalance(address,uint256,uint256)",
    "ERC20InvalidSender(address)",
    "ERC20InvalidReceiver(address)",
    "ERC20InsufficientAllowance(address,uint256,uint256)",
    "ERC20InvalidApprover(address)",
    "ERC20InvalidSpender(address)",
    "ERC721InvalidOwner(address)",
    "ERC721NonexistentToken(uint256)",
    "ERC721IncorrectOwner(address,uint256,address)",
    "ERC721InvalidSender(address)",
    "ERC721InvalidReceiver(address)",
    "ERC721InsufficientApproval(address,uint256)",
    "ERC721InvalidApprover(address)",
    "ERC721InvalidOperator(address)",
    "ERC721OutOfBoundsIndex(address,uint256)",
    "ERC721EnumerableForbiddenBatchMint()",
    "ERC2612ExpiredSignature(uint256)",
    "ERC2612InvalidSigner(address,address)",
    "OwnableUnauthorizedAccount(address)",
)


__all__ = [
    "ERC20",
    "ERC20Burnable",
    "ERC20Permit",
    "ERC721",
    "ERC721Enumerable",
    "ERC721Royalties",
    "ERC721Burnable",
    "KNOWN_ERRORS",
    "members",
]
