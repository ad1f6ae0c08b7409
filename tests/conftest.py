import copy
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Set, Tuple

import pytest

from eth_interfaces.abi import decode, encode, encode_error, parse_signature
from eth_interfaces.client import TxContext
from eth_interfaces.config import InterfacesConfig
from eth_interfaces.errors import ChainConnectionError, ContractRevert, FunctionNotFound
from eth_interfaces.utils.address import ZERO_ADDRESS, normalize_address
from eth_interfaces.utils.hash import selector

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
CAROL = "0x" + "c4" * 20


class Revert(Exception):
    """Raised by fake contract handlers; becomes ContractRevert(payload)."""

    def __init__(self, error_sig: str, *args: Any) -> None:
        super().__init__(error_sig)
        self.payload = encode_error(error_sig, *args)


@dataclass
class Fn:
    inputs: Tuple[str, ...]
    outputs: Optional[Tuple[str, ...]]  # None: handler returns raw bytes
    handler: Callable[..., Any]


class FakeContract:
    """
    In-memory contract: a state dict plus functions keyed by selector.

    Handlers are called as handler(state, sender, *args) and return the
    decoded return value(s).
    """

    def __init__(self, state: Dict[str, Any]) -> None:
        self.state = state
        self.functions: Dict[bytes, Fn] = {}

    def fn(self, signature: str, outputs: Optional[Sequence[str]], handler: Callable[..., Any]) -> "FakeContract":
        name, inputs = parse_signature(signature)
        canonical = f"{name}({','.join(inputs)})"
        self.functions[selector(canonical)] = Fn(inputs, None if outputs is None else tuple(outputs), handler)
        return self

    def drop(self, signature: str) -> "FakeContract":
        name, inputs = parse_signature(signature)
        self.functions.pop(selector(f"{name}({','.join(inputs)})"), None)
        return self

    def execute(self, state: Dict[str, Any], sender: str, data: bytes) -> bytes:
        sel = data[:4]
        fn = self.functions.get(sel)
        if fn is None:
            raise FunctionNotFound(sel)
        args = decode(fn.inputs, data[4:])
        try:
            ret = fn.handler(state, sender, *args)
        except Revert as r:
            raise ContractRevert(r.payload, reason="execution reverted") from None
        if fn.outputs is None:
            return ret
        if not fn.outputs:
            return b""
        if len(fn.outputs) == 1:
            ret = (ret,)
        return encode(fn.outputs, list(ret))


class FakeChain:
    """
    ChainClient backed by FakeContracts. eth_call runs against a copy of the
    contract state; send_transaction mutates it.
    """

    CHAIN_ID = 31337

    def __init__(self) -> None:
        self.contracts: Dict[str, FakeContract] = {}
        self.offline = False
        self.failing_selectors: Set[bytes] = set()
        self.calls = 0
        self.code_requests = 0
        self.transactions = []
        self._lock = threading.Lock()
        self._next = 1

    def deploy(self, contract: FakeContract) -> str:
        with self._lock:
            address = "0x" + f"{0xC0DE0000 + self._next:040x}"
            self._next += 1
        self.contracts[address] = contract
        return address

    @property
    def network_activity(self) -> int:
        return self.calls + self.code_requests + len(self.transactions)

    def _check_online(self, op: str) -> None:
        if self.offline:
            raise ChainConnectionError("connection refused", operation=op)

    # --- ChainClient ---

    def call(self, address, data, *, sender=None, block="pending", timeout=None) -> bytes:
        with self._lock:
            self.calls += 1
        self._check_online("call")
        if data[:4] in self.failing_selectors:
            raise ChainConnectionError(f"read timed out (selector 0x{data[:4].hex()})", operation="call")
        contract = self.contracts.get(normalize_address(address))
        if contract is None:
            return b""
        state = copy.deepcopy(contract.state)
        return contract.execute(state, normalize_address(sender or ZERO_ADDRESS), bytes(data))

    def send_transaction(self, address, data, tx: TxContext) -> str:
        self._check_online("send_transaction")
        contract = self.contracts.get(normalize_address(address))
        if contract is None:
            tx_hash = f"0x{len(self.transactions) + 1:064x}"
            self.transactions.append((address, data, tx))
            return tx_hash
        # state only changes when the call succeeds
        state = copy.deepcopy(contract.state)
        contract.execute(state, tx.sender, bytes(data))
        contract.state = state
        self.transactions.append((address, data, tx))
        return f"0x{len(self.transactions):064x}"

    def get_code(self, address, *, timeout=None) -> bytes:
        with self._lock:
            self.code_requests += 1
        self._check_online("get_code")
        return b"\x60\x80\x60\x40" if normalize_address(address) in self.contracts else b""

    def chain_id(self, *, timeout=None) -> int:
        self._check_online("chain_id")
        return self.CHAIN_ID


# --- contract models ------------------------------------------------------------


def erc20_contract(
    *,
    name: str = "Token",
    symbol: str = "TKN",
    balances: Optional[Dict[str, int]] = None,
    burnable: bool = False,
    permit: bool = False,
) -> FakeContract:
    balances = {normalize_address(k): v for k, v in (balances or {}).items()}
    c = FakeContract(
        {
            "name": name,
            "symbol": symbol,
            "balances": balances,
            "allowances": {},
            "supply": sum(balances.values()),
            "nonces": {},
        }
    )

    def _move(s, frm, to, amount):
        if frm == ZERO_ADDRESS:
            raise Revert("ERC20InvalidSender(address)", frm)
        if to == ZERO_ADDRESS:
            raise Revert("ERC20InvalidReceiver(address)", to)
        bal = s["balances"].get(frm, 0)
        if bal < amount:
            raise Revert("ERC20InsufficientBalance(address,uint256,uint256)", frm, bal, amount)
        s["balances"][frm] = bal - amount
        s["balances"][to] = s["balances"].get(to, 0) + amount

    def _spend(s, owner, spender, amount):
        allowed = s["allowances"].get((owner, spender), 0)
        if allowed < amount:
            raise Revert("ERC20InsufficientAllowance(address,uint256,uint256)", spender, allowed, amount)
        s["allowances"][(owner, spender)] = allowed - amount

    def _burn(s, owner, amount):
        if owner == ZERO_ADDRESS:
            raise Revert("ERC20InvalidSender(address)", owner)
        bal = s["balances"].get(owner, 0)
        if bal < amount:
            raise Revert("ERC20InsufficientBalance(address,uint256,uint256)", owner, bal, amount)
        s["balances"][owner] = bal - amount
        s["supply"] -= amount

    def _approve(s, sender, spender, amount):
        if spender == ZERO_ADDRESS:
            raise Revert("ERC20InvalidSpender(address)", spender)
        s["allowances"][(sender, spender)] = amount
        return True

    def _transfer_from(s, sender, owner, to, amount):
        _spend(s, owner, sender, amount)
        _move(s, owner, to, amount)
        return True

    def _transfer(s, sender, to, amount):
        _move(s, sender, to, amount)
        return True

    c.fn("name()", ["string"], lambda s, _: s["name"])
    c.fn("symbol()", ["string"], lambda s, _: s["symbol"])
    c.fn("decimals()", ["uint8"], lambda s, _: 18)
    c.fn("totalSupply()", ["uint256"], lambda s, _: s["supply"])
    c.fn("balanceOf(address)", ["uint256"], lambda s, _, who: s["balances"].get(who, 0))
    c.fn("allowance(address,address)", ["uint256"], lambda s, _, o, sp: s["allowances"].get((o, sp), 0))
    c.fn("transfer(address,uint256)", ["bool"], _transfer)
    c.fn("approve(address,uint256)", ["bool"], _approve)
    c.fn("transferFrom(address,address,uint256)", ["bool"], _transfer_from)

    if burnable:
        def _burn_from(s, sender, owner, amount):
            _spend(s, owner, sender, amount)
            _burn(s, owner, amount)

        c.fn("burn(uint256)", [], lambda s, sender, amount: _burn(s, sender, amount))
        c.fn("burnFrom(address,uint256)", [], _burn_from)

    if permit:
        def _permit(s, sender, owner, spender, value, deadline, v, r, sig_s):
            if deadline == 0:
                raise Revert("ERC2612ExpiredSignature(uint256)", deadline)
            s["allowances"][(owner, spender)] = value
            s["nonces"][owner] = s["nonces"].get(owner, 0) + 1

        c.fn("permit(address,address,uint256,uint256,uint8,bytes32,bytes32)", [], _permit)
        c.fn("nonces(address)", ["uint256"], lambda s, _, o: s["nonces"].get(o, 0))
        c.fn("DOMAIN_SEPARATOR()", ["bytes32"], lambda s, _: b"\x42" * 32)

    return c


def erc721_contract(
    *,
    name: str = "Collection",
    symbol: str = "NFT",
    owners: Optional[Dict[int, str]] = None,
    enumerable: bool = False,
    royalties: bool = False,
    burnable: bool = False,
    royalty_receiver: str = CAROL,
    royalty_bps: int = 500,
) -> FakeContract:
    owners = {int(k): normalize_address(v) for k, v in (owners or {}).items()}
    c = FakeContract({"name": name, "symbol": symbol, "owners": owners, "approvals": {}, "operators": set()})

    def _owner(s, token_id):
        owner = s["owners"].get(token_id)
        if owner is None:
            raise Revert("ERC721NonexistentToken(uint256)", token_id)
        return owner

    def _balance(s, _, who):
        if who == ZERO_ADDRESS:
            raise Revert("ERC721InvalidOwner(address)", who)
        return sum(1 for o in s["owners"].values() if o == who)

    def _transfer_from(s, sender, frm, to, token_id):
        if to == ZERO_ADDRESS:
            raise Revert("ERC721InvalidReceiver(address)", to)
        owner = _owner(s, token_id)
        if owner != frm:
            raise Revert("ERC721IncorrectOwner(address,uint256,address)", frm, token_id, owner)
        approved = s["approvals"].get(token_id) == sender or (owner, sender) in s["operators"]
        if sender != owner and not approved:
            raise Revert("ERC721InsufficientApproval(address,uint256)", sender, token_id)
        s["approvals"].pop(token_id, None)
        s["owners"][token_id] = to

    def _approve(s, sender, to, token_id):
        owner = _owner(s, token_id)
        if sender != owner:
            raise Revert("ERC721InvalidApprover(address)", sender)
        s["approvals"][token_id] = to

    def _set_operator(s, sender, operator, approved):
        if operator == ZERO_ADDRESS:
            raise Revert("ERC721InvalidOperator(address)", operator)
        if approved:
            s["operators"].add((sender, operator))
        else:
            s["operators"].discard((sender, operator))

    def _token_uri(s, _, token_id):
        _owner(s, token_id)
        return f"ipfs://collection/{token_id}"

    c.fn("name()", ["string"], lambda s, _: s["name"])
    c.fn("symbol()", ["string"], lambda s, _: s["symbol"])
    c.fn("tokenURI(uint256)", ["string"], _token_uri)
    c.fn("balanceOf(address)", ["uint256"], _balance)
    c.fn("ownerOf(uint256)", ["address"], lambda s, _, t: _owner(s, t))
    c.fn("getApproved(uint256)", ["address"], lambda s, _, t: (_owner(s, t), s["approvals"].get(t, ZERO_ADDRESS))[1])
    c.fn("isApprovedForAll(address,address)", ["bool"], lambda s, _, o, op: (o, op) in s["operators"])
    c.fn("supportsInterface(bytes4)", ["bool"], lambda s, _, iid: iid in (bytes.fromhex("80ac58cd"), bytes.fromhex("01ffc9a7")))
    c.fn("approve(address,uint256)", [], _approve)
    c.fn("setApprovalForAll(address,bool)", [], _set_operator)
    c.fn("transferFrom(address,address,uint256)", [], _transfer_from)
    c.fn("safeTransferFrom(address,address,uint256)", [], _transfer_from)

    if enumerable:
        def _tokens(s):
            return sorted(s["owners"])

        def _token_by_index(s, _, index):
            tokens = _tokens(s)
            if index >= len(tokens):
                raise Revert("ERC721OutOfBoundsIndex(address,uint256)", ZERO_ADDRESS, index)
            return tokens[index]

        def _token_of_owner_by_index(s, _, owner, index):
            tokens = [t for t in _tokens(s) if s["owners"][t] == owner]
            if index >= len(tokens):
                raise Revert("ERC721OutOfBoundsIndex(address,uint256)", owner, index)
            return tokens[index]

        c.fn("totalSupply()", ["uint256"], lambda s, _: len(s["owners"]))
        c.fn("tokenByIndex(uint256)", ["uint256"], _token_by_index)
        c.fn("tokenOfOwnerByIndex(address,uint256)", ["uint256"], _token_of_owner_by_index)

    if royalties:
        c.fn(
            "royaltyInfo(uint256,uint256)",
            ["address", "uint256"],
            lambda s, _, t, price: (royalty_receiver, price * royalty_bps // 10_000),
        )

    if burnable:
        def _burn(s, sender, token_id):
            owner = _owner(s, token_id)
            if sender != owner:
                raise Revert("ERC721InsufficientApproval(address,uint256)", sender, token_id)
            del s["owners"][token_id]

        c.fn("burn(uint256)", [], _burn)

    return c


# --- fixtures ---------------------------------------------------------------------


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def config() -> InterfacesConfig:
    return InterfacesConfig(verify_workers=1, liveness_probe=True)


@pytest.fixture
def alice_tx() -> TxContext:
    return TxContext(sender=ALICE)


@pytest.fixture
def burnable_token(chain: FakeChain) -> str:
    return chain.deploy(erc20_contract(balances={ALICE: 1_000}, burnable=True))


@pytest.fixture
def plain_token(chain: FakeChain) -> str:
    return chain.deploy(erc20_contract(balances={ALICE: 1_000}))


@pytest.fixture
def enumerable_nft(chain: FakeChain) -> str:
    owners = {1: ALICE, 2: BOB, 3: ALICE, 7: ALICE}
    return chain.deploy(erc721_contract(owners=owners, enumerable=True))


@pytest.fixture
def full_nft(chain: FakeChain) -> str:
    owners = {1: ALICE, 2: BOB}
    return chain.deploy(erc721_contract(owners=owners, enumerable=True, royalties=True, burnable=True))
