import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from eth_interfaces.capabilities.capability import CapabilitySet
from eth_interfaces.capabilities.registry import DEFAULT_REGISTRY
from eth_interfaces.capabilities.standards import ERC20
from eth_interfaces.client import CallContext, TxContext
from eth_interfaces.config import InterfacesConfig
from eth_interfaces.errors import (AbiError, CallError, ChainConnectionError,
                                   SignatureMismatchError,
                                   UnverifiedCapabilityError)
from eth_interfaces.models import TokenMeta
from eth_interfaces.sessions import ERC20Session, new_erc20_session, new_session

from conftest import ALICE, BOB, FakeChain, erc20_contract

ERC20_CAPS = list(DEFAULT_REGISTRY.standard("erc20"))


def test_session_binds_verified_standard(chain, plain_token, alice_tx, config):
    token = new_erc20_session(chain, plain_token, tx_context=alice_tx, config=config)
    assert isinstance(token, ERC20Session)
    assert token.standard == "erc20"
    assert token.address == plain_token
    assert token.capabilities.signatures()[0] == "allowance(address,address)"
    assert token.name() == "Token"
    assert token.symbol() == "TKN"
    assert token.decimals() == 18
    assert token.total_supply() == 1_000
    assert token.get_balance() == 1_000
    assert token.token_meta_infos() == TokenMeta(name="Token", symbol="TKN")


def test_transfer_and_allowance_flow(chain, plain_token, alice_tx, config):
    token = new_erc20_session(chain, plain_token, tx_context=alice_tx, config=config)
    tx_hash = token.transfer(BOB, 250)
    assert tx_hash.startswith("0x") and len(tx_hash) == 66
    assert token.balance_of(BOB) == 250
    assert token.get_balance() == 750

    token.approve(BOB, 100)
    assert token.allowance(ALICE, BOB) == 100
    bob = TxContext(sender=BOB)
    token.transfer_from(ALICE, BOB, 40, tx=bob)
    assert token.allowance(ALICE, BOB) == 60
    assert token.balance_of(BOB) == 290


def test_missing_signatures_reject_the_session(chain, config):
    addr = chain.deploy(erc20_contract().drop("decimals()").drop("allowance(address,address)"))
    with pytest.raises(SignatureMismatchError) as ei:
        new_erc20_session(chain, addr, config=config)
    assert ei.value.missing == ("allowance(address,address)", "decimals()")
    assert str(ei.value) == (
        f"contract {addr} does not implement the requested interface, "
        "not supported functions: allowance(address,address), decimals()"
    )


def test_partial_request_is_enough(chain, config):
    addr = chain.deploy(erc20_contract().drop("decimals()"))
    caps = CapabilitySet([ERC20.NAME, ERC20.BALANCE_OF])
    token = new_erc20_session(chain, addr, caps, config=config)
    assert token.name() == "Token"
    with pytest.raises(UnverifiedCapabilityError):
        token.decimals()


def test_unverified_capability_needs_no_network(chain, plain_token, config):
    token = new_erc20_session(chain, plain_token, CapabilitySet([ERC20.NAME]), config=config)
    before = chain.network_activity
    with pytest.raises(UnverifiedCapabilityError) as ei:
        token.transfer(BOB, 1)
    assert ei.value.signature == "transfer(address,uint256)"
    assert chain.network_activity == before
    assert not isinstance(ei.value, CallError)


def test_revert_becomes_call_error_and_session_survives(chain, plain_token, config):
    token = new_erc20_session(chain, plain_token, tx_context=TxContext(sender=BOB), config=config)
    with pytest.raises(CallError) as ei:
        token.transfer(ALICE, 1)
    err = ei.value
    assert err.capability == "erc20.Transfer()"
    assert err.address == plain_token
    assert err.__cause__ is err.cause
    assert str(err) == f"call error on erc20.Transfer(): ERC20InsufficientBalance({BOB}, 0, 1)"
    # still usable
    assert token.balance_of(ALICE) == 1_000


def test_transport_failure_is_not_wrapped(chain, plain_token, config):
    token = new_erc20_session(chain, plain_token, config=config)
    chain.offline = True
    with pytest.raises(ChainConnectionError):
        token.name()


def test_write_without_tx_context(chain, plain_token, config):
    token = new_erc20_session(chain, plain_token, config=config)
    with pytest.raises(ValueError, match="transaction context"):
        token.transfer(BOB, 1)
    with pytest.raises(ValueError, match="no sender"):
        token.get_balance()


def test_bad_arguments_raise_abi_error(chain, plain_token, alice_tx, config):
    token = new_erc20_session(chain, plain_token, tx_context=alice_tx, config=config)
    with pytest.raises(AbiError):
        token.transfer("not-an-address", 1)


def test_malformed_address_fails_before_network(chain, config):
    with pytest.raises(ValueError):
        new_erc20_session(chain, "0x1234", config=config)
    assert chain.network_activity == 0


def test_liveness_probe_failure(chain, plain_token, config):
    class NoChainId(type(chain)):
        def chain_id(self, *, timeout=None):
            raise OSError("broken pipe")

    flaky = NoChainId()
    flaky.contracts = chain.contracts
    with pytest.raises(ChainConnectionError, match="liveness"):
        new_erc20_session(flaky, plain_token, config=config)

    # skipped when disabled
    relaxed = InterfacesConfig.with_overrides(config, liveness_probe=False)
    assert new_erc20_session(flaky, plain_token, config=relaxed).name() == "Token"


def test_chain_id_mismatch(chain, plain_token, config):
    strict = InterfacesConfig.with_overrides(config, chain_id=1)
    with pytest.raises(ChainConnectionError, match="expected 1"):
        new_erc20_session(chain, plain_token, config=strict)


def test_call_context_is_used_for_reads(chain, plain_token, config):
    seen = []
    original = chain.call

    def spy(address, data, **kw):
        seen.append(kw)
        return original(address, data, **kw)

    chain.call = spy
    ctx = CallContext(sender=BOB, block="latest", timeout=3.0)
    token = new_session(chain, plain_token, [ERC20.NAME], call_context=ctx, config=config)
    token.read(ERC20.NAME)
    assert seen[-1] == {"sender": BOB, "block": "latest", "timeout": 3.0}


def test_session_is_immutable(chain, plain_token, config):
    token = new_erc20_session(chain, plain_token, config=config)
    with pytest.raises(AttributeError):
        token.capabilities = CapabilitySet()
    with pytest.raises(AttributeError):
        token.address = BOB


@settings(max_examples=25, deadline=None)
@given(st.permutations(ERC20_CAPS))
def test_missing_list_ignores_request_order(order):
    chain = FakeChain()
    addr = chain.deploy(
        erc20_contract().drop("symbol()").drop("decimals()").drop("allowance(address,address)")
    )
    cfg = InterfacesConfig(verify_workers=1, liveness_probe=False)
    with pytest.raises(SignatureMismatchError) as ei:
        new_session(chain, addr, order, config=cfg)
    assert ei.value.missing == ("allowance(address,address)", "decimals()", "symbol()")
    assert str(ei.value).endswith("allowance(address,address), decimals(), symbol()")


def test_reads_do_not_change_state(chain, plain_token, alice_tx, config):
    token = new_erc20_session(chain, plain_token, tx_context=alice_tx, config=config)
    first = (token.balance_of(ALICE), token.total_supply(), token.allowance(ALICE, BOB))
    for _ in range(3):
        assert (token.balance_of(ALICE), token.total_supply(), token.allowance(ALICE, BOB)) == first
    assert chain.transactions == []

    token.transfer(BOB, 1)
    assert token.balance_of(ALICE) == first[0] - 1
    assert token.balance_of(BOB) == token.balance_of(BOB) == 1
