from __future__ import annotations

import pytest

from vendvm import Chain, InvalidAccess, Revert, VmError
from vendvm.errors import (CallDepthExceeded, EffectsAfterInteractionError,
                           NotPayableError, UnknownEntrypointError)
from vendvm.runtime.treasury_api import InsufficientFundsError

from .sample_contracts import Caller, Counter


# ---------------------------------------------------------------------------
# Accounts & deployment
# ---------------------------------------------------------------------------


def test_accounts_are_deterministic_and_funded(chain: Chain):
    a1 = chain.account("alice")
    a2 = chain.account("alice")
    assert a1 == a2
    assert len(a1) == chain.config.address_len
    assert chain.balance_of(a1) == chain.config.default_funding
    assert Chain().account("alice") == a1


def test_account_custom_funding(chain: Chain):
    poor = chain.account("poor", funding=0)
    assert chain.balance_of(poor) == 0
    chain.fund(poor, 7)
    assert chain.balance_of(poor) == 7


def test_deploy_uses_predicted_address_and_bumps_nonce(chain: Chain, alice: bytes):
    first = chain.predict_address(alice)
    second = chain.predict_address(alice, offset=1)
    assert first != second

    addr = chain.deploy(alice, Counter, 5)
    assert addr == first
    assert chain.nonce_of(alice) == 1
    assert chain.predict_address(alice) == second
    assert chain.call(addr, "get") == 5
    assert isinstance(chain.code_at(addr), Counter)


def test_failed_constructor_leaves_no_code_and_no_nonce_bump(chain: Chain, alice: bytes):
    with pytest.raises(VmError):
        chain.deploy(alice, Counter, -1, value=1)
    assert chain.nonce_of(alice) == 0
    assert chain.code_at(chain.predict_address(alice)) is None
    assert chain.balance_of(alice) == chain.config.default_funding


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def test_transact_returns_receipt_with_events(chain: Chain, alice: bytes, counter: bytes):
    rcpt = chain.transact(alice, counter, "inc", 3)
    assert rcpt.ok
    assert rcpt.return_value == 3
    ev = rcpt.event(b"Inc")
    assert ev["by"] == 3
    assert ev["caller"] == alice
    assert ev.address == counter
    assert chain.call(counter, "get") == 3
    assert chain.events(counter, b"Inc") == [ev]


def test_revert_discards_storage_and_events(chain: Chain, alice: bytes, counter: bytes):
    chain.transact(alice, counter, "inc")
    height = chain.height

    with pytest.raises(Revert) as ei:
        chain.transact(alice, counter, "inc_then_fail")

    assert ei.value.data == {"step": 1}
    assert chain.call(counter, "get") == 1
    assert len(chain.events(counter, b"Inc")) == 1
    assert chain.height == height

    failed = chain.receipts[-1]
    assert not failed.ok
    assert failed.status == "REVERT"
    assert failed.error["code"] == "REVERT"
    assert failed.events == ()


def test_nested_failure_caught_by_caller_is_still_undone(
    chain: Chain, alice: bytes, counter: bytes, caller: bytes
):
    rcpt = chain.transact(alice, caller, "swallow", counter)
    assert rcpt.return_value is True
    assert rcpt.find(b"Inc") == []
    assert rcpt.event(b"Swallowed")["target"] == counter
    assert chain.call(counter, "get") == 0


def test_nested_call_sees_caller_as_sender(chain: Chain, alice: bytes, counter: bytes, caller: bytes):
    rcpt = chain.transact(alice, caller, "poke", counter)
    assert rcpt.return_value == 1
    assert rcpt.event(b"Inc")["caller"] == caller


def test_origin_is_preserved_across_frames(chain: Chain, alice: bytes, caller: bytes):
    other = chain.deploy(alice, Caller)
    info = chain.transact(alice, caller, "relay_whoami", other).return_value
    assert info["sender"] == "0x" + caller.hex()
    assert info["origin"] == "0x" + alice.hex()


def test_unknown_and_private_entrypoints_are_rejected(chain: Chain, alice: bytes, counter: bytes):
    with pytest.raises(UnknownEntrypointError):
        chain.transact(alice, counter, "helper")
    with pytest.raises(UnknownEntrypointError):
        chain.transact(alice, counter, "_is_private")
    assert chain.receipts[-1].status == "INVALID"


def test_call_to_empty_address_fails(chain: Chain, alice: bytes, bob: bytes):
    with pytest.raises(InvalidAccess) as ei:
        chain.transact(alice, bob, "anything")
    assert ei.value.code == "NO_CODE"


def test_value_to_non_payable_entrypoint_is_rejected(chain: Chain, alice: bytes, counter: bytes):
    before = chain.balance_of(alice)
    with pytest.raises(NotPayableError):
        chain.transact(alice, counter, "inc", value=1)
    assert chain.balance_of(alice) == before
    assert chain.balance_of(counter) == 0


def test_payable_entrypoint_moves_value(chain: Chain, alice: bytes, vault: bytes):
    before = chain.balance_of(alice)
    rcpt = chain.transact(alice, vault, "deposit", value=100)
    assert rcpt.return_value == 100
    assert chain.balance_of(alice) == before - 100
    assert chain.balance_of(vault) == 100
    assert chain.call(vault, "deposited", alice) == 100


def test_insufficient_native_funds(chain: Chain, vault: bytes):
    poor = chain.account("poor", funding=5)
    with pytest.raises(InsufficientFundsError) as ei:
        chain.transact(poor, vault, "deposit", value=6)
    assert ei.value.data["balance"] == 5
    assert ei.value.data["required"] == 6
    assert chain.balance_of(poor) == 5


# ---------------------------------------------------------------------------
# Native sends
# ---------------------------------------------------------------------------


def test_send_between_accounts(chain: Chain, alice: bytes, bob: bytes):
    a0, b0 = chain.balance_of(alice), chain.balance_of(bob)
    chain.send(alice, bob, 10)
    assert chain.balance_of(alice) == a0 - 10
    assert chain.balance_of(bob) == b0 + 10


def test_send_to_contract_requires_receive(chain: Chain, alice: bytes, counter: bytes, vault: bytes):
    with pytest.raises(UnknownEntrypointError):
        chain.send(alice, counter, 1)
    assert chain.balance_of(counter) == 0

    chain.send(alice, vault, 9)
    assert chain.balance_of(vault) == 9
    assert chain.storage_items(vault) == [(b"received", (9).to_bytes(32, "big"))]


def test_contract_send_to_account(chain: Chain, alice: bytes, bob: bytes, vault: bytes):
    chain.transact(alice, vault, "deposit", value=50)
    b0 = chain.balance_of(bob)
    chain.transact(alice, vault, "pay", bob, 20)
    assert chain.balance_of(bob) == b0 + 20
    assert chain.balance_of(vault) == 30


# ---------------------------------------------------------------------------
# Interaction ordering
# ---------------------------------------------------------------------------


def test_write_after_call_is_rejected(chain: Chain, alice: bytes, counter: bytes, caller: bytes):
    with pytest.raises(EffectsAfterInteractionError) as ei:
        chain.transact(alice, caller, "poke_then_write", counter)
    assert ei.value.code == "EFFECTS_AFTER_INTERACTION"
    assert chain.call(counter, "get") == 0
    assert chain.storage_items(caller) == []


def test_write_after_send_is_rejected(chain: Chain, alice: bytes, bob: bytes, vault: bytes):
    chain.transact(alice, vault, "deposit", value=50)
    b0 = chain.balance_of(bob)
    with pytest.raises(EffectsAfterInteractionError):
        chain.transact(alice, vault, "pay_then_write", bob, 20)
    assert chain.balance_of(bob) == b0
    assert chain.balance_of(vault) == 50


def test_read_is_not_an_interaction(chain: Chain, alice: bytes, counter: bytes, caller: bytes):
    chain.transact(alice, counter, "inc", 4)
    rcpt = chain.transact(alice, caller, "observe", counter)
    assert rcpt.return_value == 4


def test_read_of_state_changing_entrypoint_is_rejected(
    chain: Chain, alice: bytes, counter: bytes, caller: bytes
):
    with pytest.raises(InvalidAccess):
        chain.transact(alice, caller, "read_mutating", counter)
    assert chain.call(counter, "get") == 0


def test_call_depth_is_bounded(chain: Chain, alice: bytes, caller: bytes):
    with pytest.raises(CallDepthExceeded) as ei:
        chain.transact(alice, caller, "recurse", 0)
    assert ei.value.data["depth"] == chain.config.max_call_depth


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def test_views_cannot_write_or_emit(chain: Chain, counter: bytes):
    with pytest.raises(InvalidAccess):
        chain.call(counter, "write_from_view")
    with pytest.raises(InvalidAccess):
        chain.call(counter, "emit_from_view")


def test_call_discards_state_changes(chain: Chain, alice: bytes, counter: bytes):
    assert chain.call(counter, "inc", sender=alice) == 1
    assert chain.call(counter, "get") == 0
    assert chain.events(counter) == []
    assert chain.receipts[-1].method == "constructor"


# ---------------------------------------------------------------------------
# Snapshots & handles
# ---------------------------------------------------------------------------


def test_snapshot_and_revert(chain: Chain, alice: bytes, bob: bytes, counter: bytes):
    sid = chain.snapshot()
    height, n_receipts = chain.height, len(chain.receipts)
    b0 = chain.balance_of(bob)

    chain.transact(alice, counter, "inc")
    chain.send(alice, bob, 3)
    assert chain.call(counter, "get") == 1

    chain.revert_to(sid)
    assert chain.call(counter, "get") == 0
    assert chain.balance_of(bob) == b0
    assert chain.height == height
    assert len(chain.receipts) == n_receipts

    # contracts keep working and the snapshot stays reusable
    chain.transact(alice, counter, "inc", 2)
    assert chain.call(counter, "get") == 2
    chain.revert_to(sid)
    assert chain.call(counter, "get") == 0


def test_unknown_snapshot(chain: Chain):
    with pytest.raises(VmError):
        chain.revert_to(999)


def test_contract_handle(chain: Chain, bob: bytes, counter: bytes):
    c = chain.at(counter)
    assert c.get() == 0
    with pytest.raises(VmError):
        c.inc()

    rcpt = c.connect(bob).inc(5)
    assert rcpt.ok
    assert c.get() == 5
    with pytest.raises(AttributeError):
        c.helper


def test_bad_address_is_rejected(chain: Chain, alice: bytes):
    with pytest.raises(VmError) as ei:
        chain.transact(alice, b"\x01\x02", "inc")
    assert ei.value.code == "bad_address"
