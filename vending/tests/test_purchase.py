# -*- coding: utf-8 -*-
from __future__ import annotations

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from vendvm.errors import UnknownEntrypointError
from vending import LedgerConfig
from vending.errors import (ArithmeticOverflowError, InvalidQuantityError,
                            OutOfStockError, PriceMismatchError,
                            UnauthorizedError)
from vending.math.safe_uint import U256_MAX

from .deployment import INITIAL_STOCK, PRICE, deploy_machine

BULK_5 = 5 * PRICE * 8_000 // 10_000


def _state(machine, who):
    chain = machine.chain
    return (
        machine.stock(),
        machine.bottles_of(who),
        chain.balance_of(who),
        chain.balance_of(machine.address),
        chain.call(machine.address, "reserved_total"),
    )


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_buy_prepare_withdraw_scenario(chain, deployer, alice):
    m = deploy_machine(chain, deployer)
    assert m.stock() == 0
    m.ledger(deployer).restock(5)

    rcpt = m.ledger(alice).buy_bottle(value=PRICE)
    bought = rcpt.event(b"BottleBought")
    assert (bought["buyer"], bought["quantity"]) == (alice, 1)
    assert bought.address == m.address
    assert m.stock() == 4
    assert m.bottles_of(alice) == 1

    rcpt = m.ledger(deployer).prepare_withdrawal()
    ready = rcpt.event(b"ReadyToWithdraw")
    assert (ready["payee"], ready["amount"]) == (deployer, PRICE)

    before = chain.balance_of(deployer)
    rcpt = m.ledger(deployer).withdraw_payments(deployer)
    withdrawn = rcpt.event(b"Withdrawn")
    assert (withdrawn["payee"], withdrawn["amount"]) == (deployer, PRICE)
    assert chain.balance_of(deployer) == before + PRICE


# ---------------------------------------------------------------------------
# Single bottle
# ---------------------------------------------------------------------------


def test_buy_bottle_mints_and_keeps_proceeds(chain, machine, alice):
    machine.ledger(alice).buy_bottle(value=PRICE)
    assert machine.bottles_of(alice) == 1
    assert chain.call(machine.bottle, "total_supply") == 1
    assert chain.balance_of(machine.address) == PRICE
    # proceeds stay unreserved until prepare_withdrawal
    assert machine.ledger().reserved_total() == 0
    assert machine.ledger().payments(machine.owner) == 0


@pytest.mark.parametrize("paid", [0, PRICE - 1, PRICE + 1, 2 * PRICE])
def test_price_mismatch_is_a_no_op(machine, alice, paid):
    before = _state(machine, alice)
    with pytest.raises(PriceMismatchError) as ei:
        machine.ledger(alice).buy_bottle(value=paid)
    assert ei.value.data == {"required": PRICE, "supplied": paid}
    assert ei.value.message == "ColaM: eth does not match the price"
    assert _state(machine, alice) == before


@settings(
    max_examples=30,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(paid=st.integers(min_value=0, max_value=10 * PRICE).filter(lambda v: v != PRICE))
def test_any_wrong_payment_fails(machine, alice, paid):
    sid = machine.chain.snapshot()
    before = _state(machine, alice)
    with pytest.raises(PriceMismatchError):
        machine.ledger(alice).buy_bottle(value=paid)
    assert _state(machine, alice) == before
    machine.chain.revert_to(sid)


def test_out_of_stock_regardless_of_payment(machine, alice, bob):
    machine.ledger(alice).buy_5_bottles(value=BULK_5)
    assert machine.stock() == 0

    for paid in (PRICE, 0, PRICE + 1):
        with pytest.raises(OutOfStockError) as ei:
            machine.ledger(bob).buy_bottle(value=paid)
        assert ei.value.message == "ColaM: not enough stock"
    assert machine.bottles_of(bob) == 0


def test_price_views(machine, alice):
    ledger = machine.ledger()
    assert ledger.price() == PRICE
    assert ledger.price_for(alice) == PRICE
    assert ledger.bulk_price(5) == BULK_5
    assert ledger.bulk_discount_bps() == 2_000
    assert ledger.return_discount_bps() == 1_000
    assert ledger.bulk_min_quantity() == 1
    assert ledger.bottle_token() == machine.bottle
    assert ledger.secondary_currency() == machine.dai


def test_plain_transfer_to_ledger_is_rejected(chain, machine, alice):
    with pytest.raises(UnknownEntrypointError):
        chain.send(alice, machine.address, PRICE)
    assert chain.balance_of(machine.address) == 0


# ---------------------------------------------------------------------------
# Bulk
# ---------------------------------------------------------------------------


def test_buy_5_bottles(machine, alice):
    rcpt = machine.ledger(alice).buy_5_bottles(value=BULK_5)
    assert rcpt.event(b"BottleBought")["quantity"] == 5
    assert machine.stock() == 0
    assert machine.bottles_of(alice) == 5
    assert machine.chain.balance_of(machine.address) == BULK_5


def test_buy_bulk_larger_than_fixed_order(machine, deployer, alice):
    machine.ledger(deployer).restock(3)
    required = machine.ledger().bulk_price(7)
    assert required == 7 * PRICE * 8_000 // 10_000

    machine.ledger(alice).buy_bulk(7, value=required)
    assert machine.stock() == 1
    assert machine.bottles_of(alice) == 7


def test_empty_bulk_order_is_rejected(machine, alice):
    with pytest.raises(InvalidQuantityError):
        machine.ledger(alice).buy_bulk(0, value=0)
    assert machine.stock() == INITIAL_STOCK


@pytest.mark.parametrize("quantity", [1, 2, 3, 4])
def test_small_bulk_orders(machine, alice, quantity):
    required = quantity * PRICE * 8_000 // 10_000
    assert machine.ledger().bulk_price(quantity) == required

    rcpt = machine.ledger(alice).buy_bulk(quantity, value=required)
    assert rcpt.event(b"BottleBought")["quantity"] == quantity
    assert machine.stock() == INITIAL_STOCK - quantity
    assert machine.bottles_of(alice) == quantity


def test_bulk_is_all_or_nothing(machine, alice):
    required = machine.ledger().bulk_price(6)
    with pytest.raises(OutOfStockError) as ei:
        machine.ledger(alice).buy_bulk(6, value=required)
    assert ei.value.data == {"stock": INITIAL_STOCK, "requested": 6}
    assert machine.stock() == INITIAL_STOCK
    assert machine.bottles_of(alice) == 0


def test_bulk_exact_payment(machine, alice):
    with pytest.raises(PriceMismatchError) as ei:
        machine.ledger(alice).buy_5_bottles(value=5 * PRICE)
    assert ei.value.data["required"] == BULK_5


def test_bulk_minimum_is_configurable(chain, deployer, alice):
    m = deploy_machine(chain, deployer, config=LedgerConfig(bulk_min_quantity=2, bulk_discount_bps=500))
    m.ledger(deployer).restock(2)
    with pytest.raises(InvalidQuantityError) as ei:
        m.ledger(alice).buy_bulk(1, value=PRICE * 9_500 // 10_000)
    assert ei.value.data == {"quantity": 1, "minimum": 2}

    required = m.ledger().bulk_price(2)
    assert required == 2 * PRICE * 9_500 // 10_000
    m.ledger(alice).buy_bulk(2, value=required)
    assert m.bottles_of(alice) == 2


# ---------------------------------------------------------------------------
# Restock
# ---------------------------------------------------------------------------


def test_restock(machine, deployer, alice):
    rcpt = machine.ledger(deployer).restock(10)
    assert rcpt.event(b"Restocked")["amount"] == 10
    assert machine.stock() == INITIAL_STOCK + 10

    with pytest.raises(UnauthorizedError):
        machine.ledger(alice).restock(1)
    with pytest.raises(InvalidQuantityError):
        machine.ledger(deployer).restock(0)
    assert machine.stock() == INITIAL_STOCK + 10


def test_operator_can_restock(machine, deployer, alice):
    machine.ledger(deployer).add_operator(alice)
    machine.ledger(alice).restock(2)
    assert machine.stock() == INITIAL_STOCK + 2


def test_restock_overflow_reverts(chain, machine, deployer):
    before = chain.storage_items(machine.address)
    with pytest.raises(ArithmeticOverflowError):
        machine.ledger(deployer).restock(U256_MAX)
    assert machine.stock() == INITIAL_STOCK
    assert chain.storage_items(machine.address) == before
    assert chain.events(machine.address, b"Restocked")[-1]["amount"] == INITIAL_STOCK

    machine.ledger(deployer).restock(U256_MAX - INITIAL_STOCK)
    assert machine.stock() == U256_MAX


@settings(
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(orders=st.lists(st.sampled_from(["one", "bulk"]), min_size=1, max_size=6))
def test_stock_and_bottles_move_together(machine, deployer, alice, orders):
    sid = machine.chain.snapshot()
    machine.ledger(deployer).restock(30)
    for order in orders:
        stock = machine.stock()
        held = machine.bottles_of(alice)
        if order == "one":
            machine.ledger(alice).buy_bottle(value=PRICE)
            sold = 1
        else:
            machine.ledger(alice).buy_5_bottles(value=BULK_5)
            sold = 5
        assert machine.stock() == stock - sold
        assert machine.bottles_of(alice) == held + sold
    machine.chain.revert_to(sid)
