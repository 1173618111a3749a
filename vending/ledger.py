# -*- coding: utf-8 -*-
"""
vending.ledger
==============

`VendingLedger`: stock, pricing, payments and withdrawals of one vending
machine, held entirely in contract storage.

Pricing
-------
- single bottle:   unit_price
- after a return:  floor(unit_price * (10_000 - return_discount_bps) / 10_000),
                   once per return
- bulk order of q: floor(unit_price * q * (10_000 - bulk_discount_bps) / 10_000),
                   q >= bulk_min_quantity
- secondary rail:  secondary_unit_price, paid in the secondary currency

Payments
--------
Native payments stay in the ledger's balance as unreserved revenue. An
authorized principal moves that revenue into the owner's escrow entry with
`prepare_withdrawal`; anyone may then pay an escrow entry out to its payee
with `withdraw_payments`. The ledger's balance never drops below the sum of
the escrow entries (`reserved_total`).

Secondary-currency payments are pulled with `transfer_from` into the ledger's
token balance and tracked in `secondary_escrow`. `withdraw_secondary` sends
the ledger's entire token balance to the owner, so tokens transferred in
directly are not stranded.

Ordering
--------
Every entry point checks all preconditions, then writes all of its own state,
then calls the tokens. The host rejects any storage write after an outbound
call, so a token or payee that re-enters sees the already-updated state.

Storage layout
--------------
    cola:stock                 u256
    cola:price                 u256 unit price (native)
    cola:price:secondary       u256 unit price (secondary currency)
    cola:bps:bulk              u256
    cola:bps:return            u256
    cola:bulk:min              u256
    cola:bottle                address
    cola:secondary             address (absent => rail disabled)
    cola:secondary:escrow      u256
    cola:reserved              u256 sum of escrow entries
    cola:escrow:<payee>        u256
    cola:credit:<holder>       bool (absent => no pending return credit)

Events
------
    b"BottleBought"        {"buyer": bytes, "quantity": int}
    b"BottleReturned"      {"holder": bytes}
    b"Restocked"           {"amount": int}
    b"Deposited"           {"payee": bytes, "amount": int}
    b"ReadyToWithdraw"     {"payee": bytes, "amount": int}
    b"Withdrawn"           {"payee": bytes, "amount": int}
    b"SecondaryWithdrawn"  {"payee": bytes, "amount": int}
plus OperatorAdded / OperatorRemoved from `Operated`.
"""

from __future__ import annotations

import logging
from typing import Final, Optional

from vendvm.runtime.context import ZERO_ADDRESS, Msg, to_hex
from vendvm.runtime.contract import entrypoint, view

from .access.operated import K_OWNER, Operated, require_account
from .config import LedgerConfig
from .errors import (CurrencyNotConfiguredError, InvalidQuantityError,
                     NothingToWithdrawError, OutOfStockError,
                     PriceMismatchError, ReturnCreditPendingError,
                     VendingError)
from .interfaces import BottleTokenHandle, PayableTokenHandle
from .math.safe_uint import (apply_discount_bps, require_u256, u256_add,
                             u256_mul, u256_sub)

log = logging.getLogger(__name__)

K_STOCK: Final[bytes] = b"cola:stock"
K_PRICE: Final[bytes] = b"cola:price"
K_PRICE_SECONDARY: Final[bytes] = b"cola:price:secondary"
K_BULK_BPS: Final[bytes] = b"cola:bps:bulk"
K_RETURN_BPS: Final[bytes] = b"cola:bps:return"
K_BULK_MIN: Final[bytes] = b"cola:bulk:min"
K_BOTTLE: Final[bytes] = b"cola:bottle"
K_SECONDARY: Final[bytes] = b"cola:secondary"
K_SECONDARY_ESCROW: Final[bytes] = b"cola:secondary:escrow"
K_RESERVED: Final[bytes] = b"cola:reserved"
_ESCROW_PREFIX: Final[bytes] = b"cola:escrow:"
_CREDIT_PREFIX: Final[bytes] = b"cola:credit:"

EVT_BOTTLE_BOUGHT: Final[bytes] = b"BottleBought"
EVT_BOTTLE_RETURNED: Final[bytes] = b"BottleReturned"
EVT_RESTOCKED: Final[bytes] = b"Restocked"
EVT_DEPOSITED: Final[bytes] = b"Deposited"
EVT_READY_TO_WITHDRAW: Final[bytes] = b"ReadyToWithdraw"
EVT_WITHDRAWN: Final[bytes] = b"Withdrawn"
EVT_SECONDARY_WITHDRAWN: Final[bytes] = b"SecondaryWithdrawn"

FIXED_BULK_ORDER: Final[int] = 5


def _key_escrow(payee: bytes) -> bytes:
    return _ESCROW_PREFIX + payee


def _key_credit(holder: bytes) -> bytes:
    return _CREDIT_PREFIX + holder


def _require_quantity(quantity: int) -> int:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise InvalidQuantityError(quantity=quantity)
    require_u256(quantity)
    return quantity


class VendingLedger(Operated):
    """A vending machine's ledger: stock, prices, escrows and operators."""

    def constructor(  # type: ignore[override]
        self,
        msg: Msg,
        bottle_token: bytes,
        secondary_currency: Optional[bytes],
        unit_price: int,
        config: Optional[LedgerConfig] = None,
    ) -> None:
        cfg = config or LedgerConfig()
        if not isinstance(unit_price, int) or unit_price <= 0:
            raise VendingError("ColaM: price must be positive", unit_price=unit_price)
        require_u256(unit_price)

        self._init_operated(msg.sender, cfg.max_operators)
        st = self.storage
        st.set(K_BOTTLE, require_account(bottle_token))
        if secondary_currency is not None and secondary_currency != ZERO_ADDRESS:
            st.set(K_SECONDARY, require_account(secondary_currency))
        st.set_int(K_PRICE, unit_price)
        st.set_int(K_PRICE_SECONDARY, cfg.secondary_unit_price)
        st.set_int(K_BULK_BPS, cfg.bulk_discount_bps)
        st.set_int(K_RETURN_BPS, cfg.return_discount_bps)
        st.set_int(K_BULK_MIN, cfg.bulk_min_quantity)
        log.debug("ledger %s configured: price=%d %s", to_hex(self.address), unit_price, cfg.as_dict())

    # ================================================================= views

    @view
    def price(self) -> int:
        return self.storage.get_int(K_PRICE)

    @view
    def price_for(self, buyer: bytes) -> int:
        """Price `buyer` must pay for a single bottle right now."""
        return self._price_for(buyer)

    @view
    def bulk_price(self, quantity: int) -> int:
        return self._bulk_price(_require_quantity(quantity))

    @view
    def price_secondary(self) -> int:
        return self.storage.get_int(K_PRICE_SECONDARY)

    @view
    def return_discount_bps(self) -> int:
        return self.storage.get_int(K_RETURN_BPS)

    @view
    def bulk_discount_bps(self) -> int:
        return self.storage.get_int(K_BULK_BPS)

    @view
    def bulk_min_quantity(self) -> int:
        return self.storage.get_int(K_BULK_MIN)

    @view
    def stock(self) -> int:
        return self.storage.get_int(K_STOCK)

    @view
    def bottle_token(self) -> bytes:
        return self.storage.get_bytes(K_BOTTLE)

    @view
    def secondary_currency(self) -> Optional[bytes]:
        return self.storage.get(K_SECONDARY)

    @view
    def secondary_escrow(self) -> int:
        return self.storage.get_int(K_SECONDARY_ESCROW)

    @view
    def reserved_total(self) -> int:
        return self.storage.get_int(K_RESERVED)

    @view
    def payments(self, payee: bytes) -> int:
        return self.storage.get_int(_key_escrow(require_account(payee)))

    @view
    def has_return_credit(self, identity: bytes) -> bool:
        return self.storage.get_bool(_key_credit(require_account(identity)))

    # ============================================================ purchasing

    @entrypoint(payable=True)
    def buy_bottle(self, msg: Msg) -> None:
        st = self.storage
        stock = st.get_int(K_STOCK)
        if stock < 1:
            raise OutOfStockError(stock=stock, requested=1)
        credit = st.get_bool(_key_credit(msg.sender))
        required = self._price_for(msg.sender)
        if msg.value != required:
            raise PriceMismatchError(required=required, supplied=msg.value)

        st.set_int(K_STOCK, stock - 1)
        if credit:
            st.set_bool(_key_credit(msg.sender), False)

        self._bottle().mint_to(msg.sender, 1)
        self.emit(EVT_BOTTLE_BOUGHT, {"buyer": msg.sender, "quantity": 1})
        log.debug("sold 1 to %s for %d (return credit: %s)", to_hex(msg.sender), required, credit)

    @entrypoint(payable=True)
    def buy_bulk(self, msg: Msg, quantity: int) -> None:
        """All-or-nothing order of `quantity` bottles at the bulk price."""
        st = self.storage
        quantity = _require_quantity(quantity)
        minimum = st.get_int(K_BULK_MIN)
        if quantity < minimum:
            raise InvalidQuantityError(
                "ColaM: order below bulk minimum", quantity=quantity, minimum=minimum
            )
        stock = st.get_int(K_STOCK)
        if stock < quantity:
            raise OutOfStockError(stock=stock, requested=quantity)
        required = self._bulk_price(quantity)
        if msg.value != required:
            raise PriceMismatchError(required=required, supplied=msg.value)

        st.set_int(K_STOCK, stock - quantity)

        self._bottle().mint_to(msg.sender, quantity)
        self.emit(EVT_BOTTLE_BOUGHT, {"buyer": msg.sender, "quantity": quantity})
        log.debug("sold %d to %s for %d", quantity, to_hex(msg.sender), required)

    @entrypoint(payable=True)
    def buy_5_bottles(self, msg: Msg) -> None:
        self.buy_bulk(msg, FIXED_BULK_ORDER)

    @entrypoint
    def buy_bottle_secondary(self, msg: Msg, amount: int) -> None:
        """Buy one bottle paying `amount` of the secondary currency (pre-approved)."""
        st = self.storage
        currency = st.get(K_SECONDARY)
        if currency is None:
            raise CurrencyNotConfiguredError()
        stock = st.get_int(K_STOCK)
        if stock < 1:
            raise OutOfStockError(stock=stock, requested=1)
        required = st.get_int(K_PRICE_SECONDARY)
        if amount != required:
            raise PriceMismatchError(
                "ColaM: amount does not match the secondary price",
                required=required,
                supplied=amount,
            )

        st.set_int(K_STOCK, stock - 1)
        st.set_int(K_SECONDARY_ESCROW, u256_add(st.get_int(K_SECONDARY_ESCROW), amount))

        PayableTokenHandle(self, currency).transfer_from(msg.sender, self.address, amount)
        self._bottle().mint_to(msg.sender, 1)
        self.emit(EVT_BOTTLE_BOUGHT, {"buyer": msg.sender, "quantity": 1})

    # =============================================================== returns

    @entrypoint
    def return_bottle(self, msg: Msg) -> None:
        """
        Burn one of the caller's bottles (the caller must have approved the
        ledger for at least 1) in exchange for one discounted purchase.
        """
        st = self.storage
        if st.get_bool(_key_credit(msg.sender)):
            raise ReturnCreditPendingError(holder=to_hex(msg.sender))

        st.set_bool(_key_credit(msg.sender), True)

        self._bottle().burn_from(msg.sender, 1)
        self.emit(EVT_BOTTLE_RETURNED, {"holder": msg.sender})

    # ======================================================== administration

    @entrypoint
    def restock(self, msg: Msg, amount: int) -> None:
        self._require_authorized(msg.sender)
        amount = _require_quantity(amount)
        st = self.storage
        st.set_int(K_STOCK, u256_add(st.get_int(K_STOCK), amount))
        self.emit(EVT_RESTOCKED, {"amount": amount})
        log.debug("restocked %d by %s", amount, to_hex(msg.sender))

    @entrypoint
    def prepare_withdrawal(self, msg: Msg) -> int:
        """Reserve all unreserved native balance for the owner; returns the amount."""
        self._require_authorized(msg.sender)
        st = self.storage
        payee = st.get_bytes(K_OWNER)
        reserved = st.get_int(K_RESERVED)
        amount = u256_sub(self.self_balance(), reserved)
        if amount:
            key = _key_escrow(payee)
            st.set_int(key, u256_add(st.get_int(key), amount))
            st.set_int(K_RESERVED, u256_add(reserved, amount))
            self.emit(EVT_DEPOSITED, {"payee": payee, "amount": amount})
        self.emit(EVT_READY_TO_WITHDRAW, {"payee": payee, "amount": amount})
        return amount

    @entrypoint
    def withdraw_payments(self, msg: Msg, payee: bytes) -> int:
        """Pay out `payee`'s escrow entry; callable by anyone."""
        payee = require_account(payee)
        st = self.storage
        key = _key_escrow(payee)
        amount = st.get_int(key)
        if amount == 0:
            raise NothingToWithdrawError(payee=to_hex(payee))

        st.delete(key)
        st.set_int(K_RESERVED, u256_sub(st.get_int(K_RESERVED), amount))

        self.send(payee, amount)
        self.emit(EVT_WITHDRAWN, {"payee": payee, "amount": amount})
        log.info("withdrew %d to %s", amount, to_hex(payee))
        return amount

    @entrypoint
    def withdraw_secondary(self, msg: Msg) -> int:
        """
        Transfer the ledger's whole secondary-currency balance to the owner,
        including tokens sent to it outside `buy_bottle_secondary`.
        """
        self._require_authorized(msg.sender)
        st = self.storage
        currency = st.get(K_SECONDARY)
        if currency is None:
            raise CurrencyNotConfiguredError()
        token = PayableTokenHandle(self, currency)
        amount = token.balance_of(self.address)
        if amount == 0:
            raise NothingToWithdrawError(currency=to_hex(currency))
        payee = st.get_bytes(K_OWNER)

        st.delete(K_SECONDARY_ESCROW)

        token.transfer(payee, amount)
        self.emit(EVT_SECONDARY_WITHDRAWN, {"payee": payee, "amount": amount})
        return amount

    # ============================================================= internals

    def _bottle(self) -> BottleTokenHandle:
        return BottleTokenHandle(self, self.storage.get_bytes(K_BOTTLE))

    def _price_for(self, buyer: bytes) -> int:
        st = self.storage
        unit = st.get_int(K_PRICE)
        if st.get_bool(_key_credit(require_account(buyer))):
            return apply_discount_bps(unit, st.get_int(K_RETURN_BPS))
        return unit

    def _bulk_price(self, quantity: int) -> int:
        st = self.storage
        return apply_discount_bps(u256_mul(st.get_int(K_PRICE), quantity), st.get_int(K_BULK_BPS))


__all__ = [
    "VendingLedger",
    "EVT_BOTTLE_BOUGHT",
    "EVT_BOTTLE_RETURNED",
    "EVT_RESTOCKED",
    "EVT_DEPOSITED",
    "EVT_READY_TO_WITHDRAW",
    "EVT_WITHDRAWN",
    "EVT_SECONDARY_WITHDRAWN",
    "FIXED_BULK_ORDER",
]
