# -*- coding: utf-8 -*-
"""
Fungible token
==============

Storage-backed, float-free fungible token for the vendvm host. The vending
ledger accepts it as a secondary payment currency; `BottleToken` extends it.

Events
------
- b"Transfer" { "from": bytes, "to": bytes, "value": int }
- b"Approval" { "owner": bytes, "spender": bytes, "value": int }

Public interface
----------------
# views
name() -> bytes
symbol() -> bytes
decimals() -> int
total_supply() -> int
owner() -> bytes
balance_of(addr: bytes) -> int
allowance(owner: bytes, spender: bytes) -> int

# state-changing (caller is msg.sender)
constructor(name, symbol, decimals, initial_supply)
transfer(to, amount) -> bool
approve(spender, amount) -> bool
transfer_from(owner, to, amount) -> bool
increase_allowance(spender, added) -> bool
decrease_allowance(spender, subtracted) -> bool
mint(to, amount) -> bool              # deployer only
burn(amount) -> bool
burn_from(owner, amount) -> bool      # spends the caller's allowance

Notes
-----
- Addresses are raw `bytes`.
- Insufficient balance raises `InsufficientBalanceError`; insufficient
  allowance raises `InsufficientAllowanceError`. Both carry the available and
  requested amounts in `data`.
"""

from __future__ import annotations

from typing import Final

from vendvm.runtime.context import Msg, to_hex
from vendvm.runtime.contract import Contract, entrypoint, view

from ..errors import (InsufficientAllowanceError, InsufficientBalanceError,
                      NotMinterError, TokenError)
from ..math.safe_uint import u256_add, u256_sub
from . import (DEFAULT_DECIMALS, EVT_APPROVAL, EVT_TRANSFER, ZERO_ADDRESS,
               clamp_decimals, is_printable_ascii, key_allow, key_balance,
               require_address, require_amount)

K_NAME: Final[bytes] = b"tok:meta:name"
K_SYMBOL: Final[bytes] = b"tok:meta:symbol"
K_DECIMALS: Final[bytes] = b"tok:meta:dec"
K_TOTAL: Final[bytes] = b"tok:meta:total"
K_OWNER: Final[bytes] = b"tok:meta:owner"


class FungibleToken(Contract):
    """Plain fungible token; the deployer may mint."""

    def constructor(
        self,
        msg: Msg,
        name: bytes = b"Token",
        symbol: bytes = b"TOK",
        decimals: int = DEFAULT_DECIMALS,
        initial_supply: int = 0,
    ) -> None:
        if not is_printable_ascii(name) or len(name) > 64:
            raise TokenError("TOKEN: bad name", name=repr(name))
        if not is_printable_ascii(symbol) or len(symbol) > 11:
            raise TokenError("TOKEN: bad symbol", symbol=repr(symbol))
        require_amount(initial_supply)

        st = self.storage
        st.set(K_NAME, bytes(name))
        st.set(K_SYMBOL, bytes(symbol).upper())
        st.set_int(K_DECIMALS, clamp_decimals(decimals))
        st.set(K_OWNER, msg.sender)
        if initial_supply > 0:
            self._mint_to(msg.sender, initial_supply)

    # ------------------------------------------------------------------ views

    @view
    def name(self) -> bytes:
        return self.storage.get_bytes(K_NAME)

    @view
    def symbol(self) -> bytes:
        return self.storage.get_bytes(K_SYMBOL)

    @view
    def decimals(self) -> int:
        return self.storage.get_int(K_DECIMALS)

    @view
    def total_supply(self) -> int:
        return self.storage.get_int(K_TOTAL)

    @view
    def owner(self) -> bytes:
        return self.storage.get_bytes(K_OWNER)

    @view
    def balance_of(self, addr: bytes) -> int:
        return self.storage.get_int(key_balance(addr))

    @view
    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.storage.get_int(key_allow(owner, spender))

    # -------------------------------------------------------------- transfers

    @entrypoint
    def transfer(self, msg: Msg, to: bytes, amount: int) -> bool:
        require_address(to)
        require_amount(amount)
        self._move(msg.sender, to, amount)
        return True

    @entrypoint
    def approve(self, msg: Msg, spender: bytes, amount: int) -> bool:
        require_address(spender)
        require_amount(amount)
        self._set_allowance(msg.sender, spender, amount)
        return True

    @entrypoint
    def transfer_from(self, msg: Msg, owner: bytes, to: bytes, amount: int) -> bool:
        """Move `amount` from `owner` to `to`, spending the caller's allowance."""
        require_address(owner)
        require_address(to)
        require_amount(amount)
        self._spend_allowance(owner, msg.sender, amount)
        self._move(owner, to, amount)
        return True

    @entrypoint
    def increase_allowance(self, msg: Msg, spender: bytes, added: int) -> bool:
        cur = self.storage.get_int(key_allow(msg.sender, spender))
        self._set_allowance(msg.sender, spender, u256_add(cur, require_amount(added)))
        return True

    @entrypoint
    def decrease_allowance(self, msg: Msg, spender: bytes, subtracted: int) -> bool:
        cur = self.storage.get_int(key_allow(msg.sender, spender))
        if cur < require_amount(subtracted):
            raise InsufficientAllowanceError(allowance=cur, required=subtracted)
        self._set_allowance(msg.sender, spender, cur - subtracted)
        return True

    # ---------------------------------------------------------------- supply

    @entrypoint
    def mint(self, msg: Msg, to: bytes, amount: int) -> bool:
        if msg.sender != self.storage.get_bytes(K_OWNER):
            raise NotMinterError(caller=to_hex(msg.sender))
        require_address(to)
        self._mint_to(to, require_amount(amount))
        return True

    @entrypoint
    def burn(self, msg: Msg, amount: int) -> bool:
        """Holder burns their own tokens."""
        self._burn(msg.sender, require_amount(amount))
        return True

    @entrypoint
    def burn_from(self, msg: Msg, owner: bytes, amount: int) -> bool:
        """Spender burns tokens from `owner` using allowance."""
        require_address(owner)
        require_amount(amount)
        self._spend_allowance(owner, msg.sender, amount)
        self._burn(owner, amount)
        return True

    # -------------------------------------------------------------- internals

    def _move(self, frm: bytes, to: bytes, amount: int) -> None:
        st = self.storage
        bal = st.get_int(key_balance(frm))
        if bal < amount:
            raise InsufficientBalanceError(account=to_hex(frm), balance=bal, required=amount)
        st.set_int(key_balance(frm), bal - amount)
        st.set_int(key_balance(to), u256_add(st.get_int(key_balance(to)), amount))
        self.emit(EVT_TRANSFER, {"from": frm, "to": to, "value": amount})

    def _set_allowance(self, owner: bytes, spender: bytes, amount: int) -> None:
        self.storage.set_int(key_allow(owner, spender), amount)
        self.emit(EVT_APPROVAL, {"owner": owner, "spender": spender, "value": amount})

    def _spend_allowance(self, owner: bytes, spender: bytes, amount: int) -> None:
        key = key_allow(owner, spender)
        cur = self.storage.get_int(key)
        if cur < amount:
            raise InsufficientAllowanceError(
                owner=to_hex(owner), spender=to_hex(spender), allowance=cur, required=amount
            )
        self.storage.set_int(key, cur - amount)

    def _mint_to(self, to: bytes, amount: int) -> None:
        """Unchecked mint; callers enforce permissions."""
        if amount == 0:
            return
        st = self.storage
        st.set_int(K_TOTAL, u256_add(st.get_int(K_TOTAL), amount))
        st.set_int(key_balance(to), u256_add(st.get_int(key_balance(to)), amount))
        self.emit(EVT_TRANSFER, {"from": ZERO_ADDRESS, "to": to, "value": amount})

    def _burn(self, owner: bytes, amount: int) -> None:
        if amount == 0:
            return
        st = self.storage
        bal = st.get_int(key_balance(owner))
        if bal < amount:
            raise InsufficientBalanceError(account=to_hex(owner), balance=bal, required=amount)
        st.set_int(key_balance(owner), bal - amount)
        st.set_int(K_TOTAL, u256_sub(st.get_int(K_TOTAL), amount))
        self.emit(EVT_TRANSFER, {"from": owner, "to": ZERO_ADDRESS, "value": amount})


__all__ = ["FungibleToken", "K_NAME", "K_SYMBOL", "K_DECIMALS", "K_TOTAL", "K_OWNER"]
