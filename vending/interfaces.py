# -*- coding: utf-8 -*-
"""
Capability handles the ledger uses to talk to its tokens.

A handle binds a calling contract to a token address and exposes only the
operations the ledger needs. State-changing operations go through
`Contract.call` (and therefore count as an outbound interaction of the
caller's frame); queries go through `Contract.read` (static, no interaction).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from vendvm.runtime.contract import Contract


class _TokenHandle:
    def __init__(self, caller: "Contract", address: bytes) -> None:
        self._caller = caller
        self.address = address

    def balance_of(self, who: bytes) -> int:
        return self._caller.read(self.address, "balance_of", who)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self._caller.read(self.address, "allowance", owner, spender)


class BottleTokenHandle(_TokenHandle):
    """mint-on-sale / burn-on-return surface of the bottle token."""

    def mint_to(self, to: bytes, amount: int) -> None:
        self._caller.call(self.address, "mint_to", to, amount)

    def burn_from(self, owner: bytes, amount: int) -> None:
        self._caller.call(self.address, "burn_from", owner, amount)


class PayableTokenHandle(_TokenHandle):
    """Pull-then-hold surface of the secondary currency."""

    def transfer_from(self, owner: bytes, to: bytes, amount: int) -> None:
        self._caller.call(self.address, "transfer_from", owner, to, amount)

    def transfer(self, to: bytes, amount: int) -> None:
        self._caller.call(self.address, "transfer", to, amount)


__all__ = ["BottleTokenHandle", "PayableTokenHandle"]
