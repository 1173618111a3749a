# -*- coding: utf-8 -*-
"""
Bottle token: one unit represents one bottle sold by a vending ledger.

The ledger is the only minter. Holders return bottles by approving the ledger
and letting it `burn_from` their balance.
"""

from __future__ import annotations

from typing import Final

from vendvm.runtime.context import Msg, to_hex
from vendvm.runtime.contract import entrypoint, view

from ..errors import NotMinterError
from . import require_address, require_amount
from .fungible import FungibleToken

K_MINTER: Final[bytes] = b"tok:meta:minter"

BOTTLE_NAME: Final[bytes] = b"SpaceCola"
BOTTLE_SYMBOL: Final[bytes] = b"SPC"


class BottleToken(FungibleToken):
    def constructor(  # type: ignore[override]
        self,
        msg: Msg,
        minter: bytes,
        name: bytes = BOTTLE_NAME,
        symbol: bytes = BOTTLE_SYMBOL,
    ) -> None:
        super().constructor(msg, name, symbol, 0, 0)
        self.storage.set(K_MINTER, require_address(minter))

    @view
    def minter(self) -> bytes:
        return self.storage.get_bytes(K_MINTER)

    @entrypoint
    def mint_to(self, msg: Msg, to: bytes, amount: int) -> bool:
        """Mint `amount` bottles to `to`; minter only."""
        if msg.sender != self.storage.get_bytes(K_MINTER):
            raise NotMinterError(caller=to_hex(msg.sender))
        require_address(to)
        self._mint_to(to, require_amount(amount))
        return True

    @entrypoint
    def mint(self, msg: Msg, to: bytes, amount: int) -> bool:
        # Same gate as mint_to.
        return self.mint_to(msg, to, amount)


__all__ = ["BottleToken", "BOTTLE_NAME", "BOTTLE_SYMBOL", "K_MINTER"]
