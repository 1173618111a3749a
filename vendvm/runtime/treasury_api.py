"""
vendvm.runtime.treasury_api — native-currency balance ledger over the journal.

Every balance change goes through the journal, so a reverted frame takes its
value movements with it.

- balance(journal, addr) -> int
- credit(journal, addr, amount)         # mint (host/testing helper)
- debit(journal, addr, amount)          # burn (host/testing helper)
- move(journal, frm, to, amount)        # debit `frm`, credit `to`

Deterministic: no wall-clock, no randomness, pure arithmetic with explicit caps.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import Revert, VmError
from .context import require_address

if TYPE_CHECKING:  # pragma: no cover
    from .journal import Journal

MAX_BALANCE_BITS = 256
_MAX_BALANCE = (1 << MAX_BALANCE_BITS) - 1


class InsufficientFundsError(Revert):
    default_message = "insufficient native balance"
    default_code = "INSUFFICIENT_FUNDS"


def _check_amount(amount: int) -> int:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise VmError("amount must be int", code="bad_amount")
    if amount < 0:
        raise VmError("amount must be non-negative", code="bad_amount")
    if amount.bit_length() > MAX_BALANCE_BITS:
        raise VmError(f"amount exceeds {MAX_BALANCE_BITS}-bit limit", code="bad_amount")
    return amount


def _add_checked(a: int, b: int) -> int:
    c = a + b
    if c > _MAX_BALANCE:
        raise VmError("balance overflow", code="balance_overflow")
    return c


def balance(journal: "Journal", addr: bytes) -> int:
    return journal.get_balance(require_address(addr))


def credit(journal: "Journal", addr: bytes, amount: int) -> None:
    baddr = require_address(addr)
    _check_amount(amount)
    journal.set_balance(baddr, _add_checked(journal.get_balance(baddr), amount))


def debit(journal: "Journal", addr: bytes, amount: int) -> None:
    baddr = require_address(addr)
    _check_amount(amount)
    cur = journal.get_balance(baddr)
    if amount > cur:
        raise InsufficientFundsError(account="0x" + baddr.hex(), balance=cur, required=amount)
    journal.set_balance(baddr, cur - amount)


def move(journal: "Journal", frm: bytes, to: bytes, amount: int) -> None:
    """Debit `frm` and credit `to` by `amount` (no-op for zero)."""
    require_address(to)
    if _check_amount(amount) == 0:
        return
    debit(journal, frm, amount)
    credit(journal, to, amount)


__all__ = [
    "InsufficientFundsError",
    "MAX_BALANCE_BITS",
    "balance",
    "credit",
    "debit",
    "move",
]
