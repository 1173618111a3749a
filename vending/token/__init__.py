# -*- coding: utf-8 -*-
"""
vending.token
=============

Shared conventions for the token contracts used by the vending ledger. This
package does not touch storage by itself; it only provides key prefixes, event
names and validation shared by `fungible` and `bottle`.

Conventions
-----------
Storage keys (prefixed bytes):
  - balances:   BAL_PREFIX || <addr>
  - allowances: ALLOW_PREFIX || <owner> || b"|" || <spender>

Events:
  - b"Transfer" { "from": bytes, "to": bytes, "value": int }
  - b"Approval" { "owner": bytes, "spender": bytes, "value": int }

Mints and burns use `ZERO_ADDRESS` as the missing side of a Transfer.
"""

from __future__ import annotations

from typing import Final

from vendvm.runtime.context import ZERO_ADDRESS

from ..errors import InvalidAddressError
from ..math.safe_uint import require_u256

BAL_PREFIX: Final[bytes] = b"tok:bal:"
ALLOW_PREFIX: Final[bytes] = b"tok:allow:"

EVT_TRANSFER: Final[bytes] = b"Transfer"
EVT_APPROVAL: Final[bytes] = b"Approval"

DEFAULT_DECIMALS: Final[int] = 18
MAX_DECIMALS: Final[int] = 36


def require_address(addr: bytes) -> bytes:
    if not isinstance(addr, (bytes, bytearray)) or len(addr) == 0:
        raise InvalidAddressError(address=repr(addr))
    return bytes(addr)


def require_amount(n: int) -> int:
    require_u256(n)
    return n


def key_balance(addr: bytes) -> bytes:
    return BAL_PREFIX + require_address(addr)


def key_allow(owner: bytes, spender: bytes) -> bytes:
    return ALLOW_PREFIX + require_address(owner) + b"|" + require_address(spender)


def is_printable_ascii(s: bytes) -> bool:
    if not isinstance(s, (bytes, bytearray)) or len(s) == 0:
        return False
    return all(32 <= b <= 126 for b in s)


def clamp_decimals(n: int) -> int:
    return max(0, min(MAX_DECIMALS, int(n)))


__all__ = [
    "BAL_PREFIX",
    "ALLOW_PREFIX",
    "EVT_TRANSFER",
    "EVT_APPROVAL",
    "DEFAULT_DECIMALS",
    "ZERO_ADDRESS",
    "require_address",
    "require_amount",
    "key_balance",
    "key_allow",
    "is_printable_ascii",
    "clamp_decimals",
]
