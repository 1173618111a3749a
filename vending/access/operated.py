# -*- coding: utf-8 -*-
"""
vending.access.operated
=======================

Owner plus a bounded, enumerable set of operators.

The owner is the deployer and never changes. Operators are added and removed
by any authorized principal (owner or operator). The operator set is stored
as an index-addressed array with a reverse position map so that membership
checks, enumeration and removal (swap-and-pop) never scan storage:

    access:owner                -> address
    access:ops:max              -> u256 bound on operators (owner excluded)
    access:ops:n                -> u256 number of operators
    access:ops:at:<u32 index>   -> address
    access:ops:pos:<address>    -> u256 index + 1 (missing => not a member)

Events:
    b"OperatorAdded"   {"operator": bytes}
    b"OperatorRemoved" {"operator": bytes}

Contracts mix this in by subclassing `Operated` and calling
`self._init_operated(msg.sender, max_operators)` from their constructor, then
gating privileged entry points with `self._require_authorized(msg.sender)`.
"""
from __future__ import annotations

from typing import Final, List

from vendvm.runtime.context import ZERO_ADDRESS, Msg, to_hex
from vendvm.runtime.contract import Contract, entrypoint, view

from ..errors import (AlreadyOperatorError, CapacityError, InvalidAddressError,
                      NotOperatorError, SelfReferenceError, UnauthorizedError)

K_OWNER: Final[bytes] = b"access:owner"
K_MAX_OPS: Final[bytes] = b"access:ops:max"
K_OPS_LEN: Final[bytes] = b"access:ops:n"
_AT_PREFIX: Final[bytes] = b"access:ops:at:"
_POS_PREFIX: Final[bytes] = b"access:ops:pos:"

EVT_OPERATOR_ADDED: Final[bytes] = b"OperatorAdded"
EVT_OPERATOR_REMOVED: Final[bytes] = b"OperatorRemoved"

DEFAULT_MAX_OPERATORS: Final[int] = 2


def _key_at(index: int) -> bytes:
    return _AT_PREFIX + index.to_bytes(4, "big")


def _key_pos(addr: bytes) -> bytes:
    return _POS_PREFIX + bytes(addr)


def require_account(addr: bytes) -> bytes:
    """Full-length address or `InvalidAddressError`."""
    if not isinstance(addr, (bytes, bytearray)) or len(addr) != len(ZERO_ADDRESS):
        raise InvalidAddressError(address=repr(addr))
    return bytes(addr)


class Operated(Contract):
    """Access-control mixin: owner + up to `max_operators` operators."""

    def _init_operated(self, owner: bytes, max_operators: int = DEFAULT_MAX_OPERATORS) -> None:
        if not isinstance(max_operators, int) or max_operators < 0:
            raise CapacityError("Operated: invalid operator bound", max_operators=max_operators)
        st = self.storage
        st.set(K_OWNER, owner)
        st.set_int(K_MAX_OPS, max_operators)

    # ------------------------------------------------------------------ views

    @view
    def owner(self) -> bytes:
        return self.storage.get_bytes(K_OWNER)

    @view
    def operators(self) -> List[bytes]:
        st = self.storage
        return [st.get_bytes(_key_at(i)) for i in range(st.get_int(K_OPS_LEN))]

    @view
    def get_operators_count(self) -> int:
        """Authorized principals, the owner included."""
        return 1 + self.storage.get_int(K_OPS_LEN)

    @view
    def max_operators(self) -> int:
        return self.storage.get_int(K_MAX_OPS)

    @view
    def is_authorized(self, identity: bytes) -> bool:
        return self._is_authorized(identity)

    # -------------------------------------------------------------- mutations

    @entrypoint
    def add_operator(self, msg: Msg, candidate: bytes) -> None:
        self._require_authorized(msg.sender)
        candidate = require_account(candidate)
        if candidate == msg.sender:
            raise SelfReferenceError(candidate=to_hex(candidate))
        if self._is_authorized(candidate):
            raise AlreadyOperatorError(candidate=to_hex(candidate))

        st = self.storage
        n = st.get_int(K_OPS_LEN)
        bound = st.get_int(K_MAX_OPS)
        if n >= bound:
            raise CapacityError(max_operators=bound, authorized=1 + n)

        st.set(_key_at(n), candidate)
        st.set_int(_key_pos(candidate), n + 1)
        st.set_int(K_OPS_LEN, n + 1)
        self.emit(EVT_OPERATOR_ADDED, {"operator": candidate})

    @entrypoint
    def remove_operator(self, msg: Msg, target: bytes) -> None:
        self._require_authorized(msg.sender)
        target = require_account(target)
        st = self.storage
        pos = st.get_int(_key_pos(target))
        if pos == 0:
            raise NotOperatorError(target=to_hex(target))

        last = st.get_int(K_OPS_LEN) - 1
        idx = pos - 1
        if idx != last:
            moved = st.get_bytes(_key_at(last))
            st.set(_key_at(idx), moved)
            st.set_int(_key_pos(moved), idx + 1)
        st.delete(_key_at(last))
        st.delete(_key_pos(target))
        st.set_int(K_OPS_LEN, last)
        self.emit(EVT_OPERATOR_REMOVED, {"operator": target})

    # -------------------------------------------------------------- internals

    def _is_authorized(self, identity: bytes) -> bool:
        if not isinstance(identity, (bytes, bytearray)) or len(identity) == 0:
            return False
        st = self.storage
        if bytes(identity) == st.get_bytes(K_OWNER):
            return True
        return st.get_int(_key_pos(identity)) != 0

    def _require_authorized(self, caller: bytes) -> None:
        if not self._is_authorized(caller):
            raise UnauthorizedError(caller=to_hex(caller))


__all__ = [
    "Operated",
    "DEFAULT_MAX_OPERATORS",
    "EVT_OPERATOR_ADDED",
    "EVT_OPERATOR_REMOVED",
    "K_OWNER",
    "require_account",
]
