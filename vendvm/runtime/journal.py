"""
vendvm.runtime.journal — journaling writes, checkpoints, revert/commit.

This module provides a deterministic, in-memory write journal over the whole
host state: native balances, per-contract storage, deployed code, account
nonces and the event log. It supports nested checkpoints via a stack of
overlays. Writes go to the top overlay; reads consult overlays from top to
base. `commit()` merges the top overlay into the next layer (or the base state
if it's the last layer). `revert()` discards the top overlay.

Key properties
--------------
- Pure Python, no I/O; safe for unit tests and simulations.
- Storage overlay per (address, key) with explicit deletion markers (None).
- Events live in the overlays too, so a reverted frame's events vanish with
  its state changes.
- Nested checkpoints (begin/commit/revert) with O(changes) merge cost.

Intended usage
--------------
    j = Journal()
    j.begin()                       # start a checkpoint
    j.set_balance(addr, 123)
    j.storage_set(addr, b"k", b"v")
    j.commit()                      # apply to parent/base
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..errors import VmError


@dataclass
class _Overlay:
    """
    A single journal layer.

    `storage` maps address -> key -> value; a `None` value marks deletion.
    """

    balances: Dict[bytes, int] = field(default_factory=dict)
    nonces: Dict[bytes, int] = field(default_factory=dict)
    code: Dict[bytes, Any] = field(default_factory=dict)
    storage: Dict[bytes, Dict[bytes, Optional[bytes]]] = field(default_factory=dict)
    logs: List[Any] = field(default_factory=list)


@dataclass
class _BaseState:
    balances: Dict[bytes, int] = field(default_factory=dict)
    nonces: Dict[bytes, int] = field(default_factory=dict)
    code: Dict[bytes, Any] = field(default_factory=dict)
    storage: Dict[bytes, Dict[bytes, bytes]] = field(default_factory=dict)
    logs: List[Any] = field(default_factory=list)


class Journal:
    """
    A copy-on-write write journal with nested checkpoints.

    API highlights
    --------------
    - begin() / commit() / revert()
    - get_balance(), set_balance()
    - storage_get(), storage_set(), storage_delete()
    - get_code(), set_code(), get_nonce(), set_nonce()
    - append_log(), committed_logs()
    - take_snapshot() / restore_snapshot()  (only with no open checkpoint)
    """

    def __init__(self) -> None:
        self._base = _BaseState()
        self._layers: List[_Overlay] = []

    # ---------------------------------------------------------------- layers

    @property
    def depth(self) -> int:
        return len(self._layers)

    def begin(self) -> None:
        self._layers.append(_Overlay())

    def commit(self) -> None:
        if not self._layers:
            raise VmError("commit without an open checkpoint", code="journal_state")
        top = self._layers.pop()
        if self._layers:
            parent = self._layers[-1]
            parent.balances.update(top.balances)
            parent.nonces.update(top.nonces)
            parent.code.update(top.code)
            for addr, entries in top.storage.items():
                parent.storage.setdefault(addr, {}).update(entries)
            parent.logs.extend(top.logs)
            return

        base = self._base
        base.balances.update(top.balances)
        base.nonces.update(top.nonces)
        base.code.update(top.code)
        for addr, entries in top.storage.items():
            slot = base.storage.setdefault(addr, {})
            for key, value in entries.items():
                if value is None:
                    slot.pop(key, None)
                else:
                    slot[key] = value
        base.logs.extend(top.logs)

    def revert(self) -> None:
        if not self._layers:
            raise VmError("revert without an open checkpoint", code="journal_state")
        self._layers.pop()

    # -------------------------------------------------------------- balances

    def get_balance(self, addr: bytes) -> int:
        for layer in reversed(self._layers):
            if addr in layer.balances:
                return layer.balances[addr]
        return self._base.balances.get(addr, 0)

    def set_balance(self, addr: bytes, amount: int) -> None:
        if amount < 0:
            raise VmError("balance must be non-negative", code="journal_state")
        self._top().balances[addr] = amount

    # ---------------------------------------------------------------- nonces

    def get_nonce(self, addr: bytes) -> int:
        for layer in reversed(self._layers):
            if addr in layer.nonces:
                return layer.nonces[addr]
        return self._base.nonces.get(addr, 0)

    def set_nonce(self, addr: bytes, nonce: int) -> None:
        self._top().nonces[addr] = nonce

    # ------------------------------------------------------------------ code

    def get_code(self, addr: bytes) -> Optional[Any]:
        for layer in reversed(self._layers):
            if addr in layer.code:
                return layer.code[addr]
        return self._base.code.get(addr)

    def set_code(self, addr: bytes, code: Any) -> None:
        self._top().code[addr] = code

    # --------------------------------------------------------------- storage

    def storage_get(self, addr: bytes, key: bytes) -> Optional[bytes]:
        for layer in reversed(self._layers):
            entries = layer.storage.get(addr)
            if entries is not None and key in entries:
                return entries[key]
        return self._base.storage.get(addr, {}).get(key)

    def storage_set(self, addr: bytes, key: bytes, value: bytes) -> None:
        self._top().storage.setdefault(addr, {})[key] = value

    def storage_delete(self, addr: bytes, key: bytes) -> None:
        self._top().storage.setdefault(addr, {})[key] = None

    # ------------------------------------------------------------------ logs

    def append_log(self, event: Any) -> None:
        self._top().logs.append(event)

    def pending_logs(self) -> List[Any]:
        """Logs emitted in all open checkpoints, in emission order."""
        out: List[Any] = []
        for layer in self._layers:
            out.extend(layer.logs)
        return out

    def committed_logs(self) -> List[Any]:
        return list(self._base.logs)

    # ------------------------------------------------------------- snapshots

    def take_snapshot(self) -> _BaseState:
        if self._layers:
            raise VmError("cannot snapshot inside an open checkpoint", code="journal_state")
        return copy.deepcopy(self._base, memo=self._code_memo())

    def restore_snapshot(self, snap: _BaseState) -> None:
        if self._layers:
            raise VmError("cannot restore inside an open checkpoint", code="journal_state")
        self._base = copy.deepcopy(snap, memo=self._code_memo(snap))

    # -------------------------------------------------------------- internal

    def _top(self) -> _Overlay:
        if not self._layers:
            raise VmError("write outside of a checkpoint", code="journal_state")
        return self._layers[-1]

    def _code_memo(self, state: Optional[_BaseState] = None) -> Dict[int, Any]:
        # Contract objects are shared, not copied: only their storage is state.
        src = state if state is not None else self._base
        return {id(c): c for c in src.code.values()}

    def storage_items(self, addr: bytes) -> List[Tuple[bytes, bytes]]:
        """Committed storage of `addr`, sorted by key (introspection/tests)."""
        return sorted(self._base.storage.get(addr, {}).items())


__all__ = ["Journal"]
