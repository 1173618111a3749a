"""
vendvm.receipts — per-transaction receipts and the canonical logs root.

Design choices
--------------
• Hash function: SHA3-256 with explicit domain tags to avoid cross-domain
  collisions.

• Log leaf hashing: canonical CBOR of {address, name, args} encoded with
  `cbor2` using canonical ordering, so leaf hashes are stable across runs and
  independent of dict insertion order.

• Merkle tree: binary, pairwise. If a level has an odd number of nodes the
  last hash is duplicated. Node hash = H("logs/node" || left || right). Leaf
  hash = H("logs/leaf" || cbor(event)). Empty tree root = H("logs/empty").
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import cbor2

from .runtime.events_api import Event, events_for_receipt

_D_LEAF = b"vendvm:logs:leaf"
_D_NODE = b"vendvm:logs:node"
_D_EMPTY = b"vendvm:logs:empty"

STATUS_SUCCESS = "SUCCESS"


def _h(domain: bytes, *parts: bytes) -> bytes:
    """Domain-separated hash: H(domain || 0x00 || part0 || part1 || ...)."""
    return hashlib.sha3_256(domain + b"\x00" + b"".join(parts)).digest()


def encode_event(ev: Event) -> bytes:
    obj = {"address": ev.address, "name": ev.name, "args": dict(ev.args)}
    return cbor2.dumps(obj, canonical=True)


def _merkle_root(leaves: Sequence[bytes]) -> bytes:
    if not leaves:
        return _h(_D_EMPTY)
    level = list(leaves)
    while len(level) > 1:
        nxt: List[bytes] = []
        it = iter(level)
        for left in it:
            right = next(it, left)
            nxt.append(_h(_D_NODE, left, right))
        level = nxt
    return level[0]


def compute_logs_root(logs: Iterable[Event]) -> bytes:
    """32-byte Merkle root over the given events."""
    return _merkle_root([_h(_D_LEAF, encode_event(ev)) for ev in logs])


@dataclass(frozen=True)
class Receipt:
    """Outcome of one transaction on the host."""

    tx_index: int
    sender: bytes
    to: Optional[bytes]
    method: str
    status: str
    events: Tuple[Event, ...] = ()
    return_value: Any = None
    error: Optional[Dict[str, Any]] = None
    logs_root: bytes = field(default=b"")

    @property
    def ok(self) -> bool:
        return self.status == STATUS_SUCCESS

    def find(self, name: bytes) -> List[Event]:
        return [ev for ev in self.events if ev.name == name]

    def event(self, name: bytes) -> Event:
        """The single event called `name`; raises LookupError otherwise."""
        found = self.find(name)
        if len(found) != 1:
            raise LookupError(f"expected exactly one {name!r} event, got {len(found)}")
        return found[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_index": self.tx_index,
            "sender": "0x" + self.sender.hex(),
            "to": ("0x" + self.to.hex()) if self.to is not None else None,
            "method": self.method,
            "status": self.status,
            "events": [
                {"address": c.address, "name": c.name, "args": list(c.args)}
                for c in events_for_receipt(self.events)
            ],
            "error": self.error,
            "logs_root": "0x" + self.logs_root.hex(),
        }

    def encode(self) -> bytes:
        """Canonical CBOR encoding of `to_dict()`."""
        return cbor2.dumps(self.to_dict(), canonical=True)


__all__ = ["Receipt", "STATUS_SUCCESS", "compute_logs_root", "encode_event"]
