"""
vendvm.runtime.storage_api — deterministic key/value storage for one contract.

A `StorageView` is the contract-facing handle onto the host journal for a
single address inside a single call frame.

Design goals
------------
- Deterministic: pure functions over (key, value) with no wall-clock or I/O.
- Safe: strict byte-length caps; typed helpers for common int <-> bytes use.
- Ordered effects: once the owning frame has made an outbound call, any write
  raises `EffectsAfterInteractionError`. Reads stay allowed.

Public API
----------
- get(key) -> Optional[bytes]
- set(key, value) -> None
- delete(key) -> None
- exists(key) -> bool
- get_int(key) -> int              # big-endian, unsigned, missing -> 0
- set_int(key, value) -> None      # 32-byte big-endian u256
- get_bool(key) / set_bool(key, flag)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..config import load_config
from ..errors import EffectsAfterInteractionError, InvalidAccess, VmError

if TYPE_CHECKING:  # pragma: no cover
    from .host import Frame
    from .journal import Journal

U256_MAX = (1 << 256) - 1


def _check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise VmError("storage key must be bytes", code="storage_invalid")
    if len(key) == 0:
        raise VmError("storage key must be non-empty", code="storage_invalid")
    cap = load_config().max_storage_key_bytes
    if len(key) > cap:
        raise VmError(
            f"storage key too long (>{cap} bytes)",
            code="storage_invalid",
            context={"len": len(key)},
        )
    return bytes(key)


def _check_value(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise VmError("storage value must be bytes", code="storage_invalid")
    cap = load_config().max_storage_value_bytes
    if len(value) > cap:
        raise VmError(
            f"storage value too large (>{cap} bytes)",
            code="storage_invalid",
            context={"len": len(value)},
        )
    return bytes(value)


class StorageView:
    """Storage of `frame.address`, as seen from inside `frame`."""

    def __init__(self, journal: "Journal", frame: "Frame") -> None:
        self._journal = journal
        self._frame = frame

    @property
    def address(self) -> bytes:
        return self._frame.address

    def _guard_write(self, key: bytes) -> None:
        if self._frame.static:
            raise InvalidAccess(
                "storage write from a static frame",
                op="storage.set",
                address="0x" + self._frame.address.hex(),
            )
        if self._frame.interacted:
            raise EffectsAfterInteractionError("0x" + self._frame.address.hex(), key)

    # ----------------------------------------------------------- raw bytes

    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value for `key`, or None if not set."""
        return self._journal.storage_get(self._frame.address, _check_key(key))

    def set(self, key: bytes, value: bytes) -> None:
        """Set `key` to `value` (overwrites existing)."""
        k = _check_key(key)
        v = _check_value(value)
        self._guard_write(k)
        self._journal.storage_set(self._frame.address, k, v)

    def delete(self, key: bytes) -> None:
        """Delete `key` if present (no-op otherwise)."""
        k = _check_key(key)
        self._guard_write(k)
        self._journal.storage_delete(self._frame.address, k)

    def exists(self, key: bytes) -> bool:
        return self.get(key) is not None

    # -------------------------------------------------------- typed helpers

    def get_int(self, key: bytes) -> int:
        raw = self.get(key)
        if not raw:
            return 0
        return int.from_bytes(raw, "big", signed=False)

    def set_int(self, key: bytes, value: int) -> None:
        """Store `value` as a 32-byte big-endian u256."""
        if not isinstance(value, int) or isinstance(value, bool):
            raise VmError("set_int value must be int", code="storage_invalid")
        if value < 0 or value > U256_MAX:
            raise VmError("set_int out of range (must fit in 256 bits)", code="storage_invalid")
        self.set(key, value.to_bytes(32, "big"))

    def get_bool(self, key: bytes) -> bool:
        return self.get(key) == b"\x01"

    def set_bool(self, key: bytes, flag: bool) -> None:
        if flag:
            self.set(key, b"\x01")
        else:
            self.delete(key)

    def get_bytes(self, key: bytes) -> bytes:
        v = self.get(key)
        return v if v else b""


__all__ = ["StorageView", "U256_MAX"]
