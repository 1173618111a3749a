"""
vendvm.runtime.context — the call envelope passed to contract entry points.

Contracts never read an ambient "current sender". Every state-changing entry
point receives an explicit `Msg` carrying who called it and how much native
value came along with the call. The host builds a fresh `Msg` for every frame,
so inside a nested call `msg.sender` is the calling *contract*.

Addresses are raw bytes of `VmConfig.address_len` length. Hex strings (with or
without "0x") are accepted by `to_bytes` and normalized.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Union

from ..config import load_config
from ..errors import VmError


# ----------------------------- helpers ----------------------------- #


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise VmError(f"hex string must have even length, got {len(h)}", code="bad_hex")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise VmError(f"invalid hex string: {value!r}", code="bad_hex") from e
    raise VmError(f"cannot convert type {type(value).__name__} to bytes", code="bad_hex")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def require_address(addr: Any, *, name: str = "address") -> bytes:
    """Return `addr` as bytes, or raise VmError if it is not a well-formed address."""
    alen = load_config().address_len
    if not isinstance(addr, (bytes, bytearray)):
        raise VmError(f"{name} must be bytes", code="bad_address", context={"type": type(addr).__name__})
    if len(addr) != alen:
        raise VmError(
            f"{name} must be exactly {alen} bytes",
            code="bad_address",
            context={"len": len(addr)},
        )
    return bytes(addr)


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise VmError(f"{name} must be int, got {type(v).__name__}", code="bad_int")
    if v < 0:
        raise VmError(f"{name} must be non-negative, got {v}", code="bad_int")
    return v


ZERO_ADDRESS: bytes = b"\x00" * load_config().address_len


def label_address(label: str) -> bytes:
    """Stable account address derived from a human label (test accounts)."""
    digest = hashlib.sha3_256(b"vendvm:account|" + label.encode("utf-8")).digest()
    return digest[: load_config().address_len]


def contract_address(deployer: bytes, nonce: int) -> bytes:
    """Deterministic contract address: H(deployer || nonce) truncated."""
    _require_non_negative_int("nonce", nonce)
    digest = hashlib.sha3_256(
        b"vendvm:create|" + bytes(deployer) + nonce.to_bytes(8, "big")
    ).digest()
    return digest[: load_config().address_len]


# ----------------------------- models ------------------------------ #


@dataclass(frozen=True)
class Msg:
    """
    Per-frame call envelope.

    Fields
    ------
    sender: Immediate caller (an account or a calling contract).
    value:  Native value transferred into the callee with this call.
    origin: Account that signed the outer transaction.
    """

    sender: bytes
    value: int = 0
    origin: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", require_address(self.sender, name="sender"))
        object.__setattr__(self, "value", _require_non_negative_int("value", self.value))
        origin = self.origin or self.sender
        object.__setattr__(self, "origin", require_address(origin, name="origin"))

    def to_dict(self) -> dict:
        return {"sender": to_hex(self.sender), "value": self.value, "origin": to_hex(self.origin)}


__all__ = [
    "Msg",
    "ZERO_ADDRESS",
    "to_bytes",
    "to_hex",
    "require_address",
    "label_address",
    "contract_address",
]
