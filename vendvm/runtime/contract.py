"""
vendvm.runtime.contract — base class and decorators for host-executed contracts.

A contract is a Python class whose *state lives entirely in host storage*.
Instances only carry their address and a reference to the host, so the host
can snapshot, commit and revert state without knowing anything about the
contract's Python attributes.

Only methods marked with a decorator are callable from outside:

    class Counter(Contract):
        def constructor(self, msg: Msg, start: int) -> None:
            self.storage.set_int(b"n", start)

        @entrypoint
        def inc(self, msg: Msg) -> None:
            self.storage.set_int(b"n", self.storage.get_int(b"n") + 1)
            self.emit(b"Inc", {"by": msg.sender})

        @view
        def get(self) -> int:
            return self.storage.get_int(b"n")

State-changing entry points receive an explicit `Msg`; views receive only
their arguments and run in a static frame (writes and events are rejected).

Outbound interactions (`call`, `send`) mark the current frame as having
interacted; from then on the frame may no longer write its own storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, TypeVar

from .context import Msg

if TYPE_CHECKING:  # pragma: no cover
    from .host import Chain
    from .storage_api import StorageView

F = TypeVar("F", bound=Callable[..., Any])

ENTRY_ATTR = "__vendvm_entry__"


@dataclass(frozen=True)
class EntrySpec:
    kind: str  # "call" | "view"
    payable: bool = False


def entrypoint(fn: Optional[F] = None, *, payable: bool = False) -> Any:
    """Mark a method as a state-changing entry point (optionally payable)."""

    def mark(f: F) -> F:
        setattr(f, ENTRY_ATTR, EntrySpec(kind="call", payable=payable))
        return f

    if fn is not None:
        return mark(fn)
    return mark


def view(fn: F) -> F:
    """Mark a method as a read-only entry point."""
    setattr(fn, ENTRY_ATTR, EntrySpec(kind="view"))
    return fn


def entry_spec(cls: type, method: str) -> Optional[EntrySpec]:
    if method.startswith("_"):
        return None
    fn = getattr(cls, method, None)
    if fn is None:
        return None
    return getattr(fn, ENTRY_ATTR, None)


class Contract:
    """Base class for contracts deployed on a `Chain`."""

    def __init__(self, host: "Chain", address: bytes) -> None:
        self._host = host
        self.address = address

    def constructor(self, msg: Msg, *args: Any, **kwargs: Any) -> None:
        """Runs once at deployment, inside the deploy transaction."""

    # ------------------------------------------------------------ own state

    @property
    def storage(self) -> "StorageView":
        return self._host.storage_view(self.address)

    def emit(self, name: bytes, args: Mapping[str, Any]) -> None:
        self._host.emit(self.address, name, args)

    def self_balance(self) -> int:
        return self._host.balance_of(self.address)

    # --------------------------------------------------------- interactions

    def call(self, to: bytes, method: str, *args: Any, value: int = 0, **kwargs: Any) -> Any:
        """Invoke an entry point of another contract as `msg.sender == self`."""
        return self._host.contract_call(self.address, to, method, args, kwargs, value=value)

    def read(self, to: bytes, method: str, *args: Any) -> Any:
        """Static call into another contract's view; does not count as an interaction."""
        return self._host.contract_read(self.address, to, method, args)

    def send(self, to: bytes, amount: int) -> None:
        """Transfer native value out of this contract."""
        self._host.contract_send(self.address, to, amount)


__all__ = ["Contract", "EntrySpec", "entrypoint", "view", "entry_spec", "ENTRY_ATTR"]
