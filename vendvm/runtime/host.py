"""
vendvm.runtime.host — the Chain: deploys contracts and runs transactions.

Execution model
---------------
* Transactions are serialized. Each one runs inside a journal checkpoint and
  either commits completely or is reverted completely; the exception that
  caused the revert is re-raised to the caller after a failed receipt has been
  recorded.
* Every contract invocation (top-level or nested) is a *frame* with its own
  nested checkpoint. A contract that catches a failing inner call therefore
  still sees the inner call's effects undone.
* Contract-to-contract calls go back through the host, so a callee can call
  back into its caller before the caller's frame returns. To keep that safe by
  construction, a frame that has made an outbound call may no longer write its
  own storage (`EffectsAfterInteractionError`).

Usage
-----
    chain = Chain()
    alice = chain.account("alice")
    counter = chain.deploy(alice, Counter, 0)
    receipt = chain.transact(alice, counter, "inc")
    assert chain.call(counter, "get") == 1

    # or through a handle
    c = chain.at(counter).connect(alice)
    c.inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from ..config import VmConfig, load_config
from ..errors import (CallDepthExceeded, InvalidAccess, NotPayableError,
                      UnknownEntrypointError, VmError, error_to_receipt_fields)
from ..receipts import STATUS_SUCCESS, Receipt, compute_logs_root
from . import treasury_api as treasury
from .context import Msg, contract_address, label_address, require_address, to_hex
from .contract import Contract, EntrySpec, entry_spec
from .events_api import Event, make_event
from .journal import Journal
from .storage_api import StorageView

log = logging.getLogger(__name__)


@dataclass
class Frame:
    """One contract invocation inside a transaction."""

    address: bytes
    msg: Msg
    depth: int
    static: bool = False
    interacted: bool = False


class Chain:
    """In-process deterministic host for `Contract` subclasses."""

    def __init__(self, config: Optional[VmConfig] = None) -> None:
        self.config = config or load_config()
        self._journal = Journal()
        self._frames: List[Frame] = []
        self._snapshots: Dict[int, Tuple[Any, int, int]] = {}
        self._next_snapshot = 1
        self._funded: Dict[bytes, str] = {}
        self.height = 0
        self.receipts: List[Receipt] = []

    # ================================================================ accounts

    def account(self, label: str, *, funding: Optional[int] = None) -> bytes:
        """
        Deterministic externally-owned account for `label`. The first request
        funds it with `funding` (default: `config.default_funding`).
        """
        addr = label_address(label)
        if addr not in self._funded:
            self._funded[addr] = label
            amount = self.config.default_funding if funding is None else funding
            if amount:
                self.fund(addr, amount)
        return addr

    def fund(self, addr: bytes, amount: int) -> None:
        """Mint native value to `addr` (test/dev helper)."""
        self._atomic(lambda: treasury.credit(self._journal, addr, amount))

    def balance_of(self, addr: bytes) -> int:
        return treasury.balance(self._journal, addr)

    def nonce_of(self, addr: bytes) -> int:
        return self._journal.get_nonce(require_address(addr))

    def code_at(self, addr: bytes) -> Optional[Contract]:
        return self._journal.get_code(require_address(addr))

    def label_of(self, addr: bytes) -> str:
        return self._funded.get(addr) or to_hex(addr)

    # ============================================================== deployment

    def predict_address(self, deployer: bytes, offset: int = 0) -> bytes:
        """Address the deployer's `offset`-th next deployment will receive."""
        return contract_address(require_address(deployer), self.nonce_of(deployer) + offset)

    def deploy(
        self,
        sender: bytes,
        contract_cls: Type[Contract],
        *args: Any,
        value: int = 0,
        **kwargs: Any,
    ) -> bytes:
        """Deploy `contract_cls` and run its constructor; returns the new address."""
        sender = require_address(sender, name="sender")

        def run() -> bytes:
            nonce = self._journal.get_nonce(sender)
            addr = contract_address(sender, nonce)
            if self._journal.get_code(addr) is not None:
                raise VmError("address collision on deploy", code="deploy_collision")
            self._journal.set_nonce(sender, nonce + 1)
            instance = contract_cls(self, addr)
            self._journal.set_code(addr, instance)
            self._enter_frame(
                Frame(address=addr, msg=Msg(sender, value, sender), depth=0),
                lambda msg: instance.constructor(msg, *args, **kwargs),
            )
            return addr

        receipt = self._run_tx(sender, None, "constructor", run)
        addr = receipt.return_value
        log.info("deployed %s at %s", contract_cls.__name__, to_hex(addr))
        return addr

    # ============================================================ transactions

    def transact(
        self,
        sender: bytes,
        to: bytes,
        method: str,
        *args: Any,
        value: int = 0,
        **kwargs: Any,
    ) -> Receipt:
        """Run `to.method(*args)` as a transaction signed by `sender`."""
        sender = require_address(sender, name="sender")
        to = require_address(to, name="to")
        return self._run_tx(
            sender,
            to,
            method,
            lambda: self._invoke(sender, sender, to, method, args, kwargs, value=value),
        )

    def send(self, sender: bytes, to: bytes, amount: int) -> Receipt:
        """Plain native transfer; a contract recipient must expose a payable `receive`."""
        sender = require_address(sender, name="sender")
        to = require_address(to, name="to")

        def run() -> None:
            self._transfer_native(sender, sender, to, amount)

        return self._run_tx(sender, to, "send", run)

    def call(
        self,
        to: bytes,
        method: str,
        *args: Any,
        sender: Optional[bytes] = None,
        value: int = 0,
        **kwargs: Any,
    ) -> Any:
        """
        Evaluate `to.method(*args)` without persisting anything. Views run in a
        static frame; state-changing entry points are simulated and discarded.
        """
        if self._frames:
            raise VmError("Chain.call is not reentrant; use Contract.read", code="host_state")
        to = require_address(to, name="to")
        caller = require_address(sender, name="sender") if sender is not None else to
        self._journal.begin()
        try:
            return self._invoke(caller, caller, to, method, args, kwargs, value=value)
        finally:
            self._journal.revert()

    def at(self, address: bytes) -> "ContractHandle":
        return ContractHandle(self, require_address(address))

    # =============================================================== snapshots

    def snapshot(self) -> int:
        sid = self._next_snapshot
        self._next_snapshot += 1
        self._snapshots[sid] = (self._journal.take_snapshot(), self.height, len(self.receipts))
        return sid

    def revert_to(self, snapshot_id: int) -> None:
        """Restore state to `snapshot_id`; the snapshot stays usable."""
        try:
            state, height, n_receipts = self._snapshots[snapshot_id]
        except KeyError:
            raise VmError(f"unknown snapshot {snapshot_id}", code="host_state") from None
        self._journal.restore_snapshot(state)
        self.height = height
        del self.receipts[n_receipts:]

    # ================================================================== events

    def events(self, address: Optional[bytes] = None, name: Optional[bytes] = None) -> List[Event]:
        """Committed events, optionally filtered by emitter and name."""
        out = self._journal.committed_logs()
        if address is not None:
            out = [ev for ev in out if ev.address == address]
        if name is not None:
            out = [ev for ev in out if ev.name == name]
        return out

    def storage_items(self, address: bytes) -> List[Tuple[bytes, bytes]]:
        return self._journal.storage_items(require_address(address))

    # ======================================================== contract-facing

    def storage_view(self, address: bytes) -> StorageView:
        frame = self._current_frame()
        if frame.address != address:
            raise VmError(
                "storage access outside of the contract's own frame",
                code="host_state",
                context={"frame": to_hex(frame.address), "address": to_hex(address)},
            )
        return StorageView(self._journal, frame)

    def emit(self, address: bytes, name: Any, args: Mapping[str, Any]) -> None:
        frame = self._current_frame()
        if frame.address != address:
            raise VmError("event emitted outside of the contract's own frame", code="host_state")
        if frame.static:
            raise InvalidAccess("event emitted from a static frame", op="emit", address=to_hex(address))
        if len(self._journal.pending_logs()) >= self.config.max_logs_per_tx:
            raise VmError("too many logs in one transaction", code="log_limit")
        self._journal.append_log(make_event(address, name, args))

    def contract_call(
        self,
        caller: bytes,
        to: bytes,
        method: str,
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
        *,
        value: int = 0,
    ) -> Any:
        frame = self._outbound_frame(caller, "call")
        frame.interacted = True
        return self._invoke(caller, frame.msg.origin, require_address(to, name="to"), method, args, kwargs, value=value)

    def contract_read(self, caller: bytes, to: bytes, method: str, args: Sequence[Any]) -> Any:
        frame = self._current_frame()
        if frame.address != caller:
            raise VmError("read issued outside of the caller's frame", code="host_state")
        return self._invoke(caller, frame.msg.origin, require_address(to, name="to"), method, args, {}, static=True)

    def contract_send(self, caller: bytes, to: bytes, amount: int) -> None:
        frame = self._outbound_frame(caller, "send")
        frame.interacted = True
        self._transfer_native(caller, frame.msg.origin, require_address(to, name="to"), amount)

    # ================================================================ internal

    def _current_frame(self) -> Frame:
        if not self._frames:
            raise VmError("no active contract frame", code="host_state")
        return self._frames[-1]

    def _outbound_frame(self, caller: bytes, op: str) -> Frame:
        frame = self._current_frame()
        if frame.address != caller:
            raise VmError(f"{op} issued outside of the caller's frame", code="host_state")
        if frame.static:
            raise InvalidAccess(f"{op} from a static frame", op=op, address=to_hex(caller))
        return frame

    def _atomic(self, fn: Callable[[], Any]) -> Any:
        self._journal.begin()
        try:
            out = fn()
        except BaseException:
            self._journal.revert()
            raise
        self._journal.commit()
        return out

    def _run_tx(self, sender: bytes, to: Optional[bytes], method: str, fn: Callable[[], Any]) -> Receipt:
        if self._frames or self._journal.depth:
            raise VmError("transactions cannot be nested", code="host_state")
        tx_index = len(self.receipts)
        start = len(self._journal.committed_logs())
        self._journal.begin()
        try:
            result = fn()
        except BaseException as err:
            self._journal.revert()
            fields = error_to_receipt_fields(err)
            receipt = Receipt(
                tx_index=tx_index,
                sender=sender,
                to=to,
                method=method,
                status=fields["status"],
                error=fields["error"],
                logs_root=compute_logs_root(()),
            )
            self.receipts.append(receipt)
            log.info(
                "tx %d %s.%s by %s reverted: %s",
                tx_index,
                to_hex(to) if to else "<create>",
                method,
                self.label_of(sender),
                fields["error"].get("code"),
            )
            raise
        self._journal.commit()
        self.height += 1
        events = tuple(self._journal.committed_logs()[start:])
        receipt = Receipt(
            tx_index=tx_index,
            sender=sender,
            to=to,
            method=method,
            status=STATUS_SUCCESS,
            events=events,
            return_value=result,
            logs_root=compute_logs_root(events),
        )
        self.receipts.append(receipt)
        return receipt

    def _resolve(self, to: bytes, method: str) -> Tuple[Contract, EntrySpec]:
        code = self._journal.get_code(to)
        if code is None:
            raise InvalidAccess("no contract at address", code="NO_CODE", op=method, address=to_hex(to))
        spec = entry_spec(type(code), method)
        if spec is None:
            raise UnknownEntrypointError(to_hex(to), method)
        return code, spec

    def _invoke(
        self,
        sender: bytes,
        origin: bytes,
        to: bytes,
        method: str,
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
        *,
        value: int = 0,
        static: bool = False,
    ) -> Any:
        code, spec = self._resolve(to, method)
        if static and spec.kind != "view":
            raise InvalidAccess("static call to a state-changing entry point", op=method, address=to_hex(to))
        if value and not spec.payable:
            raise NotPayableError(to_hex(to), method, value)

        bound = getattr(code, method)
        frame = Frame(
            address=to,
            msg=Msg(sender, value, origin),
            depth=len(self._frames),
            static=static or spec.kind == "view",
        )
        log.debug("call %s.%s depth=%d sender=%s value=%d", to_hex(to), method, frame.depth, to_hex(sender), value)
        if spec.kind == "view":
            return self._enter_frame(frame, lambda msg: bound(*args, **kwargs))
        return self._enter_frame(frame, lambda msg: bound(msg, *args, **kwargs))

    def _enter_frame(self, frame: Frame, body: Callable[[Msg], Any]) -> Any:
        if len(self._frames) >= self.config.max_call_depth:
            raise CallDepthExceeded(len(self._frames))
        self._journal.begin()
        self._frames.append(frame)
        try:
            if frame.msg.value:
                treasury.move(self._journal, frame.msg.sender, frame.address, frame.msg.value)
            result = body(frame.msg)
        except BaseException:
            self._journal.revert()
            raise
        else:
            self._journal.commit()
            return result
        finally:
            self._frames.pop()

    def _transfer_native(self, sender: bytes, origin: bytes, to: bytes, amount: int) -> None:
        code = self._journal.get_code(to)
        if code is None:
            self._atomic(lambda: treasury.move(self._journal, sender, to, amount))
            return
        # Contracts only accept plain value through a payable `receive`.
        self._invoke(sender, origin, to, "receive", (), {}, value=amount)


class ContractHandle:
    """
    Attribute-style access to a deployed contract:

        machine = chain.at(addr).connect(alice)
        machine.buy_bottle(value=price)      # transaction -> Receipt
        machine.stock()                      # view -> value
    """

    def __init__(self, chain: Chain, address: bytes, sender: Optional[bytes] = None) -> None:
        self.chain = chain
        self.address = address
        self.sender = sender

    def connect(self, sender: bytes) -> "ContractHandle":
        return ContractHandle(self.chain, self.address, require_address(sender, name="sender"))

    def __getattr__(self, method: str) -> Callable[..., Any]:
        if method.startswith("_"):
            raise AttributeError(method)
        code = self.chain.code_at(self.address)
        spec = entry_spec(type(code), method) if code is not None else None
        if spec is None:
            raise AttributeError(f"no entry point named {method!r}")

        if spec.kind == "view":
            def _view(*args: Any, **kwargs: Any) -> Any:
                return self.chain.call(self.address, method, *args, **kwargs)

            return _view

        def _tx(*args: Any, value: int = 0, **kwargs: Any) -> Receipt:
            if self.sender is None:
                raise VmError("handle has no sender; use .connect(addr)", code="host_state")
            return self.chain.transact(self.sender, self.address, method, *args, value=value, **kwargs)

        return _tx


__all__ = ["Chain", "ContractHandle", "Frame"]
