"""
vendvm — a small deterministic contract host.

The host owns every piece of mutable state a contract can observe (native
balances, per-contract storage, emitted events) inside a checkpointing
journal. Each transaction runs in its own checkpoint and either commits as a
whole or is reverted as a whole. Contract-to-contract calls run as nested
frames so callbacks (and reentrancy) behave the way they do on a real chain.

Public entrypoints
------------------
- Chain            : the host (deploy / transact / call / send / snapshot)
- Contract         : base class for contracts executed by the host
- entrypoint, view : decorators marking callable contract methods
- Msg              : explicit caller envelope passed to entry points
- Receipt          : per-transaction result with canonical logs root
"""

from __future__ import annotations

from .version import __version__
from .errors import ExecError, InvalidAccess, Revert, VmError
from .runtime.context import Msg
from .runtime.contract import Contract, entrypoint, view
from .runtime.host import Chain
from .receipts import Receipt

__all__ = [
    "__version__",
    "Chain",
    "Contract",
    "entrypoint",
    "view",
    "Msg",
    "Receipt",
    "ExecError",
    "Revert",
    "InvalidAccess",
    "VmError",
]
