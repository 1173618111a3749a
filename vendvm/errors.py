"""
vendvm.errors — exceptions raised by the contract host and by contracts.

The host communicates failures via *typed exceptions*. A transaction that
raises any of them is reverted as a whole; the exception is then re-raised to
the caller and summarized in the receipt.

Hierarchy
---------
VmError (host/validation failure: bad address, storage caps, malformed event)

ExecError (base for execution outcomes)
 ├─ Revert         : contract-triggered failure (business rule violated)
 └─ InvalidAccess  : illegal operation under the host's rules
     ├─ EffectsAfterInteractionError : storage write after an outbound call
     ├─ NotPayableError              : value attached to a non-payable entry
     ├─ UnknownEntrypointError       : method is not an exposed entry point
     └─ CallDepthExceeded            : nested calls beyond the configured cap

Contract packages subclass `Revert` for their own error taxonomy and put the
amounts a caller needs to correct the next attempt into `data`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


class VmError(Exception):
    """
    Structured error for host-level validation failures.

        VmError("storage key too long", code="storage_invalid", context={"len": 99})
    """

    def __init__(
        self,
        message: str = "",
        *,
        code: str = "vm_error",
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = str(code)
        self.message = str(message)
        self.context: Dict[str, Any] = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }


@dataclass
class ExecError(Exception):
    """
    Base execution error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'REVERT', 'OUT_OF_STOCK').
        data:    Optional structured details (kept JSON-serializable).
    """

    message: str = "execution error"
    code: str = "EXEC_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for receipts/logs."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class Revert(ExecError):
    """
    Contract-triggered revert.

    Subclasses override `default_message` and `default_code`; any keyword
    arguments become the structured `data` payload:

        raise PriceMismatchError(required=100, supplied=101)
    """

    default_message = "reverted"
    default_code = "REVERT"

    def __init__(self, message: Optional[str] = None, **data: Any) -> None:
        super().__init__(
            message=message or self.default_message,
            code=self.default_code,
            data=data or None,
        )


class InvalidAccess(ExecError):
    """Illegal access or forbidden operation under the host's rules."""

    def __init__(
        self,
        message: str = "invalid access",
        *,
        code: str = "INVALID_ACCESS",
        op: Optional[str] = None,
        address: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        d: Dict[str, Any] = {}
        if data:
            d.update(data)
        if op is not None:
            d.setdefault("op", op)
        if address is not None:
            d.setdefault("address", address)
        super().__init__(message=message, code=code, data=d or None)


class EffectsAfterInteractionError(InvalidAccess):
    """A frame wrote its own storage after it had already called out."""

    def __init__(self, address: str, key: bytes) -> None:
        super().__init__(
            "storage write after external interaction",
            code="EFFECTS_AFTER_INTERACTION",
            op="storage.set",
            address=address,
            data={"key": "0x" + key.hex()},
        )


class NotPayableError(InvalidAccess):
    def __init__(self, address: str, method: str, value: int) -> None:
        super().__init__(
            f"{method} does not accept value",
            code="NOT_PAYABLE",
            op=method,
            address=address,
            data={"value": value},
        )


class UnknownEntrypointError(InvalidAccess):
    def __init__(self, address: str, method: str) -> None:
        super().__init__(
            f"no entry point named {method!r}",
            code="UNKNOWN_ENTRYPOINT",
            op=method,
            address=address,
        )


class CallDepthExceeded(InvalidAccess):
    def __init__(self, depth: int) -> None:
        super().__init__(
            "maximum call depth exceeded",
            code="CALL_DEPTH",
            data={"depth": depth},
        )


def error_to_receipt_fields(err: BaseException) -> Dict[str, Any]:
    """
    Map an exception to canonical receipt fields:

        {"status": "REVERT" | "INVALID" | "ERROR", "error": {...}}
    """
    if isinstance(err, Revert):
        return {"status": "REVERT", "error": err.to_dict()}
    if isinstance(err, InvalidAccess):
        return {"status": "INVALID", "error": err.to_dict()}
    if isinstance(err, (ExecError, VmError)):
        return {"status": "ERROR", "error": err.to_dict()}
    return {
        "status": "ERROR",
        "error": {"code": type(err).__name__, "message": str(err)},
    }


__all__ = [
    "VmError",
    "ExecError",
    "Revert",
    "InvalidAccess",
    "EffectsAfterInteractionError",
    "NotPayableError",
    "UnknownEntrypointError",
    "CallDepthExceeded",
    "error_to_receipt_fields",
]
