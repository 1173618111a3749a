from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from ..errors import VmError

# Basic bounds (kept generous; tests only check that we *validate*).
MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

# Keys must be identifier-like: letters/underscore, then letters/digits/underscore.
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ArgValue = Any  # constrained at runtime


@dataclass(frozen=True)
class Event:
    """In-host representation of an emitted event."""

    address: bytes
    name: bytes
    args: Dict[str, ArgValue]

    def __getitem__(self, key: str) -> ArgValue:
        return self.args[key]


@dataclass(frozen=True)
class CanonicalEvent:
    """
    Canonical event representation for receipts:

        address: "0x" + hex
        name:    event name decoded as ASCII
        args:    sequence of {"k", "t", "v"} dicts
                 t="b" => bytes encoded as 0x-prefixed hex
                 t="i" => integer
                 t="z" => boolean
    """

    address: str
    name: str
    args: Sequence[Mapping[str, Any]]


# --- Validation helpers -----------------------------------------------------


def _check_name(name: Any) -> bytes:
    if isinstance(name, str):
        name = name.encode("ascii")
    if not isinstance(name, (bytes, bytearray)):
        raise VmError(
            "event name must be bytes",
            code="event_invalid",
            context={"where": "name_type"},
        )
    b = bytes(name)
    if len(b) == 0:
        raise VmError(
            "event name must be non-empty",
            code="event_invalid",
            context={"where": "name_empty"},
        )
    if len(b) > MAX_EVENT_NAME_BYTES:
        raise VmError(
            "event name too long",
            code="event_invalid",
            context={"where": "name_length", "len": len(b)},
        )
    return b


def _check_key(key: Any) -> str:
    if isinstance(key, (bytes, bytearray)):
        key = bytes(key).decode("ascii", errors="replace")
    if not isinstance(key, str) or not key:
        raise VmError(
            "event key must be a non-empty str",
            code="event_invalid",
            context={"where": "key_type"},
        )
    if len(key) > MAX_KEY_LEN:
        raise VmError(
            "event key too long",
            code="event_invalid",
            context={"where": "key_length", "len": len(key)},
        )
    if not _KEY_RE.match(key):
        raise VmError(
            "event key has invalid characters",
            code="event_invalid",
            context={"where": "key_grammar", "key": key},
        )
    return key


def _check_value(value: Any) -> ArgValue:
    if isinstance(value, (bytes, bytearray)):
        b = bytes(value)
        if len(b) > MAX_BYTES_LEN:
            raise VmError(
                "event bytes arg too long",
                code="event_invalid",
                context={"where": "value_bytes_length", "len": len(b)},
            )
        return b

    if isinstance(value, bool):
        # bool is a subclass of int, so check it before int.
        return value

    if isinstance(value, int):
        if value < 0 or value.bit_length() > MAX_INT_BITS:
            raise VmError(
                "event int arg out of range",
                code="event_invalid",
                context={"where": "value_int_bits", "bits": value.bit_length()},
            )
        return int(value)

    raise VmError(
        "unsupported event arg type",
        code="event_invalid",
        context={"where": "value_type", "py_type": type(value).__name__},
    )


def make_event(address: bytes, name: Any, args: Mapping[Any, Any]) -> Event:
    """Validate `name`/`args` and build an Event attributed to `address`."""
    bname = _check_name(name)
    if not isinstance(args, Mapping):
        raise VmError(
            "event args must be a mapping",
            code="event_invalid",
            context={"where": "args_type"},
        )
    checked: Dict[str, ArgValue] = {}
    for raw_k, raw_v in args.items():
        checked[_check_key(raw_k)] = _check_value(raw_v)
    return Event(address=bytes(address), name=bname, args=checked)


# --- Receipt projection -----------------------------------------------------


def canonicalize(ev: Event) -> CanonicalEvent:
    enc_args: List[Dict[str, Any]] = []
    for k, v in ev.args.items():
        if isinstance(v, (bytes, bytearray)):
            enc_args.append({"k": k, "t": "b", "v": "0x" + bytes(v).hex()})
        elif isinstance(v, bool):
            enc_args.append({"k": k, "t": "z", "v": v})
        else:
            enc_args.append({"k": k, "t": "i", "v": int(v)})
    return CanonicalEvent(
        address="0x" + ev.address.hex(),
        name=ev.name.decode("ascii", errors="replace"),
        args=tuple(enc_args),
    )


def events_for_receipt(logs: Iterable[Event]) -> List[CanonicalEvent]:
    return [canonicalize(ev) for ev in logs]


__all__ = [
    "Event",
    "CanonicalEvent",
    "make_event",
    "canonicalize",
    "events_for_receipt",
    "MAX_EVENT_NAME_BYTES",
    "MAX_KEY_LEN",
    "MAX_BYTES_LEN",
    "MAX_INT_BITS",
]
