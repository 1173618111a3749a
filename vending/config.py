"""
vending.config — deployment parameters of a vending ledger.

Everything here is fixed at construction time; the ledger copies the values
into its own storage and never reads this module again.

Configuration precedence for `LedgerConfig.from_env()`:
  1) Explicit keyword overrides
  2) Environment variables (VENDING_*)
  3) Defaults below

Key env vars:
  - VENDING_BULK_DISCOUNT_BPS      (int)  default: 2000  (20%)
  - VENDING_RETURN_DISCOUNT_BPS    (int)  default: 1000  (10%)
  - VENDING_BULK_MIN_QUANTITY      (int)  default: 1
  - VENDING_MAX_OPERATORS          (int)  default: 2     (owner not counted)
  - VENDING_SECONDARY_UNIT_PRICE   (int)  default: 10**19

Unlike the host config, invalid values are rejected rather than clamped:
a discount above 100% or a bulk minimum of zero is a deployment mistake.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional

from .math.safe_uint import BPS_DENOMINATOR, U256_MAX

DEFAULT_BULK_DISCOUNT_BPS = 2_000
DEFAULT_RETURN_DISCOUNT_BPS = 1_000
DEFAULT_BULK_MIN_QUANTITY = 1
DEFAULT_MAX_OPERATORS = 2
DEFAULT_SECONDARY_UNIT_PRICE = 10 * 10**18


class ConfigError(ValueError):
    """Raised for an invalid ledger configuration."""


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw, 0)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class LedgerConfig:
    bulk_discount_bps: int = DEFAULT_BULK_DISCOUNT_BPS
    return_discount_bps: int = DEFAULT_RETURN_DISCOUNT_BPS
    bulk_min_quantity: int = DEFAULT_BULK_MIN_QUANTITY
    max_operators: int = DEFAULT_MAX_OPERATORS
    secondary_unit_price: int = DEFAULT_SECONDARY_UNIT_PRICE

    def __post_init__(self) -> None:
        for fname in ("bulk_discount_bps", "return_discount_bps"):
            v = getattr(self, fname)
            if not _is_int(v) or not 0 <= v <= BPS_DENOMINATOR:
                raise ConfigError(f"{fname} must be within [0, {BPS_DENOMINATOR}], got {v!r}")
        if not _is_int(self.bulk_min_quantity) or self.bulk_min_quantity < 1:
            raise ConfigError(f"bulk_min_quantity must be >= 1, got {self.bulk_min_quantity!r}")
        if not _is_int(self.max_operators) or not 0 <= self.max_operators <= 255:
            raise ConfigError(f"max_operators must be within [0, 255], got {self.max_operators!r}")
        if not _is_int(self.secondary_unit_price) or not 0 < self.secondary_unit_price <= U256_MAX:
            raise ConfigError(f"secondary_unit_price must be a positive u256, got {self.secondary_unit_price!r}")

    @classmethod
    def from_env(cls, **overrides: Any) -> "LedgerConfig":
        env = {
            "bulk_discount_bps": _env_int("VENDING_BULK_DISCOUNT_BPS"),
            "return_discount_bps": _env_int("VENDING_RETURN_DISCOUNT_BPS"),
            "bulk_min_quantity": _env_int("VENDING_BULK_MIN_QUANTITY"),
            "max_operators": _env_int("VENDING_MAX_OPERATORS"),
            "secondary_unit_price": _env_int("VENDING_SECONDARY_UNIT_PRICE"),
        }
        values = {k: v for k, v in env.items() if v is not None}
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **changes: Any) -> "LedgerConfig":
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "LedgerConfig",
    "ConfigError",
    "DEFAULT_BULK_DISCOUNT_BPS",
    "DEFAULT_RETURN_DISCOUNT_BPS",
    "DEFAULT_BULK_MIN_QUANTITY",
    "DEFAULT_MAX_OPERATORS",
    "DEFAULT_SECONDARY_UNIT_PRICE",
]
