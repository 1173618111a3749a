"""
vendvm.config — numeric caps and limits for the contract host.

This module centralizes configuration for the deterministic host. It has no
third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (VENDVM_*)
  2) Hardcoded safe defaults below

Key env vars:
  - VENDVM_ADDRESS_LEN               (int)  default: 20
  - VENDVM_MAX_CALL_DEPTH            (int)  default: 64
  - VENDVM_MAX_STORAGE_KEY_BYTES     (int)  default: 96
  - VENDVM_MAX_STORAGE_VAL_BYTES     (int)  default: 4096
  - VENDVM_MAX_LOGS_PER_TX           (int)  default: 256
  - VENDVM_DEFAULT_FUNDING           (int)  default: 10**21  (balance of test accounts)

Usage:
    from vendvm.config import load_config
    CFG = load_config()
    if depth > CFG.max_call_depth: ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict


# ----------------------------- helpers ---------------------------------------


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class VmConfig:
    address_len: int
    max_call_depth: int
    max_storage_key_bytes: int
    max_storage_value_bytes: int
    max_logs_per_tx: int
    default_funding: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "address_len": self.address_len,
            "max_call_depth": self.max_call_depth,
            "max_storage_key_bytes": self.max_storage_key_bytes,
            "max_storage_value_bytes": self.max_storage_value_bytes,
            "max_logs_per_tx": self.max_logs_per_tx,
            "default_funding": self.default_funding,
        }


@lru_cache(maxsize=1)
def load_config() -> VmConfig:
    """
    Build and cache a VmConfig from environment + safe defaults.
    """
    return VmConfig(
        address_len=_env_int("VENDVM_ADDRESS_LEN", 20, min_v=8, max_v=64),
        max_call_depth=_env_int("VENDVM_MAX_CALL_DEPTH", 64, min_v=4, max_v=1024),
        max_storage_key_bytes=_env_int("VENDVM_MAX_STORAGE_KEY_BYTES", 96, min_v=16, max_v=1024),
        max_storage_value_bytes=_env_int("VENDVM_MAX_STORAGE_VAL_BYTES", 4096, min_v=32, max_v=1_048_576),
        max_logs_per_tx=_env_int("VENDVM_MAX_LOGS_PER_TX", 256, min_v=1, max_v=10_000),
        default_funding=_env_int("VENDVM_DEFAULT_FUNDING", 10**21, min_v=0, max_v=(1 << 256) - 1),
    )


__all__ = ["VmConfig", "load_config"]
