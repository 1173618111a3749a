"""vendvm.version — semantic version with an optional environment override."""

from __future__ import annotations

import os

# Bump when storage layout, event encoding or receipt hashing changes.
BASE_VERSION = "0.1.0"

__version__ = os.getenv("VENDVM_VERSION", BASE_VERSION)

__all__ = ["BASE_VERSION", "__version__"]
