"""
Shared fixtures for vendvm tests: a fresh chain, funded accounts, and the
sample contracts from `sample_contracts` deployed on it.
"""
from __future__ import annotations

import os

import pytest

from vendvm import Chain

from .sample_contracts import Caller, Counter, Vault

os.environ.setdefault("PYTHONHASHSEED", "0")


@pytest.fixture
def chain() -> Chain:
    return Chain()


@pytest.fixture
def alice(chain: Chain) -> bytes:
    return chain.account("alice")


@pytest.fixture
def bob(chain: Chain) -> bytes:
    return chain.account("bob")


@pytest.fixture
def counter(chain: Chain, alice: bytes) -> bytes:
    return chain.deploy(alice, Counter, 0)


@pytest.fixture
def vault(chain: Chain, alice: bytes) -> bytes:
    return chain.deploy(alice, Vault)


@pytest.fixture
def caller(chain: Chain, alice: bytes) -> bytes:
    return chain.deploy(alice, Caller)
