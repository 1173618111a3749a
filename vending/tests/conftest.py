# -*- coding: utf-8 -*-
"""Fixtures for the vending contracts; see `deployment` for the layout."""
from __future__ import annotations

import os

import pytest

from vendvm import Chain

from .deployment import INITIAL_STOCK, Machine, deploy_machine

os.environ.setdefault("PYTHONHASHSEED", "0")


@pytest.fixture
def chain() -> Chain:
    return Chain()


@pytest.fixture
def deployer(chain: Chain) -> bytes:
    return chain.account("deployer")


@pytest.fixture
def alice(chain: Chain) -> bytes:
    return chain.account("alice")


@pytest.fixture
def bob(chain: Chain) -> bytes:
    return chain.account("bob")


@pytest.fixture
def carol(chain: Chain) -> bytes:
    return chain.account("carol")


@pytest.fixture
def dave(chain: Chain) -> bytes:
    return chain.account("dave")


@pytest.fixture
def machine(chain: Chain, deployer: bytes) -> Machine:
    m = deploy_machine(chain, deployer)
    m.ledger(deployer).restock(INITIAL_STOCK)
    return m
