"""
vending — contracts of a self-service vending machine for the vendvm host.

    from vendvm import Chain
    from vending import BottleToken, VendingLedger

    chain = Chain()
    owner = chain.account("owner")
    bottle_at = chain.predict_address(owner, offset=1)
    machine = chain.deploy(owner, VendingLedger, bottle_at, None, 10**17)
    chain.deploy(owner, BottleToken, machine)
"""

from .config import LedgerConfig
from .ledger import VendingLedger
from .token.bottle import BottleToken
from .token.fungible import FungibleToken

__all__ = ["LedgerConfig", "VendingLedger", "BottleToken", "FungibleToken"]
