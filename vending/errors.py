# -*- coding: utf-8 -*-
"""
vending.errors
==============

Revert taxonomy for the vending contracts. Every error aborts the whole
transaction (the host reverts all state touched by the call) and carries the
amounts a caller needs to correct the next attempt in `data`:

    try:
        machine.buy_bottle(value=101)
    except PriceMismatchError as err:
        err.data  # {"required": 100, "supplied": 101}

Token errors (`InsufficientAllowanceError`, `InsufficientBalanceError`) are
raised by the token contracts and reach the ledger's caller unchanged.
"""
from __future__ import annotations

from vendvm.errors import Revert
from vendvm.runtime.treasury_api import InsufficientFundsError


class VendingError(Revert):
    default_message = "vending: reverted"
    default_code = "VENDING"


# --- ledger ------------------------------------------------------------------


class OutOfStockError(VendingError):
    default_message = "ColaM: not enough stock"
    default_code = "OUT_OF_STOCK"


class PriceMismatchError(VendingError):
    default_message = "ColaM: eth does not match the price"
    default_code = "PRICE_MISMATCH"


class InvalidQuantityError(VendingError):
    default_message = "ColaM: invalid quantity"
    default_code = "INVALID_QUANTITY"


class CurrencyNotConfiguredError(VendingError):
    default_message = "ColaM: secondary currency not configured"
    default_code = "CURRENCY_NOT_CONFIGURED"


class ReturnCreditPendingError(VendingError):
    default_message = "ColaM: unused return discount pending"
    default_code = "RETURN_CREDIT_PENDING"


class NothingToWithdrawError(VendingError):
    default_message = "ColaM: nothing to withdraw"
    default_code = "NOTHING_TO_WITHDRAW"


# --- access ------------------------------------------------------------------


class UnauthorizedError(VendingError):
    default_message = "Operated: caller is not owner or operator"
    default_code = "UNAUTHORIZED"


class SelfReferenceError(VendingError):
    default_message = "Operated: new address can not be sender"
    default_code = "SELF_REFERENCE"


class CapacityError(VendingError):
    default_message = "Operated: max operators reached"
    default_code = "CAPACITY"


class AlreadyOperatorError(VendingError):
    default_message = "Operated: address is already authorized"
    default_code = "ALREADY_OPERATOR"


class NotOperatorError(VendingError):
    default_message = "Operated: address is not an operator"
    default_code = "NOT_OPERATOR"


# --- tokens ------------------------------------------------------------------


class TokenError(VendingError):
    default_message = "TOKEN: reverted"
    default_code = "TOKEN"


class InsufficientAllowanceError(TokenError):
    default_message = "TOKEN: allowance too low"
    default_code = "INSUFFICIENT_ALLOWANCE"


class InsufficientBalanceError(TokenError):
    default_message = "TOKEN: insufficient balance"
    default_code = "INSUFFICIENT_BALANCE"


class NotMinterError(TokenError):
    default_message = "TOKEN: caller is not the minter"
    default_code = "NOT_MINTER"


class InvalidAddressError(VendingError):
    default_message = "invalid address"
    default_code = "INVALID_ADDRESS"


# --- arithmetic --------------------------------------------------------------


class ArithmeticOverflowError(VendingError):
    default_message = "UINT: overflow"
    default_code = "ARITHMETIC_OVERFLOW"


class ArithmeticUnderflowError(VendingError):
    default_message = "UINT: underflow"
    default_code = "ARITHMETIC_UNDERFLOW"


class DivisionByZeroError(VendingError):
    default_message = "UINT: division by zero"
    default_code = "DIVISION_BY_ZERO"


__all__ = [
    "VendingError",
    "OutOfStockError",
    "PriceMismatchError",
    "InvalidQuantityError",
    "CurrencyNotConfiguredError",
    "ReturnCreditPendingError",
    "NothingToWithdrawError",
    "UnauthorizedError",
    "SelfReferenceError",
    "CapacityError",
    "AlreadyOperatorError",
    "NotOperatorError",
    "TokenError",
    "InsufficientAllowanceError",
    "InsufficientBalanceError",
    "NotMinterError",
    "InvalidAddressError",
    "InsufficientFundsError",
    "ArithmeticOverflowError",
    "ArithmeticUnderflowError",
    "DivisionByZeroError",
]
