"""Settlement errors — every rejected operation raises one of these.

All errors derive from ValueError so that callers treating a rejected
operation as a ValueError keep working. A raised error always means the
operation left no trace: no balance moved, no marker set, no event.

Components raise through rejected() so every rejection is logged at
DEBUG on the component's own logger.
"""

from __future__ import annotations

import logging
from typing import TypeVar

E = TypeVar("E", bound="SettlementError")


def rejected(logger: logging.Logger, error: E) -> E:
    """Log a rejection and hand the error back for raising."""
    logger.debug("Rejected: %s: %s", type(error).__name__, error)
    return error


class SettlementError(ValueError):
    """Base class for all rejected settlement operations."""


# Earnings ledger

class NoFundsAvailable(SettlementError):
    """Withdrawal requested for a zero balance."""


class TransferFailed(SettlementError):
    """The outward value transfer raised; the operation was undone."""


# Tip escrow

class InsufficientTip(SettlementError):
    """Tip value is below the asset's minimum tip."""


class InvocationAlreadyClaimed(SettlementError):
    """The tip pool was already claimed."""


class InvocationNotInvoked(SettlementError):
    """No occurrence is recorded at the requested sequence number."""


class InsufficientTips(SettlementError):
    """Pool total is below the claimer's stated minimum."""


class TipNotFound(SettlementError):
    """Caller has no pledge in the pool."""


class WithdrawalInProgress(SettlementError):
    """A tip withdrawal from the pool is still transferring value."""


class UnevenLengths(SettlementError):
    """Batch arguments have different lengths."""


# Access escrow and keeper gate

class NotKeeper(SettlementError):
    """Caller is not the current, solvent controller of the asset."""


class PriceNotSet(SettlementError):
    """The occurrence is not for sale (price is 0)."""


class InsufficientAmount(SettlementError):
    """Attached value is below the posted price."""


class AlreadyPurchased(SettlementError):
    """Purchaser already holds access to this occurrence."""


class ResponseDoesNotExist(SettlementError):
    """No result is recorded for the occurrence yet."""


class NotOwnedBySolventKeeper(SettlementError):
    """Asset is unclaimed or its controller is delinquent."""
