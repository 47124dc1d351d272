"""Earnings subsystem — fee-splitting ledger, redirects, outward transfers.

Escrows credit this ledger; beneficiaries pull from it independently.
"""

from orbsettle.earnings.ledger import DEFAULT_PLATFORM_FEE_BPS, EarningsLedger
from orbsettle.earnings.redirect import (
    MappingRedirect,
    NoRedirect,
    PlatformWalletRedirect,
    WithdrawalRedirect,
)
from orbsettle.earnings.transfer import InMemoryValueBook, ValueTransfer

__all__ = [
    "DEFAULT_PLATFORM_FEE_BPS",
    "EarningsLedger",
    "InMemoryValueBook",
    "MappingRedirect",
    "NoRedirect",
    "PlatformWalletRedirect",
    "ValueTransfer",
    "WithdrawalRedirect",
]
