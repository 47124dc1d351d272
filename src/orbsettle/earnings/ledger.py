"""Earnings ledger — accrues per-beneficiary balances and pays them out.

Every credit is split between the platform and the beneficiary:
    platform_share = amount * platform_fee_bps // 10000
    user_share     = amount - platform_share
At the default 500 bps this is amount * 5 // 100; the truncation
remainder always stays with the beneficiary, so nothing is lost.

Payout is pull-based. Balances only leave through withdraw_all() or
withdraw_platform(), which zero the balance BEFORE the outward transfer.
A recipient that re-enters during the transfer sees a zero balance.

Ledger invariant:
    sum(balances) + total_withdrawn == total_credited
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from orbsettle.earnings.redirect import NoRedirect, WithdrawalRedirect
from orbsettle.earnings.transfer import ValueTransfer
from orbsettle.errors import NoFundsAvailable, TransferFailed, rejected
from orbsettle.models.settlement import (
    BPS_DENOMINATOR,
    PLATFORM_ID,
    FeeSplit,
    WithdrawalReceipt,
)
from orbsettle.persistence.event_log import EventKind, EventLog

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM_FEE_BPS = 500


class EarningsLedger:
    """Per-beneficiary earnings with a platform fee split.

    Usage:
        ledger = EarningsLedger(transfer=book, redirect=PlatformWalletRedirect("0xP"))
        ledger.credit("alice", 150)        # platform 7, alice 143
        ledger.withdraw_all("alice")       # pays 143 to alice
        ledger.withdraw_platform()         # pays 7 to 0xP
    """

    def __init__(
        self,
        transfer: ValueTransfer,
        redirect: Optional[WithdrawalRedirect] = None,
        platform_fee_bps: int = DEFAULT_PLATFORM_FEE_BPS,
        event_log: Optional[EventLog] = None,
        identity: str = "orbsettle",
    ) -> None:
        if not 0 <= platform_fee_bps <= BPS_DENOMINATOR:
            raise ValueError(
                f"Platform fee must be in [0, {BPS_DENOMINATOR}] bps, got {platform_fee_bps}"
            )
        self._transfer = transfer
        self._redirect = redirect or NoRedirect()
        self._platform_fee_bps = platform_fee_bps
        self._event_log = event_log
        self._identity = identity
        self._balances: Dict[str, int] = {}
        self._total_credited = 0
        self._total_withdrawn = 0

    @property
    def identity(self) -> str:
        """The source identity of every outward transfer."""
        return self._identity

    @property
    def platform_fee_bps(self) -> int:
        return self._platform_fee_bps

    def split(self, amount: int) -> FeeSplit:
        """Compute the platform/user split of amount without crediting."""
        return FeeSplit.compute(amount, self._platform_fee_bps)

    def credit(self, beneficiary: str, amount: int) -> FeeSplit:
        """Credit amount to beneficiary, less the platform share.

        Internal: called by the escrows that embed this ledger, never
        directly by an outside party.
        """
        split = self.split(amount)
        self._balances[PLATFORM_ID] = self._balances.get(PLATFORM_ID, 0) + split.platform_share
        self._balances[beneficiary] = self._balances.get(beneficiary, 0) + split.user_share
        self._total_credited += amount
        logger.debug(
            "Credited %s: %d (platform %d, user %d)",
            beneficiary, amount, split.platform_share, split.user_share,
        )
        return split

    def withdraw_all(self, caller: str) -> WithdrawalReceipt:
        """Pay out the caller's entire balance.

        Raises NoFundsAvailable on a zero balance, TransferFailed if the
        destination refuses the value (the balance is restored).
        """
        return self._withdraw(caller)

    def withdraw_platform(self) -> WithdrawalReceipt:
        """Pay out the platform balance. Anyone may trigger this."""
        return self._withdraw(PLATFORM_ID)

    def balance_of(self, beneficiary: str) -> int:
        return self._balances.get(beneficiary, 0)

    @property
    def platform_balance(self) -> int:
        return self.balance_of(PLATFORM_ID)

    @property
    def total_credited(self) -> int:
        return self._total_credited

    @property
    def total_withdrawn(self) -> int:
        return self._total_withdrawn

    @property
    def total_outstanding(self) -> int:
        return sum(self._balances.values())

    def _withdraw(self, beneficiary: str) -> WithdrawalReceipt:
        amount = self._balances.get(beneficiary, 0)
        if amount == 0:
            raise rejected(logger, NoFundsAvailable(f"No funds available for {beneficiary}"))

        # Zero first: a re-entrant withdrawal must observe nothing to take
        self._balances[beneficiary] = 0

        redirect = self._redirect.resolve_redirect(beneficiary)
        destination = redirect if redirect is not None else beneficiary
        try:
            self._transfer.send(self._identity, destination, amount)
        except TransferFailed:
            self._restore(beneficiary, amount)
            logger.warning("Withdrawal of %d for %s to %s failed", amount, beneficiary, destination)
            raise
        except Exception as e:
            self._restore(beneficiary, amount)
            logger.warning("Withdrawal of %d for %s to %s failed: %s", amount, beneficiary, destination, e)
            raise TransferFailed(
                f"Withdrawal of {amount} for {beneficiary} to {destination} failed: {e}"
            ) from e

        self._total_withdrawn += amount
        if self._event_log is not None:
            self._event_log.emit(
                EventKind.EARNINGS_WITHDRAWN,
                beneficiary,
                {"beneficiary": beneficiary, "amount": amount},
            )
        logger.info(
            "Earnings withdrawn for %s: %d -> %s", beneficiary, amount, destination,
        )
        return WithdrawalReceipt(
            beneficiary=beneficiary,
            destination=destination,
            amount=amount,
            redirected=redirect is not None,
        )

    def _restore(self, beneficiary: str, amount: int) -> None:
        # Add back rather than overwrite: credits may have landed during the transfer
        self._balances[beneficiary] = self._balances.get(beneficiary, 0) + amount
