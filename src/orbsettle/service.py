"""Settlement service — unified facade over the ledger and both escrows.

Wires one shared EarningsLedger into the TipJar and the PaidAccessEscrow
so that every credit, from either escrow, lands in the same balances
and the same audit trail. Each operation returns a ServiceResult: a
rejected operation comes back with success=False and the reason in
errors; nothing was changed and no event was written.

Usage:
    config = SettlementConfig.load()
    service = SettlementService.from_config(config)

    service.tip("alice", 1, fingerprint, 100)
    service.claim("actor", 1, seq=3, minimum_total=100)
    service.withdraw_earnings("actor")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence, Union

from orbsettle.earnings.ledger import EarningsLedger
from orbsettle.earnings.redirect import PlatformWalletRedirect, WithdrawalRedirect
from orbsettle.earnings.transfer import InMemoryValueBook, ValueTransfer
from orbsettle.errors import SettlementError
from orbsettle.escrow.access import PaidAccessEscrow
from orbsettle.escrow.tip_jar import TipJar
from orbsettle.oracles import (
    ControllerRegistry,
    InMemoryControllerRegistry,
    InMemoryInvocationRegistry,
    OccurrenceOracle,
    SolvencyOracle,
    StaticSolvencyOracle,
)
from orbsettle.persistence.event_log import EventLog
from orbsettle.policy.config import SettlementConfig

logger = logging.getLogger(__name__)

Fingerprint = Union[str, bytes]


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


def _rejected(operation: str, error: SettlementError) -> ServiceResult:
    logger.debug("%s rejected: %s: %s", operation, type(error).__name__, error)
    return ServiceResult(success=False, errors=[f"{type(error).__name__}: {error}"])


class SettlementService:
    """Facade over EarningsLedger, TipJar and PaidAccessEscrow."""

    def __init__(
        self,
        config: SettlementConfig,
        transfer: ValueTransfer,
        occurrences: OccurrenceOracle,
        controllers: ControllerRegistry,
        solvency: SolvencyOracle,
        event_log: Optional[EventLog] = None,
        redirect: Optional[WithdrawalRedirect] = None,
    ) -> None:
        self._config = config
        self._event_log = event_log
        self._ledger = EarningsLedger(
            transfer=transfer,
            redirect=redirect or PlatformWalletRedirect(config.platform_wallet),
            platform_fee_bps=config.platform_fee_bps,
            event_log=event_log,
        )
        self._tip_jar = TipJar(
            self._ledger,
            occurrences,
            controllers,
            solvency,
            transfer,
            event_log=event_log,
            default_minimum_tip=config.default_minimum_tip,
        )
        self._access = PaidAccessEscrow(
            self._ledger,
            occurrences,
            controllers,
            solvency,
            event_log=event_log,
        )

    @classmethod
    def from_config(
        cls,
        config: SettlementConfig,
        transfer: Optional[ValueTransfer] = None,
        occurrences: Optional[OccurrenceOracle] = None,
        controllers: Optional[ControllerRegistry] = None,
        solvency: Optional[SolvencyOracle] = None,
    ) -> SettlementService:
        """Build a service, filling any missing collaborator with its in-memory form."""
        event_log = EventLog(storage_path=config.event_log_path)
        return cls(
            config,
            transfer=transfer or InMemoryValueBook(),
            occurrences=occurrences or InMemoryInvocationRegistry(),
            controllers=controllers or InMemoryControllerRegistry(),
            solvency=solvency or StaticSolvencyOracle(),
            event_log=event_log,
        )

    @property
    def config(self) -> SettlementConfig:
        return self._config

    @property
    def ledger(self) -> EarningsLedger:
        return self._ledger

    @property
    def tip_jar(self) -> TipJar:
        return self._tip_jar

    @property
    def access(self) -> PaidAccessEscrow:
        return self._access

    @property
    def event_log(self) -> Optional[EventLog]:
        return self._event_log

    # ------------------------------------------------------------------
    # Tips
    # ------------------------------------------------------------------

    def tip(
        self, caller: str, asset_id: int, fingerprint: Fingerprint, value: int,
    ) -> ServiceResult:
        try:
            pool = self._tip_jar.tip(caller, asset_id, fingerprint, value)
        except SettlementError as e:
            return _rejected("tip", e)
        return ServiceResult(success=True, data={
            "asset_id": asset_id,
            "fingerprint": pool.fingerprint,
            "tip": pool.pledge_of(caller),
            "total": pool.total,
        })

    def claim(
        self, caller: str, asset_id: int, seq: int, minimum_total: int = 0,
    ) -> ServiceResult:
        try:
            total = self._tip_jar.claim(caller, asset_id, seq, minimum_total)
        except SettlementError as e:
            return _rejected("claim", e)
        split = self._ledger.split(total)
        return ServiceResult(success=True, data={
            "asset_id": asset_id,
            "seq": seq,
            "total": total,
            "platform_share": split.platform_share,
            "user_share": split.user_share,
        })

    def withdraw_tip(
        self, caller: str, asset_id: int, fingerprint: Fingerprint,
    ) -> ServiceResult:
        try:
            amount = self._tip_jar.withdraw_tip(caller, asset_id, fingerprint)
        except SettlementError as e:
            return _rejected("withdraw_tip", e)
        return ServiceResult(success=True, data={"amount": amount})

    def withdraw_tips(
        self,
        caller: str,
        asset_ids: Sequence[int],
        fingerprints: Sequence[Fingerprint],
    ) -> ServiceResult:
        try:
            amount = self._tip_jar.withdraw_tips(caller, asset_ids, fingerprints)
        except SettlementError as e:
            return _rejected("withdraw_tips", e)
        return ServiceResult(success=True, data={"amount": amount, "pools": len(asset_ids)})

    def set_minimum_tip(self, caller: str, asset_id: int, minimum: int) -> ServiceResult:
        try:
            self._tip_jar.set_minimum_tip(caller, asset_id, minimum)
        except SettlementError as e:
            return _rejected("set_minimum_tip", e)
        return ServiceResult(success=True, data={"asset_id": asset_id, "minimum": minimum})

    # ------------------------------------------------------------------
    # Paid access
    # ------------------------------------------------------------------

    def purchase(
        self,
        caller: str,
        asset_id: int,
        seq: int,
        value: int,
        now: Optional[datetime] = None,
    ) -> ServiceResult:
        try:
            record = self._access.purchase(caller, asset_id, seq, value, now=now)
        except SettlementError as e:
            return _rejected("purchase", e)
        return ServiceResult(success=True, data={
            "asset_id": asset_id,
            "seq": seq,
            "amount": record.amount,
            "purchased_utc": record.purchased_utc.isoformat(),
        })

    def set_price(self, caller: str, asset_id: int, seq: int, price: int) -> ServiceResult:
        try:
            self._access.set_price(caller, asset_id, seq, price)
        except SettlementError as e:
            return _rejected("set_price", e)
        return ServiceResult(success=True, data={"asset_id": asset_id, "seq": seq, "price": price})

    # ------------------------------------------------------------------
    # Earnings
    # ------------------------------------------------------------------

    def withdraw_earnings(self, caller: str) -> ServiceResult:
        try:
            receipt = self._ledger.withdraw_all(caller)
        except SettlementError as e:
            return _rejected("withdraw_earnings", e)
        return ServiceResult(success=True, data={
            "beneficiary": receipt.beneficiary,
            "destination": receipt.destination,
            "amount": receipt.amount,
        })

    def withdraw_platform_earnings(self) -> ServiceResult:
        try:
            receipt = self._ledger.withdraw_platform()
        except SettlementError as e:
            return _rejected("withdraw_platform_earnings", e)
        return ServiceResult(success=True, data={
            "beneficiary": receipt.beneficiary,
            "destination": receipt.destination,
            "amount": receipt.amount,
        })

    def status(self) -> dict[str, Any]:
        """Snapshot of ledger totals, escrowed tips and the audit trail."""
        return {
            "config": self._config.to_dict(),
            "ledger": {
                "total_credited": self._ledger.total_credited,
                "total_withdrawn": self._ledger.total_withdrawn,
                "outstanding": self._ledger.total_outstanding,
                "platform_balance": self._ledger.platform_balance,
            },
            "tips_escrowed": self._tip_jar.total_escrowed,
            "events": self._event_log.count if self._event_log is not None else 0,
        }
