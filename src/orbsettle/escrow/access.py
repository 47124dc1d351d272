"""Paid access escrow — sells one-time access to an occurrence's result.

The asset's current controller posts a price per occurrence. A buyer
attaches value at least equal to the price; the whole attached value is
credited to the controller through the earnings ledger and the buyer is
recorded as holding access. Overpayment is kept and credited, never
refunded.

A sale only goes through while the asset has a controller (it is not
held by the registry itself) and that controller is solvent.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from orbsettle.earnings.ledger import EarningsLedger
from orbsettle.errors import (
    AlreadyPurchased,
    InsufficientAmount,
    NotOwnedBySolventKeeper,
    PriceNotSet,
    ResponseDoesNotExist,
    rejected,
)
from orbsettle.models.settlement import PurchaseRecord
from orbsettle.oracles import (
    ControllerRegistry,
    OccurrenceOracle,
    SolvencyOracle,
    require_solvent_keeper,
)
from orbsettle.persistence.event_log import EventKind, EventLog

logger = logging.getLogger(__name__)


class PaidAccessEscrow:
    """Per-occurrence prices and purchase records.

    Usage:
        escrow = PaidAccessEscrow(ledger, occurrences, controllers, solvency)
        escrow.set_price("keeper", 1, 3, 10)
        escrow.purchase("buyer", 1, 3, value=15)   # credits 15 to the keeper
    """

    def __init__(
        self,
        ledger: EarningsLedger,
        occurrences: OccurrenceOracle,
        controllers: ControllerRegistry,
        solvency: SolvencyOracle,
        event_log: Optional[EventLog] = None,
    ) -> None:
        self._ledger = ledger
        self._occurrences = occurrences
        self._controllers = controllers
        self._solvency = solvency
        self._event_log = event_log
        self._prices: Dict[Tuple[int, int], int] = {}
        self._purchases: Dict[Tuple[int, int, str], PurchaseRecord] = {}

    def purchase(
        self,
        caller: str,
        asset_id: int,
        seq: int,
        value: int,
        now: Optional[datetime] = None,
    ) -> PurchaseRecord:
        """Buy access to the result of occurrence seq on asset_id.

        Returns the purchase record. The full value is credited to the
        controller, including anything paid above the price.
        """
        if value < 0:
            raise ValueError(f"Purchase value must be non-negative, got {value}")
        price = self.price(asset_id, seq)
        if price == 0:
            raise rejected(logger, PriceNotSet(
                f"Occurrence {seq} on asset {asset_id} is not for sale"
            ))
        if value < price:
            raise rejected(logger, InsufficientAmount(
                f"Attached {value} is below the price of {price}"
            ))
        if (asset_id, seq, caller) in self._purchases:
            raise rejected(logger, AlreadyPurchased(
                f"{caller} already purchased occurrence {seq} on asset {asset_id}"
            ))
        if not self._occurrences.get_result(asset_id, seq).exists:
            raise rejected(logger, ResponseDoesNotExist(
                f"Occurrence {seq} on asset {asset_id} has no recorded result"
            ))
        controller = self._controllers.current_controller(asset_id)
        if controller == self._controllers.identity:
            raise rejected(logger, NotOwnedBySolventKeeper(
                f"Asset {asset_id} has no controller"
            ))
        if not self._solvency.is_solvent(asset_id):
            raise rejected(logger, NotOwnedBySolventKeeper(
                f"Controller of asset {asset_id} is not solvent"
            ))

        if now is None:
            now = datetime.now(timezone.utc)
        record = PurchaseRecord(
            asset_id=asset_id,
            seq=seq,
            purchaser=caller,
            purchased_utc=now,
            amount=value,
        )
        self._purchases[(asset_id, seq, caller)] = record
        self._ledger.credit(controller, value)

        if self._event_log is not None:
            self._event_log.emit(EventKind.PURCHASE_MADE, caller, {
                "asset_id": asset_id,
                "seq": seq,
                "purchaser": caller,
                "keeper": controller,
                "price": price,
                "amount": value,
            }, timestamp_utc=now)
        logger.info(
            "Access to occurrence %d on asset %d bought by %s for %d (price %d)",
            seq, asset_id, caller, value, price,
        )
        return record

    def set_price(self, caller: str, asset_id: int, seq: int, price: int) -> None:
        """Post the access price for an occurrence. 0 takes it off sale.

        Current, solvent controller only.
        """
        require_solvent_keeper(self._controllers, self._solvency, asset_id, caller)
        if price < 0:
            raise ValueError(f"Price must be non-negative, got {price}")
        previous = self.price(asset_id, seq)
        self._prices[(asset_id, seq)] = price
        if self._event_log is not None:
            self._event_log.emit(EventKind.PRICE_UPDATED, caller, {
                "asset_id": asset_id,
                "seq": seq,
                "previous_price": previous,
                "price": price,
            })
        logger.info("Price of occurrence %d on asset %d set to %d", seq, asset_id, price)

    def price(self, asset_id: int, seq: int) -> int:
        return self._prices.get((asset_id, seq), 0)

    def has_purchased(self, asset_id: int, seq: int, purchaser: str) -> bool:
        return (asset_id, seq, purchaser) in self._purchases

    def purchase_record(
        self, asset_id: int, seq: int, purchaser: str,
    ) -> Optional[PurchaseRecord]:
        return self._purchases.get((asset_id, seq, purchaser))

    def purchasers(self, asset_id: int, seq: int) -> List[str]:
        return [
            purchaser for (a, s, purchaser) in self._purchases
            if a == asset_id and s == seq
        ]
