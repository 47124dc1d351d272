"""Tip jar — escrows tips toward an action that has not happened yet.

Anyone may pledge value toward (asset, fingerprint): "I will pay for the
action whose content hashes to this fingerprint". When the occurrence
oracle shows that action recorded, anyone may claim the pool; the whole
pool is credited to the actor through the earnings ledger, exactly once.

Until the claim, each contributor may take their own pledge back. The
claimed marker closes the pool to both tips and withdrawals.

State machine per pool:
    OPEN → CLAIMED (terminal)

Ordering discipline:
    claim:     set claimed marker, THEN credit the actor
    withdraw:  zero the pledge and reduce the total, THEN transfer out
A re-entrant call during either step finds the pool already closed or
the pledge already gone. A pool is not claimable while a withdrawal
from it is transferring value, since a failed transfer puts the pledge
back.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from orbsettle.crypto.fingerprint import is_zero_fingerprint, normalize_fingerprint
from orbsettle.earnings.ledger import EarningsLedger
from orbsettle.earnings.transfer import ValueTransfer
from orbsettle.errors import (
    InsufficientTip,
    InsufficientTips,
    InvocationAlreadyClaimed,
    InvocationNotInvoked,
    TipNotFound,
    TransferFailed,
    UnevenLengths,
    WithdrawalInProgress,
    rejected,
)
from orbsettle.models.settlement import UNCLAIMED, TipPool
from orbsettle.oracles import (
    ControllerRegistry,
    OccurrenceOracle,
    SolvencyOracle,
    require_solvent_keeper,
)
from orbsettle.persistence.event_log import EventKind, EventLog

logger = logging.getLogger(__name__)

Fingerprint = Union[str, bytes]
PoolKey = Tuple[int, str]


class TipJar:
    """Per-(asset, fingerprint) tip pools with exactly-once claiming.

    Usage:
        jar = TipJar(ledger, occurrences, controllers, solvency, transfer)
        jar.tip("alice", 1, fingerprint, 100)
        jar.tip("bob", 1, fingerprint, 50)
        # ... the actor performs the action, recorded at sequence 3 ...
        jar.claim("anyone", 1, 3, minimum_total=100)   # credits 150 to the actor
    """

    def __init__(
        self,
        ledger: EarningsLedger,
        occurrences: OccurrenceOracle,
        controllers: ControllerRegistry,
        solvency: SolvencyOracle,
        transfer: ValueTransfer,
        event_log: Optional[EventLog] = None,
        default_minimum_tip: int = 0,
    ) -> None:
        if default_minimum_tip < 0:
            raise ValueError(f"Minimum tip must be non-negative, got {default_minimum_tip}")
        self._ledger = ledger
        self._occurrences = occurrences
        self._controllers = controllers
        self._solvency = solvency
        self._transfer = transfer
        self._event_log = event_log
        self._default_minimum_tip = default_minimum_tip
        self._pools: Dict[PoolKey, TipPool] = {}
        self._minimum_tips: Dict[int, int] = {}
        self._in_flight: Dict[PoolKey, int] = {}

    # ------------------------------------------------------------------
    # Tipping
    # ------------------------------------------------------------------

    def tip(
        self,
        caller: str,
        asset_id: int,
        fingerprint: Fingerprint,
        value: int,
    ) -> TipPool:
        """Pledge value toward the action identified by fingerprint.

        Repeated tips from the same contributor accumulate.
        """
        if value < 0:
            raise ValueError(f"Tip value must be non-negative, got {value}")
        key = (asset_id, normalize_fingerprint(fingerprint))
        minimum = self.minimum_tip(asset_id)
        if value < minimum:
            raise rejected(logger, InsufficientTip(
                f"Tip of {value} is below the minimum of {minimum} for asset {asset_id}"
            ))
        existing = self._pools.get(key)
        if existing is not None and existing.is_claimed:
            raise rejected(logger, InvocationAlreadyClaimed(
                f"Pool {key[1]} on asset {asset_id} was claimed at {existing.claimed_seq}"
            ))

        pool = self._pools.setdefault(key, TipPool(asset_id=asset_id, fingerprint=key[1]))
        pool.pledges[caller] = pool.pledge_of(caller) + value
        pool.total += value

        self._emit(EventKind.TIP_PLACED, caller, {
            "asset_id": asset_id,
            "fingerprint": key[1],
            "tipper": caller,
            "value": value,
        })
        logger.info("Tip of %d on asset %d %s by %s", value, asset_id, key[1], caller)
        return pool

    # ------------------------------------------------------------------
    # Claiming
    # ------------------------------------------------------------------

    def claim(
        self,
        caller: str,
        asset_id: int,
        seq: int,
        minimum_total: int = 0,
    ) -> int:
        """Credit the pool matching occurrence seq to the actor who performed it.

        minimum_total guards the claimer against a pool that shrank
        (through withdrawals) since they last looked. Returns the amount
        credited.
        """
        occurrence = self._occurrences.get_occurrence(asset_id, seq)
        if is_zero_fingerprint(occurrence.fingerprint):
            raise rejected(logger, InvocationNotInvoked(
                f"No occurrence {seq} on asset {asset_id}"
            ))
        key = (asset_id, normalize_fingerprint(occurrence.fingerprint))

        existing = self._pools.get(key)
        if existing is not None and existing.is_claimed:
            raise rejected(logger, InvocationAlreadyClaimed(
                f"Pool {key[1]} on asset {asset_id} was claimed at {existing.claimed_seq}"
            ))
        if key in self._in_flight:
            raise rejected(logger, WithdrawalInProgress(
                f"Pool {key[1]} on asset {asset_id} has a withdrawal in flight"
            ))
        total = existing.total if existing is not None else 0
        if total < minimum_total:
            raise rejected(logger, InsufficientTips(
                f"Pool total {total} is below the requested minimum {minimum_total}"
            ))

        pool = self._pools.setdefault(key, TipPool(asset_id=asset_id, fingerprint=key[1]))
        # Close the pool before any value moves
        pool.claimed_seq = seq
        self._ledger.credit(occurrence.actor, pool.total)

        self._emit(EventKind.POOL_CLAIMED, caller, {
            "asset_id": asset_id,
            "seq": seq,
            "fingerprint": key[1],
            "invoker": occurrence.actor,
            "total": pool.total,
        })
        logger.info(
            "Pool %s on asset %d claimed at %d: %d to %s",
            key[1], asset_id, seq, pool.total, occurrence.actor,
        )
        return pool.total

    # ------------------------------------------------------------------
    # Contributor withdrawal
    # ------------------------------------------------------------------

    def withdraw_tip(self, caller: str, asset_id: int, fingerprint: Fingerprint) -> int:
        """Take back the caller's whole pledge from an unclaimed pool."""
        return self._withdraw([(asset_id, fingerprint)], caller)

    def withdraw_tips(
        self,
        caller: str,
        asset_ids: Sequence[int],
        fingerprints: Sequence[Fingerprint],
    ) -> int:
        """Batch withdrawal over parallel lists. All pairs succeed or none do."""
        if len(asset_ids) != len(fingerprints):
            raise rejected(logger, UnevenLengths(
                f"Got {len(asset_ids)} asset ids and {len(fingerprints)} fingerprints"
            ))
        return self._withdraw(list(zip(asset_ids, fingerprints)), caller)

    def _withdraw(self, targets: List[Tuple[int, Fingerprint]], caller: str) -> int:
        # Validate every pair before touching any pool
        pools: List[TipPool] = []
        seen: set = set()
        for asset_id, fingerprint in targets:
            key = (asset_id, normalize_fingerprint(fingerprint))
            pool = self._pools.get(key)
            if pool is not None and pool.is_claimed:
                raise rejected(logger, InvocationAlreadyClaimed(
                    f"Pool {key[1]} on asset {asset_id} was claimed at {pool.claimed_seq}"
                ))
            if pool is None or pool.pledge_of(caller) == 0 or key in seen:
                raise rejected(logger, TipNotFound(
                    f"{caller} has no tip in pool {key[1]} on asset {asset_id}"
                ))
            seen.add(key)
            pools.append(pool)

        withdrawn: List[Tuple[TipPool, int]] = []
        for pool in pools:
            amount = pool.pledge_of(caller)
            pool.total -= amount
            pool.pledges[caller] = 0
            withdrawn.append((pool, amount))

        total = sum(amount for _, amount in withdrawn)
        if total:
            # Pools stay closed to claims until the transfer settles, so a
            # rollback never re-pledges value into a claimed pool
            keys = [(pool.asset_id, pool.fingerprint) for pool in pools]
            for key in keys:
                self._in_flight[key] = self._in_flight.get(key, 0) + 1
            try:
                self._transfer.send(self._ledger.identity, caller, total)
            except Exception as e:
                for pool, amount in withdrawn:
                    pool.pledges[caller] = pool.pledge_of(caller) + amount
                    pool.total += amount
                logger.warning("Tip withdrawal of %d to %s failed: %s", total, caller, e)
                if isinstance(e, TransferFailed):
                    raise
                raise TransferFailed(f"Tip withdrawal of {total} to {caller} failed: {e}") from e
            finally:
                for key in keys:
                    self._in_flight[key] -= 1
                    if not self._in_flight[key]:
                        del self._in_flight[key]

        for pool, amount in withdrawn:
            self._emit(EventKind.TIP_WITHDRAWN, caller, {
                "asset_id": pool.asset_id,
                "fingerprint": pool.fingerprint,
                "tipper": caller,
                "value": amount,
            })
        logger.info("Tips withdrawn by %s: %d from %d pool(s)", caller, total, len(withdrawn))
        return total

    # ------------------------------------------------------------------
    # Keeper settings
    # ------------------------------------------------------------------

    def set_minimum_tip(self, caller: str, asset_id: int, minimum: int) -> None:
        """Set the asset's tip floor. Current, solvent controller only."""
        require_solvent_keeper(self._controllers, self._solvency, asset_id, caller)
        if minimum < 0:
            raise ValueError(f"Minimum tip must be non-negative, got {minimum}")
        previous = self.minimum_tip(asset_id)
        self._minimum_tips[asset_id] = minimum
        self._emit(EventKind.MINIMUM_TIP_UPDATED, caller, {
            "asset_id": asset_id,
            "previous_minimum": previous,
            "minimum": minimum,
        })
        logger.info("Minimum tip for asset %d set to %d", asset_id, minimum)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def minimum_tip(self, asset_id: int) -> int:
        return self._minimum_tips.get(asset_id, self._default_minimum_tip)

    def pool(self, asset_id: int, fingerprint: Fingerprint) -> Optional[TipPool]:
        return self._pools.get((asset_id, normalize_fingerprint(fingerprint)))

    def total_tips(self, asset_id: int, fingerprint: Fingerprint) -> int:
        pool = self.pool(asset_id, fingerprint)
        return pool.total if pool is not None else 0

    def tip_of(self, asset_id: int, fingerprint: Fingerprint, contributor: str) -> int:
        pool = self.pool(asset_id, fingerprint)
        return pool.pledge_of(contributor) if pool is not None else 0

    def claimed_seq(self, asset_id: int, fingerprint: Fingerprint) -> int:
        pool = self.pool(asset_id, fingerprint)
        return pool.claimed_seq if pool is not None else UNCLAIMED

    @property
    def total_escrowed(self) -> int:
        """Value held for pools that are still open."""
        return sum(p.total for p in self._pools.values() if not p.is_claimed)

    def _emit(self, kind: EventKind, actor_id: str, payload: dict) -> None:
        if self._event_log is not None:
            self._event_log.emit(kind, actor_id, payload)
