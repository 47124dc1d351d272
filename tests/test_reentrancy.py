"""Tests for re-entrant recipients — proves state changes precede every outward transfer.

A hostile recipient runs code while value is being delivered to it and
calls straight back into the settlement layer, trying to take the same
funds twice.
"""

from typing import List

import pytest

from orbsettle.crypto.fingerprint import content_fingerprint
from orbsettle.earnings.ledger import EarningsLedger
from orbsettle.earnings.transfer import InMemoryValueBook
from orbsettle.errors import (
    InvocationAlreadyClaimed,
    NoFundsAvailable,
    SettlementError,
    TipNotFound,
    TransferFailed,
    WithdrawalInProgress,
)
from orbsettle.escrow.tip_jar import TipJar
from orbsettle.oracles import (
    InMemoryControllerRegistry,
    InMemoryInvocationRegistry,
    StaticSolvencyOracle,
)
from orbsettle.persistence.event_log import EventKind, EventLog

H = content_fingerprint("hostile content")


class HostileRecipient:
    """Re-enters a settlement call once per delivery, recording what happened."""

    def __init__(self, book: InMemoryValueBook, identity: str, reenter) -> None:
        self.identity = identity
        self.outcomes: List[str] = []
        self._reenter = reenter
        self._depth = 0
        book.on_receive(identity, self.on_receive)

    def on_receive(self, source: str, amount: int) -> None:
        if self._depth:
            return
        self._depth += 1
        try:
            self._reenter()
            self.outcomes.append("reentered")
        except SettlementError as e:
            self.outcomes.append(type(e).__name__)
        finally:
            self._depth -= 1


def _stack():
    book = InMemoryValueBook()
    log = EventLog()
    ledger = EarningsLedger(transfer=book, event_log=log)
    registry = InMemoryInvocationRegistry()
    jar = TipJar(
        ledger, registry, InMemoryControllerRegistry(), StaticSolvencyOracle(),
        book, event_log=log,
    )
    return book, log, ledger, registry, jar


class TestLedgerReentrancy:
    def test_reentrant_withdraw_sees_zero_balance(self) -> None:
        book, log, ledger, _, _ = _stack()
        ledger.credit("hostile", 1_000)
        hostile = HostileRecipient(book, "hostile", lambda: ledger.withdraw_all("hostile"))

        ledger.withdraw_all("hostile")

        assert hostile.outcomes == ["NoFundsAvailable"]
        assert book.received_by("hostile") == 950
        assert ledger.balance_of("hostile") == 0
        assert len(log.events(EventKind.EARNINGS_WITHDRAWN)) == 1

    def test_reentrant_withdraw_of_other_beneficiary_is_independent(self) -> None:
        book, _, ledger, _, _ = _stack()
        ledger.credit("hostile", 100)
        ledger.credit("bystander", 100)
        hostile = HostileRecipient(book, "hostile", lambda: ledger.withdraw_all("bystander"))

        ledger.withdraw_all("hostile")

        assert hostile.outcomes == ["reentered"]
        assert book.received_by("bystander") == 95
        assert ledger.total_outstanding + ledger.total_withdrawn == ledger.total_credited

    def test_reentrant_credit_survives_failed_transfer(self) -> None:
        book, _, ledger, _, _ = _stack()
        ledger.credit("hostile", 100)

        def credit_then_reject(source: str, amount: int) -> None:
            ledger.credit("hostile", 20)
            raise RuntimeError("reject after credit")

        book.on_receive("hostile", credit_then_reject)
        with pytest.raises(SettlementError):
            ledger.withdraw_all("hostile")
        assert ledger.balance_of("hostile") == 95 + 19
        assert ledger.total_outstanding + ledger.total_withdrawn == ledger.total_credited


class TestTipJarReentrancy:
    def test_reentrant_tip_withdrawal_finds_nothing(self) -> None:
        book, log, _, _, jar = _stack()
        jar.tip("hostile", 1, H, 500)
        jar.tip("honest", 1, H, 100)
        hostile = HostileRecipient(book, "hostile", lambda: jar.withdraw_tip("hostile", 1, H))

        assert jar.withdraw_tip("hostile", 1, H) == 500

        assert hostile.outcomes == [TipNotFound.__name__]
        assert book.received_by("hostile") == 500
        assert jar.total_tips(1, H) == 100
        assert len(log.events(EventKind.TIP_WITHDRAWN)) == 1

    def test_reentrant_batch_withdrawal_finds_nothing(self) -> None:
        book, _, _, _, jar = _stack()
        other = content_fingerprint("other")
        jar.tip("hostile", 1, H, 10)
        jar.tip("hostile", 2, other, 20)
        hostile = HostileRecipient(
            book, "hostile", lambda: jar.withdraw_tips("hostile", [1, 2], [H, other]),
        )

        assert jar.withdraw_tips("hostile", [1, 2], [H, other]) == 30

        assert hostile.outcomes == [TipNotFound.__name__]
        assert book.received_by("hostile") == 30

    def test_claim_during_withdrawal_is_refused(self) -> None:
        book, _, ledger, registry, jar = _stack()
        jar.tip("hostile", 1, H, 100)
        jar.tip("honest", 1, H, 50)
        seq = registry.invoke(1, "actor", fingerprint=H, timestamp=1)
        hostile = HostileRecipient(book, "hostile", lambda: jar.claim("hostile", 1, seq, 0))

        jar.withdraw_tip("hostile", 1, H)

        assert hostile.outcomes == [WithdrawalInProgress.__name__]
        assert book.received_by("hostile") == 100
        # Once the transfer settles the remaining pool is claimable
        assert jar.claim("anyone", 1, seq) == 50
        assert ledger.balance_of("actor") == 48

    def test_claim_then_reject_leaves_pool_intact(self) -> None:
        book, log, ledger, registry, jar = _stack()
        jar.tip("hostile", 1, H, 100)
        jar.tip("bob", 1, H, 50)
        seq = registry.invoke(1, "actor", fingerprint=H, timestamp=1)
        outcomes: List[str] = []

        def claim_then_reject(source: str, amount: int) -> None:
            try:
                jar.claim("hostile", 1, seq, 0)
                outcomes.append("claimed")
            except SettlementError as e:
                outcomes.append(type(e).__name__)
            raise RuntimeError("reject after claim")

        book.on_receive("hostile", claim_then_reject)
        with pytest.raises(TransferFailed):
            jar.withdraw_tip("hostile", 1, H)

        assert outcomes == [WithdrawalInProgress.__name__]
        pool = jar.pool(1, H)
        assert pool is not None
        assert not pool.is_claimed
        assert pool.total == 150
        assert pool.pledges == {"hostile": 100, "bob": 50}
        assert ledger.total_credited == 0
        assert log.events(EventKind.POOL_CLAIMED) == []

        # Nothing is stranded: the whole pool reaches the actor
        book.remove_hook("hostile")
        assert jar.claim("anyone", 1, seq) == 150
        assert ledger.total_credited == 150

    def test_claimed_pool_blocks_reentrant_withdrawal(self) -> None:
        book, _, ledger, registry, jar = _stack()
        jar.tip("hostile", 1, H, 100)
        seq = registry.invoke(1, "hostile", fingerprint=H, timestamp=1)
        jar.claim("hostile", 1, seq, 0)
        HostileRecipient(book, "hostile", lambda: jar.withdraw_tip("hostile", 1, H))

        with pytest.raises(InvocationAlreadyClaimed):
            jar.withdraw_tip("hostile", 1, H)
        ledger.withdraw_all("hostile")
        assert book.received_by("hostile") == 95


class TestNoFundsAfterDrain:
    def test_drained_balance_rejects(self) -> None:
        book, _, ledger, _, _ = _stack()
        ledger.credit("a", 1)
        ledger.withdraw_all("a")
        with pytest.raises(NoFundsAvailable):
            ledger.withdraw_all("a")
        assert book.received_by("a") == 1
