"""Tests for the payment conveyor — proves received value is forwarded unconditionally."""

import pytest

from orbsettle.conveyor import PaymentConveyor
from orbsettle.earnings.ledger import EarningsLedger
from orbsettle.earnings.redirect import PlatformWalletRedirect
from orbsettle.earnings.transfer import InMemoryValueBook
from orbsettle.errors import TransferFailed
from orbsettle.persistence.event_log import EventKind, EventLog


class TestPaymentConveyor:
    def test_forwards_received_value(self) -> None:
        book = InMemoryValueBook()
        conveyor = PaymentConveyor("conveyor", "treasury", book)
        conveyor.attach(book)
        book.send("payer", "conveyor", 40)
        assert book.received_by("treasury") == 40
        assert book.balance_of("conveyor") == 0

    def test_as_platform_withdrawal_destination(self) -> None:
        book = InMemoryValueBook()
        log = EventLog()
        PaymentConveyor("conveyor", "treasury", book, event_log=log).attach(book)
        ledger = EarningsLedger(transfer=book, redirect=PlatformWalletRedirect("conveyor"))
        ledger.credit("alice", 1_000)
        ledger.withdraw_platform()
        assert book.received_by("treasury") == 50
        (event,) = log.events(EventKind.VALUE_FORWARDED)
        assert event.payload == {"source": "orbsettle", "destination": "treasury", "amount": 50}

    def test_failed_forward_fails_inbound(self) -> None:
        book = InMemoryValueBook()
        PaymentConveyor("conveyor", "treasury", book).attach(book)

        def reject(source: str, amount: int) -> None:
            raise RuntimeError("treasury closed")

        book.on_receive("treasury", reject)
        with pytest.raises(TransferFailed):
            book.send("payer", "conveyor", 40)
        assert book.received_by("conveyor") == 0
        assert book.transfers == []

    def test_cannot_forward_to_itself(self) -> None:
        with pytest.raises(ValueError):
            PaymentConveyor("conveyor", "conveyor", InMemoryValueBook())
