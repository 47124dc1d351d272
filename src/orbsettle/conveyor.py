"""Payment conveyor — forwards everything it receives to one destination.

Useful as a withdrawal destination: point a redirect at the conveyor's
identity and every payout lands at the configured destination. The
conveyor never holds value; if the onward transfer fails, so does the
inbound one.
"""

from __future__ import annotations

import logging
from typing import Optional

from orbsettle.earnings.transfer import InMemoryValueBook, ValueTransfer
from orbsettle.persistence.event_log import EventKind, EventLog

logger = logging.getLogger(__name__)


class PaymentConveyor:
    """Unconditional forwarder of received value."""

    def __init__(
        self,
        identity: str,
        destination: str,
        transfer: ValueTransfer,
        event_log: Optional[EventLog] = None,
    ) -> None:
        if identity == destination:
            raise ValueError("Conveyor cannot forward to itself")
        self._identity = identity
        self._destination = destination
        self._transfer = transfer
        self._event_log = event_log

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def destination(self) -> str:
        return self._destination

    def attach(self, book: InMemoryValueBook) -> None:
        """Run receive() whenever book delivers value to this conveyor."""
        book.on_receive(self._identity, self.receive)

    def receive(self, source: str, amount: int) -> None:
        """Forward amount, received from source, to the destination."""
        if amount == 0:
            return
        self._transfer.send(self._identity, self._destination, amount)
        if self._event_log is not None:
            self._event_log.emit(EventKind.VALUE_FORWARDED, self._identity, {
                "source": source,
                "destination": self._destination,
                "amount": amount,
            })
        logger.info("Forwarded %d from %s to %s", amount, source, self._destination)
