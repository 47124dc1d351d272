"""Outward value transfer — the only way value leaves the settlement layer.

A transfer hands control to the recipient before it returns: a recipient
may run arbitrary code, call back into the settlement layer, or refuse the
value. Every settlement operation therefore finishes its own state changes
before calling send().

Adding a real settlement backend = implement the ValueTransfer Protocol.
Zero changes to the ledger or the escrows.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Protocol, Tuple, runtime_checkable

from orbsettle.errors import TransferFailed

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[str, int], None]
"""Called as hook(source, amount) while a transfer to its identity runs."""


@runtime_checkable
class ValueTransfer(Protocol):
    """Contract for moving value out to an external identity.

    Implementations raise TransferFailed when the recipient refuses the
    value; callers undo their own state changes and propagate it.
    """

    def send(self, source: str, destination: str, amount: int) -> None:
        ...


class InMemoryValueBook:
    """Deterministic ValueTransfer that records every movement.

    Each external identity has received and sent totals; balance_of is
    their difference. Receive hooks model recipients that execute code on
    receipt (forwarders, re-entrant or rejecting contracts).

    Usage:
        book = InMemoryValueBook()
        book.on_receive("0xHostile", lambda source, amount: ...)
        book.send("orbsettle", "alice", 95)
        book.balance_of("alice")  # 95
    """

    def __init__(self) -> None:
        self._received: Dict[str, int] = defaultdict(int)
        self._sent: Dict[str, int] = defaultdict(int)
        self._hooks: Dict[str, ReceiveHook] = {}
        self._transfers: List[Tuple[str, str, int]] = []

    def on_receive(self, identity: str, hook: ReceiveHook) -> None:
        """Install the code that runs when identity receives value."""
        self._hooks[identity] = hook

    def remove_hook(self, identity: str) -> None:
        self._hooks.pop(identity, None)

    def send(self, source: str, destination: str, amount: int) -> None:
        """Move amount from source to destination, running any hook.

        If the destination hook raises, the movement is undone and
        TransferFailed is raised in its place.
        """
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative, got {amount}")
        self._received[destination] += amount
        self._sent[source] += amount
        position = len(self._transfers)
        self._transfers.append((source, destination, amount))

        hook = self._hooks.get(destination)
        if hook is None:
            return
        try:
            hook(source, amount)
        except Exception as e:
            self._received[destination] -= amount
            self._sent[source] -= amount
            del self._transfers[position]
            logger.debug("Transfer %s -> %s of %d rejected: %s", source, destination, amount, e)
            raise TransferFailed(
                f"Transfer of {amount} from {source} to {destination} failed: {e}"
            ) from e

    def received_by(self, identity: str) -> int:
        return self._received.get(identity, 0)

    def sent_by(self, identity: str) -> int:
        return self._sent.get(identity, 0)

    def balance_of(self, identity: str) -> int:
        return self.received_by(identity) - self.sent_by(identity)

    @property
    def transfers(self) -> List[Tuple[str, str, int]]:
        """Every completed transfer as (source, destination, amount)."""
        return list(self._transfers)
