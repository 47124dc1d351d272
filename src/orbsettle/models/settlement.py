"""Settlement models — fee splits, tip pools, occurrences, purchases.

All amounts are int, denominated in the smallest value unit. No floats,
no Decimal: the fee split is defined by truncating integer division.

Invariants carried by these models:
- FeeSplit: platform_share + user_share == amount
- TipPool: total == sum(pledges.values()) while the pool is open
- TipPool: claimed_seq is UNCLAIMED until set once, then never changes
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict

PLATFORM_ID = "platform"
"""Distinguished beneficiary that receives the platform share."""

ZERO_FINGERPRINT = "0x" + "00" * 32
"""Content fingerprint meaning 'nothing recorded'."""

UNCLAIMED = 0
"""Claimed-marker sentinel. Sequence 0 is never a valid occurrence."""

BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class FeeSplit:
    """How a single credit is divided between platform and beneficiary."""
    amount: int
    platform_share: int
    user_share: int

    @staticmethod
    def compute(amount: int, platform_fee_bps: int) -> FeeSplit:
        """Split amount; the truncation remainder stays with the user."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative, got {amount}")
        platform_share = amount * platform_fee_bps // BPS_DENOMINATOR
        return FeeSplit(
            amount=amount,
            platform_share=platform_share,
            user_share=amount - platform_share,
        )


@dataclass
class TipPool:
    """Tips pledged toward one (asset, fingerprint) action.

    Mutable: pledges accumulate while open. Once claimed_seq is set the
    pool is frozen; pledges stay in storage for inspection only.
    """
    asset_id: int
    fingerprint: str
    total: int = 0
    pledges: Dict[str, int] = field(default_factory=dict)
    claimed_seq: int = UNCLAIMED

    @property
    def is_claimed(self) -> bool:
        return self.claimed_seq != UNCLAIMED

    def pledge_of(self, contributor: str) -> int:
        return self.pledges.get(contributor, 0)


@dataclass(frozen=True)
class Occurrence:
    """An action recorded by the occurrence oracle."""
    actor: str
    fingerprint: str
    timestamp: int


@dataclass(frozen=True)
class OccurrenceResult:
    """The result produced by an occurrence. timestamp 0 = not recorded."""
    fingerprint: str
    timestamp: int

    @property
    def exists(self) -> bool:
        return self.timestamp != 0


@dataclass(frozen=True)
class PurchaseRecord:
    """One purchaser's access right to one occurrence result."""
    asset_id: int
    seq: int
    purchaser: str
    purchased_utc: datetime
    amount: int


@dataclass(frozen=True)
class WithdrawalReceipt:
    """Outcome of an earnings withdrawal.

    beneficiary is whose balance was paid; destination is where the
    value went after redirect resolution.
    """
    beneficiary: str
    destination: str
    amount: int
    redirected: bool = False
