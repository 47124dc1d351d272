"""Core data models for the settlement layer."""

from orbsettle.models.settlement import (
    BPS_DENOMINATOR,
    PLATFORM_ID,
    UNCLAIMED,
    ZERO_FINGERPRINT,
    FeeSplit,
    Occurrence,
    OccurrenceResult,
    PurchaseRecord,
    TipPool,
    WithdrawalReceipt,
)

__all__ = [
    "BPS_DENOMINATOR",
    "PLATFORM_ID",
    "UNCLAIMED",
    "ZERO_FINGERPRINT",
    "FeeSplit",
    "Occurrence",
    "OccurrenceResult",
    "PurchaseRecord",
    "TipPool",
    "WithdrawalReceipt",
]
