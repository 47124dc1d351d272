"""Escrows — tip pools toward future actions and paid access to results.

Both escrows credit a shared EarningsLedger; neither pays beneficiaries
directly.
"""

from orbsettle.escrow.access import PaidAccessEscrow
from orbsettle.escrow.tip_jar import TipJar

__all__ = ["PaidAccessEscrow", "TipJar"]
