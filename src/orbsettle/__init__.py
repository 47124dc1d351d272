"""orbsettle — settlement layer for an invocation marketplace.

Earnings ledger with a platform fee split, tip escrow with exactly-once
claiming, and paid access to recorded results.
"""

__version__ = "0.1.0"
