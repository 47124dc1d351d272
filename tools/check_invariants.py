#!/usr/bin/env python3
"""Settlement invariant checks against config/settlement_params.json."""

import json
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
PARAMS_PATH = ROOT / "config" / "settlement_params.json"

BPS_DENOMINATOR = 10_000
# Amounts whose split must never lose value
PROBE_AMOUNTS = (0, 1, 19, 20, 99, 100, 150, 10**18 + 7)


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check_split(fee_bps: int, errors: list[str]) -> None:
    """Every split must conserve the credited amount."""
    for amount in PROBE_AMOUNTS:
        platform = amount * fee_bps // BPS_DENOMINATOR
        user = amount - platform
        if platform + user != amount or platform < 0 or user < 0:
            errors.append(f"Split of {amount} at {fee_bps} bps loses value")


def check(params_path: Path = PARAMS_PATH) -> int:
    params = load_json(params_path)
    errors: list[str] = []

    # --- Earnings invariants ---
    earnings = params.get("earnings", {})
    fee_bps = earnings.get("PLATFORM_FEE_BPS")
    if not isinstance(fee_bps, int) or isinstance(fee_bps, bool):
        errors.append(f"PLATFORM_FEE_BPS must be an integer, got {fee_bps!r}")
    elif not 0 <= fee_bps <= BPS_DENOMINATOR:
        errors.append(f"PLATFORM_FEE_BPS must be in [0, {BPS_DENOMINATOR}], got {fee_bps}")
    else:
        check_split(fee_bps, errors)
    wallet = earnings.get("PLATFORM_WALLET")
    if wallet is not None and (not isinstance(wallet, str) or not wallet.strip()):
        errors.append("PLATFORM_WALLET must be null or a non-blank string")

    # --- Tip invariants ---
    minimum = params.get("tips", {}).get("DEFAULT_MINIMUM_TIP")
    if not isinstance(minimum, int) or minimum < 0:
        errors.append(f"DEFAULT_MINIMUM_TIP must be a non-negative integer, got {minimum!r}")

    # --- Logging ---
    level = params.get("logging", {}).get("LEVEL", "INFO")
    if str(level).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"logging.LEVEL is not a logging level: {level}")

    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"- {err}")
        return 1

    print("Invariant check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(check())
