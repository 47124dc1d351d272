#!/usr/bin/env python3
"""Anchor the settlement audit trail on Ethereum Sepolia.

Loads the JSONL event log (verifying every record), computes its digest
and embeds the digest in a blockchain transaction. The anchor is
appended to docs/ANCHORS.md.

Usage:
    python3 tools/anchor_event_log.py data/events.jsonl
    python3 tools/anchor_event_log.py data/events.jsonl "Quarter close"

Requires:
    SEPOLIA_RPC_URL and PRIVATE_KEY in a .env file at the project root.
"""

import os
import sys
from pathlib import Path

# Add src to path for orbsettle imports
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from dotenv import load_dotenv
from orbsettle.crypto.anchor import anchor_event_log

# ------------------------------------------------------------------ #
# Configuration                                                       #
# ------------------------------------------------------------------ #

load_dotenv(ROOT / ".env")

RPC_URL = os.getenv("SEPOLIA_RPC_URL")
PRIVATE_KEY = os.getenv("PRIVATE_KEY") or os.getenv("SEPOLIA_PRIVATE_KEY")
ANCHORS_FILE = ROOT / "docs" / "ANCHORS.md"

if not RPC_URL or not PRIVATE_KEY:
    print("ERROR: Missing SEPOLIA_RPC_URL and/or PRIVATE_KEY in .env")
    sys.exit(1)

if len(sys.argv) < 2:
    print("Usage: anchor_event_log.py <events.jsonl> [description]")
    sys.exit(1)

LOG_PATH = Path(sys.argv[1])
description = " ".join(sys.argv[2:])

if not LOG_PATH.exists():
    print(f"ERROR: Event log not found: {LOG_PATH}")
    sys.exit(1)

# ------------------------------------------------------------------ #
# Anchor                                                              #
# ------------------------------------------------------------------ #

print("Anchoring to Ethereum Sepolia (Chain ID: 11155111) ...")

record = anchor_event_log(LOG_PATH, rpc_url=RPC_URL, private_key=PRIVATE_KEY)

print(f"  Event log:      {record.log_path}")
print(f"  Events:         {record.event_count}")
print(f"  SHA-256:        {record.sha256_hash}")
if description:
    print(f"  Description:    {description}")

# ------------------------------------------------------------------ #
# Log the anchor                                                      #
# ------------------------------------------------------------------ #

ANCHORS_FILE.parent.mkdir(parents=True, exist_ok=True)
entry = [
    f"## Audit trail anchor {record.timestamp_utc}",
    "",
    f"- `{record.sha256_hash}` → [tx {record.tx_hash[:10]}...]({record.explorer_url})",
    f"  Log: `{LOG_PATH.name}` | Events: {record.event_count} | Ethereum Block: {record.block_number}",
]
if description:
    entry.append(f"  **{description}**")
entry.append("")

with ANCHORS_FILE.open("a", encoding="utf-8") as f:
    f.write("\n" + "\n".join(entry))

print(f"  Tx:             {record.tx_hash}")
print(f"  Eth Block:      {record.block_number}")
print(f"  Explorer:       {record.explorer_url}")
print(f"  Logged:         {ANCHORS_FILE}")
