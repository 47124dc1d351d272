"""Audit-trail anchoring — embeds the event log digest on Ethereum.

The settlement event log is append-only and hash-verified on load, but a
log kept by one operator can still be rewritten wholesale. Anchoring the
log digest in a blockchain transaction creates a timestamped, publicly
verifiable proof that the audit trail existed in that exact form.

No contract executes: the digest rides in the data field of a 0-value
self-send.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from orbsettle.persistence.event_log import EventLog


@dataclass(frozen=True)
class AnchorRecord:
    """A record of a successful blockchain anchor."""
    log_path: str
    event_count: int
    sha256_hash: str
    tx_hash: str
    block_number: int
    chain_id: int
    timestamp_utc: str
    explorer_url: str


def event_log_digest(log: EventLog) -> str:
    """SHA-256 over the ordered list of event hashes.

    The log already verified every record hash on load, so the ordered
    hashes commit to the full content of the log.
    """
    canonical = json.dumps(log.event_hashes(), ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(canonical).hexdigest()


def event_log_file_digest(path: Path) -> str:
    """Load and verify a JSONL event log, then compute its digest."""
    if not path.exists():
        raise ValueError(f"Event log not found: {path}")
    return event_log_digest(EventLog(storage_path=path))


def anchor_to_chain(
    digest: str,
    rpc_url: str,
    private_key: str,
    chain_id: int = 11155111,  # Sepolia
    gas: int = 30_000,
    gas_price_gwei: str = "2",
    log_path: str = "",
    event_count: int = 0,
) -> AnchorRecord:
    """Anchor a SHA-256 hash to Ethereum by embedding it in a transaction.

    Sends a 0-value self-send with the digest in the data field and waits
    for one confirmation. log_path and event_count describe the anchored
    log in the returned record.
    """
    from web3 import Web3, HTTPProvider
    from eth_account import Account

    w3 = Web3(HTTPProvider(rpc_url))
    acct = Account.from_key(private_key)

    nonce = w3.eth.get_transaction_count(acct.address)
    tx = {
        "to": acct.address,
        "value": 0,
        "gas": gas,
        "gasPrice": w3.to_wei(gas_price_gwei, "gwei"),
        "nonce": nonce,
        "chainId": chain_id,
        "data": bytes.fromhex(digest),
    }

    signed = acct.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=300)

    tx_hex = Web3.to_hex(tx_hash)
    return AnchorRecord(
        log_path=log_path,
        event_count=event_count,
        sha256_hash=digest,
        tx_hash=tx_hex,
        block_number=receipt.blockNumber,
        chain_id=chain_id,
        timestamp_utc=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        explorer_url=f"https://sepolia.etherscan.io/tx/{tx_hex}",
    )


def anchor_event_log(
    path: Path,
    rpc_url: str,
    private_key: str,
    chain_id: int = 11155111,
) -> AnchorRecord:
    """Verify the JSONL event log at path and anchor its digest."""
    if not path.exists():
        raise ValueError(f"Event log not found: {path}")
    log = EventLog(storage_path=path)
    return anchor_to_chain(
        digest=event_log_digest(log),
        rpc_url=rpc_url,
        private_key=private_key,
        chain_id=chain_id,
        log_path=str(path),
        event_count=log.count,
    )
