"""orbsettle CLI — inspect configuration, fee splits and the audit trail.

Usage:
    python -m orbsettle.cli status
    python -m orbsettle.cli fee-split --amount 150
    python -m orbsettle.cli fingerprint --content "What is the answer?"
    python -m orbsettle.cli verify-log --path data/events.jsonl
    python -m orbsettle.cli check-config
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from orbsettle.crypto.anchor import event_log_file_digest
from orbsettle.crypto.fingerprint import content_fingerprint
from orbsettle.logging_setup import configure_logging
from orbsettle.models.settlement import FeeSplit
from orbsettle.persistence.event_log import EventKind, EventLog
from orbsettle.policy.config import DEFAULT_CONFIG_DIR, SettlementConfig


def _load_config(args: argparse.Namespace) -> SettlementConfig:
    config = SettlementConfig.load(args.config, env_file=args.env_file)
    configure_logging(config.log_level)
    return config


def cmd_status(args: argparse.Namespace) -> int:
    """Show configuration and what the configured event log records.

    Ledger and escrow balances live in the running service, so the CLI
    only reports the persisted audit trail.
    """
    config = _load_config(args)
    try:
        log = EventLog(storage_path=config.event_log_path)
    except (ValueError, OSError) as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    print(json.dumps({
        "config": config.to_dict(),
        "event_log": str(config.event_log_path) if config.event_log_path else None,
        "events": log.count,
        "events_by_kind": {kind.value: len(log.events(kind)) for kind in EventKind},
    }, indent=2))
    return 0


def cmd_fee_split(args: argparse.Namespace) -> int:
    config = _load_config(args)
    if args.amount < 0:
        print("Failed: amount must be non-negative", file=sys.stderr)
        return 1
    split = FeeSplit.compute(args.amount, config.platform_fee_bps)
    print(json.dumps({
        "amount": split.amount,
        "platform_fee_bps": config.platform_fee_bps,
        "platform_share": split.platform_share,
        "user_share": split.user_share,
    }, indent=2))
    return 0


def cmd_fingerprint(args: argparse.Namespace) -> int:
    print(content_fingerprint(args.content))
    return 0


def cmd_verify_log(args: argparse.Namespace) -> int:
    """Load a JSONL event log, verifying every record hash."""
    try:
        digest = event_log_file_digest(args.path)
        count = EventLog(storage_path=args.path).count
    except (ValueError, OSError) as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    print(json.dumps({"path": str(args.path), "events": count, "digest": digest}, indent=2))
    return 0


def cmd_check_config(args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
    except ValueError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    print(json.dumps(config.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orbsettle",
        description="Settlement layer for an invocation marketplace",
    )
    parser.add_argument(
        "--config", type=Path, default=DEFAULT_CONFIG_DIR,
        help="Config directory (default: ./config)",
    )
    parser.add_argument(
        "--env-file", type=Path, default=None,
        help="Optional .env file with PLATFORM_WALLET / PLATFORM_FEE overrides",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show configuration and audit trail summary")

    p_split = sub.add_parser("fee-split", help="Show the platform/user split of an amount")
    p_split.add_argument("--amount", type=int, required=True, help="Amount in smallest units")

    p_fp = sub.add_parser("fingerprint", help="Compute the content fingerprint of a text")
    p_fp.add_argument("--content", required=True, help="Content to fingerprint")

    p_verify = sub.add_parser("verify-log", help="Verify a JSONL event log")
    p_verify.add_argument("--path", type=Path, required=True, help="Event log path")

    sub.add_parser("check-config", help="Validate settlement parameters")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "fee-split": cmd_fee_split,
        "fingerprint": cmd_fingerprint,
        "verify-log": cmd_verify_log,
        "check-config": cmd_check_config,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
