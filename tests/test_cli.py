"""Tests for the orbsettle CLI — proves commands parse and dispatch."""

import json
import logging
from pathlib import Path
from typing import Iterator

import pytest

from orbsettle.cli import build_parser, main
from orbsettle.persistence.event_log import EventKind, EventLog


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("PLATFORM_WALLET", "PLATFORM_FEE", "ORBSETTLE_EVENT_LOG", "ORBSETTLE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield
    # main() installs a handler bound to the captured stream
    root = logging.getLogger("orbsettle")
    root.handlers = []
    root.propagate = True
    root.setLevel(logging.NOTSET)
    if hasattr(root, "_orbsettle_configured"):
        delattr(root, "_orbsettle_configured")


class TestCLIParsing:
    def test_fee_split_command(self) -> None:
        args = build_parser().parse_args(["fee-split", "--amount", "150"])
        assert args.command == "fee-split"
        assert args.amount == 150

    def test_verify_log_command(self) -> None:
        args = build_parser().parse_args(["verify-log", "--path", "events.jsonl"])
        assert args.path == Path("events.jsonl")


class TestCLIExecution:
    def test_no_command_shows_help(self) -> None:
        assert main([]) == 0

    def test_status_without_log(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["status"]) == 0
        status = json.loads(capsys.readouterr().out)
        assert status["event_log"] is None
        assert status["events"] == 0
        assert "ledger" not in status

    def test_status_reports_configured_log(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=path)
        log.emit(EventKind.TIP_PLACED, "alice", {"value": 10})
        log.emit(EventKind.TIP_PLACED, "bob", {"value": 5})
        log.emit(EventKind.POOL_CLAIMED, "carol", {"total": 15})
        monkeypatch.setenv("ORBSETTLE_EVENT_LOG", str(path))

        assert main(["status"]) == 0
        status = json.loads(capsys.readouterr().out)
        assert status["event_log"] == str(path)
        assert status["events"] == 3
        assert status["events_by_kind"]["tip_placed"] == 2
        assert status["events_by_kind"]["pool_claimed"] == 1
        assert status["events_by_kind"]["purchase_made"] == 0

    def test_fee_split(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["fee-split", "--amount", "99"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["platform_share"] == 4
        assert out["user_share"] == 95

    def test_fee_split_negative(self) -> None:
        assert main(["fee-split", "--amount", "-1"]) == 1

    def test_fingerprint(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["fingerprint", "--content", "hello"]) == 0
        assert capsys.readouterr().out.strip() == (
            "0x1c8aff950685c2ed4bc3174f3472287b56d9517b9c948127319a09a7a36deac8"
        )

    def test_check_config(self) -> None:
        assert main(["check-config"]) == 0

    def test_check_config_rejects_bad_fee(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLATFORM_FEE", "10001")
        assert main(["check-config"]) == 1

    def test_verify_log(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=path)
        log.emit(EventKind.TIP_PLACED, "alice", {"value": 1})
        assert main(["verify-log", "--path", str(path)]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["events"] == 1

    def test_verify_missing_log(self, tmp_path: Path) -> None:
        assert main(["verify-log", "--path", str(tmp_path / "missing.jsonl")]) == 1
