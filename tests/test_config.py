"""Tests for settlement configuration — JSON parameters plus environment overrides."""

import json
import os
from pathlib import Path

import pytest

from orbsettle.policy.config import SettlementConfig

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"
ENV_VARS = ("PLATFORM_WALLET", "PLATFORM_FEE", "ORBSETTLE_EVENT_LOG", "ORBSETTLE_LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestFromConfigDir:
    def test_shipped_params(self) -> None:
        config = SettlementConfig.from_config_dir(CONFIG_DIR)
        assert config.platform_fee_bps == 500
        assert config.platform_wallet is None
        assert config.default_minimum_tip == 0
        assert config.event_log_path is None

    def test_missing_dir(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="not found"):
            SettlementConfig.from_config_dir(tmp_path)

    def test_custom_params(self, tmp_path: Path) -> None:
        (tmp_path / "settlement_params.json").write_text(json.dumps({
            "earnings": {"PLATFORM_FEE_BPS": 250, "PLATFORM_WALLET": "0xP"},
            "tips": {"DEFAULT_MINIMUM_TIP": 7},
            "persistence": {"EVENT_LOG_PATH": "data/events.jsonl"},
        }))
        config = SettlementConfig.from_config_dir(tmp_path)
        assert config.platform_fee_bps == 250
        assert config.platform_wallet == "0xP"
        assert config.default_minimum_tip == 7
        assert config.event_log_path == Path("data/events.jsonl")


class TestValidation:
    def test_fee_out_of_range(self) -> None:
        with pytest.raises(ValueError, match="platform_fee_bps"):
            SettlementConfig(platform_fee_bps=10_001)

    def test_negative_minimum_tip(self) -> None:
        with pytest.raises(ValueError, match="default_minimum_tip"):
            SettlementConfig(default_minimum_tip=-1)

    def test_blank_wallet(self) -> None:
        with pytest.raises(ValueError, match="platform_wallet"):
            SettlementConfig(platform_wallet="  ")

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ValueError, match="log_level"):
            SettlementConfig(log_level="CHATTY")


class TestEnvOverrides:
    def test_environment_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLATFORM_WALLET", "0xFromEnv")
        monkeypatch.setenv("PLATFORM_FEE", "300")
        config = SettlementConfig.load(CONFIG_DIR)
        assert config.platform_wallet == "0xFromEnv"
        assert config.platform_fee_bps == 300

    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("PLATFORM_WALLET=0xDotenv\nORBSETTLE_LOG_LEVEL=debug\n")
        try:
            config = SettlementConfig.load(CONFIG_DIR, env_file=env_file)
        finally:
            # load_dotenv writes into os.environ
            os.environ.pop("PLATFORM_WALLET", None)
            os.environ.pop("ORBSETTLE_LOG_LEVEL", None)
        assert config.platform_wallet == "0xDotenv"
        assert config.log_level == "DEBUG"

    def test_non_integer_fee(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLATFORM_FEE", "five percent")
        with pytest.raises(ValueError, match="PLATFORM_FEE"):
            SettlementConfig.load(CONFIG_DIR)

    def test_out_of_range_fee_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PLATFORM_FEE", "20000")
        with pytest.raises(ValueError, match="platform_fee_bps"):
            SettlementConfig.load(CONFIG_DIR)
