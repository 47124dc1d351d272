"""Settlement configuration — JSON parameters with environment overrides.

Parameters live in config/settlement_params.json. Deployment-specific
values (the platform wallet, the fee) may be overridden from the
environment or a .env file:

    PLATFORM_WALLET       platform share destination
    PLATFORM_FEE          platform fee in basis points (500 = 5%)
    ORBSETTLE_EVENT_LOG   JSONL event log path
    ORBSETTLE_LOG_LEVEL   logging level name
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from orbsettle.models.settlement import BPS_DENOMINATOR

PARAMS_FILE = "settlement_params.json"
DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class SettlementConfig:
    """Validated settlement parameters."""

    platform_fee_bps: int = 500
    platform_wallet: Optional[str] = None
    default_minimum_tip: int = 0
    event_log_path: Optional[Path] = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        violations = self.violations()
        if violations:
            raise ValueError("Invalid settlement config: " + "; ".join(violations))

    def violations(self) -> List[str]:
        """Return a description of every invalid parameter."""
        result: List[str] = []
        if not isinstance(self.platform_fee_bps, int) or isinstance(self.platform_fee_bps, bool):
            result.append(f"platform_fee_bps must be an integer, got {self.platform_fee_bps!r}")
        elif not 0 <= self.platform_fee_bps <= BPS_DENOMINATOR:
            result.append(
                f"platform_fee_bps must be in [0, {BPS_DENOMINATOR}], got {self.platform_fee_bps}"
            )
        if not isinstance(self.default_minimum_tip, int) or self.default_minimum_tip < 0:
            result.append(
                f"default_minimum_tip must be a non-negative integer, got {self.default_minimum_tip!r}"
            )
        if self.platform_wallet is not None and not self.platform_wallet.strip():
            result.append("platform_wallet must not be blank")
        if self.log_level.upper() not in _LOG_LEVELS:
            result.append(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level}")
        return result

    @classmethod
    def from_params(cls, params: Dict[str, Any]) -> SettlementConfig:
        """Build from the parsed settlement_params.json structure."""
        earnings = params.get("earnings", {})
        tips = params.get("tips", {})
        persistence = params.get("persistence", {})
        logging_params = params.get("logging", {})
        log_path = persistence.get("EVENT_LOG_PATH")
        return cls(
            platform_fee_bps=earnings.get("PLATFORM_FEE_BPS", 500),
            platform_wallet=earnings.get("PLATFORM_WALLET"),
            default_minimum_tip=tips.get("DEFAULT_MINIMUM_TIP", 0),
            event_log_path=Path(log_path) if log_path else None,
            log_level=logging_params.get("LEVEL", "INFO"),
        )

    @classmethod
    def from_config_dir(cls, config_dir: Path = DEFAULT_CONFIG_DIR) -> SettlementConfig:
        """Load settlement_params.json from config_dir."""
        path = config_dir / PARAMS_FILE
        if not path.exists():
            raise ValueError(f"Settlement parameters not found: {path}")
        return cls.from_params(json.loads(path.read_text(encoding="utf-8")))

    def with_env_overrides(self, env_file: Optional[Path] = None) -> SettlementConfig:
        """Apply overrides from the environment (and env_file, if given).

        Values already set in the process environment win over the file.
        """
        if env_file is not None:
            load_dotenv(env_file, override=False)
        changes: Dict[str, Any] = {}
        wallet = os.getenv("PLATFORM_WALLET")
        if wallet:
            changes["platform_wallet"] = wallet
        fee = os.getenv("PLATFORM_FEE")
        if fee:
            try:
                changes["platform_fee_bps"] = int(fee)
            except ValueError as e:
                raise ValueError(f"PLATFORM_FEE must be an integer, got {fee!r}") from e
        log_path = os.getenv("ORBSETTLE_EVENT_LOG")
        if log_path:
            changes["event_log_path"] = Path(log_path)
        level = os.getenv("ORBSETTLE_LOG_LEVEL")
        if level:
            changes["log_level"] = level.upper()
        return replace(self, **changes) if changes else self

    @classmethod
    def load(
        cls,
        config_dir: Path = DEFAULT_CONFIG_DIR,
        env_file: Optional[Path] = None,
    ) -> SettlementConfig:
        """Config file first, then environment overrides."""
        return cls.from_config_dir(config_dir).with_env_overrides(env_file)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform_fee_bps": self.platform_fee_bps,
            "platform_wallet": self.platform_wallet,
            "default_minimum_tip": self.default_minimum_tip,
            "event_log_path": str(self.event_log_path) if self.event_log_path else None,
            "log_level": self.log_level,
        }
