"""Policy — settlement parameters and their validation."""

from orbsettle.policy.config import DEFAULT_CONFIG_DIR, SettlementConfig

__all__ = ["DEFAULT_CONFIG_DIR", "SettlementConfig"]
