"""Withdrawal redirect strategies.

When a beneficiary withdraws, the embedding system may send the value
somewhere other than the beneficiary itself (the platform share to the
platform wallet, an asset's earnings to its beneficiary contract).
Each embedding system injects one strategy into its EarningsLedger.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol, runtime_checkable

from orbsettle.models.settlement import PLATFORM_ID


@runtime_checkable
class WithdrawalRedirect(Protocol):
    """Resolve where a beneficiary's withdrawal is paid.

    Returning None means pay the beneficiary directly.
    """

    def resolve_redirect(self, beneficiary: str) -> Optional[str]:
        ...


class NoRedirect:
    """Every beneficiary is paid directly."""

    def resolve_redirect(self, beneficiary: str) -> Optional[str]:
        return None


class PlatformWalletRedirect:
    """Pays the platform share to a configured wallet.

    Ordinary beneficiaries are paid directly. With no wallet configured
    the platform identity itself receives the value.
    """

    def __init__(self, platform_wallet: Optional[str]) -> None:
        self._platform_wallet = platform_wallet

    @property
    def platform_wallet(self) -> Optional[str]:
        return self._platform_wallet

    def resolve_redirect(self, beneficiary: str) -> Optional[str]:
        if beneficiary == PLATFORM_ID:
            return self._platform_wallet
        return None


class MappingRedirect:
    """Explicit beneficiary -> destination table, with an optional fallback."""

    def __init__(
        self,
        mapping: Mapping[str, str],
        fallback: Optional[WithdrawalRedirect] = None,
    ) -> None:
        self._mapping = dict(mapping)
        self._fallback = fallback

    def resolve_redirect(self, beneficiary: str) -> Optional[str]:
        if beneficiary in self._mapping:
            return self._mapping[beneficiary]
        if self._fallback is not None:
            return self._fallback.resolve_redirect(beneficiary)
        return None
