"""
Hotelius Core Config — Pricing Rules
======================================
Doctrine: rates are data, not code.
Tax and marketplace fee parameters live in one frozen rule object
that engines receive explicitly. Defaults mirror the platform's
published terms (10% tax, 10% platform fee with a $2.00 floor).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any


# ══════════════════════════════════════════════════════════════
# PRICING RULES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PricingRules:
    """
    Tax and platform-fee configuration.

    Rates are Decimals (Decimal("0.10") means 10%) so that
    cent arithmetic never passes through binary floats.
    """

    tax_rate: Decimal = Decimal("0.10")
    platform_fee_rate: Decimal = Decimal("0.10")
    platform_fee_minimum_cents: int = 200

    def __post_init__(self) -> None:
        for name in ("tax_rate", "platform_fee_rate"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                raise ValueError(f"{name} must be a Decimal.")
            if not Decimal("0") <= value <= Decimal("1"):
                raise ValueError(f"{name} must be between 0 and 1, got {value}.")
        if (
            not isinstance(self.platform_fee_minimum_cents, int)
            or self.platform_fee_minimum_cents < 0
        ):
            raise ValueError("platform_fee_minimum_cents must be int >= 0.")

    @classmethod
    def from_settings(cls, settings: Any) -> PricingRules:
        """Build rules from a Django settings object (missing keys → defaults)."""
        defaults = cls()
        return cls(
            tax_rate=Decimal(str(getattr(
                settings, "HOTELIUS_TAX_RATE", defaults.tax_rate))),
            platform_fee_rate=Decimal(str(getattr(
                settings, "HOTELIUS_PLATFORM_FEE_RATE", defaults.platform_fee_rate))),
            platform_fee_minimum_cents=int(getattr(
                settings, "HOTELIUS_PLATFORM_FEE_MINIMUM_CENTS",
                defaults.platform_fee_minimum_cents)),
        )


DEFAULT_PRICING_RULES = PricingRules()
