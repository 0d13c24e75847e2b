"""
Hotelius Core Config — Public API
===================================
Admin-configurable pricing rules (tax, platform fee).
"""

from core.config.rules import (
    DEFAULT_PRICING_RULES,
    PricingRules,
)

__all__ = [
    "DEFAULT_PRICING_RULES",
    "PricingRules",
]
