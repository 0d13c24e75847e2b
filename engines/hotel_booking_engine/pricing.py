"""
Hotelius Hotel Booking Engine — Stay Pricing
==============================================
All amounts are integer cents. Percentages go through Decimal and
round half-up, so 0.5 cent always rounds away from zero.

    subtotal = nightly_rate * nights
    tax      = round(subtotal * tax_rate)
    total    = subtotal + tax

    platform_fee = max(round(total * fee_rate), fee_minimum)
    merchant     = total - platform_fee
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from core.config.rules import DEFAULT_PRICING_RULES, PricingRules
from core.time.temporal import days_between


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _percent_label(rate: Decimal) -> str:
    return f"{(rate * 100).normalize():f}%"


def count_nights(check_in: date, check_out: date) -> int:
    nights = days_between(check_in, check_out)
    if nights < 1:
        raise ValueError("check_out must be after check_in.")
    return nights


# ══════════════════════════════════════════════════════════════
# STAY PRICE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StayPrice:
    nightly_rate_cents: int
    nights: int
    subtotal_cents: int
    tax_cents: int
    total_cents: int

    def to_dict(self) -> dict:
        return {
            "nightly_rate_cents": self.nightly_rate_cents,
            "nights": self.nights,
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
        }


def calculate_stay_price(
    nightly_rate_cents: int,
    nights: int,
    rules: PricingRules = DEFAULT_PRICING_RULES,
) -> StayPrice:
    if not isinstance(nightly_rate_cents, int) or nightly_rate_cents < 0:
        raise ValueError("nightly_rate_cents must be int >= 0.")
    if not isinstance(nights, int) or nights < 1:
        raise ValueError("nights must be int >= 1.")
    subtotal = nightly_rate_cents * nights
    tax = round_half_up(Decimal(subtotal) * rules.tax_rate)
    return StayPrice(
        nightly_rate_cents=nightly_rate_cents,
        nights=nights,
        subtotal_cents=subtotal,
        tax_cents=tax,
        total_cents=subtotal + tax,
    )


# ══════════════════════════════════════════════════════════════
# MARKETPLACE SPLIT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PaymentSplit:
    total_cents: int
    platform_fee_cents: int
    merchant_amount_cents: int

    def to_dict(self) -> dict:
        return {
            "total_cents": self.total_cents,
            "platform_fee_cents": self.platform_fee_cents,
            "merchant_amount_cents": self.merchant_amount_cents,
        }


def calculate_platform_fee(
    total_cents: int, rules: PricingRules = DEFAULT_PRICING_RULES
) -> int:
    if not isinstance(total_cents, int) or total_cents < 0:
        raise ValueError("total_cents must be int >= 0.")
    fee = round_half_up(Decimal(total_cents) * rules.platform_fee_rate)
    fee = max(fee, rules.platform_fee_minimum_cents)
    if fee > total_cents:
        raise ValueError(
            f"total_cents {total_cents} is below the platform fee of {fee}."
        )
    return fee


def split_marketplace_payment(
    total_cents: int, rules: PricingRules = DEFAULT_PRICING_RULES
) -> PaymentSplit:
    fee = calculate_platform_fee(total_cents, rules)
    return PaymentSplit(
        total_cents=total_cents,
        platform_fee_cents=fee,
        merchant_amount_cents=total_cents - fee,
    )


# ══════════════════════════════════════════════════════════════
# BREAKDOWN + PRICE GUARD
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PriceBreakdownLine:
    type: str            # base | rate_plan | tax
    description: str
    amount_cents: int
    nightly_rate_cents: Optional[int] = None
    nights: Optional[int] = None

    def to_dict(self) -> dict:
        data = {
            "type": self.type,
            "description": self.description,
            "amount_cents": self.amount_cents,
        }
        if self.nights is not None:
            data["nightly_rate_cents"] = self.nightly_rate_cents
            data["nights"] = self.nights
        return data


def build_price_breakdown(
    base_price_cents: int,
    price: StayPrice,
    rate_plan_name: Optional[str] = None,
    rules: PricingRules = DEFAULT_PRICING_RULES,
) -> List[PriceBreakdownLine]:
    """
    Lines for display. With a rate plan: the base rate for the stay,
    then the plan's adjustment against it. Lines always sum to total.
    """
    nights = price.nights
    label = "night" if nights == 1 else "nights"
    lines: List[PriceBreakdownLine] = []

    if rate_plan_name is not None:
        base_total = base_price_cents * nights
        lines.append(PriceBreakdownLine(
            type="base",
            description=f"Base rate ({nights} {label})",
            amount_cents=base_total,
            nightly_rate_cents=base_price_cents,
            nights=nights,
        ))
        adjustment = price.subtotal_cents - base_total
        if adjustment:
            lines.append(PriceBreakdownLine(
                type="rate_plan",
                description=f"{rate_plan_name} rate",
                amount_cents=adjustment,
                nightly_rate_cents=price.nightly_rate_cents,
                nights=nights,
            ))
    else:
        lines.append(PriceBreakdownLine(
            type="base",
            description=f"Room rate ({nights} {label})",
            amount_cents=price.subtotal_cents,
            nightly_rate_cents=price.nightly_rate_cents,
            nights=nights,
        ))

    if price.tax_cents > 0:
        lines.append(PriceBreakdownLine(
            type="tax",
            description=f"Taxes ({_percent_label(rules.tax_rate)})",
            amount_cents=price.tax_cents,
        ))
    return lines


@dataclass(frozen=True)
class PriceValidation:
    is_valid: bool
    calculated_total_cents: int
    difference_cents: int


def validate_booking_price(
    expected_total_cents: int, calculated_total_cents: int, nights: int
) -> PriceValidation:
    """Client-submitted total may differ from ours by at most 1 cent per night."""
    difference = abs(calculated_total_cents - expected_total_cents)
    return PriceValidation(
        is_valid=difference <= nights,
        calculated_total_cents=calculated_total_cents,
        difference_cents=difference,
    )
