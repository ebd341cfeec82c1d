"""Multi-month prepayment pricing with group discount tiers."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

ZERO = Decimal("0")


class DiscountTier(Protocol):
    months: int
    discount_amount: Decimal


@dataclass(frozen=True, slots=True)
class MultiMonthPrice:
    """Breakdown of a prepayment covering ``months`` months."""

    base_monthly_price: Decimal
    months: int
    subtotal: Decimal
    individual_discount_per_month: Decimal
    total_individual_discount: Decimal
    group_discount_amount: Decimal
    total_price: Decimal


@dataclass(frozen=True, slots=True)
class PaymentOption:
    months: int
    total_price: Decimal
    discount_amount: Decimal
    price_per_month: Decimal


def _live_tiers(discounts: Iterable[DiscountTier]) -> list[DiscountTier]:
    tiers = [tier for tier in discounts if not getattr(tier, "is_deleted", False)]
    return sorted(tiers, key=lambda tier: tier.months)


def calculate_multi_month_price(
    monthly_price: Decimal,
    months: int,
    discounts: Iterable[DiscountTier] = (),
    individual_discount: Decimal = ZERO,
) -> MultiMonthPrice:
    """Price a prepayment of ``months`` months.

    The individual discount applies per month; a group tier applies only
    when its ``months`` matches exactly. The total never goes below zero.
    """
    if months < 1:
        raise ValueError("months must be at least 1")

    base = Decimal(monthly_price)
    individual = Decimal(individual_discount)
    subtotal = base * months
    total_individual = individual * months if individual > ZERO else ZERO

    group_discount = ZERO
    for tier in _live_tiers(discounts):
        if tier.months == months:
            group_discount = Decimal(tier.discount_amount)
            break

    total = max(ZERO, subtotal - total_individual - group_discount)
    return MultiMonthPrice(
        base_monthly_price=base,
        months=months,
        subtotal=subtotal,
        individual_discount_per_month=individual,
        total_individual_discount=total_individual,
        group_discount_amount=group_discount,
        total_price=total,
    )


def list_payment_options(
    monthly_price: Decimal,
    discounts: Iterable[DiscountTier] = (),
    individual_discount: Decimal = ZERO,
) -> list[PaymentOption]:
    """Single month first, then one option per discount tier in ascending months."""
    tiers = _live_tiers(discounts)
    single = calculate_multi_month_price(monthly_price, 1, tiers, individual_discount)
    options = [
        PaymentOption(
            months=1,
            total_price=single.total_price,
            discount_amount=ZERO,
            price_per_month=single.total_price,
        ),
    ]
    for tier in tiers:
        price = calculate_multi_month_price(monthly_price, tier.months, tiers, individual_discount)
        options.append(
            PaymentOption(
                months=tier.months,
                total_price=price.total_price,
                discount_amount=Decimal(tier.discount_amount),
                price_per_month=price.total_price / tier.months,
            ),
        )
    return options
