"""Corporate bulk order pricing with a volume discount schedule."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from ...config import settings
from ...models.domain import BulkLineItem, BulkPricingSummary
from .calculator import PricingCalculator

logger = logging.getLogger(__name__)


class BulkOrderError(ValueError):
    """Bulk order does not satisfy the minimum number of deliveries."""


def volume_discount_percentage(count: int, tiers: Mapping[int, float] | None = None) -> float:
    """Percentage discount for an order of ``count`` deliveries (highest matching tier)."""
    tiers = settings.volume_discount_tiers if tiers is None else tiers
    percentage = 0.0
    for threshold in sorted(tiers):
        if count >= threshold:
            percentage = tiers[threshold]
    return percentage


def price_bulk_order(
    calculator: PricingCalculator,
    items: Sequence[BulkLineItem],
    tiers: Mapping[int, float] | None = None,
    min_items: int | None = None,
) -> BulkPricingSummary:
    """Price every delivery through the calculator and apply the volume discount to the total.

    Promotions do not apply to bulk orders. A line item outside every zone
    aborts the whole order with NoZoneForDistanceError.
    """
    min_items = settings.bulk_min_items if min_items is None else min_items
    if len(items) < min_items:
        raise BulkOrderError(f"Bulk orders must have at least {min_items} deliveries")

    breakdowns = tuple(calculator.price(item.distance, item.adjustments) for item in items)
    total_fee = sum(breakdown.final_price for breakdown in breakdowns)
    percentage = volume_discount_percentage(len(items), tiers)
    final_fee = total_fee * (1 - percentage / 100)

    logger.info(f"Bulk order of {len(items)} deliveries: total {total_fee}, {percentage}% off")
    return BulkPricingSummary(
        items=breakdowns,
        total_fee=total_fee,
        discount_percentage=percentage,
        discount_amount=total_fee - final_fee,
        final_fee=final_fee,
    )
