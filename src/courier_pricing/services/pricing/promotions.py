"""Promotion eligibility helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from ...models.domain import Promotion


def is_promotion_usable(promotion: Promotion, now: datetime | None = None) -> bool:
    """Return True if the promotion is active, inside its date window and not exhausted."""

    now = now or datetime.now(timezone.utc)
    if not promotion.active:
        return False
    if promotion.start_date is not None and now < promotion.start_date:
        return False
    if promotion.end_date is not None and now > promotion.end_date:
        return False
    if promotion.usage_limit is not None and promotion.usage_count >= promotion.usage_limit:
        return False
    return True


def usable_promotions(promotions: Iterable[Promotion], now: datetime | None = None) -> list[Promotion]:
    now = now or datetime.now(timezone.utc)
    return [promotion for promotion in promotions if is_promotion_usable(promotion, now)]


def compute_discount(promotion: Promotion, subtotal: float) -> float:
    """Discount a promotion grants on ``subtotal``.

    free_delivery zeroes the order, flat never exceeds the subtotal, and
    percentage is capped at max_discount when one is set.
    """

    if promotion.discount_kind == "free_delivery":
        return subtotal
    if promotion.discount_kind == "flat":
        return min(promotion.discount_value, subtotal)
    if promotion.discount_kind == "percentage":
        discount = subtotal * promotion.discount_value / 100
        if promotion.max_discount is not None:
            discount = min(discount, promotion.max_discount)
        return discount
    return 0.0
